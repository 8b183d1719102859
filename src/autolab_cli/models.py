"""Canonical Pydantic models shared across all autolab-cli modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`OutputConfig`, and :class:`GlobalConfig`.

**API models** -- records returned by the Autolab REST API and by the OAuth
endpoints:
    :class:`TokenPair`, :class:`DeviceCode`, :class:`User`, :class:`Course`,
    :class:`Assessment`, :class:`AssessmentDetails`, :class:`Problem`,
    :class:`Submission`, :class:`AttachmentFormat`, and :class:`Attachment`.

API records use ``extra="ignore"`` so that fields added by newer server
versions do not break parsing.
"""

from __future__ import annotations

import enum
from datetime import datetime
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods used against the Autolab service."""

    GET = "GET"
    POST = "POST"


class RequestConfig(BaseModel):
    """HTTP settings applied to every request made by the transport."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class OutputConfig(BaseModel):
    """Output preferences stored in :class:`GlobalConfig`.

    ``format`` applies whenever neither ``--json`` nor ``--plain`` is given.
    """

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Output format when no flag picks one"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/autolab/config.json``.

    Loaded and saved by :func:`~autolab_cli.config.load_global_config` and
    :func:`~autolab_cli.config.save_global_config`. Environment variables
    take precedence over the stored values; see
    :func:`~autolab_cli.config.resolve_config`.

    ``client_id_source`` and ``client_secret_source`` are credential source
    descriptors understood by :func:`~autolab_cli.config.resolve_credential`
    (``env:VAR``, ``file:/path``, ``prompt``, or a literal value).
    """

    base_url: str = Field(
        default="https://autolab.andrew.cmu.edu",
        description="Autolab server root, without a trailing slash",
    )
    client_id_source: Optional[str] = Field(
        default=None, description="Where to read the OAuth client id from"
    )
    client_secret_source: Optional[str] = Field(
        default=None, description="Where to read the OAuth client secret from"
    )
    redirect_uri: str = Field(
        default="",
        description="Redirect URI registered for the app "
        "(usually '<host>/device_flow_auth_cb')",
    )
    api_version: int = Field(default=1, description="REST API version")
    device_flow_timeout: int = Field(
        default=300, description="Seconds to wait for the user to authorize"
    )
    token_key: str = Field(
        default="autolab-cli-local-token-key-0001",
        description="32-character key handed to the token codec",
    )
    token_iv: str = Field(
        default="autolab-cli-iv01",
        description="16-character IV handed to the token codec",
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- OAuth ---


class TokenPair(BaseModel):
    """An access/refresh token pair as stored on disk and held in a session."""

    access_token: str
    refresh_token: str


class DeviceCode(BaseModel):
    """What the user needs to see to complete a device-flow authorization."""

    user_code: str
    verification_uri: str = ""


# --- API records ---


class User(BaseModel):
    """The user owning the current access token (``GET /user``)."""

    model_config = ConfigDict(extra="ignore")

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    school: Optional[str] = None
    major: Optional[str] = None
    year: Optional[str] = None


class Course(BaseModel):
    """A course the user is enrolled in."""

    model_config = ConfigDict(extra="ignore")

    name: str
    display_name: str = ""
    semester: Optional[str] = None
    late_slack: Optional[int] = None
    grace_days: Optional[int] = None
    auth_level: Optional[str] = None


class Assessment(BaseModel):
    """Summary of an assessment as listed under a course."""

    model_config = ConfigDict(extra="ignore")

    name: str
    display_name: str = ""
    start_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    category_name: Optional[str] = None


class AssessmentDetails(Assessment):
    """Full description of a single assessment.

    A negative ``max_submissions`` means unlimited submissions.
    """

    description: Optional[str] = None
    max_grace_days: int = 0
    max_submissions: int = -1
    max_unpenalized_submissions: Optional[int] = None
    disable_handins: bool = False
    group_size: int = 1
    writeup_format: Optional[str] = None
    handout_format: Optional[str] = None
    has_scoreboard: bool = False
    has_autograder: bool = False


class Problem(BaseModel):
    """A graded problem of an assessment. ``max_score`` is ``None`` when ungraded."""

    model_config = ConfigDict(extra="ignore")

    name: str
    description: Optional[str] = None
    max_score: Optional[float] = None
    optional: bool = False


class Submission(BaseModel):
    """A submission and the per-problem scores it received."""

    model_config = ConfigDict(extra="ignore")

    version: int
    filename: str = ""
    created_at: Optional[datetime] = None
    scores: dict[str, Optional[float]] = Field(default_factory=dict)


class AttachmentFormat(str, enum.Enum):
    """How an assessment attachment (handout or writeup) is provided."""

    NONE = "none"
    URL = "url"
    FILE = "file"


class Attachment(BaseModel):
    """Result of downloading a handout or writeup.

    ``url`` is set for :attr:`AttachmentFormat.URL`, ``path`` for
    :attr:`AttachmentFormat.FILE`.
    """

    format: AttachmentFormat = AttachmentFormat.NONE
    url: Optional[str] = None
    path: Optional[Path] = None
