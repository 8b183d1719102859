"""Typed REST facade over the Autolab API.

:class:`AutolabClient` wires a :class:`~autolab_cli.client.transport.Transport`,
a :class:`~autolab_cli.client.requester.Requester` and a
:class:`~autolab_cli.auth.token_manager.TokenManager` around one
:class:`~autolab_cli.client.session.Session`, and exposes one method per
endpoint under ``/api/v{version}``. Every call carries the current
``access_token`` and may refresh it once.

Unlike the request engine, the facade raises: a typed record was expected,
so an error document becomes
:class:`~autolab_cli.exceptions.ErrorResponseError` and a record that fails
validation becomes :class:`~autolab_cli.exceptions.InvalidResponseError`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, TypeVar, Union
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from autolab_cli.auth.credential_store import CredentialStore
from autolab_cli.auth.token_manager import TokenManager
from autolab_cli.client.requester import Params, Requester
from autolab_cli.client.result import Ok, unwrap
from autolab_cli.client.session import Session
from autolab_cli.client.transport import Transport
from autolab_cli.exceptions import InvalidResponseError
from autolab_cli.models import (
    Assessment,
    AssessmentDetails,
    Attachment,
    AttachmentFormat,
    Course,
    HTTPMethod,
    Problem,
    RequestConfig,
    Submission,
    User,
)

SUBMISSION_FILE_FIELD = "submission[file]"

ModelT = TypeVar("ModelT", bound=BaseModel)


class AutolabClient:
    """Blocking client for the Autolab REST API.

    Must be used as a context manager so that the HTTP connection pool is
    opened and closed.

    Args:
        base_url: Server root, e.g. ``https://autolab.andrew.cmu.edu``.
        session: The process's client session.
        store: Optional credential store; refreshed tokens are written here.
        request_config: Timeout and TLS settings.
        http_transport: Optional :class:`httpx.BaseTransport` override.

    Example::

        session = Session(client_id, client_secret)
        session.set_tokens(at, rt)
        with AutolabClient("https://autolab.example.edu", session) as client:
            for course in client.get_courses():
                print(course.name)
    """

    def __init__(
        self,
        base_url: str,
        session: Session,
        store: Optional[CredentialStore] = None,
        request_config: Optional[RequestConfig] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._session = session
        self._store = store
        self._transport = Transport(base_url, request_config, http_transport)
        self._requester = Requester(session, self._transport)
        self._token_manager = TokenManager(session, self._requester, store)
        self._requester.refresher = self._token_manager.refresh

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> AutolabClient:
        self._transport.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        self._transport.__exit__(*args)

    @property
    def session(self) -> Session:
        return self._session

    @property
    def token_manager(self) -> TokenManager:
        return self._token_manager

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        self._session.set_tokens(access_token, refresh_token)

    def load_tokens(self) -> bool:
        """Load the stored token pair into the session.

        Returns:
            ``False`` if there is no store or no user is set up.
        """
        if self._store is None:
            return False
        tokens = self._store.load()
        if tokens is None:
            return False
        self._session.set_tokens(tokens.access_token, tokens.refresh_token)
        return True

    def forget_tokens(self) -> None:
        """Drop the tokens from the session and delete the stored pair."""
        self._session.clear_tokens()
        if self._store is not None:
            self._store.clear()

    # ------------------------------------------------------------------ #
    # User and courses
    # ------------------------------------------------------------------ #

    def get_user_info(self) -> User:
        return self._parse(User, self._get_json(self._api_path("user")))

    def get_courses(self) -> list[Course]:
        """List the user's current courses."""
        document = self._get_json(self._api_path("courses"), [("state", "current")])
        return self._parse_list(Course, document)

    def get_assessments(self, course: str) -> list[Assessment]:
        document = self._get_json(self._api_path("courses", course, "assessments"))
        return self._parse_list(Assessment, document)

    # ------------------------------------------------------------------ #
    # Assessments
    # ------------------------------------------------------------------ #

    def get_assessment_details(self, course: str, assessment: str) -> AssessmentDetails:
        document = self._get_json(self._asmt_path(course, assessment))
        return self._parse(AssessmentDetails, document)

    def get_problems(self, course: str, assessment: str) -> list[Problem]:
        document = self._get_json(self._asmt_path(course, assessment, "problems"))
        return self._parse_list(Problem, document)

    def get_submissions(self, course: str, assessment: str) -> list[Submission]:
        """List the user's submissions, latest first."""
        document = self._get_json(self._asmt_path(course, assessment, "submissions"))
        return self._parse_list(Submission, document)

    def get_feedback(self, course: str, assessment: str, version: int, problem: str) -> str:
        """Return the feedback text for one problem of one submission version.

        Raises:
            InvalidResponseError: If the answer has no ``feedback`` string.
        """
        path = self._asmt_path(course, assessment, "submissions", str(version), "feedback")
        document = self._get_json(path, [("problem", problem)])
        if not isinstance(document, dict) or not isinstance(document.get("feedback"), str):
            raise InvalidResponseError("Expected 'feedback' in the feedback response")
        return document["feedback"]

    def download_handout(
        self, download_dir: Union[str, Path], course: str, assessment: str
    ) -> Attachment:
        """Fetch the handout into *download_dir* (file) or return its URL."""
        return self._download(download_dir, "handout", course, assessment)

    def download_writeup(
        self, download_dir: Union[str, Path], course: str, assessment: str
    ) -> Attachment:
        """Fetch the writeup into *download_dir* (file) or return its URL."""
        return self._download(download_dir, "writeup", course, assessment)

    def submit_assessment(self, course: str, assessment: str, file_path: Union[str, Path]) -> int:
        """Upload *file_path* as a new submission.

        Returns:
            The version number assigned to the submission.

        Raises:
            InvalidResponseError: If the answer carries no ``version``.
        """
        result = self._requester.json_request(
            self._asmt_path(course, assessment, "submit"),
            method=HTTPMethod.POST,
            files={SUBMISSION_FILE_FIELD: Path(file_path)},
        )
        document = unwrap(result).document
        if not isinstance(document, dict) or "version" not in document:
            raise InvalidResponseError("Expected 'version' in the submit response")
        try:
            return int(document["version"])
        except (TypeError, ValueError) as exc:
            raise InvalidResponseError(f"Invalid submission version: {document['version']!r}") from exc

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _api_path(self, *segments: str) -> str:
        escaped = "/".join(quote(segment, safe="") for segment in segments)
        return f"/api/v{self._session.api_version}/{escaped}"

    def _asmt_path(self, course: str, assessment: str, *rest: str) -> str:
        return self._api_path("courses", course, "assessments", assessment, *rest)

    def _get_json(self, path: str, params: Params = ()) -> Any:
        return unwrap(self._requester.json_request(path, params)).document

    def _download(
        self, download_dir: Union[str, Path], kind: str, course: str, assessment: str
    ) -> Attachment:
        result = self._requester.download_request(
            download_dir, kind, self._asmt_path(course, assessment, kind)
        )
        ok: Ok = unwrap(result)
        if ok.is_download:
            return Attachment(format=AttachmentFormat.FILE, path=ok.file_path)
        if isinstance(ok.document, dict) and isinstance(ok.document.get("url"), str):
            return Attachment(format=AttachmentFormat.URL, url=ok.document["url"])
        return Attachment(format=AttachmentFormat.NONE)

    @staticmethod
    def _parse(model: type[ModelT], document: Any) -> ModelT:
        try:
            return model.model_validate(document)
        except ValidationError as exc:
            raise InvalidResponseError(f"Malformed {model.__name__} record: {exc}") from exc

    @classmethod
    def _parse_list(cls, model: type[ModelT], document: Any) -> list[ModelT]:
        if not isinstance(document, list):
            raise InvalidResponseError(f"Expected a list of {model.__name__} records")
        return [cls._parse(model, item) for item in document]
