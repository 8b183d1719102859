"""Assessment directories and the ``.autolab-asmt`` marker file.

``autolab download course:asmt`` creates a directory for the assessment and
drops a small JSON marker into it::

    {"course": "15213-f24", "assessment": "datalab"}

Commands that take an optional ``course:assessment`` argument fall back to
the nearest marker found from the working directory upwards, so
``autolab submit handin.tar`` works from anywhere inside the directory.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError

from autolab_cli.config import _atomic_write
from autolab_cli.exceptions import ConfigError, InvalidUsageError

MARKER_FILENAME = ".autolab-asmt"
MAX_SEARCH_LEVELS = 8

NOT_IN_ASMT_DIR_MESSAGE = (
    f"Not inside an autolab assessment directory: {MARKER_FILENAME} not found. "
    "Change directory or specify the course and assessment names"
)


class AssessmentContext(BaseModel):
    course: str
    assessment: str

    def __str__(self) -> str:
        return f"{self.course}:{self.assessment}"


def parse_course_and_asmt(raw: str) -> tuple[str, str]:
    """Split ``course:assessment`` at the first colon.

    Raises:
        InvalidUsageError: If there is no colon or either side is empty.
    """
    course, sep, assessment = raw.partition(":")
    if not sep or not course or not assessment:
        raise InvalidUsageError(f"Failed to parse course name and assessment name: {raw}")
    return course, assessment


def write_marker(directory: Path, course: str, assessment: str) -> Path:
    """Write the marker file into *directory* and return its path."""
    path = directory / MARKER_FILENAME
    context = AssessmentContext(course=course, assessment=assessment)
    _atomic_write(path, json.dumps(context.model_dump(), indent=2) + "\n")
    return path


def find_marker(start: Optional[Path] = None, levels: int = MAX_SEARCH_LEVELS) -> Optional[Path]:
    """Look for the marker in *start* and its ancestors, *levels* directories in total."""
    directory = (start or Path.cwd()).resolve()
    for _ in range(levels):
        candidate = directory / MARKER_FILENAME
        if candidate.is_file():
            return candidate
        if directory.parent == directory:
            break
        directory = directory.parent
    return None


def read_marker(start: Optional[Path] = None) -> Optional[AssessmentContext]:
    """Return the nearest assessment context, or ``None`` outside any assessment directory.

    Raises:
        ConfigError: If a marker exists but cannot be parsed.
    """
    path = find_marker(start)
    if path is None:
        return None
    try:
        return AssessmentContext.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError, OSError) as exc:
        raise ConfigError(f"Invalid assessment marker at {path}: {exc}") from exc


def resolve_assessment(raw: Optional[str], start: Optional[Path] = None) -> tuple[str, str]:
    """Names given on the command line win; otherwise use the marker.

    Raises:
        InvalidUsageError: If *raw* is malformed, or it is absent and no
            marker is found.
    """
    if raw:
        return parse_course_and_asmt(raw)
    context = read_marker(start)
    if context is None:
        raise InvalidUsageError(NOT_IN_ASMT_DIR_MESSAGE)
    return context.course, context.assessment


def check_against_marker(raw: Optional[str], start: Optional[Path] = None) -> tuple[str, str]:
    """Resolve names for commands that must agree with the marker (``submit``).

    Without *raw* the marker supplies the names. With *raw* and a marker,
    both must name the same assessment.

    Raises:
        InvalidUsageError: If the names conflict, or neither source exists.
    """
    context = read_marker(start)
    if not raw:
        if context is None:
            raise InvalidUsageError(NOT_IN_ASMT_DIR_MESSAGE)
        return context.course, context.assessment

    course, assessment = parse_course_and_asmt(raw)
    if context is not None and (course, assessment) != (context.course, context.assessment):
        raise InvalidUsageError(
            "The provided names and the configured names for this autolab assessment "
            f"directory do not match: provided {course}:{assessment}, configured {context}. "
            "Resolve this conflict, or use '-f' to force the provided names"
        )
    return course, assessment
