"""Tagged outcomes of an authenticated request.

The orchestrator never raises for conditions a caller may want to branch on;
it returns one of four records instead:

- :class:`Ok` -- the service answered with a usable document or file.
- :class:`BusinessError` -- the service answered with ``{"error": ...}`` (or
  an HTTP error status) unrelated to authorization.
- :class:`AuthExpired` -- authorization failed and one refresh did not help.
- :class:`TransportFault` -- the request never produced an HTTP response.

:func:`unwrap` converts a result into a value or an
:class:`~autolab_cli.exceptions.AutolabError` at the command edge.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from autolab_cli.exceptions import ConnectionError_, ErrorResponseError, InvalidTokenError


@dataclass(frozen=True)
class Ok:
    status: int
    document: Any = None
    file_path: Optional[Path] = None

    @property
    def is_download(self) -> bool:
        return self.file_path is not None


@dataclass(frozen=True)
class BusinessError:
    status: int
    message: str
    document: Any = None


@dataclass(frozen=True)
class AuthExpired:
    status: int


@dataclass(frozen=True)
class TransportFault:
    error: ConnectionError_


CallResult = Union[Ok, BusinessError, AuthExpired, TransportFault]


def unwrap(result: CallResult) -> Ok:
    """Return *result* if it is :class:`Ok`, otherwise raise the matching error.

    Raises:
        InvalidTokenError: For :class:`AuthExpired`.
        ErrorResponseError: For :class:`BusinessError`.
        ConnectionError_: For :class:`TransportFault`.
    """
    if isinstance(result, Ok):
        return result
    if isinstance(result, AuthExpired):
        raise InvalidTokenError()
    if isinstance(result, BusinessError):
        raise ErrorResponseError(result.message, status_code=result.status)
    raise result.error
