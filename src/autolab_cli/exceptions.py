"""Exception hierarchy for autolab-cli.

All exceptions inherit from :class:`AutolabError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`autolab_cli.exit_codes`.
The top-level error handler in :func:`autolab_cli.app.main` catches
``AutolabError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Business errors reported by the service (``{"error": "..."}``) are ordinary
results inside the request engine; they only become
:class:`ErrorResponseError` at the REST facade, where a typed record was
expected instead.

Subclass hierarchy::

    AutolabError (exit 1)
    +-- InvalidUsageError     (exit 2)
    +-- AuthError             (exit 3)
    |   +-- InvalidTokenError (exit 3)
    +-- NotFoundError         (exit 4)
    +-- ErrorResponseError    (exit 5)
    +-- ConnectionError_      (exit 6)
    +-- InvalidResponseError  (exit 8)
    +-- ConfigError           (exit 1)
"""

from autolab_cli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_RESPONSE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class AutolabError(Exception):
    """Base exception for all autolab-cli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`autolab_cli.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(AutolabError):
    """Raised for invalid CLI arguments (e.g. a malformed ``course:assessment`` pair)."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(AutolabError):
    """Raised when authorization cannot be obtained (no user set up, exchange rejected)."""

    exit_code = EXIT_AUTH_FAILURE


class InvalidTokenError(AuthError):
    """Raised when the access token is rejected and one refresh did not fix it.

    Callers must treat this as "run the device flow again", never as a
    reason to retry the request.
    """

    def __init__(self, message: str = "", exit_code: int | None = None):
        super().__init__(
            message
            or "The provided access token is invalid and the refresh operation failed.",
            exit_code,
        )


class NotFoundError(AutolabError):
    """Raised when a local file or directory the command needs does not exist."""

    exit_code = EXIT_NOT_FOUND


class ErrorResponseError(AutolabError):
    """Raised by the REST facade when the service answers with an error document.

    Args:
        message: The ``error`` string from the service.
        status_code: HTTP status of the response.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class ConnectionError_(AutolabError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class InvalidResponseError(AutolabError):
    """Raised when a response lacks a field the API contract guarantees.

    This signals a client/server incompatibility rather than a user error.
    """

    exit_code = EXIT_INVALID_RESPONSE


class ConfigError(AutolabError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE
