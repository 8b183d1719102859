"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~autolab_cli.exceptions.AutolabError` subclass.
Shell scripts wrapping ``autolab`` can inspect the exit code to tell an
expired login apart from a network outage without parsing stderr.

Example::

    $ autolab courses
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- run 'autolab setup' again
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authorization failed or the stored tokens are no longer accepted."""

EXIT_NOT_FOUND = 4
"""A local file or directory the command needs does not exist."""

EXIT_SERVER_ERROR = 5
"""The service answered with an error document."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_INVALID_RESPONSE = 8
"""The service answered with a document that is missing required fields."""

EXIT_INTERRUPTED = 130
"""The user pressed Ctrl-C."""
