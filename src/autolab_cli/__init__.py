"""autolab-cli -- command-line client for the Autolab course-management service.

The client authorizes itself through the OAuth2 device flow, keeps the
resulting access/refresh token pair on disk, and talks to the versioned
Autolab REST API to list courses and assessments, download handouts and
writeups, inspect scores and feedback, and submit files.

Typical workflow::

    autolab setup                      # authorize this machine
    autolab courses                    # list current courses
    autolab download 15213-f26:datalab # create a working directory
    autolab submit bits.c              # submit from inside it

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration with environment overrides.
    context: Assessment-directory marker files.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    client: The authenticated request engine and REST facade.
    auth: Token manager, credential store, and token codec.
"""

__version__ = "0.3.0"
