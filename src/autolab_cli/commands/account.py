"""``autolab setup`` -- authorize this client for an Autolab account.

Runs the OAuth2 device flow: the user visits the verification URI on any
device, enters the code shown here, and the client polls until access is
granted, denied, or the wait times out. The resulting tokens are stored
through the credential store.
"""

from __future__ import annotations

import typer

from autolab_cli.auth.token_manager import DeviceFlowOutcome
from autolab_cli.client.api import AutolabClient
from autolab_cli.commands import open_client
from autolab_cli.config import resolve_config
from autolab_cli.exceptions import AuthError, InvalidTokenError
from autolab_cli.output import debug, info, success, suggest


def setup_command(
    ctx: typer.Context,
    force: bool = typer.Option(
        False, "--force", "-f", help="Force user setup, removing the current user."
    ),
) -> None:
    """Set up the user of this client.

    If a user is already set up and their tokens still work, nothing is
    changed unless ``--force`` is given.

    Example::

        autolab setup
        autolab setup -f
    """
    config = resolve_config()
    with open_client(ctx, require_user=False, config=config) as client:
        if force:
            client.forget_tokens()
        elif client.load_tokens():
            try:
                user = client.get_user_info()
            except InvalidTokenError:
                debug("Stored tokens no longer work, starting device flow")
            else:
                info(f"User '{user.first_name}' is currently set up on this client.")
                suggest("To force reset of user info, use 'autolab setup -f'")
                return

        _perform_device_flow(client, config.device_flow_timeout)

    success("User setup complete.")


def _perform_device_flow(client: AutolabClient, timeout: int) -> None:
    info("Initiating authorization...")
    code = client.token_manager.device_flow_init()
    info(f"Please visit {code.verification_uri} and enter the code: {code.user_code}")
    info("Waiting for user authorization ...")

    outcome = client.token_manager.device_flow_authorize(
        timeout, on_poll=lambda attempt: debug(f"Authorization pending (poll {attempt})")
    )
    if outcome == DeviceFlowOutcome.DENIED:
        raise AuthError("User denied authorization.")
    if outcome == DeviceFlowOutcome.TIMED_OUT:
        raise AuthError("Timed out while waiting for user action. Please try again.")
    if outcome == DeviceFlowOutcome.NOT_INITIALIZED:
        raise AuthError("Device flow was not initialized.")

    success("Received authorization!")
