"""Built-in CLI commands and the helpers they share."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

import typer

from autolab_cli.auth.codec import PassthroughCodec
from autolab_cli.auth.credential_store import CredentialStore
from autolab_cli.client.api import AutolabClient
from autolab_cli.client.session import Session
from autolab_cli.config import resolve_client_credentials, resolve_config
from autolab_cli.exceptions import AuthError
from autolab_cli.models import GlobalConfig
from autolab_cli.output import debug

NO_USER_MESSAGE = (
    "No user set up on this client yet. "
    "Please run 'autolab setup' to setup your Autolab account."
)


@contextmanager
def open_client(
    ctx: Optional[typer.Context] = None,
    require_user: bool = True,
    config: Optional[GlobalConfig] = None,
) -> Iterator[AutolabClient]:
    """Build an :class:`AutolabClient` from the effective configuration.

    ``ctx.obj["http_transport"]``, when present, replaces the network
    transport (tests pass an :class:`httpx.MockTransport` here).

    Args:
        ctx: Typer context of the running command.
        require_user: Load the stored tokens and fail if there are none.
        config: Pre-resolved configuration; resolved from disk and
            environment when omitted.

    Raises:
        AuthError: If *require_user* is set and no user is set up.
        ConfigError: If the OAuth client credentials cannot be resolved.
    """
    config = config or resolve_config()
    client_id, client_secret = resolve_client_credentials(config)
    session = Session(client_id, client_secret, config.redirect_uri, config.api_version)
    store = CredentialStore(PassthroughCodec(config.token_key, config.token_iv))

    obj = ctx.obj if ctx is not None and isinstance(ctx.obj, dict) else {}
    debug(f"Using server {config.base_url}")
    with AutolabClient(
        config.base_url,
        session,
        store=store,
        request_config=config.request,
        http_transport=obj.get("http_transport"),
    ) as client:
        if require_user and not client.load_tokens():
            raise AuthError(NO_USER_MESSAGE)
        yield client


def format_time(value: Optional[datetime]) -> str:
    """Render a timestamp the way ``ctime`` does, or ``--`` when unknown."""
    if value is None:
        return "--"
    return value.strftime("%a %b %d %H:%M:%S %Y")
