"""OAuth2 device flow and token exchange against the Autolab server.

Autolab's device flow differs from :rfc:`8628`: the client polls a dedicated
``/oauth/device_flow_authorize`` endpoint that eventually hands back an
*authorization code*, which is then exchanged at ``/oauth/token`` with the
ordinary ``authorization_code`` grant.

Flow:
    1. :meth:`TokenManager.device_flow_init` -- obtain ``device_code`` +
       ``user_code``; the user code and verification URI are shown to the
       user.
    2. :meth:`TokenManager.device_flow_authorize` -- poll every
       :data:`POLL_INTERVAL` seconds until the user grants or denies access,
       or the deadline passes.
    3. :meth:`TokenManager.exchange_authorization_code` -- trade the code
       for an access/refresh token pair.

:meth:`TokenManager.refresh` is handed to the
:class:`~autolab_cli.client.requester.Requester` as its refresher.

Every token pair obtained here is written to the session and, when a
:class:`~autolab_cli.auth.credential_store.CredentialStore` is attached,
persisted to disk.
"""

from __future__ import annotations

import enum
import time
from typing import Any, Callable, Optional

from autolab_cli.auth.credential_store import CredentialStore
from autolab_cli.client.requester import Requester
from autolab_cli.client.result import AuthExpired, CallResult, TransportFault
from autolab_cli.client.session import Session
from autolab_cli.exceptions import AuthError, InvalidResponseError, InvalidTokenError
from autolab_cli.models import DeviceCode, HTTPMethod, TokenPair
from autolab_cli.output import debug

POLL_INTERVAL = 5

OAUTH_TOKEN_PATH = "/oauth/token"
DEVICE_FLOW_INIT_PATH = "/oauth/device_flow_init"
DEVICE_FLOW_AUTHORIZE_PATH = "/oauth/device_flow_authorize"

AUTHORIZATION_PENDING = "authorization_pending"


class DeviceFlowOutcome(str, enum.Enum):
    """Terminal result of :meth:`TokenManager.device_flow_authorize`."""

    GRANTED = "granted"
    DENIED = "denied"
    NOT_INITIALIZED = "not_initialized"
    TIMED_OUT = "timed_out"


class TokenManager:
    """Obtains and renews tokens for a :class:`~autolab_cli.client.session.Session`.

    Args:
        session: Holds client identity, tokens, and device-flow scratch state.
        requester: Used for every OAuth call, always with
            ``allow_refresh=False`` and without an ``access_token``.
        store: Optional persistence for newly obtained tokens.
        poll_interval: Seconds between authorization polls.
    """

    def __init__(
        self,
        session: Session,
        requester: Requester,
        store: Optional[CredentialStore] = None,
        poll_interval: int = POLL_INTERVAL,
    ) -> None:
        self._session = session
        self._requester = requester
        self._store = store
        self._poll_interval = poll_interval

    # ------------------------------------------------------------------ #
    # Device flow
    # ------------------------------------------------------------------ #

    def device_flow_init(self) -> DeviceCode:
        """Start a device-flow sequence, replacing any pending one.

        Returns:
            The user code and verification URI to show the user.

        Raises:
            AuthError: If the server answers with an error document.
            InvalidResponseError: If ``device_code`` or ``user_code`` is
                missing from the answer.
            ConnectionError_: On transport failure.
        """
        self._session.clear_device_flow()
        document = self._oauth_request(
            DEVICE_FLOW_INIT_PATH,
            [("client_id", self._session.client_id)],
            HTTPMethod.GET,
        )

        if "device_code" not in document or "user_code" not in document:
            if isinstance(document.get("error"), str):
                raise AuthError(f"Device flow initiation failed: {document['error']}")
            raise InvalidResponseError(
                "Expected keys not found in response during device_flow_init"
            )

        self._session.device_flow_device_code = str(document["device_code"])
        self._session.device_flow_user_code = str(document["user_code"])
        return DeviceCode(
            user_code=self._session.device_flow_user_code,
            verification_uri=str(document.get("verification_uri") or ""),
        )

    def device_flow_authorize(
        self,
        timeout: float,
        on_poll: Optional[Callable[[int], None]] = None,
    ) -> DeviceFlowOutcome:
        """Poll until the user grants or denies access, or *timeout* seconds pass.

        Sequence scratch state is cleared on every terminal outcome, so a
        timed-out sequence has to be restarted with :meth:`device_flow_init`.

        Args:
            timeout: Maximum seconds to keep polling.
            on_poll: Called with the 1-based attempt number after each poll
                that is still pending.

        Returns:
            A :class:`DeviceFlowOutcome`. ``NOT_INITIALIZED`` is returned
            without any network traffic when no sequence is pending.

        Raises:
            AuthError: If the granted code cannot be exchanged for tokens.
            InvalidResponseError: If a poll answer has neither ``code`` nor
                ``error``.
            ConnectionError_: On transport failure.
        """
        if not self._session.device_flow_pending:
            return DeviceFlowOutcome.NOT_INITIALIZED

        params = [
            ("client_id", self._session.client_id),
            ("device_code", self._session.device_flow_device_code),
        ]
        deadline = time.monotonic() + timeout
        attempt = 0

        while time.monotonic() < deadline:
            attempt += 1
            document = self._oauth_request(DEVICE_FLOW_AUTHORIZE_PATH, params, HTTPMethod.GET)

            if "code" in document:
                self._session.clear_device_flow()
                if not self.exchange_authorization_code(str(document["code"])):
                    raise AuthError("Failed to exchange the authorization code for tokens")
                return DeviceFlowOutcome.GRANTED

            error = document.get("error")
            if not isinstance(error, str):
                self._session.clear_device_flow()
                raise InvalidResponseError(
                    "Expected 'code' or 'error' in device_flow_authorize response"
                )
            if error != AUTHORIZATION_PENDING:
                debug(f"Device flow ended with error: {error}")
                self._session.clear_device_flow()
                return DeviceFlowOutcome.DENIED

            if on_poll is not None:
                on_poll(attempt)
            time.sleep(self._poll_interval)

        self._session.clear_device_flow()
        return DeviceFlowOutcome.TIMED_OUT

    # ------------------------------------------------------------------ #
    # Token endpoint
    # ------------------------------------------------------------------ #

    def exchange_authorization_code(self, code: str) -> bool:
        """Exchange an authorization code for a token pair.

        Returns:
            ``True`` if both tokens were received and saved.

        Raises:
            InvalidResponseError: If only one of the two tokens came back.
        """
        document = self._oauth_request(
            OAUTH_TOKEN_PATH,
            [
                ("grant_type", "authorization_code"),
                ("client_id", self._session.client_id),
                ("client_secret", self._session.client_secret),
                ("redirect_uri", self._session.redirect_uri),
                ("code", code),
            ],
            HTTPMethod.POST,
        )
        return self._save_tokens(document)

    def refresh(self) -> bool:
        """Trade the refresh token for a new token pair.

        On a rejected refresh (or when no refresh token is held) the
        session's tokens are dropped, leaving it unauthenticated; the stored
        pair on disk is left alone.

        Returns:
            ``True`` when both new tokens were saved.

        Raises:
            InvalidResponseError: If the answer carries exactly one token, or
                neither tokens nor an error.
        """
        refresh_token = self._session.refresh_token
        if not refresh_token:
            self._session.clear_tokens()
            return False

        document = self._oauth_request(
            OAUTH_TOKEN_PATH,
            [
                ("grant_type", "refresh_token"),
                ("client_id", self._session.client_id),
                ("client_secret", self._session.client_secret),
                ("refresh_token", refresh_token),
            ],
            HTTPMethod.POST,
        )
        if self._save_tokens(document):
            debug("Refreshed access token")
            return True
        if isinstance(document.get("error"), str):
            debug(f"Token refresh rejected: {document['error']}")
            self._session.clear_tokens()
            return False
        raise InvalidResponseError("Token refresh response has neither tokens nor an error")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _save_tokens(self, document: dict[str, Any]) -> bool:
        access_token = document.get("access_token")
        refresh_token = document.get("refresh_token")
        if access_token and refresh_token:
            pair = TokenPair(access_token=str(access_token), refresh_token=str(refresh_token))
            self._session.set_tokens(pair.access_token, pair.refresh_token)
            if self._store is not None:
                self._store.save(pair)
            return True
        if access_token or refresh_token:
            raise InvalidResponseError("Token response contained only one of the two tokens")
        return False

    def _oauth_request(
        self,
        path: str,
        params: list[tuple[str, str]],
        method: HTTPMethod,
    ) -> dict[str, Any]:
        result = self._requester.json_request(
            path, params, method, allow_refresh=False, authenticated=False
        )
        return _expect_document(result, path)


def _expect_document(result: CallResult, path: str) -> dict[str, Any]:
    """Return the JSON object carried by *result*, whether success or error."""
    if isinstance(result, TransportFault):
        raise result.error
    if isinstance(result, AuthExpired):
        raise InvalidTokenError()
    document = result.document
    if not isinstance(document, dict):
        raise InvalidResponseError(f"Expected a JSON object from {path}")
    return document
