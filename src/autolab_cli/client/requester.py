"""Authenticated request orchestration with one refresh-and-retry.

:class:`Requester` sits between the REST facade and the
:class:`~autolab_cli.client.transport.Transport`. For every call it:

1. injects the session's *current* ``access_token`` (when authenticated),
2. issues the request once,
3. if the service answered with the authorization-failure sentinel,
   asks the refresher for new tokens, resets the request state, and
   re-issues the request exactly once with the refreshed token,
4. classifies what came back into a tagged
   :mod:`~autolab_cli.client.result`.

The token endpoints call through here with ``allow_refresh=False`` so a
failing refresh can never recurse.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional, Union

from autolab_cli.client.result import (
    AuthExpired,
    BusinessError,
    CallResult,
    Ok,
    TransportFault,
)
from autolab_cli.client.session import Session
from autolab_cli.client.state import RequestState
from autolab_cli.client.transport import Transport
from autolab_cli.exceptions import ConnectionError_
from autolab_cli.models import HTTPMethod
from autolab_cli.output import debug

AUTH_FAILED_MESSAGE = "OAuth2 authorization failed"

Params = Iterable[tuple[str, str]]


def document_has_error(state: RequestState, message: str) -> bool:
    """Whether the buffered body is an object whose ``error`` equals *message*."""
    if state.is_download:
        return False
    document = state.json()
    return isinstance(document, dict) and document.get("error") == message


class Requester:
    """Issues requests on behalf of one :class:`Session`.

    Args:
        session: Token holder; the access token is read on every attempt.
        transport: An opened :class:`Transport`.
        refresher: Zero-argument callable returning ``True`` when new tokens
            were obtained. Usually
            :meth:`~autolab_cli.auth.token_manager.TokenManager.refresh`.
    """

    def __init__(
        self,
        session: Session,
        transport: Transport,
        refresher: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.session = session
        self.transport = transport
        self.refresher = refresher

    def call(
        self,
        state: RequestState,
        path: str,
        params: Params = (),
        method: HTTPMethod = HTTPMethod.GET,
        allow_refresh: bool = True,
        authenticated: bool = True,
        files: Optional[Mapping[str, Path]] = None,
    ) -> CallResult:
        """Issue a request, refreshing tokens and retrying once on auth failure.

        Args:
            state: Sink for the response; reset before a retry.
            path: Request path below the base URI.
            params: Request parameters, without ``access_token``.
            method: HTTP method.
            allow_refresh: Whether an authorization failure may trigger a
                token refresh and a single retry.
            authenticated: Whether to inject ``access_token``.
            files: Optional multipart file fields (POST only).

        Returns:
            A tagged :data:`~autolab_cli.client.result.CallResult`.
        """
        params = list(params)
        try:
            self._issue(state, path, params, method, authenticated, files)
            if not self._auth_failed(state) or not allow_refresh:
                return self._classify(state)

            debug(f"Authorization rejected for {path}, refreshing tokens")
            if self.refresher is not None and self.refresher():
                state.reset()
                self._issue(state, path, params, method, authenticated, files)
                if not self._auth_failed(state):
                    debug("Successfully refreshed token")
                    return self._classify(state)

            return AuthExpired(state.status_code)
        except ConnectionError_ as exc:
            state.reset()
            return TransportFault(exc)

    def json_request(
        self,
        path: str,
        params: Params = (),
        method: HTTPMethod = HTTPMethod.GET,
        allow_refresh: bool = True,
        authenticated: bool = True,
        files: Optional[Mapping[str, Path]] = None,
    ) -> CallResult:
        """Make a request whose answer is expected to be a JSON document."""
        state = RequestState()
        result = self.call(
            state, path, params, method, allow_refresh, authenticated, files
        )
        debug(f"Response body: {state.text}")
        return result

    def download_request(
        self,
        download_dir: Union[str, Path],
        suggested_filename: str,
        path: str,
        params: Params = (),
        method: HTTPMethod = HTTPMethod.GET,
        allow_refresh: bool = True,
    ) -> CallResult:
        """Make a request whose answer may be a file attachment.

        The attachment is written to ``download_dir``; a JSON answer is
        returned as a document instead. The file handle is closed on every
        exit path.
        """
        state = RequestState(download_dir, suggested_filename)
        try:
            return self.call(state, path, params, method, allow_refresh)
        finally:
            state.close()
            debug("Completed file download")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _issue(
        self,
        state: RequestState,
        path: str,
        params: list[tuple[str, str]],
        method: HTTPMethod,
        authenticated: bool,
        files: Optional[Mapping[str, Path]],
    ) -> int:
        if authenticated:
            params = self._inject_auth(params)
        return self.transport.execute(path, method, params, state, files)

    def _inject_auth(self, params: list[tuple[str, str]]) -> list[tuple[str, str]]:
        return [("access_token", self.session.access_token), *params]

    @staticmethod
    def _auth_failed(state: RequestState) -> bool:
        return state.status_code != 200 and document_has_error(state, AUTH_FAILED_MESSAGE)

    @staticmethod
    def _classify(state: RequestState) -> CallResult:
        if state.is_download:
            return Ok(state.status_code, file_path=state.file_path)

        document = state.json()
        if isinstance(document, dict) and isinstance(document.get("error"), str):
            return BusinessError(state.status_code, document["error"], document)
        if state.status_code >= 400:
            return BusinessError(state.status_code, f"HTTP {state.status_code}", document)
        return Ok(state.status_code, document)
