"""Single-request HTTP transport against the Autolab server.

:class:`Transport` wraps :class:`httpx.Client` and performs exactly one
HTTP exchange per :meth:`~Transport.execute` call -- no retries, no auth.
Response headers are handed to
:func:`~autolab_cli.client.classifier.classify_response` before the body is
read, and body chunks are streamed into the caller's
:class:`~autolab_cli.client.state.RequestState`.

Network failures (DNS, refused connections, TLS, timeouts) surface as
:class:`~autolab_cli.exceptions.ConnectionError_`; they are never turned into
a synthetic status code.
"""

from __future__ import annotations

from contextlib import ExitStack
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import httpx

from autolab_cli.client.classifier import classify_response
from autolab_cli.client.params import encode_params
from autolab_cli.client.state import RequestState
from autolab_cli.exceptions import ConnectionError_
from autolab_cli.models import HTTPMethod, RequestConfig
from autolab_cli.output import debug

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class Transport:
    """Blocking HTTP transport bound to a fixed base URI.

    Must be used as a context manager so that the underlying
    :class:`httpx.Client` is opened and closed.

    Args:
        base_uri: Server root such as ``https://autolab.example.edu``;
            request paths are appended verbatim.
        request_config: Timeout and TLS verification settings.
        http_transport: Optional custom :class:`httpx.BaseTransport`
            (e.g. :class:`httpx.MockTransport` in tests).

    Example::

        with Transport("https://autolab.example.edu") as transport:
            state = RequestState()
            status = transport.execute("/api/v1/user", HTTPMethod.GET,
                                       [("access_token", token)], state)
    """

    def __init__(
        self,
        base_uri: str,
        request_config: Optional[RequestConfig] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_uri = base_uri.rstrip("/")
        self._config = request_config or RequestConfig()
        self._http_transport = http_transport
        self._client: Optional[httpx.Client] = None

    @property
    def base_uri(self) -> str:
        return self._base_uri

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Transport:
        self._client = httpx.Client(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
            transport=self._http_transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Request execution
    # ------------------------------------------------------------------ #

    def execute(
        self,
        path: str,
        method: HTTPMethod,
        params: Iterable[tuple[str, str]],
        state: RequestState,
        files: Optional[Mapping[str, Path]] = None,
    ) -> int:
        """Perform one HTTP request and stream the response into *state*.

        GET parameters are appended to the URL as a query string; POST
        parameters form the ``application/x-www-form-urlencoded`` body. When
        *files* is given the POST is sent as ``multipart/form-data`` instead,
        with each file opened for the duration of this call only.

        Args:
            path: Path appended to the base URI (e.g. ``/oauth/token``).
            method: :attr:`HTTPMethod.GET` or :attr:`HTTPMethod.POST`.
            params: Ordered ``(key, value)`` pairs.
            state: Sink receiving headers classification and body bytes.
            files: Optional mapping of form field name to local file path.

        Returns:
            The HTTP status code (also stored in ``state.status_code``).

        Raises:
            ConnectionError_: On any transport-level failure.
        """
        assert self._client is not None, "Transport not opened -- use as context manager"

        params = list(params)
        url = f"{self._base_uri}{path}"
        debug(f"Requesting {method.value} {path} with params {[key for key, _ in params]}")

        with ExitStack() as stack:
            kwargs: dict[str, Any] = {}
            if files:
                kwargs["data"] = dict(params)
                kwargs["files"] = {
                    field: (file_path.name, stack.enter_context(open(file_path, "rb")))
                    for field, file_path in files.items()
                }
            else:
                encoded = encode_params(params)
                kwargs["headers"] = {"Content-Type": FORM_CONTENT_TYPE}
                if method == HTTPMethod.GET:
                    if encoded:
                        url = f"{url}?{encoded}"
                else:
                    kwargs["content"] = encoded.encode("ascii")

            try:
                with self._client.stream(method.value, url, **kwargs) as response:
                    classify_response(state, response.headers)
                    for chunk in response.iter_bytes():
                        state.write(chunk)
                    state.status_code = response.status_code
            except httpx.RequestError as exc:
                raise ConnectionError_(f"Request to {path} failed: {exc}") from exc

        debug(f"{method.value} {path} -> HTTP {state.status_code}")
        return state.status_code
