"""URL-encoded parameter strings for query strings and form bodies.

Autolab expects ``application/x-www-form-urlencoded`` parameters on every
endpoint. :func:`encode_params` serialises an ordered list of
``(key, value)`` pairs into ``k1=v1&k2=v2``. Only values are escaped --
keys are fixed identifiers chosen by this client.

Escaping follows RFC 3986: ASCII letters, digits and ``-_.~`` pass through,
every other byte of the UTF-8 encoding becomes ``%XX``.
"""

from __future__ import annotations

from typing import Iterable, NamedTuple
from urllib.parse import quote


class RequestParam(NamedTuple):
    """A single request parameter.

    The escaped form is derived on access, so a parameter list can be
    serialised any number of times (e.g. when a request is re-issued after a
    token refresh) without leftover state.
    """

    key: str
    value: str

    @property
    def escaped_value(self) -> str:
        return escape_value(self.value)


ParamList = list[RequestParam]


def escape_value(value: str) -> str:
    """Percent-encode *value* per RFC 3986 (unreserved characters kept)."""
    return quote(value, safe="")


def encode_params(params: Iterable[tuple[str, str]]) -> str:
    """Serialise *params* into ``k1=v1&k2=v2``.

    Args:
        params: Ordered ``(key, value)`` pairs. Order is preserved.

    Returns:
        The encoded string, or ``""`` when *params* is empty.
    """
    return "&".join(
        f"{param.key}={param.escaped_value}" for param in map(_as_param, params)
    )


def _as_param(item: tuple[str, str]) -> RequestParam:
    if isinstance(item, RequestParam):
        return item
    key, value = item
    return RequestParam(key, str(value))
