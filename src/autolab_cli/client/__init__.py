"""Authenticated request engine and REST facade for the Autolab API."""

from autolab_cli.client.requester import AUTH_FAILED_MESSAGE, Requester
from autolab_cli.client.result import (
    AuthExpired,
    BusinessError,
    CallResult,
    Ok,
    TransportFault,
    unwrap,
)
from autolab_cli.client.session import Session
from autolab_cli.client.state import RequestState
from autolab_cli.client.transport import Transport

__all__ = [
    "AUTH_FAILED_MESSAGE",
    "AuthExpired",
    "BusinessError",
    "CallResult",
    "Ok",
    "Requester",
    "RequestState",
    "Session",
    "Transport",
    "TransportFault",
    "unwrap",
]
