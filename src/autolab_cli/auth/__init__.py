"""Token acquisition, renewal, and storage."""

from autolab_cli.auth.codec import PassthroughCodec, TokenCodec
from autolab_cli.auth.credential_store import CredentialStore
from autolab_cli.auth.token_manager import DeviceFlowOutcome, TokenManager

__all__ = [
    "CredentialStore",
    "DeviceFlowOutcome",
    "PassthroughCodec",
    "TokenCodec",
    "TokenManager",
]
