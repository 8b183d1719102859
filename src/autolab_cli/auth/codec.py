"""Encrypt/decrypt hook applied to tokens before they touch the disk.

The credential store passes every token through a :class:`TokenCodec`.
:class:`PassthroughCodec` is the codec in use today: it validates the key
material it is given and returns tokens unchanged, so a real cipher can be
dropped in later without changing the on-disk layout or the call sites.
"""

from __future__ import annotations

from typing import Protocol

from autolab_cli.exceptions import ConfigError

KEY_LENGTH = 32
IV_LENGTH = 16


class TokenCodec(Protocol):
    def encrypt(self, plaintext: str) -> str: ...

    def decrypt(self, ciphertext: str) -> str: ...


class PassthroughCodec:
    """Identity codec that still enforces key and IV lengths.

    Args:
        key: Exactly 32 characters.
        iv: Exactly 16 characters.

    Raises:
        ConfigError: If either length is wrong.
    """

    def __init__(self, key: str, iv: str) -> None:
        if len(key) != KEY_LENGTH:
            raise ConfigError(f"Token key must be {KEY_LENGTH} characters long, got {len(key)}")
        if len(iv) != IV_LENGTH:
            raise ConfigError(f"Token IV must be {IV_LENGTH} characters long, got {len(iv)}")
        self._key = key
        self._iv = iv

    def encrypt(self, plaintext: str) -> str:
        return plaintext

    def decrypt(self, ciphertext: str) -> str:
        return ciphertext
