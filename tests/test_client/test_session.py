"""Tests for the client session."""

from __future__ import annotations

import pytest

from autolab_cli.client.session import Session
from autolab_cli.models import TokenPair


class TestSession:
    def test_starts_unauthenticated(self) -> None:
        session = Session("cid", "secret")
        assert session.is_authenticated is False
        assert session.tokens() is None
        assert session.api_version == 1

    def test_set_tokens(self) -> None:
        session = Session("cid", "secret")
        session.set_tokens("at", "rt")
        assert session.tokens() == TokenPair(access_token="at", refresh_token="rt")
        assert session.access_token == "at"

    @pytest.mark.parametrize("pair", [("at", ""), ("", "rt")])
    def test_rejects_half_pair(self, pair: tuple[str, str]) -> None:
        session = Session("cid", "secret")
        with pytest.raises(ValueError):
            session.set_tokens(*pair)

    def test_clear_tokens(self) -> None:
        session = Session("cid", "secret")
        session.set_tokens("at", "rt")
        session.clear_tokens()
        assert session.refresh_token == ""
        assert session.is_authenticated is False

    def test_clear_device_flow(self) -> None:
        session = Session("cid", "secret")
        session.device_flow_device_code = "dev"
        session.device_flow_user_code = "user"
        assert session.device_flow_pending is True
        session.clear_device_flow()
        assert session.device_flow_pending is False
        assert session.device_flow_user_code == ""
