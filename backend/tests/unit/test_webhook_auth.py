"""Unit tests for webhook callback token verification."""

import logging

import pytest

from gateway_shared.models.errors import ErrorCode, GatewayError
from gateway_shared.services.webhook_auth import verify_callback_token


class TestVerifyCallbackToken:
    def test_matching_token_passes(self) -> None:
        verify_callback_token("secret-token", "secret-token")

    def test_missing_configuration_fails_closed(self) -> None:
        with pytest.raises(GatewayError) as exc_info:
            verify_callback_token(None, "secret-token")
        assert exc_info.value.code == ErrorCode.CONFIGURATION_ERROR

    def test_empty_configuration_fails_closed(self) -> None:
        with pytest.raises(GatewayError) as exc_info:
            verify_callback_token("", "")
        assert exc_info.value.code == ErrorCode.CONFIGURATION_ERROR

    def test_missing_token_rejected(self) -> None:
        with pytest.raises(GatewayError) as exc_info:
            verify_callback_token("secret-token", None)
        assert exc_info.value.code == ErrorCode.INVALID_WEBHOOK_TOKEN

    @pytest.mark.parametrize("received", ["wrong", "secret-token ", "SECRET-TOKEN", "secret"])
    def test_mismatched_token_rejected(self, received: str) -> None:
        with pytest.raises(GatewayError) as exc_info:
            verify_callback_token("secret-token", received)
        assert exc_info.value.code == ErrorCode.INVALID_WEBHOOK_TOKEN

    def test_token_value_never_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING), pytest.raises(GatewayError):
            verify_callback_token("secret-token", "leaked-value")

        assert "leaked-value" not in caplog.text
        assert "secret-token" not in caplog.text
        assert "present" in caplog.text
