"""Shared-secret verification for inbound provider webhooks.

The provider sends the configured callback token in the x-callback-token
header. Verification fails closed: without a configured token every request
is rejected with CONFIGURATION_ERROR.
"""

import hmac

from gateway_shared.models.errors import ErrorCode, GatewayError
from gateway_shared.utils.logging import get_logger

logger = get_logger(__name__)

CALLBACK_TOKEN_HEADER = "x-callback-token"


def verify_callback_token(expected_token: str | None, received_token: str | None) -> None:
    """Verify the webhook callback token.

    Args:
        expected_token: Token configured for this deployment
        received_token: Token sent by the caller

    Raises:
        GatewayError: CONFIGURATION_ERROR when no token is configured,
            INVALID_WEBHOOK_TOKEN when the token is missing or different.
    """
    if not expected_token:
        logger.warning("Webhook callback token not configured")
        raise GatewayError(code=ErrorCode.CONFIGURATION_ERROR)

    if not received_token or not hmac.compare_digest(
        received_token.encode("utf-8"), expected_token.encode("utf-8")
    ):
        logger.warning(
            "Invalid webhook callback token (token %s)",
            "present" if received_token else "missing",
        )
        raise GatewayError(code=ErrorCode.INVALID_WEBHOOK_TOKEN)
