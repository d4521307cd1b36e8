"""Standard error codes for the payment gateway.

All HTTP-facing failures are expressed as a GatewayError carrying one of
these codes. The API layer maps each code to an HTTP status and renders the
shared error envelope: {"error": {"code", "message", "details"?}}.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Error codes exposed in the error envelope."""

    # Webhook authentication
    INVALID_WEBHOOK_TOKEN = "INVALID_WEBHOOK_TOKEN"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Request validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_IDEMPOTENCY_KEY = "MISSING_IDEMPOTENCY_KEY"
    INVALID_IDEMPOTENCY_KEY = "INVALID_IDEMPOTENCY_KEY"

    # Lookups
    WEBHOOK_NOT_FOUND = "WEBHOOK_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"

    # Throttling
    RATE_LIMITED = "RATE_LIMITED"

    # Provider / server side
    PROVIDER_NOT_CONFIGURED = "PROVIDER_NOT_CONFIGURED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_WEBHOOK_TOKEN: "Invalid webhook callback token",
    ErrorCode.CONFIGURATION_ERROR: "Webhook verification not configured",
    ErrorCode.VALIDATION_ERROR: "Invalid request data",
    ErrorCode.MISSING_IDEMPOTENCY_KEY: "Missing required header: Idempotency-Key",
    ErrorCode.INVALID_IDEMPOTENCY_KEY: "Idempotency key must be a valid UUID",
    ErrorCode.WEBHOOK_NOT_FOUND: "Webhook not found",
    ErrorCode.NOT_FOUND: "Endpoint not found",
    ErrorCode.RATE_LIMITED: "Too many requests from this IP, please try again later.",
    ErrorCode.PROVIDER_NOT_CONFIGURED: "Payment provider API key is not configured",
    ErrorCode.INTERNAL_SERVER_ERROR: "Internal Server Error",
}


class ErrorBody(BaseModel):
    """Inner error object of the error envelope."""

    code: ErrorCode
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Standard error envelope returned for every non-webhook failure."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error": {
                        "code": "INVALID_WEBHOOK_TOKEN",
                        "message": "Invalid webhook callback token",
                    }
                }
            ]
        }
    )

    error: ErrorBody

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[Any] = None,
        message: Optional[str] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error
            message: Optional override for the default message

        Returns:
            An ErrorResponse with the message for the code.
        """
        return cls(
            error=ErrorBody(
                code=code,
                message=message or ERROR_MESSAGES[code],
                details=details,
            )
        )


class GatewayError(Exception):
    """Exception raised by gateway operations that map to an HTTP error."""

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[Any] = None,
        message: Optional[str] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Convert this exception to the error envelope."""
        return ErrorResponse.from_code(self.code, self.details, self.message)


class StoreUnavailableError(Exception):
    """Raised when the record store is not configured or reachable."""


class RecordNotFoundError(Exception):
    """Raised when an update targets a record that does not exist."""

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(f"Record {collection}/{record_id} does not exist")
        self.collection = collection
        self.record_id = record_id


class BookingUpdateError(Exception):
    """Raised when a booking update fails once the store is available."""

    def __init__(self, message: str, reference_id: str, status: str | None) -> None:
        """Initialize with the booking reference and raw provider status.

        Args:
            message: Human-readable error message.
            reference_id: Booking reference the update targeted.
            status: Raw provider status carried by the event.
        """
        super().__init__(message)
        self.reference_id = reference_id
        self.status = status


class ProviderError(Exception):
    """Raised when a payment provider API call fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        """Initialize with message and the provider's response, if any.

        Args:
            message: Human-readable error message.
            status_code: HTTP status returned by the provider.
            body: Decoded response body returned by the provider.
        """
        super().__init__(message)
        self.status_code = status_code
        self.body = body
