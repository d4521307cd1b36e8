"""Payment request endpoints.

Creation is proxied to Xendit and protected by the Idempotency-Key middleware.
"""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from gateway_api.dependencies import get_xendit_client
from gateway_api.models.payments import PaymentRequestCreate, ProviderResult
from gateway_shared.models.errors import ErrorResponse
from gateway_shared.services.xendit_client import XenditClient
from gateway_shared.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["payment-requests"])


@router.post(
    "/payment-requests",
    summary="Create a payment request",
    description="""
Creates a Xendit payment request. Fields other than the validated ones are
forwarded to Xendit as-is.

**Requires** an `Idempotency-Key` header (UUID). Repeating a successful request
with the same key returns the original response without calling Xendit again.
""",
    status_code=HTTP_201_CREATED,
    response_model=ProviderResult,
    responses={
        400: {"description": "Validation or idempotency key error", "model": ErrorResponse},
        500: {"description": "Provider not configured", "model": ErrorResponse},
    },
)
async def create_payment_request(
    body: PaymentRequestCreate,
    client: XenditClient = Depends(get_xendit_client),
) -> ProviderResult:
    """Create a payment request with Xendit."""
    logger.info("Creating payment request for reference %s", body.reference_id)
    result = await client.create_payment_request(body.model_dump(exclude_none=True))
    return ProviderResult(data=result)
