"""Invoice endpoints."""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from gateway_api.dependencies import get_xendit_client
from gateway_api.models.payments import InvoiceCreate, ProviderResult
from gateway_shared.models.errors import ErrorResponse
from gateway_shared.services.xendit_client import XenditClient

router = APIRouter(tags=["invoices"])


@router.post(
    "/invoices",
    summary="Create an invoice",
    description="Creates a Xendit invoice. Requires an `Idempotency-Key` header (UUID).",
    status_code=HTTP_201_CREATED,
    response_model=ProviderResult,
    responses={
        400: {"description": "Validation or idempotency key error", "model": ErrorResponse},
        500: {"description": "Provider not configured", "model": ErrorResponse},
    },
)
async def create_invoice(
    body: InvoiceCreate,
    client: XenditClient = Depends(get_xendit_client),
) -> ProviderResult:
    result = await client.create_invoice(body.model_dump(exclude_none=True))
    return ProviderResult(data=result)
