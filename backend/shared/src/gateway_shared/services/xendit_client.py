"""Xendit API client for the idempotent "create" endpoints.

Wraps an httpx AsyncClient configured with Basic auth (API key as the
username), the pinned api-version header and a request timeout.
"""

from typing import Any

import httpx

from gateway_shared.models.errors import ErrorCode, GatewayError, ProviderError
from gateway_shared.utils.logging import get_logger, log_provider_call

logger = get_logger(__name__)

PAYMENT_REQUESTS_PATH = "/v3/payment_requests"
INVOICES_PATH = "/v2/invoices"


class XenditClient:
    """Client for Xendit payment requests and invoices.

    Usage:
        client = XenditClient(api_key="xnd_development_...")
        result = await client.create_payment_request({"reference_id": "order-1", ...})
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.xendit.co",
        api_version: str = "2024-11-11",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Xendit secret API key. Without it every call raises
                PROVIDER_NOT_CONFIGURED.
            base_url: Xendit API base URL
            api_version: Value of the api-version header
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self._api_key = api_key
        self._base_url = base_url
        self._api_version = api_version
        self._timeout = timeout
        self._transport = transport

        if not api_key:
            logger.warning("XENDIT_API_KEY not set - provider calls will fail until it is provided")

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "api-version": self._api_version,
        }

    async def _post(self, path: str, body: dict[str, Any]) -> Any:
        if not self.is_configured:
            raise GatewayError(code=ErrorCode.PROVIDER_NOT_CONFIGURED)

        async with httpx.AsyncClient(
            base_url=self._base_url,
            auth=httpx.BasicAuth(self._api_key or "", ""),
            headers=self._headers(),
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(path, json=body)
            except httpx.HTTPError as e:
                log_provider_call(logger, "POST", path, error=str(e))
                raise ProviderError(f"Provider request failed: {e}") from e

        log_provider_call(logger, "POST", path, status_code=response.status_code)

        if response.is_error:
            try:
                error_body: Any = response.json()
            except ValueError:
                error_body = {"message": response.text}
            raise ProviderError(
                f"Provider returned {response.status_code}",
                status_code=response.status_code,
                body=error_body,
            )

        return response.json()

    async def create_payment_request(self, body: dict[str, Any]) -> Any:
        """Create a payment request (POST /v3/payment_requests)."""
        logger.info("Creating payment request for reference %s", body.get("reference_id"))
        return await self._post(PAYMENT_REQUESTS_PATH, body)

    async def create_invoice(self, body: dict[str, Any]) -> Any:
        """Create an invoice (POST /v2/invoices)."""
        logger.info("Creating invoice for external_id %s", body.get("external_id"))
        return await self._post(INVOICES_PATH, body)
