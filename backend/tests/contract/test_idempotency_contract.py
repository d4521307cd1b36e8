"""Contract tests for the idempotent create endpoints.

Covers POST /api/v1/payment-requests and POST /api/v1/invoices:
- Idempotency-Key required and UUID shaped (400)
- First request proxied to Xendit (201)
- Replays served from the ledger without calling Xendit again
- Replays after expiry re-executed
- Provider errors relayed and not cached
"""

import json
import uuid
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.status import (
    HTTP_201_CREATED,
    HTTP_400_BAD_REQUEST,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from gateway_api.dependencies import get_idempotency_ledger, get_xendit_client
from gateway_api.main import app
from gateway_shared.services.idempotency_ledger import IDEMPOTENCY_EXPIRY_SECONDS
from gateway_shared.services.xendit_client import XenditClient

PAYMENT_REQUESTS_URL = "/api/v1/payment-requests"
INVOICES_URL = "/api/v1/invoices"

PAYMENT_REQUEST_BODY = {
    "reference_id": "order-1",
    "type": "PAY",
    "country": "ID",
    "currency": "IDR",
    "request_amount": 150000,
    "channel_code": "CARDS",
    "channel_properties": {},
}
INVOICE_BODY = {"external_id": "invoice-order-1", "amount": 150000, "currency": "IDR"}


class FakeXendit:
    """Records provider requests and answers with a canned response."""

    def __init__(self, status_code: int = 201) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code >= 400:
            return httpx.Response(
                self.status_code,
                json={"error_code": "API_VALIDATION_ERROR", "message": "Invalid channel"},
            )
        body = json.loads(request.content)
        return httpx.Response(
            self.status_code,
            json={"id": f"res-{len(self.requests)}", "status": "PENDING", "echo": body},
        )


@pytest.fixture
def xendit() -> FakeXendit:
    fake = FakeXendit()
    client = XenditClient(
        api_key="xnd_development_test_key",
        base_url="https://api.xendit.test",
        transport=httpx.MockTransport(fake),
    )
    app.dependency_overrides[get_xendit_client] = lambda: client
    return fake


@pytest.fixture
def api_client() -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


def _key_headers(key: str | None = None) -> dict[str, str]:
    return {"Idempotency-Key": key or str(uuid.uuid4())}


class TestIdempotencyKeyRequired:
    @pytest.mark.parametrize("url", [PAYMENT_REQUESTS_URL, INVOICES_URL])
    def test_missing_key(self, api_client: TestClient, xendit: FakeXendit, url: str) -> None:
        response = api_client.post(url, json=INVOICE_BODY)

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json() == {
            "error": {
                "code": "MISSING_IDEMPOTENCY_KEY",
                "message": "Missing required header: Idempotency-Key",
            }
        }
        assert xendit.requests == []

    @pytest.mark.parametrize("key", ["abc", "123e4567-e89b-12d3-a456", "order-1-retry"])
    def test_malformed_key_rejected_before_provider_call(
        self, api_client: TestClient, xendit: FakeXendit, key: str
    ) -> None:
        response = api_client.post(
            PAYMENT_REQUESTS_URL, json=PAYMENT_REQUEST_BODY, headers=_key_headers(key)
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "INVALID_IDEMPOTENCY_KEY"
        assert xendit.requests == []

    def test_get_requests_are_not_guarded(self, api_client: TestClient) -> None:
        assert api_client.get("/health").status_code == 200


class TestCreatePaymentRequest:
    def test_creates_and_forwards_unknown_fields(
        self, api_client: TestClient, xendit: FakeXendit
    ) -> None:
        response = api_client.post(
            PAYMENT_REQUESTS_URL, json=PAYMENT_REQUEST_BODY, headers=_key_headers()
        )

        assert response.status_code == HTTP_201_CREATED
        body = response.json()
        assert body["success"] is True
        assert body["data"]["id"] == "res-1"
        assert body["data"]["echo"]["channel_properties"] == {}
        assert body["data"]["echo"]["type"] == "PAY"
        assert xendit.requests[0].url.path == "/v3/payment_requests"

    def test_replay_returns_cached_response(
        self, api_client: TestClient, xendit: FakeXendit
    ) -> None:
        headers = _key_headers()

        first = api_client.post(PAYMENT_REQUESTS_URL, json=PAYMENT_REQUEST_BODY, headers=headers)
        second = api_client.post(PAYMENT_REQUESTS_URL, json=PAYMENT_REQUEST_BODY, headers=headers)

        assert second.status_code == first.status_code == HTTP_201_CREATED
        assert second.content == first.content
        assert second.headers["Idempotent-Replayed"] == "true"
        assert "Idempotent-Replayed" not in first.headers
        assert len(xendit.requests) == 1

    def test_different_keys_execute_separately(
        self, api_client: TestClient, xendit: FakeXendit
    ) -> None:
        api_client.post(PAYMENT_REQUESTS_URL, json=PAYMENT_REQUEST_BODY, headers=_key_headers())
        api_client.post(PAYMENT_REQUESTS_URL, json=PAYMENT_REQUEST_BODY, headers=_key_headers())

        assert len(xendit.requests) == 2

    def test_same_key_on_other_path_is_independent(
        self, api_client: TestClient, xendit: FakeXendit
    ) -> None:
        headers = _key_headers()

        api_client.post(PAYMENT_REQUESTS_URL, json=PAYMENT_REQUEST_BODY, headers=headers)
        response = api_client.post(INVOICES_URL, json=INVOICE_BODY, headers=headers)

        assert "Idempotent-Replayed" not in response.headers
        assert len(xendit.requests) == 2

    def test_replay_after_expiry_executes_again(
        self, api_client: TestClient, xendit: FakeXendit
    ) -> None:
        now = [1_700_000_000.0]
        get_idempotency_ledger().clock = lambda: now[0]
        headers = _key_headers()

        first = api_client.post(PAYMENT_REQUESTS_URL, json=PAYMENT_REQUEST_BODY, headers=headers)
        now[0] += IDEMPOTENCY_EXPIRY_SECONDS + 1
        second = api_client.post(PAYMENT_REQUESTS_URL, json=PAYMENT_REQUEST_BODY, headers=headers)

        assert len(xendit.requests) == 2
        assert first.json()["data"]["id"] == "res-1"
        assert second.json()["data"]["id"] == "res-2"
        assert "Idempotent-Replayed" not in second.headers

    def test_validation_error(self, api_client: TestClient, xendit: FakeXendit) -> None:
        body: dict[str, Any] = {**PAYMENT_REQUEST_BODY, "request_amount": -5}
        del body["currency"]

        response = api_client.post(PAYMENT_REQUESTS_URL, json=body, headers=_key_headers())

        assert response.status_code == HTTP_400_BAD_REQUEST
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        fields = {d["field"] for d in error["details"]}
        assert fields == {"currency", "request_amount"}
        assert xendit.requests == []


class TestProviderErrors:
    def test_provider_error_is_relayed_and_not_cached(
        self, api_client: TestClient, xendit: FakeXendit
    ) -> None:
        xendit.status_code = 400
        headers = _key_headers()

        first = api_client.post(PAYMENT_REQUESTS_URL, json=PAYMENT_REQUEST_BODY, headers=headers)
        second = api_client.post(PAYMENT_REQUESTS_URL, json=PAYMENT_REQUEST_BODY, headers=headers)

        assert first.status_code == HTTP_400_BAD_REQUEST
        assert first.json() == {
            "success": False,
            "error": {"error_code": "API_VALIDATION_ERROR", "message": "Invalid channel"},
        }
        assert "Idempotent-Replayed" not in second.headers
        assert len(xendit.requests) == 2

    def test_missing_api_key_returns_500(self, api_client: TestClient) -> None:
        app.dependency_overrides[get_xendit_client] = lambda: XenditClient(api_key=None)

        response = api_client.post(INVOICES_URL, json=INVOICE_BODY, headers=_key_headers())

        assert response.status_code == HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["error"]["code"] == "PROVIDER_NOT_CONFIGURED"


class TestCreateInvoice:
    def test_creates_invoice(self, api_client: TestClient, xendit: FakeXendit) -> None:
        response = api_client.post(INVOICES_URL, json=INVOICE_BODY, headers=_key_headers())

        assert response.status_code == HTTP_201_CREATED
        assert response.json()["data"]["echo"] == INVOICE_BODY
        assert xendit.requests[0].url.path == "/v2/invoices"

    def test_replay_returns_cached_invoice(self, api_client: TestClient, xendit: FakeXendit) -> None:
        headers = _key_headers()

        api_client.post(INVOICES_URL, json=INVOICE_BODY, headers=headers)
        replay = api_client.post(INVOICES_URL, json=INVOICE_BODY, headers=headers)

        assert replay.status_code == HTTP_201_CREATED
        assert replay.json()["data"]["id"] == "res-1"
        assert len(xendit.requests) == 1

    def test_negative_amount_rejected(self, api_client: TestClient, xendit: FakeXendit) -> None:
        response = api_client.post(
            INVOICES_URL, json={"external_id": "inv-1", "amount": -1}, headers=_key_headers()
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error"]["details"][0]["field"] == "amount"
