"""Pytest configuration and fixtures for the Xendit gateway backend tests.

This module provides reusable fixtures for testing:
- Environment and cached-singleton reset between tests
- An in-memory RecordStore fake with call tracking
- Webhook handler, registries and TestClient wired to the fake
- Sample webhook event builders
"""

import os
from collections.abc import Generator
from typing import Any

import pytest

# === Environment Setup ===

# Set environment variables for testing before the app is imported
os.environ.setdefault("AWS_DEFAULT_REGION", "ap-southeast-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ["ENVIRONMENT"] = "test"
os.environ["DYNAMODB_TABLE_PREFIX"] = "test-gateway"
os.environ["WEBHOOK_CALLBACK_TOKEN"] = "test-callback-token"
os.environ["XENDIT_API_KEY"] = "xnd_development_test_key"
os.environ.pop("SSM_PARAMETER_PREFIX", None)

from fastapi.testclient import TestClient  # noqa: E402

from gateway_api.dependencies import (  # noqa: E402
    get_webhook_handler,
    get_webhook_store,
    reset_services,
)
from gateway_api.main import app  # noqa: E402
from gateway_shared.models.errors import RecordNotFoundError  # noqa: E402
from gateway_shared.services.audit_log import AuditLogWriter  # noqa: E402
from gateway_shared.services.booking_updater import BookingUpdater  # noqa: E402
from gateway_shared.services.dedup_store import InMemoryDedupStore  # noqa: E402
from gateway_shared.services.record_store import RecordStore  # noqa: E402
from gateway_shared.services.ssm_service import get_ssm_service  # noqa: E402
from gateway_shared.services.webhook_handler import WebhookHandler  # noqa: E402
from gateway_shared.services.webhook_store import InMemoryWebhookStore, WebhookStore  # noqa: E402

TEST_CALLBACK_TOKEN = "test-callback-token"
TEST_REFERENCE_ID = "order-1"
TEST_PAYMENT_ID = "py-1a2b3c4d"
TEST_CREATED = "2025-01-15T10:30:00.000Z"


# === Fakes ===


class FakeRecordStore(RecordStore):
    """In-memory RecordStore that records every call.

    Update semantics match DynamoDBRecordStore: dotted paths merge one level
    deep, and updating a missing record raises RecordNotFoundError.
    """

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.get_calls: list[tuple[str, str]] = []
        self.update_calls: list[tuple[str, str, dict[str, Any]]] = []
        self.append_calls: list[tuple[str, dict[str, Any]]] = []
        self.update_error: Exception | None = None
        self.append_error: Exception | None = None

    def seed(self, collection: str, record_id: str, record: dict[str, Any]) -> None:
        self.collections.setdefault(collection, {})[record_id] = {"id": record_id, **record}

    def is_available(self) -> bool:
        return self.available

    async def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        self.get_calls.append((collection, record_id))
        return self.collections.get(collection, {}).get(record_id)

    async def update(self, collection: str, record_id: str, fields: dict[str, Any]) -> None:
        self.update_calls.append((collection, record_id, dict(fields)))
        if self.update_error is not None:
            raise self.update_error
        record = self.collections.get(collection, {}).get(record_id)
        if record is None:
            raise RecordNotFoundError(collection, record_id)
        for path, value in fields.items():
            if "." in path:
                parent, child = path.split(".", 1)
                record.setdefault(parent, {})[child] = value
            else:
                record[path] = value

    async def append(self, collection: str, record: dict[str, Any]) -> str:
        self.append_calls.append((collection, dict(record)))
        if self.append_error is not None:
            raise self.append_error
        record_id = f"log-{len(self.append_calls)}"
        self.collections.setdefault(collection, {})[record_id] = {**record, "log_id": record_id}
        return record_id


# === Reset Fixtures ===


@pytest.fixture(autouse=True)
def reset_state() -> Generator[None, None, None]:
    """Reset cached settings, services and overrides around each test."""
    reset_services()
    get_ssm_service.cache_clear()
    yield
    app.dependency_overrides.clear()
    reset_services()
    get_ssm_service.cache_clear()


# === Service Fixtures ===


@pytest.fixture
def record_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def booking(record_store: FakeRecordStore) -> dict[str, Any]:
    """A pay-now booking without a fulfillment URL."""
    record_store.seed("booking", TEST_REFERENCE_ID, {"payLater": False, "url": ""})
    return record_store.collections["booking"][TEST_REFERENCE_ID]


@pytest.fixture
def webhook_store() -> WebhookStore:
    return InMemoryWebhookStore()


@pytest.fixture
def webhook_handler(record_store: FakeRecordStore, webhook_store: WebhookStore) -> WebhookHandler:
    return WebhookHandler(
        dedup_store=InMemoryDedupStore(),
        webhook_store=webhook_store,
        booking_updater=BookingUpdater(store=record_store),
        audit_log=AuditLogWriter(store=record_store),
    )


@pytest.fixture
def client(webhook_handler: WebhookHandler, webhook_store: WebhookStore) -> TestClient:
    """TestClient with the webhook pipeline wired to the in-memory fakes.

    Server exceptions are rendered as responses so 500 paths can be asserted.
    """
    app.dependency_overrides[get_webhook_handler] = lambda: webhook_handler
    app.dependency_overrides[get_webhook_store] = lambda: webhook_store
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"x-callback-token": TEST_CALLBACK_TOKEN}


# === Sample Data ===


def make_event(event: str = "payment.capture", **data: Any) -> dict[str, Any]:
    """Build a webhook body. `data` defaults to a successful payment for order-1."""
    payload: dict[str, Any] = {
        "payment_id": TEST_PAYMENT_ID,
        "payment_request_id": "pr-5e6f7a8b",
        "reference_id": TEST_REFERENCE_ID,
        "status": "SUCCEEDED",
        "amount": 150000,
        "currency": "IDR",
        "channel_code": "CARDS",
    }
    payload.update(data)
    return {
        "event": event,
        "business_id": "5f27a14a9bf05c73dd040bc8",
        "created": TEST_CREATED,
        "api_version": "v3",
        "data": {k: v for k, v in payload.items() if v is not None},
    }


@pytest.fixture
def capture_event() -> dict[str, Any]:
    return make_event("payment.capture")
