"""Unit tests for booking transaction updates.

Test categories:
- Derived booking status rules
- Partial update construction
- BookingUpdater skip outcomes and failure wrapping
"""

from typing import Any

import pytest

from conftest import TEST_REFERENCE_ID, FakeRecordStore
from gateway_shared.models.enums import BookingStatus, TransactionStatus
from gateway_shared.models.errors import BookingUpdateError
from gateway_shared.models.webhook import PaymentEffect
from gateway_shared.services.booking_updater import (
    BookingUpdater,
    build_transaction_update,
    derive_booking_status,
)


def _effect(**overrides: Any) -> PaymentEffect:
    values: dict[str, Any] = {
        "reference_id": TEST_REFERENCE_ID,
        "status": "SUCCEEDED",
        "payment_id": "py-1",
        "payment_request_id": "pr-1",
        "amount": 150000,
        "currency": "IDR",
        "channel_code": "CARDS",
    }
    values.update(overrides)
    return PaymentEffect(**values)


class TestDeriveBookingStatus:
    @pytest.mark.parametrize("pay_later", [None, False])
    def test_succeeded_pay_now_without_url_is_content_pending(self, pay_later: Any) -> None:
        result = derive_booking_status("SUCCEEDED", TransactionStatus.COMPLETED, pay_later, "")
        assert result == BookingStatus.CONTENT_PENDING

    def test_succeeded_with_url_is_untouched(self) -> None:
        result = derive_booking_status(
            "SUCCEEDED", TransactionStatus.COMPLETED, False, "https://example.com/content"
        )
        assert result is None

    def test_succeeded_pay_later_is_untouched(self) -> None:
        result = derive_booking_status("SUCCEEDED", TransactionStatus.COMPLETED, True, "")
        assert result is None

    def test_whitespace_url_counts_as_empty(self) -> None:
        result = derive_booking_status("SUCCEEDED", TransactionStatus.COMPLETED, None, "   ")
        assert result == BookingStatus.CONTENT_PENDING

    @pytest.mark.parametrize("pay_later", [None, False])
    def test_pending_pay_now_with_url_is_processing(self, pay_later: Any) -> None:
        result = derive_booking_status(
            "PENDING", TransactionStatus.PENDING, pay_later, "https://example.com/content"
        )
        assert result == BookingStatus.PROCESSING

    def test_pending_without_url_is_untouched(self) -> None:
        assert derive_booking_status("PENDING", TransactionStatus.PENDING, False, "") is None

    def test_pending_pay_later_is_untouched(self) -> None:
        result = derive_booking_status(
            "PENDING", TransactionStatus.PENDING, True, "https://example.com/content"
        )
        assert result is None

    @pytest.mark.parametrize(
        ("provider_status", "mapped"),
        [
            ("FAILED", TransactionStatus.FAILED),
            ("EXPIRED", TransactionStatus.EXPIRED),
            ("AUTHORIZED", TransactionStatus.AUTHORIZED),
            ("MYSTERY", TransactionStatus.UNKNOWN),
        ],
    )
    def test_other_statuses_are_untouched(
        self, provider_status: str, mapped: TransactionStatus
    ) -> None:
        assert derive_booking_status(provider_status, mapped, False, "") is None
        assert derive_booking_status(provider_status, mapped, False, "https://x") is None


class TestBuildTransactionUpdate:
    def test_absent_fields_are_omitted(self) -> None:
        effect = PaymentEffect(reference_id="order-9", status="EXPIRED")

        fields = build_transaction_update(effect, TransactionStatus.EXPIRED, None, "now")

        assert fields == {
            "transaction.status": "expired",
            "transaction.updatedAt": "now",
            "transaction.referenceId": "order-9",
            "transaction.processedAt": "now",
        }

    def test_full_update_with_derived_status(self) -> None:
        effect = _effect(failure_code=None)

        fields = build_transaction_update(
            effect, TransactionStatus.COMPLETED, BookingStatus.CONTENT_PENDING, "now"
        )

        assert fields["status"] == "Content Pending"
        assert fields["transaction.status"] == "completed"
        assert fields["transaction.paymentId"] == "py-1"
        assert fields["transaction.paymentRequestId"] == "pr-1"
        assert fields["transaction.amount"] == 150000
        assert fields["transaction.currency"] == "IDR"
        assert fields["transaction.channelCode"] == "CARDS"
        assert "transaction.failureCode" not in fields


class TestBookingUpdater:
    @pytest.mark.asyncio
    async def test_updates_existing_booking(self, record_store: FakeRecordStore, booking: dict) -> None:
        updater = BookingUpdater(store=record_store)

        result = await updater.apply(_effect())

        assert result.success is True
        assert result.status == TransactionStatus.COMPLETED
        assert result.booking_status == BookingStatus.CONTENT_PENDING
        assert booking["transaction"]["status"] == "completed"
        assert booking["transaction"]["paymentId"] == "py-1"
        assert booking["status"] == "Content Pending"

    @pytest.mark.asyncio
    async def test_booking_with_url_keeps_top_level_status(
        self, record_store: FakeRecordStore
    ) -> None:
        record_store.seed(
            "booking", TEST_REFERENCE_ID, {"payLater": False, "url": "https://x", "status": "New"}
        )
        updater = BookingUpdater(store=record_store)

        result = await updater.apply(_effect())

        assert result.success is True
        assert result.booking_status is None
        _, _, fields = record_store.update_calls[0]
        assert "status" not in fields
        assert record_store.collections["booking"][TEST_REFERENCE_ID]["status"] == "New"

    @pytest.mark.asyncio
    async def test_missing_reference_skips_without_store_calls(
        self, record_store: FakeRecordStore
    ) -> None:
        updater = BookingUpdater(store=record_store)

        result = await updater.apply(_effect(reference_id=None))

        assert result.success is False
        assert result.reason == "Missing reference_id"
        assert record_store.get_calls == []
        assert record_store.update_calls == []

    @pytest.mark.asyncio
    async def test_missing_booking_is_skipped_not_raised(
        self, record_store: FakeRecordStore
    ) -> None:
        updater = BookingUpdater(store=record_store)

        result = await updater.apply(_effect(reference_id="does-not-exist"))

        assert result.success is False
        assert result.booking_id == "does-not-exist"
        assert result.reason == "Booking not found"
        assert record_store.update_calls == []

    @pytest.mark.asyncio
    async def test_unavailable_store_is_skipped(self) -> None:
        store = FakeRecordStore(available=False)
        updater = BookingUpdater(store=store)

        result = await updater.apply(_effect())

        assert result.success is False
        assert result.reason == "Record store not available"
        assert store.get_calls == []

    @pytest.mark.asyncio
    async def test_store_failure_is_wrapped_with_context(
        self, record_store: FakeRecordStore, booking: dict
    ) -> None:
        record_store.update_error = RuntimeError("throughput exceeded")
        updater = BookingUpdater(store=record_store)

        with pytest.raises(BookingUpdateError) as exc_info:
            await updater.apply(_effect(status="FAILED"))

        assert exc_info.value.reference_id == TEST_REFERENCE_ID
        assert exc_info.value.status == "FAILED"
        assert "throughput exceeded" in str(exc_info.value)
