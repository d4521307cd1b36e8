"""Provider status to local transaction status mapping."""

from gateway_shared.models.enums import TransactionStatus

PROVIDER_STATUS_MAP: dict[str, TransactionStatus] = {
    "SUCCEEDED": TransactionStatus.COMPLETED,
    "AUTHORIZED": TransactionStatus.AUTHORIZED,
    "PENDING": TransactionStatus.PENDING,
    "FAILED": TransactionStatus.FAILED,
    "CANCELED": TransactionStatus.CANCELLED,
    "EXPIRED": TransactionStatus.EXPIRED,
}


def map_provider_status(provider_status: str | None) -> TransactionStatus:
    """Map a provider status code to a local transaction status.

    Total function: anything not in the table (including None) maps to
    TransactionStatus.UNKNOWN.
    """
    if provider_status is None:
        return TransactionStatus.UNKNOWN
    return PROVIDER_STATUS_MAP.get(provider_status, TransactionStatus.UNKNOWN)
