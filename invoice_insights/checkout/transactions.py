"""
Hosted checkout integration.

Builds the order payload handed to the checkout widget and maps the
widget's terminal transaction result onto an invoice status.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from invoice_insights.storage.models import InvoiceRecord, InvoiceStatus

logger = logging.getLogger(__name__)

PAID_STATUSES = {"settlement", "capture"}
UNCHANGED_STATUSES = {"pending"}
UNPAID_STATUSES = {"deny", "cancel", "expire", "failure"}


class CheckoutError(Exception):
    """Raised when a checkout result cannot be applied."""


@dataclass(frozen=True)
class TransactionResult:
    """Terminal result reported by the checkout widget."""
    order_id: str
    transaction_status: str
    fraud_status: Optional[str] = None
    status_message: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TransactionResult":
        """Parse the widget callback payload.

        Raises:
            CheckoutError: If the payload has no transaction status
        """
        status = payload.get("transaction_status")
        if not status:
            raise CheckoutError("Missing transaction_status in checkout result")
        return cls(
            order_id=str(payload.get("order_id", "")),
            transaction_status=str(status).lower(),
            fraud_status=payload.get("fraud_status"),
            status_message=payload.get("status_message"),
        )


def map_transaction_status(result: TransactionResult) -> Optional[InvoiceStatus]:
    """Map a transaction result to the invoice status it implies.

    Returns:
        PAID or UNPAID, or None when the invoice should stay as it is

    Raises:
        CheckoutError: If the transaction status is not recognised
    """
    status = result.transaction_status.lower()
    fraud = (result.fraud_status or "accept").lower()

    if status in PAID_STATUSES:
        if status == "capture" and fraud == "challenge":
            return None
        if fraud == "deny":
            return InvoiceStatus.UNPAID
        return InvoiceStatus.PAID
    if status in UNCHANGED_STATUSES:
        return None
    if status in UNPAID_STATUSES:
        return InvoiceStatus.UNPAID
    raise CheckoutError(f"Unsupported transaction status: {result.transaction_status}")


def apply_transaction_result(
    repository,
    invoice_id: str,
    result: TransactionResult,
    now: Optional[datetime] = None,
) -> Optional[InvoiceStatus]:
    """Write the status implied by a checkout result to the invoice.

    Args:
        repository: Record store with ``update_invoice_status``
        invoice_id: Invoice the payment was made for
        result: Terminal result from the checkout widget
        now: Payment time recorded for paid invoices

    A failed, cancelled or expired result never reverts an invoice that
    is already paid; only a successful payment writes to a paid invoice.

    Returns:
        The status written, or None when nothing changed

    Raises:
        CheckoutError: If the transaction status is not recognised
        LookupError: If the invoice doesn't exist
    """
    status = map_transaction_status(result)
    if status is None:
        logger.info("Checkout %s for invoice %s left unchanged (%s)",
                    result.order_id, invoice_id, result.transaction_status)
        return None

    if status == InvoiceStatus.UNPAID:
        invoice = repository.get_invoice(invoice_id)
        if invoice is None:
            raise LookupError(f"Invoice not found: {invoice_id}")
        if invoice.is_paid:
            logger.warning("Ignoring %s for invoice %s: already paid",
                           result.transaction_status, invoice_id)
            return None

    paid_at = (now or datetime.now(timezone.utc)) if status == InvoiceStatus.PAID else None
    repository.update_invoice_status(invoice_id, status, paid_at=paid_at)
    return status


def build_order_id(invoice_id: str, now_ms: Optional[int] = None) -> str:
    """Short order id, at most 50 characters: ``INV-<8 chars>-<6 digits>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"INV-{invoice_id[:8]}-{str(now_ms)[-6:]}"


def build_order_payload(invoice: InvoiceRecord, now_ms: Optional[int] = None) -> Dict[str, Any]:
    """Request body for creating a checkout transaction for one invoice.

    Raises:
        CheckoutError: If the invoice is already paid or has no total
    """
    if invoice.is_paid:
        raise CheckoutError(f"Invoice {invoice.id} is already paid")
    if not invoice.total:
        raise CheckoutError(f"Invoice {invoice.id} has no amount due")

    return {
        "transaction_details": {
            "order_id": build_order_id(invoice.id, now_ms),
            "gross_amount": invoice.total,
        },
        "item_details": [
            {
                "id": invoice.id,
                "name": invoice.description or "Invoice",
                "quantity": 1,
                "price": invoice.total,
            }
        ],
        "customer_details": {
            "first_name": invoice.client_name or "Client",
        },
    }
