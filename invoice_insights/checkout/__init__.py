"""
Checkout integration for Invoice Insights.

Maps hosted checkout results onto invoice statuses.
"""

from .transactions import (
    CheckoutError,
    TransactionResult,
    apply_transaction_result,
    build_order_payload,
    map_transaction_status,
)

__all__ = [
    "CheckoutError",
    "TransactionResult",
    "apply_transaction_result",
    "build_order_payload",
    "map_transaction_status",
]
