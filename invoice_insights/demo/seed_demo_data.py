"""
Demo data for trying the CLI.

Seeds three clients and four invoices spread over the last few months,
three of them paid.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from invoice_insights.storage.models import (
    ClientRecord,
    InvoiceLineItem,
    InvoiceRecord,
    InvoiceStatus,
    ProjectRecord,
)
from invoice_insights.storage.repository import RecordRepository


def seed_demo_data(repository: RecordRepository, now: Optional[datetime] = None) -> int:
    """Insert a small agency snapshot spread over the last few months.

    Returns:
        Number of invoices inserted
    """
    now = now or datetime.now(timezone.utc)
    repository.initialize_schema()

    clients = [
        ClientRecord(
            id="c-nusantara",
            name="Nusantara Coffee",
            email="owner@nusantara.example",
            created_at=now - timedelta(days=120),
            projects=(
                ProjectRecord(id="p-nusantara-web", client_id="c-nusantara",
                              name="Company Profile", description="Landing page and CMS"),
            ),
        ),
        ClientRecord(
            id="c-batik",
            name="Batik Lestari",
            created_at=now - timedelta(days=45),
            projects=(
                ProjectRecord(id="p-batik-shop", client_id="c-batik",
                              name="Online Shop", description="Storefront with checkout"),
            ),
        ),
        ClientRecord(id="c-rinjani", name="Rinjani Travel", created_at=now - timedelta(days=6)),
    ]
    for client in clients:
        repository.insert_client(client)

    invoices = [
        InvoiceRecord(
            id="inv-0001-nusantara",
            client_id="c-nusantara",
            description="Company Profile - design",
            total=7_500_000,
            status=InvoiceStatus.PAID,
            created_at=now - timedelta(days=100),
            paid_at=now - timedelta(days=96),
            items=(InvoiceLineItem("UI design", 5_000_000), InvoiceLineItem("Copywriting", 2_500_000)),
        ),
        InvoiceRecord(
            id="inv-0002-batik",
            client_id="c-batik",
            description="Online Shop - milestone 1",
            total=12_000_000,
            status=InvoiceStatus.PAID,
            created_at=now - timedelta(days=30),
            paid_at=now - timedelta(days=27, hours=12),
            items=(InvoiceLineItem("Storefront build", 12_000_000),),
        ),
        InvoiceRecord(
            id="inv-0003-batik",
            client_id="c-batik",
            description="Online Shop - hosting",
            total=850_000,
            status=InvoiceStatus.PAID,
            created_at=now - timedelta(days=10),
            paid_at=now - timedelta(days=9),
            items=(InvoiceLineItem("Hosting, 12 months", 850_000),),
        ),
        InvoiceRecord(
            id="inv-0004-rinjani",
            client_id="c-rinjani",
            description="Booking site - deposit",
            total=3_000_000,
            status=InvoiceStatus.UNPAID,
            created_at=now - timedelta(days=2),
            items=(InvoiceLineItem("Deposit 30%", 3_000_000),),
        ),
    ]
    for invoice in invoices:
        repository.insert_invoice(invoice)

    return len(invoices)
