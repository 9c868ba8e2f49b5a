"""
Data models for storage layer.

Defines the record snapshot consumed by the aggregation engine.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple


class InvoiceStatus(Enum):
    """Closed set of invoice statuses in the current schema."""
    PAID = "paid"
    UNPAID = "unpaid"


def as_utc(value: datetime) -> datetime:
    """Normalize a timestamp to an aware UTC instant.

    Naive datetimes are interpreted as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class InvoiceLineItem:
    """Single billable line owned by one invoice."""
    description: str
    amount: int


@dataclass(frozen=True)
class InvoiceRecord:
    """Immutable invoice row with its line items.

    The sum of item amounts is expected to equal ``total`` but nothing
    here enforces it.
    """
    id: str
    client_id: Optional[str]
    total: Optional[int]
    status: InvoiceStatus
    created_at: datetime
    paid_at: Optional[datetime] = None
    items: Tuple[InvoiceLineItem, ...] = ()
    client_name: Optional[str] = None
    description: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID

    @property
    def amount(self) -> int:
        """Total with missing values counted as zero."""
        return self.total or 0


@dataclass(frozen=True)
class ProjectRecord:
    """Project owned by one client."""
    id: str
    client_id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ClientRecord:
    """Client row with its projects."""
    id: str
    name: str
    created_at: datetime
    email: Optional[str] = None
    phone: Optional[str] = None
    projects: Tuple[ProjectRecord, ...] = ()


@dataclass(frozen=True)
class DateWindow:
    """Caller-supplied [start, end] range used to filter a snapshot."""
    start: datetime
    end: datetime

    def __post_init__(self):
        """Normalize bounds to UTC and validate ordering."""
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        if self.start > self.end:
            raise ValueError("window start must not be after window end")

    def contains(self, timestamp: datetime) -> bool:
        return self.start <= as_utc(timestamp) <= self.end
