"""
Repository pattern for data access.

Handles the clients, projects, invoices and invoice_items tables.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from .db import DEFAULT_DB_PATH, get_connection
from .models import (
    ClientRecord,
    DateWindow,
    InvoiceLineItem,
    InvoiceRecord,
    InvoiceStatus,
    ProjectRecord,
    as_utc,
)

logger = logging.getLogger(__name__)


SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS clients (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT,
        phone TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS projects (
        id TEXT PRIMARY KEY,
        client_id TEXT NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        description TEXT,
        created_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS invoices (
        id TEXT PRIMARY KEY,
        client_id TEXT REFERENCES clients(id) ON DELETE CASCADE,
        description TEXT,
        total INTEGER,
        status TEXT NOT NULL CHECK (status IN ('paid', 'unpaid')),
        created_at TEXT NOT NULL,
        paid_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS invoice_items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        invoice_id TEXT NOT NULL REFERENCES invoices(id) ON DELETE CASCADE,
        position INTEGER NOT NULL,
        description TEXT NOT NULL,
        amount INTEGER NOT NULL
    )
    """,
)


def _to_text(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return as_utc(value).isoformat()


def _from_text(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return as_utc(datetime.fromisoformat(value))


class RecordRepository:
    """Record store over a SQLite database.

    Every call opens and closes its own connection, so a repository can be
    shared freely; single-row writes are atomic, an invoice and its items
    are written in one transaction.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def initialize_schema(self) -> None:
        """Create the four record tables if they don't exist."""
        conn = get_connection(self.db_path)
        try:
            for statement in SCHEMA:
                conn.execute(statement)
            conn.commit()
        finally:
            conn.close()
        logger.debug("Schema initialized at %s", self.db_path)

    def insert_client(self, client: ClientRecord) -> None:
        """Insert a client together with its projects."""
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                "INSERT INTO clients (id, name, email, phone, created_at) VALUES (?, ?, ?, ?, ?)",
                (client.id, client.name, client.email, client.phone, _to_text(client.created_at)),
            )
            for project in client.projects:
                self._insert_project(conn, project)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def insert_project(self, project: ProjectRecord) -> None:
        """Insert a single project for an existing client."""
        conn = get_connection(self.db_path)
        try:
            self._insert_project(conn, project)
            conn.commit()
        finally:
            conn.close()

    def insert_invoice(self, invoice: InvoiceRecord) -> None:
        """Insert an invoice and its line items atomically.

        Args:
            invoice: The invoice to record

        Raises:
            sqlite3.IntegrityError: If the id already exists or the client is unknown
        """
        conn = get_connection(self.db_path)
        try:
            conn.execute("BEGIN TRANSACTION")
            conn.execute(
                """
                INSERT INTO invoices
                (id, client_id, description, total, status, created_at, paid_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    invoice.id,
                    invoice.client_id,
                    invoice.description,
                    invoice.total,
                    invoice.status.value,
                    _to_text(invoice.created_at),
                    _to_text(invoice.paid_at),
                ),
            )
            for position, item in enumerate(invoice.items):
                conn.execute(
                    """
                    INSERT INTO invoice_items (invoice_id, position, description, amount)
                    VALUES (?, ?, ?, ?)
                    """,
                    (invoice.id, position, item.description, item.amount),
                )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def fetch_invoices(self, window: Optional[DateWindow] = None) -> List[InvoiceRecord]:
        """Fetch invoices with embedded client name and line items.

        Args:
            window: Optional inclusive created_at range

        Returns:
            Invoices ordered by created_at (oldest first)
        """
        if window is None:
            return self._select_invoices("", [])
        return self._select_invoices(
            "WHERE i.created_at >= ? AND i.created_at <= ?",
            [window.start.isoformat(), window.end.isoformat()],
        )

    def get_invoice(self, invoice_id: str) -> Optional[InvoiceRecord]:
        """Look up a single invoice, or None when it doesn't exist."""
        found = self._select_invoices("WHERE i.id = ?", [invoice_id])
        return found[0] if found else None

    def _select_invoices(self, where: str, params: List[str]) -> List[InvoiceRecord]:
        conn = get_connection(self.db_path)
        try:
            query = f"""
                SELECT i.id, i.client_id, i.description, i.total, i.status,
                       i.created_at, i.paid_at, c.name AS client_name
                FROM invoices i
                LEFT JOIN clients c ON c.id = i.client_id
                {where}
                ORDER BY i.created_at ASC
            """
            rows = conn.execute(query, params).fetchall()
            items = self._items_by_invoice(conn, [row["id"] for row in rows])
            return [
                InvoiceRecord(
                    id=row["id"],
                    client_id=row["client_id"],
                    total=row["total"],
                    status=InvoiceStatus(row["status"]),
                    created_at=_from_text(row["created_at"]),
                    paid_at=_from_text(row["paid_at"]),
                    items=tuple(items.get(row["id"], [])),
                    client_name=row["client_name"],
                    description=row["description"],
                )
                for row in rows
            ]
        finally:
            conn.close()

    def fetch_clients(self, window: Optional[DateWindow] = None) -> List[ClientRecord]:
        """Fetch clients with their projects, ordered by name.

        Args:
            window: Optional inclusive created_at range

        Returns:
            List of clients
        """
        conn = get_connection(self.db_path)
        try:
            query = "SELECT id, name, email, phone, created_at FROM clients"
            params: List[str] = []
            if window is not None:
                query += " WHERE created_at >= ? AND created_at <= ?"
                params.extend([window.start.isoformat(), window.end.isoformat()])
            query += " ORDER BY name"

            rows = conn.execute(query, params).fetchall()
            projects: Dict[str, List[ProjectRecord]] = {}
            for project_row in conn.execute(
                "SELECT id, client_id, name, description, created_at FROM projects ORDER BY rowid"
            ):
                projects.setdefault(project_row["client_id"], []).append(ProjectRecord(
                    id=project_row["id"],
                    client_id=project_row["client_id"],
                    name=project_row["name"],
                    description=project_row["description"],
                    created_at=_from_text(project_row["created_at"]),
                ))

            return [
                ClientRecord(
                    id=row["id"],
                    name=row["name"],
                    created_at=_from_text(row["created_at"]),
                    email=row["email"],
                    phone=row["phone"],
                    projects=tuple(projects.get(row["id"], [])),
                )
                for row in rows
            ]
        finally:
            conn.close()

    def update_invoice_status(
        self,
        invoice_id: str,
        status: InvoiceStatus,
        paid_at: Optional[datetime] = None,
    ) -> None:
        """Write a new status for one invoice.

        ``paid_at`` is stored only for paid invoices and cleared otherwise.

        Raises:
            LookupError: If no invoice has the given id
        """
        stored_paid_at = _to_text(paid_at) if status == InvoiceStatus.PAID else None
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                "UPDATE invoices SET status = ?, paid_at = ? WHERE id = ?",
                (status.value, stored_paid_at, invoice_id),
            )
            if cursor.rowcount == 0:
                raise LookupError(f"Invoice not found: {invoice_id}")
            conn.commit()
        finally:
            conn.close()
        logger.info("Invoice %s marked %s", invoice_id, status.value)

    def delete_client(self, client_id: str) -> bool:
        """Delete a client; projects and invoices cascade.

        Returns:
            True if a row was deleted
        """
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("DELETE FROM clients WHERE id = ?", (client_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    @staticmethod
    def _insert_project(conn, project: ProjectRecord) -> None:
        conn.execute(
            "INSERT INTO projects (id, client_id, name, description, created_at) VALUES (?, ?, ?, ?, ?)",
            (
                project.id,
                project.client_id,
                project.name,
                project.description,
                _to_text(project.created_at),
            ),
        )

    @staticmethod
    def _items_by_invoice(conn, invoice_ids: List[str]) -> Dict[str, List[InvoiceLineItem]]:
        if not invoice_ids:
            return {}
        placeholders = ", ".join("?" for _ in invoice_ids)
        rows = conn.execute(
            f"""
            SELECT invoice_id, description, amount FROM invoice_items
            WHERE invoice_id IN ({placeholders})
            ORDER BY invoice_id, position
            """,
            invoice_ids,
        ).fetchall()
        grouped: Dict[str, List[InvoiceLineItem]] = {}
        for row in rows:
            grouped.setdefault(row["invoice_id"], []).append(
                InvoiceLineItem(description=row["description"], amount=row["amount"])
            )
        return grouped


# Global repository instance
_default_repository: Optional[RecordRepository] = None


def get_repository(db_path: str = DEFAULT_DB_PATH) -> RecordRepository:
    """Get a repository instance.

    Returns a shared instance for the default path and a fresh one otherwise.

    Args:
        db_path: Path to SQLite database file

    Returns:
        An instance of RecordRepository
    """
    global _default_repository
    if db_path != DEFAULT_DB_PATH:
        return RecordRepository(db_path)
    if _default_repository is None:
        _default_repository = RecordRepository(db_path)
    return _default_repository
