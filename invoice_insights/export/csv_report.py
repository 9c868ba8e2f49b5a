"""
CSV export of an analytics report.

Sections are separated by a blank row and every cell is quoted.
"""

import csv
import io
from typing import Dict, List, Sequence

from invoice_insights.core.currency import format_idr, percentage

HEADERS = ["Report Type", "Metric", "Value", "Period"]


def _status_share(count: int, total: int) -> str:
    if total <= 0:
        return "0%"
    return f"{percentage(count, total, places=1):.1f}%"


def build_rows(data: Dict, start_date: str, end_date: str) -> List[Sequence[str]]:
    """Flatten an analytics payload into CSV rows, header first."""
    period = f"{start_date} to {end_date}"
    overview = data["overview"]

    rows: List[Sequence[str]] = [HEADERS]
    rows.append(["Overview", "Total Revenue", format_idr(overview["totalRevenue"]), period])
    rows.append(["Overview", "New Clients", str(overview["newClients"]), period])
    rows.append(["Overview", "Total Invoices", str(overview["totalInvoices"]), period])
    rows.append(["Overview", "Paid Invoices", str(overview["paidInvoices"]), period])
    rows.append(["Overview", "Completion Rate", f"{overview['completionRate']}%", period])
    rows.append(["Overview", "Average Payment Time", f"{overview['averagePaymentTime']} days", period])

    rows.append([])
    rows.append(["Revenue Trend", "Month", "Revenue", "Invoices", "New Clients"])
    for trend in data.get("revenueTrend", []):
        rows.append([
            "Revenue Trend",
            trend["month"],
            format_idr(trend["revenue"]),
            str(trend["invoices"]),
            str(trend["clients"]),
        ])

    rows.append([])
    rows.append(["Project Status", "Status", "Count", "Percentage"])
    statuses = data.get("projectStatus", [])
    total_projects = sum(status["count"] for status in statuses)
    for status in statuses:
        rows.append([
            "Project Status",
            status["status"],
            str(status["count"]),
            _status_share(status["count"], total_projects),
        ])

    rows.append([])
    rows.append(["Payment Methods", "Method", "Transactions", "Total Amount"])
    for method in data.get("paymentMethods", []):
        rows.append([
            "Payment Methods",
            method["method"],
            str(method["count"]),
            format_idr(method["amount"]),
        ])

    return rows


def render_csv(data: Dict, start_date: str, end_date: str) -> str:
    """Render an analytics payload as CSV text.

    Args:
        data: Output of ``AnalyticsReport.to_dict()``
        start_date: Window start as shown in the period column
        end_date: Window end as shown in the period column

    Returns:
        CSV text with ``\\n`` line endings and no trailing newline
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(build_rows(data, start_date, end_date))
    return buffer.getvalue().rstrip("\n")
