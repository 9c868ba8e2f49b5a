"""
Plain-text analytics report.

Fixed layout with one metric per line, also used as the line source for
the PDF renderer.
"""

from datetime import date
from typing import Dict, List, Optional

from invoice_insights.core.currency import format_idr, percentage

DEFAULT_AGENCY_NAME = "AKUSARA DIGITAL AGENCY"
RULE = "=" * 47

MONTH_NAMES_ID = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)


def format_report_date(value: date) -> str:
    """Short id-ID date, e.g. ``19/10/2026``."""
    return f"{value.day}/{value.month}/{value.year}"


def format_month_label(month: str) -> str:
    """Turn ``2026-10`` into ``Oktober 2026``."""
    year, month_number = month.split("-")[:2]
    return f"{MONTH_NAMES_ID[int(month_number) - 1]} {int(year)}"


def _share(count: int, total: int) -> str:
    if total <= 0:
        return "0"
    return f"{percentage(count, total, places=1):.1f}"


def build_sections(
    data: Dict,
    start_date: str,
    end_date: str,
    generated_on: Optional[date] = None,
    agency_name: str = DEFAULT_AGENCY_NAME,
) -> List[List[str]]:
    """Group report lines into sections; the first one is the title block."""
    generated_on = generated_on or date.today()
    overview = data["overview"]

    title = [
        f"{agency_name} - ANALYTICS REPORT",
        f"Generated on: {format_report_date(generated_on)}",
        f"Period: {start_date} to {end_date}",
    ]

    metrics = [
        "OVERVIEW METRICS",
        f"Total Revenue: {format_idr(overview['totalRevenue'])}",
        f"New Clients: {overview['newClients']}",
        f"Total Invoices: {overview['totalInvoices']}",
        f"Paid Invoices: {overview['paidInvoices']}",
        f"Completion Rate: {overview['completionRate']}%",
        f"Average Payment Time: {overview['averagePaymentTime']} days",
    ]

    trend = ["REVENUE TREND"]
    for point in data.get("revenueTrend", []):
        trend.append(
            f"{format_month_label(point['month'])}: {format_idr(point['revenue'])} "
            f"({point['invoices']} invoices, {point['clients']} new clients)"
        )

    statuses = data.get("projectStatus", [])
    total_projects = sum(status["count"] for status in statuses)
    status_lines = ["PROJECT STATUS DISTRIBUTION"]
    for status in statuses:
        status_lines.append(
            f"{status['status']}: {status['count']} projects ({_share(status['count'], total_projects)}%)"
        )

    methods = ["PAYMENT METHODS"]
    for method in data.get("paymentMethods", []):
        methods.append(
            f"{method['method']}: {method['count']} transactions, {format_idr(method['amount'])}"
        )

    return [title, metrics, trend, status_lines, methods]


def render_text(
    data: Dict,
    start_date: str,
    end_date: str,
    generated_on: Optional[date] = None,
    agency_name: str = DEFAULT_AGENCY_NAME,
) -> str:
    """Render an analytics payload as a plain-text report."""
    sections = build_sections(data, start_date, end_date, generated_on, agency_name)
    lines: List[str] = list(sections[0])
    lines.append(RULE)
    for heading, *body in sections[1:]:
        lines.append("")
        lines.append(heading)
        lines.append(RULE)
        lines.extend(body)
    lines.extend(["", RULE, "End of Report", RULE, ""])
    return "\n".join(lines)
