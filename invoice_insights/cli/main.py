"""
CLI interface for Invoice Insights.

Provides command-line access to analytics, exports and checkout results.
"""

import json
import sys
from dataclasses import replace
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from invoice_insights.checkout import CheckoutError, TransactionResult, apply_transaction_result
from invoice_insights.config.loader import AppConfig, DatabaseConfig, default_config, load_app_config
from invoice_insights.core.aggregation import AnalyticsService, ReportState, ReportView
from invoice_insights.core.breakdown import get_strategy
from invoice_insights.core.currency import format_idr
from invoice_insights.demo.seed_demo_data import seed_demo_data
from invoice_insights.export import ExportError, ExportRequest, export_report
from invoice_insights.storage.models import DateWindow
from invoice_insights.storage.repository import get_repository
from invoice_insights.utils.logger import configure_logging, get_logger

app = typer.Typer()
console = Console()
logger = get_logger("cli")

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

_settings = {"config": default_config()}


def _config() -> AppConfig:
    return _settings["config"]


def _repository():
    return get_repository(_config().database.path)


def _service(strategy: str) -> AnalyticsService:
    """Service using the named payment-method estimator."""
    return AnalyticsService(_repository(), method_strategy=get_strategy(strategy))


def _parse_window(start: str, end: str) -> DateWindow:
    """Turn two ISO dates into a whole-day UTC window."""
    try:
        start_day = date.fromisoformat(start)
        end_day = date.fromisoformat(end)
        return DateWindow(
            start=datetime.combine(start_day, time.min, tzinfo=timezone.utc),
            end=datetime.combine(end_day, time.max, tzinfo=timezone.utc),
        )
    except ValueError as e:
        raise typer.BadParameter(str(e))


def _report_failure(view: ReportView) -> None:
    console.print(f"[red]Error loading records:[/] {view.error}")
    if view.error and "no such table" in view.error.lower():
        console.print("Run `invoice-insights init` to create the database first.")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to YAML config file"),
    db: Optional[str] = typer.Option(None, "--db", help="Override the database path"),
):
    """Invoice Insights CLI."""
    try:
        settings = load_app_config(str(config)) if config else default_config()
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid configuration:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)
    if db:
        settings = replace(settings, database=DatabaseConfig(path=db))
    _settings["config"] = settings
    configure_logging(settings.logging.numeric_level)
    logger.debug("Using database %s", settings.database.path)

    if ctx.invoked_subcommand is None:
        console.print("Invoice Insights - Use --help to see available commands")


@app.command()
def init():
    """Initialize the record store."""
    try:
        _repository().initialize_schema()
        console.print("[green]✓[/] Database initialized successfully")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command("seed-demo")
def seed_demo():
    """Insert demo clients and invoices."""
    try:
        count = seed_demo_data(_repository())
        console.print(f"[green]✓[/] Inserted {count} demo invoices")
    except Exception as e:
        console.print(f"[red]Error seeding demo data:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def dashboard(
    as_json: bool = typer.Option(False, "--json", help="Print the raw dashboard payload"),
):
    """Show all-time dashboard cards and the latest invoices."""
    view = AnalyticsService(_repository()).dashboard()

    if view.state == ReportState.FAILED:
        _report_failure(view)
    if as_json:
        typer.echo(json.dumps(view.to_dict(), indent=2))
    else:
        _display_dashboard(view.report)
    sys.exit(EXIT_CODE_PASS if view.is_ready else EXIT_CODE_FAIL)


@app.command()
def analytics(
    start: str = typer.Option(..., "--start", "-s", help="Window start (YYYY-MM-DD)"),
    end: str = typer.Option(..., "--end", "-e", help="Window end (YYYY-MM-DD)"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw analytics payload"),
):
    """Show overview, revenue trend and breakdowns for a date window."""
    window = _parse_window(start, end)
    service = _service(_config().payment_methods.strategy)
    view = service.analytics(window)

    if view.state == ReportState.FAILED:
        _report_failure(view)
    if as_json:
        typer.echo(json.dumps(view.to_dict(), indent=2))
    else:
        _display_analytics(view.report, start, end)
    sys.exit(EXIT_CODE_PASS if view.is_ready else EXIT_CODE_FAIL)


@app.command()
def payments(
    start: str = typer.Option(..., "--start", "-s", help="Window start (YYYY-MM-DD)"),
    end: str = typer.Option(..., "--end", "-e", help="Window end (YYYY-MM-DD)"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw payments payload"),
):
    """Show payment totals, the 30-day trend and method estimates."""
    window = _parse_window(start, end)
    view = _service(_config().payment_methods.payments_strategy).payments(window)

    if view.state == ReportState.FAILED:
        _report_failure(view)
    if as_json:
        typer.echo(json.dumps(view.to_dict(), indent=2))
    else:
        _display_payments(view.report)
    sys.exit(EXIT_CODE_PASS if view.is_ready else EXIT_CODE_FAIL)


@app.command()
def export(
    fmt: str = typer.Option("csv", "--format", "-f", help="csv, pdf or txt"),
    start: str = typer.Option(..., "--start", "-s", help="Window start (YYYY-MM-DD)"),
    end: str = typer.Option(..., "--end", "-e", help="Window end (YYYY-MM-DD)"),
    output: Path = typer.Option(Path("."), "--output", "-o", help="Directory to write the file to"),
):
    """Export the analytics report for a date window."""
    window = _parse_window(start, end)
    service = _service(_config().payment_methods.strategy)
    view = service.analytics(window)
    if not view.is_ready:
        _report_failure(view)
        sys.exit(EXIT_CODE_FAIL)

    try:
        artifact = export_report(
            ExportRequest(format=fmt, start_date=start, end_date=end, data=view.to_dict()),
            agency_name=_config().report.agency_name,
        )
    except ExportError as e:
        console.print(f"[red]Export failed:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    output.mkdir(parents=True, exist_ok=True)
    target = output / artifact.filename
    target.write_bytes(artifact.as_bytes())
    console.print(f"[green]✓[/] Wrote {target} ({artifact.content_type})")


@app.command("checkout-result")
def checkout_result(
    invoice_id: str = typer.Argument(..., help="Invoice the payment belongs to"),
    transaction_status: str = typer.Argument(..., help="Status reported by the checkout widget"),
    fraud_status: Optional[str] = typer.Option(None, "--fraud-status", help="Fraud status, if reported"),
    order_id: str = typer.Option("", "--order-id", help="Checkout order id"),
):
    """Apply a checkout transaction result to an invoice."""
    result = TransactionResult(
        order_id=order_id,
        transaction_status=transaction_status.lower(),
        fraud_status=fraud_status,
    )
    try:
        status = apply_transaction_result(_repository(), invoice_id, result)
    except (CheckoutError, LookupError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if status is None:
        console.print(f"Invoice {invoice_id} unchanged ({transaction_status})")
    else:
        console.print(f"[green]✓[/] Invoice {invoice_id} marked {status.value}")


def _display_analytics(report, start: str, end: str):
    """Display the analytics report as tables."""
    overview = report.overview
    console.print(f"\n[bold]Analytics {start} to {end}[/bold]")
    console.print("-" * 40)
    console.print(f"Total revenue: {format_idr(overview.total_revenue)}")
    console.print(f"New clients: {overview.new_clients}")
    console.print(f"Invoices: {overview.paid_invoices}/{overview.total_invoices} paid")
    console.print(f"Completion rate: {overview.completion_rate}%")
    console.print(f"Average payment time: {overview.average_payment_time} days")

    trend = Table(title="Revenue trend")
    trend.add_column("Month")
    trend.add_column("Revenue", justify="right")
    trend.add_column("Invoices", justify="right")
    trend.add_column("New clients", justify="right")
    for point in report.revenue_trend:
        trend.add_row(point.month, format_idr(point.revenue), str(point.invoices), str(point.clients))
    console.print(trend)

    if report.project_status:
        console.print("\n[bold]Status[/bold]")
        for item in report.project_status:
            console.print(f"{item.status}: {item.count}")

    if report.payment_methods:
        console.print("\n[bold]Payment methods (estimated)[/bold]")
        for method in report.payment_methods:
            console.print(f"{method.method}: {method.count} transactions, {format_idr(method.amount)}")


def _display_dashboard(report):
    """Display dashboard cards and recent invoices."""
    stats = report.stats
    console.print("\n[bold]Dashboard[/bold]")
    console.print("-" * 40)
    console.print(f"Total revenue: {format_idr(stats.total_revenue)}")
    console.print(f"Paid: {format_idr(stats.paid_revenue)}  Unpaid: {format_idr(stats.unpaid_revenue)}")
    console.print(f"Invoices: {stats.paid_invoices}/{stats.total_invoices} paid ({stats.completion_rate}%)")
    console.print(f"Clients: {stats.total_clients}")
    console.print(f"Average invoice: {format_idr(stats.average_invoice_value)}")
    console.print(f"Monthly growth: {stats.monthly_growth}%")

    if report.recent_invoices:
        recent = Table(title="Recent invoices")
        recent.add_column("Invoice")
        recent.add_column("Client")
        recent.add_column("Total", justify="right")
        recent.add_column("Status")
        for invoice in report.recent_invoices:
            recent.add_row(
                f"INV-{invoice.id[:8]}",
                invoice.client_name or "Unknown Client",
                format_idr(invoice.amount),
                invoice.status.value,
            )
        console.print(recent)


def _display_payments(report):
    """Display the payments report."""
    overview = report.overview
    console.print("\n[bold]Payments[/bold]")
    console.print("-" * 40)
    console.print(f"Total revenue: {format_idr(overview.total_revenue)}")
    console.print(f"Pending payments: {overview.pending_payments}")
    console.print(f"Average transaction: {format_idr(overview.average_transaction_value)}")
    console.print(f"Success rate: {overview.success_rate}%")

    active_days = [point for point in report.payment_trend if point.transactions]
    console.print(f"Active days in last 30: {len(active_days)}")
    for point in active_days:
        console.print(
            f"  {point.date}: {point.transactions} transactions, "
            f"{format_idr(point.revenue)} ({point.success_rate}% paid)"
        )

    for method in report.payment_methods:
        console.print(f"{method.method}: {method.count} transactions, {format_idr(method.amount)}")


if __name__ == "__main__":
    app()
