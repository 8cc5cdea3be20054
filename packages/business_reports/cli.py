"""CLI for the ``business_reports`` package.

A Typer-based console interface over the REST API. Environment variables
(``BR_API_URL``, ``BR_API_TOKEN`` and friends) are loaded from a local
``.env`` using ``python-dotenv`` before any command runs. Business logic lives
in the library modules; commands only fetch, delegate and print.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .aggregate import (
    DEFAULT_GST_RATE,
    apply_tax_rate,
    dashboard_metrics,
    document_totals,
    filter_records,
    recent_products,
)
from .client import ApiClient, ApiError, AuthenticationError
from .formatting import format_currency, format_date, parse_amount
from .logging_setup import configure_logging
from .models import CanonicalRecord, Overview, ReportDocument, ResourceKind
from .overrides import LocalStatusUpdater, RemoteStatusUpdater, StatusOverrideStore, StatusUpdater
from .pdf import render_expense_pdf, render_pdf
from .report import build_document, build_expense_list, chart_data, compose_series
from .session import REPORT_KINDS, ReportSession, fetch_records
from .term_ui import INVOICE_STATUSES, select_status

app = typer.Typer(
    name="business-reports",
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Reports, listings and invoice status tracking over the business-management API. "
        "Loads BR_API_URL / BR_API_TOKEN from a local .env before running."
    ),
)
console = Console()
err_console = Console(stderr=True)

AUTH_HINT = "Authentication failed. Please log in again."
TOTALS_KINDS = (ResourceKind.INVOICES, ResourceKind.PURCHASE_ORDERS, ResourceKind.SALES_ORDERS)


# ---- Small module-level helpers used by CLI commands -------------------------


def _make_client() -> ApiClient:
    return ApiClient()


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(1)


def _warn_failures(overview: Overview) -> None:
    for kind, message in overview.errors.items():
        err_console.print(f"[yellow]Warning:[/yellow] could not load {kind.value}: {message}")


def _metrics_table(document: ReportDocument) -> Table:
    table = Table(title="Business Metrics Overview")
    table.add_column("Metric")
    table.add_column("Amount", justify="right")
    table.add_column("Percentage", justify="right")
    if not document.metric_rows:
        table.add_row("[red]No financial data available[/red]", "", "")
        return table
    for row in document.metric_rows:
        table.add_row(row.label, row.amount, row.percentage, style=row.color)
    if document.total_row is not None:
        t = document.total_row
        table.add_row(t.label, t.amount, t.percentage, style="bold")
    return table


def _print_document(document: ReportDocument) -> None:
    console.print(
        Panel(f"{document.subtitle}\n{document.generated_label}", title=document.title)
    )
    console.print(_metrics_table(document))
    for section in document.sections:
        table = Table(title=section.title, show_header=False)
        table.add_column("Key")
        table.add_column("Value", style=section.color)
        for key, value in section.rows:
            table.add_row(key, value)
        console.print(table)


def _document_json(document: ReportDocument) -> dict:
    data = asdict(document)
    data["generated_at"] = document.generated_at.isoformat()
    return data


def _records_table(kind: ResourceKind, records: list[CanonicalRecord]) -> Table:
    table = Table(title=f"{kind.value} ({len(records)})")
    if kind is ResourceKind.PRODUCTS:
        for col in ("Name", "Category", "Price", "Stock", "Value"):
            table.add_column(col, justify="right" if col in {"Price", "Stock", "Value"} else "left")
        for r in records:
            table.add_row(
                r.name or "",
                r.category or "",
                format_currency(r.price),
                "" if r.stock is None else f"{r.stock:g}",
                format_currency(r.amount),
            )
        return table

    for col in ("Number", "Party", "Date", "Amount", "Status"):
        table.add_column(col, justify="right" if col == "Amount" else "left")
    for r in records:
        table.add_row(
            r.number or r.name or r.id or "",
            r.party or r.category or "",
            format_date(r.date),
            format_currency(r.amount),
            r.status or "",
        )
    return table


# ---- Commands ----------------------------------------------------------------


@app.command("report")
def report_cmd(
    year: Annotated[
        int | None, typer.Option(help="Calendar year for the monthly revenue series.")
    ] = None,
    pdf: Annotated[
        Path | None, typer.Option(help="Also render the report to this PDF file.", dir_okay=False)
    ] = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the chart payload and document as JSON.")
    ] = False,
) -> None:
    """Build the combined business-overview report."""

    client = _make_client()
    with client, ReportSession(client, year=year) as session:
        overview = session.load()
    if overview is None:
        raise _fail("report session closed before loading finished")

    if overview.auth_failed:
        raise _fail(AUTH_HINT)
    if len(overview.errors) == len(REPORT_KINDS):
        raise _fail("Failed to fetch report data. Please try again.")
    _warn_failures(overview)

    series = compose_series(overview)
    document = build_document(overview, generated_at=datetime.now(), series=series)

    if as_json:
        typer.echo(
            json.dumps(
                {"chart": chart_data(series), "document": _document_json(document)},
                ensure_ascii=False,
                indent=2,
            )
        )
    else:
        _print_document(document)

    if pdf is not None:
        try:
            render_pdf(document, pdf)
        except OSError as e:
            raise _fail(f"could not write {pdf}: {e}") from e
        err_console.print(f"[green]Wrote[/green] {pdf}")


@app.command("list")
def list_cmd(
    resource: Annotated[ResourceKind, typer.Argument(help="Resource collection to list.")],
    search: Annotated[
        str | None, typer.Option(help="Case-insensitive text to search for.")
    ] = None,
    status: Annotated[str | None, typer.Option(help="Only show this status ('all' = any).")] = None,
    category: Annotated[
        str | None, typer.Option(help="Only show this category ('all' = any).")
    ] = None,
    month: Annotated[
        str | None, typer.Option(help="Only show records dated in this month (YYYY-MM).")
    ] = None,
    pdf: Annotated[
        Path | None,
        typer.Option(
            help="Expenses only: also render the listing to this PDF file.", dir_okay=False
        ),
    ] = None,
) -> None:
    """List one resource collection; invoices show locally overridden statuses."""

    if pdf is not None and resource is not ResourceKind.EXPENSES:
        raise _fail("--pdf is only available when listing expenses")

    client = _make_client()
    try:
        with client:
            records = fetch_records(client, resource)
    except AuthenticationError as e:
        raise _fail(AUTH_HINT) from e
    except ApiError as e:
        raise _fail(f"Failed to fetch {resource.value}: {e}") from e

    if resource is ResourceKind.INVOICES:
        records = StatusOverrideStore().apply(records)
    records = filter_records(
        records, search=search, status=status, category=category, month=month
    )
    console.print(_records_table(resource, records))
    if resource is ResourceKind.EXPENSES:
        total = format_currency(sum(r.amount for r in records))
        console.print(f"[bold]Total Expenses:[/bold] {total}")

    if pdf is not None:
        try:
            listing = build_expense_list(records, generated_at=datetime.now())
            render_expense_pdf(listing, pdf)
        except ValueError as e:
            raise _fail(str(e)) from e
        except OSError as e:
            raise _fail(f"could not write {pdf}: {e}") from e
        err_console.print(f"[green]Wrote[/green] {pdf}")


@app.command("totals")
def totals_cmd(
    resource: Annotated[
        ResourceKind, typer.Argument(help="invoices, purchase-orders or sales-orders.")
    ],
    record_id: Annotated[str, typer.Argument(help="Record id or document number.")],
    gst_rate: Annotated[
        float | None,
        typer.Option(help="GST percent; defaults to the record's gstRate, else 18."),
    ] = None,
) -> None:
    """Show subtotal, GST and total of one invoice or order from its line items."""

    if resource not in TOTALS_KINDS:
        raise _fail(f"{resource.value} have no line items")

    client = _make_client()
    try:
        with client:
            records = fetch_records(client, resource)
    except AuthenticationError as e:
        raise _fail(AUTH_HINT) from e
    except ApiError as e:
        raise _fail(f"Failed to fetch {resource.value}: {e}") from e

    record = next((r for r in records if record_id in (r.id, r.number)), None)
    if record is None:
        raise _fail(f"no {resource.value} record {record_id!r}")

    rate = gst_rate
    if rate is None:
        stored = record.raw.get("gstRate")
        rate = parse_amount(stored) if stored is not None else DEFAULT_GST_RATE
    try:
        if record.items:
            totals = document_totals(record.items, rate)
        else:
            totals = apply_tax_rate(parse_amount(record.raw.get("subtotal")), rate)
    except ValueError as e:
        raise _fail(str(e)) from e

    table = Table(title=record.number or record.id or record_id, show_header=False)
    table.add_column("Key")
    table.add_column("Value", justify="right")
    table.add_row("Subtotal", format_currency(totals.subtotal))
    table.add_row(f"GST ({totals.tax_rate:g}%)", format_currency(totals.tax))
    table.add_row("Total", format_currency(totals.total), style="bold")
    console.print(table)


@app.command("dashboard")
def dashboard_cmd() -> None:
    """Sales-order headline numbers and the most recently added products."""

    client = _make_client()
    with client, ReportSession(client) as session:
        overview = session.load((ResourceKind.SALES_ORDERS, ResourceKind.PRODUCTS))
    if overview is None:
        raise _fail("dashboard session closed before loading finished")
    if overview.auth_failed:
        raise _fail(AUTH_HINT)
    _warn_failures(overview)

    metrics = dashboard_metrics(session.records.get(ResourceKind.SALES_ORDERS, []))
    table = Table(title="Dashboard", show_header=False)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Total Sales", str(metrics.total_sales))
    table.add_row("Pending Orders", str(metrics.pending_orders))
    table.add_row("Completed Orders", str(metrics.completed_orders))
    table.add_row("Total Revenue", format_currency(metrics.total_revenue))
    console.print(table)

    recent = recent_products(session.records.get(ResourceKind.PRODUCTS, []))
    console.print(_records_table(ResourceKind.PRODUCTS, recent))


@app.command("set-status")
def set_status_cmd(
    record_id: Annotated[str, typer.Argument(help="Invoice id.")],
    status: Annotated[
        str | None, typer.Option(help="New status; prompts interactively when omitted.")
    ] = None,
    remote: Annotated[
        bool, typer.Option(help="Send the change to the server instead of recording it locally.")
    ] = False,
) -> None:
    """Change an invoice status (recorded locally unless --remote)."""

    if status is None:
        status = select_status(INVOICE_STATUSES)
        if status is None:
            err_console.print("[yellow]Cancelled.[/yellow]")
            raise typer.Exit(1)

    client: ApiClient | None = None
    updater: StatusUpdater
    if remote:
        client = _make_client()
        updater = RemoteStatusUpdater(client, ResourceKind.INVOICES)
    else:
        updater = LocalStatusUpdater(StatusOverrideStore())

    try:
        updater.update_status(record_id, status)
    except AuthenticationError as e:
        raise _fail(AUTH_HINT) from e
    except ApiError as e:
        raise _fail(f"Failed to update status: {e}") from e
    except (ValueError, OSError) as e:
        raise _fail(str(e)) from e
    finally:
        if client is not None:
            client.close()

    console.print(f"[green]Invoice {record_id} marked as {status}.[/green]")


@app.command("clear-overrides")
def clear_overrides_cmd() -> None:
    """Forget every locally recorded invoice status."""

    store = StatusOverrideStore()
    store.clear()
    console.print(f"Cleared local status overrides ({store.path}).")


@app.command("login")
def login_cmd(
    email: Annotated[str, typer.Option(prompt=True, help="Account e-mail.")],
    password: Annotated[str, typer.Option(prompt=True, hide_input=True, help="Password.")],
) -> None:
    """Log in and print a token to use as BR_API_TOKEN."""

    client = _make_client()
    try:
        with client:
            token = client.login(email, password)
    except AuthenticationError as e:
        raise _fail("Invalid e-mail or password.") from e
    except ApiError as e:
        raise _fail(f"Login failed: {e}") from e
    typer.echo(token)


@app.command("whoami")
def whoami_cmd() -> None:
    """Show the account the configured token belongs to."""

    client = _make_client()
    try:
        with client:
            user = client.current_user()
    except AuthenticationError as e:
        raise _fail(AUTH_HINT) from e
    except ApiError as e:
        raise _fail(str(e)) from e
    typer.echo(json.dumps(user, ensure_ascii=False, indent=2))


@app.callback()
def _root(
    log_level: Annotated[
        str | None,
        typer.Option(help="Log level (falls back to BUSINESS_REPORTS_LOG_LEVEL)."),
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m business_reports.cli`
    app()
