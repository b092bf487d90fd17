"""CLI entry point (Typer + Rich).

Commands work either on a captured response body (`inspect`, `plan`,
`customer`) or against the live service (`fetch`).
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from adapters.billing_client import BillingClient
from adapters.json_exporter import export_tree_json
from adapters.xml_fallback import parse_xml
from cli.doctor import app as doctor_app
from cli.ui_components import (
    build_entity_panel,
    build_errors_table,
    build_item_metrics_table,
    build_records_table,
    build_status_panel,
)
from core.config import AppSettings
from core.domain.exceptions import ResponseError
from core.domain.models import RawResponse
from core.logging_setup import configure_logging
from core.services.response import BillingResponse

app = typer.Typer(no_args_is_help=True, help="Normalize and query billing-service responses.")
app.add_typer(doctor_app, name="doctor")

_console = Console()

_INVOICE_COLUMNS = ("id", "number", "type", "billingDatetime", "paidTransactionId")
_PLAN_COLUMNS = ("code", "name", "recurringChargeAmount", "billingFrequencyQuantity", "isActive")


class Resource(str, Enum):
    PLANS = "plans"
    CUSTOMERS = "customers"


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit structured logs as JSON."),
) -> None:
    settings = AppSettings()
    configure_logging(log_level or settings.log_level, json_output=json_logs or settings.log_json)


def load_response(path: Path, *, status_code: int = 200, xml: bool = False) -> BillingResponse:
    """Build a `BillingResponse` from a captured body on disk."""

    text = path.read_text(encoding="utf-8")
    if xml:
        parsed = parse_xml(text)
    else:
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            parsed = None
    return BillingResponse(RawResponse(status_code=status_code, parsed_body=parsed, body=text))


def _print_summary(response: BillingResponse) -> None:
    _console.print(build_status_panel(response))
    if response.errors:
        _console.print(build_errors_table(response))
    plans = response.plans
    if isinstance(plans, list) and plans:
        _console.print(build_records_table("Plans", plans, _PLAN_COLUMNS))
    customers = response.customers
    if isinstance(customers, list) and customers:
        _console.print(build_records_table("Customers", customers, ("code", "firstName", "lastName", "email")))


def _fail(exc: ResponseError) -> NoReturn:
    _console.print(f"[red]{exc.message}[/red]")
    raise typer.Exit(code=2)


@app.command()
def inspect(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Captured response body."),
    status: int = typer.Option(200, "--status", "-s", help="HTTP status the body was returned with."),
    xml: bool = typer.Option(False, "--xml", help="Decode the body as XML instead of JSON."),
    output: Path = typer.Option(None, "--output", "-o", help="Write the canonical tree as JSON."),
) -> None:
    """Normalize a captured body and print validity, errors and contents."""

    response = load_response(path, status_code=status, xml=xml)
    _print_summary(response)
    if output is not None:
        written = export_tree_json(tree=response.tree, output_path=output)
        _console.print(f"[green]Canonical tree written to:[/green] {written}")


@app.command()
def plan(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Captured response body."),
    code: str = typer.Option(None, "--code", "-c", help="Plan code (required with several plans)."),
    status: int = typer.Option(200, "--status", "-s", help="HTTP status the body was returned with."),
    xml: bool = typer.Option(False, "--xml", help="Decode the body as XML instead of JSON."),
) -> None:
    """Show one plan and its items."""

    response = load_response(path, status_code=status, xml=xml)
    try:
        record = response.plan(code)
    except ResponseError as exc:
        _fail(exc)
    _console.print(build_entity_panel("Plan", record))
    if record and isinstance(record.get("items"), list):
        _console.print(
            build_records_table("Items", record["items"], ("code", "name", "quantityIncluded", "overageAmount"))
        )


@app.command()
def customer(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Captured response body."),
    code: str = typer.Option(None, "--code", "-c", help="Customer code (required with several customers)."),
    item: str = typer.Option(None, "--item", "-i", help="Item code for usage metrics."),
    status: int = typer.Option(200, "--status", "-s", help="HTTP status the body was returned with."),
    xml: bool = typer.Option(False, "--xml", help="Decode the body as XML instead of JSON."),
) -> None:
    """Show a customer, its current plan, invoices and item usage."""

    response = load_response(path, status_code=status, xml=xml)
    try:
        record = response.customer(code)
        current_plan = response.customer_plan(code)
        invoices = response.customer_invoices(code)
        canceled = response.customer_canceled(code)
        metrics = build_item_metrics_table(response, item, code) if item else None
    except ResponseError as exc:
        _fail(exc)

    _console.print(build_entity_panel("Customer", record))
    _console.print(build_entity_panel("Current plan", current_plan))
    if canceled is not None:
        _console.print("Canceled: " + ("[red]yes[/red]" if canceled else "[green]no[/green]"))
    if invoices:
        _console.print(build_records_table("Invoices", invoices, _INVOICE_COLUMNS))
    if metrics is not None:
        _console.print(metrics)


@app.command()
def fetch(
    resource: Resource = typer.Argument(..., help="plans or customers"),
    code: str = typer.Option(None, "--code", "-c", help="Fetch a single entity by code."),
) -> None:
    """Call the live service and print the normalized response."""

    client = BillingClient()
    try:
        if resource is Resource.PLANS:
            response = client.get_plan(code) if code else client.get_plans()
        else:
            response = client.get_customer(code) if code else client.get_customers()
    except ResponseError as exc:
        _fail(exc)
    _print_summary(response)


def run() -> None:
    app()
