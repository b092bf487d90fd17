"""Doctor command for environment diagnostics."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from adapters.billing_client import BillingClient
from core.config import AppSettings, get_user_env_file, write_user_env_vars
from core.domain.exceptions import ResponseError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def _check_service(settings: AppSettings) -> tuple[bool, str]:
    try:
        response = BillingClient(settings=settings).get_plans()
    except ResponseError as exc:
        return False, exc.message
    if response.valid:
        return True, f"HTTP {response.raw_response.status_code}"
    return False, "; ".join(response.error_messages()) or f"HTTP {response.raw_response.status_code}"


@app.command()
def run(
    offline: bool = typer.Option(False, "--offline", help="Skip the live service check."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="Billing Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Base URL", "OK", settings.base_url)
    if settings.product_code:
        table.add_row("Product code", "OK", settings.product_code)
    else:
        table.add_row("Product code", "MISSING", "Set BILLING_PRODUCT_CODE or run `doctor setup`")
    if settings.has_credentials:
        table.add_row("Credentials", "OK", f"user {settings.username}")
    else:
        table.add_row("Credentials", "MISSING", "Set BILLING_USERNAME / BILLING_PASSWORD")
    table.add_row("User config", "OK" if get_user_env_file().exists() else "NONE", str(get_user_env_file()))

    if not offline and settings.product_code and settings.has_credentials:
        ok, detail = _check_service(settings)
        table.add_row("Service", "OK" if ok else "FAIL", detail)

    _console.print(table)


@app.command(name="setup")
def setup() -> None:
    """Interactive setup (stores credentials in the user config .env)."""

    settings = AppSettings()

    base_url = typer.prompt("Service base URL", default=settings.base_url, show_default=True).strip()
    product_code = typer.prompt("Product code", default=settings.product_code or "", show_default=True).strip()
    username = typer.prompt("Username", default=settings.username or "", show_default=True).strip()
    password = typer.prompt("Password", hide_input=True, confirmation_prompt=False).strip()

    if not base_url or not product_code:
        raise typer.BadParameter("base_url and product_code are required")

    env_path = write_user_env_vars(
        {
            "BILLING_BASE_URL": base_url,
            "BILLING_PRODUCT_CODE": product_code,
            "BILLING_USERNAME": username or None,
            "BILLING_PASSWORD": password or None,
        }
    )

    _console.print(f"[green]Saved billing config to:[/green] {env_path}")
