"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from typing import Any, Iterable

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.services.response import BillingResponse


def _fmt(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def build_status_panel(response: BillingResponse) -> Panel:
    """Panel con validez, status HTTP y claves de primer nivel."""

    status = response.raw_response.status_code
    if response.valid:
        title = Text("VALID", style="bold green")
        border = "green"
    else:
        title = Text("INVALID", style="bold red")
        border = "red"

    body = Text()
    body.append(f"HTTP {status}\n")
    keys = ", ".join(sorted(str(k) for k in response.tree if k != "errors")) or "-"
    body.append(f"Keys: {keys}", style="dim")
    return Panel(body, title=title, border_style=border)


def build_errors_table(response: BillingResponse) -> Table:
    table = Table(title="Errors")
    table.add_column("Message", style="red")
    table.add_column("Field", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Aux code", style="dim")
    for record in response.error_records():
        table.add_row(
            record.message or "-",
            _fmt(record.field_name),
            _fmt(record.error_type),
            _fmt(record.aux_code),
        )
    return table


def build_records_table(title: str, records: Iterable[dict[str, Any]], columns: Iterable[str]) -> Table:
    """Tabla genérica: una fila por registro, una columna por campo."""

    columns = list(columns)
    table = Table(title=title)
    for i, column in enumerate(columns):
        table.add_column(column, style="cyan" if i == 0 else "white", no_wrap=i == 0)
    for record in records:
        table.add_row(*(_fmt(record.get(c)) for c in columns))
    return table


def build_entity_panel(title: str, record: dict[str, Any] | None) -> Panel:
    """Panel clave/valor con los campos escalares de una entidad."""

    body = Text()
    if record is None:
        body.append("not found", style="yellow")
    else:
        for key, value in record.items():
            if isinstance(value, (dict, list)):
                continue
            body.append(f"{key}: ", style="bold")
            body.append(f"{_fmt(value)}\n")
    return Panel(body, title=Text(title, style="bold cyan"), border_style="cyan")


def build_item_metrics_table(response: BillingResponse, item_code: str | None, code: str | None) -> Table:
    item = response.customer_item(item_code, code)
    table = Table(title=f"Item {_fmt(item.get('code') if item else item_code)}")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("Included", _fmt(item.get("quantityIncluded") if item else None))
    table.add_row("Used", _fmt(item.get("quantity") if item else None))
    table.add_row("Remaining", _fmt(response.customer_item_quantity_remaining(item_code, code)))
    table.add_row("Overage", _fmt(response.customer_item_quantity_overage(item_code, code)))
    table.add_row("Overage cost", _fmt(response.customer_item_quantity_overage_cost(item_code, code)))
    return table
