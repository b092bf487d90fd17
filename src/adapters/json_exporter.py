"""Exportación JSON del árbol canónico.

Por qué JSON:
- Permite guardar una respuesta ya normalizada (fixtures, depuración, diffs).
- Fechas y datetimes se serializan en ISO 8601 para que el archivo sea estable.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any


def _default(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def dump_tree(tree: Any) -> str:
    """Serializa el árbol a JSON UTF-8 con formato estable."""

    return json.dumps(tree, ensure_ascii=False, indent=2, sort_keys=True, default=_default) + "\n"


def export_tree_json(*, tree: Any, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dump_tree(tree), encoding="utf-8")
    return output_path
