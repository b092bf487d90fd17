"""Normalization pipeline for billing-service responses.

A raw payload goes through four whole-tree stages, always in this order:

1. key canonicalization
2. error reduction (four error shapes -> one `errors` list at the root)
3. array-shape fixup (`{"plan": {...}}` -> `[{...}]`)
4. type coercion (string leaves -> bool/int/float/date/datetime)

Every stage is total: malformed input degrades to empty structures or
unmodified scalars and nothing here raises. `Normalizer.build` adds the
validity check and, for invalid responses whose raw body holds an XML
document, rebuilds the tree from that body through the XML fallback parser.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable, Mapping

import structlog
from dateutil import parser as date_parser

from adapters.xml_fallback import parse_error_body
from core.domain.models import CanonicalNode, RawResponse
from core.domain.wire import COLLECTION_SINGULARS, FIELD_TYPES, FieldType

logger = structlog.get_logger(__name__)

_LEADING_INT = re.compile(r"\s*[+-]?\d+")
_LEADING_FLOAT = re.compile(r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


# ---------------------------------------------------------------------------
# Stage 1: keys
# ---------------------------------------------------------------------------


def canonical_key(key: Any) -> Any:
    """Return the canonical (stripped `str`) form of a key, or the key unchanged."""

    if isinstance(key, bytes):
        try:
            key = key.decode("utf-8")
        except UnicodeDecodeError:
            return key
    if isinstance(key, str):
        stripped = key.strip()
        return stripped or key
    return key


def canonicalize_keys(node: Any) -> Any:
    if isinstance(node, list):
        return [canonicalize_keys(v) for v in node]
    if isinstance(node, dict):
        return {canonical_key(k): canonicalize_keys(v) for k, v in node.items()}
    return node


# ---------------------------------------------------------------------------
# Stage 2: errors
# ---------------------------------------------------------------------------


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


def _pop_errors(container: dict[str, Any]) -> tuple[list[Any], list[Any]]:
    """Remove the plural and singular error keys from `container`."""

    plural_container = container.pop("errors", None)
    if isinstance(plural_container, dict):
        plural = _as_list(plural_container.get("error"))
    else:
        # already a list (JSON bodies, or a tree that was reduced before)
        plural = _as_list(plural_container)
    singular = _as_list(container.pop("error", None))
    return plural, singular


def _as_error_record(entry: Any) -> dict[str, Any]:
    if isinstance(entry, dict):
        return entry
    return {"text": str(entry)}


def reduce_errors(root: Any) -> dict[str, Any]:
    """Hoist every error shape into a single `errors` list at the root."""

    if not isinstance(root, dict):
        return {"errors": []}

    root_plural, root_singular = _pop_errors(root)

    embedded_plural: list[Any] = []
    embedded_singular: list[Any] = []
    embedded = root.get("customers")
    if embedded is None:
        embedded = root.get("plans")
    if isinstance(embedded, dict):
        embedded_plural, embedded_singular = _pop_errors(embedded)

    candidates = root_plural + root_singular + embedded_plural + embedded_singular
    root["errors"] = [_as_error_record(e) for e in candidates if e is not None]
    return root


# ---------------------------------------------------------------------------
# Stage 3: array shapes
# ---------------------------------------------------------------------------


def fix_array_shapes(node: Any, singulars: Mapping[str, str] = COLLECTION_SINGULARS) -> Any:
    if isinstance(node, list):
        return [fix_array_shapes(v, singulars) for v in node]
    if not isinstance(node, dict):
        return node

    fixed: dict[Any, Any] = {}
    for key, value in node.items():
        value = fix_array_shapes(value, singulars)
        singular = singulars.get(key) if isinstance(key, str) else None
        if (
            singular
            and isinstance(value, dict)
            and len(value) == 1
            and value.get(singular) is not None
        ):
            inner = value[singular]
            value = list(inner) if isinstance(inner, list) else [inner]
        fixed[key] = value
    return fixed


# ---------------------------------------------------------------------------
# Stage 4: types
# ---------------------------------------------------------------------------


def parse_int(value: str) -> int:
    """Best-effort leading-integer parse (`"12abc"` -> 12, `"abc"` -> 0)."""

    match = _LEADING_INT.match(value)
    return int(match.group()) if match else 0


def parse_float(value: str) -> float:
    match = _LEADING_FLOAT.match(value)
    return float(match.group()) if match else 0.0


def parse_datetime(value: str) -> datetime | str:
    """Parse a timestamp; naive values are taken as UTC. Unparseable -> unchanged."""

    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        return value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value: str) -> date | str:
    try:
        return date_parser.parse(value).date()
    except (ValueError, OverflowError):
        return value


def coerce_leaf(value: str, field_type: FieldType) -> Any:
    if field_type is FieldType.INTEGER:
        return parse_int(value)
    if field_type is FieldType.FLOAT:
        return parse_float(value)
    if field_type is FieldType.BOOLEAN:
        return parse_int(value) != 0
    if field_type is FieldType.DATETIME:
        return parse_datetime(value)
    if field_type is FieldType.DATE:
        return parse_date(value)
    return value


def coerce_types(node: Any, field_types: Mapping[str, FieldType] = FIELD_TYPES) -> Any:
    if isinstance(node, list):
        return [coerce_types(v, field_types) for v in node]
    if not isinstance(node, dict):
        return node

    coerced: dict[Any, Any] = {}
    for key, value in node.items():
        value = coerce_types(value, field_types)
        field_type = field_types.get(key) if isinstance(key, str) else None
        if field_type is not None and isinstance(value, str):
            value = coerce_leaf(value, field_type)
        coerced[key] = value
    return coerced


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def is_valid(tree: Mapping[str, Any], status_code: int) -> bool:
    return not tree.get("errors") and status_code < 400


def split_aux_codes(errors: Iterable[Any]) -> None:
    """Derive `fieldName`/`errorType` from `auxCode` values shaped `field:type`."""

    for error in errors:
        if not isinstance(error, dict):
            continue
        aux_code = error.get("auxCode")
        if isinstance(aux_code, str) and ":" in aux_code:
            field_name, _, error_type = aux_code.partition(":")
            error["fieldName"] = field_name
            error["errorType"] = error_type


@dataclass(frozen=True)
class Normalizer:
    """Turns one `RawResponse` into one canonical tree.

    The lookup tables are injected (defaulting to the service's wire tables)
    and are never mutated.
    """

    singulars: Mapping[str, str] = field(default_factory=lambda: COLLECTION_SINGULARS)
    field_types: Mapping[str, FieldType] = field(default_factory=lambda: FIELD_TYPES)
    fallback_parser: Callable[[str], Any] = field(default=parse_error_body)

    def normalize(self, data: Any) -> dict[str, CanonicalNode]:
        """Run stages 1-4 over a decoded body. Non-map input yields `{"errors": []}`."""

        tree = canonicalize_keys(data if isinstance(data, dict) else {})
        tree = reduce_errors(tree)
        tree = fix_array_shapes(tree, self.singulars)
        return coerce_types(tree, self.field_types)

    def build(self, raw: RawResponse) -> dict[str, CanonicalNode]:
        """Build the canonical tree, falling back to the XML body when invalid."""

        tree = self.normalize(raw.parsed_body)
        if is_valid(tree, raw.status_code):
            logger.debug(
                "normalizer.built",
                status_code=raw.status_code,
                keys=sorted(str(k) for k in tree),
            )
            return tree

        logger.debug(
            "normalizer.fallback",
            status_code=raw.status_code,
            structured_errors=len(tree.get("errors") or []),
        )
        document = self.fallback_parser(raw.body or "")
        if document:
            tree = self.normalize(document)
            logger.debug("normalizer.recovered", errors=len(tree["errors"]))
        else:
            # body is not XML: keep the structured tree as built
            logger.debug("normalizer.fallback_empty")
        split_aux_codes(tree["errors"])
        return tree


def build_canonical_tree(raw: RawResponse, normalizer: Normalizer | None = None) -> dict[str, CanonicalNode]:
    return (normalizer or Normalizer()).build(raw)
