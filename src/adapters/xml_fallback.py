"""Parser XML de respaldo para cuerpos de error.

Por qué existe:
- Cuando el cuerpo estructurado no produce una respuesta válida, el servicio
  suele haber devuelto un documento XML de errores.
- El texto de `<error attr="...">Mensaje</error>` y sus atributos se capturan
  juntos reescribiendo el elemento a `<error attr="..."><text>Mensaje</text></error>`
  antes de parsear.

Nunca eleva: un cuerpo vacío o mal formado produce `{}`.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

_ERROR_ELEMENT = re.compile(r"<error(\s[^>]*?)?(?<!/)>(.*?)</error>", re.DOTALL)


def rewrite_error_markup(body: str) -> str:
    """Mueve el texto inline de cada `<error>` a un hijo `<text>`."""

    return _ERROR_ELEMENT.sub(
        lambda m: f"<error{m.group(1) or ''}><text>{m.group(2)}</text></error>",
        body,
    )


def _local_name(tag: str) -> str:
    # "{namespace}tag" -> "tag"
    return tag.rsplit("}", 1)[-1].lstrip("@")


def _merge_value(target: dict[str, Any], key: str, value: Any) -> None:
    if key not in target:
        target[key] = value
        return
    current = target[key]
    if isinstance(current, list):
        current.append(value)
        return
    target[key] = [current, value]


def element_to_dict(element: ET.Element) -> Any:
    """Convierte recursivamente un elemento XML a dict/list/str."""

    value: dict[str, Any] = {}

    for attr_key, attr_value in element.attrib.items():
        value[_local_name(attr_key)] = attr_value

    for child in element:
        _merge_value(value, _local_name(child.tag), element_to_dict(child))

    text = (element.text or "").strip()
    if value:
        if text and "text" not in value:
            value["text"] = text
        return value
    return text or None


def parse_xml(body: str | None) -> dict[str, Any]:
    """Parsea un documento XML a `{<tag raíz>: <contenido>}`; `{}` si no es XML."""

    if not body or not body.strip():
        return {}
    try:
        root = ET.fromstring(body.strip())
    except ET.ParseError as exc:
        logger.debug("xml_fallback.unparseable", error=str(exc))
        return {}
    return {_local_name(root.tag): element_to_dict(root)}


def parse_error_body(body: str | None) -> dict[str, Any]:
    """Parsea el cuerpo crudo como XML de errores (texto de `<error>` en `text`)."""

    return parse_xml(rewrite_error_markup(body or ""))
