"""Errores de uso del Core.

Por qué separar:
- Los errores reportados por el servicio son *datos* (lista `errors`), nunca
  excepciones.
- Solo los errores de programación del llamador (pedir una colección que la
  respuesta no trae, o pedir una entidad sin código cuando hay varias) y los
  fallos de red se elevan como excepciones.
"""

from __future__ import annotations

from typing import Any


class ResponseError(Exception):
    """Base de todos los errores elevados por esta librería."""

    code: str = "RESPONSE_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class MissingCollectionError(ResponseError):
    """La respuesta no contiene la colección pedida."""

    code = "MISSING_COLLECTION"

    def __init__(self, collection: str) -> None:
        super().__init__(
            f"the response does not contain {collection}",
            details={"collection": collection},
        )
        self.collection = collection


class AmbiguousSelectionError(ResponseError):
    """La colección tiene varios elementos y no se indicó `code`."""

    code = "AMBIGUOUS_SELECTION"

    def __init__(self, collection: str, count: int | None = None) -> None:
        details: dict[str, Any] = {"collection": collection}
        if count is not None:
            details["count"] = count
        super().__init__(
            f"multiple {collection}; a code is required to disambiguate",
            details=details,
        )
        self.collection = collection


class TransportError(ResponseError):
    """Fallo de red/timeout al hablar con el servicio."""

    code = "TRANSPORT_ERROR"
