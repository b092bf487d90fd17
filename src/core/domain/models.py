"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- El árbol canónico sigue siendo dict/list/escalares; estos modelos describen
  los bordes (respuesta cruda del transporte, vista tipada de errores).

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Union

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

Scalar = Union[bool, int, float, date, datetime, str, None]
CanonicalNode = Union[dict[str, Any], list[Any], Scalar]


class RawResponse(BaseModel):
    """Respuesta cruda entregada por el transporte.

    Por qué existe:
    - Es el único contrato entre el transporte (httpx) y el Core.
    - El Core nunca la muta: el normalizador trabaja sobre una copia profunda
      de `parsed_body`.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status_code: int = Field(
        ...,
        ge=0,
        le=999,
        description="Código HTTP devuelto por el servicio.",
    )
    parsed_body: Any | None = Field(
        default=None,
        description="Cuerpo decodificado (mapas/listas/strings) o None si no se pudo decodificar.",
    )
    body: str = Field(
        default="",
        description="Cuerpo crudo; solo se usa en la recuperación XML de errores.",
    )


class ErrorRecord(BaseModel):
    """Vista tipada de un error reportado por el servicio.

    El árbol canónico guarda los errores como dicts; este modelo es la
    proyección de solo lectura que consumen la CLI y los integradores.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    text: str | None = Field(
        default=None,
        description="Mensaje legible del error.",
    )
    field_name: str | None = Field(
        default=None,
        alias="fieldName",
        description="Campo del request al que aplica el error.",
    )
    aux_code: str | None = Field(
        default=None,
        alias="auxCode",
        description="Código auxiliar; puede codificar `fieldName:errorType`.",
    )
    error_type: str | None = Field(
        default=None,
        alias="errorType",
        description="Tipo de error derivado del auxCode.",
    )
    code: str | int | None = Field(
        default=None,
        description="Código numérico/HTTP del error, si viene informado.",
    )

    @property
    def message(self) -> str:
        msg = self.text or ""
        if self.field_name:
            msg += f": {self.field_name}"
        return msg
