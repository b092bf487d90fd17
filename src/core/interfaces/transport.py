"""Contrato del transporte HTTP hacia el servicio de billing.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Permite que el cliente use httpx en producción y un stub en tests, sin
  acoplar el Core a implementaciones concretas.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from core.domain.models import RawResponse


@runtime_checkable
class BillingTransport(Protocol):
    """Contrato mínimo para un transporte.

    Reglas de diseño:
    - `request` es síncrono: el Core procesa respuestas ya completas.
    - Devuelve siempre un `RawResponse`, también para respuestas 4xx/5xx; solo
      los fallos de red se elevan (`TransportError`).
    """

    def request(self, path: str, data: Mapping[str, Any] | None = None) -> RawResponse:
        """Ejecuta el request y devuelve la tripleta cruda (status, cuerpo decodificado, texto)."""

        ...
