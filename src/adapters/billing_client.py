"""Cliente del servicio de billing.

Por qué existe:
- Une transporte (httpx) + normalización + consultas en una sola llamada:
  cada método devuelve un `BillingResponse` listo para usar.
- Los errores del servicio quedan como datos en la respuesta (`valid`,
  `error_messages()`); solo los fallos de red se elevan.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Mapping
from urllib.parse import quote

import structlog

from adapters.http_client import HttpxTransport
from core.config import AppSettings
from core.domain.exceptions import ResponseError
from core.interfaces.transport import BillingTransport
from core.services.normalizer import Normalizer
from core.services.response import BillingResponse

logger = structlog.get_logger(__name__)


class BillingClient:
    """Consultas de planes y clientes de un producto."""

    def __init__(
        self,
        transport: BillingTransport | None = None,
        settings: AppSettings | None = None,
        *,
        normalizer: Normalizer | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport or HttpxTransport(settings=self._settings)
        self._normalizer = normalizer or Normalizer()
        self._clock = clock

    def _path(self, resource: str, code: str | None = None) -> str:
        product_code = self._settings.product_code
        if not product_code:
            raise ResponseError("product_code is not configured (BILLING_PRODUCT_CODE)")
        path = f"/xml/{resource}/get/productCode/{quote(product_code, safe='')}"
        if code is not None:
            path += f"/code/{quote(str(code), safe='')}"
        return path

    def request(self, path: str, data: Mapping[str, Any] | None = None) -> BillingResponse:
        raw = self._transport.request(path, data)
        response = BillingResponse(raw, normalizer=self._normalizer, clock=self._clock)
        if not response.valid:
            logger.info("billing.invalid_response", path=path, errors=response.error_messages())
        return response

    def get_plans(self) -> BillingResponse:
        return self.request(self._path("plans"))

    def get_plan(self, code: str) -> BillingResponse:
        return self.request(self._path("plans", code))

    def get_customers(self, data: Mapping[str, Any] | None = None) -> BillingResponse:
        return self.request(self._path("customers"), data)

    def get_customer(self, code: str) -> BillingResponse:
        return self.request(self._path("customers", code))
