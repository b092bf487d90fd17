"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers, auth y logging de todas las llamadas al servicio.
- Facilita testeo: se puede sustituir el transporte por `httpx.MockTransport`.
"""

from __future__ import annotations

from typing import Any, Mapping

import httpx
import structlog

from adapters.xml_fallback import parse_xml
from core.config import AppSettings
from core.domain.exceptions import TransportError
from core.domain.models import RawResponse

logger = structlog.get_logger(__name__)


def build_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Crea un `httpx.Client` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers/auth para que todos los requests se comporten igual.
    - `transport` permite inyectar `httpx.MockTransport` en tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json, application/xml;q=0.9, */*;q=0.8",
    }
    if extra_headers:
        headers.update(extra_headers)

    auth = None
    if settings.has_credentials:
        auth = httpx.BasicAuth(settings.username or "", settings.password or "")

    return httpx.Client(
        base_url=settings.base_url,
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        auth=auth,
        transport=transport,
    )


def _looks_like_xml(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "").lower()
    return "xml" in content_type or response.text.lstrip().startswith("<")


def decode_body(response: httpx.Response) -> Any | None:
    """Decodifica el cuerpo estructurado: objeto JSON o documento XML.

    Las rutas `/xml/...` del servicio responden XML; sin este paso el árbol
    quedaría vacío y válido. None si el cuerpo no es ninguno de los dos.
    """

    if _looks_like_xml(response):
        return parse_xml(response.text) or None
    try:
        payload = response.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


class HttpxTransport:
    """Implementación de `core.interfaces.transport.BillingTransport` sobre httpx."""

    def __init__(self, client: httpx.Client | None = None, settings: AppSettings | None = None) -> None:
        self._client = client or build_client(settings)

    def request(self, path: str, data: Mapping[str, Any] | None = None) -> RawResponse:
        method = "POST" if data is not None else "GET"
        try:
            response = self._client.request(method, path, data=dict(data) if data is not None else None)
        except httpx.HTTPError as exc:
            logger.warning("http.request_failed", method=method, path=path, error=str(exc))
            raise TransportError(f"{method} {path} failed: {exc}", details={"path": path}) from exc

        logger.info("http.response", method=method, path=path, status_code=response.status_code)
        return RawResponse(
            status_code=response.status_code,
            parsed_body=decode_body(response),
            body=response.text,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
