"""
===============================================================================
ARCHIVO: crosscutting/metrics.py
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Métricas (Prometheus) — acceso y entrega de artefactos

Responsabilidades:
    - Definir métricas Prometheus en un registry propio.
    - Proveer funciones pequeñas y estables para registrar eventos.
    - Cuidar cardinalidad (NO identidades, NO ids de documento).
    - Exponer helpers para generar la respuesta /metrics.

Colaboradores:
    - crosscutting.middleware: latencia y conteo HTTP.
    - crosscutting.streaming: gauge de handles abiertos.
    - identity.capabilities: links firmados emitidos / rechazados.
    - application/usecases/documents: decisiones de acceso por camino.
===============================================================================
"""

from __future__ import annotations

import re

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

# ------------------------
# HTTP
# ------------------------
_requests_total = Counter(
    "repo_requests_total",
    "Total de requests HTTP",
    ["endpoint", "method", "status"],
    registry=_registry,
)

_request_latency = Histogram(
    "repo_request_latency_seconds",
    "Latencia de requests HTTP (segundos)",
    ["endpoint", "method"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=_registry,
)

# ------------------------
# Control de acceso
# ------------------------
_access_decisions_total = Counter(
    "repo_access_decisions_total",
    "Decisiones del gate de entrega por camino (bearer/capability) y resultado",
    ["path", "outcome"],
    registry=_registry,
)

_capabilities_minted_total = Counter(
    "repo_capabilities_minted_total",
    "Links firmados emitidos",
    registry=_registry,
)

_capability_rejections_total = Counter(
    "repo_capability_rejections_total",
    "Links firmados rechazados por motivo",
    ["reason"],
    registry=_registry,
)

# ------------------------
# Streaming
# ------------------------
_open_streams = Gauge(
    "repo_open_streams",
    "Handles de storage abiertos por entregas en curso",
    registry=_registry,
)

_stream_outcomes_total = Counter(
    "repo_stream_outcomes_total",
    "Cierre de entregas por resultado (completed/aborted/failed)",
    ["outcome"],
    registry=_registry,
)


# -----------------------------------------------------------------------------
# API pública (helpers de registro)
# -----------------------------------------------------------------------------


def record_request_metrics(
    endpoint: str,
    method: str,
    status_code: int,
    latency_seconds: float,
) -> None:
    """Registra métricas HTTP con endpoint normalizado y status agrupado."""
    normalized = _normalize_endpoint(endpoint)
    _requests_total.labels(
        endpoint=normalized,
        method=method,
        status=_status_bucket(status_code),
    ).inc()
    _request_latency.labels(endpoint=normalized, method=method).observe(
        latency_seconds
    )


def record_access_decision(path: str, outcome: str) -> None:
    """path: bearer|capability|none. outcome: allow|deny|not_found|unauthorized."""
    _access_decisions_total.labels(path=path, outcome=outcome).inc()


def record_capability_minted() -> None:
    _capabilities_minted_total.inc()


def record_capability_rejected(reason: str) -> None:
    _capability_rejections_total.labels(reason=reason).inc()


def stream_opened() -> None:
    _open_streams.inc()


def stream_closed(outcome: str) -> None:
    _open_streams.dec()
    _stream_outcomes_total.labels(outcome=outcome).inc()


def open_streams() -> float:
    """Valor actual del gauge (tests / health)."""
    return _registry.get_sample_value("repo_open_streams") or 0.0


# -----------------------------------------------------------------------------
# Helpers internos
# -----------------------------------------------------------------------------

_ID_SEGMENT = re.compile(r"/(research/file|research|repository)/(?!facets(?:/|$))[^/]+")


def _normalize_endpoint(path: str) -> str:
    """Reemplaza ids de documento por `{id}` para evitar cardinalidad alta."""
    return _ID_SEGMENT.sub(r"/\1/{id}", path)


def _status_bucket(code: int) -> str:
    """Agrupa status code para baja cardinalidad."""
    if 200 <= code < 300:
        return "2xx"
    if 400 <= code < 500:
        return "4xx"
    if 500 <= code < 600:
        return "5xx"
    return "other"


# -----------------------------------------------------------------------------
# Exposición del endpoint /metrics
# -----------------------------------------------------------------------------


def get_metrics_response() -> tuple[bytes, str]:
    """Genera el body y content-type para /metrics."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST
