# apps/backend/research_repo/crosscutting/streaming.py
"""
===============================================================================
MÓDULO: Streaming de artefactos con liberación garantizada del handle
===============================================================================

Objetivo
--------
Enviar los bytes de un documento por chunks sin bloquear el event loop y
cerrar SIEMPRE el handle de storage, pase lo que pase:
- fin normal del archivo
- error de lectura a mitad del stream
- cliente que corta la conexión (se consulta request.is_disconnected())
- cancelación de la tarea por el server

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  ClosingStream + iter_stream() + inline_file_response()

Responsabilidades:
  - Envolver el handle con un close() idempotente (el primero gana)
  - Leer en threadpool (lecturas bloqueantes de disco / S3)
  - Armar la StreamingResponse con headers de vista inline y no-cache
  - Mantener el gauge de streams abiertos

Colaboradores:
  - domain.services.ByteStream
  - crosscutting.metrics (stream_opened / stream_closed)
  - interfaces/api/http/routers/research.py
===============================================================================
"""

from __future__ import annotations

import asyncio
import threading
from typing import AsyncIterator, Optional
from urllib.parse import quote

from fastapi import Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool

from ..domain.entities import DEFAULT_CONTENT_TYPE
from ..domain.services import ByteStream
from .logger import logger
from .metrics import stream_closed, stream_opened

DEFAULT_CHUNK_BYTES = 64 * 1024
DEFAULT_FILE_NAME = "document.pdf"

INLINE_CACHE_CONTROL = "private, max-age=0, no-store"

OUTCOME_COMPLETED = "completed"
OUTCOME_ABORTED = "aborted"
OUTCOME_FAILED = "failed"
OUTCOME_RELEASED = "released"


class ClosingStream:
    """
    Handle de storage con cierre idempotente.

    close() puede llamarse desde el generador, desde la background task de la
    respuesta o desde un error previo a los headers: solo el primero cierra.
    """

    def __init__(self, handle: ByteStream) -> None:
        self._handle = handle
        self._lock = threading.Lock()
        self._closed = False
        self.outcome: Optional[str] = None
        stream_opened()

    @property
    def closed(self) -> bool:
        return self._closed

    def read(self, size: int) -> bytes:
        return self._handle.read(size)

    def close(self, outcome: str = OUTCOME_RELEASED) -> bool:
        with self._lock:
            if self._closed:
                return False
            self._closed = True
            self.outcome = outcome

        try:
            self._handle.close()
        except Exception as exc:
            logger.warning(
                "error al cerrar handle de storage",
                extra={"error": str(exc), "outcome": outcome},
            )
        finally:
            stream_closed(outcome)
        return True


async def iter_stream(
    stream: ClosingStream,
    *,
    chunk_size: int = DEFAULT_CHUNK_BYTES,
    request: Request | None = None,
) -> AsyncIterator[bytes]:
    """Generador de chunks; el finally cierra el handle en todos los caminos."""
    outcome = OUTCOME_COMPLETED
    try:
        while True:
            if request is not None and await request.is_disconnected():
                outcome = OUTCOME_ABORTED
                break
            chunk = await run_in_threadpool(stream.read, chunk_size)
            if not chunk:
                break
            yield chunk
    except (asyncio.CancelledError, GeneratorExit):
        outcome = OUTCOME_ABORTED
        raise
    except Exception:
        # R: los headers ya salieron; el server corta la conexión.
        outcome = OUTCOME_FAILED
        logger.exception("fallo leyendo artefacto durante el stream")
        raise
    finally:
        stream.close(outcome)


def content_disposition_inline(file_name: str | None) -> str:
    name = (file_name or "").strip() or DEFAULT_FILE_NAME
    return f"inline; filename*=UTF-8''{quote(name, safe='')}"


def inline_file_response(
    stream: ClosingStream,
    *,
    file_name: str | None,
    content_type: str | None,
    request: Request | None = None,
    chunk_size: int = DEFAULT_CHUNK_BYTES,
) -> StreamingResponse:
    headers = {
        "Content-Disposition": content_disposition_inline(file_name),
        "Cache-Control": INLINE_CACHE_CONTROL,
        "X-Content-Type-Options": "nosniff",
    }
    return StreamingResponse(
        iter_stream(stream, chunk_size=chunk_size, request=request),
        media_type=(content_type or "").strip() or DEFAULT_CONTENT_TYPE,
        headers=headers,
        background=BackgroundTask(stream.close, OUTCOME_RELEASED),
    )
