"""
===============================================================================
TARJETA CRC — domain/services.py
===============================================================================

Módulo:
    Puertos de Servicios Externos (Protocols)

Responsabilidades:
    - Definir el contrato del storage de artefactos: abrir un handle de lectura
      por clave y liberarlo explícitamente.

Colaboradores:
    - infrastructure/storage/*: implementaciones (disco local, S3/MinIO).
    - application/usecases/documents/deliver_document: abre el handle.
    - crosscutting/streaming: lee y cierra el handle.

Reglas:
    - SOLO interfaces: nada de implementación.
    - open_stream lanza StorageNotFoundError si los bytes no existen.
===============================================================================
"""

from __future__ import annotations

from typing import Protocol


class ByteStream(Protocol):
    """Handle de lectura bloqueante (archivo, body de S3)."""

    def read(self, size: int = -1) -> bytes: ...

    def close(self) -> None: ...


class FileStoragePort(Protocol):
    """Contrato de storage de artefactos (disco local / S3)."""

    def open_stream(self, key: str) -> ByteStream: ...
