"""
===============================================================================
CRC CARD — infrastructure/storage/local_file_storage.py
===============================================================================

Clase:
  LocalFileStorage (Adapter)

Responsabilidades:
  - Implementar FileStoragePort contra el disco local.
  - Resolver la ruta guardada en el documento (formatos históricos) a una
    ruta absoluta dentro de storage_root.
  - Rechazar rutas que escapan del root (se tratan como bytes ausentes).
  - Traducir OSError a errores tipados de storage.

Colaboradores:
  - domain.services.FileStoragePort (port)
  - infrastructure.storage.errors

Formatos aceptados (storage_root = directorio que contiene uploads/):
  "/uploads/research/a.pdf"  -> <root>/uploads/research/a.pdf
  "uploads/research/a.pdf"   -> <root>/uploads/research/a.pdf
  "./uploads/research/a.pdf" -> se quita "./" y se re-aplican las reglas
  "/abs/otro/a.pdf"          -> la misma ruta si vive dentro del root,
                                si no <root>/uploads/research/a.pdf
  "a.pdf"                    -> <root>/uploads/research/a.pdf
===============================================================================
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import BinaryIO, Optional

from ...crosscutting.logger import logger
from .errors import (
    StorageConfigurationError,
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
)

UPLOADS_DIR = "uploads"
RESEARCH_DIR = "research"


def _is_absolute(path: str) -> bool:
    return path.startswith("/") or bool(PureWindowsPath(path).drive)


def _within(candidate: Path, root: Path) -> bool:
    try:
        candidate.relative_to(root)
    except ValueError:
        return False
    return True


def resolve_stored_path(stored: str | None, root: Path) -> Optional[Path]:
    """Ruta absoluta del artefacto, o None si es vacía o escapa del root."""
    p = str(stored or "").replace("\\", "/").strip()
    while p.startswith("./"):
        p = p[2:]
    if not p:
        return None

    base = root.resolve()
    research_dir = base / UPLOADS_DIR / RESEARCH_DIR

    if p.startswith(f"/{UPLOADS_DIR}/"):
        candidate = base / p.lstrip("/")
    elif p.startswith(f"{UPLOADS_DIR}/"):
        candidate = base / p
    elif _is_absolute(p):
        direct = Path(p).resolve()
        if _within(direct, base) and direct.is_file():
            candidate = direct
        else:
            candidate = research_dir / PurePosixPath(p).name
    else:
        candidate = research_dir / p

    resolved = candidate.resolve()
    if not _within(resolved, base):
        return None
    return resolved


class LocalFileStorage:
    """FileStoragePort sobre disco local."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        if not str(root or "").strip():
            raise StorageConfigurationError("storage_root es requerido.")
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def open_stream(self, key: str) -> BinaryIO:
        path = resolve_stored_path(key, self._root)
        if path is None:
            # R: ruta vacía o fuera del root; mismo 404 que un archivo ausente.
            logger.warning(
                "ruta de artefacto rechazada",
                extra={"storage_root": str(self._root)},
            )
            raise StorageNotFoundError(key)

        try:
            return open(path, "rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise StorageNotFoundError(key) from exc
        except PermissionError as exc:
            raise StoragePermissionError() from exc
        except OSError as exc:
            logger.exception("Storage error", extra={"action": "open"})
            raise StorageError("Fallo de storage (open).") from exc
