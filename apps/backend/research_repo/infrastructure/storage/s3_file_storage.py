"""
===============================================================================
CRC CARD — infrastructure/storage/s3_file_storage.py
===============================================================================

Clase:
  S3FileStorageAdapter (Adapter / Facade)

Responsabilidades:
  - Implementar FileStoragePort contra S3-compatible (AWS S3 / MinIO).
  - Encapsular boto3 (NO filtrar ClientError).
  - Abrir el body de un objeto como handle de lectura (streaming por chunks,
    sin cargar el archivo completo en memoria).

Colaboradores:
  - domain.services.FileStoragePort (port)
  - infrastructure.storage.errors (errores tipados)
  - boto3/botocore (SDK, oculto por este adapter)

Decisiones de diseño:
  - Validación fail-fast de config.
  - Lazy import de boto3 para mejorar cold start.
  - Mapeo explícito de errores (ClientError -> StorageError).
  - No se generan URLs presignadas: el acceso a bytes pasa siempre por el
    gate de entrega.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from ...crosscutting.logger import logger
from ...domain.services import ByteStream
from .errors import (
    StorageConfigurationError,
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageUnavailableError,
)


@dataclass(frozen=True)
class S3Config:
    """
    Configuración del storage S3-compatible.

    Nota:
      - endpoint_url permite MinIO u otros S3 compatibles.
      - region puede omitirse en MinIO.
    """

    bucket: str
    access_key: str
    secret_key: str
    region: Optional[str] = None
    endpoint_url: Optional[str] = None


class S3FileStorageAdapter:
    """Adapter S3-compatible (solo lectura)."""

    def __init__(self, config: S3Config, *, client=None) -> None:
        self._config = config
        self._bucket = (config.bucket or "").strip()

        # ---------------------------------------------------------------------
        # Validaciones (fail-fast).
        # ---------------------------------------------------------------------
        if not self._bucket:
            raise StorageConfigurationError("S3 bucket es requerido.")
        if (
            not (config.access_key or "").strip()
            or not (config.secret_key or "").strip()
        ):
            raise StorageConfigurationError(
                "Credenciales S3 requeridas (access_key/secret_key)."
            )

        # ---------------------------------------------------------------------
        # Cliente: inyectable para tests (mocks).
        # ---------------------------------------------------------------------
        if client is not None:
            self._client = client
            return

        # Lazy import para reducir costo de arranque.
        import boto3

        self._client = boto3.client(
            "s3",
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region or None,
            endpoint_url=config.endpoint_url or None,
        )

    def open_stream(self, key: str) -> ByteStream:
        """
        Devuelve el StreamingBody del objeto.

        El caller es dueño del handle: debe cerrarlo (ver crosscutting.streaming).
        """
        normalized = (key or "").strip().lstrip("/")
        if not normalized:
            raise StorageNotFoundError(key)

        try:
            response = self._client.get_object(Bucket=self._bucket, Key=normalized)
        except Exception as exc:
            raise self._map_storage_error(exc, key=normalized, action="open") from exc
        return response["Body"]

    # =========================================================================
    # Helpers privados
    # =========================================================================

    def _map_storage_error(
        self, exc: Exception, *, key: str, action: str
    ) -> StorageError:
        """
        Traduce errores del SDK a errores del subsistema.

        Regla:
          - Infra (boto3) queda encapsulada.
          - Capas superiores trabajan con StorageError.
        """
        if isinstance(
            exc, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)
        ):
            logger.warning("Storage unavailable", extra={"action": action})
            return StorageUnavailableError("Storage no disponible (timeout/conexión).")

        if isinstance(exc, ClientError):
            code = str((exc.response.get("Error") or {}).get("Code") or "")

            if code in {"NoSuchKey", "404", "NotFound"}:
                return StorageNotFoundError(key)

            if code in {"AccessDenied", "InvalidAccessKeyId", "SignatureDoesNotMatch"}:
                return StoragePermissionError(
                    "Permiso/credenciales inválidas en storage."
                )

            if code in {"SlowDown", "RequestTimeout", "ServiceUnavailable"}:
                return StorageUnavailableError("Storage temporalmente no disponible.")

            logger.exception(
                "Storage ClientError",
                extra={"action": action, "code": code},
            )
            return StorageError(f"Fallo de storage ({action}). code={code}")

        logger.exception("Storage error", extra={"action": action})
        return StorageError(f"Fallo de storage ({action}).")
