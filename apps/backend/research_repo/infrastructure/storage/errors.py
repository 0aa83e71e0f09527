"""
===============================================================================
CRC CARD — infrastructure/storage/errors.py
===============================================================================

Componente:
  Errores tipados de Storage (disco local / S3 / MinIO)

Responsabilidades:
  - Definir un lenguaje común de fallas del subsistema de almacenamiento.
  - Evitar que excepciones de boto3/botocore u OSError se filtren a capas superiores.
  - Distinguir "bytes ausentes" (404 indistinguible) del resto (500).

Colaboradores:
  - infrastructure/storage/local_file_storage.py (OSError -> StorageError)
  - infrastructure/storage/s3_file_storage.py (ClientError -> StorageError)
  - application/usecases/documents/deliver_document.py
===============================================================================
"""


class StorageError(Exception):
    """Base de errores del subsistema de Storage."""


class StorageConfigurationError(StorageError):
    """Configuración inválida o incompleta del adaptador de storage."""


class StorageNotFoundError(StorageError):
    """Objeto no encontrado (NoSuchKey, archivo inexistente o fuera del root)."""

    def __init__(self, key: str):
        super().__init__("Archivo no encontrado en storage.")
        self.key = key


class StoragePermissionError(StorageError):
    """Credenciales inválidas o falta de permisos (ej: AccessDenied, EACCES)."""

    def __init__(self, message: str = "Permiso denegado en storage."):
        super().__init__(message)


class StorageUnavailableError(StorageError):
    """Storage caído o temporalmente no disponible (timeouts, 503, etc.)."""

    def __init__(self, message: str = "Storage no disponible."):
        super().__init__(message)
