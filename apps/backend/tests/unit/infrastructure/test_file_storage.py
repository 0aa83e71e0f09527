"""
Name: File Storage Adapter Tests

Responsibilities:
  - Local: stored-path formats resolve under storage_root; escapes are 404
  - S3: SDK errors map to typed storage errors; body is the handle
"""

from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from research_repo.infrastructure.storage import (
    LocalFileStorage,
    S3Config,
    S3FileStorageAdapter,
    StorageConfigurationError,
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageUnavailableError,
    resolve_stored_path,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def root(tmp_path):
    research = tmp_path / "uploads" / "research"
    research.mkdir(parents=True)
    (research / "a.pdf").write_bytes(b"%PDF-a")
    return tmp_path


class TestResolveStoredPath:
    @pytest.mark.parametrize(
        "stored",
        [
            "/uploads/research/a.pdf",
            "uploads/research/a.pdf",
            "./uploads/research/a.pdf",
            "a.pdf",
            "uploads\\research\\a.pdf",
        ],
    )
    def test_historical_formats(self, root, stored):
        expected = (root / "uploads" / "research" / "a.pdf").resolve()
        assert resolve_stored_path(stored, root) == expected

    def test_absolute_inside_root_is_kept(self, root):
        inside = root / "uploads" / "research" / "a.pdf"
        assert resolve_stored_path(str(inside), root) == inside.resolve()

    def test_absolute_outside_root_is_rebased(self, root):
        resolved = resolve_stored_path("/srv/elsewhere/a.pdf", root)
        assert resolved == (root / "uploads" / "research" / "a.pdf").resolve()

    @pytest.mark.parametrize(
        "stored",
        ["", "   ", None, "/uploads/../../etc/passwd", "../../../etc/passwd"],
    )
    def test_empty_or_escaping_paths(self, root, stored):
        assert resolve_stored_path(stored, root) is None


class TestLocalFileStorage:
    def test_requires_root(self):
        with pytest.raises(StorageConfigurationError):
            LocalFileStorage("  ")

    def test_open_stream_reads_bytes(self, root):
        with LocalFileStorage(root).open_stream("/uploads/research/a.pdf") as fh:
            assert fh.read() == b"%PDF-a"

    def test_missing_file(self, root):
        with pytest.raises(StorageNotFoundError):
            LocalFileStorage(root).open_stream("uploads/research/missing.pdf")

    def test_escape_looks_like_missing(self, root):
        with pytest.raises(StorageNotFoundError):
            LocalFileStorage(root).open_stream("uploads/../../secret.pdf")

    def test_directory_is_not_found(self, root):
        with pytest.raises(StorageNotFoundError):
            LocalFileStorage(root).open_stream("/uploads/research")


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "GetObject")


class TestS3FileStorageAdapter:
    def _adapter(self, client):
        config = S3Config(bucket="research", access_key="ak", secret_key="sk")
        return S3FileStorageAdapter(config, client=client)

    def test_requires_bucket_and_credentials(self):
        with pytest.raises(StorageConfigurationError):
            S3FileStorageAdapter(
                S3Config(bucket="", access_key="ak", secret_key="sk"), client=Mock()
            )
        with pytest.raises(StorageConfigurationError):
            S3FileStorageAdapter(
                S3Config(bucket="b", access_key="", secret_key="sk"), client=Mock()
            )

    def test_returns_body_and_strips_leading_slash(self):
        body = Mock()
        client = Mock()
        client.get_object.return_value = {"Body": body}

        handle = self._adapter(client).open_stream("/uploads/research/a.pdf")

        assert handle is body
        client.get_object.assert_called_once_with(
            Bucket="research", Key="uploads/research/a.pdf"
        )

    def test_blank_key_is_not_found(self):
        client = Mock()
        with pytest.raises(StorageNotFoundError):
            self._adapter(client).open_stream(" / ")
        client.get_object.assert_not_called()

    @pytest.mark.parametrize(
        "code, expected",
        [
            ("NoSuchKey", StorageNotFoundError),
            ("AccessDenied", StoragePermissionError),
            ("SlowDown", StorageUnavailableError),
            ("InternalError", StorageError),
        ],
    )
    def test_client_errors_are_mapped(self, code, expected):
        client = Mock()
        client.get_object.side_effect = _client_error(code)
        with pytest.raises(expected):
            self._adapter(client).open_stream("a.pdf")

    def test_connection_errors_are_unavailable(self):
        client = Mock()
        client.get_object.side_effect = EndpointConnectionError(
            endpoint_url="http://minio:9000"
        )
        with pytest.raises(StorageUnavailableError):
            self._adapter(client).open_stream("a.pdf")
