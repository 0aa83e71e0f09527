"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure test environment (APP_ENV=test, no .env file)
  - Provide factories for documents and principals
  - Provide signing keys, resolver and token helpers
  - Provide a fake byte storage that records open/close

Collaborators:
  - pytest: Test framework
  - research_repo.domain / research_repo.identity

Notes:
  - Fixtures are auto-discovered by pytest
  - NOW is the fixed clock every test decides against
"""

import io
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("APP_ENV", "test")

from research_repo.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from research_repo.domain.entities import (  # noqa: E402
    Principal,
    Provenance,
    ResearchDocument,
    Role,
)
from research_repo.identity.bearer import create_access_token  # noqa: E402
from research_repo.identity.keys import build_signing_keys  # noqa: E402
from research_repo.identity.principal_resolver import PrincipalResolver  # noqa: E402
from research_repo.infrastructure.storage.errors import (  # noqa: E402
    StorageError,
    StorageNotFoundError,
)

NOW = datetime(2026, 3, 2, 12, 0, 0, tzinfo=timezone.utc)
DOMAIN = "g.msuiit.edu.ph"

CAMPUS_READER = f"reader@{DOMAIN}"
EXTERNAL_READER = "reader@gmail.com"
AUTHOR = f"author@{DOMAIN}"
STAFF = f"librarian@{DOMAIN}"

BEARER_SECRET = "test-bearer-secret-0123456789abcdef"
CAPABILITY_SECRET = "test-capability-secret-0123456789abcdef"


# ============================================================================
# Domain Entity Fixtures
# ============================================================================


def build_document(**overrides) -> ResearchDocument:
    """R: Approved public PDF owned by AUTHOR unless overridden."""
    doc_id = overrides.pop("id", "doc-1")
    fields = dict(
        id=doc_id,
        title="Coastal Erosion in Northern Mindanao",
        status="approved",
        visibility="public",
        author=AUTHOR,
        uploaded_by=AUTHOR,
        uploader_role="faculty",
        year="2024",
        category="Engineering",
        genre_tags=("thesis",),
        storage_key=f"/uploads/research/{doc_id}.pdf",
        file_name=f"{doc_id}.pdf",
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return ResearchDocument(**fields)


def build_principal(
    identity: str = CAMPUS_READER,
    role: Role = Role.STUDENT,
    *,
    campus: bool | None = None,
    provenance: Provenance = Provenance.BEARER,
) -> Principal:
    if campus is None:
        campus = identity.endswith(f"@{DOMAIN}")
    return Principal(
        identity=identity,
        role=role,
        campus_affiliated=campus,
        provenance=provenance,
    )


@pytest.fixture
def make_document() -> Callable[..., ResearchDocument]:
    return build_document


@pytest.fixture
def make_principal() -> Callable[..., Principal]:
    return build_principal


# ============================================================================
# Identity Fixtures
# ============================================================================


@pytest.fixture
def signing_keys():
    return build_signing_keys(
        jwt_secret=BEARER_SECRET, signed_url_secret=CAPABILITY_SECRET
    )


@pytest.fixture
def bearer_key(signing_keys):
    return signing_keys[0]


@pytest.fixture
def capability_key(signing_keys):
    return signing_keys[1]


@pytest.fixture
def resolver(bearer_key, capability_key) -> PrincipalResolver:
    return PrincipalResolver(bearer_key, capability_key, institutional_domain=DOMAIN)


@pytest.fixture
def issue_bearer(bearer_key) -> Callable[..., str]:
    """R: Access token factory (valid at NOW by default)."""

    def _issue(
        email: str = CAMPUS_READER,
        role: Role = Role.STUDENT,
        *,
        now: datetime = NOW,
        ttl_seconds: int = 3600,
    ) -> str:
        token, _ = create_access_token(
            subject=f"user:{email}",
            email=email,
            role=role,
            key=bearer_key,
            ttl_seconds=ttl_seconds,
            now=now,
        )
        return token

    return _issue


# ============================================================================
# Storage Fakes
# ============================================================================


class FakeHandle(io.BytesIO):
    """BytesIO that remembers it was closed (BytesIO.closed is reset-safe)."""

    def __init__(self, data: bytes) -> None:
        super().__init__(data)
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class FakeStorage:
    """In-memory FileStoragePort; records every handle it opens."""

    def __init__(self, blobs: Dict[str, bytes] | None = None) -> None:
        self.blobs = dict(blobs or {})
        self.opened: List[FakeHandle] = []
        self.fail_with: Exception | None = None

    def open_stream(self, key: str) -> FakeHandle:
        if self.fail_with is not None:
            raise self.fail_with
        if key not in self.blobs:
            raise StorageNotFoundError(key)
        handle = FakeHandle(self.blobs[key])
        self.opened.append(handle)
        return handle


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def storage_error() -> StorageError:
    return StorageError("disk on fire")
