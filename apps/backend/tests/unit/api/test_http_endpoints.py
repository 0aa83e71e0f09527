"""
Name: HTTP Endpoint Tests (delivery, signed links, catalog, publication)

Responsibilities:
  - Wire the FastAPI app against in-memory adapters and a fixed clock
  - Verify status codes, problem+json bodies and delivery headers
  - Verify the signed link round trip (mint -> fetch -> scope)

Notes:
  - Container factories are replaced through app.dependency_overrides.
"""

from urllib.parse import urlsplit

import pytest
from conftest import (
    AUTHOR,
    EXTERNAL_READER,
    NOW,
    STAFF,
    FakeStorage,
    build_document,
)
from fastapi.testclient import TestClient

from research_repo.api.main import app
from research_repo.application.usecases import (
    CreateSignedLinkUseCase,
    DeliverDocumentUseCase,
    DocumentFacetsUseCase,
    GetDocumentUseCase,
    ListDocumentsUseCase,
    UpdateVisibilityUseCase,
)
from research_repo.container import (
    get_clock,
    get_create_signed_link_use_case,
    get_deliver_document_use_case,
    get_document_facets_use_case,
    get_get_document_use_case,
    get_list_documents_use_case,
    get_principal_resolver,
    get_update_visibility_use_case,
)
from research_repo.crosscutting.metrics import open_streams
from research_repo.domain.entities import Role
from research_repo.identity.capabilities import CapabilityMinter
from research_repo.infrastructure.repositories import InMemoryResearchRepository

pytestmark = pytest.mark.api

PDF = b"%PDF-1.7 " + b"x" * 4096


@pytest.fixture
def repo():
    return InMemoryResearchRepository(
        [
            build_document(id="open", visibility="public", category="Biology"),
            build_document(
                id="campus",
                visibility="campus",
                file_name="Niño.pdf",
                allowed_viewers=("someone@example.org",),
            ),
            build_document(id="draft", status="pending"),
            build_document(id="gone", storage_key="/uploads/research/none.pdf"),
        ]
    )


@pytest.fixture
def storage():
    return FakeStorage(
        {
            "/uploads/research/open.pdf": PDF,
            "/uploads/research/campus.pdf": PDF,
        }
    )


@pytest.fixture
def client(repo, storage, resolver, capability_key):
    minter = CapabilityMinter(capability_key)
    overrides = {
        get_clock: lambda: (lambda: NOW),
        get_principal_resolver: lambda: resolver,
        get_deliver_document_use_case: lambda: DeliverDocumentUseCase(
            repository=repo, storage=storage, resolver=resolver
        ),
        get_create_signed_link_use_case: lambda: CreateSignedLinkUseCase(
            repo, minter
        ),
        get_list_documents_use_case: lambda: ListDocumentsUseCase(repo),
        get_document_facets_use_case: lambda: DocumentFacetsUseCase(repo),
        get_get_document_use_case: lambda: GetDocumentUseCase(repo),
        get_update_visibility_use_case: lambda: UpdateVisibilityUseCase(repo),
    }
    app.dependency_overrides.update(overrides)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestDelivery:
    def test_bearer_header_streams_inline(self, client, issue_bearer, storage):
        res = client.get("/research/file/campus", headers=_auth(issue_bearer()))

        assert res.status_code == 200
        assert res.content == PDF
        assert res.headers["content-type"] == "application/pdf"
        assert res.headers["content-disposition"] == (
            "inline; filename*=UTF-8''Ni%C3%B1o.pdf"
        )
        assert res.headers["cache-control"] == "private, max-age=0, no-store"
        assert "frame-ancestors" in res.headers["content-security-policy"]
        assert "x-frame-options" not in res.headers
        assert storage.opened[0].close_calls >= 1

    def test_bearer_in_query_string(self, client, issue_bearer):
        res = client.get(f"/research/file/open?token={issue_bearer(EXTERNAL_READER)}")
        assert res.status_code == 200

    def test_no_credentials_is_problem_json_401(self, client):
        res = client.get("/research/file/open")

        assert res.status_code == 401
        assert res.headers["content-type"].startswith("application/problem+json")
        assert res.headers["www-authenticate"] == "Bearer"
        body = res.json()
        assert body["code"] == "UNAUTHORIZED"
        assert body["instance"] == "/research/file/open"
        assert {"reason": "missing"} in body["errors"]

    def test_expired_bearer_reports_reason(self, client, issue_bearer):
        token = issue_bearer(ttl_seconds=1, now=NOW.replace(hour=10))
        res = client.get("/research/file/open", headers=_auth(token))
        assert res.status_code == 401
        assert {"reason": "expired"} in res.json()["errors"]

    def test_denied_is_403(self, client, issue_bearer, storage):
        res = client.get(
            "/research/file/campus", headers=_auth(issue_bearer(EXTERNAL_READER))
        )
        assert res.status_code == 403
        assert res.json()["code"] == "FORBIDDEN"
        assert storage.opened == []

    @pytest.mark.parametrize("document_id", ["missing", "draft", "gone"])
    def test_not_found_is_indistinguishable(self, client, issue_bearer, document_id):
        res = client.get(
            f"/research/file/{document_id}", headers=_auth(issue_bearer(AUTHOR))
        )
        assert res.status_code == 404
        assert res.json()["detail"] == "Documento no encontrado"

    def test_storage_failure_is_500_without_details(
        self, client, issue_bearer, storage, storage_error
    ):
        storage.fail_with = storage_error
        res = client.get("/research/file/open", headers=_auth(issue_bearer()))
        assert res.status_code == 500
        assert "disk" not in res.text

    def test_stream_gauge_returns_to_baseline(self, client, issue_bearer):
        before = open_streams()
        res = client.get("/research/file/open", headers=_auth(issue_bearer()))
        assert res.status_code == 200
        assert open_streams() == before


class TestSignedLinks:
    def _signed_url(self, client, token, document_id="campus") -> str:
        res = client.get(f"/research/file/{document_id}/signed", headers=_auth(token))
        assert res.status_code == 200
        body = res.json()
        assert body["expiresInSeconds"] == 120
        return body["url"]

    def test_round_trip_without_bearer(self, client, issue_bearer):
        url = self._signed_url(client, issue_bearer())
        parts = urlsplit(url)
        assert parts.path == "/research/file/campus"
        assert parts.query.startswith("sig=")

        res = client.get(f"{parts.path}?{parts.query}")
        assert res.status_code == 200
        assert res.content == PDF

    def test_alias_under_repository(self, client, issue_bearer):
        res = client.get(
            "/repository/file/open/signed", headers=_auth(issue_bearer(EXTERNAL_READER))
        )
        assert res.status_code == 200
        assert "/research/file/open?sig=" in res.json()["url"]

    def test_capability_for_another_document_is_403(self, client, issue_bearer):
        parts = urlsplit(self._signed_url(client, issue_bearer()))
        res = client.get(f"/research/file/open?{parts.query}")
        assert res.status_code == 403

    def test_signed_link_cannot_mint_another(self, client, issue_bearer):
        parts = urlsplit(self._signed_url(client, issue_bearer()))
        res = client.get(f"/research/file/campus/signed?{parts.query}")
        assert res.status_code == 401

    def test_mint_is_denied_like_delivery(self, client, issue_bearer):
        res = client.get(
            "/research/file/campus/signed",
            headers=_auth(issue_bearer(EXTERNAL_READER)),
        )
        assert res.status_code == 403

    def test_signed_route_is_not_embeddable(self, client, issue_bearer):
        res = client.get("/research/file/open/signed", headers=_auth(issue_bearer()))
        assert res.headers["x-frame-options"] == "DENY"
        assert res.headers["referrer-policy"] == "no-referrer"


class TestCatalog:
    def test_list_with_meta(self, client, issue_bearer):
        res = client.get(
            "/repository?sort=year&category=Biology,Biology&limit=5",
            headers=_auth(issue_bearer(EXTERNAL_READER)),
        )

        assert res.status_code == 200
        body = res.json()
        assert [item["id"] for item in body["data"]] == ["open"]
        assert body["meta"] == {
            "total": 1,
            "page": 1,
            "limit": 5,
            "pages": 1,
            "sort": "year",
            "query": "",
            "year": "",
            "category": ["Biology"],
            "genre": [],
            "role": None,
        }

    def test_items_hide_storage_details(self, client, issue_bearer):
        res = client.get("/repository/campus", headers=_auth(issue_bearer()))

        assert res.status_code == 200
        item = res.json()
        assert item["fileName"] == "Niño.pdf"
        assert "storageKey" not in item
        assert "allowedViewers" not in item
        assert "genreTags" in item

    def test_detail_denied(self, client, issue_bearer):
        res = client.get("/repository/campus", headers=_auth(issue_bearer(EXTERNAL_READER)))
        assert res.status_code == 403

    def test_invalid_sort_is_422(self, client, issue_bearer):
        res = client.get("/repository?sort=title", headers=_auth(issue_bearer()))
        assert res.status_code == 422
        assert res.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("limit", [0, 101])
    def test_limit_out_of_range_is_422(self, client, issue_bearer, limit):
        res = client.get(f"/repository?limit={limit}", headers=_auth(issue_bearer()))
        assert res.status_code == 422

    def test_catalog_requires_bearer(self, client):
        assert client.get("/repository").status_code == 401

    def test_facets(self, client, issue_bearer):
        res = client.get("/repository/facets", headers=_auth(issue_bearer()))

        assert res.status_code == 200
        body = res.json()
        assert {"name": "Biology", "count": 1} in body["categories"]
        assert body["genreTags"] == [{"name": "thesis", "count": 3}]


class TestPublication:
    def _put(self, client, token, payload, document_id="open"):
        return client.put(
            f"/research/{document_id}/visibility", json=payload, headers=_auth(token)
        )

    def test_student_is_forbidden(self, client, issue_bearer):
        res = self._put(client, issue_bearer(), {"visibility": "campus"})
        assert res.status_code == 403

    def test_staff_can_restrict(self, client, issue_bearer, repo):
        res = self._put(
            client,
            issue_bearer(STAFF, Role.STAFF),
            {"visibility": "private", "allowedViewers": "Guest@Example.org"},
        )

        assert res.status_code == 200
        assert res.json()["visibility"] == "private"
        assert repo.get_document("open").allowed_viewers == ("guest@example.org",)

    def test_embargo_without_date_is_422(self, client, issue_bearer):
        res = self._put(
            client, issue_bearer(STAFF, Role.ADMIN), {"visibility": "embargo"}
        )
        assert res.status_code == 422

    def test_missing_document_is_404(self, client, issue_bearer):
        res = self._put(
            client,
            issue_bearer(STAFF, Role.ADMIN),
            {"visibility": "public"},
            document_id="missing",
        )
        assert res.status_code == 404

    def test_token_in_query_is_not_accepted_on_writes(self, client, issue_bearer):
        token = issue_bearer(STAFF, Role.ADMIN)
        res = client.put(
            f"/research/open/visibility?token={token}", json={"visibility": "public"}
        )
        assert res.status_code == 401


class TestOperational:
    def test_healthz(self, client):
        res = client.get("/healthz")
        assert res.status_code == 200
        assert res.json()["ok"] is True

    def test_metrics(self, client):
        res = client.get("/metrics")
        assert res.status_code == 200
        assert "repo_open_streams" in res.text

    def test_request_id_is_echoed(self, client):
        res = client.get("/healthz", headers={"X-Request-Id": "req-123"})
        assert res.headers["x-request-id"] == "req-123"

    def test_request_id_is_generated(self, client):
        res = client.get("/healthz")
        assert res.headers["x-request-id"]

    def test_every_access_error_has_a_handler(self):
        from research_repo.crosscutting import exceptions

        declared = {
            obj
            for obj in vars(exceptions).values()
            if isinstance(obj, type) and issubclass(obj, exceptions.AccessError)
        }
        assert declared == {
            exceptions.AccessError,
            exceptions.AuthError,
            exceptions.AuthorizationError,
            exceptions.DatabaseError,
        }
        assert declared <= set(app.exception_handlers)

    def test_error_codes_are_the_ones_the_api_emits(self):
        from research_repo.crosscutting.error_responses import ErrorCode

        assert {code.value for code in ErrorCode} == {
            "VALIDATION_ERROR",
            "UNAUTHORIZED",
            "FORBIDDEN",
            "NOT_FOUND",
            "INTERNAL_ERROR",
            "DATABASE_ERROR",
            "STORAGE_ERROR",
        }


class TestProtectedMetrics:
    @pytest.fixture
    def require_auth(self, monkeypatch):
        from research_repo.crosscutting.config import Settings
        from research_repo.identity import dual_auth

        settings = Settings(
            app_env="test",
            jwt_secret="bearer-secret",
            signed_url_secret="capability-secret",
            metrics_require_auth=True,
        )
        monkeypatch.setattr(dual_auth, "get_settings", lambda: settings)

    def test_anonymous_is_401(self, client, require_auth):
        assert client.get("/metrics").status_code == 401

    def test_reader_is_403(self, client, require_auth, issue_bearer):
        res = client.get("/metrics", headers=_auth(issue_bearer()))
        assert res.status_code == 403

    def test_staff_is_allowed(self, client, require_auth, issue_bearer):
        res = client.get("/metrics", headers=_auth(issue_bearer(STAFF, Role.STAFF)))
        assert res.status_code == 200
