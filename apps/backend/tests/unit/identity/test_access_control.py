"""
Name: Visibility Evaluator and Listing Predicate Tests

Responsibilities:
  - can_access precedence (approval, provenance, ownership, roles, table)
  - Embargo boundary and allow-list matching
  - Unknown visibility falls back to campus
  - build_access_filter agrees with can_access over a grid
"""

from datetime import timedelta

import pytest
from conftest import (
    AUTHOR,
    CAMPUS_READER,
    EXTERNAL_READER,
    NOW,
    STAFF,
    build_document,
    build_principal,
)

from research_repo.domain.access_rules import FALLBACK_VISIBILITY, rule_for
from research_repo.domain.entities import Provenance, Role, Visibility
from research_repo.identity.access_control import build_access_filter, can_access

pytestmark = pytest.mark.unit


class TestCanAccess:
    def test_public_is_open_to_any_bearer(self):
        doc = build_document(visibility="public")
        assert can_access(doc, build_principal(EXTERNAL_READER), NOW) is True

    def test_unapproved_is_denied_even_to_owner_and_admin(self):
        doc = build_document(status="pending")
        assert can_access(doc, build_principal(AUTHOR), NOW) is False
        assert can_access(doc, build_principal(STAFF, Role.ADMIN), NOW) is False

    def test_capability_principal_never_feeds_the_evaluator(self):
        doc = build_document(visibility="public")
        principal = build_principal(AUTHOR, provenance=Provenance.CAPABILITY)
        assert can_access(doc, principal, NOW) is False

    def test_campus_requires_affiliation(self):
        doc = build_document(visibility="campus")
        assert can_access(doc, build_principal(CAMPUS_READER), NOW) is True
        assert can_access(doc, build_principal(EXTERNAL_READER), NOW) is False

    def test_operational_roles_bypass_visibility(self):
        doc = build_document(visibility="private", allowed_viewers=())
        staff = build_principal("ops@example.org", Role.STAFF, campus=False)
        assert can_access(doc, staff, NOW) is True

    def test_owner_wins_over_visibility(self):
        doc = build_document(
            visibility="private",
            author="Owner@Gmail.com ",
            allowed_viewers=("someone@else.org",),
        )
        assert can_access(doc, build_principal("owner@gmail.com"), NOW) is True

    def test_co_author_is_not_an_owner(self):
        doc = build_document(
            visibility="private",
            co_authors=(EXTERNAL_READER,),
            allowed_viewers=("someone@else.org",),
        )
        assert can_access(doc, build_principal(EXTERNAL_READER), NOW) is False

    def test_embargo_denied_until_elapsed(self):
        doc = build_document(
            visibility="embargo", embargo_until=NOW + timedelta(seconds=1)
        )
        assert can_access(doc, build_principal(CAMPUS_READER), NOW) is False

    def test_embargo_opens_exactly_at_release_instant(self):
        doc = build_document(visibility="embargo", embargo_until=NOW)
        assert can_access(doc, build_principal(CAMPUS_READER), NOW) is True

    def test_elapsed_embargo_still_requires_campus(self):
        doc = build_document(
            visibility="embargo", embargo_until=NOW - timedelta(days=30)
        )
        assert can_access(doc, build_principal(EXTERNAL_READER), NOW) is False

    def test_embargo_without_date_stays_closed(self):
        doc = build_document(visibility="embargo", embargo_until=None)
        assert can_access(doc, build_principal(CAMPUS_READER), NOW) is False

    def test_naive_embargo_date_is_read_as_utc(self):
        doc = build_document(
            visibility="embargo",
            embargo_until=(NOW - timedelta(minutes=1)).replace(tzinfo=None),
        )
        assert can_access(doc, build_principal(CAMPUS_READER), NOW) is True

    def test_private_allows_listed_viewer_case_insensitively(self):
        doc = build_document(
            visibility="private", allowed_viewers=(" Reader@Gmail.com",)
        )
        assert can_access(doc, build_principal(EXTERNAL_READER), NOW) is True

    def test_private_denies_unlisted_campus_reader(self):
        doc = build_document(visibility="private", allowed_viewers=("x@y.org",))
        assert can_access(doc, build_principal(CAMPUS_READER), NOW) is False

    @pytest.mark.parametrize("raw", [None, "", "secret", " CAMPUS "])
    def test_unknown_or_messy_visibility_uses_campus_rule(self, raw):
        doc = build_document(visibility=raw)
        assert can_access(doc, build_principal(CAMPUS_READER), NOW) is True
        assert can_access(doc, build_principal(EXTERNAL_READER), NOW) is False


class TestRuleTable:
    def test_fallback_is_campus(self):
        assert FALLBACK_VISIBILITY is Visibility.CAMPUS
        assert rule_for(None) == rule_for(Visibility.CAMPUS)

    def test_public_has_no_conditions(self):
        assert rule_for(Visibility.PUBLIC) == frozenset()


# ----------------------------------------------------------------------------
# Listing predicate parity
# ----------------------------------------------------------------------------

_DOCUMENTS = [
    build_document(id="public", visibility="public"),
    build_document(id="campus", visibility="campus"),
    build_document(
        id="embargo-open",
        visibility="embargo",
        embargo_until=NOW - timedelta(days=1),
    ),
    build_document(
        id="embargo-closed",
        visibility="embargo",
        embargo_until=NOW + timedelta(days=1),
    ),
    build_document(id="embargo-undated", visibility="embargo"),
    build_document(
        id="private-listed",
        visibility="private",
        allowed_viewers=(EXTERNAL_READER,),
    ),
    build_document(
        id="private-unlisted",
        visibility="private",
        allowed_viewers=("nobody@example.org",),
    ),
    build_document(id="bogus", visibility="bogus"),
    build_document(id="missing", visibility=None),
    build_document(id="pending", status="pending", visibility="public"),
    build_document(
        id="owned-private",
        visibility="private",
        author=EXTERNAL_READER,
        allowed_viewers=("nobody@example.org",),
    ),
]

_PRINCIPALS = [
    build_principal(CAMPUS_READER),
    build_principal(EXTERNAL_READER, Role.FACULTY),
    build_principal("ops@example.org", Role.STAFF, campus=False),
    build_principal(STAFF, Role.ADMIN),
    build_principal(AUTHOR, Role.FACULTY),
    build_principal(EXTERNAL_READER, provenance=Provenance.CAPABILITY),
]


def _principal_id(p) -> str:
    return f"{p.identity}-{p.role.value}-{p.provenance.value}"


@pytest.mark.parametrize("principal", _PRINCIPALS, ids=_principal_id)
def test_filter_matches_evaluator_for_every_document(principal):
    access = build_access_filter(principal, NOW)
    for doc in _DOCUMENTS:
        assert access.matches_with_ownership(doc) == can_access(
            doc, principal, NOW
        ), doc.id


def test_capability_filter_denies_everything():
    principal = build_principal(AUTHOR, provenance=Provenance.CAPABILITY)
    access = build_access_filter(principal, NOW)
    assert access.denies_all is True
    assert not any(access.matches_with_ownership(d) for d in _DOCUMENTS)


def test_operational_filter_is_unrestricted_but_approved_only():
    access = build_access_filter(build_principal(STAFF, Role.STAFF), NOW)
    assert access.unrestricted is True
    assert access.matches(build_document(status="pending")) is False


def test_external_reader_filter_drops_campus_rows():
    access = build_access_filter(build_principal(EXTERNAL_READER), NOW)
    kept = {c.visibility for c in access.clauses}
    assert kept == {Visibility.PUBLIC, Visibility.PRIVATE}
