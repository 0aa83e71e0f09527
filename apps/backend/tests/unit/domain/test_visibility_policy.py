"""
Name: Visibility Policy Tests

Responsibilities:
  - Validate visibility changes (class, embargo date, allow-list)
  - Normalize allow-lists (lowercase, dedupe, csv or list)
"""

from datetime import datetime, timezone

import pytest

from research_repo.domain.entities import Visibility
from research_repo.domain.visibility_policy import (
    VisibilityPolicyError,
    build_visibility_settings,
    normalize_allowed_viewers,
)

pytestmark = pytest.mark.unit


class TestNormalizeAllowedViewers:
    def test_csv_is_split_lowercased_and_deduplicated(self):
        raw = " A@x.edu, b@Y.com ,a@X.EDU,,"
        assert normalize_allowed_viewers(raw) == ["a@x.edu", "b@y.com"]

    def test_list_input(self):
        assert normalize_allowed_viewers(["Z@z.org", "z@z.org"]) == ["z@z.org"]

    def test_entries_without_at_sign_are_dropped(self):
        assert normalize_allowed_viewers(["not-an-email", 42, None]) == []

    def test_none_and_unsupported_types(self):
        assert normalize_allowed_viewers(None) == []
        assert normalize_allowed_viewers({"a@x.edu": 1}) == []


class TestBuildVisibilitySettings:
    def test_unknown_class_is_rejected(self):
        with pytest.raises(VisibilityPolicyError):
            build_visibility_settings("secret")

    def test_public_clears_embargo_and_viewers(self):
        settings = build_visibility_settings(
            "PUBLIC",
            embargo_until="2030-01-01T00:00:00Z",
            allowed_viewers=["a@x.edu"],
        )
        assert settings.visibility is Visibility.PUBLIC
        assert settings.embargo_until is None
        assert settings.allowed_viewers == ()

    def test_embargo_requires_date(self):
        with pytest.raises(VisibilityPolicyError):
            build_visibility_settings("embargo")

    def test_embargo_rejects_unparseable_date(self):
        with pytest.raises(VisibilityPolicyError):
            build_visibility_settings("embargo", embargo_until="next tuesday")

    def test_embargo_parses_zulu_and_clears_viewers(self):
        settings = build_visibility_settings(
            "embargo",
            embargo_until="2030-06-01T08:00:00Z",
            allowed_viewers="a@x.edu",
        )
        assert settings.embargo_until == datetime(2030, 6, 1, 8, tzinfo=timezone.utc)
        assert settings.allowed_viewers == ()

    def test_private_requires_a_viewer(self):
        with pytest.raises(VisibilityPolicyError):
            build_visibility_settings("private", allowed_viewers=" , ")

    def test_private_keeps_normalized_viewers(self):
        settings = build_visibility_settings(
            "private", allowed_viewers="B@y.com, b@y.com"
        )
        assert settings.allowed_viewers == ("b@y.com",)
        assert settings.embargo_until is None
