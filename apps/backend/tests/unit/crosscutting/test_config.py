"""
Name: Settings Validation Tests

Responsibilities:
  - Two distinct signing secrets
  - Bounded capability TTL and clock skew
  - Production hardening rules
"""

import pytest
from pydantic import ValidationError

from research_repo.crosscutting.config import Settings

pytestmark = pytest.mark.unit

STRONG_A = "a" * 40
STRONG_B = "b" * 40


def _settings(**overrides) -> Settings:
    values = dict(
        app_env="test",
        jwt_secret="bearer-secret",
        signed_url_secret="capability-secret",
    )
    values.update(overrides)
    return Settings(**values)


def test_defaults_are_usable_outside_production():
    settings = _settings()
    assert settings.capability_ttl_seconds == 120
    assert settings.clock_skew_seconds == 10
    assert settings.default_page_size == 20
    assert settings.max_page_size == 100


def test_equal_secrets_are_rejected():
    with pytest.raises(ValidationError):
        _settings(jwt_secret="same", signed_url_secret=" same")


@pytest.mark.parametrize("ttl", [0, 601])
def test_capability_ttl_is_bounded(ttl):
    with pytest.raises(ValidationError):
        _settings(capability_ttl_seconds=ttl)


def test_skew_is_bounded():
    with pytest.raises(ValidationError):
        _settings(clock_skew_seconds=-1)


def test_institutional_domain_is_normalized():
    assert _settings(institutional_domain=" @G.MSUIIT.edu.ph ").institutional_domain == (
        "g.msuiit.edu.ph"
    )
    with pytest.raises(ValidationError):
        _settings(institutional_domain="user@x.edu")


def test_unknown_storage_backend():
    with pytest.raises(ValidationError):
        _settings(storage_backend="ftp")


def test_default_page_size_within_max():
    with pytest.raises(ValidationError):
        _settings(default_page_size=200, max_page_size=100)


def test_allowed_origins_list():
    settings = _settings(allowed_origins=" http://a.test, ,http://b.test ")
    assert settings.get_allowed_origins_list() == ["http://a.test", "http://b.test"]


class TestProduction:
    def test_rejects_default_secrets(self):
        with pytest.raises(ValidationError):
            _settings(
                app_env="production",
                jwt_secret="dev-secret",
                signed_url_secret=STRONG_B,
                metrics_require_auth=True,
            )

    def test_rejects_short_secrets(self):
        with pytest.raises(ValidationError):
            _settings(
                app_env="production",
                jwt_secret="short-but-not-default",
                signed_url_secret=STRONG_B,
                metrics_require_auth=True,
            )

    def test_requires_metrics_auth(self):
        with pytest.raises(ValidationError):
            _settings(
                app_env="production",
                jwt_secret=STRONG_A,
                signed_url_secret=STRONG_B,
            )

    def test_accepts_hardened_settings(self):
        settings = _settings(
            app_env="Production",
            jwt_secret=STRONG_A,
            signed_url_secret=STRONG_B,
            metrics_require_auth=True,
        )
        assert settings.is_production()
