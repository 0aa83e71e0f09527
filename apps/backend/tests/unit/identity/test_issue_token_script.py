"""
Name: Bearer Credential Script Tests

Responsibilities:
  - Issued credentials verify under the API's bearer key
  - Bad input and production configs are refused
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from research_repo.container import get_signing_keys
from research_repo.crosscutting.config import Settings
from research_repo.domain.entities import Role
from research_repo.identity.bearer import decode_access_token
from scripts.issue_token import issue_token, main

pytestmark = pytest.mark.unit


def test_issued_token_verifies_with_bearer_key():
    token = issue_token(" Librarian@G.MSUIIT.edu.ph ", "staff", ttl_minutes=5)
    bearer_key, _ = get_signing_keys()

    claims = decode_access_token(
        token, bearer_key, now=datetime.now(timezone.utc), skew_seconds=10
    )

    assert claims.email == "librarian@g.msuiit.edu.ph"
    assert claims.role is Role.STAFF


def test_main_prints_token(capsys):
    main(["--", "--email", "reader@gmail.com"])
    assert capsys.readouterr().out.count(".") == 2


@pytest.mark.parametrize(
    "email, ttl",
    [("no-at-sign", 5), ("reader@gmail.com", 0)],
)
def test_bad_input_exits(email, ttl):
    with pytest.raises(SystemExit):
        issue_token(email, "student", ttl_minutes=ttl)


def test_production_config_is_refused():
    production = Settings(
        app_env="production",
        jwt_secret="a" * 40,
        signed_url_secret="b" * 40,
        metrics_require_auth=True,
    )
    with patch("scripts.issue_token.get_settings", return_value=production):
        with pytest.raises(SystemExit):
            issue_token("reader@gmail.com", "student")
