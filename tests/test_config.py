"""Tests for configuration, session credentials and identifier normalization."""

import pytest

from li_cli.core.config import (
    DEFAULT_BASE_URL,
    DEFAULT_CONVERSATIONS_QUERY_ID,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    ClientConfig,
)
from li_cli.core.credentials import Credentials, normalize_public_identifier

LI_ENV_VARS = [
    "LI_AT",
    "LI_JSESSIONID",
    "LI_BASE_URL",
    "LI_USER_AGENT",
    "LI_TIMEOUT",
    "LI_SEARCH_QUERY_ID",
    "LI_CONVERSATIONS_QUERY_ID",
    "LI_MESSAGES_QUERY_ID",
    "LI_DEBUG",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in LI_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# =============================================================================
# ClientConfig
# =============================================================================


class TestClientConfig:
    def test_defaults(self, clean_env):
        config = ClientConfig.from_env()
        assert config == ClientConfig()
        assert config.base_url == DEFAULT_BASE_URL
        assert config.user_agent == DEFAULT_USER_AGENT
        assert config.timeout == DEFAULT_TIMEOUT
        assert config.debug is False

    def test_environment(self, clean_env):
        clean_env.setenv("LI_BASE_URL", "http://localhost:8080/voyager/api/")
        clean_env.setenv("LI_USER_AGENT", "Firefox")
        clean_env.setenv("LI_TIMEOUT", "5")
        clean_env.setenv("LI_CONVERSATIONS_QUERY_ID", "messengerConversations.new")
        clean_env.setenv("LI_DEBUG", "1")

        config = ClientConfig.from_env()
        assert config.base_url == "http://localhost:8080/voyager/api"
        assert config.user_agent == "Firefox"
        assert config.timeout == 5
        assert config.conversations_query_id == "messengerConversations.new"
        assert config.debug is True

    def test_bad_timeout_falls_back(self, clean_env):
        clean_env.setenv("LI_TIMEOUT", "soon")
        assert ClientConfig.from_env().timeout == DEFAULT_TIMEOUT

    def test_explicit_overrides_win(self, clean_env):
        clean_env.setenv("LI_TIMEOUT", "5")
        config = ClientConfig.from_env(timeout=9, debug=None)
        assert config.timeout == 9
        assert config.debug is False

    def test_with_overrides_ignores_none(self):
        config = ClientConfig()
        assert config.with_overrides(base_url=None, timeout=None) is config
        assert config.with_overrides(base_url="http://x/").base_url == "http://x"
        assert config.conversations_query_id == DEFAULT_CONVERSATIONS_QUERY_ID


# =============================================================================
# Credentials
# =============================================================================


class TestCredentials:
    def test_from_env(self, clean_env):
        clean_env.setenv("LI_AT", " AQEDAR ")
        clean_env.setenv("LI_JSESSIONID", '"ajax:123"')
        credentials = Credentials.from_env()
        assert credentials.li_at == "AQEDAR"
        assert credentials.is_valid
        assert credentials.csrf_token == "ajax:123"

    def test_missing(self, clean_env):
        assert not Credentials.from_env().is_valid

    @pytest.mark.parametrize("jsessionid", ["ajax:123", '"ajax:123"'])
    def test_cookie_header(self, jsessionid):
        credentials = Credentials(li_at="liat", jsessionid=jsessionid)
        assert credentials.cookie_header == 'li_at=liat; JSESSIONID="ajax:123"'
        assert credentials.csrf_token == "ajax:123"

    def test_repr_hides_cookies(self):
        assert "liat" not in repr(Credentials(li_at="liat", jsessionid="ajax:123"))


class TestNormalizePublicIdentifier:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("jane-doe", "jane-doe"),
            ("@jane-doe", "jane-doe"),
            ("  jane-doe/ ", "jane-doe"),
            ("https://www.linkedin.com/in/jane-doe/", "jane-doe"),
            ("https://www.linkedin.com/in/jane-doe?trk=abc", "jane-doe"),
            ("linkedin.com/in/jane-doe", "jane-doe"),
            ("www.linkedin.com/pub/jane-doe/1/2/3", "jane-doe"),
            ("https://www.linkedin.com/jane-doe", "jane-doe"),
        ],
    )
    def test_variants(self, value, expected):
        assert normalize_public_identifier(value) == expected
