"""
Client configuration.

Values come from explicit arguments first, then environment variables, then
built-in defaults. LinkedIn rotates its GraphQL query IDs periodically, so
each one can be overridden without a code change.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Any

DEFAULT_BASE_URL = "https://www.linkedin.com/voyager/api"
DEFAULT_TIMEOUT = 30
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/144.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.9"

# GraphQL query IDs (update via LI_*_QUERY_ID if the endpoint starts returning 500)
DEFAULT_SEARCH_QUERY_ID = "voyagerSearchDashClusters.ef3d0937fb65bd7812e32e5a85028e79"
DEFAULT_CONVERSATIONS_QUERY_ID = "messengerConversations.9501074288a12f3ae9e3c7ea243bccbf"
DEFAULT_MESSAGES_QUERY_ID = "messengerMessages.5846eeb71c981f11e0134cb6626cc314"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class ClientConfig:
    """Fixed configuration shared by the HTTP client and the high-level operations."""

    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: int = DEFAULT_TIMEOUT
    search_query_id: str = DEFAULT_SEARCH_QUERY_ID
    conversations_query_id: str = DEFAULT_CONVERSATIONS_QUERY_ID
    messages_query_id: str = DEFAULT_MESSAGES_QUERY_ID
    debug: bool = False
    extra_headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        """
        Build a config from LI_* environment variables.

        Keyword arguments that are not None take precedence over the environment.

        """
        config = cls(
            base_url=(os.environ.get("LI_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            user_agent=os.environ.get("LI_USER_AGENT") or DEFAULT_USER_AGENT,
            timeout=_env_int("LI_TIMEOUT", DEFAULT_TIMEOUT),
            search_query_id=os.environ.get("LI_SEARCH_QUERY_ID") or DEFAULT_SEARCH_QUERY_ID,
            conversations_query_id=os.environ.get("LI_CONVERSATIONS_QUERY_ID") or DEFAULT_CONVERSATIONS_QUERY_ID,
            messages_query_id=os.environ.get("LI_MESSAGES_QUERY_ID") or DEFAULT_MESSAGES_QUERY_ID,
            debug=_env_flag("LI_DEBUG"),
        )
        return config.with_overrides(**overrides)

    def with_overrides(self, **overrides: Any) -> "ClientConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "base_url" in changes:
            changes["base_url"] = changes["base_url"].rstrip("/")
        return replace(self, **changes) if changes else self
