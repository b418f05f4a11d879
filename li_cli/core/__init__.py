"""
Core layer - Encoding, HTTP client, entity graph and resolvers.

This layer provides:
- Rest.li tuple query encoding and the binary tracking token
- Low-level HTTP client with session auth and error classification
- An index over the normalized ``included`` array and typed accessors
- Resolvers turning normalized responses into frozen domain dataclasses
"""

from li_cli.core.client import (
    APIClient,
    APIError,
    AuthenticationError,
    CLIError,
    DecodeError,
    HTTPStatusError,
    RateLimitedError,
    RequestTimeoutError,
    TokenGenerationError,
    TransportError,
    ValidationError,
)
from li_cli.core.config import ClientConfig
from li_cli.core.credentials import Credentials, normalize_public_identifier
from li_cli.core.graph import EntityIndex, EntityView, first_of, urn_id
from li_cli.core.types import (
    Conversation,
    CreatePostResult,
    FeedUpdate,
    Me,
    Message,
    Participant,
    Profile,
    SearchItem,
)

__all__ = [
    "APIClient",
    "APIError",
    "AuthenticationError",
    "CLIError",
    "ClientConfig",
    "Conversation",
    "CreatePostResult",
    "Credentials",
    "DecodeError",
    "EntityIndex",
    "EntityView",
    "FeedUpdate",
    "HTTPStatusError",
    "Me",
    "Message",
    "Participant",
    "Profile",
    "RateLimitedError",
    "RequestTimeoutError",
    "SearchItem",
    "TokenGenerationError",
    "TransportError",
    "ValidationError",
    "first_of",
    "normalize_public_identifier",
    "urn_id",
]
