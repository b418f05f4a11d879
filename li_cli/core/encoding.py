"""
Request encoding for the Voyager API.

Two encodings live here:

- The binary tracking token the message-send endpoint expects: 16 random
  bytes carried as a string where every byte maps to the code point of the
  same value (Latin-1 identity), not base64 or hex.
- The Rest.li tuple syntax used by GraphQL ``variables``. Structural
  characters ``( ) , :`` stay literal, while URN values embedded inside (which
  contain the same characters) and free-text keywords are percent-encoded.
  The assembled fragment must never go through ``urllib.parse.urlencode``.
"""

import secrets
import urllib.parse
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from li_cli.core.client import TokenGenerationError

TRACKING_ID_LENGTH = 16

_URN_ESCAPES = str.maketrans({":": "%3A", "(": "%28", ")": "%29", ",": "%2C"})


# =============================================================================
# Tracking token
# =============================================================================


def generate_tracking_id(randbytes: Callable[[int], bytes] = secrets.token_bytes) -> str:
    """
    Generate a 16-byte random tracking token as a Latin-1 identity string.

    Args:
        randbytes: Source of cryptographically random bytes

    Returns:
        A 16 character string, one code point (U+0000 to U+00FF) per byte

    Raises:
        TokenGenerationError: If the random source fails or returns a short read

    """
    try:
        raw = randbytes(TRACKING_ID_LENGTH)
    except (OSError, NotImplementedError) as e:
        raise TokenGenerationError(f"Random source unavailable: {e}") from e

    if len(raw) != TRACKING_ID_LENGTH:
        raise TokenGenerationError(f"Random source returned {len(raw)} bytes, expected {TRACKING_ID_LENGTH}")
    return raw.decode("latin-1")


def decode_tracking_id(token: str) -> bytes:
    """Map a tracking token back to its raw bytes."""
    return token.encode("latin-1")


# =============================================================================
# Tuple syntax
# =============================================================================


class Urn(str):
    """A URN embedded in a tuple; its own ``: ( ) ,`` get percent-encoded."""


class Keywords(str):
    """Free text embedded in a tuple; encoded with %20 for spaces."""


def encode_urn(value: str) -> str:
    """Percent-encode the tuple-significant characters inside a URN."""
    return value.translate(_URN_ESCAPES)


def encode_keywords(text: str) -> str:
    """Percent-encode free text, spaces as %20 (the tuple parser does not read + as space)."""
    return urllib.parse.quote(text, safe="")


def encode_value(value: Any) -> str:
    """Encode a single value of the tuple grammar."""
    if isinstance(value, Urn):
        return encode_urn(value)
    if isinstance(value, Keywords):
        return encode_keywords(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, Mapping):
        return encode_tuple(value)
    if isinstance(value, (list, tuple)):
        return encode_list(value)
    return str(value)


def encode_tuple(fields: Mapping[str, Any]) -> str:
    """Encode a mapping as ``(name:value,name:value)``, keeping insertion order."""
    return "(" + ",".join(f"{name}:{encode_value(value)}" for name, value in fields.items()) + ")"


def encode_list(items: Iterable[Any]) -> str:
    """Encode a sequence as ``List(value,value)``."""
    return "List(" + ",".join(encode_value(item) for item in items) + ")"


def build_raw_query(pairs: Iterable[tuple[str, Any]]) -> str:
    """
    Join query parameters into a raw query string.

    Tuple values (mappings) are encoded with ``encode_tuple``; strings are
    taken as already encoded. Nothing is passed through a second
    URL-encoding pass.

    """
    return "&".join(f"{name}={encode_value(value)}" for name, value in pairs)
