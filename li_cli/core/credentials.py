"""
Session credentials and public identifier handling.

LinkedIn authenticates browser sessions with two cookies: ``li_at`` (sent
verbatim) and ``JSESSIONID`` (sent quoted in the cookie header and, with the
quotes stripped, as the ``csrf-token`` header).
"""

import os
import urllib.parse
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Credentials:
    """The two session cookies captured from a logged-in browser."""

    li_at: str = field(default="", repr=False)
    jsessionid: str = field(default="", repr=False)

    @classmethod
    def from_env(cls) -> "Credentials":
        """Read LI_AT and LI_JSESSIONID from the environment."""
        return cls(
            li_at=os.environ.get("LI_AT", "").strip(),
            jsessionid=os.environ.get("LI_JSESSIONID", "").strip(),
        )

    @property
    def is_valid(self) -> bool:
        """Check that both cookies are present."""
        return bool(self.li_at) and bool(self.jsessionid)

    @property
    def csrf_token(self) -> str:
        """The JSESSIONID value without surrounding quotes."""
        return self.jsessionid.strip('"')

    @property
    def jsessionid_cookie_value(self) -> str:
        """The JSESSIONID value as LinkedIn stores it: double-quoted."""
        if not self.jsessionid:
            return ""
        if len(self.jsessionid) >= 2 and self.jsessionid.startswith('"') and self.jsessionid.endswith('"'):
            return self.jsessionid
        return f'"{self.jsessionid}"'

    @property
    def cookie_header(self) -> str:
        """Build the cookie header carrying both session cookies."""
        parts = []
        if self.li_at:
            parts.append(f"li_at={self.li_at}")
        if self.jsessionid:
            parts.append(f"JSESSIONID={self.jsessionid_cookie_value}")
        return "; ".join(parts)


def normalize_public_identifier(value: str) -> str:
    """
    Reduce a profile reference to its public identifier.

    Accepts "@jane-doe", "jane-doe", "linkedin.com/in/jane-doe/" or a full
    profile URL. For URLs the segment after "/in/" or "/pub/" wins, otherwise
    the last path segment is used.

    """
    s = value.strip().removeprefix("@").strip("/")

    if "linkedin.com/" in s:
        if not s.startswith(("http://", "https://")):
            s = "https://" + s
        parts = urllib.parse.urlparse(s).path.strip("/").split("/")
        for i, part in enumerate(parts[:-1]):
            if part in ("in", "pub"):
                return parts[i + 1]
        if parts:
            return parts[-1]

    return s
