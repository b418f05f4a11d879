"""
Core HTTP client for the LinkedIn Voyager API.

Handles session authentication, mandated headers, request/response and
error classification. Nothing is retried: rate-limit windows are long, so a
429 is surfaced immediately for the caller to handle.
"""

import http.client
import json
import time
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger

from li_cli.core.config import DEFAULT_ACCEPT_LANGUAGE, ClientConfig
from li_cli.core.credentials import Credentials

NORMALIZED_ACCEPT = "application/vnd.linkedin.normalized+json+2.1"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"

# Messaging write endpoints only accept a "simple" request (no CORS preflight)
MESSAGING_HEADERS = {
    "content-type": "text/plain;charset=UTF-8",
    "accept": "application/json",
}

MAX_RESPONSE_BYTES = 5 << 20
READ_CHUNK_BYTES = 64 << 10
MAX_ERROR_SNIPPET = 2000

T = TypeVar("T")


class CLIError(Exception):
    """Base error class for CLI errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {"error": self.message}
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(CLIError):
    """Validation error for local input/data issues (not API errors)."""


class AuthenticationError(CLIError):
    """Session cookies are missing; raised before any network I/O."""


class TokenGenerationError(CLIError):
    """The random source failed while generating a tracking token."""


class APIError(CLIError):
    """API error with status code and message."""

    def __init__(self, message: str, status: int = 0, details: dict | None = None):
        super().__init__(message, details)
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        if self.status:
            result["status"] = self.status
        return result


class TransportError(APIError):
    """The request never produced an HTTP response."""


class RequestTimeoutError(TransportError):
    """The request exceeded its deadline and was aborted."""


class DecodeError(APIError):
    """The response body is not valid JSON or does not have the expected shape."""


class HTTPStatusError(APIError):
    """Non-2xx response."""

    def __init__(self, method: str, url: str, status: int, body: str = "", details: dict | None = None):
        message = f"{method} {url}: HTTP {status}"
        if body:
            message = f"{message}: {body}"
        super().__init__(message, status=status, details=details)
        self.method = method
        self.url = url
        self.body = body

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        result["method"] = self.method
        result["url"] = self.url
        return result


class RateLimitedError(HTTPStatusError):
    """HTTP 429: LinkedIn is throttling this session."""


def _snippet(raw: bytes) -> str:
    text = raw.decode("utf-8", errors="replace").strip()
    if len(text) > MAX_ERROR_SNIPPET:
        text = text[:MAX_ERROR_SNIPPET] + "…"
    return text


def _timeout_error(method: str, url: str, timeout: float) -> RequestTimeoutError:
    return RequestTimeoutError(f"{method} {url}: timed out after {timeout} seconds")


def _error_details(raw: bytes) -> dict | None:
    """Parse a JSON error body, if it is one."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None


class APIClient:
    """
    Low-level HTTP client for the Voyager API.

    Handles:
    - Authentication via the li_at / JSESSIONID session cookies
    - The fixed header set every Voyager request needs
    - Standard key/value queries and pre-built raw tuple queries
    - Error classification and JSON decoding

    The client holds only fixed configuration, so one instance can be shared
    between threads.
    """

    def __init__(
        self,
        credentials: Credentials | None = None,
        config: ClientConfig | None = None,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout: int | None = None,
        debug: bool | None = None,
    ):
        """
        Initialize the API client.

        Args:
            credentials: Session cookies (or LI_AT / LI_JSESSIONID env vars)
            config: Client configuration (or LI_* env vars)
            base_url: API base URL override
            user_agent: Must match the browser that issued the cookies
            timeout: Request timeout in seconds
            debug: Log method/URL and status/size of every request

        """
        self.credentials = credentials if credentials is not None else Credentials.from_env()
        base = config if config is not None else ClientConfig.from_env()
        self.config = base.with_overrides(base_url=base_url, user_agent=user_agent, timeout=timeout, debug=debug)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def _ensure_credentials(self) -> Credentials:
        """Ensure both session cookies are configured."""
        if not self.credentials.is_valid:
            raise AuthenticationError("Missing auth cookies (li_at, JSESSIONID). Set LI_AT and LI_JSESSIONID")
        return self.credentials

    def _build_url(self, path: str, query: str = "") -> str:
        """Build full URL from path and an already-encoded query string."""
        if path.startswith("http"):
            url = path
        else:
            url = f"{self.base_url}/{path.lstrip('/')}"
        if query:
            url = f"{url}?{query}"
        return url

    def _build_headers(self, credentials: Credentials, has_body: bool) -> dict[str, str]:
        headers = {
            "user-agent": self.config.user_agent,
            "accept": NORMALIZED_ACCEPT,
            "accept-language": DEFAULT_ACCEPT_LANGUAGE,
            "x-li-lang": "en_US",
            "x-restli-protocol-version": "2.0.0",
            "csrf-token": credentials.csrf_token,
            "cookie": credentials.cookie_header,
        }
        if has_body:
            headers["content-type"] = JSON_CONTENT_TYPE
        headers.update({k.lower(): v for k, v in self.config.extra_headers.items()})
        return headers

    @staticmethod
    def _encode_body(data: Any) -> bytes | None:
        if data is None:
            return None
        if isinstance(data, bytes):
            return data
        if isinstance(data, str):
            return data.encode("utf-8")
        # Non-ASCII stays as raw UTF-8 (the tracking token relies on this)
        return json.dumps(data, ensure_ascii=False).encode("utf-8")

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        raw_query: str | None = None,
        data: Any = None,
        header_overrides: dict[str, str] | None = None,
        parser: Callable[[Any], T] | None = None,
        expect_body: bool = True,
        timeout: float | None = None,
    ) -> Any:
        """
        Make an HTTP request to the API.

        Args:
            method: HTTP method (GET, POST)
            path: API path relative to the base URL (e.g., /me)
            params: Standard key/value query, URL-encoded here
            raw_query: Pre-built query string, sent untouched
            data: Request body (dict/list is JSON-encoded, bytes/str sent as-is)
            header_overrides: Headers replacing the defaults (e.g., MESSAGING_HEADERS)
            parser: Optional function turning the decoded JSON into a typed value
            expect_body: If False the response body is never decoded
            timeout: Deadline for the whole call in seconds (default: config timeout)

        Returns:
            Parsed JSON response (through parser if given), or None when the
            body is empty or not expected

        Raises:
            AuthenticationError: If session cookies are missing
            ValidationError: If both params and raw_query are given
            RateLimitedError: On HTTP 429
            HTTPStatusError: On any other non-2xx status
            TransportError: On connection failures (RequestTimeoutError on timeout)
            DecodeError: On invalid JSON or a parser failure

        """
        credentials = self._ensure_credentials()

        if params is not None and raw_query is not None:
            raise ValidationError("params and raw_query are mutually exclusive")

        query = raw_query or ""
        if params:
            filtered_params = {k: v for k, v in params.items() if v is not None}
            query = urllib.parse.urlencode(filtered_params)

        url = self._build_url(path, query)
        body = self._encode_body(data)
        headers = self._build_headers(credentials, body is not None)
        for key, value in (header_overrides or {}).items():
            headers[key.lower()] = value

        request_timeout = timeout if timeout is not None else self.config.timeout
        if request_timeout <= 0:
            raise RequestTimeoutError(f"{method} {url}: deadline of {request_timeout} seconds already passed")

        if self.config.debug:
            logger.debug(f"[li] {method} {url}")

        status, raw = self._send(method, url, body, headers, request_timeout)

        if self.config.debug:
            logger.debug(f"[li] -> {status} ({len(raw)} bytes)")

        return self._handle_response(method, url, status, raw, parser, expect_body)

    def _send(
        self,
        method: str,
        url: str,
        body: bytes | None,
        headers: dict[str, str],
        timeout: float,
    ) -> tuple[int, bytes]:
        """
        Perform the HTTP exchange and return (status, body).

        The timeout is a deadline for the whole call: the socket timeout bounds
        each blocking operation, and the body is read in chunks so a server
        trickling data cannot hold the call open past the deadline.

        """
        deadline = time.monotonic() + timeout
        req = urllib.request.Request(url, data=body, headers=headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=timeout) as response:
                return response.status, self._read_body(response, method, url, timeout, deadline)

        except urllib.error.HTTPError as e:
            try:
                return e.code, self._read_body(e, method, url, timeout, deadline)
            except TimeoutError as read_error:
                raise _timeout_error(method, url, timeout) from read_error
            finally:
                e.close()

        except urllib.error.URLError as e:
            if isinstance(e.reason, TimeoutError):
                raise _timeout_error(method, url, timeout) from e
            raise TransportError(f"{method} {url}: connection error: {e.reason}") from e

        except TimeoutError as e:
            raise _timeout_error(method, url, timeout) from e

        except (http.client.HTTPException, OSError) as e:
            raise TransportError(f"{method} {url}: {e}") from e

    @staticmethod
    def _read_body(stream: Any, method: str, url: str, timeout: float, deadline: float) -> bytes:
        """Read up to MAX_RESPONSE_BYTES, aborting once the deadline has passed."""
        # read1 returns whatever is available instead of waiting for a full chunk
        read = getattr(stream, "read1", stream.read)
        chunks = []
        size = 0
        while size < MAX_RESPONSE_BYTES:
            if time.monotonic() > deadline:
                raise _timeout_error(method, url, timeout)
            chunk = read(min(READ_CHUNK_BYTES, MAX_RESPONSE_BYTES - size))
            if not chunk:
                break
            chunks.append(chunk)
            size += len(chunk)
        return b"".join(chunks)

    @staticmethod
    def _handle_response(
        method: str,
        url: str,
        status: int,
        raw: bytes,
        parser: Callable[[Any], T] | None,
        expect_body: bool,
    ) -> Any:
        """Classify the status, then decode the body if one is expected."""
        if status == 429:
            raise RateLimitedError(method, url, status, "rate limited by LinkedIn, try again later")

        if status < 200 or status >= 300:
            raise HTTPStatusError(method, url, status, _snippet(raw), details=_error_details(raw))

        if not expect_body or not raw:
            return None

        try:
            decoded = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"{method} {url}: invalid JSON response: {e}", status=status) from e

        if parser is None:
            return decoded
        try:
            return parser(decoded)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DecodeError(f"{method} {url}: unexpected response shape: {e}", status=status) from e

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        parser: Callable[[Any], T] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Make a GET request with a standard key/value query."""
        return self.request("GET", path, params=params, parser=parser, timeout=timeout)

    def get_raw(
        self,
        path: str,
        raw_query: str,
        *,
        parser: Callable[[Any], T] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Make a GET request with a pre-built query (tuple syntax left intact)."""
        return self.request("GET", path, raw_query=raw_query, parser=parser, timeout=timeout)

    def post(
        self,
        path: str,
        data: Any = None,
        params: dict[str, Any] | None = None,
        *,
        expect_body: bool = True,
        timeout: float | None = None,
    ) -> Any:
        """Make a POST request."""
        return self.request("POST", path, params=params, data=data, expect_body=expect_body, timeout=timeout)

    def post_messaging(
        self,
        path: str,
        raw_query: str,
        data: Any = None,
        *,
        expect_body: bool = False,
        timeout: float | None = None,
    ) -> Any:
        """Make a POST to a messaging write endpoint (text/plain body, plain JSON accept)."""
        return self.request(
            "POST",
            path,
            raw_query=raw_query,
            data=data,
            header_overrides=MESSAGING_HEADERS,
            expect_body=expect_body,
            timeout=timeout,
        )
