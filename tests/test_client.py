"""Tests for the request executor against a local fake Voyager server."""

import json
import time

import pytest
from loguru import logger

from li_cli.core.client import (
    MAX_ERROR_SNIPPET,
    NORMALIZED_ACCEPT,
    APIClient,
    APIError,
    AuthenticationError,
    DecodeError,
    HTTPStatusError,
    RateLimitedError,
    RequestTimeoutError,
    TransportError,
    ValidationError,
)
from li_cli.core.config import DEFAULT_USER_AGENT, ClientConfig
from li_cli.core.credentials import Credentials

# =============================================================================
# Headers
# =============================================================================


class TestHeaders:
    def test_session_headers(self, voyager, api_client):
        voyager.respond({"data": {}})
        api_client.get("/me")

        headers = voyager.last.headers
        assert headers["csrf-token"] == "ajax:123"
        assert headers["cookie"] == 'li_at=liat; JSESSIONID="ajax:123"'
        assert headers["user-agent"] == DEFAULT_USER_AGENT
        assert headers["accept"] == NORMALIZED_ACCEPT
        assert headers["x-restli-protocol-version"] == "2.0.0"
        assert headers["x-li-lang"] == "en_US"

    def test_quoted_jsessionid_is_not_double_quoted(self, voyager, config):
        client = APIClient(credentials=Credentials(li_at="liat", jsessionid='"ajax:456"'), config=config)
        voyager.respond({})
        client.get("/me")

        assert voyager.last.headers["csrf-token"] == "ajax:456"
        assert voyager.last.headers["cookie"] == 'li_at=liat; JSESSIONID="ajax:456"'

    def test_user_agent_override(self, voyager, config):
        client = APIClient(credentials=Credentials("liat", "ajax:1"), config=config, user_agent="MyBrowser/1.0")
        voyager.respond({})
        client.get("/me")
        assert voyager.last.headers["user-agent"] == "MyBrowser/1.0"

    def test_extra_headers(self, voyager, config):
        client = APIClient(
            credentials=Credentials("liat", "ajax:1"),
            config=config.with_overrides(extra_headers={"X-Li-Track": "{}"}),
        )
        voyager.respond({})
        client.get("/me")
        assert voyager.last.headers["x-li-track"] == "{}"

    def test_no_content_type_without_body(self, voyager, api_client):
        voyager.respond({})
        api_client.get("/me")
        assert voyager.last.headers.get("content-type") is None

    def test_messaging_overrides(self, voyager, api_client):
        voyager.respond({"value": "ignored"})
        result = api_client.post_messaging("/voyagerMessagingDashMessengerMessages", "action=createMessage", {"a": 1})

        assert result is None
        assert voyager.last.headers["content-type"] == "text/plain;charset=UTF-8"
        assert voyager.last.headers["accept"] == "application/json"
        assert voyager.last.headers["csrf-token"] == "ajax:123"
        assert voyager.last.path == "/voyager/api/voyagerMessagingDashMessengerMessages?action=createMessage"


class TestAuthentication:
    @pytest.mark.parametrize(
        "credentials",
        [Credentials(), Credentials(li_at="liat"), Credentials(jsessionid="ajax:1")],
        ids=["none", "no-jsessionid", "no-li-at"],
    )
    def test_missing_cookies_fail_before_io(self, voyager, config, credentials):
        client = APIClient(credentials=credentials, config=config)
        with pytest.raises(AuthenticationError, match="LI_AT"):
            client.get("/me")
        assert voyager.requests == []


# =============================================================================
# Query strings and bodies
# =============================================================================


class TestQuery:
    def test_params_are_urlencoded(self, voyager, api_client):
        voyager.respond({})
        api_client.get("/identity/dash/profiles", {"q": "memberIdentity", "memberIdentity": "jane doe", "skip": None})
        assert voyager.last.path == "/voyager/api/identity/dash/profiles?q=memberIdentity&memberIdentity=jane+doe"

    def test_raw_query_is_sent_untouched(self, voyager, api_client):
        raw = "variables=(conversationUrn:urn%3Ali%3Amsg_conversation%3A%28a%2Cb%29)&queryId=messengerMessages.1"
        voyager.respond({})
        api_client.get_raw("/voyagerMessagingGraphQL/graphql", raw)
        assert voyager.last.path == f"/voyager/api/voyagerMessagingGraphQL/graphql?{raw}"

    def test_params_and_raw_query_are_exclusive(self, voyager, api_client):
        with pytest.raises(ValidationError):
            api_client.request("GET", "/graphql", params={"a": 1}, raw_query="b=2")
        assert voyager.requests == []

    def test_json_body_keeps_utf8(self, voyager, api_client):
        voyager.respond({})
        api_client.post("/contentcreation/normShares", {"text": "héllo \u0080"})

        assert voyager.last.method == "POST"
        assert voyager.last.headers["content-type"] == "application/json; charset=utf-8"
        assert "héllo".encode("utf-8") in voyager.last.body
        assert b"\xc2\x80" in voyager.last.body
        assert voyager.last.json() == {"text": "héllo \u0080"}


# =============================================================================
# Response classification
# =============================================================================


class TestResponses:
    def test_decoded_json(self, voyager, api_client):
        voyager.respond({"included": [{"entityUrn": "urn:x"}]})
        assert api_client.get("/me") == {"included": [{"entityUrn": "urn:x"}]}

    def test_parser_applied(self, voyager, api_client):
        voyager.respond({"data": {"count": 3}})
        assert api_client.get("/me", parser=lambda doc: doc["data"]["count"]) == 3

    def test_empty_body_is_none(self, voyager, api_client):
        voyager.respond(None)
        assert api_client.get("/me") is None

    def test_body_ignored_when_not_expected(self, voyager, api_client):
        voyager.respond("not json")
        assert api_client.post("/feed/dash/follows", {"urn": "x"}, expect_body=False) is None

    def test_invalid_json(self, voyager, api_client):
        voyager.respond("<html>login</html>", content_type="text/html")
        with pytest.raises(DecodeError, match="invalid JSON") as excinfo:
            api_client.get("/me")
        assert excinfo.value.status == 200

    def test_parser_shape_failure(self, voyager, api_client):
        voyager.respond({"data": []})
        with pytest.raises(DecodeError, match="unexpected response shape"):
            api_client.get("/me", parser=lambda doc: doc["data"]["missing"])

    def test_rate_limited(self, voyager, api_client):
        voyager.respond({"status": 429}, status=429)
        with pytest.raises(RateLimitedError) as excinfo:
            api_client.get("/me")

        error = excinfo.value
        assert isinstance(error, HTTPStatusError)
        assert error.status == 429
        assert error.method == "GET"
        assert error.url == f"{voyager.base_url}/me"
        assert "rate limited" in error.message
        assert error.to_dict()["url"] == f"{voyager.base_url}/me"

    def test_forbidden(self, voyager, api_client):
        voyager.respond({"status": 403, "message": "CSRF check failed"}, status=403)
        with pytest.raises(HTTPStatusError) as excinfo:
            api_client.post("/feed/dash/follows", {"urn": "x"}, {"action": "followByEntityUrn"})

        error = excinfo.value
        assert not isinstance(error, RateLimitedError)
        assert error.status == 403
        assert error.method == "POST"
        assert error.url == f"{voyager.base_url}/feed/dash/follows?action=followByEntityUrn"
        assert "HTTP 403" in error.message
        assert "CSRF check failed" in error.body
        assert error.details == {"status": 403, "message": "CSRF check failed"}

        result = error.to_dict()
        assert result["status"] == 403
        assert result["method"] == "POST"

    def test_error_snippet_is_truncated(self, voyager, api_client):
        voyager.respond("x" * (MAX_ERROR_SNIPPET * 3), status=500, content_type="text/plain")
        with pytest.raises(HTTPStatusError) as excinfo:
            api_client.get("/graphql")
        assert len(excinfo.value.body) == MAX_ERROR_SNIPPET + 1
        assert excinfo.value.details == {}

    def test_all_api_errors_share_a_base(self, voyager, api_client):
        voyager.respond({}, status=404)
        with pytest.raises(APIError):
            api_client.get("/me")


class TestTransport:
    def test_timeout(self, voyager, api_client):
        voyager.respond({}, delay=1.0)
        with pytest.raises(RequestTimeoutError, match="timed out"):
            api_client.get("/me", timeout=0.2)

    def test_slow_body_hits_deadline(self, voyager, api_client):
        # Each byte arrives well inside the socket timeout, the whole body does not
        voyager.respond({"data": "x" * 20}, trickle=0.1)
        started = time.monotonic()
        with pytest.raises(RequestTimeoutError, match="timed out after 0.5 seconds"):
            api_client.get("/me", timeout=0.5)
        assert time.monotonic() - started < 1.5

    def test_slow_body_within_deadline(self, voyager, api_client):
        voyager.respond({"data": {}}, trickle=0.01)
        assert api_client.get("/me", timeout=5) == {"data": {}}

    def test_slow_error_body_hits_deadline(self, voyager, api_client):
        voyager.respond({"status": 500, "message": "x" * 20}, status=500, trickle=0.1)
        with pytest.raises(RequestTimeoutError):
            api_client.get("/me", timeout=0.5)

    def test_zero_timeout_sends_nothing(self, voyager, api_client):
        with pytest.raises(RequestTimeoutError, match="already passed"):
            api_client.get("/me", timeout=0)
        assert voyager.requests == []

    def test_connection_refused(self):
        client = APIClient(
            credentials=Credentials("liat", "ajax:1"),
            config=ClientConfig(base_url="http://127.0.0.1:1/voyager/api", timeout=2),
        )
        with pytest.raises(TransportError) as excinfo:
            client.get("/me")
        assert not isinstance(excinfo.value, RequestTimeoutError)


# =============================================================================
# Debug logging
# =============================================================================


class TestDebugLogging:
    @pytest.fixture
    def captured(self):
        messages: list[str] = []
        sink_id = logger.add(messages.append, level="DEBUG", format="{message}")
        yield messages
        logger.remove(sink_id)

    def test_logs_method_url_and_status(self, voyager, config, captured):
        client = APIClient(credentials=Credentials("secret-li-at", "ajax:secret"), config=config, debug=True)
        voyager.respond({"data": {}})
        client.get("/me")

        output = "".join(captured)
        assert f"[li] GET {voyager.base_url}/me" in output
        assert "[li] -> 200" in output
        assert "secret" not in output

    def test_silent_without_debug(self, voyager, api_client, captured):
        voyager.respond({})
        api_client.get("/me")
        assert captured == []

    def test_response_body_never_logged(self, voyager, config, captured):
        client = APIClient(credentials=Credentials("liat", "ajax:1"), config=config, debug=True)
        voyager.respond(json.dumps({"private": "inbox contents"}))
        client.get("/me")
        assert "inbox contents" not in "".join(captured)
