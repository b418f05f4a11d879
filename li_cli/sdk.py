"""
LinkedIn SDK - High-level client with nice ergonomics.

This layer provides a clean, typed interface for common LinkedIn operations.
Every call fetches, indexes and resolves from scratch: build the query,
execute one request, index ``included``, resolve, order.
Built on top of the core APIClient.
"""

import uuid
from typing import Any

from loguru import logger

from li_cli.core.client import APIClient, TokenGenerationError, ValidationError
from li_cli.core.config import ClientConfig
from li_cli.core.credentials import Credentials, normalize_public_identifier
from li_cli.core.encoding import Keywords, Urn, build_raw_query, generate_tracking_id
from li_cli.core.graph import EntityIndex, urn_id
from li_cli.core.resolvers import (
    find_conversation_by_profile,
    resolve_conversations,
    resolve_created_post,
    resolve_feed_updates,
    resolve_me,
    resolve_messages,
    resolve_profile,
    resolve_search_results,
)
from li_cli.core.types import (
    Conversation,
    CreatePostResult,
    FeedUpdate,
    Me,
    Message,
    Profile,
    SearchItem,
)

MESSAGING_GRAPHQL_PATH = "/voyagerMessagingGraphQL/graphql"


def _require(value: str, what: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"empty {what}")
    return value


def _require_text(text: str, what: str) -> str:
    """Reject blank user text; the text itself is sent unchanged."""
    if not (text or "").strip():
        raise ValidationError(f"empty {what}")
    return text


class LinkedInClient:
    """
    High-level LinkedIn client with typed methods and nice ergonomics.

    Example:
        client = LinkedInClient()

        me = client.profiles.me()
        people = client.search.people("site reliability", count=5)

        mailbox = client.profiles.my_profile_urn()
        for conversation in client.messaging.list_conversations(mailbox):
            print(conversation.urn, conversation.last_activity)

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
        Initialize the LinkedIn client.

        Args:
            credentials: Session cookies (or LI_AT / LI_JSESSIONID env vars)
            config: Client configuration (or LI_* env vars)
            base_url: API base URL override
            user_agent: Must match the browser that issued the cookies
            timeout: Request timeout in seconds
            debug: Log method/URL and status/size of every request

        """
        self._client = APIClient(
            credentials=credentials,
            config=config,
            base_url=base_url,
            user_agent=user_agent,
            timeout=timeout,
            debug=debug,
        )

        # Sub-clients for different domains
        self.profiles = ProfileOperations(self._client)
        self.search = SearchOperations(self._client)
        self.feed = FeedOperations(self._client)
        self.network = NetworkOperations(self._client)
        self.messaging = MessagingOperations(self._client)

    @property
    def config(self) -> ClientConfig:
        """Get the effective client configuration."""
        return self._client.config


# =============================================================================
# Profile Operations
# =============================================================================


class ProfileOperations:
    """Operations on member identities."""

    def __init__(self, client: APIClient):
        self._client = client

    def me(self, timeout: float | None = None) -> Me:
        """
        Get the logged-in member.

        Returns:
            Me (empty if the response carried no miniProfile)

        """
        doc = self._client.get("/me", timeout=timeout)
        return resolve_me(doc, EntityIndex.from_document(doc))

    def get(self, identifier: str, timeout: float | None = None) -> Profile:
        """
        Get a member profile.

        Args:
            identifier: Public identifier, profile URL, "@handle" or profile URN

        Returns:
            Profile (empty if no profile entity was found)

        """
        identifier = _require(identifier, "profile identifier")
        if not identifier.startswith("urn:"):
            identifier = normalize_public_identifier(identifier)

        # The legacy /identity/profiles/{id}/profileView endpoint answers 410
        doc = self._client.get(
            "/identity/dash/profiles",
            {"q": "memberIdentity", "memberIdentity": identifier},
            timeout=timeout,
        )
        return resolve_profile(doc, EntityIndex.from_document(doc))

    def my_profile_urn(self, timeout: float | None = None) -> str:
        """
        Get the logged-in member's fsd_profile URN (the messaging mailbox URN).

        Uses /me when it carries the dash URN, otherwise fetches the full profile.

        Raises:
            ValidationError: If no profile URN can be determined

        """
        me = self.me(timeout=timeout)
        if me.profile_urn:
            return me.profile_urn

        if not me.public_identifier:
            raise ValidationError("could not determine your profile URN (no publicIdentifier from /me)")
        profile = self.get(me.public_identifier, timeout=timeout)
        if not profile.entity_urn:
            raise ValidationError("could not determine your fsd_profile URN")
        return profile.entity_urn


# =============================================================================
# Search Operations
# =============================================================================


class SearchOperations:
    """GraphQL search clusters."""

    def __init__(self, client: APIClient):
        self._client = client

    def people(self, keywords: str, start: int = 0, count: int = 10, timeout: float | None = None) -> list[SearchItem]:
        """Search for people."""
        return self._search(keywords, "PEOPLE", start, count, timeout)

    def jobs(self, keywords: str, start: int = 0, count: int = 10, timeout: float | None = None) -> list[SearchItem]:
        """Search for jobs."""
        return self._search(keywords, "JOBS", start, count, timeout)

    def _search(
        self,
        keywords: str,
        result_type: str,
        start: int,
        count: int,
        timeout: float | None,
    ) -> list[SearchItem]:
        keywords = _require(keywords, "query")
        if count <= 0:
            count = 10
        start = max(start, 0)

        variables = {
            "start": start,
            "origin": "OTHER",
            "query": {
                "keywords": Keywords(keywords),
                "flagshipSearchIntent": "SEARCH_SRP",
                "queryParameters": [{"key": "resultType", "value": [result_type]}],
                "includeFiltersInResponse": False,
            },
        }
        raw_query = build_raw_query(
            [
                ("includeWebMetadata", "true"),
                ("variables", variables),
                ("queryId", self._client.config.search_query_id),
            ]
        )

        doc = self._client.get_raw("/graphql", raw_query, timeout=timeout)
        return resolve_search_results(doc, EntityIndex.from_document(doc))[:count]


# =============================================================================
# Feed Operations
# =============================================================================


class FeedOperations:
    """Posts and profile feeds."""

    def __init__(self, client: APIClient):
        self._client = client

    def create_post(self, text: str, timeout: float | None = None) -> CreatePostResult:
        """
        Publish a text post visible to anyone.

        Returns:
            CreatePostResult with the new share URN (empty if not echoed back)

        """
        text = _require_text(text, "post text")
        payload = {
            "visibleToConnectionsOnly": False,
            "externalAudienceProviders": [],
            "commentaryV2": {"text": text, "attributesV2": []},
            "origin": "FEED",
            "allowedCommentersScope": "ALL",
            "postState": "PUBLISHED",
            "mediaCategory": "NONE",
        }
        doc = self._client.post("/contentcreation/normShares", payload, timeout=timeout)
        return resolve_created_post(doc)

    def list_posts(
        self,
        profile_urn: str,
        start: int = 0,
        count: int = 10,
        timeout: float | None = None,
    ) -> list[FeedUpdate]:
        """
        List a member's recent posts.

        Args:
            profile_urn: The member's fsd_profile URN
            start: Offset into the feed
            count: Number of updates to request

        """
        profile_urn = _require(profile_urn, "profile identifier")
        if count <= 0:
            count = 10
        params = {
            "q": "memberShareFeed",
            "moduleKey": "member-share",
            "count": count,
            "start": max(start, 0),
            "profileUrn": profile_urn,
        }
        doc = self._client.get("/feed/dash/updates", params, timeout=timeout)
        return resolve_feed_updates(doc, EntityIndex.from_document(doc))


# =============================================================================
# Network Operations
# =============================================================================


class NetworkOperations:
    """Follow and connect."""

    def __init__(self, client: APIClient):
        self._client = client

    def follow(self, member_urn: str, timeout: float | None = None) -> bool:
        """
        Follow a member.

        Args:
            member_urn: "urn:li:member:<id>"

        Returns:
            True if the request succeeded

        """
        member_urn = _require(member_urn, "member urn")
        if not member_urn.startswith("urn:li:member:"):
            raise ValidationError(f"unexpected member urn: {member_urn!r}")
        member_id = urn_id(member_urn)
        if not member_id:
            raise ValidationError(f"cannot extract member ID from {member_urn!r}")

        self._client.post(
            "/feed/dash/follows",
            {"urn": f"urn:li:fs_followingInfo:{member_id}"},
            {"action": "followByEntityUrn"},
            expect_body=False,
            timeout=timeout,
        )
        return True

    def connect(self, profile_urn: str, note: str = "", timeout: float | None = None) -> bool:
        """
        Send a connection invitation.

        Args:
            profile_urn: "urn:li:fsd_profile:<id>"
            note: Optional custom message

        Returns:
            True if the request succeeded

        """
        profile_urn = _require(profile_urn, "profile URN")
        if "fsd_profile" not in profile_urn:
            raise ValidationError(f"expected fsd_profile URN, got: {profile_urn!r}")

        payload: dict[str, Any] = {"inviteeProfileUrn": profile_urn}
        if note.strip():
            payload["customMessage"] = note
        self._client.post(
            "/voyagerRelationshipsDashMemberRelationships",
            payload,
            {"action": "verifyQuotaAndCreate"},
            expect_body=False,
            timeout=timeout,
        )
        return True


# =============================================================================
# Messaging Operations
# =============================================================================


class MessagingOperations:
    """Inbox, threads and sending."""

    def __init__(self, client: APIClient):
        self._client = client

    def list_conversations(
        self,
        mailbox_urn: str,
        count: int = 20,
        timeout: float | None = None,
    ) -> list[Conversation]:
        """
        List inbox conversations, newest first.

        Args:
            mailbox_urn: The logged-in member's fsd_profile URN
            count: Max conversations to request

        """
        mailbox_urn = _require(mailbox_urn, "profile URN")
        if count <= 0:
            count = 20

        variables = {
            "query": {"predicateUnions": [{"conversationCategoryPredicate": {"category": "INBOX"}}]},
            "count": count,
            "mailboxUrn": Urn(mailbox_urn),
        }
        raw_query = build_raw_query(
            [("variables", variables), ("queryId", self._client.config.conversations_query_id)]
        )
        doc = self._client.get_raw(MESSAGING_GRAPHQL_PATH, raw_query, timeout=timeout)
        return resolve_conversations(doc, EntityIndex.from_document(doc))

    def get_messages(self, conversation_urn: str, timeout: float | None = None) -> list[Message]:
        """Get the recent messages of a conversation in chronological order."""
        conversation_urn = _require(conversation_urn, "conversation URN")

        raw_query = build_raw_query(
            [
                ("variables", {"conversationUrn": Urn(conversation_urn)}),
                ("queryId", self._client.config.messages_query_id),
            ]
        )
        doc = self._client.get_raw(MESSAGING_GRAPHQL_PATH, raw_query, timeout=timeout)
        return resolve_messages(doc, EntityIndex.from_document(doc))

    @staticmethod
    def find_conversation(conversations: list[Conversation], profile_urn: str) -> Conversation | None:
        """Find the conversation that includes the member with this fsd_profile URN."""
        return find_conversation_by_profile(conversations, profile_urn)

    def _with_tracking_id(self, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            payload["trackingId"] = generate_tracking_id()
        except TokenGenerationError as e:
            # The field is optional; never substitute a fixed token
            if self._client.config.debug:
                logger.debug(f"[li] sending without trackingId: {e.message}")
        return payload

    def send_message(
        self,
        mailbox_urn: str,
        conversation_urn: str,
        text: str,
        timeout: float | None = None,
    ) -> bool:
        """
        Send a text message to an existing conversation (experimental).

        Returns:
            True if the request succeeded

        """
        text = _require_text(text, "message text")
        mailbox_urn = _require(mailbox_urn, "profile URN")
        conversation_urn = _require(conversation_urn, "conversation URN")

        payload = self._with_tracking_id(
            {
                "message": {
                    "body": {"text": text, "attributes": []},
                    "renderContentUnions": [],
                    "conversationUrn": conversation_urn,
                    "originToken": str(uuid.uuid4()),
                },
                "mailboxUrn": mailbox_urn,
                "dedupeByClientGeneratedToken": False,
            }
        )
        self._client.post_messaging(
            "/voyagerMessagingDashMessengerMessages",
            build_raw_query([("action", "createMessage")]),
            payload,
            timeout=timeout,
        )
        return True

    def create_conversation(
        self,
        mailbox_urn: str,
        recipient_urns: list[str],
        text: str,
        timeout: float | None = None,
    ) -> bool:
        """
        Start a new conversation with a first message (experimental).

        Args:
            mailbox_urn: The logged-in member's fsd_profile URN
            recipient_urns: Recipients' fsd_profile URNs

        Returns:
            True if the request succeeded

        """
        text = _require_text(text, "message text")
        mailbox_urn = _require(mailbox_urn, "profile URN")
        if not recipient_urns:
            raise ValidationError("no recipients")

        # Only createMessage carries a trackingId
        payload = {
            "message": {"body": {"text": text, "attributes": []}},
            "recipients": list(recipient_urns),
            "mailboxUrn": mailbox_urn,
            "subtype": "MEMBER_TO_MEMBER",
        }
        self._client.post_messaging(
            "/voyagerMessagingDashMessengerConversations",
            build_raw_query([("action", "create")]),
            payload,
            timeout=timeout,
        )
        return True

    def send_to(
        self,
        mailbox_urn: str,
        recipient_urn: str,
        text: str,
        search_count: int = 25,
        timeout: float | None = None,
    ) -> Conversation | None:
        """
        Message a member, reusing an existing conversation when one is found.

        Returns:
            The conversation the message went to, or None if a new one was created

        """
        conversations = self.list_conversations(mailbox_urn, search_count, timeout=timeout)
        conversation = self.find_conversation(conversations, recipient_urn)
        if conversation is not None:
            self.send_message(mailbox_urn, conversation.urn, text, timeout=timeout)
        else:
            self.create_conversation(mailbox_urn, [recipient_urn], text, timeout=timeout)
        return conversation
