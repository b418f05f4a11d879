"""
Resolvers: normalized response -> domain objects.

Each resolver takes the decoded document and its EntityIndex and walks an
ordered chain of extraction strategies. The current schema (references into
``included``) comes first; nested and legacy flat shapes are fallbacks.
Finding nothing returns an empty value, never an error.
"""

from typing import Any

from li_cli.core.credentials import normalize_public_identifier
from li_cli.core.graph import EntityIndex, EntityView, first_of, reference_keys
from li_cli.core.ordering import order_conversations, order_messages
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

PARTICIPANT_TYPE = "com.linkedin.messenger.MessagingParticipant"
MESSAGE_TYPE = "com.linkedin.messenger.Message"
CONVERSATION_TYPE = "com.linkedin.messenger.Conversation"
SEARCH_RESULT_MARKER = "EntityResultViewModel"

COMMENTARY_KEYS = ("commentary", "shareCommentary")


def _root(doc: Any) -> EntityView:
    return EntityView(doc if isinstance(doc, dict) else {})


# =============================================================================
# Identity
# =============================================================================


def _is_mini_profile(entity: EntityView) -> bool:
    return (
        "miniProfile" in entity.urn
        or "fsd_profile" in entity.string("dashEntityUrn")
        or "MiniProfile" in entity.type
        or "miniProfile" in entity.type
    )


def find_mini_profile(doc: Any, index: EntityIndex) -> EntityView | None:
    """Locate the miniProfile of a /me response."""
    root = _root(doc)
    data = root.obj("data")
    return first_of(
        lambda: index.get(data.ref("miniProfile")) if data else None,
        lambda: index.first(_is_mini_profile),
        lambda: root.obj("data", "miniProfile"),
        lambda: root.obj("miniProfile"),
    )


def find_profile(doc: Any, index: EntityIndex) -> EntityView | None:
    """Locate the main profile entity of a dash profile response."""
    root = _root(doc)
    data = root.obj("data")
    return first_of(
        lambda: index.first(lambda e: "Profile" in e.type and "fsd_profile" in e.urn),
        lambda: index.first(lambda e: "firstName" in e),
        lambda: root.obj("profile"),
        lambda: data if data and "firstName" in data else None,
    )


def resolve_me(doc: Any, index: EntityIndex) -> Me:
    return Me.from_entity(find_mini_profile(doc, index))


def resolve_profile(doc: Any, index: EntityIndex) -> Profile:
    return Profile.from_entity(find_profile(doc, index))


# =============================================================================
# Messaging
# =============================================================================


def index_participants(index: EntityIndex) -> dict[str, Participant]:
    """Participants by URN."""
    participants = {}
    for entity in index.of_type(PARTICIPANT_TYPE):
        participant = Participant.from_entity(entity)
        if participant.urn:
            participants[participant.urn] = participant
    return participants


def index_messages(index: EntityIndex, participants: dict[str, Participant]) -> dict[str, Message]:
    """Messages by URN, sender names already resolved."""
    messages = {}
    for entity in index.of_type(MESSAGE_TYPE):
        message = Message.from_entity(entity, participants)
        if message.urn:
            messages[message.urn] = message
    return messages


def _build_conversation(
    entity: EntityView,
    participants: dict[str, Participant],
    messages: dict[str, Message],
) -> Conversation:
    def resolve_participants(key: str) -> tuple[Participant, ...]:
        return tuple(participants[urn] for urn in entity.strings(key) if urn in participants)

    def resolve_last_message(key: str) -> Message | None:
        return messages.get(entity.string(key))

    resolved = first_of(
        *(lambda key=key: resolve_participants(key) for key in reference_keys("conversationParticipants"))
    )
    last_message = first_of(*(lambda key=key: resolve_last_message(key) for key in reference_keys("lastMessage")))
    return Conversation(urn=entity.urn, participants=resolved or (), last_message=last_message)


def resolve_conversations(doc: Any, index: EntityIndex) -> list[Conversation]:
    """
    Build conversations from a messengerConversations response.

    Three phases over a fully built index: participants by URN, then messages
    by URN (with sender names), then conversations following their
    participant-list and last-message references. Returned newest first.

    """
    participants = index_participants(index)
    messages = index_messages(index, participants)
    conversations = [
        _build_conversation(entity, participants, messages) for entity in index.of_type(CONVERSATION_TYPE)
    ]
    return order_conversations(conversations)


def resolve_messages(doc: Any, index: EntityIndex) -> list[Message]:
    """Messages of a messengerMessages response, in chronological order."""
    participants = index_participants(index)
    return order_messages(Message.from_entity(entity, participants) for entity in index.of_type(MESSAGE_TYPE))


def find_conversation_by_profile(conversations: list[Conversation], profile_urn: str) -> Conversation | None:
    """First conversation with a participant whose hostIdentityUrn is profile_urn."""
    for conversation in conversations:
        if conversation.has_participant(profile_urn):
            return conversation
    return None


# =============================================================================
# Search
# =============================================================================


def resolve_search_results(doc: Any, index: EntityIndex) -> list[SearchItem]:
    items = []
    for entity in index.matching(SEARCH_RESULT_MARKER):
        navigation_url = entity.string("navigationUrl")
        items.append(
            SearchItem(
                public_identifier=normalize_public_identifier(navigation_url) if navigation_url else "",
                title=entity.text("title"),
                primary_subtitle=entity.text("primarySubtitle"),
                secondary_subtitle=entity.text("secondarySubtitle"),
                target_urn=entity.urn,
            )
        )
    return items


# =============================================================================
# Feed
# =============================================================================


def find_text_field(value: Any) -> str:
    """Depth-first search for a non-blank "text" string."""
    if isinstance(value, dict):
        text = value.get("text")
        if isinstance(text, str) and text.strip():
            return text
        children = value.values()
    elif isinstance(value, list):
        children = value
    else:
        return ""
    for child in children:
        text = find_text_field(child)
        if text:
            return text
    return ""


def find_commentary_text(value: Any) -> str:
    """Commentary text of a post, at whatever depth its container sits."""
    if isinstance(value, dict):
        for key in COMMENTARY_KEYS:
            if key in value:
                text = find_text_field(value[key])
                if text:
                    return text
        children = value.values()
    elif isinstance(value, list):
        children = value
    else:
        return ""
    for child in children:
        text = find_commentary_text(child)
        if text:
            return text
    return ""


def find_first_string(value: Any, key: str) -> str:
    """Depth-first search for the first non-blank string under key."""
    if isinstance(value, dict):
        found = value.get(key)
        if isinstance(found, str) and found.strip():
            return found
        children = value.values()
    elif isinstance(value, list):
        children = value
    else:
        return ""
    for child in children:
        found = find_first_string(child, key)
        if found:
            return found
    return ""


def _feed_update(entity: EntityView) -> FeedUpdate:
    return FeedUpdate(
        urn=entity.urn,
        update_type=entity.string("updateType"),
        actor_urn=first_of(
            lambda: entity.string("actor", "entityUrn"),
            lambda: entity.ref("actor"),
        ) or "",
        published_at=entity.integer("publishedAt"),
        commentary=find_commentary_text(entity.raw),
    )


def resolve_feed_updates(doc: Any, index: EntityIndex) -> list[FeedUpdate]:
    """Updates from a top-level ``elements`` array, else from update-like entities in ``included``."""
    root = _root(doc)
    elements = root.get("elements")
    sources = first_of(
        lambda: [EntityView(el) for el in elements if isinstance(el, dict)] if isinstance(elements, list) else [],
        lambda: index.matching("Update", urn_fragments=("urn:li:fs_update", "activity")),
    )
    return [_feed_update(entity) for entity in sources or ()]


def resolve_created_post(doc: Any) -> CreatePostResult:
    root = _root(doc)
    entity_urn = first_of(
        lambda: root.string("entityUrn"),
        lambda: root.string("data", "entityUrn"),
        lambda: find_first_string(root.raw, "entityUrn"),
    )
    return CreatePostResult(entity_urn=entity_urn or "")
