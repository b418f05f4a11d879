"""
Domain types materialized from Voyager responses.

All types are frozen: once a resolver returns them they are never mutated.
A zero value (every field empty) means "not found", not "failed".
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any

from li_cli.core.graph import EntityView, first_of, urn_id

MEMBER_URN_PREFIX = "urn:li:member:"


class _Value:
    """Shared helpers for domain value types."""

    @property
    def is_empty(self) -> bool:
        """Check whether every field still holds its zero value."""
        return all(getattr(self, f.name) == f.default for f in fields(self))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        return asdict(self)


def member_identity(entity: EntityView) -> tuple[str, str, str]:
    """
    Derive (entity URN, member ID, member URN) for a profile-like entity.

    The member ID is the trailing segment of the entity's own URN, or of its
    objectUrn when the entity URN yields nothing.

    """
    entity_urn = first_of(
        lambda: entity.string("entityUrn"),
        lambda: entity.string("dashEntityUrn"),
    ) or ""
    member_id = first_of(
        lambda: urn_id(entity_urn),
        lambda: urn_id(entity.string("objectUrn")),
    ) or ""
    member_urn = MEMBER_URN_PREFIX + member_id if member_id else ""
    return entity_urn, member_id, member_urn


# =============================================================================
# Identity Types
# =============================================================================


@dataclass(frozen=True)
class Me(_Value):
    """The logged-in member, from /me."""

    public_identifier: str = ""
    first_name: str = ""
    last_name: str = ""
    occupation: str = ""
    entity_urn: str = ""
    profile_urn: str = ""
    member_id: str = ""
    member_urn: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_entity(cls, entity: EntityView | None) -> "Me":
        """Create from a miniProfile entity."""
        if entity is None:
            return cls()
        entity_urn, member_id, member_urn = member_identity(entity)
        profile_urn = first_of(
            lambda: entity.string("dashEntityUrn"),
            lambda: entity_urn if "fsd_profile" in entity_urn else "",
        ) or ""
        return cls(
            public_identifier=entity.string("publicIdentifier"),
            first_name=entity.string("firstName"),
            last_name=entity.string("lastName"),
            occupation=entity.string("occupation"),
            entity_urn=entity_urn,
            profile_urn=profile_urn,
            member_id=member_id,
            member_urn=member_urn,
        )


@dataclass(frozen=True)
class Profile(_Value):
    """A member profile, from the dash identity API."""

    public_identifier: str = ""
    first_name: str = ""
    last_name: str = ""
    headline: str = ""
    summary: str = ""
    location_name: str = ""
    entity_urn: str = ""
    member_id: str = ""
    member_urn: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_entity(cls, entity: EntityView | None) -> "Profile":
        """Create from a Profile entity (or a legacy flat profile object)."""
        if entity is None:
            return cls()
        entity_urn, member_id, member_urn = member_identity(entity)
        return cls(
            public_identifier=entity.string("publicIdentifier"),
            first_name=entity.string("firstName"),
            last_name=entity.string("lastName"),
            headline=first_of(
                lambda: entity.string("headline"),
                lambda: entity.string("occupation"),
            ) or "",
            summary=entity.string("summary"),
            location_name=first_of(
                lambda: entity.string("geoLocationName"),
                lambda: entity.string("locationName"),
            ) or "",
            entity_urn=entity_urn,
            member_id=member_id,
            member_urn=member_urn,
        )


# =============================================================================
# Messaging Types
# =============================================================================


@dataclass(frozen=True)
class Participant(_Value):
    """A participant in a conversation."""

    urn: str = ""
    first_name: str = ""
    last_name: str = ""
    profile_urn: str = ""

    @property
    def full_name(self) -> str:
        """Return "First Last", trimmed."""
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_entity(cls, entity: EntityView) -> "Participant":
        """Create from a MessagingParticipant entity."""
        member = entity.obj("participantType", "member")
        return cls(
            urn=entity.urn,
            first_name=first_of(
                lambda: member.text("firstName") if member else "",
                lambda: entity.text("firstName"),
            ) or "",
            last_name=first_of(
                lambda: member.text("lastName") if member else "",
                lambda: entity.text("lastName"),
            ) or "",
            profile_urn=entity.string("hostIdentityUrn"),
        )


@dataclass(frozen=True)
class Message(_Value):
    """A single message. delivered_at is epoch milliseconds."""

    urn: str = ""
    body_text: str = ""
    sender_urn: str = ""
    sender_name: str = ""
    delivered_at: int = 0

    @classmethod
    def from_entity(cls, entity: EntityView, participants: Mapping[str, Participant]) -> "Message":
        """Create from a Message entity, resolving the sender name through the participant index."""
        sender_urn = entity.ref("sender")
        sender = participants.get(sender_urn)
        return cls(
            urn=entity.urn,
            body_text=entity.text("body"),
            sender_urn=sender_urn,
            sender_name=sender.full_name if sender else "",
            delivered_at=entity.integer("deliveredAt"),
        )


@dataclass(frozen=True)
class Conversation(_Value):
    """A messaging conversation."""

    urn: str = ""
    participants: tuple[Participant, ...] = ()
    last_message: Message | None = None

    @property
    def last_activity(self) -> int:
        """Delivery time of the last message, 0 when there is none."""
        return self.last_message.delivered_at if self.last_message else 0

    def has_participant(self, profile_urn: str) -> bool:
        return any(p.profile_urn == profile_urn for p in self.participants)


# =============================================================================
# Search / Feed Types
# =============================================================================


@dataclass(frozen=True)
class SearchItem(_Value):
    """A search result card."""

    public_identifier: str = ""
    title: str = ""
    primary_subtitle: str = ""
    secondary_subtitle: str = ""
    target_urn: str = ""


@dataclass(frozen=True)
class FeedUpdate(_Value):
    """A feed update (post) by a member."""

    urn: str = ""
    update_type: str = ""
    actor_urn: str = ""
    published_at: int = 0
    commentary: str = ""


@dataclass(frozen=True)
class CreatePostResult(_Value):
    """Result of publishing a post."""

    entity_urn: str = ""
