"""
LinkedIn CLI - Opinionated command-line interface.

This layer provides the user-facing CLI commands, using the SDK layer
for all operations. It handles:
- Argument parsing
- TTY detection for human vs machine output
- Pretty formatting for human output
- JSON output for piping/automation

Session cookies come from the LI_AT and LI_JSESSIONID environment variables.
"""

import argparse
import json
import sys
from datetime import datetime
from typing import Any

from loguru import logger

from li_cli.core.client import CLIError, ValidationError
from li_cli.core.credentials import normalize_public_identifier
from li_cli.core.types import Conversation
from li_cli.sdk import LinkedInClient

# =============================================================================
# Output Helpers
# =============================================================================


PREVIEW_WIDTH = 80


def is_tty() -> bool:
    """Check if stdout is a TTY (human) or pipe (LLM/machine)."""
    return sys.stdout.isatty()


def json_output(data: Any, pretty: bool = False) -> None:
    """Print JSON output."""
    indent = 2 if pretty or is_tty() else None
    print(json.dumps(data, indent=indent, default=str))


def error_output(error: CLIError) -> None:
    """Print error and exit."""
    json_output(error.to_dict())
    sys.exit(1)


def success_output(data: Any) -> None:
    """Print success output."""
    json_output(data)


def format_timestamp(ms: int, now: datetime | None = None) -> str:
    """Format epoch milliseconds relative to now: time today, weekday this week, else date."""
    if ms <= 0:
        return ""
    ts = datetime.fromtimestamp(ms / 1000)
    now = now or datetime.now()
    if ts.date() == now.date():
        return ts.strftime("%H:%M")
    if (now - ts).days < 7:
        return ts.strftime("%a %H:%M")
    return ts.strftime("%Y-%m-%d %H:%M")


def truncate(text: str, width: int) -> str:
    """Single-line preview of text."""
    text = text.replace("\n", " ").replace("\r", "")
    if len(text) > width:
        return text[: width - 1] + "…"
    return text


def conversation_title(conversation: Conversation, my_profile_urn: str) -> str:
    """Names of the other participants."""
    names = [p.full_name or p.profile_urn for p in conversation.participants if p.profile_urn != my_profile_urn]
    return ", ".join(names) or "(unknown)"


# =============================================================================
# CLI Commands
# =============================================================================


def cmd_profile_view(client: LinkedInClient, args: argparse.Namespace) -> None:
    """View a profile (own profile when no username is given)."""
    username = getattr(args, "username", None)
    if username:
        public_id = normalize_public_identifier(username)
    else:
        public_id = client.profiles.me().public_identifier
    if not public_id:
        raise ValidationError("missing profile identifier")

    profile = client.profiles.get(public_id)

    if is_tty():
        print(f"Name: {profile.full_name or public_id}")
        if profile.headline:
            print(f"Headline: {profile.headline}")
        if profile.location_name:
            print(f"Location: {profile.location_name}")
        if profile.public_identifier:
            print(f"Public ID: {profile.public_identifier}")
        if profile.member_urn:
            print(f"Member URN: {profile.member_urn}")
        if profile.summary:
            print(f"\n{profile.summary}")
    else:
        success_output(profile.to_dict())


def cmd_search(client: LinkedInClient, args: argparse.Namespace) -> None:
    """Search people or jobs."""
    query = " ".join(args.query)
    if args.kind == "people":
        items = client.search.people(query, count=args.limit)
    else:
        items = client.search.jobs(query, count=args.limit)

    if is_tty():
        for item in items:
            if args.kind == "people":
                fields = [item.public_identifier, item.title, item.primary_subtitle, item.target_urn]
            else:
                fields = [item.title, item.primary_subtitle, item.secondary_subtitle, item.target_urn]
            print("\t".join(f for f in fields if f))
    else:
        success_output({"data": [item.to_dict() for item in items]})


def cmd_post_create(client: LinkedInClient, args: argparse.Namespace) -> None:
    """Publish a post."""
    result = client.feed.create_post(" ".join(args.text))
    if is_tty():
        print(f"Posted: {result.entity_urn}" if result.entity_urn else "Posted.")
    else:
        success_output(result.to_dict())


def cmd_post_list(client: LinkedInClient, args: argparse.Namespace) -> None:
    """List a member's recent posts."""
    profile_urn = args.profile_urn or client.profiles.my_profile_urn()
    updates = client.feed.list_posts(profile_urn, count=args.limit)

    if is_tty():
        if not updates:
            print("No posts found.")
        for update in updates:
            print(f"{update.urn}  {format_timestamp(update.published_at)}")
            if update.commentary:
                print(f"  {truncate(update.commentary, PREVIEW_WIDTH)}")
            print()
    else:
        success_output({"data": [update.to_dict() for update in updates]})


def cmd_follow(client: LinkedInClient, args: argparse.Namespace) -> None:
    """Follow a member."""
    client.network.follow(args.member_urn)
    success_output({"followed": args.member_urn})


def cmd_connect(client: LinkedInClient, args: argparse.Namespace) -> None:
    """Send a connection invitation."""
    client.network.connect(args.profile_urn, args.note or "")
    success_output({"invited": args.profile_urn})


def cmd_msg_list(client: LinkedInClient, args: argparse.Namespace) -> None:
    """List inbox conversations."""
    my_urn = client.profiles.my_profile_urn()
    conversations = client.messaging.list_conversations(my_urn, args.limit)

    if is_tty():
        if not conversations:
            print("No conversations found.")
        for conversation in conversations:
            who = conversation_title(conversation, my_urn)
            if conversation.last_message:
                ts = format_timestamp(conversation.last_message.delivered_at)
                print(f"{who}  {ts}\n  {truncate(conversation.last_message.body_text, PREVIEW_WIDTH)}\n")
            else:
                print(f"{who}  (no messages)\n")
    else:
        success_output({"data": [conversation.to_dict() for conversation in conversations]})


def _resolve_target(client: LinkedInClient, username: str) -> tuple[str, str]:
    """Return (display name, fsd_profile URN) for a username."""
    public_id = normalize_public_identifier(username)
    profile = client.profiles.get(public_id)
    if not profile.entity_urn:
        raise ValidationError(f"could not determine profile URN for {public_id!r}")
    return profile.full_name or public_id, profile.entity_urn


def cmd_msg_read(client: LinkedInClient, args: argparse.Namespace) -> None:
    """Read the conversation with a member."""
    my_urn = client.profiles.my_profile_urn()
    name, target_urn = _resolve_target(client, args.username)

    conversations = client.messaging.list_conversations(my_urn, 25)
    conversation = client.messaging.find_conversation(conversations, target_urn)
    if conversation is None:
        raise ValidationError(f"no conversation found with {args.username} ({target_urn})")

    messages = client.messaging.get_messages(conversation.urn)

    if is_tty():
        if not messages:
            print("No messages in this conversation.")
            return
        print(f"Conversation with {name}\n{'─' * 40}\n")
        for message in messages:
            sender = message.sender_name or message.sender_urn
            print(f"[{format_timestamp(message.delivered_at)}] {sender}:\n{message.body_text}\n")
    else:
        success_output({"conversation": conversation.urn, "data": [m.to_dict() for m in messages]})


def cmd_msg_send(client: LinkedInClient, args: argparse.Namespace) -> None:
    """Send a message to a member (experimental)."""
    my_urn = client.profiles.my_profile_urn()
    _, target_urn = _resolve_target(client, args.username)
    conversation = client.messaging.send_to(my_urn, target_urn, " ".join(args.text))
    success_output(
        {
            "sent_to": args.username,
            "conversation": conversation.urn if conversation else None,
            "new_conversation": conversation is None,
        }
    )


# =============================================================================
# Argument Parser
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="li",
        description="LinkedIn CLI - profiles, search, posts and messaging from the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment variables:
  LI_AT            li_at session cookie
  LI_JSESSIONID    JSESSIONID session cookie
  LI_USER_AGENT    User agent of the browser that issued the cookies
  LI_DEBUG         Log HTTP method/url/status (same as --debug)
""",
    )
    parser.add_argument("--debug", action="store_true", default=None, help="Log HTTP method/url/status to stderr")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ========== Profile ==========
    profile = subparsers.add_parser("profile", help="View profiles")
    profile.set_defaults(func=lambda _c, _a: profile.print_help())
    profile_sub = profile.add_subparsers(dest="subcommand")

    p_me = profile_sub.add_parser("me", help="View your own profile")
    p_me.set_defaults(func=cmd_profile_view)

    p_view = profile_sub.add_parser("view", help="View a profile")
    p_view.add_argument("username", nargs="?", help="Public identifier, @handle or profile URL")
    p_view.set_defaults(func=cmd_profile_view)

    # ========== Search ==========
    search = subparsers.add_parser("search", help="Search people or jobs")
    search.set_defaults(func=lambda _c, _a: search.print_help())
    search_sub = search.add_subparsers(dest="subcommand")

    for kind in ("people", "jobs"):
        s = search_sub.add_parser(kind, help=f"Search for {kind}")
        s.add_argument("query", nargs="+", help="Keywords")
        s.add_argument("--limit", "-l", type=int, default=10, help="Max results")
        s.set_defaults(func=cmd_search, kind=kind)

    # ========== Posts ==========
    post = subparsers.add_parser("post", help="Create and list posts")
    post.set_defaults(func=lambda _c, _a: post.print_help())
    post_sub = post.add_subparsers(dest="subcommand")

    po_create = post_sub.add_parser("create", help="Create a new post")
    po_create.add_argument("text", nargs="+", help="Post text")
    po_create.set_defaults(func=cmd_post_create)

    po_list = post_sub.add_parser("list", help="List recent posts")
    po_list.add_argument("profile_urn", nargs="?", help="fsd_profile URN (default: your own)")
    po_list.add_argument("--limit", "-l", type=int, default=10, help="Max posts")
    po_list.set_defaults(func=cmd_post_list)

    # ========== Network ==========
    follow = subparsers.add_parser("follow", help="Follow a member")
    follow.add_argument("member_urn", help="urn:li:member:<id>")
    follow.set_defaults(func=cmd_follow)

    connect = subparsers.add_parser("connect", help="Send a connection invitation")
    connect.add_argument("profile_urn", help="urn:li:fsd_profile:<id>")
    connect.add_argument("--note", "-n", help="Custom invitation message")
    connect.set_defaults(func=cmd_connect)

    # ========== Messaging ==========
    msg = subparsers.add_parser("msg", aliases=["message"], help="Messaging")
    msg.set_defaults(func=lambda _c, _a: msg.print_help())
    msg_sub = msg.add_subparsers(dest="subcommand")

    m_list = msg_sub.add_parser("list", help="List recent conversations (inbox)")
    m_list.add_argument("--limit", "-l", type=int, default=20, help="Max conversations")
    m_list.set_defaults(func=cmd_msg_list)

    m_read = msg_sub.add_parser("read", help="Read the conversation with a member")
    m_read.add_argument("username", help="Public identifier, @handle or profile URL")
    m_read.set_defaults(func=cmd_msg_read)

    m_send = msg_sub.add_parser("send", help="Send a message (experimental)")
    m_send.add_argument("username", help="Public identifier, @handle or profile URL")
    m_send.add_argument("text", nargs="+", help="Message text")
    m_send.set_defaults(func=cmd_msg_send)

    return parser


def main() -> None:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(0)

    if args.debug:
        logger.remove()
        logger.add(sys.stderr, level="DEBUG", format="{message}")

    # Create client
    client = LinkedInClient(debug=args.debug)

    # Run command (all subparsers have default funcs that print help)
    try:
        args.func(client, args)
    except CLIError as e:
        error_output(e)


if __name__ == "__main__":
    main()
