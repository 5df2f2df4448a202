from __future__ import annotations

import re
from typing import Any

from controller.events import MessageReceived
from controller.events import ReactionAdded
from controller.events import ReactionRemoved
from controller.events import Ready
from controller.events import VoiceStateUpdated
from controller.models import ROLE_BOT
from controller.models import ROLE_USER
from controller.models import Author
from controller.models import HistoryMessage

_MENTION_RE = re.compile(r"<(@!?|@&|#)(\d+)>")


def best_display_name(user_obj: Any) -> str:
    for attr in ("display_name", "global_name", "name"):
        value = getattr(user_obj, attr, None)
        if value:
            return str(value)
    return f"<unknown-user-{getattr(user_obj, 'id', '?')}>"


def author_from(user_obj: Any) -> Author:
    return Author(
        id=int(user_obj.id),
        name=str(getattr(user_obj, "name", "") or ""),
        display_name=best_display_name(user_obj),
        bot=bool(getattr(user_obj, "bot", False)),
    )


def human_format_content(message: Any) -> str:
    """
    Replace Discord mention markup with the names people see.

    Users resolve to their per-guild display name, roles to `@role`, channels
    to `#channel`. Mentions the message does not carry metadata for are left
    as they are.
    """
    content = message.content or ""
    if "<" not in content:
        return content

    users = {int(u.id): best_display_name(u) for u in (getattr(message, "mentions", None) or [])}
    roles = {int(r.id): f"@{r.name}" for r in (getattr(message, "role_mentions", None) or [])}
    channels = {int(c.id): f"#{c.name}" for c in (getattr(message, "channel_mentions", None) or [])}

    def _replace(m: re.Match) -> str:
        kind, raw_id = m.group(1), int(m.group(2))
        if kind == "@&":
            return roles.get(raw_id, "@UnknownRole" if getattr(message, "guild", None) else m.group(0))
        if kind == "#":
            return channels.get(raw_id, m.group(0))
        return users.get(raw_id, m.group(0))

    return _MENTION_RE.sub(_replace, content)


def is_addressed(message: Any, bot_user_id: int | None) -> bool:
    if bot_user_id is None:
        return False

    # mentions the bot directly
    if any(int(u.id) == bot_user_id for u in (getattr(message, "mentions", None) or [])):
        return True

    # reply to something the bot said
    reference = getattr(message, "reference", None)
    resolved = getattr(reference, "resolved", None) if reference is not None else None
    resolved_author = getattr(resolved, "author", None)
    if resolved_author is not None and int(resolved_author.id) == bot_user_id:
        return True

    # mentions a role the bot holds
    role_ids = {int(r.id) for r in (getattr(message, "role_mentions", None) or [])}
    if not role_ids:
        return False
    guild = getattr(message, "guild", None)
    me = getattr(guild, "me", None) if guild is not None else None
    my_roles = {int(r.id) for r in (getattr(me, "roles", None) or [])}
    return bool(role_ids & my_roles)


def to_history_message(message: Any, bot_user_id: int | None, *, text: str | None = None) -> HistoryMessage:
    author = message.author
    return HistoryMessage(
        author_id=int(author.id),
        author_name=best_display_name(author),
        role=ROLE_BOT if bot_user_id is not None and int(author.id) == bot_user_id else ROLE_USER,
        text=human_format_content(message) if text is None else text,
        timestamp=getattr(message, "created_at", None),
    )


def normalize_message(message: Any, *, bot_user_id: int | None, ctx=None) -> MessageReceived:
    guild = getattr(message, "guild", None)
    author = author_from(message.author)
    return MessageReceived(
        message_id=int(message.id),
        channel_id=int(message.channel.id),
        guild_id=int(guild.id) if guild is not None else None,
        author=author,
        content=message.content or "",
        text=human_format_content(message),
        timestamp=getattr(message, "created_at", None),
        addressed=is_addressed(message, bot_user_id),
        from_self=bot_user_id is not None and author.id == bot_user_id,
        ctx=ctx,
    )


def _emoji_text(emoji: Any) -> str:
    name = getattr(emoji, "name", None)
    if getattr(emoji, "id", None) is None and name:
        return str(name)
    return str(name or emoji or "<unknown-emoji>")


def normalize_reaction(payload: Any, *, ctx=None, removed: bool = False) -> ReactionAdded | ReactionRemoved:
    cls = ReactionRemoved if removed else ReactionAdded
    guild_id = getattr(payload, "guild_id", None)
    return cls(
        user_id=int(payload.user_id),
        channel_id=int(payload.channel_id),
        message_id=int(payload.message_id),
        guild_id=int(guild_id) if guild_id is not None else None,
        emoji=_emoji_text(payload.emoji),
        ctx=ctx,
    )


def _channel_id(state: Any) -> int | None:
    channel = getattr(state, "channel", None) if state is not None else None
    return int(channel.id) if channel is not None else None


def count_voice_users(guild: Any) -> int:
    afk = getattr(guild, "afk_channel", None)
    afk_id = int(afk.id) if afk is not None else None
    total = 0
    for channel in getattr(guild, "voice_channels", None) or []:
        if afk_id is not None and int(channel.id) == afk_id:
            continue
        total += len(getattr(channel, "members", None) or [])
    return total


def normalize_voice_state(member: Any, before: Any, after: Any, *, ctx=None) -> VoiceStateUpdated | None:
    before_id = _channel_id(before)
    after_id = _channel_id(after)
    if before_id == after_id:
        # mute/deafen/stream toggles inside the same channel
        return None

    guild = member.guild
    afk = getattr(guild, "afk_channel", None)
    return VoiceStateUpdated(
        user_id=int(member.id),
        user_name=best_display_name(member),
        guild_id=int(guild.id),
        guild_name=str(getattr(guild, "name", "") or ""),
        before_channel_id=before_id,
        after_channel_id=after_id,
        afk_channel_id=int(afk.id) if afk is not None else None,
        voice_user_count=count_voice_users(guild),
        ctx=ctx,
    )


def normalize_ready(bot_user: Any, guilds: Any, *, ctx=None) -> Ready:
    return Ready(bot_user=author_from(bot_user), guild_count=len(list(guilds or [])), ctx=ctx)
