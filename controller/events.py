from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Union

from controller.models import Author

if TYPE_CHECKING:
    from controller.context import Context


@dataclass(frozen=True, slots=True)
class Ready:
    bot_user: Author
    guild_count: int
    ctx: Context | None = field(default=None, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class MessageReceived:
    message_id: int
    channel_id: int
    guild_id: int | None
    author: Author
    # Raw platform content, used for command parsing.
    content: str
    # Mentions translated to readable names, used for history and logs.
    text: str
    timestamp: datetime | None = None
    addressed: bool = False
    from_self: bool = False
    ctx: Context | None = field(default=None, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class ReactionAdded:
    user_id: int
    channel_id: int
    message_id: int
    guild_id: int | None
    emoji: str
    ctx: Context | None = field(default=None, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class ReactionRemoved:
    user_id: int
    channel_id: int
    message_id: int
    guild_id: int | None
    emoji: str
    ctx: Context | None = field(default=None, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class VoiceStateUpdated:
    user_id: int
    user_name: str
    guild_id: int
    guild_name: str
    before_channel_id: int | None
    after_channel_id: int | None
    afk_channel_id: int | None
    # Users currently in non-AFK voice channels of the guild, after the update.
    voice_user_count: int
    ctx: Context | None = field(default=None, repr=False, compare=False)

    @property
    def became_available(self) -> bool:
        before, after, afk = self.before_channel_id, self.after_channel_id, self.afk_channel_id
        if after is None or after == afk:
            return False
        if before is None:
            return True
        return afk is not None and before == afk


Event = Union[Ready, MessageReceived, ReactionAdded, ReactionRemoved, VoiceStateUpdated]
