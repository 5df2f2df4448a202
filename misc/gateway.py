from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import discord

from config.defaults import DISCORD_MAX_MESSAGE_LEN
from controller.models import HistoryMessage
from ingestion.normalize import best_display_name
from ingestion.normalize import to_history_message


def chunk_text(text: str, limit: int = DISCORD_MAX_MESSAGE_LEN) -> list[str]:
    text = text or ""
    if len(text) <= limit:
        return [text]

    chunks = []
    remaining = text

    while len(remaining) > limit:
        # Prefer splitting on paragraph, then newline, then space
        split_at = remaining.rfind("\n\n", 0, limit)
        if split_at == -1:
            split_at = remaining.rfind("\n", 0, limit)
        if split_at == -1:
            split_at = remaining.rfind(" ", 0, limit)
        if split_at == -1:
            split_at = limit

        chunk = remaining[:split_at].strip()
        if chunk:
            chunks.append(chunk)

        remaining = remaining[split_at:].strip()

    if remaining:
        chunks.append(remaining)

    return chunks


class DiscordGateway:
    """The send / fetch / lookup surface plugins use, backed by a discord.py client."""

    def __init__(self, client: discord.Client) -> None:
        self.client = client

    @property
    def bot_user_id(self) -> int | None:
        user = self.client.user
        return int(user.id) if user is not None else None

    async def _channel(self, channel_id: int):
        channel = self.client.get_channel(int(channel_id))
        if channel is None:
            channel = await self.client.fetch_channel(int(channel_id))
        return channel

    async def send(self, channel_id: int, text: str, *, reply_to: int | None = None) -> None:
        channel = await self._channel(channel_id)
        reference = None
        if reply_to is not None:
            reference = channel.get_partial_message(int(reply_to)).to_reference(fail_if_not_exists=False)
        for part in chunk_text(text, DISCORD_MAX_MESSAGE_LEN):
            if reference is not None:
                await channel.send(part, reference=reference, mention_author=False)
                reference = None
            else:
                await channel.send(part)

    async def fetch_history(self, channel_id: int, limit: int, *, before: int | None = None) -> list[HistoryMessage]:
        channel = await self._channel(channel_id)
        cursor = discord.Object(id=int(before)) if before is not None else None
        bot_user_id = self.bot_user_id
        newest_first = [msg async for msg in channel.history(limit=int(limit), before=cursor)]
        return [to_history_message(msg, bot_user_id) for msg in reversed(newest_first)]

    async def display_name(self, user_id: int | None, guild_id: int | None = None) -> str:
        if user_id is None:
            return "<unknown-user>"
        user_id = int(user_id)
        guild = self.client.get_guild(int(guild_id)) if guild_id is not None else None
        try:
            if guild is not None:
                member = guild.get_member(user_id)
                if member is None:
                    member = await guild.fetch_member(user_id)
                return best_display_name(member)
        except discord.HTTPException:
            # Left the guild or never joined it; fall back to the global name.
            pass
        try:
            user = self.client.get_user(user_id) or await self.client.fetch_user(user_id)
        except discord.HTTPException:
            return f"<unknown-user-{user_id}>"
        return best_display_name(user)

    async def dm(self, user_id: int, text: str) -> bool:
        try:
            user = self.client.get_user(int(user_id)) or await self.client.fetch_user(int(user_id))
            for part in chunk_text(text, DISCORD_MAX_MESSAGE_LEN):
                await user.send(part)
        except discord.HTTPException as e:
            print(f"[VC] Could not DM user {user_id}: {e}")
            return False
        return True

    async def react(self, channel_id: int, message_id: int, emoji: str) -> None:
        channel = await self._channel(channel_id)
        await channel.get_partial_message(int(message_id)).add_reaction(emoji)

    @asynccontextmanager
    async def typing(self, channel_id: int) -> AsyncIterator[None]:
        channel = await self._channel(channel_id)
        async with channel.typing():
            yield
