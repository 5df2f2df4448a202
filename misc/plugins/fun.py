from __future__ import annotations

from controller.context import Context
from controller.events import Event
from controller.events import MessageReceived
from controller.plugin import CommandPlugin
from controller.plugin import Plugin

XKCD_RANDOM_URL = "https://c.xkcd.com/random/comic/"
MUSIC_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
EYES = "\N{EYES}"


class XkcdPlugin(CommandPlugin):
    name = "xkcd"
    command = "xkcd"

    def usage(self, ctx: Context) -> str | None:
        return f"{ctx.command_prefix}xkcd - show random xkcd comic"

    async def run(self, event: MessageReceived, ctx: Context, args: str) -> None:
        await self.reply(event, ctx, XKCD_RANDOM_URL)


class MusicPlugin(CommandPlugin):
    name = "music"
    command = "music"

    def usage(self, ctx: Context) -> str | None:
        return f"{ctx.command_prefix}music - fetch random music from YouTube"

    async def run(self, event: MessageReceived, ctx: Context, args: str) -> None:
        await self.reply(event, ctx, MUSIC_URL)


class ReactPlugin(Plugin):
    """Adds an eyes reaction when someone says the bot's name. Never claims the message."""

    name = "react"

    async def handle(self, event: Event, ctx: Context) -> bool:
        if not isinstance(event, MessageReceived) or event.from_self:
            return False
        bot_name = await ctx.gateway.display_name(ctx.gateway.bot_user_id, event.guild_id)
        if not bot_name or bot_name.lower() not in event.content.lower():
            return False
        await ctx.gateway.react(event.channel_id, event.message_id, EYES)
        return False
