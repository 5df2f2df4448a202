from __future__ import annotations

from controller.context import Context
from controller.events import Event
from controller.events import MessageReceived
from controller.events import ReactionAdded
from controller.events import ReactionRemoved
from controller.events import Ready
from controller.events import VoiceStateUpdated
from controller.models import ROLE_BOT
from controller.models import ROLE_USER
from controller.models import HistoryMessage
from controller.plugin import CommandPlugin
from controller.plugin import Plugin


def describe_event(event: Event) -> str | None:
    if isinstance(event, Ready):
        return f"Connected to {event.guild_count} server(s) as {event.bot_user.display_name}"
    if isinstance(event, MessageReceived):
        where = f"{event.guild_id or 'dm'}/{event.channel_id}"
        return f"{where}/{event.author.display_name}: {event.text}"
    if isinstance(event, ReactionAdded):
        return f"user {event.user_id} reacted to message {event.message_id} with {event.emoji!r}"
    if isinstance(event, ReactionRemoved):
        return f"user {event.user_id} removed reaction {event.emoji!r} from message {event.message_id}"
    if isinstance(event, VoiceStateUpdated):
        if event.before_channel_id is None:
            return f"{event.user_name} joined VC channel {event.after_channel_id} in {event.guild_name}"
        if event.after_channel_id is None:
            return f"{event.user_name} left VC channel {event.before_channel_id} in {event.guild_name}"
        return (
            f"{event.user_name} moved VC channel from {event.before_channel_id} "
            f"to {event.after_channel_id} in {event.guild_name}"
        )
    return None


class DebugPlugin(Plugin):
    name = "debug"

    async def handle(self, event: Event, ctx: Context) -> bool:
        line = describe_event(event)
        if line:
            print(f"[Event] {line}")
        return False


class ReadyPlugin(Plugin):
    name = "ready"

    async def handle(self, event: Event, ctx: Context) -> bool:
        if not isinstance(event, Ready):
            return False
        print(f"[Ready] {event.bot_user.display_name} is online in {event.guild_count} server(s)")
        return True


class HistoryPlugin(Plugin):
    """Records every message, the bot's own replies included, into the channel history."""

    name = "history"

    async def handle(self, event: Event, ctx: Context) -> bool:
        if not isinstance(event, MessageReceived):
            return False
        await ctx.history.record(
            event.channel_id,
            HistoryMessage(
                author_id=event.author.id,
                author_name=event.author.display_name,
                role=ROLE_BOT if event.from_self else ROLE_USER,
                text=event.text,
                timestamp=event.timestamp,
            ),
        )
        return False


class IgnoreBotsPlugin(Plugin):
    name = "ignore_bots"

    async def handle(self, event: Event, ctx: Context) -> bool:
        return isinstance(event, MessageReceived) and event.author.bot


class HelpPlugin(CommandPlugin):
    name = "help"
    command = "help"

    def usage(self, ctx: Context) -> str | None:
        return f"{ctx.command_prefix}help - you are here"

    async def run(self, event: MessageReceived, ctx: Context, args: str) -> None:
        lines = ["Commands:"]
        for plugin in ctx.plugins:
            text = plugin.usage(ctx)
            if text:
                lines.append(text)
        await self.reply(event, ctx, "```\n" + "\n".join(lines) + "\n```")
