from __future__ import annotations

from typing import TYPE_CHECKING

from controller.errors import PermissionDenied
from controller.events import Event
from controller.events import MessageReceived
from controller.reply_service import deny_permission
from misc.command_routes import match_command

if TYPE_CHECKING:
    from controller.context import Context


class Plugin:
    """
    One feature of the bot.

    `handle` returns True when the plugin claims the event exclusively; the
    dispatcher then stops. Most plugins return False so later ones still run.
    """

    name = "plugin"

    def usage(self, ctx: Context) -> str | None:
        return None

    async def handle(self, event: Event, ctx: Context) -> bool:
        raise NotImplementedError


class CommandPlugin(Plugin):
    """A plugin that owns one `<prefix><command>` verb and short-circuits when it matches."""

    command = ""

    async def handle(self, event: Event, ctx: Context) -> bool:
        if not isinstance(event, MessageReceived):
            return False
        args = match_command(event.content, ctx.command_prefix, self.command)
        if args is None:
            return False
        try:
            await self.run(event, ctx, args)
        except PermissionDenied as e:
            await deny_permission(ctx, event, e)
        return True

    async def run(self, event: MessageReceived, ctx: Context, args: str) -> None:
        raise NotImplementedError

    async def reply(self, event: MessageReceived, ctx: Context, text: str) -> None:
        await ctx.gateway.send(event.channel_id, text, reply_to=event.message_id)
