from __future__ import annotations

from config.defaults import LLM_REPLY_TEMPLATE
from controller.context import Context
from controller.events import Event
from controller.events import MessageReceived
from controller.plugin import Plugin
from controller.reply_service import respond_with_template


class LlmReplyPlugin(Plugin):
    """Answers messages addressed to the bot. Registered last so commands win."""

    name = "llm_reply"

    async def handle(self, event: Event, ctx: Context) -> bool:
        if not isinstance(event, MessageReceived):
            return False
        if event.from_self or not event.addressed:
            return False
        await respond_with_template(ctx, event, LLM_REPLY_TEMPLATE)
        return True
