from __future__ import annotations

from config.defaults import LLM_REPLY_TEMPLATE
from controller.context import Context
from controller.events import MessageReceived
from controller.plugin import CommandPlugin
from controller.reply_service import MODEL_OVERRIDES_KEY


class ModelPlugin(CommandPlugin):
    name = "model"
    command = "model"

    def usage(self, ctx: Context) -> str | None:
        p = ctx.command_prefix
        return (
            f"{p}model [name|reset] - show the chat model\n"
            f"| setting or resetting it is owner-only"
        )

    async def run(self, event: MessageReceived, ctx: Context, args: str) -> None:
        configured = ctx.config.template(LLM_REPLY_TEMPLATE).model_name
        overrides = await ctx.pstate.get(MODEL_OVERRIDES_KEY, {}) or {}
        current = overrides.get(LLM_REPLY_TEMPLATE)

        requested = args.strip()
        if not requested:
            if current:
                await self.reply(event, ctx, f"Chat model: `{current}` (override; configured `{configured}`)")
            else:
                await self.reply(event, ctx, f"Chat model: `{configured}`")
            return

        ctx.require_owner(event.author.id, "change the chat model")

        if requested.lower() == "reset":
            async with ctx.pstate.transaction() as data:
                data.get(MODEL_OVERRIDES_KEY, {}).pop(LLM_REPLY_TEMPLATE, None)
            print(f"[Model] override cleared by user={event.author.id}")
            await self.reply(event, ctx, f"Chat model reset to `{configured}`.")
            return

        model = requested.split()[0]
        async with ctx.pstate.transaction() as data:
            data.setdefault(MODEL_OVERRIDES_KEY, {})[LLM_REPLY_TEMPLATE] = model
        print(f"[Model] override set to {model} by user={event.author.id}")
        await self.reply(event, ctx, f"Chat model set to `{model}`.")
