from __future__ import annotations

from config.defaults import LLM_FAILURE_REPLY
from config.defaults import LLM_PERMISSION_DENIED_TEMPLATE
from config.defaults import PERMISSION_DENIED_REPLY
from controller.context import Context
from controller.errors import LlmCallFailed
from controller.errors import PermissionDenied
from controller.events import MessageReceived

MODEL_OVERRIDES_KEY = "model_overrides"


async def model_override(ctx: Context, template_key: str) -> str | None:
    overrides = await ctx.pstate.get(MODEL_OVERRIDES_KEY, {}) or {}
    value = overrides.get(template_key)
    return str(value) if value else None


async def generate_reply(ctx: Context, event: MessageReceived, template_key: str) -> str:
    """Build a request for `template_key` from the channel's recent history and return the model's text."""
    bot_name = await ctx.gateway.display_name(ctx.gateway.bot_user_id, event.guild_id)
    subs = {"bot": bot_name, "user": event.author.display_name}
    budget = ctx.prompts.history_budget(template_key, subs)
    window = await ctx.history.window(event.channel_id, budget)
    request = ctx.prompts.build(
        template_key,
        subs,
        window,
        model_override=await model_override(ctx, template_key),
    )
    return await ctx.llm.complete(request)


async def respond_with_template(
    ctx: Context,
    event: MessageReceived,
    template_key: str,
    *,
    fallback: str = LLM_FAILURE_REPLY,
) -> str:
    # No lock is held here: the history window is a snapshot.
    async with ctx.gateway.typing(event.channel_id):
        try:
            reply = await generate_reply(ctx, event, template_key)
        except LlmCallFailed as e:
            print(f"[LLM] Error: {e}")
            reply = fallback
    await ctx.gateway.send(event.channel_id, reply, reply_to=event.message_id)
    return reply


async def deny_permission(ctx: Context, event: MessageReceived, exc: PermissionDenied) -> str:
    print(f"[Perm] replying with denial to user={exc.user_id} action={exc.action}")
    return await respond_with_template(
        ctx,
        event,
        LLM_PERMISSION_DENIED_TEMPLATE,
        fallback=PERMISSION_DENIED_REPLY,
    )
