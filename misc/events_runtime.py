from __future__ import annotations

import discord

from ingestion.normalize import normalize_message
from ingestion.normalize import normalize_reaction
from ingestion.normalize import normalize_ready
from ingestion.normalize import normalize_voice_state
from misc.runtime_deps import RuntimeDeps


def register_runtime_events(bot: discord.Client, *, deps: RuntimeDeps) -> None:
    """
    Translate discord.py callbacks into bot events and dispatch them.

    discord.py runs each callback as its own task, so events from different
    channels are handled concurrently while one event walks the plugin chain
    sequentially.
    """
    ctx = deps.ctx
    dispatcher = deps.dispatcher

    @bot.event
    async def on_ready():
        print(f"Digmbot is online as {bot.user}")
        await dispatcher.dispatch(normalize_ready(bot.user, bot.guilds, ctx=ctx))

    @bot.event
    async def on_message(message: discord.Message):
        bot_user_id = int(bot.user.id) if bot.user else None
        event = normalize_message(message, bot_user_id=bot_user_id, ctx=ctx)
        # First sight of a channel seeds its history with what came before this message.
        await ctx.history.ensure_backfilled(event.channel_id, before=event.message_id)
        await dispatcher.dispatch(event)

    @bot.event
    async def on_raw_reaction_add(payload: discord.RawReactionActionEvent):
        await dispatcher.dispatch(normalize_reaction(payload, ctx=ctx))

    @bot.event
    async def on_raw_reaction_remove(payload: discord.RawReactionActionEvent):
        await dispatcher.dispatch(normalize_reaction(payload, ctx=ctx, removed=True))

    @bot.event
    async def on_voice_state_update(member: discord.Member, before: discord.VoiceState, after: discord.VoiceState):
        event = normalize_voice_state(member, before, after, ctx=ctx)
        if event is None:
            return
        await dispatcher.dispatch(event)
