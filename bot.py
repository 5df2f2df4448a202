import os
import sys
import asyncio

import discord

from config.defaults import DEFAULT_CONFIG_PATH
from config.defaults import DEFAULT_STATE_PATH
from config.defaults import LLM_REPLY_TEMPLATE
from config.settings import BotConfig
from config.settings import load_config
from controller.errors import ConfigError
from controller.errors import StateCorrupt
from misc.runtime_wiring import wire_bot_runtime
from state.persistent import PersistentState

# =========================
# CONFIG
# =========================
CONFIG_PATH = os.getenv("DIGMBOT_CONFIG_PATH", DEFAULT_CONFIG_PATH)
STATE_PATH = os.getenv("DIGMBOT_STATE_PATH", DEFAULT_STATE_PATH)


def print_config_summary(cfg: BotConfig) -> None:
    reply = cfg.template(LLM_REPLY_TEMPLATE)
    print(
        f"[CFG] config={CONFIG_PATH} state={STATE_PATH} prefix={cfg.command_prefix!r} "
        f"owners={len(cfg.bot_owners)} notify_limit={cfg.notification_limit_seconds:g}s "
        f"backfill={cfg.channel_backfill_message_count} max_history={cfg.channel_max_message_count} "
        f"llm={reply.model_name}@{reply.chat_url} num_ctx={reply.context_size}"
    )


# =========================
# DISCORD BOT
# =========================
def build_intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.message_content = True
    intents.members = True
    intents.guilds = True
    intents.voice_states = True
    intents.reactions = True
    intents.dm_messages = True
    return intents


async def _run(cfg: BotConfig) -> None:
    pstate = await PersistentState.load(STATE_PATH)
    client = discord.Client(intents=build_intents())
    wire_bot_runtime(client, config=cfg, pstate=pstate)

    async with client:
        try:
            await client.start(cfg.discord_token)
        finally:
            await pstate.flush()


def main() -> None:
    try:
        cfg = load_config(CONFIG_PATH)
    except ConfigError as e:
        print(f"[CFG] Fatal: {e}")
        sys.exit(1)
    print_config_summary(cfg)

    try:
        asyncio.run(_run(cfg))
    except StateCorrupt as e:
        # Refuse to run on top of a snapshot we could not read.
        print(f"[State] Fatal: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("Digmbot stopped.")


if __name__ == "__main__":
    main()
