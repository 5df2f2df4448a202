from __future__ import annotations

from config.settings import BotConfig
from controller.context import Context
from controller.dispatcher import Dispatcher
from controller.llm_client import LlmClient
from controller.plugin import Plugin
from controller.prompt_assembly import PromptAssembler
from ingestion.history import HistoryBuffer
from misc.events_runtime import register_runtime_events
from misc.gateway import DiscordGateway
from misc.plugins.core import DebugPlugin
from misc.plugins.core import HelpPlugin
from misc.plugins.core import HistoryPlugin
from misc.plugins.core import IgnoreBotsPlugin
from misc.plugins.core import ReadyPlugin
from misc.plugins.fun import MusicPlugin
from misc.plugins.fun import ReactPlugin
from misc.plugins.fun import XkcdPlugin
from misc.plugins.llm_reply import LlmReplyPlugin
from misc.plugins.owner import ModelPlugin
from misc.plugins.rivals import RivalsPlugin
from misc.plugins.vc_notify import VcNotifyPlugin
from misc.runtime_deps import RuntimeDeps
from state.persistent import PersistentState
from state.volatile import NotificationThrottle
from state.volatile import VolatileState


def default_plugins() -> list[Plugin]:
    # Order matters: earlier plugins can claim an event before later ones see it.
    return [
        DebugPlugin(),
        ReadyPlugin(),
        HistoryPlugin(),
        IgnoreBotsPlugin(),
        HelpPlugin(),
        ModelPlugin(),
        XkcdPlugin(),
        MusicPlugin(),
        RivalsPlugin(),
        VcNotifyPlugin(),
        ReactPlugin(),
        LlmReplyPlugin(),
    ]


def build_runtime(
    *,
    config: BotConfig,
    pstate: PersistentState,
    gateway,
    plugins: list[Plugin] | None = None,
    llm: LlmClient | None = None,
) -> RuntimeDeps:
    plugins = default_plugins() if plugins is None else list(plugins)
    vstate = VolatileState()
    ctx = Context(
        config=config,
        pstate=pstate,
        vstate=vstate,
        history=HistoryBuffer(
            max_messages=config.channel_max_message_count,
            backfill_count=config.channel_backfill_message_count,
            fetch_history=gateway.fetch_history,
        ),
        throttle=NotificationThrottle(vstate, limit_seconds=config.notification_limit_seconds),
        prompts=PromptAssembler(config),
        llm=llm or LlmClient(api_key=config.llm_api_key, timeout_seconds=config.llm_timeout_seconds),
        gateway=gateway,
        plugins=tuple(plugins),
    )
    print(f"[Plugin] registered: {', '.join(p.name for p in plugins)}")
    return RuntimeDeps(ctx=ctx, dispatcher=Dispatcher(plugins, ctx))


def wire_bot_runtime(bot, *, config: BotConfig, pstate: PersistentState) -> RuntimeDeps:
    deps = build_runtime(config=config, pstate=pstate, gateway=DiscordGateway(bot))
    register_runtime_events(bot, deps=deps)
    return deps
