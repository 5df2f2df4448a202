from __future__ import annotations

import unittest
from types import SimpleNamespace

try:
    import discord
except ModuleNotFoundError:
    discord = None

if discord is not None:
    from controller.events import MessageReceived
    from controller.events import ReactionRemoved
    from controller.events import Ready
    from controller.events import VoiceStateUpdated
    from misc.events_runtime import register_runtime_events
    from misc.gateway import DiscordGateway
    from misc.gateway import chunk_text
    from misc.runtime_deps import RuntimeDeps
    from misc.runtime_wiring import build_runtime

from config.settings import BotConfig
from config.settings import LlmTemplateSettings
from controller.models import ROLE_BOT
from controller.models import ROLE_USER
from state.persistent import PersistentState


class FakeBot:
    def __init__(self):
        self.handlers = {}
        self.user = SimpleNamespace(id=900, name="digmbot", display_name="Digmbot", global_name=None, bot=True)
        self.guilds = [object()]

    def event(self, coro):
        self.handlers[coro.__name__] = coro
        return coro


class FakeHistory:
    def __init__(self, log: list):
        self.log = log

    async def ensure_backfilled(self, channel_id, *, before=None):
        self.log.append(("backfill", channel_id, before))


class FakeDispatcher:
    def __init__(self, log: list):
        self.log = log

    async def dispatch(self, event):
        self.log.append(("dispatch", event))


def _raw_message(content: str = "hi"):
    return SimpleNamespace(
        id=42,
        content=content,
        author=SimpleNamespace(id=5, name="ann", display_name="Annie", global_name=None, bot=False),
        channel=SimpleNamespace(id=10),
        guild=SimpleNamespace(id=20, me=SimpleNamespace(roles=[])),
        mentions=[],
        role_mentions=[],
        channel_mentions=[],
        reference=None,
        created_at=None,
    )


@unittest.skipIf(discord is None, "discord.py not installed")
class EventsRuntimeTests(unittest.IsolatedAsyncioTestCase):
    def _wire(self):
        log: list = []
        bot = FakeBot()
        ctx = SimpleNamespace(history=FakeHistory(log))
        register_runtime_events(bot, deps=RuntimeDeps(ctx=ctx, dispatcher=FakeDispatcher(log)))
        return bot, ctx, log

    def test_registers_expected_handlers(self):
        bot, _, _ = self._wire()
        self.assertEqual(
            set(bot.handlers),
            {"on_ready", "on_message", "on_raw_reaction_add", "on_raw_reaction_remove", "on_voice_state_update"},
        )

    async def test_message_is_backfilled_before_dispatch(self):
        bot, ctx, log = self._wire()
        await bot.handlers["on_message"](_raw_message())

        self.assertEqual(log[0], ("backfill", 10, 42))
        kind, event = log[1]
        self.assertEqual(kind, "dispatch")
        self.assertIsInstance(event, MessageReceived)
        self.assertIs(event.ctx, ctx)
        self.assertEqual(event.author.display_name, "Annie")

    async def test_ready_and_reaction_remove(self):
        bot, _, log = self._wire()
        await bot.handlers["on_ready"]()
        payload = SimpleNamespace(
            user_id=5, channel_id=10, message_id=42, guild_id=20, emoji=SimpleNamespace(id=None, name="x")
        )
        await bot.handlers["on_raw_reaction_remove"](payload)
        self.assertIsInstance(log[0][1], Ready)
        self.assertIsInstance(log[1][1], ReactionRemoved)

    async def test_voice_update_without_channel_change_is_not_dispatched(self):
        bot, _, log = self._wire()
        lounge = SimpleNamespace(id=50, members=[object()])
        guild = SimpleNamespace(id=20, name="Dig", afk_channel=None, voice_channels=[lounge])
        member = SimpleNamespace(id=5, name="ann", display_name="Annie", guild=guild)

        await bot.handlers["on_voice_state_update"](member, SimpleNamespace(channel=lounge), SimpleNamespace(channel=lounge))
        self.assertEqual(log, [])

        await bot.handlers["on_voice_state_update"](member, SimpleNamespace(channel=None), SimpleNamespace(channel=lounge))
        self.assertIsInstance(log[0][1], VoiceStateUpdated)


@unittest.skipIf(discord is None, "discord.py not installed")
class BuildRuntimeTests(unittest.TestCase):
    def test_plugin_order_and_shared_context(self):
        template = LlmTemplateSettings(
            chat_url="http://localhost:11434/v1", model_name="llama3.1", system_prompt="", context_size=512
        )
        config = BotConfig(
            discord_token="token",
            command_prefix=";",
            bot_owners=frozenset(),
            notification_limit_seconds=60,
            channel_backfill_message_count=5,
            channel_max_message_count=10,
            llm_templates={"llm_reply": template, "llm_permission_denied": template},
        )
        gateway = SimpleNamespace(fetch_history=None)
        deps = build_runtime(config=config, pstate=PersistentState("unused-state.yml"), gateway=gateway)

        names = [p.name for p in deps.dispatcher.plugins]
        self.assertEqual(names[0], "debug")
        self.assertEqual(names[-1], "llm_reply")
        self.assertLess(names.index("history"), names.index("ignore_bots"))
        self.assertLess(names.index("model"), names.index("llm_reply"))
        self.assertIs(deps.dispatcher.ctx, deps.ctx)
        self.assertIs(deps.ctx.gateway, gateway)
        self.assertEqual(deps.ctx.history.max_messages, 10)
        self.assertEqual(deps.ctx.plugins, deps.dispatcher.plugins)


class FakeChannel:
    def __init__(self, newest_first: list):
        self.newest_first = newest_first
        self.calls: list[tuple[int, object]] = []

    async def history(self, *, limit, before=None):
        self.calls.append((limit, before))
        for msg in self.newest_first[:limit]:
            yield msg


def _posted(msg_id: int, content: str, author_id: int):
    msg = _raw_message(content)
    msg.id = msg_id
    msg.author = SimpleNamespace(
        id=author_id, name=f"u{author_id}", display_name=f"U{author_id}", global_name=None, bot=author_id == 900
    )
    return msg


@unittest.skipIf(discord is None, "discord.py not installed")
class GatewayHistoryTests(unittest.IsolatedAsyncioTestCase):
    async def test_fetch_history_is_oldest_first(self):
        channel = FakeChannel([_posted(3, "third", 5), _posted(2, "second", 900), _posted(1, "first", 6)])
        gateway = DiscordGateway(SimpleNamespace(user=SimpleNamespace(id=900), get_channel=lambda cid: channel))

        history = await gateway.fetch_history(10, 3, before=42)

        self.assertEqual([m.text for m in history], ["first", "second", "third"])
        self.assertEqual([m.role for m in history], [ROLE_USER, ROLE_BOT, ROLE_USER])
        self.assertEqual(history[0].author_name, "U6")
        limit, before = channel.calls[0]
        self.assertEqual(limit, 3)
        self.assertIsInstance(before, discord.Object)
        self.assertEqual(before.id, 42)

    async def test_fetch_history_without_cursor(self):
        channel = FakeChannel([_posted(1, "only", 5)])
        gateway = DiscordGateway(SimpleNamespace(user=SimpleNamespace(id=900), get_channel=lambda cid: channel))
        history = await gateway.fetch_history(10, 5)
        self.assertEqual([m.text for m in history], ["only"])
        self.assertIsNone(channel.calls[0][1])


@unittest.skipIf(discord is None, "discord.py not installed")
class ChunkTextTests(unittest.TestCase):
    def test_short_text_is_one_chunk(self):
        self.assertEqual(chunk_text("hello", 10), ["hello"])

    def test_prefers_paragraph_breaks(self):
        text = "a" * 8 + "\n\n" + "b" * 8
        self.assertEqual(chunk_text(text, 12), ["a" * 8, "b" * 8])

    def test_hard_split_without_whitespace(self):
        chunks = chunk_text("x" * 25, 10)
        self.assertTrue(all(len(c) <= 10 for c in chunks))
        self.assertEqual("".join(chunks), "x" * 25)


if __name__ == "__main__":
    unittest.main()
