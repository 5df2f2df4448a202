from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from config.settings import BotConfig
from controller.llm_client import LlmClient
from controller.prompt_assembly import PromptAssembler
from ingestion.history import HistoryBuffer
from misc.discord_gates import is_owner
from misc.discord_gates import require_owner
from state.persistent import PersistentState
from state.volatile import NotificationThrottle
from state.volatile import VolatileState

if TYPE_CHECKING:
    from controller.plugin import Plugin


@dataclass(frozen=True, slots=True)
class Context:
    """Everything a plugin may touch. Built once at startup and shared by reference."""

    config: BotConfig
    pstate: PersistentState
    vstate: VolatileState
    history: HistoryBuffer
    throttle: NotificationThrottle
    prompts: PromptAssembler
    llm: LlmClient
    # misc.gateway.DiscordGateway, or a fake with the same methods in tests
    gateway: Any
    plugins: tuple[Plugin, ...] = ()

    @property
    def command_prefix(self) -> str:
        return self.config.command_prefix

    def is_owner(self, user_id: int | None) -> bool:
        return is_owner(self.config.bot_owners, user_id)

    def require_owner(self, user_id: int, action: str) -> None:
        require_owner(self.config.bot_owners, user_id, action)
