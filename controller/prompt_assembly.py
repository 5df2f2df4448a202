from __future__ import annotations

import re
from typing import Mapping, Sequence

from config.settings import BotConfig
from controller.models import ROLE_BOT
from controller.models import ChatMessage
from controller.models import HistoryMessage
from controller.models import LlmRequest
from retrieval.window import estimate_tokens

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def substitute(template: str, substitutions: Mapping[str, str]) -> str:
    """Replace `{name}` for every known name in one pass; unknown placeholders stay as written."""

    def _replace(m: re.Match) -> str:
        key = m.group(1)
        if key in substitutions:
            return str(substitutions[key])
        return m.group(0)

    return _PLACEHOLDER_RE.sub(_replace, template or "")


def render_history(history_window: Sequence[HistoryMessage]) -> list[ChatMessage]:
    return [
        ChatMessage(role="assistant" if msg.role == ROLE_BOT else "user", content=msg.rendered())
        for msg in history_window
    ]


class PromptAssembler:
    def __init__(self, config: BotConfig) -> None:
        self.config = config

    def system_text(self, template_key: str, substitutions: Mapping[str, str]) -> str:
        return substitute(self.config.template(template_key).system_prompt, substitutions)

    def history_budget(self, template_key: str, substitutions: Mapping[str, str]) -> int:
        settings = self.config.template(template_key)
        return max(0, settings.context_size - estimate_tokens(self.system_text(template_key, substitutions)))

    def build(
        self,
        template_key: str,
        substitutions: Mapping[str, str],
        history_window: Sequence[HistoryMessage],
        *,
        model_override: str | None = None,
    ) -> LlmRequest:
        settings = self.config.template(template_key)
        return LlmRequest(
            template_key=template_key,
            chat_url=settings.chat_url,
            model=(model_override or "").strip() or settings.model_name,
            temperature=settings.temperature,
            context_size=settings.context_size,
            system=self.system_text(template_key, substitutions),
            messages=render_history(history_window),
        )
