from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

ROLE_USER = "user"
ROLE_BOT = "bot"


@dataclass(frozen=True, slots=True)
class Author:
    id: int
    name: str
    display_name: str
    bot: bool = False


@dataclass(frozen=True, slots=True)
class HistoryMessage:
    author_id: int
    author_name: str
    role: str
    # Mentions already translated to readable names.
    text: str
    timestamp: datetime | None = None

    def with_text(self, text: str) -> HistoryMessage:
        return replace(self, text=text)

    def rendered(self) -> str:
        """The content this message takes up in a chat request."""
        if self.role == ROLE_BOT:
            return self.text
        return f"{self.author_name}: {self.text}"


@dataclass(frozen=True, slots=True)
class ChatMessage:
    role: str
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True, slots=True)
class LlmRequest:
    template_key: str
    chat_url: str
    model: str
    temperature: float
    context_size: int
    system: str
    messages: list[ChatMessage] = field(default_factory=list)

    def chat_messages(self) -> list[dict[str, str]]:
        out = [{"role": "system", "content": self.system}]
        out.extend(m.as_dict() for m in self.messages)
        return out
