from __future__ import annotations

import math
from typing import Callable, Sequence

from config.defaults import BYTES_PER_TOKEN
from controller.models import HistoryMessage


def estimate_tokens(text: str) -> int:
    """Crude, monotonic token estimate: one token per BYTES_PER_TOKEN bytes of UTF-8."""
    return math.ceil(len((text or "").encode("utf-8")) / BYTES_PER_TOKEN)


def truncate_to_bytes(text: str, max_bytes: int) -> str:
    raw = (text or "").encode("utf-8")
    if len(raw) <= max(0, int(max_bytes)):
        return text or ""
    return raw[: max(0, int(max_bytes))].decode("utf-8", errors="ignore")


def truncate_to_tokens(text: str, token_budget: int) -> str:
    return truncate_to_bytes(text, max(0, int(token_budget)) * BYTES_PER_TOKEN)


def fit_message(message: HistoryMessage, token_budget: int) -> HistoryMessage:
    """Cut the message text so its rendered form fits `token_budget`; the author prefix is kept."""
    prefix_bytes = len(message.rendered().encode("utf-8")) - len(message.text.encode("utf-8"))
    max_bytes = max(0, int(token_budget)) * BYTES_PER_TOKEN - prefix_bytes
    return message.with_text(truncate_to_bytes(message.text, max_bytes))


def select_window(
    messages: Sequence[HistoryMessage],
    token_budget: int,
    *,
    estimate: Callable[[str], int] = estimate_tokens,
) -> list[HistoryMessage]:
    """
    Pick the most recent messages that fit in `token_budget`.

    Each message is measured as it will be sent (author prefix included).
    Walks newest to oldest and stops at the first message that would overflow
    the budget. The result is oldest-first. The newest message is always kept;
    if it alone is over budget its text is cut down to fit.
    """
    if not messages:
        return []

    budget = max(0, int(token_budget))
    newest = messages[-1]
    cost = estimate(newest.rendered())
    if cost > budget:
        return [fit_message(newest, budget)]

    picked = [newest]
    used = cost
    for message in reversed(messages[:-1]):
        cost = estimate(message.rendered())
        if used + cost > budget:
            break
        picked.append(message)
        used += cost

    picked.reverse()
    return picked
