from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from config.defaults import DEFAULT_BACKFILL_MESSAGE_COUNT
from config.defaults import DEFAULT_COMMAND_PREFIX
from config.defaults import DEFAULT_LLM_API_KEY
from config.defaults import DEFAULT_LLM_TEMPERATURE
from config.defaults import DEFAULT_LLM_TIMEOUT_SECONDS
from config.defaults import DEFAULT_MAX_MESSAGE_COUNT
from config.defaults import DEFAULT_NOTIFICATION_LIMIT_SECONDS
from config.defaults import REQUIRED_LLM_TEMPLATES
from controller.errors import ConfigError


@dataclass(frozen=True, slots=True)
class LlmTemplateSettings:
    chat_url: str
    model_name: str
    system_prompt: str
    context_size: int
    temperature: float = DEFAULT_LLM_TEMPERATURE


@dataclass(frozen=True, slots=True)
class BotConfig:
    discord_token: str
    command_prefix: str
    bot_owners: frozenset[int]
    notification_limit_seconds: float
    channel_backfill_message_count: int
    channel_max_message_count: int
    llm_templates: Mapping[str, LlmTemplateSettings] = field(default_factory=dict)
    llm_api_key: str = DEFAULT_LLM_API_KEY
    llm_timeout_seconds: float = DEFAULT_LLM_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        # read-only view over a private copy
        object.__setattr__(self, "llm_templates", MappingProxyType(dict(self.llm_templates)))

    def template(self, key: str) -> LlmTemplateSettings:
        try:
            return self.llm_templates[key]
        except KeyError:
            raise ConfigError(f"unknown LLM template {key!r}") from None


def _section(payload: dict, name: str, *, required: bool = True) -> dict:
    raw = payload.get(name)
    if raw is None:
        if required:
            raise ConfigError(f"missing [{name}] section")
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"[{name}] must be a mapping, got {type(raw).__name__}")
    return raw


def _int_value(section: dict, where: str, key: str, default: int | None, *, minimum: int) -> int:
    value = section.get(key, default)
    if value is None:
        raise ConfigError(f"missing {where}.{key}")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{where}.{key} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigError(f"{where}.{key} must be >= {minimum}, got {value}")
    return value


def _float_value(
    section: dict,
    where: str,
    key: str,
    default: float | None,
    *,
    minimum: float,
    maximum: float | None = None,
) -> float:
    value = section.get(key, default)
    if value is None:
        raise ConfigError(f"missing {where}.{key}")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{where}.{key} must be a number, got {value!r}")
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f">= {minimum}" if maximum is None else f"within [{minimum}, {maximum}]"
        raise ConfigError(f"{where}.{key} must be {bounds}, got {value}")
    return float(value)


def _str_value(section: dict, where: str, key: str, default: str | None = None, *, allow_empty: bool = False) -> str:
    value = section.get(key, default)
    if value is None:
        raise ConfigError(f"missing {where}.{key}")
    if not isinstance(value, str):
        raise ConfigError(f"{where}.{key} must be a string, got {value!r}")
    if not allow_empty and not value.strip():
        raise ConfigError(f"{where}.{key} must not be empty")
    return value


def parse_owner_ids(raw: Any) -> frozenset[int]:
    if raw is None:
        return frozenset()
    if not isinstance(raw, (list, tuple, set)):
        raise ConfigError(f"general.bot_owners must be a list of user IDs, got {raw!r}")
    out: set[int] = set()
    for item in raw:
        if isinstance(item, bool):
            raise ConfigError(f"invalid owner id {item!r}")
        try:
            uid = int(str(item).strip())
        except ValueError:
            raise ConfigError(f"invalid owner id {item!r}") from None
        if uid <= 0:
            raise ConfigError(f"invalid owner id {item!r}")
        out.add(uid)
    return frozenset(out)


def _parse_template(payload: dict, key: str) -> LlmTemplateSettings:
    section = _section(payload, key)
    return LlmTemplateSettings(
        chat_url=_str_value(section, key, "chat_url").strip(),
        model_name=_str_value(section, key, "model_name").strip(),
        system_prompt=_str_value(section, key, "system_prompt", allow_empty=True),
        context_size=_int_value(section, key, "context_size", None, minimum=1),
        temperature=_float_value(section, key, "temperature", DEFAULT_LLM_TEMPERATURE, minimum=0.0, maximum=2.0),
    )


def parse_config(payload: Any, *, env: dict[str, str] | None = None) -> BotConfig:
    if not isinstance(payload, dict):
        raise ConfigError("configuration root must be a mapping")
    env = os.environ if env is None else env

    general = _section(payload, "general")
    history = _section(payload, "history", required=False)
    llm = _section(payload, "llm", required=False)

    token = (env.get("DISCORD_TOKEN") or "").strip() or str(general.get("discord_token") or "").strip()
    if not token:
        raise ConfigError("missing Discord token (set DISCORD_TOKEN or general.discord_token)")

    prefix = _str_value(general, "general", "command_prefix", DEFAULT_COMMAND_PREFIX)
    if any(ch.isspace() for ch in prefix):
        raise ConfigError(f"general.command_prefix must not contain whitespace, got {prefix!r}")

    return BotConfig(
        discord_token=token,
        command_prefix=prefix,
        bot_owners=parse_owner_ids(general.get("bot_owners")),
        notification_limit_seconds=_float_value(
            general,
            "general",
            "notification_limit_seconds",
            DEFAULT_NOTIFICATION_LIMIT_SECONDS,
            minimum=0.0,
        ),
        channel_backfill_message_count=_int_value(
            history,
            "history",
            "channel_backfill_message_count",
            DEFAULT_BACKFILL_MESSAGE_COUNT,
            minimum=0,
        ),
        channel_max_message_count=_int_value(
            history,
            "history",
            "channel_max_message_count",
            DEFAULT_MAX_MESSAGE_COUNT,
            minimum=1,
        ),
        llm_templates={key: _parse_template(payload, key) for key in REQUIRED_LLM_TEMPLATES},
        llm_api_key=(env.get("DIGMBOT_LLM_API_KEY") or "").strip()
        or _str_value(llm, "llm", "api_key", DEFAULT_LLM_API_KEY),
        llm_timeout_seconds=_float_value(llm, "llm", "timeout_seconds", DEFAULT_LLM_TIMEOUT_SECONDS, minimum=1.0),
    )


def load_config(path: str | Path) -> BotConfig:
    p = Path(path).expanduser()
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"could not read configuration at {p}: {exc}") from exc
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"could not parse configuration at {p}: {exc}") from exc
    return parse_config(payload)
