from __future__ import annotations

from pathlib import Path

CONFIG_DIR = Path.home() / ".config" / "digmbot"
DEFAULT_CONFIG_PATH = str(CONFIG_DIR / "config.yml")
DEFAULT_STATE_PATH = str(CONFIG_DIR / "state.yml")

DEFAULT_COMMAND_PREFIX = ";"
DEFAULT_NOTIFICATION_LIMIT_SECONDS = 300
DEFAULT_BACKFILL_MESSAGE_COUNT = 50
DEFAULT_MAX_MESSAGE_COUNT = 50

DEFAULT_LLM_API_KEY = "ollama"
DEFAULT_LLM_TIMEOUT_SECONDS = 120.0
DEFAULT_LLM_TEMPERATURE = 0.8

LLM_REPLY_TEMPLATE = "llm_reply"
LLM_PERMISSION_DENIED_TEMPLATE = "llm_permission_denied"
REQUIRED_LLM_TEMPLATES = (LLM_REPLY_TEMPLATE, LLM_PERMISSION_DENIED_TEMPLATE)

# Discord rejects messages over 2000 characters.
DISCORD_MAX_MESSAGE_LEN = 1900

# Rough bytes-per-token ratio used for context budgeting.
BYTES_PER_TOKEN = 3

LLM_FAILURE_REPLY = "Sorry, my brain hiccuped and I couldn't come up with a reply. Try again in a bit?"
PERMISSION_DENIED_REPLY = "Sorry, you don't have permission to do that."
