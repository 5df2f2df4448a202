from __future__ import annotations


class DigmbotError(Exception):
    """Base class for errors raised by the bot itself."""


class ConfigError(DigmbotError):
    """The configuration file is missing, unreadable or has invalid values. Fatal at startup."""


class StateCorrupt(DigmbotError):
    """The persistent state snapshot could not be deserialized. Fatal at startup."""


class LlmCallFailed(DigmbotError):
    """The LLM backend timed out, returned a bad status, or sent a malformed body."""


class PermissionDenied(DigmbotError):
    def __init__(self, user_id: int, action: str):
        super().__init__(f"user {user_id} may not {action}")
        self.user_id = int(user_id)
        self.action = action
