from __future__ import annotations

from dataclasses import dataclass

from controller.context import Context
from controller.dispatcher import Dispatcher


@dataclass(frozen=True)
class RuntimeDeps:
    ctx: Context
    dispatcher: Dispatcher
