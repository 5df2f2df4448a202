from __future__ import annotations

import traceback
from typing import Sequence

from controller.context import Context
from controller.events import Event
from controller.plugin import Plugin


class Dispatcher:
    def __init__(self, plugins: Sequence[Plugin], ctx: Context) -> None:
        self.plugins = tuple(plugins)
        self.ctx = ctx

    async def dispatch(self, event: Event) -> str | None:
        """
        Run `event` through the plugins in registration order.

        Returns the name of the plugin that claimed the event, or None when
        every plugin passed. A plugin that raises is logged and counts as not
        handled; the rest of the chain still runs.
        """
        for plugin in self.plugins:
            try:
                handled = await plugin.handle(event, self.ctx)
            except Exception as e:
                print(f"[Plugin] {plugin.name} failed on {type(event).__name__}: {e}")
                print(traceback.format_exc())
                continue
            if handled:
                return plugin.name
        return None
