"""
Player effects, rebuilt on a fixed interval from registered builders.

Each tick starts from an empty record and runs every builder in registration
order. The record is installed only if it differs from the current one, so
builders must be deterministic for an unchanged state.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from chatlink.characters import CharacterRegistry
from chatlink.constants import EFFECT_REBUILD_INTERVAL
from chatlink.lifecycle import BaseModule

logger = logging.getLogger(__name__)

EffectBuilder = Callable[[list[Any]], None]
EffectListener = Callable[[], None]


class EffectRebuildLoop:
    def __init__(self, characters: CharacterRegistry, interval: float = EFFECT_REBUILD_INTERVAL):
        self._characters = characters
        self._interval = interval
        self._builders: list[EffectBuilder] = []
        self._listeners: list[EffectListener] = []
        self._task: Optional[asyncio.Task[None]] = None

    def register(self, builder: EffectBuilder) -> None:
        self._builders.append(builder)

    def add_listener(self, listener: EffectListener) -> None:
        """Run `listener` every time a rebuild installs new effects."""
        self._listeners.append(listener)

    def rebuild(self) -> bool:
        """Rebuild the player's effects. Returns True if they changed."""
        if not self._characters.has_player():
            return False
        effects: list[Any] = []
        for builder in self._builders:
            builder(effects)
        player = self._characters.get_player_character()
        if effects == player.effects:
            return False

        player.effects = effects
        for listener in list(self._listeners):
            listener()
        return True

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def clear(self) -> None:
        self._builders.clear()
        self._listeners.clear()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.rebuild()
            except Exception:
                logger.exception("Player effect rebuild failed")


class CharacterModule(BaseModule):
    def __init__(self, effects: EffectRebuildLoop, characters: CharacterRegistry):
        self._effects = effects
        self._characters = characters

    def run(self) -> None:
        self._effects.start()

    def unload(self) -> None:
        self._effects.stop()
        self._effects.clear()
        self._characters.clear()
