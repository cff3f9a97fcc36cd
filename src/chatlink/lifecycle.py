"""
Module lifecycle.

Modules register their handlers in `load`, start timers in `run` and tear
everything down in `unload`. Registration after `load` is possible but never
needed by the core.
"""

import logging

from chatlink.constants import ModuleInitPhase

logger = logging.getLogger(__name__)


class BaseModule:
    def init(self) -> None:
        pass

    def load(self) -> None:
        pass

    def run(self) -> None:
        pass

    def unload(self) -> None:
        pass


class ModuleManager:
    def __init__(self) -> None:
        self.phase = ModuleInitPhase.CONSTRUCT
        # Set by a storage collaborator while first-time setup is still pending
        self.first_time_init = True
        self._modules: list[BaseModule] = []

    @property
    def ready(self) -> bool:
        return self.phase == ModuleInitPhase.READY

    def register_module(self, module: BaseModule) -> None:
        if self.phase != ModuleInitPhase.CONSTRUCT:
            raise RuntimeError("Modules can be registered only during construct")
        self._modules.append(module)

    def start(self) -> None:
        """Advance through init, load and ready, running every module."""
        if self.phase != ModuleInitPhase.CONSTRUCT:
            return
        self.phase = ModuleInitPhase.INIT
        for module in self._modules:
            module.init()
        self.phase = ModuleInitPhase.LOAD
        for module in self._modules:
            module.load()
        self.phase = ModuleInitPhase.READY
        self.first_time_init = False
        for module in self._modules:
            module.run()
        logger.debug(f"Loaded {len(self._modules)} modules")

    def unload(self) -> None:
        if self.phase == ModuleInitPhase.DESTROY:
            return
        self.phase = ModuleInitPhase.DESTROY
        for module in reversed(self._modules):
            module.unload()
