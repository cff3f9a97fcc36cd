"""
Hello announcements: who in the room runs chatlink, which version, with
which effects.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from chatlink.characters import CharacterRegistry
from chatlink.lifecycle import BaseModule
from chatlink.messaging import Messaging
from chatlink.models.envelope import HelloMessage
from chatlink.models.events import HiddenMessage, HostEvent
from chatlink.transport.hooks import HookNext, HookRegistry

logger = logging.getLogger(__name__)


class ChatroomModule(BaseModule):
    def __init__(self, messaging: Messaging, characters: CharacterRegistry, hooks: HookRegistry):
        self._messaging = messaging
        self._characters = characters
        self._hooks = hooks
        self._remove_hook = None

    def load(self) -> None:
        self._messaging.register_hidden_message_handler(HiddenMessage.HELLO, self._on_hello)
        self._remove_hook = self._hooks.hook(HostEvent.CHAT_ROOM_SYNC, 0, self._on_room_sync)

    def unload(self) -> None:
        if self._remove_hook is not None:
            self._remove_hook()
            self._remove_hook = None

    def announce_self(self, request: bool = False, target: Optional[int] = None) -> None:
        """Send our version and effects; with `request` the others answer with theirs."""
        if not self._characters.has_player():
            return
        player = self._characters.get_player_character()
        hello = HelloMessage(version=player.version, request=request, effects=player.effects)
        self._messaging.send_hidden_message(HiddenMessage.HELLO, hello.model_dump(), target)

    def _on_room_sync(self, args: tuple[Any, ...], next: HookNext) -> Any:
        result = next(args)
        self.announce_self(request=True)
        return result

    def _on_hello(self, sender: int, message: Any) -> None:
        try:
            hello = HelloMessage.model_validate(message)
        except ValidationError:
            logger.warning(f"Invalid hello from {sender}: {message!r}")
            return
        character = self._characters.get_character(sender)
        if character is None:
            return
        character.version = hello.version
        character.effects = hello.effects
        if hello.request:
            self.announce_self(request=False, target=sender)
