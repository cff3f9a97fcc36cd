"""
Outbound speech hooks.

Every chat line, whisper and emote the player sends runs through the
registered hooks before it reaches the host: first `allow_send` on every
hook (any False drops the message), then `modify` in registration order,
then `on_send` with the final text.
"""

import logging
import re
from typing import Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict

from chatlink.constants import ModuleInitPhase
from chatlink.lifecycle import BaseModule, ModuleManager

logger = logging.getLogger(__name__)

SpeechType = Literal["Chat", "Whisper", "Emote"]

# "(ooc) " parts, including an unclosed one running to the end
OOC_PATTERN = re.compile(r"\([^)]*\)?\s?", re.S)


class SpeechMessageInfo(BaseModel):
    """What the player typed, and what it parsed to."""
    type: SpeechType
    target: Optional[int] = None
    raw_message: str
    original_message: str
    no_ooc_message: str
    has_ooc: bool = False

    model_config = ConfigDict(frozen=True)


class SpeechHook:
    """Base class for speech hooks. Override any of the three steps."""

    def allow_send(self, info: SpeechMessageInfo) -> bool:
        return True

    def modify(self, info: SpeechMessageInfo, message: str) -> str:
        return message

    def on_send(self, info: SpeechMessageInfo, message: str) -> None:
        pass


def parse_chat(text: str, target: Optional[int] = None) -> Optional[SpeechMessageInfo]:
    """Parse a typed chat line. Returns None for emotes (`*...`).

    A leading `/` marks a client command and is refused; `//` sends a line
    starting with a single `/`.
    """
    raw = text
    if text.startswith("//"):
        text = text[1:]
    elif text.startswith("/"):
        raise ValueError(f"Commands cannot be sent as chat: {raw!r}")
    if text.startswith("*"):
        return None
    return SpeechMessageInfo(
        type="Chat" if target is None else "Whisper",
        target=target,
        raw_message=raw,
        original_message=text,
        no_ooc_message=OOC_PATTERN.sub("", text),
        has_ooc="(" in text,
    )


def parse_emote(text: str, target: Optional[int] = None) -> SpeechMessageInfo:
    """Parse an emote: `*waves*`, `/me waves` or `/action ...` (kept as `*...`)."""
    message = text
    if message.startswith("*"):
        message = message[1:]
    if message.endswith("*"):
        message = message[:-1]
    if message.startswith("/me "):
        message = message[len("/me "):]
    elif message.startswith("/action "):
        message = "*" + message[len("/action "):]
    message = message.strip()
    return SpeechMessageInfo(
        type="Emote",
        target=target,
        raw_message=text,
        original_message=message,
        no_ooc_message=message,
    )


class SpeechModule(BaseModule):
    def __init__(self, modules: ModuleManager):
        self._modules = modules
        self._hooks: list[SpeechHook] = []

    def register_speech_hook(self, hook: SpeechHook) -> Callable[[], None]:
        """Add a hook. Only possible before the modules are loaded. Returns a remover."""
        if self._modules.phase not in (ModuleInitPhase.CONSTRUCT, ModuleInitPhase.INIT):
            raise RuntimeError("Speech hooks can be registered only before load")
        self._hooks.append(hook)

        def remove() -> None:
            if hook in self._hooks:
                self._hooks.remove(hook)
        return remove

    def process(self, info: SpeechMessageInfo) -> Optional[str]:
        """Run the hooks over a parsed message. Returns the text to send, or None if blocked."""
        for hook in self._hooks:
            if not hook.allow_send(info):
                logger.debug(f"{info.type} blocked by {type(hook).__name__}: {info.raw_message!r}")
                return None

        message = info.original_message
        for hook in self._hooks:
            message = hook.modify(info, message)

        for hook in self._hooks:
            hook.on_send(info, message)
        return message

    def unload(self) -> None:
        self._hooks.clear()
