"""
chatlink — typed queries and notifications between chat room clients.

Hidden messages and beeps carried over the host chat server's own
transport, with a character proxy per room member.
"""

from chatlink.client import AsyncChatLink
from chatlink.characters import Character, CharacterRegistry, PlayerCharacter, RemoteCharacter
from chatlink.constants import AccessLevel, ConditionsLimit, LogAccessLevel, ModuleCategory, ModuleInitPhase
from chatlink.errors import (
    CategoryDisabledError,
    ChatLinkError,
    ConnectionError,
    LoginError,
    QueryCancelledError,
    QueryError,
    QueryNotSentError,
    QueryRejectedError,
    QueryTimeoutError,
    QueryUnavailableError,
    ResponseDecodeError,
)
from chatlink.local import LocalState
from chatlink.models.events import HiddenMessage, HostEvent, Query
from chatlink.speech import SpeechHook, SpeechMessageInfo

__version__ = "0.1.0"
__all__ = [
    "AsyncChatLink",
    "Character",
    "CharacterRegistry",
    "PlayerCharacter",
    "RemoteCharacter",
    "LocalState",
    "SpeechHook",
    "SpeechMessageInfo",
    "AccessLevel",
    "ConditionsLimit",
    "LogAccessLevel",
    "ModuleCategory",
    "ModuleInitPhase",
    "ChatLinkError",
    "ConnectionError",
    "LoginError",
    "QueryError",
    "QueryUnavailableError",
    "QueryTimeoutError",
    "QueryRejectedError",
    "QueryCancelledError",
    "QueryNotSentError",
    "ResponseDecodeError",
    "CategoryDisabledError",
    "HostEvent",
    "HiddenMessage",
    "Query",
]
