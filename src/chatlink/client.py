"""
AsyncChatLink: the main client.

Wires the host connection, room state, messaging, characters and the effect
loop together and runs them through the module lifecycle.
"""

from typing import Any, Callable, Optional, Protocol

from chatlink.characters import AccessCheck, Character, CharacterRegistry, PlayerCharacter
from chatlink.chatroom import ChatroomModule
from chatlink.constants import DEFAULT_QUERY_TIMEOUT, EFFECT_REBUILD_INTERVAL, ModuleInitPhase
from chatlink.effects import CharacterModule, EffectBuilder, EffectRebuildLoop
from chatlink.errors import ChatLinkError, ConnectionError, LoginError
from chatlink.lifecycle import ModuleManager
from chatlink.local import LocalState
from chatlink.messaging import Messaging, MessagingModule
from chatlink.models.events import HostEvent
from chatlink.models.room import RoomMember
from chatlink.queries import QueryModule
from chatlink.room import RoomState
from chatlink.speech import SpeechHook, SpeechMessageInfo, SpeechModule, parse_chat, parse_emote
from chatlink.transport.hooks import HookRegistry
from chatlink.transport.socketio import SocketIOManager

DEFAULT_SERVER_URL = "https://bondage-club-server.herokuapp.com/"


class HostConnection(Protocol):
    hooks: HookRegistry

    @property
    def connected(self) -> bool: ...
    async def connect(self) -> None: ...
    async def disconnect(self) -> None: ...
    def emit(self, event: str, data: Any) -> None: ...
    async def emit_and_wait(self, event: str, data: Any, response_event: str, timeout: float = 10.0) -> Any: ...


class AsyncChatLink:
    """Async chatlink client."""

    def __init__(
        self,
        server_url: str = DEFAULT_SERVER_URL,
        *,
        local_state: Optional[LocalState] = None,
        access_check: Optional[AccessCheck] = None,
        query_timeout: float = DEFAULT_QUERY_TIMEOUT,
        effect_interval: float = EFFECT_REBUILD_INTERVAL,
        refresh: Optional[Callable[[], None]] = None,
        transports: Optional[list[str]] = None,
        ready_timeout: float = 15.0,
        connection: Optional[HostConnection] = None,
    ):
        self.connection: HostConnection = connection or SocketIOManager(
            server_url,
            transports=transports,
            ready_timeout=ready_timeout,
        )
        self.local_state = local_state
        self.room = RoomState()
        self.room.install(self.connection.hooks)
        self.modules = ModuleManager()
        self.messaging = Messaging(self.connection, self.room, self.modules, default_timeout=query_timeout)
        self.characters = CharacterRegistry(self.room, self.messaging, local_state, access_check)
        self.messaging.characters = self.characters
        self.effects = EffectRebuildLoop(self.characters, interval=effect_interval)
        self.chatroom = ChatroomModule(self.messaging, self.characters, self.connection.hooks)
        self.speech = SpeechModule(self.modules)

        self.modules.register_module(MessagingModule(self.messaging))
        self.modules.register_module(self.chatroom)
        self.modules.register_module(CharacterModule(self.effects, self.characters))
        self.modules.register_module(self.speech)
        if local_state is not None:
            self.modules.register_module(QueryModule(self.messaging, local_state))

        self._refresh = refresh
        self.effects.add_listener(self._on_effects_changed)

    @property
    def connected(self) -> bool:
        return self.connection.connected

    @property
    def player(self) -> PlayerCharacter:
        return self.characters.get_player_character()

    async def connect(self) -> None:
        """Connect to the host server and bring the modules up.

        A client is good for one connection. Its modules are torn down on
        `disconnect`, so reconnecting needs a new client.
        """
        if self.modules.phase == ModuleInitPhase.DESTROY:
            raise ConnectionError("Client was disconnected. Create a new AsyncChatLink to reconnect.")
        await self.connection.connect()
        self.modules.start()

    async def disconnect(self) -> None:
        self.modules.unload()
        self.room.leave()
        await self.connection.disconnect()

    async def login(self, account: str, password: str, timeout: float = 15.0) -> RoomMember:
        self._ensure_connected()
        response = await self.connection.emit_and_wait(
            HostEvent.ACCOUNT_LOGIN,
            {"AccountName": account, "Password": password},
            HostEvent.LOGIN_RESPONSE,
            timeout=timeout,
        )
        if not isinstance(response, dict) or self.room.player is None:
            raise LoginError(f"Login failed: {response}")
        return self.room.player

    async def join_room(self, name: str, timeout: float = 15.0) -> list[Character]:
        """Join a chat room and return the characters present once it is synced."""
        self._ensure_connected()
        await self.connection.emit_and_wait(
            HostEvent.CHAT_ROOM_JOIN,
            {"Name": name},
            HostEvent.CHAT_ROOM_SYNC,
            timeout=timeout,
        )
        return self.characters.get_all_characters_in_room()

    def leave_room(self) -> None:
        self._ensure_connected()
        self.connection.emit(HostEvent.CHAT_ROOM_LEAVE, "")
        self.room.leave()

    def character(self, member_number: int) -> Optional[Character]:
        return self.characters.get_character(member_number)

    def register_effect_builder(self, builder: EffectBuilder) -> None:
        self.effects.register(builder)

    def register_change_subscriber(self, subscriber: Callable[[int], None]) -> None:
        self.messaging.register_change_subscriber(subscriber)

    def notify_of_change(self) -> None:
        self.messaging.notify_of_change()

    def register_speech_hook(self, hook: SpeechHook) -> Callable[[], None]:
        return self.speech.register_speech_hook(hook)

    def send_chat(self, text: str, target: Optional[int] = None) -> bool:
        """Say `text` in the room, or whisper it to `target`, after the speech hooks ran.

        Lines starting with `*` are sent as emotes. Returns False if a hook
        blocked the message or there was nothing to send.
        """
        text = text.strip()
        if not text:
            return False
        info = parse_chat(text, target)
        if info is None:
            return self.send_emote(text, target)
        return self._send_speech(info)

    def send_emote(self, text: str, target: Optional[int] = None) -> bool:
        return self._send_speech(parse_emote(text.strip(), target))

    def _send_speech(self, info: SpeechMessageInfo) -> bool:
        self._ensure_connected()
        if not self.room.in_room:
            raise ChatLinkError("not_in_room", "Join a room before sending chat")
        message = self.speech.process(info)
        if message is None:
            return False
        self.connection.emit(HostEvent.CHAT_ROOM_CHAT, {
            "Content": message,
            "Type": info.type,
            "Target": info.target,
        })
        return True

    def _on_effects_changed(self) -> None:
        if self._refresh is not None:
            self._refresh()
        self.chatroom.announce_self(request=False)

    def _ensure_connected(self) -> None:
        if not self.connection.connected:
            raise ConnectionError("Not connected. Call connect() first.")
