"""
Hidden messaging, beeps and correlated queries.

Queries travel as hidden messages: the caller sends `query` {id, query, data}
addressed to the target, the target answers with `queryAnswer` {id, ok, data}.
Each pending query owns one timer; whichever of answer and timeout comes
first settles the caller's future and removes the entry.
"""

import asyncio
import inspect
import logging
import uuid
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol

from pydantic import ValidationError

from chatlink.constants import DEFAULT_QUERY_TIMEOUT
from chatlink.errors import (
    QueryCancelledError,
    QueryNotSentError,
    QueryRejectedError,
    QueryTimeoutError,
    QueryUnavailableError,
)
from chatlink.lifecycle import BaseModule, ModuleManager
from chatlink.models.envelope import HiddenEnvelope, QueryAnswerMessage, QueryMessage
from chatlink.models.events import HiddenMessage, HostEvent
from chatlink.room import RoomState
from chatlink.transport.envelope import (
    build_hidden_beep,
    build_hidden_message,
    is_hidden_beep,
    is_hidden_message,
    parse_hidden_beep,
    parse_hidden_message,
)
from chatlink.transport.hooks import HookNext, HookRegistry

if TYPE_CHECKING:
    from chatlink.characters import Character, CharacterRegistry

logger = logging.getLogger(__name__)

MESSAGE_HOOK_PRIORITY = 10

MessageHandler = Callable[[int, Any], None]
ReplyFunction = Callable[..., None]
QueryHandler = Callable[["Character", ReplyFunction, Any], Any]
ChangeSubscriber = Callable[[int], None]


class Transport(Protocol):
    hooks: HookRegistry

    def emit(self, event: str, data: Any) -> None: ...


class PendingQuery:
    __slots__ = ("query", "target", "future", "timer")

    def __init__(self, query: str, target: int, future: "asyncio.Future[Any]", timer: asyncio.TimerHandle):
        self.query = query
        self.target = target
        self.future = future
        self.timer = timer


class Messaging:
    def __init__(
        self,
        transport: Transport,
        room: RoomState,
        modules: ModuleManager,
        default_timeout: float = DEFAULT_QUERY_TIMEOUT,
    ):
        self._transport = transport
        self._room = room
        self._modules = modules
        self._default_timeout = default_timeout
        self.characters: Optional["CharacterRegistry"] = None

        self._hidden_message_handlers: dict[str, MessageHandler] = {}
        self._hidden_beep_handlers: dict[str, MessageHandler] = {}
        self._query_handlers: dict[str, QueryHandler] = {}
        self._change_subscribers: list[ChangeSubscriber] = []
        self._pending: dict[str, PendingQuery] = {}
        self._remove_hooks: list[Callable[[], None]] = []

    # -- registration -------------------------------------------------------

    def register_hidden_message_handler(self, type: str, handler: MessageHandler) -> None:
        if type in self._hidden_message_handlers:
            logger.warning(f"Replacing hidden message handler for {type!r}")
        self._hidden_message_handlers[type] = handler

    def register_hidden_beep_handler(self, type: str, handler: MessageHandler) -> None:
        if type in self._hidden_beep_handlers:
            logger.warning(f"Replacing hidden beep handler for {type!r}")
        self._hidden_beep_handlers[type] = handler

    def register_query_handler(self, query: str, handler: QueryHandler) -> None:
        if query in self._query_handlers:
            logger.warning(f"Replacing query handler for {query!r}")
        self._query_handlers[query] = handler

    def register_change_subscriber(self, subscriber: ChangeSubscriber) -> None:
        self._change_subscribers.append(subscriber)

    def install(self) -> None:
        """Register the protocol's own hidden message handlers and host intercepts."""
        self.register_hidden_message_handler(HiddenMessage.QUERY, self._on_query)
        self.register_hidden_message_handler(HiddenMessage.QUERY_ANSWER, self._on_query_answer)
        self.register_hidden_message_handler(HiddenMessage.SOMETHING_CHANGED, self._on_something_changed)
        self._remove_hooks = [
            self._transport.hooks.hook(HostEvent.CHAT_ROOM_MESSAGE, MESSAGE_HOOK_PRIORITY, self.on_chat_room_message),
            self._transport.hooks.hook(HostEvent.ACCOUNT_BEEP, MESSAGE_HOOK_PRIORITY, self.on_account_beep),
        ]

    def clear(self) -> None:
        for remove in self._remove_hooks:
            remove()
        self._remove_hooks = []
        self._hidden_message_handlers.clear()
        self._hidden_beep_handlers.clear()
        self._query_handlers.clear()
        self._change_subscribers.clear()
        self.cancel_pending_queries()

    # -- sending ------------------------------------------------------------

    def send_hidden_message(self, type: str, message: Any = None, target: Optional[int] = None) -> None:
        """Send a hidden message to one room member, or to all of them if `target` is None.

        Does nothing before first-time init has finished or outside a room.
        """
        try:
            self._send_hidden_message(type, message, target)
        except RuntimeError as e:
            logger.error(f"Hidden message {type!r} not sent: {e}")

    def _send_hidden_message(self, type: str, message: Any, target: Optional[int]) -> None:
        if not self._room.in_room or self._modules.first_time_init:
            return
        self._transport.emit(HostEvent.CHAT_ROOM_CHAT, build_hidden_message(type, message, target))

    def send_hidden_beep(self, type: str, message: Any, target: int, as_leash_beep: bool = False) -> None:
        """Send a hidden beep. Beeps are direct and need no shared room."""
        try:
            self._transport.emit(HostEvent.ACCOUNT_BEEP, build_hidden_beep(type, message, target, as_leash_beep))
        except RuntimeError as e:
            logger.error(f"Hidden beep {type!r} to {target} not sent: {e}")

    def send_query(
        self,
        query: str,
        data: Any,
        target: int,
        timeout: Optional[float] = None,
    ) -> "asyncio.Future[Any]":
        """Send a query and return a future for its answer.

        The future resolves with the answer's data, or fails with
        QueryUnavailableError, QueryNotSentError, QueryRejectedError or
        QueryTimeoutError.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        if self._modules.first_time_init:
            future.set_exception(QueryUnavailableError())
            return future

        if timeout is None:
            timeout = self._default_timeout
        query_id = str(uuid.uuid4())
        timer = loop.call_later(timeout, self._on_query_timeout, query_id, timeout)
        self._pending[query_id] = PendingQuery(query, target, future, timer)
        future.add_done_callback(partial(self._forget_query, query_id))

        try:
            self._send_hidden_message(HiddenMessage.QUERY, {
                "id": query_id,
                "query": query,
                "data": data,
            }, target)
        except RuntimeError as e:
            logger.error(f"Query {query!r} to {target} not sent: {e}")
            del self._pending[query_id]
            timer.cancel()
            future.set_exception(QueryNotSentError(query, target, str(e)))
        return future

    @property
    def pending_query_count(self) -> int:
        return len(self._pending)

    def cancel_pending_queries(self) -> None:
        pending = list(self._pending.values())
        self._pending.clear()
        for info in pending:
            info.timer.cancel()
            if not info.future.done():
                info.future.set_exception(QueryCancelledError())

    def _on_query_timeout(self, query_id: str, timeout: float) -> None:
        info = self._pending.pop(query_id, None)
        if info is None:
            return
        logger.warning(f"Query timed out: {info.query!r} to {info.target}")
        if not info.future.done():
            info.future.set_exception(QueryTimeoutError(info.query, info.target, timeout))

    def _forget_query(self, query_id: str, future: "asyncio.Future[Any]") -> None:
        # The caller may cancel the future itself; its timer must not outlive it
        info = self._pending.get(query_id)
        if info is not None and info.future is future:
            del self._pending[query_id]
            info.timer.cancel()

    # -- change notification ------------------------------------------------

    def notify_of_change(self) -> None:
        """Tell the room, and local subscribers, that the player's state changed."""
        if not self._modules.ready:
            return
        self.send_hidden_message(HiddenMessage.SOMETHING_CHANGED, None)
        # The broadcast never comes back to its sender
        player = self._room.player_number
        if player is not None:
            self._call_change_subscribers(player)

    def _call_change_subscribers(self, origin: int) -> None:
        for subscriber in list(self._change_subscribers):
            try:
                subscriber(origin)
            except Exception:
                logger.exception(f"Change subscriber failed for origin {origin}")

    def _on_something_changed(self, sender: int, _message: Any) -> None:
        self._call_change_subscribers(sender)

    # -- inbound ------------------------------------------------------------

    def on_chat_room_message(self, args: tuple[Any, ...], next: HookNext) -> Any:
        data = args[0] if args else None
        if not is_hidden_message(data):
            return next(args)
        if data["Sender"] == self._room.player_number or self._modules.first_time_init:
            return None
        parsed = parse_hidden_message(data)
        if parsed is not None:
            self._dispatch(self._hidden_message_handlers, "message", *parsed)
        return None

    def on_account_beep(self, args: tuple[Any, ...], next: HookNext) -> Any:
        data = args[0] if args else None
        if not is_hidden_beep(data):
            return next(args)
        parsed = parse_hidden_beep(data)
        if parsed is not None and parsed[0] != self._room.player_number:
            self._dispatch(self._hidden_beep_handlers, "beep", *parsed)
        return None

    def _dispatch(self, handlers: dict[str, MessageHandler], kind: str, sender: int, envelope: HiddenEnvelope) -> None:
        handler = handlers.get(envelope.type)
        if handler is None:
            logger.warning(f"Hidden {kind} no handler: {sender} {envelope.type!r} {envelope.message!r}")
            return
        try:
            handler(sender, envelope.message)
        except Exception:
            logger.exception(f"Hidden {kind} handler {envelope.type!r} failed for {sender}")

    def _answer(self, sender: int, query_id: str, ok: bool, data: Any = None) -> None:
        self.send_hidden_message(HiddenMessage.QUERY_ANSWER, {
            "id": query_id,
            "ok": ok,
            "data": data,
        }, sender)

    def _on_query(self, sender: int, message: Any) -> None:
        try:
            query = QueryMessage.model_validate(message)
        except ValidationError:
            logger.warning(f"Invalid query from {sender}: {message!r}")
            return

        character = self.characters.get_character(sender) if self.characters else None
        if character is None or not character.has_access_to_player():
            self._answer(sender, query.id, False)
            return

        handler = self._query_handlers.get(query.query)
        if handler is None:
            logger.warning(f"Query no handler: {sender} {query.query!r}")
            self._answer(sender, query.id, False)
            return

        replied = False

        def reply(ok: bool, data: Any = None) -> None:
            nonlocal replied
            if replied:
                logger.warning(f"Query handler {query.query!r} replied twice")
                return
            replied = True
            self._answer(sender, query.id, ok, data)

        def on_failure() -> None:
            logger.exception(f"Query handler {query.query!r} failed for {character}")
            if not replied:
                reply(False)

        try:
            result = handler(character, reply, query.data)
        except Exception:
            on_failure()
            return

        if inspect.isawaitable(result):
            async def _finish() -> None:
                try:
                    await result
                except Exception:
                    on_failure()
            asyncio.ensure_future(_finish())

    def _on_query_answer(self, sender: int, message: Any) -> None:
        try:
            answer = QueryAnswerMessage.model_validate(message)
        except ValidationError:
            logger.warning(f"Invalid queryAnswer from {sender}: {message!r}")
            return

        info = self._pending.get(answer.id)
        if info is None:
            logger.warning(f"Response to unknown query from {sender}: {message!r}")
            return

        if info.target != sender:
            logger.warning(f"Response to query {info.query!r} not from target {info.target}: {sender}")
            return

        info.timer.cancel()
        del self._pending[answer.id]
        if info.future.done():
            return

        if answer.ok:
            info.future.set_result(answer.data)
        else:
            error = answer.data if answer.data is not None else answer.error
            info.future.set_exception(QueryRejectedError(info.query, info.target, error))


class MessagingModule(BaseModule):
    def __init__(self, messaging: Messaging):
        self._messaging = messaging

    def load(self) -> None:
        self._messaging.install()

    def unload(self) -> None:
        self._messaging.clear()
