"""Unit tests for intercept points, the envelope codec and the Socket.IO manager."""

import logging

import pytest

from chatlink.transport.envelope import (
    build_hidden_beep,
    build_hidden_message,
    is_hidden_beep,
    is_hidden_message,
    parse_hidden_beep,
    parse_hidden_message,
)
from chatlink.transport.hooks import HookRegistry
from chatlink.transport.socketio import SocketIOManager


class TestHookRegistry:
    """Intercept chains"""

    def test_no_hooks_calls_original(self):
        hooks = HookRegistry()
        assert hooks.call("Event", (1,), lambda args: args[0] + 1) == 2

    def test_runs_by_descending_priority(self):
        hooks = HookRegistry()
        order = []

        def make(label):
            def hook(args, next):
                order.append(label)
                return next(args)
            return hook

        hooks.hook("Event", 0, make("low"))
        hooks.hook("Event", 10, make("high"))
        hooks.hook("Event", 10, make("high-second"))
        hooks.call("Event", (), lambda args: order.append("original"))
        assert order == ["high", "high-second", "low", "original"]

    def test_hook_can_consume(self):
        hooks = HookRegistry()
        reached = []
        hooks.hook("Event", 5, lambda args, next: "consumed")
        assert hooks.call("Event", (), lambda args: reached.append(args)) == "consumed"
        assert reached == []

    def test_hook_can_rewrite_args(self):
        hooks = HookRegistry()
        hooks.hook("Event", 5, lambda args, next: next((args[0] * 2,)))
        assert hooks.call("Event", (21,), lambda args: args[0]) == 42

    def test_remove(self):
        hooks = HookRegistry()
        remove = hooks.hook("Event", 5, lambda args, next: "consumed")
        remove()
        remove()
        assert hooks.call("Event", (), lambda args: "original") == "original"

    def test_events_are_independent(self):
        hooks = HookRegistry()
        hooks.hook("Other", 5, lambda args, next: "consumed")
        assert hooks.call("Event", (), lambda args: "original") == "original"


class TestCodec:
    """Hidden message and beep envelopes"""

    def test_build_hidden_message(self):
        payload = build_hidden_message("query", {"id": "x"}, 42)
        assert payload == {
            "Content": "ChatLinkMsg",
            "Type": "Hidden",
            "Target": 42,
            "Dictionary": {"type": "query", "message": {"id": "x"}},
        }

    def test_broadcast_has_no_target(self):
        assert build_hidden_message("somethingChanged", None)["Target"] is None

    def test_parse_hidden_message(self):
        data = dict(build_hidden_message("hello", {"version": "0.1.0"}), Sender=7)
        assert is_hidden_message(data)
        sender, envelope = parse_hidden_message(data)
        assert sender == 7
        assert envelope.type == "hello"
        assert envelope.message == {"version": "0.1.0"}

    def test_ordinary_chat_is_not_hidden(self):
        assert not is_hidden_message({"Sender": 7, "Content": "hi", "Type": "Chat"})
        assert not is_hidden_message({"Sender": True, "Content": "ChatLinkMsg", "Type": "Hidden"})
        assert not is_hidden_message("ChatLinkMsg")

    def test_malformed_dictionary_is_dropped(self, caplog):
        data = {"Sender": 7, "Content": "ChatLinkMsg", "Type": "Hidden", "Dictionary": [{"Tag": "x"}]}
        assert is_hidden_message(data)
        with caplog.at_level(logging.WARNING):
            assert parse_hidden_message(data) is None
        assert "Malformed hidden message" in caplog.text

    def test_build_beep_channels(self):
        normal = build_hidden_beep("ping", 1, 42)
        leash = build_hidden_beep("ping", 1, 42, as_leash_beep=True)
        assert normal["BeepType"] == "ChatLink"
        assert leash["BeepType"] == "Leash"
        assert normal["Message"] == leash["Message"] == {"ChatLink": {"type": "ping", "message": 1}}
        assert normal["MemberNumber"] == 42

    @pytest.mark.parametrize("as_leash_beep", [False, True])
    def test_parse_beep(self, as_leash_beep):
        data = dict(build_hidden_beep("ping", [1, 2], 42, as_leash_beep), MemberNumber=7)
        assert is_hidden_beep(data)
        sender, envelope = parse_hidden_beep(data)
        assert sender == 7
        assert envelope.type == "ping"
        assert envelope.message == [1, 2]

    def test_ordinary_beep_is_not_hidden(self):
        assert not is_hidden_beep({"MemberNumber": 7, "BeepType": "", "Message": "hi"})
        assert not is_hidden_beep({"MemberNumber": 7, "BeepType": "Leash", "Message": None})


class TestSocketIOManager:
    """Inbound routing without a live server"""

    def test_not_connected(self):
        manager = SocketIOManager("http://localhost:1")
        assert not manager.connected
        with pytest.raises(RuntimeError):
            manager.emit("ChatRoomChat", {})

    def test_dispatch_runs_hooks_then_handlers(self):
        manager = SocketIOManager("http://localhost:1")
        seen = []
        manager.add_event_handler(lambda event, data: seen.append((event, data)))
        manager.hooks.hook("ChatRoomMessage", 10, lambda args, next: next(({"rewritten": True},)))
        manager.dispatch("ChatRoomMessage", {"Sender": 1})
        assert seen == [("ChatRoomMessage", {"rewritten": True})]

    def test_consumed_event_skips_handlers(self):
        manager = SocketIOManager("http://localhost:1")
        seen = []
        remove = manager.add_event_handler(lambda event, data: seen.append(event))
        manager.hooks.hook("AccountBeep", 10, lambda args, next: None)
        manager.dispatch("AccountBeep", {})
        manager.dispatch("ChatRoomSync", {})
        remove()
        manager.dispatch("ChatRoomSync", {})
        assert seen == ["ChatRoomSync"]
