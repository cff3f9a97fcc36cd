"""Outbound speech: parsing, the hook pipeline and sending through the client."""

import pytest

from chatlink import ChatLinkError, SpeechHook
from chatlink.lifecycle import ModuleManager
from chatlink.models.events import HostEvent
from chatlink.speech import SpeechModule, parse_chat, parse_emote

from conftest import ALICE, BOB, CAROL
from fakes import settle


class Recorder(SpeechHook):
    def __init__(self, log, name, allow=True, suffix=""):
        self.log = log
        self.name = name
        self.allow = allow
        self.suffix = suffix

    def allow_send(self, info):
        self.log.append(("allow", self.name))
        return self.allow

    def modify(self, info, message):
        self.log.append(("modify", self.name, message))
        return message + self.suffix

    def on_send(self, info, message):
        self.log.append(("send", self.name, message))


class Gag(SpeechHook):
    """Keeps OOC text, muffles everything else."""

    def modify(self, info, message):
        if info.type == "Emote":
            return message
        return "mmph" + (" (" + message.split("(", 1)[1] if info.has_ooc else "")


def chat_received(client):
    return [
        (data["Content"], data["Type"], data["Sender"])
        for event, data in client.connection.received
        if event == HostEvent.CHAT_ROOM_MESSAGE and data["Type"] != "Hidden"
    ]


class TestParsing:
    """Typed text to message info"""

    def test_chat_and_whisper(self):
        info = parse_chat("hello (brb) there")
        assert info.type == "Chat"
        assert info.target is None
        assert info.has_ooc is True
        assert info.no_ooc_message == "hello there"

        whisper = parse_chat("psst", BOB)
        assert whisper.type == "Whisper"
        assert whisper.target == BOB
        assert whisper.has_ooc is False

    def test_unclosed_ooc_runs_to_end(self):
        assert parse_chat("hi (going afk").no_ooc_message == "hi "

    def test_double_slash_sends_slash(self):
        info = parse_chat("//shrug")
        assert info.raw_message == "//shrug"
        assert info.original_message == "/shrug"

    def test_commands_are_refused(self):
        with pytest.raises(ValueError):
            parse_chat("/help")

    def test_star_is_an_emote(self):
        assert parse_chat("*waves*") is None

    @pytest.mark.parametrize("text, expected", [
        ("*waves*", "waves"),
        ("/me waves", "waves"),
        ("/action The lights dim", "*The lights dim"),
        ("  smiles ", "smiles"),
    ])
    def test_emote_forms(self, text, expected):
        info = parse_emote(text)
        assert info.type == "Emote"
        assert info.original_message == expected
        assert info.raw_message == text


class TestPipeline:
    """allow_send, modify and on_send in that order"""

    def test_order(self):
        log = []
        speech = SpeechModule(ModuleManager())
        speech.register_speech_hook(Recorder(log, "a", suffix="!"))
        speech.register_speech_hook(Recorder(log, "b", suffix="?"))
        assert speech.process(parse_chat("hi")) == "hi!?"
        assert log == [
            ("allow", "a"),
            ("allow", "b"),
            ("modify", "a", "hi"),
            ("modify", "b", "hi!"),
            ("send", "a", "hi!?"),
            ("send", "b", "hi!?"),
        ]

    def test_blocked(self):
        log = []
        speech = SpeechModule(ModuleManager())
        speech.register_speech_hook(Recorder(log, "a", allow=False))
        speech.register_speech_hook(Recorder(log, "b"))
        assert speech.process(parse_chat("hi")) is None
        assert log == [("allow", "a")]

    def test_remove(self):
        log = []
        speech = SpeechModule(ModuleManager())
        remove = speech.register_speech_hook(Recorder(log, "a", suffix="!"))
        remove()
        remove()
        assert speech.process(parse_chat("hi")) == "hi"
        assert log == []

    def test_register_only_before_load(self):
        modules = ModuleManager()
        speech = SpeechModule(modules)
        modules.register_module(speech)
        modules.start()
        with pytest.raises(RuntimeError):
            speech.register_speech_hook(SpeechHook())


class TestSendChat:
    """Chat, whispers and emotes through the client"""

    @pytest.mark.asyncio
    async def test_chat_reaches_the_room(self, make_client):
        alice = await make_client("Alice", ALICE, speech_hooks=[Gag()])
        bob = await make_client("Bob", BOB)
        assert alice.send_chat("let me go (this is fun)") is True
        await settle()
        assert chat_received(bob) == [("mmph (this is fun)", "Chat", ALICE)]

    @pytest.mark.asyncio
    async def test_whisper_reaches_only_target(self, make_client, alice, bob):
        carol = await make_client("Carol", CAROL)
        assert alice.send_chat("psst", BOB) is True
        await settle()
        assert chat_received(bob) == [("psst", "Whisper", ALICE)]
        assert chat_received(carol) == []

    @pytest.mark.asyncio
    async def test_emotes(self, make_client):
        alice = await make_client("Alice", ALICE, speech_hooks=[Gag()])
        bob = await make_client("Bob", BOB)
        assert alice.send_chat("*wriggles*") is True
        assert alice.send_emote("/me sighs") is True
        await settle()
        assert chat_received(bob) == [("wriggles", "Emote", ALICE), ("sighs", "Emote", ALICE)]

    @pytest.mark.asyncio
    async def test_blocked_message_is_not_sent(self, server, make_client):
        alice = await make_client("Alice", ALICE, speech_hooks=[Recorder([], "block", allow=False)])
        before = len(server.sent_by(ALICE, HostEvent.CHAT_ROOM_CHAT))
        assert alice.send_chat("hello") is False
        assert alice.send_chat("   ") is False
        assert len(server.sent_by(ALICE, HostEvent.CHAT_ROOM_CHAT)) == before

    @pytest.mark.asyncio
    async def test_needs_a_room(self, make_client):
        alice = await make_client("Alice", ALICE, room=None)
        with pytest.raises(ChatLinkError) as exc_info:
            alice.send_chat("hello")
        assert exc_info.value.code == "not_in_room"

    @pytest.mark.asyncio
    async def test_hooks_are_fixed_once_connected(self, alice):
        with pytest.raises(RuntimeError):
            alice.register_speech_hook(SpeechHook())
