"""Client wiring against the fake host server: login, rooms, notifications, beeps, effects."""

import asyncio

import pytest

from chatlink import AsyncChatLink, ChatLinkError, LoginError, ModuleInitPhase
from chatlink.errors import ConnectionError
from chatlink.models.events import HiddenMessage, HostEvent

from conftest import ALICE, BOB, CAROL
from fakes import settle


def hellos_sent(server, member_number):
    return [
        data for data in server.sent_by(member_number, HostEvent.CHAT_ROOM_CHAT)
        if data["Dictionary"]["type"] == HiddenMessage.HELLO
    ]


class TestConnection:
    """Connect, login and rooms"""

    @pytest.mark.asyncio
    async def test_requires_connection(self, server):
        client = AsyncChatLink(connection=server.connection())
        with pytest.raises(ConnectionError):
            await client.login("Alice", "secret")

    @pytest.mark.asyncio
    async def test_player_unknown_before_login(self, server):
        client = AsyncChatLink(connection=server.connection())
        with pytest.raises(ChatLinkError) as exc_info:
            client.player
        assert exc_info.value.code == "not_logged_in"

    @pytest.mark.asyncio
    async def test_bad_password(self, server):
        server.add_account("Alice", ALICE)
        client = AsyncChatLink(connection=server.connection())
        await client.connect()
        try:
            with pytest.raises(LoginError):
                await client.login("Alice", "wrong")
        finally:
            await client.disconnect()

    @pytest.mark.asyncio
    async def test_login_and_join(self, server, alice):
        assert alice.connected
        assert alice.modules.phase == ModuleInitPhase.READY
        assert alice.room.player_number == ALICE
        assert alice.room.room_name == "Lobby"
        assert alice.player.name == "Alice"

        server.add_account("Bob", BOB)
        bob = AsyncChatLink(connection=server.connection())
        await bob.connect()
        member = await bob.login("Bob", "secret")
        assert member.member_number == BOB
        characters = await bob.join_room("Lobby")
        assert sorted(c.member_number for c in characters) == [ALICE, BOB]
        await bob.disconnect()

    @pytest.mark.asyncio
    async def test_leave_room(self, server, alice, bob):
        bob.leave_room()
        await settle()
        assert not bob.room.in_room
        assert not alice.room.is_member(BOB)
        assert server.room_of(BOB) is None

    @pytest.mark.asyncio
    async def test_disconnect_unloads(self, alice):
        await alice.disconnect()
        assert not alice.connected
        assert alice.modules.phase == ModuleInitPhase.DESTROY
        assert not alice.effects.running
        assert not alice.room.in_room

    @pytest.mark.asyncio
    async def test_disconnected_client_cannot_reconnect(self, alice):
        await alice.disconnect()
        with pytest.raises(ConnectionError):
            await alice.connect()
        assert not alice.connected

    @pytest.mark.asyncio
    async def test_fresh_client_after_disconnect_answers(self, server, alice, bob):
        await alice.disconnect()
        await settle()
        again = AsyncChatLink(connection=server.connection(), local_state=alice.local_state, effect_interval=3600)
        await again.connect()
        try:
            await again.login("Alice", "secret")
            await again.join_room("Lobby")
            await settle()
            permissions = await asyncio.wait_for(bob.character(ALICE).get_permissions(), 1.0)
            assert "log_view_normal" in permissions
        finally:
            await again.disconnect()


class TestNotifications:
    """Change notification and beeps between clients"""

    @pytest.mark.asyncio
    async def test_change_reaches_room_and_self(self, alice, bob):
        seen_by_alice = []
        seen_by_bob = []
        alice.register_change_subscriber(seen_by_alice.append)
        bob.register_change_subscriber(seen_by_bob.append)

        alice.notify_of_change()
        assert seen_by_alice == [ALICE]
        await settle()
        assert seen_by_alice == [ALICE]
        assert seen_by_bob == [ALICE]

    @pytest.mark.asyncio
    async def test_beep_outside_room(self, make_client, alice):
        carol = await make_client("Carol", CAROL, room=None)
        seen = []
        carol.messaging.register_hidden_beep_handler("ping", lambda sender, message: seen.append((sender, message)))

        alice.messaging.send_hidden_beep("ping", {"n": 1}, CAROL)
        alice.messaging.send_hidden_beep("ping", {"n": 2}, CAROL, as_leash_beep=True)
        await settle()
        assert seen == [(ALICE, {"n": 1}), (ALICE, {"n": 2})]

    @pytest.mark.asyncio
    async def test_hidden_messages_never_reach_chat_handlers(self, alice, bob):
        chat = [event for event, _ in bob.connection.received if event == HostEvent.CHAT_ROOM_MESSAGE]
        assert chat
        reached = []
        bob.connection.add_event_handler(lambda event, data: reached.append(event))
        alice.notify_of_change()
        await settle()
        assert HostEvent.CHAT_ROOM_MESSAGE not in reached


class TestEffects:
    """Player effect rebuilds"""

    @pytest.mark.asyncio
    async def test_unchanged_effects_are_suppressed(self, server, make_client):
        refreshes = []
        alice = await make_client("Alice", ALICE, refresh=lambda: refreshes.append(1))
        changes = []
        alice.register_change_subscriber(changes.append)
        hellos = len(hellos_sent(server, ALICE))

        assert not alice.effects.rebuild()
        assert refreshes == []

        markers = ["gag"]
        alice.register_effect_builder(lambda effects: effects.extend(markers))
        assert alice.effects.rebuild()
        assert refreshes == [1]
        assert alice.player.effects == ["gag"]
        assert len(hellos_sent(server, ALICE)) == hellos + 1

        assert not alice.effects.rebuild()
        assert refreshes == [1]
        assert len(hellos_sent(server, ALICE)) == hellos + 1
        assert changes == []

    @pytest.mark.asyncio
    async def test_order_matters(self, make_client):
        alice = await make_client("Alice", ALICE)
        order = ["a", "b"]
        alice.register_effect_builder(lambda effects: effects.extend(order))
        assert alice.effects.rebuild()
        order.reverse()
        assert alice.effects.rebuild()
        assert alice.player.effects == ["b", "a"]

    @pytest.mark.asyncio
    async def test_builders_run_in_registration_order(self, make_client):
        alice = await make_client("Alice", ALICE)
        alice.register_effect_builder(lambda effects: effects.append("first"))
        alice.register_effect_builder(lambda effects: effects.append("second"))
        alice.effects.rebuild()
        assert alice.player.effects == ["first", "second"]

    @pytest.mark.asyncio
    async def test_no_player_no_rebuild(self, server):
        client = AsyncChatLink(connection=server.connection())
        client.register_effect_builder(lambda effects: effects.append("gag"))
        assert not client.effects.rebuild()

    @pytest.mark.asyncio
    async def test_loop_runs_on_interval(self, make_client, caplog):
        alice = await make_client("Alice", ALICE, effect_interval=0.01)
        assert alice.effects.running
        failures = ["boom"]

        def builder(effects):
            if failures:
                raise RuntimeError(failures.pop())
            effects.append("gag")

        alice.register_effect_builder(builder)
        for _ in range(100):
            await asyncio.sleep(0.01)
            if alice.player.effects:
                break
        assert alice.player.effects == ["gag"]
        assert "Player effect rebuild failed" in caplog.text
