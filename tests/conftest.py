import pytest
import pytest_asyncio

from chatlink import AsyncChatLink

from fakes import FakeHostServer, FakeLocalState, settle

ALICE = 1001
BOB = 1002
CAROL = 1003


@pytest.fixture
def server() -> FakeHostServer:
    return FakeHostServer()


@pytest_asyncio.fixture
async def make_client(server):
    """Factory for logged-in clients on the fake server, joined to `room` unless it is None."""
    clients: list[AsyncChatLink] = []

    async def _make(name, member_number, room="Lobby", *, member=None, answer_queries=True, speech_hooks=(), **kwargs):
        server.add_account(name, member_number, **(member or {}))
        kwargs.setdefault("effect_interval", 3600)
        local_state = FakeLocalState() if answer_queries else None
        client = AsyncChatLink(connection=server.connection(), local_state=local_state, **kwargs)
        clients.append(client)
        for hook in speech_hooks:
            client.register_speech_hook(hook)
        await client.connect()
        await client.login(name, "secret")
        if room is not None:
            await client.join_room(room)
        await settle()
        return client

    yield _make

    for client in clients:
        await client.disconnect()


@pytest_asyncio.fixture
async def alice(make_client):
    return await make_client("Alice", ALICE)


@pytest_asyncio.fixture
async def bob(make_client, alice):
    return await make_client("Bob", BOB)
