"""CLI: chatlink room, chatlink permissions, chatlink log"""

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

import click
from rich.console import Console
from rich.table import Table

from chatlink.characters import Character
from chatlink.client import AsyncChatLink
from chatlink.constants import AccessLevel
from chatlink.errors import ChatLinkError

console = Console()
HELLO_WAIT = 2.0

account_option = click.option("--account", default=None, help="Account name (default: from config).")
password_option = click.option("--password", prompt=True, hide_input=True, envvar="CHATLINK_PASSWORD")


def _get_client() -> AsyncChatLink:
    from chatlink.cli.main import _get_client
    return _get_client()


def _load_config() -> dict:
    from chatlink.cli.main import _load_config
    return _load_config()


def _run(coro):
    from chatlink.cli.main import _run
    return _run(coro)


def _account(account: str) -> str:
    account = account or _load_config().get("account")
    if not account:
        console.print("[red]No account. Pass --account or run `chatlink config set --account`.[/red]")
        raise SystemExit(1)
    return account


@asynccontextmanager
async def _in_room(room: str, account: str, password: str) -> AsyncIterator[AsyncChatLink]:
    client = _get_client()
    await client.connect()
    try:
        with console.status(f"Joining {room}..."):
            await client.login(account, password)
            await client.join_room(room)
        yield client
    finally:
        await client.disconnect()


def _target(client: AsyncChatLink, member_number: int) -> Character:
    character = client.character(member_number)
    if character is None:
        console.print(f"[red]Member {member_number} is not in the room.[/red]")
        raise SystemExit(1)
    return character


@click.command("room")
@click.argument("room")
@account_option
@password_option
def room_cmd(room, account, password):
    """List room members and their chatlink version."""
    account = _account(account)

    async def _room():
        async with _in_room(room, account, password) as client:
            # give hello answers a moment to arrive
            await asyncio.sleep(HELLO_WAIT)
            table = Table(title=room)
            table.add_column("Member", style="bold")
            table.add_column("Name")
            table.add_column("chatlink")
            for character in client.characters.get_all_characters_in_room():
                table.add_row(str(character.member_number), character.name, character.version or "-")
            console.print(table)

    _run(_room())


@click.command("permissions")
@click.argument("room")
@click.argument("member_number", type=int)
@account_option
@password_option
@click.option("--json-output", "--json", is_flag=True)
def permissions_cmd(room, member_number, account, password, json_output):
    """Show a member's permissions."""
    account = _account(account)

    async def _permissions():
        async with _in_room(room, account, password) as client:
            character = _target(client, member_number)
            try:
                permissions = await character.get_permissions()
            except ChatLinkError as e:
                console.print(f"[red]{e}[/red]")
                raise SystemExit(1)
            if json_output:
                click.echo(json.dumps({k: [v[0], int(v[1])] for k, v in permissions.items()}, indent=2))
                return
            table = Table(title=f"Permissions of {character}")
            table.add_column("Permission", style="bold")
            table.add_column("Self")
            table.add_column("Minimum")
            for name, (self_allowed, minimum) in sorted(permissions.items()):
                table.add_row(name, "yes" if self_allowed else "no", AccessLevel(minimum).name.lower())
            console.print(table)

    _run(_permissions())


@click.command("log")
@click.argument("room")
@click.argument("member_number", type=int)
@account_option
@password_option
def log_cmd(room, member_number, account, password):
    """Show a member's behaviour log."""
    account = _account(account)

    async def _log():
        async with _in_room(room, account, password) as client:
            character = _target(client, member_number)
            try:
                entries = await character.get_log_entries()
            except ChatLinkError as e:
                console.print(f"[red]{e}[/red]")
                raise SystemExit(1)
            table = Table(title=f"Log of {character}")
            table.add_column("Time")
            table.add_column("Access")
            table.add_column("Type")
            table.add_column("Data")
            for time, access, type_, data in entries:
                when = datetime.fromtimestamp(time / 1000).strftime("%Y-%m-%d %H:%M")
                table.add_row(when, str(access), str(type_), "" if data is None else str(data))
            console.print(table)

    _run(_log())
