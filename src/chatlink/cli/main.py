"""
chatlink CLI — `chatlink` command.

Commands:
  chatlink config set              Store server url and account
  chatlink room <name>             List room members and their chatlink version
  chatlink permissions <room> <n>  Show a member's permissions
  chatlink log <room> <n>          Show a member's behaviour log
"""

import asyncio
import json
import logging
from pathlib import Path

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install chatlink[cli]")

from chatlink.client import DEFAULT_SERVER_URL, AsyncChatLink

console = Console()
CONFIG_FILE = Path.home() / ".chatlink" / "config.json"


def _load_config() -> dict:
    try:
        return json.loads(CONFIG_FILE.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


def _get_client() -> AsyncChatLink:
    cfg = _load_config()
    return AsyncChatLink(server_url=cfg.get("server_url", DEFAULT_SERVER_URL))


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Log protocol traffic.")
def main(verbose: bool):
    """Query chatlink clients in a chat room."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@main.group("config")
def config():
    """Stored settings."""


@config.command("set")
@click.option("--server-url", default=None)
@click.option("--account", default=None)
def config_set(server_url, account):
    """Store the server url and account name."""
    cfg = _load_config()
    if server_url:
        cfg["server_url"] = server_url
    if account:
        cfg["account"] = account
    _save_config(cfg)
    console.print(f"[green]Saved to {CONFIG_FILE}[/green]")


# Register subcommands from separate modules
from chatlink.cli.room import log_cmd, permissions_cmd, room_cmd

main.add_command(room_cmd)
main.add_command(permissions_cmd)
main.add_command(log_cmd)


if __name__ == "__main__":
    main()
