"""
Treetracker messaging CLI — `treetracker-messages` command.

Commands:
  treetracker-messages sync                     Fetch new messages, upload pending ones
  treetracker-messages list [--offset N]        Show the message feed
  treetracker-messages send <text>              Compose a message for upload
  treetracker-messages respond <survey> <c>...  Answer a survey
  treetracker-messages read                     Mark all shown messages read
  treetracker-messages config show|set          Inspect or edit ~/.treetracker/config.json
"""

import logging
from typing import Optional

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install treetracker-messaging[cli]")

from treetracker_messaging import __version__
from treetracker_messaging.client import MessagingClient

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
    )


def _get_client(ctx: click.Context) -> MessagingClient:
    opts = ctx.find_root().obj or {}
    return MessagingClient(
        database_url=opts.get("database_url"),
        wallet_handle=opts.get("handle"),
        partition=opts.get("partition"),
    )


@click.group()
@click.version_option(__version__)
@click.option("--database-url", default=None, help="SQLAlchemy URL of the local message store")
@click.option("--handle", default=None, help="Planter wallet handle")
@click.option("--partition", default=None, help="Local partition key")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def main(ctx: click.Context, database_url: Optional[str], handle: Optional[str], partition: Optional[str], verbose: bool):
    """Treetracker messaging — sync planter messages with the messaging API."""
    _configure_logging(verbose)
    ctx.obj = {"database_url": database_url, "handle": handle, "partition": partition}


# Register subcommands from separate modules
from treetracker_messaging.cli.config_cmd import config  # noqa: E402
from treetracker_messaging.cli.messages import list_cmd, read_cmd, respond_cmd, send_cmd, sync_cmd  # noqa: E402

main.add_command(sync_cmd)
main.add_command(list_cmd)
main.add_command(send_cmd)
main.add_command(respond_cmd)
main.add_command(read_cmd)
main.add_command(config)


if __name__ == "__main__":
    main()
