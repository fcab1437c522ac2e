"""CLI: treetracker-messages sync|list|send|respond|read"""

import json

import click
from rich.console import Console
from rich.table import Table

from treetracker_messaging.errors import MessagingError

console = Console()


def _get_client(ctx: click.Context):
    from treetracker_messaging.cli.main import _get_client
    return _get_client(ctx)


def _fail(err: MessagingError) -> None:
    console.print(f"[red]{err.code}: {err}[/red]")
    raise SystemExit(1)


@click.command("sync")
@click.pass_context
def sync_cmd(ctx: click.Context):
    """Fetch new messages and upload pending ones."""
    client = _get_client(ctx)
    try:
        with console.status("Syncing messages..."):
            result = client.sync()
    finally:
        client.close()
    if not result.ok:
        _fail(result.error)
    console.print(
        f"[green]Synced: {result.inserted} new of {result.fetched} fetched "
        f"({result.pages} page(s)), {result.uploaded} uploaded.[/green]"
    )


@click.command("list")
@click.option("--offset", default=0, type=int)
@click.option("--type", "types", multiple=True, type=click.Choice(["message", "announce", "survey", "survey_response"]))
@click.option("--json-output", "--json", is_flag=True)
@click.pass_context
def list_cmd(ctx: click.Context, offset: int, types: tuple, json_output: bool):
    """Show the visible message feed, oldest first."""
    client = _get_client(ctx)
    try:
        records = client.messages(offset=offset, types=types or None)
    finally:
        client.close()

    if json_output:
        click.echo(json.dumps([
            {
                "id": r.message_id,
                "from": r.from_handle,
                "to": r.to_handle,
                "type": r.type,
                "body": r.body,
                "composed_at": r.composed_at.isoformat(),
                "unread": r.unread,
                "uploaded": r.uploaded,
                "survey_id": r.survey_id,
            }
            for r in records
        ], indent=2))
        return

    table = Table(title=f"Messages ({len(records)} shown)")
    table.add_column("Composed")
    table.add_column("From", style="bold")
    table.add_column("Type")
    table.add_column("Body")
    table.add_column("")
    for r in records:
        flags = ("●" if r.unread else "") + ("" if r.uploaded else " ↑")
        body = r.body or (r.survey.title if r.survey else "")
        table.add_row(r.composed_at.strftime("%Y-%m-%d %H:%M"), r.from_handle, r.type, body, flags)
    console.print(table)


@click.command("send")
@click.argument("text")
@click.pass_context
def send_cmd(ctx: click.Context, text: str):
    """Compose a message; it is uploaded on the next sync."""
    client = _get_client(ctx)
    try:
        record = client.send(text)
    except MessagingError as e:
        _fail(e)
    finally:
        client.close()
    console.print(f"[green]Queued message {record.message_id}.[/green]")


@click.command("respond")
@click.argument("survey_id")
@click.argument("choices", nargs=-1, required=True)
@click.pass_context
def respond_cmd(ctx: click.Context, survey_id: str, choices: tuple):
    """Answer a stored survey with one choice per question."""
    client = _get_client(ctx)
    try:
        record = client.respond(survey_id, choices)
    except MessagingError as e:
        _fail(e)
    finally:
        client.close()
    console.print(f"[green]Queued response {record.message_id} to survey {survey_id}.[/green]")


@click.command("read")
@click.option("--offset", default=0, type=int)
@click.pass_context
def read_cmd(ctx: click.Context, offset: int):
    """Mark the shown messages read."""
    client = _get_client(ctx)
    try:
        records = client.messages(offset=offset)
        before = client.unread_count()
        client.mark_read(records)
        after = client.unread_count()
    finally:
        client.close()
    console.print(f"[green]Marked {before - after} message(s) read.[/green]")
