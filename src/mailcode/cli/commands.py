"""CLI command implementations — saved Gmail API messages in, verification info out."""

from __future__ import annotations

import dataclasses
import json
import logging
from datetime import timedelta
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from mailcode.agent.service import ServiceConfig, VerificationService
from mailcode.extraction.codes import extract_code
from mailcode.extraction.decoder import decode_payload
from mailcode.extraction.links import extract_link, normalize_target_domain
from mailcode.extraction.sender import extract_sender
from mailcode.gmail.source import FetchError, JsonMessageSource

logger = logging.getLogger(__name__)
console = Console(width=200)

_MESSAGES_PATH = click.Path(exists=True, path_type=Path)
_NEWER_THAN = click.option(
    "--newer-than",
    "newer_than",
    type=click.IntRange(min=1),
    help="Only consider messages received in the last N minutes.",
)


def _with_overrides(
    config: ServiceConfig, domain: str | None, max_messages: int | None
) -> ServiceConfig:
    overrides: dict[str, object] = {}
    if domain:
        overrides["target_domain"] = domain
    if max_messages:
        overrides["max_messages"] = max_messages
    return dataclasses.replace(config, **overrides)


def _source(path: Path, newer_than: int | None) -> JsonMessageSource:
    window = timedelta(minutes=newer_than) if newer_than else None
    return JsonMessageSource(path, newer_than=window)


@click.command()
@click.argument("path", type=_MESSAGES_PATH)
@click.option("--domain", help="Target site domain (URL or hostname).")
@click.option("--max-messages", type=click.IntRange(min=1), help="Messages per batch.")
@_NEWER_THAN
@click.option("--json", "as_json", is_flag=True, help="Print the raw response dict.")
@click.pass_obj
def extract(
    config: ServiceConfig,
    path: Path,
    domain: str | None,
    max_messages: int | None,
    newer_than: int | None,
    as_json: bool,
) -> None:
    """Run one batch over saved messages and show the best code and link."""
    config = _with_overrides(config, domain, max_messages)
    source = _source(path, newer_than)
    # The service maps a listing failure to an empty result.
    try:
        source.list_recent_ids(config.max_messages)
    except FetchError as exc:
        raise click.ClickException(str(exc)) from exc

    result = VerificationService(source, config).trigger_fetch_and_get_code()

    if as_json:
        click.echo(json.dumps(result.to_dict()))
        return

    if result.is_empty:
        console.print("[yellow]No verification info found.[/yellow]")
        return

    lines = [f"[bold]Code:[/bold] {escape(result.code) if result.code else 'N/A'}"]
    if result.link:
        lines.append(f"[bold]Link:[/bold] {escape(result.link)}")
    if result.sender:
        lines.append(f"[dim]From: {escape(result.sender)}[/dim]")
    console.print(Panel("\n".join(lines), title="Verification", border_style="green"))


@click.command()
@click.argument("path", type=_MESSAGES_PATH)
@click.option("--domain", help="Target site domain (URL or hostname).")
@click.option("--max-messages", type=click.IntRange(min=1), help="Messages to inspect.")
@_NEWER_THAN
@click.pass_obj
def inspect(
    config: ServiceConfig,
    path: Path,
    domain: str | None,
    max_messages: int | None,
    newer_than: int | None,
) -> None:
    """Show what each message contributes before cross-message ranking."""
    config = _with_overrides(config, domain, max_messages)
    target = normalize_target_domain(config.target_domain)
    source = _source(path, newer_than)

    table = Table(box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=3)
    table.add_column("ID", max_width=20)
    table.add_column("From", max_width=26)
    table.add_column("Code", width=9)
    table.add_column("Strategy", width=20)
    table.add_column("Link", max_width=60)
    table.add_column("Link type", width=22)

    try:
        ids = source.list_recent_ids(config.max_messages)
    except FetchError as exc:
        raise click.ClickException(str(exc)) from exc

    for i, message_id in enumerate(ids, start=1):
        try:
            message = source.get_message(message_id)
        except FetchError as exc:
            table.add_row(str(i), escape(message_id), f"[red]{escape(str(exc))}[/red]")
            continue

        body = decode_payload(message)
        code = extract_code(body, message.id)
        link = extract_link(body, target)
        table.add_row(
            str(i),
            escape(message.id),
            escape(extract_sender(message.headers) or ""),
            escape(code.value) if code else "",
            code.strategy.value if code else "",
            escape(link.url) if link else "",
            link.link_type.value if link else "",
        )

    console.print(f"\nTarget domain: [bold]{escape(target or '(none)')}[/bold]\n")
    console.print(table)
