"""record commands: append telemetry from the shell."""

from __future__ import annotations

import json
import time
import uuid

import click
from rich.console import Console
from rich.markup import escape

from composer_cli.commands.history import require_telemetry

console = Console()


def _report(ctx: click.Context, result, what: str) -> None:
    if result.ok:
        console.print(f"[green]Recorded {what}.[/green]")
        return
    console.print(f"[yellow]Warning: could not record {what} ({escape(str(result.reason))}).[/yellow]")
    ctx.exit(1)


@click.group("record")
def record_cmd():
    """Record telemetry events (producer side)."""


@record_cmd.command("hint")
@click.argument("url")
@click.pass_context
def record_hint_cmd(ctx, url: str):
    """Record that a hint was shown on URL."""
    from composer_core.urls import get_base_url

    telemetry = require_telemetry(ctx)
    _report(ctx, telemetry.add_hint_received(get_base_url(url)), "hint received")


@record_cmd.command("tab")
@click.pass_context
def record_tab_cmd(ctx):
    """Record that a hint was accepted."""
    telemetry = require_telemetry(ctx)
    _report(ctx, telemetry.increment_tab_usage(), "hint accepted")


@record_cmd.command("visit")
@click.argument("url")
@click.pass_context
def record_visit_cmd(ctx, url: str):
    """Record a page visit in the website's navigation history."""
    from composer_core.urls import get_base_url

    telemetry = require_telemetry(ctx)
    _report(ctx, telemetry.add_navigation(get_base_url(url), url), "visit")


@record_cmd.command("generation")
@click.argument("url")
@click.option(
    "--file",
    "entry_file",
    type=click.File("r"),
    default="-",
    show_default=True,
    help="JSON generation entry (camelCase keys, as stored on disk). '-' reads stdin.",
)
@click.pass_context
def record_generation_cmd(ctx, url: str, entry_file):
    """Record a generation for URL's website.

    Missing ``id`` and ``createdAt`` are filled with a random id and the
    current time; ``url`` defaults to URL.
    """
    from composer_core.urls import get_base_url
    from composer_store.generations import generation_from_dict

    telemetry = require_telemetry(ctx)
    try:
        data = json.load(entry_file)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--file")
    if not isinstance(data, dict):
        raise click.BadParameter("expected a JSON object", param_hint="--file")

    data.setdefault("id", uuid.uuid4().hex)
    data.setdefault("url", url)
    data.setdefault("createdAt", int(time.time() * 1000))
    try:
        entry = generation_from_dict(data)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--file")

    _report(ctx, telemetry.add_generation(get_base_url(url), entry), f"generation {entry.id}")
