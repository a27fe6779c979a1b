"""history command: display generations recorded for a website."""

from __future__ import annotations

from datetime import datetime, timezone

import click
from rich.console import Console
from rich.table import Table

console = Console()

_STATUS_STYLE = {"success": "green", "warning": "yellow", "error": "red"}


def _format_ms(ts: int) -> str:
    return datetime.fromtimestamp(ts / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def require_telemetry(ctx: click.Context):
    """Return the configured telemetry, or fail with a UsageError when it is switched off."""
    from composer_store.noop import NoOpTelemetry

    telemetry = ctx.obj.get("telemetry") if ctx.obj else None
    if telemetry is None or isinstance(telemetry, NoOpTelemetry):
        raise click.UsageError("No telemetry store configured. Set 'telemetry: file' in .composer.yml.")
    return telemetry


@click.command("history")
@click.option("--url", required=True, help="Website or page URL; history is keyed by its base URL.")
@click.option("--limit", default=20, show_default=True, help="Maximum number of generations to show.")
@click.option("--navigation", is_flag=True, help="Show recently visited pages instead of generations.")
@click.pass_context
def history_cmd(ctx, url: str, limit: int, navigation: bool):
    """Show past AI form-fill generations for a website.

    Generations are stored per base URL (scheme://host), so any page URL on
    the site selects the same history.
    """
    from composer_core.urls import get_base_url

    telemetry = require_telemetry(ctx)
    base_url = get_base_url(url)

    if navigation:
        pages = telemetry.get_navigation_history(base_url)
        if not pages:
            console.print("[yellow]No navigation history found.[/yellow]")
            return
        console.print(f"\n[bold]Recently visited on [cyan]{base_url}[/cyan][/bold]")
        for i, page_url in enumerate(pages, start=1):
            console.print(f"  {i}. {page_url}")
        return

    generations = telemetry.get_generations(base_url)
    if not generations:
        console.print("[yellow]No generations found.[/yellow]")
        return

    # Already newest first.
    generations = generations[:limit]

    table = Table(title=f"Generations for {base_url}", show_header=True, header_style="bold cyan")
    # Fixed columns take 39 cells; Page and Status wrap into what is left of 80.
    table.add_column("ID", style="bold", width=12, no_wrap=True)
    table.add_column("Created (UTC)", width=16, no_wrap=True)
    table.add_column("Page", overflow="fold")
    table.add_column("Fields", justify="right", width=6, no_wrap=True)
    table.add_column("Status")
    table.add_column("Shots", width=5, no_wrap=True)

    for g in generations:
        statuses = {}
        for f in g.fields:
            statuses[f.status] = statuses.get(f.status, 0) + 1
        status_text = " ".join(
            f"[{_STATUS_STYLE.get(s, 'white')}]{s}:{n}[/{_STATUS_STYLE.get(s, 'white')}]" for s, n in statuses.items()
        )
        screens = ("B" if g.screenshot_before else "-") + ("A" if g.screenshot_after else "-")
        table.add_row(
            g.id,
            _format_ms(g.created_at),
            g.url[:40],
            str(len(g.fields)),
            status_text,
            screens,
        )

    console.print(table)
