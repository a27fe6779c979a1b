"""stats command: hint, acceptance and generation counts by time frame."""

from __future__ import annotations

import time

import click
from rich.console import Console
from rich.table import Table

from composer_cli.commands.history import require_telemetry

console = Console()

_TIME_FRAMES = [
    ("Last Hour", "last_hour"),
    ("Last Day", "last_day"),
    ("Last Week", "last_week"),
    ("Last 30 Days", "last_30_days"),
    ("Since Start", "since_start"),
]


def _time_frame_row(label: str, stats) -> list[str]:
    return [label] + [f"{getattr(stats, attr):,}" for _, attr in _TIME_FRAMES]


def _time_frame_table(title: str, first_column: str) -> Table:
    table = Table(title=title, show_header=True)
    table.add_column(first_column, style="bold")
    for label, _ in _TIME_FRAMES:
        table.add_column(label, justify="right")
    return table


def render_stats(telemetry, websites: list[str], top: int, now: int | None = None) -> None:
    from composer_core.stats import acceptance_rate, generation_stats, hints_received_stats, tab_usage_stats
    from composer_core.urls import website_label

    hints = hints_received_stats(telemetry.load_hints_received(), now)
    accepted = tab_usage_stats(telemetry.load_tab_usage(), now)
    generations = generation_stats(telemetry.load_generations(), now)

    received_total = hints.total.since_start
    accepted_total = accepted.total.since_start

    # --- Overview ---
    console.print("\n[bold]Tab usage overview[/bold]")
    console.print(f"  Hints received:  {received_total:,}")
    console.print(f"  Hints accepted:  {accepted_total:,}")
    console.print(f"  Acceptance rate: {acceptance_rate(accepted_total, received_total):.1f}%")

    # --- By time frame ---
    frames = _time_frame_table("By Time Frame", "Stream")
    frames.add_row(*_time_frame_row("Hints received", hints.total))
    frames.add_row(*_time_frame_row("Hints accepted", accepted.total))
    frames.add_row(*_time_frame_row("Generations", generations.total))
    frames.add_row(*_time_frame_row("Fields filled", generations.fields_by_time_frame))
    console.print(frames)

    # --- Hints by website ---
    if hints.by_website:
        site_table = _time_frame_table(f"Top {top} Websites by Hints Received", "Website")
        for site in hints.by_website[:top]:
            site_table.add_row(*_time_frame_row(website_label(site.base_url, websites), site.stats))
        console.print(site_table)
    if not accepted.supports_website_breakdown:
        console.print("[dim]Accepted hints are not recorded per website; no per-website acceptance breakdown.[/dim]")

    # --- Generations ---
    if generations.generations_count:
        console.print(f"\n[bold]Generations:[/bold] {generations.generations_count:,}")
        console.print(f"  Fields filled:   {generations.fields_count:,}")
        for status, style in (("success", "green"), ("warning", "yellow"), ("error", "red")):
            console.print(f"  [{style}]{status}[/{style}]: {generations.status_counts.get(status, 0):,}")

        gen_table = Table(title=f"Top {top} Websites by Generations", show_header=True)
        gen_table.add_column("Website")
        gen_table.add_column("Generations", justify="right")
        gen_table.add_column("Fields", justify="right")
        gen_table.add_column("Avg fields", justify="right")
        for site in generations.by_website[:top]:
            avg = site.fields_count / site.generations_count if site.generations_count else 0
            gen_table.add_row(
                website_label(site.base_url, websites),
                f"{site.generations_count:,}",
                f"{site.fields_count:,}",
                f"{avg:.1f}",
            )
        console.print(gen_table)
    else:
        console.print("[yellow]No generations recorded yet.[/yellow]")


@click.command("stats")
@click.option("--top", default=10, show_default=True, help="Number of websites to show per table.")
@click.option("--watch", is_flag=True, help="Re-poll the stores every poll_interval seconds until interrupted.")
@click.pass_context
def stats_cmd(ctx, top: int, watch: bool):
    """Show hint acceptance and generation statistics.

    Counts are recomputed from the telemetry files on every refresh. Hints
    received are broken down per website; accepted hints are not, because
    they are recorded without one.
    """
    telemetry = require_telemetry(ctx)
    config = ctx.obj.get("config", {})
    websites = config.get("websites") or []

    if not watch:
        render_stats(telemetry, websites, top)
        return

    interval = config.get("poll_interval", 5)
    try:
        while True:
            console.clear()
            render_stats(telemetry, websites, top)
            console.print(f"\n[dim]Refreshing every {interval}s. Press Ctrl+C to stop.[/dim]")
            time.sleep(interval)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")
