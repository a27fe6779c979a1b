"""CLI entry point for composer session telemetry.

Commands:
  history  generations (or navigation history) recorded for a website
  stats    hint, acceptance and generation counts by time frame
  record   producer hooks for agents that shell out instead of importing
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console

from composer_cli.commands.history import history_cmd
from composer_cli.commands.record import record_cmd
from composer_cli.commands.stats import stats_cmd

console = Console()


def _build_telemetry(config: dict):
    """Instantiate session telemetry from .composer.yml settings.

    Telemetry selection:
      telemetry: file → SessionTelemetry (JSON files under data_dir)
      telemetry: off  → NoOpTelemetry   (nothing persisted)

    This factory lives in cli.py so neither composer_core nor composer_store
    know about the CLI config format.
    """
    from composer_store.noop import NoOpTelemetry

    mode = config.get("telemetry", "file")

    # YAML reads a bare `off` as False.
    if mode in ("off", False):
        return NoOpTelemetry()

    if mode == "file":
        from composer_store.session import SessionTelemetry

        return SessionTelemetry(
            data_dir=config.get("data_dir", ".composer"),
            max_generations_per_site=config.get("max_generations_per_site", 50),
            max_navigation_per_site=config.get("max_navigation_per_site", 5),
            max_telemetry_events=config.get("max_telemetry_events"),
            concurrency=config.get("concurrency", "last-writer-wins"),
            lock_timeout=config.get("lock_timeout", 5.0),
        )

    raise ValueError(f"Unknown telemetry mode: {mode!r}. Choose 'file' or 'off'.")


@click.group()
@click.version_option(
    version=importlib.metadata.version("composer-telemetry"),
    prog_name="composer",
)
@click.option(
    "--config",
    "config_path",
    default=".composer.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="COMPOSER_CONFIG",
)
@click.option("--data-dir", default=None, help="Directory holding the telemetry files (overrides config).")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, data_dir: str | None, verbose: bool):
    """Session telemetry and history for the form-filling QA agent."""
    from composer_core.config import load_config

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    ctx.ensure_object(dict)

    config = load_config(config_path, cli_overrides={"data_dir": data_dir})
    try:
        telemetry = _build_telemetry(config)
    except ValueError as e:
        raise click.UsageError(str(e))

    ctx.obj["telemetry"] = telemetry
    ctx.obj["config"] = config


main.add_command(history_cmd)
main.add_command(stats_cmd)
main.add_command(record_cmd)
