#!filepath: containerd_metrics/cli.py
from pathlib import Path
from typing import Optional

import typer
from rich import print
from rich.markup import escape

from containerd_metrics import __version__
from containerd_metrics.config.app_config import AppConfig
from containerd_metrics.runtime.stop import StopToken, install_signal_handlers
from containerd_metrics.utils.errors import MetricsError, UserInputError
from containerd_metrics.utils.logger import logs
from containerd_metrics.workflows.export import RunSummary, run_export, run_replay

app = typer.Typer(help="containerd layer-preparation metrics")

_CONFIG_OPTION = typer.Option(None, "--config", "-c", help="YAML config file (default: bundled base.yml)")
_VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="log at DEBUG level")
_JSONL_OPTION = typer.Option(None, "--jsonl", help="also append records to this JSON-lines file")


def _load_config(config: Optional[Path], verbose: bool) -> AppConfig:
    try:
        cfg = AppConfig.load(str(config) if config else None)
    except UserInputError as e:
        print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=2)

    logs.configure(
        log_dir=cfg.log.dir,
        rotation=cfg.log.rotation,
        retention=cfg.log.retention,
        log_level="DEBUG" if verbose else cfg.log.level,
    )
    return cfg


def _print_summary(summary: RunSummary) -> None:
    print(
        f"[green]handled={summary.handled} "
        f"reported={summary.reported} "
        f"malformed={summary.malformed}[/green]"
    )


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def export(
    socket: Optional[str] = typer.Option(None, "--socket", help="path to the containerd socket"),
    namespace: Optional[str] = typer.Option(None, "--namespace", help="containerd namespace"),
    config: Optional[Path] = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
    jsonl: Optional[Path] = _JSONL_OPTION,
):
    """
    Starts exporting metrics (runs until SIGINT / SIGTERM)
    """
    cfg = _load_config(config, verbose)
    if socket:
        cfg.ingest.socket = socket
    if namespace:
        cfg.ingest.namespace = namespace
    if jsonl:
        cfg.report.jsonl_path = str(jsonl)

    stop = StopToken()
    restore = install_signal_handlers(stop)
    try:
        summary = run_export(cfg, stop)
    except MetricsError as e:
        print(f"[red]export failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)
    finally:
        restore()

    _print_summary(summary)


@app.command()
def replay(
    path: str = typer.Argument(..., help="captured `ctr events` output, or - for stdin"),
    config: Optional[Path] = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
    table: bool = typer.Option(False, "--table", help="print a per-layer table for each image"),
    jsonl: Optional[Path] = _JSONL_OPTION,
):
    """
    Correlate a recorded event stream offline
    """
    cfg = _load_config(config, verbose)
    if table:
        cfg.report.table = True
    if jsonl:
        cfg.report.jsonl_path = str(jsonl)

    try:
        summary = run_replay(cfg, path)
    except MetricsError as e:
        print(f"[red]replay failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    _print_summary(summary)


if __name__ == "__main__":
    app()

# python -m containerd_metrics export --socket /run/containerd/containerd.sock
