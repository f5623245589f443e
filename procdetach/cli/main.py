"""procdetach CLI — inspect and control detached processes from outside a host.

`procdetach status` and `procdetach stop` act on the same registry a
host program's `-d status` / `-d stop` would. `procdetach start` detaches
any command, not only programs that call `setup()` themselves; such
commands never remove their own record, so `stop` is what cleans up.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from procdetach.config import DetachSettings, settings
from procdetach.controller import ProcessController
from procdetach.exceptions import DetachError
from procdetach.registry import RegistryStore

console = Console()
err_console = Console(stderr=True)

_PASSTHROUGH = {"ignore_unknown_options": True, "allow_extra_args": False}

_app = typer.Typer(
    name="procdetach",
    help="procdetach -- start, list and stop detached processes.",
    no_args_is_help=True,
)


def _controller(ctx: typer.Context) -> ProcessController:
    cfg: DetachSettings = ctx.obj or settings
    return ProcessController(RegistryStore(cfg.registry_dir), settings=cfg, console=console)


def _report(e: Exception) -> None:
    err_console.print(f"ERROR: {e}", markup=False, highlight=False)


@_app.callback()
def main(
    ctx: typer.Context,
    registry_dir: Optional[Path] = typer.Option(
        None, "--registry-dir", "-r", help="Registry directory (default: system temp dir)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Manage the detached-process registry."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = settings
    if registry_dir is not None:
        cfg = settings.model_copy(update={"registry_dir": registry_dir})
    ctx.obj = cfg


@_app.command("status")
def status(ctx: typer.Context):
    """List every registered process, stale ones included."""
    _controller(ctx).status()


@_app.command("stop")
def stop(ctx: typer.Context):
    """Remove every record and signal its process."""
    try:
        _controller(ctx).stop()
    except DetachError as e:
        _report(e)


@_app.command("start", context_settings=_PASSTHROUGH)
def start(
    ctx: typer.Context,
    command: list[str] = typer.Argument(help="Program and its arguments"),
):
    """Run a command detached from this terminal."""
    try:
        _controller(ctx).start(command)
    except DetachError as e:
        _report(e)


@_app.command("restart", context_settings=_PASSTHROUGH)
def restart(
    ctx: typer.Context,
    command: list[str] = typer.Argument(help="Program and its arguments"),
):
    """Stop everything registered, then start the given command."""
    try:
        _controller(ctx).restart(command)
    except DetachError as e:
        _report(e)


@_app.command("version")
def version_cmd():
    """Show procdetach version."""
    from procdetach import __version__
    console.print(f"procdetach v{__version__}")


def app(args: list[str] | None = None) -> None:
    """Console-script entry point."""
    _app(args=args, prog_name="procdetach")
