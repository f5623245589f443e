"""Detachment Launcher — the single entry point a host program calls.

A host calls ``setup()`` once at startup. The raw argument vector
decides the mode:

- the detach flag is present (``-d start`` / ``--d stop`` ...): this is a
  control invocation. The action runs against the registry and the
  process exits with status 0, whatever the outcome.
- the flag is absent: this is the detached program itself (or a plain
  foreground run). ``setup()`` returns a cleanup callable that removes
  this process's own registry record; the host must call it on every
  exit path.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Callable, TypeAlias

from rich.console import Console

from procdetach.config import DetachSettings, settings as _default_settings
from procdetach.controller import ProcessController
from procdetach.exceptions import DetachError, UsageError
from procdetach.registry import RegistryStore
from procdetach.types import RegistryRecord

_logger = logging.getLogger(__name__)

ACTIONS = ("start", "status", "stop", "restart")


# ── Invocation modes ─────────────────────────────────────────────


@dataclass(frozen=True)
class ParentSetup:
    """No detach flag: run the host's own work, clean up on exit."""


@dataclass(frozen=True)
class ControlInvocation:
    """Detach flag present: perform ``action`` and exit."""

    action: str
    clean_args: list[str] = field(default_factory=list)


Invocation: TypeAlias = ParentSetup | ControlInvocation


def _is_flag(arg: str, flag_name: str) -> bool:
    return arg.startswith("-") and arg.lstrip("-") == flag_name


def classify(argv: list[str], flag_name: str) -> Invocation:
    """Decide the invocation mode from the raw argument vector.

    The token right after the flag is the action. Flag and action are
    dropped; everything else is kept, in order, as the clean arguments
    a detached child will be launched with.
    """
    if not any(_is_flag(a, flag_name) for a in argv):
        return ParentSetup()

    action = ""
    clean_args: list[str] = []
    expect_action = False
    for arg in argv:
        if expect_action:
            action = arg
            expect_action = False
        elif _is_flag(arg, flag_name):
            expect_action = True
        else:
            clean_args.append(arg)
    return ControlInvocation(action=action, clean_args=clean_args)


# ── Configuration ────────────────────────────────────────────────


@dataclass
class DetachConfig:
    """Everything a control action needs, built once by ``setup()``."""

    flag_name: str
    parser: argparse.ArgumentParser
    settings: DetachSettings
    console: Console
    err_console: Console

    @property
    def store(self) -> RegistryStore:
        return RegistryStore(self.settings.registry_dir)

    def controller(self) -> ProcessController:
        return ProcessController(self.store, settings=self.settings, console=self.console)


def _register_flag(parser: argparse.ArgumentParser, flag_name: str) -> None:
    parser.add_argument(
        f"-{flag_name}",
        f"--{flag_name}",
        dest=f"detach_{flag_name}",
        metavar="ACTION",
        default="",
        help="start, status, stop or restart",
    )


# ── Entry point ──────────────────────────────────────────────────


def run_control(config: DetachConfig, invocation: ControlInvocation) -> None:
    """Run one control action. Errors are printed, never raised."""
    controller = config.controller()
    try:
        if invocation.action not in ACTIONS:
            config.parser.print_usage(sys.stderr)
            raise UsageError(f"invalid detach option {invocation.action!r}")
        if invocation.action == "start":
            controller.start(invocation.clean_args)
        elif invocation.action == "status":
            controller.status()
        elif invocation.action == "stop":
            controller.stop()
        else:
            controller.restart(invocation.clean_args)
    except (DetachError, OSError) as e:
        _logger.debug("Detach action %r failed: %s", invocation.action, e)
        config.err_console.print(f"ERROR: {e}", markup=False, highlight=False)


def make_cleanup(config: DetachConfig, pid: int | None = None) -> Callable[[], None]:
    """Cleanup callable removing the record of ``pid`` (default: this process)."""
    own_pid = pid if pid is not None else os.getpid()

    def cleanup() -> None:
        store = config.store
        try:
            store.delete(RegistryRecord(pid=own_pid))
        except OSError as e:
            _logger.warning("Cleanup of %s failed: %s", store.path_for(own_pid), e)
            config.err_console.print(f"ERROR: cleanup: {e}", markup=False, highlight=False)

    return cleanup


def setup(
    flag_name: str = "d",
    parser: argparse.ArgumentParser | None = None,
    argv: list[str] | None = None,
    settings: DetachSettings | None = None,
) -> Callable[[], None]:
    """Install detach control on a host program.

    In control mode this never returns: the action runs and the process
    exits with status 0. Otherwise the returned callable removes this
    process's registry record and must be called when the host exits.
    """
    argv = list(sys.argv if argv is None else argv)
    if parser is None:
        parser = argparse.ArgumentParser(prog=os.path.basename(argv[0]) if argv else None)
    _register_flag(parser, flag_name)

    config = DetachConfig(
        flag_name=flag_name,
        parser=parser,
        settings=settings or _default_settings,
        console=Console(),
        err_console=Console(stderr=True),
    )

    invocation = classify(argv, flag_name)
    if isinstance(invocation, ControlInvocation):
        try:
            run_control(config, invocation)
        except Exception as e:
            _logger.exception("Detach action %r crashed", invocation.action)
            config.err_console.print(f"ERROR: {e}", markup=False, highlight=False)
        finally:
            sys.exit(0)

    return make_cleanup(config)
