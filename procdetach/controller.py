"""ProcessController — start, status, stop and restart detached processes.

Every action runs to completion synchronously against the Registry
Store and the OS process primitives. Nothing waits for a managed child:
the only thing that marks the end of a detached process's life is the
removal of its registry record.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from procdetach.config import DetachSettings, settings as _default_settings
from procdetach.exceptions import PersistenceError, SpawnError, StopError
from procdetach.registry import RegistryStore
from procdetach.types import RegistryRecord, registry_path, utcnow

_logger = logging.getLogger(__name__)


def launch_command(args: list[str]) -> list[str]:
    """Command line that relaunches ``args`` (``args[0]`` is the program).

    Python scripts, and programs that cannot be resolved to an
    executable, are run under the current interpreter.
    """
    program = args[0]
    if not program.endswith(".py") and shutil.which(program):
        return list(args)
    return [sys.executable, *args]


def is_alive(pid: int) -> bool:
    """Zero-signal probe. A pid owned by another user still counts as alive."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def format_duration(seconds: float) -> str:
    seconds = max(int(seconds), 0)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


class ProcessController:
    """The four detach actions over one registry directory."""

    def __init__(
        self,
        store: RegistryStore,
        settings: DetachSettings | None = None,
        console: Console | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or _default_settings
        self._console = console or Console()

    @property
    def store(self) -> RegistryStore:
        return self._store

    def start(self, clean_args: list[str]) -> RegistryRecord:
        """Spawn ``clean_args`` detached and record it in the registry.

        If the record cannot be written the child is killed before the
        error is raised, so no untracked detached process survives.
        """
        if not clean_args:
            raise SpawnError("nothing to start: empty argument list")

        self._console.print("running in detached mode")
        command = launch_command(clean_args)

        start_time = utcnow()
        try:
            proc = subprocess.Popen(
                command,
                cwd=os.getcwd(),
                env=dict(os.environ),
                stdin=None,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise SpawnError(f"cannot start {command[0]}: {e}") from e

        record = RegistryRecord(pid=proc.pid, args=list(clean_args), start_time=start_time)
        try:
            self._store.write(record)
        except (OSError, ValueError) as e:
            self._kill_orphan(proc)
            raise PersistenceError(
                f"cannot write registry record for pid {proc.pid}: {e}"
            ) from e

        _logger.info("Detached pid %d: %s", proc.pid, " ".join(command))
        self._console.print(f"started pid {proc.pid}")
        # Handle is dropped without waiting; the child now runs on its own.
        return record

    def _kill_orphan(self, proc: subprocess.Popen) -> None:
        _logger.warning("Killing untracked child pid %d", proc.pid)
        try:
            proc.kill()
            proc.wait(timeout=5.0)
        except ProcessLookupError:
            pass
        except subprocess.TimeoutExpired:
            _logger.error("Child pid %d did not exit after SIGKILL", proc.pid)

    def status(self) -> list[RegistryRecord]:
        """Print every record in the registry, stale ones included."""
        records = self._store.list_records()
        if not records:
            self._console.print("no processes running")
            return []

        for i, record in enumerate(records, start=1):
            self._console.print(Panel(
                self._describe(record),
                title=f"Process #{i}",
                border_style="cyan",
            ))
        return records

    def _describe(self, record: RegistryRecord) -> str:
        lines = [
            f"PID:      {record.pid}",
            f"PID File: {escape(str(registry_path(record, self._store.directory)))}",
            f"Args:     {escape(' '.join(record.args))}",
            f"Started:  {record.start_time.isoformat()}",
            f"Duration: {format_duration(record.elapsed_s)}",
        ]
        if self._settings.probe_liveness:
            state = "[green]alive[/green]" if is_alive(record.pid) else "[red]stale[/red]"
            lines.append(f"State:    {state}")
        return "\n".join(lines)

    def stop(self) -> None:
        """Delete each record, then signal its process.

        The record is removed before the signal is sent and is not put
        back if signalling fails. Failures are collected per record and
        raised together as a StopError once every record was tried.
        """
        records = self._store.list_records()
        if not records:
            self._console.print("no processes running")
            return

        errors: list[str] = []
        for record in records:
            try:
                self._store.delete(record)
                os.kill(record.pid, self._settings.stop_signal)
                _logger.info("Sent signal %d to pid %d", self._settings.stop_signal, record.pid)
            except OSError as e:
                errors.append(f"pid {record.pid}: {e}")

        if errors:
            raise StopError(errors)
        self._console.print("processes stopped")

    def restart(self, clean_args: list[str]) -> RegistryRecord:
        """Stop everything, then start ``clean_args`` from this invocation."""
        self.stop()
        return self.start(clean_args)
