"""Shared test fixtures — a private registry directory per test."""

from __future__ import annotations

import io
import os
import signal
import subprocess

import pytest
from rich.console import Console

from procdetach.config import DetachSettings
from procdetach.controller import ProcessController
from procdetach.registry import RegistryStore


@pytest.fixture
def registry_dir(tmp_path):
    d = tmp_path / "registry"
    d.mkdir()
    return d


@pytest.fixture
def detach_settings(registry_dir):
    return DetachSettings(registry_dir=registry_dir, probe_liveness=False)


@pytest.fixture
def store(registry_dir):
    return RegistryStore(registry_dir)


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def controller(store, detach_settings, console):
    return ProcessController(store, settings=detach_settings, console=console)


@pytest.fixture
def dead_pid() -> int:
    """Pid of a process that has already exited and been reaped."""
    proc = subprocess.Popen(["true"])
    proc.wait()
    return proc.pid


@pytest.fixture
def reap():
    """Kill and reap every pid appended to the returned list."""
    pids: list[int] = []
    yield pids
    for pid in pids:
        try:
            os.kill(pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        try:
            os.waitpid(pid, 0)
        except ChildProcessError:
            pass
