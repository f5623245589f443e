"""Core types shared across procdetach — the on-disk registry record."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

PID_FILE_SUFFIX = "detach.pid"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RegistryRecord(BaseModel):
    """One detached process, as persisted in the registry directory.

    Records are write-once: created right after a successful spawn,
    removed by the process itself on shutdown or by a stop action.
    """

    pid: int = Field(gt=0)
    args: list[str] = Field(default_factory=list)
    start_time: datetime = Field(default_factory=utcnow)

    @property
    def elapsed_s(self) -> float:
        start = self.start_time
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        return (utcnow() - start).total_seconds()


def registry_path(record: RegistryRecord, directory: Path) -> Path:
    """Storage location and identity of a record: <dir>/<pid>_detach.pid."""
    return Path(directory) / f"{record.pid}_{PID_FILE_SUFFIX}"
