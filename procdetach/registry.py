"""Registry Store — the shared directory of detached-process records.

One JSON file per detached process, named ``<pid>_detach.pid``. The
directory is shared by every instance of every host program on the
machine, so nothing here locks: enumeration may see records that a
concurrent stop is about to delete, and records whose process died
without cleaning up (stale records) are listed like any other.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from procdetach.types import PID_FILE_SUFFIX, RegistryRecord, registry_path

_logger = logging.getLogger(__name__)


class RegistryStore:
    """Reads, writes and deletes registry records in one directory."""

    def __init__(self, directory: Path) -> None:
        self._dir = Path(directory)

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, pid: int) -> Path:
        return registry_path(RegistryRecord(pid=pid), self._dir)

    def list_records(self) -> list[RegistryRecord]:
        """Decode every ``*detach.pid`` file; unreadable ones are skipped.

        Order follows the directory listing and is not guaranteed.
        """
        try:
            entries = list(self._dir.iterdir())
        except OSError as e:
            _logger.warning("Cannot list registry directory %s: %s", self._dir, e)
            return []

        records = []
        for entry in entries:
            if not entry.name.endswith(PID_FILE_SUFFIX) or entry.is_dir():
                continue
            try:
                records.append(RegistryRecord.model_validate_json(entry.read_bytes()))
            except (OSError, ValidationError) as e:
                _logger.warning("Skipping registry entry %s: %s", entry, e)
        return records

    def write(self, record: RegistryRecord) -> Path:
        """Serialize and persist a record. Raises OSError / ValueError."""
        path = registry_path(record, self._dir)
        data = record.model_dump_json()
        path.write_text(data)
        _logger.debug("Wrote registry record %s", path)
        return path

    def delete(self, record: RegistryRecord) -> None:
        """Remove a record's file. Filesystem errors propagate."""
        path = registry_path(record, self._dir)
        path.unlink()
        _logger.debug("Removed registry record %s", path)
