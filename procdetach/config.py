"""Global configuration — loaded from environment variables."""

import signal
import tempfile
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class DetachSettings(BaseSettings):
    registry_dir: Path = Path(tempfile.gettempdir())
    stop_signal: int = int(signal.SIGTERM)
    probe_liveness: bool = True  # Mark stale records in status output
    log_level: str = "INFO"

    model_config = {"env_prefix": "PROCDETACH_"}

    @field_validator("stop_signal")
    @classmethod
    def _known_signal(cls, v: int) -> int:
        if v <= 0 or v not in signal.valid_signals():
            raise ValueError(f"{v} is not a valid signal number")
        return v


settings = DetachSettings()
