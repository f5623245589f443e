"""Demo host program — a one-minute job that can be detached.

    python -m procdetach.demo -d start     # detach a copy of this job
    python -m procdetach.demo -d status    # list detached copies
    python -m procdetach.demo -d stop      # stop them all
    python -m procdetach.demo              # run in the foreground

SIGTERM (sent by `-d stop`) is turned into an orderly shutdown so the
cleanup callable always runs.
"""

from __future__ import annotations

import logging
import os
import signal
import time

from procdetach.config import settings
from procdetach.launcher import setup

_logger = logging.getLogger(__name__)

RUN_SECONDS = 60


class _Shutdown(Exception):
    pass


def main() -> None:
    logging.basicConfig(level=settings.log_level)
    cleanup = setup("d")

    def handle_signal(sig, frame):
        raise _Shutdown(signal.Signals(sig).name)

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    try:
        _logger.info("pid %d working for %ds", os.getpid(), RUN_SECONDS)
        time.sleep(RUN_SECONDS)
        _logger.info("done at %s", time.strftime("%Y-%m-%d %H:%M:%S"))
    except _Shutdown as e:
        _logger.info("shutting down on %s", e)
    finally:
        cleanup()


if __name__ == "__main__":
    main()
