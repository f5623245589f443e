"""Tests for the demo host program's shutdown discipline."""

from __future__ import annotations

import signal
from unittest.mock import MagicMock, patch

from procdetach import demo


def _run(sleep_effect=None):
    cleanup = MagicMock()
    with patch("procdetach.demo.setup", return_value=cleanup) as setup, \
         patch("procdetach.demo.signal.signal") as install, \
         patch("procdetach.demo.time.sleep", side_effect=sleep_effect):
        demo.main()
    return setup, install, cleanup


def test_cleanup_after_normal_run():
    setup, _, cleanup = _run()
    setup.assert_called_once_with("d")
    cleanup.assert_called_once_with()


def test_cleanup_after_sigterm():
    _, install, cleanup = _run(sleep_effect=demo._Shutdown("SIGTERM"))
    installed = {c.args[0] for c in install.call_args_list}
    assert signal.SIGTERM in installed
    cleanup.assert_called_once_with()


def test_signal_handler_raises_shutdown():
    _, install, _ = _run()
    handler = install.call_args_list[0].args[1]
    try:
        handler(signal.SIGTERM, None)
    except demo._Shutdown as e:
        assert str(e) == "SIGTERM"
    else:
        raise AssertionError("handler did not raise")
