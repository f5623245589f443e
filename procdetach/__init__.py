"""procdetach — run a command-line program detached, and control it later."""

from importlib.metadata import version, PackageNotFoundError

from procdetach.launcher import setup

try:
    __version__ = version("procdetach")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development

__all__ = ["setup", "__version__"]
