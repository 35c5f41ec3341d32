"""Version information for git-workty."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("git-workty")
except PackageNotFoundError:
    # Running from a source checkout without installed metadata
    __version__ = "0.0.0+unknown"
