"""
Configuration control

Keeps a running process's configuration fresh: tracks what changed between
reloads and notifies subsystems, with file watching and abort on rejection.
"""

from .control import Control
from .errors import (
    ConfigError,
    ConfigLoadError,
    DiffError,
    ErrorCode,
    NoConfigSourceError,
    WatchSetupError,
)
from .loader import FileSource
from .models import (
    Aborter,
    ConfigSource,
    DiffFailurePolicy,
    Updateable,
    WatchSettings,
    WatchState,
)
from .notify import Notifier, backoff_delay
from .watcher import FileWatch, WatchEvent, WatchOp

__version__ = "1.0.0"

__all__ = [
    "Aborter",
    "ConfigError",
    "ConfigLoadError",
    "ConfigSource",
    "Control",
    "DiffError",
    "DiffFailurePolicy",
    "ErrorCode",
    "FileSource",
    "FileWatch",
    "NoConfigSourceError",
    "Notifier",
    "Updateable",
    "WatchEvent",
    "WatchOp",
    "WatchSettings",
    "WatchSetupError",
    "WatchState",
    "backoff_delay",
]
