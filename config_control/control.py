"""
Change-tracking controller.

Keeps the current and previous configuration snapshots together with the
list of field paths that changed between them.
"""

import logging
import threading
from typing import Any, NamedTuple, Optional, Tuple

from .diff import changed_paths
from .errors import ConfigLoadError, DiffError, NoConfigSourceError
from .models import ConfigSource, DiffFailurePolicy, WatchSettings

logger = logging.getLogger(__name__)

WILDCARD = "*"
WILDCARD_SUFFIX = ".*"


class _State(NamedTuple):
    current: Any
    previous: Any
    changed: Tuple[str, ...]
    generation: int


class Control:
    """
    Tracks the current and previous configuration and a changelog.

    A new configuration is read immediately on construction. Readers get
    the current, previous and changed values from one immutable state
    object, so they never observe a half-published reload.
    """

    def __init__(self, source: Optional[ConfigSource], settings: Optional[WatchSettings] = None):
        """
        Initialize controller and load the first configuration.

        Args:
            source: Configuration source with a watchable file name
            settings: Optional tunables (diff failure policy)

        Raises:
            NoConfigSourceError: If source is missing or has no file name
            ConfigLoadError: If the initial load fails
        """
        if source is None:
            raise NoConfigSourceError()
        if not source.identity():
            raise NoConfigSourceError("configuration source has an empty file name")

        self.source = source
        self.settings = settings or WatchSettings()
        self._lock = threading.Lock()
        self._state = _State(current=None, previous=None, changed=(), generation=0)

        self.reload()

    def identity(self) -> str:
        """Return the watchable file name of the source."""
        return self.source.identity()

    def reload(self) -> None:
        """
        Load a fresh configuration and recompute the change-set.

        Raises:
            ConfigLoadError: If the source fails to load; state is left untouched
        """
        with self._lock:
            try:
                config = self.source.load()
            except ConfigLoadError:
                raise
            except Exception as e:
                raise ConfigLoadError(self.identity(), str(e)) from e

            state = self._state
            if state.generation == 0:
                self._state = _State(config, None, (WILDCARD,), 1)
                return

            previous = state.current
            try:
                changed = tuple(changed_paths(previous, config))
            except DiffError as e:
                logger.warning(f"Change diff unsuccessful: {e}")
                if self.settings.on_diff_error is DiffFailurePolicy.MARK_ALL:
                    changed = (WILDCARD,)
                else:
                    changed = state.changed
            else:
                if changed:
                    logger.debug(f"Configuration changed: {', '.join(changed)}")

            self._state = _State(config, previous, changed, state.generation + 1)

    @property
    def config(self) -> Any:
        """Current configuration."""
        return self._state.current

    @property
    def previous(self) -> Any:
        """Configuration replaced by the most recent reload."""
        return self._state.previous

    @property
    def changed(self) -> Tuple[str, ...]:
        """Changed paths of the most recent reload; ("*",) after the first load."""
        return self._state.changed

    def snapshot(self) -> Any:
        """Return the current configuration."""
        return self._state.current

    def is_changed(self, item: str) -> bool:
        """
        Confirm whether a portion of the configuration changed.

        Deep keys use "." as a delimiter and numbers address sequence items.
        A trailing ".*" matches the key and anything below it: if
        "Database.Connection.Host" changed, "Database.*" and
        "Database.Connection.*" both match. This is a prefix test, so
        "Data.*" does not match "Database.Port".

        Args:
            item: Dotted key, optionally ending in ".*"

        Returns:
            True if the key (or, for wildcards, any key below it) changed
        """
        changed = self._state.changed
        if item.endswith(WILDCARD_SUFFIX):
            prefix = item[:-1]
            return any(entry == WILDCARD or entry.startswith(prefix) for entry in changed)
        return any(entry == WILDCARD or entry == item for entry in changed)
