"""
Data models and capability interfaces for configuration control.

Defines the settings model, watch states and the protocols that
configuration sources, consumers and aborters implement.
"""

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from .control import Control


# Enumerations

class DiffFailurePolicy(str, Enum):
    """What the change-set becomes when two snapshots cannot be diffed."""
    KEEP = "keep"
    MARK_ALL = "mark_all"


class WatchState(str, Enum):
    """Watch loop lifecycle."""
    IDLE = "idle"
    WATCHING = "watching"
    REATTACHING = "reattaching"
    DISABLED = "disabled"
    CLOSED = "closed"


# Settings

class WatchSettings(BaseModel):
    """Tunables for change tracking and file watching."""

    retry_base_delay: float = Field(
        0.5, gt=0, description="Delay in seconds before the first re-attach retry"
    )
    retry_multiplier: float = Field(
        1.5, ge=1, description="Backoff multiplier applied per attempt"
    )
    max_retry_attempt: int = Field(
        10, ge=0, description="Last attempt number that may schedule another retry"
    )
    on_diff_error: DiffFailurePolicy = Field(
        DiffFailurePolicy.KEEP,
        description="Change-set handling when snapshots cannot be diffed",
    )


# Capabilities

@runtime_checkable
class ConfigSource(Protocol):
    """Loads configuration on demand from a watchable file."""

    def identity(self) -> str:
        """Return the file name that can be watched for changes."""
        ...

    def load(self) -> Any:
        """Return a fresh configuration value, or raise."""
        ...


@runtime_checkable
class Updateable(Protocol):
    """Receives configuration change notifications.

    Raising from update_config rejects the update and initiates abort.
    """

    async def update_config(self, shutdown_event: asyncio.Event, control: "Control") -> None:
        ...


@runtime_checkable
class Aborter(Protocol):
    """Handles the abort broadcast after a rejected update."""

    def abort(self, error: BaseException) -> None:
        ...
