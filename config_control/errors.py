"""
Error handling for configuration control.

Structured error codes for construction, loading, diffing and watching.
"""

from enum import Enum
from typing import Any, Dict, Optional, Sequence


class ErrorCode(Enum):
    """
    Error codes for configuration control.

    Custom codes (1000-1999):
    - 1100-1199: Configuration errors
    - 1200-1299: Watch errors
    """

    # Configuration errors (1100-1199)
    NO_CONFIG_SOURCE = 1100
    CONFIG_LOAD_FAILED = 1101
    DIFF_FAILED = 1102

    # Watch errors (1200-1299)
    WATCH_SETUP_FAILED = 1200


class ConfigError(Exception):
    """Base exception for configuration control errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize configuration error.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            suggestion: Suggested recovery action
            context: Additional context for debugging
        """
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for structured logging.

        Returns:
            Error dictionary with code, message, suggestion, and context
        """
        result = {
            "code": self.code.value,
            "message": self.message
        }

        if self.suggestion:
            result["suggestion"] = self.suggestion

        if self.context:
            result["context"] = self.context

        return result


class NoConfigSourceError(ConfigError):
    """Raised when a Control is created without a usable source."""

    def __init__(self, reason: str = "no configuration source given"):
        super().__init__(
            code=ErrorCode.NO_CONFIG_SOURCE,
            message=f"No configuration file: {reason}",
            suggestion="Pass a source whose identity() returns a non-empty file name",
        )


class ConfigLoadError(ConfigError):
    """Configuration loading error."""

    def __init__(self, identity: str, reason: str):
        """
        Initialize configuration load error.

        Args:
            identity: Watchable identity (file name) of the source
            reason: Reason for load failure
        """
        super().__init__(
            code=ErrorCode.CONFIG_LOAD_FAILED,
            message=f"Loading configuration from {identity} failed: {reason}",
            suggestion="Check file syntax and permissions",
            context={"identity": identity, "reason": reason}
        )


class DiffError(ConfigError):
    """Structural diff failed on incompatible values."""

    def __init__(self, path: Sequence[Any], reason: str):
        """
        Initialize diff error.

        Args:
            path: Path segments where the incompatibility was found
            reason: Description of the incompatibility
        """
        self.path = tuple(path)
        where = ".".join(str(segment) for segment in self.path) or "<root>"
        super().__init__(
            code=ErrorCode.DIFF_FAILED,
            message=f"Cannot diff configuration at {where}: {reason}",
            context={"path": where, "reason": reason}
        )


class WatchSetupError(ConfigError):
    """Watch resource could not be created or the file could not be added."""

    def __init__(self, identity: str, reason: str):
        super().__init__(
            code=ErrorCode.WATCH_SETUP_FAILED,
            message=f"Setting up watcher for {identity} failed: {reason}",
            suggestion="Ensure the configuration file exists and is readable",
            context={"identity": identity, "reason": reason}
        )
