"""
Pytest configuration and fixtures for configuration control tests.

Provides fake configuration sources, consumers, aborters and an in-memory
watch resource so the watch loop can be driven without a file system.
"""

import asyncio
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional

import pytest

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config_control import Control, WatchSettings


@dataclass
class FakeConfigThirtyone:
    Threehundredandten: str


@dataclass
class FakeConfigThree:
    Thirty: str
    Thirtyone: FakeConfigThirtyone


@dataclass
class FakeConfigTwo:
    Twenty: str


@dataclass
class FakeConfig:
    One: str
    Two: FakeConfigTwo
    Three: List[FakeConfigThree] = field(default_factory=list)


def make_config() -> FakeConfig:
    """Nested configuration used across controller and notifier tests."""
    return FakeConfig(
        One="one",
        Two=FakeConfigTwo(Twenty="twenty"),
        Three=[
            FakeConfigThree(
                Thirty="thirty",
                Thirtyone=FakeConfigThirtyone(Threehundredandten="threehundredandten"),
            )
        ],
    )


class FakeSource:
    """Returns whatever `config` currently holds, or raises `error` when set."""

    def __init__(self, config: Any = None, name: str = "fake"):
        self.name = name
        self.config = config if config is not None else make_config()
        self.error: Optional[Exception] = None
        self.loads = 0

    def identity(self) -> str:
        return self.name

    def load(self) -> Any:
        self.loads += 1
        if self.error is not None:
            raise self.error
        return self.config


class RecordingConsumer:
    """Appends its name to a shared log on every update; raises `error` when set."""

    def __init__(self, name: str, log: List[str], error: Optional[Exception] = None):
        self.name = name
        self.log = log
        self.error = error
        self.seen: List[Any] = []

    async def update_config(self, shutdown_event, control):
        self.log.append(self.name)
        self.seen.append(control.config)
        if self.error is not None:
            raise self.error


class RecordingAborter:
    """Records every abort call."""

    def __init__(self):
        self.errors: List[BaseException] = []

    def abort(self, error):
        self.errors.append(error)


class FakeWatch:
    """
    In-memory watch resource.

    add() fails while `failures` is positive (or always when negative).
    """

    def __init__(self, failures: int = 0):
        self.events: asyncio.Queue = asyncio.Queue()
        self.errors: asyncio.Queue = asyncio.Queue()
        self.failures = failures
        self.added: List[str] = []
        self.closed = False

    def add(self, path: str) -> None:
        self.added.append(path)
        if self.failures != 0:
            self.failures -= 1
            raise FileNotFoundError(f"no such file: {path}")

    def close(self) -> None:
        self.closed = True


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll predicate until it holds, failing the test after timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("condition not met before timeout")
        await asyncio.sleep(0.001)


@pytest.fixture
def source() -> FakeSource:
    """Fake configuration source holding the nested test configuration."""
    return FakeSource()


@pytest.fixture
def control(source) -> Control:
    """Controller that already performed its initial load."""
    return Control(source)


@pytest.fixture
def fast_settings() -> WatchSettings:
    """Settings with a tiny retry delay so backoff tests finish quickly."""
    return WatchSettings(retry_base_delay=0.0001)


@pytest.fixture
def log() -> List[str]:
    """Shared dispatch log for consumers."""
    return []


@pytest.fixture
def shutdown_event() -> asyncio.Event:
    """Cancellation signal for the watch loop."""
    return asyncio.Event()
