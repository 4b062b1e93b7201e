"""
Configuration change notification.

Tells registered subsystems about configuration changes, broadcasts an
abort when one of them rejects an update, and watches the configuration
file to reload and re-notify automatically.
"""

import asyncio
import logging
from typing import Any, Callable, List, Optional, Set

from .control import Control
from .errors import ConfigLoadError, WatchSetupError
from .models import Aborter, Updateable, WatchSettings, WatchState
from .watcher import FileWatch, WatchEvent, WatchOp

logger = logging.getLogger(__name__)


def backoff_delay(attempt: int, base: float = 0.5, multiplier: float = 1.5) -> float:
    """
    Delay before retrying after a failed re-attach.

    Args:
        attempt: Number of the attempt that just failed (0 for the immediate one)
        base: Delay in seconds after attempt 0
        multiplier: Growth factor per attempt

    Returns:
        Delay in seconds
    """
    return base * multiplier ** attempt


class Notifier:
    """Tells subsystems about configuration changes."""

    def __init__(
        self,
        shutdown_event: asyncio.Event,
        control: Control,
        settings: Optional[WatchSettings] = None,
        watch_factory: Callable[[], Any] = FileWatch,
    ):
        """
        Initialize notifier.

        Args:
            shutdown_event: Setting this event stops the watch loop
            control: Controller holding the configuration
            settings: Retry tunables (defaults to the controller's settings)
            watch_factory: Creates the watch resource when watch() is called
        """
        self.shutdown_event = shutdown_event
        self.control = control
        self.settings = settings or control.settings
        self.watch_factory = watch_factory

        self.consumers: List[Updateable] = []
        self.aborters: List[Aborter] = []
        self.initial_sent = False
        self.aborting = False

        self.watcher = None
        self.state = WatchState.IDLE
        self._task: Optional[asyncio.Task] = None
        self._retries: Set[asyncio.Task] = set()

    async def register_consumers(self, *consumers: Updateable) -> None:
        """
        Add consumers to the list of services to be notified.

        Once the initial notification went out, each new consumer receives
        the current configuration right away, before the next one is added.
        A rejecting consumer stays registered; the consumers after it in the
        same call are not.

        Raises:
            Exception: Whatever a newly added consumer raised while updating
        """
        for consumer in consumers:
            self.consumers.append(consumer)
            if self.initial_sent:
                await self._update(consumer)

    def register_aborters(self, *aborters: Aborter) -> None:
        """Add aborters to the list of services handling abortions."""
        self.aborters.extend(aborters)

    async def notify(self) -> None:
        """
        Send the current configuration to every consumer in registration order.

        Should be called right after consumers and aborters are registered.
        The configuration object is notified first when it is Updateable
        itself; its outcome does not affect dispatch.

        Raises:
            Exception: The first consumer error; later consumers are skipped
        """
        config = self.control.config
        if isinstance(config, Updateable):
            try:
                await config.update_config(self.shutdown_event, self.control)
            except Exception as e:
                logger.debug(f"Configuration object update failed: {e}")

        try:
            for consumer in list(self.consumers):
                await self._update(consumer)
        finally:
            self.initial_sent = True

    async def _update(self, consumer: Updateable) -> None:
        try:
            await consumer.update_config(self.shutdown_event, self.control)
        except Exception as error:
            logger.error(f"Configuration update rejected by {type(consumer).__name__}: {error}")
            if not self.aborting:
                self.aborting = True
                self._abort(error)
            raise

    def _abort(self, error: BaseException) -> None:
        for aborter in self.aborters:
            try:
                aborter.abort(error)
            except Exception as e:
                logger.error(f"Aborter {type(aborter).__name__} failed: {e}")

    async def watch(self) -> None:
        """
        Start watching the configuration file for changes.

        Handles write, remove and rename events. When the file is removed or
        moved away it is re-added immediately; failed attempts are retried
        with exponential backoff
        (0.5s, multiplied by 1.5 per attempt, giving up after attempt 10).
        Returns once the watch loop is running; setting shutdown_event
        stops it.

        Raises:
            WatchSetupError: If the watcher cannot be created or the file added
        """
        identity = self.control.identity()
        if self._task is not None:
            raise WatchSetupError(identity, "already watching")

        try:
            watcher = self.watch_factory()
        except Exception as e:
            raise WatchSetupError(identity, f"setting up new watcher: {e}") from e

        try:
            watcher.add(identity)
        except Exception as e:
            watcher.close()
            raise WatchSetupError(identity, f"adding file to watcher: {e}") from e

        self.watcher = watcher
        self.state = WatchState.WATCHING
        self._task = asyncio.create_task(self._watch(watcher), name=f"config-watch:{identity}")
        logger.info(f"Watching configuration file {identity}")

    async def wait_closed(self) -> None:
        """Wait until the watch loop has finished and released the watcher."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    async def _watch(self, watcher) -> None:
        next_event = asyncio.ensure_future(watcher.events.get())
        next_error = asyncio.ensure_future(watcher.errors.get())
        shutdown = asyncio.ensure_future(self.shutdown_event.wait())

        try:
            while True:
                done, _ = await asyncio.wait(
                    {next_event, next_error, shutdown},
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if shutdown in done:
                    return

                if next_event in done:
                    event = next_event.result()
                    if event is None:
                        return
                    await self._handle_event(event)
                    next_event = asyncio.ensure_future(watcher.events.get())

                if next_error in done:
                    error = next_error.result()
                    if error is None:
                        return
                    logger.warning(f"File watcher error: {error}")
                    next_error = asyncio.ensure_future(watcher.errors.get())
        finally:
            for waiter in (next_event, next_error, shutdown):
                waiter.cancel()
            for retry in list(self._retries):
                retry.cancel()
            self.state = WatchState.CLOSED
            self.watcher = None
            watcher.close()
            logger.info("Watcher finished")

    async def _handle_event(self, event: WatchEvent) -> None:
        if event.op is WatchOp.WRITE:
            logger.debug(f"Configuration modified: {event.path}")
            await self._reload_and_notify()
        elif event.op in (WatchOp.REMOVE, WatchOp.RENAME):
            logger.debug(f"Configuration file gone ({event.op.value}): {event.path}")
            await self._reattach(0)

    async def _reload_and_notify(self) -> None:
        try:
            self.control.reload()
        except ConfigLoadError as e:
            logger.warning(f"Error reloading config: {e}")

        if not self.control.changed:
            logger.debug("Configuration unchanged, skipping notification")
            return

        try:
            await self.notify()
        except Exception as e:
            logger.warning(f"Configuration change not applied: {e}")

    async def _reattach(self, attempt: int) -> None:
        watcher = self.watcher
        if watcher is None:
            return

        self.state = WatchState.REATTACHING
        try:
            watcher.add(self.control.identity())
        except Exception as e:
            if attempt > self.settings.max_retry_attempt:
                logger.warning(f"Error re-adding config file watcher; disable watching: {e}")
                self.state = WatchState.DISABLED
                return
            logger.warning(f"Error re-adding config file watcher (attempt {attempt}): {e}")
            delay = backoff_delay(attempt, self.settings.retry_base_delay, self.settings.retry_multiplier)
            self._schedule_retry(delay, attempt + 1)
            return

        self.state = WatchState.WATCHING
        await self._reload_and_notify()

    def _schedule_retry(self, delay: float, attempt: int) -> None:
        retry = asyncio.create_task(self._retry_later(delay, attempt))
        self._retries.add(retry)
        retry.add_done_callback(self._retries.discard)

    async def _retry_later(self, delay: float, attempt: int) -> None:
        await asyncio.sleep(delay)
        await self._reattach(attempt)
