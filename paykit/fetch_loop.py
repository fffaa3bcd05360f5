# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from paykit.time_utils import Clock, now_millis
from paykit.visibility import VisibilityTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RefetchLoop(Generic[T]):
    """
    Repeatedly fetches a value and hands each result to on_result.

    Fetches are sequential: fetch N+1 starts only after fetch N has completed or failed.
    The next fetch is scheduled interval_millis after the previous one started, so slow
    fetches don't push the schedule back. Failures, whether from fetch or from
    on_result, are logged and skipped. While the
    application is neither visible nor recently visible, the loop is suspended, and it
    fetches immediately once visibility resumes. After stop(), a fetch that was already
    in flight has its result dropped.
    """

    def __init__(
        self,
        name: str,
        fetch: Callable[[], Awaitable[T]],
        on_result: Callable[[T, int], None],
        interval_millis: int,
        visibility: Optional[VisibilityTracker] = None,
        clock: Clock = now_millis,
    ) -> None:
        """
        Args:
            name: used in log messages.
            fetch: produces the next value. May raise.
            on_result: called with each value and the time its fetch started.
            interval_millis: nominal time between the starts of consecutive fetches.
            visibility: if given, the loop suspends while the application is hidden.
            clock: source of the current time in milliseconds.
        """
        self.name = name
        self._fetch = fetch
        self._on_result = on_result
        self._interval_millis = interval_millis
        self._visibility = visibility
        self._clock = clock
        self._is_active = False
        self._task: Optional["asyncio.Task[None]"] = None

    @property
    def is_active(self) -> bool:
        return self._is_active

    def start(self) -> "asyncio.Task[None]":
        """Starts the loop on the running event loop."""
        if self._task is not None and not self._task.done():
            return self._task
        self._is_active = True
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    def stop(self) -> None:
        self._is_active = False
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while self._is_active:
            visibility = self._visibility
            if visibility is not None and not visibility.is_visible_or_recently_visible():
                logger.debug("%s suspended until visible", self.name)
                await visibility.wait_for_resume()
                continue

            started_at = self._clock()
            has_result = False
            result: Optional[T] = None
            try:
                result = await self._fetch()
                has_result = True
            except Exception:  # pylint: disable=broad-except
                logger.warning("%s fetch failed", self.name, exc_info=True)

            if not self._is_active:
                logger.debug("%s stopped, dropping late result", self.name)
                return
            if has_result:
                try:
                    self._on_result(result, started_at)  # type: ignore[arg-type]
                except Exception:  # pylint: disable=broad-except
                    logger.warning(
                        "%s failed to handle fetched value", self.name, exc_info=True
                    )

            delay_millis = max(0, self._interval_millis - (self._clock() - started_at))
            if visibility is not None:
                # Returns early if visibility resumed after the loop would have suspended.
                await visibility.wait_for_resume(delay_millis)
            else:
                await asyncio.sleep(delay_millis / 1000)
