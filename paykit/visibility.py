# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

import asyncio
import logging
from typing import List, Optional

from paykit.time_utils import Clock, now_millis

logger = logging.getLogger(__name__)


class VisibilityTracker:
    """
    Tracks whether the host application is visible, or was visible recently enough that
    background fetching should continue. Fetch loops wait on this to suspend while the
    application is hidden and resume as soon as it is shown again.
    """

    def __init__(
        self,
        recently_visible_millis: int = 13_000,
        clock: Clock = now_millis,
        is_visible: bool = True,
    ) -> None:
        self._recently_visible_millis = recently_visible_millis
        self._clock = clock
        self._is_visible = is_visible
        self._last_visible_at: Optional[int] = clock() if is_visible else None
        self._resume_waiters: List["asyncio.Future[None]"] = []

    @property
    def is_visible(self) -> bool:
        return self._is_visible

    @property
    def recently_visible_deadline(self) -> Optional[int]:
        """When a hidden application stops counting as recently visible. None while visible."""
        if self._is_visible or self._last_visible_at is None:
            return None
        return self._last_visible_at + self._recently_visible_millis

    def is_visible_or_recently_visible(self, now: Optional[int] = None) -> bool:
        if self._is_visible:
            return True
        deadline = self.recently_visible_deadline
        if deadline is None:
            return False
        return (now if now is not None else self._clock()) < deadline

    def set_visible(self, is_visible: bool) -> None:
        now = self._clock()
        if is_visible:
            was_active = self.is_visible_or_recently_visible(now)
            self._is_visible = True
            self._last_visible_at = now
            if not was_active:
                logger.debug("Visibility resumed, waking %d waiters", len(self._resume_waiters))
                self._notify_resumed()
        elif self._is_visible:
            self._is_visible = False
            self._last_visible_at = now

    async def wait_for_resume(self, timeout_millis: Optional[float] = None) -> bool:
        """
        Waits until the application becomes visible after having been neither visible nor
        recently visible.

        Args:
            timeout_millis: give up after this long. None waits indefinitely.

        Returns:
            True if visibility resumed, False on timeout.
        """
        future: "asyncio.Future[None]" = asyncio.get_running_loop().create_future()
        self._resume_waiters.append(future)
        try:
            await asyncio.wait_for(
                future, None if timeout_millis is None else timeout_millis / 1000
            )
            return True
        except asyncio.TimeoutError:
            return False
        finally:
            if future in self._resume_waiters:
                self._resume_waiters.remove(future)

    def _notify_resumed(self) -> None:
        waiters, self._resume_waiters = self._resume_waiters, []
        for future in waiters:
            if not future.done():
                future.set_result(None)
