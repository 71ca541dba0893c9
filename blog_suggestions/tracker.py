"""Behaviour tracker: turns reading sessions into append-only observations."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Sequence

from blog_suggestions.models import EngagementTier, Post, ReadingObservation
from blog_suggestions.store import ContentStore

logger = logging.getLogger(__name__)

# Tier thresholds: (tier, min percent of expected time, min seconds read).
# Evaluated in order; first match wins.
_ENGAGEMENT_THRESHOLDS = [
    (EngagementTier.HIGH, 80.0, 30.0),
    (EngagementTier.MEDIUM, 50.0, 15.0),
]


def time_spent_percent(reading_seconds: float, expected_seconds: float) -> float:
    """Return reading time as a percentage of the expected reading time.

    Clamped to ``[0, 100]``.  A non-positive *expected_seconds* yields 0.
    """
    if expected_seconds <= 0:
        return 0.0
    percent = max(reading_seconds, 0.0) / expected_seconds * 100
    return min(percent, 100.0)


def classify_engagement(percent: float, reading_seconds: float) -> EngagementTier:
    """Map a reading session onto an :class:`EngagementTier`.

    ====== ================ ===============
    Tier   Time spent       Seconds read
    ====== ================ ===============
    high   >= 80%           >= 30
    medium >= 50%           >= 15
    low    anything else
    ====== ================ ===============
    """
    for tier, min_percent, min_seconds in _ENGAGEMENT_THRESHOLDS:
        if percent >= min_percent and reading_seconds >= min_seconds:
            return tier
    return EngagementTier.LOW


class BehaviorTracker:
    """Records reading observations for a single user.

    Tracking is best-effort: every failure is logged and swallowed so that
    the reading experience is never blocked or broken by it.

    Args:
        user_id: The reader.  Anonymous sessions use a sentinel value.
        store: Where observations are appended.
        now: UTC wall-clock source used to timestamp observations.
    """

    def __init__(
        self,
        user_id: str,
        store: ContentStore,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._user_id = user_id
        self._store = store
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._pending: set[asyncio.Task] = set()

    def build_observation(
        self,
        post_id: str,
        category: str,
        tags: Sequence[str],
        reading_seconds: float,
        expected_seconds: float,
    ) -> ReadingObservation:
        reading_seconds = max(float(reading_seconds), 0.0)
        percent = time_spent_percent(reading_seconds, expected_seconds)
        return ReadingObservation(
            user_id=self._user_id,
            post_id=post_id,
            category=category,
            tags=tuple(tags),
            reading_time_seconds=reading_seconds,
            time_spent_percent=percent,
            engagement=classify_engagement(percent, reading_seconds),
            timestamp=self._now(),
        )

    async def track_reading(
        self,
        post_id: str,
        category: str,
        tags: Sequence[str],
        reading_seconds: float,
        expected_seconds: float,
    ) -> None:
        """Append one observation for the session described by the arguments.

        Args:
            post_id: The post being read.
            category: The post's category.
            tags: The post's tags.
            reading_seconds: Time actually spent reading.
            expected_seconds: The post's expected total reading time.
        """
        try:
            observation = self.build_observation(
                post_id, category, tags, reading_seconds, expected_seconds
            )
            await self._store.append_observation(observation)
            logger.debug(
                "Tracked %s engagement for user=%r post=%r (%.0f%%)",
                observation.engagement.value,
                self._user_id,
                post_id,
                observation.time_spent_percent,
            )
        except Exception:
            logger.exception(
                "Error tracking reading behaviour for user=%r post=%r",
                self._user_id,
                post_id,
            )

    async def track_post_reading(self, post: Post, reading_seconds: float) -> None:
        """Track a session on *post* using its own category, tags and read time."""
        await self.track_reading(
            post.post_id,
            post.category,
            post.tags,
            reading_seconds,
            post.expected_reading_seconds,
        )

    def schedule_tracking(
        self,
        post_id: str,
        category: str,
        tags: Sequence[str],
        reading_seconds: float,
        expected_seconds: float,
    ) -> asyncio.Task | None:
        """Fire-and-forget variant of :meth:`track_reading`.

        Must be called from a running event loop.  The task is referenced
        until it completes; callers need not await it.

        Returns:
            The scheduled task, or ``None`` if no event loop is running.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; dropping tracking for post=%r", post_id)
            return None
        task = loop.create_task(
            self.track_reading(post_id, category, tags, reading_seconds, expected_seconds)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled tracking task to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


class ReadingSession:
    """Times one reader on one post and emits checkpoint observations.

    The host calls :meth:`tick` periodically while the post is visible.
    A checkpoint observation is scheduled each time another
    *checkpoint_seconds* of reading have elapsed, and a final one on
    :meth:`stop`.  Calling :meth:`start` after :meth:`stop` opens a new
    timing window.

    Args:
        tracker: Receives the observations.
        post: The post being read.
        checkpoint_seconds: Reading time between checkpoints.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        tracker: BehaviorTracker,
        post: Post,
        checkpoint_seconds: float = 10,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._tracker = tracker
        self._post = post
        self._checkpoint = checkpoint_seconds
        self._clock = clock
        self._started_at: float | None = None
        self._last_tracked = 0

    @property
    def is_reading(self) -> bool:
        return self._started_at is not None

    @property
    def elapsed_seconds(self) -> int:
        if self._started_at is None:
            return 0
        return int(self._clock() - self._started_at)

    def start(self) -> None:
        if self.is_reading:
            return
        self._started_at = self._clock()
        self._last_tracked = 0

    def tick(self) -> asyncio.Task | None:
        """Schedule a checkpoint if enough reading time has elapsed."""
        if not self.is_reading:
            return None
        elapsed = self.elapsed_seconds
        if elapsed - self._last_tracked < self._checkpoint:
            return None
        self._last_tracked = elapsed
        return self._emit(elapsed)

    def stop(self) -> asyncio.Task | None:
        """End the session and schedule the final observation."""
        if not self.is_reading:
            return None
        elapsed = self.elapsed_seconds
        self._started_at = None
        return self._emit(elapsed)

    def _emit(self, elapsed: int) -> asyncio.Task | None:
        return self._tracker.schedule_tracking(
            self._post.post_id,
            self._post.category,
            self._post.tags,
            elapsed,
            self._post.expected_reading_seconds,
        )
