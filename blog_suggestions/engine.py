"""Suggestion engine: orchestrates history, corpus, strategies and caching."""

from __future__ import annotations

import asyncio
import copy
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Sequence

from blog_suggestions.cache import TTLCache, make_cache_key
from blog_suggestions.models import Post, ReadingObservation, SuggestionScore
from blog_suggestions.preferences import build_preferences
from blog_suggestions.store import ContentStore
from blog_suggestions.strategies.base import SuggestionStrategy
from blog_suggestions.strategies.personalized import PersonalizedStrategy
from blog_suggestions.strategies.popularity import PopularityStrategy
from blog_suggestions.strategies.related import RelatedPostsStrategy
from blog_suggestions.tracker import BehaviorTracker, ReadingSession

logger = logging.getLogger(__name__)


class BlogSuggestionEngine:
    """Produces "for you" suggestions and related posts for one reader.

    Each engine is bound to a single ``user_id``; cache keys are namespaced
    by it, so several engines may safely share one :class:`TTLCache`.

    **Cold start**: a reader with no observations gets the corpus ranked by
    raw popularity.  Otherwise posts are scored against the reader's
    preference profile.

    Every public ranking method returns ``[]`` on failure and every write
    is best-effort; none of them raises to the caller after construction.
    Every ranking handed out is a private copy, so callers may freely
    modify what they receive.

    Args:
        store: The external content store.
        user_id: The reader.  Defaults to the anonymous sentinel.
        cache: Shared cache.  A private one is created when omitted.
        cache_ttl_seconds: TTL of the private cache.
        history_limit: How many recent observations feed the profile.
        checkpoint_seconds: Reading time between session checkpoints.
        now: UTC wall-clock source for recency and observation timestamps.
        clock: Monotonic time source for the private cache.

    Raises:
        ValueError: If *user_id* is empty or *history_limit* is not positive.
    """

    def __init__(
        self,
        store: ContentStore,
        user_id: str = "anonymous",
        cache: TTLCache | None = None,
        cache_ttl_seconds: float = 300,
        history_limit: int = 50,
        checkpoint_seconds: float = 10,
        now: Callable[[], datetime] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not user_id:
            raise ValueError("user_id must be non-empty")
        if history_limit < 1:
            raise ValueError(f"history_limit must be positive, got {history_limit!r}")
        self._store = store
        self._user_id = user_id
        self._cache = cache if cache is not None else TTLCache(cache_ttl_seconds, clock=clock)
        self._history_limit = history_limit
        self._checkpoint_seconds = checkpoint_seconds
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._tracker = BehaviorTracker(user_id, store, now=self._now)

    @property
    def user_id(self) -> str:
        return self._user_id

    # ------------------------------------------------------------------
    # Behaviour tracking
    # ------------------------------------------------------------------

    async def track_reading(
        self,
        post_id: str,
        category: str,
        tags: Sequence[str],
        reading_seconds: float,
        expected_seconds: float,
    ) -> None:
        """Record one reading observation.  Failures are logged, never raised."""
        await self._tracker.track_reading(
            post_id, category, tags, reading_seconds, expected_seconds
        )

    def schedule_tracking(
        self,
        post_id: str,
        category: str,
        tags: Sequence[str],
        reading_seconds: float,
        expected_seconds: float,
    ) -> asyncio.Task | None:
        """Record one observation in the background without awaiting it."""
        return self._tracker.schedule_tracking(
            post_id, category, tags, reading_seconds, expected_seconds
        )

    def start_session(
        self,
        post: Post,
        clock: Callable[[], float] = time.monotonic,
    ) -> ReadingSession:
        """Open and start a checkpointing :class:`ReadingSession` on *post*."""
        session = ReadingSession(self._tracker, post, self._checkpoint_seconds, clock)
        session.start()
        return session

    async def drain_tracking(self) -> None:
        """Wait for all background tracking to finish."""
        await self._tracker.drain()

    # ------------------------------------------------------------------
    # Store reads
    # ------------------------------------------------------------------

    async def _get_user_observations(self) -> list[ReadingObservation]:
        """Return the reader's most recent observations, newest first."""
        return await self._store.list_observations(self._user_id, self._history_limit)

    async def _get_all_posts(self) -> list[Post]:
        """Return the published corpus, served from cache while fresh.

        Store failures propagate to the ranking method that asked.
        """
        key = make_cache_key("get_all_posts", self._user_id)
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)
        posts = await self._store.list_published_posts()
        self._cache.set(key, posts)
        logger.debug("Fetched corpus of %d published posts", len(posts))
        return list(posts)

    # ------------------------------------------------------------------
    # Rankings
    # ------------------------------------------------------------------

    async def generate_suggestions(
        self,
        current_post_id: str | None = None,
        limit: int = 6,
    ) -> list[SuggestionScore]:
        """Return up to *limit* posts suggested for this reader.

        Args:
            current_post_id: A post to leave out, typically the one on screen.
            limit: Maximum number of suggestions.

        Returns:
            Suggestions, best first.  Empty on any failure.
        """
        key = make_cache_key("generate_suggestions", self._user_id, current_post_id, limit)
        cached = self._cached_ranking(key)
        if cached is not None:
            return cached

        try:
            observations, posts = await asyncio.gather(
                self._get_user_observations(),
                self._get_all_posts(),
            )
            strategy: SuggestionStrategy
            if not observations:
                logger.debug("No history for user=%r; ranking by popularity", self._user_id)
                strategy = PopularityStrategy()
            else:
                strategy = PersonalizedStrategy(
                    build_preferences(observations),
                    observations,
                    posts,
                    now=self._now(),
                )
            exclude = {current_post_id} if current_post_id else set()
            suggestions = strategy.rank(posts, max(limit, 0), exclude)
        except Exception:
            logger.exception("Error generating suggestions for user=%r", self._user_id)
            return []

        self._cache.set(key, suggestions)
        return copy.deepcopy(suggestions)

    async def get_related_posts(
        self,
        current_post: Post,
        limit: int = 4,
    ) -> list[SuggestionScore]:
        """Return up to *limit* posts similar in content to *current_post*.

        Posts sharing nothing with *current_post* are never returned, so
        the result may be shorter than *limit*.

        Args:
            current_post: The post being read.
            limit: Maximum number of related posts.

        Returns:
            Related posts, most similar first.  Empty on any failure.
        """
        key = make_cache_key("get_related_posts", self._user_id, current_post.post_id, limit)
        cached = self._cached_ranking(key)
        if cached is not None:
            return cached

        try:
            posts = await self._get_all_posts()
            related = RelatedPostsStrategy(current_post).rank(
                posts, max(limit, 0), {current_post.post_id}
            )
        except Exception:
            logger.exception(
                "Error getting related posts for user=%r post=%r",
                self._user_id,
                current_post.post_id,
            )
            return []

        self._cache.set(key, related)
        return copy.deepcopy(related)

    def _cached_ranking(self, key: str) -> list[SuggestionScore] | None:
        cached = self._cache.get(key)
        return copy.deepcopy(cached) if cached is not None else None

    def clear_cache(self) -> None:
        """Drop every cached entry, including other readers' in a shared cache."""
        self._cache.clear()
