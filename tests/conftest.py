"""Shared pytest fixtures for all suggestion tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from blog_suggestions.models import EngagementTier, Post, ReadingObservation
from blog_suggestions.store import ContentStore


NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


def make_store(
    posts: list[Post] | None = None,
    observations: list[ReadingObservation] | None = None,
) -> MagicMock:
    """Return a ContentStore mock serving the given corpus and history."""
    store = MagicMock(spec=ContentStore)
    store.list_published_posts = AsyncMock(return_value=list(posts or []))
    store.list_observations = AsyncMock(return_value=list(observations or []))
    store.append_observation = AsyncMock(return_value=None)
    return store


def make_observation(
    post_id: str,
    category: str,
    tags: list[str],
    percent: float = 90.0,
    seconds: float = 40.0,
    engagement: EngagementTier = EngagementTier.HIGH,
    user_id: str = "u1",
) -> ReadingObservation:
    return ReadingObservation(
        user_id=user_id,
        post_id=post_id,
        category=category,
        tags=tuple(tags),
        reading_time_seconds=seconds,
        time_spent_percent=percent,
        engagement=engagement,
        timestamp=NOW,
    )


# ---------------------------------------------------------------------------
# Post fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def post_ai() -> Post:
    return Post(
        "p_ai", "Shipping ML Models", category="tech", tags=["ai"], author="Ama",
        last_modified=NOW - timedelta(days=1), views=100, likes=10, shares=2,
        read_time_minutes=5,
    )


@pytest.fixture
def post_cloud() -> Post:
    return Post(
        "p_cloud", "Serverless in Practice", category="tech", tags=["cloud", "devops"],
        author="Kofi", last_modified=NOW - timedelta(days=20), views=40,
    )


@pytest.fixture
def post_design() -> Post:
    return Post(
        "p_design", "Colour Systems", category="design", tags=["ui"], author="Ama",
        last_modified=NOW - timedelta(days=90), views=500, likes=50, shares=10,
    )


@pytest.fixture
def post_news() -> Post:
    return Post(
        "p_news", "Company Retreat", category="news", tags=[], author="Esi",
        last_modified=NOW - timedelta(days=200),
    )


@pytest.fixture
def sample_posts(post_ai, post_cloud, post_design, post_news) -> list[Post]:
    """Corpus ordered newest first, as the store returns it."""
    return [post_ai, post_cloud, post_design, post_news]


@pytest.fixture
def tech_observation() -> ReadingObservation:
    """One high-engagement read of a tech post tagged ai and cloud."""
    return make_observation("p_old", "tech", ["ai", "cloud"])
