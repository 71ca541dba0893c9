"""Personalised scoring against a reader's preference profile."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from blog_suggestions.models import Post, PreferenceProfile, ReadingObservation, SuggestionScore
from blog_suggestions.strategies.base import SuggestionStrategy
from blog_suggestions.strategies.popularity import engagement_points

CATEGORY_WEIGHT = 0.4
TAG_WEIGHT = 0.3

# (max age in days, bonus, reason), checked in order.
_RECENCY_BONUSES = [
    (7, 2.0, "Recently published"),
    (30, 1.0, "Published this month"),
]

_POPULARITY_DIVISOR = 100.0
_POPULARITY_CAP = 2.0
_AUTHOR_BONUS = 1.0


def score_post(
    post: Post,
    preferences: PreferenceProfile,
    observations: Iterable[ReadingObservation],
    all_posts: Iterable[Post],
    now: datetime | None = None,
) -> SuggestionScore:
    """Score one candidate *post* for a reader.

    Contributions, in the order their reasons are recorded:

    1. category weight × 0.4
    2. mean weight of matched tags × 0.3
    3. recency: +2 under 7 days old, +1 under 30 days
    4. popularity: ``min((views + likes×2 + shares×3) / 100, 2)``
    5. author affinity: +1 if the reader has read this author before

    Only the first three reasons are kept.

    Args:
        post: The candidate.
        preferences: The reader's preference profile.
        observations: The reader's history, used for author affinity.
        all_posts: The corpus, used to resolve observed posts to authors.
        now: Reference time for recency.  Defaults to the current UTC time.

    Returns:
        A :class:`~blog_suggestions.models.SuggestionScore`.
    """
    read_authors = authors_read(observations, all_posts)
    return _score(post, preferences, read_authors, now or datetime.now(timezone.utc))


def authors_read(
    observations: Iterable[ReadingObservation],
    all_posts: Iterable[Post],
) -> set[str]:
    """Return the authors of every corpus post the reader has observations for."""
    author_by_post = {p.post_id: p.author for p in all_posts}
    return {
        author_by_post[o.post_id]
        for o in observations
        if author_by_post.get(o.post_id)
    }


def _score(
    post: Post,
    preferences: PreferenceProfile,
    read_authors: set[str],
    now: datetime,
) -> SuggestionScore:
    score = 0.0
    reasons: list[str] = []

    category_weight = preferences.category_weights.get(post.category, 0.0)
    if category_weight > 0:
        score += category_weight * CATEGORY_WEIGHT
        reasons.append(f"Similar to your {post.category} interests")

    matched = [t for t in post.tags if preferences.tag_weights.get(t, 0.0) > 0]
    if matched:
        mean = sum(preferences.tag_weights[t] for t in matched) / len(matched)
        score += mean * TAG_WEIGHT
        reasons.append(f"Matches your interest in: {', '.join(matched)}")

    age_days = (now - post.last_modified).total_seconds() / 86400
    for max_days, bonus, reason in _RECENCY_BONUSES:
        if age_days < max_days:
            score += bonus
            reasons.append(reason)
            break

    popularity = engagement_points(post) / _POPULARITY_DIVISOR
    if popularity > 0:
        score += min(popularity, _POPULARITY_CAP)
        reasons.append("Popular among readers")

    if post.author and post.author in read_authors:
        score += _AUTHOR_BONUS
        reasons.append(f"From {post.author}")

    return SuggestionScore(post=post, score=max(score, 0.0), reasons=reasons[:3])


class PersonalizedStrategy(SuggestionStrategy):
    """Ranks posts by weighted affinity to the reader's history.

    Args:
        preferences: The reader's preference profile.
        observations: The reader's history.
        all_posts: The full corpus (for author resolution).
        now: Reference time for recency bonuses.
    """

    def __init__(
        self,
        preferences: PreferenceProfile,
        observations: Iterable[ReadingObservation],
        all_posts: Iterable[Post],
        now: datetime | None = None,
    ) -> None:
        self._preferences = preferences
        self._read_authors = authors_read(observations, all_posts)
        self._now = now or datetime.now(timezone.utc)

    def score(self, post: Post) -> SuggestionScore:
        return _score(post, self._preferences, self._read_authors, self._now)
