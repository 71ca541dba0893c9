"""Popularity ranking, used when a user has no reading history."""

from __future__ import annotations

import logging
from typing import Iterable

import numpy as np

from blog_suggestions.models import Post, SuggestionScore
from blog_suggestions.strategies.base import SuggestionStrategy

logger = logging.getLogger(__name__)

# Per-counter weights: views, likes, shares.
_COUNTER_WEIGHTS = np.array([1.0, 2.0, 3.0])

POPULAR_REASON = "Popular content"


def engagement_points(post: Post) -> float:
    """Return ``views + likes × 2 + shares × 3`` for *post*."""
    return float(post.views + post.likes * 2 + post.shares * 3)


def popularity_vector(posts: list[Post]) -> np.ndarray:
    """Return the engagement points of every post in *posts* as one array."""
    counters = np.array(
        [[p.views, p.likes, p.shares] for p in posts], dtype=float
    ).reshape(-1, 3)
    return counters @ _COUNTER_WEIGHTS


class PopularityStrategy(SuggestionStrategy):
    """Ranks posts purely by raw engagement points.

    Scores are unnormalised ``views + likes × 2 + shares × 3``; every
    result carries the single reason ``"Popular content"``.
    """

    def score(self, post: Post) -> SuggestionScore:
        return SuggestionScore(post=post, score=engagement_points(post), reasons=[POPULAR_REASON])

    def rank(
        self,
        posts: Iterable[Post],
        n: int,
        exclude_ids: set[str],
    ) -> list[SuggestionScore]:
        candidates = [p for p in posts if p.post_id not in exclude_ids]
        if not candidates:
            return []
        points = popularity_vector(candidates)
        # Stable sort on the negated points keeps corpus order for ties.
        order = np.argsort(-points, kind="stable")[:n]
        logger.debug("Popularity ranking over %d candidates", len(candidates))
        return [
            SuggestionScore(
                post=candidates[i],
                score=float(points[i]),
                reasons=[POPULAR_REASON],
            )
            for i in order
        ]
