"""Preference aggregation: folds reading history into affinity weights."""

from __future__ import annotations

from typing import Iterable

from blog_suggestions.models import EngagementTier, PreferenceProfile, ReadingObservation

ENGAGEMENT_MULTIPLIERS: dict[EngagementTier, float] = {
    EngagementTier.LOW: 1.0,
    EngagementTier.MEDIUM: 2.0,
    EngagementTier.HIGH: 3.0,
}


def observation_weight(observation: ReadingObservation) -> float:
    """Return ``multiplier(tier) × time_spent_percent / 100`` for one observation."""
    multiplier = ENGAGEMENT_MULTIPLIERS[observation.engagement]
    return multiplier * (max(observation.time_spent_percent, 0.0) / 100)


def build_preferences(observations: Iterable[ReadingObservation]) -> PreferenceProfile:
    """Accumulate category and tag weights over *observations*.

    Each observation contributes its full weight to its category and,
    independently, the same full weight to every one of its tags.  There
    is no decay, so weights only ever grow as observations are added.

    Args:
        observations: A user's reading history, in any order.

    Returns:
        A fresh :class:`~blog_suggestions.models.PreferenceProfile`.
    """
    profile = PreferenceProfile()
    for observation in observations:
        weight = observation_weight(observation)
        profile.category_weights[observation.category] = (
            profile.category_weights.get(observation.category, 0.0) + weight
        )
        for tag in observation.tags:
            profile.tag_weights[tag] = profile.tag_weights.get(tag, 0.0) + weight
    return profile
