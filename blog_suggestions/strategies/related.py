"""Related-post matching based purely on content overlap."""

from __future__ import annotations

from blog_suggestions.models import Post, SuggestionScore
from blog_suggestions.strategies.base import SuggestionStrategy

_SAME_CATEGORY = 5.0
_PER_SHARED_TAG = 2.0
_SAME_AUTHOR = 1.0


class RelatedPostsStrategy(SuggestionStrategy):
    """Scores candidates by similarity to the post currently being read.

    Independent of any user history:

    ================  ===========
    Signal            Points
    ================  ===========
    Same category     5
    Each shared tag   2
    Same author       1
    ================  ===========

    Candidates with no overlap at all are dropped rather than padded in.

    Args:
        current_post: The post the related list is built for.
    """

    max_reasons = 2

    def __init__(self, current_post: Post) -> None:
        self._current = current_post

    def score(self, post: Post) -> SuggestionScore:
        score = 0.0
        reasons: list[str] = []
        current = self._current

        if post.category == current.category:
            score += _SAME_CATEGORY
            reasons.append(f"Same category: {current.category}")

        shared = [t for t in current.tags if t in post.tags]
        if shared:
            score += _PER_SHARED_TAG * len(shared)
            reasons.append(f"Shared tags: {', '.join(shared)}")

        if current.author and post.author == current.author:
            score += _SAME_AUTHOR
            reasons.append(f"Same author: {current.author}")

        return SuggestionScore(post=post, score=score, reasons=reasons)

    def keep(self, suggestion: SuggestionScore) -> bool:
        return suggestion.score > 0
