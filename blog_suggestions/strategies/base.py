"""Abstract base class for all suggestion strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from blog_suggestions.models import Post, SuggestionScore


class SuggestionStrategy(ABC):
    """Abstract base class for all suggestion strategies.

    Each strategy encapsulates one ranking policy (personalised,
    popularity or related-content).  Whatever context a policy needs,
    such as a preference profile or the post currently being read, is
    bound at construction so that :meth:`rank` has the same shape for all
    of them.
    """

    #: Maximum number of reasons kept on each result.
    max_reasons: int = 3

    @abstractmethod
    def score(self, post: Post) -> SuggestionScore:
        """Return the relevance score and reasons for a single *post*."""

    def keep(self, suggestion: SuggestionScore) -> bool:
        """Return whether *suggestion* is eligible for the result at all."""
        return True

    def rank(
        self,
        posts: Iterable[Post],
        n: int,
        exclude_ids: set[str],
    ) -> list[SuggestionScore]:
        """Return up to *n* scored posts ordered by descending score.

        Args:
            posts: The candidate corpus.
            n: Maximum number of results.
            exclude_ids: Post IDs that must never be returned.

        Returns:
            Scored posts, best first.  Ties keep corpus order.
        """
        scored = []
        for post in posts:
            if post.post_id in exclude_ids:
                continue
            suggestion = self.score(post)
            suggestion.reasons = suggestion.reasons[: self.max_reasons]
            if self.keep(suggestion):
                scored.append(suggestion)
        scored.sort(key=lambda s: s.score, reverse=True)
        return scored[:n]
