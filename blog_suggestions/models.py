"""Core domain dataclasses shared across all suggestion modules."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "general"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class EngagementTier(str, Enum):
    """Coarse bucket summarising how attentively a user read one post."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class ReadingObservation:
    """A single reading-session observation.

    Observations are append-only facts: created once by the behaviour
    tracker and never updated.

    Attributes:
        user_id: The reader.  Anonymous sessions use a fixed sentinel.
        post_id: The post that was read.
        category: The post's category at read time.
        tags: The post's tags at read time.
        reading_time_seconds: Time actually spent reading (>= 0).
        time_spent_percent: Reading time as a percentage (0–100) of the
            post's expected reading time.
        engagement: Tier derived from the two numbers above.
        timestamp: When the observation was created (UTC).
    """

    user_id: str
    post_id: str
    category: str
    tags: tuple[str, ...]
    reading_time_seconds: float
    time_spent_percent: float
    engagement: EngagementTier
    timestamp: datetime

    def to_document(self) -> dict[str, Any]:
        """Serialise to the ``userInterests`` collection document shape."""
        return {
            "userId": self.user_id,
            "postId": self.post_id,
            "category": self.category,
            "tags": list(self.tags),
            "readingTime": self.reading_time_seconds,
            "timeSpent": self.time_spent_percent,
            "timestamp": self.timestamp.isoformat(),
            "engagement": self.engagement.value,
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> ReadingObservation:
        """Build an observation from a ``userInterests`` document.

        Raises:
            KeyError: If ``userId`` or ``postId`` is missing.
            ValueError: If ``engagement`` is not a known tier.
        """
        return cls(
            user_id=data["userId"],
            post_id=data["postId"],
            category=data.get("category") or DEFAULT_CATEGORY,
            tags=tuple(data.get("tags") or ()),
            reading_time_seconds=float(data.get("readingTime") or 0),
            time_spent_percent=float(data.get("timeSpent") or 0),
            engagement=EngagementTier(data.get("engagement") or EngagementTier.LOW.value),
            timestamp=parse_timestamp(data.get("timestamp")),
        )


@dataclass
class Post:
    """Read-only view of a published blog post.

    All optional fields are normalised once by :meth:`from_document` so
    scoring code never has to branch on absence.

    Attributes:
        post_id: Document identifier.
        title: Human-readable title.
        category: Single category label, ``"general"`` when absent.
        tags: Content tags, possibly empty.
        author: Author display name, ``""`` when absent.
        last_modified: Used both as recency signal and corpus sort key.
        views: View counter.
        likes: Like counter.
        shares: Share counter.
    """

    post_id: str
    title: str
    category: str = DEFAULT_CATEGORY
    tags: list[str] = field(default_factory=list)
    author: str = ""
    last_modified: datetime = _EPOCH
    views: int = 0
    likes: int = 0
    shares: int = 0
    comments: int = 0
    excerpt: str = ""
    featured_image: str = ""
    read_time_minutes: float = 0.0
    status: str = "published"
    created_at: datetime | None = None

    @property
    def expected_reading_seconds(self) -> float:
        return self.read_time_minutes * 60

    @classmethod
    def from_document(cls, post_id: str, data: dict[str, Any]) -> Post:
        """Normalise a ``content`` collection document into a :class:`Post`.

        Args:
            post_id: The document identifier.
            data: The raw document body.  Editorial fields live under a
                nested ``content`` mapping; counters are top-level.

        Returns:
            A fully-populated :class:`Post`.
        """
        content = data.get("content") or {}
        created_at = data.get("createdAt")
        return cls(
            post_id=post_id,
            title=data.get("title") or "",
            category=content.get("category") or DEFAULT_CATEGORY,
            tags=[str(t) for t in content.get("tags") or []],
            author=content.get("author") or "",
            last_modified=parse_timestamp(data.get("lastModified")),
            views=_counter(data.get("views")),
            likes=_counter(data.get("likes")),
            shares=_counter(data.get("shares")),
            comments=_counter(data.get("comments")),
            excerpt=content.get("excerpt") or "",
            featured_image=content.get("featuredImage") or "",
            read_time_minutes=float(content.get("readTime") or 0),
            status=data.get("status") or "published",
            created_at=parse_timestamp(created_at) if created_at else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.post_id,
            "title": self.title,
            "category": self.category,
            "tags": list(self.tags),
            "author": self.author,
            "excerpt": self.excerpt,
            "featuredImage": self.featured_image,
            "readTime": self.read_time_minutes,
            "lastModified": self.last_modified.isoformat(),
            "views": self.views,
            "likes": self.likes,
            "shares": self.shares,
            "comments": self.comments,
        }


@dataclass
class PreferenceProfile:
    """A user's accumulated category and tag affinity weights.

    Derived from reading history on demand; never persisted.

    Attributes:
        category_weights: Non-negative accumulated weight per category.
        tag_weights: Non-negative accumulated weight per tag.
    """

    category_weights: dict[str, float] = field(default_factory=dict)
    tag_weights: dict[str, float] = field(default_factory=dict)


@dataclass
class SuggestionScore:
    """A scored candidate post returned to callers.

    Attributes:
        post: The scored post.
        score: Non-negative relevance; higher is more relevant.  Not
            normalised to any fixed range.
        reasons: Up to three explanation strings, most significant first.
    """

    post: Post
    score: float
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "post": self.post.to_dict(),
            "score": self.score,
            "reasons": list(self.reasons),
        }


# ---------------------------------------------------------------------------
# Normalisation helpers
# ---------------------------------------------------------------------------


def parse_timestamp(value: Any) -> datetime:
    """Coerce a stored timestamp into a UTC-aware ``datetime``.

    Accepts ``datetime`` objects, ISO-8601 strings (a trailing ``Z`` is
    allowed) and epoch seconds.  Anything missing or unparseable maps to
    the Unix epoch so the post simply ranks as old.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Unparseable timestamp %r; treating as epoch.", value)
            return _EPOCH
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return _EPOCH


def _counter(value: Any) -> int:
    """Return a non-negative integer counter, ``0`` for missing values."""
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0
