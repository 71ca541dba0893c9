"""Tests for the personalised post scorer."""

from __future__ import annotations

from datetime import timedelta

import pytest

from blog_suggestions.models import Post, PreferenceProfile
from blog_suggestions.preferences import build_preferences
from blog_suggestions.strategies.personalized import (
    PersonalizedStrategy,
    authors_read,
    score_post,
)

from conftest import NOW, make_observation


def _post(**kwargs) -> Post:
    defaults = dict(post_id="c1", title="Candidate", last_modified=NOW - timedelta(days=365))
    defaults.update(kwargs)
    return Post(**defaults)


class TestScorePost:
    def test_end_to_end_example(self, post_ai, tech_observation) -> None:
        prefs = build_preferences([tech_observation])
        result = score_post(post_ai, prefs, [tech_observation], [post_ai], now=NOW)
        assert result.score == pytest.approx(5.15)
        assert result.reasons == [
            "Similar to your tech interests",
            "Matches your interest in: ai",
            "Recently published",
        ]

    def test_category_only(self) -> None:
        prefs = PreferenceProfile(category_weights={"tech": 2.0})
        result = score_post(_post(category="tech"), prefs, [], [], now=NOW)
        assert result.score == pytest.approx(0.8)
        assert result.reasons == ["Similar to your tech interests"]

    def test_tag_score_is_mean_of_matches(self) -> None:
        prefs = PreferenceProfile(tag_weights={"ai": 3.0, "cloud": 1.0, "ux": 9.0})
        result = score_post(_post(tags=["ai", "cloud", "rust"]), prefs, [], [], now=NOW)
        assert result.score == pytest.approx(2.0 * 0.3)
        assert result.reasons == ["Matches your interest in: ai, cloud"]

    def test_zero_weight_keys_do_not_match(self) -> None:
        prefs = PreferenceProfile(category_weights={"tech": 0.0}, tag_weights={"ai": 0.0})
        result = score_post(_post(category="tech", tags=["ai"]), prefs, [], [], now=NOW)
        assert result.score == 0.0
        assert result.reasons == []

    @pytest.mark.parametrize(
        "age_days, bonus, reason",
        [
            (1, 2.0, "Recently published"),
            (6.9, 2.0, "Recently published"),
            (7, 1.0, "Published this month"),
            (29, 1.0, "Published this month"),
            (30, 0.0, None),
        ],
    )
    def test_recency_bonus(self, age_days, bonus, reason) -> None:
        post = _post(last_modified=NOW - timedelta(days=age_days))
        result = score_post(post, PreferenceProfile(), [], [], now=NOW)
        assert result.score == pytest.approx(bonus)
        assert result.reasons == ([reason] if reason else [])

    def test_popularity_capped_at_two(self) -> None:
        result = score_post(_post(views=1000), PreferenceProfile(), [], [], now=NOW)
        assert result.score == pytest.approx(2.0)
        assert result.reasons == ["Popular among readers"]

    def test_popularity_formula(self) -> None:
        post = _post(views=10, likes=5, shares=2)
        result = score_post(post, PreferenceProfile(), [], [], now=NOW)
        assert result.score == pytest.approx((10 + 10 + 6) / 100)

    def test_author_affinity(self) -> None:
        read = _post(post_id="r1", author="Ama")
        candidate = _post(post_id="c1", author="Ama")
        history = [make_observation("r1", "misc", [])]
        result = score_post(candidate, PreferenceProfile(), history, [read, candidate], now=NOW)
        assert result.score == pytest.approx(1.0)
        assert result.reasons == ["From Ama"]

    def test_author_of_unknown_post_ignored(self) -> None:
        history = [make_observation("gone", "misc", [])]
        result = score_post(_post(author="Ama"), PreferenceProfile(), history, [], now=NOW)
        assert result.score == 0.0

    def test_reasons_capped_at_three_in_insertion_order(self) -> None:
        read = _post(post_id="r1", author="Ama")
        candidate = _post(
            category="tech", tags=["ai"], author="Ama",
            last_modified=NOW - timedelta(days=2), views=50,
        )
        prefs = PreferenceProfile(category_weights={"tech": 1.0}, tag_weights={"ai": 1.0})
        history = [make_observation("r1", "tech", ["ai"])]
        result = score_post(candidate, prefs, history, [read, candidate], now=NOW)
        assert result.reasons[0].startswith("Similar to your tech")
        assert result.reasons[1].startswith("Matches your interest in")
        assert result.reasons[2] == "Recently published"
        assert len(result.reasons) == 3
        # Dropped reasons still count towards the score.
        assert result.score == pytest.approx(0.4 + 0.3 + 2 + 0.5 + 1)


class TestAuthorsRead:
    def test_resolves_through_corpus(self, sample_posts) -> None:
        history = [make_observation("p_ai", "tech", []), make_observation("p_news", "news", [])]
        assert authors_read(history, sample_posts) == {"Ama", "Esi"}

    def test_skips_authorless_posts(self) -> None:
        history = [make_observation("x", "tech", [])]
        assert authors_read(history, [Post("x", "No author")]) == set()


class TestPersonalizedStrategy:
    def test_ranks_descending(self, sample_posts, tech_observation) -> None:
        prefs = build_preferences([tech_observation])
        strategy = PersonalizedStrategy(prefs, [tech_observation], sample_posts, now=NOW)
        result = strategy.rank(sample_posts, 10, set())
        scores = [r.score for r in result]
        assert scores == sorted(scores, reverse=True)
        assert result[0].post.post_id == "p_ai"

    def test_respects_exclusion_and_limit(self, sample_posts, tech_observation) -> None:
        prefs = build_preferences([tech_observation])
        strategy = PersonalizedStrategy(prefs, [tech_observation], sample_posts, now=NOW)
        result = strategy.rank(sample_posts, 2, {"p_ai"})
        assert len(result) == 2
        assert all(r.post.post_id != "p_ai" for r in result)

    def test_zero_scored_posts_still_returned(self, sample_posts, tech_observation) -> None:
        prefs = build_preferences([tech_observation])
        strategy = PersonalizedStrategy(prefs, [tech_observation], sample_posts, now=NOW)
        result = strategy.rank(sample_posts, 10, set())
        assert len(result) == len(sample_posts)
        assert result[-1].post.post_id == "p_news"
        assert result[-1].score == 0.0
