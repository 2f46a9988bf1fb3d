import pytest

from article_quiz.services.statistics import (
    ArticleTagTopicResolver,
    StatisticsAggregator,
    average_score_percent,
    completion_rate_percent,
)
from fakes import T0, FakeArticleStore, FakeQuizStore, make_article, make_attempt


def test_single_attempt_eight_of_ten_is_eighty_percent():
    attempts = [make_attempt("a1", score=8, total=10)]
    assert average_score_percent(attempts) == 80.0
    assert completion_rate_percent(attempts) == 100.0


def test_zero_score_counts_in_average_but_not_completion():
    attempts = [make_attempt("a1", score=0), make_attempt("a2", score=5)]
    assert average_score_percent(attempts) == 50.0
    assert completion_rate_percent(attempts) == 50.0


def test_no_attempts_is_all_zero():
    assert average_score_percent([]) == 0.0
    assert completion_rate_percent([]) == 0.0


def test_average_is_mean_of_percentages_not_of_raw_scores():
    attempts = [make_attempt("a1", score=1, total=2), make_attempt("a2", score=5, total=5)]
    assert average_score_percent(attempts) == 75.0


async def test_compute_statistics_stores_rollup_with_topics():
    store = FakeQuizStore()
    store.attempts = [
        make_attempt("a1", score=4, article_id="art-1"),
        make_attempt("a2", score=2, article_id="art-2"),
        make_attempt("a3", score=0, article_id="art-gone"),
    ]
    articles = FakeArticleStore(
        make_article("art-1", tags=["geography", "water"]),
        make_article("art-2", tags=["geography"]),
    )
    aggregator = StatisticsAggregator(store, ArticleTagTopicResolver(articles), clock=lambda: T0)

    stats = await aggregator.compute_statistics("user-1")

    assert stats.total_attempted == 3
    assert stats.average_score_percent == pytest.approx(40.0)
    assert stats.completion_rate_percent == pytest.approx(200 / 3)
    assert stats.topic_scores == {"geography": pytest.approx(60.0), "water": pytest.approx(80.0)}
    assert stats.last_updated == T0
    assert store.statistics["user-1"] == stats


async def test_topic_resolver_looks_up_each_article_once():
    store = FakeQuizStore()
    store.attempts = [make_attempt(f"a{i}", score=3) for i in range(4)]
    articles = FakeArticleStore(make_article("art-1"))

    stats = await StatisticsAggregator(store, ArticleTagTopicResolver(articles)).compute_statistics("user-1")

    assert articles.calls == 1
    assert stats.topic_scores == {"geography": pytest.approx(60.0)}


async def test_user_without_attempts_gets_zero_rollup():
    store = FakeQuizStore()
    stats = await StatisticsAggregator(store, clock=lambda: T0).compute_statistics("user-1")

    assert (stats.total_attempted, stats.average_score_percent, stats.completion_rate_percent) == (0, 0.0, 0.0)
    assert stats.topic_scores == {}
    assert "user-1" in store.statistics


async def test_recompute_replaces_previous_rollup():
    store = FakeQuizStore()
    aggregator = StatisticsAggregator(store, clock=lambda: T0)
    store.attempts = [make_attempt("a1", score=5)]
    await aggregator.compute_statistics("user-1")

    store.attempts.append(make_attempt("a2", score=0, minutes=5))
    stats = await aggregator.compute_statistics("user-1")

    assert store.statistics["user-1"] == stats
    assert stats.total_attempted == 2
    assert stats.average_score_percent == 50.0
