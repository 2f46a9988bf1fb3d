import logging
from collections import defaultdict
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from ..domain.errors import NotFoundError
from ..domain.interfaces import ArticleStore, QuizStore
from ..domain.model import Attempt, Statistics
from .typing import utcnow

logger = logging.getLogger(__name__)

# Maps an attempt to the topics it counts towards
TopicResolver = Callable[[Attempt], Awaitable[Sequence[str]]]


def average_score_percent(attempts: Sequence[Attempt]) -> float:
    if not attempts:
        return 0.0
    return sum(a.score_percent for a in attempts) / len(attempts)


def completion_rate_percent(attempts: Sequence[Attempt]) -> float:
    # Share of attempts with at least one correct answer. Only finished
    # attempts are ever stored, so this is not started-vs-finished.
    if not attempts:
        return 0.0
    return sum(1 for a in attempts if a.score > 0) / len(attempts) * 100


async def topic_scores(attempts: Sequence[Attempt], resolver: Optional[TopicResolver]) -> Dict[str, float]:
    if resolver is None:
        return {}
    grouped: Dict[str, List[float]] = defaultdict(list)
    for attempt in attempts:
        for topic in await resolver(attempt):
            grouped[topic].append(attempt.score_percent)
    return {topic: sum(values) / len(values) for topic, values in grouped.items()}


class ArticleTagTopicResolver:
    """Uses the source article's tags as topics. Missing articles count for no topic."""

    def __init__(self, articles: ArticleStore) -> None:
        self.articles = articles
        self._cache: Dict[str, List[str]] = {}

    async def __call__(self, attempt: Attempt) -> Sequence[str]:
        if attempt.article_id not in self._cache:
            try:
                article = await self.articles.get_article(attempt.article_id)
            except NotFoundError:
                logger.warning("Article %s of attempt %s no longer exists", attempt.article_id, attempt.id)
                self._cache[attempt.article_id] = []
            else:
                self._cache[attempt.article_id] = list(article.tags)
        return self._cache[attempt.article_id]


class StatisticsAggregator:
    def __init__(
        self,
        repository: QuizStore,
        topic_resolver: Optional[TopicResolver] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repository = repository
        self.topic_resolver = topic_resolver
        self.clock = clock

    async def compute_statistics(self, user_id: str) -> Statistics:
        """Recomputes the user's rollup from their attempts and stores it."""
        attempts = await self.repository.get_attempts_by_user(user_id)
        statistics = Statistics(
            user_id=user_id,
            total_attempted=len(attempts),
            average_score_percent=average_score_percent(attempts),
            completion_rate_percent=completion_rate_percent(attempts),
            topic_scores=await topic_scores(attempts, self.topic_resolver),
            last_updated=self.clock(),
        )
        logger.info(
            "Statistics for user %s: %d attempts, %.1f%% average",
            user_id, statistics.total_attempted, statistics.average_score_percent,
        )
        return await self.repository.upsert_statistics(user_id, statistics)
