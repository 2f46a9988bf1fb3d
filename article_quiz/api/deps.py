from typing import Annotated

import httpx
from fastapi import Depends
from redis.asyncio import Redis
from supabase import AsyncClient

from ..core.config import settings
from ..core.http_client import get_http_client
from ..core.redis_manager import get_redis
from ..core.supabase_client import get_supabase
from ..domain.interfaces import ArticleStore, QuizGenerationService, QuizStore
from ..repositories.article_repository import ArticleRepository
from ..repositories.quiz_repository import QuizRepository
from ..services.completion_client import CompletionClient
from ..services.quiz_generator import QuizGenerator
from ..services.quiz_service import QuizService
from ..services.session_store import SessionStore
from ..services.statistics import ArticleTagTopicResolver, StatisticsAggregator

# Dependency factories. Tests override the leaf ones (store, articles,
# generator, session store) through app.dependency_overrides.

SupabaseDep = Annotated[AsyncClient, Depends(get_supabase)]


def get_repository(client: SupabaseDep) -> QuizStore:
    return QuizRepository(
        client,
        quizzes_table=settings.QUIZZES_TABLE,
        attempts_table=settings.QUIZ_ATTEMPTS_TABLE,
        statistics_table=settings.QUIZ_STATISTICS_TABLE,
    )


def get_article_store(client: SupabaseDep) -> ArticleStore:
    return ArticleRepository(client, table=settings.ARTICLES_TABLE)


def get_generator(http: Annotated[httpx.AsyncClient, Depends(get_http_client)]) -> QuizGenerationService:
    if not settings.OPENAI_API_KEY:
        raise RuntimeError("OPENAI_API_KEY must be configured")
    completion = CompletionClient(
        http,
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_BASE_URL,
        model=settings.QUIZ_MODEL,
        temperature=settings.QUIZ_TEMPERATURE,
        max_tokens=settings.QUIZ_MAX_TOKENS,
        timeout=settings.GENERATION_TIMEOUT_SECONDS,
    )
    return QuizGenerator(completion)


def get_session_store(redis: Annotated[Redis, Depends(get_redis)]) -> SessionStore:
    return SessionStore(
        redis,
        ttl_seconds=settings.SESSION_TTL_SECONDS,
        lock_timeout=settings.SESSION_LOCK_TIMEOUT_SECONDS,
        lock_wait=settings.SESSION_LOCK_WAIT_SECONDS,
    )


RepositoryDep = Annotated[QuizStore, Depends(get_repository)]
ArticlesDep = Annotated[ArticleStore, Depends(get_article_store)]
GeneratorDep = Annotated[QuizGenerationService, Depends(get_generator)]
SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]


def get_service(repo: RepositoryDep, generator: GeneratorDep, articles: ArticlesDep) -> QuizService:
    return QuizService(repo, generator, articles)


def get_aggregator(repo: RepositoryDep, articles: ArticlesDep) -> StatisticsAggregator:
    return StatisticsAggregator(repo, topic_resolver=ArticleTagTopicResolver(articles))


ServiceDep = Annotated[QuizService, Depends(get_service)]
AggregatorDep = Annotated[StatisticsAggregator, Depends(get_aggregator)]
