import logging
from typing import Any, List, Optional, Type, TypeVar

import httpx
from postgrest.exceptions import APIError
from pydantic import BaseModel, ValidationError
from supabase import AsyncClient

from ..domain.errors import DecodingError, NotFoundError, StoreNetworkError
from ..domain.interfaces import QuizStore
from ..domain.model import QUESTIONS_PER_QUIZ, ArticleSnapshot, Attempt, Quiz, Statistics
from ..schemas.documents import AttemptDocument, QuizDocument, StatisticsDocument
from ..services.typing import to_iso, utcnow
from .codec import (
    decode_answers,
    decode_questions,
    decode_topic_scores,
    describe_validation_error,
    encode_answers,
    encode_questions,
    encode_topic_scores,
)

logger = logging.getLogger(__name__)

DocT = TypeVar("DocT", bound=BaseModel)

# Errors raised by supabase-py / postgrest when the store cannot be reached
# or rejects the request
STORE_ERRORS = (APIError, httpx.HTTPError)


def validate_row(model: Type[DocT], row: Any, entity: str) -> DocT:
    if not isinstance(row, dict):
        raise DecodingError(f"{entity}: expected a document object, got {type(row).__name__}")
    try:
        return model.model_validate(row)
    except ValidationError as exc:
        raise DecodingError(f"{entity} {row.get('id', '?')}: {describe_validation_error(exc)}") from exc


async def execute(query: Any, action: str) -> Any:
    """Runs a postgrest query, mapping transport failures to StoreNetworkError."""
    try:
        return await query.execute()
    except STORE_ERRORS as exc:
        logger.error("%s failed: %s", action, exc)
        raise StoreNetworkError(f"{action} failed: {exc}") from exc


# --- quiz ---

def quiz_to_row(quiz: Quiz) -> dict:
    return {
        "id": quiz.id,
        "article_id": quiz.source_article_id,
        "title": quiz.title,
        "questions": encode_questions(quiz.questions),
        "created_at": to_iso(quiz.created_at),
        "article_reference_id": quiz.article_snapshot.id,
        "article_reference_title": quiz.article_snapshot.title,
        "article_reference_thumbnail": quiz.article_snapshot.thumbnail_ref,
    }


def row_to_quiz(row: Any) -> Quiz:
    doc = validate_row(QuizDocument, row, "quiz")
    try:
        questions = decode_questions(doc.questions)
    except DecodingError as exc:
        raise DecodingError(f"quiz {doc.id}: {exc}") from exc
    if len(questions) != QUESTIONS_PER_QUIZ:
        raise DecodingError(f"quiz {doc.id}: questions: expected {QUESTIONS_PER_QUIZ} items, got {len(questions)}")
    return Quiz(
        id=doc.id,
        source_article_id=doc.article_id,
        title=doc.title,
        questions=questions,
        created_at=doc.created_at,
        article_snapshot=ArticleSnapshot(
            id=doc.article_reference_id,
            title=doc.article_reference_title,
            thumbnail_ref=doc.article_reference_thumbnail,
        ),
    )


# --- attempt ---

def attempt_to_row(attempt: Attempt) -> dict:
    return {
        "id": attempt.id,
        "user_id": attempt.user_id,
        "quiz_id": attempt.quiz_id,
        "article_id": attempt.article_id,
        "score": attempt.score,
        "total_questions": attempt.total_questions,
        "answers": encode_answers(attempt.answers),
        "completed_at": to_iso(attempt.completed_at),
    }


def row_to_attempt(row: Any) -> Attempt:
    doc = validate_row(AttemptDocument, row, "attempt")
    try:
        answers = decode_answers(doc.answers)
    except DecodingError as exc:
        raise DecodingError(f"attempt {doc.id}: {exc}") from exc
    if doc.score > doc.total_questions:
        raise DecodingError(f"attempt {doc.id}: score {doc.score} exceeds total_questions {doc.total_questions}")
    return Attempt(
        id=doc.id,
        user_id=doc.user_id,
        quiz_id=doc.quiz_id,
        article_id=doc.article_id,
        score=doc.score,
        total_questions=doc.total_questions,
        answers=answers,
        completed_at=doc.completed_at,
    )


# --- statistics ---

def statistics_to_row(user_id: str, statistics: Statistics) -> dict:
    return {
        "user_id": user_id,
        "total_attempted": statistics.total_attempted,
        "average_score_percent": statistics.average_score_percent,
        "completion_rate_percent": statistics.completion_rate_percent,
        "topic_scores": encode_topic_scores(statistics.topic_scores),
        "last_updated": to_iso(statistics.last_updated or utcnow()),
    }


def row_to_statistics(row: Any) -> Statistics:
    doc = validate_row(StatisticsDocument, row, "statistics")
    try:
        topic_scores = decode_topic_scores(doc.topic_scores)
    except DecodingError as exc:
        raise DecodingError(f"statistics {doc.user_id}: {exc}") from exc
    return Statistics(
        user_id=doc.user_id,
        total_attempted=doc.total_attempted,
        average_score_percent=float(doc.average_score_percent),
        completion_rate_percent=float(doc.completion_rate_percent),
        topic_scores=topic_scores,
        last_updated=doc.last_updated,
    )


class QuizRepository(QuizStore):
    def __init__(
        self,
        client: AsyncClient,
        quizzes_table: str = "quizzes",
        attempts_table: str = "quiz_attempts",
        statistics_table: str = "quiz_statistics",
    ) -> None:
        self.client = client
        self.quizzes_table = quizzes_table
        self.attempts_table = attempts_table
        self.statistics_table = statistics_table

    async def create_quiz(self, quiz: Quiz) -> Quiz:
        row = quiz_to_row(quiz)
        logger.info("Creating quiz %s for article %s (%d questions)", quiz.id, quiz.source_article_id, len(quiz.questions))
        res = await execute(self.client.table(self.quizzes_table).insert(row), "create quiz")
        # supabase-py v2 returns the inserted representation as a list of rows
        if not res.data or not isinstance(res.data, list):
            raise DecodingError(f"quiz {quiz.id}: insert returned no document")
        return row_to_quiz(res.data[0])

    async def get_quiz(self, quiz_id: str) -> Quiz:
        res = await execute(
            self.client.table(self.quizzes_table).select("*").eq("id", quiz_id).limit(1),
            f"get quiz {quiz_id}",
        )
        if not res.data:
            raise NotFoundError(f"quiz {quiz_id} not found")
        return row_to_quiz(res.data[0])

    async def get_quizzes_by_article(self, article_id: str) -> List[Quiz]:
        res = await execute(
            self.client.table(self.quizzes_table)
            .select("*")
            .eq("article_id", article_id)
            .order("created_at", desc=False)
            .order("id", desc=False),
            f"list quizzes for article {article_id}",
        )
        rows = res.data or []
        logger.info("Found %d quizzes for article %s", len(rows), article_id)
        return [row_to_quiz(r) for r in rows]

    async def save_attempt(self, attempt: Attempt) -> Attempt:
        row = attempt_to_row(attempt)
        res = await execute(self.client.table(self.attempts_table).insert(row), "save attempt")
        if not res.data or not isinstance(res.data, list):
            raise DecodingError(f"attempt {attempt.id}: insert returned no document")
        logger.info(
            "Saved attempt %s for user %s: %d/%d",
            attempt.id, attempt.user_id, attempt.score, attempt.total_questions,
        )
        return row_to_attempt(res.data[0])

    async def get_attempts_by_user(self, user_id: str, limit: Optional[int] = None) -> List[Attempt]:
        query = (
            self.client.table(self.attempts_table)
            .select("*")
            .eq("user_id", user_id)
            .order("completed_at", desc=True)
        )
        if limit is not None:
            query = query.limit(limit)
        res = await execute(query, f"list attempts for user {user_id}")
        rows = res.data or []
        logger.info("Found %d attempts for user %s", len(rows), user_id)
        return [row_to_attempt(r) for r in rows]

    async def get_statistics(self, user_id: str) -> Statistics:
        res = await execute(
            self.client.table(self.statistics_table).select("*").eq("user_id", user_id).limit(1),
            f"get statistics for user {user_id}",
        )
        if not res.data:
            raise NotFoundError(f"statistics for user {user_id} not found")
        return row_to_statistics(res.data[0])

    async def upsert_statistics(self, user_id: str, statistics: Statistics) -> Statistics:
        row = statistics_to_row(user_id, statistics)
        res = await execute(
            self.client.table(self.statistics_table).upsert(row, on_conflict="user_id"),
            f"upsert statistics for user {user_id}",
        )
        if not res.data or not isinstance(res.data, list):
            raise DecodingError(f"statistics {user_id}: upsert returned no document")
        return row_to_statistics(res.data[0])
