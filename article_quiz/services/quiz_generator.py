import json
import logging
import uuid
from datetime import datetime
from typing import Any, Callable

from pydantic import ValidationError

from ..domain.errors import InvalidResponseError, SchemaViolationError
from ..domain.interfaces import QuizGenerationService
from ..domain.model import QUESTIONS_PER_QUIZ, Article, ArticleSnapshot, Quiz
from ..repositories.codec import describe_validation_error, payload_to_question
from ..schemas.quiz_schemas import CompletionEnvelope, GeneratedQuizPayload
from .completion_client import CompletionClient
from .typing import utcnow

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You write multiple-choice quizzes that check whether a reader understood an article. "
    "You always reply with a single JSON object and nothing else."
)

PROMPT_TEMPLATE = """Write a quiz about the article below.

Rules:
- exactly {count} questions
- every question has exactly 4 options, labeled "A", "B", "C" and "D"
- exactly one option is correct; put its label in "correctAnswer"
- "explanation" says in one or two sentences why the correct option is right
- use the ids "q1" to "q{count}"

Reply with one JSON object of this shape:
{{"questions": [{{"id": "q1", "question": "...", "options": {{"A": "...", "B": "...", "C": "...", "D": "..."}}, "correctAnswer": "A", "explanation": "..."}}]}}

Article title: {title}

Article content:
{content}
"""


def build_prompt(article: Article) -> str:
    return PROMPT_TEMPLATE.format(count=QUESTIONS_PER_QUIZ, title=article.title, content=article.content)


def extract_content(body: Any) -> str:
    """Pulls the first choice's message content out of the completion envelope."""
    try:
        envelope = CompletionEnvelope.model_validate(body)
    except ValidationError as exc:
        raise InvalidResponseError(f"unexpected completion envelope: {describe_validation_error(exc)}") from exc
    return envelope.choices[0].message.content


def parse_quiz_content(content: str) -> GeneratedQuizPayload:
    try:
        data = json.loads(content)
    except ValueError as exc:
        raise InvalidResponseError("message content is not valid JSON") from exc
    if not isinstance(data, dict):
        raise SchemaViolationError(f"expected a JSON object, got {type(data).__name__}")
    try:
        return GeneratedQuizPayload.model_validate(data)
    except ValidationError as exc:
        raise SchemaViolationError(describe_validation_error(exc)) from exc


class QuizGenerator(QuizGenerationService):
    def __init__(
        self,
        completion: CompletionClient,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.completion = completion
        self.id_factory = id_factory
        self.clock = clock

    async def generate_quiz(self, article: Article) -> Quiz:
        logger.info("Generating quiz for article %s", article.id)
        body = await self.completion.complete(SYSTEM_INSTRUCTION, build_prompt(article))
        try:
            payload = parse_quiz_content(extract_content(body))
        except (InvalidResponseError, SchemaViolationError) as exc:
            logger.error("Rejected generated quiz for article %s: %s", article.id, exc)
            raise

        quiz = Quiz(
            id=self.id_factory(),
            source_article_id=article.id,
            title=f"{article.title} Quiz",
            questions=[payload_to_question(q) for q in payload.questions],
            created_at=self.clock(),
            article_snapshot=ArticleSnapshot(
                id=article.id,
                title=article.title,
                thumbnail_ref=article.thumbnail_ref,
            ),
        )
        logger.info("Generated quiz %s for article %s", quiz.id, article.id)
        return quiz
