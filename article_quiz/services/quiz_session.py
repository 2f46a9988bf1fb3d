import asyncio
import logging
import uuid
from datetime import datetime
from typing import Callable, Dict, Optional

from ..domain import session_machine as machine
from ..domain.errors import GenerationError, QuizCoreError, QuizLoadError, RepositoryError, SessionError
from ..domain.interfaces import ArticleStore, QuizGenerationService, QuizStore
from ..domain.model import Attempt, Question, Quiz, score_percent
from ..domain.session_machine import Completed, InProgress, Loading, SaveAttempt, SessionState
from ..schemas.session_schemas import SessionSnapshot
from .typing import utcnow

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class QuizSession:
    """
    One user's pass through one article's quiz.

    Finds the article's quiz (or generates and stores one), collects answers,
    scores on the last advance and persists the attempt in the background.
    Mutating calls are serialized by an internal lock; an instance is not
    meant to be shared between unrelated flows. The generator is only used
    by load and may be None for sessions that already hold their quiz.
    """

    def __init__(
        self,
        user_id: str,
        repository: QuizStore,
        generator: Optional[QuizGenerationService],
        articles: ArticleStore,
        session_id: Optional[str] = None,
        id_factory: Callable[[], str] = _new_id,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.id = session_id or id_factory()
        self.user_id = user_id
        self.repository = repository
        self.generator = generator
        self.articles = articles
        self.id_factory = id_factory
        self.clock = clock

        self.article_id: Optional[str] = None
        self.quiz: Optional[Quiz] = None
        self.state: SessionState = Loading()
        self.error: Optional[Exception] = None
        self.persistence_error: Optional[Exception] = None
        self.saved_attempt_id: Optional[str] = None

        self._lock = asyncio.Lock()
        self._pending_save: Optional[asyncio.Task] = None

    # --- views for the presentation layer ---

    @property
    def current_question(self) -> Optional[Question]:
        return machine.current_question(self.state, self.quiz)

    @property
    def question_index(self) -> int:
        if isinstance(self.state, InProgress):
            return self.state.question_index
        if isinstance(self.state, Completed) and self.quiz is not None:
            return len(self.quiz.questions)
        return 0

    @property
    def answers(self) -> Dict[str, str]:
        if isinstance(self.state, (InProgress, Completed)):
            return dict(self.state.answers)
        return {}

    @property
    def total_questions(self) -> int:
        return len(self.quiz.questions) if self.quiz is not None else 0

    @property
    def progress(self) -> float:
        return machine.progress(self.state, self.quiz)

    @property
    def is_completed(self) -> bool:
        return isinstance(self.state, Completed)

    @property
    def is_last_question(self) -> bool:
        if self.quiz is None:
            return True
        return self.question_index == len(self.quiz.questions) - 1

    @property
    def score(self) -> Optional[int]:
        return self.state.score if isinstance(self.state, Completed) else None

    @property
    def score_percent(self) -> Optional[float]:
        if not isinstance(self.state, Completed):
            return None
        return score_percent(self.state.score, self.total_questions)

    # --- transitions ---

    async def load(self, article_id: str) -> Quiz:
        async with self._lock:
            if not isinstance(self.state, Loading):
                if article_id != self.article_id:
                    raise SessionError(f"session is bound to article {self.article_id}")
                return self.quiz

            self.article_id = article_id
            try:
                quiz = await self._find_or_generate(article_id)
            except QuizCoreError as exc:
                self.error = exc
                logger.error("Loading quiz for article %s failed: %s", article_id, exc)
                raise QuizLoadError(f"could not load a quiz for article {article_id}: {exc}") from exc

            self.quiz = quiz
            self.error = None
            self.state = machine.start()
            return quiz

    async def _find_or_generate(self, article_id: str) -> Quiz:
        existing = await self.repository.get_quizzes_by_article(article_id)
        if existing:
            return existing[0]

        if self.generator is None:
            raise GenerationError("no quiz generator is configured")
        article = await self.articles.get_article(article_id)
        generated = await self.generator.generate_quiz(article)
        # the quiz is only written once it has been fully validated
        return await self.repository.create_quiz(generated)

    async def select_answer(self, label: str) -> SessionState:
        async with self._lock:
            self.state = machine.select_answer(self.state, self.quiz, label)
            return self.state

    async def advance(self) -> SessionState:
        async with self._lock:
            transition = machine.advance(self.state, self.quiz)
            self.state = transition.state
            for effect in transition.effects:
                self._schedule_save(effect)
            return self.state

    async def reset(self) -> SessionState:
        async with self._lock:
            self.state = machine.reset(self.quiz)
            self._pending_save = None
            self.persistence_error = None
            self.saved_attempt_id = None
            return self.state

    # --- attempt persistence ---

    def _schedule_save(self, effect: SaveAttempt) -> None:
        attempt = Attempt(
            id=self.id_factory(),
            user_id=self.user_id,
            quiz_id=self.quiz.id,
            article_id=self.article_id or self.quiz.source_article_id,
            score=effect.score,
            total_questions=effect.total_questions,
            answers=dict(effect.answers),
            completed_at=self.clock(),
        )
        self._pending_save = asyncio.create_task(self._save_attempt(attempt))

    async def _save_attempt(self, attempt: Attempt) -> Optional[Attempt]:
        try:
            saved = await self.repository.save_attempt(attempt)
        except RepositoryError as exc:
            # the score shown to the user stands; the failure is reported separately
            logger.error("Saving attempt %s for user %s failed: %s", attempt.id, attempt.user_id, exc)
            if self._pending_save is asyncio.current_task():
                self.persistence_error = exc
            return None
        if self._pending_save is asyncio.current_task():
            self.saved_attempt_id = saved.id
        return saved

    async def wait_for_persistence(self) -> Optional[Attempt]:
        """Waits for the background attempt save, if any. Returns the stored attempt."""
        task = self._pending_save
        if task is None:
            return None
        return await task

    # --- snapshots ---

    def to_snapshot(self) -> SessionSnapshot:
        state = self.state
        return SessionSnapshot(
            id=self.id,
            user_id=self.user_id,
            article_id=self.article_id,
            quiz_id=self.quiz.id if self.quiz is not None else None,
            state=(
                "completed" if isinstance(state, Completed)
                else "in_progress" if isinstance(state, InProgress)
                else "loading"
            ),
            question_index=state.question_index if isinstance(state, InProgress) else 0,
            answers=self.answers,
            score=self.score,
            attempt_id=self.saved_attempt_id,
            error=str(self.error) if self.error is not None else None,
            persistence_error=str(self.persistence_error) if self.persistence_error is not None else None,
        )

    @classmethod
    def restore(
        cls,
        snapshot: SessionSnapshot,
        quiz: Optional[Quiz],
        repository: QuizStore,
        generator: Optional[QuizGenerationService],
        articles: ArticleStore,
        **kwargs,
    ) -> "QuizSession":
        session = cls(snapshot.user_id, repository, generator, articles, session_id=snapshot.id, **kwargs)
        session.article_id = snapshot.article_id
        session.quiz = quiz
        if quiz is None or snapshot.state == "loading":
            session.state = Loading()
        elif snapshot.state == "completed":
            session.state = Completed(snapshot.score or 0, dict(snapshot.answers))
        else:
            session.state = InProgress(snapshot.question_index, dict(snapshot.answers))
        session.saved_attempt_id = snapshot.attempt_id
        if snapshot.error:
            session.error = SessionError(snapshot.error)
        if snapshot.persistence_error:
            session.persistence_error = RepositoryError(snapshot.persistence_error)
        return session
