from abc import ABC, abstractmethod
from typing import List, Optional

from .model import Article, Attempt, Quiz, Statistics


class ArticleStore(ABC):
    @abstractmethod
    async def get_article(self, article_id: str) -> Article:
        """Returns the article or raises NotFoundError."""


class QuizStore(ABC):
    """Persistence for quizzes, attempts and statistics."""

    @abstractmethod
    async def create_quiz(self, quiz: Quiz) -> Quiz:
        pass

    @abstractmethod
    async def get_quiz(self, quiz_id: str) -> Quiz:
        pass

    @abstractmethod
    async def get_quizzes_by_article(self, article_id: str) -> List[Quiz]:
        """Quizzes for the article, oldest first."""

    @abstractmethod
    async def save_attempt(self, attempt: Attempt) -> Attempt:
        pass

    @abstractmethod
    async def get_attempts_by_user(self, user_id: str, limit: Optional[int] = None) -> List[Attempt]:
        """Attempts for the user, most recent first."""

    @abstractmethod
    async def get_statistics(self, user_id: str) -> Statistics:
        pass

    @abstractmethod
    async def upsert_statistics(self, user_id: str, statistics: Statistics) -> Statistics:
        pass


class QuizGenerationService(ABC):
    @abstractmethod
    async def generate_quiz(self, article: Article) -> Quiz:
        pass
