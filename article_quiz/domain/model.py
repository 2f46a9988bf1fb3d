from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Mapping

OPTION_LABELS = ("A", "B", "C", "D")
QUESTIONS_PER_QUIZ = 5


def score_percent(score: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return score / total * 100


@dataclass(frozen=True)
class Question:
    id: str
    prompt_text: str
    options: Mapping[str, str]
    correct_answer: str
    explanation: str

    def __post_init__(self) -> None:
        if set(self.options) != set(OPTION_LABELS):
            raise ValueError(f"question {self.id}: options must have exactly the keys A, B, C, D")
        if self.correct_answer not in self.options:
            raise ValueError(f"question {self.id}: correct answer {self.correct_answer!r} is not an option")


@dataclass(frozen=True)
class ArticleSnapshot:
    id: str
    title: str
    thumbnail_ref: str


@dataclass(frozen=True)
class Quiz:
    id: str
    source_article_id: str
    title: str
    questions: List[Question]
    created_at: datetime
    article_snapshot: ArticleSnapshot

    def __post_init__(self) -> None:
        if len(self.questions) != QUESTIONS_PER_QUIZ:
            raise ValueError(f"quiz {self.id}: expected {QUESTIONS_PER_QUIZ} questions, got {len(self.questions)}")


@dataclass(frozen=True)
class Attempt:
    id: str
    user_id: str
    quiz_id: str
    article_id: str
    score: int
    total_questions: int
    answers: Mapping[str, str]
    completed_at: datetime

    def __post_init__(self) -> None:
        if not 0 <= self.score <= self.total_questions:
            raise ValueError(f"attempt {self.id}: score {self.score} outside 0..{self.total_questions}")

    @property
    def score_percent(self) -> float:
        return score_percent(self.score, self.total_questions)


@dataclass(frozen=True)
class Statistics:
    user_id: str
    total_attempted: int
    average_score_percent: float
    completion_rate_percent: float
    topic_scores: Mapping[str, float] = field(default_factory=dict)
    last_updated: datetime | None = None


@dataclass(frozen=True)
class Article:
    id: str
    title: str
    content: str
    tags: List[str] = field(default_factory=list)
    thumbnail_ref: str = ""
