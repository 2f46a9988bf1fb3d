from typing import Annotated, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator, model_validator

from ..domain.model import OPTION_LABELS, QUESTIONS_PER_QUIZ

Label = Literal["A", "B", "C", "D"]


# --- question wire shape: shared by the completion content and the stored blob ---

class QuestionPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: StrictStr = Field(..., min_length=1)
    question: StrictStr = Field(..., min_length=1)
    options: Dict[StrictStr, StrictStr]
    correctAnswer: StrictStr
    explanation: StrictStr

    @field_validator("options")
    @classmethod
    def exactly_four_labels(cls, v: Dict[str, str]) -> Dict[str, str]:
        if set(v) != set(OPTION_LABELS):
            raise ValueError(f"options must have exactly the keys A, B, C, D, got {sorted(v)}")
        return v

    @model_validator(mode="after")
    def answer_is_an_option(self) -> "QuestionPayload":
        if self.correctAnswer not in self.options:
            raise ValueError(f"correctAnswer {self.correctAnswer!r} is not one of the option labels")
        return self


class GeneratedQuizPayload(BaseModel):
    """The JSON object the model must return as its message content."""

    model_config = ConfigDict(extra="ignore")

    questions: Annotated[
        List[QuestionPayload],
        Field(min_length=QUESTIONS_PER_QUIZ, max_length=QUESTIONS_PER_QUIZ),
    ]

    @field_validator("questions")
    @classmethod
    def unique_ids(cls, v: List[QuestionPayload]) -> List[QuestionPayload]:
        ids = [q.id for q in v]
        if len(set(ids)) != len(ids):
            raise ValueError("question ids must be unique")
        return v


# --- completion transport envelope ---

class CompletionMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: StrictStr


class CompletionChoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: CompletionMessage


class CompletionEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    choices: Annotated[List[CompletionChoice], Field(min_length=1)]


# --- API ---

class QuestionOut(BaseModel):
    id: str
    questionText: str
    options: Dict[str, str]
    correctAnswer: str
    explanation: str


class ArticleSnapshotOut(BaseModel):
    id: str
    title: str
    thumbnail: str


class QuizOut(BaseModel):
    id: str
    articleId: str
    title: str
    questions: List[QuestionOut]
    createdAt: str
    article: ArticleSnapshotOut


class SessionCreateIn(BaseModel):
    userId: str = Field(..., min_length=1)
    articleId: str = Field(..., min_length=1)


class AnswerIn(BaseModel):
    label: Label


class SessionOut(BaseModel):
    id: str
    userId: str
    articleId: str
    quizId: Optional[str] = None
    state: Literal["loading", "in_progress", "completed"]
    questionIndex: int
    totalQuestions: int
    progress: float
    answers: Dict[str, str]
    currentQuestion: Optional[QuestionOut] = None
    isLastQuestion: bool
    isCompleted: bool
    score: Optional[int] = None
    scorePercent: Optional[float] = None
    attemptSaved: Optional[bool] = None
    error: Optional[str] = None


class AttemptOut(BaseModel):
    id: str
    userId: str
    quizId: str
    articleId: str
    score: int
    totalQuestions: int
    scorePercent: float
    answers: Dict[str, str]
    completedAt: str


class StatisticsOut(BaseModel):
    userId: str
    totalAttempted: int
    averageScorePercent: float
    completionRatePercent: float
    topicScores: Dict[str, float]
    lastUpdated: Optional[str] = None
