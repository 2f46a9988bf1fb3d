"""Quiz-taking state machine.

States are immutable values; every transition is a plain function of the
current state and the active quiz that returns the next state, plus any
effects the caller has to run (persisting the finished attempt). Nothing
here does I/O.

    Loading --start--> InProgress(0, {}) --advance*--> Completed(score)
       ^                    |                               |
       +------ reset -------+------------ reset ------------+
"""
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence, Tuple, Union

from .errors import (
    InvalidSelectionError,
    NoActiveQuizError,
    NoSelectionError,
    QuestionIndexOutOfRangeError,
    SessionCompletedError,
)
from .model import Question, Quiz


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class InProgress:
    question_index: int = 0
    answers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Completed:
    score: int
    answers: Mapping[str, str] = field(default_factory=dict)


SessionState = Union[Loading, InProgress, Completed]


@dataclass(frozen=True)
class SaveAttempt:
    score: int
    total_questions: int
    answers: Mapping[str, str]


@dataclass(frozen=True)
class Transition:
    state: SessionState
    effects: Tuple[SaveAttempt, ...] = ()


def compute_score(questions: Sequence[Question], answers: Mapping[str, str]) -> int:
    return sum(1 for q in questions if answers.get(q.id) == q.correct_answer)


def active_question(state: SessionState, quiz: Optional[Quiz]) -> Question:
    if quiz is None or isinstance(state, Loading):
        raise NoActiveQuizError("no quiz loaded")
    if isinstance(state, Completed):
        raise SessionCompletedError("quiz already completed")
    if not 0 <= state.question_index < len(quiz.questions):
        raise QuestionIndexOutOfRangeError(
            f"question index {state.question_index} outside 0..{len(quiz.questions) - 1}"
        )
    return quiz.questions[state.question_index]


def current_question(state: SessionState, quiz: Optional[Quiz]) -> Optional[Question]:
    if quiz is None or not isinstance(state, InProgress):
        return None
    if not 0 <= state.question_index < len(quiz.questions):
        return None
    return quiz.questions[state.question_index]


def progress(state: SessionState, quiz: Optional[Quiz]) -> float:
    if quiz is None or not quiz.questions or isinstance(state, Loading):
        return 0.0
    if isinstance(state, Completed):
        return 1.0
    return state.question_index / len(quiz.questions)


def start() -> InProgress:
    return InProgress(0, {})


def select_answer(state: SessionState, quiz: Optional[Quiz], label: str) -> InProgress:
    question = active_question(state, quiz)
    if label not in question.options:
        raise InvalidSelectionError(f"{label!r} is not an option of question {question.id}")
    answers = dict(state.answers)
    answers[question.id] = label
    return InProgress(state.question_index, answers)


def advance(state: SessionState, quiz: Optional[Quiz]) -> Transition:
    question = active_question(state, quiz)
    if question.id not in state.answers:
        raise NoSelectionError(f"no answer selected for question {question.id}")

    next_index = state.question_index + 1
    total = len(quiz.questions)
    if next_index < total:
        return Transition(InProgress(next_index, dict(state.answers)))

    answers = dict(state.answers)
    score = compute_score(quiz.questions, answers)
    return Transition(
        Completed(score, answers),
        (SaveAttempt(score=score, total_questions=total, answers=answers),),
    )


def reset(quiz: Optional[Quiz]) -> SessionState:
    if quiz is None:
        return Loading()
    return InProgress(0, {})
