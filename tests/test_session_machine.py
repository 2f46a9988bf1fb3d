import pytest

from article_quiz.domain import session_machine as machine
from article_quiz.domain.errors import (
    InvalidSelectionError,
    NoActiveQuizError,
    NoSelectionError,
    QuestionIndexOutOfRangeError,
    SessionCompletedError,
)
from article_quiz.domain.session_machine import Completed, InProgress, Loading, SaveAttempt
from fakes import make_quiz


@pytest.fixture
def quiz():
    return make_quiz(correct="ABCDA")


def answer_all(quiz, labels):
    state = machine.start()
    transition = None
    for label in labels:
        state = machine.select_answer(state, quiz, label)
        transition = machine.advance(state, quiz)
        state = transition.state
    return transition


def test_start_is_first_question_with_no_answers(quiz):
    state = machine.start()
    assert state == InProgress(0, {})
    assert machine.current_question(state, quiz).id == "q1"
    assert machine.progress(state, quiz) == 0.0


def test_select_records_and_overwrites_answer(quiz):
    state = machine.select_answer(machine.start(), quiz, "B")
    state = machine.select_answer(state, quiz, "C")
    assert state.answers == {"q1": "C"}
    assert state.question_index == 0


def test_select_does_not_mutate_previous_state(quiz):
    before = machine.start()
    machine.select_answer(before, quiz, "A")
    assert before.answers == {}


def test_select_unknown_label_is_rejected(quiz):
    with pytest.raises(InvalidSelectionError):
        machine.select_answer(machine.start(), quiz, "E")


def test_advance_without_selection_is_rejected(quiz):
    with pytest.raises(NoSelectionError):
        machine.advance(machine.start(), quiz)


def test_advance_moves_to_next_question_without_effects(quiz):
    state = machine.select_answer(machine.start(), quiz, "A")
    transition = machine.advance(state, quiz)

    assert transition.state == InProgress(1, {"q1": "A"})
    assert transition.effects == ()
    assert machine.progress(transition.state, quiz) == pytest.approx(0.2)


def test_all_correct_scores_five_and_saves(quiz):
    transition = answer_all(quiz, "ABCDA")

    assert transition.state == Completed(5, {"q1": "A", "q2": "B", "q3": "C", "q4": "D", "q5": "A"})
    assert transition.effects == (SaveAttempt(score=5, total_questions=5, answers=transition.state.answers),)
    assert machine.progress(transition.state, quiz) == 1.0
    assert machine.current_question(transition.state, quiz) is None


def test_partial_score_counts_matching_answers(quiz):
    transition = answer_all(quiz, "AACCB")
    assert transition.state.score == 2


def test_compute_score_ignores_unanswered_questions(quiz):
    assert machine.compute_score(quiz.questions, {"q1": "A"}) == 1
    assert machine.compute_score(quiz.questions, {}) == 0


def test_loading_has_no_active_question(quiz):
    with pytest.raises(NoActiveQuizError):
        machine.select_answer(Loading(), quiz, "A")
    with pytest.raises(NoActiveQuizError):
        machine.advance(InProgress(0, {}), None)
    assert machine.current_question(Loading(), quiz) is None
    assert machine.progress(Loading(), quiz) == 0.0


def test_completed_rejects_further_input(quiz):
    done = answer_all(quiz, "ABCDA").state
    with pytest.raises(SessionCompletedError):
        machine.select_answer(done, quiz, "A")
    with pytest.raises(SessionCompletedError):
        machine.advance(done, quiz)


def test_index_outside_questions_is_rejected(quiz):
    with pytest.raises(QuestionIndexOutOfRangeError):
        machine.select_answer(InProgress(7, {}), quiz, "A")
    assert machine.current_question(InProgress(7, {}), quiz) is None


def test_reset_returns_to_first_question(quiz):
    assert machine.reset(quiz) == InProgress(0, {})
    assert machine.reset(None) == Loading()
