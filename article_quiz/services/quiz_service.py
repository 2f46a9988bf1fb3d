from typing import List, Optional
from .typing import to_iso
from ..domain.interfaces import ArticleStore, QuizGenerationService, QuizStore
from ..domain.model import Attempt, Question, Quiz, Statistics
from .quiz_session import QuizSession


def question_to_dict(q: Question) -> dict:
    return {
        "id": q.id,
        "questionText": q.prompt_text,
        "options": dict(q.options),
        "correctAnswer": q.correct_answer,
        "explanation": q.explanation,
    }


def quiz_to_dict(quiz: Quiz) -> dict:
    return {
        "id": quiz.id,
        "articleId": quiz.source_article_id,
        "title": quiz.title,
        "createdAt": to_iso(quiz.created_at),
        "questions": [question_to_dict(q) for q in quiz.questions],
        "article": {
            "id": quiz.article_snapshot.id,
            "title": quiz.article_snapshot.title,
            "thumbnail": quiz.article_snapshot.thumbnail_ref,
        },
    }


def attempt_to_dict(a: Attempt) -> dict:
    return {
        "id": a.id,
        "userId": a.user_id,
        "quizId": a.quiz_id,
        "articleId": a.article_id,
        "score": a.score,
        "totalQuestions": a.total_questions,
        "scorePercent": a.score_percent,
        "answers": dict(a.answers),
        "completedAt": to_iso(a.completed_at),
    }


def statistics_to_dict(s: Statistics) -> dict:
    return {
        "userId": s.user_id,
        "totalAttempted": s.total_attempted,
        "averageScorePercent": s.average_score_percent,
        "completionRatePercent": s.completion_rate_percent,
        "topicScores": dict(s.topic_scores),
        "lastUpdated": to_iso(s.last_updated) if s.last_updated is not None else None,
    }


def session_to_dict(session: QuizSession, attempt_saved: Optional[bool] = None) -> dict:
    question = session.current_question
    snapshot = session.to_snapshot()
    return {
        "id": session.id,
        "userId": session.user_id,
        "articleId": session.article_id,
        "quizId": snapshot.quiz_id,
        "state": snapshot.state,
        "questionIndex": session.question_index,
        "totalQuestions": session.total_questions,
        "progress": session.progress,
        "answers": session.answers,
        "currentQuestion": question_to_dict(question) if question is not None else None,
        "isLastQuestion": session.is_last_question,
        "isCompleted": session.is_completed,
        "score": session.score,
        "scorePercent": session.score_percent,
        "attemptSaved": attempt_saved,
        "error": snapshot.error or snapshot.persistence_error,
    }


class QuizService:
    def __init__(self, repo: QuizStore, generator: QuizGenerationService, articles: ArticleStore) -> None:
        self.repo = repo
        self.generator = generator
        self.articles = articles

    async def get_quiz(self, quiz_id: str) -> dict:
        return quiz_to_dict(await self.repo.get_quiz(quiz_id))

    async def list_for_article(self, article_id: str) -> List[dict]:
        return [quiz_to_dict(q) for q in await self.repo.get_quizzes_by_article(article_id)]

    async def generate_for_article(self, article_id: str) -> dict:
        article = await self.articles.get_article(article_id)
        quiz = await self.generator.generate_quiz(article)
        return quiz_to_dict(await self.repo.create_quiz(quiz))