from datetime import timedelta

import httpx
import pytest
from postgrest.exceptions import APIError

from article_quiz.domain.errors import DecodingError, NotFoundError, StoreNetworkError
from article_quiz.domain.model import Statistics
from article_quiz.repositories.article_repository import ArticleRepository
from article_quiz.repositories.quiz_repository import QuizRepository
from fakes import T0, FakeSupabase, make_attempt, make_quiz


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def repo(db):
    return QuizRepository(db)


async def test_create_then_get_quiz(repo, db):
    quiz = make_quiz()
    created = await repo.create_quiz(quiz)

    assert created == quiz
    assert await repo.get_quiz("quiz-1") == quiz
    row = db.tables["quizzes"][0]
    assert row["article_id"] == "art-1"
    assert isinstance(row["questions"], str)
    assert row["article_reference_thumbnail"] == "thumb-1"


async def test_get_missing_quiz_is_not_found(repo):
    with pytest.raises(NotFoundError):
        await repo.get_quiz("nope")


async def test_quizzes_by_article_come_back_in_creation_order(repo):
    await repo.create_quiz(make_quiz("late", created_at=T0 + timedelta(hours=1)))
    await repo.create_quiz(make_quiz("early", created_at=T0))
    await repo.create_quiz(make_quiz("other", article_id="art-2"))

    quizzes = await repo.get_quizzes_by_article("art-1")

    assert [q.id for q in quizzes] == ["early", "late"]


async def test_quiz_row_missing_a_field_fails_the_read(repo, db):
    await repo.create_quiz(make_quiz())
    del db.tables["quizzes"][0]["title"]

    with pytest.raises(DecodingError, match="title"):
        await repo.get_quiz("quiz-1")


async def test_one_bad_row_fails_the_whole_list(repo, db):
    await repo.create_quiz(make_quiz("good"))
    await repo.create_quiz(make_quiz("bad", created_at=T0 + timedelta(minutes=5)))
    db.tables["quizzes"][1]["questions"] = "[]"

    with pytest.raises(DecodingError, match="expected 5"):
        await repo.get_quizzes_by_article("art-1")


async def test_corrupt_questions_blob_fails_the_read(repo, db):
    await repo.create_quiz(make_quiz())
    db.tables["quizzes"][0]["questions"] = "{broken"

    with pytest.raises(DecodingError, match="quiz quiz-1"):
        await repo.get_quiz("quiz-1")


async def test_attempts_newest_first_with_limit(repo):
    for i, minutes in enumerate([5, 30, 10]):
        await repo.save_attempt(make_attempt(f"a{i}", score=i, minutes=minutes))
    await repo.save_attempt(make_attempt("other", score=1, user_id="user-2"))

    attempts = await repo.get_attempts_by_user("user-1")
    assert [a.id for a in attempts] == ["a1", "a2", "a0"]
    assert attempts[0].answers == {"q1": "A"}

    latest = await repo.get_attempts_by_user("user-1", limit=1)
    assert [a.id for a in latest] == ["a1"]


async def test_attempt_with_string_score_fails_to_decode(repo, db):
    await repo.save_attempt(make_attempt("a1", score=3))
    db.tables["quiz_attempts"][0]["score"] = "3"

    with pytest.raises(DecodingError, match="score"):
        await repo.get_attempts_by_user("user-1")


async def test_attempt_score_above_total_fails_to_decode(repo, db):
    await repo.save_attempt(make_attempt("a1", score=3))
    db.tables["quiz_attempts"][0]["score"] = 9

    with pytest.raises(DecodingError, match="exceeds"):
        await repo.get_attempts_by_user("user-1")


async def test_statistics_upsert_overwrites(repo, db):
    first = Statistics("user-1", 1, 40.0, 100.0, {"geo": 40.0}, T0)
    second = Statistics("user-1", 2, 60.0, 100.0, {"geo": 60.0}, T0 + timedelta(days=1))

    await repo.upsert_statistics("user-1", first)
    stored = await repo.upsert_statistics("user-1", second)

    assert stored == second
    assert len(db.tables["quiz_statistics"]) == 1
    assert await repo.get_statistics("user-1") == second


async def test_statistics_whole_number_percent_decodes_as_float(repo, db):
    await repo.upsert_statistics("user-1", Statistics("user-1", 1, 80.0, 100.0, {}, T0))
    db.tables["quiz_statistics"][0]["average_score_percent"] = 80

    stats = await repo.get_statistics("user-1")

    assert stats.average_score_percent == 80.0
    assert isinstance(stats.average_score_percent, float)


async def test_missing_statistics_is_not_found(repo):
    with pytest.raises(NotFoundError):
        await repo.get_statistics("user-1")


@pytest.mark.parametrize(
    "error",
    [
        APIError({"message": "boom", "code": "500", "hint": None, "details": None}),
        httpx.ConnectError("connection refused"),
    ],
)
async def test_transport_errors_become_store_network_errors(repo, db, error):
    db.error = error
    with pytest.raises(StoreNetworkError):
        await repo.get_quizzes_by_article("art-1")


async def test_article_repository_maps_cover_image_to_thumbnail(db):
    db.tables["articles"] = [
        {"id": "art-1", "title": "Rivers", "content": "Water.", "tags": ["geo"], "cover_image_id": "img-7"},
        {"id": "art-2", "title": "Hills", "content": "Earth.", "tags": None, "cover_image_id": None},
    ]
    articles = ArticleRepository(db)

    first = await articles.get_article("art-1")
    second = await articles.get_article("art-2")

    assert (first.thumbnail_ref, first.tags) == ("img-7", ["geo"])
    assert (second.thumbnail_ref, second.tags) == ("", [])
    with pytest.raises(NotFoundError):
        await articles.get_article("art-3")
