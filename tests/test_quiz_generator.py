import json

import httpx
import pytest

from article_quiz.domain.errors import GenerationNetworkError, InvalidResponseError, SchemaViolationError
from article_quiz.domain.model import OPTION_LABELS
from article_quiz.services.completion_client import CompletionClient
from article_quiz.services.quiz_generator import QuizGenerator, build_prompt
from fakes import T0, completion_body, generated_payload, make_article, mock_http


def generator_for(handler, requests=None) -> QuizGenerator:
    def recording(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    client = CompletionClient(mock_http(recording), api_key="sk-test", base_url="https://llm.test/v1")
    return QuizGenerator(client, id_factory=lambda: "quiz-new", clock=lambda: T0)


def respond_with(content, status_code=200):
    return lambda request: httpx.Response(status_code, json=completion_body(content))


async def test_generates_a_five_question_quiz():
    quiz = await generator_for(respond_with(generated_payload())).generate_quiz(make_article())

    assert quiz.id == "quiz-new"
    assert quiz.source_article_id == "art-1"
    assert quiz.created_at == T0
    assert quiz.title == "Rivers Quiz"
    assert (quiz.article_snapshot.id, quiz.article_snapshot.title, quiz.article_snapshot.thumbnail_ref) == (
        "art-1", "Rivers", "thumb-1",
    )
    assert len(quiz.questions) == 5
    for question in quiz.questions:
        assert set(question.options) == set(OPTION_LABELS)
        assert question.correct_answer in OPTION_LABELS
    assert quiz.questions[0].prompt_text == "What about 1?"


async def test_request_carries_prompt_and_generation_settings():
    requests = []
    await generator_for(respond_with(generated_payload()), requests).generate_quiz(make_article())

    assert len(requests) == 1
    request = requests[0]
    assert str(request.url) == "https://llm.test/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["temperature"] == 0.3
    assert body["max_tokens"] == 1500
    assert body["response_format"] == {"type": "json_object"}
    system, user = body["messages"]
    assert system["role"] == "system"
    assert user["content"] == build_prompt(make_article())
    assert "Rivers carry water from high ground to the sea." in user["content"]


def test_prompt_is_deterministic():
    assert build_prompt(make_article()) == build_prompt(make_article())
    assert "exactly 5 questions" in build_prompt(make_article())


async def test_three_options_is_a_schema_violation():
    payload = generated_payload()
    del payload["questions"][2]["options"]["D"]

    with pytest.raises(SchemaViolationError, match="options"):
        await generator_for(respond_with(payload)).generate_quiz(make_article())


@pytest.mark.parametrize("count", [4, 6])
async def test_wrong_question_count_is_a_schema_violation(count):
    with pytest.raises(SchemaViolationError):
        await generator_for(respond_with(generated_payload(count))).generate_quiz(make_article())


async def test_correct_answer_outside_labels_is_a_schema_violation():
    with pytest.raises(SchemaViolationError, match="correctAnswer"):
        await generator_for(respond_with(generated_payload(correct="E"))).generate_quiz(make_article())


async def test_duplicate_question_ids_are_a_schema_violation():
    payload = generated_payload()
    payload["questions"][4]["id"] = "q1"

    with pytest.raises(SchemaViolationError, match="unique"):
        await generator_for(respond_with(payload)).generate_quiz(make_article())


async def test_content_that_is_not_an_object_is_a_schema_violation():
    with pytest.raises(SchemaViolationError):
        await generator_for(respond_with(json.dumps(generated_payload()["questions"]))).generate_quiz(make_article())


async def test_content_that_is_not_json_is_an_invalid_response():
    with pytest.raises(InvalidResponseError):
        await generator_for(respond_with("Sure! Here is your quiz:")).generate_quiz(make_article())


@pytest.mark.parametrize(
    "body",
    [
        {"choices": []},
        {"error": "overloaded"},
        {"choices": [{"message": {"content": None}}]},
        {"choices": [{"delta": {"content": "{}"}}]},
        [],
    ],
)
async def test_broken_envelope_is_an_invalid_response(body):
    generator = generator_for(lambda request: httpx.Response(200, json=body))
    with pytest.raises(InvalidResponseError):
        await generator.generate_quiz(make_article())


async def test_non_json_body_is_an_invalid_response():
    generator = generator_for(lambda request: httpx.Response(200, text="<html>gateway</html>"))
    with pytest.raises(InvalidResponseError):
        await generator.generate_quiz(make_article())


@pytest.mark.parametrize("status_code", [401, 429, 500])
async def test_error_status_is_a_network_failure(status_code):
    with pytest.raises(GenerationNetworkError, match=str(status_code)):
        await generator_for(respond_with(generated_payload(), status_code)).generate_quiz(make_article())


async def test_timeout_is_a_network_failure():
    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(GenerationNetworkError, match="timed out"):
        await generator_for(slow).generate_quiz(make_article())


async def test_connection_error_is_a_network_failure():
    def down(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GenerationNetworkError):
        await generator_for(down).generate_quiz(make_article())
