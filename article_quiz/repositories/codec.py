"""Blob codec for the nested fields of flat store documents.

Questions, answer maps and topic scores are stored as JSON text inside
otherwise flat rows. Every read and write of those fields goes through the
pairs below, so the storage shape can change without touching callers.

Blob format, version 1::

    {"version": 1, "items": <payload>}

Question lists written as a bare JSON array (the legacy format) decode as
version 1.
"""
import json
from typing import Any, Dict, List, Mapping, Sequence

from pydantic import StrictStr, TypeAdapter, ValidationError

from ..domain.errors import DecodingError, EncodingError
from ..domain.model import Question
from ..schemas.documents import Number
from ..schemas.quiz_schemas import QuestionPayload

BLOB_VERSION = 1

_questions_adapter = TypeAdapter(List[QuestionPayload])
_answers_adapter = TypeAdapter(Dict[StrictStr, StrictStr])
_scores_adapter = TypeAdapter(Dict[StrictStr, Number])


def describe_validation_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(p) for p in err["loc"]) or "<root>"
    return f"{loc}: {err['msg']}"


def _wrap(items: Any, what: str) -> str:
    try:
        return json.dumps({"version": BLOB_VERSION, "items": items}, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"cannot encode {what}: {exc}") from exc


def _unwrap(blob: Any, what: str, allow_bare_list: bool = False) -> Any:
    if not isinstance(blob, str):
        raise DecodingError(f"{what}: expected a JSON string, got {type(blob).__name__}")
    try:
        data = json.loads(blob)
    except ValueError as exc:
        raise DecodingError(f"{what}: invalid JSON ({exc})") from exc

    if allow_bare_list and isinstance(data, list):
        return data
    if not isinstance(data, dict) or "items" not in data:
        raise DecodingError(f"{what}: expected a versioned blob object")
    if data.get("version") != BLOB_VERSION:
        raise DecodingError(f"{what}: unsupported blob version {data.get('version')!r}")
    return data["items"]


# --- questions ---

def question_to_payload(question: Question) -> Dict[str, Any]:
    return {
        "id": question.id,
        "question": question.prompt_text,
        "options": dict(question.options),
        "correctAnswer": question.correct_answer,
        "explanation": question.explanation,
    }


def payload_to_question(payload: QuestionPayload) -> Question:
    return Question(
        id=payload.id,
        prompt_text=payload.question,
        options=dict(payload.options),
        correct_answer=payload.correctAnswer,
        explanation=payload.explanation,
    )


def encode_questions(questions: Sequence[Question]) -> str:
    return _wrap([question_to_payload(q) for q in questions], "questions")


def decode_questions(blob: Any) -> List[Question]:
    items = _unwrap(blob, "questions", allow_bare_list=True)
    try:
        payloads = _questions_adapter.validate_python(items)
    except ValidationError as exc:
        raise DecodingError(f"questions.{describe_validation_error(exc)}") from exc
    ids = [p.id for p in payloads]
    if len(set(ids)) != len(ids):
        raise DecodingError("questions: question ids must be unique")
    return [payload_to_question(p) for p in payloads]


# --- answers ---

def encode_answers(answers: Mapping[str, str]) -> str:
    return _wrap(dict(answers), "answers")


def decode_answers(blob: Any) -> Dict[str, str]:
    items = _unwrap(blob, "answers")
    try:
        return _answers_adapter.validate_python(items)
    except ValidationError as exc:
        raise DecodingError(f"answers.{describe_validation_error(exc)}") from exc


# --- topic scores ---

def encode_topic_scores(scores: Mapping[str, float]) -> str:
    return _wrap(dict(scores), "topic_scores")


def decode_topic_scores(blob: Any) -> Dict[str, float]:
    items = _unwrap(blob, "topic_scores")
    try:
        scores = _scores_adapter.validate_python(items)
    except ValidationError as exc:
        raise DecodingError(f"topic_scores.{describe_validation_error(exc)}") from exc
    return {topic: float(value) for topic, value in scores.items()}
