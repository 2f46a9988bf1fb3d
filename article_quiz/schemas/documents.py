"""Row shapes of the flat documents kept in the document store.

Fields are strict: a score stored as "3" or a null title fails decoding
rather than being coerced. Timestamps arrive as ISO
strings and go through IsoDatetime.
"""
from datetime import datetime
from typing import Annotated, Any, List, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictFloat, StrictInt, StrictStr


def _parse_iso(value: Any) -> Any:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    if not isinstance(value, datetime):
        raise ValueError(f"expected an ISO 8601 timestamp, got {type(value).__name__}")
    return value


IsoDatetime = Annotated[datetime, BeforeValidator(_parse_iso)]

# float8 columns come back as JSON integers when the value is whole
Number = Union[StrictInt, StrictFloat]


class QuizDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: StrictStr
    article_id: StrictStr
    title: StrictStr
    questions: StrictStr
    created_at: IsoDatetime
    article_reference_id: StrictStr
    article_reference_title: StrictStr
    article_reference_thumbnail: StrictStr


class AttemptDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: StrictStr
    user_id: StrictStr
    quiz_id: StrictStr
    article_id: StrictStr
    score: StrictInt = Field(ge=0)
    total_questions: StrictInt = Field(ge=0)
    answers: StrictStr
    completed_at: IsoDatetime


class StatisticsDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: StrictStr
    total_attempted: StrictInt = Field(ge=0)
    average_score_percent: Number
    completion_rate_percent: Number
    topic_scores: StrictStr
    last_updated: IsoDatetime


class ArticleDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: StrictStr
    title: StrictStr
    content: StrictStr
    tags: Optional[List[StrictStr]] = None
    cover_image_id: Optional[StrictStr] = None
