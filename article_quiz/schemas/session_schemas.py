from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field

StateKind = Literal["loading", "in_progress", "completed"]


class SessionSnapshot(BaseModel):
    """What a live session keeps in Redis between requests."""

    id: str
    user_id: str
    article_id: Optional[str] = None
    quiz_id: Optional[str] = None
    state: StateKind = "loading"
    question_index: int = Field(0, ge=0)
    answers: Dict[str, str] = Field(default_factory=dict)
    score: Optional[int] = None
    attempt_id: Optional[str] = None
    error: Optional[str] = None
    persistence_error: Optional[str] = None
