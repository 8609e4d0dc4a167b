from pydantic import BaseModel
from typing import List, Optional

from wordflow.models.enums import PhraseState


class PhraseProgress(BaseModel):
    phrase_id: int
    text: str
    translation: str
    state: PhraseState
    repetitions: int
    learning_level: int
    first_attempt_correct: Optional[bool] = None
    last_answered_at: Optional[str] = None
    next_eligible_date: Optional[str] = None


class PhraseProgressListResponse(BaseModel):
    user_id: int
    state: Optional[PhraseState] = None
    phrases: List[PhraseProgress]
    total: int
