from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime, date
from pydantic import ConfigDict

from wordflow.models.enums import SessionKind, SessionStatus, PhraseState


class StartSessionRequest(BaseModel):
    user_id: int
    kind: SessionKind = SessionKind.PRACTICE


class SessionPhrase(BaseModel):
    phrase_id: int
    text: str
    translation: str
    explanation: Optional[str] = None
    context: Optional[str] = None
    audio_url: Optional[str] = None
    state: PhraseState
    order: int


class StartSessionResponse(BaseModel):
    success: bool = True
    session_id: int
    kind: SessionKind
    total_phrases: int
    answered_phrases: int
    phrases: List[SessionPhrase]
    resumed: bool
    motivational_message: str


class AnswerRequest(BaseModel):
    user_id: int
    phrase_id: int
    knows: bool


class FeedbackSchema(BaseModel):
    message: str
    kind: str
    emoji: str


class SessionSummary(BaseModel):
    answered: int
    total: int
    correct: int
    incorrect: int
    completed: bool


class TranslationInfo(BaseModel):
    translation: Optional[str] = None
    explanation: Optional[str] = None


class AnswerResponse(BaseModel):
    success: bool = True
    feedback: FeedbackSchema
    next_eligible_date: date
    new_state: PhraseState
    session: SessionSummary
    translation_info: Optional[TranslationInfo] = None
    completion_message: Optional[str] = None


class SessionResponse(BaseModel):
    id: int
    user_id: int
    kind: SessionKind
    status: SessionStatus
    total_phrases: int
    answered_count: int
    correct_count: int
    incorrect_count: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True
    )


class SessionRecordResponse(BaseModel):
    phrase_id: int
    state: PhraseState
    repetitions: int
    learning_level: int
    knows: Optional[bool] = None
    order_in_session: int
    next_eligible_date: Optional[date] = None

    model_config = ConfigDict(
        from_attributes=True
    )


class SessionDetailResponse(SessionResponse):
    records: List[SessionRecordResponse] = []


class SessionListResponse(BaseModel):
    user_id: int
    sessions: List[SessionResponse]
    total: int
