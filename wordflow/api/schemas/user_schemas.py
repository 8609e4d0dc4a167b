from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import datetime, date

from wordflow.models.enums import LearnerLevel


class UserBase(BaseModel):
    email: str
    name: Optional[str] = None


class UserCreate(UserBase):
    level: Optional[LearnerLevel] = None
    phrases_per_day: Optional[int] = None
    active_notebook_id: Optional[int] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None
    level: Optional[LearnerLevel] = None
    phrases_per_day: Optional[int] = None
    active_notebook_id: Optional[int] = None


class UserResponse(UserBase):
    id: int
    level: LearnerLevel
    phrases_per_day: int
    active_notebook_id: Optional[int] = None
    has_active_session: bool
    total_seen: int
    total_correct: int
    consecutive_days: int
    last_practice_date: Optional[date] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        from_attributes=True
    )


class PhraseCounts(BaseModel):
    not_seen: int
    learning: int
    mastered: int
    by_state: Dict[str, int]
    catalog_size: int


class DailyHistoryItem(BaseModel):
    date: str
    phrases_sent: int
    phrases_answered: int
    correct: int
    incorrect: int
    accuracy: int


class ActiveSessionInfo(BaseModel):
    session_id: int
    remaining_phrases: int


class UserStatsResponse(BaseModel):
    user_id: int
    phrases: PhraseCounts
    reviews_today: int
    reviews_tomorrow: int
    month_history: List[DailyHistoryItem] = Field(default_factory=list)
    active_session: Optional[ActiveSessionInfo] = None
    total_seen: int
    total_correct: int
    consecutive_days: int
    streak_at_risk: bool
    completed_today: bool
    message: str
