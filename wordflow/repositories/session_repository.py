from typing import Optional, List
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import func
from wordflow.models.session import PracticeSession
from wordflow.models.enums import SessionStatus
from wordflow.repositories.base import BaseRepository

class SessionRepository(BaseRepository[PracticeSession]):
    def __init__(self, db: Session):
        super().__init__(db, PracticeSession)

    def get_active_session(self, user_id: int) -> Optional[PracticeSession]:
        """获取学员的进行中会话"""
        return self.db.query(PracticeSession).filter(
            PracticeSession.user_id == user_id,
            PracticeSession.status == SessionStatus.ACTIVE
        ).order_by(PracticeSession.started_at.desc()).first()

    def get_user_sessions(self, user_id: int, limit: int = 10) -> List[PracticeSession]:
        """获取学员的会话历史"""
        return self.db.query(PracticeSession).filter(
            PracticeSession.user_id == user_id
        ).order_by(PracticeSession.started_at.desc(), PracticeSession.id.desc()).limit(limit).all()

    def get_last_completed_since(self, user_id: int, since: datetime) -> Optional[PracticeSession]:
        """获取某时间之后最近完成的会话"""
        return self.db.query(PracticeSession).filter(
            PracticeSession.user_id == user_id,
            PracticeSession.status == SessionStatus.COMPLETED,
            PracticeSession.completed_at >= since
        ).order_by(PracticeSession.completed_at.desc()).first()

    def count_active_sessions(self) -> int:
        """统计所有进行中的会话"""
        return self.db.query(func.count(PracticeSession.id)).filter(
            PracticeSession.status == SessionStatus.ACTIVE
        ).scalar() or 0
