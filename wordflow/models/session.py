from sqlalchemy import Column, Integer, ForeignKey, DateTime, Index, text
from sqlalchemy.orm import relationship
from .base import BaseModel
from .enums import SessionStatus, SessionKind, enum_column_type
from datetime import datetime
import pytz

"""
练习会话模型
记录一次练习：学员ID、会话类型、状态、句子总数、已答/答对/答错计数、开始和完成时间。
同一学员最多只有一个 active 会话，由部分唯一索引保证；计数字段用 version 列做乐观并发。
"""
class PracticeSession(BaseModel):
    __tablename__ = "practice_sessions"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    kind = Column(enum_column_type(SessionKind), nullable=False, default=SessionKind.PRACTICE)
    status = Column(enum_column_type(SessionStatus), nullable=False, default=SessionStatus.ACTIVE)

    total_phrases = Column(Integer, nullable=False, default=0)
    answered_count = Column(Integer, nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    incorrect_count = Column(Integer, nullable=False, default=0)

    started_at = Column(DateTime, default=lambda: datetime.now(pytz.utc))
    completed_at = Column(DateTime)

    version = Column(Integer, nullable=False, default=1)

    # 关系定义
    user = relationship("User", backref="practice_sessions")

    __table_args__ = (
        Index(
            "uq_practice_sessions_one_active",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    __mapper_args__ = {"version_id_col": version}
