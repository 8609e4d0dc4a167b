from sqlalchemy import Column, String, Integer, ForeignKey, Date, DateTime, Boolean, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel
from .enums import PhraseState, enum_column_type


"""
学习记录模型
每个(学员, 句子, 会话)一条记录，代表一次出题。创建于会话开始时，作答时只修改一次(knows 从空变为 True/False)，之后不可变。
某个句子最近一次作答的记录决定它进入下一次会话时的状态、重复次数和学习等级。
"""

class LearningRecord(BaseModel):
    __tablename__ = "learning_records"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    phrase_id = Column(Integer, ForeignKey("phrases.id"), nullable=False)
    session_id = Column(Integer, ForeignKey("practice_sessions.id"), nullable=False)

    state = Column(enum_column_type(PhraseState), nullable=False, default=PhraseState.NEW)
    repetitions = Column(Integer, nullable=False, default=0)
    learning_level = Column(Integer, nullable=False, default=1)  # 1-4
    first_attempt_correct = Column(Boolean)

    knows = Column(Boolean)  # 空 = 待作答
    answered_at = Column(DateTime)
    next_eligible_date = Column(Date)

    order_in_session = Column(Integer, nullable=False)
    total_in_session = Column(Integer, nullable=False)
    delivery_kind = Column(String(20), nullable=False, default="new")  # new, review
    origin = Column(String(20), nullable=False, default="session")

    # 关系定义
    phrase = relationship("Phrase")
    session = relationship("PracticeSession", backref="records")

    __table_args__ = (
        UniqueConstraint("session_id", "phrase_id", name="uq_learning_records_session_phrase"),
        Index("idx_learning_records_user_phrase", "user_id", "phrase_id"),
        Index("idx_learning_records_user_due", "user_id", "next_eligible_date"),
    )
