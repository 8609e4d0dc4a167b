from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, ForeignKey
from .base import BaseModel
from .enums import LearnerLevel, enum_column_type

"""
学员模型
记录学员资料与滚动统计：水平、每日句子数、当前句子本、是否有进行中的会话、累计作答/答对数、连续学习天数等。
version 列用于乐观并发控制，统计字段的读-改-写冲突会在提交时被发现。
"""
class User(BaseModel):
    __tablename__ = "users"

    email = Column(String(200), unique=True, index=True, nullable=False)
    name = Column(String(100))
    level = Column(enum_column_type(LearnerLevel), nullable=False, default=LearnerLevel.BASIC)
    phrases_per_day = Column(Integer, nullable=False, default=5)
    active_notebook_id = Column(Integer, ForeignKey("notebooks.id"))

    has_active_session = Column(Boolean, nullable=False, default=False)
    total_seen = Column(Integer, nullable=False, default=0)
    total_correct = Column(Integer, nullable=False, default=0)
    consecutive_days = Column(Integer, nullable=False, default=0)
    last_practice_date = Column(Date)
    last_interaction_at = Column(DateTime)
    is_active = Column(Boolean, default=True)

    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}
