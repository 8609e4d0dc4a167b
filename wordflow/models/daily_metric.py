from sqlalchemy import Column, Integer, ForeignKey, Date, UniqueConstraint
from .base import BaseModel

"""
每日指标模型
每个学员每天一行：下发句子数、作答数、答对数、答错数。
"""
class DailyMetric(BaseModel):
    __tablename__ = "daily_metrics"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    metric_date = Column(Date, nullable=False)
    phrases_sent = Column(Integer, nullable=False, default=0)
    phrases_answered = Column(Integer, nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    incorrect_count = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("user_id", "metric_date", name="uq_daily_metrics_user_date"),
    )

    @property
    def accuracy(self) -> int:
        """正确率百分比（整数）"""
        answered = (self.correct_count or 0) + (self.incorrect_count or 0)
        if answered == 0:
            return 0
        return round(self.correct_count * 100 / answered)

    def to_dict(self):
        return {
            "date": self.metric_date.isoformat(),
            "phrases_sent": self.phrases_sent,
            "phrases_answered": self.phrases_answered,
            "correct": self.correct_count,
            "incorrect": self.incorrect_count,
            "accuracy": self.accuracy
        }
