from typing import List, Optional
from datetime import date
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from wordflow.models.daily_metric import DailyMetric
from wordflow.repositories.base import BaseRepository


class DailyMetricRepository(BaseRepository[DailyMetric]):
    """
    每日指标Repository

    计数用 UPDATE ... SET x = x + n 原子累加，不做读-改-写。
    """

    def __init__(self, db: Session):
        super().__init__(db, DailyMetric)

    def find(self, user_id: int, metric_date: date) -> Optional[DailyMetric]:
        return self.db.query(DailyMetric).filter(
            DailyMetric.user_id == user_id,
            DailyMetric.metric_date == metric_date
        ).first()

    def get_or_create(self, user_id: int, metric_date: date) -> DailyMetric:
        """获取当天指标行，不存在则创建；并发创建时取对方已插入的行"""
        metric = self.find(user_id, metric_date)
        if metric is not None:
            return metric

        try:
            with self.db.begin_nested():
                return self.create(
                    user_id=user_id,
                    metric_date=metric_date,
                    phrases_sent=0,
                    phrases_answered=0,
                    correct_count=0,
                    incorrect_count=0
                )
        except IntegrityError:
            metric = self.find(user_id, metric_date)
            if metric is None:
                raise
            return metric

    def _increment(self, user_id: int, metric_date: date, **deltas) -> DailyMetric:
        metric = self.get_or_create(user_id, metric_date)
        self.db.query(DailyMetric).filter(DailyMetric.id == metric.id).update({
            getattr(DailyMetric, name): getattr(DailyMetric, name) + delta
            for name, delta in deltas.items()
        }, synchronize_session=False)
        self.db.expire(metric)
        return metric

    def record_sent(self, user_id: int, metric_date: date, count: int) -> DailyMetric:
        """累计下发句子数"""
        return self._increment(user_id, metric_date, phrases_sent=count)

    def record_answer(self, user_id: int, metric_date: date, knows: bool) -> DailyMetric:
        """累计一次作答"""
        if knows:
            return self._increment(user_id, metric_date, phrases_answered=1, correct_count=1)
        return self._increment(user_id, metric_date, phrases_answered=1, incorrect_count=1)

    def get_range(self, user_id: int, start: date, end: date) -> List[DailyMetric]:
        """获取日期区间内的指标（含两端）"""
        return self.db.query(DailyMetric).filter(
            DailyMetric.user_id == user_id,
            DailyMetric.metric_date >= start,
            DailyMetric.metric_date <= end
        ).order_by(DailyMetric.metric_date).all()
