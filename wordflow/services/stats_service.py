#!/usr/bin/env python3
"""
学员统计服务
首页需要的数据：各状态句子数、今天/明天到期的复习数、本月每日指标、连续天数和提示文案
"""

import logging
import random
from datetime import datetime
from typing import Dict, Any

from sqlalchemy.orm import Session

from wordflow.models.enums import PhraseState, LearnerLevel
from wordflow.repositories.learning_record_repository import LearningRecordRepository
from wordflow.repositories.phrase_repository import PhraseRepository
from wordflow.repositories.session_repository import SessionRepository
from wordflow.repositories.daily_metric_repository import DailyMetricRepository
from wordflow.services.user_service import UserService
from wordflow.utils.helpers import (
    utc_now, local_today, add_days, month_start, local_day_start, hours_left_in_day
)
from wordflow.utils.messages import contextual_message

logger = logging.getLogger(__name__)

REVIEW_STATES = (PhraseState.LEARNING, PhraseState.CONFIRMING)


class StatsService:
    def __init__(self, db: Session, rng: random.Random = None):
        self.db = db
        self.rng = rng
        self.record_repo = LearningRecordRepository(db)
        self.phrase_repo = PhraseRepository(db)
        self.session_repo = SessionRepository(db)
        self.metric_repo = DailyMetricRepository(db)
        self.user_service = UserService(db)
        logger.info("统计服务初始化完成")

    def get_user_stats(self, user_id: int, now: datetime = None) -> Dict[str, Any]:
        """
        获取学员统计

        句子状态以每个句子最近一次作答为准；"未学习"= 目录规模 - 目录范围内已作答过的句子数，
        目录规模取当前句子本的句子数，没有句子本时取学员水平对应的上架句子数。
        """
        now = now or utc_now()
        today = local_today(now)
        user = self.user_service.get_user(user_id)

        by_state = self.record_repo.count_latest_by_state(user_id)
        learning = by_state[PhraseState.LEARNING] + by_state[PhraseState.CONFIRMING]
        mastered = by_state[PhraseState.MASTERED] + by_state[PhraseState.MAINTENANCE]

        if user.active_notebook_id:
            scope = {"notebook_id": user.active_notebook_id}
        else:
            scope = {"level": LearnerLevel(user.level)}
        catalog_size = self.phrase_repo.count_active(**scope)
        seen_in_scope = sum(self.record_repo.count_latest_by_state(user_id, **scope).values())
        not_seen = max(0, catalog_size - seen_in_scope)

        reviews_today = self.record_repo.count_due(user_id, REVIEW_STATES, today)
        reviews_tomorrow = self.record_repo.count_due(user_id, REVIEW_STATES, add_days(today, 1), exact=True)

        history = [metric.to_dict() for metric in self.metric_repo.get_range(user_id, month_start(today), today)]

        active = self.session_repo.get_active_session(user_id)
        remaining = max(0, active.total_phrases - active.answered_count) if active else 0

        completed_today = self.session_repo.get_last_completed_since(
            user_id, local_day_start(today)
        ) is not None
        streak = user.consecutive_days or 0
        streak_at_risk = streak > 0 and not completed_today
        days_away = (today - user.last_practice_date).days if user.last_practice_date else 0

        context = {
            "is_new_learner": (user.total_seen or 0) == 0 and active is None,
            "has_active_session": active is not None and remaining > 0,
            "remaining_phrases": remaining,
            "consecutive_days": streak,
            "streak_at_risk": streak_at_risk,
            "hours_left_today": hours_left_in_day(now),
            "days_away": days_away,
            "reviews_today": reviews_today,
            "new_phrases": min(not_seen, user.phrases_per_day or 0),
            "completed_today": completed_today,
            "total_mastered": mastered,
        }

        return {
            "user_id": user.id,
            "phrases": {
                "not_seen": not_seen,
                "learning": learning,
                "mastered": mastered,
                "by_state": {state.value: count for state, count in by_state.items()},
                "catalog_size": catalog_size
            },
            "reviews_today": reviews_today,
            "reviews_tomorrow": reviews_tomorrow,
            "month_history": history,
            "active_session": {
                "session_id": active.id,
                "remaining_phrases": remaining
            } if active else None,
            "total_seen": user.total_seen or 0,
            "total_correct": user.total_correct or 0,
            "consecutive_days": streak,
            "streak_at_risk": streak_at_risk,
            "completed_today": completed_today,
            "message": contextual_message(context, self.rng)
        }

    def list_phrases(self, user_id: int, state: PhraseState = None, limit: int = 100):
        """学员学过的句子及其当前状态"""
        self.user_service.get_user(user_id)
        states = [PhraseState(state)] if state else None
        records = self.record_repo.get_latest_answered(user_id, states=states, limit=limit)
        return [
            {
                "phrase_id": record.phrase_id,
                "text": record.phrase.text,
                "translation": record.phrase.translation,
                "state": PhraseState(record.state).value,
                "repetitions": record.repetitions,
                "learning_level": record.learning_level,
                "first_attempt_correct": record.first_attempt_correct,
                "last_answered_at": record.answered_at.isoformat() if record.answered_at else None,
                "next_eligible_date": record.next_eligible_date.isoformat() if record.next_eligible_date else None
            }
            for record in records
        ]
