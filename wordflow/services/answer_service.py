#!/usr/bin/env python3
"""
作答服务模块
处理一次作答：找到待作答记录、计算状态转换、持久化、更新会话和学员统计、生成反馈。
状态转换、会话计数、学员统计和每日指标在同一个事务中提交；反馈文案在提交之后生成，失败时使用通用文案。
"""

import logging
import random
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Dict, Any

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.exc import SQLAlchemyError

from wordflow.models.enums import PhraseState, SessionStatus
from wordflow.repositories.learning_record_repository import LearningRecordRepository
from wordflow.repositories.phrase_repository import PhraseRepository
from wordflow.repositories.session_repository import SessionRepository
from wordflow.repositories.daily_metric_repository import DailyMetricRepository
from wordflow.scheduler.aggregates import SessionCounters, fold_session_answer
from wordflow.scheduler.interval_policy import next_transition
from wordflow.services.errors import (
    SchedulerError, AlreadyAnsweredError, RecordNotFoundError, TransientStoreError
)
from wordflow.services.session_service import SessionService
from wordflow.services.user_service import UserService
from wordflow.utils.helpers import utc_now, local_today
from wordflow.utils.messages import Feedback, GENERIC_FEEDBACK, build_feedback, completion_message

logger = logging.getLogger(__name__)


@dataclass
class AnswerResult:
    feedback: Feedback
    next_eligible_date: date
    new_state: PhraseState
    session: SessionCounters
    translation_info: Optional[Dict[str, Any]] = None
    completion_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "feedback": self.feedback.to_dict(),
            "next_eligible_date": self.next_eligible_date.isoformat(),
            "new_state": self.new_state.value,
            "session": {
                "answered": self.session.answered,
                "total": self.session.total,
                "correct": self.session.correct,
                "incorrect": self.session.incorrect,
                "completed": self.session.completed
            },
            "translation_info": self.translation_info,
            "completion_message": self.completion_message
        }


class AnswerService:
    def __init__(self, db: Session, rng: random.Random = None):
        self.db = db
        self.rng = rng
        self.record_repo = LearningRecordRepository(db)
        self.phrase_repo = PhraseRepository(db)
        self.session_repo = SessionRepository(db)
        self.metric_repo = DailyMetricRepository(db)
        self.user_service = UserService(db)
        self.session_service = SessionService(db, rng=rng)
        logger.info("作答服务初始化完成")

    def answer(self, user_id: int, session_id: int, phrase_id: int, knows: bool,
               now: datetime = None) -> AnswerResult:
        """
        处理一次作答

        Args:
            user_id: 学员ID
            session_id: 会话ID
            phrase_id: 句子ID
            knows: 是否认识
            now: 作答时间（默认当前UTC时间）

        Raises:
            LearnerNotFoundError: 学员不存在
            AlreadyAnsweredError: 该句子在本会话中已经作答
            RecordNotFoundError: 会话中没有该句子的待作答记录
            TransientStoreError: 存储读写失败，事务已回滚
        """
        now = now or utc_now()
        today = local_today(now)
        user = self.user_service.get_user(user_id)

        try:
            record = self.record_repo.get_pending(user_id, session_id, phrase_id)
            if record is None:
                if self.record_repo.get_answered(user_id, session_id, phrase_id):
                    logger.warning(f"重复作答: session={session_id}, phrase={phrase_id}")
                    raise AlreadyAnsweredError()
                logger.warning(f"找不到待作答记录: session={session_id}, phrase={phrase_id}")
                raise RecordNotFoundError()

            session = record.session
            if session.status != SessionStatus.ACTIVE:
                logger.warning(f"会话 {session_id} 不是进行中状态: {session.status.value}")
                raise RecordNotFoundError()

            previous_state = PhraseState(record.state)
            transition = next_transition(
                previous_state,
                record.repetitions,
                record.learning_level,
                knows,
                first_attempt_correct=record.first_attempt_correct
            )
            next_date = transition.next_eligible_date(today)

            updated = self.record_repo.mark_answered(
                record.id,
                knows=knows,
                answered_at=now,
                state=transition.new_state,
                repetitions=transition.repetitions,
                learning_level=transition.learning_level,
                first_attempt_correct=transition.first_attempt_correct,
                next_eligible_date=next_date
            )
            if updated == 0:
                logger.warning(f"并发重复作答: session={session_id}, phrase={phrase_id}")
                raise AlreadyAnsweredError()

            counters = fold_session_answer(
                SessionCounters(
                    total=session.total_phrases,
                    answered=session.answered_count,
                    correct=session.correct_count,
                    incorrect=session.incorrect_count
                ),
                knows
            )
            session.answered_count = counters.answered
            session.correct_count = counters.correct
            session.incorrect_count = counters.incorrect
            if counters.completed:
                self.session_service.complete_session(session, user, now)

            self.user_service.apply_answer(user, knows, today, now)
            self.metric_repo.record_answer(user_id, today, knows)
            self.db.commit()

        except SchedulerError:
            self.db.rollback()
            raise
        except StaleDataError as e:
            self.db.rollback()
            logger.warning(f"作答时计数已被并发修改: session={session_id}, {e}")
            raise TransientStoreError()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"保存作答失败: {e}")
            raise TransientStoreError()

        logger.info(
            f"作答完成: session={session_id}, phrase={phrase_id}, 答对={knows}, "
            f"{previous_state.value} -> {transition.new_state.value}, 下次={next_date.isoformat()}"
        )

        return AnswerResult(
            feedback=self._feedback(knows, previous_state),
            next_eligible_date=next_date,
            new_state=transition.new_state,
            session=counters,
            translation_info=self._translation_info(phrase_id),
            completion_message=(
                completion_message(counters.correct, counters.incorrect, self.rng)
                if counters.completed else None
            )
        )

    def _feedback(self, knows: bool, previous_state: PhraseState) -> Feedback:
        try:
            return build_feedback(knows, previous_state)
        except Exception as e:
            logger.warning(f"生成反馈失败，使用通用文案: {e}")
            return GENERIC_FEEDBACK[knows]

    def _translation_info(self, phrase_id: int) -> Optional[Dict[str, Any]]:
        try:
            phrase = self.phrase_repo.get_by_id(phrase_id)
            if not phrase:
                return None
            return {
                "translation": phrase.translation,
                "explanation": phrase.explanation
            }
        except SQLAlchemyError as e:
            logger.warning(f"加载句子翻译失败: {e}")
            return None
