#!/usr/bin/env python3
"""
会话服务模块
管理练习会话的生命周期：开始（或恢复）、完成、放弃
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Dict

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from wordflow.models.enums import SessionStatus, SessionKind, PhraseState
from wordflow.models.learning_record import LearningRecord
from wordflow.models.session import PracticeSession
from wordflow.models.user import User
from wordflow.models.phrase import Phrase
from wordflow.repositories.session_repository import SessionRepository
from wordflow.repositories.learning_record_repository import LearningRecordRepository
from wordflow.repositories.daily_metric_repository import DailyMetricRepository
from wordflow.repositories.phrase_repository import PhraseRepository
from wordflow.scheduler.carry_forward import derive_from_previous
from wordflow.services.errors import (
    ContentExhaustedError, TransientStoreError, RecordNotFoundError, SessionConflictError
)
from wordflow.services.phrase_selector import PhraseSelector
from wordflow.services.user_service import UserService
from wordflow.utils.helpers import utc_now, local_today
from wordflow.utils.messages import RESUME_MESSAGE, motivational_message

logger = logging.getLogger(__name__)


@dataclass
class StartSessionResult:
    session: PracticeSession
    records: List[LearningRecord] = field(default_factory=list)
    resumed: bool = False
    motivational_message: str = ""
    catalog: Dict[int, Phrase] = field(default_factory=dict)

    def phrases(self) -> List[Dict]:
        """会话中待作答的句子，按会话内顺序"""
        items = []
        for record in self.records:
            phrase = self.catalog.get(record.phrase_id) or record.phrase
            items.append({
                "phrase_id": record.phrase_id,
                "text": phrase.text,
                "translation": phrase.translation,
                "explanation": phrase.explanation,
                "context": phrase.context,
                "audio_url": phrase.audio_url,
                "state": PhraseState(record.state).value,
                "order": record.order_in_session
            })
        return items


class SessionService:
    def __init__(self, db: Session, rng: random.Random = None):
        self.db = db
        self.session_repo = SessionRepository(db)
        self.record_repo = LearningRecordRepository(db)
        self.metric_repo = DailyMetricRepository(db)
        self.phrase_repo = PhraseRepository(db)
        self.user_service = UserService(db)
        self.selector = PhraseSelector(db, rng=rng)
        logger.info("会话服务初始化完成")

    def start_or_resume(self, user_id: int, kind: SessionKind = SessionKind.PRACTICE,
                        now: datetime = None) -> StartSessionResult:
        """
        开始或恢复会话

        - 有进行中的会话且还有待作答记录：直接返回这些记录，不创建任何新数据
        - 有进行中的会话但所有记录都已作答：把它标记为完成，再创建新会话
        - 没有进行中的会话：选句子，创建会话和每个句子的待作答记录

        Raises:
            LearnerNotFoundError: 学员不存在
            ContentExhaustedError: 没有可用句子，不会创建会话
            TransientStoreError: 存储读写失败
        """
        now = now or utc_now()
        user = self.user_service.get_user(user_id)

        try:
            active = self.session_repo.get_active_session(user_id)
            if active:
                pending = self.record_repo.get_pending_for_session(active.id)
                if pending:
                    logger.info(f"恢复会话: session={active.id}, 剩余{len(pending)}个句子")
                    return self._result(active, pending, True, RESUME_MESSAGE)

                logger.info(f"会话 {active.id} 没有待作答记录，标记为完成")
                self._complete(active, user, now)
                self.db.commit()

            return self._create_session(user, SessionKind(kind), now)

        except IntegrityError:
            # 另一个请求已经为该学员创建了进行中的会话
            self.db.rollback()
            logger.warning(f"学员 {user_id} 并发开始会话，改为恢复已有会话")
            return self._resume_after_conflict(user_id)
        except ContentExhaustedError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"开始会话失败: {e}")
            raise TransientStoreError()

    def _create_session(self, user: User, kind: SessionKind, now: datetime) -> StartSessionResult:
        today = local_today(now)
        quota = self.user_service.session_quota(user)
        batch = self.selector.select_batch(user, quota, today)

        session = self.session_repo.create(
            user_id=user.id,
            kind=kind,
            status=SessionStatus.ACTIVE,
            total_phrases=len(batch),
            answered_count=0,
            correct_count=0,
            incorrect_count=0,
            started_at=now
        )

        rows = [
            derive_from_previous(
                item.previous,
                user_id=user.id,
                phrase_id=item.phrase_id,
                session_id=session.id,
                order_in_session=order,
                total_in_session=len(batch)
            )
            for order, item in enumerate(batch, start=1)
        ]
        records = self.record_repo.bulk_create(rows)

        user.has_active_session = True
        user.last_interaction_at = now
        self.metric_repo.record_sent(user.id, today, len(records))
        self.db.commit()

        state_counts: Dict[PhraseState, int] = {}
        for record in records:
            state = PhraseState(record.state)
            state_counts[state] = state_counts.get(state, 0) + 1

        logger.info(f"创建会话: session={session.id}, 学员={user.id}, 句子数={len(records)}")
        return self._result(
            session,
            sorted(records, key=lambda record: record.order_in_session),
            False,
            motivational_message(state_counts)
        )

    def _result(self, session: PracticeSession, records: List[LearningRecord], resumed: bool,
                message: str) -> StartSessionResult:
        phrases = self.phrase_repo.find_phrases_by_ids([record.phrase_id for record in records])
        return StartSessionResult(
            session,
            records,
            resumed=resumed,
            motivational_message=message,
            catalog={phrase.id: phrase for phrase in phrases}
        )

    def _resume_after_conflict(self, user_id: int) -> StartSessionResult:
        try:
            active = self.session_repo.get_active_session(user_id)
            if active:
                pending = self.record_repo.get_pending_for_session(active.id)
                if pending:
                    return self._result(active, pending, True, RESUME_MESSAGE)
        except SQLAlchemyError as e:
            logger.error(f"恢复会话失败: {e}")
        raise TransientStoreError()

    def _complete(self, session: PracticeSession, user: User, now: datetime):
        """标记会话完成并清除学员的进行中标记，不提交事务"""
        session.status = SessionStatus.COMPLETED
        session.completed_at = now
        user.has_active_session = False
        self.db.flush()

    def complete_session(self, session: PracticeSession, user: User, now: datetime):
        """作答完最后一个句子时调用，不提交事务"""
        self._complete(session, user, now)
        logger.info(f"会话完成: session={session.id}, 答对={session.correct_count}, 答错={session.incorrect_count}")

    def get_session(self, session_id: int) -> Optional[PracticeSession]:
        """获取会话"""
        return self.session_repo.get_by_id(session_id)

    def get_session_records(self, session_id: int) -> List[LearningRecord]:
        """获取会话的全部记录"""
        return self.record_repo.get_session_records(session_id)

    def get_user_sessions(self, user_id: int, limit: int = 10) -> List[PracticeSession]:
        """获取学员会话历史"""
        self.user_service.get_user(user_id)
        return self.session_repo.get_user_sessions(user_id, limit)

    def abandon_session(self, session_id: int, now: datetime = None) -> PracticeSession:
        """
        放弃进行中的会话

        Raises:
            RecordNotFoundError: 会话不存在
            SessionConflictError: 会话不是进行中状态
        """
        now = now or utc_now()
        session = self.session_repo.get_by_id(session_id)
        if not session:
            raise RecordNotFoundError("Sessão não encontrada")
        if session.status != SessionStatus.ACTIVE:
            raise SessionConflictError("Sessão não está ativa")

        try:
            session.status = SessionStatus.ABANDONED
            session.completed_at = now
            session.user.has_active_session = False
            self.db.commit()
            self.db.refresh(session)
            logger.info(f"会话已放弃: session={session_id}")
            return session
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"放弃会话失败: {e}")
            raise TransientStoreError()
