from typing import Optional, List, Dict, Iterable, Set
from datetime import date, datetime
from sqlalchemy.orm import Session, Query
from sqlalchemy import func, or_

from wordflow.models.learning_record import LearningRecord
from wordflow.models.phrase import Phrase
from wordflow.models.session import PracticeSession
from wordflow.models.enums import PhraseState, CatalogStatus, SessionStatus, LearnerLevel
from wordflow.repositories.base import BaseRepository


class LearningRecordRepository(BaseRepository[LearningRecord]):
    """
    学习记录Repository

    一个句子的当前状态以该学员对它最近一次作答的记录为准（按 answered_at、id 倒序取第一条）。
    """

    def __init__(self, db: Session):
        super().__init__(db, LearningRecord)

    def get_pending(self, user_id: int, session_id: int, phrase_id: int) -> Optional[LearningRecord]:
        """获取会话中某句子的待作答记录"""
        return self.db.query(LearningRecord).filter(
            LearningRecord.user_id == user_id,
            LearningRecord.session_id == session_id,
            LearningRecord.phrase_id == phrase_id,
            LearningRecord.knows.is_(None)
        ).first()

    def get_answered(self, user_id: int, session_id: int, phrase_id: int) -> Optional[LearningRecord]:
        """获取会话中某句子已作答的记录"""
        return self.db.query(LearningRecord).filter(
            LearningRecord.user_id == user_id,
            LearningRecord.session_id == session_id,
            LearningRecord.phrase_id == phrase_id,
            LearningRecord.knows.isnot(None)
        ).first()

    def get_session_records(self, session_id: int) -> List[LearningRecord]:
        """获取会话全部记录，按会话内顺序"""
        return self.db.query(LearningRecord).filter(
            LearningRecord.session_id == session_id
        ).order_by(LearningRecord.order_in_session).all()

    def get_pending_for_session(self, session_id: int) -> List[LearningRecord]:
        """获取会话中还没作答的记录，按会话内顺序"""
        return self.db.query(LearningRecord).filter(
            LearningRecord.session_id == session_id,
            LearningRecord.knows.is_(None)
        ).order_by(LearningRecord.order_in_session).all()

    def get_seen_phrase_ids(self, user_id: int) -> Set[int]:
        """
        学员见过的句子ID

        已作答的记录，加上进行中会话里的待作答记录；被放弃的会话里没答的句子不算见过。
        """
        rows = self.db.query(LearningRecord.phrase_id).join(
            PracticeSession, PracticeSession.id == LearningRecord.session_id
        ).filter(
            LearningRecord.user_id == user_id,
            or_(
                LearningRecord.knows.isnot(None),
                PracticeSession.status == SessionStatus.ACTIVE
            )
        ).distinct().all()
        return {row[0] for row in rows}

    def _latest_answered_query(self, user_id: int, active_only: bool = True,
                               level: LearnerLevel = None, notebook_id: int = None) -> Query:
        ranked = self.db.query(
            LearningRecord.id.label("record_id"),
            func.row_number().over(
                partition_by=LearningRecord.phrase_id,
                order_by=(LearningRecord.answered_at.desc(), LearningRecord.id.desc())
            ).label("position")
        ).filter(
            LearningRecord.user_id == user_id,
            LearningRecord.knows.isnot(None)
        ).subquery()

        query = self.db.query(LearningRecord).join(
            ranked, LearningRecord.id == ranked.c.record_id
        ).filter(ranked.c.position == 1)

        if active_only:
            query = query.join(Phrase, Phrase.id == LearningRecord.phrase_id).filter(
                Phrase.status == CatalogStatus.ACTIVE
            )
            if notebook_id is not None:
                query = query.filter(Phrase.notebook_id == notebook_id)
            elif level is not None:
                query = query.filter(Phrase.level == level)
        return query

    def get_latest_answered(self, user_id: int, states: Iterable[PhraseState] = None,
                            due_on: date = None, limit: int = None,
                            active_only: bool = True) -> List[LearningRecord]:
        """
        获取学员每个句子最近一次作答的记录

        Args:
            user_id: 学员ID
            states: 只返回这些状态
            due_on: 只返回 next_eligible_date <= due_on 的记录
            limit: 最多返回数量
            active_only: 只包括上架句子

        Returns:
            List[LearningRecord]: 按 next_eligible_date 升序（最早到期的在前）
        """
        query = self._latest_answered_query(user_id, active_only)

        if states is not None:
            query = query.filter(LearningRecord.state.in_(list(states)))
        if due_on is not None:
            query = query.filter(LearningRecord.next_eligible_date <= due_on)

        query = query.order_by(LearningRecord.next_eligible_date.asc(), LearningRecord.id.asc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def count_latest_by_state(self, user_id: int, level: LearnerLevel = None,
                              notebook_id: int = None) -> Dict[PhraseState, int]:
        """按状态统计句子数量（以最近一次作答为准），可限定句子本或水平"""
        counts = {state: 0 for state in PhraseState}
        for record in self._latest_answered_query(user_id, level=level, notebook_id=notebook_id).all():
            counts[PhraseState(record.state)] += 1
        return counts

    def count_due(self, user_id: int, states: Iterable[PhraseState], due_on: date,
                  exact: bool = False) -> int:
        """统计到期句子数；exact=True 时只统计恰好在 due_on 当天到期的"""
        query = self._latest_answered_query(user_id).filter(
            LearningRecord.state.in_(list(states))
        )
        if exact:
            query = query.filter(LearningRecord.next_eligible_date == due_on)
        else:
            query = query.filter(LearningRecord.next_eligible_date <= due_on)
        return query.count()

    def mark_answered(self, record_id: int, knows: bool, answered_at: datetime, state: PhraseState,
                      repetitions: int, learning_level: int, first_attempt_correct: Optional[bool],
                      next_eligible_date: date) -> int:
        """
        把待作答记录标记为已作答

        只有 knows 仍为空时才会更新，返回受影响行数；0 表示并发请求已经抢先作答。
        """
        return self.db.query(LearningRecord).filter(
            LearningRecord.id == record_id,
            LearningRecord.knows.is_(None)
        ).update({
            LearningRecord.knows: knows,
            LearningRecord.answered_at: answered_at,
            LearningRecord.state: state,
            LearningRecord.repetitions: repetitions,
            LearningRecord.learning_level: learning_level,
            LearningRecord.first_attempt_correct: first_attempt_correct,
            LearningRecord.next_eligible_date: next_eligible_date,
            LearningRecord.updated_at: answered_at,
        }, synchronize_session=False)
