"""
句子选择服务
为一次会话挑选一批句子，按固定优先级依次填充：
    1. learning 且已到期（最早到期的在前）
    2. confirming 且已到期
    3. 从未见过的新句子（按学员水平，随机打乱后截断）
    4. mastered / maintenance 且已到期
同一批次内一个句子只出现一次。
"""

import logging
import random
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Dict

from sqlalchemy.orm import Session

from wordflow.config.settings import settings
from wordflow.models.enums import PhraseState, LearnerLevel
from wordflow.models.learning_record import LearningRecord
from wordflow.models.phrase import Phrase
from wordflow.models.user import User
from wordflow.repositories.learning_record_repository import LearningRecordRepository
from wordflow.repositories.phrase_repository import PhraseRepository
from wordflow.services.errors import ContentExhaustedError

logger = logging.getLogger(__name__)


class SelectionTier(Enum):
    LEARNING_DUE = "learning_due"
    CONFIRMING_DUE = "confirming_due"
    NEW = "new"
    MAINTENANCE_DUE = "maintenance_due"


@dataclass
class SelectedPhrase:
    """选中的句子，previous 为该句子最近一次作答的记录（新句子为 None）"""
    phrase: Phrase
    tier: SelectionTier
    previous: Optional[LearningRecord] = None

    @property
    def phrase_id(self) -> int:
        return self.phrase.id


class PhraseSelector:
    def __init__(self, db: Session, rng: random.Random = None):
        self.db = db
        self.record_repo = LearningRecordRepository(db)
        self.phrase_repo = PhraseRepository(db)
        if rng is None:
            rng = random.Random(settings.SELECTION_SEED)
        self.rng = rng
        logger.info("句子选择服务初始化完成")

    def select_batch(self, user: User, quota: int, today: date) -> List[SelectedPhrase]:
        """
        为学员挑选一批句子

        Args:
            user: 学员
            quota: 本次最多句子数
            today: 学员时区下的今天

        Returns:
            List[SelectedPhrase]: 有序批次

        Raises:
            ContentExhaustedError: 四个优先级都没有可用句子
        """
        batch: List[SelectedPhrase] = []
        chosen = set()

        def take(records: List[LearningRecord], tier: SelectionTier):
            for record in records:
                if len(batch) >= quota:
                    return
                if record.phrase_id in chosen:
                    continue
                batch.append(SelectedPhrase(phrase=record.phrase, tier=tier, previous=record))
                chosen.add(record.phrase_id)

        if quota > 0:
            take(self._due(user.id, [PhraseState.LEARNING], today, quota), SelectionTier.LEARNING_DUE)

        if len(batch) < quota:
            take(self._due(user.id, [PhraseState.CONFIRMING], today, quota), SelectionTier.CONFIRMING_DUE)

        if len(batch) < quota:
            for phrase in self._new_phrases(user, quota - len(batch)):
                if phrase.id in chosen:
                    continue
                batch.append(SelectedPhrase(phrase=phrase, tier=SelectionTier.NEW))
                chosen.add(phrase.id)

        if len(batch) < quota:
            take(
                self._due(user.id, [PhraseState.MASTERED, PhraseState.MAINTENANCE], today, quota),
                SelectionTier.MAINTENANCE_DUE
            )

        if not batch:
            logger.info(f"学员 {user.id} 没有可用句子")
            raise ContentExhaustedError()

        logger.info(f"学员 {user.id} 选出 {len(batch)} 个句子: {self._summary(batch)}")
        return batch

    def _due(self, user_id: int, states: List[PhraseState], today: date, limit: int) -> List[LearningRecord]:
        return self.record_repo.get_latest_answered(user_id, states=states, due_on=today, limit=limit)

    def _new_phrases(self, user: User, remaining: int) -> List[Phrase]:
        """从未见过的新句子：先取候选池，打乱后截断到剩余名额"""
        seen_ids = self.record_repo.get_seen_phrase_ids(user.id)
        level = LearnerLevel(user.level) if user.level else LearnerLevel(settings.DEFAULT_LEVEL)
        pool_size = max(remaining, settings.NEW_PHRASE_CANDIDATE_POOL)

        candidates = self.phrase_repo.find_phrases(
            level,
            exclude_ids=seen_ids,
            limit=pool_size,
            notebook_id=user.active_notebook_id
        )
        self.rng.shuffle(candidates)
        return candidates[:remaining]

    @staticmethod
    def _summary(batch: List[SelectedPhrase]) -> Dict[str, int]:
        summary: Dict[str, int] = {}
        for item in batch:
            summary[item.tier.value] = summary.get(item.tier.value, 0) + 1
        return summary
