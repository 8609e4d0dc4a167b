from typing import List, Optional, Iterable
from sqlalchemy.orm import Session
from sqlalchemy import func

from wordflow.models.phrase import Phrase
from wordflow.models.enums import CatalogStatus, LearnerLevel
from wordflow.repositories.base import BaseRepository


class PhraseRepository(BaseRepository[Phrase]):
    """
    句子目录Repository
    """

    def __init__(self, db: Session):
        super().__init__(db, Phrase)

    def find_phrases(self, level: LearnerLevel, exclude_ids: Iterable[int] = (), limit: int = None,
                     notebook_id: Optional[int] = None) -> List[Phrase]:
        """
        按水平查找上架句子

        Args:
            level: 学员水平
            exclude_ids: 需要排除的句子ID（学员已经见过的）
            limit: 最多返回数量
            notebook_id: 只在该句子本中查找

        Returns:
            List[Phrase]: 句子列表，按ID排序
        """
        query = self.db.query(Phrase).filter(
            Phrase.level == level,
            Phrase.status == CatalogStatus.ACTIVE
        )

        if notebook_id is not None:
            query = query.filter(Phrase.notebook_id == notebook_id)

        exclude_ids = list(exclude_ids)
        if exclude_ids:
            query = query.filter(Phrase.id.notin_(exclude_ids))

        query = query.order_by(Phrase.id)
        if limit:
            query = query.limit(limit)

        return query.all()

    def find_phrases_by_ids(self, phrase_ids: List[int]) -> List[Phrase]:
        """
        根据ID列表获取句子

        Args:
            phrase_ids: 句子ID列表

        Returns:
            List[Phrase]: 句子列表
        """
        if not phrase_ids:
            return []
        return self.db.query(Phrase).filter(Phrase.id.in_(phrase_ids)).all()

    def count_active(self, level: Optional[LearnerLevel] = None, notebook_id: Optional[int] = None) -> int:
        """统计上架句子数量"""
        query = self.db.query(func.count(Phrase.id)).filter(Phrase.status == CatalogStatus.ACTIVE)
        if level is not None:
            query = query.filter(Phrase.level == level)
        if notebook_id is not None:
            query = query.filter(Phrase.notebook_id == notebook_id)
        return query.scalar() or 0
