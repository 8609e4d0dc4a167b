from typing import List
from sqlalchemy.orm import Session

from wordflow.models.notebook import Notebook
from wordflow.models.enums import CatalogStatus
from wordflow.repositories.base import BaseRepository


class NotebookRepository(BaseRepository[Notebook]):
    def __init__(self, db: Session):
        super().__init__(db, Notebook)

    def get_active_notebooks(self) -> List[Notebook]:
        """获取所有上架的句子本"""
        return self.db.query(Notebook).filter(
            Notebook.status == CatalogStatus.ACTIVE
        ).order_by(Notebook.id).all()
