from typing import List, Optional, TypeVar, Generic
from sqlalchemy.orm import Session

T = TypeVar('T')

class BaseRepository(Generic[T]):
    """
    基础Repository类，提供通用的CRUD操作

    只做 add/flush，不提交事务；commit 和 rollback 由服务层负责。
    """

    def __init__(self, db: Session, model_class: T):
        self.db = db
        self.model_class = model_class

    def get_by_id(self, id: int) -> Optional[T]:
        """根据ID获取记录"""
        return self.db.query(self.model_class).filter(self.model_class.id == id).first()

    def create(self, **kwargs) -> T:
        """创建新记录"""
        instance = self.model_class(**kwargs)
        self.db.add(instance)
        self.db.flush()
        return instance

    def bulk_create(self, rows: List[dict]) -> List[T]:
        """批量创建记录"""
        instances = [self.model_class(**row) for row in rows]
        self.db.add_all(instances)
        self.db.flush()
        return instances

