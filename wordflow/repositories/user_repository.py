from typing import Optional
from sqlalchemy.orm import Session
from wordflow.models.user import User
from wordflow.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_by_email(self, email: str) -> Optional[User]:
        """根据邮箱获取学员"""
        return self.db.query(User).filter(User.email == email).first()
