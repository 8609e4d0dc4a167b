#!/usr/bin/env python3
"""
学员服务模块
处理学员注册/登录、资料修改，以及作答后的滚动统计（累计作答、累计答对、连续天数）
"""

import logging
from datetime import date, datetime
from typing import Dict, Any, Optional
from sqlalchemy.orm import Session

from wordflow.config.settings import settings
from wordflow.models.user import User
from wordflow.models.enums import LearnerLevel
from wordflow.repositories.user_repository import UserRepository
from wordflow.repositories.notebook_repository import NotebookRepository
from wordflow.scheduler.aggregates import ProfileCounters, fold_profile_answer
from wordflow.services.errors import LearnerNotFoundError


logger = logging.getLogger(__name__)


def clamp_phrases_per_day(value: Optional[int]) -> int:
    """每日句子数限制在 1..MAX_PHRASES_PER_DAY"""
    if value is None:
        return settings.DEFAULT_PHRASES_PER_DAY
    return max(1, min(int(value), settings.MAX_PHRASES_PER_DAY))


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)
        self.notebook_repo = NotebookRepository(db)
        logger.info("学员服务初始化完成")

    def register_or_login(self, email: str, user_info: Dict[str, Any]) -> User:
        """
        学员注册或登录
        - 如果学员不存在，则创建新学员
        - 如果学员已存在，则更新学员信息
        """
        try:
            existing_user = self.user_repo.get_by_email(email)

            if existing_user:
                logger.info(f"学员已存在，更新学员信息: {email}")
                user = self._apply_profile(existing_user, user_info)
            else:
                logger.info(f"创建新学员: {email}")
                user = self.user_repo.create(
                    email=email,
                    name=user_info.get("name") or "",
                    level=LearnerLevel(user_info.get("level") or settings.DEFAULT_LEVEL),
                    phrases_per_day=clamp_phrases_per_day(user_info.get("phrases_per_day")),
                    active_notebook_id=user_info.get("active_notebook_id"),
                    has_active_session=False,
                    total_seen=0,
                    total_correct=0,
                    consecutive_days=0,
                    is_active=True
                )

            self.db.commit()
            self.db.refresh(user)
            return user

        except Exception as e:
            self.db.rollback()
            logger.error(f"学员注册/登录失败: {e}")
            raise

    def get_user(self, user_id: int) -> User:
        """获取学员，不存在时抛出 LearnerNotFoundError"""
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise LearnerNotFoundError()
        return user

    def update_user(self, user_id: int, user_info: Dict[str, Any]) -> User:
        """修改学员资料"""
        user = self.get_user(user_id)
        try:
            self._apply_profile(user, user_info)
            self.db.commit()
            self.db.refresh(user)
            logger.info(f"学员资料已更新: {user_id}")
            return user
        except Exception as e:
            self.db.rollback()
            logger.error(f"更新学员资料失败: {e}")
            raise

    def _apply_profile(self, user: User, user_info: Dict[str, Any]) -> User:
        if user_info.get("name") is not None:
            user.name = user_info["name"]
        if user_info.get("level") is not None:
            user.level = LearnerLevel(user_info["level"])
        if user_info.get("phrases_per_day") is not None:
            user.phrases_per_day = clamp_phrases_per_day(user_info["phrases_per_day"])
        if "active_notebook_id" in user_info:
            notebook_id = user_info["active_notebook_id"]
            if notebook_id is not None and not self.notebook_repo.get_by_id(notebook_id):
                raise ValueError(f"句子本不存在: {notebook_id}")
            user.active_notebook_id = notebook_id
        self.db.flush()
        return user

    def session_quota(self, user: User) -> int:
        """本次会话的句子数"""
        return clamp_phrases_per_day(user.phrases_per_day)

    def apply_answer(self, user: User, knows: bool, today: date, now: datetime) -> ProfileCounters:
        """
        把一次作答计入学员统计，不提交事务

        Returns:
            ProfileCounters: 更新后的统计
        """
        counters = fold_profile_answer(
            ProfileCounters(
                total_seen=user.total_seen or 0,
                total_correct=user.total_correct or 0,
                consecutive_days=user.consecutive_days or 0,
                last_practice_date=user.last_practice_date
            ),
            knows,
            today
        )
        user.total_seen = counters.total_seen
        user.total_correct = counters.total_correct
        user.consecutive_days = counters.consecutive_days
        user.last_practice_date = counters.last_practice_date
        user.last_interaction_at = now
        self.db.flush()
        return counters
