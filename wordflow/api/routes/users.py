import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from wordflow.utils.database import get_db
from wordflow.services.errors import SchedulerError
from wordflow.services.user_service import UserService
from wordflow.services.stats_service import StatsService
from wordflow.api.schemas.user_schemas import UserCreate, UserUpdate, UserResponse, UserStatsResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", response_model=UserResponse)
async def register_user(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    学员注册或登录
    """
    try:
        user_service = UserService(db)
        user_info = user_data.model_dump(exclude={"email"}, exclude_unset=True)
        return user_service.register_or_login(user_data.email, user_info)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"学员注册失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="学员注册失败"
        )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: Session = Depends(get_db)):
    """
    获取学员信息
    """
    try:
        user_service = UserService(db)
        return user_service.get_user(user_id)
    except (HTTPException, SchedulerError):
        raise
    except Exception as e:
        logger.error(f"获取学员信息失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取学员信息失败"
        )


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(user_id: int, user_data: UserUpdate, db: Session = Depends(get_db)):
    """
    修改学员资料（每日句子数会被限制在 1 到上限之间）
    """
    try:
        user_service = UserService(db)
        return user_service.update_user(user_id, user_data.model_dump(exclude_unset=True))
    except (HTTPException, SchedulerError):
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"更新学员信息失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="更新学员信息失败"
        )


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
async def get_user_stats(user_id: int, db: Session = Depends(get_db)):
    """
    获取学员学习统计
    """
    try:
        stats_service = StatsService(db)
        return stats_service.get_user_stats(user_id)
    except (HTTPException, SchedulerError):
        raise
    except Exception as e:
        logger.error(f"获取学员统计失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取学员统计失败"
        )
