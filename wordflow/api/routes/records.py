import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from wordflow.utils.database import get_db
from wordflow.models.enums import PhraseState
from wordflow.services.errors import SchedulerError
from wordflow.services.stats_service import StatsService
from wordflow.api.schemas.record_schemas import PhraseProgressListResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{user_id}/phrases", response_model=PhraseProgressListResponse)
async def get_user_phrases(
    user_id: int,
    state: Optional[PhraseState] = None,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """
    获取学员学过的句子及当前状态
    """
    try:
        stats_service = StatsService(db)
        phrases = stats_service.list_phrases(user_id, state, limit)
        return {
            "user_id": user_id,
            "state": state,
            "phrases": phrases,
            "total": len(phrases)
        }
    except (HTTPException, SchedulerError):
        raise
    except Exception as e:
        logger.error(f"获取学员句子失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取学员句子失败"
        )
