import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from wordflow.utils.database import get_db
from wordflow.services.errors import SchedulerError
from wordflow.services.session_service import SessionService
from wordflow.services.answer_service import AnswerService
from wordflow.api.schemas.session_schemas import (
    StartSessionRequest, StartSessionResponse, AnswerRequest, AnswerResponse,
    SessionResponse, SessionDetailResponse, SessionListResponse, SessionRecordResponse
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/start", response_model=StartSessionResponse)
async def start_session(request: StartSessionRequest, db: Session = Depends(get_db)):
    """
    开始或恢复练习会话
    """
    try:
        session_service = SessionService(db)
        result = session_service.start_or_resume(request.user_id, request.kind)
        session = result.session

        return {
            "success": True,
            "session_id": session.id,
            "kind": session.kind,
            "total_phrases": session.total_phrases,
            "answered_phrases": session.answered_count,
            "phrases": result.phrases(),
            "resumed": result.resumed,
            "motivational_message": result.motivational_message
        }
    except (HTTPException, SchedulerError):
        raise
    except Exception as e:
        logger.error(f"开始会话失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="开始会话失败"
        )


@router.post("/{session_id}/answer", response_model=AnswerResponse)
async def answer_phrase(session_id: int, request: AnswerRequest, db: Session = Depends(get_db)):
    """
    提交一个句子的作答
    """
    try:
        answer_service = AnswerService(db)
        result = answer_service.answer(request.user_id, session_id, request.phrase_id, request.knows)
        return result.to_dict()
    except (HTTPException, SchedulerError):
        raise
    except Exception as e:
        logger.error(f"提交作答失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="提交作答失败"
        )


@router.get("/user/{user_id}", response_model=SessionListResponse)
async def get_user_sessions(
    user_id: int,
    limit: int = 10,
    db: Session = Depends(get_db)
):
    """
    获取学员的会话历史
    """
    try:
        session_service = SessionService(db)
        sessions = session_service.get_user_sessions(user_id, limit)

        session_responses = [SessionResponse.model_validate(session) for session in sessions]

        return {
            "user_id": user_id,
            "sessions": session_responses,
            "total": len(session_responses)
        }
    except (HTTPException, SchedulerError):
        raise
    except Exception as e:
        logger.error(f"获取学员会话失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取学员会话失败"
        )


@router.get("/{session_id}", response_model=SessionDetailResponse)
async def get_session(session_id: int, db: Session = Depends(get_db)):
    """
    获取会话详情
    """
    try:
        session_service = SessionService(db)
        session = session_service.get_session(session_id)
        if not session:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="会话不存在"
            )

        detail = SessionResponse.model_validate(session).model_dump()
        detail["records"] = [
            SessionRecordResponse.model_validate(record)
            for record in session_service.get_session_records(session_id)
        ]
        return detail
    except (HTTPException, SchedulerError):
        raise
    except Exception as e:
        logger.error(f"获取会话详情失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取会话详情失败"
        )


@router.post("/{session_id}/abandon", response_model=SessionResponse)
async def abandon_session(session_id: int, db: Session = Depends(get_db)):
    """
    放弃进行中的会话
    """
    try:
        session_service = SessionService(db)
        return session_service.abandon_session(session_id)
    except (HTTPException, SchedulerError):
        raise
    except Exception as e:
        logger.error(f"放弃会话失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="放弃会话失败"
        )
