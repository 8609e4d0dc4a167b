import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from wordflow.utils.database import get_db
from wordflow.repositories.notebook_repository import NotebookRepository
from wordflow.api.schemas.notebook_schemas import NotebookResponse, NotebookListResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=NotebookListResponse)
async def list_notebooks(db: Session = Depends(get_db)):
    """
    获取所有上架的句子本
    """
    try:
        notebooks = NotebookRepository(db).get_active_notebooks()
        return {
            "notebooks": [NotebookResponse.model_validate(notebook) for notebook in notebooks],
            "total": len(notebooks)
        }
    except Exception as e:
        logger.error(f"获取句子本列表失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取句子本列表失败"
        )


@router.get("/{notebook_id}", response_model=NotebookResponse)
async def get_notebook(notebook_id: int, db: Session = Depends(get_db)):
    """
    获取句子本详情
    """
    try:
        notebook = NotebookRepository(db).get_by_id(notebook_id)
        if not notebook:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="句子本不存在"
            )
        return notebook
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"获取句子本失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取句子本失败"
        )
