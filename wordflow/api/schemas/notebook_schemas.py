from pydantic import BaseModel, ConfigDict
from typing import Optional, List

from wordflow.models.enums import NotebookKind, CatalogStatus


class NotebookResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    kind: NotebookKind
    total_phrases: int
    icon: Optional[str] = None
    color: Optional[str] = None
    status: CatalogStatus

    model_config = ConfigDict(
        from_attributes=True
    )


class NotebookListResponse(BaseModel):
    notebooks: List[NotebookResponse]
    total: int
