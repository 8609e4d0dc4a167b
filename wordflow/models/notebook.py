from sqlalchemy import Column, String, Integer, Text
from .base import BaseModel
from .enums import NotebookKind, CatalogStatus, enum_column_type

"""
句子本模型
按主题划分的句子集合，包括名称、描述、类型、句子总数、图标颜色和状态。
"""
class Notebook(BaseModel):
    __tablename__ = "notebooks"

    name = Column(String(100), nullable=False)
    description = Column(Text)
    kind = Column(enum_column_type(NotebookKind), nullable=False, default=NotebookKind.DEFAULT)
    total_phrases = Column(Integer, nullable=False, default=0)
    icon = Column(String(20))
    color = Column(String(20))
    status = Column(enum_column_type(CatalogStatus), nullable=False, default=CatalogStatus.ACTIVE)
