from sqlalchemy import Column, String, Integer, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from .base import BaseModel
from .enums import LearnerLevel, CatalogStatus, enum_column_type

"""
句子模型
句子目录条目：英文原句、翻译、解释、难度、音频地址、所属句子本和上下架状态。内容对调度引擎只读。
"""
class Phrase(BaseModel):
    __tablename__ = "phrases"

    text = Column(String(300), nullable=False)
    translation = Column(String(300), nullable=False)
    explanation = Column(Text)
    context = Column(String(200))
    level = Column(enum_column_type(LearnerLevel))
    audio_url = Column(String(300))
    notebook_id = Column(Integer, ForeignKey("notebooks.id"))
    status = Column(enum_column_type(CatalogStatus), nullable=False, default=CatalogStatus.ACTIVE)

    notebook = relationship("Notebook", backref="phrases")

    __table_args__ = (
        Index("idx_phrases_level_status", "level", "status"),
    )
