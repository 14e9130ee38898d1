#app/models/template.py
from datetime import datetime
from typing import List
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, Table, func, ForeignKey
)
from sqlalchemy.orm import relationship
from app.models.base import Base

# Пользователи, которым открыт приватный шаблон
template_access = Table(
    "template_access",
    Base.metadata,
    Column("template_id", Integer, ForeignKey("templates.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

template_tags = Table(
    "template_tags",
    Base.metadata,
    Column("template_id", Integer, ForeignKey("templates.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

class Template(Base):
    """
    Template: переиспользуемое определение формы: метаданные, упорядоченные вопросы,
    теги и список допущенных пользователей (для приватных шаблонов).
    """
    __tablename__ = "templates"

    id: int = Column(Integer, primary_key=True, index=True)
    title: str = Column(String(255), nullable=False, doc="Название шаблона")
    description: str = Column(Text, nullable=True, doc="Описание")
    topic: str = Column(String(128), nullable=True, index=True, doc="Тема")
    image_url: str = Column(String(512), nullable=True, doc="URL обложки")
    is_public: bool = Column(Boolean, default=True, nullable=False, doc="Публичный шаблон")
    owner_id: int = Column(Integer, ForeignKey("users.id", name="fk_template_owner_id_users"), nullable=False, index=True, doc="Владелец (user_id)")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, doc="Дата создания")
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Дата изменения")

    owner = relationship("User")
    questions = relationship("Question", order_by="Question.order", back_populates="template")
    tags = relationship("Tag", secondary=template_tags, order_by="Tag.name")
    allowed_users = relationship("User", secondary=template_access, order_by="User.id")

    @property
    def allowed_user_ids(self) -> List[int]:
        return [user.id for user in self.allowed_users]

    @property
    def tag_names(self) -> List[str]:
        return [tag.name for tag in self.tags]

    def __repr__(self):
        return (
            f"<Template(id={self.id}, title='{self.title}', owner_id={self.owner_id}, public={self.is_public})>"
        )
