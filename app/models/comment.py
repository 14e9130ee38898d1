#app/models/comment.py
from datetime import datetime
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from app.models.base import Base

class Comment(Base):
    """Комментарий к шаблону (append-only; удаляет автор или ADMIN)."""
    __tablename__ = "comments"

    id: int = Column(Integer, primary_key=True, index=True)
    template_id: int = Column(Integer, ForeignKey("templates.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    text: str = Column(Text, nullable=False)
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    author = relationship("User")

    def __repr__(self):
        return f"<Comment(id={self.id}, template_id={self.template_id}, author_id={self.author_id})>"
