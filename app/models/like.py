#app/models/like.py
from datetime import datetime
from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, func
from app.models.base import Base

class Like(Base):
    """Лайк шаблона: наличие строки = "нравится". Не более одного на (template, user)."""
    __tablename__ = "likes"

    id: int = Column(Integer, primary_key=True, index=True)
    template_id: int = Column(Integer, ForeignKey("templates.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("template_id", "user_id", name="uq_likes_template_user"),
    )

    def __repr__(self):
        return f"<Like(template_id={self.template_id}, user_id={self.user_id})>"
