#app/models/tag.py
from sqlalchemy import Column, Integer, String
from app.models.base import Base

class Tag(Base):
    """
    Tag: тег шаблона. count денормализован: число шаблонов с этим тегом.
    """
    __tablename__ = "tags"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(64), unique=True, nullable=False, index=True, doc="Имя тега (lower-case)")
    count: int = Column(Integer, nullable=False, default=0, doc="Число шаблонов с тегом")

    def __repr__(self):
        return f"<Tag(id={self.id}, name='{self.name}', count={self.count})>"
