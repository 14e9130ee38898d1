#app/models/user.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Enum, Text, func
)
from app.core.enums import UserRole
from app.models.base import Base

class User(Base):
    """
    User: аккаунт пользователя. Роль (USER/MODERATOR/ADMIN), блокировка, last_active.
    Удаление аккаунта каскадно удаляет шаблоны, формы, лайки и комментарии
    (см. app/services/cascade.py).
    """
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(128), nullable=False, doc="Отображаемое имя")
    email: str = Column(String(255), unique=True, nullable=False, index=True, doc="Email")
    password_hash: str = Column(String(255), nullable=False, doc="Хэш пароля (никогда не хранить сырой пароль!)")
    role: UserRole = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.USER, doc="Роль пользователя")
    is_blocked: bool = Column(Boolean, default=False, nullable=False, doc="Аккаунт заблокирован")
    avatar: str = Column(Text, nullable=True, doc="URL аватара")
    last_active: datetime = Column(DateTime(timezone=True), nullable=True, doc="Последняя активность")
    created_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, doc="Дата создания")
    updated_at: datetime = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Дата обновления")

    def __repr__(self):
        return (
            f"<User(id={self.id}, email='{self.email}', role={self.role}, blocked={self.is_blocked})>"
        )
