#app/schemas/user.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from app.core.enums import UserRole

class UserSummary(BaseModel):
    """
    UserSummary: краткая карточка пользователя (автор комментария, владелец шаблона).
    """
    id: int
    name: str
    avatar: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class UserRead(BaseModel):
    """
    UserRead: схема для выдачи пользователя (response). Хэш пароля не отдаётся.
    """
    id: int
    name: str
    email: str
    role: UserRole
    is_blocked: bool = False
    avatar: Optional[str] = Field(None, examples=["https://cdn.example.com/avatars/john.jpg"], description="URL аватара")
    last_active: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ProfileUpdate(BaseModel):
    """
    ProfileUpdate: частичное обновление собственного профиля.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    avatar: Optional[str] = Field(None, description="URL аватара")
    password: Optional[str] = Field(None, description="Новый пароль (будет захеширован)")

class BlockUpdate(BaseModel):
    """
    BlockUpdate: блокировка пользователя. Без is_blocked флаг переключается.
    """
    is_blocked: Optional[bool] = None
