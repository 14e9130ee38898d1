#app/schemas/auth.py
from pydantic import BaseModel, Field
from typing import Optional
from .user import UserRead

class RegisterRequest(BaseModel):
    """
    RegisterRequest: тело запроса регистрации. Формат email и длина пароля
    проверяются в CRUD (ответ 400, а не 422).
    """
    name: str = Field(..., min_length=1, max_length=128, examples=["John Doe"])
    email: str = Field(..., examples=["john.doe@example.com"])
    password: str = Field(..., examples=["StrongPassw0rd!"])

class LoginRequest(BaseModel):
    """
    LoginRequest: тело запроса для входа (email + пароль).
    """
    email: str = Field(..., examples=["john.doe@example.com"])
    password: str = Field(..., examples=["StrongPassw0rd!"])

class AuthResponse(BaseModel):
    """
    AuthResponse: токен + пользователь (логин, регистрация).
    """
    token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Тип токена")
    expires_in: int = Field(..., description="Время жизни токена (секунды)", examples=[3600])
    user: UserRead

class ProfileResponse(BaseModel):
    """
    ProfileResponse: обновлённый профиль; token присутствует, если сменился пароль.
    """
    user: UserRead
    token: Optional[str] = None
