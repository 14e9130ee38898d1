#app/api/auth.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    AuthResponse,
    ProfileResponse,
)
from app.schemas.user import UserRead, ProfileUpdate
from app.schemas.response import MessageResponse
from app.crud.user import (
    authenticate_user,
    create_user,
    touch_last_active,
    update_profile,
)
from app.services.cascade import delete_user_account
from app.core.security import create_access_token
from app.core.exceptions import AccountBlockedError, ValidationError
from app.core.enums import UserRole
from app.dependencies import get_db, get_current_user
from app.core.settings import settings
from app.models.user import User as DBUser
import logging

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger("FormBuilder.Auth")

ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES


def _issue_token(user: DBUser) -> str:
    token, _ = create_access_token(user.id, user.role.value)
    return token


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
):
    """
    Регистрация: роль всегда USER, сразу выдаётся токен.
    """
    payload = data.model_dump()
    payload["role"] = UserRole.USER
    user = create_user(db, payload)
    logger.info(f"Registered user {user.id}")
    return AuthResponse(
        token=_issue_token(user),
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserRead.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse, status_code=status.HTTP_200_OK)
def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Логин по email + password. Ошибка не уточняет, что именно неверно.
    """
    user = authenticate_user(db, data.email, data.password)
    if not user:
        logger.warning(f"Failed login attempt for {data.email}")
        raise ValidationError("Invalid email or password")
    if user.is_blocked:
        raise AccountBlockedError()

    touch_last_active(db, user)
    return AuthResponse(
        token=_issue_token(user),
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserRead.model_validate(user),
    )


@router.get("/me", response_model=UserRead)
def get_me(current_user: DBUser = Depends(get_current_user)):
    """
    Получить данные текущего пользователя.
    """
    return current_user


@router.put("/profile", response_model=ProfileResponse)
def update_my_profile(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Частичное обновление профиля. При смене пароля выдаётся новый токен.
    """
    user, password_changed = update_profile(db, current_user, data.model_dump(exclude_unset=True))
    return ProfileResponse(
        user=UserRead.model_validate(user),
        token=_issue_token(user) if password_changed else None,
    )


@router.delete("/profile", response_model=MessageResponse)
def delete_my_profile(
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Удалить собственный аккаунт вместе с шаблонами, формами, лайками и комментариями.
    """
    delete_user_account(db, current_user)
    return MessageResponse(message="Account deleted")
