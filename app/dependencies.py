# app/dependencies.py

from typing import Generator, Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.core.security import bearer_scheme, decode_access_token
from app.core.exceptions import AccountBlockedError, AuthenticationError
from app.core.policy import Action, enforce
from app.models.user import User
from app.database import SessionLocal
from app.crud import user as crud_user

def get_db() -> Generator[Session, None, None]:
    """
    Создает и возвращает сессию базы данных, гарантирует закрытие после использования.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def user_from_token(db: Session, token: Optional[str]) -> User:
    """
    Пользователь по access-токену: 401, если токена нет, он невалиден или
    пользователь удалён; 403, если аккаунт заблокирован.
    """
    if not token:
        raise AuthenticationError("Not authenticated")
    payload = decode_access_token(token)
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid token payload")

    user = crud_user.get_user(db, user_id)
    if user is None:
        raise AuthenticationError("User no longer exists")
    if user.is_blocked:
        raise AccountBlockedError()
    return user

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Проверяет bearer-токен и возвращает пользователя. Заодно обновляет
    last_active (best-effort), запомнив прежнее значение для проверки
    свежести сессии.
    """
    user = user_from_token(db, credentials.credentials if credentials is not None else None)
    user.previous_last_active = user.last_active
    crud_user.touch_last_active(db, user)
    return user

def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Доступ к админ-панели (только чтение). Действия с изменениями
    дополнительно проверяются в обработчиках (свежесть сессии, запрет на себя).
    """
    enforce(current_user, None, Action.USER_LIST)
    return current_user

# Template dependencies
from app.models.template import Template as TemplateModel
from app.models.form import Form as FormModel
from app.crud.template import get_template as get_template_crud
from app.crud.form import get_form as get_form_crud

def get_template_for_user_or_404_403(
    template_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> TemplateModel:
    """
    Получить шаблон, если пользователь может его видеть, иначе 404/403.
    """
    template = get_template_crud(db, template_id)
    enforce(current_user, template, Action.TEMPLATE_READ)
    return template

def get_owned_template_or_404_403(
    template_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> TemplateModel:
    """
    Получить шаблон для изменения: владелец или ADMIN.
    """
    template = get_template_crud(db, template_id)
    enforce(current_user, template, Action.TEMPLATE_WRITE)
    return template

def get_form_for_user_or_404_403(
    form_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> FormModel:
    """
    Получить форму: автор или ADMIN.
    """
    form = get_form_crud(db, form_id)
    enforce(current_user, form, Action.FORM_READ)
    return form
