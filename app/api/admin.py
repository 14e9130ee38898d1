#app/api/admin.py
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session
from typing import Any, Optional
from app.schemas.user import UserRead, BlockUpdate
from app.schemas.response import MessageResponse, Page
from app.crud import user as crud_user
from app.services.cascade import delete_user_account
from app.core.enums import UserRole
from app.core.exceptions import ValidationError
from app.core.policy import Action, enforce
from app.core.settings import settings
from app.dependencies import get_db, get_current_admin
from app.models.user import User as DBUser
import logging

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger("FormBuilder.AdminAPI")


@router.get("/users", response_model=Page[UserRead])
def list_users(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    admin: DBUser = Depends(get_current_admin),
):
    """
    Список пользователей с поиском по имени или email.
    """
    items, pagination = crud_user.get_users(db, search=search, page=page, limit=limit)
    return {"data": items, "pagination": pagination}


@router.put("/users/{user_id}/role", response_model=UserRead)
def change_role(
    user_id: int,
    data: Any = Body(None, examples=[{"role": "MODERATOR"}]),
    db: Session = Depends(get_db),
    admin: DBUser = Depends(get_current_admin),
):
    """
    Сменить роль. Запрет на понижение себя проверяется раньше, чем
    корректность тела и значения роли: тело не валидируется заранее, поэтому
    для самого себя любое тело даёт 403, а не 422.
    """
    target = crud_user.get_user_or_404(db, user_id)
    new_role = data.get("role") if isinstance(data, dict) else None
    enforce(admin, target, Action.USER_ROLE_CHANGE, new_role=new_role)
    try:
        role = UserRole(new_role)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid role: {new_role!r}")
    logger.info(f"Admin {admin.id} sets role of user {target.id} to {role.value}")
    return crud_user.set_role(db, target, role)


@router.put("/users/{user_id}/block", response_model=UserRead)
def change_block(
    user_id: int,
    data: BlockUpdate,
    db: Session = Depends(get_db),
    admin: DBUser = Depends(get_current_admin),
):
    """
    Заблокировать / разблокировать. Без is_blocked флаг переключается.
    """
    target = crud_user.get_user_or_404(db, user_id)
    new_blocked = (not target.is_blocked) if data.is_blocked is None else data.is_blocked
    enforce(admin, target, Action.USER_BLOCK, new_blocked=new_blocked)
    logger.info(f"Admin {admin.id} sets is_blocked={new_blocked} for user {target.id}")
    return crud_user.set_blocked(db, target, new_blocked)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: DBUser = Depends(get_current_admin),
):
    """
    Удалить чужой аккаунт со всеми данными.
    """
    target = crud_user.get_user_or_404(db, user_id)
    enforce(admin, target, Action.USER_DELETE)
    logger.info(f"Admin {admin.id} deletes user {target.id}")
    delete_user_account(db, target)
    return MessageResponse(message="User deleted")
