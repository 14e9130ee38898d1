#app/crud/user.py
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_
from email_validator import EmailNotValidError, validate_email
from typing import Any, Dict, List, Optional, Tuple
from datetime import timedelta
import logging

from app.models.user import User
from app.core.enums import UserRole
from app.core.clock import as_utc, utcnow
from app.core.pagination import paginate
from app.core.security import get_password_hash, verify_password
from app.core.settings import settings
from app.core.exceptions import (
    DuplicateEmail,
    InternalError,
    UserNotFound,
    ValidationError,
)

logger = logging.getLogger("FormBuilder.Users")


def normalize_email(email: str) -> str:
    """Проверить формат email и привести к нижнему регистру."""
    email = (email or "").strip()
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Invalid email format")
    return email.lower()


def validate_password(password: Optional[str]) -> str:
    if not password or len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long")
    return password


def create_user(db: Session, data: dict) -> User:
    """
    Создать пользователя. Роль по умолчанию USER; email уникален.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Name is required")
    email = normalize_email(data.get("email"))
    password = validate_password(data.get("password"))

    if get_user_by_email(db, email):
        raise DuplicateEmail()

    user = User(
        name=name,
        email=email,
        password_hash=get_password_hash(password),
        role=UserRole(data.get("role", UserRole.USER)),
        is_blocked=data.get("is_blocked", False),
        avatar=data.get("avatar"),
        last_active=utcnow(),
    )
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Created user {user.id} ({user.email}) with role {user.role.value}")
        return user
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error creating user {email}: {e}")
        raise DuplicateEmail()
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating user {email}: {e}")
        raise InternalError()


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_or_404(db: Session, user_id: int) -> User:
    user = get_user(db, user_id)
    if not user:
        raise UserNotFound(f"User with id={user_id} not found")
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == (email or "").strip().lower()).first()


def get_users_by_ids(db: Session, user_ids: List[int]) -> List[User]:
    """Загрузить пользователей по списку id; неизвестные id -> ValidationError."""
    unique_ids = sorted(set(user_ids))
    if not unique_ids:
        return []
    users = db.query(User).filter(User.id.in_(unique_ids)).all()
    missing = set(unique_ids) - {u.id for u in users}
    if missing:
        raise ValidationError(f"Unknown user ids: {', '.join(str(i) for i in sorted(missing))}")
    return users


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Вернуть пользователя, если пара email/пароль верна, иначе None.
    """
    user = get_user_by_email(db, email)
    if not user or not verify_password(password or "", user.password_hash):
        return None
    return user


def touch_last_active(db: Session, user: User) -> None:
    """
    Best-effort обновление last_active. Частые обновления пропускаются
    (LAST_ACTIVE_TOUCH_SECONDS), ошибки логируются и не пробрасываются.
    """
    now = utcnow()
    previous = as_utc(user.last_active)
    if previous is not None and now - previous < timedelta(seconds=settings.LAST_ACTIVE_TOUCH_SECONDS):
        return
    try:
        db.query(User).filter(User.id == user.id).update(
            {User.last_active: now}, synchronize_session=False
        )
        db.commit()
        user.last_active = now
    except Exception as e:
        db.rollback()
        logger.warning(f"Could not update last_active for user {user.id}: {e}")


def update_profile(db: Session, user: User, data: dict) -> Tuple[User, bool]:
    """
    Частичное обновление профиля (name, avatar, password).
    Возвращает (user, password_changed).
    """
    updates: Dict[str, Any] = {}
    if data.get("name"):
        updates["name"] = data["name"].strip()
    if data.get("avatar"):
        updates["avatar"] = data["avatar"]
    if data.get("password"):
        updates["password_hash"] = get_password_hash(validate_password(data["password"]))
    if not updates:
        raise ValidationError("No data to update")

    for field, value in updates.items():
        setattr(user, field, value)
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Updated profile of user {user.id} (fields: {', '.join(sorted(updates))})")
        return user, "password_hash" in updates
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating profile of user {user.id}: {e}")
        raise InternalError()


def get_users(db: Session, search: Optional[str] = None, page: int = 1, limit: int = 10):
    """
    Постраничный список пользователей (поиск по имени или email).
    """
    query = db.query(User)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    return paginate(query.order_by(User.id.asc()), page, limit)


def set_role(db: Session, user: User, role: UserRole) -> User:
    user.role = role
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Role of user {user.id} set to {role.value}")
        return user
    except Exception as e:
        db.rollback()
        logger.error(f"Error changing role of user {user.id}: {e}")
        raise InternalError()


def set_blocked(db: Session, user: User, is_blocked: bool) -> User:
    user.is_blocked = is_blocked
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"User {user.id} {'blocked' if is_blocked else 'unblocked'}")
        return user
    except Exception as e:
        db.rollback()
        logger.error(f"Error changing block flag of user {user.id}: {e}")
        raise InternalError()
