# app/core/policy.py
"""
Access policy: чистая функция решения (actor, resource, action) -> Decision.

Никаких запросов к БД здесь нет: всё, что нужно для решения, уже загружено
в actor/resource. Правила применяются строго по порядку:

1. нет actor -> Unauthenticated;
2. actor заблокирован -> Blocked;
3-5. правила владения/видимости для шаблонов, форм, комментариев;
6. админ-действия требуют роли ADMIN и запрещают действия над собой
   (понижение своей роли, блокировка/удаление себя);
7. нечитающие админ-действия требуют "свежей" сессии.
"""
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from app.core.clock import as_utc, utcnow
from app.core.enums import UserRole
from app.core.exceptions import (
    AccountBlockedError,
    AuthenticationError,
    AuthorizationError,
    StaleSessionError,
)
from app.core.settings import settings


class Action(str, enum.Enum):
    TEMPLATE_READ = "template:read"
    TEMPLATE_WRITE = "template:write"
    TEMPLATE_DELETE = "template:delete"
    TEMPLATE_RESULTS = "template:results"
    FORM_READ = "form:read"
    FORM_WRITE = "form:write"
    FORM_DELETE = "form:delete"
    COMMENT_DELETE = "comment:delete"
    USER_LIST = "user:list"
    USER_ROLE_CHANGE = "user:role"
    USER_BLOCK = "user:block"
    USER_DELETE = "user:delete"
    PLATFORM_STATS = "platform:stats"


class DenyReason(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    BLOCKED = "blocked"
    FORBIDDEN = "forbidden"
    SELF_ACTION = "self_action"
    STALE_SESSION = "stale_session"


ADMIN_ACTIONS = frozenset({
    Action.USER_LIST,
    Action.USER_ROLE_CHANGE,
    Action.USER_BLOCK,
    Action.USER_DELETE,
    Action.PLATFORM_STATS,
})

READ_ACTIONS = frozenset({
    Action.TEMPLATE_READ,
    Action.TEMPLATE_RESULTS,
    Action.FORM_READ,
    Action.USER_LIST,
    Action.PLATFORM_STATS,
})


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: DenyReason, message: str) -> Decision:
    return Decision(False, reason, message)


def is_admin(actor: Any) -> bool:
    return actor is not None and actor.role == UserRole.ADMIN


def session_reference_time(actor: Any) -> Optional[datetime]:
    """
    last_active на момент начала запроса. Зависимость аутентификации
    сохраняет его в previous_last_active до того, как обновить метку.
    """
    previous = getattr(actor, "previous_last_active", None)
    return as_utc(previous if previous is not None else actor.last_active)


def _can_read_template(actor: Any, template: Any) -> bool:
    if template.is_public or template.owner_id == actor.id or is_admin(actor):
        return True
    return actor.id in template.allowed_user_ids


def _owns(actor: Any, owner_id: int) -> bool:
    return owner_id == actor.id or is_admin(actor)


def authorize(
    actor: Any,
    resource: Any,
    action: Action,
    *,
    new_role: Optional[str] = None,
    new_blocked: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> Decision:
    """
    Решение о доступе. resource: Template / Form / Comment / User (цель
    админ-действия) или None для действий без ресурса (список пользователей,
    статистика платформы).
    """
    if actor is None:
        return deny(DenyReason.UNAUTHENTICATED, "Authentication required")
    if actor.is_blocked:
        return deny(DenyReason.BLOCKED, "Account is blocked")

    if action == Action.TEMPLATE_READ:
        if _can_read_template(actor, resource):
            return ALLOW
        return deny(DenyReason.FORBIDDEN, "Not authorized to access this template")

    if action in (Action.TEMPLATE_WRITE, Action.TEMPLATE_DELETE, Action.TEMPLATE_RESULTS):
        if _owns(actor, resource.owner_id):
            return ALLOW
        return deny(DenyReason.FORBIDDEN, "Only the template owner or an admin can do this")

    if action in (Action.FORM_READ, Action.FORM_WRITE, Action.FORM_DELETE):
        if _owns(actor, resource.author_id):
            return ALLOW
        return deny(DenyReason.FORBIDDEN, "Only the form author or an admin can do this")

    if action == Action.COMMENT_DELETE:
        if _owns(actor, resource.author_id):
            return ALLOW
        return deny(DenyReason.FORBIDDEN, "Only the comment author or an admin can do this")

    if action in ADMIN_ACTIONS:
        if not is_admin(actor):
            return deny(DenyReason.FORBIDDEN, "Admin role required")

        is_self = resource is not None and resource.id == actor.id
        if is_self:
            if action == Action.USER_ROLE_CHANGE and new_role != UserRole.ADMIN:
                return deny(DenyReason.SELF_ACTION, "Admins cannot demote themselves")
            if action == Action.USER_BLOCK and new_blocked is not False:
                return deny(DenyReason.SELF_ACTION, "Admins cannot block themselves")
            if action == Action.USER_DELETE:
                return deny(DenyReason.SELF_ACTION, "Admins cannot delete their own account from the admin panel")

        if action not in READ_ACTIONS:
            reference = session_reference_time(actor)
            current = as_utc(now) if now is not None else utcnow()
            window = timedelta(hours=settings.SESSION_FRESHNESS_HOURS)
            if reference is None or current - reference > window:
                return deny(DenyReason.STALE_SESSION, "Re-authentication required: session is stale")
        return ALLOW

    return deny(DenyReason.FORBIDDEN, f"Unknown action: {action}")


def enforce(actor: Any, resource: Any, action: Action, **context: Any) -> None:
    """authorize() + перевод отказа в исключение приложения."""
    decision = authorize(actor, resource, action, **context)
    if decision.allowed:
        return
    if decision.reason == DenyReason.UNAUTHENTICATED:
        raise AuthenticationError(decision.message)
    if decision.reason == DenyReason.BLOCKED:
        raise AccountBlockedError(decision.message)
    if decision.reason == DenyReason.STALE_SESSION:
        raise StaleSessionError(decision.message)
    raise AuthorizationError(decision.message)
