#app/crud/tag.py
from sqlalchemy.orm import Session
from sqlalchemy import func, select
from typing import Iterable, List, Optional
import logging

from app.models.tag import Tag
from app.models.template import template_tags
from app.core.exceptions import TemplateValidationError

logger = logging.getLogger("FormBuilder.Tags")

MIN_TAG_LENGTH = 2


def normalize_tag_names(names: Iterable[str]) -> List[str]:
    """trim + lower-case + дедупликация с сохранением порядка."""
    result: List[str] = []
    for raw in names or []:
        name = (raw or "").strip().lower()
        if len(name) < MIN_TAG_LENGTH:
            raise TemplateValidationError(f"Tag name '{raw}' is too short")
        if name not in result:
            result.append(name)
    return result


def get_or_create_tags(db: Session, names: Iterable[str]) -> List[Tag]:
    """
    Найти теги по имени, недостающие создать (count=0). Без commit:
    вызывающий код фиксирует транзакцию вместе с шаблоном.
    """
    normalized = normalize_tag_names(names)
    if not normalized:
        return []
    existing = {tag.name: tag for tag in db.query(Tag).filter(Tag.name.in_(normalized)).all()}
    tags = []
    for name in normalized:
        tag = existing.get(name)
        if tag is None:
            tag = Tag(name=name, count=0)
            db.add(tag)
            logger.info(f"Created tag '{name}'")
        tags.append(tag)
    db.flush()
    return tags


def increment_usage(tags: Iterable[Tag]) -> None:
    """Инкремент при привязке тега к шаблону (eager)."""
    for tag in tags:
        tag.count = (tag.count or 0) + 1


def recompute_usage(db: Session, tag_ids: Iterable[int]) -> None:
    """
    Пересчитать count по фактическим связям template_tags. Используется при
    отвязке и удалении шаблонов вместо слепого декремента.
    """
    ids = sorted(set(tag_ids))
    if not ids:
        return
    db.flush()
    counts = dict(
        db.execute(
            select(template_tags.c.tag_id, func.count())
            .where(template_tags.c.tag_id.in_(ids))
            .group_by(template_tags.c.tag_id)
        ).all()
    )
    for tag in db.query(Tag).filter(Tag.id.in_(ids)).all():
        tag.count = counts.get(tag.id, 0)


def search_tags(db: Session, search: Optional[str] = None, limit: int = 10) -> List[Tag]:
    query = db.query(Tag)
    if search:
        query = query.filter(Tag.name.ilike(f"%{search.strip()}%"))
    return query.order_by(Tag.count.desc(), Tag.name.asc()).limit(max(1, min(limit, 100))).all()
