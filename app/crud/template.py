#app/crud/template.py
from sqlalchemy.orm import Session
from sqlalchemy import or_, func, select
from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
import logging

from app.models.template import Template
from app.models.question import Question, QuestionOption
from app.models.tag import Tag
from app.models.form import Form
from app.core.enums import CHOICE_TYPES, QuestionType
from app.core.pagination import paginate
from app.core.exceptions import (
    InternalError,
    QuestionValidationError,
    TemplateNotFound,
    TemplateStructureLocked,
    TemplateValidationError,
)
from app.crud import tag as crud_tag
from app.crud.user import get_users_by_ids

logger = logging.getLogger("FormBuilder.Templates")

SORT_NEWEST = "newest"
SORT_POPULAR = "popular"


def validate_question_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Проверить определение вопроса. Опции допустимы только для
    SELECT/RADIO/CHECKBOX и для них обязательны.
    """
    title = (data.get("title") or "").strip()
    if not title:
        raise QuestionValidationError("Question title is required.")
    try:
        question_type = QuestionType(data.get("type"))
    except ValueError:
        raise QuestionValidationError(f"Unknown question type: {data.get('type')!r}")

    options = [str(o).strip() for o in (data.get("options") or [])]
    if question_type in CHOICE_TYPES:
        if not options:
            raise QuestionValidationError(f"Question '{title}' of type {question_type.value} needs at least one option.")
        if any(not o for o in options):
            raise QuestionValidationError(f"Question '{title}' has an empty option.")
    elif options:
        raise QuestionValidationError(f"Question '{title}' of type {question_type.value} cannot have options.")

    return {
        "title": title,
        "description": data.get("description"),
        "type": question_type,
        "is_required": bool(data.get("is_required", True)),
        "display_in_table": bool(data.get("display_in_table", False)),
        "options": options,
    }


def _add_questions(db: Session, template_id: int, questions: List[Dict[str, Any]], start_order: int = 0) -> List[Question]:
    created = []
    for offset, q in enumerate(questions):
        question = Question(
            template_id=template_id,
            title=q["title"],
            description=q["description"],
            type=q["type"],
            is_required=q["is_required"],
            display_in_table=q["display_in_table"],
            order=start_order + offset,
        )
        question.options = [QuestionOption(value=value, order=i) for i, value in enumerate(q["options"])]
        db.add(question)
        created.append(question)
    db.flush()
    return created


def create_template(db: Session, data: dict, owner_id: int) -> Template:
    """
    Создать шаблон вместе с вопросами, тегами и списком допущенных пользователей
    (одна транзакция).
    """
    title = (data.get("title") or "").strip()
    if not title:
        raise TemplateValidationError("Template title is required.")
    questions = [validate_question_data(q) for q in data.get("questions") or []]
    allowed_users = get_users_by_ids(db, data.get("allowed_user_ids") or [])

    template = Template(
        title=title,
        description=data.get("description"),
        topic=data.get("topic"),
        image_url=data.get("image_url"),
        is_public=data.get("is_public", True),
        owner_id=owner_id,
    )
    try:
        tags = crud_tag.get_or_create_tags(db, data.get("tags") or [])
        template.tags = tags
        template.allowed_users = allowed_users
        db.add(template)
        db.flush()
        crud_tag.increment_usage(tags)
        _add_questions(db, template.id, questions)
        db.commit()
        db.refresh(template)
        logger.info(f"Created template '{template.title}' (ID: {template.id}) by owner {owner_id}")
        return template
    except TemplateValidationError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating template '{title}': {e}")
        raise InternalError()


def get_template(db: Session, template_id: int) -> Template:
    """
    Получить шаблон по ID или бросить TemplateNotFound.
    """
    template = db.query(Template).filter(Template.id == template_id).first()
    if not template:
        raise TemplateNotFound(f"Template with id={template_id} not found.")
    return template


def get_templates_by_ids(db: Session, template_ids: List[int]) -> List[Template]:
    unique_ids = sorted(set(template_ids))
    templates = db.query(Template).filter(Template.id.in_(unique_ids)).all()
    missing = set(unique_ids) - {t.id for t in templates}
    if missing:
        raise TemplateNotFound(f"Templates not found: {', '.join(str(i) for i in sorted(missing))}")
    return templates


def _apply_filters(query, search: Optional[str], tag: Optional[str]):
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Template.title.ilike(pattern),
                Template.description.ilike(pattern),
                Template.topic.ilike(pattern),
                Template.tags.any(Tag.name.ilike(pattern)),
            )
        )
    if tag:
        query = query.filter(Template.tags.any(Tag.name == tag.strip().lower()))
    return query


def list_public_templates(
    db: Session,
    search: Optional[str] = None,
    tag: Optional[str] = None,
    sort: str = SORT_NEWEST,
    page: int = 1,
    limit: int = 10,
):
    """
    Публичные шаблоны: поиск по title/description/topic/имени тега,
    сортировка newest | popular (по числу форм).
    """
    query = _apply_filters(db.query(Template).filter(Template.is_public == True), search, tag)
    if sort == SORT_POPULAR:
        form_counts = (
            select(Form.template_id, func.count(Form.id).label("form_count"))
            .group_by(Form.template_id)
            .subquery()
        )
        query = query.outerjoin(form_counts, form_counts.c.template_id == Template.id).order_by(
            func.coalesce(form_counts.c.form_count, 0).desc(),
            Template.created_at.desc(),
            Template.id.desc(),
        )
    else:
        query = query.order_by(Template.created_at.desc(), Template.id.desc())
    return paginate(query, page, limit)


def list_user_templates(
    db: Session,
    owner_id: int,
    search: Optional[str] = None,
    tag: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
):
    query = _apply_filters(db.query(Template).filter(Template.owner_id == owner_id), search, tag)
    return paginate(query.order_by(Template.created_at.desc(), Template.id.desc()), page, limit)


def template_has_forms(db: Session, template_id: int, completed_only: bool = False) -> bool:
    query = db.query(Form.id).filter(Form.template_id == template_id)
    if completed_only:
        query = query.filter(Form.completed == True)
    return query.first() is not None


def update_template(db: Session, template: Template, data: dict) -> Template:
    """
    Обновить шаблон. questions и tags, если переданы, заменяют набор целиком:
    вопросы удаляются и создаются заново с порядком 0..n-1. Замена вопросов
    запрещена, если по шаблону уже есть формы.
    """
    if "title" in data and not (data["title"] or "").strip():
        raise TemplateValidationError("Template title cannot be empty.")

    questions = None
    if data.get("questions") is not None:
        questions = [validate_question_data(q) for q in data["questions"]]
        if template_has_forms(db, template.id):
            raise TemplateStructureLocked()

    allowed_users = None
    if data.get("allowed_user_ids") is not None:
        allowed_users = get_users_by_ids(db, data["allowed_user_ids"])

    try:
        for field in ("title", "description", "topic", "image_url", "is_public"):
            if field in data and data[field] is not None:
                value = data[field].strip() if field == "title" else data[field]
                setattr(template, field, value)

        if data.get("tags") is not None:
            old_tags = {tag.id: tag for tag in template.tags}
            new_tags = crud_tag.get_or_create_tags(db, data["tags"])
            template.tags = new_tags
            db.flush()
            crud_tag.recompute_usage(db, [tag_id for tag_id in old_tags if tag_id not in {t.id for t in new_tags}])
            crud_tag.increment_usage([t for t in new_tags if t.id not in old_tags])

        if allowed_users is not None:
            template.allowed_users = allowed_users

        if questions is not None:
            question_ids = select(Question.id).where(Question.template_id == template.id)
            db.query(QuestionOption).filter(QuestionOption.question_id.in_(question_ids)).delete(synchronize_session=False)
            db.query(Question).filter(Question.template_id == template.id).delete(synchronize_session=False)
            db.expire(template, ["questions"])
            _add_questions(db, template.id, questions)

        template.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(template)
        logger.info(f"Updated template '{template.title}' (ID: {template.id})")
        return template
    except TemplateValidationError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating template {template.id}: {e}")
        raise InternalError()


def append_question(db: Session, template: Template, data: dict) -> Question:
    """
    Добавить вопрос в конец шаблона. Обязательный вопрос нельзя добавить,
    если уже есть завершённые формы (они перестали бы покрывать обязательные).
    """
    question_data = validate_question_data(data)
    if question_data["is_required"] and template_has_forms(db, template.id, completed_only=True):
        raise TemplateStructureLocked("Cannot add a required question: completed forms already exist")

    max_order = db.query(func.max(Question.order)).filter(Question.template_id == template.id).scalar()
    next_order = 0 if max_order is None else max_order + 1
    try:
        question = _add_questions(db, template.id, [question_data], start_order=next_order)[0]
        template.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(question)
        db.expire(template, ["questions"])
        logger.info(f"Appended question {question.id} to template {template.id} at position {question.order}")
        return question
    except Exception as e:
        db.rollback()
        logger.error(f"Error appending question to template {template.id}: {e}")
        raise InternalError()
