#app/services/cascade.py
"""
Явные каскадные удаления.

Зависимые строки удаляются по шагам в порядке внешних ключей, затем один
commit. Счётчики тегов пересчитываются по оставшимся связям.
"""
from sqlalchemy.orm import Session
from sqlalchemy import delete, select
from typing import Dict, List
import logging

from app.models.user import User
from app.models.template import Template, template_access, template_tags
from app.models.question import Question, QuestionOption
from app.models.form import Form, Answer
from app.models.like import Like
from app.models.comment import Comment
from app.core.exceptions import InternalError
from app.crud.tag import recompute_usage

logger = logging.getLogger("FormBuilder.Cascade")


def _delete_template_rows(db: Session, template_ids: List[int]) -> Dict[str, int]:
    """Удалить шаблоны и всё, что от них зависит. Без commit."""
    if not template_ids:
        return {"templates": 0}

    form_ids = select(Form.id).where(Form.template_id.in_(template_ids))
    question_ids = select(Question.id).where(Question.template_id.in_(template_ids))
    tag_ids = [
        row[0]
        for row in db.execute(
            select(template_tags.c.tag_id).where(template_tags.c.template_id.in_(template_ids)).distinct()
        ).all()
    ]

    counts = {
        "answers": db.query(Answer).filter(Answer.form_id.in_(form_ids)).delete(synchronize_session=False),
        "forms": db.query(Form).filter(Form.template_id.in_(template_ids)).delete(synchronize_session=False),
        "options": db.query(QuestionOption).filter(QuestionOption.question_id.in_(question_ids)).delete(synchronize_session=False),
        "questions": db.query(Question).filter(Question.template_id.in_(template_ids)).delete(synchronize_session=False),
        "likes": db.query(Like).filter(Like.template_id.in_(template_ids)).delete(synchronize_session=False),
        "comments": db.query(Comment).filter(Comment.template_id.in_(template_ids)).delete(synchronize_session=False),
    }
    db.execute(delete(template_tags).where(template_tags.c.template_id.in_(template_ids)))
    db.execute(delete(template_access).where(template_access.c.template_id.in_(template_ids)))
    counts["templates"] = db.query(Template).filter(Template.id.in_(template_ids)).delete(synchronize_session=False)
    recompute_usage(db, tag_ids)
    return counts


def _forget(db: Session, instances) -> None:
    for instance in instances:
        if instance in db:
            db.expunge(instance)


def delete_templates(db: Session, templates: List[Template]) -> Dict[str, int]:
    """
    Удалить один или несколько шаблонов атомарно: ответы, формы, опции,
    вопросы, лайки, комментарии, связи с тегами и доступом, сами шаблоны.
    """
    template_ids = sorted({template.id for template in templates})
    try:
        counts = _delete_template_rows(db, template_ids)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting templates {template_ids}: {e}")
        raise InternalError()
    _forget(db, templates)
    logger.info(f"Deleted templates {template_ids}: {counts}")
    return counts


def delete_user_account(db: Session, user: User) -> Dict[str, int]:
    """
    Удалить аккаунт со всеми данными: собственные шаблоны (с каскадом),
    формы пользователя в чужих шаблонах, лайки, комментарии, доступы.
    """
    user_id = user.id
    try:
        owned_ids = [row[0] for row in db.query(Template.id).filter(Template.owner_id == user_id).all()]
        counts = _delete_template_rows(db, owned_ids)

        own_form_ids = select(Form.id).where(Form.author_id == user_id)
        counts["own_answers"] = db.query(Answer).filter(Answer.form_id.in_(own_form_ids)).delete(synchronize_session=False)
        counts["own_forms"] = db.query(Form).filter(Form.author_id == user_id).delete(synchronize_session=False)
        counts["own_likes"] = db.query(Like).filter(Like.user_id == user_id).delete(synchronize_session=False)
        counts["own_comments"] = db.query(Comment).filter(Comment.author_id == user_id).delete(synchronize_session=False)
        db.execute(delete(template_access).where(template_access.c.user_id == user_id))
        db.query(User).filter(User.id == user_id).delete(synchronize_session=False)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting account of user {user_id}: {e}")
        raise InternalError()
    _forget(db, [user])
    logger.info(f"Deleted account of user {user_id}: {counts}")
    return counts
