#app/crud/form.py
from sqlalchemy.orm import Session, selectinload
import logging

from app.models.form import Form, Answer
from app.core.pagination import paginate
from app.core.exceptions import FormNotFound, InternalError

logger = logging.getLogger("FormBuilder.Forms")


def get_form(db: Session, form_id: int) -> Form:
    """
    Получить форму по ID (с ответами) или бросить FormNotFound.
    """
    form = (
        db.query(Form)
        .options(selectinload(Form.answers).selectinload(Answer.question))
        .filter(Form.id == form_id)
        .first()
    )
    if not form:
        raise FormNotFound(f"Form with id={form_id} not found.")
    return form


def list_user_forms(db: Session, author_id: int, page: int = 1, limit: int = 10):
    """Формы пользователя, новые первыми."""
    query = (
        db.query(Form)
        .options(selectinload(Form.template))
        .filter(Form.author_id == author_id)
        .order_by(Form.created_at.desc(), Form.id.desc())
    )
    return paginate(query, page, limit)


def list_template_forms(db: Session, template_id: int, page: int = 1, limit: int = 10):
    """
    Результаты шаблона: все формы с ответами (для владельца шаблона или ADMIN).
    """
    query = (
        db.query(Form)
        .options(
            selectinload(Form.author),
            selectinload(Form.answers).selectinload(Answer.question),
        )
        .filter(Form.template_id == template_id)
        .order_by(Form.created_at.desc(), Form.id.desc())
    )
    return paginate(query, page, limit)


def delete_form(db: Session, form: Form) -> None:
    """
    Удалить форму: сначала ответы, затем саму форму (одна транзакция).
    """
    form_id = form.id
    try:
        deleted_answers = db.query(Answer).filter(Answer.form_id == form_id).delete(synchronize_session=False)
        db.query(Form).filter(Form.id == form_id).delete(synchronize_session=False)
        db.commit()
        db.expunge(form)
        logger.info(f"Deleted form {form_id} ({deleted_answers} answers)")
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting form {form_id}: {e}")
        raise InternalError()
