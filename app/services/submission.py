#app/services/submission.py
"""
Протокол отправки форм.

Форма живёт в двух состояниях: черновик -> завершена (без обратного перехода).
Ответы обновляются upsert-ом по (form_id, question_id). Завершение разрешено,
только если у каждого обязательного вопроса шаблона есть непустой ответ.
Все проверки выполняются в памяти до первой записи, запись идёт одной
транзакцией: форма остаётся либо в исходном, либо в итоговом состоянии.
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Any, Dict, Iterable, List, Optional
import logging

from app.models.form import Form, Answer
from app.models.template import Template
from app.core.answer_values import (
    AnswerValue,
    AnswerValueError,
    empty_value,
    load_answer_value,
    parse_answer_value,
)
from app.core.clock import utcnow
from app.core.settings import settings
from app.core.exceptions import (
    AnswerValidationError,
    ConflictError,
    InternalError,
    RequiredAnswersMissing,
    ValidationError,
)

logger = logging.getLogger("FormBuilder.Submission")


def parse_answers(template: Template, answers: Iterable[Dict[str, Any]]) -> Dict[int, AnswerValue]:
    """
    Разобрать входящие ответы по типам вопросов шаблона.
    Повтор question_id в одном запросе: побеждает последний.
    """
    questions = {question.id: question for question in template.questions}
    parsed: Dict[int, AnswerValue] = {}
    for item in answers or []:
        question_id = item.get("question_id")
        question = questions.get(question_id)
        if question is None:
            raise AnswerValidationError(
                f"Question {question_id} does not belong to template {template.id}"
            )
        try:
            parsed[question_id] = parse_answer_value(question.type, item.get("value"), question.option_ids)
        except AnswerValueError as e:
            raise AnswerValidationError(f"Invalid answer for question {question_id}: {e}")
    return parsed


def missing_required(template: Template, values: Dict[int, AnswerValue]) -> List[int]:
    return [
        question.id
        for question in template.questions
        if question.is_required and (question.id not in values or values[question.id].is_empty())
    ]


def create_form(
    db: Session,
    template: Template,
    author_id: int,
    answers: Optional[Iterable[Dict[str, Any]]] = None,
    completed: bool = False,
) -> Form:
    """
    Создать форму по шаблону. При FORM_PRESEED_ANSWERS для каждого вопроса
    заводится пустой ответ, переданные значения применяются поверх.
    """
    parsed = parse_answers(template, answers)
    if completed:
        missing = missing_required(template, parsed)
        if missing:
            logger.warning(f"Form for template {template.id} rejected: missing required {missing}")
            raise RequiredAnswersMissing(missing)

    form = Form(template_id=template.id, author_id=author_id, completed=bool(completed))
    try:
        db.add(form)
        db.flush()
        if settings.FORM_PRESEED_ANSWERS:
            initial = {q.id: parsed.get(q.id, empty_value(q.type)) for q in template.questions}
        else:
            initial = parsed
        for question_id, value in initial.items():
            db.add(Answer(form_id=form.id, question_id=question_id, value=value.to_storage()))
        db.commit()
        db.refresh(form)
        logger.info(
            f"Created form {form.id} on template {template.id} by user {author_id} "
            f"({len(parsed)} answers, completed={form.completed})"
        )
        return form
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating form on template {template.id}: {e}")
        raise InternalError()


def update_answers(
    db: Session,
    form: Form,
    answers: Optional[Iterable[Dict[str, Any]]] = None,
    completed: Optional[bool] = None,
) -> Form:
    """
    Upsert ответов + (опционально) завершение формы, всё или ничего.

    completed=True проверяет покрытие обязательных вопросов по объединённому
    набору (сохранённые ответы + входящие). Для уже завершённой формы та же
    проверка выполняется при каждом обновлении; completed=False для неё
    запрещён.
    """
    if completed is False and form.completed:
        raise ValidationError("A completed form cannot be reopened")

    template = form.template
    parsed = parse_answers(template, answers)

    existing = {
        answer.question_id: answer
        for answer in db.query(Answer).filter(Answer.form_id == form.id).all()
    }
    questions = {q.id: q for q in template.questions}

    will_complete = form.completed or completed is True
    if will_complete:
        merged: Dict[int, AnswerValue] = {
            question_id: load_answer_value(questions[question_id].type, answer.value)
            for question_id, answer in existing.items()
            if question_id in questions
        }
        merged.update(parsed)
        missing = missing_required(template, merged)
        if missing:
            logger.warning(f"Completion of form {form.id} rejected: missing required {missing}")
            raise RequiredAnswersMissing(missing)

    try:
        for question_id, value in parsed.items():
            answer = existing.get(question_id)
            if answer is not None:
                answer.value = value.to_storage()
            else:
                db.add(Answer(form_id=form.id, question_id=question_id, value=value.to_storage()))
        if completed is True:
            form.completed = True
        form.updated_at = utcnow()
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Concurrent answer insert on form {form.id}: {e}")
        raise ConflictError("The form was modified concurrently, please retry")
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating answers of form {form.id}: {e}")
        raise InternalError()

    db.expire(form, ["answers"])
    db.refresh(form)
    logger.info(f"Updated form {form.id}: {len(parsed)} answers upserted, completed={form.completed}")
    return form
