#app/api/form.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from app.schemas.form import FormCreate, FormStart, FormUpdate, FormRead, FormShort
from app.schemas.response import ErrorResponse, MessageResponse, Page
from app.crud.template import get_template
from app.crud.form import get_form, list_user_forms, delete_form
from app.services import submission
from app.core.policy import Action, enforce
from app.core.settings import settings
from app.dependencies import get_db, get_current_user, get_form_for_user_or_404_403
from app.models.user import User as DBUser
from app.models.form import Form as FormModel
import logging

router = APIRouter(prefix="/forms", tags=["Forms"])
logger = logging.getLogger("FormBuilder.FormsAPI")

# 400 несёт missing_question_ids, когда завершение формы отклонено
SUBMISSION_ERRORS = {400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}


def _start_form(db: Session, current_user: DBUser, template_id: int, answers, completed: bool) -> FormModel:
    template = get_template(db, template_id)
    enforce(current_user, template, Action.TEMPLATE_READ)
    form = submission.create_form(db, template, current_user.id, answers=answers, completed=completed)
    return get_form(db, form.id)


@router.post("/", response_model=FormRead, status_code=status.HTTP_201_CREATED, responses=SUBMISSION_ERRORS)
def create_new_form(
    data: FormCreate,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Заполнить шаблон: создать форму (и сразу применить переданные ответы).
    """
    payload = data.model_dump()
    return _start_form(db, current_user, data.template_id, payload["answers"], data.completed)


@router.post("/create/{template_id}", response_model=FormRead, status_code=status.HTTP_201_CREATED, responses=SUBMISSION_ERRORS)
def create_form_for_template(
    template_id: int,
    data: Optional[FormStart] = None,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    То же, что POST /forms/, но id шаблона в пути, тело необязательно.
    """
    data = data or FormStart()
    return _start_form(db, current_user, template_id, data.model_dump()["answers"], data.completed)


@router.get("/", response_model=Page[FormShort])
def list_my_forms(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Формы текущего пользователя, новые первыми.
    """
    items, pagination = list_user_forms(db, current_user.id, page=page, limit=limit)
    return {"data": items, "pagination": pagination}


@router.get("/{form_id}", response_model=FormRead)
def get_one_form(form: FormModel = Depends(get_form_for_user_or_404_403)):
    return form


@router.put("/{form_id}", response_model=FormRead, responses=SUBMISSION_ERRORS)
def update_form_answers(
    form_id: int,
    data: FormUpdate,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Upsert ответов и (опционально) завершение формы. Всё или ничего:
    при отказе ни один ответ не сохраняется.
    """
    form = get_form(db, form_id)
    enforce(current_user, form, Action.FORM_WRITE)
    payload = data.model_dump(exclude_unset=True)
    submission.update_answers(db, form, answers=payload.get("answers"), completed=data.completed)
    return get_form(db, form_id)


@router.delete("/{form_id}", response_model=MessageResponse)
def delete_one_form(
    form_id: int,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    form = get_form(db, form_id)
    enforce(current_user, form, Action.FORM_DELETE)
    delete_form(db, form)
    return MessageResponse(message="Form deleted")
