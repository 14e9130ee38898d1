#app/api/template.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from app.schemas.template import (
    TemplateCreate,
    TemplateUpdate,
    TemplateRead,
    TemplateShort,
    QuestionCreate,
    QuestionRead,
    BulkDeleteRequest,
)
from app.schemas.form import FormRead
from app.schemas.response import MessageResponse, Page
from app.crud import template as crud_template
from app.crud.form import list_template_forms
from app.services.cascade import delete_templates
from app.core.policy import Action, enforce
from app.core.settings import settings
from app.dependencies import (
    get_db,
    get_current_user,
    get_template_for_user_or_404_403,
    get_owned_template_or_404_403,
)
from app.models.user import User as DBUser
from app.models.template import Template as TemplateModel
import logging

router = APIRouter(prefix="/templates", tags=["Templates"])
logger = logging.getLogger("FormBuilder.TemplatesAPI")


@router.post("/", response_model=TemplateRead, status_code=status.HTTP_201_CREATED)
def create_new_template(
    data: TemplateCreate,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Создать шаблон. Владельцем становится текущий пользователь.
    """
    return crud_template.create_template(db, data.model_dump(), owner_id=current_user.id)


@router.get("/public", response_model=Page[TemplateShort])
def list_public(
    search: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    sort: str = Query(crud_template.SORT_NEWEST, pattern="^(newest|popular)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    """
    Публичные шаблоны (без аутентификации).
    """
    items, pagination = crud_template.list_public_templates(
        db, search=search, tag=tag, sort=sort, page=page, limit=limit
    )
    return {"data": items, "pagination": pagination}


@router.get("/user", response_model=Page[TemplateShort])
def list_my_templates(
    search: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Шаблоны текущего пользователя.
    """
    items, pagination = crud_template.list_user_templates(
        db, current_user.id, search=search, tag=tag, page=page, limit=limit
    )
    return {"data": items, "pagination": pagination}


@router.post("/bulk-delete", response_model=MessageResponse)
def bulk_delete(
    data: BulkDeleteRequest,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Удалить несколько шаблонов атомарно: все id должны существовать,
    и пользователь должен иметь право удалить каждый.
    """
    templates = crud_template.get_templates_by_ids(db, data.ids)
    for template in templates:
        enforce(current_user, template, Action.TEMPLATE_DELETE)
    counts = delete_templates(db, templates)
    return MessageResponse(message=f"Deleted {counts['templates']} templates")


@router.get("/{template_id}", response_model=TemplateRead)
def get_one_template(
    template: TemplateModel = Depends(get_template_for_user_or_404_403),
):
    """
    Получить шаблон по ID (публичный, свой, открытый пользователю или любой для ADMIN).
    """
    return template


@router.put("/{template_id}", response_model=TemplateRead)
def update_one_template(
    data: TemplateUpdate,
    template: TemplateModel = Depends(get_owned_template_or_404_403),
    db: Session = Depends(get_db),
):
    """
    Обновить шаблон. questions и tags заменяются целиком.
    """
    return crud_template.update_template(db, template, data.model_dump(exclude_unset=True))


@router.delete("/{template_id}", response_model=MessageResponse)
def delete_one_template(
    template_id: int,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Удалить шаблон со всеми формами, ответами, лайками и комментариями.
    """
    template = crud_template.get_template(db, template_id)
    enforce(current_user, template, Action.TEMPLATE_DELETE)
    delete_templates(db, [template])
    return MessageResponse(message="Template deleted")


@router.post("/{template_id}/questions", response_model=QuestionRead, status_code=status.HTTP_201_CREATED)
def add_question(
    data: QuestionCreate,
    template: TemplateModel = Depends(get_owned_template_or_404_403),
    db: Session = Depends(get_db),
):
    """
    Добавить один вопрос в конец шаблона.
    """
    return crud_template.append_question(db, template, data.model_dump())


@router.get("/{template_id}/forms", response_model=Page[FormRead])
def template_results(
    template_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Результаты: все формы по шаблону (владелец шаблона или ADMIN).
    """
    template = crud_template.get_template(db, template_id)
    enforce(current_user, template, Action.TEMPLATE_RESULTS)
    items, pagination = list_template_forms(db, template.id, page=page, limit=limit)
    return {"data": items, "pagination": pagination}
