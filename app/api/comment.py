#app/api/comment.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from app.schemas.social import CommentCreate, CommentRead
from app.schemas.response import MessageResponse
from app.crud.template import get_template
from app.crud import comment as crud_comment
from app.core.policy import Action, enforce
from app.services.realtime import EVENT_COMMENT_DELETED, EVENT_NEW_COMMENT, outbox
from app.dependencies import get_db, get_current_user
from app.models.user import User as DBUser
import logging

router = APIRouter(prefix="/comments", tags=["Comments"])
logger = logging.getLogger("FormBuilder.CommentsAPI")


@router.get("/template/{template_id}", response_model=List[CommentRead])
def list_comments(template_id: int, db: Session = Depends(get_db)):
    """
    Комментарии шаблона, новые первыми (без аутентификации).
    """
    template = get_template(db, template_id)
    return crud_comment.list_template_comments(db, template.id)


@router.post("/", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
def add_comment(
    data: CommentCreate,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Оставить комментарий. Подписчики шаблона получают newComment.
    """
    template = get_template(db, data.template_id)
    enforce(current_user, template, Action.TEMPLATE_READ)
    comment = crud_comment.create_comment(db, template.id, current_user.id, data.text)
    result = CommentRead.model_validate(comment)
    outbox.publish(template.id, EVENT_NEW_COMMENT, result.model_dump())
    return result


@router.delete("/{comment_id}", response_model=MessageResponse)
def remove_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Удалить комментарий (автор или ADMIN). Подписчики получают commentDeleted.
    """
    comment = crud_comment.get_comment(db, comment_id)
    enforce(current_user, comment, Action.COMMENT_DELETE)
    template_id = comment.template_id
    crud_comment.delete_comment(db, comment)
    outbox.publish(template_id, EVENT_COMMENT_DELETED, {"id": comment_id})
    return MessageResponse(message="Comment deleted")
