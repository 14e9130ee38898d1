#app/api/like.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.schemas.social import LikeToggleResponse, LikeCountResponse, LikeStatusResponse
from app.crud.template import get_template
from app.crud import like as crud_like
from app.core.policy import Action, enforce
from app.services.realtime import EVENT_LIKE_UPDATED, outbox
from app.dependencies import get_db, get_current_user
from app.models.user import User as DBUser

router = APIRouter(prefix="/likes", tags=["Likes"])


@router.post("/{template_id}", response_model=LikeToggleResponse)
def toggle_like(
    template_id: int,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Поставить или снять лайк. Подписчики шаблона получают likeUpdated.
    """
    template = get_template(db, template_id)
    enforce(current_user, template, Action.TEMPLATE_READ)
    liked, count = crud_like.toggle_like(db, template.id, current_user.id)
    outbox.publish(template.id, EVENT_LIKE_UPDATED, {"template_id": template.id, "count": count})
    return LikeToggleResponse(liked=liked, count=count)


@router.get("/{template_id}/count", response_model=LikeCountResponse)
def like_count(
    template_id: int,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    template = get_template(db, template_id)
    enforce(current_user, template, Action.TEMPLATE_READ)
    return LikeCountResponse(count=crud_like.count_likes(db, template.id))


@router.get("/{template_id}/status", response_model=LikeStatusResponse)
def like_status(
    template_id: int,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    template = get_template(db, template_id)
    enforce(current_user, template, Action.TEMPLATE_READ)
    return LikeStatusResponse(liked=crud_like.has_liked(db, template.id, current_user.id))
