#app/api/analytics.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.schemas.analytics import TemplateAnalytics, PlatformStats, UserAnalytics
from app.crud import analytics as crud_analytics
from app.crud.template import get_template
from app.crud.user import get_user_or_404
from app.core.policy import Action, enforce
from app.dependencies import get_db, get_current_user, get_current_admin
from app.models.user import User as DBUser

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/template/{template_id}", response_model=TemplateAnalytics)
def template_analytics(
    template_id: int,
    db: Session = Depends(get_db),
    current_user: DBUser = Depends(get_current_user),
):
    """
    Статистика ответов по шаблону (владелец шаблона или ADMIN).
    """
    template = get_template(db, template_id)
    enforce(current_user, template, Action.TEMPLATE_RESULTS)
    return crud_analytics.get_template_analytics(db, template)


@router.get("/stats", response_model=PlatformStats)
def platform_stats(
    db: Session = Depends(get_db),
    admin: DBUser = Depends(get_current_admin),
):
    enforce(admin, None, Action.PLATFORM_STATS)
    return crud_analytics.get_platform_stats(db)


@router.get("/user/{user_id}", response_model=UserAnalytics)
def user_analytics(
    user_id: int,
    db: Session = Depends(get_db),
    admin: DBUser = Depends(get_current_admin),
):
    return crud_analytics.get_user_analytics(db, get_user_or_404(db, user_id))
