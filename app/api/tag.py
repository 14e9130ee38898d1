#app/api/tag.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from app.schemas.social import TagRead
from app.crud.tag import search_tags
from app.dependencies import get_db

router = APIRouter(prefix="/tags", tags=["Tags"])


@router.get("/", response_model=List[TagRead])
def list_tags(
    search: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    Поиск тегов по подстроке, популярные первыми (без аутентификации).
    """
    return search_tags(db, search=search, limit=limit)
