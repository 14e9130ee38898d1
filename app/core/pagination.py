# app/core/pagination.py
import math
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Query

from app.core.settings import settings


def normalize_page(page: int, limit: int) -> Tuple[int, int]:
    page = max(page or 1, 1)
    limit = limit or settings.DEFAULT_PAGE_SIZE
    limit = max(1, min(limit, settings.MAX_PAGE_SIZE))
    return page, limit


def paginate(query: Query, page: int, limit: int) -> Tuple[List[Any], Dict[str, int]]:
    """
    Выполнить запрос постранично. Возвращает (items, pagination), где
    pagination = {total, page, limit, total_pages}.
    """
    page, limit = normalize_page(page, limit)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if total else 0,
    }
