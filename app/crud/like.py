#app/crud/like.py
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Tuple
import logging

from app.models.like import Like
from app.core.exceptions import InternalError

logger = logging.getLogger("FormBuilder.Likes")


def count_likes(db: Session, template_id: int) -> int:
    return db.query(Like).filter(Like.template_id == template_id).count()


def has_liked(db: Session, template_id: int, user_id: int) -> bool:
    return (
        db.query(Like.id)
        .filter(Like.template_id == template_id, Like.user_id == user_id)
        .first()
        is not None
    )


def toggle_like(db: Session, template_id: int, user_id: int) -> Tuple[bool, int]:
    """
    Переключить лайк без check-then-act: сначала пробуем вставить строку,
    конфликт по uq_likes_template_user означает, что лайк уже есть, и тогда
    строка удаляется. Возвращает (liked, count).
    """
    db.add(Like(template_id=template_id, user_id=user_id))
    try:
        db.commit()
        liked = True
    except IntegrityError:
        db.rollback()
        try:
            db.query(Like).filter(
                Like.template_id == template_id, Like.user_id == user_id
            ).delete(synchronize_session=False)
            db.commit()
            liked = False
        except Exception as e:
            db.rollback()
            logger.error(f"Error removing like of user {user_id} on template {template_id}: {e}")
            raise InternalError()
    except Exception as e:
        db.rollback()
        logger.error(f"Error adding like of user {user_id} on template {template_id}: {e}")
        raise InternalError()

    count = count_likes(db, template_id)
    logger.info(f"User {user_id} {'liked' if liked else 'unliked'} template {template_id} (count={count})")
    return liked, count
