#app/crud/comment.py
from sqlalchemy.orm import Session, selectinload
from typing import List
import logging

from app.models.comment import Comment
from app.core.exceptions import CommentNotFound, InternalError, ValidationError

logger = logging.getLogger("FormBuilder.Comments")


def create_comment(db: Session, template_id: int, author_id: int, text: str) -> Comment:
    text = (text or "").strip()
    if not text:
        raise ValidationError("Comment text cannot be empty")

    comment = Comment(template_id=template_id, author_id=author_id, text=text)
    db.add(comment)
    try:
        db.commit()
        db.refresh(comment)
        logger.info(f"User {author_id} commented on template {template_id} (comment {comment.id})")
        return comment
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating comment on template {template_id}: {e}")
        raise InternalError()


def get_comment(db: Session, comment_id: int) -> Comment:
    comment = db.query(Comment).filter(Comment.id == comment_id).first()
    if not comment:
        raise CommentNotFound(f"Comment with id={comment_id} not found.")
    return comment


def list_template_comments(db: Session, template_id: int) -> List[Comment]:
    """Комментарии шаблона, новые первыми, с карточкой автора."""
    return (
        db.query(Comment)
        .options(selectinload(Comment.author))
        .filter(Comment.template_id == template_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .all()
    )


def delete_comment(db: Session, comment: Comment) -> None:
    comment_id, template_id = comment.id, comment.template_id
    try:
        db.delete(comment)
        db.commit()
        logger.info(f"Deleted comment {comment_id} on template {template_id}")
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting comment {comment_id}: {e}")
        raise InternalError()
