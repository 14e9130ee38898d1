import pytest
from sqlalchemy.orm import Session

from app.crud import comment as crud_comment
from app.crud import like as crud_like
from app.core.exceptions import CommentNotFound, ValidationError
from app.models.like import Like
from app.models.user import User as UserModel


def test_toggle_like_round_trip(db: Session, test_user: UserModel, second_user: UserModel, template_factory):
    template = template_factory()
    assert crud_like.toggle_like(db, template.id, test_user.id) == (True, 1)
    assert crud_like.toggle_like(db, template.id, second_user.id) == (True, 2)
    assert crud_like.toggle_like(db, template.id, test_user.id) == (False, 1)
    assert crud_like.count_likes(db, template.id) == 1
    assert crud_like.has_liked(db, template.id, second_user.id) is True
    assert crud_like.has_liked(db, template.id, test_user.id) is False


def test_toggle_like_never_duplicates(db: Session, test_user: UserModel, template_factory):
    template = template_factory()
    for _ in range(5):
        crud_like.toggle_like(db, template.id, test_user.id)
    assert db.query(Like).filter(Like.template_id == template.id, Like.user_id == test_user.id).count() == 1


def test_comments_newest_first(db: Session, test_user: UserModel, second_user: UserModel, template_factory):
    template = template_factory()
    first = crud_comment.create_comment(db, template.id, test_user.id, "  first  ")
    second = crud_comment.create_comment(db, template.id, second_user.id, "second")
    assert first.text == "first"

    comments = crud_comment.list_template_comments(db, template.id)
    assert [c.id for c in comments] == [second.id, first.id]
    assert comments[0].author.name == second_user.name


def test_comment_text_required(db: Session, test_user: UserModel, template_factory):
    template = template_factory()
    with pytest.raises(ValidationError, match="cannot be empty"):
        crud_comment.create_comment(db, template.id, test_user.id, "   ")


def test_delete_comment(db: Session, test_user: UserModel, template_factory):
    template = template_factory()
    comment = crud_comment.create_comment(db, template.id, test_user.id, "bye")
    comment_id = comment.id
    crud_comment.delete_comment(db, comment)
    with pytest.raises(CommentNotFound):
        crud_comment.get_comment(db, comment_id)
