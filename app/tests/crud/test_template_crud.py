import pytest
from sqlalchemy.orm import Session

from app.crud import template as crud_template
from app.crud.tag import search_tags
from app.core.enums import QuestionType
from app.core.exceptions import (
    QuestionValidationError,
    TemplateNotFound,
    TemplateStructureLocked,
    TemplateValidationError,
    ValidationError,
)
from app.models.question import Question, QuestionOption
from app.models.tag import Tag
from app.models.user import User as UserModel
from app.services.submission import create_form


def choice_question(title="Pick one", type_="RADIO", options=("Yes", "No"), **extra):
    return {"title": title, "type": type_, "options": list(options), **extra}


# --- create ---

def test_create_template_with_questions_tags_and_access(db: Session, test_user: UserModel, second_user: UserModel):
    template = crud_template.create_template(
        db,
        {
            "title": "  Survey  ",
            "is_public": False,
            "tags": ["Feedback", "retail", "feedback"],
            "questions": [
                {"title": "Name", "type": "TEXT"},
                choice_question(),
                {"title": "Age", "type": QuestionType.NUMBER, "is_required": False, "display_in_table": True},
            ],
            "allowed_user_ids": [second_user.id],
        },
        owner_id=test_user.id,
    )
    assert template.title == "Survey"
    assert template.owner_id == test_user.id
    assert template.is_public is False
    assert template.tag_names == ["feedback", "retail"]
    assert template.allowed_user_ids == [second_user.id]
    assert [q.order for q in template.questions] == [0, 1, 2]
    assert [q.type for q in template.questions] == [QuestionType.TEXT, QuestionType.RADIO, QuestionType.NUMBER]
    # defaults
    assert template.questions[0].is_required is True
    assert template.questions[0].display_in_table is False
    assert [o.value for o in template.questions[1].options] == ["Yes", "No"]
    assert template.questions[2].options == []
    assert {t.name: t.count for t in db.query(Tag).all()} == {"feedback": 1, "retail": 1}


def test_create_template_requires_title(db: Session, test_user: UserModel):
    with pytest.raises(TemplateValidationError, match="title is required"):
        crud_template.create_template(db, {"title": " "}, owner_id=test_user.id)


def test_choice_question_needs_options(db: Session, test_user: UserModel):
    with pytest.raises(QuestionValidationError, match="at least one option"):
        crud_template.create_template(
            db, {"title": "T", "questions": [choice_question(options=())]}, owner_id=test_user.id
        )


def test_text_question_cannot_have_options(db: Session, test_user: UserModel):
    with pytest.raises(QuestionValidationError, match="cannot have options"):
        crud_template.create_template(
            db, {"title": "T", "questions": [{"title": "Q", "type": "TEXT", "options": ["x"]}]}, owner_id=test_user.id
        )
    assert db.query(Question).count() == 0


def test_short_tag_rejected(db: Session, test_user: UserModel):
    with pytest.raises(TemplateValidationError, match="too short"):
        crud_template.create_template(db, {"title": "T", "tags": ["a"]}, owner_id=test_user.id)


def test_unknown_allowed_user(db: Session, test_user: UserModel):
    with pytest.raises(ValidationError, match="Unknown user ids"):
        crud_template.create_template(db, {"title": "T", "allowed_user_ids": [404]}, owner_id=test_user.id)


def test_get_template_not_found(db: Session):
    with pytest.raises(TemplateNotFound):
        crud_template.get_template(db, 12345)


# --- list ---

def test_list_public_search_tag_and_sort(db: Session, test_user: UserModel, template_factory):
    quiz = template_factory(title="Math quiz", tags=["school"])
    poll = template_factory(title="Lunch poll", description="What to eat", tags=["food"])
    template_factory(title="Hidden", is_public=False)

    items, pagination = crud_template.list_public_templates(db)
    assert {t.id for t in items} == {quiz.id, poll.id}
    assert pagination["total"] == 2

    items, _ = crud_template.list_public_templates(db, search="EAT")
    assert [t.id for t in items] == [poll.id]

    items, _ = crud_template.list_public_templates(db, search="scho")
    assert [t.id for t in items] == [quiz.id]

    items, _ = crud_template.list_public_templates(db, tag="Food")
    assert [t.id for t in items] == [poll.id]

    create_form(db, quiz, test_user.id)
    create_form(db, quiz, test_user.id)
    items, _ = crud_template.list_public_templates(db, sort=crud_template.SORT_POPULAR)
    assert [t.id for t in items] == [quiz.id, poll.id]


def test_list_user_templates_only_own(db: Session, test_user: UserModel, second_user: UserModel, template_factory):
    mine = template_factory(is_public=False)
    template_factory(owner=second_user)
    items, pagination = crud_template.list_user_templates(db, test_user.id)
    assert [t.id for t in items] == [mine.id]
    assert pagination["total_pages"] == 1


# --- update ---

def test_update_replaces_questions_and_renumbers(db: Session, template_factory):
    template = template_factory(questions=[{"title": "A", "type": "TEXT"}, {"title": "B", "type": "TEXT"}])
    old_ids = [q.id for q in template.questions]

    updated = crud_template.update_template(
        db,
        template,
        {"title": "Renamed", "questions": [choice_question(title="C", type_="CHECKBOX", options=("x", "y", "z"))]},
    )
    assert updated.title == "Renamed"
    assert [q.title for q in updated.questions] == ["C"]
    assert [q.order for q in updated.questions] == [0]
    assert db.query(Question).filter(Question.id.in_(old_ids)).count() == 0
    assert not set(q.id for q in updated.questions) & set(old_ids)
    assert db.query(QuestionOption).count() == 3


def test_update_questions_locked_once_forms_exist(db: Session, test_user: UserModel, template_factory):
    template = template_factory()
    create_form(db, template, test_user.id)
    with pytest.raises(TemplateStructureLocked):
        crud_template.update_template(db, template, {"questions": [{"title": "New", "type": "TEXT"}]})
    # metadata-only updates still allowed
    updated = crud_template.update_template(db, template, {"description": "Changed"})
    assert updated.description == "Changed"


def test_update_tags_recomputes_counts(db: Session, template_factory):
    first = template_factory(tags=["alpha", "beta"])
    template_factory(tags=["beta"])
    crud_template.update_template(db, first, {"tags": ["beta", "gamma"]})

    counts = {t.name: t.count for t in db.query(Tag).all()}
    assert counts == {"alpha": 0, "beta": 2, "gamma": 1}
    assert [t.name for t in search_tags(db)] == ["beta", "gamma", "alpha"]


def test_update_allowed_users(db: Session, second_user: UserModel, template_factory):
    template = template_factory(is_public=False)
    updated = crud_template.update_template(db, template, {"allowed_user_ids": [second_user.id]})
    assert updated.allowed_user_ids == [second_user.id]
    updated = crud_template.update_template(db, template, {"allowed_user_ids": []})
    assert updated.allowed_user_ids == []


# --- append_question ---

def test_append_question_goes_last(db: Session, template_factory):
    template = template_factory(questions=[{"title": "A", "type": "TEXT"}, {"title": "B", "type": "TEXT"}])
    question = crud_template.append_question(db, template, choice_question(title="C", type_="SELECT"))
    assert question.order == 2
    assert [q.title for q in template.questions] == ["A", "B", "C"]


def test_append_required_question_locked_by_completed_form(db: Session, test_user: UserModel, template_factory):
    template = template_factory()
    question_id = template.questions[0].id
    create_form(db, template, test_user.id, answers=[{"question_id": question_id, "value": "Ann"}], completed=True)

    with pytest.raises(TemplateStructureLocked):
        crud_template.append_question(db, template, {"title": "Email", "type": "TEXT", "is_required": True})
    optional = crud_template.append_question(db, template, {"title": "Notes", "type": "TEXTAREA", "is_required": False})
    assert optional.order == 1
