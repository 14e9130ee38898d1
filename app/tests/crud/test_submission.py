import pytest
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AnswerValidationError,
    RequiredAnswersMissing,
    ValidationError,
)
from app.core.settings import settings
from app.crud.form import delete_form, get_form, list_user_forms
from app.models.form import Answer, Form
from app.models.user import User as UserModel
from app.services.submission import create_form, update_answers


@pytest.fixture
def survey(template_factory):
    """Required TEXT, optional NUMBER, required CHECKBOX."""
    return template_factory(
        questions=[
            {"title": "Name", "type": "TEXT"},
            {"title": "Age", "type": "NUMBER", "is_required": False},
            {"title": "Colors", "type": "CHECKBOX", "options": ["Red", "Green", "Blue"]},
        ]
    )


def ids(template):
    name, age, colors = template.questions
    return name.id, age.id, colors.id, [o.id for o in colors.options]


def answers_by_question(db: Session, form_id: int):
    return {a.question_id: a.value for a in db.query(Answer).filter(Answer.form_id == form_id).all()}


def test_create_form_preseeds_empty_answers(db: Session, test_user: UserModel, survey):
    name_id, age_id, colors_id, _ = ids(survey)
    form = create_form(db, survey, test_user.id)
    assert form.completed is False
    assert form.author_id == test_user.id
    assert answers_by_question(db, form.id) == {name_id: "", age_id: None, colors_id: []}


def test_create_form_without_preseed(db: Session, test_user: UserModel, survey, monkeypatch):
    monkeypatch.setattr(settings, "FORM_PRESEED_ANSWERS", False)
    name_id, _, _, _ = ids(survey)
    form = create_form(db, survey, test_user.id, answers=[{"question_id": name_id, "value": "Ann"}])
    assert answers_by_question(db, form.id) == {name_id: "Ann"}


def test_create_completed_form_requires_coverage(db: Session, test_user: UserModel, survey):
    name_id, _, colors_id, _ = ids(survey)
    with pytest.raises(RequiredAnswersMissing) as exc_info:
        create_form(db, survey, test_user.id, answers=[{"question_id": name_id, "value": "Ann"}], completed=True)
    assert exc_info.value.question_ids == [colors_id]
    assert db.query(Form).count() == 0


def test_update_answers_upserts_one_row_per_question(db: Session, test_user: UserModel, survey):
    name_id, age_id, _, _ = ids(survey)
    form = create_form(db, survey, test_user.id)

    update_answers(db, form, [{"question_id": name_id, "value": "first"}])
    update_answers(db, form, [{"question_id": name_id, "value": "second"}, {"question_id": age_id, "value": "41"}])

    rows = db.query(Answer).filter(Answer.form_id == form.id, Answer.question_id == name_id).all()
    assert len(rows) == 1
    assert rows[0].value == "second"
    assert answers_by_question(db, form.id)[age_id] == 41.0
    assert db.query(Answer).filter(Answer.form_id == form.id).count() == 3


def test_update_inserts_missing_rows_without_preseed(db: Session, test_user: UserModel, survey, monkeypatch):
    monkeypatch.setattr(settings, "FORM_PRESEED_ANSWERS", False)
    name_id, _, _, _ = ids(survey)
    form = create_form(db, survey, test_user.id)
    assert db.query(Answer).count() == 0
    update_answers(db, form, [{"question_id": name_id, "value": "x"}])
    update_answers(db, form, [{"question_id": name_id, "value": "y"}])
    assert answers_by_question(db, form.id) == {name_id: "y"}


def test_completion_is_all_or_nothing(db: Session, test_user: UserModel, survey):
    name_id, age_id, colors_id, option_ids = ids(survey)
    form = create_form(db, survey, test_user.id)

    with pytest.raises(RequiredAnswersMissing) as exc_info:
        update_answers(
            db, form,
            [{"question_id": age_id, "value": 30}, {"question_id": colors_id, "value": []}],
            completed=True,
        )
    assert exc_info.value.question_ids == [name_id, colors_id]
    # nothing from the rejected call was applied
    assert answers_by_question(db, form.id)[age_id] is None
    assert db.query(Form).filter(Form.id == form.id).first().completed is False

    update_answers(
        db, form,
        [{"question_id": name_id, "value": "Ann"}, {"question_id": colors_id, "value": [option_ids[2], option_ids[0]]}],
        completed=True,
    )
    assert form.completed is True
    assert answers_by_question(db, form.id)[colors_id] == [option_ids[2], option_ids[0]]


def test_completion_merges_stored_answers(db: Session, test_user: UserModel, survey):
    name_id, _, colors_id, option_ids = ids(survey)
    form = create_form(db, survey, test_user.id, answers=[{"question_id": name_id, "value": "Ann"}])
    update_answers(db, form, [{"question_id": colors_id, "value": [option_ids[1]]}], completed=True)
    assert form.completed is True


def test_completed_form_stays_covered(db: Session, test_user: UserModel, survey):
    name_id, _, colors_id, option_ids = ids(survey)
    form = create_form(
        db, survey, test_user.id,
        answers=[{"question_id": name_id, "value": "Ann"}, {"question_id": colors_id, "value": [option_ids[0]]}],
        completed=True,
    )
    with pytest.raises(RequiredAnswersMissing):
        update_answers(db, form, [{"question_id": name_id, "value": ""}])
    with pytest.raises(ValidationError, match="cannot be reopened"):
        update_answers(db, form, [], completed=False)
    update_answers(db, form, [{"question_id": name_id, "value": "Bob"}])
    assert form.completed is True
    assert answers_by_question(db, form.id)[name_id] == "Bob"


def test_answers_must_belong_to_template(db: Session, test_user: UserModel, survey, template_factory):
    other = template_factory(title="Other")
    form = create_form(db, survey, test_user.id)
    with pytest.raises(AnswerValidationError, match="does not belong"):
        update_answers(db, form, [{"question_id": other.questions[0].id, "value": "x"}])


def test_answer_value_checked_against_type(db: Session, test_user: UserModel, survey, template_factory):
    _, age_id, colors_id, _ = ids(survey)
    other = template_factory(title="Other", questions=[{"title": "C", "type": "SELECT", "options": ["a"]}])
    foreign_option = other.questions[0].options[0].id
    form = create_form(db, survey, test_user.id)
    with pytest.raises(AnswerValidationError, match=f"question {age_id}"):
        update_answers(db, form, [{"question_id": age_id, "value": "old"}])
    with pytest.raises(AnswerValidationError, match="does not belong to this question"):
        update_answers(db, form, [{"question_id": colors_id, "value": [foreign_option]}])


def test_delete_form_removes_answers(db: Session, test_user: UserModel, survey):
    form = create_form(db, survey, test_user.id)
    form_id = form.id
    delete_form(db, form)
    assert db.query(Form).filter(Form.id == form_id).count() == 0
    assert db.query(Answer).filter(Answer.form_id == form_id).count() == 0


def test_list_user_forms_newest_first(db: Session, test_user: UserModel, second_user: UserModel, survey):
    first = create_form(db, survey, test_user.id)
    second = create_form(db, survey, test_user.id)
    create_form(db, survey, second_user.id)
    items, pagination = list_user_forms(db, test_user.id)
    assert [f.id for f in items] == [second.id, first.id]
    assert pagination["total"] == 2
    assert get_form(db, first.id).template.title == survey.title
