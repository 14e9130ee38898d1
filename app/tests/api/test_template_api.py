import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.models.form import Form as FormModel
from app.models.template import Template as TemplateModel
from app.models.user import User as UserModel


# --- Fixtures ---
@pytest.fixture
def template_payload():
    return {
        "title": "Event registration",
        "description": "Sign up for the meetup",
        "topic": "Events",
        "is_public": True,
        "tags": ["Meetup", "python"],
        "questions": [
            {"title": "Full name", "type": "TEXT"},
            {"title": "Talk format", "type": "RADIO", "options": ["Lightning", "Full"], "display_in_table": True},
            {"title": "Comments", "type": "TEXTAREA", "is_required": False},
        ],
    }


# --- POST /templates/ ---
def test_create_template_api_success(client: TestClient, user_headers: dict, test_user: UserModel, template_payload: dict, db: Session):
    response = client.post("/templates/", json=template_payload, headers=user_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Event registration"
    assert data["owner_id"] == test_user.id
    assert data["owner"]["name"] == test_user.name
    assert data["tags"] == ["meetup", "python"]
    assert [q["order"] for q in data["questions"]] == [0, 1, 2]
    assert [o["value"] for o in data["questions"][1]["options"]] == ["Lightning", "Full"]
    assert data["questions"][0]["is_required"] is True
    assert data["questions"][1]["display_in_table"] is True
    assert db.query(TemplateModel).filter(TemplateModel.id == data["id"]).count() == 1


def test_create_template_requires_auth(client: TestClient, template_payload: dict):
    assert client.post("/templates/", json=template_payload).status_code == 401


def test_create_template_invalid_options(client: TestClient, user_headers: dict, template_payload: dict):
    template_payload["questions"] = [{"title": "Pick", "type": "CHECKBOX", "options": []}]
    response = client.post("/templates/", json=template_payload, headers=user_headers)
    assert response.status_code == 400
    template_payload["questions"] = [{"title": "Age", "type": "NUMBER", "options": ["1"]}]
    assert client.post("/templates/", json=template_payload, headers=user_headers).status_code == 400
    template_payload["questions"] = [{"title": "Age", "type": "DATE"}]
    assert client.post("/templates/", json=template_payload, headers=user_headers).status_code == 422


# --- GET /templates/public, /templates/user ---
def test_list_public_templates_shape(client: TestClient, template_factory):
    for i in range(3):
        template_factory(title=f"Public {i}")
    template_factory(title="Private", is_public=False)

    response = client.get("/templates/public", params={"limit": 2})
    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"total": 3, "page": 1, "limit": 2, "totalPages": 2}
    assert all(item["is_public"] for item in body["data"])

    response = client.get("/templates/public", params={"search": "public 1"})
    assert [item["title"] for item in response.json()["data"]] == ["Public 1"]
    assert client.get("/templates/public", params={"sort": "oldest"}).status_code == 422


def test_list_user_templates(client: TestClient, user_headers: dict, second_user: UserModel, template_factory):
    template_factory(title="Mine", is_public=False)
    template_factory(owner=second_user, title="Theirs")
    response = client.get("/templates/user", headers=user_headers)
    assert response.status_code == 200
    assert [item["title"] for item in response.json()["data"]] == ["Mine"]


# --- GET /templates/{id} visibility ---
def test_private_template_visibility(
    client: TestClient, db: Session, template_factory, second_user: UserModel,
    user_headers: dict, second_user_headers: dict, admin_headers: dict,
):
    template = template_factory(is_public=False)
    url = f"/templates/{template.id}"
    assert client.get(url, headers=user_headers).status_code == 200
    assert client.get(url, headers=admin_headers).status_code == 200
    assert client.get(url, headers=second_user_headers).status_code == 403

    response = client.put(url, json={"allowed_user_ids": [second_user.id]}, headers=user_headers)
    assert response.status_code == 200
    assert response.json()["allowed_user_ids"] == [second_user.id]
    assert client.get(url, headers=second_user_headers).status_code == 200


def test_get_template_not_found(client: TestClient, user_headers: dict):
    response = client.get("/templates/9999", headers=user_headers)
    assert response.status_code == 404


# --- PUT /templates/{id} ---
def test_update_template_owner_only(client: TestClient, template_factory, second_user_headers: dict, admin_headers: dict):
    template = template_factory()
    url = f"/templates/{template.id}"
    assert client.put(url, json={"title": "Hijacked"}, headers=second_user_headers).status_code == 403
    response = client.put(url, json={"title": "Moderated", "tags": ["edited"]}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["title"] == "Moderated"
    assert response.json()["tags"] == ["edited"]


def test_update_questions_locked_after_forms(client: TestClient, db: Session, template_factory, user_headers: dict, second_user: UserModel):
    template = template_factory()
    db.add(FormModel(template_id=template.id, author_id=second_user.id))
    db.commit()
    response = client.put(
        f"/templates/{template.id}",
        json={"questions": [{"title": "Replaced", "type": "TEXT"}]},
        headers=user_headers,
    )
    assert response.status_code == 409


# --- POST /templates/{id}/questions ---
def test_append_question(client: TestClient, template_factory, user_headers: dict, second_user_headers: dict):
    template = template_factory()
    url = f"/templates/{template.id}/questions"
    payload = {"title": "Favourite", "type": "SELECT", "options": ["a", "b"]}
    assert client.post(url, json=payload, headers=second_user_headers).status_code == 403
    response = client.post(url, json=payload, headers=user_headers)
    assert response.status_code == 201
    assert response.json()["order"] == 1
    assert response.json()["template_id"] == template.id

    full = client.get(f"/templates/{template.id}", headers=user_headers).json()
    assert [q["title"] for q in full["questions"]] == ["Your name", "Favourite"]


# --- DELETE ---
def test_delete_template(client: TestClient, db: Session, template_factory, user_headers: dict, second_user_headers: dict):
    template = template_factory()
    url = f"/templates/{template.id}"
    assert client.delete(url, headers=second_user_headers).status_code == 403
    assert client.delete(url, headers=user_headers).status_code == 200
    assert client.get(url, headers=user_headers).status_code == 404


def test_bulk_delete_all_or_nothing(
    client: TestClient, db: Session, template_factory, second_user: UserModel, user_headers: dict, admin_headers: dict,
):
    mine = template_factory(title="Mine")
    theirs = template_factory(owner=second_user, title="Theirs")

    response = client.post("/templates/bulk-delete", json={"ids": [mine.id, theirs.id]}, headers=user_headers)
    assert response.status_code == 403
    assert db.query(TemplateModel).count() == 2

    response = client.post("/templates/bulk-delete", json={"ids": [mine.id, 9999]}, headers=user_headers)
    assert response.status_code == 404
    assert db.query(TemplateModel).count() == 2

    assert client.post("/templates/bulk-delete", json={"ids": []}, headers=user_headers).status_code == 422

    response = client.post("/templates/bulk-delete", json={"ids": [mine.id, theirs.id]}, headers=admin_headers)
    assert response.status_code == 200
    assert db.query(TemplateModel).count() == 0


# --- GET /templates/{id}/forms ---
def test_template_results_owner_or_admin(
    client: TestClient, template_factory, second_user_headers: dict, user_headers: dict, admin_headers: dict,
):
    template = template_factory()
    question_id = template.questions[0].id
    created = client.post(
        "/forms/",
        json={"template_id": template.id, "answers": [{"question_id": question_id, "value": "Sam"}]},
        headers=second_user_headers,
    )
    assert created.status_code == 201

    url = f"/templates/{template.id}/forms"
    assert client.get(url, headers=second_user_headers).status_code == 403
    for headers in (user_headers, admin_headers):
        response = client.get(url, headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["pagination"]["total"] == 1
        assert body["data"][0]["answers"][0]["value"] == "Sam"
