from fastapi.testclient import TestClient

from app.models.user import User as UserModel


def test_template_analytics_owner_or_admin(
    client: TestClient, template_factory, user_headers: dict, second_user_headers: dict, admin_headers: dict,
):
    template = template_factory(questions=[{"title": "Rating", "type": "NUMBER"}])
    question_id = template.questions[0].id
    for value in (3, 5):
        client.post(
            "/forms/",
            json={"template_id": template.id, "answers": [{"question_id": question_id, "value": value}], "completed": True},
            headers=second_user_headers,
        )

    url = f"/analytics/template/{template.id}"
    assert client.get(url, headers=second_user_headers).status_code == 403
    assert client.get(url, headers=admin_headers).status_code == 200

    body = client.get(url, headers=user_headers).json()
    assert body["form_count"] == 2
    assert body["completed_count"] == 2
    assert body["question_analytics"][0]["type"] == "NUMBER"
    assert body["question_analytics"][0]["stats"]["average"] == 4.0


def test_platform_stats_admin_only(client: TestClient, template_factory, user_headers: dict, admin_headers: dict):
    template_factory()
    assert client.get("/analytics/stats", headers=user_headers).status_code == 403
    body = client.get("/analytics/stats", headers=admin_headers).json()
    assert body["total_users"] == 2
    assert body["total_templates"] == 1
    assert body["active_percentage"] == 100
    assert len(body["daily_forms"]) == 7


def test_user_analytics(client: TestClient, template_factory, test_user: UserModel, user_headers: dict, admin_headers: dict):
    template = template_factory(title="Daily check-in")
    client.post(f"/forms/create/{template.id}", headers=user_headers)

    assert client.get(f"/analytics/user/{test_user.id}", headers=user_headers).status_code == 403
    body = client.get(f"/analytics/user/{test_user.id}", headers=admin_headers).json()
    assert body["total_forms"] == 1
    assert body["forms_by_template"] == {"Daily check-in": 1}
    assert client.get("/analytics/user/9999", headers=admin_headers).status_code == 404
