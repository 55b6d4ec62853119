"""HTTP tests for the FastAPI server.

The app is built with ``create_app(ServerSettings(...))`` against the
example forms and driven through ``TestClient`` used as a context manager,
so the lifespan handler loads the store and builds the engine exactly as
in production.  Completed responses land in the default in-memory sink.
"""

import pytest
from fastapi.testclient import TestClient

from formflow_server.app import create_app
from formflow_server.config import ServerSettings
from formflow_server.routes import API_PREFIX

ADMIN_KEY = "secret"


@pytest.fixture
def client(example_forms_dir):
    settings = ServerSettings(forms_dir=str(example_forms_dir), admin_api_key=ADMIN_KEY)
    with TestClient(create_app(settings)) as c:
        yield c


def _url(path):
    return f"{API_PREFIX}{path}"


def _create(client, form_id="newsletter-signup", session_id="s1"):
    resp = client.post(_url("/sessions"), json={"form_id": form_id, "session_id": session_id})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _step(client, answers, session_id="s1"):
    return client.post(_url(f"/sessions/{session_id}/step"), json={"answers": answers})


class TestHealthAndForms:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "forms": 3}

    def test_list_forms_hides_unpublished(self, client):
        resp = client.get(_url("/forms"))
        assert resp.status_code == 200
        summaries = {f["id"]: f for f in resp.json()}
        assert set(summaries) == {"customer-feedback", "newsletter-signup"}
        feedback = summaries["customer-feedback"]
        assert feedback["question_count"] == 6
        assert feedback["has_welcome_screen"] is True
        assert feedback["final_count"] == 2

    def test_get_form_is_camel_case(self, client):
        body = client.get(_url("/forms/customer-feedback")).json()
        assert body["welcomeScreen"]["buttonText"] == "Start"
        assert body["workflow"]["rules"][0]["actions"][1]["targetQuestionId"] == "comments"

    def test_unpublished_form_is_not_found(self, client):
        resp = client.get(_url("/forms/draft-survey"))
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Resource not found"}


class TestSessions:
    def test_create_and_get(self, client):
        body = _create(client)
        assert body["session_id"] == "s1"
        assert body["state"] == "question"
        assert body["submission_status"] == "not_submitted"
        assert client.get(_url("/sessions/s1")).json()["form_id"] == "newsletter-signup"

    def test_create_duplicate(self, client):
        _create(client)
        resp = client.post(_url("/sessions"), json={"form_id": "newsletter-signup", "session_id": "s1"})
        assert resp.status_code == 409

    def test_create_for_unknown_form(self, client):
        resp = client.post(_url("/sessions"), json={"form_id": "draft-survey"})
        assert resp.status_code == 404

    def test_missing_session(self, client):
        assert client.get(_url("/sessions/missing")).status_code == 404
        assert client.get(_url("/sessions/missing/step")).status_code == 404

    def test_delete(self, client):
        _create(client)
        assert client.delete(_url("/sessions/s1")).status_code == 204
        assert client.get(_url("/sessions/s1")).status_code == 404
        assert client.delete(_url("/sessions/s1")).status_code == 404

    def test_list_by_form(self, client):
        _create(client, session_id="a")
        _create(client, form_id="customer-feedback", session_id="b")
        resp = client.get(_url("/sessions"), params={"form_id": "customer-feedback"})
        assert [s["session_id"] for s in resp.json()] == ["b"]
        assert client.get(_url("/sessions"), params={"limit": 0}).status_code == 422


class TestSteps:
    def test_validation_error_is_not_an_http_error(self, client):
        _create(client)
        resp = _step(client, {"email": "bad"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["type"] == "question"
        assert body["errors"]["email"]["code"] == "InvalidEmailFormat"

    def test_answer_for_another_step(self, client):
        _create(client)
        resp = _step(client, {"topics": "Events"})
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Invalid request"}

    def test_unsupported_value_type(self, client):
        _create(client)
        resp = client.put(_url("/sessions/s1/answers/email"), json={"value": {"nested": 1}})
        assert resp.status_code == 400
        assert _step(client, {"email": True}).status_code == 400
        assert client.get(_url("/sessions/s1/answers")).json() == []

    def test_unknown_question(self, client):
        _create(client)
        resp = client.put(_url("/sessions/s1/answers/nope"), json={"value": "x"})
        assert resp.status_code == 404

    def test_set_answer_and_back(self, client):
        _create(client)
        resp = client.put(_url("/sessions/s1/answers/email"), json={"value": "ada@example.org"})
        assert resp.json()["values"] == {"email": "ada@example.org"}

        body = _step(client, {}).json()
        assert body["question"]["id"] == "topics"
        assert body["questions"][0]["options"] == ["Product news", "Engineering", "Events"]
        assert body["hide_question_number"] is True

        body = client.post(_url("/sessions/s1/back")).json()
        assert body["question"]["id"] == "email"
        assert body["values"] == {"email": "ada@example.org"}

    def test_welcome_and_final_screens(self, client):
        _create(client, form_id="customer-feedback")
        assert client.get(_url("/sessions/s1/step")).json()["type"] == "welcome"
        for answers in (
            {},
            {"name": "Ada"},
            {"email": "ada@example.org"},
            {"satisfaction": 5},
            {"visit_reason": "Support"},
        ):
            assert _step(client, answers).status_code == 200
        body = _step(client, {}).json()
        assert body["type"] == "final"
        assert body["final_id"] == "promoter"
        assert _step(client, {}).json()["type"] == "completed"


class TestCompletion:
    def test_complete_and_fetch_response(self, client):
        _create(client)
        body = _step(client, {"email": "staff@example.com"}).json()
        assert body["type"] == "completed"
        assert body["submission_status"] == "submitted"

        response = client.get(_url("/sessions/s1/response")).json()
        assert response["formId"] == "newsletter-signup"
        assert response["answers"] == [{"questionId": "email", "value": "staff@example.com"}]
        assert body["response_id"] == response["id"]

        sink = client.app.state.sink
        assert list(sink.responses) == [response["id"]]

    def test_answers_endpoint(self, client):
        _create(client)
        client.put(_url("/sessions/s1/answers/email"), json={"value": "ada@example.org"})
        assert client.get(_url("/sessions/s1/answers")).json() == [
            {"questionId": "email", "value": "ada@example.org"},
        ]

    def test_response_before_completion(self, client):
        _create(client)
        assert client.get(_url("/sessions/s1/response")).status_code == 409
        assert client.post(_url("/sessions/s1/submission")).status_code == 409

    def test_advance_completed_session(self, client):
        _create(client)
        _step(client, {"email": "staff@example.com"})
        assert _step(client, {}).status_code == 409

    def test_retry_is_idempotent(self, client):
        _create(client)
        _step(client, {"email": "staff@example.com"})
        resp = client.post(_url("/sessions/s1/submission"))
        assert resp.status_code == 200
        assert resp.json()["submission_status"] == "submitted"
        assert len(client.app.state.sink.responses) == 1


class TestAdmin:
    def test_missing_key(self, client):
        assert client.post(_url("/admin/cleanup/sessions")).status_code == 401

    def test_wrong_key(self, client):
        resp = client.post(_url("/admin/cleanup/sessions"), headers={"X-Admin-Key": "nope"})
        assert resp.status_code == 403

    def test_cleanup(self, client):
        _create(client)
        resp = client.post(
            _url("/admin/cleanup/sessions"),
            params={"idle_minutes": 60},
            headers={"X-Admin-Key": ADMIN_KEY},
        )
        assert resp.json() == {"affected_sessions": 0, "idle_minutes": 60}
        assert client.get(_url("/sessions/s1")).status_code == 200

    def test_negative_idle_minutes(self, client):
        resp = client.post(
            _url("/admin/cleanup/sessions"),
            params={"idle_minutes": -1},
            headers={"X-Admin-Key": ADMIN_KEY},
        )
        assert resp.status_code == 422

    def test_disabled_without_configured_key(self, example_forms_dir):
        settings = ServerSettings(forms_dir=str(example_forms_dir))
        with TestClient(create_app(settings)) as c:
            resp = c.post(_url("/admin/cleanup/sessions"), headers={"X-Admin-Key": "x"})
        assert resp.status_code == 403
