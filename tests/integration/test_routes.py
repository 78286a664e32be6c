"""
Integration test: HTTP API.

Drives the review and history endpoints through the Flask test client
with the in-memory history backend and a fake label service.
"""

import io

import pytest

from config import ReviewSettings
from errors import BackendError
from models import HistoryEntry, TranslationResult, ValidationResult
from repositories import get_repository
from review.backend import LabelBackend
from routes import helpers

LABEL_HTML = (
    "<html><body>"
    "<p class='allergens'>Contains milk</p>"
    "<p class='net-weight'>100 g</p>"
    "</body></html>"
)

RESULT = {
    "product_name": "Choco Bar",
    "source_html": LABEL_HTML,
    "total_errors": 2,
    "errors": [
        {"id": "a", "location": {"selector": ".allergens"},
         "missing": {"severity": "error", "item": "Soy statement"}},
        {"id": "b", "location": {"selector": ".net-weight"},
         "incorrect": {"severity": "warning", "current_value": "100 g", "issue": "Use oz too"}},
    ],
}

ALICE = {"X-User-Id": "alice", "X-User-Name": "Alice"}
BOB = {"X-User-Id": "bob"}
ADMIN = {"X-User-Id": "root", "X-User-Privileged": "true"}


class FakeLabelService(LabelBackend):
    def __init__(self):
        self.error = None

    def validate(self, file_name, content, country):
        if self.error:
            raise self.error
        return ValidationResult.from_payload(RESULT)

    def translate(self, file_name, content, country):
        if self.error:
            raise self.error
        return TranslationResult(target_country=country, html_output="<p>Bonjour</p>")


@pytest.fixture
def label_service():
    return FakeLabelService()


@pytest.fixture
def client(temp_dir, label_service):
    import app as app_module

    settings = ReviewSettings(data_dir=temp_dir, history_backend="memory")
    flask_app = app_module.create_app(settings)
    flask_app.config["TESTING"] = True
    flask_app.config["LABEL_BACKEND"] = label_service
    helpers._sessions.clear()
    yield flask_app.test_client()
    helpers._sessions.clear()


def _upload(client, path, headers, country="us"):
    return client.post(
        path,
        headers=headers,
        data={"file": (io.BytesIO(b"img"), "choco.png"), "country": country},
        content_type="multipart/form-data",
    )


class TestIdentity:

    def test_missing_identity_is_401(self, client):
        assert client.get("/api/review").status_code == 401

    def test_admin_routes_need_privilege(self, client):
        assert client.get("/api/admin/history", headers=ALICE).status_code == 403
        assert client.get("/api/admin/history/stats", headers=ALICE).status_code == 403


class TestReviewFlow:

    def test_validate_then_browse(self, client):
        r = _upload(client, "/api/review/validate", ALICE)
        assert r.status_code == 200
        assert r.get_json()["report"]["loaded"] == 2

        r = client.get("/api/review/findings", headers=ALICE)
        body = r.get_json()
        assert [f["id"] for f in body["items"]] == ["a", "b"]
        assert body["counts"] == {"error": 1, "warning": 1, "info": 0}

    def test_validate_without_file(self, client):
        r = client.post("/api/review/validate", headers=ALICE, data={})
        assert r.status_code == 400

    def test_backend_failure_is_502_and_logged(self, client, label_service):
        label_service.error = BackendError("OCR service down", status_code=503)

        r = _upload(client, "/api/review/validate", ALICE)

        assert r.status_code == 502
        assert r.get_json()["error"] == "OCR service down"
        [entry] = get_repository().history.query_by_owner("alice")
        assert entry.status.value == "failed"

    def test_load_result_reports_skipped(self, client):
        payload = dict(RESULT, total_errors=3, errors=RESULT["errors"] + [{"location": {"selector": "p"}}])

        r = client.post("/api/review/result", headers=ALICE, json={"result": payload})

        assert r.status_code == 200
        assert r.get_json()["report"]["loaded"] == 2
        assert r.get_json()["report"]["skipped"][0]["index"] == 2

    def test_inconsistent_result_is_400(self, client):
        r = client.post("/api/review/result", headers=ALICE, json=dict(RESULT, total_errors=5))
        assert r.status_code == 400
        assert r.get_json()["type"] == "InvalidResult"

    def test_activate_toggle(self, client):
        client.post("/api/review/result", headers=ALICE, json=RESULT)

        r = client.post("/api/review/findings/a/activate", headers=ALICE)
        assert r.get_json() == {"state": "active", "finding_id": "a", "matches": 1}

        r = client.post("/api/review/findings/a/activate", headers=ALICE)
        assert r.get_json()["state"] == "idle"

    def test_activate_unknown_is_404(self, client):
        client.post("/api/review/result", headers=ALICE, json=RESULT)
        assert client.post("/api/review/findings/zz/activate", headers=ALICE).status_code == 404

    def test_select_and_dismiss(self, client):
        client.post("/api/review/result", headers=ALICE, json=RESULT)
        client.post("/api/review/findings/a/toggle", headers=ALICE)

        r = client.post("/api/review/findings/dismiss", headers=ALICE)

        assert r.get_json()["removed"] == 1
        assert r.get_json()["session"]["findings"] == 1

    def test_select_all(self, client):
        client.post("/api/review/result", headers=ALICE, json=RESULT)
        r = client.post("/api/review/findings/select-all", headers=ALICE)
        assert r.get_json()["selected"] == ["a", "b"]

    def test_edit_undo_and_export(self, client):
        client.post("/api/review/result", headers=ALICE, json=RESULT)

        r = client.post("/api/review/edit", headers=ALICE, json={"selector": ".net-weight", "text": "3.5 oz"})
        assert r.get_json()["applied"] is True

        r = client.post("/api/review/shortcut", headers=ALICE, json={"keys": "Ctrl+Z"})
        assert r.get_json()["handled"] is True
        client.post("/api/review/redo", headers=ALICE)

        r = client.post("/api/review/export", headers=ALICE, json={})

        assert r.status_code == 200
        assert r.mimetype == "text/html"
        assert "Choco Bar_edited.html" in r.headers["Content-Disposition"]
        assert "3.5 oz" in r.get_data(as_text=True)

    def test_edit_no_match_is_404(self, client):
        client.post("/api/review/result", headers=ALICE, json=RESULT)
        r = client.post("/api/review/edit", headers=ALICE, json={"selector": ".nope", "text": "x"})
        assert r.status_code == 404

    def test_edit_bad_index_is_400(self, client):
        client.post("/api/review/result", headers=ALICE, json=RESULT)
        for index in ("abc", None, [1], -1):
            r = client.post(
                "/api/review/edit", headers=ALICE,
                json={"selector": ".net-weight", "text": "x", "index": index},
            )
            assert r.status_code == 400
            assert "index" in r.get_json()["error"]

    def test_translate(self, client):
        r = _upload(client, "/api/review/translate", ALICE, country="fr")

        assert r.status_code == 200
        assert r.get_json()["session"]["mode"] == "translate"
        assert r.get_json()["session"]["country"] == "FR"

    def test_sessions_are_per_user(self, client):
        client.post("/api/review/result", headers=ALICE, json=RESULT)
        assert client.get("/api/review", headers=BOB).get_json()["findings"] == 0

    def test_close_session(self, client):
        client.post("/api/review/result", headers=ALICE, json=RESULT)
        assert client.delete("/api/review", headers=ALICE).get_json() == {"closed": True}
        assert client.get("/api/review", headers=ALICE).get_json()["findings"] == 0


class TestHistoryApi:

    @pytest.fixture
    def seeded(self, client):
        repo = get_repository().history
        for i in range(7):
            repo.append(HistoryEntry.for_validation("alice", f"a{i}.png", 0, 0))
        repo.append(HistoryEntry.for_translation("bob", "menu.png", "de"))
        return repo

    def test_user_history_paginated(self, client, seeded):
        r = client.get("/api/user/history?page=2", headers=ALICE)
        body = r.get_json()

        assert body["page"]["page"] == 2
        assert body["page"]["count"] == 7
        assert [e["file_name"] for e in body["items"]] == ["a1.png", "a0.png"]

    def test_user_history_filtered(self, client, seeded):
        r = client.get("/api/user/history?q=a3", headers=ALICE)
        assert [e["file_name"] for e in r.get_json()["items"]] == ["a3.png"]

    def test_admin_history(self, client, seeded):
        r = client.get("/api/admin/history?type=translate", headers=ADMIN)
        items = r.get_json()["items"]
        assert [e["owner_id"] for e in items] == ["bob"]
        assert items[0]["type"] == "translate"

    def test_user_delete_own(self, client, seeded):
        ids = [e.id for e in seeded.query_by_owner("alice")[:2]]
        r = client.delete("/api/user/history", headers=ALICE, json={"ids": ids})
        assert r.get_json() == {"deleted": 2}
        assert seeded.count("alice") == 5

    def test_user_delete_foreign_is_403(self, client, seeded):
        bob_id = seeded.query_by_owner("bob")[0].id
        r = client.delete("/api/user/history", headers=ALICE, json=[bob_id])
        assert r.status_code == 403
        assert seeded.count() == 8

    def test_admin_delete_any(self, client, seeded):
        ids = [e.id for e in seeded.query_all()]
        r = client.delete("/api/admin/history", headers=ADMIN, json={"ids": ids})
        assert r.get_json() == {"deleted": 8}

    def test_stats(self, client, seeded):
        body = client.get("/api/admin/history/stats", headers=ADMIN).get_json()

        assert body["total"] == 8
        assert body["validations"] == 7
        assert body["translations"] == 1
        assert {o["owner_id"] for o in body["owners"]} == {"alice", "bob"}
