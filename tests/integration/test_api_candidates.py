from __future__ import annotations

import threading

from fastapi.testclient import TestClient

from resume_ranker.api.app import create_app
from resume_ranker.api.deps import get_runner
from resume_ranker.config import get_settings
from resume_ranker.core import intake
from resume_ranker.db.repositories import Repository
from resume_ranker.db.session import SessionLocal

ROLE = {"title": "Backend Engineer", "department": "Engineering", "location": "Remote", "type": "Full-time"}


class FakeRunner:
    def __init__(self) -> None:
        self.submitted: list[dict] = []
        self.cancelled: list[int] = []

    def submit(self, *, candidate_id: int, resume_text: str, role_title: str):
        self.submitted.append(
            {"candidate_id": candidate_id, "resume_text": resume_text, "role_title": role_title}
        )
        return None

    def cancel(self, candidate_id: int) -> bool:
        self.cancelled.append(candidate_id)
        return False

    def cancel_all(self) -> int:
        return 0

    def active_candidate_ids(self) -> list[int]:
        return [item["candidate_id"] for item in self.submitted]


def _client() -> tuple[TestClient, FakeRunner]:
    app = create_app()
    runner = FakeRunner()
    app.dependency_overrides[get_runner] = lambda: runner
    return TestClient(app), runner


def _upload(client: TestClient, role_id: int, name: str = "jane.txt", body: bytes = b"Jane Doe\nPython"):
    return client.post(
        "/api/candidates",
        data={"role_id": str(role_id)},
        files={"resume": (name, body, "text/plain")},
    )


def test_role_create_list_and_detail() -> None:
    client, _ = _client()

    created = client.post("/api/roles", json=ROLE)
    assert created.status_code == 201
    role_id = created.json()["id"]
    assert created.json()["status"] == "open"

    listed = client.get("/api/roles")
    assert listed.status_code == 200
    assert listed.json()[0]["id"] == role_id
    assert listed.json()[0]["applicants"] == 0

    detail = client.get(f"/api/roles/{role_id}")
    assert detail.status_code == 200
    assert detail.json()["candidates"] == []

    assert client.get("/api/roles/9999").status_code == 404


def test_role_creation_can_be_disabled() -> None:
    client, _ = _client()

    toggled = client.post("/api/config/roles/disable")
    assert toggled.status_code == 200
    assert toggled.json()["message"] == "Role creation disabled"

    assert client.post("/api/roles", json=ROLE).status_code == 403


def test_upload_creates_placeholder_candidate_and_schedules_processing() -> None:
    client, runner = _client()
    role_id = client.post("/api/roles", json=ROLE).json()["id"]

    response = _upload(client, role_id)

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Processing..."
    assert body["email"] == "processing@temp.com"
    assert body["status"] == "in-review"
    assert body["score"] == 0
    assert body["message"] == "Resume uploaded successfully. AI analysis in progress."
    assert body["resume_path"].endswith("_jane.txt")
    assert (get_settings().upload_dir / body["resume_path"]).read_bytes() == b"Jane Doe\nPython"

    assert runner.submitted == [
        {"candidate_id": body["id"], "resume_text": "Jane Doe\nPython", "role_title": "Backend Engineer"}
    ]

    detail = client.get(f"/api/candidates/{body['id']}")
    assert detail.status_code == 200
    assert detail.json()["processing"] is True
    assert detail.json()["skills"] == []
    assert detail.json()["assessment"] is None


def test_upload_for_unknown_role_is_404() -> None:
    client, runner = _client()
    assert _upload(client, 4242).status_code == 404
    assert runner.submitted == []


def test_upload_rejected_when_uploads_disabled() -> None:
    client, runner = _client()
    role_id = client.post("/api/roles", json=ROLE).json()["id"]
    client.post("/api/config/uploads/disable")

    response = _upload(client, role_id)

    assert response.status_code == 403
    assert runner.submitted == []


def test_upload_rate_limit_returns_429_with_retry_after() -> None:
    client, runner = _client()
    role_id = client.post("/api/roles", json=ROLE).json()["id"]
    assert client.patch("/api/config", json={"upload_rate_limit_seconds": 60}).status_code == 200

    first = _upload(client, role_id)
    second = _upload(client, role_id)

    assert first.status_code == 201
    assert second.status_code == 429
    assert int(second.headers["retry-after"]) > 0
    assert "Rate limit exceeded" in second.json()["detail"]
    assert len(runner.submitted) == 1


def test_candidate_update_and_delete() -> None:
    client, runner = _client()
    role_id = client.post("/api/roles", json=ROLE).json()["id"]
    body = _upload(client, role_id).json()
    candidate_id = body["id"]

    updated = client.put(f"/api/candidates/{candidate_id}", json={"status": "shortlisted", "phone": None})
    assert updated.status_code == 200
    assert updated.json()["status"] == "shortlisted"

    assert client.put(f"/api/candidates/{candidate_id}", json={"status": "hired"}).status_code == 422
    assert client.put("/api/candidates/9999", json={"status": "rejected"}).status_code == 404

    deleted = client.delete(f"/api/candidates/{candidate_id}")
    assert deleted.status_code == 200
    assert runner.cancelled == [candidate_id]
    assert not (get_settings().upload_dir / body["resume_path"]).exists()
    assert client.get(f"/api/candidates/{candidate_id}").status_code == 404


def test_candidate_detail_includes_skills_and_assessment() -> None:
    client, _ = _client()
    role_id = client.post("/api/roles", json=ROLE).json()["id"]

    with SessionLocal() as db:
        repo = Repository(db)
        candidate = repo.create_candidate(role_id=role_id, name="Jane Doe", email="jane@x.com")
        repo.add_skill(candidate.id, "Python", 90)
        repo.create_assessment(
            candidate_id=candidate.id,
            technical_score=80,
            experience_score=70,
            education_score=90,
            cultural_score=60,
            recommendation="Hire",
            detailed_comments="Good fit.",
            strengths=["APIs"],
            weaknesses=["Frontend"],
        )
        candidate_id = candidate.id

    detail = client.get(f"/api/candidates/{candidate_id}").json()
    assert detail["processing"] is False
    assert detail["skills"][0]["skill_name"] == "Python"
    assert detail["assessment"]["recommendation"] == "Hire"
    assert detail["assessment"]["strengths"] == ["APIs"]


def test_resume_download() -> None:
    client, _ = _client()
    role_id = client.post("/api/roles", json=ROLE).json()["id"]
    candidate_id = _upload(client, role_id, body=b"resume body").json()["id"]

    response = client.get(f"/api/candidates/{candidate_id}/resume")
    assert response.status_code == 200
    assert response.content == b"resume body"


def test_config_roundtrip_and_unknown_toggle() -> None:
    client, _ = _client()

    assert client.get("/api/config").json() == {
        "upload_rate_limit_seconds": 0,
        "enable_new_role_creation": True,
        "enable_resume_uploads": True,
    }
    patched = client.patch("/api/config", json={"enable_resume_uploads": False})
    assert patched.json()["enable_resume_uploads"] is False
    assert client.patch("/api/config", json={"upload_rate_limit_seconds": -5}).status_code == 422
    assert client.post("/api/config/everything/enable").status_code == 404


def test_debug_and_reset() -> None:
    client, _ = _client()
    role_id = client.post("/api/roles", json=ROLE).json()["id"]
    _upload(client, role_id)

    debug = client.get("/api/debug")
    assert debug.status_code == 200
    assert debug.json()["summary"] == {
        "totalRoles": 1,
        "totalCandidates": 1,
        "totalSkills": 0,
        "totalAssessments": 0,
    }

    reset = client.delete("/api/reset")
    assert reset.status_code == 200
    assert client.get("/api/roles").json() == []
    assert [path for path in get_settings().upload_dir.iterdir() if path.is_file()] == []


def test_upload_stores_file_off_the_event_loop_thread(monkeypatch) -> None:
    threads: dict[str, int] = {}
    original_store = intake.store_resume

    def recording_store(*args, **kwargs):
        threads["store"] = threading.get_ident()
        return original_store(*args, **kwargs)

    class ThreadRecordingRunner(FakeRunner):
        def submit(self, **kwargs):
            threads["submit"] = threading.get_ident()
            return super().submit(**kwargs)

    monkeypatch.setattr("resume_ranker.core.intake.store_resume", recording_store)
    app = create_app()
    runner = ThreadRecordingRunner()
    app.dependency_overrides[get_runner] = lambda: runner
    client = TestClient(app)
    role_id = client.post("/api/roles", json=ROLE).json()["id"]

    assert _upload(client, role_id).status_code == 201
    assert len(runner.submitted) == 1
    assert threads["store"] != threads["submit"]
