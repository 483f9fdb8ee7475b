from __future__ import annotations

import importlib
import json
import sys

from fastapi.testclient import TestClient

from tests.conftest import build_raw_bank, mcq_row, raw_question


def _reload_app(monkeypatch, tmp_path) -> tuple[object, object]:
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    if "api.storage" in sys.modules:
        importlib.reload(sys.modules["api.storage"])
    else:
        import api.storage  # noqa: F401
    storage = sys.modules["api.storage"]
    if "api.app" in sys.modules:
        importlib.reload(sys.modules["api.app"])
    else:
        import api.app  # noqa: F401
    app_module = sys.modules["api.app"]
    return storage, app_module


def _bank() -> dict:
    return build_raw_bank(
        reading=[
            mcq_row("q1", 1, correct="0", options=("A", "B", "C")),
            raw_question("q2", 2, "short_answer", correct_answer="library"),
        ],
        writing=[{"id": "w1", "question_number": 1, "task_prompt": "Describe the chart", "points": 5}],
    )


def _seed(client: TestClient) -> None:
    assert client.put("/tests/test-1/bank", json=_bank()).status_code == 200
    resp = client.post("/submissions", json={
        "submission_id": "sub-1",
        "test_id": "test-1",
        "answers": {"q1": "A", "q_99": "the library", "w1": "The chart shows a rise."},
    })
    assert resp.status_code == 200
    assert resp.json() == {"submission_id": "sub-1", "status": "submitted"}


def test_grade_persist_and_fetch(monkeypatch, tmp_path):
    storage, app_module = _reload_app(monkeypatch, tmp_path)
    client = TestClient(app_module.app)
    _seed(client)

    resp = client.post("/submissions/sub-1/grade", json={"graded_by": "teacher-7"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["saved"] is True
    assert body["reading"] == {"correct": 2, "total": 2, "percentage": 100.0}
    assert body["reading_band"] == 2.5
    assert body["writing_band"] == 5.5
    assert body["overall_band"] == 4.0
    assert body["flagged_for_review"] == ["w1"]

    stored = client.get("/submissions/sub-1/result").json()
    assert stored["status"] == "graded"
    assert stored["graded_by"] == "teacher-7"
    assert stored["total_score"] == 4.0
    assert len(stored["submission_data"]) == 3

    on_disk = json.loads((storage.SUBMISSIONS_DIR / "sub-1.json").read_text(encoding="utf-8"))
    assert on_disk["status"] == "graded"
    assert on_disk["reading_score"] == 2.5

    listing = client.get("/tests/test-1/results").json()["results"]
    assert [r["submissionId"] for r in listing] == ["sub-1"]


def test_result_csv_and_rows(monkeypatch, tmp_path):
    _, app_module = _reload_app(monkeypatch, tmp_path)
    client = TestClient(app_module.app)
    _seed(client)
    client.post("/submissions/sub-1/grade")

    csv_resp = client.get("/submissions/sub-1/result.csv")
    assert csv_resp.status_code == 200
    assert csv_resp.headers["content-type"].startswith("text/csv")
    lines = csv_resp.text.strip().splitlines()
    assert lines[0].startswith("question_number,question_id,section")
    assert len(lines) == 4

    with_rows = client.get("/submissions/sub-1/result", params={"rows": True}).json()
    assert [r["question_id"] for r in with_rows["rows"]] == ["q1", "q2", "w1"]


def test_grade_without_saving(monkeypatch, tmp_path):
    _, app_module = _reload_app(monkeypatch, tmp_path)
    client = TestClient(app_module.app)
    _seed(client)

    resp = client.post("/submissions/sub-1/grade", json={"save": False})
    assert resp.status_code == 200
    assert resp.json()["saved"] is False
    assert client.get("/submissions/sub-1/result").status_code == 404


def test_manual_writing_grades(monkeypatch, tmp_path):
    _, app_module = _reload_app(monkeypatch, tmp_path)
    client = TestClient(app_module.app)
    _seed(client)

    criteria = {"task_achievement": 7, "coherence_cohesion": 6, "lexical_resource": 6, "grammar_accuracy": 7}
    resp = client.post("/submissions/sub-1/writing", json={"tasks": {"w1": criteria}, "graded_by": "examiner"})
    assert resp.status_code == 200
    assert resp.json()["writing_band"] == 6.5
    assert resp.json()["overall_band"] == 4.5
    assert client.get("/submissions/sub-1/result").json()["writing_score"] == 6.5

    bad = dict(criteria, lexical_resource=10)
    assert client.post("/submissions/sub-1/writing", json={"tasks": {"w1": bad}}).status_code == 422


def test_unknown_records_are_404(monkeypatch, tmp_path):
    _, app_module = _reload_app(monkeypatch, tmp_path)
    client = TestClient(app_module.app)

    assert client.post("/submissions/missing/grade").status_code == 404
    assert client.get("/submissions/missing/result").status_code == 404
    assert client.delete("/submissions/missing/result").status_code == 404

    client.post("/submissions", json={"submission_id": "orphan", "test_id": "no-bank", "answers": {}})
    resp = client.post("/submissions/orphan/grade")
    assert resp.status_code == 404
    assert "no-bank" in resp.json()["detail"]


def test_delete_result(monkeypatch, tmp_path):
    _, app_module = _reload_app(monkeypatch, tmp_path)
    client = TestClient(app_module.app)
    _seed(client)
    client.post("/submissions/sub-1/grade")

    assert client.delete("/submissions/sub-1/result").json() == {"ok": True}
    assert client.get("/submissions/sub-1/result").status_code == 404
    assert client.get("/tests/test-1/results").json()["results"] == []


def test_dotted_ids_are_rejected_on_result_routes(monkeypatch, tmp_path):
    _, app_module = _reload_app(monkeypatch, tmp_path)
    client = TestClient(app_module.app)

    assert client.get("/submissions/.hidden/result").status_code == 422
    assert client.get("/submissions/.hidden/result.csv").status_code == 422
    assert client.delete("/submissions/.hidden/result").status_code == 422


def test_failed_result_write_leaves_submission_ungraded(monkeypatch, tmp_path):
    storage, app_module = _reload_app(monkeypatch, tmp_path)
    client = TestClient(app_module.app, raise_server_exceptions=False)
    _seed(client)

    real_write = storage._write_json

    def failing_write(path, payload):
        if path.parent == storage.RESULTS_DIR:
            raise OSError("disk full")
        real_write(path, payload)

    monkeypatch.setattr(storage, "_write_json", failing_write)
    assert client.post("/submissions/sub-1/grade").status_code == 500

    on_disk = json.loads((storage.SUBMISSIONS_DIR / "sub-1.json").read_text(encoding="utf-8"))
    assert on_disk["status"] == "submitted"
    assert client.get("/tests/test-1/results").json()["results"] == []
