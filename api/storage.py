"""JSON-file persistence for submissions, question banks and graded results.

This module is the grading engine's persistence collaborator: it provides
``load_submission``, ``load_question_bank`` and ``persist_result`` at module
level, so the module itself can be handed to ``GradingEngine``. Records live
as JSON files under ``DATA_DIR`` and every write goes through a temp file.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from grading_core.export import build_result_record, utcnow_iso
from grading_core.question_bank import parse_bank, parse_submission
from grading_core.types import GradingResult, QuestionBank, Submission


DATA_ROOT = Path(os.getenv("DATA_DIR", "data")).resolve()
SUBMISSIONS_DIR = DATA_ROOT / "submissions"
BANKS_DIR = DATA_ROOT / "banks"
RESULTS_DIR = DATA_ROOT / "results"
RESULT_INDEX_PATH = DATA_ROOT / "results_index.json"

_LOCK = threading.Lock()


def _ensure_dirs() -> None:
    for d in (SUBMISSIONS_DIR, BANKS_DIR, RESULTS_DIR):
        d.mkdir(parents=True, exist_ok=True)


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError:
        return default


def _load_record(path: Path) -> Optional[Dict[str, Any]]:
    """Missing file -> ``None``; a corrupt file raises so callers see a real failure."""
    if not path.exists():
        return None
    return json.loads(path.read_text(encoding="utf-8"))


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True, default=str), encoding="utf-8")
    tmp.replace(path)


def _safe_name(record_id: str) -> str:
    name = str(record_id)
    if not name or "/" in name or "\\" in name or name.startswith("."):
        raise ValueError(f"invalid record id {record_id!r}")
    return name


# ---- submissions ----
def save_submission(submission_id: str, test_id: str, answers: Dict[str, Any]) -> Dict[str, Any]:
    _ensure_dirs()
    record = {
        "id": submission_id,
        "test_id": test_id,
        "answers": answers,
        "status": "submitted",
        "submitted_at": utcnow_iso(),
    }
    _write_json(SUBMISSIONS_DIR / f"{_safe_name(submission_id)}.json", record)
    return record


def load_submission_record(submission_id: str) -> Optional[Dict[str, Any]]:
    return _load_record(SUBMISSIONS_DIR / f"{_safe_name(submission_id)}.json")


def load_submission(submission_id: str) -> Optional[Submission]:
    record = load_submission_record(submission_id)
    return parse_submission(record) if record is not None else None


# ---- question banks ----
def save_bank(test_id: str, raw: Dict[str, Any]) -> None:
    _ensure_dirs()
    payload = dict(raw)
    payload["test_id"] = test_id
    _write_json(BANKS_DIR / f"{_safe_name(test_id)}.json", payload)


def load_question_bank(test_id: str) -> Optional[QuestionBank]:
    raw = _load_record(BANKS_DIR / f"{_safe_name(test_id)}.json")
    return parse_bank(raw, test_id=test_id) if raw is not None else None


# ---- results ----
def persist_result(submission_id: str, result: GradingResult, graded_by: str) -> None:
    """Store the graded record and mark the submission graded."""

    _ensure_dirs()
    record = build_result_record(result, graded_by)
    name = _safe_name(submission_id)

    with _LOCK:
        submission = _load_record(SUBMISSIONS_DIR / f"{name}.json")
        if submission is None:
            raise FileNotFoundError(f"submission {submission_id} not found")
        # result first: a submission never reads as graded without its record
        _write_json(RESULTS_DIR / f"{name}.json", record)
        submission.update({k: v for k, v in record.items() if k != "auto_grading_data"})
        _write_json(SUBMISSIONS_DIR / f"{name}.json", submission)

        index: Dict[str, Dict[str, Any]] = _read_json(RESULT_INDEX_PATH, {})
        index[submission_id] = {
            "testId": submission.get("test_id"),
            "gradedAt": record["graded_at"],
            "gradedBy": graded_by,
            "overallBand": record["total_score"],
        }
        _write_json(RESULT_INDEX_PATH, index)


def load_result(submission_id: str) -> Optional[Dict[str, Any]]:
    path = RESULTS_DIR / f"{_safe_name(submission_id)}.json"
    return _read_json(path, None)


def delete_result(submission_id: str) -> bool:
    path = RESULTS_DIR / f"{_safe_name(submission_id)}.json"
    removed = False
    with _LOCK:
        index: Dict[str, Dict[str, Any]] = _read_json(RESULT_INDEX_PATH, {})
        if submission_id in index:
            index.pop(submission_id, None)
            _write_json(RESULT_INDEX_PATH, index)
            removed = True
    if path.exists():
        path.unlink()
        removed = True
    return removed


def list_results_for_test(test_id: str) -> List[Dict[str, Any]]:
    index: Dict[str, Dict[str, Any]] = _read_json(RESULT_INDEX_PATH, {})
    out: List[Dict[str, Any]] = []
    for sid, meta in index.items():
        if meta.get("testId") == test_id:
            item = {"submissionId": sid}
            item.update(meta)
            out.append(item)
    out.sort(key=lambda r: r.get("gradedAt", ""), reverse=True)
    return out
