"""Flatten graded results for storage and JSON/CSV export."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List
import csv
import io
import json

from .types import GradingResult, QuestionResult

_FIELDS: tuple[str, ...] = (
    "question_number",
    "question_id",
    "section",
    "question_type",
    "student_answer",
    "correct_answer",
    "is_correct",
    "points",
    "needs_review",
)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _encode(value: Any) -> str:
    if value in (None, "", [], ()):
        return ""
    return json.dumps(value, ensure_ascii=False, default=str)


def _row(number: int, res: QuestionResult) -> Dict[str, Any]:
    return {
        "question_number": number,
        "question_id": res.question_id,
        "section": res.section,
        "question_type": res.question_type,
        "student_answer": _encode(res.user_answer),
        "correct_answer": _encode(res.correct_answer),
        "is_correct": bool(res.is_correct),
        "points": float(res.points),
        "needs_review": bool(res.needs_review),
    }


def to_rows(results: Iterable[QuestionResult]) -> List[Dict[str, Any]]:
    """One row per result, numbered from 1 in result order."""

    return [_row(i, res) for i, res in enumerate(results, start=1)]


def to_json(result: GradingResult) -> Dict[str, Any]:
    """Return a JSON-safe payload for result export."""

    return {"rows": to_rows(result.detailed_results), "summary": summary(result)}


def to_csv(results: Iterable[QuestionResult]) -> str:
    """Render results as CSV with a fixed header."""

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=_FIELDS)
    writer.writeheader()
    for row in to_rows(results):
        writer.writerow(row)
    return buf.getvalue()


def summary(result: GradingResult) -> Dict[str, Any]:
    return {
        "reading": {"correct": result.reading.correct, "total": result.reading.total,
                    "percentage": result.reading.percentage},
        "listening": {"correct": result.listening.correct, "total": result.listening.total,
                      "percentage": result.listening.percentage},
        "writing_score": result.writing.score,
        "reading_band": result.reading_band,
        "listening_band": result.listening_band,
        "writing_band": result.writing_band,
        "overall_band": result.overall_band,
        "total_score": result.total_score,
        "flagged_for_review": len(result.flagged_for_review),
    }


def build_result_record(result: GradingResult, graded_by: str, graded_at: str | None = None) -> Dict[str, Any]:
    """Shape of the persisted submission update after auto-grading."""

    return {
        "reading_score": result.reading_band,
        "listening_score": result.listening_band,
        "writing_score": result.writing_band,
        "total_score": result.overall_band,
        "status": "graded",
        "graded_at": graded_at or utcnow_iso(),
        "graded_by": graded_by,
        "auto_grading_data": result.to_dict(),
        "submission_data": [
            {k: row[k] for k in ("question_number", "student_answer", "correct_answer", "is_correct")}
            for row in to_rows(result.detailed_results)
        ],
    }


def rows_from_record(record: Dict[str, Any]) -> List[QuestionResult]:
    """Rebuild results from a stored ``auto_grading_data`` payload."""

    data = record.get("auto_grading_data") or {}
    out: List[QuestionResult] = []
    for item in data.get("detailed_results") or []:
        out.append(QuestionResult(**{k: item.get(k) for k in QuestionResult.__dataclass_fields__ if k in item}))
    return out


__all__ = ["to_rows", "to_json", "to_csv", "summary", "build_result_record", "rows_from_record", "utcnow_iso"]
