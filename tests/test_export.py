from __future__ import annotations

import csv
import io

from grading_core.engine import grade
from grading_core.export import _FIELDS, build_result_record, rows_from_record, to_csv, to_json, to_rows
from grading_core.types import Submission
from tests.conftest import build_bank, mcq_row, raw_question


def _result():
    bank = build_bank(
        reading=[mcq_row("q1", 1), mcq_row("q2", 2)],
        listening=[raw_question("m1", 1, "matching", correct_answer={"left": ["a"], "right": ["x"]})],
    )
    return grade(Submission("s", "test-1", {"q1": "A", "m1_0": "x"}), bank)


def test_rows_are_numbered_and_json_encoded():
    rows = to_rows(_result().detailed_results)
    assert [r["question_number"] for r in rows] == [1, 2, 3]
    assert rows[0]["student_answer"] == '"A"'
    assert rows[0]["correct_answer"] == '"A"'
    assert rows[0]["is_correct"] is True
    assert rows[1]["student_answer"] == '"No answer provided"'


def test_record_shape_for_persistence():
    result = _result()
    record = build_result_record(result, "auto", graded_at="2024-01-01T00:00:00+00:00")
    assert record["status"] == "graded"
    assert record["graded_by"] == "auto"
    assert record["graded_at"] == "2024-01-01T00:00:00+00:00"
    assert record["total_score"] == result.overall_band
    assert record["reading_score"] == result.reading_band
    assert set(record["submission_data"][0]) == {"question_number", "student_answer", "correct_answer", "is_correct"}
    assert len(record["auto_grading_data"]["detailed_results"]) == 3


def test_csv_has_fixed_header():
    body = to_csv(_result().detailed_results)
    reader = csv.DictReader(io.StringIO(body))
    assert tuple(reader.fieldnames or ()) == _FIELDS
    assert len(list(reader)) == 3


def test_json_export_and_record_reload():
    result = _result()
    payload = to_json(result)
    assert payload["summary"]["reading"] == {"correct": 1, "total": 2, "percentage": 50.0}
    assert payload["summary"]["flagged_for_review"] == 0

    restored = rows_from_record(build_result_record(result, "auto"))
    assert [r.question_id for r in restored] == [r.question_id for r in result.detailed_results]
    assert [r.is_correct for r in restored] == [True, False, True]
