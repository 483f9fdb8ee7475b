from __future__ import annotations

import json

import grading_core.audit_bank as audit_bank
from grading_core import config
from tests.conftest import build_bank, build_raw_bank, mcq_row, raw_question


def test_audit_flags_broken_questions(tmp_path):
    bank = build_bank(
        reading=[
            mcq_row("q1", 1, correct="9"),
            raw_question("q2", 2, "multiple_choice", correct_answer="0"),
            mcq_row("q1", 3),
        ],
        listening=[
            raw_question("m1", 1, "matching", correct_answer={"left": ["a", "b"], "right": ["x"]}),
            raw_question("s1", 2, "short_answer"),
            raw_question("map1", 3, "map_labeling", correct_answer=[]),
        ],
    )

    summary = audit_bank.audit_bank(bank)
    joined = "\n".join(summary["warnings"])
    assert "correct index 9 outside 4 options" in joined
    assert "reading #2 (q2) MCQ has no options" in joined
    assert "question id q1 appears 2 times" in joined
    assert "2 left vs 1 right" in joined
    assert "short answer has no correct answer" in joined
    assert "map has no labelled boxes" in joined
    assert summary["coverage"]["listening"]["matching"] == 1
    assert summary["totals"]["multiple_choice"] == 3

    outfile = tmp_path / "bank_audit.json"
    text = audit_bank.write_summary(summary, path=outfile)
    assert outfile.read_text(encoding="utf-8").strip() == text


def test_clean_bank_has_no_warnings():
    summary = audit_bank.audit_bank(build_bank(reading=[mcq_row("q1", 1), mcq_row("q2", 2)]))
    assert summary["warnings"] == []


def test_main_returns_warning_exit(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(config, "AUDIT_SUMMARY_PATH", tmp_path / "summary.json")
    path = tmp_path / "bank.json"
    path.write_text(json.dumps(build_raw_bank(reading=[mcq_row("q1", 1, correct="7")])), encoding="utf-8")

    exit_code = audit_bank.main([str(path)])
    captured = capsys.readouterr()

    assert exit_code == 2
    assert "reading" in captured.out
    assert (tmp_path / "summary.json").exists()


def test_main_clean_exit(tmp_path):
    path = tmp_path / "bank.json"
    path.write_text(json.dumps(build_raw_bank(reading=[mcq_row("q1", 1)])), encoding="utf-8")
    assert audit_bank.main([str(path), "--out", str(tmp_path / "out.json")]) == 0


def test_audit_warns_on_unsupported_type():
    summary = audit_bank.audit_bank(build_bank(reading=[raw_question("x1", 1, "drag_drop")]))
    assert summary["warnings"] == ["reading #1 (x1) has unsupported type 'drag_drop'"]
    assert summary["coverage"]["reading"]["unsupported"] == 1
