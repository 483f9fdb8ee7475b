from __future__ import annotations

import argparse
import json
from collections import Counter
from pathlib import Path
from typing import Iterable

from . import config
from .normalize import normalize
from .question_bank import load_bank
from .types import (
    IndexSpec,
    MapLabelingSpec,
    MatchingSpec,
    MultipleChoiceSpec,
    MultipleSelectionSpec,
    Question,
    QuestionBank,
    QUESTION_TYPES,
    SECTIONS,
    ShortAnswerSpec,
    UnsupportedSpec,
)


def _blank_section() -> dict[str, int]:
    return {qtype: 0 for qtype in QUESTION_TYPES}


def _question_warnings(q: Question) -> list[str]:
    where = f"{q.section} #{q.number} ({q.id})"
    spec = q.spec
    out: list[str] = []
    if isinstance(spec, MultipleChoiceSpec):
        if not spec.options:
            out.append(f"{where} MCQ has no options")
        if spec.answer is None:
            out.append(f"{where} MCQ has no correct answer")
        elif isinstance(spec.answer, IndexSpec) and not 0 <= spec.answer.index < len(spec.options):
            out.append(f"{where} MCQ correct index {spec.answer.index} outside {len(spec.options)} options")
    elif isinstance(spec, MultipleSelectionSpec):
        if not spec.correct:
            out.append(f"{where} multiple selection has no correct values")
        known = {normalize(o) for o in spec.options}
        missing = [c for c in spec.correct if known and normalize(c) not in known]
        if missing:
            out.append(f"{where} multiple selection values not among options: {', '.join(missing)}")
    elif isinstance(spec, MatchingSpec):
        if not spec.left:
            out.append(f"{where} matching has no pairs")
        elif len(spec.left) != len(spec.right):
            out.append(f"{where} matching has {len(spec.left)} left vs {len(spec.right)} right items")
    elif isinstance(spec, ShortAnswerSpec):
        if spec.answer is None:
            out.append(f"{where} short answer has no correct answer")
    elif isinstance(spec, MapLabelingSpec):
        if not spec.boxes:
            out.append(f"{where} map has no labelled boxes")
    elif isinstance(spec, UnsupportedSpec):
        out.append(f"{where} has unsupported type {spec.raw_type!r}")
    return out


def audit_questions(questions: Iterable[Question]) -> dict[str, object]:
    coverage: dict[str, dict[str, int]] = {section: _blank_section() for section in SECTIONS}
    totals: Counter[str] = Counter()
    warnings: list[str] = []
    seen: Counter[str] = Counter()

    for q in questions:
        coverage.setdefault(q.section, _blank_section())[q.type] += 1
        totals[q.type] += 1
        seen[q.id] += 1
        warnings.extend(_question_warnings(q))

    for qid, count in seen.items():
        if count > 1:
            warnings.append(f"question id {qid or '<empty>'} appears {count} times")

    return {"coverage": coverage, "warnings": warnings, "totals": dict(totals)}


def audit_bank(bank: QuestionBank) -> dict[str, object]:
    questions: list[Question] = []
    for section in SECTIONS:
        questions.extend(bank.questions(section))  # type: ignore[arg-type]
    summary = audit_questions(questions)
    summary["test_id"] = bank.test_id
    return summary


def print_report(summary: dict[str, object]) -> None:
    coverage: dict[str, dict[str, int]] = summary["coverage"]  # type: ignore[assignment]
    print("=== Question Bank Coverage ===")
    for section in SECTIONS:
        data = coverage.get(section, {})
        parts = [f"{qtype}:{n}" for qtype, n in data.items() if n]
        print(f"  {section:<9} " + ("  ".join(parts) if parts else "(empty)"))

    warnings: list[str] = summary["warnings"]  # type: ignore[assignment]
    if warnings:
        print("\nWarnings:")
        for msg in warnings:
            print(f" - {msg}")
    else:
        print("\nNo warnings.")

    print("\nTotals:", summary["totals"])


def write_summary(summary: dict[str, object], path: Path | None = None) -> str:
    text = json.dumps(summary, indent=2, sort_keys=True)
    (path or config.AUDIT_SUMMARY_PATH).write_text(text + "\n", encoding="utf-8")
    print(text)
    return text


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Audit an exam question bank for grading problems.")
    ap.add_argument("bank", help="question bank JSON file")
    ap.add_argument("--out", type=Path, default=None, help="where to write the JSON summary")
    a = ap.parse_args(argv)

    summary = audit_bank(load_bank(a.bank))
    print_report(summary)
    write_summary(summary, a.out)
    return 2 if summary["warnings"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
