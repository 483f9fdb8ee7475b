# tools/debug_grading.py
from __future__ import annotations
import argparse, json, logging, sys
from dataclasses import replace
from pathlib import Path
from typing import Any, List, Optional

from grading_core.bands import band_descriptor
from grading_core.engine import GradingEngine
from grading_core.export import to_csv
from grading_core.question_bank import load_bank, parse_submission
from grading_core.store import InMemoryStore
from grading_core.types import GradingResult, QuestionResult


def _short(v: Any, width: int = 28) -> str:
    s = v if isinstance(v, str) else json.dumps(v, ensure_ascii=False, default=str)
    return s if len(s) <= width else s[: width - 3] + "..."

def _line(res: QuestionResult) -> str:
    mark = "OK " if res.is_correct else "-- "
    flag = " [review]" if res.needs_review else ""
    rule = res.resolved_by or "unresolved"
    key = f"@{res.answer_key}" if res.answer_key else ""
    return (f"  {mark}{res.question_id:<24} {res.question_type:<18} "
            f"{_short(res.user_answer):<30} vs {_short(res.correct_answer):<30} "
            f"{res.points:>4.1f}  {rule}{key}{flag}")

def print_result(result: GradingResult) -> None:
    for section in ("reading", "listening", "writing"):
        rows = [r for r in result.detailed_results if r.section == section]
        if not rows:
            continue
        print(f"\n[{section}]")
        for res in rows:
            print(_line(res))

    print("\n=== Bands ===")
    print(f"  reading   {result.reading.correct}/{result.reading.total}  band {result.reading_band:.1f}")
    print(f"  listening {result.listening.correct}/{result.listening.total}  band {result.listening_band:.1f}")
    print(f"  writing   score {result.writing.score:.1f}  band {result.writing_band:.1f}")
    print(f"  overall   {result.overall_band:.1f} ({band_descriptor(result.overall_band)})")
    flagged = result.flagged_for_review
    if flagged:
        print(f"\n{len(flagged)} result(s) flagged for review: {', '.join(flagged)}")

def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Grade one submission against a question bank and show how every answer was found.")
    ap.add_argument("--submission", required=True, help="submission JSON ({id, test_id, answers})")
    ap.add_argument("--bank", required=True, help="question bank JSON")
    ap.add_argument("--csv", type=Path, default=None, help="also write the detailed rows as CSV")
    ap.add_argument("-v", "--verbose", action="store_true", help="log resolver decisions")
    a = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if a.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    submission = parse_submission(json.loads(Path(a.submission).read_text(encoding="utf-8")))
    bank = load_bank(a.bank)
    if not submission.test_id:
        submission.test_id = bank.test_id

    store = InMemoryStore()
    store.add_submission(submission)
    # the files are paired on the command line, so the bank always serves this submission
    store.add_bank(replace(bank, test_id=submission.test_id))

    result = GradingEngine(store).grade_submission(submission.id)
    print_result(result)

    if a.csv:
        a.csv.write_text(to_csv(result.detailed_results), encoding="utf-8")
        print(f"\nCSV written to {a.csv}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
