# grading_core/engine.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from . import config
from .bands import band_score, overall_band, writing_band
from .errors import GradingError
from .graders import grade_question
from .resolver import ResolutionContext
from .store import GradingStore
from .types import (
    GradingResult,
    Question,
    QuestionBank,
    QuestionResult,
    SectionTally,
    Submission,
    WritingBreakdown,
    WritingCriteria,
)

log = logging.getLogger(__name__)


def _ordered(questions: Sequence[Question]) -> List[Question]:
    return sorted(questions, key=lambda q: q.number)


def _grade_section(questions: Sequence[Question], answers: Mapping[str, Any],
                   ctx: ResolutionContext) -> List[QuestionResult]:
    results: List[QuestionResult] = []
    for q in _ordered(questions):
        results.extend(grade_question(q, answers, ctx))
    return results


def _tally(results: Sequence[QuestionResult]) -> SectionTally:
    total = len(results)
    correct = sum(1 for r in results if r.is_correct)
    pct = (correct / total) * 100.0 if total else 0.0
    return SectionTally(correct=correct, total=total, percentage=pct)


def _objective_band(tally: SectionTally, section: str) -> float:
    if not tally.total:
        return config.UNATTEMPTED_BAND
    return band_score(tally.correct, tally.total, section)  # type: ignore[arg-type]


def _writing(results: Sequence[QuestionResult], questions: Sequence[Question]) -> Tuple[float, float, float]:
    points_by_id: Dict[str, float] = {q.id: float(q.points) for q in questions}
    score = sum(r.points for r in results)
    max_score = sum(points_by_id.get(r.question_id, 1.0) for r in results)
    band = writing_band(score, max_score)
    pct = (score / max_score) * 100.0 if max_score > 0 else 0.0
    return score, band, pct


def grade(submission: Submission, bank: QuestionBank) -> GradingResult:
    """Grade ``submission`` against ``bank``. Pure: same inputs, same result."""
    answers = {str(k): v for k, v in (submission.answers or {}).items()}
    ctx = ResolutionContext()

    reading_qs = bank.questions("reading")
    listening_qs = bank.questions("listening")
    writing_qs = bank.questions("writing")

    reading_results = _grade_section(reading_qs, answers, ctx)
    listening_results = _grade_section(listening_qs, answers, ctx)
    writing_results = _grade_section(writing_qs, answers, ctx)

    reading = _tally(reading_results)
    listening = _tally(listening_results)
    reading_band = _objective_band(reading, "reading")
    listening_band = _objective_band(listening, "listening")
    writing_score, writing_band_, writing_pct = _writing(writing_results, writing_qs)

    overall = overall_band(reading_band, listening_band, writing_band_)
    criteria = WritingCriteria(
        task_achievement=writing_band_,
        coherence_cohesion=writing_band_,
        lexical_resource=writing_band_,
        grammar_accuracy=writing_band_,
    )

    result = GradingResult(
        reading=reading,
        listening=listening,
        writing=WritingBreakdown(score=writing_score, criteria=criteria),
        reading_score=reading.percentage,
        listening_score=listening.percentage,
        writing_score=writing_pct,
        reading_band=reading_band,
        listening_band=listening_band,
        writing_band=writing_band_,
        overall_band=overall,
        total_score=overall * config.TOTAL_SCORE_SCALE,
        detailed_results=tuple(reading_results + listening_results + writing_results),
    )
    log.info(
        "graded submission %s: reading %d/%d (%.1f) listening %d/%d (%.1f) writing %.1f overall %.1f, %d flagged",
        submission.id, reading.correct, reading.total, reading_band,
        listening.correct, listening.total, listening_band,
        writing_band_, overall, len(result.flagged_for_review),
    )
    return result


class GradingEngine:
    """Loads inputs through a :class:`GradingStore`, grades, and hands results back for saving."""

    def __init__(self, store: GradingStore):
        self.store = store

    def _load(self, submission_id: str) -> Tuple[Submission, QuestionBank]:
        try:
            submission = self.store.load_submission(submission_id)
        except GradingError:
            raise
        except Exception as exc:
            raise GradingError(f"could not load submission {submission_id}: {exc}",
                               submission_id=submission_id) from exc
        if submission is None:
            raise GradingError(f"submission {submission_id} not found", submission_id=submission_id)

        try:
            bank = self.store.load_question_bank(submission.test_id)
        except GradingError:
            raise
        except Exception as exc:
            raise GradingError(f"could not load question bank for test {submission.test_id}: {exc}",
                               submission_id=submission_id) from exc
        if bank is None:
            raise GradingError(f"question bank for test {submission.test_id} not found",
                               submission_id=submission_id)
        return submission, bank

    def grade_submission(self, submission_id: str) -> GradingResult:
        submission, bank = self._load(submission_id)
        return grade(submission, bank)

    def save_grading_result(self, submission_id: str, result: GradingResult, graded_by: str) -> None:
        log.info("saving %d result(s) for %s (graded by %s)",
                 len(result.detailed_results), submission_id, graded_by)
        self.store.persist_result(submission_id, result, graded_by)
