from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional

from . import config
from .matcher import matches
from .resolver import Resolution, ResolutionContext, resolve, resolve_matching_pair
from .types import (
    AnswerSpec,
    EssaySpec,
    IndexSpec,
    LiteralSpec,
    MapAnswer,
    MapLabelingSpec,
    MatchingSpec,
    MultipleChoiceSpec,
    MultipleSelectionSpec,
    OneOfSpec,
    Question,
    QuestionResult,
    ShortAnswerSpec,
    UnsupportedSpec,
)

log = logging.getLogger(__name__)

Answers = Mapping[str, Any]
Grader = Callable[[Question, Resolution, Answers, ResolutionContext], List[QuestionResult]]


def _emit_trace(res: QuestionResult) -> None:
    if not config.DEBUG_TRACE:
        return
    values = {
        "section": res.section,
        "question_id": res.question_id,
        "type": res.question_type,
        "rule": res.resolved_by,
        "key": res.answer_key,
        "is_correct": res.is_correct,
        "points": res.points,
    }
    log.info("trace %s", " ".join(f"{k}={values[k]}" for k in config.TRACE_FIELDS if k in values))


def _review(resolution: Resolution) -> bool:
    return bool(config.FLAG_AMBIGUOUS and resolution.ambiguous)


def _award(question: Question, is_correct: bool) -> float:
    return float(question.points) if is_correct else 0.0


def _shown(value: Any, fallback: str) -> Any:
    return value if value not in (None, "", [], ()) else fallback


def _result(question: Question, resolution: Resolution, *, user_answer: Any,
            correct_answer: Any, is_correct: bool, **overrides: Any) -> QuestionResult:
    fields: Dict[str, Any] = dict(
        question_id=question.id,
        question_text=question.text,
        question_type=question.type,
        user_answer=_shown(user_answer, config.NO_ANSWER_TEXT),
        correct_answer=_shown(correct_answer, config.NO_CORRECT_TEXT),
        is_correct=is_correct,
        points=_award(question, is_correct),
        section=question.section,
        explanation=question.explanation,
        answer_key=resolution.key,
        resolved_by=resolution.rule,
        needs_review=_review(resolution),
    )
    fields.update(overrides)
    return QuestionResult(**fields)


# ---- multiple choice ----
def choice_answer(spec: MultipleChoiceSpec, question_id: str = "") -> Any:
    """Expected answer text for an MCQ; bad or missing indices fall back to the first option."""
    opts = spec.options
    first = opts[0] if opts else ""
    ans: Optional[AnswerSpec] = spec.answer
    if isinstance(ans, IndexSpec):
        if 0 <= ans.index < len(opts):
            return opts[ans.index]
        log.warning("MCQ %s: correct index %d outside %d options; using option 0",
                    question_id, ans.index, len(opts))
        return first
    if isinstance(ans, LiteralSpec):
        return ans.text
    if isinstance(ans, OneOfSpec):
        return list(ans.values)
    log.warning("MCQ %s has no correct answer; using option 0", question_id)
    return first


def grade_multiple_choice(question: Question, resolution: Resolution, answers: Answers,
                          ctx: ResolutionContext) -> List[QuestionResult]:
    spec = question.spec if isinstance(question.spec, MultipleChoiceSpec) else MultipleChoiceSpec()
    correct = choice_answer(spec, question.id)
    ok = matches(resolution.value, correct)
    return [_result(question, resolution, user_answer=resolution.value, correct_answer=correct, is_correct=ok)]


# ---- multiple selection ----
def grade_multiple_selection(question: Question, resolution: Resolution, answers: Answers,
                             ctx: ResolutionContext) -> List[QuestionResult]:
    """One result per correct value; wrong picks are paired with still-unmatched correct values.

    A pick counts only when it is exactly the stored option value.
    """
    spec = question.spec if isinstance(question.spec, MultipleSelectionSpec) else MultipleSelectionSpec()
    picked = list(resolution.value or [])
    picked_text = ["" if p is None else str(p) for p in picked]

    results: List[QuestionResult] = []
    matched_picks: set[int] = set()
    for i, correct in enumerate(spec.correct):
        hit = correct in picked_text
        if hit:
            matched_picks.add(picked_text.index(correct))
        results.append(_result(
            question, resolution,
            user_answer=correct if hit else None,
            correct_answer=correct,
            is_correct=hit,
            question_id=f"{question.id}_{i}",
            question_text=f"Question {question.number + i}",
        ))

    open_slots = [i for i, r in enumerate(results) if not r.is_correct]
    for pos, pick in enumerate(picked):
        if pos in matched_picks or not open_slots:
            continue
        slot = open_slots.pop(0)
        results[slot] = replace(results[slot], user_answer=pick, is_correct=False, points=0.0)
    return results


# ---- matching ----
def grade_matching(question: Question, resolution: Resolution, answers: Answers,
                   ctx: ResolutionContext) -> List[QuestionResult]:
    spec = question.spec if isinstance(question.spec, MatchingSpec) else MatchingSpec()
    results: List[QuestionResult] = []
    for i, left in enumerate(spec.left):
        pair = resolve_matching_pair(question, i, answers, ctx)
        correct = spec.right[i] if i < len(spec.right) else None
        ok = matches(pair.value, correct)
        results.append(_result(
            question, pair,
            user_answer=pair.value,
            correct_answer=correct,
            is_correct=ok,
            question_id=pair.key or f"{question.id}_{i}",
            question_text=f"{question.number}. {left}",
        ))
    return results


# ---- short answer ----
def short_answer_value(spec: ShortAnswerSpec) -> Optional[str]:
    ans = spec.answer
    if isinstance(ans, OneOfSpec):
        return ans.values[0] if ans.values else None
    if isinstance(ans, LiteralSpec):
        return ans.text
    if isinstance(ans, IndexSpec):
        return str(ans.index)
    return None


def grade_short_answer(question: Question, resolution: Resolution, answers: Answers,
                       ctx: ResolutionContext) -> List[QuestionResult]:
    spec = question.spec if isinstance(question.spec, ShortAnswerSpec) else ShortAnswerSpec()
    correct = short_answer_value(spec)
    ok = matches(resolution.value, correct)
    return [_result(question, resolution, user_answer=resolution.value, correct_answer=correct, is_correct=ok)]


# ---- map labeling / diagram ----
def grade_map_labeling(question: Question, resolution: Resolution, answers: Answers,
                       ctx: ResolutionContext) -> List[QuestionResult]:
    spec = question.spec if isinstance(question.spec, MapLabelingSpec) else MapLabelingSpec()
    given: List[MapAnswer] = [a for a in (resolution.value or []) if isinstance(a, MapAnswer)]
    if not spec.boxes:
        log.warning("map question %s has no labelled boxes", question.id)
        return [_result(question, resolution, user_answer=None, correct_answer=None,
                        is_correct=False, answer_key=None)]

    results: List[QuestionResult] = []
    for i, box in enumerate(spec.boxes):
        entry = given[i] if i < len(given) else None
        correct = box.answer or box.label or config.NO_BOX_ANSWER_TEXT
        value = entry.answer if entry else None
        ok = matches(value, correct)
        results.append(_result(
            question, resolution,
            user_answer=value,
            correct_answer=correct,
            is_correct=ok,
            question_id=entry.key if entry else f"{question.id}_{i}",
            question_text=f"{question.text} - Label {i + 1}",
            answer_key=entry.key if entry else None,
        ))
    return results


# ---- essay ----
def grade_essay(question: Question, resolution: Resolution, answers: Answers,
                ctx: ResolutionContext) -> List[QuestionResult]:
    spec = question.spec
    min_words = spec.min_words if isinstance(spec, EssaySpec) else 0
    text = "" if resolution.value is None else str(resolution.value).strip()
    answered = bool(text)
    words = len(text.split())
    explanation = config.WRITING_EXPLANATION
    if answered and min_words:
        explanation = f"{explanation} ({words} of {min_words} minimum words)"
    return [_result(
        question, resolution,
        user_answer=resolution.value,
        correct_answer=config.WRITING_CORRECT_TEXT,
        is_correct=answered,
        points=float(question.points) * config.ESSAY_CREDIT_RATIO if answered else 0.0,
        explanation=explanation,
        needs_review=True,
    )]


# ---- unsupported types ----
def grade_unsupported(question: Question, resolution: Resolution, answers: Answers,
                      ctx: ResolutionContext) -> List[QuestionResult]:
    raw_type = question.spec.raw_type if isinstance(question.spec, UnsupportedSpec) else ""
    log.warning("question %s: type %r cannot be graded; marking incorrect", question.id, raw_type)
    return [_result(
        question, resolution,
        user_answer=resolution.value,
        correct_answer=None,
        is_correct=False,
        needs_review=True,
    )]


GRADERS: Dict[str, Grader] = {
    "multiple_choice": grade_multiple_choice,
    "multiple_selection": grade_multiple_selection,
    "matching": grade_matching,
    "short_answer": grade_short_answer,
    "map_labeling": grade_map_labeling,
    "map_diagram": grade_map_labeling,
    "essay": grade_essay,
    "unsupported": grade_unsupported,
}


def grade_question(question: Question, answers: Answers, ctx: ResolutionContext) -> List[QuestionResult]:
    """Grade one question; a question id already seen in this run yields nothing."""
    if question.id in ctx.processed_ids:
        log.info("skipping duplicate question %s", question.id)
        return []
    ctx.processed_ids.add(question.id)

    resolution = resolve(question, answers, ctx)
    results = GRADERS[question.type](question, resolution, answers, ctx)
    for res in results:
        _emit_trace(res)
    return results
