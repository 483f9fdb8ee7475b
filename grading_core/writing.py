"""Manual writing assessment layered on top of an auto-graded result.

Instructors score each writing task on the four IELTS criteria (0-9 each).
A task band is the plain mean of its criteria; the section band is the mean
of task bands rounded to the nearest 0.5.
"""
from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Mapping

from . import config
from .bands import mean_band, overall_band
from .types import GradingResult, WritingBreakdown, WritingCriteria

log = logging.getLogger(__name__)


def validate_criteria(criteria: WritingCriteria) -> None:
    for f in fields(criteria):
        val = getattr(criteria, f.name)
        if not config.CRITERIA_MIN <= float(val) <= config.CRITERIA_MAX:
            raise ValueError(
                f"{f.name}={val} outside {config.CRITERIA_MIN:g}..{config.CRITERIA_MAX:g}"
            )


def task_band(criteria: WritingCriteria) -> float:
    validate_criteria(criteria)
    return (
        criteria.task_achievement
        + criteria.coherence_cohesion
        + criteria.lexical_resource
        + criteria.grammar_accuracy
    ) / 4.0


def writing_band_from_tasks(grades: Mapping[str, WritingCriteria]) -> float:
    return mean_band(task_band(c) for c in grades.values())


def average_criteria(grades: Mapping[str, WritingCriteria]) -> WritingCriteria:
    if not grades:
        return WritingCriteria()
    n = float(len(grades))
    return WritingCriteria(
        task_achievement=sum(c.task_achievement for c in grades.values()) / n,
        coherence_cohesion=sum(c.coherence_cohesion for c in grades.values()) / n,
        lexical_resource=sum(c.lexical_resource for c in grades.values()) / n,
        grammar_accuracy=sum(c.grammar_accuracy for c in grades.values()) / n,
    )


def apply_manual_writing(result: GradingResult, grades: Mapping[str, WritingCriteria]) -> GradingResult:
    """Return a copy of ``result`` with the instructor's writing band folded in."""
    if not grades:
        return result
    band = writing_band_from_tasks(grades)
    overall = overall_band(result.reading_band, result.listening_band, band)
    log.info("manual writing band %.1f over %d task(s); overall %.1f", band, len(grades), overall)
    return replace(
        result,
        writing=WritingBreakdown(score=result.writing.score, criteria=average_criteria(grades)),
        writing_band=band,
        overall_band=overall,
        total_score=overall * config.TOTAL_SCORE_SCALE,
    )
