"""Correctness check for a single student answer.

Matching is deliberately asymmetric:

* list specs accept any element,
* strings with commas are alternative lists and need an exact hit,
* short answers (``STRICT_MATCH_MAX_LEN`` characters or fewer) and multi-word
  answers only match exactly,
* single-word answers also match when they appear as a whole token of the
  student's answer, so ``"child"`` accepts ``"the child is happy"`` but not
  ``"childish"`` or ``"children"``.
"""
from __future__ import annotations

from typing import Any

from . import config
from .normalize import normalize

__all__ = ["matches", "alternatives"]


def alternatives(correct: str) -> list[str]:
    return [alt.strip().lower() for alt in correct.split(",")]


def matches(user_answer: Any, correct: Any) -> bool:
    user_norm = normalize(user_answer)
    if not user_norm:
        return False

    if isinstance(correct, (list, tuple)):
        return any(matches(user_answer, alt) for alt in correct)

    correct_norm = normalize(correct)
    if not correct_norm:
        return False

    if isinstance(correct, str) and "," in correct:
        return user_norm in alternatives(correct)

    if user_norm == correct_norm:
        return True

    if len(correct_norm) <= config.STRICT_MATCH_MAX_LEN:
        return False

    if len(correct_norm.split()) == 1:
        return correct_norm in user_norm.split()

    return False
