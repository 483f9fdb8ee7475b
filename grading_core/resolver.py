"""Map a submission's answer keys onto canonical questions.

Student answers are stored under keys produced by many UI widgets over time:
the question id itself, ``{prefix}_{timestamp}`` keys (``mcq_``, ``q_``,
``matching_``, ``map_``) and ``{questionId}_{index}`` keys for sub-items.
Each question type has an :class:`AnswerKeyResolver` made of named rules that
are tried in priority order; the first rule that finds a key wins.

Rules past the exact-id tier are heuristics. When a heuristic had several
candidate keys to choose from, picks by position, or reuses a key another
question already consumed, the resolution is marked ``ambiguous`` so the
grader can flag the result for manual review.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from . import config
from .types import MapAnswer, Question

log = logging.getLogger(__name__)

Answers = Mapping[str, Any]


@dataclass
class ResolutionContext:
    """Per-run bookkeeping shared by every question graded in one pass."""
    used_keys: Set[str] = field(default_factory=set)
    processed_ids: Set[str] = field(default_factory=set)

    def claim(self, key: Optional[str]) -> None:
        if key:
            self.used_keys.add(key)

    def is_used(self, key: str) -> bool:
        return key in self.used_keys


@dataclass(frozen=True)
class Resolution:
    value: Any = None
    key: Optional[str] = None
    rule: Optional[str] = None
    ambiguous: bool = False

    @property
    def found(self) -> bool:
        return self.rule is not None

    @staticmethod
    def missing() -> "Resolution":
        return Resolution()


Rule = Callable[[Question, Answers, ResolutionContext], Optional[Resolution]]


def _has_value(v: Any) -> bool:
    if v is None:
        return False
    if isinstance(v, str):
        return v.strip() != ""
    if isinstance(v, (list, tuple, dict)):
        return len(v) > 0
    return True


def _is_tfng(v: Any) -> bool:
    return isinstance(v, str) and v in config.TFNG_VALUES


def _keys(answers: Answers, prefix: str = "") -> List[str]:
    return [k for k in answers.keys() if k.startswith(prefix) and _has_value(answers[k])]


def _key_tokens(key: str) -> List[str]:
    return key.split("_")


def _pick(rule: str, candidates: Sequence[str], answers: Answers,
          ctx: ResolutionContext, *, guess: bool = False) -> Optional[Resolution]:
    if not candidates:
        return None
    key = candidates[0]
    ambiguous = guess or len(candidates) > 1 or ctx.is_used(key)
    return Resolution(value=answers[key], key=key, rule=rule, ambiguous=ambiguous)


# ---- shared rules ----
def exact_id(q: Question, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    if q.id and _has_value(answers.get(q.id)):
        return Resolution(value=answers[q.id], key=q.id, rule="exact_id")
    return None


# ---- multiple choice ----
def number_in_key(q: Question, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    if not q.number:
        return None
    num = str(q.number)
    cands = [k for k in _keys(answers)
             if num in k and (k.startswith("mcq_") or _is_tfng(answers[k]))]
    return _pick("number_in_key", cands, answers, ctx)


def first_mcq_key(q: Question, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    return _pick("first_mcq_key", _keys(answers, "mcq_"), answers, ctx)


def first_tfng_value(q: Question, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    cands = [k for k in _keys(answers) if _is_tfng(answers[k])]
    return _pick("first_tfng_value", cands, answers, ctx)


# ---- short answer ----
def q_key_contains_id(q: Question, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    if not q.id:
        return None
    cands = [k for k in _keys(answers, "q_") if q.id in k]
    return _pick("q_key_contains_id", cands, answers, ctx)


def q_key_contains_number(q: Question, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    if not q.number:
        return None
    num = str(q.number)
    cands = [k for k in _keys(answers, "q_") if num in k]
    return _pick("q_key_contains_number", cands, answers, ctx)


def sole_unused_q_key(q: Question, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    remaining = [k for k in _keys(answers, "q_") if not ctx.is_used(k)]
    if len(remaining) != 1:
        return None
    return _pick("sole_unused_q_key", remaining, answers, ctx)


def q_key_by_order(q: Question, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    ordered = sorted(_keys(answers, "q_"))
    idx = q.number - 1
    if len(ordered) < 2 or not 0 <= idx < len(ordered):
        return None
    return _pick("q_key_by_order", [ordered[idx]], answers, ctx, guess=True)


def first_unused_q_key(q: Question, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    cands = [k for k in _keys(answers, "q_") if not ctx.is_used(k)]
    return _pick("first_unused_q_key", cands, answers, ctx, guess=True)


# ---- multiple selection ----
def selection_by_id(q: Question, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    hit = exact_id(q, answers, ctx)
    if hit is None:
        return None
    value = hit.value if isinstance(hit.value, (list, tuple)) else [hit.value]
    return Resolution(value=list(value), key=hit.key, rule=hit.rule)


# ---- map labeling ----
def map_prefix(q: Question, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    keys = [k for k in answers.keys() if k.startswith("map_")]
    if not keys:
        return None
    pairs = [MapAnswer(key=k, answer=answers[k]) for k in keys]
    ambiguous = any(ctx.is_used(k) for k in keys)
    return Resolution(value=pairs, key=None, rule="map_prefix", ambiguous=ambiguous)


class AnswerKeyResolver:
    """Ordered list of named rules for one question type."""

    def __init__(self, *rules: Rule):
        self.rules: Tuple[Rule, ...] = rules

    @property
    def rule_names(self) -> List[str]:
        return [r.__name__ for r in self.rules]

    def resolve(self, question: Question, answers: Answers, ctx: ResolutionContext) -> Resolution:
        for rule in self.rules:
            hit = rule(question, answers, ctx)
            if hit is not None:
                log.debug("resolved %s via %s -> %s%s", question.id, hit.rule, hit.key,
                          " (ambiguous)" if hit.ambiguous else "")
                if hit.key:
                    ctx.claim(hit.key)
                elif isinstance(hit.value, list):
                    for item in hit.value:
                        if isinstance(item, MapAnswer):
                            ctx.claim(item.key)
                return hit
        log.debug("no answer found for %s (%s #%s)", question.id, question.type, question.number)
        return Resolution.missing()


RESOLVERS: Dict[str, AnswerKeyResolver] = {
    "multiple_choice": AnswerKeyResolver(exact_id, number_in_key, first_mcq_key, first_tfng_value),
    "short_answer": AnswerKeyResolver(
        exact_id,
        q_key_contains_id,
        q_key_contains_number,
        sole_unused_q_key,
        q_key_by_order,
        first_unused_q_key,
    ),
    "multiple_selection": AnswerKeyResolver(selection_by_id),
    # sub-items are resolved one pair at a time by resolve_matching_pair
    "matching": AnswerKeyResolver(),
    "map_labeling": AnswerKeyResolver(map_prefix),
    "map_diagram": AnswerKeyResolver(map_prefix),
    "essay": AnswerKeyResolver(exact_id),
    # never reaches for prefixed keys another question may own
    "unsupported": AnswerKeyResolver(exact_id),
}


def resolve(question: Question, answers: Answers, ctx: ResolutionContext | None = None) -> Resolution:
    resolver = RESOLVERS.get(question.type)
    if resolver is None:
        return Resolution.missing()
    return resolver.resolve(question, answers, ctx if ctx is not None else ResolutionContext())


# ---- matching sub-items ----
def canonical_pair_key(q: Question, index: int, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    key = f"{q.id}_{index}"
    if _has_value(answers.get(key)):
        return Resolution(value=answers[key], key=key, rule="canonical_pair_key")
    return None


def matching_key_with_id(q: Question, index: int, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    if not q.id:
        return None
    idx = str(index)
    cands = [k for k in _keys(answers, "matching_") if q.id in k and idx in _key_tokens(k)]
    return _pick("matching_key_with_id", cands, answers, ctx)


def unused_matching_key(q: Question, index: int, answers: Answers, ctx: ResolutionContext) -> Optional[Resolution]:
    idx = str(index)
    cands = [k for k in _keys(answers, "matching_") if idx in _key_tokens(k) and not ctx.is_used(k)]
    return _pick("unused_matching_key", cands, answers, ctx, guess=True)


PAIR_RULES = (canonical_pair_key, matching_key_with_id, unused_matching_key)


def resolve_matching_pair(question: Question, index: int, answers: Answers,
                          ctx: ResolutionContext) -> Resolution:
    for rule in PAIR_RULES:
        hit = rule(question, index, answers, ctx)
        if hit is not None:
            ctx.claim(hit.key)
            log.debug("matching %s[%d] via %s -> %s", question.id, index, hit.rule, hit.key)
            return hit
    return Resolution.missing()
