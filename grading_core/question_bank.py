"""Parse raw question-bank records into typed :class:`Question` objects.

Records arrive the way the exam database stores them: ``options`` and
``correct_answer`` are often JSON-encoded strings, multiple-choice answers may
be an index or the option text, and listening matching questions use a list
of ``{"left", "right"}`` pairs instead of parallel lists. All of that is
resolved here so graders only ever see an ``AnswerSpec``. Malformed input is
logged and degrades to an empty/literal spec; it never raises.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .types import (
    AnswerSpec,
    EssaySpec,
    IndexSpec,
    LiteralSpec,
    MapBox,
    MapLabelingSpec,
    MatchingSpec,
    MultipleChoiceSpec,
    MultipleSelectionSpec,
    OneOfSpec,
    Question,
    QuestionBank,
    QuestionSpec,
    QUESTION_TYPES,
    Section,
    ShortAnswerSpec,
    Submission,
    UnsupportedSpec,
)

log = logging.getLogger(__name__)


def _parse_json(raw: Any, default: Any, what: str = "field") -> Any:
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        log.warning("malformed JSON in %s: %.60r", what, raw)
        return default


def _text(v: Any) -> str:
    return "" if v is None else str(v)


def _is_blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())


def _as_str_tuple(values: Any) -> Tuple[str, ...]:
    if not isinstance(values, (list, tuple)):
        return ()
    return tuple(_text(v) for v in values)


def _parse_index(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def parse_options(raw: Any) -> Tuple[str, ...]:
    parsed = _parse_json(raw, [], "options")
    if isinstance(parsed, (list, tuple)):
        return _as_str_tuple(parsed)
    return ()


def parse_literal_spec(raw: Any) -> Optional[AnswerSpec]:
    """Literal answer text, or every acceptable value when stored as a JSON list."""
    if _is_blank(raw):
        return None
    value = raw
    if isinstance(raw, str) and raw.strip().startswith("["):
        value = _parse_json(raw, raw, "correct_answer")
    if isinstance(value, (list, tuple)):
        values = tuple(_text(v) for v in value if not _is_blank(v))
        return OneOfSpec(values) if values else None
    return LiteralSpec(_text(value))


def parse_choice_spec(raw: Any, correct_index: Any = None) -> Optional[AnswerSpec]:
    """MCQ answer: an integer-parsable value is an option index, anything else is option text."""
    if not _is_blank(raw):
        idx = _parse_index(raw)
        if idx is not None:
            return IndexSpec(idx)
        return parse_literal_spec(raw)
    if correct_index is not None:
        idx = _parse_index(correct_index)
        if idx is not None:
            return IndexSpec(idx)
    return None


def _multiple_choice(raw: Mapping[str, Any]) -> MultipleChoiceSpec:
    return MultipleChoiceSpec(
        options=parse_options(raw.get("options")),
        answer=parse_choice_spec(raw.get("correct_answer"), raw.get("correct_index")),
    )


def _multiple_selection(raw: Mapping[str, Any]) -> MultipleSelectionSpec:
    options = parse_options(raw.get("options"))
    parsed = _parse_json(raw.get("correct_answer"), [], "correct_answer")
    if parsed is None:
        parsed = []
    if not isinstance(parsed, (list, tuple)):
        parsed = [parsed]
    # older rows store option indices rather than option text
    if parsed and options and all(isinstance(v, int) and not isinstance(v, bool) for v in parsed):
        parsed = [options[v] for v in parsed if 0 <= v < len(options)]
    return MultipleSelectionSpec(options=options, correct=_as_str_tuple(parsed))


def _matching(raw: Mapping[str, Any]) -> MatchingSpec:
    data = _parse_json(raw.get("correct_answer"), None, "correct_answer")
    if isinstance(data, Mapping):
        return MatchingSpec(left=_as_str_tuple(data.get("left")), right=_as_str_tuple(data.get("right")))
    if isinstance(data, (list, tuple)):
        pairs = [p for p in data if isinstance(p, Mapping)]
        return MatchingSpec(
            left=tuple(_text(p.get("left")) for p in pairs),
            right=tuple(_text(p.get("right")) for p in pairs),
        )
    log.warning("matching question %s has no left/right data", raw.get("id"))
    return MatchingSpec()


def _short_answer(raw: Mapping[str, Any]) -> ShortAnswerSpec:
    return ShortAnswerSpec(answer=parse_literal_spec(raw.get("correct_answer")))


def _map_box(entry: Any) -> MapBox:
    if isinstance(entry, Mapping):
        return MapBox(label=_text(entry.get("label")), answer=_text(entry.get("answer")))
    return MapBox(answer=_text(entry))


def _map_labeling(raw: Mapping[str, Any]) -> MapLabelingSpec:
    data = _parse_json(raw.get("correct_answer"), [], "correct_answer")
    if isinstance(data, Mapping):
        data = data.get("boxes") or []
    if not isinstance(data, (list, tuple)):
        data = []
    return MapLabelingSpec(boxes=tuple(_map_box(b) for b in data))


def _unsupported(raw: Mapping[str, Any]) -> UnsupportedSpec:
    return UnsupportedSpec(raw_type=_text(raw.get("question_type") or raw.get("type")))


def _essay(raw: Mapping[str, Any]) -> EssaySpec:
    for key in ("min_words", "word_limit"):
        n = _parse_index(raw.get(key)) if raw.get(key) is not None else None
        if n is not None:
            return EssaySpec(min_words=max(0, n))
    return EssaySpec()


_SPEC_PARSERS: Dict[str, Callable[[Mapping[str, Any]], QuestionSpec]] = {
    "multiple_choice": _multiple_choice,
    "multiple_selection": _multiple_selection,
    "matching": _matching,
    "short_answer": _short_answer,
    "map_labeling": _map_labeling,
    "map_diagram": _map_labeling,
    "essay": _essay,
    "unsupported": _unsupported,
}


def _question_type(raw: Mapping[str, Any], section: str) -> str:
    if section == "writing":
        return "essay"
    qtype = _text(raw.get("question_type") or raw.get("type")).strip().lower()
    if qtype in QUESTION_TYPES and qtype not in ("essay", "unsupported"):
        return qtype
    log.warning("question %s has unknown type %r; it will be marked incorrect", raw.get("id"), qtype)
    return "unsupported"


def _points(raw: Mapping[str, Any]) -> float:
    for key in ("points", "points_possible"):
        try:
            val = float(raw.get(key))
        except (TypeError, ValueError):
            continue
        if val > 0:
            return val
    return 1.0


def parse_question(raw: Mapping[str, Any], section: str) -> Question:
    qtype = _question_type(raw, section)
    return Question(
        id=_text(raw.get("id")),
        number=_parse_index(raw.get("question_number")) or 0,
        text=_text(raw.get("question_text") or raw.get("task_prompt") or raw.get("text")),
        type=qtype,  # type: ignore[arg-type]
        section=section,  # type: ignore[arg-type]
        spec=_SPEC_PARSERS[qtype](raw),
        points=_points(raw),
        explanation=raw.get("explanation") or None,
    )


def _section_questions(raw: Mapping[str, Any], section: str) -> List[Mapping[str, Any]]:
    rows = raw.get("questions")
    if rows is None:
        rows = raw.get(f"{section}_questions")
    if isinstance(rows, (list, tuple)):
        return [r for r in rows if isinstance(r, Mapping)]
    return []


def parse_section(raw: Mapping[str, Any], section: str) -> Section:
    return Section(
        id=_text(raw.get("id")),
        questions=tuple(parse_question(q, section) for q in _section_questions(raw, section)),
    )


def parse_bank(raw: Mapping[str, Any], test_id: str | None = None) -> QuestionBank:
    """Build a :class:`QuestionBank` from ``{"reading": [...], "listening": [...], "writing": [...]}``."""
    sections: Dict[str, Tuple[Section, ...]] = {}
    for name in ("reading", "listening", "writing"):
        rows: Iterable[Any] = raw.get(name) or []
        sections[name] = tuple(parse_section(s, name) for s in rows if isinstance(s, Mapping))
    return QuestionBank(test_id=_text(test_id or raw.get("test_id")), **sections)


def parse_submission(raw: Mapping[str, Any]) -> Submission:
    answers = _parse_json(raw.get("answers"), {}, "answers")
    if not isinstance(answers, Mapping):
        answers = {}
    return Submission(
        id=_text(raw.get("id")),
        test_id=_text(raw.get("test_id")),
        answers={str(k): v for k, v in answers.items()},
    )


def load_bank(path: str | Path) -> QuestionBank:
    data = Path(path).read_text(encoding="utf-8")
    return parse_bank(json.loads(data))
