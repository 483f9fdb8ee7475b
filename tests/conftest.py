from __future__ import annotations

from typing import Any

import pytest

from grading_core.question_bank import parse_bank
from grading_core.store import InMemoryStore
from grading_core.types import (
    MultipleChoiceSpec,
    IndexSpec,
    Question,
    QuestionBank,
    QuestionSpec,
    Submission,
)


def raw_question(qid: str, number: int, qtype: str = "multiple_choice", **fields: Any) -> dict[str, Any]:
    """A question row shaped like the exam database stores it."""

    row: dict[str, Any] = {"id": qid, "question_number": number, "question_type": qtype,
                           "question_text": f"Question {number}"}
    row.update(fields)
    return row


def mcq_row(qid: str, number: int, correct: Any = "0", options: tuple[str, ...] = ("A", "B", "C", "D")) -> dict[str, Any]:
    return raw_question(qid, number, "multiple_choice", options=list(options), correct_answer=correct)


def build_raw_bank(
    *,
    test_id: str = "test-1",
    reading: list[dict[str, Any]] | None = None,
    listening: list[dict[str, Any]] | None = None,
    writing: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Wrap question rows into one section per exam part."""

    raw: dict[str, Any] = {"test_id": test_id}
    for name, rows in (("reading", reading), ("listening", listening), ("writing", writing)):
        raw[name] = [{"id": f"{name}-1", "questions": list(rows)}] if rows else []
    return raw


def build_bank(**kwargs: Any) -> QuestionBank:
    return parse_bank(build_raw_bank(**kwargs))


def make_question(
    qid: str = "q1",
    number: int = 1,
    qtype: str = "multiple_choice",
    spec: QuestionSpec | None = None,
    *,
    section: str = "reading",
    points: float = 1.0,
    text: str | None = None,
) -> Question:
    return Question(
        id=qid,
        number=number,
        text=text if text is not None else f"Question {number}",
        type=qtype,  # type: ignore[arg-type]
        section=section,  # type: ignore[arg-type]
        spec=spec if spec is not None else MultipleChoiceSpec(("A", "B", "C", "D"), IndexSpec(0)),
        points=points,
    )


def four_mcq_reading_bank(test_id: str = "test-1") -> QuestionBank:
    """Four reading MCQs whose correct option is always "A"."""

    return build_bank(test_id=test_id, reading=[mcq_row(f"q{n}", n) for n in range(1, 5)])


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def seeded_store(store: InMemoryStore) -> InMemoryStore:
    store.add_bank(four_mcq_reading_bank())
    store.add_submission(Submission(id="sub-1", test_id="test-1",
                                    answers={"q1": "A", "q2": "A", "q3": "A", "q4": "B"}))
    return store
