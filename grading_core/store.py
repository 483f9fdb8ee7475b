"""Persistence boundary of the grading engine.

The engine never talks to a database directly. Anything providing the three
methods of :class:`GradingStore` can feed it; ``api.storage`` does so with
JSON files, :class:`InMemoryStore` with plain dicts for tests and tools.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from .export import build_result_record
from .types import GradingResult, QuestionBank, Submission


@runtime_checkable
class GradingStore(Protocol):
    def load_submission(self, submission_id: str) -> Optional[Submission]: ...

    def load_question_bank(self, test_id: str) -> Optional[QuestionBank]: ...

    def persist_result(self, submission_id: str, result: GradingResult, graded_by: str) -> None: ...


class InMemoryStore:
    def __init__(self) -> None:
        self.submissions: Dict[str, Submission] = {}
        self.banks: Dict[str, QuestionBank] = {}
        self.records: Dict[str, Dict[str, Any]] = {}

    def add_submission(self, submission: Submission) -> None:
        self.submissions[submission.id] = submission

    def add_bank(self, bank: QuestionBank) -> None:
        self.banks[bank.test_id] = bank

    def load_submission(self, submission_id: str) -> Optional[Submission]:
        return self.submissions.get(submission_id)

    def load_question_bank(self, test_id: str) -> Optional[QuestionBank]:
        return self.banks.get(test_id)

    def persist_result(self, submission_id: str, result: GradingResult, graded_by: str) -> None:
        if submission_id not in self.submissions:
            raise KeyError(f"unknown submission {submission_id}")
        self.records[submission_id] = build_result_record(result, graded_by)
