from __future__ import annotations


class GradingError(RuntimeError):
    """Raised when a submission cannot be graded at all.

    Covers a submission or question bank that the persistence collaborator
    failed to load. Bad data inside a loaded record never raises; it degrades
    to an incorrect result instead.
    """

    def __init__(self, message: str, *, submission_id: str | None = None):
        super().__init__(message)
        self.submission_id = submission_id
