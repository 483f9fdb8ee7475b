"""IELTS band conversion tables and aggregation helpers.

Reading and listening raw scores (0-40 correct) map to bands through the
published non-linear tables below. Band averages are rounded half-up to the
nearest 0.5, the way IELTS reports overall bands (6.25 -> 6.5, 6.75 -> 7.0).
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Literal, Tuple

from . import config

__all__ = [
    "BandRange",
    "READING_BANDS",
    "LISTENING_BANDS",
    "band_score",
    "round_half_band",
    "overall_band",
    "writing_band",
    "band_descriptor",
    "mean_band",
]


@dataclass(frozen=True)
class BandRange:
    min: int
    max: int
    band: float

    def contains(self, correct: int) -> bool:
        return self.min <= correct <= self.max


# academic module
READING_BANDS: Tuple[BandRange, ...] = (
    BandRange(39, 40, 9.0),
    BandRange(37, 38, 8.5),
    BandRange(35, 36, 8.0),
    BandRange(33, 34, 7.5),
    BandRange(30, 32, 7.0),
    BandRange(27, 29, 6.5),
    BandRange(23, 26, 6.0),
    BandRange(19, 22, 5.5),
    BandRange(15, 18, 5.0),
    BandRange(11, 14, 4.5),
    BandRange(8, 10, 4.0),
    BandRange(5, 7, 3.5),
    BandRange(3, 4, 3.0),
    BandRange(1, 2, 2.5),
    BandRange(0, 0, 1.0),
)

LISTENING_BANDS: Tuple[BandRange, ...] = (
    BandRange(39, 40, 9.0),
    BandRange(37, 38, 8.5),
    BandRange(35, 36, 8.0),
    BandRange(32, 34, 7.5),
    BandRange(30, 31, 7.0),
    BandRange(26, 29, 6.5),
    BandRange(23, 25, 6.0),
    BandRange(18, 22, 5.5),
    BandRange(16, 17, 5.0),
    BandRange(13, 15, 4.5),
    BandRange(10, 12, 4.0),
    BandRange(6, 9, 3.5),
    BandRange(4, 5, 3.0),
    BandRange(3, 3, 2.5),
    BandRange(0, 2, 1.0),
)

_TABLES: Dict[str, Tuple[BandRange, ...]] = {
    "reading": READING_BANDS,
    "listening": LISTENING_BANDS,
}

_DESCRIPTORS: Tuple[Tuple[float, str], ...] = (
    (8.5, "Expert User"),
    (7.5, "Very Good User"),
    (6.5, "Competent User"),
    (5.5, "Modest User"),
    (4.5, "Limited User"),
)


def band_score(correct: int, total: int, section: Literal["reading", "listening"]) -> float:
    """Band for ``correct`` raw points; scores outside the table floor to 1.0.

    ``total`` is accepted for symmetry with the section tally; the tables are
    defined on the raw correct count only.
    """
    for rng in _TABLES[section]:
        if rng.contains(int(correct)):
            return rng.band
    return config.BAND_MIN


def round_half_band(value: float) -> float:
    """Round to the nearest 0.5, ties upward (``round()`` would round 6.75*2 to even)."""
    return math.floor(value * 2.0 + 0.5) / 2.0


def overall_band(reading: float, listening: float, writing: float) -> float:
    valid = [b for b in (reading, listening, writing) if b > 0]
    if not valid:
        return config.BAND_MIN
    avg = sum(valid) / len(valid)
    return max(config.BAND_MIN, round_half_band(avg))


def writing_band(score: float, max_score: float) -> float:
    """Auto-graded writing band from completion credit; 0.0 when there is no writing task."""
    if max_score <= 0:
        return config.UNATTEMPTED_BAND
    raw = score / max_score * config.BAND_MAX
    return round_half_band(min(config.BAND_MAX, max(config.BAND_MIN, raw)))


def band_descriptor(band: float) -> str:
    for floor, label in _DESCRIPTORS:
        if band >= floor:
            return label
    return "Extremely Limited User"


def mean_band(bands: Iterable[float]) -> float:
    vals = list(bands)
    if not vals:
        return config.UNATTEMPTED_BAND
    return round_half_band(sum(vals) / len(vals))
