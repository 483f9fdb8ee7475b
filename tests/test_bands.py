from __future__ import annotations

import pytest

from grading_core.bands import (
    LISTENING_BANDS,
    READING_BANDS,
    band_descriptor,
    band_score,
    mean_band,
    overall_band,
    round_half_band,
    writing_band,
)


@pytest.mark.parametrize("correct, band", [(40, 9.0), (39, 9.0), (30, 7.0), (29, 6.5), (3, 3.0), (1, 2.5), (0, 1.0)])
def test_reading_table(correct, band):
    assert band_score(correct, 40, "reading") == band


@pytest.mark.parametrize("correct, band", [(39, 9.0), (32, 7.5), (31, 7.0), (3, 2.5), (2, 1.0), (0, 1.0)])
def test_listening_table(correct, band):
    assert band_score(correct, 40, "listening") == band


@pytest.mark.parametrize("correct", [-1, 41, 100])
def test_scores_outside_table_floor_to_one(correct):
    assert band_score(correct, 40, "listening") == 1.0
    assert band_score(correct, 40, "reading") == 1.0


def test_tables_cover_zero_to_forty_without_gaps():
    for table in (READING_BANDS, LISTENING_BANDS):
        for n in range(0, 41):
            assert sum(1 for r in table if r.contains(n)) == 1


def test_round_half_band_rounds_ties_up():
    assert round_half_band(6.5) == 6.5
    assert round_half_band(6.25) == 6.5
    assert round_half_band(6.75) == 7.0
    assert round_half_band(6.2) == 6.0


def test_overall_band_rounding():
    assert overall_band(6.5, 6.5, 6.5) == 6.5
    assert overall_band(7.0, 6.5, 6.75) == 7.0
    assert overall_band(7.0, 6.5, 6.0) == 6.5
    assert overall_band(7.0, 7.0, 6.25) == 7.0


def test_overall_band_skips_unattempted_sections():
    assert overall_band(6.0, 0.0, 0.0) == 6.0
    assert overall_band(0.0, 0.0, 0.0) == 1.0


def test_writing_band_from_completion_credit():
    assert writing_band(3.0, 5.0) == 5.5
    assert writing_band(0.0, 5.0) == 1.0
    assert writing_band(10.0, 5.0) == 9.0
    assert writing_band(0.0, 0.0) == 0.0


def test_descriptors_and_mean():
    assert band_descriptor(9.0) == "Expert User"
    assert band_descriptor(7.0) == "Competent User"
    assert band_descriptor(4.0) == "Extremely Limited User"
    assert mean_band([]) == 0.0
    assert mean_band([6.5, 6.0]) == 6.5
