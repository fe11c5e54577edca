"""
tests/test_matcher.py — Submission Matcher & Claim Tracker
===========================================================

Pure matching logic, no I/O.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from roster.engine.catalog import load_event_catalog
from roster.engine.matcher import ClaimTracker, MatchStatus, match_submission
from roster.engine.records import Submission


def _sub(ts: str, code: str = "ABC123", email: str = "ada1@uni.edu") -> Submission:
    return Submission.from_row([ts, email, code, "Ada", "Lovelace", ""], row_number=2)


@pytest.fixture
def catalog(event_rows):
    return load_event_catalog(event_rows)


class TestClaimTracker:
    def test_claim_once(self):
        tracker = ClaimTracker()
        assert tracker.claim("ada1", 0) is True
        assert tracker.claim("ada1", 0) is False
        assert tracker.is_claimed("ada1", 0)
        assert ("ada1", 0) in tracker
        assert len(tracker) == 1

    def test_claims_are_per_member(self):
        tracker = ClaimTracker()
        tracker.claim("ada1", 0)
        assert not tracker.is_claimed("bob2", 0)


class TestToleranceWindow:
    @pytest.mark.parametrize(
        "ts, expected",
        [
            ("2024-01-10 17:30:00", MatchStatus.MATCHED),      # start - 30 min, inclusive
            ("2024-01-10 17:35:00", MatchStatus.MATCHED),
            ("2024-01-10 18:30:00", MatchStatus.MATCHED),
            ("2024-01-10 19:30:00", MatchStatus.MATCHED),      # end + 30 min, inclusive
            ("2024-01-10 17:29:59", MatchStatus.OUT_OF_WINDOW),
            ("2024-01-10 19:31:00", MatchStatus.OUT_OF_WINDOW),
            ("2024-01-10 19:35:00", MatchStatus.OUT_OF_WINDOW),
            ("2024-01-11 18:30:00", MatchStatus.OUT_OF_WINDOW),  # wrong day
        ],
    )
    def test_window_bounds(self, catalog, ts, expected):
        result = match_submission(_sub(ts), catalog, ClaimTracker())
        assert result.status is expected

    def test_custom_tolerance(self, catalog):
        result = match_submission(
            _sub("2024-01-10 17:45:00"), catalog, ClaimTracker(),
            tolerance=timedelta(minutes=10),
        )
        assert result.status is MatchStatus.OUT_OF_WINDOW


class TestMatching:
    def test_unknown_code(self, catalog):
        tracker = ClaimTracker()
        result = match_submission(_sub("2024-01-10 18:30:00", code="ZZZ"), catalog, tracker)
        assert result.status is MatchStatus.INVALID_CODE
        assert len(tracker) == 0

    def test_reused_code_matches_the_right_occurrence(self, catalog):
        result = match_submission(_sub("2024-01-17 18:10:00"), catalog, ClaimTracker())
        assert result.matched
        assert result.position == 1

    def test_match_claims_the_occurrence(self, catalog):
        tracker = ClaimTracker()
        result = match_submission(_sub("2024-01-10 18:10:00"), catalog, tracker)
        assert result.position == 0
        assert tracker.is_claimed("ada1", 0)

    def test_second_submission_for_same_occurrence_is_duplicate(self, catalog):
        tracker = ClaimTracker()
        match_submission(_sub("2024-01-10 18:10:00"), catalog, tracker)
        again = match_submission(_sub("2024-01-10 18:50:00"), catalog, tracker)
        assert again.status is MatchStatus.DUPLICATE
        assert len(tracker) == 1

    def test_other_member_can_claim_same_occurrence(self, catalog):
        tracker = ClaimTracker()
        match_submission(_sub("2024-01-10 18:10:00"), catalog, tracker)
        other = match_submission(
            _sub("2024-01-10 18:12:00", email="bob2@uni.edu"), catalog, tracker,
        )
        assert other.matched

    def test_first_unclaimed_occurrence_wins(self):
        # Two occurrences of one code on the same evening; both windows fit.
        catalog = load_event_catalog([
            ["2024-02-01", "18:00", "19:00", "Part 1", "Meeting", "TWIN"],
            ["2024-02-01", "18:30", "19:30", "Part 2", "Meeting", "TWIN"],
        ])
        tracker = ClaimTracker()
        first = match_submission(_sub("2024-02-01 18:45:00", code="TWIN"), catalog, tracker)
        second = match_submission(_sub("2024-02-01 18:50:00", code="TWIN"), catalog, tracker)
        third = match_submission(_sub("2024-02-01 18:55:00", code="TWIN"), catalog, tracker)
        assert (first.position, second.position) == (0, 1)
        assert third.status is MatchStatus.DUPLICATE
