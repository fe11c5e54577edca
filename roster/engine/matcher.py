"""
roster.engine.matcher — Submission Matcher & Claim Tracker
===========================================================

Binds one form submission to at most one event occurrence.

For a submission with a known code, the code's occurrences are walked in
catalog order; the first occurrence this netID has not already claimed and
whose tolerance window contains the submission timestamp wins.  There is no
search for a "better" occurrence after that.

The :class:`ClaimTracker` is the deduplication state: a set of
``(net_id, position)`` keys that grows across one reconciliation pass.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import timedelta

from roster.engine.catalog import EventCatalog
from roster.engine.records import Event, Submission

__all__ = ["ClaimTracker", "MatchResult", "MatchStatus", "match_submission"]


class ClaimTracker:
    """Per-member set of already-credited event occurrences."""

    def __init__(self) -> None:
        self._claims: set[tuple[str, int]] = set()

    def is_claimed(self, net_id: str, position: int) -> bool:
        return (net_id, position) in self._claims

    def claim(self, net_id: str, position: int) -> bool:
        """Record the claim.  Returns False if it was already held."""
        key = (net_id, position)
        if key in self._claims:
            return False
        self._claims.add(key)
        return True

    def __contains__(self, key: tuple[str, int]) -> bool:
        return key in self._claims

    def __len__(self) -> int:
        return len(self._claims)


class MatchStatus(enum.StrEnum):
    """Outcome of matching one submission."""
    MATCHED = "matched"
    INVALID_CODE = "invalid_code"
    OUT_OF_WINDOW = "out_of_window"
    DUPLICATE = "duplicate"


@dataclass(frozen=True, slots=True)
class MatchResult:
    status: MatchStatus
    position: int | None = None
    event: Event | None = None

    @property
    def matched(self) -> bool:
        return self.status is MatchStatus.MATCHED


def match_submission(
    submission: Submission,
    catalog: EventCatalog,
    tracker: ClaimTracker,
    *,
    tolerance: timedelta = timedelta(minutes=30),
) -> MatchResult:
    """Match *submission* and, on success, claim the occurrence in *tracker*.

    ``DUPLICATE`` means the timestamp fit an occurrence this netID had
    already claimed and no unclaimed occurrence fit; ``OUT_OF_WINDOW`` means
    nothing fit at all.
    """
    positions = catalog.occurrences(submission.event_code)
    if not positions:
        return MatchResult(MatchStatus.INVALID_CODE)

    net_id = submission.net_id
    fit_claimed = False
    for position in positions:
        event = catalog[position]
        if tracker.is_claimed(net_id, position):
            fit_claimed = fit_claimed or event.accepts(submission.timestamp, tolerance)
            continue
        if event.accepts(submission.timestamp, tolerance):
            tracker.claim(net_id, position)
            return MatchResult(MatchStatus.MATCHED, position, event)

    return MatchResult(MatchStatus.DUPLICATE if fit_claimed else MatchStatus.OUT_OF_WINDOW)
