"""Timing-drift detection from caption gap and duration statistics."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from statistics import fmean, pstdev

from dualsub.models import CaptionFragment
from dualsub.timing import DEFAULT_TIMING, TimingConfig

logger = logging.getLogger(__name__)

SAMPLE_SIZE = 20
LARGE_GAP_SECONDS = 3.0
TIGHT_GAP_SECONDS = 0.1
IRREGULAR_GAP_STDDEV = 0.5
SHORT_DURATION_SECONDS = 1.5


@dataclass(frozen=True)
class DriftAnalysis:
    """Advisory result; callers decide whether to apply ``recommendation``."""

    recommendation: TimingConfig
    confidence: int
    analysis: str
    detected: bool


def _not_detected(analysis: str) -> DriftAnalysis:
    return DriftAnalysis(recommendation=DEFAULT_TIMING, confidence=0, analysis=analysis, detected=False)


def detect_timing_issues(
    fragments: Sequence[CaptionFragment],
    current_time: float,
    expected_next_time: float | None = None,
) -> DriftAnalysis:
    """Inspect the head of a track and suggest a pre-roll or post-roll.

    Only the first ``SAMPLE_SIZE`` fragments are examined. Rules, first match
    wins: large average gap -> pre-roll 200ms; near-zero but irregular gaps ->
    post-roll 300ms; short average duration -> post-roll 500ms.

    ``current_time`` and ``expected_next_time`` are part of the call contract
    used by the player but are not consulted by these heuristics.
    """
    if len(fragments) < 2:
        return _not_detected("Not enough subtitles to analyze")

    sample = fragments[:SAMPLE_SIZE]
    gaps = [cur.start - prev.end for prev, cur in zip(sample, sample[1:])]
    gaps = [g for g in gaps if g >= 0]

    if not gaps:
        return _not_detected("Cannot analyze overlapping subtitles")

    avg_gap = fmean(gaps)
    std_dev = pstdev(gaps, mu=avg_gap)
    logger.debug("Gap stats over %d gaps: mean=%.3fs stddev=%.3fs", len(gaps), avg_gap, std_dev)

    if avg_gap > LARGE_GAP_SECONDS:
        return DriftAnalysis(
            recommendation=replace(DEFAULT_TIMING, pre_roll=200),
            confidence=70,
            analysis=(
                f"Large gaps detected ({avg_gap:.2f}s avg). "
                "Consider pre-roll to show subtitles earlier."
            ),
            detected=True,
        )

    if avg_gap < TIGHT_GAP_SECONDS and std_dev > IRREGULAR_GAP_STDDEV:
        return DriftAnalysis(
            recommendation=replace(DEFAULT_TIMING, post_roll=300),
            confidence=60,
            analysis="Inconsistent spacing detected. Consider post-roll for better readability.",
            detected=True,
        )

    durations = [f.end - f.start for f in sample if f.end > f.start]
    if durations:
        avg_duration = fmean(durations)
        if avg_duration < SHORT_DURATION_SECONDS:
            return DriftAnalysis(
                recommendation=replace(DEFAULT_TIMING, post_roll=500),
                confidence=65,
                analysis=(
                    f"Short subtitle durations ({avg_duration:.2f}s avg). "
                    "Consider post-roll for readability."
                ),
                detected=True,
            )

    return _not_detected("Subtitle timing appears normal")
