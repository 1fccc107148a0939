"""Find the subtitle that should be on screen at a given playback time."""

from bisect import bisect_left, bisect_right
from collections.abc import Sequence

from dualsub.models import CaptionFragment
from dualsub.timing import TimingConfig, apply_calibration, is_visible

_EPSILON = 1e-9


def find_fragment_at_time(
    fragments: Sequence[CaptionFragment],
    current_time: float,
    config: TimingConfig,
) -> CaptionFragment | None:
    """Linear scan; when windows overlap the earliest fragment in list order wins."""
    return next((f for f in fragments if is_visible(f, current_time, config)), None)


def find_subtitle_at_time(
    fragments: Sequence[CaptionFragment],
    current_time: float,
    config: TimingConfig,
) -> str:
    """Text of the visible subtitle, or ``""`` when nothing is visible."""
    fragment = find_fragment_at_time(fragments, current_time, config)
    return fragment.text if fragment else ""


class SubtitleIndex:
    """Sorted index over a calibrated track for repeated per-tick queries.

    Answers the same question as :func:`find_fragment_at_time` in
    O(log n + k), where k is the number of windows starting within one
    maximum window length before the query time. Build a new index when the
    track or the calibration changes.
    """

    def __init__(self, fragments: Sequence[CaptionFragment], config: TimingConfig):
        self.fragments = list(fragments)
        self.config = config

        entries = []
        for i, f in enumerate(self.fragments):
            start, end = apply_calibration(f.start, f.end, config)
            entries.append((start, end, i))
        entries.sort()

        self._starts = [e[0] for e in entries]
        self._entries = entries
        self._max_span = max((end - start for start, end, _ in entries), default=0.0)

    def __len__(self) -> int:
        return len(self.fragments)

    def find_index(self, current_time: float) -> int | None:
        """Original list index of the visible fragment, or None."""
        if not self._entries:
            return None

        # Any window containing t starts in [t - max_span, t]; pad for float error.
        lo = bisect_left(self._starts, current_time - self._max_span - _EPSILON)
        hi = bisect_right(self._starts, current_time)

        best = None
        for start, end, i in self._entries[lo:hi]:
            if start <= current_time <= end and (best is None or i < best):
                best = i
        return best

    def find(self, current_time: float) -> CaptionFragment | None:
        i = self.find_index(current_time)
        return None if i is None else self.fragments[i]

    def text_at(self, current_time: float) -> str:
        fragment = self.find(current_time)
        return fragment.text if fragment else ""
