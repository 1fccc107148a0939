"""Tests for playback-time subtitle lookup."""

import pytest

from dualsub.lookup import SubtitleIndex, find_fragment_at_time, find_subtitle_at_time
from dualsub.models import CaptionFragment
from dualsub.timing import TimingConfig

ZERO = TimingConfig(offset=0.0, pre_roll=0, post_roll=0)


class TestFindSubtitleAtTime:
    def test_end_to_end(self, two_fragments):
        assert find_subtitle_at_time(two_fragments, 1.5, ZERO) == "there."
        assert find_subtitle_at_time(two_fragments, 0.5, ZERO) == "Hi"
        assert find_subtitle_at_time(two_fragments, 5.0, ZERO) == ""

    def test_shared_boundary_goes_to_earlier_fragment(self, two_fragments):
        assert find_subtitle_at_time(two_fragments, 1.0, ZERO) == "Hi"

    def test_empty_track(self):
        assert find_subtitle_at_time([], 3.0, ZERO) == ""
        assert find_fragment_at_time([], 3.0, ZERO) is None

    def test_default_base_offset_shows_captions_early(self, two_fragments):
        # -1.5s base offset: "Hi" collapses to [0, 0], "there." covers [0, 0.5].
        assert find_subtitle_at_time(two_fragments, 0.0, TimingConfig()) == "Hi"
        assert find_subtitle_at_time(two_fragments, 0.3, TimingConfig()) == "there."
        assert find_subtitle_at_time(two_fragments, 1.0, TimingConfig()) == ""

    def test_first_match_by_list_order(self):
        fragments = [
            CaptionFragment(start=5.0, end=9.0, text="late but listed first"),
            CaptionFragment(start=4.0, end=8.0, text="earlier start"),
        ]
        assert find_subtitle_at_time(fragments, 6.0, ZERO) == "late but listed first"


class TestSubtitleIndex:
    def test_matches_linear_scan(self):
        fragments = [
            CaptionFragment(0.0, 1.0, "a"),
            CaptionFragment(0.8, 3.0, "b"),
            CaptionFragment(2.0, 2.5, "c"),
            CaptionFragment(4.0, 10.0, "d"),
            CaptionFragment(5.0, 5.5, "e"),
            CaptionFragment(12.0, 12.1, "f"),
        ]
        for config in (ZERO, TimingConfig(), TimingConfig(offset=0.3, pre_roll=250, post_roll=400)):
            index = SubtitleIndex(fragments, config)
            for step in range(0, 140):
                t = step / 10
                assert index.find(t) == find_fragment_at_time(fragments, t, config), (config, t)

    def test_unsorted_input_keeps_list_order_for_ties(self):
        fragments = [
            CaptionFragment(5.0, 9.0, "first"),
            CaptionFragment(4.0, 8.0, "second"),
        ]
        index = SubtitleIndex(fragments, ZERO)
        assert index.find_index(6.0) == 0
        assert index.find_index(4.5) == 1

    def test_boundary_with_float_error(self):
        fragments = [CaptionFragment(0.1, 0.3, "x")]
        assert SubtitleIndex(fragments, ZERO).text_at(0.3) == "x"

    def test_empty(self):
        index = SubtitleIndex([], ZERO)
        assert len(index) == 0
        assert index.find(1.0) is None
        assert index.text_at(1.0) == ""

    @pytest.mark.parametrize("t,expected", [(0.5, "Hi"), (1.5, "there."), (5.0, "")])
    def test_end_to_end(self, two_fragments, t, expected):
        assert SubtitleIndex(two_fragments, ZERO).text_at(t) == expected
