"""Tests for calibrated subtitle export."""

from pathlib import Path

import pytest

from dualsub.editors.captions import (
    calibrate_track,
    export_captions,
    format_srt_time,
    format_vtt_time,
)
from dualsub.manifest import ExportConfig
from dualsub.models import CaptionFragment
from dualsub.timing import TimingConfig

ZERO = TimingConfig(offset=0.0)


class TestTimeFormatting:
    @pytest.mark.parametrize(
        "seconds,expected",
        [(0.0, "00:00:00,000"), (3661.5, "01:01:01,500"), (1.9999, "00:00:02,000"), (-3.0, "00:00:00,000")],
    )
    def test_srt(self, seconds, expected):
        assert format_srt_time(seconds) == expected

    def test_vtt(self):
        assert format_vtt_time(62.25) == "00:01:02.250"


class TestCalibrateTrack:
    def test_applies_calibration_and_drops_blank(self):
        fragments = [
            CaptionFragment(10.0, 12.0, "a"),
            CaptionFragment(12.0, 13.0, "  "),
        ]
        result = calibrate_track(fragments, TimingConfig(offset=-1.5, pre_roll=200, post_roll=300))
        assert len(result) == 1
        assert result[0].start == pytest.approx(8.3)
        assert result[0].end == pytest.approx(10.8)


class TestExportCaptions:
    def test_srt(self, tmp_path: Path, two_fragments):
        path = export_captions(two_fragments, tmp_path / "out.json", ZERO, ExportConfig(enabled=True))
        assert path == tmp_path / "out.srt"
        content = path.read_text(encoding="utf-8")
        assert content.startswith("1\n00:00:00,000 --> 00:00:01,000\nHi\n")
        assert "2\n00:00:01,000 --> 00:00:02,000\nthere.\n" in content

    def test_vtt(self, tmp_path: Path, two_fragments):
        config = ExportConfig(enabled=True, output_format="vtt")
        path = export_captions(two_fragments, tmp_path / "out.srt", TimingConfig(offset=1.0), config)
        assert path.suffix == ".vtt"
        content = path.read_text(encoding="utf-8")
        assert content.startswith("WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nHi\n")
