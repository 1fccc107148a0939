"""Caption editor — writes calibrated subtitle files."""

import logging
from collections.abc import Sequence
from pathlib import Path

from dualsub.manifest import ExportConfig
from dualsub.models import CaptionFragment
from dualsub.timing import TimingConfig, apply_calibration

logger = logging.getLogger(__name__)


def _split_ms(seconds: float) -> tuple[int, int, int, int]:
    total_ms = round(max(seconds, 0.0) * 1000)
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return h, m, s, ms


def format_srt_time(seconds: float) -> str:
    h, m, s, ms = _split_ms(seconds)
    return f"{h:02d}:{m:02d}:{s:02d},{ms:03d}"


def format_vtt_time(seconds: float) -> str:
    h, m, s, ms = _split_ms(seconds)
    return f"{h:02d}:{m:02d}:{s:02d}.{ms:03d}"


def calibrate_track(fragments: Sequence[CaptionFragment], config: TimingConfig) -> list[CaptionFragment]:
    """Return fragments with calibrated times; blank entries are dropped."""
    calibrated = []
    for f in fragments:
        if not f.text.strip():
            continue
        start, end = apply_calibration(f.start, f.end, config)
        calibrated.append(CaptionFragment(start=start, end=end, text=f.text))
    return calibrated


def _write_srt(fragments: list[CaptionFragment], path: Path) -> None:
    lines: list[str] = []
    for i, frag in enumerate(fragments, 1):
        lines.append(str(i))
        lines.append(f"{format_srt_time(frag.start)} --> {format_srt_time(frag.end)}")
        lines.append(frag.text)
        lines.append("")
    path.write_text("\n".join(lines), encoding="utf-8")


def _write_vtt(fragments: list[CaptionFragment], path: Path) -> None:
    lines: list[str] = ["WEBVTT", ""]
    for frag in fragments:
        lines.append(f"{format_vtt_time(frag.start)} --> {format_vtt_time(frag.end)}")
        lines.append(frag.text)
        lines.append("")
    path.write_text("\n".join(lines), encoding="utf-8")


def export_captions(
    fragments: Sequence[CaptionFragment],
    output_path: Path,
    timing: TimingConfig,
    config: ExportConfig,
) -> Path:
    """Write the calibrated track next to ``output_path`` as .srt or .vtt."""
    suffix = ".vtt" if config.output_format == "vtt" else ".srt"
    subtitle_path = output_path.with_suffix(suffix)

    calibrated = calibrate_track(fragments, timing)
    if config.output_format == "vtt":
        _write_vtt(calibrated, subtitle_path)
    else:
        _write_srt(calibrated, subtitle_path)

    logger.info("Wrote %d calibrated captions to %s", len(calibrated), subtitle_path)
    return subtitle_path
