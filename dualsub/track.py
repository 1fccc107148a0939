"""Caption track loading and text cleanup at the caption-source boundary."""

import json
import logging
import math
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from dualsub.models import CaptionFragment

logger = logging.getLogger(__name__)


class CaptionTrackError(ValueError):
    """Raised when a caption file cannot be read as a track."""


# Applied in order; entity decoding precedes the ">>" speaker-marker removal.
_TEXT_REPLACEMENTS = [
    ("\n", " "),
    ("\r", ""),
    ("&#10;", " "),
    ("&#39;", "'"),
    ("&quot;", '"'),
    ("&amp;", "&"),
    ("&gt;&gt;", ""),
    (">>", ""),
    ("♪", ""),
]
_WHITESPACE = re.compile(r"\s+")


def clean_caption_text(text: str) -> str:
    """Normalize raw caption text: HTML entities, speaker markers, music notes."""
    for old, new in _TEXT_REPLACEMENTS:
        text = text.replace(old, new)
    return _WHITESPACE.sub(" ", text).strip()


def _to_seconds(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"not a time value: {value!r}")
    seconds = float(value)
    if not math.isfinite(seconds) or seconds < 0:
        raise ValueError(f"invalid time value: {value!r}")
    return seconds


def parse_caption_entry(entry: Mapping[str, Any]) -> CaptionFragment:
    """Convert one caption-source entry into a fragment.

    Accepts ``{start, end, text}`` or the extractor's ``{start, dur, text}``;
    times may be numbers or numeric strings.
    """
    start = _to_seconds(entry["start"])
    if "end" in entry:
        end = _to_seconds(entry["end"])
    else:
        end = start + _to_seconds(entry["dur"])
    if end < start:
        raise ValueError(f"end {end} precedes start {start}")
    return CaptionFragment(start=start, end=end, text=clean_caption_text(str(entry.get("text", ""))))


def parse_captions(entries: Iterable[Any]) -> list[CaptionFragment]:
    """Parse entries, skipping malformed ones, and order by start time."""
    fragments: list[CaptionFragment] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            logger.warning("Skipping caption entry %d: not an object", i)
            continue
        try:
            fragments.append(parse_caption_entry(entry))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping caption entry %d: %s", i, e)
    # Stable sort keeps source order among equal starts.
    fragments.sort(key=lambda f: f.start)
    return fragments


def load_track(path: str | Path) -> list[CaptionFragment]:
    """Load a caption track from a JSON file.

    The file holds either an array of entries or an object with a
    ``subtitles`` array (the shape returned by the subtitles endpoint).
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise CaptionTrackError(f"Cannot read caption file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise CaptionTrackError(f"Invalid JSON in caption file {path}: {e}") from e

    if isinstance(data, Mapping):
        data = data.get("subtitles")
    if not isinstance(data, list):
        raise CaptionTrackError(f"Caption file {path} must contain an array of entries")

    fragments = parse_captions(data)
    logger.info("Loaded %d caption fragments from %s", len(fragments), path)
    return fragments
