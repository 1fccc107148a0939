"""Subtitle timing calibration: offset, pre-roll and post-roll.

Offsets are absolute seconds with ``BASE_OFFSET`` already folded in. The
user-facing control works in *relative* seconds where 0 means "base
calibration"; use :meth:`TimingConfig.from_relative` and
:attr:`TimingConfig.relative_offset` to convert, never add the base by hand.
"""

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from dualsub.models import CaptionFragment

logger = logging.getLogger(__name__)

# Internal calibration applied to every track; captions run ahead of speech.
BASE_OFFSET = -1.5


@dataclass(frozen=True)
class TimingConfig:
    """Calibration of subtitle visibility windows.

    Attributes:
        offset: Absolute shift in seconds, any sign.
        pre_roll: Milliseconds to show each subtitle early.
        post_roll: Milliseconds to keep each subtitle after it ends.
    """

    offset: float = BASE_OFFSET
    pre_roll: float = 0.0
    post_roll: float = 0.0

    def __post_init__(self):
        if self.pre_roll < 0 or self.post_roll < 0:
            raise ValueError("pre_roll and post_roll must be non-negative")

    @property
    def relative_offset(self) -> float:
        return self.offset - BASE_OFFSET

    @classmethod
    def from_relative(cls, relative_offset: float = 0.0, pre_roll: float = 0.0, post_roll: float = 0.0) -> "TimingConfig":
        return cls(offset=BASE_OFFSET + relative_offset, pre_roll=pre_roll, post_roll=post_roll)

    def with_relative_offset(self, relative_offset: float) -> "TimingConfig":
        return replace(self, offset=BASE_OFFSET + relative_offset)


DEFAULT_TIMING = TimingConfig()


def apply_calibration(start: float, end: float, config: TimingConfig) -> tuple[float, float]:
    """Return the calibrated ``(start, end)`` in seconds, clamped at 0."""
    adjusted_start = start + config.offset - config.pre_roll / 1000
    adjusted_end = end + config.offset + config.post_roll / 1000
    return max(0.0, adjusted_start), max(0.0, adjusted_end)


def is_visible(fragment: CaptionFragment, current_time: float, config: TimingConfig) -> bool:
    """True if ``current_time`` lies inside the calibrated window (inclusive)."""
    start, end = apply_calibration(fragment.start, fragment.end, config)
    return start <= current_time <= end


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

_WIRE_FIELDS = {"offset": "offset", "preRoll": "pre_roll", "postRoll": "post_roll"}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_timing_config(data: Mapping[str, Any]) -> bool:
    """Check the wire-format fields that are present; absent fields are fine.

    ``relativeOffset`` is accepted in place of ``offset`` and must be numeric too.
    """
    for key in ("offset", "relativeOffset"):
        if key in data and not _is_number(data[key]):
            return False
    for key in ("preRoll", "postRoll"):
        if key in data and (not _is_number(data[key]) or data[key] < 0):
            return False
    return True


def timing_config_from_dict(data: Any, default: TimingConfig = DEFAULT_TIMING) -> TimingConfig:
    """Build a config from a wire-format mapping, falling back to ``default``.

    Accepts ``relativeOffset`` as an alternative to ``offset``.
    """
    if not isinstance(data, Mapping):
        logger.warning("Timing config is not a mapping (%s); using defaults", type(data).__name__)
        return default

    data = dict(data)
    if "relativeOffset" in data and "offset" not in data:
        relative = data.pop("relativeOffset")
        if not _is_number(relative):
            logger.warning("Invalid relativeOffset %r; using defaults", relative)
            return default
        data["offset"] = BASE_OFFSET + relative

    if not validate_timing_config(data):
        logger.warning("Invalid timing config %r; using defaults", data)
        return default

    overrides = {attr: float(data[key]) for key, attr in _WIRE_FIELDS.items() if key in data}
    return replace(default, **overrides)


def timing_config_to_dict(config: TimingConfig) -> dict[str, float]:
    return {key: getattr(config, attr) for key, attr in _WIRE_FIELDS.items()}


def serialize_timing_config(config: TimingConfig) -> str:
    return json.dumps(timing_config_to_dict(config))


def deserialize_timing_config(blob: str | bytes | None) -> TimingConfig:
    """Parse a stored blob. Never raises; any problem yields the defaults."""
    if not blob:
        return DEFAULT_TIMING
    try:
        data = json.loads(blob)
    except (TypeError, ValueError, RecursionError) as e:
        logger.warning("Failed to parse timing config: %s", e)
        return DEFAULT_TIMING
    return timing_config_from_dict(data)
