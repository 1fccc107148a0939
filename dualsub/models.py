"""Shared data types used across DualSub."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CaptionFragment:
    """One raw caption entry as delivered by the caption source, in seconds."""

    start: float
    end: float
    text: str


@dataclass(frozen=True)
class ReconstructedSentence:
    """A complete sentence built from one or more caption fragments.

    ``start``/``end`` come from the first and last contributing fragment and
    are ``None`` when the fragments carried no timing.
    """

    id: int
    text: str
    source_fragment_indices: list[int] = field(default_factory=list)
    start: float | None = None
    end: float | None = None


@dataclass(frozen=True)
class ReconstructionStats:
    original_count: int
    reconstructed_count: int
    compression_ratio: float
    avg_original_length: float
    avg_reconstructed_length: float


@dataclass(frozen=True)
class Paragraph:
    """A group of consecutive fragments sent together for translation."""

    id: int
    text: str
    translation: str = ""
    start: float | None = None
    end: float | None = None
    fragment_indices: list[int] = field(default_factory=list)
