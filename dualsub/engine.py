"""Orchestrator — runs the caption pipeline defined by a Manifest."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from dualsub.analyzers.drift import DriftAnalysis, detect_timing_issues
from dualsub.analyzers.paragraphs import convert_subtitles_to_paragraphs
from dualsub.editors.captions import export_captions
from dualsub.manifest import Manifest
from dualsub.models import CaptionFragment, Paragraph, ReconstructedSentence, ReconstructionStats
from dualsub.sentences import get_reconstruction_stats, reconstruct_sentence_objects
from dualsub.timing import TimingConfig
from dualsub.track import load_track

logger = logging.getLogger(__name__)


@dataclass
class EngineResult:
    fragments: list[CaptionFragment] = field(default_factory=list)
    sentences: list[ReconstructedSentence] = field(default_factory=list)
    stats: ReconstructionStats | None = None
    drift: DriftAnalysis | None = None
    paragraphs: list[Paragraph] = field(default_factory=list)
    timing: TimingConfig | None = None
    caption_path: Path | None = None


def process(
    manifest: Manifest,
    on_progress: Callable[[str, float], None] | None = None,
) -> EngineResult:
    """Execute the full caption pipeline.

    Args:
        manifest: Validated processing manifest.
        on_progress: Optional callback(stage_name, fraction_complete).
    """

    def _progress(stage: str, frac: float) -> None:
        if on_progress:
            on_progress(stage, frac)

    _progress("Loading captions", 0.0)
    fragments = load_track(manifest.input)

    _progress("Reconstructing sentences", 0.2)
    sentences = reconstruct_sentence_objects(fragments)
    stats = get_reconstruction_stats([f.text for f in fragments], [s.text for s in sentences])
    logger.info(
        "Reconstructed %d sentences from %d fragments (ratio %.2f)",
        stats.reconstructed_count,
        stats.original_count,
        stats.compression_ratio,
    )

    timing = manifest.timing
    drift = None
    if manifest.drift.enabled:
        _progress("Analyzing timing drift", 0.4)
        drift = detect_timing_issues(fragments, current_time=0.0)
        logger.info("Drift analysis: %s (confidence %d)", drift.analysis, drift.confidence)
        if drift.detected and manifest.drift.apply:
            # Keep the user's offset; take the suggested rolls.
            timing = TimingConfig(
                offset=timing.offset,
                pre_roll=drift.recommendation.pre_roll,
                post_roll=drift.recommendation.post_roll,
            )
            logger.info("Applied drift recommendation: %s", timing)

    paragraphs: list[Paragraph] = []
    if manifest.paragraphs.enabled:
        _progress("Grouping paragraphs", 0.6)
        paragraphs = convert_subtitles_to_paragraphs(fragments, manifest.paragraphs.options())

    caption_path = None
    if manifest.export.enabled:
        _progress("Writing calibrated captions", 0.8)
        output = manifest.output or manifest.input.with_stem(manifest.input.stem + "_calibrated")
        caption_path = export_captions(fragments, output, timing, manifest.export)

    _progress("Done", 1.0)
    return EngineResult(
        fragments=fragments,
        sentences=sentences,
        stats=stats,
        drift=drift,
        paragraphs=paragraphs,
        timing=timing,
        caption_path=caption_path,
    )
