"""JSON manifest schema — the contract between CLI/API and engine."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from dualsub.analyzers.paragraphs import ParagraphOptions
from dualsub.timing import DEFAULT_TIMING, TimingConfig, timing_config_from_dict

OUTPUT_FORMATS = ("srt", "vtt")


@dataclass
class DriftConfig:
    """Drift detection; ``apply`` adopts a detected recommendation for export."""

    enabled: bool = True
    apply: bool = False


@dataclass
class ParagraphConfig:
    """Paragraph grouping for the translation collaborator."""

    enabled: bool = False
    min_sentences: int = 3
    max_sentences: int = 5
    max_length: int = 150

    def options(self) -> ParagraphOptions:
        return ParagraphOptions(
            min_sentences=self.min_sentences,
            max_sentences=self.max_sentences,
            max_length=self.max_length,
        )


@dataclass
class ExportConfig:
    """Calibrated subtitle export."""

    enabled: bool = False
    output_format: str = "srt"

    def __post_init__(self):
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {OUTPUT_FORMATS}, got {self.output_format!r}")


@dataclass
class Manifest:
    """Top-level processing manifest."""

    input: Path
    output: Path | None = None
    version: str = "1"
    timing: TimingConfig = DEFAULT_TIMING
    drift: DriftConfig = field(default_factory=DriftConfig)
    paragraphs: ParagraphConfig = field(default_factory=ParagraphConfig)
    export: ExportConfig = field(default_factory=ExportConfig)


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest from a JSON file.

    Relative ``input``/``output`` paths resolve against the manifest's
    directory. An invalid ``timing`` block falls back to the defaults.
    """
    path = Path(path)
    data = json.loads(path.read_text())

    if not isinstance(data, dict) or "input" not in data:
        raise ValueError("Manifest must contain an 'input' field")

    base = path.parent
    output = base / data["output"] if data.get("output") else None

    timing = timing_config_from_dict(data["timing"]) if "timing" in data else DEFAULT_TIMING
    drift = DriftConfig(**data["drift"]) if "drift" in data else DriftConfig()
    paragraphs = ParagraphConfig(**data["paragraphs"]) if "paragraphs" in data else ParagraphConfig()
    export = ExportConfig(**data["export"]) if "export" in data else ExportConfig()

    return Manifest(
        version=data.get("version", "1"),
        input=base / data["input"],
        output=output,
        timing=timing,
        drift=drift,
        paragraphs=paragraphs,
        export=export,
    )
