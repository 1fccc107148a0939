"""Tests for the engine module."""

import shutil
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from dualsub.engine import EngineResult, process
from dualsub.manifest import (
    DriftConfig,
    ExportConfig,
    Manifest,
    ParagraphConfig,
    load_manifest,
)
from dualsub.timing import DEFAULT_TIMING, TimingConfig

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    for name in ("captions.json", "sample_manifest.json"):
        shutil.copy(FIXTURES_DIR / name, tmp_path / name)
    return tmp_path


class TestEngineResult:
    def test_defaults(self):
        r = EngineResult()
        assert r.fragments == []
        assert r.sentences == []
        assert r.stats is None
        assert r.drift is None
        assert r.paragraphs == []
        assert r.caption_path is None


class TestProcess:
    def test_sentences_only(self, captions_path):
        manifest = Manifest(input=captions_path, drift=DriftConfig(enabled=False))
        result = process(manifest)

        assert len(result.fragments) == 8
        assert [s.text for s in result.sentences] == [
            "Hello world.",
            "How are you?",
            "I met Dr. Smith today.",
        ]
        assert [s.source_fragment_indices for s in result.sentences] == [[0, 1], [2, 3, 4], [6, 7]]
        assert result.stats.reconstructed_count == 3
        assert result.drift is None
        assert result.paragraphs == []
        assert result.timing == DEFAULT_TIMING
        assert result.caption_path is None

    def test_full_manifest(self, workdir):
        result = process(load_manifest(workdir / "sample_manifest.json"))

        assert result.drift.detected is True
        assert result.drift.recommendation.post_roll == 500
        # apply is off, so the manifest timing is kept
        assert result.timing == TimingConfig(offset=-1.0, pre_roll=100, post_roll=200)
        assert [p.fragment_indices for p in result.paragraphs] == [[0, 1, 2, 3, 4], [6, 7]]

        assert result.caption_path == workdir / "calibrated.srt"
        content = result.caption_path.read_text(encoding="utf-8")
        assert content.startswith("1\n00:00:00,000 --> 00:00:00,400\nHello\n")

    def test_apply_drift_keeps_offset(self, captions_path):
        manifest = Manifest(
            input=captions_path,
            timing=TimingConfig(offset=-1.0, pre_roll=100, post_roll=200),
            drift=DriftConfig(enabled=True, apply=True),
        )
        result = process(manifest)
        assert result.timing == TimingConfig(offset=-1.0, pre_roll=0, post_roll=500)

    def test_default_output_path(self, workdir):
        manifest = Manifest(
            input=workdir / "captions.json",
            export=ExportConfig(enabled=True, output_format="vtt"),
        )
        result = process(manifest)
        assert result.caption_path == workdir / "captions_calibrated.vtt"
        assert result.caption_path.read_text(encoding="utf-8").startswith("WEBVTT")

    def test_progress_callback(self, workdir):
        progress = MagicMock()
        manifest = Manifest(
            input=workdir / "captions.json",
            paragraphs=ParagraphConfig(enabled=True),
            export=ExportConfig(enabled=True),
        )
        process(manifest, on_progress=progress)

        stages = [c.args[0] for c in progress.call_args_list]
        assert stages == [
            "Loading captions",
            "Reconstructing sentences",
            "Analyzing timing drift",
            "Grouping paragraphs",
            "Writing calibrated captions",
            "Done",
        ]
        progress.assert_called_with("Done", 1.0)

    def test_skips_export_when_disabled(self, captions_path):
        with patch("dualsub.engine.export_captions") as mock_export:
            process(Manifest(input=captions_path))
        mock_export.assert_not_called()
