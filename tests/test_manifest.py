"""Tests for manifest loading and validation."""

import json
from pathlib import Path

import pytest

from dualsub.manifest import (
    DriftConfig,
    ExportConfig,
    Manifest,
    ParagraphConfig,
    load_manifest,
)
from dualsub.timing import DEFAULT_TIMING, TimingConfig


class TestParagraphConfig:
    def test_defaults(self):
        cfg = ParagraphConfig()
        assert cfg.enabled is False
        opts = cfg.options()
        assert (opts.min_sentences, opts.max_sentences, opts.max_length) == (3, 5, 150)


class TestExportConfig:
    def test_defaults(self):
        cfg = ExportConfig()
        assert cfg.enabled is False
        assert cfg.output_format == "srt"

    def test_rejects_unknown_format(self):
        with pytest.raises(ValueError, match="output_format"):
            ExportConfig(enabled=True, output_format="ass")


class TestManifest:
    def test_minimal(self):
        m = Manifest(input=Path("track.json"))
        assert m.version == "1"
        assert m.output is None
        assert m.timing == DEFAULT_TIMING
        assert m.drift == DriftConfig(enabled=True, apply=False)
        assert m.paragraphs.enabled is False
        assert m.export.enabled is False


class TestLoadManifest:
    def test_load_sample(self, sample_manifest_path):
        m = load_manifest(sample_manifest_path)
        assert m.input == sample_manifest_path.parent / "captions.json"
        assert m.output == sample_manifest_path.parent / "calibrated.srt"
        assert m.timing == TimingConfig(offset=-1.0, pre_roll=100, post_roll=200)
        assert m.drift.enabled is True
        assert m.paragraphs.min_sentences == 2
        assert m.paragraphs.max_sentences == 4
        assert m.export.output_format == "srt"

    def test_minimal_file(self, tmp_path: Path):
        manifest_file = tmp_path / "m.json"
        manifest_file.write_text(json.dumps({"input": "a.json"}))
        m = load_manifest(manifest_file)
        assert m.input == tmp_path / "a.json"
        assert m.output is None
        assert m.timing == DEFAULT_TIMING

    def test_relative_offset(self, tmp_path: Path):
        manifest_file = tmp_path / "m.json"
        manifest_file.write_text(json.dumps({"input": "a.json", "timing": {"relativeOffset": 0.5}}))
        m = load_manifest(manifest_file)
        assert m.timing.offset == pytest.approx(-1.0)
        assert m.timing.relative_offset == pytest.approx(0.5)

    def test_invalid_timing_falls_back(self, tmp_path: Path):
        manifest_file = tmp_path / "m.json"
        manifest_file.write_text(json.dumps({"input": "a.json", "timing": {"preRoll": -5}}))
        assert load_manifest(manifest_file).timing == DEFAULT_TIMING

    def test_missing_input(self, tmp_path: Path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"output": "out.srt"}))
        with pytest.raises(ValueError, match="input"):
            load_manifest(bad)

    def test_invalid_json(self, tmp_path: Path):
        bad = tmp_path / "bad.json"
        bad.write_text("not json")
        with pytest.raises(json.JSONDecodeError):
            load_manifest(bad)
