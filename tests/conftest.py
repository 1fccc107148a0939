"""Shared test fixtures."""

from pathlib import Path

import pytest

from dualsub.models import CaptionFragment

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"


@pytest.fixture
def captions_path() -> Path:
    return FIXTURES_DIR / "captions.json"


@pytest.fixture
def two_fragments() -> list[CaptionFragment]:
    return [
        CaptionFragment(start=0.0, end=1.0, text="Hi"),
        CaptionFragment(start=1.0, end=2.0, text="there."),
    ]
