"""Paragraph grouping and translation batching for caption tracks."""

import logging
import math
import re
from collections.abc import Sequence
from dataclasses import dataclass, replace

from dualsub.models import CaptionFragment, Paragraph

logger = logging.getLogger(__name__)

# Plain end-of-fragment check; quotes and abbreviations are not considered.
_TERMINAL_PUNCTUATION = re.compile(r"[.!?]$")

TOPIC_TRANSITIONS = (
    "However",
    "Moreover",
    "Furthermore",
    "Therefore",
    "Nevertheless",
    "On the other hand",
    "In addition",
    "First",
    "Second",
    "Finally",
    "In conclusion",
    "To summarize",
)


@dataclass
class ParagraphOptions:
    """Limits for merging sentences into one paragraph."""

    min_sentences: int = 3
    max_sentences: int = 5
    max_length: int = 150


def is_topic_transition(text: str) -> bool:
    return text.strip().startswith(TOPIC_TRANSITIONS)


def _build_paragraph(pid: int, fragments: Sequence[CaptionFragment], indices: list[int], text: str) -> Paragraph:
    return Paragraph(
        id=pid,
        text=text,
        start=fragments[indices[0]].start,
        end=fragments[indices[-1]].end,
        fragment_indices=list(indices),
    )


def convert_subtitles_to_paragraphs(
    fragments: Sequence[CaptionFragment],
    options: ParagraphOptions | None = None,
) -> list[Paragraph]:
    """Group fragments into paragraphs of roughly 3-5 sentences.

    A paragraph closes on a fragment ending in ``.``, ``!`` or ``?`` once at least
    ``min_sentences`` fragments are collected and either ``max_sentences``
    or ``max_length`` is reached, or the next fragment opens with a topic
    transition ("However", "Finally", ...). Blank fragments are skipped.
    """
    options = options or ParagraphOptions()
    paragraphs: list[Paragraph] = []
    indices: list[int] = []
    text = ""

    for i, fragment in enumerate(fragments):
        piece = fragment.text.strip()
        if not piece:
            continue

        indices.append(i)
        text = f"{text} {piece}" if text else piece

        if not _TERMINAL_PUNCTUATION.search(piece) or len(indices) < options.min_sentences:
            continue

        next_is_transition = i + 1 < len(fragments) and is_topic_transition(fragments[i + 1].text)
        if (
            len(indices) >= options.max_sentences
            or len(text) >= options.max_length
            or next_is_transition
        ):
            paragraphs.append(_build_paragraph(len(paragraphs), fragments, indices, text))
            indices = []
            text = ""

    if indices:
        paragraphs.append(_build_paragraph(len(paragraphs), fragments, indices, text))

    return paragraphs


def create_translation_batches(paragraphs: Sequence[Paragraph], max_batch_size: int = 100) -> list[list[str]]:
    """Split paragraph texts into batches the translation API will accept."""
    if max_batch_size < 1:
        raise ValueError("max_batch_size must be at least 1")
    texts = [p.text for p in paragraphs]
    return [texts[i:i + max_batch_size] for i in range(0, len(texts), max_batch_size)]


def apply_translations(paragraphs: Sequence[Paragraph], translations: Sequence[str]) -> list[Paragraph]:
    """Attach translations by position; untranslated paragraphs keep their source text."""
    if len(paragraphs) != len(translations):
        logger.warning(
            "Paragraph count (%d) does not match translation count (%d)",
            len(paragraphs),
            len(translations),
        )

    result = []
    for i, paragraph in enumerate(paragraphs):
        translated = translations[i] if i < len(translations) else ""
        result.append(replace(paragraph, translation=translated or paragraph.text))
    return result


def estimate_tokens(text: str) -> int:
    """Rough token count: about four characters per token for English."""
    return math.ceil(len(text) / 4)
