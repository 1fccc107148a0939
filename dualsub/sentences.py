"""Sentence reconstruction from time-sliced caption fragments.

Auto-generated captions are cut by time, not by meaning: one entry may hold
a single word and one sentence may span many entries. The functions here
merge fragments back into complete sentences before they are handed to the
translation and vocabulary collaborators.
"""

import logging
import re
from collections.abc import Sequence

from dualsub.models import CaptionFragment, ReconstructedSentence, ReconstructionStats

logger = logging.getLogger(__name__)

ABBREVIATIONS = frozenset({
    "Mr", "Mrs", "Ms", "Dr", "Prof", "Sr", "Jr",
    "vs", "etc", "e.g", "i.e", "a.m", "p.m",
    "St", "Ave", "Blvd", "Rd", "Lt", "Col", "Gen",
    "Inc", "Corp", "Ltd", "Co", "No", "Vol",
    "Jan", "Feb", "Mar", "Apr", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
})

SENTENCE_TERMINATORS = frozenset(".!?。！？")
CJK_TERMINATORS = frozenset("。！？")

_SINGLE_CAPITAL = re.compile(r"[A-Z]")
_CJK_CHAR = re.compile(r"[\u4e00-\u9fa5]")
_WHITESPACE = re.compile(r"\s+")
_SPACE_BEFORE_PUNCT = re.compile(r"\s+([.,!?;:。！？；：])")
_MISSING_SPACE_AFTER_PUNCT = re.compile(r"([.,!?。！？])([A-Za-z])")
_DOUBLE_SPACE = re.compile(r"  +")
_LEADING_PUNCT = re.compile(r"^[.,!?;:。！？；：]")
_PUNCT_ONLY = re.compile(r"^[.,!?;:\-\s]+$")
_NUMERIC_ONLY = re.compile(r"^[\d.,\s]+$")
_HAS_LETTER = re.compile(r"[a-zA-Z\u4e00-\u9fa5]")


# ---------------------------------------------------------------------------
# Boundary classification
# ---------------------------------------------------------------------------


def _is_ellipsis(text: str, dot_index: int) -> bool:
    if dot_index >= 2 and text[dot_index - 1] == "." and text[dot_index - 2] == ".":
        return True
    return text[dot_index] == "…"


def _is_decimal_point(text: str, dot_index: int) -> bool:
    """A dot with a digit on both sides. Never true for the last character."""
    if dot_index <= 0 or dot_index >= len(text) - 1:
        return False
    return text[dot_index - 1].isdigit() and text[dot_index + 1].isdigit()


def _is_abbreviation_dot(text: str, dot_index: int) -> bool:
    words = text[:dot_index].split()
    if not words:
        return False
    last_word = words[-1]
    # "MIT." ends a sentence; only single capitals count as initials.
    return last_word in ABBREVIATIONS or _SINGLE_CAPITAL.fullmatch(last_word) is not None


def _is_inside_quote(text: str, index: int) -> bool:
    before = text[:index]
    if before.count('"') % 2 == 1:
        return True
    if before.count("'") % 2 == 1:
        return True
    opened = before.count("「") + before.count("『")
    closed = before.count("」") + before.count("』")
    return opened > closed


def is_sentence_end(text: str) -> bool:
    """Return True if the accumulated buffer ends a sentence.

    Periods are checked for ellipses, decimal points, abbreviations and open
    quotes. ``!`` and ``?`` only for open quotes. CJK terminators always end
    the sentence.
    """
    if not text:
        return False
    trimmed = text.strip()
    if not trimmed:
        return False

    last = trimmed[-1]
    if last not in SENTENCE_TERMINATORS:
        return False

    last_index = len(trimmed) - 1

    if last == ".":
        if _is_ellipsis(trimmed, last_index):
            return False
        if _is_decimal_point(trimmed, last_index):
            return False
        if _is_abbreviation_dot(trimmed, last_index):
            return False
        if _is_inside_quote(trimmed, last_index):
            return False
        return True

    if last in CJK_TERMINATORS:
        return True

    return not _is_inside_quote(trimmed, last_index)


# ---------------------------------------------------------------------------
# Cleaning
# ---------------------------------------------------------------------------


def is_mostly_chinese(text: str) -> bool:
    if not text:
        return False
    total = len(_WHITESPACE.sub("", text))
    if total == 0:
        return False
    return len(_CJK_CHAR.findall(text)) / total > 0.5


def _normalize_cjk_spacing(text: str) -> str:
    """Drop whitespace around CJK characters, keep one space between Latin runs."""

    def _join(match: re.Match) -> str:
        start, end = match.span()
        if start == 0 or end == len(text):
            return ""
        if _CJK_CHAR.match(text[start - 1]) or _CJK_CHAR.match(text[end]):
            return ""
        return " "

    return _WHITESPACE.sub(_join, text)


def clean_sentence(text: str) -> str:
    """Normalize spacing and capitalization of a reconstructed sentence.

    ``clean_sentence(clean_sentence(x)) == clean_sentence(x)`` for any input.
    """
    if not text:
        return ""

    chinese = is_mostly_chinese(text)

    if chinese:
        cleaned = _normalize_cjk_spacing(text)
    else:
        cleaned = _WHITESPACE.sub(" ", text)

    cleaned = _SPACE_BEFORE_PUNCT.sub(r"\1", cleaned)

    if not chinese:
        cleaned = _MISSING_SPACE_AFTER_PUNCT.sub(r"\1 \2", cleaned)

    cleaned = cleaned.strip()

    if not chinese and cleaned and "a" <= cleaned[0] <= "z":
        cleaned = cleaned[0].upper() + cleaned[1:]

    if not chinese:
        cleaned = _DOUBLE_SPACE.sub(" ", cleaned)

    return cleaned


def is_meaningful_sentence(text: str) -> bool:
    if not text:
        return False
    trimmed = text.strip()
    if len(trimmed) < 2:
        return False
    if _PUNCT_ONLY.match(trimmed):
        return False
    if _NUMERIC_ONLY.match(trimmed):
        return False
    return _HAS_LETTER.search(trimmed) is not None


# ---------------------------------------------------------------------------
# Reconstruction
# ---------------------------------------------------------------------------


def _append_fragment(buffer: str, fragment: str) -> str:
    if not buffer:
        return fragment
    needs_space = not buffer.endswith(" ") and not _LEADING_PUNCT.match(fragment)
    return buffer + (" " if needs_space else "") + fragment


def _fragment_text(fragment: CaptionFragment | str) -> str:
    if isinstance(fragment, CaptionFragment):
        return fragment.text
    return fragment if isinstance(fragment, str) else ""


def _iter_sentences(fragments: Sequence[CaptionFragment | str]):
    """Yield ``(cleaned_text, fragment_indices)`` for every meaningful sentence."""
    buffer = ""
    indices: list[int] = []

    for i, fragment in enumerate(fragments):
        text = _fragment_text(fragment).strip()
        if not text:
            continue

        buffer = _append_fragment(buffer, text)
        indices.append(i)

        if is_sentence_end(buffer):
            cleaned = clean_sentence(buffer)
            if is_meaningful_sentence(cleaned):
                yield cleaned, indices
            else:
                logger.debug("Dropping non-meaningful sentence %r (fragments %s)", cleaned, indices)
            buffer = ""
            indices = []

    # Transcripts often lack trailing punctuation.
    if buffer:
        cleaned = clean_sentence(buffer)
        if is_meaningful_sentence(cleaned):
            yield cleaned, indices
        else:
            logger.debug("Dropping non-meaningful trailing text %r", cleaned)


def reconstruct_sentences(fragments: Sequence[str]) -> list[str]:
    """Merge caption fragments into complete, cleaned sentences.

    >>> reconstruct_sentences(["Hello", "world.", "How", "are", "you?"])
    ['Hello world.', 'How are you?']
    """
    if not fragments:
        return []
    return [text for text, _ in _iter_sentences(fragments)]


def reconstruct_sentence_objects(
    fragments: Sequence[CaptionFragment | str],
) -> list[ReconstructedSentence]:
    """Like :func:`reconstruct_sentences`, keeping source indices and timing."""
    if not fragments:
        return []

    sentences: list[ReconstructedSentence] = []
    for text, indices in _iter_sentences(fragments):
        first, last = fragments[indices[0]], fragments[indices[-1]]
        timed = isinstance(first, CaptionFragment) and isinstance(last, CaptionFragment)
        sentences.append(
            ReconstructedSentence(
                id=len(sentences),
                text=text,
                source_fragment_indices=indices,
                start=first.start if timed else None,
                end=last.end if timed else None,
            )
        )

    logger.debug("Reconstructed %d sentences from %d fragments", len(sentences), len(fragments))
    return sentences


def get_reconstruction_stats(original: Sequence[str], reconstructed: Sequence[str]) -> ReconstructionStats:
    original_count = len(original)
    reconstructed_count = len(reconstructed)

    avg_original = sum(len(t) for t in original) / original_count if original_count else 0.0
    avg_reconstructed = (
        sum(len(t) for t in reconstructed) / reconstructed_count if reconstructed_count else 0.0
    )
    ratio = reconstructed_count / original_count if original_count else 0.0

    return ReconstructionStats(
        original_count=original_count,
        reconstructed_count=reconstructed_count,
        compression_ratio=round(ratio, 2),
        avg_original_length=round(avg_original, 2),
        avg_reconstructed_length=round(avg_reconstructed, 2),
    )
