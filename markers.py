"""`{{WORD:n}}` placeholder helpers shared by the mixer, routes, and tests."""
import re
from typing import List, Sequence, Union

from models import MixedContent, WordMetadataEntry

PLACEHOLDER_PATTERN = re.compile(r"\{\{WORD:(\d+)\}\}")
_DOUBLE_OPEN = re.compile(r"\{\{+")
_DOUBLE_CLOSE = re.compile(r"\}\}+")


def make_placeholder(index: int) -> str:
    return f"{{{{WORD:{index}}}}}"


def neutralize_markers(text: str) -> str:
    """Collapse doubled braces so no placeholder can pre-exist in `text`.

    A literal `{{WORD:7}}` in a post becomes `{WORD:7}`, which the client
    parser and `marker_indices` both ignore.
    """
    return _DOUBLE_CLOSE.sub("}", _DOUBLE_OPEN.sub("{", text))


def marker_indices(text: str) -> List[int]:
    """Indices of every placeholder in `text`, left to right."""
    return [int(m.group(1)) for m in PLACEHOLDER_PATTERN.finditer(text)]


def has_valid_markers(mixed: MixedContent) -> bool:
    """True if the markers are exactly 0..n-1 in order, one per metadata entry."""
    indices = marker_indices(mixed.text)
    if indices != list(range(len(mixed.word_metadata))):
        return False
    return all(entry.index == i for i, entry in enumerate(mixed.word_metadata))


def render(
    text: Union[str, MixedContent],
    metadata: Sequence[WordMetadataEntry] = (),
    use: str = "original",
) -> str:
    """Substitute each placeholder with its entry's original or translated word.

    Rendering with use="original" gives back the normalized input text.
    """
    if isinstance(text, MixedContent):
        text, metadata = text.text, text.word_metadata
    if use not in ("original", "translation"):
        raise ValueError(f"use must be 'original' or 'translation', not {use!r}")
    by_index = {entry.index: entry for entry in metadata}

    def _sub(match):
        entry = by_index.get(int(match.group(1)))
        if entry is None:
            return match.group(0)
        return entry.original if use == "original" else entry.translation

    return PLACEHOLDER_PATTERN.sub(_sub, text)
