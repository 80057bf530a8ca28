"""Markdown/HTML stripping and small text helpers.

`normalize` turns raw scraped post bodies (Reddit markdown, stray HTML) into
the plaintext every later stage works on. Offsets in TokenOccurrence and the
placeholder text are all relative to its output.
"""
import html
import re
from typing import List, Sequence, Tuple, TypeVar

T = TypeVar("T")

_FENCED_CODE = re.compile(r"```[\s\S]*?```")
_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_INLINE_CODE = re.compile(r"`([^`\n]+)`")
_RULE = re.compile(r"^[ \t]*[-*_]{3,}[ \t]*$", re.MULTILINE)
_HEADING = re.compile(r"^[ \t]*#{1,6}[ \t]+", re.MULTILINE)
_BLOCKQUOTE = re.compile(r"^[ \t]*(?:>|&gt;)[ \t]?", re.MULTILINE)
_BULLET = re.compile(r"^[ \t]*[-*+][ \t]+", re.MULTILINE)
_NUMBERED = re.compile(r"^[ \t]*\d+\.[ \t]+", re.MULTILINE)
_BOLD = re.compile(r"\*\*(.+?)\*\*")
_BOLD_UNDERSCORE = re.compile(r"(?<!\w)__(.+?)__(?!\w)")
_ITALIC = re.compile(r"\*([^*\n]+?)\*")
# underscores inside words (snake_case) are not emphasis
_ITALIC_UNDERSCORE = re.compile(r"(?<!\w)_([^_\n]+?)_(?!\w)")
_STRIKE = re.compile(r"~~(.+?)~~")
_HTML_TAG = re.compile(r"<[^>]+>")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])(\s+)")


def _strip_once(text: str) -> str:
    text = _FENCED_CODE.sub("", text)
    text = _IMAGE.sub("", text)
    text = _LINK.sub(r"\1", text)
    text = _INLINE_CODE.sub(r"\1", text)
    text = _RULE.sub("", text)
    text = _HEADING.sub("", text)
    text = _BLOCKQUOTE.sub("", text)
    text = _BULLET.sub("", text)
    text = _NUMBERED.sub("", text)
    text = _BOLD.sub(r"\1", text)
    text = _BOLD_UNDERSCORE.sub(r"\1", text)
    text = _ITALIC.sub(r"\1", text)
    text = _ITALIC_UNDERSCORE.sub(r"\1", text)
    text = _STRIKE.sub(r"\1", text)
    text = html.unescape(text)
    text = _HTML_TAG.sub("", text)
    text = _EXTRA_NEWLINES.sub("\n\n", text)
    return text.strip()


def normalize(raw) -> str:
    """Strip markdown and HTML from `raw`, returning plaintext.

    Fenced code blocks and images are dropped, links and inline code keep
    their visible text, emphasis wrappers and line-start markers (headings,
    lists, quotes, rules) are removed, HTML tags are stripped and entities
    decoded. Every rewrite only deletes characters, so repeating the pass
    until nothing changes terminates, and the result is a fixed point:
    normalize(normalize(x)) == normalize(x).
    """
    if not isinstance(raw, str) or not raw.strip():
        return ""
    text = raw
    while True:
        stripped = _strip_once(text)
        if stripped == text:
            return stripped
        text = stripped


def chunk_list(items: Sequence[T], size: int) -> List[List[T]]:
    """Split `items` into consecutive chunks of at most `size` elements."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def split_sentences(text: str) -> List[Tuple[str, str]]:
    """Split `text` after `.`, `!` or `?` followed by whitespace.

    Returns (sentence, separator) pairs; joining them gives back `text`.
    """
    parts = _SENTENCE_BREAK.split(text)
    parts.append("")
    return [(parts[i], parts[i + 1]) for i in range(0, len(parts) - 1, 2)]
