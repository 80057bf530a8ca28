"""Token extraction for mixed-language content.

Two tokenizers live here:
- `extract_tokens` segments text written in a language without whitespace word
  boundaries (MeCab for Japanese, jieba for Chinese) into positioned
  TokenOccurrence objects, dropping grammatical glue.
- `tokenize_words` is the single regex pass used when English text is being
  sprinkled with target-language words; it keeps whitespace and punctuation
  as pass-through chunks so the sentence can be rebuilt exactly.
"""
import re
from functools import lru_cache
from typing import Callable, Dict, FrozenSet, Iterable, Iterator, List, NamedTuple, Optional, Tuple

import MeCab

from config import AppConfig, get_config
from log import get_logger
from models import TokenOccurrence

logger = get_logger("mixlingo.tokenizer")

# (surface, part_of_speech) pairs in text order
Segmenter = Callable[[str], Iterable[Tuple[str, str]]]

# unidic top-level POS: particles, auxiliary verbs, symbols, conjunctions
JA_EXCLUDED_POS = frozenset({"助詞", "助動詞", "記号", "補助記号", "接続詞", "空白"})
# jieba posseg flags: auxiliaries, conjunctions, punctuation, modal particles
ZH_EXCLUDED_POS = frozenset({"u", "ud", "ug", "uj", "ul", "uv", "uz", "c", "x", "w", "y"})

WORD_PATTERN = re.compile(r"(\b\w+\b|\s+|[^\w\s])")


@lru_cache(maxsize=1)
def get_tagger() -> "MeCab.Tagger":
    return MeCab.Tagger()


def _segment_japanese(text: str) -> Iterator[Tuple[str, str]]:
    node = get_tagger().parseToNode(text)
    while node:
        surface = node.surface
        if surface:
            # "名詞-固有名詞": top-level POS plus unidic subcategory
            features = node.feature.split(",")
            yield surface, "-".join(f for f in features[:2] if f and f != "*")
        node = node.next


def _segment_chinese(text: str) -> Iterator[Tuple[str, str]]:
    import jieba.posseg as pseg
    for pair in pseg.cut(text):
        yield pair.word, pair.flag


SEGMENTERS: Dict[str, Segmenter] = {
    "ja": _segment_japanese,
    "zh": _segment_chinese,
}

EXCLUDED_POS: Dict[str, FrozenSet[str]] = {
    "ja": JA_EXCLUDED_POS,
    "zh": ZH_EXCLUDED_POS,
}


def has_segmenter(lang: str, config: Optional[AppConfig] = None) -> bool:
    config = config or get_config()
    language = config.language(lang)
    return bool(language and language.morphological and lang in SEGMENTERS)


def contains_script(text: str, lang: str, config: Optional[AppConfig] = None) -> bool:
    """True if `text` has at least one character of `lang`'s defining script."""
    config = config or get_config()
    language = config.language(lang)
    return bool(language and language.contains_script(text))


def extract_tokens(
    text: str,
    lang: str,
    config: Optional[AppConfig] = None,
    segmenter: Optional[Segmenter] = None,
) -> List[TokenOccurrence]:
    """Segment `text` into translatable token occurrences for `lang`.

    Returns an empty list for whitespace-delimited languages. Segmenter
    errors propagate to the caller.
    """
    if not text:
        return []
    config = config or get_config()
    language = config.language(lang)
    if language is None:
        return []
    if segmenter is None:
        if not language.morphological:
            return []
        segmenter = SEGMENTERS.get(lang)
        if segmenter is None:
            return []

    excluded = EXCLUDED_POS.get(lang, frozenset())
    occurrences: List[TokenOccurrence] = []
    cursor = 0
    for surface, pos in segmenter(text):
        if not surface:
            continue
        start = text.find(surface, cursor)
        if start < 0:
            # segmenter rewrote the surface (e.g. normalized width); cannot place it
            logger.debug("Unplaceable surface", extra={"component": "tokenizer", "detail": surface, "lang": lang})
            continue
        end = start + len(surface)
        cursor = end
        pos = pos or ""
        if pos.split("-", 1)[0] in excluded:
            continue
        if not language.contains_script(surface):
            continue
        occurrences.append(TokenOccurrence(token=surface, start=start, end=end, part_of_speech=pos or None))

    occurrences.sort(key=lambda occ: occ.start)
    return occurrences


class WordChunk(NamedTuple):
    text: str
    kind: str  # "word" | "space" | "punct"


def tokenize_words(sentence: str) -> List[WordChunk]:
    """Split a sentence into word, whitespace, and punctuation chunks.

    Joining the chunk texts reproduces the sentence exactly.
    """
    chunks = []
    for match in WORD_PATTERN.finditer(sentence or ""):
        piece = match.group(0)
        if piece.isspace():
            kind = "space"
        elif re.fullmatch(r"\w+", piece):
            kind = "word"
        else:
            kind = "punct"
        chunks.append(WordChunk(piece, kind))
    return chunks
