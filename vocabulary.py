"""Vocabulary eligibility, difficulty classification, and the vocabulary report."""
import re
from collections import Counter
from typing import TYPE_CHECKING, List, Optional

from config import AppConfig
from log import get_logger
from models import VocabularyEntry
from text_utils import normalize
from tokenizer import extract_tokens, has_segmenter, tokenize_words

if TYPE_CHECKING:
    from translation import TranslationService

logger = get_logger("mixlingo.vocabulary")

# Function words never replaced when mixing English text
NEVER_TRANSLATE = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "are", "was", "were", "be",
})

WORD_DIFFICULTY = {
    "properNoun": 1,
    "noun": 3,
    "verb": 4,
    "adjective": 5,
    "adverb": 6,
}
DEFAULT_DIFFICULTY = 5

_LETTERS = re.compile(r"(?:[^\W\d_]|['-])+")
_REPEATED_RUN = re.compile(r"(.)\1{3,}")
_SENTENCE_END = frozenset(".!?")

# unidic top-level POS -> word class
_MECAB_CLASSES = {
    "名詞": "noun",
    "代名詞": "noun",
    "動詞": "verb",
    "形容詞": "adjective",
    "形状詞": "adjective",
    "連体詞": "adjective",
    "副詞": "adverb",
}

_ADVERB_SUFFIXES = ("ly",)
_ADJECTIVE_SUFFIXES = ("ous", "ful", "ive", "able", "ible", "less", "ish", "ical", "ic", "al")
_VERB_SUFFIXES = ("ize", "ise", "ify", "ate", "ed", "ing")


def is_eligible_token(token) -> bool:
    """True if `token` is a reasonable teaching unit.

    Length 2-20, only letters, apostrophes and hyphens, not pure digits, and
    no character repeated four or more times in a row ("soooo").
    """
    if not isinstance(token, str):
        return False
    word = token.strip()
    if not 2 <= len(word) <= 20:
        return False
    if word.isdigit():
        return False
    if not _LETTERS.fullmatch(word):
        return False
    return _REPEATED_RUN.search(word.lower()) is None


def word_class(part_of_speech: Optional[str]) -> str:
    """Map a class name, a MeCab/unidic POS, or a jieba flag onto a word class."""
    if not part_of_speech:
        return "unknown"
    if part_of_speech in WORD_DIFFICULTY:
        return part_of_speech
    if "固有名詞" in part_of_speech:
        return "properNoun"
    top = part_of_speech.split("-", 1)[0]
    if top in _MECAB_CLASSES:
        return _MECAB_CLASSES[top]
    if not top:
        return "unknown"
    # jieba flags
    if top in ("nr", "ns", "nt", "nz") or top.startswith("nr"):
        return "properNoun"
    first = top[0]
    if first == "n":
        return "noun"
    if first == "v":
        return "verb"
    if first == "a":
        return "adjective"
    if first == "d":
        return "adverb"
    return "unknown"


def classify_difficulty(token: str, part_of_speech: Optional[str]) -> int:
    return WORD_DIFFICULTY.get(word_class(part_of_speech), DEFAULT_DIFFICULTY)


def guess_english_pos(word: str, sentence_start: bool = False) -> str:
    """Cheap suffix/capitalization guess for English words."""
    if word[:1].isupper() and not sentence_start and not word.isupper():
        return "properNoun"
    lower = word.lower()
    if len(lower) > 4 and lower.endswith(_ADVERB_SUFFIXES):
        return "adverb"
    if len(lower) > 4 and lower.endswith(_ADJECTIVE_SUFFIXES):
        return "adjective"
    if len(lower) > 4 and lower.endswith(_VERB_SUFFIXES):
        return "verb"
    return "noun"


def _candidates(text: str, lang: str, config: Optional[AppConfig]):
    """(word, position, class) for each first occurrence of an eligible word."""
    seen = set()
    if has_segmenter(lang, config):
        for occ in extract_tokens(text, lang, config):
            if occ.token in seen or not is_eligible_token(occ.token):
                continue
            seen.add(occ.token)
            yield occ.token, occ.start, word_class(occ.part_of_speech)
        return

    position = 0
    sentence_start = True
    for chunk in tokenize_words(text):
        if chunk.kind == "word":
            lower = chunk.text.lower()
            if lower not in seen and lower not in NEVER_TRANSLATE and is_eligible_token(chunk.text):
                seen.add(lower)
                yield chunk.text, position, guess_english_pos(chunk.text, sentence_start)
            sentence_start = False
        elif chunk.kind == "punct" and chunk.text in _SENTENCE_END:
            sentence_start = True
        position += len(chunk.text)


async def detect_vocabulary(
    text: str,
    service: "TranslationService",
    lang: str = "en",
    to_lang: str = "ja",
) -> List[VocabularyEntry]:
    """Report every distinct eligible word in `text` with its class, difficulty and translation."""
    normalized = normalize(text)
    if not normalized:
        return []
    config = service.config
    found = list(_candidates(normalized, lang, config))
    if not found:
        return []
    results = await service.translate_batch([word for word, _, _ in found], lang, to_lang)
    logger.debug("Vocabulary detected", extra={"component": "vocabulary", "count": len(found), "lang": lang})
    return [
        VocabularyEntry(
            word=word,
            position=position,
            type=wclass,
            difficulty=WORD_DIFFICULTY.get(wclass, DEFAULT_DIFFICULTY),
            translation=result.translation,
        )
        for (word, position, wclass), result in zip(found, results)
    ]


async def describe_word(
    word: str,
    service: "TranslationService",
    type: Optional[str] = None,
    from_lang: str = "en",
    to_lang: str = "ja",
) -> dict:
    clean = word.strip()
    wclass = word_class(type) if type else guess_english_pos(clean, sentence_start=True)
    result = await service.translate_text(clean.lower() if from_lang == "en" else clean, from_lang, to_lang)
    return {
        "word": clean,
        "type": wclass,
        "difficulty": classify_difficulty(clean, wclass),
        "translation": result.translation,
        "isVocabulary": is_eligible_token(clean) and clean.lower() not in NEVER_TRANSLATE,
    }


async def vocabulary_stats(
    text: str,
    service: "TranslationService",
    lang: str = "en",
    to_lang: str = "ja",
) -> dict:
    entries = await detect_vocabulary(text, service, lang, to_lang)
    by_type = Counter(e.type for e in entries)
    by_difficulty = Counter(e.difficulty for e in entries)
    total = len(entries)
    return {
        "totalWords": total,
        "byType": dict(by_type),
        "byDifficulty": {str(k): v for k, v in sorted(by_difficulty.items())},
        "averageDifficulty": round(sum(e.difficulty for e in entries) / total, 2) if total else 0,
        "vocabulary": [e.model_dump() for e in entries[:20]],
    }
