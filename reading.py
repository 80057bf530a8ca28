"""Deterministic readings (romanization) for target-script words.

Word metadata for scripted languages carries a `reading` so the client can
show pronunciation next to the placeholder without another network call.
"""
import re
from functools import lru_cache
from typing import Optional

import pykakasi
from korean_romanizer.romanizer import Romanizer
from pypinyin import Style as PinyinStyle, pinyin

from log import get_logger
from tokenizer import get_tagger

logger = get_logger("mixlingo.reading")

# MeCab/unidic sometimes gives the formal reading
_JA_READING_OVERRIDES = {
    "私": "watashi",
    "俺": "ore",
    "僕": "boku",
}

_JA_PUNCT = set("、。！？「」『』（）…—·〜～，")
_PARTICLE_READINGS = {"は": "wa", "を": "o", "へ": "e"}


@lru_cache(maxsize=1)
def _get_kakasi():
    return pykakasi.kakasi()


def _katakana_to_romaji(kata: str) -> str:
    return "".join(item["hepburn"] for item in _get_kakasi().convert(kata))


def _clean_long_vowels(romaji: str) -> str:
    """Doubled vowels to macrons (standard Hepburn)."""
    for doubled, macron in (("aa", "ā"), ("ii", "ī"), ("uu", "ū"), ("ee", "ē"), ("ou", "ō"), ("oo", "ō")):
        romaji = re.sub(doubled, macron, romaji)
    return romaji


def _japanese_reading(text: str) -> str:
    node = get_tagger().parseToNode(text)
    parts = []
    while node:
        surface = node.surface
        if not surface or all(c in _JA_PUNCT for c in surface):
            node = node.next
            continue

        features = node.feature.split(",")
        pos = features[0] if features else ""
        if surface in _JA_READING_OVERRIDES:
            parts.append(_JA_READING_OVERRIDES[surface])
        elif "助詞" in pos and surface in _PARTICLE_READINGS:
            parts.append(_PARTICLE_READINGS[surface])
        else:
            # unidic pronunciation field
            pron = features[9] if len(features) > 9 and features[9] != "*" else None
            romaji = _katakana_to_romaji(pron or surface)
            if romaji.strip():
                parts.append(romaji)
        node = node.next

    return _clean_long_vowels(" ".join(parts))


def reading_for(text: str, lang: str) -> Optional[str]:
    """Romanize `text` for ja/zh/ko; None for other languages or empty text."""
    if not text or not text.strip():
        return None
    if lang == "ja":
        return _japanese_reading(text) or None
    if lang == "zh":
        return " ".join(p[0] for p in pinyin(text, style=PinyinStyle.TONE)) or None
    if lang == "ko":
        return Romanizer(text).romanize() or None
    return None


def safe_reading_for(text: str, lang: str) -> Optional[str]:
    """reading_for that degrades to None; readings are decoration, never required."""
    try:
        return reading_for(text, lang)
    except Exception:
        logger.warning("Reading lookup failed", exc_info=True, extra={"component": "reading", "lang": lang})
        return None
