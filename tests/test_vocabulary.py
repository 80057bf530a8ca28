"""Tests for vocabulary eligibility, classification and the vocabulary report."""
import asyncio

import pytest

from vocabulary import (
    classify_difficulty, describe_word, detect_vocabulary, guess_english_pos,
    is_eligible_token, vocabulary_stats, word_class,
)


@pytest.mark.parametrize("token,ok", [
    ("fox", True),
    ("don't", True),
    ("well-known", True),
    ("ox", True),
    ("a", False),
    ("x" * 21, False),
    ("1234", False),
    ("abc123", False),
    ("soooo", False),
    ("hello!", False),
    ("", False),
    (None, False),
    ("猫です", True),
])
def test_is_eligible_token(token, ok):
    assert is_eligible_token(token) is ok


@pytest.mark.parametrize("pos,expected", [
    ("properNoun", 1),
    ("noun", 3),
    ("verb", 4),
    ("adjective", 5),
    ("adverb", 6),
    (None, 5),
    ("interjection", 5),
    ("名詞-固有名詞", 1),
    ("名詞-普通名詞", 3),
    ("動詞-一般", 4),
    ("形容詞", 5),
    ("副詞", 6),
    ("nr", 1),
    ("ns", 1),
    ("n", 3),
    ("v", 4),
    ("a", 5),
    ("d", 6),
])
def test_classify_difficulty(pos, expected):
    assert classify_difficulty("w", pos) == expected


def test_word_class_unknown_for_empty():
    assert word_class("") == "unknown"


@pytest.mark.parametrize("word,start,expected", [
    ("London", False, "properNoun"),
    ("London", True, "noun"),
    ("quickly", False, "adverb"),
    ("beautiful", False, "adjective"),
    ("running", False, "verb"),
    ("window", False, "noun"),
])
def test_guess_english_pos(word, start, expected):
    assert guess_english_pos(word, start) == expected


def test_detect_vocabulary_report(service):
    text = "The **quick** fox saw the fox in London."
    entries = asyncio.run(detect_vocabulary(text, service, "en", "ja"))
    words = [e.word for e in entries]
    assert words == ["quick", "fox", "saw", "London"]
    assert entries[0].position == text.replace("**", "").index("quick")
    assert entries[0].translation == "<quick>"
    london = entries[-1]
    assert london.type == "properNoun"
    assert london.difficulty == 1


def test_detect_vocabulary_japanese_uses_segmenter(service):
    entries = asyncio.run(detect_vocabulary("東京で寿司を食べる", service, "ja", "en"))
    assert entries
    assert all(e.translation.startswith("<") for e in entries)
    assert "を" not in [e.word for e in entries]


def test_detect_vocabulary_empty(service):
    assert asyncio.run(detect_vocabulary("   ", service)) == []


def test_vocabulary_stats(service):
    stats = asyncio.run(vocabulary_stats("The quick brown fox jumped quickly.", service))
    assert stats["totalWords"] == 5
    assert sum(stats["byType"].values()) == 5
    assert stats["byType"]["adverb"] == 1
    assert len(stats["vocabulary"]) == 5
    assert stats["averageDifficulty"] > 0


def test_describe_word(service):
    info = asyncio.run(describe_word("Quickly", service, type="adverb"))
    assert info == {
        "word": "Quickly", "type": "adverb", "difficulty": 6,
        "translation": "<quickly>", "isVocabulary": True,
    }
