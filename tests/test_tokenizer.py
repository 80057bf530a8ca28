"""Tests for token extraction and the word/space/punct splitter."""
import pytest

from config import build_config
from models import TokenOccurrence
from tokenizer import contains_script, extract_tokens, has_segmenter, tokenize_words


@pytest.fixture()
def config():
    return build_config()


def _fixed(pairs):
    def segment(text):
        return iter(pairs)
    return segment


def test_extract_maps_surfaces_to_spans_and_drops_particles(config):
    text = "猫は魚を食べる"
    seg = _fixed([("猫", "名詞-普通名詞"), ("は", "助詞-係助詞"), ("魚", "名詞-普通名詞"),
                  ("を", "助詞-格助詞"), ("食べる", "動詞-一般")])
    tokens = extract_tokens(text, "ja", config, segmenter=seg)
    assert [(t.token, t.start, t.end) for t in tokens] == [("猫", 0, 1), ("魚", 2, 3), ("食べる", 4, 7)]
    for t in tokens:
        assert text[t.start:t.end] == t.token


def test_extract_drops_tokens_without_target_script(config):
    seg = _fixed([("Tokyo", "名詞"), ("へ", "助詞"), ("行く", "動詞"), ("2024", "名詞")])
    tokens = extract_tokens("Tokyoへ行く2024", "ja", config, segmenter=seg)
    assert [t.token for t in tokens] == ["行く"]


def test_extract_repeated_surface_uses_forward_search(config):
    seg = _fixed([("猫", "名詞"), ("と", "助詞"), ("猫", "名詞")])
    tokens = extract_tokens("猫と猫", "ja", config, segmenter=seg)
    assert [(t.start, t.end) for t in tokens] == [(0, 1), (2, 3)]


def test_extract_skips_unplaceable_surface(config):
    seg = _fixed([("犬", "名詞"), ("猫", "名詞")])
    tokens = extract_tokens("猫", "ja", config, segmenter=seg)
    assert [t.token for t in tokens] == ["猫"]


def test_whitespace_language_has_no_tokens(config):
    assert extract_tokens("hello world", "en", config) == []
    assert extract_tokens("안녕하세요 세계", "ko", config) == []
    assert not has_segmenter("en", config)
    assert has_segmenter("ja", config)


def test_unknown_language_has_no_tokens(config):
    assert extract_tokens("whatever", "xx", config) == []


def test_segmenter_errors_propagate(config):
    def broken(text):
        raise RuntimeError("tagger crashed")
    with pytest.raises(RuntimeError):
        extract_tokens("猫", "ja", config, segmenter=broken)


def test_mecab_segments_japanese(config):
    text = "猫は魚を食べる"
    tokens = extract_tokens(text, "ja", config)
    surfaces = [t.token for t in tokens]
    assert "猫" in surfaces
    assert "魚" in surfaces
    assert "は" not in surfaces
    assert "を" not in surfaces
    starts = [t.start for t in tokens]
    assert starts == sorted(starts)
    for a, b in zip(tokens, tokens[1:]):
        assert not a.overlaps(b)
    for t in tokens:
        assert text[t.start:t.end] == t.token


def test_contains_script(config):
    assert contains_script("これはペンです", "ja", config)
    assert contains_script("你好", "zh", config)
    assert contains_script("안녕", "ko", config)
    assert not contains_script("hello", "ja", config)
    assert not contains_script("hello", "xx", config)


def test_tokenize_words_rebuilds_sentence():
    sentence = "Hello, world!  It's 2024 -- ok?"
    chunks = tokenize_words(sentence)
    assert "".join(c.text for c in chunks) == sentence
    assert [c.text for c in chunks if c.kind == "word"] == ["Hello", "world", "It", "s", "2024", "ok"]
    assert {c.kind for c in chunks} == {"word", "space", "punct"}


def test_tokenize_words_empty():
    assert tokenize_words("") == []


def test_occurrence_overlap():
    tokyo = TokenOccurrence(token="東京都", start=0, end=3)
    assert tokyo.overlaps(TokenOccurrence(token="京都", start=1, end=3))
    assert not tokyo.overlaps(TokenOccurrence(token="に", start=3, end=4))
