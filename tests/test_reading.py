"""Tests for romanized readings."""
import reading
from reading import reading_for, safe_reading_for


def test_chinese_pinyin():
    assert reading_for("你好", "zh") == "nǐ hǎo"


def test_korean_romanization():
    assert reading_for("안녕", "ko") == "annyeong"


def test_japanese_reading_is_romaji():
    result = reading_for("猫", "ja")
    assert result == "neko"


def test_japanese_particle_reading():
    assert reading_for("私は", "ja") == "watashi wa"


def test_no_reading_for_latin_or_empty():
    assert reading_for("hello", "en") is None
    assert reading_for("", "ja") is None
    assert reading_for("  ", "zh") is None


def test_safe_reading_swallows_errors(monkeypatch):
    def broken(text):
        raise RuntimeError("kakasi exploded")
    monkeypatch.setattr(reading, "_japanese_reading", broken)
    assert safe_reading_for("猫", "ja") is None
