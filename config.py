"""Language, provider, and level configuration for Mixlingo.

The default tables below are loaded once into frozen dataclasses behind
read-only mappings. A JSON file named by MIXLINGO_CONFIG can override any
table (same shape as the defaults); nothing mutates the tables afterwards.
"""
import json
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from errors import ConfigurationError
from log import get_logger

logger = get_logger("mixlingo.config")

# --- Default tables ---
LANGUAGES = {
    "en": {
        "name": "English",
        "nativeName": "English",
        "characterRanges": r"[A-Za-z]",
        "segmentation": "whitespace",
        "writingSystem": {"hasScript": False, "scriptName": "latin"},
    },
    "ja": {
        "name": "Japanese",
        "nativeName": "日本語",
        # Hiragana, Katakana, Kanji
        "characterRanges": r"[\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FAF]",
        "segmentation": "morphological",
        "writingSystem": {"hasScript": True, "scriptName": "hiragana/kanji"},
    },
    "ko": {
        "name": "Korean",
        "nativeName": "한국어",
        # Hangul syllables and Jamo
        "characterRanges": r"[\uAC00-\uD7AF\u1100-\u11FF\u3130-\u318F]",
        "segmentation": "whitespace",
        "writingSystem": {"hasScript": True, "scriptName": "hangul"},
    },
    "zh": {
        "name": "Chinese",
        "nativeName": "中文",
        "characterRanges": r"[\u3400-\u4DBF\u4E00-\u9FFF]",
        "segmentation": "morphological",
        "writingSystem": {"hasScript": True, "scriptName": "hanzi"},
    },
}

DEFAULT_PROVIDER_ORDER = ["lingva", "mymemory", "libretranslate"]

TRANSLATION_PAIRS = {
    f"{src}-{dst}": {"from": src, "to": dst, "enabled": True, "apiProviders": DEFAULT_PROVIDER_ORDER}
    for src, dst in (
        ("en", "ja"), ("ja", "en"),
        ("en", "ko"), ("ko", "en"),
        ("en", "zh"), ("zh", "en"),
    )
}

PROVIDERS = {
    "lingva": {"baseUrl": "https://lingva.ml/api/v1", "enabled": True},
    "mymemory": {"baseUrl": "https://api.mymemory.translated.net/get", "enabled": True},
    "libretranslate": {"baseUrl": "https://libretranslate.com/translate", "enabled": True},
}

LEARNING_LEVELS = {
    "1": {"name": "Beginner", "translationPercentage": 0.15},
    "2": {"name": "Intermediate", "translationPercentage": 0.25},
    "3": {"name": "Advanced", "translationPercentage": 0.35},
    "4": {"name": "Expert", "translationPercentage": 0.45},
    "5": {"name": "Native", "translationPercentage": 0.55},
}

DEFAULT_PROVIDER_TIMEOUT = 15.0
DEFAULT_CACHE_TTL = 3600 * 24 * 30  # 30 days, translations rarely change
DEFAULT_CACHE_MAX = 20000


@dataclass(frozen=True)
class LanguageConfig:
    code: str
    name: str
    native_name: str
    script_pattern: "re.Pattern[str]"
    segmentation: str
    has_script: bool
    script_name: str = ""

    @property
    def morphological(self) -> bool:
        return self.segmentation == "morphological"

    def contains_script(self, text: str) -> bool:
        return bool(text) and self.script_pattern.search(text) is not None


@dataclass(frozen=True)
class PairConfig:
    from_lang: str
    to_lang: str
    enabled: bool
    api_providers: Tuple[str, ...]

    @property
    def key(self) -> str:
        return f"{self.from_lang}-{self.to_lang}"


@dataclass(frozen=True)
class ProviderEndpoint:
    id: str
    base_url: str
    enabled: bool
    timeout: float


@dataclass(frozen=True)
class LevelConfig:
    level: int
    name: str
    translation_percentage: float


@dataclass(frozen=True)
class AppConfig:
    """Immutable view over every configuration table."""

    languages: Mapping[str, LanguageConfig]
    pairs: Mapping[str, PairConfig]
    providers: Mapping[str, ProviderEndpoint]
    levels: Mapping[int, LevelConfig]
    cache_ttl: float = DEFAULT_CACHE_TTL
    cache_max: int = DEFAULT_CACHE_MAX
    cache_file: Optional[Path] = None
    provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT

    def language(self, code: str) -> Optional[LanguageConfig]:
        return self.languages.get(code)

    def get_pair(self, from_lang: str, to_lang: str) -> Optional[PairConfig]:
        return self.pairs.get(f"{from_lang}-{to_lang}")

    def is_pair_enabled(self, from_lang: str, to_lang: str) -> bool:
        pair = self.get_pair(from_lang, to_lang)
        return pair is not None and pair.enabled

    def shows_script(self, lang: str) -> bool:
        language = self.language(lang)
        return bool(language and language.has_script)

    def translation_percentage(self, level: Any) -> float:
        """Fraction of words to replace for a learner level.

        Levels outside the table clamp to the nearest configured level;
        unparseable levels fall back to the lowest one.
        """
        known = sorted(self.levels)
        try:
            level_num = int(level)
        except (TypeError, ValueError):
            logger.warning("Unparseable level, using lowest", extra={"component": "config", "detail": repr(level)})
            level_num = known[0]
        level_num = min(max(level_num, known[0]), known[-1])
        return self.levels[level_num].translation_percentage


def _compile_language(code: str, raw: Mapping[str, Any]) -> LanguageConfig:
    writing = raw.get("writingSystem") or {}
    try:
        pattern = re.compile(raw["characterRanges"])
    except (KeyError, re.error) as exc:
        raise ConfigurationError(f"Language '{code}' has an invalid characterRanges entry") from exc
    return LanguageConfig(
        code=code,
        name=raw.get("name", code),
        native_name=raw.get("nativeName", raw.get("name", code)),
        script_pattern=pattern,
        segmentation=raw.get("segmentation", "whitespace"),
        has_script=bool(writing.get("hasScript", False)),
        script_name=writing.get("scriptName", ""),
    )


def _compile_pair(key: str, raw: Mapping[str, Any]) -> PairConfig:
    src, _, dst = key.partition("-")
    providers = raw.get("apiProviders") or []
    if not isinstance(providers, (list, tuple)):
        raise ConfigurationError(f"Pair '{key}' apiProviders must be a list")
    return PairConfig(
        from_lang=raw.get("from", src),
        to_lang=raw.get("to", dst),
        enabled=bool(raw.get("enabled", False)),
        api_providers=tuple(providers),
    )


def _compile_level(key: Any, raw: Mapping[str, Any]) -> LevelConfig:
    try:
        level = int(key)
        pct = float(raw["translationPercentage"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Level '{key}' is malformed") from exc
    if not 0.0 <= pct <= 1.0:
        raise ConfigurationError(f"Level {level} translationPercentage must be within [0, 1]")
    return LevelConfig(level=level, name=raw.get("name", f"Level {level}"), translation_percentage=pct)


def build_config(overrides: Optional[Mapping[str, Any]] = None, **settings: Any) -> AppConfig:
    """Build an AppConfig from the default tables plus optional overrides.

    `overrides` may contain any of the keys `languages`, `translationPairs`,
    `providers`, `learningLevels`; each given table replaces entries of the
    default table key by key. Keyword settings (cache_ttl, cache_max,
    cache_file, provider_timeout) are passed through.
    """
    overrides = overrides or {}
    languages = {**LANGUAGES, **(overrides.get("languages") or {})}
    pairs = {**TRANSLATION_PAIRS, **(overrides.get("translationPairs") or {})}
    providers = {**PROVIDERS, **(overrides.get("providers") or {})}
    levels = {**LEARNING_LEVELS, **(overrides.get("learningLevels") or {})}
    if not levels:
        raise ConfigurationError("At least one learning level is required")

    timeout = float(settings.pop("provider_timeout", DEFAULT_PROVIDER_TIMEOUT))
    compiled_providers = {
        pid: ProviderEndpoint(
            id=pid,
            base_url=raw.get("baseUrl", ""),
            enabled=bool(raw.get("enabled", True)),
            timeout=float(raw.get("timeout", timeout)),
        )
        for pid, raw in providers.items()
    }
    compiled_levels = {}
    for key, raw in levels.items():
        level = _compile_level(key, raw)
        compiled_levels[level.level] = level

    return AppConfig(
        languages=MappingProxyType({code: _compile_language(code, raw) for code, raw in languages.items()}),
        pairs=MappingProxyType({key: _compile_pair(key, raw) for key, raw in pairs.items()}),
        providers=MappingProxyType(compiled_providers),
        levels=MappingProxyType(compiled_levels),
        provider_timeout=timeout,
        **settings,
    )


def load_overrides(path: Path) -> dict:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Could not read configuration file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a JSON object")
    return data


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Return the process-wide configuration, loaded once from defaults + env."""
    overrides = None
    config_path = os.environ.get("MIXLINGO_CONFIG")
    if config_path:
        overrides = load_overrides(Path(config_path))
        logger.info("Loaded configuration overrides", extra={"component": "config", "detail": config_path})

    cache_file = os.environ.get("MIXLINGO_CACHE_FILE")
    return build_config(
        overrides,
        provider_timeout=float(os.environ.get("MIXLINGO_PROVIDER_TIMEOUT", DEFAULT_PROVIDER_TIMEOUT)),
        cache_ttl=float(os.environ.get("MIXLINGO_CACHE_TTL", DEFAULT_CACHE_TTL)),
        cache_max=int(os.environ.get("MIXLINGO_CACHE_MAX", DEFAULT_CACHE_MAX)),
        cache_file=Path(cache_file) if cache_file else None,
    )
