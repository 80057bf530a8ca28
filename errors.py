"""Typed errors raised by the Mixlingo pipeline.

Only contract errors live here. Transient trouble (a provider timing out, a
token that will not translate, a tokenizer choking on odd input) degrades
inside the pipeline and never reaches the caller as an exception.
"""
from typing import Optional


class MixlingoError(Exception):
    """Base exception for all pipeline errors. Carries a stable error code."""

    code = "MIXLINGO_ERROR"

    def __init__(self, message: str, *, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        payload = {"error": self.message, "code": self.code}
        if self.detail:
            payload["detail"] = self.detail
        return payload


class InvalidTextInput(MixlingoError):
    """Raised when the text to mix is not a non-empty string."""

    code = "INVALID_TEXT_INPUT"


class UnsupportedLanguagePair(MixlingoError):
    """Raised when a language pair is missing from or disabled in configuration."""

    code = "UNSUPPORTED_LANGUAGE_PAIR"

    def __init__(self, from_lang: str, to_lang: str) -> None:
        super().__init__(
            f"Unsupported language pair: {from_lang}-{to_lang}",
            detail=f"{from_lang}-{to_lang}",
        )
        self.from_lang = from_lang
        self.to_lang = to_lang


class ConfigurationError(MixlingoError):
    """Raised when configuration tables cannot be loaded or are malformed."""

    code = "CONFIGURATION_ERROR"
