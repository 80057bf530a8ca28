"""Pydantic schemas for Mixlingo: pipeline value types and API request bodies."""
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

# --- Constants ---
PROVIDER_CACHE = "cache"
PROVIDER_UNSUPPORTED = "unsupported"
PROVIDER_FALLBACK = "fallback"

MODE_EXTRACT = "extract"
MODE_SELECT = "select"


# --- Pipeline value types ---

class TokenOccurrence(BaseModel):
    """One token found at [start, end) of the normalized text."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    token: str
    start: int
    end: int
    part_of_speech: Optional[str] = Field(default=None, alias="partOfSpeech")

    @model_validator(mode="after")
    def _check_span(self):
        if self.start < 0 or self.end <= self.start:
            raise ValueError(f"invalid span [{self.start}, {self.end}) for {self.token!r}")
        return self

    def overlaps(self, other: "TokenOccurrence") -> bool:
        return self.start < other.end and other.start < self.end


class TranslationResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    original: str
    translation: str
    from_lang: str = Field(alias="fromLang")
    to_lang: str = Field(alias="toLang")
    provider: str
    cached: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        """False when nothing produced a translation different from the input."""
        return self.error is None and self.translation != self.original


class WordMetadataEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    index: int
    original: str
    translation: str
    target_language: str = Field(alias="targetLanguage")
    show_script: bool = Field(default=False, alias="showScript")
    reading: Optional[str] = None


class MixedContent(BaseModel):
    """Placeholder text plus the metadata describing each `{{WORD:n}}` marker."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str
    word_metadata: Tuple[WordMetadataEntry, ...] = Field(default=(), alias="wordMetadata")
    all_word_translations: Dict[str, str] = Field(default_factory=dict, alias="allWordTranslations")

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class VocabularyEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    word: str
    position: int
    type: str
    difficulty: int
    translation: str


# --- API request bodies ---

class TranslateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    from_lang: str = Field(default="en", alias="fromLang")
    to_lang: str = Field(default="ja", alias="toLang")


class BatchTranslateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    texts: List[str]
    from_lang: str = Field(default="en", alias="fromLang")
    to_lang: str = Field(default="ja", alias="toLang")


class MixedContentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    user_level: int = Field(default=5, alias="userLevel")
    target_lang: str = Field(default="ja", alias="targetLang")
    source_lang: str = Field(default="en", alias="sourceLang")
    mode: Optional[Literal["extract", "select"]] = None


class VocabularyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    lang: str = "en"
    to_lang: str = Field(default="ja", alias="toLang")


class WordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    word: str
    type: Optional[str] = None
    from_lang: str = Field(default="en", alias="fromLang")
    to_lang: str = Field(default="ja", alias="toLang")
