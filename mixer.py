"""Mixed-language content generation.

Two ways to mix a text:

- extract: the text is in the target language. A morphological segmenter
  finds content words, each is glossed back into the source language, and
  every accepted occurrence becomes a `{{WORD:n}}` marker.
- select: the text is in the source language. A level-dependent share of
  each sentence's words is picked (teaching words first) and replaced by
  markers whose metadata carries the target-language translation.

Both produce a MixedContent whose markers are 0..n-1 left to right, one per
metadata entry.
"""
import asyncio
import math
import time
from collections import Counter
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from config import AppConfig
from errors import InvalidTextInput, MixlingoError, UnsupportedLanguagePair
from log import get_logger
from markers import make_placeholder, neutralize_markers
from models import MODE_EXTRACT, MODE_SELECT, MixedContent, TokenOccurrence, WordMetadataEntry
from reading import safe_reading_for
from text_utils import chunk_list, normalize, split_sentences
from tokenizer import Segmenter, WordChunk, extract_tokens, has_segmenter, tokenize_words
from translation import TranslationService
from vocabulary import NEVER_TRANSLATE, is_eligible_token

logger = get_logger("mixlingo.mixer")

POST_CHUNK_SIZE = 5
MODES = (MODE_EXTRACT, MODE_SELECT)


def select_words_for_translation(words: Sequence[str], fraction: float) -> List[str]:
    """Pick which words (lowercased) to replace.

    The budget is floor(len(words) * fraction) replaced occurrences. Function
    words are never picked; vocabulary-eligible words are tried before the
    rest, each in first-occurrence order. A word is taken only if all of its
    occurrences fit in what is left of the budget, since every occurrence of a
    picked word gets replaced.
    """
    budget = math.floor(len(words) * fraction + 1e-9)  # float fuzz, 20 * 0.15 etc.
    if budget <= 0:
        return []
    counts = Counter(w.lower() for w in words)
    eligible, others, seen = [], [], set()
    for word in words:
        lower = word.lower()
        if lower in seen or lower in NEVER_TRANSLATE:
            continue
        seen.add(lower)
        (eligible if is_eligible_token(word) else others).append(lower)

    selected, used = [], 0
    for lower in eligible + others:
        if used + counts[lower] > budget:
            continue
        selected.append(lower)
        used += counts[lower]
        if used == budget:
            break
    return selected


def assemble_placeholders(
    text: str,
    occurrences: Sequence[TokenOccurrence],
    translations: Mapping[str, str],
    target_lang: str,
    show_script: bool = False,
    readings: Optional[Mapping[str, Optional[str]]] = None,
) -> Tuple[str, List[WordMetadataEntry], int]:
    """Replace occurrences in `text` with markers.

    Walks occurrences by start offset with a cursor; an occurrence starting
    before the cursor overlaps one already placed and is skipped. Returns the
    marked text, the metadata, and how many occurrences were skipped.
    """
    readings = readings or {}
    parts: List[str] = []
    metadata: List[WordMetadataEntry] = []
    cursor = 0
    skipped = 0
    for occ in sorted(occurrences, key=lambda o: o.start):
        if occ.start < cursor:
            skipped += 1
            continue
        index = len(metadata)
        parts.append(text[cursor:occ.start])
        parts.append(make_placeholder(index))
        metadata.append(WordMetadataEntry(
            index=index,
            original=occ.token,
            translation=translations.get(occ.token, occ.token),
            target_language=target_lang,
            show_script=show_script,
            reading=readings.get(occ.token),
        ))
        cursor = occ.end
    parts.append(text[cursor:])
    return "".join(parts), metadata, skipped


def _assemble_selected(
    chunks: Sequence[WordChunk],
    selected: Sequence[str],
    translations: Mapping[str, str],
    target_lang: str,
    show_script: bool,
    readings: Mapping[str, Optional[str]],
    start: int = 0,
) -> Tuple[str, List[WordMetadataEntry]]:
    wanted = set(selected)
    parts: List[str] = []
    metadata: List[WordMetadataEntry] = []
    for chunk in chunks:
        lower = chunk.text.lower()
        if chunk.kind != "word" or lower not in wanted:
            parts.append(chunk.text)
            continue
        index = start + len(metadata)
        parts.append(make_placeholder(index))
        metadata.append(WordMetadataEntry(
            index=index,
            original=chunk.text,
            translation=translations.get(lower, chunk.text),
            target_language=target_lang,
            show_script=show_script,
            reading=readings.get(lower),
        ))
    return "".join(parts), metadata


class ContentMixer:
    """Builds MixedContent from raw post text."""

    def __init__(
        self,
        service: TranslationService,
        config: Optional[AppConfig] = None,
        segmenters: Optional[Dict[str, Segmenter]] = None,
        with_readings: bool = True,
    ) -> None:
        self.service = service
        self.config = config or service.config
        self.segmenters = dict(segmenters or {})
        self.with_readings = with_readings

    def get_translation_percentage(self, level) -> float:
        return self.config.translation_percentage(level)

    def _has_segmenter(self, lang: str) -> bool:
        return lang in self.segmenters or has_segmenter(lang, self.config)

    def choose_mode(self, normalized: str, target_lang: str) -> str:
        language = self.config.language(target_lang)
        if self._has_segmenter(target_lang) and language is not None and language.contains_script(normalized):
            return MODE_EXTRACT
        return MODE_SELECT

    async def create_mixed_content(
        self,
        text,
        user_level=5,
        target_lang: str = "ja",
        source_lang: str = "en",
        mode: Optional[str] = None,
    ) -> MixedContent:
        """Mix `text` for a learner at `user_level`.

        Raises InvalidTextInput for anything but a non-blank string, and
        UnsupportedLanguagePair (before any translation lookup) when the pair
        the chosen mode translates through is not enabled.
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidTextInput("Invalid text input: expected a non-empty string")
        if mode is not None and mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, not {mode!r}")

        normalized = neutralize_markers(normalize(text))
        mode = mode or self.choose_mode(normalized, target_lang)
        # extract glosses target-language words back into the source language
        from_lang, to_lang = (target_lang, source_lang) if mode == MODE_EXTRACT else (source_lang, target_lang)
        if not self.config.is_pair_enabled(from_lang, to_lang):
            raise UnsupportedLanguagePair(from_lang, to_lang)

        t0 = time.time()
        if mode == MODE_EXTRACT:
            mixed = await self._mix_by_extraction(normalized, target_lang, source_lang)
        else:
            mixed = await self._mix_by_selection(normalized, user_level, target_lang, source_lang)
        logger.info("Mixed content created", extra={
            "component": "mixer", "mode": mode, "lang": f"{source_lang}-{target_lang}",
            "count": len(mixed.word_metadata), "duration_ms": round((time.time() - t0) * 1000),
        })
        return mixed

    async def _resolve(self, words: Sequence[str], from_lang: str, to_lang: str) -> Dict[str, str]:
        """Translate every word concurrently; a failed lookup maps a word to itself."""
        results = await asyncio.gather(
            *(self.service.translate_text(w, from_lang, to_lang) for w in words),
            return_exceptions=True,
        )
        translations = {}
        for word, result in zip(words, results):
            if isinstance(result, BaseException):
                logger.warning("Word translation failed", exc_info=result, extra={
                    "component": "mixer", "detail": word, "lang": f"{from_lang}-{to_lang}",
                })
                translations[word] = word
            else:
                translations[word] = result.translation
        return translations

    def _readings(self, words: Sequence[str], lang: str) -> Dict[str, Optional[str]]:
        if not self.with_readings or not self.config.shows_script(lang):
            return {}
        return {w: safe_reading_for(w, lang) for w in words}

    def _extract(self, text: str, lang: str) -> List[TokenOccurrence]:
        return extract_tokens(text, lang, self.config, segmenter=self.segmenters.get(lang))

    async def _mix_by_extraction(self, normalized: str, target_lang: str, source_lang: str) -> MixedContent:
        try:
            occurrences = self._extract(normalized, target_lang)
        except Exception:
            logger.warning("Token extraction failed, continuing with no tokens", exc_info=True,
                           extra={"component": "mixer", "lang": target_lang})
            occurrences = []
        if not occurrences:
            return MixedContent(text=normalized)

        unique = list(dict.fromkeys(occ.token for occ in occurrences))
        translations = await self._resolve(unique, target_lang, source_lang)
        text, metadata, skipped = assemble_placeholders(
            normalized, occurrences, translations, target_lang,
            show_script=self.config.shows_script(target_lang),
            readings=self._readings(unique, target_lang),
        )
        if skipped:
            logger.info("Skipped overlapping token occurrences", extra={
                "component": "mixer", "count": skipped, "lang": target_lang,
            })
        return MixedContent(text=text, word_metadata=tuple(metadata), all_word_translations=translations)

    async def _mix_by_selection(self, normalized: str, user_level, target_lang: str, source_lang: str) -> MixedContent:
        # each sentence gets its own budget so replacements spread over the whole post
        fraction = self.get_translation_percentage(user_level)
        sentences = []
        for sentence, separator in split_sentences(normalized):
            chunks = tokenize_words(sentence)
            words = [c.text for c in chunks if c.kind == "word"]
            sentences.append((chunks, select_words_for_translation(words, fraction), separator))
        selected = list(dict.fromkeys(w for _, picked, _ in sentences for w in picked))
        if not selected:
            return MixedContent(text=normalized)

        translations = await self._resolve(selected, source_lang, target_lang)
        readings = self._readings(
            [t for w, t in translations.items() if t != w], target_lang,
        )
        show_script = self.config.shows_script(target_lang)
        parts: List[str] = []
        metadata: List[WordMetadataEntry] = []
        for chunks, picked, separator in sentences:
            text, entries = _assemble_selected(
                chunks, picked, translations, target_lang, show_script,
                readings={w: readings.get(translations[w]) for w in picked},
                start=len(metadata),
            )
            parts.append(text + separator)
            metadata.extend(entries)
        return MixedContent(text="".join(parts), word_metadata=tuple(metadata), all_word_translations=translations)

    async def _mix_field(self, value, level, target_lang: str, source_lang: str) -> Optional[MixedContent]:
        if not value:
            return None
        try:
            return await self.create_mixed_content(value, level, target_lang, source_lang)
        except MixlingoError as exc:
            logger.warning("Failed to process post field", extra={
                "component": "mixer", "detail": str(exc), "lang": target_lang,
            })
            return None

    async def process_post(self, post: dict, target_lang: str = "ja", source_lang: str = "en") -> dict:
        """Mix a post's title and content at its assigned difficulty.

        A contract error (bad text, unsupported pair) leaves that field
        untranslated rather than failing the post or the whole batch.
        """
        level = post.get("difficulty", 1)
        title, content = post.get("title"), post.get("content")
        translated_title = await self._mix_field(title, level, target_lang, source_lang)
        translated_content = await self._mix_field(content, level, target_lang, source_lang)
        return {
            **post,
            "targetLang": target_lang,
            "translatedTitle": translated_title.to_dict() if translated_title else None,
            "translatedContent": translated_content.to_dict() if translated_content else None,
            "originalTitle": title,
            "originalContent": content,
        }

    async def process_posts(
        self, posts: Sequence[dict], target_lang: str = "ja", source_lang: str = "en",
        chunk_size: int = POST_CHUNK_SIZE,
    ) -> List[dict]:
        """Process posts `chunk_size` at a time, concurrently within a chunk."""
        processed: List[dict] = []
        chunks = chunk_list(list(posts), chunk_size)
        for i, chunk in enumerate(chunks, 1):
            processed.extend(await asyncio.gather(
                *(self.process_post(post, target_lang, source_lang) for post in chunk)
            ))
            logger.debug("Post chunk completed", extra={"component": "mixer", "count": len(chunk), "detail": f"{i}/{len(chunks)}"})
        return processed
