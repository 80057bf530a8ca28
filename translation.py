"""Cache-first translation with in-flight deduplication and provider fallback."""
import asyncio
from typing import List, Optional, Sequence

from cache import RequestDeduplicator, TranslationCache, translation_cache_key
from config import AppConfig, get_config
from log import get_logger
from models import PROVIDER_CACHE, PROVIDER_FALLBACK, PROVIDER_UNSUPPORTED, TranslationResult
from providers import ProviderPool

logger = get_logger("mixlingo.translation")


class TranslationService:
    """Resolves single strings to translations.

    Lookup order: cache, pair table, deduplicated provider fan-out. Only
    successful provider answers are cached, so a failure is retried on the
    next call.
    """

    def __init__(
        self,
        pool: ProviderPool,
        cache: Optional[TranslationCache] = None,
        deduplicator: Optional[RequestDeduplicator] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self.config = config or get_config()
        self.pool = pool
        self.cache = cache if cache is not None else TranslationCache(
            ttl=self.config.cache_ttl, max_entries=self.config.cache_max, path=self.config.cache_file,
        )
        self.deduplicator = deduplicator if deduplicator is not None else RequestDeduplicator()

    def is_pair_supported(self, from_lang: str, to_lang: str) -> bool:
        return self.config.is_pair_enabled(from_lang, to_lang)

    async def translate_text(self, text: str, from_lang: str = "en", to_lang: str = "ja") -> TranslationResult:
        key = translation_cache_key(text, from_lang, to_lang)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit", extra={"component": "translation", "key": key})
            return TranslationResult(
                original=text, translation=cached, from_lang=from_lang, to_lang=to_lang,
                provider=PROVIDER_CACHE, cached=True,
            )

        pair = self.config.get_pair(from_lang, to_lang)
        if pair is None or not pair.enabled:
            return TranslationResult(
                original=text, translation=text, from_lang=from_lang, to_lang=to_lang,
                provider=PROVIDER_UNSUPPORTED, error=f"Unsupported language pair: {from_lang}-{to_lang}",
            )

        async def fetch():
            found = await self.pool.translate(text, from_lang, to_lang, pair.api_providers)
            if found is not None:
                self.cache.put(key, found[0])
            return found

        found = await self.deduplicator.dedupe(key, fetch)
        if found is None:
            logger.info("No provider produced a translation", extra={
                "component": "translation", "lang": f"{from_lang}-{to_lang}", "detail": text[:80],
            })
            return TranslationResult(
                original=text, translation=text, from_lang=from_lang, to_lang=to_lang,
                provider=PROVIDER_FALLBACK,
            )
        translation, provider_id = found
        return TranslationResult(
            original=text, translation=translation, from_lang=from_lang, to_lang=to_lang, provider=provider_id,
        )

    async def translate_batch(self, texts: Sequence[str], from_lang: str = "en", to_lang: str = "ja") -> List[TranslationResult]:
        return list(await asyncio.gather(*(self.translate_text(t, from_lang, to_lang) for t in texts)))

    def stats(self) -> dict:
        return {"cache": self.cache.stats(), "dedupe": self.deduplicator.stats()}
