"""External translation providers and the concurrent provider pool."""
import asyncio
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import quote

import httpx

from config import AppConfig, ProviderEndpoint, get_config
from log import get_logger

logger = get_logger("mixlingo.providers")

_PUNCT_ONLY = re.compile(r"^[.,!?;:]+$")


def is_valid_translation(candidate, original: str) -> bool:
    """A provider answer counts only if it is non-empty, changed, and not bare punctuation."""
    if not isinstance(candidate, str) or not candidate.strip():
        return False
    if candidate == original:
        return False
    return _PUNCT_ONLY.match(candidate) is None


class TranslationProvider(ABC):
    """One external translation API.

    `translate` returns the translated string, or None when the API answered
    but had nothing usable. Transport and HTTP errors are raised; the pool
    turns them into failed outcomes.
    """

    id: str = ""

    def __init__(self, endpoint: ProviderEndpoint, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.endpoint = endpoint
        self.timeout = endpoint.timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @abstractmethod
    async def translate(self, text: str, from_lang: str, to_lang: str) -> Optional[str]:
        ...


class LingvaProvider(TranslationProvider):
    id = "lingva"

    async def translate(self, text, from_lang, to_lang):
        url = f"{self.endpoint.base_url}/{from_lang}/{to_lang}/{quote(text, safe='')}"
        async with self._client() as client:
            resp = await client.get(url)
        resp.raise_for_status()
        translation = resp.json().get("translation")
        return translation if is_valid_translation(translation, text) else None


class MyMemoryProvider(TranslationProvider):
    id = "mymemory"

    async def translate(self, text, from_lang, to_lang):
        async with self._client() as client:
            resp = await client.get(
                self.endpoint.base_url,
                params={"q": text, "langpair": f"{from_lang}|{to_lang}"},
            )
        resp.raise_for_status()
        data = resp.json()
        if str(data.get("responseStatus")) != "200" or not data.get("responseData"):
            return None
        translation = data["responseData"].get("translatedText")
        return translation if is_valid_translation(translation, text) else None


class LibreTranslateProvider(TranslationProvider):
    id = "libretranslate"

    async def translate(self, text, from_lang, to_lang):
        async with self._client() as client:
            resp = await client.post(
                self.endpoint.base_url,
                json={"q": text, "source": from_lang, "target": to_lang, "format": "text"},
            )
        resp.raise_for_status()
        translation = resp.json().get("translatedText")
        return translation if is_valid_translation(translation, text) else None


PROVIDER_CLASSES = {
    cls.id: cls for cls in (LingvaProvider, MyMemoryProvider, LibreTranslateProvider)
}


def build_providers(
    config: Optional[AppConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, TranslationProvider]:
    """Instantiate a provider for every configured endpoint with a known implementation."""
    config = config or get_config()
    providers = {}
    for pid, endpoint in config.providers.items():
        cls = PROVIDER_CLASSES.get(pid)
        if cls is None:
            logger.warning("No implementation for provider", extra={"component": "providers", "provider": pid})
            continue
        providers[pid] = cls(endpoint, transport=transport)
    return providers


@dataclass(frozen=True)
class ProviderOutcome:
    provider_id: str
    translation: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.translation is not None


def select_first_success(outcomes: Iterable[ProviderOutcome]) -> Optional[ProviderOutcome]:
    """First successful outcome in the order given, regardless of completion order."""
    for outcome in outcomes:
        if outcome.ok:
            return outcome
    return None


class ProviderPool:
    """Fans a translation out to every eligible provider and keeps the best-ranked answer."""

    def __init__(self, providers: Dict[str, TranslationProvider], config: Optional[AppConfig] = None):
        self.providers = dict(providers)
        self.config = config or get_config()

    def eligible(self, provider_ids: Sequence[str]) -> List[TranslationProvider]:
        eligible = []
        for pid in provider_ids:
            provider = self.providers.get(pid)
            endpoint = self.config.providers.get(pid)
            if provider is None or (endpoint is not None and not endpoint.enabled):
                continue
            eligible.append(provider)
        return eligible

    async def _attempt(self, provider: TranslationProvider, text: str, from_lang: str, to_lang: str) -> ProviderOutcome:
        t0 = time.time()
        timeout = getattr(provider, "timeout", None) or self.config.provider_timeout
        try:
            translation = await asyncio.wait_for(provider.translate(text, from_lang, to_lang), timeout)
        except asyncio.TimeoutError:
            logger.warning("Provider timed out", extra={
                "component": "providers", "provider": provider.id,
                "duration_ms": round((time.time() - t0) * 1000),
            })
            return ProviderOutcome(provider.id, error="timeout")
        except Exception as exc:
            logger.warning("Provider failed", extra={
                "component": "providers", "provider": provider.id, "detail": str(exc),
                "duration_ms": round((time.time() - t0) * 1000),
            })
            return ProviderOutcome(provider.id, error=str(exc) or type(exc).__name__)
        if not is_valid_translation(translation, text):
            return ProviderOutcome(provider.id, error="no usable translation")
        return ProviderOutcome(provider.id, translation=translation)

    async def translate(
        self, text: str, from_lang: str, to_lang: str, provider_ids: Sequence[str],
    ) -> Optional[Tuple[str, str]]:
        """Return (translation, provider_id) of the highest-priority success, or None.

        All eligible providers run concurrently and every one is awaited before
        choosing, so a slow high-priority provider still wins over a fast
        low-priority one.
        """
        eligible = self.eligible(provider_ids)
        if not eligible:
            return None
        outcomes = await asyncio.gather(*(self._attempt(p, text, from_lang, to_lang) for p in eligible))
        winner = select_first_success(outcomes)
        if winner is None:
            return None
        return winner.translation, winner.provider_id
