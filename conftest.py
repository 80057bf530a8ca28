"""Shared fixtures for the Mixlingo test suite."""
import asyncio

import pytest

from cache import RequestDeduplicator, TranslationCache
from config import build_config
from mixer import ContentMixer
from providers import ProviderPool
from translation import TranslationService


class FakeProvider:
    """In-memory provider: looks words up in a dict, records every call."""

    def __init__(self, id, table=None, delay=0.0, fail=False, default=None):
        self.id = id
        self.table = table or {}
        self.delay = delay
        self.fail = fail
        self.default = default
        self.timeout = 5.0
        self.calls = []

    async def translate(self, text, from_lang, to_lang):
        self.calls.append((text, from_lang, to_lang))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError(f"{self.id} is down")
        if text in self.table:
            return self.table[text]
        if self.default is not None:
            return self.default(text)
        return None


@pytest.fixture()
def config():
    return build_config(provider_timeout=5.0)


@pytest.fixture()
def fake_provider():
    return FakeProvider("lingva", default=lambda text: f"<{text}>")


@pytest.fixture()
def make_service(config):
    def _make(*providers, cache=None):
        pool = ProviderPool({p.id: p for p in providers}, config)
        cache = cache if cache is not None else TranslationCache()
        return TranslationService(pool, cache, RequestDeduplicator(), config)
    return _make


@pytest.fixture()
def service(make_service, fake_provider):
    return make_service(fake_provider)


@pytest.fixture()
def mixer(service, config):
    return ContentMixer(service, config, with_readings=False)
