"""Tests for the cache-first translation service."""
import asyncio

from conftest import FakeProvider
from models import PROVIDER_CACHE, PROVIDER_FALLBACK, PROVIDER_UNSUPPORTED


def test_translate_then_cache_hit(make_service):
    provider = FakeProvider("lingva", {"hello": "こんにちは"})
    service = make_service(provider)

    first = asyncio.run(service.translate_text("hello", "en", "ja"))
    assert first.translation == "こんにちは"
    assert first.provider == "lingva"
    assert not first.cached

    second = asyncio.run(service.translate_text("hello", "en", "ja"))
    assert second.provider == PROVIDER_CACHE
    assert second.cached
    assert second.translation == "こんにちは"
    assert len(provider.calls) == 1


def test_unsupported_pair_makes_no_calls(make_service):
    provider = FakeProvider("lingva", {"hello": "x"})
    service = make_service(provider)
    result = asyncio.run(service.translate_text("hello", "en", "xx"))
    assert result.provider == PROVIDER_UNSUPPORTED
    assert result.translation == "hello"
    assert not result.ok
    assert provider.calls == []
    assert not service.is_pair_supported("en", "xx")
    assert service.is_pair_supported("en", "ja")


def test_no_success_falls_back_and_is_not_cached(make_service):
    provider = FakeProvider("lingva", fail=True)
    service = make_service(provider)
    result = asyncio.run(service.translate_text("hello", "en", "ja"))
    assert result.provider == PROVIDER_FALLBACK
    assert result.translation == "hello"
    assert not result.ok

    asyncio.run(service.translate_text("hello", "en", "ja"))
    assert len(provider.calls) == 2
    assert len(service.cache) == 0


def test_concurrent_identical_requests_collapse(make_service):
    provider = FakeProvider("lingva", {"cat": "猫"}, delay=0.02)
    service = make_service(provider)

    async def run():
        return await asyncio.gather(*(service.translate_text("cat", "en", "ja") for _ in range(5)))

    results = asyncio.run(run())
    assert {r.translation for r in results} == {"猫"}
    assert len(provider.calls) == 1
    assert service.stats()["dedupe"]["deduplicated"] == 4


def test_translate_batch_preserves_order(make_service):
    provider = FakeProvider("lingva", {"one": "一", "two": "二", "three": "三"})
    service = make_service(provider)
    results = asyncio.run(service.translate_batch(["one", "two", "three"], "en", "ja"))
    assert [r.translation for r in results] == ["一", "二", "三"]


def test_result_serializes_with_camel_case(service):
    result = asyncio.run(service.translate_text("dog", "en", "ja"))
    payload = result.model_dump(by_alias=True, exclude_none=True)
    assert payload == {
        "original": "dog", "translation": "<dog>", "fromLang": "en", "toLang": "ja",
        "provider": "lingva", "cached": False,
    }
