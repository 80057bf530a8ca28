"""Tests for provider response parsing and pool fan-out."""
import asyncio
import json

import httpx
import pytest

from config import build_config
from conftest import FakeProvider
from providers import (
    LibreTranslateProvider, LingvaProvider, MyMemoryProvider, ProviderOutcome, ProviderPool,
    build_providers, is_valid_translation, select_first_success,
)


@pytest.fixture()
def config():
    return build_config(provider_timeout=2.0)


def _run(coro):
    return asyncio.run(coro)


@pytest.mark.parametrize("candidate,ok", [
    ("こんにちは", True),
    ("hello", False),
    ("", False),
    ("   ", False),
    ("...", False),
    ("?!", False),
    (None, False),
])
def test_is_valid_translation(candidate, ok):
    assert is_valid_translation(candidate, "hello") is ok


def test_lingva_builds_path_and_parses(config):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"translation": "猫"})

    provider = LingvaProvider(config.providers["lingva"], transport=httpx.MockTransport(handler))
    assert _run(provider.translate("a cat", "en", "ja")) == "猫"
    assert seen["url"] == "https://lingva.ml/api/v1/en/ja/a%20cat"


def test_mymemory_requires_status_200(config):
    responses = iter([
        {"responseStatus": 200, "responseData": {"translatedText": "犬"}},
        {"responseStatus": 403, "responseData": {"translatedText": "犬"}},
    ])
    seen = []

    def handler(request):
        seen.append(dict(request.url.params))
        return httpx.Response(200, json=next(responses))

    provider = MyMemoryProvider(config.providers["mymemory"], transport=httpx.MockTransport(handler))
    assert _run(provider.translate("dog", "en", "ja")) == "犬"
    assert _run(provider.translate("dog", "en", "ja")) is None
    assert seen[0] == {"q": "dog", "langpair": "en|ja"}


def test_libretranslate_posts_json(config):
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"translatedText": "鳥"})

    provider = LibreTranslateProvider(config.providers["libretranslate"], transport=httpx.MockTransport(handler))
    assert _run(provider.translate("bird", "en", "ja")) == "鳥"
    assert seen["method"] == "POST"
    assert seen["body"] == {"q": "bird", "source": "en", "target": "ja", "format": "text"}


def test_provider_rejects_echo(config):
    def handler(request):
        return httpx.Response(200, json={"translation": "bird"})

    provider = LingvaProvider(config.providers["lingva"], transport=httpx.MockTransport(handler))
    assert _run(provider.translate("bird", "en", "ja")) is None


def test_http_error_raises(config):
    def handler(request):
        return httpx.Response(500, json={})

    provider = LingvaProvider(config.providers["lingva"], transport=httpx.MockTransport(handler))
    with pytest.raises(httpx.HTTPStatusError):
        _run(provider.translate("bird", "en", "ja"))


def test_build_providers_covers_configured_endpoints(config):
    providers = build_providers(config)
    assert set(providers) == {"lingva", "mymemory", "libretranslate"}
    assert providers["lingva"].timeout == 2.0


def test_select_first_success_is_priority_ordered():
    outcomes = [
        ProviderOutcome("a", error="timeout"),
        ProviderOutcome("b", translation="B"),
        ProviderOutcome("c", translation="C"),
    ]
    assert select_first_success(outcomes).provider_id == "b"
    assert select_first_success([ProviderOutcome("a", error="x")]) is None
    assert select_first_success([]) is None


def test_slow_first_provider_wins_over_fast_second(config):
    slow = FakeProvider("lingva", {"cat": "猫(A)"}, delay=0.05)
    fast = FakeProvider("mymemory", {"cat": "猫(B)"})
    pool = ProviderPool({"lingva": slow, "mymemory": fast}, config)
    result = _run(pool.translate("cat", "en", "ja", ["lingva", "mymemory"]))
    assert result == ("猫(A)", "lingva")
    assert fast.calls and slow.calls


def test_failures_fall_through_to_next_provider(config):
    broken = FakeProvider("lingva", fail=True)
    empty = FakeProvider("mymemory")
    good = FakeProvider("libretranslate", {"cat": "猫"})
    pool = ProviderPool({p.id: p for p in (broken, empty, good)}, config)
    assert _run(pool.translate("cat", "en", "ja", ["lingva", "mymemory", "libretranslate"])) == ("猫", "libretranslate")


def test_timeout_is_a_failed_outcome(config):
    slow = FakeProvider("lingva", {"cat": "猫"}, delay=1.0)
    slow.timeout = 0.01
    pool = ProviderPool({"lingva": slow}, config)
    assert _run(pool.translate("cat", "en", "ja", ["lingva"])) is None


def test_all_failing_returns_none(config):
    pool = ProviderPool({"lingva": FakeProvider("lingva", fail=True)}, config)
    assert _run(pool.translate("cat", "en", "ja", ["lingva"])) is None


def test_disabled_endpoint_is_skipped():
    config = build_config({"providers": {"lingva": {"baseUrl": "https://lingva.ml/api/v1", "enabled": False}}})
    lingva = FakeProvider("lingva", {"cat": "猫"})
    pool = ProviderPool({"lingva": lingva}, config)
    assert _run(pool.translate("cat", "en", "ja", ["lingva"])) is None
    assert lingva.calls == []
