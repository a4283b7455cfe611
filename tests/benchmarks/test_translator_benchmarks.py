"""Performance benchmarks for Translator resolution and the caches behind it.

Measures cached vs uncached resolution, fallback traversal and raw cache
operations to detect hot-path regressions.

Python 3.13+.
"""

from __future__ import annotations

from typing import Any

from i18ncore import LRUCache, Translator, TranslatorConfig, interpolate


class TestTranslatorBenchmarks:
    """Benchmark Translator.translate() paths."""

    def test_translate_cached(self, benchmark: Any, catalog_translator: Translator) -> None:
        """Benchmark a repeated lookup served from the rendered-message cache."""
        params = {"name": "Ada"}
        result = benchmark(catalog_translator.translate, "section3.key150", params=params)

        assert result == "Message 150 for Ada"
        assert catalog_translator.get_cache_stats()["hits"] > 0

    def test_translate_uncached(self, benchmark: Any) -> None:
        """Benchmark full resolution with caching disabled."""
        translator = Translator(
            "zh-CN",
            {"en": {"a": {"b": {"c": "Deep {{name}}"}}}},
            config=TranslatorConfig.from_mapping({"max_size": 0}),
        )
        result = benchmark(translator.translate, "a.b.c", params={"name": "x"})

        assert result == "Deep x"

    def test_translate_language_fallback(
        self, benchmark: Any, catalog_translator: Translator
    ) -> None:
        """Benchmark resolution from the language subtag locale."""
        result = benchmark(catalog_translator.translate, "greeting", params={"name": "Ada"})

        assert result == "你好，Ada！"

    def test_plural(self, benchmark: Any, catalog_translator: Translator) -> None:
        """Benchmark plural selection through the cache."""
        result = benchmark(catalog_translator.plural, "items", 42)

        assert result == "42 items"


class TestCacheBenchmarks:
    """Benchmark LRUCache primitives."""

    def test_lru_set_with_eviction(self, benchmark: Any) -> None:
        """Benchmark inserts into a full cache (every insert evicts)."""
        cache: LRUCache[int, int] = LRUCache(max_size=100)
        counter = iter(range(10**9))

        def insert() -> None:
            key = next(counter)
            cache.set(key, key)

        benchmark(insert)

        assert cache.size <= 100
        cache.destroy()

    def test_lru_get_hit(self, benchmark: Any) -> None:
        """Benchmark a cache hit."""
        cache: LRUCache[str, str] = LRUCache(max_size=100)
        cache.set("k", "v")

        assert benchmark(cache.get, "k") == "v"
        cache.destroy()


class TestInterpolationBenchmarks:
    """Benchmark placeholder substitution."""

    def test_nested_paths(self, benchmark: Any) -> None:
        """Benchmark a template with several nested placeholders."""
        template = "{{user.name}} has {{user.stats.count}} items in {{cart.0}}"
        params = {"user": {"name": "Ada", "stats": {"count": 3}}, "cart": ["basket"]}

        result = benchmark(interpolate, template, params)

        assert result == "Ada has 3 items in basket"
