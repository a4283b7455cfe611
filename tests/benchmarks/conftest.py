"""pytest-benchmark configuration for i18ncore benchmarks.

Python 3.13+.
"""

from __future__ import annotations

import pytest

from i18ncore import Translator


def pytest_benchmark_update_json(config, benchmarks, output_json):  # noqa: ARG001
    """Add i18ncore metadata to benchmark results.

    Args:
        config: pytest config (required by pytest-benchmark hook signature)
        benchmarks: benchmark results (required by pytest-benchmark hook signature)
        output_json: JSON output dict to modify
    """
    output_json["project"] = "i18ncore"
    output_json["python_version"] = "3.13+"


@pytest.fixture
def catalog_translator():
    """Translator over a 500-key catalog with a zh -> en fallback."""
    en: dict[str, object] = {}
    for i in range(500):
        section = en.setdefault(f"section{i // 50}", {})
        section[f"key{i}"] = f"Message {i} for {{{{name}}}}"  # type: ignore[index]
    en["items"] = "one:{{count}} item|other:{{count}} items"
    translator = Translator("zh-CN", {"en": en, "zh": {"greeting": "你好，{{name}}！"}})
    yield translator
    translator.destroy()
