"""Performance benchmarks for i18ncore.

Benchmarks use pytest-benchmark to measure and track performance of critical operations.
Prevents performance regressions in resolution, interpolation, and caching.

Python 3.13+.
"""

from __future__ import annotations
