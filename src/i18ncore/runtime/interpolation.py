"""Placeholder interpolation for message templates.

Substitutes ``{{path}}`` placeholders with values looked up in a parameter
mapping. Paths are dotted (``user.name``); purely numeric segments index
sequences (``items.0``).

Fail-visible policy:
    If any segment of a path cannot be resolved (missing key, None
    intermediate, out-of-range index) the entire placeholder token is left in
    the output verbatim. Missing parameters stay obvious in rendered UI
    instead of silently disappearing.

All functions here are pure and safe to call concurrently.

Python 3.13+.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from html import escape as html_escape

from i18ncore.constants import FORMAT_HINT_SEPARATOR, PLACEHOLDER_PREFIX, PLACEHOLDER_SUFFIX
from i18ncore.runtime.formatters import apply_format_hint, stringify

__all__ = [
    "extract_placeholders",
    "has_placeholders",
    "interpolate",
    "resolve_path",
    "validate_params",
]

type InterpolationParams = Mapping[str, object]

# Non-greedy inner match: "{{a}} and {{b}}" yields two tokens
_PLACEHOLDER = re.compile(
    f"{re.escape(PLACEHOLDER_PREFIX)}(.+?){re.escape(PLACEHOLDER_SUFFIX)}",
    re.DOTALL,
)

_MISSING = object()


def _step(current: object, segment: str) -> object:
    """Resolve one path segment, returning _MISSING when unresolvable."""
    match current:
        case Mapping():
            if segment in current:
                return current[segment]
            if segment.isdecimal() and int(segment) in current:
                return current[int(segment)]
            return _MISSING
        case str() | bytes():
            return _MISSING
        case Sequence():
            if not segment.isdecimal():
                return _MISSING
            index = int(segment)
            return current[index] if index < len(current) else _MISSING
        case _:
            # Plain objects (dataclasses, namespaces): public data attributes only
            if segment.startswith("_"):
                return _MISSING
            value = getattr(current, segment, _MISSING)
            return _MISSING if callable(value) else value


def resolve_path(obj: object, path: str) -> tuple[bool, object]:
    """Walk a dotted path through nested mappings, sequences and objects.

    A key that literally contains dots is matched first when ``obj`` is a
    mapping, so flat parameter dictionaries like ``{"user.name": ...}``
    keep working.

    Args:
        obj: Root object (usually the params mapping or a message tree)
        path: Dotted path, e.g. "user.name" or "items.0"

    Returns:
        Tuple of (found, value). value is None when found is False.

    Example:
        >>> resolve_path({"user": {"name": "Ada"}}, "user.name")
        (True, 'Ada')
        >>> resolve_path({"items": ["a", "b"]}, "items.1")
        (True, 'b')
        >>> resolve_path({"items": ["a"]}, "items.5")
        (False, None)
    """
    if not path:
        return (False, None)

    if isinstance(obj, Mapping) and path in obj:
        value = obj[path]
        return (False, None) if value is None else (True, value)

    current: object = obj
    for segment in path.split("."):
        if current is None or not segment:
            return (False, None)
        try:
            current = _step(current, segment)
        except Exception:  # pylint: disable=broad-exception-caught
            # Raising properties and __getitem__ overrides count as unresolved
            return (False, None)
        if current is _MISSING:
            return (False, None)

    if current is None:
        return (False, None)
    return (True, current)


def _split_token(inner: str) -> tuple[str, str | None]:
    path, separator, hint = inner.partition(FORMAT_HINT_SEPARATOR)
    if not separator:
        return (inner.strip(), None)
    return (path.strip(), hint.strip() or None)


def interpolate(
    template: str,
    params: InterpolationParams | None = None,
    locale: str | None = None,
    *,
    escape: bool = False,
) -> str:
    """Substitute ``{{path}}`` placeholders in a template.

    Args:
        template: Message template
        params: Parameter mapping (nested mappings and sequences allowed)
        locale: Locale used only by locale-aware format hints
        escape: HTML-escape substituted values (the template text is untouched)

    Returns:
        Rendered string. Unresolvable placeholders, and values whose
        ``str()`` raises, are kept verbatim.

    Example:
        >>> interpolate("Hello {{name}}", {"name": "World"})
        'Hello World'
        >>> interpolate("Hello {{name}}", {})
        'Hello {{name}}'
        >>> interpolate("{{user.tags.0}}", {"user": {"tags": ["admin"]}})
        'admin'
        >>> interpolate("<b>{{name}}</b>", {"name": "<i>"}, escape=True)
        '<b>&lt;i&gt;</b>'
    """
    # Fast path: no placeholders
    if not isinstance(template, str) or PLACEHOLDER_PREFIX not in template:
        return template

    values: Mapping[str, object] = params if isinstance(params, Mapping) else {}

    def replace(match: re.Match[str]) -> str:
        path, hint = _split_token(match.group(1))
        found, value = resolve_path(values, path)
        if not found:
            return match.group(0)
        try:
            formatted = apply_format_hint(value, hint, locale) if hint is not None else None
            if formatted is None:
                formatted = stringify(value)
        except Exception:  # pylint: disable=broad-exception-caught
            # Values whose __str__ or __format__ raises stay verbatim
            return match.group(0)
        return html_escape(formatted) if escape else formatted

    return _PLACEHOLDER.sub(replace, template)


def has_placeholders(template: str) -> bool:
    """Check if a template contains at least one placeholder token."""
    return isinstance(template, str) and _PLACEHOLDER.search(template) is not None


def extract_placeholders(template: str) -> list[str]:
    """Extract unique placeholder paths in first-seen order.

    Format hints are stripped: ``{{amount, number}}`` yields ``amount``.

    Example:
        >>> extract_placeholders("{{a}} {{b.c, upper}} {{a}}")
        ['a', 'b.c']
    """
    if not isinstance(template, str):
        return []
    paths = (_split_token(match.group(1))[0] for match in _PLACEHOLDER.finditer(template))
    return [path for path in dict.fromkeys(paths) if path]


def validate_params(template: str, params: InterpolationParams | None = None) -> bool:
    """Check that every placeholder path of a template resolves against params."""
    placeholders = extract_placeholders(template)
    if not placeholders:
        return True
    if params is None:
        return False
    return all(resolve_path(params, path)[0] for path in placeholders)
