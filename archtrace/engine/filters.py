"""Filter Normalizer.

Raw filter lists come straight from UI state and may be empty, contain
blanks or repeat values. Each normalizer returns ``None`` ("no restriction")
when nothing usable is left, otherwise a frozenset of allowed values. An
empty input never turns into "reject everything".

The same normalized set decides both whether a discovered element is
included and whether traversal may continue through it.
"""

from collections.abc import Iterable
from typing import Any

from archtrace.engine.model import Element, Relationship


def normalize_string_list(raw: Iterable[Any] | str | None) -> list[str] | None:
    """Trim, drop blanks and non-strings, de-duplicate preserving order."""
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = [raw]
    try:
        items = list(raw)
    except TypeError:
        return None
    cleaned: list[str] = []
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, str):
            continue
        value = item.strip()
        if value and value not in seen:
            seen.add(value)
            cleaned.append(value)
    return cleaned or None


def _to_filter_set(raw: Iterable[Any] | str | None) -> frozenset[str] | None:
    cleaned = normalize_string_list(raw)
    return frozenset(cleaned) if cleaned is not None else None


def normalize_relationship_type_filter(
    relationship_types: Iterable[Any] | str | None = None,
) -> frozenset[str] | None:
    """Allowed relationship types, or None for all."""
    return _to_filter_set(relationship_types)


def normalize_layer_filter(layers: Iterable[Any] | str | None = None) -> frozenset[str] | None:
    """Allowed layers, or None for all."""
    return _to_filter_set(layers)


def normalize_element_type_filter(
    element_types: Iterable[Any] | str | None = None,
) -> frozenset[str] | None:
    """Allowed element types, or None for all."""
    return _to_filter_set(element_types)


def relationship_passes_type_filter(
    relationship: Relationship, type_set: frozenset[str] | None
) -> bool:
    return type_set is None or relationship.type in type_set


def element_passes_layer_filter(element: Element, layer_set: frozenset[str] | None) -> bool:
    """True if unrestricted or the element's layer is allowed.

    Elements without a layer fail any non-empty layer filter.
    """
    if layer_set is None:
        return True
    return bool(element.layer) and element.layer in layer_set


def element_passes_type_filter(element: Element, type_set: frozenset[str] | None) -> bool:
    return type_set is None or element.type in type_set


def element_passes_filters(
    element: Element,
    layer_set: frozenset[str] | None,
    type_set: frozenset[str] | None,
) -> bool:
    return element_passes_layer_filter(element, layer_set) and element_passes_type_filter(
        element, type_set
    )
