"""Display order reconciliation over a mutable set of route bindings."""

from __future__ import annotations

from typing import Iterable, Sequence

from src.model.entities import RouteBinding, composite_key


def _positions(order: Sequence[str]) -> dict[str, int]:
    positions: dict[str, int] = {}
    for index, key in enumerate(order):
        positions.setdefault(key, index)
    return positions


def compare_bindings(a: RouteBinding, b: RouteBinding, order: Sequence[str]) -> int:
    """Three-way compare of two bindings by their position in `order`.

    Bindings missing from the order sort after those present; two missing
    bindings compare equal so a stable sort keeps their relative order.
    """
    positions = _positions(order)
    idx_a = positions.get(a.key)
    idx_b = positions.get(b.key)
    if idx_a is None and idx_b is None:
        return 0
    if idx_a is None:
        return 1
    if idx_b is None:
        return -1
    return idx_a - idx_b


def apply_order(bindings: Iterable[RouteBinding], order: Sequence[str]) -> tuple[RouteBinding, ...]:
    """Return bindings sorted by display order; absent keys last, stable."""
    positions = _positions(order)
    absent = len(positions)

    def _sort_key(binding: RouteBinding) -> tuple[int, int]:
        index = positions.get(binding.key)
        if index is None:
            return (1, absent)
        return (0, index)

    return tuple(sorted(bindings, key=_sort_key))


def reorder(
    bindings: Sequence[RouteBinding], keys: Sequence[str]
) -> tuple[tuple[RouteBinding, ...], tuple[str, ...]]:
    """Replace the order with `keys` and rebuild bindings in that sequence.

    Bindings whose key does not appear in `keys` are dropped.
    """
    by_key = {}
    for binding in bindings:
        by_key.setdefault(binding.key, binding)
    rebuilt = tuple(by_key[key] for key in keys if key in by_key)
    return rebuilt, tuple(keys)


def add_binding(
    bindings: Sequence[RouteBinding], order: Sequence[str], binding: RouteBinding
) -> tuple[tuple[RouteBinding, ...], tuple[str, ...]]:
    """Append a binding unless its key already exists (first writer wins)."""
    if any(existing.key == binding.key for existing in bindings):
        return tuple(bindings), tuple(order)
    new_order = tuple(order)
    if binding.key not in new_order:
        new_order = new_order + (binding.key,)
    return tuple(bindings) + (binding,), new_order


def remove_binding(
    bindings: Sequence[RouteBinding], order: Sequence[str], route_id: str, stop_id: str
) -> tuple[tuple[RouteBinding, ...], tuple[str, ...]]:
    """Drop the binding with the given key from both bindings and order."""
    key = composite_key(route_id, stop_id)
    kept = tuple(binding for binding in bindings if binding.key != key)
    return kept, tuple(k for k in order if k != key)


def move_key(order: Sequence[str], dragged_key: str, target_key: str, above: bool) -> tuple[str, ...]:
    """Move `dragged_key` directly above or below `target_key`."""
    if dragged_key == target_key:
        return tuple(order)
    keys = [key for key in order if key != dragged_key]
    if target_key not in keys:
        return tuple(keys) + (dragged_key,)
    target_index = keys.index(target_key)
    insert_at = target_index if above else target_index + 1
    keys.insert(insert_at, dragged_key)
    return tuple(keys)


__all__ = [
    "compare_bindings",
    "apply_order",
    "reorder",
    "add_binding",
    "remove_binding",
    "move_key",
]
