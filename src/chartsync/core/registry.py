"""Entity registry: which entities already have their charts."""

from __future__ import annotations

from .entities import EntityClass, EntityKey


class EntityRegistry:
    """Append-only set of materialized entity keys per entity class.

    Owned by one module instance. A key is marked only after all of its
    charts were added to the chart set; it is never removed.
    """

    def __init__(self) -> None:
        self._known: dict[EntityClass, set[EntityKey]] = {}

    def is_materialized(self, entity_class: EntityClass, key: EntityKey) -> bool:
        return key in self._known.get(entity_class, ())

    def mark(self, entity_class: EntityClass, key: EntityKey) -> None:
        self._known.setdefault(entity_class, set()).add(key)

    def known(self, entity_class: EntityClass) -> frozenset[EntityKey]:
        return frozenset(self._known.get(entity_class, ()))

    def snapshot(self) -> dict[EntityClass, frozenset[EntityKey]]:
        return {cls: frozenset(keys) for cls, keys in self._known.items() if keys}

    def __len__(self) -> int:
        return sum(len(keys) for keys in self._known.values())
