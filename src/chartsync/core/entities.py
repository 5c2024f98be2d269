"""Entity classes, entity keys and the per-cycle discovery set."""

from __future__ import annotations

import enum
from collections.abc import Iterable

KEY_SEPARATOR = ":"

EntityKey = tuple[str, ...]


class EntityClass(enum.Enum):
    """Categories of dynamically discovered sub-resources."""

    COLLECTION = "collection"
    SUB_COLLECTOR = "sub_collector"
    CORE = "core"
    VOLUME = "volume"
    NIC = "nic"
    THERMAL_ZONE = "thermal_zone"
    PROCESS = "process"
    SERVICE = "service"
    WEBSITE = "website"
    DB_INSTANCE = "db_instance"
    DB_DATABASE = "db_instance_database"
    CERT_TEMPLATE = "cert_template"
    GC_COLLECTOR = "gc_collector"
    GPU = "gpu"
    NTP_PEER = "ntp_peer"

    def __str__(self) -> str:
        return self.value


def check_key(key: EntityKey) -> EntityKey:
    """Validate an entity key and return it.

    Components must be non-empty. Components of a composite key must not
    contain :data:`KEY_SEPARATOR`, otherwise the display form
    ``"instance:database"`` could not be split back unambiguously.
    """
    if not key:
        raise ValueError("empty entity key")
    for component in key:
        if not isinstance(component, str) or component == "":
            raise ValueError(f"invalid entity key component {component!r} in {key!r}")
        if len(key) > 1 and KEY_SEPARATOR in component:
            raise ValueError(
                f"entity key component {component!r} contains reserved separator {KEY_SEPARATOR!r}"
            )
    return key


def key_str(key: EntityKey) -> str:
    return KEY_SEPARATOR.join(key)


class Discovery:
    """Entity keys seen during one normalization pass, grouped by class."""

    def __init__(self) -> None:
        self._seen: dict[EntityClass, set[EntityKey]] = {}

    def add(self, entity_class: EntityClass, *components: str) -> EntityKey:
        key = check_key(tuple(components))
        self._seen.setdefault(entity_class, set()).add(key)
        return key

    def update(self, other: Discovery) -> None:
        for entity_class, keys in other._seen.items():
            self._seen.setdefault(entity_class, set()).update(keys)

    def seen(self, entity_class: EntityClass) -> set[EntityKey]:
        return set(self._seen.get(entity_class, ()))

    def classes(self) -> Iterable[EntityClass]:
        return list(self._seen)

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, tuple) or len(item) != 2:
            return False
        entity_class, key = item
        return key in self._seen.get(entity_class, ())

    def __len__(self) -> int:
        return sum(len(keys) for keys in self._seen.values())
