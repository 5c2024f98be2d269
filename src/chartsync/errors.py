"""Exception hierarchy shared by the core and the collector modules."""

from __future__ import annotations

from typing import Any


class ChartSyncError(Exception):
    """Base class for all chartsync errors."""


class ConfigError(ChartSyncError):
    """A required connection parameter is missing or invalid."""


class CollectError(ChartSyncError):
    """A collection cycle could not produce a snapshot."""


class TransportError(CollectError):
    """The target could not be reached or answered with a failure."""


class BadPayloadError(CollectError):
    """The target answered but the payload could not be decoded."""


class ChartError(ChartSyncError):
    """Invalid operation on a chart or a chart set."""


class DuplicateChartError(ChartError):
    def __init__(self, chart_id: str) -> None:
        super().__init__(f"chart '{chart_id}' already exists")
        self.chart_id = chart_id


class DuplicateDimError(ChartError):
    def __init__(self, chart_id: str, dim_id: str) -> None:
        super().__init__(f"chart '{chart_id}' already has dimension '{dim_id}'")
        self.chart_id = chart_id
        self.dim_id = dim_id


class TemplateError(ChartSyncError):
    """A chart template is malformed or cannot be rendered for a key."""


class EntityMaterializationError(ChartSyncError):
    """The charts of one entity could not be created.

    Never raised out of the synchronizer: it is collected in the sync result
    and logged, the entity stays unknown and is retried next cycle.
    """

    def __init__(self, entity_class: Any, key: tuple[str, ...], reason: str) -> None:
        super().__init__(f"{entity_class}: entity {':'.join(key)!r}: {reason}")
        self.entity_class = entity_class
        self.key = key
        self.reason = reason
