"""Base interface for collector modules and their collection cycle."""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar

from ..errors import CollectError, ConfigError
from .charts import Charts
from .entities import Discovery, EntityClass
from .registry import EntityRegistry
from .synchronizer import ChartSynchronizer, SyncResult
from .templates import TemplateCatalog


@dataclass
class Normalized:
    """Output of a module's normalizer for one cycle."""

    metrics: dict[str, int] = field(default_factory=dict)
    discovery: Discovery = field(default_factory=Discovery)


class Module(abc.ABC):
    """Abstract base class for collector modules.

    A module instance owns its chart set and entity registry. One cycle
    (:meth:`collect`) fetches raw data, normalizes it and only then
    synchronizes charts, so a cycle whose data never arrived or could not
    be decoded leaves both untouched.
    """

    name: ClassVar[str] = ""

    def __init__(self, config: Any, *, job_name: str | None = None) -> None:
        self.config = config
        self.job_name = job_name or self.name
        self.logger = logging.getLogger(f"chartsync.modules.{self.name}").getChild(self.job_name)
        self._charts = Charts()
        self._registry = EntityRegistry()
        self._synchronizer = ChartSynchronizer(self._charts, self._registry, self.build_catalog(), self.logger)
        self.last_sync: dict[EntityClass, SyncResult] = {}

    @abc.abstractmethod
    def build_catalog(self) -> TemplateCatalog:
        """Return the chart templates of every entity class the module discovers."""

    @abc.abstractmethod
    def fetch(self) -> Any:
        """Obtain raw data from the target. Raises TransportError or BadPayloadError."""

    @abc.abstractmethod
    def normalize(self, raw: Any) -> Normalized:
        """Turn raw data into metrics and discovered entities. Raises BadPayloadError."""

    def validate_config(self) -> None:
        """Raise ConfigError if the configuration cannot work."""

    def setup(self) -> None:
        """Create transport clients. Called once by :meth:`init` after validation."""

    def init(self) -> bool:
        try:
            self.validate_config()
            self.setup()
        except ConfigError as e:
            self.logger.error("config validation: %s", e)
            return False
        return True

    def check(self) -> bool:
        return bool(self.collect())

    def charts(self) -> Charts:
        return self._charts

    @property
    def registry(self) -> EntityRegistry:
        return self._registry

    def collect(self) -> dict[str, int] | None:
        """Run one cycle. Returns None when the cycle produced nothing."""
        try:
            mx = self.collect_snapshot()
        except CollectError as e:
            self.logger.error("%s", e)
            return None
        return mx or None

    def collect_snapshot(self) -> dict[str, int]:
        """Run one cycle, propagating transport and payload errors."""
        raw = self.fetch()
        normalized = self.normalize(raw)
        self.last_sync = self._synchronizer.sync_all(normalized.discovery, normalized.metrics)
        return dict(normalized.metrics)

    def cleanup(self) -> None:
        """Release transport resources."""
