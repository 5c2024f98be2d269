"""Cassandra metrics scraped from the JMX exporter."""

from __future__ import annotations

from ...config import CassandraConfig
from ...core.module import Normalized
from ...core.templates import TemplateCatalog
from ...sources.prometheus import Series
from ..scrape import ScrapeModule
from . import charts, collect


class Cassandra(ScrapeModule):
    """Collects client request, cache, disk, thread pool and JVM metrics.

    Garbage collectors are discovered from the JMX exporter's
    ``GarbageCollector`` beans and get a dimension on the GC charts.
    """

    name = "cassandra"

    def __init__(self, config: CassandraConfig | None = None, **kwargs) -> None:
        super().__init__(config or CassandraConfig(), **kwargs)

    def build_catalog(self) -> TemplateCatalog:
        return charts.build_catalog()

    def normalize(self, raw: Series) -> Normalized:
        return collect.normalize(raw, now=self._clock())
