"""Windows host metrics scraped from windows_exporter."""

from __future__ import annotations

from ...config import WMIConfig
from ...core.module import Normalized
from ...core.templates import TemplateCatalog
from ...sources.prometheus import Series
from ..scrape import ScrapeModule
from . import charts, collect


class WMI(ScrapeModule):
    """Collects windows_exporter metrics.

    Entities (cores, volumes, interfaces, processes, services, websites,
    SQL instances and databases, certificate templates) are discovered
    from label values; their charts are created the first time they
    appear and kept afterwards.
    """

    name = "wmi"

    def __init__(self, config: WMIConfig | None = None, **kwargs) -> None:
        super().__init__(config or WMIConfig(), **kwargs)

    def build_catalog(self) -> TemplateCatalog:
        return charts.build_catalog()

    def normalize(self, raw: Series) -> Normalized:
        return collect.normalize(raw, now=self._clock())
