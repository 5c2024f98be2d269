"""Chart synchronizer: materializes charts of newly discovered entities."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from ..errors import ChartError, EntityMaterializationError, TemplateError
from .charts import Chart, Charts, Dim
from .entities import Discovery, EntityClass, EntityKey, key_str
from .registry import EntityRegistry
from .templates import ChartTemplate, DimsTemplate, TemplateCatalog, VanishPolicy

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of one :meth:`ChartSynchronizer.sync` call."""

    created: list[EntityKey] = field(default_factory=list)
    failed: list[EntityMaterializationError] = field(default_factory=list)
    obsoleted: list[EntityKey] = field(default_factory=list)
    revived: list[EntityKey] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.obsoleted or self.revived)


def _data_ids(chart: Chart) -> list[str]:
    return [d.id for d in chart.dims] + [v.id for v in chart.vars]


class ChartSynchronizer:
    """Reconciles discovered entities with the chart set.

    The synchronizer is the only writer of *charts* and *registry*. For each
    entity seen for the first time it renders every template of the entity
    class, validates the whole batch and only then adds it, so an entity is
    either fully materialized or not at all.
    """

    def __init__(
        self,
        charts: Charts,
        registry: EntityRegistry,
        catalog: TemplateCatalog,
        log: logging.Logger | None = None,
    ) -> None:
        self._charts = charts
        self._registry = registry
        self._catalog = catalog
        self._log = log or logger

    def sync(
        self,
        entity_class: EntityClass,
        seen: Iterable[EntityKey],
        snapshot: Mapping[str, int],
    ) -> SyncResult:
        result = SyncResult()
        seen = set(seen)

        for key in sorted(seen):
            if self._registry.is_materialized(entity_class, key):
                continue
            try:
                self._materialize(entity_class, key, snapshot)
            except EntityMaterializationError as e:
                self._log.warning("%s", e)
                result.failed.append(e)
                continue
            self._registry.mark(entity_class, key)
            result.created.append(key)

        if self._catalog.vanish_policy(entity_class) is VanishPolicy.OBSOLETE:
            self._apply_vanish(entity_class, seen, result)

        return result

    def sync_all(self, discovery: Discovery, snapshot: Mapping[str, int]) -> dict[EntityClass, SyncResult]:
        """Synchronize every class of the catalog, in catalog order."""
        classes = self._catalog.classes()
        # classes discovered but never registered fail loudly per entity
        classes += [c for c in discovery.classes() if c not in classes]
        return {cls: self.sync(cls, discovery.seen(cls), snapshot) for cls in classes}

    def _materialize(self, entity_class: EntityClass, key: EntityKey, snapshot: Mapping[str, int]) -> None:
        def fail(reason: str) -> EntityMaterializationError:
            return EntityMaterializationError(entity_class, key, reason)

        try:
            templates = self._catalog.resolve(entity_class, key)
        except TemplateError as e:
            raise fail(str(e)) from e

        new_charts: list[Chart] = []
        new_dims: list[tuple[Chart, Dim]] = []
        for tmpl in templates:
            if isinstance(tmpl, DimsTemplate):
                target = self._charts.get(tmpl.chart_id)
                if target is None:
                    raise fail(f"target chart '{tmpl.chart_id}' does not exist")
                try:
                    dims = tmpl.render(key)
                except TemplateError as e:
                    raise fail(str(e)) from e
                for dim in dims:
                    if target.has_dim(dim.id) or any(c is target and d.id == dim.id for c, d in new_dims):
                        raise fail(f"chart '{target.id}' already has dimension '{dim.id}'")
                    new_dims.append((target, dim))
                continue

            try:
                chart = tmpl.render(key)
            except TemplateError as e:
                raise fail(str(e)) from e
            if isinstance(tmpl, ChartTemplate) and tmpl.optional:
                if not all(i in snapshot for i in _data_ids(chart)):
                    self._log.debug("%s '%s': skipping optional chart '%s', no data", entity_class, key_str(key), chart.id)
                    continue
            new_charts.append(chart)

        missing = [i for c in new_charts for i in _data_ids(c) if i not in snapshot]
        missing += [d.id for _, d in new_dims if d.id not in snapshot]
        if missing:
            raise fail(f"no collected data for {len(missing)} dimension(s)/variable(s), e.g. '{missing[0]}'")

        try:
            self._charts.add(*new_charts)
        except ChartError as e:
            raise fail(str(e)) from e
        for chart, dim in new_dims:
            chart.add_dim(dim)
        self._log.debug("%s '%s': created %d chart(s), %d dimension(s)", entity_class, key_str(key), len(new_charts), len(new_dims))

    def _entity_charts(self, entity_class: EntityClass, key: EntityKey) -> list[Chart]:
        charts = []
        for tmpl in self._catalog.resolve(entity_class, key):
            if isinstance(tmpl, ChartTemplate):
                chart = self._charts.get(tmpl.render(key).id)
                if chart is not None:
                    charts.append(chart)
        return charts

    def _apply_vanish(self, entity_class: EntityClass, seen: set[EntityKey], result: SyncResult) -> None:
        known = self._registry.known(entity_class)
        for key in sorted(known - seen):
            charts = [c for c in self._entity_charts(entity_class, key) if not c.obsolete]
            for chart in charts:
                chart.mark_obsolete()
            if charts:
                self._log.debug("%s '%s': vanished, %d chart(s) marked obsolete", entity_class, key_str(key), len(charts))
                result.obsoleted.append(key)
        for key in sorted(known & seen):
            charts = [c for c in self._entity_charts(entity_class, key) if c.obsolete]
            for chart in charts:
                chart.revive()
            if charts:
                result.revived.append(key)
