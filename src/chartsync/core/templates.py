"""Chart templates and the per-module template catalog.

Template ids use named placeholders, e.g. ``logical_disk_{disk}_io``. A
template declares its parameters; rendering binds the components of an
entity key to them by position.
"""

from __future__ import annotations

import enum
import string
from collections.abc import Iterable, Sequence

from ..errors import TemplateError
from .charts import Chart, Dim
from .entities import EntityClass, EntityKey, check_key

_formatter = string.Formatter()


def _placeholders(text: str) -> set[str]:
    try:
        return {name for _, name, _, _ in _formatter.parse(text) if name is not None}
    except ValueError as e:
        raise TemplateError(f"malformed template {text!r}: {e}") from e


def _dim_placeholders(dims: Iterable[Dim]) -> set[str]:
    names: set[str] = set()
    for dim in dims:
        names |= _placeholders(dim.id) | _placeholders(dim.name)
    return names


def _check_declared(what: str, used: set[str], params: Sequence[str]) -> None:
    undeclared = used - set(params)
    if "" in undeclared:
        raise TemplateError(f"{what}: positional placeholders are not supported")
    if undeclared:
        raise TemplateError(f"{what}: undeclared placeholders {sorted(undeclared)}")


def _bind(params: Sequence[str], key: EntityKey) -> dict[str, str]:
    if not params:
        # fixed chart: the key only names the chart set
        return {}
    if len(key) != len(params):
        raise TemplateError(f"template expects {len(params)} key component(s), got {len(key)}: {key!r}")
    try:
        check_key(key)
    except ValueError as e:
        raise TemplateError(str(e)) from e
    return dict(zip(params, key))


class ChartTemplate:
    """A chart definition parameterized by an entity key.

    ``optional`` charts are skipped (not failed) when the snapshot holds no
    data for their dimensions the first time the entity is materialized.
    """

    def __init__(self, chart: Chart, params: Sequence[str] = (), *, optional: bool = False) -> None:
        self.chart = chart
        self.params = tuple(params)
        self.optional = optional

        used = _placeholders(chart.id) | _placeholders(chart.title) | _dim_placeholders(chart.dims)
        for var in chart.vars:
            used |= _placeholders(var.id)
        for value in chart.labels.values():
            used |= _placeholders(value)
        _check_declared(f"chart template {chart.id!r}", used, self.params)

    @property
    def arity(self) -> int:
        return len(self.params)

    def render(self, key: EntityKey = ()) -> Chart:
        values = _bind(self.params, key)
        chart = self.chart.copy()
        chart.id = chart.id.format(**values)
        chart.title = chart.title.format(**values)
        for dim in chart.dims:
            dim.id = dim.id.format(**values)
            dim.name = dim.name.format(**values)
        for var in chart.vars:
            var.id = var.id.format(**values)
        chart.labels = {**values, **{k: v.format(**values) for k, v in chart.labels.items()}}
        return chart

    def __repr__(self) -> str:
        return f"ChartTemplate({self.chart.id!r}, params={self.params!r})"


class DimsTemplate:
    """Dimensions added to an already existing (fixed) chart per entity."""

    def __init__(self, chart_id: str, dims: Sequence[Dim], params: Sequence[str]) -> None:
        self.chart_id = chart_id
        self.dims = list(dims)
        self.params = tuple(params)
        self.optional = False
        _check_declared(f"dims template for chart {chart_id!r}", _dim_placeholders(self.dims), self.params)

    @property
    def arity(self) -> int:
        return len(self.params)

    def render(self, key: EntityKey) -> list[Dim]:
        values = _bind(self.params, key)
        rendered = []
        for dim in self.dims:
            rendered.append(Dim(
                id=dim.id.format(**values),
                name=dim.name.format(**values),
                algo=dim.algo,
                mul=dim.mul,
                div=dim.div,
                hidden=dim.hidden,
            ))
        return rendered

    def __repr__(self) -> str:
        return f"DimsTemplate({self.chart_id!r}, params={self.params!r})"


Template = ChartTemplate | DimsTemplate


class VanishPolicy(enum.Enum):
    """What happens to the charts of an entity missing from a cycle."""

    KEEP = "keep"
    OBSOLETE = "obsolete"


class TemplateCatalog:
    """Templates of every entity class a module can discover.

    Classes are synchronized in registration order, so fixed chart sets
    (``EntityClass.COLLECTION``) must be registered before dims templates
    that target them.
    """

    def __init__(self) -> None:
        self._templates: dict[EntityClass, list[Template]] = {}
        self._collections: dict[str, list[ChartTemplate]] = {}
        self._policies: dict[EntityClass, VanishPolicy] = {}

    def register(
        self,
        entity_class: EntityClass,
        templates: Iterable[Template],
        *,
        vanish: VanishPolicy = VanishPolicy.KEEP,
    ) -> None:
        if entity_class is EntityClass.COLLECTION:
            raise TemplateError("fixed chart sets are registered with register_collection()")
        if entity_class in self._policies:
            raise TemplateError(f"entity class {entity_class} already registered")
        templates = list(templates)
        arities = {t.arity for t in templates}
        if len(arities) > 1:
            raise TemplateError(f"entity class {entity_class}: templates disagree on key arity {sorted(arities)}")
        self._templates[entity_class] = templates
        self._policies[entity_class] = vanish

    def register_collection(self, name: str, charts: Iterable[Chart], *, optional: Iterable[str] = ()) -> None:
        """Register the one-shot chart set of a sub-collector or family.

        Charts whose id is in *optional* are skipped instead of failing the
        whole set when their data is missing, e.g. values derived from
        another family.
        """
        if name in self._collections:
            raise TemplateError(f"chart set {name!r} already registered")
        charts = list(charts)
        optional = set(optional)
        unknown = optional - {chart.id for chart in charts}
        if unknown:
            raise TemplateError(f"chart set {name!r}: optional charts {sorted(unknown)} are not in the set")
        self._collections[name] = [ChartTemplate(chart, optional=chart.id in optional) for chart in charts]
        self._policies.setdefault(EntityClass.COLLECTION, VanishPolicy.KEEP)
        self._templates.setdefault(EntityClass.COLLECTION, [])

    def classes(self) -> list[EntityClass]:
        return list(self._policies)

    def vanish_policy(self, entity_class: EntityClass) -> VanishPolicy:
        return self._policies.get(entity_class, VanishPolicy.KEEP)

    def resolve(self, entity_class: EntityClass, key: EntityKey) -> list[Template]:
        if entity_class is EntityClass.COLLECTION:
            if len(key) != 1 or key[0] not in self._collections:
                raise TemplateError(f"no chart set registered for {key!r}")
            return list(self._collections[key[0]])
        if entity_class not in self._templates:
            raise TemplateError(f"no templates registered for entity class {entity_class}")
        return list(self._templates[entity_class])
