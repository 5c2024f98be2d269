"""Chart, dimension and chart-set definitions handed to the host."""

from __future__ import annotations

import copy
from collections.abc import Iterator
from dataclasses import dataclass, field

from ..errors import DuplicateChartError, DuplicateDimError

ABSOLUTE = "absolute"
INCREMENTAL = "incremental"
PERCENTAGE_OF_INCREMENTAL_ROW = "percentage-of-incremental-row"


@dataclass
class Dim:
    """A chart dimension backed by one metric id of the snapshot."""

    id: str
    name: str = ""
    algo: str = ABSOLUTE
    mul: int = 1
    div: int = 1
    hidden: bool = False


@dataclass
class Var:
    """A chart variable backed by one metric id of the snapshot."""

    id: str
    name: str = ""


@dataclass
class Chart:
    """A single chart definition."""

    id: str
    title: str
    units: str
    fam: str
    ctx: str
    type: str = "line"
    priority: int = 0
    dims: list[Dim] = field(default_factory=list)
    vars: list[Var] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)
    obsolete: bool = False

    def has_dim(self, dim_id: str) -> bool:
        return any(d.id == dim_id for d in self.dims)

    def add_dim(self, dim: Dim) -> None:
        if self.has_dim(dim.id):
            raise DuplicateDimError(self.id, dim.id)
        self.dims.append(dim)

    def mark_obsolete(self) -> None:
        self.obsolete = True

    def revive(self) -> None:
        self.obsolete = False

    def copy(self) -> Chart:
        return copy.deepcopy(self)


class Charts:
    """The mutable collection of charts owned by one module instance.

    Insertion order is preserved; chart ids are unique.
    """

    def __init__(self, *charts: Chart) -> None:
        self._charts: dict[str, Chart] = {}
        if charts:
            self.add(*charts)

    def add(self, *charts: Chart) -> None:
        """Add charts, all or none: any duplicate id rejects the whole batch."""
        seen: set[str] = set()
        for chart in charts:
            if chart.id in self._charts or chart.id in seen:
                raise DuplicateChartError(chart.id)
            dim_ids: set[str] = set()
            for dim in chart.dims:
                if dim.id in dim_ids:
                    raise DuplicateDimError(chart.id, dim.id)
                dim_ids.add(dim.id)
            seen.add(chart.id)
        for chart in charts:
            self._charts[chart.id] = chart

    def has(self, chart_id: str) -> bool:
        return chart_id in self._charts

    def get(self, chart_id: str) -> Chart | None:
        return self._charts.get(chart_id)

    def ids(self) -> list[str]:
        return list(self._charts)

    def copy(self) -> Charts:
        return Charts(*(c.copy() for c in self._charts.values()))

    def __iter__(self) -> Iterator[Chart]:
        return iter(list(self._charts.values()))

    def __len__(self) -> int:
        return len(self._charts)

    def __contains__(self, chart_id: object) -> bool:
        return chart_id in self._charts
