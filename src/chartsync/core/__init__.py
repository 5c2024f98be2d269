"""Entity discovery and chart-lifecycle synchronization engine."""

from __future__ import annotations

from .charts import Chart, Charts, Dim, Var
from .entities import KEY_SEPARATOR, Discovery, EntityClass, EntityKey
from .module import Module, Normalized
from .registry import EntityRegistry
from .synchronizer import ChartSynchronizer, SyncResult
from .templates import ChartTemplate, DimsTemplate, TemplateCatalog, VanishPolicy

__all__ = [
    "KEY_SEPARATOR",
    "Chart",
    "ChartSynchronizer",
    "ChartTemplate",
    "Charts",
    "Dim",
    "DimsTemplate",
    "Discovery",
    "EntityClass",
    "EntityKey",
    "EntityRegistry",
    "Module",
    "Normalized",
    "SyncResult",
    "TemplateCatalog",
    "Var",
    "VanishPolicy",
]
