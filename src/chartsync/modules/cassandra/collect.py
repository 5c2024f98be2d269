"""Normalization of Cassandra JMX exporter samples."""

from __future__ import annotations

import logging
from collections.abc import Callable

from ...core.entities import Discovery, EntityClass
from ...core.module import Normalized
from ...core.units import to_fixed
from ...sources.prometheus import Series

logger = logging.getLogger(__name__)

Family = Callable[[Series, dict[str, int], Discovery], None]

PREFIX = "org_apache_cassandra_metrics_"

# client request scopes kept; CASRead, RangeSlice etc. are dropped
REQUEST_SCOPES = ("Read", "Write")

# global table metrics, reported without a keyspace label
TABLE_METRICS = (
    "LiveDiskSpaceUsed",
    "TotalDiskSpaceUsed",
    "CompactionBytesWritten",
    "PendingCompactions",
)

# ClientRequest metric -> (metric id prefix, chart set)
REQUEST_METRICS = {
    "ClientRequest_Latency_Count": ("throughput", "throughput"),
    "ClientRequest_TotalLatency_Count": ("latency", "latency"),
    "ClientRequest_Timeouts_Count": ("error_timeout", "timeouts"),
    "ClientRequest_Unavailables_Count": ("error_unavailable", "unavailables"),
}


def _put(mx: dict[str, int], key: str, value: float, mul: int = 1) -> bool:
    v = to_fixed(value, mul)
    if v is None:
        return False
    mx[key] = v
    return True


def collect_cache(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    for s in series.find_by_name(PREFIX + "Cache_HitRate"):
        if s.label("scope") == "KeyCache" and _put(mx, "cache_HitRate", s.value, 100):
            disc.add(EntityClass.COLLECTION, "cache")


def collect_disk(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    for name in TABLE_METRICS:
        for s in series.find_by_name(PREFIX + "Table_" + name):
            if s.label("keyspace"):
                continue
            if _put(mx, "disk_" + name, s.value):
                disc.add(EntityClass.COLLECTION, "disk")


def collect_client_requests(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    for name, (prefix, chart_set) in REQUEST_METRICS.items():
        for s in series.find_by_name(PREFIX + name):
            scope = s.label("scope")
            if scope in REQUEST_SCOPES and _put(mx, f"{prefix}_{scope}", s.value):
                disc.add(EntityClass.COLLECTION, chart_set)


def collect_thread_pools(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    pending = [to_fixed(s.value) for s in series.find_by_name(PREFIX + "ThreadPools_PendingTasks")]
    pending = [v for v in pending if v is not None]
    if pending:
        mx["pending_tasks_tasks"] = sum(pending)
        disc.add(EntityClass.COLLECTION, "pending_tasks")


def collect_gc(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    for kind in ("count", "time"):
        attr = "CollectionCount" if kind == "count" else "CollectionTime"
        for s in series.find_by_name("java_lang_GarbageCollector_" + attr):
            collector = s.label("name").replace(" ", "_")
            if collector and _put(mx, f"java_gc_{kind}_{collector}", s.value):
                disc.add(EntityClass.GC_COLLECTOR, collector)
    if disc.seen(EntityClass.GC_COLLECTOR):
        disc.add(EntityClass.COLLECTION, "java_gc")


def collect_system(series: Series, mx: dict[str, int], disc: Discovery, *, now: float) -> None:
    for s in series.find_by_name("process_start_time_seconds"):
        if _put(mx, "system_up_time", now - s.value):
            disc.add(EntityClass.COLLECTION, "system")


FAMILIES: list[tuple[str, Family]] = [
    ("cache", collect_cache),
    ("disk", collect_disk),
    ("client_requests", collect_client_requests),
    ("thread_pools", collect_thread_pools),
    ("java_gc", collect_gc),
]


def normalize(series: Series, *, now: float) -> Normalized:
    """Run every family normalizer; a family that raises is dropped."""
    families = FAMILIES + [("system", lambda se, m, d: collect_system(se, m, d, now=now))]
    result = Normalized()
    for name, fn in families:
        mx: dict[str, int] = {}
        disc = Discovery()
        try:
            fn(series, mx, disc)
        except Exception:
            logger.exception("Normalizing the %s family failed", name)
            continue
        result.metrics.update(mx)
        result.discovery.update(disc)
    return result
