"""Chart templates of the cassandra module."""

from __future__ import annotations

from ...core.charts import INCREMENTAL, Chart, Dim
from ...core.entities import EntityClass
from ...core.templates import DimsTemplate, TemplateCatalog

PRIO_THROUGHPUT = 1000
PRIO_LATENCY = 1100
PRIO_ERRORS = 1200
PRIO_CACHE = 1300
PRIO_DISK = 1400
PRIO_PENDING = 1500
PRIO_GC = 1600
PRIO_SYSTEM = 1700

throughput_charts = [
    Chart(
        id="throughput",
        title="I/O requests",
        units="requests/s",
        fam="throughput",
        ctx="cassandra.throughput",
        priority=PRIO_THROUGHPUT,
        dims=[
            Dim(id="throughput_Read", name="read", algo=INCREMENTAL),
            Dim(id="throughput_Write", name="write", algo=INCREMENTAL, mul=-1),
        ],
    ),
]

latency_charts = [
    Chart(
        id="latency",
        title="I/O latency",
        units="microseconds/s",
        fam="latency",
        ctx="cassandra.latency",
        priority=PRIO_LATENCY,
        dims=[
            Dim(id="latency_Read", name="read", algo=INCREMENTAL),
            Dim(id="latency_Write", name="write", algo=INCREMENTAL, mul=-1),
        ],
    ),
]

timeouts_charts = [
    Chart(
        id="error_timeouts",
        title="Request timeouts",
        units="requests/s",
        fam="errors",
        ctx="cassandra.error_timeouts",
        priority=PRIO_ERRORS,
        dims=[
            Dim(id="error_timeout_Read", name="read", algo=INCREMENTAL),
            Dim(id="error_timeout_Write", name="write", algo=INCREMENTAL),
        ],
    ),
]

unavailables_charts = [
    Chart(
        id="error_unavailables",
        title="Requests failed on unavailable replicas",
        units="requests/s",
        fam="errors",
        ctx="cassandra.error_unavailables",
        priority=PRIO_ERRORS + 1,
        dims=[
            Dim(id="error_unavailable_Read", name="read", algo=INCREMENTAL),
            Dim(id="error_unavailable_Write", name="write", algo=INCREMENTAL),
        ],
    ),
]

cache_charts = [
    Chart(
        id="cache_hit_rate",
        title="Key cache hit rate",
        units="percentage",
        fam="cache",
        ctx="cassandra.cache_hit_rate",
        priority=PRIO_CACHE,
        dims=[Dim(id="cache_HitRate", name="hit_rate")],
    ),
]

disk_charts = [
    Chart(
        id="disk_space_usage",
        title="Disk space used by live and obsolete SSTables",
        units="bytes",
        fam="disk",
        ctx="cassandra.disk_space_usage",
        priority=PRIO_DISK,
        dims=[
            Dim(id="disk_LiveDiskSpaceUsed", name="live"),
            Dim(id="disk_TotalDiskSpaceUsed", name="total"),
        ],
    ),
    Chart(
        id="disk_compaction_bytes_written",
        title="Compaction bytes written",
        units="B/s",
        fam="disk",
        ctx="cassandra.disk_compaction_bytes_written",
        priority=PRIO_DISK + 1,
        dims=[Dim(id="disk_CompactionBytesWritten", name="written", algo=INCREMENTAL)],
    ),
    Chart(
        id="disk_pending_compactions",
        title="Pending compactions",
        units="tasks",
        fam="disk",
        ctx="cassandra.disk_pending_compactions",
        priority=PRIO_DISK + 2,
        dims=[Dim(id="disk_PendingCompactions", name="pending")],
    ),
]

pending_tasks_charts = [
    Chart(
        id="pending_tasks",
        title="Tasks queued in thread pools",
        units="tasks",
        fam="thread pools",
        ctx="cassandra.pending_tasks",
        priority=PRIO_PENDING,
        dims=[Dim(id="pending_tasks_tasks", name="tasks")],
    ),
]

# dims are added per garbage collector
java_gc_charts = [
    Chart(
        id="java_gc_count",
        title="Garbage collections",
        units="events/s",
        fam="java",
        ctx="cassandra.java_gc_count",
        type="stacked",
        priority=PRIO_GC,
    ),
    Chart(
        id="java_gc_time",
        title="Time spent in garbage collection",
        units="milliseconds/s",
        fam="java",
        ctx="cassandra.java_gc_time",
        type="stacked",
        priority=PRIO_GC + 1,
    ),
]

gc_dims_templates = [
    DimsTemplate("java_gc_count", [Dim(id="java_gc_count_{collector}", name="{collector}", algo=INCREMENTAL)], params=("collector",)),
    DimsTemplate("java_gc_time", [Dim(id="java_gc_time_{collector}", name="{collector}", algo=INCREMENTAL)], params=("collector",)),
]

system_charts = [
    Chart(
        id="system_uptime",
        title="Uptime",
        units="seconds",
        fam="system",
        ctx="cassandra.uptime",
        priority=PRIO_SYSTEM,
        dims=[Dim(id="system_up_time", name="time")],
    ),
]


def build_catalog() -> TemplateCatalog:
    catalog = TemplateCatalog()
    catalog.register_collection("throughput", throughput_charts)
    catalog.register_collection("latency", latency_charts)
    catalog.register_collection("timeouts", timeouts_charts)
    catalog.register_collection("unavailables", unavailables_charts)
    catalog.register_collection("cache", cache_charts)
    catalog.register_collection("disk", disk_charts)
    catalog.register_collection("pending_tasks", pending_tasks_charts)
    catalog.register_collection("java_gc", java_gc_charts)
    catalog.register_collection("system", system_charts)
    catalog.register(EntityClass.GC_COLLECTOR, gc_dims_templates)
    return catalog
