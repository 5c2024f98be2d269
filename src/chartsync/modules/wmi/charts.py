"""Chart templates of the wmi module."""

from __future__ import annotations

from ...core.charts import ABSOLUTE, INCREMENTAL, PERCENTAGE_OF_INCREMENTAL_ROW, Chart, Dim, Var
from ...core.entities import EntityClass
from ...core.templates import ChartTemplate, DimsTemplate, TemplateCatalog
from .collect import PRECISION

PRIO_CPU = 1000
PRIO_CPU_CORE = 1100
PRIO_MEMORY = 1200
PRIO_DISK = 1300
PRIO_NIC = 1400
PRIO_TCP = 1500
PRIO_OS = 1600
PRIO_SYSTEM = 1700
PRIO_LOGON = 1800
PRIO_THERMALZONE = 1900
PRIO_PROCESSES = 2000
PRIO_SERVICE = 2100
PRIO_IIS = 2200
PRIO_MSSQL_INSTANCE = 2300
PRIO_MSSQL_DB = 2400
PRIO_AD = 2500
PRIO_ADCS = 2600
PRIO_COLLECTOR = 2900

# cpu

cpu_charts = [
    Chart(
        id="cpu_utilization_total",
        title="Total CPU Utilization (all cores)",
        units="percentage",
        fam="cpu",
        ctx="cpu.cpu_utilization_total",
        type="stacked",
        priority=PRIO_CPU,
        dims=[
            Dim(id="cpu_dpc_time", name="dpc", algo=PERCENTAGE_OF_INCREMENTAL_ROW, div=PRECISION),
            Dim(id="cpu_user_time", name="user", algo=PERCENTAGE_OF_INCREMENTAL_ROW, div=PRECISION),
            Dim(id="cpu_privileged_time", name="privileged", algo=PERCENTAGE_OF_INCREMENTAL_ROW, div=PRECISION),
            Dim(id="cpu_interrupt_time", name="interrupt", algo=PERCENTAGE_OF_INCREMENTAL_ROW, div=PRECISION),
            Dim(id="cpu_idle_time", name="idle", algo=PERCENTAGE_OF_INCREMENTAL_ROW, div=PRECISION, hidden=True),
        ],
    ),
]

cpu_core_templates = [
    ChartTemplate(Chart(
        id="cpu_core_{core}_utilization",
        title="Core {core} CPU Utilization",
        units="percentage",
        fam="cpu",
        ctx="cpu.core_cpu_utilization",
        type="stacked",
        priority=PRIO_CPU_CORE,
        dims=[
            Dim(id="cpu_core_{core}_dpc_time", name="dpc", algo=PERCENTAGE_OF_INCREMENTAL_ROW, div=PRECISION),
            Dim(id="cpu_core_{core}_user_time", name="user", algo=PERCENTAGE_OF_INCREMENTAL_ROW, div=PRECISION),
            Dim(id="cpu_core_{core}_privileged_time", name="privileged", algo=PERCENTAGE_OF_INCREMENTAL_ROW, div=PRECISION),
            Dim(id="cpu_core_{core}_interrupt_time", name="interrupt", algo=PERCENTAGE_OF_INCREMENTAL_ROW, div=PRECISION),
            Dim(id="cpu_core_{core}_idle_time", name="idle", algo=PERCENTAGE_OF_INCREMENTAL_ROW, div=PRECISION, hidden=True),
        ],
    ), params=("core",)),
    ChartTemplate(Chart(
        id="cpu_core_{core}_interrupts",
        title="Core {core} Received and Serviced Hardware Interrupts",
        units="interrupts/s",
        fam="cpu",
        ctx="cpu.core_interrupts",
        priority=PRIO_CPU_CORE + 1,
        dims=[Dim(id="cpu_core_{core}_interrupts", name="interrupts", algo=INCREMENTAL)],
    ), params=("core",)),
    ChartTemplate(Chart(
        id="cpu_core_{core}_dpcs",
        title="Core {core} Received and Serviced Deferred Procedure Calls (DPC)",
        units="dpcs/s",
        fam="cpu",
        ctx="cpu.core_dpcs",
        priority=PRIO_CPU_CORE + 2,
        dims=[Dim(id="cpu_core_{core}_dpcs", name="dpcs", algo=INCREMENTAL)],
    ), params=("core",)),
    ChartTemplate(Chart(
        id="cpu_core_{core}_cpu_cstate",
        title="Core {core} Time Spent in Low-Power Idle State",
        units="percentage",
        fam="cpu",
        ctx="cpu.core_cstate",
        type="stacked",
        priority=PRIO_CPU_CORE + 3,
        dims=[
            Dim(id="cpu_core_{core}_cstate_c1", name="c1", algo=PERCENTAGE_OF_INCREMENTAL_ROW, div=PRECISION),
            Dim(id="cpu_core_{core}_cstate_c2", name="c2", algo=PERCENTAGE_OF_INCREMENTAL_ROW, div=PRECISION),
            Dim(id="cpu_core_{core}_cstate_c3", name="c3", algo=PERCENTAGE_OF_INCREMENTAL_ROW, div=PRECISION),
        ],
    ), params=("core",), optional=True),
]

# memory

memory_charts = [
    Chart(
        id="memory_utilization",
        title="Memory Utilization",
        units="bytes",
        fam="mem",
        ctx="mem.memory_utilization",
        type="stacked",
        priority=PRIO_MEMORY,
        dims=[
            Dim(id="memory_available_bytes", name="available"),
            Dim(id="memory_used_bytes", name="used"),
        ],
    ),
    Chart(
        id="memory_page_faults",
        title="Memory Page Faults",
        units="events/s",
        fam="mem",
        ctx="mem.memory_page_faults",
        priority=PRIO_MEMORY + 1,
        dims=[Dim(id="memory_page_faults_total", name="page_faults", algo=INCREMENTAL)],
    ),
    Chart(
        id="memory_swap_utilization",
        title="Swap Utilization",
        units="bytes",
        fam="mem",
        ctx="mem.memory_swap_utilization",
        type="stacked",
        priority=PRIO_MEMORY + 2,
        dims=[
            Dim(id="memory_not_committed_bytes", name="available"),
            Dim(id="memory_committed_bytes", name="used"),
        ],
        vars=[Var(id="memory_commit_limit")],
    ),
    Chart(
        id="memory_swap_operations",
        title="Swap Operations",
        units="operations/s",
        fam="mem",
        ctx="mem.memory_swap_operations",
        type="area",
        priority=PRIO_MEMORY + 3,
        dims=[
            Dim(id="memory_swap_page_reads_total", name="read", algo=INCREMENTAL),
            Dim(id="memory_swap_page_writes_total", name="write", algo=INCREMENTAL, mul=-1),
        ],
    ),
    Chart(
        id="memory_swap_pages",
        title="Swap Pages",
        units="pages/s",
        fam="mem",
        ctx="mem.memory_swap_pages",
        priority=PRIO_MEMORY + 4,
        dims=[
            Dim(id="memory_swap_pages_read_total", name="read", algo=INCREMENTAL),
            Dim(id="memory_swap_pages_written_total", name="written", algo=INCREMENTAL, mul=-1),
        ],
    ),
    Chart(
        id="memory_cached",
        title="Cached",
        units="bytes",
        fam="mem",
        ctx="mem.memory_cached",
        type="area",
        priority=PRIO_MEMORY + 5,
        dims=[Dim(id="memory_cache_total", name="cached")],
    ),
    Chart(
        id="memory_cache_faults",
        title="Cache Faults",
        units="events/s",
        fam="mem",
        ctx="mem.memory_cache_faults",
        priority=PRIO_MEMORY + 6,
        dims=[Dim(id="memory_cache_faults_total", name="cache_faults", algo=INCREMENTAL)],
    ),
    Chart(
        id="memory_system_pool",
        title="System Memory Pool",
        units="bytes",
        fam="mem",
        ctx="mem.memory_system_pool",
        type="area",
        priority=PRIO_MEMORY + 7,
        dims=[
            Dim(id="memory_pool_paged_bytes", name="paged"),
            Dim(id="memory_pool_nonpaged_bytes_total", name="non-paged"),
        ],
    ),
    Chart(
        id="memory_standby_cache",
        title="Standby Cache",
        units="bytes",
        fam="mem",
        ctx="mem.memory_standby_cache",
        type="stacked",
        priority=PRIO_MEMORY + 8,
        dims=[
            Dim(id="memory_standby_cache_reserve_bytes", name="reserve"),
            Dim(id="memory_standby_cache_normal_priority_bytes", name="normal"),
            Dim(id="memory_standby_cache_core_bytes", name="core"),
        ],
        vars=[Var(id="memory_standby_cache_total")],
    ),
    Chart(
        id="memory_modified_page_list",
        title="Modified Page List",
        units="bytes",
        fam="mem",
        ctx="mem.memory_modified_page_list",
        priority=PRIO_MEMORY + 9,
        dims=[Dim(id="memory_modified_page_list_bytes", name="modified")],
    ),
]

# logical disks

disk_templates = [
    ChartTemplate(Chart(
        id="logical_disk_{disk}_space_usage",
        title="Space usage {disk}",
        units="bytes",
        fam="disk",
        ctx="disk.logical_disk_space_usage",
        type="stacked",
        priority=PRIO_DISK,
        dims=[
            Dim(id="logical_disk_{disk}_free_space", name="free"),
            Dim(id="logical_disk_{disk}_used_space", name="used"),
        ],
        vars=[Var(id="logical_disk_{disk}_total_space")],
    ), params=("disk",)),
    ChartTemplate(Chart(
        id="logical_disk_{disk}_bandwidth",
        title="Bandwidth {disk}",
        units="bytes/s",
        fam="disk",
        ctx="disk.logical_disk_bandwidth",
        type="area",
        priority=PRIO_DISK + 1,
        dims=[
            Dim(id="logical_disk_{disk}_read_bytes_total", name="read", algo=INCREMENTAL),
            Dim(id="logical_disk_{disk}_write_bytes_total", name="write", algo=INCREMENTAL, mul=-1),
        ],
    ), params=("disk",)),
    ChartTemplate(Chart(
        id="logical_disk_{disk}_operations",
        title="Operations {disk}",
        units="operations/s",
        fam="disk",
        ctx="disk.logical_disk_operations",
        priority=PRIO_DISK + 2,
        dims=[
            Dim(id="logical_disk_{disk}_reads_total", name="reads", algo=INCREMENTAL),
            Dim(id="logical_disk_{disk}_writes_total", name="writes", algo=INCREMENTAL, mul=-1),
        ],
    ), params=("disk",)),
    ChartTemplate(Chart(
        id="logical_disk_{disk}_latency",
        title="Average Read/Write Latency {disk}",
        units="seconds",
        fam="disk",
        ctx="disk.logical_disk_latency",
        priority=PRIO_DISK + 3,
        dims=[
            Dim(id="logical_disk_{disk}_read_latency", name="read", algo=INCREMENTAL, div=PRECISION),
            Dim(id="logical_disk_{disk}_write_latency", name="write", algo=INCREMENTAL, div=PRECISION),
        ],
    ), params=("disk",)),
]

# network interfaces

nic_templates = [
    ChartTemplate(Chart(
        id="nic_{nic}_bandwidth",
        title="Bandwidth {nic}",
        units="kilobits/s",
        fam="net",
        ctx="net.net_nic_bandwidth",
        type="area",
        priority=PRIO_NIC,
        dims=[
            Dim(id="net_nic_{nic}_bytes_received", name="received", algo=INCREMENTAL, mul=8, div=1000),
            Dim(id="net_nic_{nic}_bytes_sent", name="sent", algo=INCREMENTAL, mul=-8, div=1000),
        ],
    ), params=("nic",)),
    ChartTemplate(Chart(
        id="nic_{nic}_packets",
        title="Packets {nic}",
        units="packets/s",
        fam="net",
        ctx="net.net_nic_packets",
        priority=PRIO_NIC + 1,
        dims=[
            Dim(id="net_nic_{nic}_packets_received_total", name="received", algo=INCREMENTAL),
            Dim(id="net_nic_{nic}_packets_sent_total", name="sent", algo=INCREMENTAL, mul=-1),
        ],
    ), params=("nic",)),
    ChartTemplate(Chart(
        id="nic_{nic}_errors",
        title="Errors {nic}",
        units="errors/s",
        fam="net",
        ctx="net.net_nic_errors",
        priority=PRIO_NIC + 2,
        dims=[
            Dim(id="net_nic_{nic}_packets_received_errors", name="inbound", algo=INCREMENTAL),
            Dim(id="net_nic_{nic}_packets_outbound_errors", name="outbound", algo=INCREMENTAL, mul=-1),
        ],
    ), params=("nic",)),
    ChartTemplate(Chart(
        id="nic_{nic}_discarded",
        title="Discards {nic}",
        units="discards/s",
        fam="net",
        ctx="net.net_nic_discarded",
        priority=PRIO_NIC + 3,
        dims=[
            Dim(id="net_nic_{nic}_packets_received_discarded", name="inbound", algo=INCREMENTAL),
            Dim(id="net_nic_{nic}_packets_outbound_discarded", name="outbound", algo=INCREMENTAL, mul=-1),
        ],
    ), params=("nic",)),
]

# tcp


def _tcp_chart(suffix: str, title: str, units: str, priority: int, algo: str = INCREMENTAL) -> Chart:
    return Chart(
        id=f"tcp_{suffix}",
        title=title,
        units=units,
        fam="tcp",
        ctx=f"tcp.{suffix}",
        priority=priority,
        dims=[
            Dim(id=f"tcp_ipv4_{suffix}", name="ipv4", algo=algo),
            Dim(id=f"tcp_ipv6_{suffix}", name="ipv6", algo=algo),
        ],
    )


tcp_charts = [
    _tcp_chart("conns_established", "TCP established connections", "connections", PRIO_TCP, algo=ABSOLUTE),
    _tcp_chart("conns_active", "TCP active connections", "connections/s", PRIO_TCP + 1),
    _tcp_chart("conns_passive", "TCP passive connections", "connections/s", PRIO_TCP + 2),
    _tcp_chart("conns_failures", "TCP connection failures", "failures/s", PRIO_TCP + 3),
    _tcp_chart("conns_resets", "TCP connections resets", "resets/s", PRIO_TCP + 4),
    _tcp_chart("segments_received", "Number of TCP segments received", "segments/s", PRIO_TCP + 5),
    _tcp_chart("segments_sent", "Number of TCP segments sent", "segments/s", PRIO_TCP + 6),
    _tcp_chart("segments_retransmitted", "Number of TCP segments retransmitted", "segments/s", PRIO_TCP + 7),
]

# os

os_charts = [
    Chart(
        id="os_processes",
        title="Processes",
        units="number",
        fam="os",
        ctx="os.processes",
        priority=PRIO_OS,
        dims=[Dim(id="os_processes", name="processes")],
        vars=[Var(id="os_processes_limit")],
    ),
    Chart(
        id="os_users",
        title="Number of Users",
        units="users",
        fam="os",
        ctx="os.users",
        priority=PRIO_OS + 1,
        dims=[Dim(id="os_users", name="users")],
    ),
    Chart(
        id="os_visible_memory_usage",
        title="Visible Memory Usage",
        units="bytes",
        fam="os",
        ctx="os.visible_memory_usage",
        type="stacked",
        priority=PRIO_OS + 2,
        dims=[
            Dim(id="os_physical_memory_free_bytes", name="free"),
            Dim(id="os_visible_memory_used_bytes", name="used"),
        ],
        vars=[Var(id="os_visible_memory_bytes")],
    ),
    Chart(
        id="os_paging_files_usage",
        title="Paging Files Usage",
        units="bytes",
        fam="os",
        ctx="os.paging_files_usage",
        type="stacked",
        priority=PRIO_OS + 3,
        dims=[
            Dim(id="os_paging_free_bytes", name="free"),
            Dim(id="os_paging_used_bytes", name="used"),
        ],
        vars=[Var(id="os_paging_limit_bytes")],
    ),
]

# system

system_charts = [
    Chart(
        id="system_threads",
        title="Threads",
        units="number",
        fam="system",
        ctx="system.threads",
        priority=PRIO_SYSTEM,
        dims=[Dim(id="system_threads", name="threads")],
    ),
    Chart(
        id="system_uptime",
        title="Uptime",
        units="seconds",
        fam="system",
        ctx="system.uptime",
        priority=PRIO_SYSTEM + 1,
        dims=[Dim(id="system_up_time", name="time")],
    ),
]

# logon

LOGON_TYPES = [
    "system",
    "interactive",
    "network",
    "batch",
    "service",
    "proxy",
    "unlock",
    "network_clear_text",
    "new_credentials",
    "remote_interactive",
    "cached_interactive",
    "cached_remote_interactive",
    "cached_unlock",
]

logon_charts = [
    Chart(
        id="logon_type_sessions",
        title="Active User Logon Sessions By Type",
        units="seconds",
        fam="logon",
        ctx="logon.type_sessions",
        type="stacked",
        priority=PRIO_LOGON,
        dims=[Dim(id=f"logon_type_{t}_sessions", name=t) for t in LOGON_TYPES],
    ),
]

# thermal zones

thermalzone_templates = [
    ChartTemplate(Chart(
        id="thermalzone_{zone}_temperature",
        title="Thermal zone {zone} temperature",
        units="celsius",
        fam="thermalzone",
        ctx="thermalzone.temperature",
        priority=PRIO_THERMALZONE,
        dims=[Dim(id="thermalzone_{zone}_temperature", name="temperature")],
    ), params=("zone",)),
]

# processes: fixed charts, one dimension per process

PROCESS_METRICS = [
    ("processes_cpu_time", "cpu_time", "CPU usage (100% = 1 core)", "percentage", INCREMENTAL, 100, PRECISION),
    ("processes_handles", "handles", "Number of handles open", "handles", ABSOLUTE, 1, 1),
    ("processes_io_bytes", "io_bytes", "IO usage (bytes/s)", "bytes/s", INCREMENTAL, 1, 1),
    ("processes_io_operations", "io_operations", "IO usage (operations/s)", "operations/s", INCREMENTAL, 1, 1),
    ("processes_page_faults", "page_faults", "Number of page faults", "pgfaults/s", INCREMENTAL, 1, 1),
    ("processes_page_file_bytes", "page_file_bytes", "Bytes used in page file(s)", "bytes", ABSOLUTE, 1, 1),
    ("processes_threads", "threads", "Active threads", "threads", ABSOLUTE, 1, 1),
    ("processes_memory_usage", "working_set_private_bytes", "Memory usage", "bytes", ABSOLUTE, 1, 1),
]

processes_charts = [
    Chart(
        id=chart_id,
        title=title,
        units=units,
        fam="processes",
        ctx=f"processes.{chart_id[len('processes_'):]}",
        type="stacked",
        priority=PRIO_PROCESSES + i,
    )
    for i, (chart_id, _, title, units, _, _, _) in enumerate(PROCESS_METRICS)
]

process_dims_templates = [
    DimsTemplate(chart_id, [Dim(id="process_{process}_" + suffix, name="{process}", algo=algo, mul=mul, div=div)], params=("process",))
    for chart_id, suffix, _, _, algo, mul, div in PROCESS_METRICS
]

# services

SERVICE_STATES = [
    "running",
    "stopped",
    "start_pending",
    "stop_pending",
    "continue_pending",
    "pause_pending",
    "paused",
    "unknown",
]

SERVICE_STATUSES = [
    "ok",
    "error",
    "unknown",
    "degraded",
    "pred_fail",
    "starting",
    "stopping",
    "service",
    "stressed",
    "nonrecover",
    "no_contact",
    "lost_comm",
]

service_templates = [
    ChartTemplate(Chart(
        id="service_{service}_state",
        title="Service {service} state",
        units="state",
        fam="services",
        ctx="service.state",
        priority=PRIO_SERVICE,
        dims=[Dim(id="service_{service}_state_" + s, name=s) for s in SERVICE_STATES],
    ), params=("service",)),
    ChartTemplate(Chart(
        id="service_{service}_status",
        title="Service {service} status",
        units="status",
        fam="services",
        ctx="service.status",
        priority=PRIO_SERVICE + 1,
        dims=[Dim(id="service_{service}_status_" + s, name=s) for s in SERVICE_STATUSES],
    ), params=("service",)),
]

# iis

iis_website_templates = [
    ChartTemplate(Chart(
        id="iis_website_{website}_traffic",
        title="Website {website} traffic",
        units="bytes/s",
        fam="iis",
        ctx="iis.website_traffic",
        type="area",
        priority=PRIO_IIS,
        dims=[
            Dim(id="iis_website_{website}_received_bytes_total", name="received", algo=INCREMENTAL),
            Dim(id="iis_website_{website}_sent_bytes_total", name="sent", algo=INCREMENTAL, mul=-1),
        ],
    ), params=("website",)),
    ChartTemplate(Chart(
        id="iis_website_{website}_requests_rate",
        title="Website {website} requests rate",
        units="requests/s",
        fam="iis",
        ctx="iis.website_requests_rate",
        priority=PRIO_IIS + 1,
        dims=[Dim(id="iis_website_{website}_requests_total", name="requests", algo=INCREMENTAL)],
    ), params=("website",)),
    ChartTemplate(Chart(
        id="iis_website_{website}_active_connections_count",
        title="Website {website} active connections",
        units="connections",
        fam="iis",
        ctx="iis.website_active_connections_count",
        priority=PRIO_IIS + 2,
        dims=[Dim(id="iis_website_{website}_current_connections", name="active")],
    ), params=("website",)),
    ChartTemplate(Chart(
        id="iis_website_{website}_users_count",
        title="Website {website} users with pending requests",
        units="users",
        fam="iis",
        ctx="iis.website_users_count",
        type="stacked",
        priority=PRIO_IIS + 3,
        dims=[
            Dim(id="iis_website_{website}_current_anonymous_users", name="anonymous"),
            Dim(id="iis_website_{website}_current_non_anonymous_users", name="non_anonymous"),
        ],
    ), params=("website",)),
    ChartTemplate(Chart(
        id="iis_website_{website}_connection_attempts_rate",
        title="Website {website} connections attempts",
        units="attempts/s",
        fam="iis",
        ctx="iis.website_connection_attempts_rate",
        priority=PRIO_IIS + 4,
        dims=[Dim(id="iis_website_{website}_connection_attempts_all_instances_total", name="connection", algo=INCREMENTAL)],
    ), params=("website",)),
    ChartTemplate(Chart(
        id="iis_website_{website}_files_transferred",
        title="Website {website} files transferred",
        units="files/s",
        fam="iis",
        ctx="iis.website_files_transferred",
        priority=PRIO_IIS + 5,
        dims=[
            Dim(id="iis_website_{website}_files_received_total", name="received", algo=INCREMENTAL),
            Dim(id="iis_website_{website}_files_sent_total", name="sent", algo=INCREMENTAL, mul=-1),
        ],
    ), params=("website",)),
    ChartTemplate(Chart(
        id="iis_website_{website}_errors_rate",
        title="Website {website} errors",
        units="errors/s",
        fam="iis",
        ctx="iis.website_errors_rate",
        type="stacked",
        priority=PRIO_IIS + 6,
        dims=[
            Dim(id="iis_website_{website}_not_found_errors_total", name="document_not_found", algo=INCREMENTAL),
            Dim(id="iis_website_{website}_locked_errors_total", name="document_locked", algo=INCREMENTAL),
        ],
    ), params=("website",)),
    ChartTemplate(Chart(
        id="iis_website_{website}_uptime",
        title="Website {website} uptime",
        units="seconds",
        fam="iis",
        ctx="iis.website_uptime",
        priority=PRIO_IIS + 7,
        dims=[Dim(id="iis_website_{website}_service_uptime", name="uptime")],
    ), params=("website",)),
]

# mssql


def _mssql_instance_chart(suffix: str, title: str, units: str, priority: int, dims: list[Dim], type: str = "line") -> ChartTemplate:
    return ChartTemplate(Chart(
        id="mssql_instance_{instance}_" + suffix,
        title="SQL instance {instance} " + title,
        units=units,
        fam="mssql",
        ctx="mssql.instance_" + suffix,
        type=type,
        priority=priority,
        dims=dims,
    ), params=("instance",))


mssql_instance_templates = [
    _mssql_instance_chart("bufman_cache_hit_ratio", "buffer cache hit ratio", "percentage", PRIO_MSSQL_INSTANCE, [
        Dim(id="mssql_instance_{instance}_bufman_buffer_cache_hits", name="hit_ratio"),
    ]),
    _mssql_instance_chart("bufman_page_life_expectancy", "page life expectancy", "seconds", PRIO_MSSQL_INSTANCE + 1, [
        Dim(id="mssql_instance_{instance}_bufman_page_life_expectancy_seconds", name="life_expectancy"),
    ]),
    _mssql_instance_chart("bufman_iops", "page reads and writes", "iops", PRIO_MSSQL_INSTANCE + 2, [
        Dim(id="mssql_instance_{instance}_bufman_page_reads", name="read", algo=INCREMENTAL),
        Dim(id="mssql_instance_{instance}_bufman_page_writes", name="written", algo=INCREMENTAL, mul=-1),
    ]),
    _mssql_instance_chart("bufman_checkpoint_pages", "flushed pages", "pages/s", PRIO_MSSQL_INSTANCE + 3, [
        Dim(id="mssql_instance_{instance}_bufman_checkpoint_pages", name="flushed", algo=INCREMENTAL),
    ]),
    _mssql_instance_chart("user_connections", "user connections", "connections", PRIO_MSSQL_INSTANCE + 4, [
        Dim(id="mssql_instance_{instance}_user_connections", name="user"),
    ]),
    _mssql_instance_chart("blocked_processes", "blocked processes", "processes", PRIO_MSSQL_INSTANCE + 5, [
        Dim(id="mssql_instance_{instance}_blocked_processes", name="blocked"),
    ]),
    _mssql_instance_chart("sqlstats_batch_requests", "batch requests", "requests/s", PRIO_MSSQL_INSTANCE + 6, [
        Dim(id="mssql_instance_{instance}_sqlstats_batch_requests", name="batch", algo=INCREMENTAL),
    ]),
    _mssql_instance_chart("sqlstats_compilations", "SQL compilations", "compilations/s", PRIO_MSSQL_INSTANCE + 7, [
        Dim(id="mssql_instance_{instance}_sqlstats_sql_compilations", name="compilations", algo=INCREMENTAL),
        Dim(id="mssql_instance_{instance}_sqlstats_sql_recompilations", name="recompiles", algo=INCREMENTAL),
    ]),
    _mssql_instance_chart("memmgr_connection_memory", "connection memory", "bytes", PRIO_MSSQL_INSTANCE + 8, [
        Dim(id="mssql_instance_{instance}_memmgr_connection_memory_bytes", name="memory"),
    ]),
    _mssql_instance_chart("memmgr_pending_memory_grants", "pending memory grants", "processes", PRIO_MSSQL_INSTANCE + 9, [
        Dim(id="mssql_instance_{instance}_memmgr_pending_memory_grants", name="pending"),
    ]),
]


def _mssql_db_chart(suffix: str, title: str, units: str, priority: int, dim_name: str, algo: str = INCREMENTAL) -> ChartTemplate:
    return ChartTemplate(Chart(
        id="mssql_db_{db}_instance_{instance}_" + suffix,
        title="SQL database {db} (instance {instance}) " + title,
        units=units,
        fam="mssql",
        ctx="mssql.database_" + suffix,
        priority=priority,
        dims=[Dim(id="mssql_db_{db}_instance_{instance}_" + suffix, name=dim_name, algo=algo)],
    ), params=("instance", "db"))


mssql_database_templates = [
    _mssql_db_chart("active_transactions", "active transactions", "transactions", PRIO_MSSQL_DB, "active", algo=ABSOLUTE),
    _mssql_db_chart("data_files_size_bytes", "data files size", "bytes", PRIO_MSSQL_DB + 1, "size", algo=ABSOLUTE),
    _mssql_db_chart("log_flushes", "log flushes", "flushes/s", PRIO_MSSQL_DB + 2, "flushes"),
    _mssql_db_chart("log_flushed_bytes", "log flushed", "bytes/s", PRIO_MSSQL_DB + 3, "flushed"),
    _mssql_db_chart("transactions", "transactions", "transactions/s", PRIO_MSSQL_DB + 4, "transactions"),
    _mssql_db_chart("write_transactions", "write transactions", "transactions/s", PRIO_MSSQL_DB + 5, "write"),
]

# active directory

ad_charts = [
    Chart(
        id="ad_binds",
        title="Successful binds",
        units="bind/s",
        fam="ad",
        ctx="ad.binds",
        priority=PRIO_AD,
        dims=[Dim(id="ad_binds_total", name="binds", algo=INCREMENTAL)],
    ),
    Chart(
        id="ad_ldap_searches",
        title="LDAP client search operations",
        units="searches/s",
        fam="ad",
        ctx="ad.ldap_searches",
        priority=PRIO_AD + 1,
        dims=[Dim(id="ad_ldap_searches_total", name="searches", algo=INCREMENTAL)],
    ),
    Chart(
        id="ad_directory_service_threads",
        title="Directory Service threads",
        units="threads",
        fam="ad",
        ctx="ad.directory_service_threads",
        priority=PRIO_AD + 2,
        dims=[Dim(id="ad_directory_service_threads", name="active")],
    ),
    Chart(
        id="ad_ldap_last_bind_time",
        title="LDAP last successful bind time",
        units="seconds",
        fam="ad",
        ctx="ad.ldap_last_bind_time",
        priority=PRIO_AD + 3,
        dims=[Dim(id="ad_ldap_last_bind_time_seconds", name="last_bind")],
    ),
    Chart(
        id="ad_dra_replication_intersite_traffic",
        title="DRA replication compressed traffic between sites",
        units="bytes/s",
        fam="ad",
        ctx="ad.dra_replication_intersite_traffic",
        type="area",
        priority=PRIO_AD + 4,
        dims=[
            Dim(id="ad_replication_data_intersite_bytes_total_inbound", name="inbound", algo=INCREMENTAL),
            Dim(id="ad_replication_data_intersite_bytes_total_outbound", name="outbound", algo=INCREMENTAL, mul=-1),
        ],
    ),
    Chart(
        id="ad_dra_replication_intrasite_traffic",
        title="DRA replication traffic within the site",
        units="bytes/s",
        fam="ad",
        ctx="ad.dra_replication_intrasite_traffic",
        type="area",
        priority=PRIO_AD + 5,
        dims=[
            Dim(id="ad_replication_data_intrasite_bytes_total_inbound", name="inbound", algo=INCREMENTAL),
            Dim(id="ad_replication_data_intrasite_bytes_total_outbound", name="outbound", algo=INCREMENTAL, mul=-1),
        ],
    ),
    Chart(
        id="ad_dra_replication_pending_syncs",
        title="DRA replication pending syncs",
        units="syncs",
        fam="ad",
        ctx="ad.dra_replication_pending_syncs",
        priority=PRIO_AD + 6,
        dims=[Dim(id="ad_replication_pending_synchronizations", name="pending")],
    ),
    Chart(
        id="ad_dra_replication_sync_requests",
        title="DRA replication sync requests",
        units="requests/s",
        fam="ad",
        ctx="ad.dra_replication_sync_requests",
        priority=PRIO_AD + 7,
        dims=[Dim(id="ad_replication_sync_requests_total", name="request", algo=INCREMENTAL)],
    ),
]

# active directory certificate services


def _adcs_chart(suffix: str, title: str, units: str, priority: int, algo: str = INCREMENTAL, div: int = 1) -> ChartTemplate:
    return ChartTemplate(Chart(
        id="adcs_cert_template_{cert_template}_" + suffix,
        title="Certificate template {cert_template} " + title,
        units=units,
        fam="adcs",
        ctx="adcs.cert_template_" + suffix,
        priority=priority,
        dims=[Dim(id="adcs_cert_template_{cert_template}_" + suffix, name=suffix, algo=algo, div=div)],
    ), params=("cert_template",))


adcs_cert_template_templates = [
    _adcs_chart("requests", "requests", "requests/s", PRIO_ADCS),
    _adcs_chart("failed_requests", "failed requests", "requests/s", PRIO_ADCS + 1),
    _adcs_chart("issued_requests", "issued requests", "requests/s", PRIO_ADCS + 2),
    _adcs_chart("pending_requests", "pending requests", "requests/s", PRIO_ADCS + 3),
    _adcs_chart("request_processing_time", "request processing time", "seconds", PRIO_ADCS + 4, algo=ABSOLUTE, div=PRECISION),
    _adcs_chart("retrievals", "retrievals", "retrievals/s", PRIO_ADCS + 5),
    _adcs_chart("challenge_responses", "challenge responses", "responses/s", PRIO_ADCS + 6),
]

# exporter sub-collectors

collector_templates = [
    ChartTemplate(Chart(
        id="collector_{collector}_duration",
        title="Duration of {collector} data collection",
        units="seconds",
        fam="collection",
        ctx="collector.duration",
        priority=PRIO_COLLECTOR,
        dims=[Dim(id="collector_{collector}_duration", name="duration", div=PRECISION)],
    ), params=("collector",)),
    ChartTemplate(Chart(
        id="collector_{collector}_status",
        title="Status of {collector} data collection",
        units="status",
        fam="collection",
        ctx="collector.status",
        priority=PRIO_COLLECTOR + 1,
        dims=[
            Dim(id="collector_{collector}_status_success", name="success"),
            Dim(id="collector_{collector}_status_fail", name="fail"),
        ],
    ), params=("collector",)),
]


def build_catalog() -> TemplateCatalog:
    catalog = TemplateCatalog()
    # fixed chart sets first: process dims target the processes charts
    catalog.register_collection("cpu", cpu_charts)
    # memory_used_bytes needs the os family
    catalog.register_collection("memory", memory_charts, optional=["memory_utilization"])
    catalog.register_collection("os", os_charts)
    catalog.register_collection("system", system_charts)
    catalog.register_collection("tcp", tcp_charts)
    catalog.register_collection("logon", logon_charts)
    catalog.register_collection("process", processes_charts)
    catalog.register_collection("ad", ad_charts)

    catalog.register(EntityClass.SUB_COLLECTOR, collector_templates)
    catalog.register(EntityClass.CORE, cpu_core_templates)
    catalog.register(EntityClass.VOLUME, disk_templates)
    catalog.register(EntityClass.NIC, nic_templates)
    catalog.register(EntityClass.THERMAL_ZONE, thermalzone_templates)
    catalog.register(EntityClass.PROCESS, process_dims_templates)
    catalog.register(EntityClass.SERVICE, service_templates)
    catalog.register(EntityClass.WEBSITE, iis_website_templates)
    catalog.register(EntityClass.DB_INSTANCE, mssql_instance_templates)
    catalog.register(EntityClass.DB_DATABASE, mssql_database_templates)
    catalog.register(EntityClass.CERT_TEMPLATE, adcs_cert_template_templates)
    return catalog
