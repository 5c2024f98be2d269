"""Normalization of windows_exporter samples into metrics and entities.

Each family normalizer reads its samples from the scraped series, writes
integer metrics and records the entities it saw. A family that finds no
samples contributes nothing.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from ...core.entities import Discovery, EntityClass
from ...core.module import Normalized
from ...core.units import MILLI, to_fixed
from ...sources.prometheus import Series

logger = logging.getLogger(__name__)

PRECISION = MILLI

_id_re = re.compile(r"[^A-Za-z0-9.-]+")


def clean_id(name: str) -> str:
    """Replace runs of characters unfit for chart ids with ``_``."""
    return _id_re.sub("_", name).strip("_")


def _put(mx: dict[str, int], key: str, value: float, mul: int = 1) -> bool:
    v = to_fixed(value, mul)
    if v is None:
        return False
    mx[key] = v
    return True


def _add(mx: dict[str, int], key: str, value: float, mul: int = 1) -> bool:
    v = to_fixed(value, mul)
    if v is None:
        return False
    mx[key] = mx.get(key, 0) + v
    return True


# collector


def collect_collector(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    for s in series.find_by_name("windows_exporter_collector_duration_seconds"):
        name = s.label("collector")
        if name:
            _put(mx, f"collector_{name}_duration", s.value, PRECISION)

    for s in series.find_by_name("windows_exporter_collector_success"):
        name = s.label("collector")
        if not name:
            continue
        ok = s.value == 1
        mx[f"collector_{name}_status_success"] = int(ok)
        mx[f"collector_{name}_status_fail"] = int(not ok)
        disc.add(EntityClass.SUB_COLLECTOR, name)


# cpu

CPU_MODES = ("dpc", "idle", "interrupt", "privileged", "user")


def collect_cpu(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    cores: set[str] = set()
    for s in series.find_by_name("windows_cpu_time_total"):
        core, mode = s.label("core"), s.label("mode")
        if not core or mode not in CPU_MODES:
            continue
        v = to_fixed(s.value, PRECISION)
        if v is None:
            continue
        mx[f"cpu_core_{core}_{mode}_time"] = v
        mx[f"cpu_{mode}_time"] = mx.get(f"cpu_{mode}_time", 0) + v
        cores.add(core)

    for s in series.find_by_name("windows_cpu_cstate_seconds_total"):
        core, state = s.label("core"), s.label("state")
        if core in cores and state in ("c1", "c2", "c3"):
            _put(mx, f"cpu_core_{core}_cstate_{state}", s.value, PRECISION)

    for name, suffix in (("windows_cpu_interrupts_total", "interrupts"), ("windows_cpu_dpcs_total", "dpcs")):
        for s in series.find_by_name(name):
            core = s.label("core")
            if core in cores:
                _put(mx, f"cpu_core_{core}_{suffix}", s.value)

    if not cores:
        return
    for mode in CPU_MODES:
        mx.setdefault(f"cpu_{mode}_time", 0)
    for core in cores:
        disc.add(EntityClass.CORE, core)
    disc.add(EntityClass.COLLECTION, "cpu")


# memory

MEMORY_METRICS = {
    "windows_memory_available_bytes": "memory_available_bytes",
    "windows_memory_cache_bytes": "memory_cache_total",
    "windows_memory_cache_faults_total": "memory_cache_faults_total",
    "windows_memory_commit_limit": "memory_commit_limit",
    "windows_memory_committed_bytes": "memory_committed_bytes",
    "windows_memory_modified_page_list_bytes": "memory_modified_page_list_bytes",
    "windows_memory_page_faults_total": "memory_page_faults_total",
    "windows_memory_pool_nonpaged_bytes": "memory_pool_nonpaged_bytes_total",
    "windows_memory_pool_paged_bytes": "memory_pool_paged_bytes",
    "windows_memory_standby_cache_core_bytes": "memory_standby_cache_core_bytes",
    "windows_memory_standby_cache_normal_priority_bytes": "memory_standby_cache_normal_priority_bytes",
    "windows_memory_standby_cache_reserve_bytes": "memory_standby_cache_reserve_bytes",
    "windows_memory_swap_page_reads_total": "memory_swap_page_reads_total",
    "windows_memory_swap_page_writes_total": "memory_swap_page_writes_total",
    "windows_memory_swap_pages_read_total": "memory_swap_pages_read_total",
    "windows_memory_swap_pages_written_total": "memory_swap_pages_written_total",
}

_STANDBY = (
    "memory_standby_cache_core_bytes",
    "memory_standby_cache_normal_priority_bytes",
    "memory_standby_cache_reserve_bytes",
)


def collect_memory(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    found = False
    for s in series.find_by_names(*MEMORY_METRICS):
        found |= _put(mx, MEMORY_METRICS[s.name], s.value)
    if not found:
        return

    if "memory_commit_limit" in mx and "memory_committed_bytes" in mx:
        mx["memory_not_committed_bytes"] = mx["memory_commit_limit"] - mx["memory_committed_bytes"]
    if any(k in mx for k in _STANDBY):
        mx["memory_standby_cache_total"] = sum(mx.get(k, 0) for k in _STANDBY)
    for s in series.find_by_name("windows_os_visible_memory_bytes"):
        visible = to_fixed(s.value)
        if visible is not None and "memory_available_bytes" in mx:
            mx["memory_used_bytes"] = visible - mx["memory_available_bytes"]
    disc.add(EntityClass.COLLECTION, "memory")


# logical disks

LOGICAL_DISK_METRICS = {
    "windows_logical_disk_free_bytes": ("free_space", 1),
    "windows_logical_disk_size_bytes": ("total_space", 1),
    "windows_logical_disk_read_bytes_total": ("read_bytes_total", 1),
    "windows_logical_disk_write_bytes_total": ("write_bytes_total", 1),
    "windows_logical_disk_reads_total": ("reads_total", 1),
    "windows_logical_disk_writes_total": ("writes_total", 1),
    "windows_logical_disk_read_seconds_total": ("read_latency", PRECISION),
    "windows_logical_disk_write_seconds_total": ("write_latency", PRECISION),
}


def collect_logical_disk(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    volumes: set[str] = set()
    for s in series.find_by_names(*LOGICAL_DISK_METRICS):
        vol = s.label("volume")
        if not vol or vol == "_Total" or vol.startswith("HarddiskVolume"):
            continue
        suffix, mul = LOGICAL_DISK_METRICS[s.name]
        if _put(mx, f"logical_disk_{vol}_{suffix}", s.value, mul):
            volumes.add(vol)

    for vol in volumes:
        total = mx.get(f"logical_disk_{vol}_total_space")
        free = mx.get(f"logical_disk_{vol}_free_space")
        if total is not None and free is not None:
            mx[f"logical_disk_{vol}_used_space"] = total - free
        disc.add(EntityClass.VOLUME, vol)


# network interfaces

NET_METRICS = {
    "windows_net_bytes_received_total": "bytes_received",
    "windows_net_bytes_sent_total": "bytes_sent",
    "windows_net_packets_outbound_discarded_total": "packets_outbound_discarded",
    "windows_net_packets_outbound_errors_total": "packets_outbound_errors",
    "windows_net_packets_received_discarded_total": "packets_received_discarded",
    "windows_net_packets_received_errors_total": "packets_received_errors",
    "windows_net_packets_received_total": "packets_received_total",
    "windows_net_packets_sent_total": "packets_sent_total",
}


def collect_net(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    for s in series.find_by_names(*NET_METRICS):
        nic = clean_id(s.label("nic"))
        if not nic:
            continue
        if _put(mx, f"net_nic_{nic}_{NET_METRICS[s.name]}", s.value):
            disc.add(EntityClass.NIC, nic)


# os

OS_METRICS = {
    "windows_os_paging_free_bytes": "os_paging_free_bytes",
    "windows_os_paging_limit_bytes": "os_paging_limit_bytes",
    "windows_os_physical_memory_free_bytes": "os_physical_memory_free_bytes",
    "windows_os_visible_memory_bytes": "os_visible_memory_bytes",
    "windows_os_processes": "os_processes",
    "windows_os_processes_limit": "os_processes_limit",
    "windows_os_users": "os_users",
}


def collect_os(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    found = False
    for s in series.find_by_names(*OS_METRICS):
        found |= _put(mx, OS_METRICS[s.name], s.value)
    if not found:
        return
    if "os_paging_limit_bytes" in mx and "os_paging_free_bytes" in mx:
        mx["os_paging_used_bytes"] = mx["os_paging_limit_bytes"] - mx["os_paging_free_bytes"]
    if "os_visible_memory_bytes" in mx and "os_physical_memory_free_bytes" in mx:
        mx["os_visible_memory_used_bytes"] = mx["os_visible_memory_bytes"] - mx["os_physical_memory_free_bytes"]
    disc.add(EntityClass.COLLECTION, "os")


# system


def collect_system(series: Series, mx: dict[str, int], disc: Discovery, *, now: float) -> None:
    found = False
    for s in series.find_by_name("windows_system_threads"):
        found |= _put(mx, "system_threads", s.value)
    for s in series.find_by_name("windows_system_system_up_time"):
        found |= _put(mx, "system_up_time", now - s.value)
    if found:
        disc.add(EntityClass.COLLECTION, "system")


# tcp

TCP_METRICS = {
    "windows_tcp_connection_failures_total": "conns_failures",
    "windows_tcp_connections_active_total": "conns_active",
    "windows_tcp_connections_established": "conns_established",
    "windows_tcp_connections_passive_total": "conns_passive",
    "windows_tcp_connections_reset_total": "conns_resets",
    "windows_tcp_segments_received_total": "segments_received",
    "windows_tcp_segments_retransmitted_total": "segments_retransmitted",
    "windows_tcp_segments_sent_total": "segments_sent",
}


def collect_tcp(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    found = False
    for s in series.find_by_names(*TCP_METRICS):
        af = s.label("af")
        if af in ("ipv4", "ipv6"):
            found |= _put(mx, f"tcp_{af}_{TCP_METRICS[s.name]}", s.value)
    if found:
        disc.add(EntityClass.COLLECTION, "tcp")


# logon


def collect_logon(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    found = False
    for s in series.find_by_name("windows_logon_logon_type"):
        status = s.label("status")
        if status:
            found |= _put(mx, f"logon_type_{status}_sessions", s.value)
    if found:
        disc.add(EntityClass.COLLECTION, "logon")


# thermal zones

_TZ_PREFIX = "\\_TZ."


def collect_thermalzone(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    for s in series.find_by_name("windows_thermalzone_temperature_celsius"):
        zone = s.label("zone")
        if zone.startswith(_TZ_PREFIX):
            zone = zone[len(_TZ_PREFIX):]
        zone = clean_id(zone)
        if zone and _put(mx, f"thermalzone_{zone}_temperature", s.value):
            disc.add(EntityClass.THERMAL_ZONE, zone)


# processes

PROCESS_METRICS = {
    "windows_process_cpu_time_total": ("cpu_time", PRECISION),
    "windows_process_handles": ("handles", 1),
    "windows_process_io_bytes_total": ("io_bytes", 1),
    "windows_process_io_operations_total": ("io_operations", 1),
    "windows_process_page_faults_total": ("page_faults", 1),
    "windows_process_page_file_bytes": ("page_file_bytes", 1),
    "windows_process_threads": ("threads", 1),
    "windows_process_working_set_private_bytes": ("working_set_private_bytes", 1),
}


def collect_process(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    # several instances of one executable are summed into one dimension
    found = False
    for s in series.find_by_names(*PROCESS_METRICS):
        name = clean_id(s.label("process"))
        if not name or name == "Total":
            continue
        suffix, mul = PROCESS_METRICS[s.name]
        if _add(mx, f"process_{name}_{suffix}", s.value, mul):
            disc.add(EntityClass.PROCESS, name)
            found = True
    if found:
        disc.add(EntityClass.COLLECTION, "process")


# services


def collect_service(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    for metric, kind in (("windows_service_state", "state"), ("windows_service_status", "status")):
        for s in series.find_by_name(metric):
            name, value = clean_id(s.label("name")), s.label(kind)
            if not name or not value:
                continue
            if _put(mx, f"service_{name}_{kind}_{value.replace(' ', '_')}", s.value):
                disc.add(EntityClass.SERVICE, name)


# iis

IIS_METRICS = {
    "windows_iis_current_anonymous_users": "current_anonymous_users",
    "windows_iis_current_non_anonymous_users": "current_non_anonymous_users",
    "windows_iis_current_connections": "current_connections",
    "windows_iis_connection_attempts_all_instances_total": "connection_attempts_all_instances_total",
    "windows_iis_received_bytes_total": "received_bytes_total",
    "windows_iis_sent_bytes_total": "sent_bytes_total",
    "windows_iis_requests_total": "requests_total",
    "windows_iis_files_received_total": "files_received_total",
    "windows_iis_files_sent_total": "files_sent_total",
    "windows_iis_not_found_errors_total": "not_found_errors_total",
    "windows_iis_locked_errors_total": "locked_errors_total",
    "windows_iis_service_uptime": "service_uptime",
}


def collect_iis(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    for s in series.find_by_names(*IIS_METRICS):
        site = clean_id(s.label("site"))
        if not site or site == "Total":
            continue
        # requests_total is labeled per HTTP method
        if _add(mx, f"iis_website_{site}_{IIS_METRICS[s.name]}", s.value):
            disc.add(EntityClass.WEBSITE, site)


# mssql

MSSQL_INSTANCE_METRICS = {
    "windows_mssql_bufman_buffer_cache_hits": "bufman_buffer_cache_hits",
    "windows_mssql_bufman_page_life_expectancy_seconds": "bufman_page_life_expectancy_seconds",
    "windows_mssql_bufman_page_reads_total": "bufman_page_reads",
    "windows_mssql_bufman_page_writes_total": "bufman_page_writes",
    "windows_mssql_bufman_checkpoint_pages_total": "bufman_checkpoint_pages",
    "windows_mssql_genstats_user_connections": "user_connections",
    "windows_mssql_genstats_blocked_processes": "blocked_processes",
    "windows_mssql_sqlstats_batch_requests": "sqlstats_batch_requests",
    "windows_mssql_sqlstats_sql_compilations": "sqlstats_sql_compilations",
    "windows_mssql_sqlstats_sql_recompilations": "sqlstats_sql_recompilations",
    "windows_mssql_memmgr_connection_memory_bytes": "memmgr_connection_memory_bytes",
    "windows_mssql_memmgr_pending_memory_grants": "memmgr_pending_memory_grants",
}

MSSQL_DATABASE_METRICS = {
    "windows_mssql_databases_active_transactions": "active_transactions",
    "windows_mssql_databases_data_files_size_bytes": "data_files_size_bytes",
    "windows_mssql_databases_log_flushes_total": "log_flushes",
    "windows_mssql_databases_log_flushed_bytes_total": "log_flushed_bytes",
    "windows_mssql_databases_transactions_total": "transactions",
    "windows_mssql_databases_write_transactions_total": "write_transactions",
}


def collect_mssql(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    rejected: set[tuple[str, str]] = set()

    for s in series.find_by_names(*MSSQL_INSTANCE_METRICS):
        instance = s.label("mssql_instance")
        if instance and _put(mx, f"mssql_instance_{instance}_{MSSQL_INSTANCE_METRICS[s.name]}", s.value):
            disc.add(EntityClass.DB_INSTANCE, instance)

    for s in series.find_by_names(*MSSQL_DATABASE_METRICS):
        instance, db = s.label("mssql_instance"), s.label("database")
        if not instance or not db or db == "_Total":
            continue
        try:
            disc.add(EntityClass.DB_DATABASE, instance, db)
        except ValueError as e:
            if (instance, db) not in rejected:
                logger.warning("mssql: skipping database %r of instance %r: %s", db, instance, e)
                rejected.add((instance, db))
            continue
        _put(mx, f"mssql_db_{db}_instance_{instance}_{MSSQL_DATABASE_METRICS[s.name]}", s.value)


# active directory


def collect_ad(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    ad = series.find_by_prefix("windows_ad_")
    if not ad:
        return
    found = False
    for s in ad.find_by_name("windows_ad_binds_total"):
        found |= _add(mx, "ad_binds_total", s.value)
    for name in (
        "ad_ldap_searches_total",
        "ad_directory_service_threads",
        "ad_ldap_last_bind_time_seconds",
        "ad_replication_pending_synchronizations",
        "ad_replication_sync_requests_total",
    ):
        for s in ad.find_by_name("windows_" + name):
            found |= _put(mx, name, s.value)
    for name in ("ad_replication_data_intrasite_bytes_total", "ad_replication_data_intersite_bytes_total"):
        for s in ad.find_by_name("windows_" + name):
            direction = s.label("direction")
            if direction in ("inbound", "outbound"):
                found |= _put(mx, f"{name}_{direction}", s.value)
    if found:
        disc.add(EntityClass.COLLECTION, "ad")


# active directory certificate services

ADCS_METRICS = {
    "windows_adcs_requests_total": ("requests", 1),
    "windows_adcs_failed_requests_total": ("failed_requests", 1),
    "windows_adcs_issued_requests_total": ("issued_requests", 1),
    "windows_adcs_pending_requests_total": ("pending_requests", 1),
    "windows_adcs_request_processing_time_seconds": ("request_processing_time", PRECISION),
    "windows_adcs_retrievals_total": ("retrievals", 1),
    "windows_adcs_challenge_responses_total": ("challenge_responses", 1),
}


def collect_adcs(series: Series, mx: dict[str, int], disc: Discovery) -> None:
    for s in series.find_by_names(*ADCS_METRICS):
        tmpl = clean_id(s.label("cert_template"))
        if not tmpl:
            continue
        suffix, mul = ADCS_METRICS[s.name]
        if _put(mx, f"adcs_cert_template_{tmpl}_{suffix}", s.value, mul):
            disc.add(EntityClass.CERT_TEMPLATE, tmpl)


Family = Callable[[Series, dict, Discovery], None]

FAMILIES: list[tuple[str, Family]] = [
    ("collector", collect_collector),
    ("cpu", collect_cpu),
    ("memory", collect_memory),
    ("logical_disk", collect_logical_disk),
    ("net", collect_net),
    ("os", collect_os),
    ("tcp", collect_tcp),
    ("logon", collect_logon),
    ("thermalzone", collect_thermalzone),
    ("process", collect_process),
    ("service", collect_service),
    ("iis", collect_iis),
    ("mssql", collect_mssql),
    ("ad", collect_ad),
    ("adcs", collect_adcs),
]


def normalize(series: Series, *, now: float) -> Normalized:
    """Run every family normalizer over *series*.

    A family whose normalizer raises is dropped for this cycle; the other
    families are unaffected.
    """
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
