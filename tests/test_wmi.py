"""Tests for the wmi module against a recorded windows_exporter document."""

from pathlib import Path

import httpx
import pytest

from chartsync.config import WMIConfig
from chartsync.core.entities import Discovery, EntityClass
from chartsync.modules.wmi import WMI
from chartsync.modules.wmi import collect as wmi_collect
from chartsync.sources.prometheus import parse_text, series_from

TESTDATA = Path(__file__).parent / "testdata" / "wmi"
METRICS = (TESTDATA / "metrics.txt").read_text()

BOOT_TIME = 1658132431.5
NOW = BOOT_TIME + 12345.0

NIC = "Intel_R_PRO_1000_MT_Network_Connection"


def _responder(*bodies: str, status: int = 200):
    """Serve *bodies* in turn, repeating the last one."""
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        body = bodies[min(calls["n"], len(bodies) - 1)]
        calls["n"] += 1
        return httpx.Response(status, text=body)

    return handler


def _module(handler) -> WMI:
    wmi = WMI(
        WMIConfig(url="http://127.0.0.1:9182/metrics"),
        transport=httpx.MockTransport(handler),
        clock=lambda: NOW,
    )
    assert wmi.init()
    return wmi


def _cpu_core(core: str, k: int) -> dict[str, int]:
    return {
        f"cpu_core_{core}_dpc_time": 10500 + 1000 * k,
        f"cpu_core_{core}_idle_time": 1000250 + 1000 * k,
        f"cpu_core_{core}_interrupt_time": 5125 + 1000 * k,
        f"cpu_core_{core}_privileged_time": 100750 + 1000 * k,
        f"cpu_core_{core}_user_time": 200500 + 1000 * k,
        f"cpu_core_{core}_cstate_c1": 50500 + 1000 * k,
        f"cpu_core_{core}_cstate_c2": 0,
        f"cpu_core_{core}_cstate_c3": 0,
        f"cpu_core_{core}_interrupts": 1000 + 10 * k,
        f"cpu_core_{core}_dpcs": 300 + k,
    }


def _service(name: str, state: str, status: str) -> dict[str, int]:
    mx = {}
    for s in ("continue_pending", "pause_pending", "paused", "running", "start_pending", "stop_pending", "stopped", "unknown"):
        mx[f"service_{name}_state_{s}"] = int(s == state)
    for s in ("degraded", "error", "lost_comm", "no_contact", "nonrecover", "ok", "pred_fail", "service", "starting", "stopping", "stressed", "unknown"):
        mx[f"service_{name}_status_{s}"] = int(s == status)
    return mx


EXPECTED = {
    "collector_cpu_duration": 500,
    "collector_cpu_status_fail": 0,
    "collector_cpu_status_success": 1,
    "collector_logical_disk_duration": 250,
    "collector_logical_disk_status_fail": 0,
    "collector_logical_disk_status_success": 1,
    "collector_memory_duration": 125,
    "collector_memory_status_fail": 0,
    "collector_memory_status_success": 1,
    "collector_net_duration": 62,
    "collector_net_status_fail": 0,
    "collector_net_status_success": 1,
    "collector_os_duration": 31,
    "collector_os_status_fail": 0,
    "collector_os_status_success": 1,
    "collector_service_duration": 1500,
    "collector_service_status_fail": 0,
    "collector_service_status_success": 1,
    "collector_system_duration": 750,
    "collector_system_status_fail": 0,
    "collector_system_status_success": 1,
    "collector_tcp_duration": 375,
    "collector_tcp_status_fail": 0,
    "collector_tcp_status_success": 1,
    "cpu_dpc_time": 48000,
    "cpu_idle_time": 4007000,
    "cpu_interrupt_time": 26500,
    "cpu_privileged_time": 409000,
    "cpu_user_time": 808000,
    **_cpu_core("0,0", 0),
    **_cpu_core("0,1", 1),
    **_cpu_core("0,2", 2),
    **_cpu_core("0,3", 3),
    "logical_disk_C:_free_space": 40000000000,
    "logical_disk_C:_total_space": 100000000000,
    "logical_disk_C:_used_space": 60000000000,
    "logical_disk_C:_read_bytes_total": 1000000,
    "logical_disk_C:_write_bytes_total": 2000000,
    "logical_disk_C:_reads_total": 3000,
    "logical_disk_C:_writes_total": 4000,
    "logical_disk_C:_read_latency": 12500,
    "logical_disk_C:_write_latency": 20250,
    "memory_available_bytes": 1073741824,
    "memory_cache_faults_total": 1500,
    "memory_cache_total": 52428800,
    "memory_commit_limit": 4294967296,
    "memory_committed_bytes": 2147483648,
    "memory_modified_page_list_bytes": 10485760,
    "memory_not_committed_bytes": 2147483648,
    "memory_page_faults_total": 250000,
    "memory_pool_nonpaged_bytes_total": 104857600,
    "memory_pool_paged_bytes": 209715200,
    "memory_standby_cache_core_bytes": 1048576,
    "memory_standby_cache_normal_priority_bytes": 2097152,
    "memory_standby_cache_reserve_bytes": 4194304,
    "memory_standby_cache_total": 7340032,
    "memory_swap_page_reads_total": 700,
    "memory_swap_page_writes_total": 300,
    "memory_swap_pages_read_total": 1400,
    "memory_swap_pages_written_total": 600,
    "memory_used_bytes": 3221225472,
    f"net_nic_{NIC}_bytes_received": 1000,
    f"net_nic_{NIC}_bytes_sent": 2000,
    f"net_nic_{NIC}_packets_outbound_discarded": 0,
    f"net_nic_{NIC}_packets_outbound_errors": 1,
    f"net_nic_{NIC}_packets_received_discarded": 2,
    f"net_nic_{NIC}_packets_received_errors": 3,
    f"net_nic_{NIC}_packets_received_total": 40,
    f"net_nic_{NIC}_packets_sent_total": 50,
    "os_paging_free_bytes": 805306368,
    "os_paging_limit_bytes": 1073741824,
    "os_paging_used_bytes": 268435456,
    "os_physical_memory_free_bytes": 1073741824,
    "os_processes": 150,
    "os_processes_limit": 4294967295,
    "os_users": 2,
    "os_visible_memory_bytes": 4294967296,
    "os_visible_memory_used_bytes": 3221225472,
    **_service("dhcp", "running", "ok"),
    "system_threads": 1500,
    "system_up_time": 12345,
    "tcp_ipv4_conns_active": 20,
    "tcp_ipv4_conns_established": 5,
    "tcp_ipv4_conns_failures": 10,
    "tcp_ipv4_conns_passive": 30,
    "tcp_ipv4_conns_resets": 40,
    "tcp_ipv4_segments_received": 5000,
    "tcp_ipv4_segments_retransmitted": 6,
    "tcp_ipv4_segments_sent": 7000,
    "tcp_ipv6_conns_active": 2,
    "tcp_ipv6_conns_established": 0,
    "tcp_ipv6_conns_failures": 1,
    "tcp_ipv6_conns_passive": 3,
    "tcp_ipv6_conns_resets": 4,
    "tcp_ipv6_segments_received": 500,
    "tcp_ipv6_segments_retransmitted": 0,
    "tcp_ipv6_segments_sent": 700,
}

FIXED_CHARTS = {
    "cpu_utilization_total",
    "memory_utilization",
    "memory_page_faults",
    "memory_swap_utilization",
    "memory_swap_operations",
    "memory_swap_pages",
    "memory_cached",
    "memory_cache_faults",
    "memory_system_pool",
    "memory_standby_cache",
    "memory_modified_page_list",
    "os_processes",
    "os_users",
    "os_visible_memory_usage",
    "os_paging_files_usage",
    "system_threads",
    "system_uptime",
    "tcp_conns_established",
    "tcp_conns_active",
    "tcp_conns_passive",
    "tcp_conns_failures",
    "tcp_conns_resets",
    "tcp_segments_received",
    "tcp_segments_sent",
    "tcp_segments_retransmitted",
}


def _entity_charts() -> set[str]:
    ids = set()
    for c in ("cpu", "logical_disk", "memory", "net", "os", "service", "system", "tcp"):
        ids |= {f"collector_{c}_duration", f"collector_{c}_status"}
    for core in ("0,0", "0,1", "0,2", "0,3"):
        ids |= {f"cpu_core_{core}_{s}" for s in ("utilization", "interrupts", "dpcs", "cpu_cstate")}
    ids |= {f"logical_disk_C:_{s}" for s in ("space_usage", "bandwidth", "operations", "latency")}
    ids |= {f"nic_{NIC}_{s}" for s in ("bandwidth", "packets", "errors", "discarded")}
    ids |= {"service_dhcp_state", "service_dhcp_status"}
    return ids


def _disk_lines(volume: str) -> str:
    lines = [
        f'windows_logical_disk_free_bytes{{volume="{volume}"}} 1e+10',
        f'windows_logical_disk_size_bytes{{volume="{volume}"}} 5e+10',
        f'windows_logical_disk_read_bytes_total{{volume="{volume}"}} 100',
        f'windows_logical_disk_write_bytes_total{{volume="{volume}"}} 200',
        f'windows_logical_disk_reads_total{{volume="{volume}"}} 3',
        f'windows_logical_disk_writes_total{{volume="{volume}"}} 4',
        f'windows_logical_disk_read_seconds_total{{volume="{volume}"}} 0.5',
        f'windows_logical_disk_write_seconds_total{{volume="{volume}"}} 0.25',
    ]
    return "\n".join(lines) + "\n"


def _assert_dims_covered(wmi: WMI, mx: dict[str, int]) -> None:
    for chart in wmi.charts():
        if chart.obsolete:
            continue
        for dim in chart.dims:
            assert dim.id in mx, f"chart '{chart.id}' dim '{dim.id}' has no value"
        for var in chart.vars:
            assert var.id in mx, f"chart '{chart.id}' var '{var.id}' has no value"


# ---------------------------------------------------------------------------
# Scenario A: full document
# ---------------------------------------------------------------------------


def test_collect_metrics():
    wmi = _module(_responder(METRICS))
    mx = wmi.collect()
    assert mx == EXPECTED


def test_collect_charts():
    wmi = _module(_responder(METRICS))
    wmi.collect()
    assert set(wmi.charts().ids()) == FIXED_CHARTS | _entity_charts()


def test_collect_registry():
    wmi = _module(_responder(METRICS))
    wmi.collect()
    snap = wmi.registry.snapshot()
    assert snap[EntityClass.CORE] == {("0,0",), ("0,1",), ("0,2",), ("0,3",)}
    assert snap[EntityClass.VOLUME] == {("C:",)}
    assert snap[EntityClass.NIC] == {(NIC,)}
    assert snap[EntityClass.SERVICE] == {("dhcp",)}
    assert snap[EntityClass.COLLECTION] == {("cpu",), ("memory",), ("os",), ("system",), ("tcp",)}
    assert len(snap[EntityClass.SUB_COLLECTOR]) == 8


def test_dimension_coverage():
    wmi = _module(_responder(METRICS))
    mx = wmi.collect()
    _assert_dims_covered(wmi, mx)


def test_check():
    wmi = _module(_responder(METRICS))
    assert wmi.check() is True


def test_chart_labels_and_dims():
    wmi = _module(_responder(METRICS))
    wmi.collect()
    chart = wmi.charts().get("logical_disk_C:_space_usage")
    assert chart.labels == {"disk": "C:"}
    assert [d.id for d in chart.dims] == ["logical_disk_C:_free_space", "logical_disk_C:_used_space"]
    assert [v.id for v in chart.vars] == ["logical_disk_C:_total_space"]
    assert chart.title == "Space usage C:"


# ---------------------------------------------------------------------------
# Scenarios B, C, D: failed cycles
# ---------------------------------------------------------------------------


def test_collect_invalid_payload():
    wmi = _module(_responder("hello and\n goodbye"))
    assert wmi.collect() is None
    assert wmi.check() is False
    assert len(wmi.charts()) == 0
    assert len(wmi.registry) == 0


def test_collect_connection_refused():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    wmi = _module(handler)
    assert wmi.collect() is None
    assert len(wmi.registry) == 0
    assert len(wmi.charts()) == 0


def test_collect_404():
    wmi = _module(_responder("not found", status=404))
    assert wmi.collect() is None
    assert len(wmi.charts()) == 0


def test_failed_cycle_after_success_keeps_state():
    bodies = iter([METRICS, "hello and\n goodbye"])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=next(bodies))

    wmi = _module(handler)
    assert wmi.collect()
    charts_before = wmi.charts().ids()
    registry_before = wmi.registry.snapshot()

    assert wmi.collect() is None
    assert wmi.charts().ids() == charts_before
    assert wmi.registry.snapshot() == registry_before


# ---------------------------------------------------------------------------
# Scenario E: a new volume appears
# ---------------------------------------------------------------------------


def test_new_volume_is_added():
    wmi = _module(_responder(METRICS, METRICS + _disk_lines("D:")))
    wmi.collect()
    first = {c.id: c.copy() for c in wmi.charts()}

    mx = wmi.collect()
    assert mx["logical_disk_D:_used_space"] == 40000000000
    assert mx["logical_disk_D:_read_latency"] == 500

    ids = set(wmi.charts().ids())
    assert ids - set(first) == {f"logical_disk_D:_{s}" for s in ("space_usage", "bandwidth", "operations", "latency")}
    for chart_id, chart in first.items():
        assert wmi.charts().get(chart_id) == chart
    assert wmi.registry.snapshot()[EntityClass.VOLUME] == {("C:",), ("D:",)}
    _assert_dims_covered(wmi, mx)


def test_second_identical_cycle_is_noop():
    wmi = _module(_responder(METRICS))
    wmi.collect()
    charts_before = [c.copy() for c in wmi.charts()]

    wmi.collect()
    assert list(wmi.charts()) == charts_before
    assert all(not r.created for r in wmi.last_sync.values())


def test_vanished_volume_keeps_charts():
    wmi = _module(_responder(METRICS + _disk_lines("D:"), METRICS))
    wmi.collect()
    mx = wmi.collect()

    assert "logical_disk_D:_free_space" not in mx
    assert wmi.charts().has("logical_disk_D:_space_usage")
    assert not wmi.charts().get("logical_disk_D:_space_usage").obsolete
    assert ("D:",) in wmi.registry.known(EntityClass.VOLUME)


# ---------------------------------------------------------------------------
# normalizer details
# ---------------------------------------------------------------------------


def test_memory_charts_without_os_family():
    body = "".join(line for line in METRICS.splitlines(keepends=True) if "windows_os_" not in line)
    wmi = _module(_responder(body))
    mx = wmi.collect()

    assert "memory_used_bytes" not in mx
    assert "memory_page_faults_total" in mx
    memory = [c.id for c in wmi.charts() if c.id.startswith("memory_")]
    assert "memory_page_faults" in memory
    assert "memory_utilization" not in memory
    assert ("memory",) in wmi.registry.known(EntityClass.COLLECTION)
    assert ("os",) not in wmi.registry.known(EntityClass.COLLECTION)
    assert wmi.last_sync[EntityClass.COLLECTION].failed == []
    _assert_dims_covered(wmi, mx)


def test_harddisk_volumes_are_skipped():
    mx = wmi_collect.normalize(parse_text(METRICS), now=NOW).metrics
    assert not [k for k in mx if "HarddiskVolume" in k]


def test_thermalzone_prefix_is_stripped():
    series = series_from([
        ("windows_thermalzone_temperature_celsius", {"zone": "\\_TZ.THRM"}, 40.5),
    ])
    out = wmi_collect.normalize(series, now=NOW)
    assert out.metrics == {"thermalzone_THRM_temperature": 40}
    assert (EntityClass.THERMAL_ZONE, ("THRM",)) in out.discovery


def test_active_directory_family():
    series = series_from([
        ("windows_ad_binds_total", {"bind_method": "ldap"}, 100),
        ("windows_ad_binds_total", {"bind_method": "ntlm"}, 20),
        ("windows_ad_ldap_searches_total", {}, 300),
        ("windows_ad_replication_data_intrasite_bytes_total", {"direction": "inbound"}, 4096),
        ("windows_ad_replication_data_intrasite_bytes_total", {"direction": "sideways"}, 1),
        ("windows_cs_logical_processors", {}, 4),
    ])
    mx, disc = {}, Discovery()
    wmi_collect.collect_ad(series, mx, disc)
    assert mx == {
        "ad_binds_total": 120,
        "ad_ldap_searches_total": 300,
        "ad_replication_data_intrasite_bytes_total_inbound": 4096,
    }
    assert (EntityClass.COLLECTION, ("ad",)) in disc


def test_active_directory_family_absent():
    mx, disc = {}, Discovery()
    wmi_collect.collect_ad(parse_text(METRICS), mx, disc)
    assert mx == {}
    assert len(disc) == 0


def test_processes_are_summed_by_name():
    series = series_from([
        ("windows_process_threads", {"process": "svchost", "process_id": "1"}, 10),
        ("windows_process_threads", {"process": "svchost", "process_id": "2"}, 5),
        ("windows_process_cpu_time_total", {"process": "svchost", "process_id": "1", "mode": "user"}, 1.5),
        ("windows_process_cpu_time_total", {"process": "svchost", "process_id": "1", "mode": "privileged"}, 0.25),
    ])
    out = wmi_collect.normalize(series, now=NOW)
    assert out.metrics == {"process_svchost_threads": 15, "process_svchost_cpu_time": 1750}
    assert (EntityClass.PROCESS, ("svchost",)) in out.discovery
    assert (EntityClass.COLLECTION, ("process",)) in out.discovery


def test_process_dims_added_to_fixed_charts():
    series = series_from([
        ("windows_process_" + name, {"process": proc}, 1)
        for proc in ("msedge", "lsass")
        for name in (
            "cpu_time_total",
            "handles",
            "io_bytes_total",
            "io_operations_total",
            "page_faults_total",
            "page_file_bytes",
            "threads",
            "working_set_private_bytes",
        )
    ])
    wmi = WMI(WMIConfig(url="http://127.0.0.1:9182/metrics"))
    normalized = wmi.normalize(series)
    wmi._synchronizer.sync_all(normalized.discovery, normalized.metrics)

    chart = wmi.charts().get("processes_threads")
    assert [d.id for d in chart.dims] == ["process_lsass_threads", "process_msedge_threads"]
    assert [d.name for d in chart.dims] == ["lsass", "msedge"]
    assert len(wmi.charts()) == 8


def test_iis_requests_are_summed_over_methods():
    series = series_from([
        ("windows_iis_requests_total", {"site": "Default Web Site", "method": "GET"}, 10),
        ("windows_iis_requests_total", {"site": "Default Web Site", "method": "POST"}, 5),
    ])
    out = wmi_collect.normalize(series, now=NOW)
    assert out.metrics == {"iis_website_Default_Web_Site_requests_total": 15}


def test_mssql_database_keys():
    series = series_from([
        ("windows_mssql_databases_active_transactions", {"mssql_instance": "SQLEXPRESS", "database": "master"}, 3),
        ("windows_mssql_databases_active_transactions", {"mssql_instance": "SQLEXPRESS", "database": "odd:name"}, 1),
    ])
    out = wmi_collect.normalize(series, now=NOW)
    assert out.metrics == {"mssql_db_master_instance_SQLEXPRESS_active_transactions": 3}
    assert out.discovery.seen(EntityClass.DB_DATABASE) == {("SQLEXPRESS", "master")}


def test_mssql_counters_without_total_suffix():
    text = (
        "# HELP windows_mssql_sqlstats_batch_requests (SQLStatistics.BatchRequests)\n"
        "# TYPE windows_mssql_sqlstats_batch_requests counter\n"
        'windows_mssql_sqlstats_batch_requests{mssql_instance="SQLEXPRESS"} 2103\n'
    )
    out = wmi_collect.normalize(parse_text(text), now=NOW)
    assert out.metrics == {"mssql_instance_SQLEXPRESS_sqlstats_batch_requests": 2103}


def test_failing_family_is_dropped(monkeypatch):
    def broken(series, mx, disc):
        mx["cpu_garbage"] = 1
        raise RuntimeError("boom")

    families = [(name, broken if name == "cpu" else fn) for name, fn in wmi_collect.FAMILIES]
    monkeypatch.setattr(wmi_collect, "FAMILIES", families)

    out = wmi_collect.normalize(parse_text(METRICS), now=NOW)
    assert "cpu_garbage" not in out.metrics
    assert "cpu_user_time" not in out.metrics
    assert out.metrics["memory_used_bytes"] == 3221225472
    assert not out.discovery.seen(EntityClass.CORE)


def test_partial_tcp_family_fails_only_its_charts():
    text = METRICS.replace('{af="ipv6"}', '{af="ipv7"}')
    wmi = _module(_responder(text))
    mx = wmi.collect()

    assert mx is not None
    assert not wmi.charts().has("tcp_conns_established")
    assert wmi.charts().has("system_threads")
    failed = wmi.last_sync[EntityClass.COLLECTION].failed
    assert [e.key for e in failed] == [("tcp",)]


@pytest.mark.parametrize("url", ["", "ftp://host/metrics"])
def test_init_rejects_bad_url(url):
    wmi = WMI(WMIConfig(url=url))
    assert wmi.init() is False
