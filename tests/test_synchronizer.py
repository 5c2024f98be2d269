"""Tests for the chart synchronizer and the entity registry."""

import logging

from chartsync.core.charts import Chart, Charts, Dim
from chartsync.core.entities import Discovery, EntityClass
from chartsync.core.registry import EntityRegistry
from chartsync.core.synchronizer import ChartSynchronizer
from chartsync.core.templates import ChartTemplate, DimsTemplate, TemplateCatalog, VanishPolicy


def _template(chart_id: str, *dims: str, optional: bool = False, param: str = "disk") -> ChartTemplate:
    return ChartTemplate(
        Chart(id=chart_id, title=chart_id, units="n", fam="f", ctx="c." + chart_id, dims=[Dim(id=d) for d in dims]),
        params=(param,),
        optional=optional,
    )


def _catalog() -> TemplateCatalog:
    catalog = TemplateCatalog()
    catalog.register_collection("processes", [
        Chart(id="processes_threads", title="Threads", units="n", fam="p", ctx="p.threads"),
    ])
    catalog.register(EntityClass.VOLUME, [
        _template("disk_{disk}_io", "disk_{disk}_reads", "disk_{disk}_writes"),
        _template("disk_{disk}_space", "disk_{disk}_free", "disk_{disk}_used"),
        _template("disk_{disk}_latency", "disk_{disk}_latency", optional=True),
    ])
    catalog.register(EntityClass.PROCESS, [
        DimsTemplate("processes_threads", [Dim(id="process_{process}_threads", name="{process}")], params=("process",)),
    ])
    catalog.register(EntityClass.NTP_PEER, [
        _template("peer_{peer}_offset", "peer_{peer}_offset", param="peer"),
    ], vanish=VanishPolicy.OBSOLETE)
    return catalog


def _sync():
    charts, registry = Charts(), EntityRegistry()
    return charts, registry, ChartSynchronizer(charts, registry, _catalog())


def _disk_mx(*disks: str) -> dict[str, int]:
    mx = {}
    for d in disks:
        mx.update({f"disk_{d}_reads": 1, f"disk_{d}_writes": 2, f"disk_{d}_free": 3, f"disk_{d}_used": 4})
    return mx


def test_sync_creates_all_charts_of_new_entities():
    charts, registry, sync = _sync()
    result = sync.sync(EntityClass.VOLUME, {("D:",), ("C:",)}, _disk_mx("C:", "D:"))

    assert result.created == [("C:",), ("D:",)]
    assert not result.failed
    assert charts.ids() == ["disk_C:_io", "disk_C:_space", "disk_D:_io", "disk_D:_space"]
    assert registry.known(EntityClass.VOLUME) == {("C:",), ("D:",)}


def test_sync_is_idempotent():
    charts, registry, sync = _sync()
    mx = _disk_mx("C:")
    sync.sync(EntityClass.VOLUME, {("C:",)}, mx)
    before = [c.copy() for c in charts]

    result = sync.sync(EntityClass.VOLUME, {("C:",)}, mx)
    assert not result.changed
    assert list(charts) == before


def test_sync_registry_grows_monotonically():
    charts, registry, sync = _sync()
    cycles = [{("C:",)}, {("D:",)}, {("C:",), ("E:",)}, set()]
    union = set()
    for seen in cycles:
        sync.sync(EntityClass.VOLUME, seen, _disk_mx(*(k[0] for k in seen)))
        union |= seen
        assert registry.known(EntityClass.VOLUME) == union


def test_missing_dimension_fails_whole_entity():
    charts, registry, sync = _sync()
    mx = _disk_mx("C:", "D:")
    del mx["disk_D:_used"]

    result = sync.sync(EntityClass.VOLUME, {("C:",), ("D:",)}, mx)
    assert result.created == [("C:",)]
    assert [e.key for e in result.failed] == [("D:",)]
    assert "disk_D:_used" in str(result.failed[0])
    # no partial charts of D:
    assert not [i for i in charts.ids() if i.startswith("disk_D:")]
    assert not registry.is_materialized(EntityClass.VOLUME, ("D:",))


def test_failed_entity_is_retried(caplog):
    charts, registry, sync = _sync()
    with caplog.at_level(logging.WARNING):
        result = sync.sync(EntityClass.VOLUME, {("C:",)}, {"disk_C:_reads": 1})
    assert result.failed
    assert "entity 'C:'" in caplog.text

    result = sync.sync(EntityClass.VOLUME, {("C:",)}, _disk_mx("C:"))
    assert result.created == [("C:",)]
    assert charts.has("disk_C:_space")


def test_optional_chart_is_skipped_without_data():
    charts, registry, sync = _sync()
    mx = _disk_mx("C:", "D:")
    mx["disk_D:_latency"] = 5
    sync.sync(EntityClass.VOLUME, {("C:",), ("D:",)}, mx)

    assert not charts.has("disk_C:_latency")
    assert charts.has("disk_D:_latency")
    assert registry.is_materialized(EntityClass.VOLUME, ("C:",))


def test_duplicate_chart_fails_entity():
    charts, registry, sync = _sync()
    charts.add(Chart(id="disk_C:_space", title="", units="", fam="", ctx=""))

    result = sync.sync(EntityClass.VOLUME, {("C:",)}, _disk_mx("C:"))
    assert [e.key for e in result.failed] == [("C:",)]
    assert charts.ids() == ["disk_C:_space"]


def test_dims_template_needs_target_chart():
    charts, registry, sync = _sync()
    result = sync.sync(EntityClass.PROCESS, {("lsass",)}, {"process_lsass_threads": 10})
    assert [e.key for e in result.failed] == [("lsass",)]
    assert "processes_threads" in result.failed[0].reason


def test_sync_all_runs_fixed_charts_before_dims():
    charts, registry, sync = _sync()
    disc = Discovery()
    disc.add(EntityClass.PROCESS, "svchost")
    disc.add(EntityClass.PROCESS, "lsass")
    disc.add(EntityClass.COLLECTION, "processes")
    mx = {"process_svchost_threads": 10, "process_lsass_threads": 4}

    results = sync.sync_all(disc, mx)
    assert results[EntityClass.COLLECTION].created == [("processes",)]
    assert results[EntityClass.PROCESS].created == [("lsass",), ("svchost",)]
    assert [d.id for d in charts.get("processes_threads").dims] == ["process_lsass_threads", "process_svchost_threads"]

    sync.sync_all(disc, mx)
    assert len(charts.get("processes_threads").dims) == 2


def test_sync_all_reports_unregistered_classes():
    charts, registry, sync = _sync()
    disc = Discovery()
    disc.add(EntityClass.GPU, "GPU-1")
    results = sync.sync_all(disc, {})
    assert [e.key for e in results[EntityClass.GPU].failed] == [("GPU-1",)]


def test_obsolete_policy_marks_and_revives():
    charts, registry, sync = _sync()
    mx = {"peer_10.0.0.1_offset": 1, "peer_10.0.0.2_offset": 2}
    sync.sync(EntityClass.NTP_PEER, {("10.0.0.1",), ("10.0.0.2",)}, mx)

    result = sync.sync(EntityClass.NTP_PEER, {("10.0.0.1",)}, {"peer_10.0.0.1_offset": 1})
    assert result.obsoleted == [("10.0.0.2",)]
    assert charts.get("peer_10.0.0.2_offset").obsolete
    assert not charts.get("peer_10.0.0.1_offset").obsolete
    assert registry.is_materialized(EntityClass.NTP_PEER, ("10.0.0.2",))

    # already obsolete: nothing to report
    result = sync.sync(EntityClass.NTP_PEER, {("10.0.0.1",)}, {"peer_10.0.0.1_offset": 1})
    assert not result.changed

    result = sync.sync(EntityClass.NTP_PEER, {("10.0.0.1",), ("10.0.0.2",)}, mx)
    assert result.revived == [("10.0.0.2",)]
    assert result.created == []
    assert not charts.get("peer_10.0.0.2_offset").obsolete


def test_keep_policy_leaves_vanished_charts():
    charts, registry, sync = _sync()
    sync.sync(EntityClass.VOLUME, {("C:",)}, _disk_mx("C:"))
    result = sync.sync(EntityClass.VOLUME, set(), {})
    assert not result.changed
    assert not any(c.obsolete for c in charts)


def test_collection_optional_chart_is_skipped_without_data():
    catalog = TemplateCatalog()
    catalog.register_collection("memory", [
        Chart(id="memory_utilization", title="", units="", fam="", ctx="", dims=[Dim(id="memory_used_bytes")]),
        Chart(id="memory_page_faults", title="", units="", fam="", ctx="", dims=[Dim(id="memory_page_faults")]),
    ], optional=["memory_utilization"])
    charts, registry = Charts(), EntityRegistry()
    sync = ChartSynchronizer(charts, registry, catalog)

    result = sync.sync(EntityClass.COLLECTION, {("memory",)}, {"memory_page_faults": 10})
    assert result.created == [("memory",)]
    assert not result.failed
    assert charts.ids() == ["memory_page_faults"]
