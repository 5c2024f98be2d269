"""Tests for the collection cycle of the module base class."""

from chartsync.core.charts import Chart, Dim
from chartsync.core.entities import EntityClass
from chartsync.core.module import Module, Normalized
from chartsync.core.templates import ChartTemplate, TemplateCatalog
from chartsync.errors import BadPayloadError, ConfigError, TransportError


class FakeModule(Module):
    """Serves queued raw payloads: a dict of disk -> used bytes, or an exception."""

    name = "fake"

    def __init__(self, payloads, **kwargs):
        super().__init__(None, **kwargs)
        self.payloads = list(payloads)
        self.cleaned = False
        self.fail_validation = False

    def build_catalog(self):
        catalog = TemplateCatalog()
        catalog.register(EntityClass.VOLUME, [ChartTemplate(Chart(
            id="disk_{disk}_used",
            title="Used {disk}",
            units="bytes",
            fam="disk",
            ctx="disk.used",
            dims=[Dim(id="disk_{disk}_used")],
        ), params=("disk",))])
        return catalog

    def validate_config(self):
        if self.fail_validation:
            raise ConfigError("'url' can not be empty")

    def fetch(self):
        payload = self.payloads.pop(0)
        if isinstance(payload, Exception):
            raise payload
        return payload

    def normalize(self, raw):
        if raw == "garbage":
            raise BadPayloadError("cannot decode")
        out = Normalized()
        for disk, used in raw.items():
            out.metrics[f"disk_{disk}_used"] = used
            out.discovery.add(EntityClass.VOLUME, disk)
        return out

    def cleanup(self):
        self.cleaned = True


def test_collect_returns_snapshot_and_creates_charts():
    mod = FakeModule([{"C:": 10}])
    assert mod.collect() == {"disk_C:_used": 10}
    assert mod.charts().ids() == ["disk_C:_used"]
    assert mod.last_sync[EntityClass.VOLUME].created == [("C:",)]


def test_collect_empty_snapshot_is_none():
    mod = FakeModule([{}])
    assert mod.collect() is None


def test_transport_error_leaves_state_untouched():
    mod = FakeModule([{"C:": 10}, TransportError("connection refused"), {"C:": 11, "D:": 1}])
    mod.collect()
    charts_before = mod.charts().ids()
    registry_before = mod.registry.snapshot()

    assert mod.collect() is None
    assert mod.charts().ids() == charts_before
    assert mod.registry.snapshot() == registry_before

    assert mod.collect() == {"disk_C:_used": 11, "disk_D:_used": 1}
    assert mod.charts().ids() == ["disk_C:_used", "disk_D:_used"]


def test_bad_payload_leaves_state_untouched():
    mod = FakeModule(["garbage"])
    assert mod.collect() is None
    assert len(mod.charts()) == 0
    assert len(mod.registry) == 0


def test_check():
    assert FakeModule([{"C:": 1}]).check() is True
    assert FakeModule([TransportError("timeout")]).check() is False


def test_init_reports_config_error(caplog):
    mod = FakeModule([], job_name="local")
    mod.fail_validation = True
    assert mod.init() is False
    assert "config validation" in caplog.text
    assert mod.logger.name == "chartsync.modules.fake.local"


def test_job_name_defaults_to_module_name():
    assert FakeModule([]).job_name == "fake"
