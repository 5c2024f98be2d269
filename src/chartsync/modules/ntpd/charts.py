"""System and per-peer chart templates of the ntpd module."""

from __future__ import annotations

from ...core.charts import Chart, Dim
from ...core.entities import EntityClass
from ...core.templates import ChartTemplate, TemplateCatalog, VanishPolicy
from .collect import PRECISION

PRIO_SYSTEM = 1000
PRIO_PEER = 2000

system_charts = [
    Chart(
        id="sys_offset",
        title="Combined offset of server relative to this host",
        units="milliseconds",
        fam="system",
        ctx="ntpd.sys_offset",
        type="area",
        priority=PRIO_SYSTEM,
        dims=[Dim(id="offset", name="offset", div=PRECISION)],
    ),
    Chart(
        id="sys_jitter",
        title="Combined system jitter and clock jitter",
        units="milliseconds",
        fam="system",
        ctx="ntpd.sys_jitter",
        priority=PRIO_SYSTEM + 1,
        dims=[
            Dim(id="sys_jitter", name="system", div=PRECISION),
            Dim(id="clk_jitter", name="clock", div=PRECISION),
        ],
    ),
    Chart(
        id="sys_frequency",
        title="Frequency offset relative to hardware clock",
        units="ppm",
        fam="system",
        ctx="ntpd.sys_frequency",
        type="area",
        priority=PRIO_SYSTEM + 2,
        dims=[Dim(id="frequency", name="frequency", div=PRECISION)],
    ),
    Chart(
        id="sys_wander",
        title="Clock frequency wander",
        units="ppm",
        fam="system",
        ctx="ntpd.sys_wander",
        type="area",
        priority=PRIO_SYSTEM + 3,
        dims=[Dim(id="clk_wander", name="clock", div=PRECISION)],
    ),
    Chart(
        id="sys_rootdelay",
        title="Total roundtrip delay to the primary reference clock",
        units="milliseconds",
        fam="system",
        ctx="ntpd.sys_rootdelay",
        type="area",
        priority=PRIO_SYSTEM + 4,
        dims=[Dim(id="rootdelay", name="delay", div=PRECISION)],
    ),
    Chart(
        id="sys_rootdisp",
        title="Total root dispersion to the primary reference clock",
        units="milliseconds",
        fam="system",
        ctx="ntpd.sys_rootdisp",
        type="area",
        priority=PRIO_SYSTEM + 5,
        dims=[Dim(id="rootdisp", name="dispersion", div=PRECISION)],
    ),
    Chart(
        id="sys_stratum",
        title="Stratum",
        units="stratum",
        fam="system",
        ctx="ntpd.sys_stratum",
        priority=PRIO_SYSTEM + 6,
        dims=[Dim(id="stratum", name="stratum")],
    ),
    Chart(
        id="sys_tc",
        title="Time constant and poll exponent",
        units="log2",
        fam="system",
        ctx="ntpd.sys_tc",
        priority=PRIO_SYSTEM + 7,
        dims=[
            Dim(id="tc", name="current"),
            Dim(id="mintc", name="minimum"),
        ],
    ),
    Chart(
        id="sys_precision",
        title="Precision",
        units="log2",
        fam="system",
        ctx="ntpd.sys_precision",
        priority=PRIO_SYSTEM + 8,
        dims=[Dim(id="precision", name="precision")],
    ),
]


def _peer_chart(suffix: str, title: str, units: str, priority: int, div: int = 1, type: str = "line") -> ChartTemplate:
    return ChartTemplate(Chart(
        id="peer_{peer_address}_" + suffix,
        title=title,
        units=units,
        fam="peers",
        ctx="ntpd.peer_" + suffix,
        type=type,
        priority=priority,
        dims=[Dim(id="peer_{peer_address}_" + suffix, name=suffix, div=div)],
        labels={"peer_address": "{peer_address}"},
    ), params=("peer_address",))


peer_templates = [
    _peer_chart("offset", "Peer offset", "milliseconds", PRIO_PEER, div=PRECISION),
    _peer_chart("delay", "Peer delay", "milliseconds", PRIO_PEER + 1, div=PRECISION),
    _peer_chart("dispersion", "Peer dispersion", "milliseconds", PRIO_PEER + 2, div=PRECISION),
    _peer_chart("jitter", "Peer jitter", "milliseconds", PRIO_PEER + 3, div=PRECISION),
    _peer_chart("xleave", "Peer interleave delay", "milliseconds", PRIO_PEER + 4, div=PRECISION),
    _peer_chart("rootdelay", "Peer roundtrip delay to the primary reference clock", "milliseconds", PRIO_PEER + 5, div=PRECISION),
    _peer_chart("rootdisp", "Peer root dispersion to the primary reference clock", "milliseconds", PRIO_PEER + 6, div=PRECISION),
    _peer_chart("stratum", "Peer stratum", "stratum", PRIO_PEER + 7),
    _peer_chart("hmode", "Peer host mode", "hmode", PRIO_PEER + 8),
    _peer_chart("pmode", "Peer mode", "pmode", PRIO_PEER + 9),
    _peer_chart("hpoll", "Peer host poll exponent", "log2", PRIO_PEER + 10),
    _peer_chart("ppoll", "Peer poll exponent", "log2", PRIO_PEER + 11),
    _peer_chart("precision", "Peer precision", "log2", PRIO_PEER + 12),
]


def build_catalog() -> TemplateCatalog:
    catalog = TemplateCatalog()
    catalog.register_collection("system", system_charts)
    # peers come and go with the daemon's association list
    catalog.register(EntityClass.NTP_PEER, peer_templates, vanish=VanishPolicy.OBSOLETE)
    return catalog
