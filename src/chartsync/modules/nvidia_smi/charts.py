"""Per-GPU chart templates of the nvidia_smi module.

Every chart is optional: which values a GPU reports depends on the card,
the driver and the query format, so a chart is created only if its data
was present when the GPU was first seen.
"""

from __future__ import annotations

from ...core.charts import Chart, Dim
from ...core.entities import EntityClass
from ...core.templates import ChartTemplate, TemplateCatalog
from .collect import PERFORMANCE_STATES

PRIO_GPU = 7000


def _gpu_chart(suffix: str, title: str, units: str, ctx: str, dims: list[Dim], type: str = "line") -> Chart:
    return Chart(
        id="gpu_{uuid}_" + suffix,
        title=title,
        units=units,
        fam="gpu",
        ctx="nvidia_smi." + ctx,
        type=type,
        dims=dims,
    )


def _dim(suffix: str, name: str, **kwargs) -> Dim:
    return Dim(id="gpu_{uuid}_" + suffix, name=name, **kwargs)


pcie_bandwidth_chart = _gpu_chart(
    "pcie_bandwidth_usage", "PCI Express Bandwidth Utilization", "B/s", "gpu_pcie_bandwidth_usage",
    [_dim("pcie_bandwidth_usage_rx", "rx"), _dim("pcie_bandwidth_usage_tx", "tx", mul=-1)],
    type="area",
)
fan_speed_chart = _gpu_chart(
    "fan_speed_perc", "Fan Speed", "%", "gpu_fan_speed_perc",
    [_dim("fan_speed_perc", "fan_speed")],
)
gpu_utilization_chart = _gpu_chart(
    "gpu_utilization", "GPU Utilization", "%", "gpu_utilization",
    [_dim("gpu_utilization", "gpu")],
)
mem_utilization_chart = _gpu_chart(
    "mem_utilization", "Memory Bandwidth Utilization", "%", "gpu_memory_utilization",
    [_dim("mem_utilization", "memory")],
)
encoder_utilization_chart = _gpu_chart(
    "encoder_utilization", "Encoder/Decoder Utilization", "%", "gpu_encoder_decoder_utilization",
    [_dim("encoder_utilization", "encoder"), _dim("decoder_utilization", "decoder")],
)
frame_buffer_usage_chart = _gpu_chart(
    "frame_buffer_memory_usage", "Frame buffer memory usage", "B", "gpu_frame_buffer_memory_usage",
    [_dim("frame_buffer_memory_usage_free", "free"), _dim("frame_buffer_memory_usage_used", "used")],
    type="stacked",
)
frame_buffer_reserved_chart = _gpu_chart(
    "frame_buffer_memory_reserved", "Frame buffer memory reserved", "B", "gpu_frame_buffer_memory_reserved",
    [_dim("frame_buffer_memory_usage_reserved", "reserved")],
)
bar1_memory_usage_chart = _gpu_chart(
    "bar1_memory_usage", "BAR1 memory usage", "B", "gpu_bar1_memory_usage",
    [_dim("bar1_memory_usage_free", "free"), _dim("bar1_memory_usage_used", "used")],
    type="stacked",
)
temperature_chart = _gpu_chart(
    "temperature", "Temperature", "Celsius", "gpu_temperature",
    [_dim("temperature", "temperature")],
)
clock_freq_chart = _gpu_chart(
    "clock_freq", "Clock current frequency", "MHz", "gpu_clock_freq",
    [
        _dim("graphics_clock", "graphics"),
        _dim("video_clock", "video"),
        _dim("sm_clock", "sm"),
        _dim("mem_clock", "mem"),
    ],
)
power_draw_chart = _gpu_chart(
    "power_draw", "Power draw", "Watts", "gpu_power_draw",
    [_dim("power_draw", "power_draw", div=1000)],
)
performance_state_chart = _gpu_chart(
    "performance_state", "Performance state", "state", "gpu_performance_state",
    [_dim("performance_state_" + s, s) for s in PERFORMANCE_STATES],
)

# utilization counters reported by XML only
XML_ONLY = (pcie_bandwidth_chart, encoder_utilization_chart, bar1_memory_usage_chart)

GPU_CHARTS = [
    pcie_bandwidth_chart,
    fan_speed_chart,
    gpu_utilization_chart,
    mem_utilization_chart,
    encoder_utilization_chart,
    frame_buffer_usage_chart,
    frame_buffer_reserved_chart,
    bar1_memory_usage_chart,
    temperature_chart,
    clock_freq_chart,
    power_draw_chart,
    performance_state_chart,
]


def gpu_templates(use_csv_format: bool) -> list[ChartTemplate]:
    templates = []
    for i, chart in enumerate(GPU_CHARTS):
        if use_csv_format and chart in XML_ONLY:
            continue
        chart = chart.copy()
        chart.priority = PRIO_GPU + i
        templates.append(ChartTemplate(chart, params=("uuid",), optional=True))
    return templates


def build_catalog(use_csv_format: bool = True) -> TemplateCatalog:
    catalog = TemplateCatalog()
    catalog.register(EntityClass.GPU, gpu_templates(use_csv_format))
    return catalog
