"""Decoding of nvidia-smi CSV and XML output."""

from __future__ import annotations

import csv
import io
import re
import xml.etree.ElementTree as ET

from ...core.entities import EntityClass
from ...core.module import Normalized
from ...core.units import KIB, MIB, MILLI, parse_quantity, to_fixed
from ...errors import BadPayloadError

# --query-gpu property -> (metric suffix, multiplier)
CSV_PROPERTIES: dict[str, tuple[str, int] | None] = {
    "uuid": None,
    "fan.speed": ("fan_speed_perc", 1),
    "pstate": None,
    "utilization.gpu": ("gpu_utilization", 1),
    "utilization.memory": ("mem_utilization", 1),
    "memory.used": ("frame_buffer_memory_usage_used", MIB),
    "memory.free": ("frame_buffer_memory_usage_free", MIB),
    "memory.reserved": ("frame_buffer_memory_usage_reserved", MIB),
    "temperature.gpu": ("temperature", 1),
    "clocks.current.graphics": ("graphics_clock", 1),
    "clocks.current.video": ("video_clock", 1),
    "clocks.current.sm": ("sm_clock", 1),
    "clocks.current.memory": ("mem_clock", 1),
    "power.draw": ("power_draw", MILLI),
}

# (xpath below <gpu>, metric suffix, multiplier)
XML_VALUES = [
    ("fan_speed", "fan_speed_perc", 1),
    ("utilization/gpu_util", "gpu_utilization", 1),
    ("utilization/memory_util", "mem_utilization", 1),
    ("utilization/encoder_util", "encoder_utilization", 1),
    ("utilization/decoder_util", "decoder_utilization", 1),
    ("fb_memory_usage/used", "frame_buffer_memory_usage_used", MIB),
    ("fb_memory_usage/free", "frame_buffer_memory_usage_free", MIB),
    ("fb_memory_usage/reserved", "frame_buffer_memory_usage_reserved", MIB),
    ("bar1_memory_usage/used", "bar1_memory_usage_used", MIB),
    ("bar1_memory_usage/free", "bar1_memory_usage_free", MIB),
    ("temperature/gpu_temp", "temperature", 1),
    ("clocks/graphics_clock", "graphics_clock", 1),
    ("clocks/video_clock", "video_clock", 1),
    ("clocks/sm_clock", "sm_clock", 1),
    ("clocks/mem_clock", "mem_clock", 1),
    ("power_readings/power_draw", "power_draw", MILLI),
    ("gpu_power_readings/power_draw", "power_draw", MILLI),
    ("pci/rx_util", "pcie_bandwidth_usage_rx", KIB),
    ("pci/tx_util", "pcie_bandwidth_usage_tx", KIB),
]

PERFORMANCE_STATES = [f"P{i}" for i in range(16)]

_help_property_re = re.compile(r'"([a-zA-Z_.]+)"')
_header_unit_re = re.compile(r"\s*\[.*\]$")


def parse_help_query_gpu(data: bytes) -> list[str]:
    """Return the known properties listed by ``--help-query-gpu``, uuid first."""
    listed = set(_help_property_re.findall(data.decode(errors="replace")))
    if "uuid" not in listed:
        raise BadPayloadError("'uuid' is not a supported --query-gpu property")
    return [p for p in CSV_PROPERTIES if p in listed]


def _add_pstate(mx: dict[str, int], uuid: str, pstate: str) -> None:
    pstate = pstate.strip()
    if pstate not in PERFORMANCE_STATES:
        return
    for state in PERFORMANCE_STATES:
        mx[f"gpu_{uuid}_performance_state_{state}"] = int(state == pstate)


def normalize_csv(data: bytes) -> Normalized:
    rows = list(csv.reader(io.StringIO(data.decode(errors="replace")), skipinitialspace=True))
    rows = [row for row in rows if row]
    if not rows:
        raise BadPayloadError("empty nvidia-smi CSV output")

    header = [_header_unit_re.sub("", h.strip()) for h in rows[0]]
    if "uuid" not in header:
        raise BadPayloadError(f"no 'uuid' column in nvidia-smi CSV header {header!r}")

    result = Normalized()
    for n, row in enumerate(rows[1:], start=2):
        if len(row) != len(header):
            raise BadPayloadError(f"CSV line {n}: {len(row)} fields, header has {len(header)}")
        record = dict(zip(header, (v.strip() for v in row)))
        uuid = record["uuid"]
        if not uuid:
            continue
        result.discovery.add(EntityClass.GPU, uuid)

        for prop, value in record.items():
            spec = CSV_PROPERTIES.get(prop)
            if spec is None:
                continue
            suffix, mul = spec
            v = to_fixed(value, mul)
            if v is not None:
                result.metrics[f"gpu_{uuid}_{suffix}"] = v
        if "pstate" in record:
            _add_pstate(result.metrics, uuid, record["pstate"])
    return result


def normalize_xml(data: bytes) -> Normalized:
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise BadPayloadError(f"decode nvidia-smi XML: {e}") from e

    result = Normalized()
    for gpu in root.iter("gpu"):
        uuid = (gpu.findtext("uuid") or "").strip()
        if not uuid:
            continue
        result.discovery.add(EntityClass.GPU, uuid)

        for path, suffix, mul in XML_VALUES:
            text = gpu.findtext(path)
            if text is None:
                continue
            v = parse_quantity(text, mul)
            if v is not None:
                result.metrics[f"gpu_{uuid}_{suffix}"] = v
        _add_pstate(result.metrics, uuid, gpu.findtext("performance_state") or "")
    return result
