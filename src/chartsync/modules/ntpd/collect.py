"""Normalization of NTP system and peer variables."""

from __future__ import annotations

from collections.abc import Mapping

from ...core.entities import EntityClass
from ...core.module import Normalized
from ...core.units import MICRO, to_fixed

PRECISION = MICRO

# variable -> multiplier
SYSTEM_VARIABLES = {
    "offset": PRECISION,
    "sys_jitter": PRECISION,
    "clk_jitter": PRECISION,
    "frequency": PRECISION,
    "clk_wander": PRECISION,
    "rootdelay": PRECISION,
    "rootdisp": PRECISION,
    "stratum": 1,
    "tc": 1,
    "mintc": 1,
    "precision": 1,
}

PEER_VARIABLES = {
    "offset": PRECISION,
    "delay": PRECISION,
    "dispersion": PRECISION,
    "jitter": PRECISION,
    "xleave": PRECISION,
    "rootdelay": PRECISION,
    "rootdisp": PRECISION,
    "stratum": 1,
    "hmode": 1,
    "pmode": 1,
    "hpoll": 1,
    "ppoll": 1,
    "precision": 1,
}


def normalize(system: Mapping[str, str], peers: list[Mapping[str, str]]) -> Normalized:
    result = Normalized()
    mx = result.metrics

    for name, mul in SYSTEM_VARIABLES.items():
        v = to_fixed(system[name], mul) if name in system else None
        if v is not None:
            mx[name] = v
    if mx:
        result.discovery.add(EntityClass.COLLECTION, "system")

    for info in peers:
        addr = info.get("srcadr", "")
        if not addr or addr == "0.0.0.0":
            continue
        result.discovery.add(EntityClass.NTP_PEER, addr)
        for name, mul in PEER_VARIABLES.items():
            v = to_fixed(info[name], mul) if name in info else None
            if v is not None:
                mx[f"peer_{addr}_{name}"] = v
    return result
