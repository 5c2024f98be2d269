"""NTP daemon metrics over the mode 6 control protocol."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from ...config import NTPdConfig
from ...core.module import Module, Normalized
from ...core.templates import TemplateCatalog
from ...errors import CollectError, ConfigError, TransportError
from ...sources.ntp import NTPControlClient, split_address
from . import charts, collect

FIND_PEERS_EVERY = 180.0


class NTPConn(Protocol):
    def system_info(self) -> dict[str, str]: ...

    def peer_ids(self) -> list[int]: ...

    def peer_info(self, assoc_id: int) -> dict[str, str]: ...

    def close(self) -> None: ...


def new_ntp_client(config: NTPdConfig) -> NTPConn:
    return NTPControlClient(config.address, timeout=config.timeout)


@dataclass
class Readout:
    """Variables read from the daemon in one cycle."""

    system: dict[str, str]
    peers: list[dict[str, str]] = field(default_factory=list)


class NTPd(Module):
    """Collects system variables and, optionally, per-peer variables.

    Association ids are looked up again every ``FIND_PEERS_EVERY`` seconds
    and right after any peer query fails. Peers that disappear from the
    association list get their charts marked obsolete.
    """

    name = "ntpd"

    def __init__(
        self,
        config: NTPdConfig | None = None,
        *,
        job_name: str | None = None,
        new_client: Callable[[NTPdConfig], NTPConn] = new_ntp_client,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(config or NTPdConfig(), job_name=job_name)
        self.new_client = new_client
        self.client: NTPConn | None = None
        self._clock = clock
        self.find_peers_every = FIND_PEERS_EVERY
        self._find_peers_time: float | None = None
        self.peer_ids: list[int] = []

    def build_catalog(self) -> TemplateCatalog:
        return charts.build_catalog()

    def validate_config(self) -> None:
        if not self.config.address:
            raise ConfigError("'address' can not be empty")
        try:
            split_address(self.config.address)
        except ValueError as e:
            raise ConfigError(f"'address': {e}") from e

    def fetch(self) -> Readout:
        if self.client is None:
            self.client = self.new_client(self.config)

        try:
            system = self.client.system_info()
        except TransportError as e:
            self._close_client()
            raise TransportError(f"error on querying system info: {e}") from e

        readout = Readout(system=system)
        if self.config.collect_peers:
            self._refresh_peer_ids()
            readout.peers = self._query_peers()
        return readout

    def normalize(self, raw: Readout) -> Normalized:
        return collect.normalize(raw.system, raw.peers)

    def cleanup(self) -> None:
        self._close_client()

    def _refresh_peer_ids(self) -> None:
        now = self._clock()
        if self._find_peers_time is not None and now - self._find_peers_time < self.find_peers_every:
            return
        self._find_peers_time = now
        try:
            self.peer_ids = self.client.peer_ids()
        except CollectError as e:
            self.logger.warning("error on querying peer ids: %s", e)
            self._find_peers_time = None
            return
        self.logger.debug("Found %d peer(s): %s", len(self.peer_ids), self.peer_ids)

    def _query_peers(self) -> list[dict[str, str]]:
        peers = []
        for assoc_id in self.peer_ids:
            try:
                peers.append(self.client.peer_info(assoc_id))
            except CollectError as e:
                self.logger.warning("error on querying peer %d info: %s", assoc_id, e)
                # association list is stale; look it up again next cycle
                self._find_peers_time = None
        return peers

    def _close_client(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None
