"""Base class of modules that scrape a text exposition endpoint."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import httpx

from ..core.module import Module
from ..errors import ConfigError
from ..sources.prometheus import PrometheusClient, Series


class ScrapeModule(Module):
    """A module whose raw data is one scrape of ``config.url``.

    *clock* is the wall clock handed to normalizers that turn start
    timestamps into uptimes.
    """

    def __init__(
        self,
        config: Any,
        *,
        job_name: str | None = None,
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(config, job_name=job_name)
        self._transport = transport
        self._clock = clock
        self._client: PrometheusClient | None = None

    def validate_config(self) -> None:
        if not self.config.url:
            raise ConfigError("'url' can not be empty")
        if not self.config.url.startswith(("http://", "https://")):
            raise ConfigError(f"'url' must be an http(s) URL, got '{self.config.url}'")

    def setup(self) -> None:
        self._client = PrometheusClient(
            self.config.url,
            timeout=self.config.timeout,
            headers=self.config.headers,
            transport=self._transport,
        )

    def fetch(self) -> Series:
        if self._client is None:
            self.setup()
        return self._client.scrape()

    def cleanup(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
