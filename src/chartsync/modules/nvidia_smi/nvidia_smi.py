"""NVIDIA GPU metrics from the nvidia-smi utility."""

from __future__ import annotations

import shutil
from typing import Protocol

from ...config import NvidiaSMIConfig
from ...core.module import Module, Normalized
from ...core.templates import TemplateCatalog
from ...errors import ConfigError, TransportError
from . import charts, collect
from .exec import NvidiaSMIExec

BINARY_NAME = "nvidia-smi"


class SMIQuery(Protocol):
    def query_gpu_info_xml(self) -> bytes: ...

    def query_gpu_info_csv(self, properties: list[str]) -> bytes: ...

    def query_help_query_gpu(self) -> bytes: ...


class NvidiaSMI(Module):
    """Collects per-GPU metrics, one entity per GPU UUID.

    In CSV mode the supported ``--query-gpu`` properties are learned once
    from ``--help-query-gpu`` and reused for every later cycle.
    """

    name = "nvidia_smi"

    def __init__(
        self,
        config: NvidiaSMIConfig | None = None,
        *,
        job_name: str | None = None,
        smi: SMIQuery | None = None,
    ) -> None:
        super().__init__(config or NvidiaSMIConfig(), job_name=job_name)
        self.smi = smi
        self.gpu_query_properties: list[str] | None = None

    def build_catalog(self) -> TemplateCatalog:
        return charts.build_catalog(self.config.use_csv_format)

    def validate_config(self) -> None:
        if self.smi is not None:
            return
        binary = self.config.binary_path or BINARY_NAME
        if shutil.which(binary) is None:
            raise ConfigError(f"error on lookup '{binary}': executable not found")

    def setup(self) -> None:
        if self.smi is None:
            path = shutil.which(self.config.binary_path or BINARY_NAME)
            self.logger.debug("Using %s", path)
            self.smi = NvidiaSMIExec(path, self.config.timeout)

    def fetch(self) -> bytes:
        if self.smi is None:
            raise TransportError("nvidia-smi is not initialized")
        if not self.config.use_csv_format:
            return self.smi.query_gpu_info_xml()
        if self.gpu_query_properties is None:
            props = collect.parse_help_query_gpu(self.smi.query_help_query_gpu())
            self.logger.debug("Found query properties: %s", props)
            self.gpu_query_properties = props
        return self.smi.query_gpu_info_csv(self.gpu_query_properties)

    def normalize(self, raw: bytes) -> Normalized:
        if self.config.use_csv_format:
            return collect.normalize_csv(raw)
        return collect.normalize_xml(raw)
