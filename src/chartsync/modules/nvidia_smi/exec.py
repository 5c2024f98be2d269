"""nvidia-smi invocations."""

from __future__ import annotations

from ...sources.exec import run_command


class NvidiaSMIExec:
    """Runs the three nvidia-smi queries the module needs."""

    def __init__(self, binary_path: str, timeout: float) -> None:
        self.binary_path = binary_path
        self.timeout = timeout

    def query_gpu_info_xml(self) -> bytes:
        return run_command([self.binary_path, "-q", "-x"], timeout=self.timeout)

    def query_gpu_info_csv(self, properties: list[str]) -> bytes:
        return run_command(
            [self.binary_path, "--query-gpu=" + ",".join(properties), "--format=csv,nounits"],
            timeout=self.timeout,
        )

    def query_help_query_gpu(self) -> bytes:
        return run_command([self.binary_path, "--help-query-gpu"], timeout=self.timeout)
