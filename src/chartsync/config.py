"""Configuration loading and validation for chartsync."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError


@dataclass
class WMIConfig:
    """windows_exporter scrape settings."""

    url: str = ""
    timeout: float = 5.0
    update_every: float = 5.0
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class CassandraConfig:
    """Cassandra JMX exporter scrape settings."""

    url: str = ""
    timeout: float = 5.0
    update_every: float = 5.0
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class NvidiaSMIConfig:
    """nvidia-smi exec settings."""

    binary_path: str = ""
    timeout: float = 5.0
    use_csv_format: bool = True
    update_every: float = 10.0


@dataclass
class NTPdConfig:
    """NTP daemon control-protocol settings."""

    address: str = "127.0.0.1:123"
    timeout: float = 3.0
    collect_peers: bool = True
    update_every: float = 1.0


MODULE_CONFIGS: dict[str, type] = {
    "wmi": WMIConfig,
    "cassandra": CassandraConfig,
    "nvidia_smi": NvidiaSMIConfig,
    "ntpd": NTPdConfig,
}

ModuleConfig = WMIConfig | CassandraConfig | NvidiaSMIConfig | NTPdConfig


@dataclass
class JobConfig:
    """One module instance."""

    module: str
    name: str
    options: ModuleConfig


@dataclass
class ChartSyncConfig:
    """Top-level chartsync configuration."""

    log_level: str = "INFO"
    failure_threshold: int = 3
    jobs: list[JobConfig] = field(default_factory=list)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using CHARTSYNC_ prefix."""
    env_map = {
        "CHARTSYNC_LOG_LEVEL": "log_level",
        "CHARTSYNC_FAILURE_THRESHOLD": "failure_threshold",
    }
    for env_key, key in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            data[key] = value
    return data


def _coerce(cls: type, key: str, value: Any) -> Any:
    default = {f.name: f for f in fields(cls)}[key].default
    try:
        if isinstance(default, bool):
            if isinstance(value, str):
                return value.strip().lower() not in {"0", "false", "no", "off"}
            return bool(value)
        if isinstance(default, float):
            return float(value)
        if isinstance(default, str):
            return str(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{cls.__name__}.{key}: invalid value {value!r}") from e
    if key == "headers" and not isinstance(value, dict):
        raise ConfigError(f"{cls.__name__}.{key}: expected a mapping, got {value!r}")
    return value


def module_config(module: str, data: dict[str, Any]) -> ModuleConfig:
    """Build a module config dataclass, ignoring unknown keys."""
    cls = MODULE_CONFIGS.get(module)
    if cls is None:
        raise ConfigError(f"unknown module '{module}' (available: {', '.join(sorted(MODULE_CONFIGS))})")
    kwargs = {
        k: _coerce(cls, k, v) for k, v in data.items()
        if k in cls.__dataclass_fields__ and v is not None
    }
    cfg = cls(**kwargs)
    if cfg.timeout <= 0:
        raise ConfigError(f"{module}: 'timeout' must be positive, got {cfg.timeout}")
    if cfg.update_every <= 0:
        raise ConfigError(f"{module}: 'update_every' must be positive, got {cfg.update_every}")
    return cfg


def _dict_to_config(data: dict[str, Any]) -> ChartSyncConfig:
    """Convert a raw dictionary to a ChartSyncConfig dataclass."""
    try:
        threshold = int(data.get("failure_threshold", 3))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"failure_threshold: invalid value {data.get('failure_threshold')!r}") from e
    if threshold < 1:
        raise ConfigError(f"failure_threshold must be >= 1, got {threshold}")

    raw_jobs = data.get("jobs") or []
    if not isinstance(raw_jobs, list):
        raise ConfigError("'jobs' must be a list")

    jobs: list[JobConfig] = []
    seen: set[tuple[str, str]] = set()
    for i, raw in enumerate(raw_jobs):
        if not isinstance(raw, dict) or not raw.get("module"):
            raise ConfigError(f"jobs[{i}]: a 'module' key is required")
        module = str(raw["module"])
        name = str(raw.get("name") or module)
        if (module, name) in seen:
            raise ConfigError(f"jobs[{i}]: duplicate job '{module}[{name}]'")
        seen.add((module, name))
        options = {k: v for k, v in raw.items() if k not in {"module", "name"}}
        jobs.append(JobConfig(module=module, name=name, options=module_config(module, options)))

    return ChartSyncConfig(
        log_level=str(data.get("log_level", "INFO")).upper(),
        failure_threshold=threshold,
        jobs=jobs,
    )


def load_config(path: str | Path | None = None) -> ChartSyncConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``chartsync.yaml`` in the current directory if *path* is None.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("chartsync.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            try:
                loaded = yaml.safe_load(fh)
            except yaml.YAMLError as e:
                raise ConfigError(f"{path}: {e}") from e
            if isinstance(loaded, dict):
                data = loaded

    data = _apply_env_overrides(data)
    return _dict_to_config(data)
