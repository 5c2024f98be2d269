"""Collector modules and job construction."""

from __future__ import annotations

import logging

from ..config import ChartSyncConfig, JobConfig
from ..core.manager import Job
from ..core.module import Module
from ..errors import ConfigError
from .cassandra import Cassandra
from .ntpd import NTPd
from .nvidia_smi import NvidiaSMI
from .wmi import WMI

logger = logging.getLogger(__name__)

MODULES: dict[str, type[Module]] = {
    WMI.name: WMI,
    Cassandra.name: Cassandra,
    NvidiaSMI.name: NvidiaSMI,
    NTPd.name: NTPd,
}


def create_module(job: JobConfig) -> Module:
    cls = MODULES.get(job.module)
    if cls is None:
        raise ConfigError(f"unknown module '{job.module}'")
    return cls(job.options, job_name=job.name)


def build_jobs(cfg: ChartSyncConfig) -> list[Job]:
    """Create and initialize a job per configured module instance.

    Jobs whose module fails :meth:`Module.init` are dropped.
    """
    jobs = []
    for job_cfg in cfg.jobs:
        module = create_module(job_cfg)
        if not module.init():
            logger.error("Job %s[%s]: init failed, skipping", job_cfg.module, job_cfg.name)
            continue
        jobs.append(Job(
            module=module,
            update_every=job_cfg.options.update_every,
            failure_threshold=cfg.failure_threshold,
        ))
    return jobs
