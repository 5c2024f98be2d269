"""Tests for the job manager."""

import time

from chartsync.core.manager import Job, JobManager
from chartsync.errors import TransportError
from test_module import FakeModule


class ExplodingModule(FakeModule):
    def collect(self):
        raise RuntimeError("unexpected")


def test_run_job_calls_sinks():
    job = Job(module=FakeModule([{"C:": 1}]), update_every=1.0)
    manager = JobManager([job])

    collected = []
    manager.add_sink(lambda j, mx: collected.append((j.name, mx)))

    assert manager.run_job(job) == {"disk_C:_used": 1}
    assert collected == [("fake[fake]", {"disk_C:_used": 1})]


def test_run_job_counts_failures_and_recovers():
    payloads = [TransportError("refused")] * 3 + [{"C:": 1}]
    job = Job(module=FakeModule(payloads), update_every=1.0, failure_threshold=3)
    manager = JobManager([job])

    for _ in range(3):
        assert manager.run_job(job) is None
    assert job.consecutive_failures == 3
    assert not job.healthy

    assert manager.run_job(job) is not None
    assert job.consecutive_failures == 0
    assert job.healthy


def test_run_job_survives_module_and_sink_errors():
    job = Job(module=ExplodingModule([]), update_every=1.0)
    manager = JobManager([job])
    assert manager.run_job(job) is None
    assert job.consecutive_failures == 1

    ok = Job(module=FakeModule([{"C:": 1}]), update_every=1.0)
    manager = JobManager([ok])

    def bad_sink(j, mx):
        raise ValueError("sink down")

    manager.add_sink(bad_sink)
    assert manager.run_job(ok) == {"disk_C:_used": 1}


def test_tick_respects_update_every():
    job_fast = Job(module=FakeModule([{"C:": 1}] * 10, job_name="fast"), update_every=1.0)
    job_slow = Job(module=FakeModule([{"C:": 1}] * 10, job_name="slow"), update_every=5.0)
    manager = JobManager([job_fast, job_slow])

    runs = []
    manager.add_sink(lambda j, mx: runs.append(j.module.job_name))

    assert manager.tick(100.0) == 101.0
    assert manager.tick(101.0) == 102.0
    assert manager.tick(102.0) == 103.0
    assert runs == ["fast", "slow", "fast", "fast"]


def test_start_without_jobs():
    manager = JobManager([])
    manager.start()
    assert manager._thread is None


def test_start_stop_runs_and_cleans_up():
    module = FakeModule([{"C:": 1}] * 100)
    manager = JobManager([Job(module=module, update_every=0.05)])

    collected = []
    manager.add_sink(lambda j, mx: collected.append(mx))
    manager.start()
    time.sleep(0.3)
    manager.stop()

    assert len(collected) > 0
    assert module.cleaned is True
    assert manager._thread is None
