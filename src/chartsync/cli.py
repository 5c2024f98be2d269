"""CLI interface for chartsync."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import time

from . import __version__
from .config import ChartSyncConfig, load_config
from .errors import ConfigError

logger = logging.getLogger(__name__)


def _load(args: argparse.Namespace) -> ChartSyncConfig:
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)
    if not args.log_level:
        logging.getLogger().setLevel(cfg.log_level)
    return cfg


def _build_jobs(cfg: ChartSyncConfig, only: str | None = None) -> list:
    from .modules import build_jobs

    if only:
        cfg.jobs = [j for j in cfg.jobs if j.module == only or j.name == only]
    jobs = build_jobs(cfg)
    if not jobs:
        print("No jobs to run (check the 'jobs' section of chartsync.yaml)", file=sys.stderr)
        sys.exit(1)
    return jobs


def _cmd_collect(args: argparse.Namespace) -> None:
    """Run collection jobs until interrupted."""
    cfg = _load(args)
    jobs = _build_jobs(cfg, args.job)

    from .core.manager import JobManager

    manager = JobManager(jobs)
    if args.print:
        def _print_snapshot(job, mx: dict[str, int]) -> None:
            print(json.dumps({"job": job.name, "ts": time.time(), "metrics": mx}, sort_keys=True), flush=True)

        manager.add_sink(_print_snapshot)

    stop = False

    def _handle_signal(_sig: int, _frame: object) -> None:
        nonlocal stop
        stop = True

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    manager.start()
    logger.info("chartsync running %d job(s): %s", len(jobs), ", ".join(j.name for j in jobs))
    try:
        while not stop:
            time.sleep(0.5)
    finally:
        manager.stop()


def _cmd_check(args: argparse.Namespace) -> None:
    """Run one cycle per job and report which jobs produce data."""
    cfg = _load(args)
    jobs = _build_jobs(cfg, args.job)

    failed = 0
    for job in jobs:
        try:
            ok = job.module.check()
        finally:
            job.module.cleanup()
        print(f"{job.name}: {'OK' if ok else 'FAILED'}")
        failed += not ok
    if failed:
        sys.exit(1)


def _cmd_charts(args: argparse.Namespace) -> None:
    """Run one cycle per job and print the resulting chart set."""
    cfg = _load(args)
    jobs = _build_jobs(cfg, args.job)

    from rich.console import Console
    from rich.table import Table

    console = Console()
    for job in jobs:
        try:
            mx = job.module.collect()
        finally:
            job.module.cleanup()

        table = Table(title=f"{job.name}: {len(job.module.charts())} charts, {len(mx or {})} metrics")
        table.add_column("Chart", style="cyan")
        table.add_column("Title", style="green")
        table.add_column("Units")
        table.add_column("Dims", justify="right")
        table.add_column("Obsolete", justify="center")
        for chart in job.module.charts():
            table.add_row(
                chart.id,
                chart.title,
                chart.units,
                str(len(chart.dims)),
                "[red]yes[/red]" if chart.obsolete else "",
            )
        console.print(table)


def _cmd_version(_args: argparse.Namespace) -> None:
    print(f"chartsync {__version__}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the chartsync CLI."""
    parser = argparse.ArgumentParser(
        prog="chartsync",
        description="Collect metrics and keep chart definitions in sync with discovered entities",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to chartsync.yaml")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    sub = parser.add_subparsers(dest="command")

    # collect
    collect_p = sub.add_parser("collect", help="Run collection jobs until interrupted")
    collect_p.add_argument("--job", default=None, help="Only run jobs of this module or name")
    collect_p.add_argument("--print", action="store_true", help="Print each snapshot as a JSON line")
    collect_p.set_defaults(func=_cmd_collect)

    # check
    check_p = sub.add_parser("check", help="Run one cycle per job and report success")
    check_p.add_argument("--job", default=None, help="Only check jobs of this module or name")
    check_p.set_defaults(func=_cmd_check)

    # charts
    charts_p = sub.add_parser("charts", help="Run one cycle per job and print the chart set")
    charts_p.add_argument("--job", default=None, help="Only show jobs of this module or name")
    charts_p.set_defaults(func=_cmd_charts)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=(args.log_level or "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
