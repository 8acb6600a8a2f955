from __future__ import annotations

import argparse
import logging
import os
import uuid
from typing import List, Optional, Sequence

from .config import SDGConfig
from .downloader import batch
from .downloader.client import RequestFailure, SDGClient
from .downloader.data import get_indicator_data
from .downloader.storage import UnsupportedFormat, export_data
from .explorer.input import parse_list_input, parse_year_input
from .explorer.menu import ExplorerMenu

logger = logging.getLogger(__name__)
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))


class AuditLogger:
    """Very simple console audit for now."""

    @staticmethod
    def log(level: str, module: str, action: str, detail: dict | None = None) -> None:  # noqa: D401
        logger.info("%s | %s | %s | %s", level, module, action, detail)


def _build_client(args: argparse.Namespace) -> SDGClient:
    config = SDGConfig.from_env(
        base_url=args.base_url, timeout=args.timeout, page_size=args.page_size
    )
    return SDGClient(config, show_progress=not args.no_progress)


# ---------------------------------------------------------------------------
# Sub-commands
# ---------------------------------------------------------------------------


def cmd_explore(client: SDGClient, args: argparse.Namespace) -> int:
    ExplorerMenu(client).run()
    return 0


def cmd_batch(client: SDGClient, args: argparse.Namespace) -> int:
    run_id = uuid.uuid4()
    AuditLogger.log("INFO", "runner", "start", {"run_id": str(run_id)})

    jobs = batch.load_jobs(args.config_dir)
    if not jobs:
        logger.warning("No batch jobs found under %s", args.config_dir)
        return 1
    written = batch.run_jobs(client, jobs, output_dir=args.output_dir)

    AuditLogger.log(
        "INFO",
        "runner",
        "batch_complete",
        {"run_id": str(run_id), "jobs": len(jobs), "written": len(written)},
    )
    # non-zero when at least one job produced nothing
    return 0 if len(written) == len(jobs) else 2


def cmd_metadata(client: SDGClient, args: argparse.Namespace) -> int:
    path = batch.export_metadata_workbook(client, args.output)
    AuditLogger.log("INFO", "runner", "metadata_exported", {"path": str(path)})
    return 0


def cmd_indicator(client: SDGClient, args: argparse.Namespace) -> int:
    years: Optional[List[int]] = None
    if args.years:
        years = parse_year_input(args.years)
        if years is None:
            logger.error("Invalid --years value: %s", args.years)
            return 2

    df = get_indicator_data(
        client,
        indicator=args.code,
        geoareas=parse_list_input(args.geoareas or "") or None,
        time_period=years,
    )
    if df.empty:
        logger.warning("Indicator %s returned no rows; nothing exported", args.code)
        return 1
    path = export_data(df, args.output)
    AuditLogger.log("INFO", "runner", "indicator_exported", {"rows": len(df), "path": str(path)})
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unstats-explorer", description="Explore and export UN SDG statistics"
    )
    parser.add_argument("--base-url", help="API root (default: UNSTATS_BASE_URL or the UN endpoint)")
    parser.add_argument("--timeout", type=int, help="Per-request timeout in seconds")
    parser.add_argument("--page-size", type=int, help="Records per page for data queries")
    parser.add_argument("--no-progress", action="store_true", help="Disable progress bars")

    sub = parser.add_subparsers(dest="command")

    p_explore = sub.add_parser("explore", help="Interactive explorer (default)")
    p_explore.set_defaults(func=cmd_explore)

    p_batch = sub.add_parser("batch", help="Run YAML batch jobs")
    p_batch.add_argument("--config-dir", default=batch.DEFAULT_JOB_DIR)
    p_batch.add_argument("--output-dir", default=batch.DEFAULT_OUTPUT_DIR)
    p_batch.set_defaults(func=cmd_batch)

    p_meta = sub.add_parser("metadata", help="Export all metadata to one Excel workbook")
    p_meta.add_argument("output", help="Target .xlsx file")
    p_meta.set_defaults(func=cmd_metadata)

    p_ind = sub.add_parser("indicator", help="Export data of one indicator")
    p_ind.add_argument("code", help="Indicator code, e.g. 1.1.1")
    p_ind.add_argument("--geoareas", help="Comma-separated area codes, e.g. USA,GBR")
    p_ind.add_argument("--years", help="Range 2015-2020 or list 2015,2020")
    p_ind.add_argument("-o", "--output", required=True, help="Output file (.csv/.json/.arrow/.xlsx)")
    p_ind.set_defaults(func=cmd_indicator)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    func = getattr(args, "func", cmd_explore)

    try:
        with _build_client(args) as client:
            return func(client, args)
    except UnsupportedFormat as exc:
        logger.error("%s", exc)
        return 2
    except ValueError as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    except RequestFailure as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
