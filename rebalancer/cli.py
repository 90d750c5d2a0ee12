"""Command-line interface for the collateral rebalancer."""
from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from typing import Sequence

from .config import load_config
from .logging_setup import configure_logging
from .report import ReportFormatter
from .services import Rebalancer
from .sources import SnapshotPositionSource


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="collateral-rebalancer",
        description="Cross-chain collateral rebalance planner",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")
    for name, help_text in (
        ("assess", "Show per-chain position health"),
        ("plan", "Compute the cross-chain distribution and transfer plan"),
        ("repair", "Compute single-chain repay / top-up amounts"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("snapshot", help="Path to a YAML position snapshot")
        cmd.add_argument(
            "--chain",
            dest="chains",
            type=int,
            action="append",
            default=None,
            help="Restrict to a chain id (repeatable)",
        )

    return parser


def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    source = SnapshotPositionSource(args.snapshot, config.policy.scales)
    if not config.account:
        config = replace(config, account=source.owner)

    rebalancer = Rebalancer(config, source)
    formatter = ReportFormatter(config)

    if args.command == "assess":
        print(formatter.positions(rebalancer.fetch(args.chains)))
    elif args.command == "plan":
        print(formatter.plan(rebalancer.plan(args.chains)))
    elif args.command == "repair":
        print(formatter.repairs(rebalancer.repairs(args.chains)))
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(_run(args))
