#!/usr/bin/env python3
"""
Plan the rollback of a completed migration run from its backup directory.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from .config import PlannerConfig, UpsertPolicy
from .errors import SfrewindError
from .manifest.models import OrgConfig
from .manifest.reader import list_available_backups
from .rollback.export import write_rollback_export
from .rollback.models import RollbackConfig
from .rollback.planner import RollbackPlanner

logger = logging.getLogger(__name__)


def _add_org_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("backup_dir", help="Backup directory holding metadata.json")
    parser.add_argument("--source-username", required=True, help="Source org of the original run")
    parser.add_argument("--source-url", default="", help="Instance URL of the source org")
    parser.add_argument("--target-username", required=True, help="Target org of the original run")
    parser.add_argument("--target-url", default="", help="Instance URL of the target org")
    parser.add_argument(
        "--upsert-policy",
        type=str,
        choices=[p.value for p in UpsertPolicy],
        default=UpsertPolicy.DELETE.value,
        help="How to roll back an Upsert whose inserted rows are unknown",
    )
    parser.add_argument(
        "--allow-unfiltered-delete",
        action="store_true",
        help="Keep Delete rollbacks that would match every record of an object",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sfrewind", description=__doc__)
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    plan = sub.add_parser("plan", help="Print the rollback plan as JSON")
    _add_org_args(plan)

    export = sub.add_parser("export", help="Write the engine export.json for the rollback plan")
    _add_org_args(export)
    export.add_argument("--out", required=True, help="Directory to write export.json and CSV copies into")

    listing = sub.add_parser("list", help="List the backups in a backups directory")
    listing.add_argument("backups_dir", help="Directory whose sub-directories are backups")
    return parser


def _plan(args: argparse.Namespace) -> RollbackConfig:
    config = PlannerConfig(
        upsert_policy=UpsertPolicy(args.upsert_policy),
        allow_unfiltered_delete=args.allow_unfiltered_delete,
    )
    source = OrgConfig(username=args.source_username, instance_url=args.source_url)
    target = OrgConfig(username=args.target_username, instance_url=args.target_url)
    return RollbackPlanner(config).plan(args.backup_dir, source, target)


def _print_tiers(plan: RollbackConfig) -> None:
    for obj in plan.objects:
        rank = f" (tier {obj.tier.rank})" if obj.tier.rank else ""
        flag = "  !! verify before running" if obj.tier.is_risky else ""
        print(
            f"{obj.object_name}: {obj.original_operation} -> {obj.rollback_operation.value}, "
            f"{obj.tier.value}{rank}{flag}",
            file=sys.stderr,
        )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    try:
        if args.command == "list":
            for info in list_available_backups(args.backups_dir):
                print(f"{info.timestamp}\t{info.object_count} objects\t{info.total_records} records\t{info.path}")
            return 0

        plan = _plan(args)
        _print_tiers(plan)
        if args.command == "plan":
            print(json.dumps(plan.to_dict(), indent=2))
        else:
            print(write_rollback_export(plan, args.out))
        return 0
    except SfrewindError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
