"""Command line interface for kinfold."""

from __future__ import annotations

import argparse
import json
from typing import Dict, List, Sequence

from . import api as kinfold_api
from .branches import group_by_branch
from .config import LayoutConfig, Orientation, default_log_level
from .index import RecordIndex
from .report import build_report
from .schemas import Member
from .store import open_records
from .utils import console, set_log_level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kinfold", description="Collapsible family tree resolver and layout")
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("records", help="Records JSON path or firestore:PROJECT[/COLLECTION]")
    common.add_argument(
        "--log-level",
        default=default_log_level(),
        help="Python logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    layout = sub.add_parser("layout", parents=[common], help="Resolve the tree and export a layout")
    layout.add_argument("--out", required=True, help="Output directory")
    layout.add_argument("--expand-all", action="store_true", help="Run the cascade to full expansion")
    layout.add_argument("--width", type=float, help="Viewport width")
    layout.add_argument("--height", type=float, help="Viewport height")
    layout.add_argument(
        "--orientation",
        choices=[o.value for o in Orientation],
        help="Tree orientation (default from KINFOLD_ORIENTATION, else vertical)",
    )
    layout.add_argument("--labels", help="Optional JSON file mapping branch ids to names")

    branches = sub.add_parser("branches", parents=[common], help="List members per branch in tree order")
    branches.add_argument("--query", help="Filter by name substring")
    branches.add_argument("--labels", help="Optional JSON file mapping branch ids to names")

    validate = sub.add_parser("validate", parents=[common], help="Report data-quality problems")
    validate.add_argument("--report-path", help="Optional JSON file to store the report")

    return parser


def _load_labels(path: str | None) -> Dict[int, str]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as fh:
        raw = json.load(fh)
    return {int(key): str(value) for key, value in raw.items()}


def _load(records: str) -> List[Member]:
    try:
        return open_records(records)
    except FileNotFoundError as exc:
        raise SystemExit(str(exc)) from exc


def run_layout(args: argparse.Namespace) -> None:
    set_log_level(args.log_level)
    config = LayoutConfig.from_env().with_viewport(args.width, args.height).with_orientation(args.orientation)
    members = _load(args.records)
    frame = kinfold_api.run_layout(
        members=members,
        out_dir=args.out,
        expand_all=args.expand_all,
        config=config,
        labels=_load_labels(args.labels),
    )
    if frame.placeholder:
        raise SystemExit(frame.placeholder)


def run_branches(args: argparse.Namespace) -> None:
    set_log_level(args.log_level)
    index = RecordIndex(_load(args.records))
    for group in group_by_branch(index, query=args.query, labels=_load_labels(args.labels)):
        console.log(f"[bold]{group.branch_id}: {group.name}[/bold] ({len(group.members)})")
        for member in group.members:
            marker = " (deceased)" if member.is_deceased else ""
            age = member.age()
            age_text = f"  age {age}" if age is not None else ""
            console.log(f"  gen {member.generation}  {member.label}{marker}{age_text}")


def run_validate(args: argparse.Namespace) -> None:
    set_log_level(args.log_level)
    report = build_report(RecordIndex(_load(args.records)))
    report.log()
    if args.report_path:
        with open(args.report_path, "w", encoding="utf-8") as fh:
            json.dump(report.to_dict(), fh, indent=2)
        console.log(f"Report saved to {args.report_path}")
    if not report.ok:
        raise SystemExit("No generation-1 member found")
    console.log("Validation OK")


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "layout":
        run_layout(args)
    elif args.command == "branches":
        run_branches(args)
    elif args.command == "validate":
        run_validate(args)
    else:  # pragma: no cover - defensive
        parser.print_help()


if __name__ == "__main__":  # pragma: no cover
    main()
