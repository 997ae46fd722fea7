"""Command line front end: load chip data, solve a squad's layout plan, print results."""

from __future__ import annotations

import argparse
import dataclasses
import json
import re
import sys
from pathlib import Path
from typing import Sequence

from .alt_solutions import AltSolutionStore
from .chip import ChipConfigTable, Solution
from .chipdata import Inventory, parse_chip_data
from .solver import ChipSolver, TargetBlock
from .tables import ChipTable, SolutionTable, sort_solutions

VERSION = (2, 0, 0)

DEFAULT_SHOW_NUMBER = 1000
DEFAULT_MAX_NUMBER = 10000

NO_SOLUTION_MESSAGE = (
    "没有算出可行解哦！\n攒更多芯片后再来试试吧~\n也可以修改格数方案以及自由格数尝试哦~"
)

# Column sorted by when a search finishes: total deviation.
_DEVIATION_COLUMN = 5
# The squad column is not shown for freshly solved plans.
_SHOWN_COLUMNS = 8

_VERSION_PATTERN = re.compile(r"\d+(?:\.\d+)*")


def default_targets(solver: ChipSolver) -> dict[str, TargetBlock]:
    """Targets for every squad: its maximal blocks, no free blocks, default limits."""
    targets = {}
    for squad in solver.squad_list():
        best = solver.squad_max_value(squad)
        targets[squad] = TargetBlock(
            damage_block=best.damage_block,
            defbreak_block=best.defbreak_block,
            hit_block=best.hit_block,
            reload_block=best.reload_block,
            error=0,
            show_number=DEFAULT_SHOW_NUMBER,
            max_number=DEFAULT_MAX_NUMBER,
        )
    return targets


def _parse_version(text: str) -> tuple[int, ...]:
    match = _VERSION_PATTERN.match(text)
    if match is None:
        return ()
    return tuple(int(part) for part in match.group().split("."))


def parse_release_tag(tag: str) -> tuple[int, ...] | None:
    """Version numbers of a release tag such as ``v2.1.0``; None without a 'v'."""
    parts = tag.lower().split("v")
    if len(parts) < 2:
        return None
    return _parse_version(parts[1])


def is_newer(tag: str, current: str | Sequence[int] = VERSION) -> bool:
    """Whether a release tag names a version later than ``current``."""
    version = parse_release_tag(tag)
    if version is None:
        return False
    base = _parse_version(current) if isinstance(current, str) else tuple(current)
    return version > base


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codexchips",
        description="Find chip arrangements for heavy squads.",
    )
    parser.add_argument("--chips", type=Path, required=True,
                        help="chip shape configurations, a JSON array")
    parser.add_argument("--squads", type=Path, required=True,
                        help="directory holding squads.json and the layout files")
    parser.add_argument("--data", type=Path,
                        help="player chip data, '#'-encoded or plain JSON")
    parser.add_argument("--squad", help="squad to solve")
    parser.add_argument("--plan", help="layout plan of the squad")
    for attr in ("damage", "defbreak", "hit", "reload"):
        parser.add_argument(f"--{attr}", type=int, help=f"target {attr} blocks")
    parser.add_argument("--error", type=int, help="allowed overflowing blocks")
    parser.add_argument("--show", type=int, default=DEFAULT_SHOW_NUMBER,
                        help="number of solutions kept")
    parser.add_argument("--max", type=int, default=DEFAULT_MAX_NUMBER,
                        help="number of solutions after which the search stops")
    parser.add_argument("--use-locked", action="store_true", help="use locked chips")
    parser.add_argument("--use-equipped", action="store_true", help="use equipped chips")
    parser.add_argument("--use-alt", action="store_true",
                        help="use chips reserved by alternative solutions")
    parser.add_argument("--alt", type=Path, help="file of kept alternative solutions")
    parser.add_argument("--keep", type=int,
                        help="keep solution N as an alternative (needs --alt)")
    parser.add_argument("--select", type=int, help="show chips and grid of solution N")
    parser.add_argument("--progress", action="store_true", help="report progress on stderr")
    parser.add_argument("--check-release", metavar="TAG",
                        help="tell whether a release tag is newer than this version")
    return parser


def _load_inventory(path: Path | None, configs: ChipConfigTable) -> Inventory:
    if path is None:
        return Inventory()
    raw = path.read_bytes()
    if raw.startswith(b"#"):
        document = parse_chip_data(raw)
    else:
        document = json.loads(raw)
        if not isinstance(document, dict):
            raise ValueError("chip data is not a JSON object")
    return Inventory.from_json(document, configs)


def _load_store(path: Path | None) -> AltSolutionStore:
    if path is None or not path.exists():
        return AltSolutionStore()
    return AltSolutionStore.from_json(path.read_text(encoding="utf-8"))


def _pick(solutions: list[Solution], number: int) -> Solution:
    if not 1 <= number <= len(solutions):
        raise ValueError(f"no solution numbered {number}")
    return solutions[number - 1]


def _target(args: argparse.Namespace, solver: ChipSolver, squad: str) -> TargetBlock:
    target = default_targets(solver)[squad]
    changes = {
        f"{attr}_block": getattr(args, attr)
        for attr in ("damage", "defbreak", "hit", "reload")
        if getattr(args, attr) is not None
    }
    if args.error is not None:
        changes["error"] = args.error
    return dataclasses.replace(target, show_number=args.show, max_number=args.max, **changes)


def _progress(percent: int, count: int, elapsed: float) -> None:
    print(f"{percent}% {count} solutions {elapsed:.2f}s", file=sys.stderr)


def _run(args: argparse.Namespace) -> int:
    if args.check_release is not None:
        if is_newer(args.check_release):
            print(f"new version available: {args.check_release}")
        else:
            print("up to date")

    configs = ChipConfigTable.from_json(args.chips.read_bytes())
    inventory = _load_inventory(args.data, configs)
    store = _load_store(args.alt)
    solver = ChipSolver.from_directory(args.squads, configs, inventory, store.chip_used)
    solver.use_locked = args.use_locked
    solver.use_equipped = args.use_equipped
    solver.use_alt = args.use_alt

    if args.squad is None:
        for squad in solver.squad_list():
            print(f"{squad}: {', '.join(solver.config_list(squad))}")
        return 0
    if args.squad not in solver.squad_list():
        raise ValueError(f"unknown squad {args.squad}")
    plans = solver.config_list(args.squad)
    if args.plan is None:
        for plan in plans:
            print(plan)
        return 0
    if args.plan not in plans:
        raise ValueError(f"unknown plan {args.plan} for squad {args.squad}")

    solutions = solver.solve(
        args.plan,
        _target(args, solver, args.squad),
        _progress if args.progress else None,
    )
    solutions = sort_solutions(solutions, _DEVIATION_COLUMN, descending=True)
    if not solutions:
        print(NO_SOLUTION_MESSAGE)
        return 0

    table = SolutionTable(max_value=solver.squad_max_value(args.squad))
    print("\t".join(table.headers()[:_SHOWN_COLUMNS]))
    for row in table.rows(solutions):
        print("\t".join(str(cell) for cell in row[:_SHOWN_COLUMNS]))

    if args.select is not None:
        chosen = _pick(solutions, args.select)
        chip_table = ChipTable(configs=configs, show_status=False)
        print("\t".join(header.replace("\n", "") for header in chip_table.headers()))
        for option in chosen.chips:
            print("\t".join(chip_table.row(inventory.chips[option.no])))
        print("grid:")
        for grid_row in solver.solution_to_view(chosen, args.squad).map:
            print(" ".join(f"{cell:>2}" for cell in grid_row))

    if args.keep is not None:
        if args.alt is None:
            raise ValueError("--keep needs --alt")
        store.add(dataclasses.replace(_pick(solutions, args.keep), squad=args.squad))
        args.alt.write_text(store.to_json(), encoding="utf-8")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line tool; returns the exit status."""
    args = _build_parser().parse_args(argv)
    try:
        return _run(args)
    except (OSError, ValueError, KeyError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())