"""Search for chip arrangements that meet a heavy squad's block targets."""

from __future__ import annotations

import dataclasses
import heapq
import itertools
import json
import math
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

from .chip import (
    ChipConfigTable,
    ChipPuzzleOption,
    ChipViewInfo,
    GFChip,
    Point,
    Solution,
)
from .chipdata import Inventory

ProgressCallback = Callable[[int, int, float], None]
"""Called with (percent done, solutions found so far, elapsed seconds)."""

_ATTRS = ("damage", "defbreak", "hit", "reload")
# How many new solutions are found between progress reports.
_REPORT_INTERVAL = 1000


def _int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def _obj(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _load(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _copy_chip(chip: GFChip, **changes: Any) -> GFChip:
    return dataclasses.replace(chip, position=dataclasses.replace(chip.position), **changes)


@dataclass
class TargetBlock:
    """Desired block counts and search limits.

    ``error`` is how many blocks may overflow the targets in total,
    ``show_number`` how many best solutions are kept and ``max_number``
    after how many solutions the search gives up.
    """

    damage_block: int = 0
    defbreak_block: int = 0
    hit_block: int = 0
    reload_block: int = 0
    error: int = 0
    show_number: int = 1000
    max_number: int = 10**9


@dataclass
class SquadConfig:
    """One named layout plan of a squad, with the squad's basic parameters.

    ``configs`` lists candidate layouts; in each option ``no`` is the grid id
    of the chip shape to place. ``palindrome`` is the number of quarter turns
    under which the squad grid is symmetric, 0 if it is not.
    """

    configs: list[list[ChipPuzzleOption]] = field(default_factory=list)
    blocks: int = 38
    optional: int = 0
    color: int = 0
    palindrome: int = 0
    max_value: GFChip = field(default_factory=GFChip)
    view: ChipViewInfo = field(default_factory=ChipViewInfo)


def _overflows(target: TargetBlock, total: GFChip) -> bool:
    over = sum(
        max(0, getattr(total, f"{attr}_block") - getattr(target, f"{attr}_block"))
        for attr in _ATTRS
    )
    return over > target.error


class ChipSolver:
    """Finds the chip combinations from an inventory that fill a squad's grid.

    Chips that are locked, equipped, or already used by a kept alternative
    solution are skipped unless ``use_locked``, ``use_equipped`` or
    ``use_alt`` is set.
    """

    def __init__(
        self,
        squads: Mapping[str, Mapping[str, SquadConfig]],
        configs: ChipConfigTable,
        inventory: Inventory,
        chip_used: Callable[[int], bool] | None = None,
    ) -> None:
        self._squads = {squad: dict(plans) for squad, plans in squads.items()}
        self._configs = configs
        self._inventory = inventory
        self._chip_used = chip_used or (lambda no: False)
        self._plans: dict[str, SquadConfig] = {}
        self._max_values: dict[str, GFChip] = {}
        self._views: dict[str, ChipViewInfo] = {}
        for squad, plans in self._squads.items():
            for name, plan in plans.items():
                self._plans[name] = plan
                self._max_values[squad] = plan.max_value
                self._views[squad] = plan.view
        self._target_squad = ""
        self._running = False
        self.use_equipped = False
        self.use_locked = False
        self.use_alt = False

    @classmethod
    def from_directory(
        cls,
        path: str | Path,
        configs: ChipConfigTable,
        inventory: Inventory,
        chip_used: Callable[[int], bool] | None = None,
    ) -> ChipSolver:
        """Load squads and their layout plans from a directory of JSON files."""
        base = Path(path)
        squads: dict[str, dict[str, SquadConfig]] = {}
        for squad, plan_files in _obj(_load(base / "squads.json")).items():
            info = _obj(_load(base / f"{squad}.json"))
            rows = info.get("map")
            view = ChipViewInfo(
                width=_int(info.get("width")),
                height=_int(info.get("height")),
                map=[
                    [-(ord(cell) - ord("0")) for cell in row]
                    for row in (rows if isinstance(rows, list) else [])
                    if isinstance(row, str)
                ],
            )
            max_blocks = _obj(info.get("MaxBlocks"))
            max_values = _obj(info.get("MaxValues"))
            max_value = GFChip(
                damage_block=_int(max_blocks.get("damage")),
                defbreak_block=_int(max_blocks.get("def_break")),
                hit_block=_int(max_blocks.get("hit")),
                reload_block=_int(max_blocks.get("reload")),
                damage_value=_int(max_values.get("damage")),
                defbreak_value=_int(max_values.get("def_break")),
                hit_value=_int(max_values.get("hit")),
                reload_value=_int(max_values.get("reload")),
            )
            optional = _obj(info.get("optional"))
            plans: dict[str, SquadConfig] = {}
            for name, filename in _obj(plan_files).items():
                layouts = _load(base / str(filename))
                plans[name] = SquadConfig(
                    configs=[
                        [
                            ChipPuzzleOption.from_json(option)
                            for option in layout
                            if isinstance(option, dict)
                        ]
                        for layout in (layouts if isinstance(layouts, list) else [])
                        if isinstance(layout, list)
                    ],
                    blocks=_int(info.get("blocks")),
                    optional=_int(optional.get(name)),
                    color=_int(info.get("color")),
                    palindrome=_int(info.get("palindrome")),
                    max_value=_copy_chip(max_value),
                    view=view,
                )
            squads[squad] = plans
        return cls(squads, configs, inventory, chip_used)

    def squad_list(self) -> list[str]:
        """Names of all squads, sorted."""
        return sorted(self._squads)

    def config_list(self, squad: str) -> list[str]:
        """Names of a squad's layout plans, sorted; makes it the current squad."""
        self._target_squad = squad
        return sorted(self._squads.get(squad, {}))

    def squad_max_value(self, squad: str) -> GFChip:
        """The squad's maximal blocks and values; all zero if unknown."""
        return _copy_chip(self._max_values.get(squad, GFChip()))

    def stop(self) -> None:
        """Abort a search in progress."""
        self._running = False

    def solve(
        self,
        config_name: str,
        target: TargetBlock | None = None,
        progress: ProgressCallback | None = None,
    ) -> list[Solution]:
        """Best solutions of the named plan, ordered from largest deviation to smallest."""
        plan = self._plans[config_name]
        self._running = True
        try:
            return _Search(self, plan, target or TargetBlock(), progress).run()
        finally:
            self._running = False

    def solution_to_view(self, solution: Solution, squad: str = "") -> ChipViewInfo:
        """The squad grid with each solution chip's cells set to its 1-based number."""
        view = self._views[squad or self._target_squad]
        grid = [list(row) for row in view.map]
        for number, option in enumerate(solution.chips, start=1):
            chip = self._inventory.chips[option.no]
            shape = self._configs.get(chip.grid_id).rotate90(option.rotate)
            for dy, row in enumerate(shape.map):
                for dx, cell in enumerate(row):
                    if cell == "1":
                        grid[option.y + dy][option.x + dx] = number
        return ChipViewInfo(width=view.width, height=view.height, map=grid)


class _Search:
    """State of one depth-first search over a plan's layouts."""

    def __init__(
        self,
        solver: ChipSolver,
        plan: SquadConfig,
        target: TargetBlock,
        progress: ProgressCallback | None,
    ) -> None:
        self.solver = solver
        self.plan = plan
        self.target = target
        self.limit = dataclasses.replace(target, error=target.error + plan.optional)
        self.progress = progress
        self.grid = solver._inventory.grid_chips.get(plan.color, {})
        self.heap: list[tuple[int, int, Solution]] = []
        self.sequence = itertools.count()
        self.count = 0
        self.reported = 0
        self.percent = 0
        self.start = time.perf_counter()
        self.total = GFChip()
        self.layout: list[ChipPuzzleOption] = []
        self.placed: list[ChipPuzzleOption] = []
        self.used: set[int] = set()
        self.seen: set[tuple[int, ...]] = set()

    def _report(self) -> None:
        if self.progress is not None:
            self.progress(self.percent, self.count, time.perf_counter() - self.start)

    def run(self) -> list[Solution]:
        layouts = self.plan.configs
        for index, layout in enumerate(layouts, start=1):
            percent = math.floor(index * 100 / len(layouts) + 0.5)
            if percent > self.percent:
                self.percent = percent
                self._report()
            if not self._satisfied(layout):
                continue
            self.layout = layout
            self.placed = []
            self.seen.clear()
            self._search(0)
            self.reported = self.count
            self._report()
            if self.count >= self.target.max_number:
                break
        solutions = [heapq.heappop(self.heap)[2] for _ in range(len(self.heap))]
        self.percent = 100
        self._report()
        return solutions

    def _satisfied(self, layout: list[ChipPuzzleOption]) -> bool:
        required: dict[int, int] = {}
        for option in layout:
            required[option.no] = required.get(option.no, 0) + 1
        return all(len(self.grid.get(grid_id, [])) >= n for grid_id, n in required.items())

    def _search(self, k: int) -> None:
        solver = self.solver
        if not solver._running:
            return
        if k >= len(self.layout):
            self._record()
            return
        option = self.layout[k]
        for chip in self.grid.get(option.no, []):
            if chip.no in self.used:
                continue
            if (chip.locked and not solver.use_locked) or (chip.squad and not solver.use_equipped):
                continue
            if solver._chip_used(chip.no) and not solver.use_alt:
                continue
            if _overflows(self.limit, self.total + chip):
                continue
            self.used.add(chip.no)
            self.total = self.total + chip
            self.placed.append(dataclasses.replace(option, no=chip.no))
            self._search(k + 1)
            self.placed.pop()
            self.total = self.total - chip
            self.used.discard(chip.no)

    def _record(self) -> None:
        key = tuple(option.no for option in self.placed)
        if key in self.seen:
            return
        self.seen.add(key)

        chips = self.solver._inventory.chips
        configs = self.solver._configs
        chosen = [(option, chips[option.no]) for option in self.placed]
        rotations = sum(option.rotate != chip.rotate for option, chip in chosen)
        exp = sum(chip.exp for _, chip in chosen)
        palindrome = self.plan.palindrome
        if 0 < palindrome < 4:
            turned = sum(
                (chip.rotate + palindrome) % configs.get(chip.grid_id).direction != option.rotate
                for option, chip in chosen
            )
            rotations = min(rotations, turned)
        best = self.plan.max_value
        deviation = sum(
            min(0, getattr(self.total, f"{attr}_value") - getattr(best, f"{attr}_value"))
            for attr in _ATTRS
        )
        solution = Solution(
            chips=list(self.placed),
            total_value=dataclasses.replace(
                self.total,
                position=Point(self.total.position.x, self.total.position.y),
                id=deviation,
                no=rotations,
                exp=exp,
            ),
        )
        heapq.heappush(self.heap, (deviation, next(self.sequence), solution))
        if len(self.heap) > self.target.show_number:
            heapq.heappop(self.heap)
        self.count += 1

        if self.count - self.reported > _REPORT_INTERVAL:
            self.reported = self.count
            self._report()
            if self.count > self.target.max_number:
                self.solver._running = False