"""Tabular views of chips and solutions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

from .chip import ChipColor, ChipConfigTable, GFChip, Solution

_CHIP_HEADERS = (
    "编\n号",
    "形\n状",
    "名\n称",
    "强\n化",
    "精\n度",
    "装\n填",
    "伤\n害",
    "破\n防",
    "锁\n定",
    "装\n备",
)

_SOLUTION_HEADERS = (
    "编号",
    "杀伤",
    "破防",
    "精度",
    "装填",
    "总偏差",
    "总强化",
    "校准券",
    "重装",
)

_LOCKED_MARK = "√"
# Calibration tickets spent on each chip rotation.
_TICKETS_PER_ROTATION = 50

_SORT_KEYS: dict[int, Callable[[Solution], int]] = {
    1: lambda s: s.total_value.damage_value,
    2: lambda s: s.total_value.defbreak_value,
    3: lambda s: s.total_value.hit_value,
    4: lambda s: s.total_value.reload_value,
    5: lambda s: s.total_value.id,
    6: lambda s: s.total_value.exp,
    7: lambda s: s.total_value.no,
}


def chip_icon_name(chip: GFChip) -> str:
    """Resource name of a chip's icon image, such as ``o12`` or ``b31``."""
    prefix = "b" if chip.color == ChipColor.BLUE else "o"
    return f"{prefix}{chip.grid_id}"


@dataclass
class ChipTable:
    """Rows describing chips.

    ``show_blocks`` shows block counts instead of attribute values;
    ``show_status`` adds the locked and equipped columns.
    """

    configs: ChipConfigTable | None = None
    show_blocks: bool = False
    show_status: bool = True

    def column_count(self) -> int:
        """Number of columns shown."""
        return len(_CHIP_HEADERS) if self.show_status else len(_CHIP_HEADERS) - 2

    def headers(self) -> list[str]:
        """Column titles."""
        return list(_CHIP_HEADERS[: self.column_count()])

    def _name(self, chip: GFChip) -> str:
        if self.configs is None or chip.grid_id not in self.configs:
            return ""
        return self.configs.get(chip.grid_id).name

    def row(self, chip: GFChip) -> list[str]:
        """The cells describing one chip."""
        if self.show_blocks:
            stats = (chip.hit_block, chip.reload_block, chip.damage_block, chip.defbreak_block)
        else:
            stats = (chip.hit_value, chip.reload_value, chip.damage_value, chip.defbreak_value)
        cells = [
            str(chip.no),
            chip_icon_name(chip),
            self._name(chip),
            f"+{chip.level}",
            *(str(value) for value in stats),
            _LOCKED_MARK if chip.locked else "",
            chip.squad_name(),
        ]
        return cells[: self.column_count()]

    def rows(self, chips: Iterable[GFChip]) -> list[list[str]]:
        """The cells of every chip, in order."""
        return [self.row(chip) for chip in chips]


@dataclass
class SolutionTable:
    """Rows describing solutions.

    With ``show_error`` each attribute is followed by its shortfall from
    ``max_value`` in parentheses.
    """

    max_value: GFChip = field(default_factory=GFChip)
    show_error: bool = True

    def headers(self) -> list[str]:
        """Column titles."""
        return list(_SOLUTION_HEADERS)

    def _stat(self, value: int, best: int) -> int | str:
        if self.show_error:
            return f"{value} ({min(0, value - best)})"
        return value

    def row(self, index: int, solution: Solution) -> list[int | str]:
        """The cells describing the solution at a zero-based position."""
        total = solution.total_value
        best = self.max_value
        return [
            index + 1,
            self._stat(total.damage_value, best.damage_value),
            self._stat(total.defbreak_value, best.defbreak_value),
            self._stat(total.hit_value, best.hit_value),
            self._stat(total.reload_value, best.reload_value),
            total.id,
            total.exp,
            total.no * _TICKETS_PER_ROTATION,
            solution.squad,
        ]

    def rows(self, solutions: Iterable[Solution]) -> list[list[int | str]]:
        """The cells of every solution, numbered from 1."""
        return [self.row(index, solution) for index, solution in enumerate(solutions)]


def sort_solutions(
    solutions: Sequence[Solution], column: int, descending: bool = False
) -> list[Solution]:
    """Solutions ordered by a table column; the number column and unknown columns keep order."""
    key = _SORT_KEYS.get(column)
    if key is None:
        return list(solutions)
    return sorted(solutions, key=key, reverse=descending)