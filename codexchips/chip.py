"""Chip records, shape configurations and puzzle solutions."""

from __future__ import annotations

import dataclasses
import json
import math
import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Iterable, Iterator, Mapping

# Per-block attribute coefficients.
_ARG_DAMAGE = 4.4
_ARG_DEFBREAK = 12.7
_ARG_HIT = 7.1
_ARG_RELOAD = 5.7

# Enhancement level coefficients, indexed by level 0..20.
_LEVEL_FACTORS = (
    1.0, 1.08, 1.16, 1.24, 1.32, 1.4, 1.48, 1.56, 1.64, 1.72, 1.8,
    1.87, 1.94, 2.01, 2.08, 2.15, 2.22, 2.29, 2.36, 2.43, 2.5,
)

MAX_LEVEL = len(_LEVEL_FACTORS) - 1

_SQUAD_NAMES = {1: "BGM", 2: "AGS", 3: "2B", 4: "M2", 5: "AT4", 6: "QLZ"}

_INT_PATTERN = re.compile(r"[+-]?\d+")


class ChipClass(IntEnum):
    """Chip class identifiers as used by the game."""

    CLASS_56 = 5061
    CLASS_551 = 5051
    CLASS_552 = 5052


class ChipColor(IntEnum):
    """Chip colours."""

    ORANGE = 1
    BLUE = 2


# Block density of each class; unknown classes count as 5061.
_DENSITY = {
    ChipClass.CLASS_56: 1.0,
    ChipClass.CLASS_551: 0.92,
    ChipClass.CLASS_552: 1.0,
}


def _to_int(text: str) -> int:
    """Parse a decimal integer the lenient way: anything invalid is 0."""
    stripped = text.strip()
    return int(stripped) if _INT_PATTERN.fullmatch(stripped) else 0


def _str_field(obj: Mapping[str, Any], key: str, default: str = "") -> str:
    value = obj.get(key)
    return value if isinstance(value, str) else default


def _str_int(obj: Mapping[str, Any], key: str, default: str = "") -> int:
    return _to_int(_str_field(obj, key, default))


def _json_int(value: Any) -> int:
    """Integer value of a JSON number; non-numbers and fractions give 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def _trunc_mod(a: int, b: int) -> int:
    """Remainder with the sign of the dividend."""
    return int(math.fmod(a, b))


def squad_string(i: int) -> str:
    """Name of the heavy squad with index 1..6, or an empty string."""
    return _SQUAD_NAMES.get(i, "")


@dataclass
class Point:
    """A grid position."""

    x: int = 0
    y: int = 0


@dataclass
class GFChip:
    """A chip as held in the player's inventory."""

    id: int = 0
    no: int = 0
    chip_class: int = 0
    exp: int = 0
    level: int = 0
    color: int = ChipColor.ORANGE
    grid_id: int = 0
    squad: int = 0
    position: Point = field(default_factory=Point)
    rotate: int = 0
    damage_block: int = 0
    reload_block: int = 0
    hit_block: int = 0
    defbreak_block: int = 0
    damage_value: int = 0
    reload_value: int = 0
    hit_value: int = 0
    defbreak_value: int = 0
    locked: bool = False

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> GFChip:
        """Build a chip from the game's JSON record and compute its values."""
        parts = _str_field(obj, "position", "0,0").split(",")
        position = Point(
            _to_int(parts[0]),
            _to_int(parts[1]) if len(parts) > 1 else 0,
        )
        chip = cls(
            id=_str_int(obj, "id", "0"),
            exp=_str_int(obj, "chip_exp", "0"),
            level=_str_int(obj, "chip_level"),
            color=_str_int(obj, "color_id"),
            grid_id=_str_int(obj, "grid_id"),
            chip_class=_str_int(obj, "chip_id"),
            squad=_str_int(obj, "squad_with_user_id"),
            position=position,
            rotate=_to_int(_str_field(obj, "shape_info", "0,0").split(",")[0]),
            damage_block=_str_int(obj, "assist_damage", "0"),
            reload_block=_str_int(obj, "assist_reload", "0"),
            hit_block=_str_int(obj, "assist_hit", "0"),
            defbreak_block=_str_int(obj, "assist_def_break", "0"),
            locked=_str_int(obj, "is_locked", "0") != 0,
        )
        chip.calc_value()
        return chip

    def to_json(self) -> dict[str, str]:
        """Serialise to the game's JSON record format."""
        return {
            "id": str(self.id),
            "chip_exp": str(self.exp),
            "chip_level": str(self.level),
            "color_id": str(int(self.color)),
            "grid_id": str(self.grid_id),
            "chip_id": str(self.chip_class),
            "squad_with_user_id": str(self.squad),
            "position": f"{self.position.x},{self.position.y}",
            "shape_info": f"{self.rotate},0",
            "assist_damage": str(self.damage_block),
            "assist_reload": str(self.reload_block),
            "assist_hit": str(self.hit_block),
            "assist_def_break": str(self.defbreak_block),
            "is_locked": str(int(self.locked)),
        }

    def calc_value(self) -> None:
        """Recompute attribute values from block counts, class and level."""
        if not 0 <= self.level <= MAX_LEVEL:
            raise ValueError(f"chip level {self.level} outside 0..{MAX_LEVEL}")
        density = _DENSITY.get(self.chip_class, 1.0)
        factor = _LEVEL_FACTORS[self.level]

        def value(blocks: int, arg: float) -> int:
            return math.ceil(math.ceil(blocks * arg * density) * factor)

        self.damage_value = value(self.damage_block, _ARG_DAMAGE)
        self.defbreak_value = value(self.defbreak_block, _ARG_DEFBREAK)
        self.hit_value = value(self.hit_block, _ARG_HIT)
        self.reload_value = value(self.reload_block, _ARG_RELOAD)

    def at_level(self, level: int) -> GFChip:
        """A copy of this chip enhanced to the given level."""
        chip = dataclasses.replace(self, level=level, position=dataclasses.replace(self.position))
        chip.calc_value()
        return chip

    def squad_name(self) -> str:
        """Name of the squad this chip is equipped on, if any."""
        return squad_string(self.squad)

    def _combine(self, other: GFChip, sign: int) -> GFChip:
        return dataclasses.replace(
            self,
            position=dataclasses.replace(self.position),
            defbreak_block=self.defbreak_block + sign * other.defbreak_block,
            reload_block=self.reload_block + sign * other.reload_block,
            damage_block=self.damage_block + sign * other.damage_block,
            hit_block=self.hit_block + sign * other.hit_block,
            defbreak_value=self.defbreak_value + sign * other.defbreak_value,
            reload_value=self.reload_value + sign * other.reload_value,
            damage_value=self.damage_value + sign * other.damage_value,
            hit_value=self.hit_value + sign * other.hit_value,
        )

    def __add__(self, other: GFChip) -> GFChip:
        if not isinstance(other, GFChip):
            return NotImplemented
        return self._combine(other, 1)

    def __sub__(self, other: GFChip) -> GFChip:
        if not isinstance(other, GFChip):
            return NotImplemented
        return self._combine(other, -1)


@dataclass
class ChipConfig:
    """Shape parameters of one chip grid type."""

    grid_id: int = 0
    chip_class: int = 0
    width: int = 0
    height: int = 0
    blocks: int = 0
    direction: int = 0
    name: str = ""
    map: tuple[str, ...] = ()

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> ChipConfig:
        """Build a configuration from its JSON description."""
        raw_map = obj.get("map")
        rows = raw_map if isinstance(raw_map, list) else []
        name = obj.get("name")
        return cls(
            grid_id=_json_int(obj.get("ID")),
            chip_class=_json_int(obj.get("class")),
            width=_json_int(obj.get("width")),
            height=_json_int(obj.get("height")),
            blocks=_json_int(obj.get("blocks")),
            direction=_json_int(obj.get("direction")),
            name=name if isinstance(name, str) else "",
            map=tuple(row if isinstance(row, str) else "" for row in rows),
        )

    def rotate90(self, n: int = 1) -> ChipConfig:
        """The shape turned clockwise by n quarter turns."""
        shape = self.map
        width, height = self.width, self.height
        for _ in range(max(n, 0) % 4):
            shape = tuple("".join(column) for column in zip(*reversed(shape)))
            width, height = height, width
        return dataclasses.replace(self, map=shape, width=width, height=height)


class ChipConfigTable:
    """Chip shape configurations looked up by grid id."""

    def __init__(self, configs: Iterable[ChipConfig]) -> None:
        self._configs = {config.grid_id: config for config in configs}

    @classmethod
    def from_json(cls, data: str | bytes | list[Any]) -> ChipConfigTable:
        """Load from a JSON array of configurations, as text or parsed."""
        if isinstance(data, (str, bytes, bytearray)):
            data = json.loads(data)
        items = data if isinstance(data, list) else []
        return cls(ChipConfig.from_json(item) for item in items if isinstance(item, dict))

    def get(self, grid_id: int) -> ChipConfig:
        """The configuration of a grid id; KeyError if unknown."""
        try:
            return self._configs[grid_id]
        except KeyError:
            raise KeyError(f"unknown chip grid id {grid_id}") from None

    def __contains__(self, grid_id: object) -> bool:
        return grid_id in self._configs

    def __len__(self) -> int:
        return len(self._configs)

    def __iter__(self) -> Iterator[ChipConfig]:
        return iter(self._configs.values())


@dataclass
class ChipPuzzleOption:
    """Placement of one chip within a puzzle solution."""

    x: int = 0
    y: int = 0
    rotate: int = 0
    no: int = 0

    def __post_init__(self) -> None:
        self.x %= 256
        self.y %= 256
        self.rotate %= 256

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> ChipPuzzleOption:
        return cls(
            x=_json_int(obj.get("x")),
            y=_json_int(obj.get("y")),
            rotate=_json_int(obj.get("rotate")),
            no=_json_int(obj.get("ID")),
        )

    def to_json(self) -> dict[str, int]:
        return {"ID": self.no, "x": self.x, "y": self.y, "rotate": self.rotate}


@dataclass
class ChipViewInfo:
    """A squad grid: 0 empty, >0 chip number, <0 unusable."""

    width: int = 0
    height: int = 0
    map: list[list[int]] = field(default_factory=list)


@dataclass
class Solution:
    """One feasible chip arrangement.

    In ``total_value``, ``id`` holds the total deviation from the squad's
    maximum, ``exp`` the summed experience and ``no`` the number of rotations.
    """

    chips: list[ChipPuzzleOption] = field(default_factory=list)
    total_value: GFChip = field(default_factory=GFChip)
    squad: str = ""

    def __lt__(self, other: Solution) -> bool:
        if not isinstance(other, Solution):
            return NotImplemented
        return self.total_value.id > other.total_value.id

    def to_json(self) -> dict[str, Any]:
        return {
            "totalValue": self.total_value.to_json(),
            "squad": self.squad,
            "chips": [chip.to_json() for chip in self.chips],
        }

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> Solution:
        total = obj.get("totalValue")
        chips = obj.get("chips")
        squad = obj.get("squad")
        return cls(
            chips=[
                ChipPuzzleOption.from_json(item)
                for item in (chips if isinstance(chips, list) else [])
                if isinstance(item, dict)
            ],
            total_value=GFChip.from_json(total if isinstance(total, dict) else {}),
            squad=squad if isinstance(squad, str) else "",
        )


def get_chips(obj: Mapping[str, Any], configs: ChipConfigTable) -> list[GFChip]:
    """Usable chips from the game's chip table, sorted by id and numbered from 1."""
    chips = []
    for record in obj.values():
        chip = GFChip.from_json(record if isinstance(record, dict) else {})
        if chip.chip_class in _DENSITY and chip.grid_id > 11:
            chip.rotate = _trunc_mod(chip.rotate, configs.get(chip.grid_id).direction)
            chips.append(chip)
    chips.sort(key=lambda c: c.id)
    for number, chip in enumerate(chips, start=1):
        chip.no = number
    return chips