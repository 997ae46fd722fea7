"""Loading the player's chip inventory from the data the game server hands out."""

from __future__ import annotations

import base64
import binascii
import dataclasses
import json
import re
import zlib
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import quote

from .chip import MAX_LEVEL, ChipConfigTable, GFChip, get_chips

LOCAL_ENDPOINT = "http://127.0.0.1:8080/chipJson"

_PROXY_MARKER = "代理地址"
_NON_BASE64 = re.compile(rb"[^A-Za-z0-9+/]")
_INT_PATTERN = re.compile(r"[+-]?\d+")
# Accept both gzip and zlib wrapped streams.
_AUTO_WBITS = 32 + zlib.MAX_WBITS


class ChipDataError(ValueError):
    """Raised when chip data cannot be decoded or parsed."""


def _str_int(obj: Mapping[str, Any], key: str) -> int:
    value = obj.get(key)
    text = value.strip() if isinstance(value, str) else ""
    return int(text) if _INT_PATTERN.fullmatch(text) else 0


def _object(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class StatSummary:
    """One attribute of a squad's equipped chips.

    ``current`` is the value as equipped, ``maximum`` the value with every
    chip at +20, ``deviation`` how far ``maximum`` falls short of the squad's
    best (never positive) and ``blocks`` the equipped block count.
    """

    current: int
    maximum: int
    deviation: int
    blocks: int

    def __str__(self) -> str:
        return f"{self.current}/{self.maximum}/{self.deviation}/{self.blocks}"


@dataclass
class Inventory:
    """The player's chips, grouped for the solver and by equipped squad.

    ``grid_chips`` maps colour, then grid id, to copies of the chips at +20
    whose ``no`` is their index into ``chips``.
    """

    chips: list[GFChip] = field(default_factory=list)
    grid_chips: dict[int, dict[int, list[GFChip]]] = field(default_factory=dict)
    squad_chips: dict[int, list[GFChip]] = field(default_factory=dict)

    @classmethod
    def from_json(cls, obj: Mapping[str, Any], configs: ChipConfigTable) -> Inventory:
        """Build the inventory from the game's user-info object."""
        squad_ids = {
            _str_int(entry, "id"): _str_int(entry, "squad_id")
            for entry in map(_object, _object(obj.get("squad_with_user_info")).values())
        }
        chips = get_chips(_object(obj.get("chip_with_user_info")), configs)
        grid_chips: dict[int, dict[int, list[GFChip]]] = defaultdict(lambda: defaultdict(list))
        squad_chips: dict[int, list[GFChip]] = defaultdict(list)
        for index, chip in enumerate(chips):
            chip.no = index + 1
            if chip.squad > 0:
                chip.squad = squad_ids.get(chip.squad, 0)
                squad_chips[chip.squad].append(
                    dataclasses.replace(chip, position=dataclasses.replace(chip.position))
                )
            enhanced = chip.at_level(MAX_LEVEL)
            enhanced.no = index
            grid_chips[enhanced.color][enhanced.grid_id].append(enhanced)
        return cls(
            chips=chips,
            grid_chips={color: dict(grids) for color, grids in grid_chips.items()},
            squad_chips=dict(squad_chips),
        )

    def squad_summary(self, squad: int, max_value: GFChip) -> dict[str, StatSummary]:
        """Damage, defence break, hit and reload summaries of a squad's chips."""
        total = GFChip()
        best = GFChip()
        for chip in self.squad_chips.get(squad, []):
            total = total + chip
            best = best + chip.at_level(MAX_LEVEL)

        def summary(attr: str) -> StatSummary:
            maximum = getattr(best, f"{attr}_value")
            return StatSummary(
                current=getattr(total, f"{attr}_value"),
                maximum=maximum,
                deviation=min(0, maximum - getattr(max_value, f"{attr}_value")),
                blocks=getattr(total, f"{attr}_block"),
            )

        return {attr: summary(attr) for attr in ("damage", "defbreak", "hit", "reload")}


def parse_chip_data(data: bytes | str) -> dict[str, Any]:
    """Decode '#' + base64 of compressed JSON into the user-info object."""
    raw = data.encode("latin-1") if isinstance(data, str) else bytes(data)
    if not raw or raw[:1] != b"#":
        raise ChipDataError("chip data must start with '#'")
    payload = _NON_BASE64.sub(b"", raw[1:].split(b"=", 1)[0])
    payload += b"=" * (-len(payload) % 4)
    try:
        compressed = base64.b64decode(payload)
        text = zlib.decompress(compressed, _AUTO_WBITS)
    except (binascii.Error, zlib.error) as exc:
        raise ChipDataError(f"failed to decode chip data: {exc}") from exc
    try:
        document = json.loads(text)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ChipDataError(f"chip data is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise ChipDataError("chip data is not a JSON object")
    return document


def build_request_body(uid: str, name: str) -> bytes:
    """Form body asking the data server for a player's chips."""
    encoded_name = quote(name.encode("utf-8"), safe="")
    body = f"uid={uid}&name={encoded_name}&locked=0&equipped=0"
    return body.encode("latin-1", errors="replace")


def parse_proxy_address(output: str) -> tuple[str, str] | None:
    """Address and port announced by the local proxy, or None if not announced."""
    if _PROXY_MARKER not in output:
        return None
    words = output.split(" ")
    if len(words) < 3:
        raise ChipDataError("proxy announcement has no address")
    parts = words[2].split(":")
    if len(parts) < 2:
        raise ChipDataError("proxy announcement has no port")
    return parts[0], parts[1]