"""A kept list of alternative solutions and the chips they reserve."""

from __future__ import annotations

import json
from collections import Counter
from typing import Iterable, Iterator

from .chip import Solution


class AltSolutionStore:
    """Alternative solutions set aside by the user.

    Tracks how many kept solutions use each chip, by chip index.
    """

    def __init__(self, solutions: Iterable[Solution] = ()) -> None:
        self._solutions: list[Solution] = []
        self._chip_count: Counter[int] = Counter()
        for solution in solutions:
            self.add(solution)

    def add(self, solution: Solution) -> None:
        """Keep a solution."""
        self._chip_count.update(option.no for option in solution.chips)
        self._solutions.append(solution)

    def clear(self) -> None:
        """Forget every solution."""
        self._solutions.clear()
        self._chip_count.clear()

    def remove(self, index: int) -> Solution:
        """Drop and return the solution at a position; IndexError if none."""
        if not 0 <= index < len(self._solutions):
            raise IndexError(f"no alternative solution at {index}")
        solution = self._solutions.pop(index)
        self._chip_count.subtract(option.no for option in solution.chips)
        return solution

    def chip_used(self, no: int) -> bool:
        """Whether any kept solution uses the chip with this index."""
        return self._chip_count[no] > 0

    def to_json(self) -> str:
        """The kept solutions as a compact JSON array."""
        return json.dumps(
            [solution.to_json() for solution in self._solutions],
            ensure_ascii=False,
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> AltSolutionStore:
        """Restore from a JSON array; ValueError if it is not one."""
        data = json.loads(text)
        if not isinstance(data, list):
            raise ValueError("alternative solutions must be a JSON array")
        return cls(Solution.from_json(item) for item in data if isinstance(item, dict))

    def __getitem__(self, index: int) -> Solution:
        return self._solutions[index]

    def __len__(self) -> int:
        return len(self._solutions)

    def __iter__(self) -> Iterator[Solution]:
        return iter(self._solutions)