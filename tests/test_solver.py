import json

import pytest

from codexchips.chip import (
    ChipClass,
    ChipColor,
    ChipConfig,
    ChipConfigTable,
    ChipPuzzleOption,
    ChipViewInfo,
    GFChip,
)
from codexchips.chipdata import Inventory
from codexchips.solver import ChipSolver, SquadConfig, TargetBlock

DOMINO = ChipConfig(
    grid_id=12, chip_class=5061, width=2, height=1, blocks=2, direction=2,
    name="domino", map=("11",),
)
CONFIGS = ChipConfigTable([DOMINO])


def make_inventory(*specs):
    chips = []
    grid = {}
    for index, spec in enumerate(specs):
        chip = GFChip(
            id=index + 1, no=index + 1, chip_class=ChipClass.CLASS_56, level=20,
            color=ChipColor.ORANGE, grid_id=12, **spec,
        )
        chip.calc_value()
        chips.append(chip)
        copy = chip.at_level(20)
        copy.no = index
        grid.setdefault(chip.color, {}).setdefault(chip.grid_id, []).append(copy)
    return Inventory(chips=chips, grid_chips=grid, squad_chips={})


def default_layout(rotate=0):
    return [ChipPuzzleOption(0, 0, rotate, 12), ChipPuzzleOption(0, 1, rotate, 12)]


def make_plan(layouts=None, max_value=None, **kwargs):
    return SquadConfig(
        configs=layouts if layouts is not None else [default_layout()],
        color=ChipColor.ORANGE,
        max_value=max_value or GFChip(),
        view=ChipViewInfo(2, 2, [[0, 0], [0, 0]]),
        **kwargs,
    )


def make_solver(inventory, plan=None, chip_used=None):
    return ChipSolver({"BGM": {"plan": plan or make_plan()}}, CONFIGS, inventory, chip_used)


def three_chips(**extra):
    return make_inventory(*({"damage_block": 2, **extra} for _ in range(3)))


def test_all_ordered_pairs_found():
    solver = make_solver(three_chips())
    result = solver.solve("plan", TargetBlock(damage_block=4))
    pairs = {tuple(o.no for o in s.chips) for s in result}
    assert len(result) == 3 * 2
    assert pairs == {(a, b) for a in range(3) for b in range(3) if a != b}
    assert all(s.total_value.damage_block == 4 for s in result)


def test_positions_copied_from_layout():
    solver = make_solver(three_chips())
    result = solver.solve("plan", TargetBlock(damage_block=4))
    assert all([(o.x, o.y) for o in s.chips] == [(0, 0), (0, 1)] for s in result)


def test_overflow_rejected_and_error_allows_it():
    solver = make_solver(three_chips())
    assert solver.solve("plan", TargetBlock(damage_block=2)) == []
    assert len(solver.solve("plan", TargetBlock(damage_block=2, error=2))) == 6


def test_optional_blocks_add_to_error():
    solver = make_solver(three_chips(), make_plan(optional=2))
    assert len(solver.solve("plan", TargetBlock(damage_block=2))) == 6


def test_locked_chips_skipped_unless_allowed():
    inventory = make_inventory(
        {"damage_block": 2}, {"damage_block": 2}, {"damage_block": 2, "locked": True}
    )
    solver = make_solver(inventory)
    target = TargetBlock(damage_block=4)
    limited = solver.solve("plan", target)
    assert all(2 not in [o.no for o in s.chips] for s in limited)
    assert len(limited) == 2
    solver.use_locked = True
    assert len(solver.solve("plan", target)) == 6


def test_equipped_chips_skipped_unless_allowed():
    inventory = make_inventory(
        {"damage_block": 2}, {"damage_block": 2, "squad": 1}, {"damage_block": 2}
    )
    solver = make_solver(inventory)
    target = TargetBlock(damage_block=4)
    assert all(1 not in [o.no for o in s.chips] for s in solver.solve("plan", target))
    solver.use_equipped = True
    assert len(solver.solve("plan", target)) == 6


def test_alt_used_chips_skipped_unless_allowed():
    solver = make_solver(three_chips(), chip_used=lambda no: no == 0)
    target = TargetBlock(damage_block=4)
    limited = solver.solve("plan", target)
    assert all(0 not in [o.no for o in s.chips] for s in limited)
    assert len(limited) == 2
    solver.use_alt = True
    assert len(solver.solve("plan", target)) == 6


def test_show_number_keeps_best_in_ascending_order():
    inventory = make_inventory({"damage_block": 1}, {"damage_block": 2}, {"damage_block": 3})
    plan = make_plan(max_value=GFChip(damage_value=10000))
    solver = make_solver(inventory, plan)
    full = solver.solve("plan", TargetBlock(damage_block=10))
    ids = [s.total_value.id for s in full]
    assert ids == sorted(ids)
    limited = solver.solve("plan", TargetBlock(damage_block=10, show_number=2))
    assert [s.total_value.id for s in limited] == sorted(ids)[-2:]


def test_deviation_is_shortfall_from_max():
    plan = make_plan(max_value=GFChip(damage_value=10000))
    solver = make_solver(three_chips(), plan)
    for s in solver.solve("plan", TargetBlock(damage_block=4)):
        assert s.total_value.id == s.total_value.damage_value - 10000


def test_no_deviation_when_max_reached():
    solver = make_solver(three_chips())
    result = solver.solve("plan", TargetBlock(damage_block=4))
    assert {s.total_value.id for s in result} == {0}


def test_missing_chips_give_no_solution_and_full_progress():
    events = []
    solver = make_solver(make_inventory({"damage_block": 2}))
    result = solver.solve("plan", TargetBlock(damage_block=4), lambda *e: events.append(e))
    assert result == []
    assert events[-1][0] == 100


def test_max_number_stops_after_layout():
    plan = make_plan(layouts=[default_layout(), default_layout()])
    solver = make_solver(three_chips(), plan)
    everything = solver.solve("plan", TargetBlock(damage_block=4))
    capped = solver.solve("plan", TargetBlock(damage_block=4, max_number=1))
    assert len(everything) == 2 * len(capped)


def test_stop_from_progress_aborts():
    solver = make_solver(three_chips())
    result = solver.solve("plan", TargetBlock(damage_block=4), lambda *e: solver.stop())
    assert result == []


def test_rotations_and_exp_summed():
    inventory = make_inventory(
        {"damage_block": 2, "rotate": 1, "exp": 5}, {"damage_block": 2, "rotate": 1, "exp": 7}
    )
    solver = make_solver(inventory)
    result = solver.solve("plan", TargetBlock(damage_block=4))
    assert {s.total_value.no for s in result} == {2}
    expected_exp = inventory.chips[0].exp + inventory.chips[1].exp
    assert {s.total_value.exp for s in result} == {expected_exp}


def test_palindrome_counts_turned_grid():
    inventory = make_inventory({"damage_block": 2}, {"damage_block": 2})
    plan = make_plan(layouts=[default_layout(rotate=1)], palindrome=1)
    plain = make_plan(layouts=[default_layout(rotate=1)])
    target = TargetBlock(damage_block=4)
    assert {s.total_value.no for s in make_solver(inventory, plain).solve("plan", target)} == {2}
    assert {s.total_value.no for s in make_solver(inventory, plan).solve("plan", target)} == {0}


def test_unknown_plan_raises():
    with pytest.raises(KeyError):
        make_solver(three_chips()).solve("missing")


def test_solution_to_view_marks_cells():
    solver = make_solver(three_chips())
    solution = solver.solve("plan", TargetBlock(damage_block=4))[0]
    view = solver.solution_to_view(solution, "BGM")
    assert view.map == [[1, 1], [2, 2]]
    assert solver.solution_to_view(solution, "BGM").map == view.map


def test_solution_to_view_uses_current_squad():
    solver = make_solver(three_chips())
    solution = solver.solve("plan", TargetBlock(damage_block=4))[0]
    with pytest.raises(KeyError):
        solver.solution_to_view(solution)
    assert solver.config_list("BGM") == ["plan"]
    assert solver.solution_to_view(solution).map == [[1, 1], [2, 2]]


def test_lists_and_max_values():
    plan = make_plan(max_value=GFChip(damage_block=9))
    solver = ChipSolver(
        {"M2": {"b": plan, "a": plan}, "AGS": {}}, CONFIGS, three_chips()
    )
    assert solver.squad_list() == ["AGS", "M2"]
    assert solver.config_list("M2") == ["a", "b"]
    assert solver.squad_max_value("M2").damage_block == 9
    assert solver.squad_max_value("nobody") == GFChip()


def test_from_directory(tmp_path):
    (tmp_path / "squads.json").write_text(json.dumps({"BGM": {"p1": "bgm_p1.json"}}))
    (tmp_path / "BGM.json").write_text(json.dumps({
        "width": 2, "height": 2, "map": ["01", "00"], "blocks": 3,
        "optional": {"p1": 1}, "color": 1, "palindrome": 0,
        "MaxBlocks": {"damage": 4, "def_break": 1, "hit": 0, "reload": 0},
        "MaxValues": {"damage": 40, "def_break": 30, "hit": 0, "reload": 0},
    }))
    (tmp_path / "bgm_p1.json").write_text(json.dumps(
        [[{"ID": 12, "x": 0, "y": 1, "rotate": 0}]]
    ))
    solver = ChipSolver.from_directory(tmp_path, CONFIGS, three_chips())
    assert solver.squad_list() == ["BGM"]
    assert solver.config_list("BGM") == ["p1"]
    best = solver.squad_max_value("BGM")
    assert (best.damage_block, best.defbreak_value) == (4, 30)
    result = solver.solve("p1", TargetBlock(damage_block=2))
    assert len(result) == 3
    assert solver.solution_to_view(result[0]).map == [[0, -1], [1, 1]]