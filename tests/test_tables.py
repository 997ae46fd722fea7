import pytest

from codexchips.chip import ChipConfig, ChipConfigTable, ChipColor, GFChip, Solution
from codexchips.tables import ChipTable, SolutionTable, chip_icon_name, sort_solutions


def _chip(**kwargs):
    chip = GFChip(**kwargs)
    chip.calc_value()
    return chip


def _solution(damage=0, defbreak=0, hit=0, reload=0, deviation=0, exp=0, rotations=0, squad=""):
    total = GFChip(
        damage_value=damage,
        defbreak_value=defbreak,
        hit_value=hit,
        reload_value=reload,
        id=deviation,
        exp=exp,
        no=rotations,
    )
    return Solution(total_value=total, squad=squad)


@pytest.fixture
def configs():
    return ChipConfigTable([ChipConfig(grid_id=12, name="Shape12", direction=4)])


def test_column_count_depends_on_status():
    assert ChipTable(show_status=True).column_count() == 10
    assert ChipTable(show_status=False).column_count() == 8


def test_headers_match_column_count():
    for status in (True, False):
        table = ChipTable(show_status=status)
        assert len(table.headers()) == table.column_count()
    assert ChipTable().headers()[0] == "编\n号"


def test_row_shows_values(configs):
    chip = _chip(no=3, grid_id=12, level=20, damage_block=2, hit_block=1, reload_block=3,
                 defbreak_block=1, locked=True, squad=1, chip_class=5061)
    row = ChipTable(configs=configs).row(chip)
    assert row[0] == "3"
    assert row[1] == chip_icon_name(chip)
    assert row[2] == "Shape12"
    assert row[3] == "+20"
    assert row[4:8] == [str(chip.hit_value), str(chip.reload_value),
                        str(chip.damage_value), str(chip.defbreak_value)]
    assert row[8] == "√"
    assert row[9] == "BGM"


def test_row_shows_blocks_and_hides_status(configs):
    chip = _chip(grid_id=12, level=10, damage_block=2, hit_block=1, reload_block=3, defbreak_block=4)
    row = ChipTable(configs=configs, show_blocks=True, show_status=False).row(chip)
    assert len(row) == 8
    assert row[4:8] == ["1", "3", "2", "4"]


def test_unknown_grid_has_empty_name(configs):
    row = ChipTable(configs=configs).row(_chip(grid_id=99))
    assert row[2] == ""
    assert ChipTable().row(_chip(grid_id=12))[2] == ""


def test_icon_name_by_colour():
    assert chip_icon_name(GFChip(color=ChipColor.BLUE, grid_id=12)).startswith("b")
    assert chip_icon_name(GFChip(color=ChipColor.ORANGE, grid_id=12)).startswith("o")
    assert chip_icon_name(GFChip(grid_id=31)).endswith("31")


def test_unlocked_unequipped_status_cells_empty():
    row = ChipTable().row(_chip())
    assert row[8:] == ["", ""]


def test_rows_preserves_order():
    chips = [_chip(no=n) for n in (5, 1, 3)]
    assert [r[0] for r in ChipTable().rows(chips)] == ["5", "1", "3"]


def test_solution_headers():
    headers = SolutionTable().headers()
    assert len(headers) == 9
    assert headers[-1] == "重装"


def test_solution_row_with_error():
    table = SolutionTable(max_value=GFChip(damage_value=100, defbreak_value=50,
                                           hit_value=30, reload_value=20))
    solution = _solution(damage=90, defbreak=60, hit=30, reload=20,
                         deviation=-10, exp=7, rotations=2, squad="AGS")
    row = table.row(0, solution)
    assert row[0] == 1
    assert row[1] == "90 (-10)"
    assert row[2] == "60 (0)"
    assert row[5] == -10
    assert row[6] == 7
    assert row[7] == 100
    assert row[8] == "AGS"


def test_solution_row_without_error():
    table = SolutionTable(show_error=False)
    row = table.row(4, _solution(damage=90, defbreak=60, hit=30, reload=20))
    assert row[:5] == [5, 90, 60, 30, 20]


def test_solution_rows_numbered():
    rows = SolutionTable().rows([_solution(), _solution(), _solution()])
    assert [r[0] for r in rows] == [1, 2, 3]


@pytest.mark.parametrize("column,attr", [
    (1, "damage_value"), (2, "defbreak_value"), (3, "hit_value"),
    (4, "reload_value"), (5, "id"), (6, "exp"), (7, "no"),
])
@pytest.mark.parametrize("descending", [False, True])
def test_sort_solutions_orders_column(column, attr, descending):
    solutions = []
    for value in (3, 1, 2):
        s = _solution()
        setattr(s.total_value, attr, value)
        solutions.append(s)
    result = sort_solutions(solutions, column, descending)
    values = [getattr(s.total_value, attr) for s in result]
    assert values == sorted(values, reverse=descending)
    assert len(result) == len(solutions)


@pytest.mark.parametrize("column", [0, 8, 42])
def test_sort_solutions_keeps_order_for_other_columns(column):
    solutions = [_solution(damage=d) for d in (3, 1, 2)]
    result = sort_solutions(solutions, column, True)
    assert result == solutions


def test_sort_solutions_does_not_modify_input():
    solutions = [_solution(damage=d) for d in (3, 1, 2)]
    sort_solutions(solutions, 1)
    assert [s.total_value.damage_value for s in solutions] == [3, 1, 2]