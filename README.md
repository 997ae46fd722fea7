# codexchips

Tools for working with an exported chip inventory and for finding chip
layouts that fill a heavy-ordnance squad's grid.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

The package has no runtime dependencies beyond the standard library.

## Command line

```
codexchips --chips CHIPS.json --squads SQUAD_DIR [options]
```

- `--chips` (required): the chip shape definitions, a JSON array of objects
  with `ID`, `class`, `width`, `height`, `blocks`, `direction`, `name` and
  `map`.
- `--squads` (required): a directory holding `squads.json`, which maps each
  squad name to its plans (`{plan name: layout file}`), one `<squad>.json`
  per squad (`width`, `height`, `map`, `blocks`, `optional`, `color`,
  `palindrome`, `MaxBlocks`, `MaxValues`) and the layout files themselves.
- `--data`: the player's chip data, either `#`-prefixed base64 of a gzip or
  zlib compressed JSON object, or that JSON object in plain form. Without it
  the inventory is empty.

What the command does depends on how much is given:

- without `--squad`, it lists every squad with its plans;
- with `--squad` but no `--plan`, it lists that squad's plans;
- with both, it searches the plan and prints the solutions found as
  tab-separated rows (number, the four attribute values with their shortfall
  from the squad's maximum, total deviation, total enhancement experience and
  calibration tickets), best deviation first. If nothing is found it says so.

Search options:

- `--damage`, `--defbreak`, `--hit`, `--reload`: target blocks per attribute
  (defaults to the squad's maximal blocks);
- `--error`: how many blocks may overflow the targets in total (default 0);
- `--show`: how many solutions are kept (default 1000);
- `--max`: after how many solutions the search stops (default 10000);
- `--use-locked`, `--use-equipped`, `--use-alt`: also use locked chips,
  equipped chips, or chips reserved by kept alternative solutions;
- `--progress`: report percent done, solutions found and elapsed time on
  standard error.

Result options:

- `--select N`: print the chips of solution N and the squad grid with each
  chip's cells marked by its number;
- `--alt FILE`: a JSON file of kept alternative solutions; its chips count as
  reserved;
- `--keep N`: add solution N to the `--alt` file;
- `--check-release TAG`: print whether a release tag such as `v2.1.0` names a
  version newer than this one.

The command exits with status 1 and a message on standard error when a file
cannot be read, the data is malformed, or a squad, plan or solution number is
unknown.

## Library use

```python
from codexchips.chip import ChipConfigTable, get_chips
from codexchips.chipdata import Inventory, parse_chip_data
from codexchips.solver import ChipSolver, TargetBlock
```

- `codexchips.chip`: chip records (`GFChip`, with `from_json`, `to_json`,
  `calc_value`, `at_level`, `squad_name` and `+`/`-` of blocks and values),
  shapes (`ChipConfig`, `rotate90`), shape lookup by grid id
  (`ChipConfigTable`), placements (`ChipPuzzleOption`), grids
  (`ChipViewInfo`), solutions (`Solution`), `get_chips` and `squad_string`.
- `codexchips.chipdata`: `parse_chip_data` decodes exported data (raising
  `ChipDataError`); `Inventory.from_json` groups chips by colour and shape
  at +20 and by equipped squad, and `Inventory.squad_summary` gives a
  `StatSummary` per attribute. `build_request_body` and
  `parse_proxy_address` build a data-server form body and read a proxy's
  announced address.
- `codexchips.solver`: `ChipSolver` (built directly or with
  `from_directory`) lists squads and plans, gives a squad's maximum
  (`squad_max_value`), searches a plan with `solve(config_name, target,
  progress)` and draws a solution onto the squad grid
  (`solution_to_view`). `stop` ends a search in progress, for instance from
  the progress callback.
- `codexchips.tables`: `ChipTable` and `SolutionTable` turn chips and
  solutions into rows of cells; `sort_solutions` orders solutions by a
  table column.
- `codexchips.alt_solutions`: `AltSolutionStore` keeps alternative
  solutions, tracks which chips they use (`chip_used`) and saves and loads
  them as JSON.

## What it does not do

- There is no graphical interface; results are printed as text.
- It does not fetch chip data over the network or start a local proxy. It
  only builds the request body and reads a proxy's announcement; the data
  must be obtained separately and passed with `--data`.
- It does not look up new releases itself; `--check-release` only compares a
  tag you supply.
- Chip icons are not included; `ChipTable` shows an icon resource name such
  as `o12` instead.
- Nothing is remembered between runs except the `--alt` file.