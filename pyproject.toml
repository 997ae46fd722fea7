[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "codexchips"
version = "2.0.0"
description = "Chip inventory tools and a combination solver for heavy-ordnance squads"
requires-python = ">=3.10"
dependencies = []
keywords = ["chips", "solver", "puzzle", "game", "inventory"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
codexchips = "codexchips.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["codexchips"]

[tool.pytest.ini_options]
addopts = "-ra"
