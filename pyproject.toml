[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "atlaskv"
version = "0.1.0"
description = "Core pieces of a single-node key-value store: ordered memtable, binary wire protocol, threaded TCP server and command-line client"
requires-python = ">=3.10"
keywords = ["kv-store", "database", "memtable", "tcp", "wire-protocol"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
atlaskv-cli = "atlaskv.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["atlaskv"]

[tool.hatch.build.targets.sdist]
include = ["atlaskv", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
