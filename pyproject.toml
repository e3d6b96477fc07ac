[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "orbitkit"
version = "0.1.0"
description = "Building blocks for OrbitDB-style peer-to-peer stores: log operations, indexes, event log queries, replication, snapshots, manifests and message framing"
requires-python = ">=3.10"
dependencies = [
    "cbor2",
]
keywords = [
    "orbitdb",
    "crdt",
    "ipfs",
    "peer-to-peer",
    "database",
    "replication",
    "eventlog",
    "key-value",
    "snapshot",
]
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
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["orbitkit"]

[tool.hatch.build.targets.sdist]
include = [
    "orbitkit",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP", "SIM"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
no_implicit_optional = true
check_untyped_defs = true
