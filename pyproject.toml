[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pqkit"
version = "0.1.0"
description = "PostgreSQL wire-format helpers: type OIDs, column metadata, server errors, value codecs, hstore, SCRAM client"
requires-python = ">=3.10"
dependencies = []
keywords = ["postgresql", "postgres", "scram", "hstore", "bytea", "timestamp", "oid", "sqlstate"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Front-Ends",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pqkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
