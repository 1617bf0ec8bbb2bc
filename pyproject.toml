[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tinylink"
version = "1.0.0"
description = "Serial link building blocks: clocks, logging, synchronisation primitives, serial ports and link layers"
requires-python = ">=3.10"
keywords = ["serial", "uart", "link layer", "protocol", "events", "mutex"]
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
    "Topic :: Communications",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: Terminals :: Serial",
]
dependencies = [
    "pyserial",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["tinylink"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
