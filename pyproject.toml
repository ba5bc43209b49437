[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netloom"
version = "0.1.0"
description = "Building blocks for a non-blocking network connection layer: error codes, state locks, poller operators, options, addresses, listeners and a sharded write queue."
requires-python = ">=3.10"
dependencies = []
keywords = ["networking", "sockets", "poller", "non-blocking", "listener"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["netloom"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
