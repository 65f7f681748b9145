[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vzporedno"
version = "0.1.0"
description = "Worked examples of concurrent and distributed programming: locks, barriers, channels, Monte Carlo pi, TCP, REST, RPC and NTP."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "concurrency",
    "threads",
    "synchronization",
    "barrier",
    "readers-writers",
    "dining-philosophers",
    "producer-consumer",
    "monte-carlo",
    "ntp",
    "rpc",
    "rest",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
vzporedno-storage = "vzporedno.storage:main"
vzporedno-ntp = "vzporedno.ntp:main"
vzporedno-map = "vzporedno.concurrent_map:main"
vzporedno-pi = "vzporedno.pi:main"
vzporedno-philosophers = "vzporedno.philosophers:main"
vzporedno-contention = "vzporedno.contention:main"
vzporedno-tcp = "vzporedno.tcp:main"
vzporedno-readers-writers = "vzporedno.readers_writers:main"
vzporedno-barrier = "vzporedno.barrier:main"
vzporedno-producer-consumer = "vzporedno.producer_consumer:main"
vzporedno-channels = "vzporedno.channels:main"
vzporedno-rest = "vzporedno.rest:main"
vzporedno-rpc = "vzporedno.rpc:main"

[tool.hatch.build.targets.wheel]
packages = ["vzporedno"]

[tool.hatch.build.targets.sdist]
include = ["vzporedno", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
