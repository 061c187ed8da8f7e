[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tickrace"
version = "0.1.0"
description = "A market-data challenge server and a trading client that races to answer it"
requires-python = ">=3.10"
dependencies = []
keywords = ["trading", "market-data", "multicast", "udp", "tcp", "challenge"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tickrace-engine = "tickrace.engine:main"
tickrace-server = "tickrace.server:main"

[tool.hatch.build.targets.wheel]
packages = ["tickrace"]

[tool.pytest.ini_options]
addopts = "-ra"
