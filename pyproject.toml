[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gdbgremlin"
version = "0.1.0"
description = "Gremlin script client for graph databases speaking GraphSON v3 over WebSocket, with connection pooling and session transactions"
requires-python = ">=3.10"
keywords = ["gremlin", "graph", "graph-database", "graphson", "websocket", "tinkerpop"]
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
    "Topic :: Database",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "websockets",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
gdbgremlin-remove = "gdbgremlin.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["gdbgremlin"]

[tool.pytest.ini_options]
addopts = "-ra"
