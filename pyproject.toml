[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "doggie"
version = "0.1.0"
description = "SLCAN (serial line CAN) protocol serializer and an asyncio CAN-to-serial bridge core"
requires-python = ">=3.10"
dependencies = []
keywords = ["can", "slcan", "can-bus", "serial", "lawicel", "mcp2515", "bridge", "asyncio"]
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
    "Framework :: AsyncIO",
    "Topic :: Software Development :: Embedded Systems :: Controller Area Network (CAN)",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["doggie"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
