[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pellucid"
version = "0.1.0"
description = "Execution-flow recovery and pseudo-source generation for EVM bytecode control-flow skeletons"
requires-python = ">=3.10"
dependencies = []
keywords = ["evm", "decompiler", "bytecode", "execution-flow", "ethereum"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["pellucid"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
