"""Execution-flow simplification and pseudo-source rendering for EVM bytecode."""

__version__ = "0.1.0"