"""Scopes of an execution flow whose instructions are lines over variables."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

from pellucid.flow import EmptyScope, InstructionsScope
from pellucid.variables import EmptyLine, If, Line, Value, Variable


@dataclass
class InstructionsWithVars:
    """A run of lines; its length ignores empty lines."""

    lines: List[Line] = field(default_factory=list)

    def __len__(self) -> int:
        return sum(1 for line in self.lines if not isinstance(line, EmptyLine))


@dataclass(eq=False)
class FunctionWithVars:
    """A function of the variable flow; two functions are equal when their labels are."""

    label: int
    input_vars: List[Variable] = field(default_factory=list)
    n_outputs: int = 0
    returns: bool = True
    content: List[Any] = field(default_factory=list)

    def n_parameters(self) -> int:
        return len(self.input_vars)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FunctionWithVars):
            return NotImplemented
        return self.label == other.label

    __hash__ = None  # type: ignore[assignment]


@dataclass
class FunctionCallWithVars:
    """``results = fn_label(arguments)``."""

    label: int
    arguments: List[Value] = field(default_factory=list)
    results: List[Variable] = field(default_factory=list)


@dataclass
class FunctionReturnWithVars:
    """The values handed back by the function carrying ``label``."""

    label: int
    returned_values: List[Value] = field(default_factory=list)


def is_empty_scope(scope: Any) -> bool:
    """Tell whether a scope does nothing at all."""
    if isinstance(scope, InstructionsScope):
        return not scope.instructions.lines
    return isinstance(scope, EmptyScope)


def should_be_followed_by_condition(scope: Any) -> bool:
    """Tell whether a scope ends with an ``if`` line, so a condition scope comes next."""
    if isinstance(scope, InstructionsScope) and scope.instructions.lines:
        return isinstance(scope.instructions.lines[-1], If)
    return False