"""Substitution of variables by values inside scopes of the variable flow."""

from __future__ import annotations

from typing import Any, Dict, List

from pellucid.flow import CallScope, ConditionScope, EmptyScope, InstructionsScope, ReturnScope
from pellucid.variables import (
    Assignment,
    Calculation,
    EmptyLine,
    Existing,
    FunctionReturnedValue,
    If,
    Line,
    Value,
    Variable,
)


def replace_vars_in_value(value: Value, to_replace: Dict[Variable, Value]) -> Value:
    """Return ``value`` with every variable found in ``to_replace`` substituted.

    The substituted values are not themselves searched for further replacements.
    """
    if isinstance(value, Existing):
        return to_replace.get(value.variable, value)
    if isinstance(value, Calculation):
        return Calculation(
            value.opcode, tuple(replace_vars_in_value(arg, to_replace) for arg in value.args)
        )
    if isinstance(value, FunctionReturnedValue):
        return FunctionReturnedValue(
            value.label,
            tuple(replace_vars_in_value(arg, to_replace) for arg in value.arguments),
            value.return_index,
        )
    return value


class _UntilSecondAssignment:
    """Replaces variables until they are assigned for the second time."""

    def __init__(self, to_replace: Dict[Variable, Value]) -> None:
        self.to_replace = to_replace
        self.init_counts: Dict[Variable, int] = {}

    def _count(self, variable: Variable) -> int:
        return self.init_counts.get(variable, 0)

    def value(self, value: Value) -> Value:
        if isinstance(value, Existing):
            variable = value.variable
            if variable in self.to_replace and self._count(variable) <= 1:
                return self.to_replace[variable]
            return value
        if isinstance(value, Calculation):
            return Calculation(value.opcode, tuple(self.value(arg) for arg in value.args))
        if isinstance(value, FunctionReturnedValue):
            return FunctionReturnedValue(
                value.label,
                tuple(self.value(arg) for arg in value.arguments),
                value.return_index,
            )
        return value

    def line(self, line: Line) -> Line:
        if isinstance(line, Assignment):
            assigned = self.value(line.assigned_value)
            variable = line.receiving_var
            if variable is None or variable not in self.to_replace:
                return Assignment(variable, assigned)
            first = self._count(variable) == 0
            self.init_counts[variable] = self._count(variable) + 1
            # the first initialisation of a replaced variable is erased
            return EmptyLine() if first else Assignment(variable, assigned)
        if isinstance(line, If):
            return If(self.value(line.condition))
        return line

    def call(self, scope: CallScope) -> Any:
        call = scope.call
        for variable in self.to_replace:
            if variable in call.results:
                if len(call.results) != 1:
                    raise ValueError(
                        "cannot replace a variable that is one of several values "
                        "returned by a function call"
                    )
                if self._count(variable) == 0:
                    self.init_counts[variable] = 1
                    return EmptyScope()
        call.arguments[:] = [self.value(argument) for argument in call.arguments]
        return scope

    def scopes(self, scopes: List[Any]) -> None:
        for index, scope in enumerate(scopes):
            if isinstance(scope, InstructionsScope):
                lines = scope.instructions.lines
                lines[:] = [self.line(line) for line in lines]
            elif isinstance(scope, CallScope):
                scopes[index] = self.call(scope)
            elif isinstance(scope, ReturnScope):
                returned = scope.function_return.returned_values
                returned[:] = [self.value(value) for value in returned]
            elif isinstance(scope, ConditionScope):
                self.scopes(scope.if_true)
                self.scopes(scope.if_false)


def replace_vars_until_second_assignment(
    scopes: List[Any], to_replace: Dict[Variable, Value]
) -> None:
    """Substitute variables in place, erasing their first assignment.

    A variable is replaced while it has been assigned at most once; a call whose
    single result is a replaced variable is erased on its first occurrence.
    """
    _UntilSecondAssignment(to_replace).scopes(scopes)