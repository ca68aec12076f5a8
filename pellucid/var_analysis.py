"""Queries on the variables used and assigned in scopes of the variable flow."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Set

from pellucid.flow import CallScope, ConditionScope, InstructionsScope, ReturnScope, walk_scopes
from pellucid.variables import (
    Assignment,
    Calculation,
    Existing,
    FunctionReturnedValue,
    If,
    Line,
    Value,
    Variable,
)


def count_uses_per_var_in_line(line: Line, uses_per_var: Dict[Variable, int]) -> None:
    """Add to ``uses_per_var`` each appearance of a variable in ``line``."""
    if isinstance(line, Assignment):
        if line.receiving_var is not None:
            uses_per_var[line.receiving_var] = uses_per_var.get(line.receiving_var, 0) + 1
        count_uses_per_var_in_value(line.assigned_value, uses_per_var)
    elif isinstance(line, If):
        count_uses_per_var_in_value(line.condition, uses_per_var)


def count_uses_per_var_in_value(value: Value, uses_per_var: Dict[Variable, int]) -> None:
    """Add to ``uses_per_var`` each appearance of a variable in ``value``."""
    for variable in _vars_in_value(value):
        uses_per_var[variable] = uses_per_var.get(variable, 0) + 1


def _vars_in_value(value: Value) -> Iterator[Variable]:
    if isinstance(value, Existing):
        yield value.variable
    elif isinstance(value, Calculation):
        for arg in value.args:
            yield from _vars_in_value(arg)
    elif isinstance(value, FunctionReturnedValue):
        for arg in value.arguments:
            yield from _vars_in_value(arg)


def _find_variable_depth(
    scopes: List[Any], depth_per_variable: Dict[Variable, int], depth: int
) -> int:
    # the depth roughly follows the index of the line that first defines a variable
    for scope in scopes:
        if isinstance(scope, InstructionsScope):
            for line in scope.instructions.lines:
                if isinstance(line, Assignment) and line.receiving_var is not None:
                    depth_per_variable.setdefault(line.receiving_var, depth)
                depth += 1
        elif isinstance(scope, CallScope):
            for result in scope.call.results:
                depth_per_variable.setdefault(result, depth)
                depth += 1
        elif isinstance(scope, ConditionScope):
            depth = _find_variable_depth(scope.if_true, depth_per_variable, depth)
            depth = _find_variable_depth(scope.if_false, depth_per_variable, depth)
    return depth


def vars_ordered_by_depth(scopes: List[Any]) -> List[Variable]:
    """The assigned variables, in the order where they are first defined."""
    depth_per_variable: Dict[Variable, int] = {}
    _find_variable_depth(scopes, depth_per_variable, 0)
    return sorted(depth_per_variable, key=depth_per_variable.__getitem__)


def enumerate_var_initializations(scopes: List[Any]) -> Dict[Variable, int]:
    """For every variable used in ``scopes``, how many times it is assigned.

    A variable may be assigned more than once, one per branch of a condition.
    """
    counts = {variable: 0 for variable in find_vars_used_in_scopes(scopes)}
    for scope in walk_scopes(scopes):
        if isinstance(scope, InstructionsScope):
            for line in scope.instructions.lines:
                if isinstance(line, Assignment) and line.receiving_var is not None:
                    counts[line.receiving_var] += 1
        elif isinstance(scope, CallScope):
            for result in scope.call.results:
                counts[result] += 1
    return counts


def find_vars_used_in_scopes(scopes: List[Any]) -> Set[Variable]:
    """Every variable read or assigned in ``scopes``, nested ones included."""
    used: Set[Variable] = set()
    for scope in walk_scopes(scopes):
        if isinstance(scope, InstructionsScope):
            for line in scope.instructions.lines:
                if isinstance(line, Assignment):
                    if line.receiving_var is not None:
                        used.add(line.receiving_var)
                    used.update(_vars_in_value(line.assigned_value))
                elif isinstance(line, If):
                    used.update(_vars_in_value(line.condition))
        elif isinstance(scope, CallScope):
            used.update(scope.call.results)
            for argument in scope.call.arguments:
                used.update(_vars_in_value(argument))
        elif isinstance(scope, ReturnScope):
            for returned in scope.function_return.returned_values:
                used.update(_vars_in_value(returned))
    return used