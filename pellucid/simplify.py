"""Simplifications of the variable flow: substitution, cleanup and renumbering."""

from __future__ import annotations

from typing import Any, Dict, List, Set

from pellucid.flow import CallScope, ConditionScope, ExecutionFlow, InstructionsScope, ReturnScope
from pellucid.rename import rename_variables_in_scopes
from pellucid.replace import replace_vars_in_value
from pellucid.var_analysis import enumerate_var_initializations, vars_ordered_by_depth
from pellucid.var_scopes import is_empty_scope
from pellucid.variables import (
    Assignment,
    Bytes,
    Calculation,
    EmptyLine,
    Existing,
    If,
    Line,
    Value,
    Variable,
    value_size,
)

_MAX_DUPLICATED_SIZE = 12


def _should_value_be_duplicated(value: Value, duplicable_vars: Set[Variable]) -> bool:
    if isinstance(value, Calculation):
        return (
            not value.opcode.has_effect()
            and value_size(value) <= _MAX_DUPLICATED_SIZE
            and all(_should_value_be_duplicated(arg, duplicable_vars) for arg in value.args)
        )
    if isinstance(value, Existing):
        return value.variable in duplicable_vars
    return isinstance(value, Bytes)


def _simplify_line(
    line: Line, duplicable_vars: Set[Variable], to_replace: Dict[Variable, Value]
) -> Line:
    if isinstance(line, Assignment):
        assigned = replace_vars_in_value(line.assigned_value, to_replace)
        variable = line.receiving_var
        if variable is not None:
            if variable in to_replace:
                raise ValueError(f"{variable} is assigned after being substituted")
            if variable in duplicable_vars and _should_value_be_duplicated(
                assigned, duplicable_vars
            ):
                to_replace[variable] = assigned
                return EmptyLine()
        return Assignment(variable, assigned)
    if isinstance(line, If):
        return If(replace_vars_in_value(line.condition, to_replace))
    return line


def _simplify_scopes(
    scopes: List[Any], duplicable_vars: Set[Variable], to_replace: Dict[Variable, Value]
) -> None:
    for scope in scopes:
        if isinstance(scope, InstructionsScope):
            lines = scope.instructions.lines
            lines[:] = [_simplify_line(line, duplicable_vars, to_replace) for line in lines]
        elif isinstance(scope, CallScope):
            arguments = scope.call.arguments
            arguments[:] = [replace_vars_in_value(arg, to_replace) for arg in arguments]
        elif isinstance(scope, ReturnScope):
            returned = scope.function_return.returned_values
            returned[:] = [replace_vars_in_value(value, to_replace) for value in returned]
        elif isinstance(scope, ConditionScope):
            _simplify_scopes(scope.if_true, duplicable_vars, to_replace)
            _simplify_scopes(scope.if_false, duplicable_vars, to_replace)


def simplify_vars_in_scopes(scopes: List[Any]) -> None:
    """Substitute in place variables assigned at most once by their cheap, pure values."""
    initializations = enumerate_var_initializations(scopes)
    duplicable_vars = {variable for variable, count in initializations.items() if count <= 1}
    _simplify_scopes(scopes, duplicable_vars, {})


def simplify_vars(flow: ExecutionFlow) -> None:
    """Apply ``simplify_vars_in_scopes`` to every function of the flow."""
    for function in flow.functions.values():
        simplify_vars_in_scopes(function.content)


def _remove_empty_elements_in_scopes(scopes: List[Any]) -> None:
    for scope in scopes:
        if isinstance(scope, InstructionsScope):
            lines = scope.instructions.lines
            lines[:] = [line for line in lines if not isinstance(line, EmptyLine)]
        elif isinstance(scope, ConditionScope):
            _remove_empty_elements_in_scopes(scope.if_true)
            _remove_empty_elements_in_scopes(scope.if_false)
    scopes[:] = [scope for scope in scopes if not is_empty_scope(scope)]


def remove_empty_elements(flow: ExecutionFlow) -> None:
    """Drop empty lines and scopes that do nothing from every function."""
    for function in flow.functions.values():
        _remove_empty_elements_in_scopes(function.content)


def rename_variables_starting_from_zero(flow: ExecutionFlow) -> None:
    """Number the variables of each function 0, 1, ... in order of first definition."""
    for function in flow.functions.values():
        ordered = vars_ordered_by_depth(function.content)
        mapping = {variable: Variable(index) for index, variable in enumerate(ordered)}
        rename_variables_in_scopes(function.content, mapping)