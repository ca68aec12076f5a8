"""Renaming of variables and function labels in the variable flow."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from pellucid.flow import (
    MAIN_FUNCTION_LABEL,
    CallScope,
    ConditionScope,
    ExecutionFlow,
    InstructionsScope,
    ReturnScope,
    walk_scopes,
)
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

_log = logging.getLogger(__name__)


def _rename_value(value: Value, var_mapping: Dict[Variable, Variable]) -> Value:
    if isinstance(value, Existing):
        return Existing(var_mapping.get(value.variable, value.variable))
    if isinstance(value, Calculation):
        return Calculation(value.opcode, tuple(_rename_value(a, var_mapping) for a in value.args))
    if isinstance(value, FunctionReturnedValue):
        return FunctionReturnedValue(
            value.label,
            tuple(_rename_value(a, var_mapping) for a in value.arguments),
            value.return_index,
        )
    return value


def _rename_line(line: Line, var_mapping: Dict[Variable, Variable]) -> Line:
    if isinstance(line, Assignment):
        receiving = line.receiving_var
        if receiving is not None:
            receiving = var_mapping.get(receiving, receiving)
        return Assignment(receiving, _rename_value(line.assigned_value, var_mapping))
    if isinstance(line, If):
        return If(_rename_value(line.condition, var_mapping))
    return line


def rename_variables_in_scopes(
    scopes: List[Any], var_mapping: Dict[Variable, Variable]
) -> None:
    """Rename in place every variable found in ``var_mapping``."""
    for scope in walk_scopes(scopes):
        if isinstance(scope, InstructionsScope):
            lines = scope.instructions.lines
            lines[:] = [_rename_line(line, var_mapping) for line in lines]
        elif isinstance(scope, CallScope):
            call = scope.call
            call.arguments[:] = [_rename_value(arg, var_mapping) for arg in call.arguments]
            call.results[:] = [var_mapping.get(var, var) for var in call.results]
        elif isinstance(scope, ReturnScope):
            returned = scope.function_return.returned_values
            returned[:] = [_rename_value(value, var_mapping) for value in returned]


def rename_variables(flow: ExecutionFlow, var_mapping: Dict[Variable, Variable]) -> None:
    """Rename variables in every function of the flow."""
    for function in flow.functions.values():
        rename_variables_in_scopes(function.content, var_mapping)


def rename_function_labels(flow: ExecutionFlow, label_mapping: Dict[int, int]) -> None:
    """Relabel functions, calls and returns; functions missing from the mapping are dropped."""
    for function in flow.functions.values():
        for scope in walk_scopes(function.content):
            if isinstance(scope, CallScope):
                scope.call.label = label_mapping.get(scope.call.label, scope.call.label)
            elif isinstance(scope, ReturnScope):
                ret = scope.function_return
                ret.label = label_mapping.get(ret.label, ret.label)
        function.label = label_mapping.get(function.label, function.label)
    previous = len(flow.functions)
    flow.functions = {
        label_mapping[label]: function
        for label, function in flow.functions.items()
        if label in label_mapping
    }
    deleted = previous - len(flow.functions)
    if deleted > 0:
        _log.info(
            "%d unused functions were deleted, probably because panics in the "
            "execution flow prevent reaching their calls.",
            deleted,
        )


def _find_function_depth(scopes: List[Any], depth_per_function: Dict[int, int], depth: int) -> int:
    # the depth roughly follows the index of the first call to a function
    for scope in scopes:
        if isinstance(scope, CallScope):
            depth_per_function.setdefault(scope.label, depth)
            depth += 1
        elif isinstance(scope, ConditionScope):
            depth = _find_function_depth(scope.if_true, depth_per_function, depth)
            depth = _find_function_depth(scope.if_false, depth_per_function, depth)
    return depth


def functions_ordered_by_depth(scopes: List[Any]) -> List[int]:
    """Labels of the functions called in ``scopes``, in the order of their first call."""
    depth_per_function: Dict[int, int] = {}
    _find_function_depth(scopes, depth_per_function, 0)
    return sorted(depth_per_function, key=depth_per_function.__getitem__)


def rename_functions_starting_from_zero(flow: ExecutionFlow) -> None:
    """Number functions 0, 1, ... in the order the main function first calls them."""
    labels = functions_ordered_by_depth(flow.main_function().content)
    mapping = {label: index for index, label in enumerate(labels)}
    mapping[MAIN_FUNCTION_LABEL] = MAIN_FUNCTION_LABEL
    rename_function_labels(flow, mapping)