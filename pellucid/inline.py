"""Inlining of small or rarely used functions of the variable flow."""

from __future__ import annotations

import copy
import logging
from typing import Any, List

from pellucid.flow import (
    CallScope,
    ConditionScope,
    ExecutionFlow,
    InstructionsScope,
    ReturnScope,
    is_main_label,
    scopes_size,
)
from pellucid.replace import replace_vars_until_second_assignment
from pellucid.var_scopes import FunctionWithVars, InstructionsWithVars
from pellucid.variables import Assignment, Variable

_log = logging.getLogger(__name__)


def _replace_returns_by_assignments(
    scopes: List[Any], label: int, receiving_vars: List[Variable]
) -> None:
    for index, scope in enumerate(scopes):
        if isinstance(scope, ReturnScope):
            ret = scope.function_return
            if ret.label != label:
                _log.warning(
                    "scopes should hold returns of a single function: found %s instead of %s.",
                    ret.label,
                    label,
                )
                continue
            if len(receiving_vars) != len(ret.returned_values):
                raise ValueError(
                    f"function {label} returns {len(ret.returned_values)} values "
                    f"but the call expects {len(receiving_vars)}"
                )
            lines = [
                Assignment(variable, value)
                for variable, value in zip(receiving_vars, ret.returned_values)
            ]
            scopes[index] = InstructionsScope(InstructionsWithVars(lines))
        elif isinstance(scope, ConditionScope):
            _replace_returns_by_assignments(scope.if_true, label, receiving_vars)
            _replace_returns_by_assignments(scope.if_false, label, receiving_vars)


def inline_function_call(scopes: List[Any], label: int, function: FunctionWithVars) -> None:
    """Replace in place each call to ``label`` by the body of ``function``.

    Returns become assignments to the call's results and parameters are
    substituted by the call's arguments.
    """
    for index in reversed(range(len(scopes))):
        scope = scopes[index]
        if isinstance(scope, CallScope):
            if scope.label != label:
                continue
            call = scope.call
            content = copy.deepcopy(function.content)
            _replace_returns_by_assignments(content, label, call.results)
            if len(call.arguments) != len(function.input_vars):
                raise ValueError(
                    f"call to function {label} passes {len(call.arguments)} arguments "
                    f"but it takes {len(function.input_vars)}"
                )
            to_replace = dict(zip(function.input_vars, call.arguments))
            replace_vars_until_second_assignment(content, to_replace)
            scopes[index : index + 1] = content
        elif isinstance(scope, ConditionScope):
            inline_function_call(scope.if_true, label, function)
            inline_function_call(scope.if_false, label, function)


def should_function_exist(function: FunctionWithVars, n_uses: int) -> bool:
    """Tell whether a function is worth keeping rather than inlining."""
    if is_main_label(function.label):
        return True
    if n_uses <= 1 or not function.content:
        return False
    length = scopes_size(function.content)
    if length <= 1:
        return False
    return n_uses * length >= 6


def remove_small_functions(flow: ExecutionFlow) -> None:
    """Inline and drop the functions not worth keeping."""
    flow.remove_functions(should_function_exist, inline_function_call)