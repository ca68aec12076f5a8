"""Conversion of the opcode flow into a flow of lines over variables."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence, Set, Tuple

from pellucid.flow import (
    CallScope,
    ConditionScope,
    ContinueScope,
    EmptyScope,
    ExecutionFlow,
    InstructionsScope,
    LoopScope,
    PanicScope,
    ReturnScope,
)
from pellucid.inline import remove_small_functions
from pellucid.rename import rename_functions_starting_from_zero, rename_variables
from pellucid.simplify import (
    remove_empty_elements,
    rename_variables_starting_from_zero,
    simplify_vars,
)
from pellucid.var_scopes import (
    FunctionCallWithVars,
    FunctionReturnWithVars,
    FunctionWithVars,
    InstructionsWithVars,
)
from pellucid.variables import (
    Variable,
    VariablesStack,
    convert_vopcodes_to_lines,
    values_from_vars,
)

_log = logging.getLogger(__name__)

Equivalence = Tuple[Variable, Variable]


def equivalences_to_mapping(equivalences: Sequence[Equivalence]) -> Dict[Variable, Variable]:
    """Map each variable to the representative of the variables it was declared equal to."""
    neighbours: Dict[Variable, Set[Variable]] = {}
    for first, second in equivalences:
        neighbours.setdefault(first, set()).add(second)
        neighbours.setdefault(second, set()).add(first)
    mapping: Dict[Variable, Variable] = {}
    seen: Set[Variable] = set()
    for variable, equivalents in neighbours.items():
        if variable in seen:
            continue
        seen.add(variable)
        seen.update(equivalents)
        for equivalent in equivalents:
            mapping[equivalent] = variable
    return mapping


def simplify(flow: ExecutionFlow) -> None:
    """Run every simplification pass on a variable flow, in place."""
    simplify_vars(flow)
    remove_empty_elements(flow)
    remove_small_functions(flow)  # before renaming, which relies on the final functions
    rename_variables_starting_from_zero(flow)
    rename_functions_starting_from_zero(flow)


def _pair_from_top(
    stack_a: VariablesStack, stack_b: VariablesStack
) -> List[Equivalence]:
    return list(zip(reversed(list(stack_a)), reversed(list(stack_b))))


def _convert_scopes(
    initial_stack: VariablesStack,
    opcode_scopes: List[Any],
    functions: Dict[int, Any],
    stack_at_loop_starts: Dict[int, VariablesStack],
    equivalences: List[Equivalence],
) -> Tuple[VariablesStack, List[Any]]:
    stack = initial_stack.copy()
    var_scopes: List[Any] = []
    last_index = len(opcode_scopes) - 1
    for index, scope in enumerate(opcode_scopes):
        if isinstance(scope, LoopScope):
            var_scopes.append(LoopScope(scope.label))
            stack_at_loop_starts[scope.label] = stack.copy()
        elif isinstance(scope, ContinueScope):
            start = stack_at_loop_starts.get(scope.label)
            if start is None:
                _log.warning("continue of loop %s before its start", scope.label)
            else:
                if len(start) != len(stack):
                    raise ValueError(
                        f"loop {scope.label} continues with a stack of {len(stack)} "
                        f"variables but started with {len(start)}"
                    )
                equivalences.extend(_pair_from_top(start, stack))
            var_scopes.append(ContinueScope(scope.label))
        elif isinstance(scope, PanicScope):
            var_scopes.append(PanicScope())
        elif isinstance(scope, EmptyScope):
            continue
        elif isinstance(scope, ReturnScope):
            if index != last_index:
                raise ValueError("a function return must be the last scope of its sequence")
            n_returned = functions[scope.label].n_outputs
            if n_returned is None:
                raise ValueError(f"function {scope.label} returns but has no outputs")
            returned = values_from_vars(stack.multi_pop(n_returned))
            var_scopes.append(ReturnScope(FunctionReturnWithVars(scope.label, returned)))
        elif isinstance(scope, InstructionsScope):
            stack, lines = convert_vopcodes_to_lines(stack, scope.instructions.code)
            var_scopes.append(InstructionsScope(InstructionsWithVars(lines)))
        elif isinstance(scope, CallScope):
            called = functions[scope.label]
            arguments = values_from_vars(stack.multi_pop(called.n_inputs))
            arguments.reverse()
            results = stack.create_and_push_vars(called.n_outputs or 0)
            var_scopes.append(CallScope(FunctionCallWithVars(scope.label, arguments, results)))
        elif isinstance(scope, ConditionScope):
            true_stack, true_scopes = _convert_scopes(
                stack, scope.if_true, functions, stack_at_loop_starts, equivalences
            )
            false_stack, false_scopes = _convert_scopes(
                stack, scope.if_false, functions, stack_at_loop_starts, equivalences
            )
            if len(true_stack) < len(false_stack):
                to_change, target = true_stack, false_stack
            else:
                to_change, target = false_stack, true_stack
            stack = target.copy()
            var_scopes.append(ConditionScope(true_scopes, false_scopes))
            if index != last_index:
                # execution goes on after both branches: their ending stacks must agree
                equivalences.extend(_pair_from_top(to_change, target))
        else:
            raise TypeError(f"not a scope: {scope!r}")
    return stack, var_scopes


def convert_opcode_flow_to_var_flow(opcode_flow: ExecutionFlow) -> ExecutionFlow:
    """Turn an opcode flow into a simplified flow of lines over variables."""
    equivalences: List[Equivalence] = []
    functions: Dict[int, FunctionWithVars] = {}
    for label, function in opcode_flow.functions.items():
        initial_stack = VariablesStack()
        input_vars = initial_stack.create_and_push_vars(function.n_inputs)
        returns = function.n_outputs is not None
        n_outputs = function.n_outputs if returns else 0
        _, content = _convert_scopes(
            initial_stack, function.content, opcode_flow.functions, {}, equivalences
        )
        functions[label] = FunctionWithVars(label, input_vars, n_outputs, returns, content)

    flow = ExecutionFlow(functions)
    rename_variables(flow, equivalences_to_mapping(equivalences))
    simplify(flow)
    return flow