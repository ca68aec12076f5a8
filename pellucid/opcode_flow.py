"""Execution flow whose instructions are still raw opcodes."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

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
    any_scope,
    is_main_label,
    remove_scopes,
)
from pellucid.stack_effects import (
    aggregate_n_stack_inputs,
    aggregate_n_stack_inputs_and_outputs,
)

_INDENT = "    "


@dataclass(frozen=True)
class FunctionCallWithOpcodes:
    """A call to the function carrying ``label``."""

    label: int


@dataclass(frozen=True)
class FunctionReturnWithOpcodes:
    """The return point of the function carrying ``label``."""

    label: int


@dataclass
class InstructionsWithOpcodes:
    """Consecutive opcodes together with their aggregated stack effect.

    Each opcode must provide ``is_exiting()`` and a string form.
    """

    code: List[Any] = field(default_factory=list)
    n_stack_inputs: int = 0
    n_stack_outputs: int = 0

    def last_vopcode(self) -> Any:
        """The final opcode; raises IndexError when there is none."""
        return self.code[-1]

    def __len__(self) -> int:
        return len(self.code)


@dataclass(eq=False)
class FunctionWithOpcodes:
    """A function of the opcode flow.

    ``n_outputs`` is None for functions that never hand control back.
    Two functions are equal when their labels are.
    """

    label: int
    n_inputs: int = 0
    n_outputs: Optional[int] = None
    content: List[Any] = field(default_factory=list)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FunctionWithOpcodes):
            return NotImplemented
        return self.label == other.label

    __hash__ = None  # type: ignore[assignment]


def fill_n_inputs_and_outputs(functions: Dict[int, FunctionWithOpcodes]) -> None:
    """Compute, in place, the stack inputs and outputs of every function."""
    filled: Set[int] = set()
    for label in list(functions):
        if label not in filled:
            _fill_function(label, filled, functions)


def _fill_function(
    label: int, filled: Set[int], functions: Dict[int, FunctionWithOpcodes]
) -> None:
    function = functions[label]
    n_inputs, n_outputs = _inputs_and_outputs_until_end(function.content, filled, functions)
    filled.add(label)
    function.n_inputs = n_inputs
    function.n_outputs = n_outputs


def _scope_effect(
    scope: Any,
    is_last: bool,
    filled: Set[int],
    functions: Dict[int, FunctionWithOpcodes],
) -> Tuple[int, Optional[int]]:
    if isinstance(scope, InstructionsScope):
        instructions = scope.instructions
        if instructions.last_vopcode().is_exiting():
            return instructions.n_stack_inputs, None
        return instructions.n_stack_inputs, instructions.n_stack_outputs
    if isinstance(scope, CallScope):
        if scope.label not in filled:
            _fill_function(scope.label, filled, functions)
        called = functions[scope.label]
        return called.n_inputs, called.n_outputs
    if isinstance(scope, ConditionScope):
        true_in, true_out = _inputs_and_outputs_until_end(scope.if_true, filled, functions)
        false_in, false_out = _inputs_and_outputs_until_end(scope.if_false, filled, functions)
        n_inputs = max(true_in, false_in)
        if true_out is None:
            return n_inputs, false_out
        if false_out is None:
            return n_inputs, true_out
        adjusted_true = true_out + max(0, false_in - true_in)
        adjusted_false = false_out + max(0, true_in - false_in)
        return n_inputs, max(adjusted_true, adjusted_false)
    if isinstance(scope, PanicScope):
        if not is_last:
            raise ValueError("a panic must be the last scope of its sequence")
        return 0, None
    return 0, 0


def _inputs_and_outputs_until_end(
    scopes: List[Any], filled: Set[int], functions: Dict[int, FunctionWithOpcodes]
) -> Tuple[int, Optional[int]]:
    last_index = len(scopes) - 1
    effects = [
        _scope_effect(scope, index == last_index, filled, functions)
        for index, scope in enumerate(scopes)
    ]
    n_inputs, n_outputs = 0, 0
    for first_inputs, first_outputs in reversed(effects):
        if first_outputs is None:
            n_inputs, n_outputs = first_inputs, None
        elif n_outputs is None:
            n_inputs = aggregate_n_stack_inputs(first_inputs, first_outputs, n_inputs)
        else:
            n_inputs, n_outputs = aggregate_n_stack_inputs_and_outputs(
                first_inputs, first_outputs, n_inputs, n_outputs
            )
    return n_inputs, n_outputs


def inline_function_call(
    scopes: List[Any], label: int, function: FunctionWithOpcodes
) -> None:
    """Replace in place each call to ``label`` by the function's content, minus its returns."""
    for index in reversed(range(len(scopes))):
        scope = scopes[index]
        if isinstance(scope, CallScope):
            if scope.label == label:
                content = copy.deepcopy(function.content)
                remove_scopes(content, lambda inner: isinstance(inner, ReturnScope))
                scopes[index : index + 1] = content
        elif isinstance(scope, ConditionScope):
            inline_function_call(scope.if_true, label, function)
            inline_function_call(scope.if_false, label, function)


def _has_loop(scope: Any) -> bool:
    return isinstance(scope, (LoopScope, ContinueScope))


def remove_secondary_functions_containing_loops(flow: ExecutionFlow) -> None:
    """Inline every non-main function that holds a loop and drop it from the flow."""

    def keep(function: FunctionWithOpcodes, _n_uses: int) -> bool:
        return is_main_label(function.label) or not any_scope(function.content, _has_loop)

    flow.remove_functions(keep, inline_function_call)


def _shift_text(text: str) -> str:
    return "".join(f"{_INDENT}{line}\n" for line in text.splitlines())


def _scopes_to_str(scopes: List[Any]) -> str:
    return "\n".join(opcode_scope_to_str(scope) for scope in scopes)


def opcode_scope_to_str(scope: Any) -> str:
    """Text form of one scope of the opcode flow."""
    if isinstance(scope, InstructionsScope):
        return "\n".join(str(vopcode) for vopcode in scope.instructions.code)
    if isinstance(scope, CallScope):
        return f"function_{scope.label}("
    if isinstance(scope, ReturnScope):
        return f"return_{scope.label}"
    if isinstance(scope, LoopScope):
        return f"loop_{scope.label}"
    if isinstance(scope, ContinueScope):
        return f"continue_{scope.label}"
    if isinstance(scope, ConditionScope):
        return (
            "{"
            + _shift_text(_scopes_to_str(scope.if_true))
            + "}\n{"
            + _shift_text(_scopes_to_str(scope.if_false))
            + "}"
        )
    if isinstance(scope, PanicScope):
        return "Panic"
    if isinstance(scope, EmptyScope):
        return ""
    raise TypeError(f"not a scope: {scope!r}")


def _optional_to_str(value: Optional[int]) -> str:
    return "None" if value is None else f"Some({value})"


def opcode_flow_to_str(flow: ExecutionFlow) -> str:
    """Text form of a whole opcode flow, main function first."""
    parts = ["main()\n" + _shift_text(_scopes_to_str(flow.main_function().content))]
    for function in flow.secondary_functions():
        parts.append(
            "\n"
            + f"function_{function.label}({function.n_inputs}, "
            + f"{_optional_to_str(function.n_outputs)})\n"
            + _shift_text(_scopes_to_str(function.content))
        )
    return "".join(parts)