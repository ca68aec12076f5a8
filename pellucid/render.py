"""Text form of the variable flow, as pseudo source code.

Opcodes are duck-typed. An opcode may provide
``calculation_to_str(render_arg)``, where ``render_arg(index, is_nested)``
gives the text of the argument at ``index``. Nested arguments are put in
parentheses when they are calculations. An opcode without that method is
shown as ``NAME(arg0, arg1, ...)``.
"""

from __future__ import annotations

from typing import Any, Callable, List, Sequence

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
from pellucid.var_scopes import should_be_followed_by_condition
from pellucid.variables import (
    Assignment,
    Bytes,
    Calculation,
    EmptyLine,
    Existing,
    FunctionReturnedValue,
    If,
    Line,
    Value,
    Variable,
)

_INDENT = "    "


def _shift_text(text: str) -> str:
    return "".join(f"{_INDENT}{line}\n" for line in text.splitlines())


def _var_str(variable: Variable) -> str:
    return f"var_{variable.alias}"


def _returned_names(count: int) -> str:
    return ", ".join(f"r{index}" for index in range(count))


def _arg_renderer(args: Sequence[Value]) -> Callable[[int, bool], str]:
    def render(index: int, is_nested: bool) -> str:
        return _value_to_str(args[index], is_nested)

    return render


def _value_to_str(value: Value, is_nested: bool) -> str:
    if isinstance(value, Calculation):
        render = _arg_renderer(value.args)
        formatter = getattr(value.opcode, "calculation_to_str", None)
        if formatter is not None:
            text = formatter(render)
        else:
            name = getattr(value.opcode, "name", str(value.opcode))
            arguments = ", ".join(render(index, False) for index in range(len(value.args)))
            text = f"{name}({arguments})"
        return f"({text})" if is_nested else text
    if isinstance(value, Existing):
        return _var_str(value.variable)
    if isinstance(value, Bytes):
        return hex(value.value)
    if isinstance(value, FunctionReturnedValue):
        arguments = ", ".join(value_to_str(arg) for arg in value.arguments)
        return f"function_{value.label}({arguments}).{value.return_index}"
    raise TypeError(f"not a value: {value!r}")


def value_to_str(value: Value) -> str:
    """Text of a value as an expression."""
    return _value_to_str(value, False)


def line_to_str(line: Line) -> str:
    """Text of one line."""
    if isinstance(line, Assignment):
        prefix = "" if line.receiving_var is None else f"{_var_str(line.receiving_var)} = "
        return prefix + value_to_str(line.assigned_value)
    if isinstance(line, If):
        return f"if {value_to_str(line.condition)}"
    if isinstance(line, EmptyLine):
        return ""
    raise TypeError(f"not a line: {line!r}")


def var_scope_to_str(scope: Any) -> str:
    """Text of one scope of the variable flow."""
    if isinstance(scope, InstructionsScope):
        return "\n".join(line_to_str(line) for line in scope.instructions.lines)
    if isinstance(scope, CallScope):
        call = scope.call
        text = ""
        if call.results:
            names = ", ".join(_var_str(variable) for variable in call.results)
            text = f"({names})" if len(call.results) > 1 else names
            text += " = "
        arguments = ", ".join(value_to_str(arg) for arg in call.arguments)
        return f"{text}fn_{call.label}({arguments})"
    if isinstance(scope, ReturnScope):
        ret = scope.function_return
        if not ret.returned_values:
            return f"// end of function {ret.label}"
        values = ", ".join(value_to_str(value) for value in ret.returned_values)
        return f"({_returned_names(len(ret.returned_values))}) = ({values})"
    if isinstance(scope, LoopScope):
        return f"begin loop_{scope.label}"
    if isinstance(scope, ContinueScope):
        return f"continue loop_{scope.label}"
    if isinstance(scope, ConditionScope):
        return (
            " {\n"
            + _shift_text(scopes_to_str(scope.if_true))
            + "}\nelse {\n"
            + _shift_text(scopes_to_str(scope.if_false))
            + "}"
        )
    if isinstance(scope, PanicScope):
        return "// Panic"
    if isinstance(scope, EmptyScope):
        return ""
    raise TypeError(f"not a scope: {scope!r}")


def scopes_to_str(scopes: List[Any]) -> str:
    """Text of a sequence of scopes; what follows a loop start becomes its body."""
    parts: List[str] = []
    last_index = len(scopes) - 1
    for index, scope in enumerate(scopes):
        if isinstance(scope, LoopScope):
            parts.append(f"begin loop_{scope.label} {{\n")
            parts.append(_shift_text(scopes_to_str(scopes[index + 1 :])))
            parts.append("}")
            break
        parts.append(var_scope_to_str(scope))
        if index != last_index and not should_be_followed_by_condition(scope):
            parts.append("\n")
    return "".join(parts)


def var_flow_to_str(flow: ExecutionFlow) -> str:
    """Pseudo source code of a whole variable flow, main function first."""
    parts = [
        "function main() external {\n"
        + _shift_text(scopes_to_str(flow.main_function().content))
        + "}"
    ]
    for function in flow.secondary_functions():
        parameters = ", ".join(_var_str(variable) for variable in function.input_vars)
        header = f"\n\nfunction fn_{function.label}({parameters}) internal"
        if function.n_outputs > 0:
            header += f" returns({_returned_names(function.n_outputs)})"
        parts.append(header + " {\n" + _shift_text(scopes_to_str(function.content)) + "}")
    return "".join(parts)