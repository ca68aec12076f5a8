"""Variables, values and lines obtained by running opcodes on a stack of variables.

Opcodes are duck-typed. An opcode has a ``name`` ("DUP", "PUSH", "SWAP", "POP",
"JUMP", "JUMPDEST", "JUMPI" or any other), a ``depth`` for DUP and SWAP, and the
methods ``stack_input()`` and ``stack_output()``. A vopcode has an ``opcode`` and
a ``value``, the pushed integer for PUSH.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

_ERROR_VARIABLES = 100
_ERROR_ALIAS_BASE = 6666000  # aliases 6666xxx mark variables read below the real stack

_free_aliases = itertools.count()


@dataclass(frozen=True, order=True)
class Variable:
    """A named slot of the decompiled code."""

    alias: int


@dataclass(frozen=True)
class Calculation:
    """An opcode applied to argument values, the top of the stack first."""

    opcode: Any
    args: Tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))


@dataclass(frozen=True)
class Existing:
    """The current content of a variable."""

    variable: Variable


@dataclass(frozen=True)
class Bytes:
    """A constant word."""

    value: int


@dataclass(frozen=True)
class FunctionReturnedValue:
    """One of the values returned by a call to a function."""

    label: int
    arguments: Tuple[Any, ...] = ()
    return_index: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", tuple(self.arguments))


Value = Union[Calculation, Existing, Bytes, FunctionReturnedValue]


@dataclass(frozen=True)
class Assignment:
    """``receiving_var = assigned_value``; without a receiver the value is only evaluated."""

    receiving_var: Optional[Variable]
    assigned_value: Value


@dataclass(frozen=True)
class If:
    """A conditional jump on ``condition``."""

    condition: Value


@dataclass(frozen=True)
class EmptyLine:
    """A line that does nothing."""


Line = Union[Assignment, If, EmptyLine]


def values_from_vars(variables: Iterable[Variable]) -> List[Value]:
    """Wrap each variable in an ``Existing`` value."""
    return [Existing(variable) for variable in variables]


def value_size(value: Value) -> int:
    """Number of nodes in the expression tree of ``value``."""
    if isinstance(value, Calculation):
        return 1 + sum(value_size(arg) for arg in value.args)
    if isinstance(value, FunctionReturnedValue):
        return 1 + sum(value_size(arg) for arg in value.arguments)
    return 1


class VariablesStack:
    """A stack of variables, its top at the end.

    Built without arguments, it starts with placeholder variables so that
    reads below the real stack stay visible in the output.
    """

    def __init__(self, variables: Optional[Iterable[Variable]] = None) -> None:
        if variables is None:
            variables = (
                Variable(_ERROR_ALIAS_BASE + index) for index in range(_ERROR_VARIABLES)
            )
        self._items: List[Variable] = list(variables)

    def create_variable(self) -> Variable:
        """A variable never handed out before."""
        return Variable(next(_free_aliases))

    def create_and_push_variable(self) -> Variable:
        variable = self.create_variable()
        self.push(variable)
        return variable

    def create_and_push_vars(self, n_variables: int) -> List[Variable]:
        return [self.create_and_push_variable() for _ in range(n_variables)]

    def push(self, variable: Variable) -> None:
        self._items.append(variable)

    def pop(self) -> Variable:
        if not self._items:
            raise IndexError("pop from an empty stack")
        return self._items.pop()

    def multi_pop(self, count: int) -> List[Variable]:
        """Pop ``count`` variables, returned top first."""
        if count > len(self._items):
            raise IndexError(f"cannot pop {count} items from a stack of {len(self._items)}")
        return [self._items.pop() for _ in range(count)]

    def peek_at(self, depth: int) -> Variable:
        """The variable ``depth`` places below the top."""
        if not 0 <= depth < len(self._items):
            raise IndexError(f"no item at depth {depth}")
        return self._items[-1 - depth]

    def swap(self, depth: int) -> None:
        """Exchange the top with the variable ``depth`` places below it."""
        if not 1 <= depth < len(self._items):
            raise IndexError(f"cannot swap with depth {depth}")
        items = self._items
        items[-1], items[-1 - depth] = items[-1 - depth], items[-1]

    def copy(self) -> VariablesStack:
        return VariablesStack(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Variable]:
        """Variables from the bottom to the top."""
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VariablesStack):
            return NotImplemented
        return self._items == other._items

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"VariablesStack({self._items!r})"


def convert_vopcodes_to_lines(
    initial_stack: VariablesStack, vopcodes: Sequence[Any]
) -> Tuple[VariablesStack, List[Line]]:
    """Run ``vopcodes`` on a copy of ``initial_stack``; return the final stack and the lines."""
    stack = initial_stack.copy()
    lines: List[Line] = []
    for vopcode in vopcodes:
        opcode = vopcode.opcode
        match opcode.name:
            case "DUP":
                new_var = stack.create_variable()
                lines.append(Assignment(new_var, Existing(stack.peek_at(opcode.depth - 1))))
                stack.push(new_var)
            case "PUSH":
                if vopcode.value is None:
                    raise ValueError("PUSH without a value")
                new_var = stack.create_variable()
                lines.append(Assignment(new_var, Bytes(vopcode.value)))
                stack.push(new_var)
            case "SWAP":
                stack.swap(opcode.depth)
            case "POP" | "JUMP":
                stack.pop()
            case "JUMPDEST":
                pass
            case "JUMPI":
                stack.pop()
                lines.append(If(Existing(stack.pop())))
            case _:
                n_outputs = opcode.stack_output()
                if n_outputs > 1:
                    raise ValueError(f"opcode {opcode.name} has {n_outputs} stack outputs")
                receiving_var = stack.create_variable() if n_outputs > 0 else None
                args = values_from_vars(stack.multi_pop(opcode.stack_input()))
                lines.append(Assignment(receiving_var, Calculation(opcode, tuple(args))))
                if receiving_var is not None:
                    stack.push(receiving_var)
    return stack, lines