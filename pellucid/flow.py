"""Generic execution-flow structures shared by the opcode and variable stages."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Protocol

MAIN_FUNCTION_LABEL: int = 2**64 - 1


class _Labelled(Protocol):
    label: int


class _FunctionLike(Protocol):
    label: int
    content: List[Any]


@dataclass
class InstructionsScope:
    """A straight run of instructions; the payload must support ``len``."""

    instructions: Any


@dataclass
class CallScope:
    """A call to another function of the flow."""

    call: Any

    @property
    def label(self) -> int:
        return self.call.label


@dataclass
class ReturnScope:
    """The point where a function hands control back to its caller."""

    function_return: Any

    @property
    def label(self) -> int:
        return self.function_return.label


@dataclass(frozen=True)
class LoopScope:
    """The start of a loop."""

    label: int


@dataclass(frozen=True)
class ContinueScope:
    """A jump back to the start of a loop."""

    label: int


@dataclass
class ConditionScope:
    """An if/else with the scopes of both branches."""

    if_true: List[Any] = field(default_factory=list)
    if_false: List[Any] = field(default_factory=list)


@dataclass(frozen=True)
class PanicScope:
    """Execution ends in an unknown state."""


@dataclass(frozen=True)
class EmptyScope:
    """A placeholder that does nothing."""


def is_main_label(label: int) -> bool:
    """Tell whether a label designates the main function."""
    return label == MAIN_FUNCTION_LABEL


def walk_scopes(scopes: List[Any]) -> Iterator[Any]:
    """Yield every scope in pre-order, entering both branches of conditions."""
    for scope in scopes:
        yield scope
        if isinstance(scope, ConditionScope):
            yield from walk_scopes(scope.if_true)
            yield from walk_scopes(scope.if_false)


def any_scope(scopes: List[Any], predicate: Callable[[Any], bool]) -> bool:
    """Tell whether some scope, nested ones included, satisfies ``predicate``."""
    return any(predicate(scope) for scope in walk_scopes(scopes))


def scopes_size(scopes: List[Any]) -> int:
    """Count the instructions and control-flow markers held by ``scopes``."""
    size = 0
    for scope in scopes:
        if isinstance(scope, InstructionsScope):
            size += len(scope.instructions)
        elif isinstance(scope, ConditionScope):
            size += scopes_size(scope.if_true) + scopes_size(scope.if_false)
        elif isinstance(scope, EmptyScope):
            continue
        else:
            size += 1
    return size


def remove_scopes(scopes: List[Any], predicate: Callable[[Any], bool]) -> None:
    """Remove in place every scope, nested ones included, matching ``predicate``."""
    scopes[:] = [scope for scope in scopes if not predicate(scope)]
    for scope in scopes:
        if isinstance(scope, ConditionScope):
            remove_scopes(scope.if_true, predicate)
            remove_scopes(scope.if_false, predicate)


@dataclass
class ExecutionFlow:
    """A set of functions, keyed by label, one of which is the main function."""

    functions: Dict[int, Any] = field(default_factory=dict)

    def main_function(self) -> Any:
        return self.functions[MAIN_FUNCTION_LABEL]

    def secondary_functions(self) -> Iterator[Any]:
        return (
            function
            for function in self.functions.values()
            if function.label != MAIN_FUNCTION_LABEL
        )

    def all_scopes(self) -> Iterator[Any]:
        for function in self.functions.values():
            yield from walk_scopes(function.content)

    def count_function_uses(self) -> Dict[int, int]:
        """Count how many call sites target each function."""
        uses = {label: 0 for label in self.functions}
        for function in self.functions.values():
            for scope in walk_scopes(function.content):
                if isinstance(scope, CallScope):
                    uses[scope.label] += 1
        return uses

    def remove_functions(
        self,
        keep: Callable[[Any, int], bool],
        inline: Callable[[List[Any], int, Any], None],
    ) -> None:
        """Inline and drop every function for which ``keep(function, n_uses)`` is false."""
        uses = self.count_function_uses()
        to_replace = [label for label, n in uses.items() if not keep(self.functions[label], n)]
        for label in to_replace:
            snapshot = copy.deepcopy(self.functions[label])
            for function in self.functions.values():
                inline(function.content, label, snapshot)
        for label in to_replace:
            del self.functions[label]