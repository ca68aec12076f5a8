from dataclasses import dataclass, field
from typing import Any, List

import pytest

from pellucid.flow import (
    MAIN_FUNCTION_LABEL,
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
    scopes_size,
    walk_scopes,
)


@dataclass
class Call:
    label: int


@dataclass
class Function:
    label: int
    content: List[Any] = field(default_factory=list)


def _inline(scopes, label, function):
    result = []
    for scope in scopes:
        if isinstance(scope, CallScope) and scope.label == label:
            result.extend(function.content)
        else:
            if isinstance(scope, ConditionScope):
                _inline(scope.if_true, label, function)
                _inline(scope.if_false, label, function)
            result.append(scope)
    scopes[:] = result


def test_is_main_label():
    assert is_main_label(MAIN_FUNCTION_LABEL)
    assert not is_main_label(7)
    assert MAIN_FUNCTION_LABEL == 2**64 - 1


def test_walk_scopes_preorder():
    a = InstructionsScope(["a"])
    b = LoopScope(1)
    c = PanicScope()
    cond = ConditionScope([a], [b])
    scopes = [cond, c]
    assert list(walk_scopes(scopes)) == [cond, a, b, c]


def test_any_scope_nested():
    scopes = [ConditionScope([InstructionsScope([])], [ContinueScope(3)])]
    assert any_scope(scopes, lambda s: isinstance(s, ContinueScope))
    assert not any_scope(scopes, lambda s: isinstance(s, LoopScope))


def test_scopes_size_instructions_and_empty():
    code = ["x", "y", "z"]
    assert scopes_size([InstructionsScope(code)]) == len(code)
    assert scopes_size([EmptyScope()]) == 0
    assert scopes_size([]) == 0


def test_scopes_size_markers_count_alike():
    markers = [
        CallScope(Call(1)),
        ReturnScope(Call(1)),
        LoopScope(0),
        ContinueScope(0),
        PanicScope(),
    ]
    assert scopes_size(markers) == len(markers)


def test_scopes_size_condition_is_sum_of_branches():
    left = [InstructionsScope(["a", "b"]), PanicScope()]
    right = [LoopScope(2), InstructionsScope(["c"])]
    assert scopes_size([ConditionScope(left, right)]) == scopes_size(left) + scopes_size(right)


def test_remove_scopes_nested():
    scopes = [
        EmptyScope(),
        ConditionScope([EmptyScope(), PanicScope()], [EmptyScope()]),
        LoopScope(1),
    ]
    remove_scopes(scopes, lambda s: isinstance(s, EmptyScope))
    assert scopes == [ConditionScope([PanicScope()], []), LoopScope(1)]


def _flow():
    main = Function(
        MAIN_FUNCTION_LABEL,
        [CallScope(Call(5)), ConditionScope([CallScope(Call(5))], [])],
    )
    helper = Function(5, [InstructionsScope(["op"])])
    return ExecutionFlow({MAIN_FUNCTION_LABEL: main, 5: helper})


def test_main_and_secondary_functions():
    flow = _flow()
    assert flow.main_function().label == MAIN_FUNCTION_LABEL
    assert [f.label for f in flow.secondary_functions()] == [5]


def test_main_function_missing():
    with pytest.raises(KeyError):
        ExecutionFlow({}).main_function()


def test_count_function_uses():
    flow = _flow()
    n_calls = sum(isinstance(s, CallScope) for s in flow.all_scopes())
    assert flow.count_function_uses() == {MAIN_FUNCTION_LABEL: 0, 5: n_calls}


def test_count_function_uses_unknown_label():
    flow = ExecutionFlow({MAIN_FUNCTION_LABEL: Function(MAIN_FUNCTION_LABEL, [CallScope(Call(9))])})
    with pytest.raises(KeyError):
        flow.count_function_uses()


def test_remove_functions_inlines_content():
    flow = _flow()
    flow.remove_functions(lambda f, n: is_main_label(f.label), _inline)
    assert list(flow.functions) == [MAIN_FUNCTION_LABEL]
    assert flow.main_function().content == [
        InstructionsScope(["op"]),
        ConditionScope([InstructionsScope(["op"])], []),
    ]


def test_remove_functions_keep_all_is_noop():
    flow = _flow()
    before = {k: list(v.content) for k, v in flow.functions.items()}
    flow.remove_functions(lambda f, n: True, _inline)
    assert {k: v.content for k, v in flow.functions.items()} == before


def test_remove_functions_passes_use_counts():
    flow = _flow()
    seen = {}

    def keep(function, n_uses):
        seen[function.label] = n_uses
        return True

    flow.remove_functions(keep, _inline)
    assert seen == flow.count_function_uses()