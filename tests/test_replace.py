import pytest
from hypothesis import given
from hypothesis import strategies as st

from pellucid.flow import CallScope, ConditionScope, EmptyScope, InstructionsScope, ReturnScope
from pellucid.replace import replace_vars_in_value, replace_vars_until_second_assignment
from pellucid.var_analysis import count_uses_per_var_in_value
from pellucid.var_scopes import FunctionCallWithVars, FunctionReturnWithVars, InstructionsWithVars
from pellucid.variables import (
    Assignment,
    Bytes,
    Calculation,
    EmptyLine,
    Existing,
    FunctionReturnedValue,
    If,
    Variable,
    value_size,
)

A, B, C, X = Variable(1), Variable(2), Variable(3), Variable(4)


def _instr(*lines):
    return InstructionsScope(InstructionsWithVars(list(lines)))


def _call(label, arguments, results):
    return CallScope(FunctionCallWithVars(label, list(arguments), list(results)))


def _ret(label, values):
    return ReturnScope(FunctionReturnWithVars(label, list(values)))


_values = st.recursive(
    st.one_of(
        st.integers(0, 2**256 - 1).map(Bytes),
        st.integers(0, 20).map(lambda alias: Existing(Variable(alias))),
    ),
    lambda children: st.one_of(
        st.lists(children, max_size=3).map(lambda args: Calculation("ADD", tuple(args))),
        st.tuples(st.integers(0, 10), st.lists(children, max_size=3)).map(
            lambda pair: FunctionReturnedValue(pair[0], tuple(pair[1]), 0)
        ),
    ),
    max_leaves=10,
)


def test_replace_in_nested_calculation():
    value = Calculation("ADD", (Existing(A), Existing(B)))
    assert replace_vars_in_value(value, {A: Bytes(1)}) == Calculation(
        "ADD", (Bytes(1), Existing(B))
    )


def test_replace_in_function_returned_value():
    value = FunctionReturnedValue(3, (Existing(A),), 1)
    assert replace_vars_in_value(value, {A: Existing(B)}) == FunctionReturnedValue(
        3, (Existing(B),), 1
    )


def test_replacement_is_not_applied_recursively():
    assert replace_vars_in_value(Existing(A), {A: Existing(B), B: Bytes(2)}) == Existing(B)


@given(_values)
def test_empty_mapping_is_identity(value):
    assert replace_vars_in_value(value, {}) == value


@given(_values)
def test_replacing_every_variable_by_bytes(value):
    mapping = {Variable(alias): Bytes(0) for alias in range(21)}
    replaced = replace_vars_in_value(value, mapping)
    uses = {}
    count_uses_per_var_in_value(replaced, uses)
    assert uses == {}
    assert value_size(replaced) == value_size(value)


def test_first_assignment_is_erased_and_uses_replaced():
    scopes = [_instr(Assignment(A, Bytes(1)), Assignment(B, Existing(A)))]
    replace_vars_until_second_assignment(scopes, {A: Bytes(5)})
    assert scopes == [_instr(EmptyLine(), Assignment(B, Bytes(5)))]


def test_replacement_stops_after_second_assignment():
    scopes = [
        _instr(
            Assignment(A, Bytes(1)),
            Assignment(A, Bytes(2)),
            Assignment(C, Existing(A)),
        )
    ]
    replace_vars_until_second_assignment(scopes, {A: Bytes(9)})
    assert scopes == [_instr(EmptyLine(), Assignment(A, Bytes(2)), Assignment(C, Existing(A)))]


def test_call_producing_replaced_var_is_erased():
    scopes = [_call(7, [Existing(A)], [X]), _instr(Assignment(B, Existing(X)))]
    replace_vars_until_second_assignment(scopes, {X: Bytes(3)})
    assert scopes == [EmptyScope(), _instr(Assignment(B, Bytes(3)))]


def test_call_with_several_results_cannot_be_replaced():
    scopes = [_call(7, [], [X, B])]
    with pytest.raises(ValueError):
        replace_vars_until_second_assignment(scopes, {X: Bytes(3)})


def test_call_arguments_are_replaced():
    scopes = [_call(7, [Existing(A), Existing(B)], [C])]
    replace_vars_until_second_assignment(scopes, {A: Bytes(4)})
    assert scopes == [_call(7, [Bytes(4), Existing(B)], [C])]


def test_condition_branches_and_returns():
    scopes = [
        _instr(If(Existing(A))),
        ConditionScope([_ret(2, [Existing(A)])], [_instr(Assignment(B, Existing(A)))]),
    ]
    replace_vars_until_second_assignment(scopes, {A: Bytes(8)})
    assert scopes == [
        _instr(If(Bytes(8))),
        ConditionScope([_ret(2, [Bytes(8)])], [_instr(Assignment(B, Bytes(8)))]),
    ]


def test_unassigned_receiver_lines_are_kept():
    scopes = [_instr(Assignment(None, Calculation("SSTORE", (Existing(A), Existing(B)))))]
    replace_vars_until_second_assignment(scopes, {B: Bytes(6)})
    assert scopes == [_instr(Assignment(None, Calculation("SSTORE", (Existing(A), Bytes(6)))))]