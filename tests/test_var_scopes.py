from pellucid.flow import (
    CallScope,
    EmptyScope,
    InstructionsScope,
    LoopScope,
    PanicScope,
)
from pellucid.var_scopes import (
    FunctionCallWithVars,
    FunctionWithVars,
    InstructionsWithVars,
    is_empty_scope,
    should_be_followed_by_condition,
)
from pellucid.variables import Assignment, Bytes, EmptyLine, Existing, If, Variable

A = Variable(1)
B = Variable(2)


def test_length_ignores_empty_lines():
    instructions = InstructionsWithVars(
        [Assignment(A, Bytes(1)), EmptyLine(), If(Existing(A))]
    )
    assert len(instructions) == 2
    assert len(InstructionsWithVars([EmptyLine(), EmptyLine()])) == 0


def test_n_parameters_counts_inputs():
    function = FunctionWithVars(label=5, input_vars=[A, B])
    assert function.n_parameters() == len([A, B])


def test_functions_compare_by_label():
    first = FunctionWithVars(label=5, content=[PanicScope()])
    second = FunctionWithVars(label=5, input_vars=[A])
    third = FunctionWithVars(label=6, content=[PanicScope()])
    assert first == second
    assert not first == third


def test_is_empty_scope():
    assert is_empty_scope(InstructionsScope(InstructionsWithVars([])))
    assert is_empty_scope(EmptyScope())
    assert not is_empty_scope(InstructionsScope(InstructionsWithVars([EmptyLine()])))
    assert not is_empty_scope(PanicScope())
    assert not is_empty_scope(LoopScope(3))


def test_should_be_followed_by_condition():
    ending_with_if = InstructionsScope(
        InstructionsWithVars([Assignment(A, Bytes(1)), If(Existing(A))])
    )
    ending_with_assignment = InstructionsScope(
        InstructionsWithVars([If(Existing(A)), Assignment(B, Bytes(2))])
    )
    assert should_be_followed_by_condition(ending_with_if)
    assert not should_be_followed_by_condition(ending_with_assignment)
    assert not should_be_followed_by_condition(InstructionsScope(InstructionsWithVars([])))
    assert not should_be_followed_by_condition(CallScope(FunctionCallWithVars(label=1)))