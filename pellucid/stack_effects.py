"""Composition of stack effects of consecutive code fragments."""


def aggregate_n_stack_inputs(
    n_stack_inputs_0: int, n_stack_outputs_0: int, n_stack_inputs_1: int
) -> int:
    """Stack inputs needed by running fragment 0 then fragment 1."""
    return max(n_stack_inputs_0, max(0, n_stack_inputs_0 + n_stack_inputs_1 - n_stack_outputs_0))


def aggregate_n_stack_outputs(
    n_stack_inputs_0: int,
    n_stack_outputs_0: int,
    n_stack_inputs_1: int,
    n_stack_outputs_1: int,
) -> int:
    """Stack outputs left by running fragment 0 then fragment 1."""
    delta = (n_stack_outputs_0 - n_stack_inputs_0) + (n_stack_outputs_1 - n_stack_inputs_1)
    inputs = aggregate_n_stack_inputs(n_stack_inputs_0, n_stack_outputs_0, n_stack_inputs_1)
    return delta + inputs


def aggregate_n_stack_inputs_and_outputs(
    n_stack_inputs_0: int,
    n_stack_outputs_0: int,
    n_stack_inputs_1: int,
    n_stack_outputs_1: int,
) -> tuple[int, int]:
    """Both the inputs and outputs of two fragments run in sequence."""
    return (
        aggregate_n_stack_inputs(n_stack_inputs_0, n_stack_outputs_0, n_stack_inputs_1),
        aggregate_n_stack_outputs(
            n_stack_inputs_0, n_stack_outputs_0, n_stack_inputs_1, n_stack_outputs_1
        ),
    )