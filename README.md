# pellucid

`pellucid` turns an execution flow recovered from EVM bytecode into readable,
Solidity-like pseudo source code. It works in two stages:

1. **Opcode flow**: the main function and every secondary function hold a
   tree of scopes (instruction runs, calls, returns, loops, loop continues,
   conditions, panics). `fill_n_inputs_and_outputs` computes the stack inputs
   and outputs of every function, and `remove_secondary_functions_containing_loops`
   inlines the secondary functions that contain a loop into their callers.
2. **Variable flow**: `convert_opcode_flow_to_var_flow` runs the opcodes on a
   stack of named variables and produces assignments and `if` lines. It then
   merges variables that must be equal at loop continues and after if/else
   branches, substitutes variables assigned once by their cheap, side-effect-free
   values, drops empty lines, inlines small or rarely used functions, and
   numbers variables and functions from zero.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

| Module | Contents |
| --- | --- |
| `pellucid.flow` | Scope types `InstructionsScope`, `CallScope`, `ReturnScope`, `LoopScope`, `ContinueScope`, `ConditionScope`, `PanicScope`, `EmptyScope`; `ExecutionFlow` (`main_function`, `secondary_functions`, `all_scopes`, `count_function_uses`, `remove_functions`); helpers `is_main_label`, `walk_scopes`, `any_scope`, `scopes_size`, `remove_scopes`; the constant `MAIN_FUNCTION_LABEL`. |
| `pellucid.stack_effects` | `aggregate_n_stack_inputs`, `aggregate_n_stack_outputs`, `aggregate_n_stack_inputs_and_outputs`: the stack effect of two pieces of code run one after the other. |
| `pellucid.opcode_flow` | `FunctionCallWithOpcodes`, `FunctionReturnWithOpcodes`, `InstructionsWithOpcodes`, `FunctionWithOpcodes`; `fill_n_inputs_and_outputs`, `inline_function_call`, `remove_secondary_functions_containing_loops`; text dumps `opcode_scope_to_str` and `opcode_flow_to_str`. |
| `pellucid.variables` | `Variable`; values `Calculation`, `Existing`, `Bytes`, `FunctionReturnedValue`; lines `Assignment`, `If`, `EmptyLine`; `VariablesStack`; `values_from_vars`, `value_size`, `convert_vopcodes_to_lines`. |
| `pellucid.var_scopes` | `InstructionsWithVars`, `FunctionWithVars`, `FunctionCallWithVars`, `FunctionReturnWithVars`; `is_empty_scope`, `should_be_followed_by_condition`. |
| `pellucid.var_analysis` | `count_uses_per_var_in_line`, `count_uses_per_var_in_value`, `vars_ordered_by_depth`, `enumerate_var_initializations`, `find_vars_used_in_scopes`. |
| `pellucid.replace` | `replace_vars_in_value`, `replace_vars_until_second_assignment`. |
| `pellucid.rename` | `rename_variables_in_scopes`, `rename_variables`, `rename_function_labels`, `functions_ordered_by_depth`, `rename_functions_starting_from_zero`. |
| `pellucid.inline` | `inline_function_call`, `should_function_exist`, `remove_small_functions`. |
| `pellucid.simplify` | `simplify_vars_in_scopes`, `simplify_vars`, `remove_empty_elements`, `rename_variables_starting_from_zero`. |
| `pellucid.var_flow` | `equivalences_to_mapping`, `simplify` (all passes in order), `convert_opcode_flow_to_var_flow`. |
| `pellucid.render` | `value_to_str`, `line_to_str`, `var_scope_to_str`, `scopes_to_str`, `var_flow_to_str`. |

## Opcodes you supply

The package does not define opcodes; it works with any objects of this shape:

- a *vopcode* has an `opcode`, a `value` (the pushed integer for `PUSH`),
  an `is_exiting()` method (true for opcodes that end execution, such as
  `STOP` or `REVERT`) and a string form used by `opcode_scope_to_str`;
- an *opcode* has a `name` (`"DUP"`, `"PUSH"`, `"SWAP"`, `"POP"`, `"JUMP"`,
  `"JUMPDEST"`, `"JUMPI"` are handled specially, any other name is treated as
  a calculation), a `depth` for `DUP` and `SWAP`, the methods `stack_input()`,
  `stack_output()` (0 or 1) and `has_effect()`, and optionally
  `calculation_to_str(render_arg)` to control how calculations are printed.
  Without it a calculation prints as `NAME(arg0, arg1, ...)`.

## Example

```python
from pellucid.stack_effects import aggregate_n_stack_inputs_and_outputs

# Code taking 10 items and leaving 8, followed by code taking 7 and leaving 4:
aggregate_n_stack_inputs_and_outputs(10, 8, 7, 4)  # -> (10, 5)
```

A whole flow, from opcodes to pseudo source:

```python
from dataclasses import dataclass

from pellucid.flow import MAIN_FUNCTION_LABEL, ExecutionFlow, InstructionsScope
from pellucid.opcode_flow import FunctionWithOpcodes, InstructionsWithOpcodes
from pellucid.render import var_flow_to_str
from pellucid.var_flow import convert_opcode_flow_to_var_flow


@dataclass(frozen=True)
class Opcode:
    name: str
    n_in: int = 0
    n_out: int = 0

    def stack_input(self):
        return self.n_in

    def stack_output(self):
        return self.n_out

    def has_effect(self):
        return self.name == "MSTORE"


@dataclass(frozen=True)
class Vopcode:
    opcode: Opcode
    value: int | None = None

    def is_exiting(self):
        return False


code = [
    Vopcode(Opcode("PUSH"), 0x80),
    Vopcode(Opcode("PUSH"), 0x40),
    Vopcode(Opcode("MSTORE", 2, 0)),
]
main = FunctionWithOpcodes(
    MAIN_FUNCTION_LABEL,
    content=[InstructionsScope(InstructionsWithOpcodes(code, 0, 0))],
)
opcode_flow = ExecutionFlow({MAIN_FUNCTION_LABEL: main})

print(var_flow_to_str(convert_opcode_flow_to_var_flow(opcode_flow)))
```

prints

```
function main() external {
    MSTORE(0x40, 0x80)
}
```

Secondary functions are printed after the main one as
`function fn_<n>(var_..., ...) internal returns(r0, ...) { ... }`.

## What the package does not do

- It does not read bytecode, split it into blocks, build the control-flow
  graph, detect loops or detect functions. The caller builds the opcode-level
  `ExecutionFlow` of `FunctionWithOpcodes` objects.
- It has no command-line tool and writes no files; the text comes back as
  strings from `opcode_flow_to_str` and `var_flow_to_str`.