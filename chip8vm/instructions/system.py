"""CHIP-8 system instructions (0x0xxx)."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState, advance
from chip8vm.decode import DecodedInstruction, dispatch_index
from chip8vm.errors import ErrorCode, flag
from chip8vm.stack import pop, is_empty
from chip8vm.instructions import switch


def execute_unknown(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Undefined bit pattern within a decoded family."""
    return flag(state, True, ErrorCode.UNKNOWN_OPCODE)


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    state = state.replace(
        display=jnp.zeros_like(state.display),
        draw_flag=jnp.ones((), dtype=jnp.bool_),
    )
    return advance(state)


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    underflow = is_empty(state.stack)
    stack, address = pop(state.stack)
    state = advance(state.replace(stack=stack, pc=address))
    return flag(state, underflow, ErrorCode.STACK_UNDERFLOW)


_SYSTEM_INDEX = dispatch_index({0xE0: 0, 0xEE: 1}, 256)


def execute_system_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch system instructions on the low byte."""
    return switch(
        _SYSTEM_INDEX[instruction.nn],
        [execute_clear_screen, execute_return, execute_unknown],
        state, instruction
    )
