"""CHIP-8 control flow instructions."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState, advance
from chip8vm.decode import DecodedInstruction, dispatch_index
from chip8vm.errors import ErrorCode, flag
from chip8vm.stack import push, is_full
from chip8vm.instructions import switch
from chip8vm.instructions.system import execute_unknown


def execute_jump(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.astype(instruction.nnn, jnp.uint16))


def execute_call(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """2NNN - Call subroutine at NNN."""
    overflow = is_full(state.stack)
    state = state.replace(stack=push(state.stack, state.pc))
    state = execute_jump(state, instruction)
    return flag(state, overflow, ErrorCode.STACK_OVERFLOW)


def make_skip_instruction(condition_fn):
    """Factory for skip instructions."""
    def skip_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        condition = condition_fn(state, instruction)
        return advance(state, jnp.where(condition, 2, 1))
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y]
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y]
)

execute_skip_if_key_pressed = make_skip_instruction(
    lambda state, inst: state.keypad[state.V[inst.x] & 0xF]
)

execute_skip_if_key_not_pressed = make_skip_instruction(
    lambda state, inst: ~state.keypad[state.V[inst.x] & 0xF]
)


def execute_jump_with_offset_modern(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BXNN - Jump to address XNN + VX (modern behavior)."""
    register_value = jnp.astype(state.V[instruction.x], jnp.uint16)
    return state.replace(pc=jnp.astype(instruction.nnn + register_value, jnp.uint16))


def execute_jump_with_offset_legacy(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BNNN - Jump to address NNN + V0."""
    register_value = jnp.astype(state.V[0], jnp.uint16)
    return state.replace(pc=jnp.astype(instruction.nnn + register_value, jnp.uint16))


_KEY_INDEX = dispatch_index({0x9E: 0, 0xA1: 1}, 256)


def execute_skip_if_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """EX9E/EXA1 - Skip if key pressed/not pressed."""
    return switch(
        _KEY_INDEX[instruction.nn],
        [execute_skip_if_key_pressed, execute_skip_if_key_not_pressed, execute_unknown],
        state, instruction
    )
