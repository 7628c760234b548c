"""CHIP-8 ALU operations (8xxx)."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState, advance
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import FLAG_REGISTER
from chip8vm.instructions import switch
from chip8vm.instructions.system import execute_unknown


def alu_set(vx, vy):
    """8XY0 - Set: VX = VY."""
    return vy


def alu_or(vx, vy):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy


def alu_and(vx, vy):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy


def alu_xor(vx, vy):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy


def alu_add(vx, vy) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY4 - Add: VX += VY, set carry flag."""
    result = jnp.astype(vx, jnp.int32) + jnp.astype(vy, jnp.int32)
    carry = jnp.astype(result > 255, jnp.uint8)
    return jnp.astype(result & 0xFF, jnp.uint8), carry


def alu_sub_xy(vx, vy) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY5 - Subtract: VX -= VY, VF = 1 when there is no borrow."""
    not_borrow = jnp.astype(vx >= vy, jnp.uint8)
    result = (jnp.astype(vx, jnp.int32) - jnp.astype(vy, jnp.int32)) & 0xFF
    return jnp.astype(result, jnp.uint8), not_borrow


def alu_shift_right(value) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY6 - Shift right, VF = bit shifted out."""
    shifted_bit = value & 1
    return value >> 1, shifted_bit


def alu_sub_yx(vx, vy) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY7 - Subtract: VX = VY - VX, VF = 1 when there is no borrow."""
    return alu_sub_xy(vy, vx)


def alu_shift_left(value) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XYE - Shift left, VF = bit shifted out."""
    shifted_bit = (value & 0x80) >> 7
    return (value << 1) & 0xFF, shifted_bit


def make_register_op(op):
    """Handler for an ALU op that leaves VF untouched."""
    def handler(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        result = op(state.V[instruction.x], state.V[instruction.y])
        new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
        return advance(state.replace(V=new_V))
    return handler


def make_flag_op(op):
    """Handler for an ALU op that writes VF after the result."""
    def handler(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        result, vf = op(state.V[instruction.x], state.V[instruction.y])
        new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
        new_V = new_V.at[FLAG_REGISTER].set(jnp.astype(vf, jnp.uint8))
        return advance(state.replace(V=new_V))
    return handler


def make_shift_op(shift):
    """Handler for shifts; the source register depends on ``modern_mode``."""
    def handler(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        source = instruction.x if state.modern_mode else instruction.y
        result, vf = shift(state.V[source])
        new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
        new_V = new_V.at[FLAG_REGISTER].set(jnp.astype(vf, jnp.uint8))
        return advance(state.replace(V=new_V))
    return handler


_ALU_HANDLERS = [execute_unknown] * 16
_ALU_HANDLERS[0x0] = make_register_op(alu_set)
_ALU_HANDLERS[0x1] = make_register_op(alu_or)
_ALU_HANDLERS[0x2] = make_register_op(alu_and)
_ALU_HANDLERS[0x3] = make_register_op(alu_xor)
_ALU_HANDLERS[0x4] = make_flag_op(alu_add)
_ALU_HANDLERS[0x5] = make_flag_op(alu_sub_xy)
_ALU_HANDLERS[0x6] = make_shift_op(alu_shift_right)
_ALU_HANDLERS[0x7] = make_flag_op(alu_sub_yx)
_ALU_HANDLERS[0xE] = make_shift_op(alu_shift_left)


def execute_alu_operation(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """8XYN - ALU operations dispatcher."""
    return switch(instruction.n, _ALU_HANDLERS, state, instruction)
