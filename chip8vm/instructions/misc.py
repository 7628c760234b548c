"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState, advance
from chip8vm.decode import DecodedInstruction, dispatch_index
from chip8vm.constants import FONT_START, FONT_GLYPH_SIZE, NUM_REGISTERS, MAX_ADDRESS
from chip8vm.errors import ErrorCode, flag
from chip8vm.instructions import switch
from chip8vm.instructions.system import execute_unknown


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return advance(state.replace(V=state.V.at[instruction.x].set(state.delay_timer)))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press.

    While no key is held pc stays put, so the instruction runs again next cycle.
    """
    any_pressed = jnp.any(state.keypad)
    pressed_key = jnp.astype(jnp.argmax(state.keypad), jnp.uint8)
    new_V = jnp.where(any_pressed, state.V.at[instruction.x].set(pressed_key), state.V)
    return advance(state.replace(V=new_V), jnp.where(any_pressed, 1, 0))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return advance(state.replace(delay_timer=state.V[instruction.x]))


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return advance(state.replace(sound_timer=state.V[instruction.x]))


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register."""
    new_i = jnp.astype(state.I + jnp.astype(state.V[instruction.x], jnp.uint16), jnp.uint16)
    return advance(state.replace(I=new_i))


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = FONT_START + jnp.astype(state.V[instruction.x], jnp.uint16) * FONT_GLYPH_SIZE
    return advance(state.replace(I=jnp.astype(font_address, jnp.uint16)))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    base = jnp.astype(state.I, jnp.int32)
    indices = jnp.arange(3) + base
    new_memory = state.memory.at[indices].set(digits, mode="drop")
    state = state.replace(memory=new_memory)
    return advance(flag(state, base + 2 > MAX_ADDRESS, ErrorCode.OUT_OF_BOUNDS))


def _register_window(state: EmulatorState, instruction: DecodedInstruction):
    """Mask of V0..VX and the memory addresses they map to."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base = jnp.astype(state.I, jnp.int32)
    return register_mask, base + jnp.arange(NUM_REGISTERS), base + instruction.x > MAX_ADDRESS


def _after_transfer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    if state.modern_mode:
        return state
    return state.replace(I=jnp.astype(state.I + instruction.x + 1, jnp.uint16))


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    register_mask, indices, out_of_bounds = _register_window(state, instruction)
    current_memory_values = state.memory.at[indices].get(mode="clip")
    new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
    new_memory = state.memory.at[indices].set(new_memory_values, mode="drop")

    state = _after_transfer(state.replace(memory=new_memory), instruction)
    return advance(flag(state, out_of_bounds, ErrorCode.OUT_OF_BOUNDS))


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    register_mask, indices, out_of_bounds = _register_window(state, instruction)
    memory_values = state.memory.at[indices].get(mode="clip")
    new_V = jnp.where(register_mask, memory_values, state.V)

    state = _after_transfer(state.replace(V=new_V), instruction)
    return advance(flag(state, out_of_bounds, ErrorCode.OUT_OF_BOUNDS))


_MISC_HANDLERS = {
    0x07: execute_get_delay_timer,
    0x0A: execute_wait_for_key,
    0x15: execute_set_delay_timer,
    0x18: execute_set_sound_timer,
    0x1E: execute_add_to_index,
    0x29: execute_font_character,
    0x33: execute_bcd_conversion,
    0x55: execute_store_registers,
    0x65: execute_load_registers,
}

_MISC_INDEX = dispatch_index({nn: i for i, nn in enumerate(_MISC_HANDLERS)}, 256)


def execute_misc_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch misc instructions on the low byte."""
    return switch(
        _MISC_INDEX[instruction.nn],
        [*_MISC_HANDLERS.values(), execute_unknown],
        state, instruction
    )
