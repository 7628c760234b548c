"""Main CHIP-8 emulator execution engine."""

from functools import partial
from typing import Optional, Union

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np

from chip8vm.state import EmulatorState, normalize
from chip8vm.decode import decode
from chip8vm.constants import PROGRAM_START, MAX_PROGRAM_SIZE, MAX_ADDRESS
from chip8vm.errors import ErrorCode, ImageTooLargeError, flag
from chip8vm.trace import TraceSink, emit
from chip8vm.logging import scan_with_progress
from chip8vm.instructions import switch
from chip8vm.instructions.system import execute_system_instruction
from chip8vm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset_modern,
    execute_jump_with_offset_legacy, execute_skip_if_key
)
from chip8vm.instructions.alu import execute_alu_operation
from chip8vm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chip8vm.instructions.display import execute_display
from chip8vm.instructions.misc import execute_misc_instruction


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    Handlers own pc: sequential instructions advance it by 2, control flow sets
    it explicitly. Timers are not touched.
    """
    decoded_instruction = decode(instruction)

    return switch(
        decoded_instruction.opcode,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_offset_modern if state.modern_mode else execute_jump_with_offset_legacy,
            execute_random,
            execute_display,
            execute_skip_if_key,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch the instruction word at pc.

    pc is left unchanged; fetching past the end of memory flags OUT_OF_BOUNDS.
    """
    pc = jnp.astype(state.pc, jnp.int32)
    high = state.memory.at[pc].get(mode="clip")
    low = state.memory.at[pc + 1].get(mode="clip")
    state = flag(state, pc + 1 > MAX_ADDRESS, ErrorCode.OUT_OF_BOUNDS)
    return state, _pack_u16(high, low)


def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement delay and sound timers once, stopping at zero."""
    return state.replace(
        delay_timer=jnp.astype(jnp.where(state.delay_timer > 0, state.delay_timer - 1, 0), jnp.uint8),
        sound_timer=jnp.astype(jnp.where(state.sound_timer > 0, state.sound_timer - 1, 0), jnp.uint8),
    )


def step(state: EmulatorState, trace: Optional[TraceSink] = None) -> EmulatorState:
    """Run one fetch/decode/execute/timer cycle.

    On a fault the input state is returned with only ``error`` updated, so a
    halted machine stays exactly where it stopped.
    """
    state = normalize(state)
    fetched, instruction = fetch(state)
    emit(trace, state.pc, instruction, active=state.error == 0)
    executed = execute(fetched, instruction)

    return jax.lax.cond(
        executed.error != 0,
        lambda: state.replace(error=executed.error),
        lambda: normalize(tick_timers(executed)),
    )


step_jit = jax.jit(step, static_argnames="trace")


@partial(jax.jit, static_argnames=("n", "trace", "progress"))
def run_n_cycles(state: EmulatorState, n: int, trace: Optional[TraceSink] = None, progress: bool = False) -> EmulatorState:
    """Run ``n`` cycles in a single compiled scan."""
    def run_cycle(state, _):
        return step(state, trace), None

    if progress:
        run_cycle = scan_with_progress(n, desc=f"Running ({n:,} cycles)")(run_cycle)

    state, _ = jax.lax.scan(run_cycle, normalize(state), jnp.arange(n))
    return state


def load_program(state: EmulatorState, program: Union[bytes, bytearray, list, np.ndarray]) -> EmulatorState:
    """Copy a program image into memory starting at 0x200."""
    if isinstance(program, (bytes, bytearray, memoryview)):
        rom = np.frombuffer(bytes(program), dtype=np.uint8)
    else:
        rom = np.asarray(program, dtype=np.uint8)
    if len(rom) > MAX_PROGRAM_SIZE:
        raise ImageTooLargeError(len(rom))

    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom)].set(jnp.asarray(rom))
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)
