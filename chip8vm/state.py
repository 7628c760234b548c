"""CHIP-8 emulator state structures."""

from typing import Iterable, Union

import jax
import jax.numpy as jnp
import numpy as np
from flax.struct import dataclass, PyTreeNode, field

from chip8vm.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT,
    DISPLAY_SIZE, STACK_SIZE, MEMORY_SIZE, NUM_REGISTERS, NUM_KEYS,
)


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    The display is a flat row-major buffer of 2048 cells (index ``x + y * 64``).
    ``error`` holds an :class:`chip8vm.errors.ErrorCode`; a non-zero value halts
    the machine.
    """
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.astype(PROGRAM_START, jnp.uint16))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros(DISPLAY_SIZE, dtype=jnp.bool_))
    draw_flag: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.bool_))
    stack: StackState = StackState()
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    error: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    modern_mode: bool = field(pytree_node=False, default=False)


def create_state(rng: jax.random.PRNGKey = jax.random.PRNGKey(0), modern_mode: bool = False) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    state = EmulatorState(rng, modern_mode=modern_mode)
    font = jnp.array(FONT_DATA, dtype=jnp.uint8)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(font))


def normalize(state: EmulatorState) -> EmulatorState:
    """Cast every leaf to its canonical dtype.

    Branches of ``lax.switch``/``lax.cond`` must agree on dtypes, so handlers
    return normalized states.
    """
    return state.replace(
        memory=jnp.astype(state.memory, jnp.uint8),
        pc=jnp.astype(state.pc, jnp.uint16),
        display=jnp.astype(state.display, jnp.bool_),
        draw_flag=jnp.astype(state.draw_flag, jnp.bool_),
        stack=state.stack.replace(
            data=jnp.astype(state.stack.data, jnp.uint16),
            pointer=jnp.astype(state.stack.pointer, jnp.uint8),
        ),
        delay_timer=jnp.astype(state.delay_timer, jnp.uint8),
        sound_timer=jnp.astype(state.sound_timer, jnp.uint8),
        keypad=jnp.astype(state.keypad, jnp.bool_),
        V=jnp.astype(state.V, jnp.uint8),
        I=jnp.astype(state.I, jnp.uint16),
        error=jnp.astype(state.error, jnp.uint8),
    )


def advance(state: EmulatorState, instructions=1) -> EmulatorState:
    """Move pc forward by a number of 2-byte instructions."""
    return state.replace(pc=jnp.astype(state.pc + 2 * instructions, jnp.uint16))


def set_keys(state: EmulatorState, pressed: Union[Iterable[int], Iterable[bool]]) -> EmulatorState:
    """Replace the keypad with the keys currently held by the host.

    ``pressed`` is either a 16-element boolean mask or an iterable of key
    numbers (0x0-0xF).
    """
    keys = np.asarray(pressed if hasattr(pressed, "shape") else list(pressed))

    if keys.dtype == np.bool_:
        if keys.shape != (NUM_KEYS,):
            raise ValueError(f"Key mask must have shape ({NUM_KEYS},), got {keys.shape}")
        keypad = keys
    else:
        keypad = np.zeros(NUM_KEYS, dtype=np.bool_)
        if keys.size:
            keys = keys.astype(np.int64).ravel()
            if keys.min() < 0 or keys.max() >= NUM_KEYS:
                raise ValueError(f"Key numbers must be in 0x0-0xF, got {keys.tolist()}")
            keypad[keys] = True

    return state.replace(keypad=jnp.asarray(keypad, dtype=jnp.bool_))


def clear_draw_flag(state: EmulatorState) -> EmulatorState:
    """Acknowledge that the host has rendered the current display."""
    return state.replace(draw_flag=jnp.zeros((), dtype=jnp.bool_))


def display_frame(state: EmulatorState) -> jnp.ndarray:
    """Return the display as a (height, width) boolean grid."""
    return state.display.reshape(SCREEN_HEIGHT, SCREEN_WIDTH)
