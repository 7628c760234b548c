"""CHIP-8 display operations."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState, advance
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, DISPLAY_SIZE, SPRITE_WIDTH, FLAG_REGISTER, MAX_ADDRESS
from chip8vm.errors import ErrorCode, flag

# Pre-computed coordinates of every display cell (index = x + y * width)
cells = jnp.arange(DISPLAY_SIZE, dtype=jnp.int32)
xx = cells % SCREEN_WIDTH
yy = cells // SCREEN_WIDTH


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N.

    The origin wraps around the screen; pixels past the right or bottom edge
    are clipped. VF is set when any lit pixel is turned off.
    """
    sprite_x = jnp.astype(state.V[instruction.x] % SCREEN_WIDTH, jnp.int32)
    sprite_y = jnp.astype(state.V[instruction.y] % SCREEN_HEIGHT, jnp.int32)
    height = jnp.astype(instruction.n, jnp.int32)

    col_offset = xx - sprite_x
    row_offset = yy - sprite_y
    in_sprite = (col_offset >= 0) & (col_offset < SPRITE_WIDTH) & (row_offset >= 0) & (row_offset < height)

    base = jnp.astype(state.I, jnp.int32)
    sprite_bytes = state.memory.at[base + jnp.clip(row_offset, 0, 15)].get(mode="clip")
    bits = (jnp.astype(sprite_bytes, jnp.int32) >> (7 - jnp.clip(col_offset, 0, 7))) & 1
    sprite = (bits == 1) & in_sprite

    collision = jnp.any(state.display & sprite)
    state = state.replace(
        display=state.display ^ sprite,
        draw_flag=jnp.ones((), dtype=jnp.bool_),
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8)),
    )
    state = flag(state, (height > 0) & (base + height - 1 > MAX_ADDRESS), ErrorCode.OUT_OF_BOUNDS)
    return advance(state)
