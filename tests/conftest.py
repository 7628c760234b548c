"""Test configuration and fixtures for CHIP-8 interpreter tests."""

import pytest
import jax.numpy as jnp
from chip8vm import create_state, SCREEN_WIDTH, PROGRAM_START


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def modern_state():
    """Provide a fresh state in modern mode."""
    return create_state().replace(modern_mode=True)


@pytest.fixture
def legacy_state():
    """Provide a fresh state in the default (legacy) mode."""
    return create_state().replace(modern_mode=False)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def setup_program(state, words, address=PROGRAM_START):
    """Helper to write big-endian instruction words into memory."""
    program = []
    for word in words:
        program.extend([(word >> 8) & 0xFF, word & 0xFF])
    return setup_sprite_in_memory(state, address, program)


def pixel(state, x, y):
    """Read one display cell by coordinates."""
    return state.display[x + y * SCREEN_WIDTH]
