"""CHIP-8 instruction handlers grouped by opcode family."""

from functools import lru_cache

import jax.lax

from chip8vm.state import normalize


@lru_cache(maxsize=None)
def _normalized(handler):
    def wrapped(state, instruction):
        return normalize(handler(state, instruction))
    return wrapped


def switch(index, handlers, state, instruction):
    """``jax.lax.switch`` over instruction handlers with dtype-stable outputs."""
    return jax.lax.switch(index, [_normalized(h) for h in handlers], state, instruction)
