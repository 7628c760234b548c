"""CHIP-8 fault codes and exceptions.

Faults are detected inside compiled code, where Python exceptions cannot be
raised, so handlers record an :class:`ErrorCode` in ``state.error``.
:func:`raise_for_error` turns that code into an exception on the host side.
"""

import enum
from typing import Optional

import jax.numpy as jnp

from chip8vm.constants import MAX_ADDRESS, MAX_PROGRAM_SIZE


class ErrorCode(enum.IntEnum):
    NONE = 0
    OUT_OF_BOUNDS = 1
    UNKNOWN_OPCODE = 2
    STACK_OVERFLOW = 3
    STACK_UNDERFLOW = 4


class Chip8Error(Exception):
    """Base class for all interpreter errors."""


class ImageTooLargeError(Chip8Error):
    """Program image does not fit between 0x200 and 0xFFF."""

    def __init__(self, size: int, limit: int = MAX_PROGRAM_SIZE):
        self.size = size
        self.limit = limit
        super().__init__(f"Program image is {size} bytes, limit is {limit} bytes")


class MachineFault(Chip8Error):
    """Fatal fault raised while executing an instruction."""

    code = ErrorCode.NONE
    description = "machine fault"

    def __init__(self, address: int, opcode: Optional[int] = None):
        self.address = address
        self.opcode = opcode
        opcode_str = f"0x{opcode:04X}" if opcode is not None else "????"
        super().__init__(f"{self.description} at 0x{address:03X} (opcode {opcode_str})")


class OutOfBoundsError(MachineFault):
    code = ErrorCode.OUT_OF_BOUNDS
    description = "Memory access out of bounds"


class UnknownOpcodeError(MachineFault):
    code = ErrorCode.UNKNOWN_OPCODE
    description = "Unknown opcode"


class StackOverflowError(MachineFault):
    code = ErrorCode.STACK_OVERFLOW
    description = "Call stack overflow"


class StackUnderflowError(MachineFault):
    code = ErrorCode.STACK_UNDERFLOW
    description = "Return with empty call stack"


FAULTS = {cls.code: cls for cls in (OutOfBoundsError, UnknownOpcodeError, StackOverflowError, StackUnderflowError)}


def flag(state, condition, code: ErrorCode):
    """Record ``code`` in the state when ``condition`` holds.

    An error that is already recorded is never overwritten.
    """
    error = jnp.where(
        (state.error == 0) & condition,
        jnp.astype(int(code), jnp.uint8),
        state.error,
    )
    return state.replace(error=jnp.astype(error, jnp.uint8))


def raise_for_error(state) -> None:
    """Raise the exception matching ``state.error``, if any."""
    code = ErrorCode(int(state.error))
    if code == ErrorCode.NONE:
        return

    address = int(state.pc)
    opcode = None
    if address + 1 <= MAX_ADDRESS:
        opcode = (int(state.memory[address]) << 8) | int(state.memory[address + 1])
    raise FAULTS[code](address, opcode)
