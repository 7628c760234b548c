"""CHIP-8 instruction decoding."""

from typing import Mapping, Tuple

import jax.numpy as jnp
import numpy as np
from chex import dataclass


def high_nibble(instruction):
    return (instruction & 0xF000) >> 12


def reg_x(instruction):
    return (instruction & 0x0F00) >> 8


def reg_y(instruction):
    return (instruction & 0x00F0) >> 4


def low_nibble(instruction):
    return instruction & 0x000F


def low_byte(instruction):
    return instruction & 0x00FF


def address(instruction):
    return instruction & 0x0FFF


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    return DecodedInstruction(
        raw=instruction,
        opcode=high_nibble(instruction),
        x=reg_x(instruction),
        y=reg_y(instruction),
        n=low_nibble(instruction),
        nn=low_byte(instruction),
        nnn=address(instruction)
    )


def dispatch_index(handlers: Mapping[int, int], size: int) -> jnp.ndarray:
    """Build a lookup table from a secondary discriminant to a branch index.

    Discriminants missing from ``handlers`` map to ``len(handlers)``, which by
    convention is the unknown-opcode branch.
    """
    table = np.full(size, len(handlers), dtype=np.int32)
    for discriminant, branch in handlers.items():
        table[discriminant] = branch
    return jnp.asarray(table)


_ALU_MNEMONICS = {
    0x0: "LD", 0x1: "OR", 0x2: "AND", 0x3: "XOR", 0x4: "ADD",
    0x5: "SUB", 0x6: "SHR", 0x7: "SUBN", 0xE: "SHL",
}


def disassemble(instruction: int) -> Tuple[str, Tuple[str, ...]]:
    """Return the mnemonic and formatted operands of an instruction word.

    Words with no defined meaning disassemble to ``("???", ())``.
    """
    instruction = int(instruction)
    d = decode(instruction)
    vx, vy = f"V{d.x:X}", f"V{d.y:X}"
    nn, nnn = f"0x{d.nn:02X}", f"0x{d.nnn:03X}"

    if d.opcode == 0x0:
        if d.nn == 0xE0:
            return "CLS", ()
        if d.nn == 0xEE:
            return "RET", ()
    elif d.opcode == 0x1:
        return "JP", (nnn,)
    elif d.opcode == 0x2:
        return "CALL", (nnn,)
    elif d.opcode == 0x3:
        return "SE", (vx, nn)
    elif d.opcode == 0x4:
        return "SNE", (vx, nn)
    elif d.opcode == 0x5:
        return "SE", (vx, vy)
    elif d.opcode == 0x6:
        return "LD", (vx, nn)
    elif d.opcode == 0x7:
        return "ADD", (vx, nn)
    elif d.opcode == 0x8:
        if d.n in _ALU_MNEMONICS:
            return _ALU_MNEMONICS[d.n], (vx, vy)
    elif d.opcode == 0x9:
        return "SNE", (vx, vy)
    elif d.opcode == 0xA:
        return "LD", ("I", nnn)
    elif d.opcode == 0xB:
        return "JP", ("V0", nnn)
    elif d.opcode == 0xC:
        return "RND", (vx, nn)
    elif d.opcode == 0xD:
        return "DRW", (vx, vy, f"{d.n}")
    elif d.opcode == 0xE:
        if d.nn == 0x9E:
            return "SKP", (vx,)
        if d.nn == 0xA1:
            return "SKNP", (vx,)
    else:
        misc = {
            0x07: (vx, "DT"),
            0x0A: (vx, "K"),
            0x15: ("DT", vx),
            0x18: ("ST", vx),
            0x29: ("F", vx),
            0x33: ("B", vx),
            0x55: ("[I]", vx),
            0x65: (vx, "[I]"),
        }
        if d.nn == 0x1E:
            return "ADD", ("I", vx)
        if d.nn in misc:
            return "LD", misc[d.nn]

    return "???", ()
