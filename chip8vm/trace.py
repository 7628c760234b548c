"""Per-instruction diagnostic trace.

A trace sink is any callable taking a :class:`TraceRecord`. Records are sent
from inside compiled code with ``io_callback`` and never affect machine state.
"""

from typing import Callable, List, Optional, Tuple

import jax
import jax.numpy as jnp
from chex import dataclass
from jax.experimental import io_callback

from chip8vm.decode import disassemble
from chip8vm.logging import ConsoleLogger


@dataclass(frozen=True)
class TraceRecord:
    """One executed instruction."""
    address: int
    opcode: int
    mnemonic: str
    operands: Tuple[str, ...]

    def __str__(self):
        operands = ", ".join(self.operands)
        return f"0x{self.address:03X}  {self.opcode:04X}  {self.mnemonic:<4s} {operands}".rstrip()


TraceSink = Callable[[TraceRecord], None]


def make_record(address: int, opcode: int) -> TraceRecord:
    mnemonic, operands = disassemble(opcode)
    return TraceRecord(address=int(address), opcode=int(opcode), mnemonic=mnemonic, operands=operands)


def emit(sink: Optional[TraceSink], address: jnp.ndarray, opcode: jnp.ndarray, active=True) -> None:
    """Send a record for the instruction at ``address`` to ``sink`` when ``active`` holds."""
    if sink is None:
        return

    def _callback(address, opcode):
        sink(make_record(address, opcode))

    _ = jax.lax.cond(
        active,
        lambda _: io_callback(_callback, None, address, opcode, ordered=True),
        lambda _: None,
        operand=None,
    )


class TraceRecorder:
    """Sink that keeps every record in memory."""

    def __init__(self):
        self.records: List[TraceRecord] = []

    def __call__(self, record: TraceRecord):
        self.records.append(record)

    def __len__(self):
        return len(self.records)

    def clear(self):
        self.records.clear()


class TraceLogger:
    """Sink that writes each record to a console logger at DEBUG level."""

    def __init__(self, logger=None):
        self.logger = logger or ConsoleLogger(name="Trace", log_level="DEBUG")

    def __call__(self, record: TraceRecord):
        self.logger.debug(str(record))
