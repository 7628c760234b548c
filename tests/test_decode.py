"""Tests for instruction decoding, disassembly and trace records."""

import jax
import pytest
from chip8vm import decode, disassemble, TraceRecord, TraceRecorder, step
from chip8vm.trace import make_record
from conftest import setup_program


def test_decode_fields():
    instruction = decode(0xD12F)

    assert instruction.raw == 0xD12F
    assert instruction.opcode == 0xD
    assert instruction.x == 0x1
    assert instruction.y == 0x2
    assert instruction.n == 0xF
    assert instruction.nn == 0x2F
    assert instruction.nnn == 0x12F


@pytest.mark.parametrize("word, expected", [
    (0x00E0, ("CLS", ())),
    (0x00EE, ("RET", ())),
    (0x1234, ("JP", ("0x234",))),
    (0x2ABC, ("CALL", ("0xABC",))),
    (0x3A0F, ("SE", ("VA", "0x0F"))),
    (0x9120, ("SNE", ("V1", "V2"))),
    (0x8124, ("ADD", ("V1", "V2"))),
    (0x812E, ("SHL", ("V1", "V2"))),
    (0xA123, ("LD", ("I", "0x123"))),
    (0xB300, ("JP", ("V0", "0x300"))),
    (0xD015, ("DRW", ("V0", "V1", "5"))),
    (0xE39E, ("SKP", ("V3",))),
    (0xF50A, ("LD", ("V5", "K"))),
    (0xF21E, ("ADD", ("I", "V2"))),
    (0xF233, ("LD", ("B", "V2"))),
    (0xF255, ("LD", ("[I]", "V2"))),
])
def test_disassemble(word, expected):
    assert disassemble(word) == expected


@pytest.mark.parametrize("word", [0x0123, 0x8128, 0xE000, 0xF0FF])
def test_disassemble_unknown(word):
    assert disassemble(word) == ("???", ())


class TestTraceRecord:

    def test_make_record(self):
        record = make_record(0x20A, 0xD015)

        assert record == TraceRecord(address=0x20A, opcode=0xD015, mnemonic="DRW", operands=("V0", "V1", "5"))
        assert str(record) == "0x20A  D015  DRW  V0, V1, 5"

    def test_str_without_operands(self):
        assert str(make_record(0x200, 0x00E0)) == "0x200  00E0  CLS"

    def test_unknown_instruction_is_still_traced(self, fresh_state):
        recorder = TraceRecorder()
        state = setup_program(fresh_state, [0x0123])

        step(state, trace=recorder)
        jax.effects_barrier()

        assert len(recorder) == 1
        assert recorder.records[0].mnemonic == "???"

    def test_recorder_clear(self):
        recorder = TraceRecorder()
        recorder(make_record(0x200, 0x00E0))

        recorder.clear()

        assert len(recorder) == 0
