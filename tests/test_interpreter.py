"""Tests for the host-facing Interpreter."""

import jax
import pytest
from chip8vm import (
    Interpreter, TraceRecorder, ImageTooLargeError, UnknownOpcodeError,
    OutOfBoundsError, StackOverflowError, StackUnderflowError, MAX_PROGRAM_SIZE,
)


def words(*instructions):
    program = []
    for word in instructions:
        program.extend([(word >> 8) & 0xFF, word & 0xFF])
    return bytes(program)


class TestExecution:

    def test_step_counts_cycles(self):
        interpreter = Interpreter(words(0x6A07, 0x7A01))

        interpreter.step()
        interpreter.step()

        assert interpreter.registers[0xA] == 8
        assert interpreter.pc == 0x204
        assert interpreter.cycles == 2

    def test_run(self):
        interpreter = Interpreter(words(0x7001, 0x1200))

        interpreter.run(20)

        assert interpreter.registers[0] == 10
        assert interpreter.cycles == 20
        assert not interpreter.halted

    def test_reset_reloads_program(self):
        interpreter = Interpreter(words(0x6A07))
        interpreter.step()

        interpreter.reset()

        assert interpreter.pc == 0x200
        assert interpreter.registers[0xA] == 0
        assert interpreter.cycles == 0
        interpreter.step()
        assert interpreter.registers[0xA] == 7

    def test_image_too_large(self):
        with pytest.raises(ImageTooLargeError):
            Interpreter(bytes(MAX_PROGRAM_SIZE + 1))


class TestFaults:

    def test_unknown_opcode(self):
        interpreter = Interpreter(words(0x0123))

        with pytest.raises(UnknownOpcodeError) as excinfo:
            interpreter.step()

        assert excinfo.value.address == 0x200
        assert excinfo.value.opcode == 0x0123
        assert interpreter.halted
        assert interpreter.cycles == 1

    def test_halted_until_reset(self):
        interpreter = Interpreter(words(0x00EE))

        with pytest.raises(StackUnderflowError):
            interpreter.step()
        with pytest.raises(StackUnderflowError):
            interpreter.step()

        interpreter.reset()
        assert not interpreter.halted

    def test_stack_overflow(self):
        interpreter = Interpreter(words(0x2200))

        interpreter.run(16)
        with pytest.raises(StackOverflowError) as excinfo:
            interpreter.step()

        assert excinfo.value.address == 0x200
        assert int(interpreter.state.stack.pointer) == 16

    def test_fetch_past_memory(self):
        interpreter = Interpreter(words(0x1FFF))
        interpreter.step()

        with pytest.raises(OutOfBoundsError) as excinfo:
            interpreter.step()

        assert excinfo.value.address == 0xFFF
        assert excinfo.value.opcode is None
        assert "????" in str(excinfo.value)

    def test_run_raises_after_fault(self):
        interpreter = Interpreter(words(0x6001, 0xF0FF))

        with pytest.raises(UnknownOpcodeError) as excinfo:
            interpreter.run(5)

        assert excinfo.value.address == 0x202
        assert interpreter.registers[0] == 1
        assert interpreter.cycles == 5


class TestHostInterfaces:

    def test_display_and_redraw(self):
        interpreter = Interpreter(words(0xA000, 0xD005))
        assert not interpreter.needs_redraw

        interpreter.run(2)

        assert interpreter.needs_redraw
        assert interpreter.display.shape == (2048,)
        assert interpreter.frame.shape == (32, 64)
        assert interpreter.frame[0, :4].all()
        assert not interpreter.frame[0, 4]

        interpreter.acknowledge_redraw()
        assert not interpreter.needs_redraw

    def test_keys(self):
        interpreter = Interpreter(words(0xF30A))

        interpreter.step()
        assert interpreter.pc == 0x200

        interpreter.press_key(0xB)
        interpreter.step()
        assert interpreter.registers[3] == 0xB
        assert interpreter.pc == 0x202

    def test_set_keys_replaces_held_keys(self):
        interpreter = Interpreter()

        interpreter.set_keys([1, 2])
        interpreter.set_keys([0xF])
        interpreter.release_key(0xF)

        assert not interpreter.state.keypad.any()

    @pytest.mark.parametrize("key", [-1, 16])
    def test_invalid_key(self, key):
        interpreter = Interpreter()

        with pytest.raises(ValueError):
            interpreter.press_key(key)
        with pytest.raises(ValueError):
            interpreter.set_keys([key])

    def test_timers(self):
        interpreter = Interpreter(words(0x603C, 0xF015, 0xF018))

        interpreter.run(3)

        assert interpreter.delay_timer == 58
        assert interpreter.sound_timer == 59


class TestTrace:

    def test_records_each_instruction(self):
        recorder = TraceRecorder()
        interpreter = Interpreter(words(0x6005, 0x6103, 0x8014), trace=recorder)

        interpreter.run(3)
        jax.effects_barrier()

        assert [r.address for r in recorder.records] == [0x200, 0x202, 0x204]
        assert [r.opcode for r in recorder.records] == [0x6005, 0x6103, 0x8014]
        assert recorder.records[2].mnemonic == "ADD"
        assert str(recorder.records[0]) == "0x200  6005  LD   V0, 0x05"

    def test_trace_does_not_change_state(self):
        traced = Interpreter(words(0x6005, 0xC0FF, 0x7003), trace=TraceRecorder())
        plain = Interpreter(words(0x6005, 0xC0FF, 0x7003))

        traced.run(3)
        plain.run(3)

        assert (traced.registers == plain.registers).all()
        assert traced.pc == plain.pc

    def test_halted_cycles_are_not_traced(self):
        recorder = TraceRecorder()
        interpreter = Interpreter(words(0x0123), trace=recorder)

        with pytest.raises(UnknownOpcodeError):
            interpreter.run(5)
        with pytest.raises(UnknownOpcodeError):
            interpreter.step()
        jax.effects_barrier()

        assert len(recorder) == 1
        assert recorder.records[0].opcode == 0x0123
