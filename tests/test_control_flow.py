"""Tests for control flow instructions (1xxx-5xxx, 9xxx, Bxxx, Exxx)."""

from chip8vm import execute, set_keys, ErrorCode


class TestJumpAndCall:
    """Test jumps and subroutine calls."""

    def test_jump(self, fresh_state):
        """1NNN - Jump to address NNN."""
        state = execute(fresh_state, 0x1ABC)

        assert state.pc == 0xABC
        assert state.stack.pointer == 0

    def test_call_pushes_own_address(self, fresh_state):
        """2NNN - The call's own address goes on the stack."""
        state = execute(fresh_state, 0x2300)

        assert state.pc == 0x300
        assert state.stack.pointer == 1
        assert state.stack.data[0] == 0x200

    def test_call_overflow(self, fresh_state):
        """2NNN - A 17th nested call faults."""
        state = fresh_state.replace(stack=fresh_state.stack.replace(pointer=fresh_state.stack.pointer + 16))

        state = execute(state, 0x2300)

        assert state.error == ErrorCode.STACK_OVERFLOW

    def test_jump_with_offset_legacy(self, legacy_state):
        """BNNN - Jump to NNN + V0."""
        state = legacy_state.replace(V=legacy_state.V.at[0].set(0x10))
        state = state.replace(V=state.V.at[2].set(0x30))

        state = execute(state, 0xB250)

        assert state.pc == 0x260

    def test_jump_with_offset_modern(self, modern_state):
        """BXNN - Jump to XNN + VX."""
        state = modern_state.replace(V=modern_state.V.at[0].set(0x10))
        state = state.replace(V=state.V.at[2].set(0x30))

        state = execute(state, 0xB250)

        assert state.pc == 0x280

    def test_jump_with_offset_past_memory_is_not_masked(self, legacy_state):
        """The target is only checked when the next instruction is fetched."""
        state = legacy_state.replace(V=legacy_state.V.at[0].set(0xFF))

        state = execute(state, 0xBFFF)

        assert state.pc == 0xFFF + 0xFF
        assert state.error == ErrorCode.NONE


class TestSkips:
    """Test conditional skips."""

    def test_skip_if_equal_immediate_taken(self, fresh_state):
        """3XNN - Skip when VX == NN."""
        state = fresh_state.replace(V=fresh_state.V.at[4].set(0x42))

        state = execute(state, 0x3442)

        assert state.pc == 0x204

    def test_skip_if_equal_immediate_not_taken(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[4].set(0x41))

        state = execute(state, 0x3442)

        assert state.pc == 0x202

    def test_skip_if_not_equal_immediate(self, fresh_state):
        """4XNN - Skip when VX != NN."""
        state = fresh_state.replace(V=fresh_state.V.at[4].set(0x41))

        assert execute(state, 0x4442).pc == 0x204
        assert execute(state, 0x4441).pc == 0x202

    def test_skip_if_equal_register(self, fresh_state):
        """5XY0 - Skip when VX == VY."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(7))
        state = state.replace(V=state.V.at[2].set(7))

        assert execute(state, 0x5120).pc == 0x204
        state = state.replace(V=state.V.at[2].set(8))
        assert execute(state, 0x5120).pc == 0x202

    def test_skip_register_ignores_low_nibble(self, fresh_state):
        """5XYN/9XYN - The low nibble is not checked."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(7))

        assert execute(state, 0x512F).pc == 0x202
        assert execute(state, 0x912F).pc == 0x204
        assert execute(state, 0x912F).error == ErrorCode.NONE

    def test_skip_if_not_equal_register(self, fresh_state):
        """9XY0 - Skip when VX != VY."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(7))
        state = state.replace(V=state.V.at[2].set(8))

        assert execute(state, 0x9120).pc == 0x204
        assert execute(state, 0x9110).pc == 0x202


class TestKeySkips:
    """Test keypad skips (EX9E/EXA1)."""

    def test_skip_if_key_pressed(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[0].set(5))

        assert execute(state, 0xE09E).pc == 0x202
        state = set_keys(state, [5])
        assert execute(state, 0xE09E).pc == 0x204

    def test_skip_if_key_not_pressed(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[0].set(5))

        assert execute(state, 0xE0A1).pc == 0x204
        state = set_keys(state, [5])
        assert execute(state, 0xE0A1).pc == 0x202

    def test_key_uses_low_nibble_of_register(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x1A))
        state = set_keys(state, [0xA])

        assert execute(state, 0xE39E).pc == 0x204

    def test_unknown_key_instruction(self, fresh_state):
        state = execute(fresh_state, 0xE09F)

        assert state.error == ErrorCode.UNKNOWN_OPCODE
