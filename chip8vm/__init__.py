"""CHIP-8 interpreter package."""

from chip8vm.state import EmulatorState, create_state, set_keys, clear_draw_flag, display_frame
from chip8vm.emulator import execute, fetch, step, step_jit, tick_timers, run_n_cycles, load_program, load_rom
from chip8vm.decode import DecodedInstruction, decode, disassemble
from chip8vm.errors import (
    ErrorCode, Chip8Error, ImageTooLargeError, MachineFault, OutOfBoundsError,
    UnknownOpcodeError, StackOverflowError, StackUnderflowError, raise_for_error,
)
from chip8vm.trace import TraceRecord, TraceRecorder, TraceLogger
from chip8vm.interpreter import Interpreter
from chip8vm.constants import *
from chip8vm.rendering import display_to_rgb, create_color_scheme, save_frame

__all__ = [
    "EmulatorState",
    "create_state",
    "set_keys",
    "clear_draw_flag",
    "display_frame",
    "fetch",
    "execute",
    "step",
    "step_jit",
    "tick_timers",
    "run_n_cycles",
    "load_program",
    "load_rom",
    "DecodedInstruction",
    "decode",
    "disassemble",
    "ErrorCode",
    "Chip8Error",
    "ImageTooLargeError",
    "MachineFault",
    "OutOfBoundsError",
    "UnknownOpcodeError",
    "StackOverflowError",
    "StackUnderflowError",
    "raise_for_error",
    "TraceRecord",
    "TraceRecorder",
    "TraceLogger",
    "Interpreter",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "MAX_PROGRAM_SIZE",
    "display_to_rgb",
    "create_color_scheme",
    "save_frame",
]
