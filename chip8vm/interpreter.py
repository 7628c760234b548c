"""Host-facing CHIP-8 interpreter."""

from typing import Iterable, Optional, Union

import jax
import numpy as np

from chip8vm.constants import NUM_KEYS
from chip8vm.state import create_state, set_keys, clear_draw_flag, display_frame
from chip8vm.emulator import step_jit, run_n_cycles, load_program, load_rom
from chip8vm.errors import MachineFault, raise_for_error
from chip8vm.logging import ConsoleLogger
from chip8vm.trace import TraceSink


class Interpreter:
    """Stateful wrapper around the pure CHIP-8 core.

    Holds the single :class:`EmulatorState`, runs compiled cycles and turns
    fault codes into exceptions. All four host interfaces live here: program
    load, display output, key input and timer output.
    """

    def __init__(
        self,
        program: Optional[Union[bytes, bytearray, list, np.ndarray]] = None,
        seed: int = 0,
        modern_mode: bool = False,
        trace: Optional[TraceSink] = None,
        logger: Optional[ConsoleLogger] = None,
    ):
        """Create an interpreter.

        Args:
            program: Optional program image to load at 0x200
            seed: Seed for the CXNN random number generator
            modern_mode: Use modern shift/load-store/jump semantics
            trace: Optional sink called with a TraceRecord per instruction
            logger: Console logger for load, reset and fault messages
        """
        self.seed = seed
        self.modern_mode = modern_mode
        self.trace = trace
        self.logger = logger if logger is not None else ConsoleLogger(name="Interpreter", log_level="WARNING")
        self._program = None
        self.cycles = 0
        self.state = create_state(jax.random.PRNGKey(seed), modern_mode=modern_mode)

        if program is not None:
            self.load_program(program)

    def reset(self) -> None:
        """Discard all machine state and reload the last program, if any."""
        self.state = create_state(jax.random.PRNGKey(self.seed), modern_mode=self.modern_mode)
        self.cycles = 0
        if self._program is not None:
            self.state = load_program(self.state, self._program)
        self.logger.debug("Interpreter reset")

    def load_program(self, program: Union[bytes, bytearray, list, np.ndarray]) -> None:
        """Load a program image at 0x200.

        Raises:
            ImageTooLargeError: If the image exceeds 3584 bytes
        """
        self.state = load_program(self.state, program)
        self._program = program
        self.logger.debug(f"Loaded program ({len(program)} bytes)")

    def load_rom(self, filename: str) -> None:
        """Load a program image from a file."""
        self.state = load_rom(self.state, filename)
        with open(filename, "rb") as f:
            self._program = f.read()
        self.logger.info(f"Loaded {filename} ({len(self._program)} bytes)")

    def step(self) -> None:
        """Execute one cycle.

        Raises:
            MachineFault: Subclass matching the fault; the machine stays halted
                until :meth:`reset` is called
        """
        self.state = step_jit(self.state, trace=self.trace)
        self.cycles += 1
        self._check()

    def run(self, cycles: int, progress: bool = False) -> None:
        """Execute ``cycles`` cycles in one compiled call.

        A fault stops the machine at the faulting instruction; the remaining
        cycles are no-ops and the fault is raised afterwards. ``cycles`` counts
        every issued cycle, including those no-ops.
        """
        self.state = run_n_cycles(self.state, cycles, trace=self.trace, progress=progress)
        self.cycles += cycles
        self._check()

    def _check(self) -> None:
        try:
            raise_for_error(self.state)
        except MachineFault as e:
            self.logger.error(str(e))
            raise

    @property
    def halted(self) -> bool:
        return int(self.state.error) != 0

    def set_keys(self, pressed: Union[Iterable[int], Iterable[bool]]) -> None:
        """Replace the set of held keys."""
        self.state = set_keys(self.state, pressed)

    def press_key(self, key: int) -> None:
        self._check_key(key)
        self.state = self.state.replace(keypad=self.state.keypad.at[key].set(True))

    def release_key(self, key: int) -> None:
        self._check_key(key)
        self.state = self.state.replace(keypad=self.state.keypad.at[key].set(False))

    @staticmethod
    def _check_key(key: int) -> None:
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key must be in 0x0-0xF, got {key}")

    @property
    def display(self) -> np.ndarray:
        """Flat 2048-cell display buffer."""
        return np.asarray(self.state.display)

    @property
    def frame(self) -> np.ndarray:
        """Display as a (32, 64) boolean grid."""
        return np.asarray(display_frame(self.state))

    @property
    def needs_redraw(self) -> bool:
        return bool(self.state.draw_flag)

    def acknowledge_redraw(self) -> None:
        self.state = clear_draw_flag(self.state)

    @property
    def delay_timer(self) -> int:
        return int(self.state.delay_timer)

    @property
    def sound_timer(self) -> int:
        return int(self.state.sound_timer)

    @property
    def pc(self) -> int:
        return int(self.state.pc)

    @property
    def registers(self) -> np.ndarray:
        return np.asarray(self.state.V)
