"""Console logging for chip8vm hosts.

A small levelled logger printing to stdout, and tqdm progress bars driven from
inside scanned emulator runs with io_callback.
"""

import time
from typing import Any, Callable, Dict, Optional, Tuple

import jax
from jax.experimental import io_callback

from tqdm import tqdm

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ConsoleLogger:
    """Levelled console logger with an optional elapsed-time prefix."""

    def __init__(self, name: str = "chip8vm", log_level: str = "INFO", show_timestamps: bool = True):
        self.name = name
        self.log_level = log_level.upper()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def _should_log(self, level: str) -> bool:
        threshold = LEVELS.index(self.log_level) if self.log_level in LEVELS else 1
        return LEVELS.index(level) >= threshold

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if not self._should_log(level):
            return
        timestamp = f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        print(f"{timestamp}[{level:>8s}][{self.name}] {message}", flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def log_config(self, config: Dict[str, Any]):
        """Log a run configuration, one key per line."""
        self.info("=" * 60)
        self.info("Configuration:")
        for key, value in config.items():
            self.info(f"  {key}: {value}")
        self.info("=" * 60)


def build_tqdm_progress_bar(
    n: int,
    print_rate: Optional[int] = None,
    desc: str = None,
    **kwargs,
) -> Tuple[Callable, Callable]:
    """Build a tqdm bar updated from inside a compiled scan of ``n`` iterations.

    The bar advances by ``print_rate`` at every multiple of it and by the
    leftover cycles on the last iteration, so it always ends at ``n``.
    """
    if desc is None:
        desc = f"Running ({n:,} cycles)"

    for kwarg in ("total", "mininterval", "maxinterval", "miniters"):
        kwargs.pop(kwarg, None)

    tqdm_bars = {}

    if print_rate is None:
        print_rate = max(1, min(n // 20, 50))
    else:
        print_rate = max(1, min(print_rate, n))

    final_chunk = n - ((n - 1) // print_rate) * print_rate

    def _define_tqdm():
        tqdm_bars[0] = tqdm(total=n, desc=desc, unit="cycle", **kwargs)

    def _update_tqdm(steps):
        if 0 in tqdm_bars:
            tqdm_bars[0].update(int(steps))

    def _finish_tqdm():
        if 0 in tqdm_bars:
            tqdm_bars[0].update(final_chunk)
            tqdm_bars[0].close()

    def _update_progress_bar(iter_num):
        _ = jax.lax.cond(
            iter_num == 0,
            lambda _: io_callback(_define_tqdm, None, ordered=True),
            lambda _: None,
            operand=None,
        )

        _ = jax.lax.cond(
            (iter_num % print_rate == 0) & (iter_num > 0),
            lambda _: io_callback(_update_tqdm, None, print_rate, ordered=True),
            lambda _: None,
            operand=None,
        )

    def close_progress_bar(result, iter_num):
        _ = jax.lax.cond(
            iter_num == n - 1,
            lambda _: io_callback(_finish_tqdm, None, ordered=True),
            lambda _: None,
            operand=None,
        )
        return result

    return _update_progress_bar, close_progress_bar


def scan_with_progress(
    n: int,
    print_rate: Optional[int] = None,
    desc: str = None,
    **tqdm_kwargs,
) -> Callable:
    """Decorator to add real-time progress bar to JAX scan operations."""
    _update_progress_bar, close_progress_bar = build_tqdm_progress_bar(
        n, print_rate, desc, **tqdm_kwargs
    )

    def _scan_progress_decorator(func):
        def wrapper_with_progress(carry, x):
            if isinstance(x, tuple):
                iter_num = x[0]
            else:
                iter_num = x

            _update_progress_bar(iter_num)

            result = func(carry, x)

            return close_progress_bar(result, iter_num)

        return wrapper_with_progress

    return _scan_progress_decorator
