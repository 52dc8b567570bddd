"""
Reference number generation.

Responsibility:
    Human-readable, sortable identifiers for stock-out transactions and
    ledger transactions.

Architecture position:
    Kernel > Domain.  Time comes from an injected Clock; randomness from an
    injectable ``random.Random``.

Formats:
    Stock-out:  SO-YYYYMMDD-HHMMSS-NNNNNN-RRR
        NNNNNN  per-process counter, restarts at 000001 every second
        RRR     3-digit random suffix for cross-process collision resistance
    Ledger:     GL-YYYYMMDD-NNNNNN
        NNNNNN  value drawn from the GL_TRANSACTION database sequence

Invariants enforced:
    - Within one process, stock-out references are unique: (second, counter)
      never repeats.  Across processes uniqueness rests on the random suffix
      and is backed by the UNIQUE constraint on the stored column.
    - The counter is fixed-width, so references from one second sort in
      minting order.  Past MAX_PER_SECOND the generator refuses rather than
      widen the field.
"""

import random
import threading
from datetime import datetime

from stockout_kernel.domain.clock import Clock, SystemClock

STOCK_OUT_PREFIX = "SO"
GL_PREFIX = "GL"
MAX_PER_SECOND = 999_999


class ReferenceGenerator:
    """Thread-safe stock-out reference generator."""

    def __init__(self, clock: Clock | None = None, rng: random.Random | None = None):
        self._clock = clock or SystemClock()
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._current_second: str | None = None
        self._counter = 0

    def next_stock_out_reference(self) -> str:
        """Mint the next stock-out reference number."""
        with self._lock:
            stamp = self._clock.now().strftime("%Y%m%d-%H%M%S")
            if stamp != self._current_second:
                self._current_second = stamp
                self._counter = 0
            if self._counter >= MAX_PER_SECOND:
                raise OverflowError(
                    f"More than {MAX_PER_SECOND} stock-out references requested in {stamp}"
                )
            self._counter += 1
            counter = self._counter
            suffix = self._rng.randint(0, 999)
        return f"{STOCK_OUT_PREFIX}-{stamp}-{counter:06d}-{suffix:03d}"


def format_gl_transaction_number(when: datetime, sequence_value: int) -> str:
    """``GL-YYYYMMDD-NNNNNN`` from a date and a sequence value."""
    return f"{GL_PREFIX}-{when.strftime('%Y%m%d')}-{sequence_value:06d}"
