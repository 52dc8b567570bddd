"""Tests for stock-out and ledger reference numbers."""

import random
import re
import threading
from datetime import datetime, timezone

import pytest

from stockout_kernel.domain.clock import DeterministicClock
from stockout_kernel.domain.references import (
    MAX_PER_SECOND,
    ReferenceGenerator,
    format_gl_transaction_number,
)

SO_PATTERN = re.compile(r"^SO-\d{8}-\d{6}-\d{6}-\d{3}$")


class TestStockOutReferences:

    def test_format(self):
        generator = ReferenceGenerator(DeterministicClock(), random.Random(7))
        reference = generator.next_stock_out_reference()
        assert SO_PATTERN.match(reference)
        assert reference.startswith("SO-20240101-120000-000001-")

    def test_10000_in_same_second_are_unique(self):
        """The clock never moves: uniqueness comes from the counter."""
        generator = ReferenceGenerator(DeterministicClock())
        references = [generator.next_stock_out_reference() for _ in range(10_000)]
        assert len(set(references)) == 10_000
        assert references == sorted(references)
        assert all(SO_PATTERN.match(r) for r in references)

    def test_refuses_past_per_second_capacity(self):
        generator = ReferenceGenerator(DeterministicClock(), random.Random(5))
        generator._counter = MAX_PER_SECOND - 1
        generator._current_second = "20240101-120000"
        last = generator.next_stock_out_reference()
        assert last.startswith("SO-20240101-120000-999999-")
        with pytest.raises(OverflowError):
            generator.next_stock_out_reference()

    def test_unique_even_with_constant_random_suffix(self):
        class ConstantRandom(random.Random):
            def randint(self, a, b):
                return 42

        generator = ReferenceGenerator(DeterministicClock(), ConstantRandom())
        references = {generator.next_stock_out_reference() for _ in range(500)}
        assert len(references) == 500

    def test_counter_restarts_each_second(self):
        clock = DeterministicClock()
        generator = ReferenceGenerator(clock, random.Random(1))
        generator.next_stock_out_reference()
        generator.next_stock_out_reference()
        clock.tick()
        reference = generator.next_stock_out_reference()
        assert reference.startswith("SO-20240101-120001-000001-")

    def test_sortable_across_seconds(self):
        clock = DeterministicClock()
        generator = ReferenceGenerator(clock, random.Random(3))
        first = generator.next_stock_out_reference()
        clock.advance(59)
        second = generator.next_stock_out_reference()
        assert first < second

    def test_thread_safe(self):
        generator = ReferenceGenerator(DeterministicClock())
        results: list[str] = []
        lock = threading.Lock()

        def mint():
            batch = [generator.next_stock_out_reference() for _ in range(500)]
            with lock:
                results.extend(batch)

        threads = [threading.Thread(target=mint) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 4000
        assert len(set(results)) == 4000


class TestGLTransactionNumbers:

    def test_format(self):
        when = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)
        assert format_gl_transaction_number(when, 42) == "GL-20240315-000042"

    def test_wide_sequence_value(self):
        when = datetime(2024, 3, 15, tzinfo=timezone.utc)
        assert format_gl_transaction_number(when, 1234567) == "GL-20240315-1234567"
