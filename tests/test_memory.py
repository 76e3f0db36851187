"""Tests for the memory bus and keyboard registers."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from lc3_vm.memory import MemoryBus, MR_KBSR, MR_KBDR
from lc3_vm.state import create_initial_state
from lc3_vm.terminal import BufferedTerminal


@pytest.fixture
def state():
    return create_initial_state()


class TestPlainMemory:
    """Test ordinary addresses."""

    def test_read_returns_stored_word(self, state):
        bus = MemoryBus(state, BufferedTerminal())
        state.memory[0x3100] = 0xBEEF
        assert bus.mem_read(0x3100) == 0xBEEF

    def test_write_truncates_value(self, state):
        bus = MemoryBus(state, BufferedTerminal())
        bus.mem_write(0x3100, 0x1FFFF)
        assert state.memory[0x3100] == 0xFFFF

    def test_address_wraps(self, state):
        """Addresses past xFFFF wrap to the bottom of memory."""
        bus = MemoryBus(state, BufferedTerminal())
        bus.mem_write(0x10005, 7)
        assert state.memory[0x0005] == 7
        assert bus.mem_read(0x10005) == 7

    def test_read_kbdr_does_not_poll(self, state):
        """Only KBSR reads touch the keyboard."""
        terminal = BufferedTerminal("k")
        bus = MemoryBus(state, terminal)
        assert bus.mem_read(MR_KBDR) == 0
        assert terminal.pending_input == 1


class TestKeyboardRegisters:
    """Test memory-mapped keyboard status and data."""

    def test_status_reads_zero_without_input(self, state):
        bus = MemoryBus(state, BufferedTerminal())
        state.memory[MR_KBSR] = 0x8000
        assert bus.mem_read(MR_KBSR) == 0
        assert state.memory[MR_KBSR] == 0

    def test_status_latches_pending_char(self, state):
        terminal = BufferedTerminal("ab")
        bus = MemoryBus(state, terminal)
        assert bus.mem_read(MR_KBSR) == 0x8000
        assert bus.mem_read(MR_KBDR) == ord("a")
        assert terminal.pending_input == 1

    def test_each_poll_consumes_one_char(self, state):
        bus = MemoryBus(state, BufferedTerminal("ab"))
        bus.mem_read(MR_KBSR)
        bus.mem_read(MR_KBSR)
        assert bus.mem_read(MR_KBDR) == ord("b")
        assert bus.mem_read(MR_KBSR) == 0

    def test_write_to_status_is_plain_store(self, state):
        bus = MemoryBus(state, BufferedTerminal())
        bus.mem_write(MR_KBSR, 0x1234)
        assert state.memory[MR_KBSR] == 0x1234
