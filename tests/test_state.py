"""Tests for MachineState."""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from lc3_vm.state import (
    MachineState, Reg, Flag, create_initial_state, MEMORY_SIZE, PC_START,
)


class TestMachineStateCreation:
    """Test MachineState initialization and defaults."""

    def test_default_state(self):
        """Default state has zeroed registers and memory."""
        state = MachineState()
        assert len(state.registers) == 10
        assert len(state.memory) == MEMORY_SIZE
        assert all(value == 0 for value in state.registers)
        assert state.halted is False
        assert state.cycle_count == 0

    def test_create_initial_state(self):
        """Initial state starts at x3000 with the zero flag set."""
        state = create_initial_state()
        assert state.pc == PC_START == 0x3000
        assert state.get_flags() == Flag.ZRO
        assert state.halted is False

    def test_create_initial_state_custom_start(self):
        state = create_initial_state(0x4000)
        assert state.pc == 0x4000


class TestMachineStateValidation:
    """Test state validation."""

    def test_valid_state(self):
        """Initial state passes validation."""
        assert create_initial_state().validate() is True

    def test_no_flag_set_is_invalid(self):
        """Default state has COND=0, which breaks the one-flag rule."""
        assert MachineState().validate() is False

    def test_register_out_of_range(self):
        state = create_initial_state()
        state.registers[Reg.R0] = 0x10000
        assert state.validate() is False

    def test_memory_out_of_range(self):
        state = create_initial_state()
        state.memory[0x1234] = -1
        assert state.validate() is False


class TestRegisterAccess:
    """Test register accessors."""

    def test_set_register_truncates(self):
        """Stored values wrap to 16 bits."""
        state = create_initial_state()
        state.set_register(Reg.R1, 0x12345)
        assert state.get_register(Reg.R1) == 0x2345
        state.set_register(Reg.R2, -1)
        assert state.get_register(Reg.R2) == 0xFFFF

    def test_get_register_by_name_and_index(self):
        state = create_initial_state()
        state.set_register("r3", 100)
        assert state.get_register("R3") == 100
        assert state.get_register(3) == 100
        assert state.get_register(Reg.R3) == 100

    def test_get_register_invalid(self):
        """Unknown registers raise KeyError."""
        state = create_initial_state()
        with pytest.raises(KeyError):
            state.get_register("R9")
        with pytest.raises(KeyError):
            state.get_register(10)

    def test_pc_wraps(self):
        state = create_initial_state()
        state.pc = 0xFFFF + 1
        assert state.pc == 0

    def test_dump_registers(self):
        """dump_registers returns a copy keyed by name."""
        state = create_initial_state()
        state.set_register(Reg.R7, 2)
        regs = state.dump_registers()
        assert regs["R7"] == 2
        assert regs["PC"] == 0x3000
        assert regs["COND"] == Flag.ZRO

        regs["R7"] = 999
        assert state.get_register(Reg.R7) == 2


class TestUpdateFlags:
    """Test condition flag updates."""

    @pytest.mark.parametrize("value, flag", [
        (0, Flag.ZRO),
        (1, Flag.POS),
        (0x7FFF, Flag.POS),
        (0x8000, Flag.NEG),
        (0xFFFF, Flag.NEG),
    ])
    def test_flag_from_value(self, value, flag):
        state = create_initial_state()
        state.set_register(Reg.R4, value)
        state.update_flags(Reg.R4)
        assert state.get_flags() == flag

    def test_previous_flags_overwritten(self):
        """Flags are replaced, never OR'd together."""
        state = create_initial_state()
        state.set_register(Reg.R0, 0xFFFF)
        state.update_flags(Reg.R0)
        state.set_register(Reg.R0, 5)
        state.update_flags(Reg.R0)
        assert state.get_flags() == Flag.POS

    def test_idempotent_and_single_bit(self):
        """Repeated updates give the same single flag."""
        state = create_initial_state()
        for value in (0, 1, 0x8000, 0x1234, 0xABCD):
            state.set_register(Reg.R1, value)
            state.update_flags(Reg.R1)
            first = state.get_flags()
            state.update_flags(Reg.R1)
            assert state.get_flags() == first
            assert bin(first).count("1") == 1

    def test_flag_names(self):
        state = create_initial_state()
        assert state.flag_names() == {"N": False, "Z": True, "P": False}


class TestSnapshot:
    """Test state snapshot."""

    def test_snapshot_is_copy(self):
        state = create_initial_state()
        state.set_register(Reg.R0, 42)
        snapshot = state.snapshot()

        assert snapshot["registers"]["R0"] == 42
        assert snapshot["pc"] == 0x3000
        assert snapshot["halted"] is False

        snapshot["registers"]["R0"] = 999
        assert state.get_register(Reg.R0) == 42

    def test_str(self):
        state = create_initial_state()
        assert "PC=x3000" in str(state)
        assert "-Z-" in str(state)
