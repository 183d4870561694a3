"""Tests for MachineState dataclass."""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from regmachine.errors import OutOfRange
from regmachine.state import (
    MachineState,
    create_initial_state,
    wrap_int32,
    INT32_MIN,
    INT32_MAX,
    REGISTER_COUNT,
)


class TestMachineStateCreation:
    """Test MachineState initialization and defaults."""

    def test_default_state(self):
        """Default state has 32 zeroed registers."""
        state = MachineState()
        assert state.pc == 0
        assert state.cycle_count == 0
        assert state.halted is False
        assert len(state.registers) == REGISTER_COUNT
        assert all(value == 0 for value in state.registers)

    def test_create_initial_state(self):
        """create_initial_state puts the PC at the entry address."""
        state = create_initial_state(4)
        assert state.pc == 4
        assert state.halted is False
        assert state.registers == [0] * 32


class TestMachineStateValidation:
    """Test state validation."""

    def test_valid_state(self):
        assert MachineState().validate() is True

    def test_invalid_register_value(self):
        """Register value out of bounds fails validation."""
        state = MachineState()
        state.registers[1] = INT32_MAX + 1
        assert state.validate() is False

    def test_nonzero_register_zero(self):
        state = MachineState()
        state.registers[0] = 7
        assert state.validate() is False

    def test_negative_pc(self):
        assert MachineState(pc=-1).validate() is False


class TestWrapInt32:
    """Test two's complement wrapping."""

    @pytest.mark.parametrize("value,expected", [
        (0, 0),
        (INT32_MAX, INT32_MAX),
        (INT32_MIN, INT32_MIN),
        (INT32_MAX + 1, INT32_MIN),
        (INT32_MIN - 1, INT32_MAX),
        (2**32, 0),
        (2**32 + 5, 5),
        (-(2**32) - 5, -5),
        (INT32_MAX * INT32_MAX, 1),
    ])
    def test_wrap(self, value, expected):
        assert wrap_int32(value) == expected


class TestMachineStateImmutability:
    """Test immutable state operations."""

    def test_set_register_returns_new_state(self):
        state = MachineState()
        new_state = state.set_register(5, 42)
        assert state.registers[5] == 0  # Original unchanged
        assert new_state.registers[5] == 42

    def test_set_register_wraps_value(self):
        state = MachineState()
        assert state.set_register(1, INT32_MAX + 1).registers[1] == INT32_MIN
        assert state.set_register(1, INT32_MIN - 1).registers[1] == INT32_MAX

    @pytest.mark.parametrize("value", [1, -1, 42, INT32_MAX, INT32_MIN])
    def test_register_zero_discards_writes(self, value):
        """Writes to register 0 are accepted and ignored."""
        state = MachineState().set_register(0, value)
        assert state.get_register(0) == 0

    def test_increment_pc(self):
        state = MachineState()
        new_state = state.increment_pc()
        assert state.pc == 0
        assert new_state.pc == 1

    def test_set_pc(self):
        assert MachineState().set_pc(5).pc == 5

    def test_set_halted(self):
        state = MachineState()
        new_state = state.set_halted(True)
        assert state.halted is False
        assert new_state.halted is True

    def test_increment_cycle(self):
        state = MachineState()
        new_state = state.increment_cycle()
        assert state.cycle_count == 0
        assert new_state.cycle_count == 1


class TestMachineStateAccessors:
    """Test register accessors and range checks."""

    def test_get_register(self):
        state = MachineState().set_register(31, 100)
        assert state.get_register(31) == 100

    @pytest.mark.parametrize("index", [32, 33, 1000, 2**40])
    def test_get_register_out_of_range(self, index):
        with pytest.raises(OutOfRange):
            MachineState().get_register(index)

    def test_set_register_out_of_range(self):
        with pytest.raises(OutOfRange):
            MachineState().set_register(32, 1)

    def test_check_registers_reports_first_bad_index(self):
        with pytest.raises(OutOfRange, match=r"\$40"):
            MachineState().check_registers(1, 40, 2)

    def test_snapshot_is_copy(self):
        state = MachineState().set_register(1, 42)
        snapshot = state.snapshot()

        assert snapshot["registers"]["$1"] == 42
        assert snapshot["pc"] == 0
        assert snapshot["halted"] is False

        snapshot["registers"]["$1"] = 999
        assert state.registers[1] == 42

    def test_dump_registers(self):
        state = MachineState().set_register(1, 1).set_register(31, 2)
        regs = state.dump_registers()
        assert len(regs) == 32
        assert regs["$1"] == 1
        assert regs["$31"] == 2
        assert regs["$0"] == 0
