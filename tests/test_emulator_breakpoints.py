"""
Breakpoint System Unit Tests
============================

Tests for PC breakpoints, memory watchpoints and register conditions.

Copyright (c) 2026 acc8 Contributors
"""

import pytest

from acc8.emulator import (
    BreakpointManager,
    BreakEvent,
    BreakReason,
    RegisterCondition,
    RegisterFile,
)


# =============================================================================
# Mock CPU for Testing
# =============================================================================

class MockCPU:
    """Mock core exposing only a register file."""

    def __init__(self, **values: int):
        self.registers = RegisterFile()
        self.registers.poke(**values)


@pytest.fixture
def mgr():
    return BreakpointManager()


@pytest.fixture
def cpu():
    return MockCPU()


# =============================================================================
# BreakpointManager Tests
# =============================================================================

class TestBreakpointManager:
    """Test BreakpointManager initialization and basic operations."""

    def test_initial_state(self, mgr):
        """Manager starts with no breakpoints."""
        assert mgr.breakpoint_count == 0
        assert mgr.watchpoint_count == 0
        assert mgr.last_event is None

    def test_clear_all(self, mgr):
        mgr.add_breakpoint(0x10)
        mgr.add_write_watchpoint(0x0200)
        mgr.add_condition("acc", "==", 0)
        mgr.clear_all()
        assert mgr.breakpoint_count == 0
        assert mgr.watchpoint_count == 0
        assert mgr.list_register_conditions() == []


class TestPCBreakpoints:
    """Test PC breakpoint functionality."""

    def test_add_and_remove(self, mgr):
        mgr.add_breakpoint(0x0010)
        assert mgr.has_breakpoint(0x0010)
        mgr.remove_breakpoint(0x0010)
        assert not mgr.has_breakpoint(0x0010)

    def test_duplicate_breakpoint(self, mgr):
        """Adding the same address twice keeps one breakpoint."""
        mgr.add_breakpoint(0x20)
        mgr.add_breakpoint(0x20)
        assert mgr.breakpoint_count == 1

    def test_remove_nonexistent(self, mgr):
        """Removing an unknown address is a no-op."""
        mgr.remove_breakpoint(0x1234)

    def test_address_masking(self, mgr):
        mgr.add_breakpoint(0x10010)
        assert mgr.has_breakpoint(0x0010)

    def test_list_sorted(self, mgr):
        for address in (0x30, 0x10, 0x20):
            mgr.add_breakpoint(address)
        assert mgr.list_breakpoints() == [0x10, 0x20, 0x30]

    def test_check_instruction_hits(self, mgr, cpu):
        mgr.add_breakpoint(0x0010)
        assert mgr.check_instruction(cpu, 0x000F)
        assert not mgr.check_instruction(cpu, 0x0010)
        assert mgr.last_event.reason == BreakReason.PC_BREAKPOINT
        assert mgr.last_event.address == 0x0010

    def test_resuming_skips_breakpoint(self, mgr, cpu):
        """A run resuming at a breakpoint address executes it once."""
        mgr.add_breakpoint(0x0010)
        assert mgr.check_instruction(cpu, 0x0010, resuming=True)

    def test_user_interrupt(self, mgr, cpu):
        """A requested break wins even when resuming, and is consumed."""
        mgr.request_break()
        assert not mgr.check_instruction(cpu, 0x0000, resuming=True)
        assert mgr.last_event.reason == BreakReason.USER_INTERRUPT
        assert mgr.check_instruction(cpu, 0x0000)


class TestWatchpoints:
    """Test memory watchpoints."""

    def test_read_watchpoint(self, mgr):
        mgr.add_read_watchpoint(0x0200)
        assert mgr.check_memory_read(0x0201, 0)
        assert not mgr.check_memory_read(0x0200, 0x42)
        assert mgr.last_event.reason == BreakReason.MEMORY_READ
        assert mgr.last_event.value == 0x42

    def test_write_watchpoint(self, mgr):
        mgr.add_write_watchpoint(0x0200)
        assert mgr.check_memory_read(0x0200, 0)
        assert not mgr.check_memory_write(0x0200, 0x07)
        assert str(mgr.last_event) == "Write $07 to $0200"

    def test_remove_watchpoint(self, mgr):
        mgr.add_read_watchpoint(0x0200)
        mgr.add_write_watchpoint(0x0200)
        assert mgr.watchpoint_count == 2
        mgr.remove_watchpoint(0x0200)
        assert mgr.watchpoint_count == 0
        assert mgr.list_read_watchpoints() == []
        assert mgr.list_write_watchpoints() == []


# =============================================================================
# Register Condition Tests
# =============================================================================

class TestRegisterCondition:
    """Test register conditions."""

    @pytest.mark.parametrize("operator,value,expected", [
        ("==", 0x42, True),
        ("!=", 0x42, False),
        ("<", 0x43, True),
        ("<=", 0x42, True),
        (">", 0x42, False),
        (">=", 0x41, True),
        ("&", 0x02, True),
        ("&", 0x01, False),
    ])
    def test_operators(self, operator, value, expected):
        cond = RegisterCondition("acc", operator, value)
        assert cond.check(MockCPU(acc=0x42)) is expected

    def test_flag_condition(self):
        cond = RegisterCondition("flag_z", "==", True)
        assert cond.check(MockCPU(flags=0x02))
        assert not cond.check(MockCPU(flags=0x00))

    def test_sixteen_bit_pc(self):
        assert RegisterCondition("pc", ">=", 0x1000).check(MockCPU(pc=0x1234))

    def test_case_insensitive_register(self):
        assert RegisterCondition("ACC", "==", 0).register == "acc"

    def test_invalid_register(self):
        with pytest.raises(ValueError):
            RegisterCondition("b", "==", 0)

    def test_invalid_operator(self):
        with pytest.raises(ValueError):
            RegisterCondition("acc", "=~", 0)

    def test_default_description(self):
        assert RegisterCondition("x", ">", 3).description == "x > 3"

    def test_manager_conditions(self, mgr):
        """Conditions stop a run and can be removed by ID."""
        cid = mgr.add_condition("x", "==", 5)
        assert not mgr.check_instruction(MockCPU(x=5), 0x0008)
        assert mgr.last_event.reason == BreakReason.REGISTER_CONDITION
        mgr.remove_register_condition(cid)
        assert mgr.check_instruction(MockCPU(x=5), 0x0008)

    def test_condition_ids_reused(self, mgr):
        first = mgr.add_condition("acc", "==", 1)
        mgr.add_condition("acc", "==", 2)
        mgr.remove_register_condition(first)
        assert mgr.add_condition("acc", "==", 3) == first
        assert len(mgr.list_register_conditions()) == 2


class TestBreakEvent:
    """Test BreakEvent formatting."""

    def test_message_wins(self):
        assert str(BreakEvent(BreakReason.HALT, message="Halted at $0004")) == "Halted at $0004"

    @pytest.mark.parametrize("event,text", [
        (BreakEvent(BreakReason.PC_BREAKPOINT, address=0x10), "Breakpoint at $0010"),
        (BreakEvent(BreakReason.MEMORY_READ, address=0x0200, value=1), "Read $01 from $0200"),
        (BreakEvent(BreakReason.MAX_CYCLES), "Maximum cycles reached"),
        (BreakEvent(BreakReason.NONE), "Unknown"),
    ])
    def test_default_text(self, event, text):
        assert str(event) == text
