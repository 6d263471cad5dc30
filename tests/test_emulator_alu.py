"""
Arithmetic Unit Unit Tests
==========================

Tests for the acc8 arithmetic unit, covering:
- Single-cycle operations and their flags
- Flag masking (unaffected bits preserved)
- MUL, DIV and SQRT timing through the BUSY phase
- The configurable MUL rule and DIV-by-zero quotient

Copyright (c) 2026 acc8 Contributors
"""

import pytest

from acc8.emulator import (
    AluCore,
    AluOp,
    AluPhase,
    AluRequest,
    ArithmeticUnit,
    EmulatorConfig,
    Flags,
    MultiplyMode,
    alu_next,
    compute,
)
from acc8.emulator.alu import STEP_COUNTS, isqrt8
from acc8.errors import ConfigurationError


def run_to_done(alu: ArithmeticUnit, request: AluRequest) -> int:
    """Issue request and clock until done; returns edges taken."""
    alu.clock(request)
    edges = 1
    while not alu.done:
        alu.clock(None)
        edges += 1
        assert edges < 50, "operation never completed"
    return edges


@pytest.fixture
def alu():
    """Arithmetic unit with the default configuration."""
    return ArithmeticUnit()


# =============================================================================
# Single-cycle operations
# =============================================================================

class TestAddSub:
    """Test ADD, SUB and CMP."""

    def test_add_exhaustive(self):
        """ADD is (a + b) mod 256 with carry for every operand pair."""
        for a in range(256):
            for b in range(256):
                result = compute(AluOp.ADD, a, b)
                assert result.value == (a + b) & 0xFF
                assert result.flag(Flags.C) == (a + b > 0xFF)
                assert result.flag(Flags.Z) == (result.value == 0)

    def test_sub_exhaustive(self):
        """SUB is (a - b) mod 256 with borrow for every operand pair."""
        for a in range(256):
            for b in range(256):
                result = compute(AluOp.SUB, a, b)
                assert result.value == (a - b) & 0xFF
                assert result.flag(Flags.C) == (a < b)
                assert result.flag(Flags.N) == bool(result.value & 0x80)

    def test_add_signed_overflow(self):
        """$7F + 1 overflows into the sign bit."""
        result = compute(AluOp.ADD, 0x7F, 0x01)
        assert result.value == 0x80
        assert result.flag(Flags.V)
        assert result.flag(Flags.N)
        assert not result.flag(Flags.C)

    def test_add_carry_out(self):
        """$FF + 1 wraps to zero with carry."""
        result = compute(AluOp.ADD, 0xFF, 0x01)
        assert result.value == 0
        assert result.flag(Flags.C)
        assert result.flag(Flags.Z)
        assert not result.flag(Flags.V)

    def test_sub_signed_overflow(self):
        """$80 - 1 overflows from negative to positive."""
        result = compute(AluOp.SUB, 0x80, 0x01)
        assert result.value == 0x7F
        assert result.flag(Flags.V)

    def test_cmp_zero_iff_equal(self):
        """CMP sets Z exactly when the operands are equal."""
        for a in range(0, 256, 7):
            for b in range(0, 256, 5):
                assert compute(AluOp.CMP, a, b).flag(Flags.Z) == (a == b)

    def test_cmp_does_not_write_result(self):
        """CMP only produces flags."""
        result = compute(AluOp.CMP, 5, 3)
        assert not result.writes_result
        assert compute(AluOp.ADD, 5, 3).writes_result


class TestLogic:
    """Test AND, OR, XOR and NOT."""

    def test_and(self):
        result = compute(AluOp.AND, 0xFF, 0x0F)
        assert result.value == 0x0F
        assert not result.flag(Flags.Z)
        assert not result.flag(Flags.N)

    def test_or(self):
        assert compute(AluOp.OR, 0xF0, 0x0F).value == 0xFF

    def test_xor_self_is_zero(self):
        result = compute(AluOp.XOR, 0x5A, 0x5A)
        assert result.value == 0
        assert result.flag(Flags.Z)

    def test_not(self):
        result = compute(AluOp.NOT, 0x00)
        assert result.value == 0xFF
        assert result.flag(Flags.N)
        assert not result.flag(Flags.Z)

    def test_logic_leaves_carry_alone(self):
        """Logic operations affect only Z and N."""
        result = compute(AluOp.AND, 0xFF, 0x00)
        assert result.mask == int(Flags.Z | Flags.N)
        assert result.apply_flags(int(Flags.C | Flags.V | Flags.I)) == int(
            Flags.C | Flags.V | Flags.I | Flags.Z
        )

    @pytest.mark.parametrize("op", [op for op in AluOp if op not in STEP_COUNTS])
    def test_mask_limited_to_status_bits(self, op):
        """No operation touches FLAGS bits other than C, Z, N and V."""
        status = int(Flags.C | Flags.Z | Flags.N | Flags.V)
        result = compute(op, 0x80, 0x80, carry_in=True)
        assert result.mask & ~status == 0
        assert result.apply_flags(0xF0) & 0xF0 == 0xF0


class TestShifts:
    """Test SHL, SHR, ROL and ROR."""

    def test_shl_top_bit_to_carry(self):
        """SHL($80) is zero with carry out."""
        result = compute(AluOp.SHL, 0x80)
        assert result.value == 0
        assert result.flag(Flags.C)
        assert result.flag(Flags.Z)

    def test_shr_low_bit_to_carry(self):
        """SHR($01) is zero with carry out."""
        result = compute(AluOp.SHR, 0x01)
        assert result.value == 0
        assert result.flag(Flags.C)
        assert result.flag(Flags.Z)

    def test_rol_uses_carry_in(self):
        result = compute(AluOp.ROL, 0x40, carry_in=True)
        assert result.value == 0x81
        assert not result.flag(Flags.C)

    def test_ror_uses_carry_in(self):
        result = compute(AluOp.ROR, 0x02, carry_in=True)
        assert result.value == 0x81
        assert not result.flag(Flags.C)

    @pytest.mark.parametrize("value", range(256))
    @pytest.mark.parametrize("carry", [False, True])
    def test_rol_then_ror_round_trip(self, value, carry):
        """ROR undoes ROL when fed the carry ROL produced."""
        rolled = compute(AluOp.ROL, value, carry_in=carry)
        back = compute(AluOp.ROR, rolled.value, carry_in=rolled.flag(Flags.C))
        assert back.value == value
        assert back.flag(Flags.C) == carry

    @pytest.mark.parametrize("value", range(256))
    @pytest.mark.parametrize("carry", [False, True])
    def test_ror_then_rol_round_trip(self, value, carry):
        """ROL undoes ROR when fed the carry ROR produced."""
        rotated = compute(AluOp.ROR, value, carry_in=carry)
        back = compute(AluOp.ROL, rotated.value, carry_in=rotated.flag(Flags.C))
        assert back.value == value
        assert back.flag(Flags.C) == carry


class TestIncDec:
    """Test INC and DEC."""

    def test_inc_overflow(self):
        result = compute(AluOp.INC, 0x7F)
        assert result.value == 0x80
        assert result.flag(Flags.V)

    def test_inc_wraps(self):
        result = compute(AluOp.INC, 0xFF)
        assert result.value == 0
        assert result.flag(Flags.Z)
        assert not result.flag(Flags.V)

    def test_dec_overflow(self):
        result = compute(AluOp.DEC, 0x80)
        assert result.value == 0x7F
        assert result.flag(Flags.V)

    def test_inc_dec_keep_carry(self):
        """INC and DEC never touch C."""
        assert not compute(AluOp.INC, 0xFF).mask & Flags.C
        assert not compute(AluOp.DEC, 0x00).mask & Flags.C

    def test_multi_step_op_rejected(self):
        """compute() only handles single-cycle operations."""
        with pytest.raises(ValueError):
            compute(AluOp.MUL, 2, 3)


# =============================================================================
# Sub-state machine
# =============================================================================

class TestPhases:
    """Test IDLE/BUSY/DONE sequencing."""

    def test_single_cycle_done_pulse(self, alu):
        """A single-cycle op is done after one edge, for one edge."""
        alu.clock(AluRequest(AluOp.ADD, 2, 3))
        assert alu.done
        assert alu.result.value == 5
        alu.clock(None)
        assert not alu.done
        assert alu.core.phase == AluPhase.IDLE
        # Result is held after the pulse
        assert alu.result.value == 5

    def test_mul_takes_eight_steps(self, alu):
        """MUL is busy for eight edges after the request."""
        assert run_to_done(alu, AluRequest(AluOp.MUL, 3, 0b101)) == 9

    def test_div_takes_eight_steps(self, alu):
        assert run_to_done(alu, AluRequest(AluOp.DIV, 100, 7)) == 9

    def test_sqrt_takes_one_step(self, alu):
        assert run_to_done(alu, AluRequest(AluOp.SQRT, 200)) == 2

    def test_busy_flag(self, alu):
        alu.clock(AluRequest(AluOp.DIV, 10, 3))
        assert alu.busy
        assert not alu.done

    def test_request_while_busy_is_dropped(self, alu):
        """A new request during BUSY does not disturb the running op."""
        alu.clock(AluRequest(AluOp.MUL, 3, 0b11))
        alu.clock(AluRequest(AluOp.ADD, 100, 100))
        while not alu.done:
            alu.clock(None)
        assert alu.result.value == 6

    def test_request_on_done_edge_starts(self, alu):
        """The edge after done can start the next operation."""
        run_to_done(alu, AluRequest(AluOp.ADD, 1, 1))
        alu.clock(AluRequest(AluOp.SUB, 9, 4))
        assert alu.done
        assert alu.result.value == 5

    def test_reset_abandons_operation(self, alu):
        alu.clock(AluRequest(AluOp.DIV, 200, 3))
        alu.clock(None, reset=True)
        assert alu.core == AluCore()
        assert not alu.busy

    def test_alu_next_is_pure(self):
        """alu_next returns a new core and leaves its input alone."""
        core = AluCore()
        after = alu_next(core, AluRequest(AluOp.MUL, 2, 2), EmulatorConfig())
        assert core.phase == AluPhase.IDLE
        assert after.phase == AluPhase.BUSY
        assert after.steps_left == 8


class TestMultiStepResults:
    """Test MUL, DIV and SQRT results."""

    @pytest.mark.parametrize("a,b", [(3, 0b101), (0x40, 0xFF), (7, 0), (0xFF, 0x81)])
    def test_mul_popcount(self, alu, a, b):
        """Default MUL is a * popcount(b) mod 256."""
        run_to_done(alu, AluRequest(AluOp.MUL, a, b))
        assert alu.result.value == (a * bin(b).count("1")) & 0xFF

    def test_mul_popcount_exhaustive(self, alu):
        """Default MUL matches a * popcount(b) mod 256 for every operand pair."""
        for a in range(256):
            for b in range(256):
                run_to_done(alu, AluRequest(AluOp.MUL, a, b))
                assert alu.result.value == (a * bin(b).count("1")) & 0xFF, (a, b)

    @pytest.mark.parametrize("a,b", [(3, 5), (12, 12), (0x10, 0x10), (0, 200)])
    def test_mul_product(self, a, b):
        """PRODUCT mode gives the ordinary product mod 256."""
        alu = ArithmeticUnit(EmulatorConfig(multiply=MultiplyMode.PRODUCT))
        run_to_done(alu, AluRequest(AluOp.MUL, a, b))
        assert alu.result.value == (a * b) & 0xFF

    def test_mul_zero_flag(self, alu):
        run_to_done(alu, AluRequest(AluOp.MUL, 9, 0))
        assert alu.result.value == 0
        assert alu.result.flag(Flags.Z)

    @pytest.mark.parametrize("a,b", [(100, 7), (255, 1), (7, 100), (0, 3), (255, 16)])
    def test_div_quotient(self, alu, a, b):
        run_to_done(alu, AluRequest(AluOp.DIV, a, b))
        assert alu.result.value == a // b
        assert not alu.result.flag(Flags.V)

    def test_div_by_zero(self, alu):
        """Division by zero yields $FF and sets V."""
        run_to_done(alu, AluRequest(AluOp.DIV, 42, 0))
        assert alu.result.value == 0xFF
        assert alu.result.flag(Flags.V)

    def test_div_by_zero_configurable(self):
        alu = ArithmeticUnit(EmulatorConfig(div_by_zero_quotient=0x00))
        run_to_done(alu, AluRequest(AluOp.DIV, 42, 0))
        assert alu.result.value == 0
        assert alu.result.flag(Flags.V)

    @pytest.mark.parametrize("value", [0, 1, 15, 16, 17, 200, 255])
    def test_sqrt(self, alu, value):
        run_to_done(alu, AluRequest(AluOp.SQRT, value))
        assert alu.result.value == isqrt8(value)
        assert isqrt8(value) ** 2 <= value < (isqrt8(value) + 1) ** 2


class TestConfig:
    """Test configuration validation."""

    def test_bad_quotient(self):
        with pytest.raises(ConfigurationError):
            EmulatorConfig(div_by_zero_quotient=0x100)

    def test_bad_multiply(self):
        with pytest.raises(ConfigurationError):
            EmulatorConfig(multiply="product")

    def test_direct_base(self):
        assert EmulatorConfig().direct_base == 0x0200
        assert EmulatorConfig(direct_page=0x80).direct_base == 0x8000
