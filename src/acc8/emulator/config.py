"""
Emulator Configuration
======================

Frozen configuration shared by the arithmetic unit, the control unit and
the Emulator orchestrator.

Example:
    >>> config = EmulatorConfig(multiply=MultiplyMode.PRODUCT)
    >>> emu = Emulator(config)

Copyright (c) 2026 acc8 Contributors
"""

from dataclasses import dataclass
from enum import Enum

from acc8.errors import ConfigurationError


class MultiplyMode(Enum):
    """
    How the MUL step accumulates the multiplicand.

    POPCOUNT adds operand a unshifted for every set bit of b, so the
    result is (a * popcount(b)) mod 256. PRODUCT shifts a left each step
    and yields the ordinary (a * b) mod 256.
    """
    POPCOUNT = "popcount"
    PRODUCT = "product"


@dataclass(frozen=True)
class EmulatorConfig:
    """
    Configuration for emulator initialization.

    Attributes:
        multiply: MUL accumulation rule. Default POPCOUNT.
        div_by_zero_quotient: Quotient produced by DIV when the divisor
            is zero. Default 0xFF, which is what the restoring loop
            produces naturally.
        direct_page: High byte of the page that direct addressing
            indexes into. Default 0x02 (first page of data memory).
        reset_sp: Stack pointer value after reset. Default 0xFF.

    Raises:
        ConfigurationError: If a field is out of range
    """
    multiply: MultiplyMode = MultiplyMode.POPCOUNT
    div_by_zero_quotient: int = 0xFF
    direct_page: int = 0x02
    reset_sp: int = 0xFF

    def __post_init__(self) -> None:
        if not isinstance(self.multiply, MultiplyMode):
            raise ConfigurationError(f"multiply must be a MultiplyMode, got {self.multiply!r}")
        if not 0 <= self.div_by_zero_quotient <= 0xFF:
            raise ConfigurationError(
                f"div_by_zero_quotient must be 0-255, got {self.div_by_zero_quotient}"
            )
        if not 0 <= self.direct_page <= 0xFF:
            raise ConfigurationError(f"direct_page must be 0-255, got {self.direct_page}")
        if not 0 <= self.reset_sp <= 0xFF:
            raise ConfigurationError(f"reset_sp must be 0-255, got {self.reset_sp}")

    @property
    def direct_base(self) -> int:
        """First address of the direct page."""
        return self.direct_page << 8
