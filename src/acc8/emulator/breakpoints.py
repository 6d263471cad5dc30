"""
acc8 Debug Stops
================

Everything that can stop a run before the cycle limit:

- PC breakpoints, checked before an instruction is fetched
- Memory watchpoints, raised from the control unit's bus hooks and honoured
  once the touching instruction has retired
- Register conditions, checked at every instruction boundary
- A user interrupt, requested from outside the run loop

The Emulator owns one BreakpointManager and asks it at each instruction
boundary whether to continue. A check that stops the run stores a BreakEvent
that the Emulator then returns.

Example usage:

    >>> from acc8.emulator import Emulator, BreakReason
    >>> emu = Emulator()
    >>> emu.breakpoints.add_breakpoint(0x0010)
    >>> emu.breakpoints.add_write_watchpoint(0x0200)
    >>> event = emu.run(10_000)
    >>> if event.reason == BreakReason.PC_BREAKPOINT:
    ...     print(f"Hit breakpoint at ${event.address:04X}")

Copyright (c) 2026 acc8 Contributors
"""

import logging
import operator
from dataclasses import dataclass
from enum import Enum, IntFlag, auto
from itertools import count
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

from .registers import Flags

if TYPE_CHECKING:
    from .control import ControlUnit

logger = logging.getLogger(__name__)


class BreakReason(Enum):
    """Why a run returned."""
    NONE = auto()
    PC_BREAKPOINT = auto()
    MEMORY_READ = auto()
    MEMORY_WRITE = auto()
    REGISTER_CONDITION = auto()
    STEP = auto()
    USER_INTERRUPT = auto()
    MAX_CYCLES = auto()
    HALT = auto()           # an instruction's next PC was its own address


@dataclass
class BreakEvent:
    """
    A stop, as returned by Emulator.run() and Emulator.step().

    Attributes:
        reason: What stopped the run
        address: PC or memory address involved, when there is one
        value: Byte read or written (watchpoints only)
        message: Text shown to the user; derived from the other fields
            when empty
    """
    reason: BreakReason
    address: Optional[int] = None
    value: Optional[int] = None
    message: str = ""

    def __str__(self) -> str:
        return self.message or self._describe()

    def _describe(self) -> str:
        at = f"${self.address:04X}" if self.address is not None else None
        match self.reason:
            case BreakReason.PC_BREAKPOINT:
                return f"Breakpoint at {at}" if at else "Breakpoint"
            case BreakReason.MEMORY_READ if at and self.value is not None:
                return f"Read ${self.value:02X} from {at}"
            case BreakReason.MEMORY_READ:
                return "Memory read"
            case BreakReason.MEMORY_WRITE if at and self.value is not None:
                return f"Write ${self.value:02X} to {at}"
            case BreakReason.MEMORY_WRITE:
                return "Memory write"
            case BreakReason.REGISTER_CONDITION:
                return "Register condition met"
            case BreakReason.STEP:
                return "Single step"
            case BreakReason.USER_INTERRUPT:
                return "User interrupt"
            case BreakReason.MAX_CYCLES:
                return "Maximum cycles reached"
            case BreakReason.HALT:
                return "Halted"
        return "Unknown"


# =============================================================================
# Register Conditions
# =============================================================================

_FLAG_BITS = {
    'flag_c': Flags.C,
    'flag_z': Flags.Z,
    'flag_n': Flags.N,
    'flag_v': Flags.V,
}

_COMPARISONS: Dict[str, Callable[[int, int], bool]] = {
    '==': operator.eq,
    '!=': operator.ne,
    '<': operator.lt,
    '<=': operator.le,
    '>': operator.gt,
    '>=': operator.ge,
    '&': lambda actual, mask: (actual & mask) != 0,
}


@dataclass
class RegisterCondition:
    """
    A test of one register (or flag) against a constant.

    Registers: acc, x, y, pc, sp, flags, and the single flags flag_c,
    flag_z, flag_n, flag_v (compared as booleans). Operators: the six
    comparisons plus '&', which is true when any masked bit is set.

    Examples:
        >>> RegisterCondition('acc', '==', 0x42)
        >>> RegisterCondition('flag_z', '==', True)
        >>> RegisterCondition('flags', '&', 0x80)

    Raises:
        ValueError: If register or operator is unknown
    """
    register: str
    operator: str
    value: int | bool
    description: str = ""

    REGISTERS = ('acc', 'x', 'y', 'pc', 'sp', 'flags', *_FLAG_BITS)

    def __post_init__(self):
        name = self.register.lower()
        if name not in self.REGISTERS:
            raise ValueError(
                f"Unknown register '{self.register}'. Valid registers: {', '.join(self.REGISTERS)}"
            )
        if self.operator not in _COMPARISONS:
            raise ValueError(
                f"Unknown operator '{self.operator}'. Valid operators: {' '.join(_COMPARISONS)}"
            )
        if not self.description:
            self.description = f"{self.register} {self.operator} {self.value}"
        self.register = name

    def current_value(self, cpu: "ControlUnit") -> int | bool:
        regs = cpu.registers
        bit = _FLAG_BITS.get(self.register)
        if bit is not None:
            return regs.flag(bit)
        return getattr(regs, self.register)

    def check(self, cpu: "ControlUnit") -> bool:
        """True when the condition holds for the core's registers."""
        return bool(_COMPARISONS[self.operator](self.current_value(cpu), self.value))


# =============================================================================
# Manager
# =============================================================================

class Watch(IntFlag):
    """Bus directions a watchpoint reacts to."""
    READ = 1
    WRITE = 2


class BreakpointManager:
    """
    Holds the debug stops for one emulator and evaluates them.

    The check_* methods return True to let execution continue and False to
    stop; a stop leaves its BreakEvent in last_event.

    Example:
        >>> mgr = BreakpointManager()
        >>> mgr.add_breakpoint(0x0010)
        >>> mgr.add_write_watchpoint(0x0200)
        >>> cid = mgr.add_condition('acc', '==', 0x00)
    """

    def __init__(self):
        self._breakpoints: set[int] = set()
        self._watches: Dict[int, Watch] = {}
        self._conditions: Dict[int, RegisterCondition] = {}
        self._last_event: Optional[BreakEvent] = None
        self._interrupt = False

    @property
    def last_event(self) -> Optional[BreakEvent]:
        """The event that caused the most recent stop."""
        return self._last_event

    @property
    def breakpoint_count(self) -> int:
        return len(self._breakpoints)

    @property
    def watchpoint_count(self) -> int:
        """Read and write watchpoints, counted separately."""
        return sum(bin(kind).count("1") for kind in self._watches.values())

    # -------------------------------------------------------------------------
    # PC breakpoints
    # -------------------------------------------------------------------------

    def add_breakpoint(self, address: int) -> None:
        """Stop before the instruction at address is fetched."""
        self._breakpoints.add(address & 0xFFFF)

    def remove_breakpoint(self, address: int) -> None:
        self._breakpoints.discard(address & 0xFFFF)

    def has_breakpoint(self, address: int) -> bool:
        return (address & 0xFFFF) in self._breakpoints

    def clear_breakpoints(self) -> None:
        self._breakpoints.clear()

    def list_breakpoints(self) -> List[int]:
        return sorted(self._breakpoints)

    # -------------------------------------------------------------------------
    # Watchpoints
    # -------------------------------------------------------------------------

    def _watch(self, address: int, kind: Watch) -> None:
        address &= 0xFFFF
        self._watches[address] = self._watches.get(address, Watch(0)) | kind

    def add_read_watchpoint(self, address: int) -> None:
        self._watch(address, Watch.READ)

    def add_write_watchpoint(self, address: int) -> None:
        self._watch(address, Watch.WRITE)

    def remove_watchpoint(self, address: int) -> None:
        """Drop both directions at address."""
        self._watches.pop(address & 0xFFFF, None)

    def clear_watchpoints(self) -> None:
        self._watches.clear()

    def list_read_watchpoints(self) -> List[int]:
        return sorted(a for a, kind in self._watches.items() if kind & Watch.READ)

    def list_write_watchpoints(self) -> List[int]:
        return sorted(a for a, kind in self._watches.items() if kind & Watch.WRITE)

    # -------------------------------------------------------------------------
    # Register conditions
    # -------------------------------------------------------------------------

    def add_register_condition(self, condition: RegisterCondition) -> int:
        """
        Install a condition under the lowest unused ID.

        Returns:
            The ID to pass to remove_register_condition()
        """
        cid = next(i for i in count() if i not in self._conditions)
        self._conditions[cid] = condition
        return cid

    def add_condition(
        self,
        register: str,
        operator: str,
        value: int | bool,
        description: str = ""
    ) -> int:
        """Shorthand for add_register_condition(RegisterCondition(...))."""
        return self.add_register_condition(
            RegisterCondition(register, operator, value, description)
        )

    def remove_register_condition(self, condition_id: int) -> None:
        self._conditions.pop(condition_id, None)

    def clear_register_conditions(self) -> None:
        self._conditions.clear()

    def list_register_conditions(self) -> List[tuple[int, RegisterCondition]]:
        return sorted(self._conditions.items())

    # -------------------------------------------------------------------------
    # Run control
    # -------------------------------------------------------------------------

    def request_break(self) -> None:
        """Stop at the next instruction boundary."""
        self._interrupt = True

    def clear_break_request(self) -> None:
        self._interrupt = False

    def clear_last_event(self) -> None:
        self._last_event = None

    def record(self, event: BreakEvent) -> None:
        """Store a stop decided by the caller (halt, cycle limit, step)."""
        self._last_event = event

    def clear_all(self) -> None:
        """Forget every stop, any pending interrupt and the last event."""
        self._breakpoints.clear()
        self._watches.clear()
        self._conditions.clear()
        self._interrupt = False
        self._last_event = None

    def _stop(self, event: BreakEvent) -> bool:
        self._last_event = event
        logger.debug(f"Stop: {event}")
        return False

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def check_instruction(
        self,
        cpu: "ControlUnit",
        pc: int,
        resuming: bool = False
    ) -> bool:
        """
        Decide whether the instruction at pc may start.

        Args:
            cpu: Core whose registers conditions are tested against
            pc: Address of the instruction about to be fetched
            resuming: The run is continuing from a stop at pc; skip its
                breakpoint and conditions so the instruction can execute.
                A user interrupt still stops.
        """
        if self._interrupt:
            self._interrupt = False
            return self._stop(BreakEvent(BreakReason.USER_INTERRUPT, address=pc))

        if resuming:
            return True

        if pc in self._breakpoints:
            return self._stop(BreakEvent(BreakReason.PC_BREAKPOINT, address=pc))

        for cond in self._conditions.values():
            if cond.check(cpu):
                return self._stop(BreakEvent(
                    BreakReason.REGISTER_CONDITION,
                    address=pc,
                    message=f"Condition: {cond.description}"
                ))
        return True

    def check_memory_read(self, address: int, value: int) -> bool:
        if self._watches.get(address, 0) & Watch.READ:
            return self._stop(BreakEvent(BreakReason.MEMORY_READ, address, value))
        return True

    def check_memory_write(self, address: int, value: int) -> bool:
        if self._watches.get(address, 0) & Watch.WRITE:
            return self._stop(BreakEvent(BreakReason.MEMORY_WRITE, address, value))
        return True
