"""MachineState: architectural state of the LC-3 virtual machine.

State Components:
    - Registers: R0-R7 general purpose, PC, COND (all 16-bit unsigned)
    - Memory: 65,536 words of 16 bits each
    - Halted: Execution termination flag
    - Cycle count: Total executed instructions

The state is a single mutable object owned by the VM and handed to the
decoder, opcode handlers and trap routines for the duration of one
instruction. Every value stored through the accessors is truncated to
16 bits, so address arithmetic wraps modulo 65,536.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Union

from .bits import SIGN_BIT, WORD_MASK, to_word


MEMORY_SIZE = 1 << 16
PC_START = 0x3000


class Reg(IntEnum):
    """Register file slots."""
    R0 = 0
    R1 = 1
    R2 = 2
    R3 = 3
    R4 = 4
    R5 = 5
    R6 = 6
    R7 = 7
    PC = 8
    COND = 9


REGISTER_COUNT = len(Reg)


class Flag(IntEnum):
    """Condition flag bits held in COND."""
    POS = 1 << 0
    ZRO = 1 << 1
    NEG = 1 << 2


RegisterRef = Union[Reg, int, str]


@dataclass
class MachineState:
    """Mutable LC-3 machine state.

    Attributes:
        registers: Ten 16-bit register slots indexed by ``Reg``
        memory: 65,536 16-bit words
        halted: Whether the machine has executed TRAP HALT
        cycle_count: Number of instructions executed
    """
    registers: List[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    memory: List[int] = field(default_factory=lambda: [0] * MEMORY_SIZE)
    halted: bool = False
    cycle_count: int = 0

    @property
    def pc(self) -> int:
        return self.registers[Reg.PC]

    @pc.setter
    def pc(self, value: int) -> None:
        self.registers[Reg.PC] = to_word(value)

    @property
    def cond(self) -> int:
        return self.registers[Reg.COND]

    def get_register(self, reg: RegisterRef) -> int:
        """Get value of a register.

        Args:
            reg: ``Reg`` member, register index, or name (R0-R7, PC, COND;
                case insensitive)

        Returns:
            16-bit register value

        Raises:
            KeyError: If register doesn't exist
        """
        return self.registers[_resolve(reg)]

    def set_register(self, reg: RegisterRef, value: int) -> None:
        """Store a value in a register, truncated to 16 bits.

        Raises:
            KeyError: If register doesn't exist
        """
        self.registers[_resolve(reg)] = to_word(value)

    def get_flags(self) -> int:
        """Raw COND register value."""
        return self.registers[Reg.COND]

    def update_flags(self, reg: RegisterRef) -> None:
        """Set COND from the sign of a register's value.

        Exactly one of POS/ZRO/NEG is left set; the previous flags are
        overwritten.
        """
        value = self.registers[_resolve(reg)]
        if value == 0:
            self.registers[Reg.COND] = int(Flag.ZRO)
        elif value & SIGN_BIT:
            self.registers[Reg.COND] = int(Flag.NEG)
        else:
            self.registers[Reg.COND] = int(Flag.POS)

    def flag_names(self) -> Dict[str, bool]:
        cond = self.registers[Reg.COND]
        return {
            "N": bool(cond & Flag.NEG),
            "Z": bool(cond & Flag.ZRO),
            "P": bool(cond & Flag.POS),
        }

    def snapshot(self) -> dict:
        """Copy of the register file and run flags.

        Memory is excluded; it is 64K words and callers that need it can
        read it directly.
        """
        return {
            "registers": self.dump_registers(),
            "pc": self.pc,
            "flags": self.flag_names(),
            "halted": self.halted,
            "cycle_count": self.cycle_count,
        }

    def validate(self) -> bool:
        """Validate state integrity.

        Checks:
            - Register file and memory have their architectural sizes
            - Every register and memory word is a 16-bit unsigned value
            - Exactly one condition flag is set

        Returns:
            True if state is valid, False otherwise
        """
        if len(self.registers) != REGISTER_COUNT or len(self.memory) != MEMORY_SIZE:
            return False

        for value in self.registers:
            if not isinstance(value, int) or not 0 <= value <= WORD_MASK:
                return False

        if any(not 0 <= word <= WORD_MASK for word in self.memory):
            return False

        if self.registers[Reg.COND] not in (Flag.POS, Flag.ZRO, Flag.NEG):
            return False

        return self.cycle_count >= 0

    def dump_registers(self) -> Dict[str, int]:
        """Get a copy of all register values keyed by name."""
        return {reg.name: self.registers[reg] for reg in Reg}

    def __str__(self) -> str:
        regs = " ".join(f"R{i}=x{self.registers[i]:04X}" for i in range(8))
        flags = "".join(name if set_ else "-" for name, set_ in self.flag_names().items())
        return (
            f"[Cycle {self.cycle_count}] PC=x{self.pc:04X} {regs} {flags}"
            f"{' HALTED' if self.halted else ''}"
        )


def _resolve(reg: RegisterRef) -> int:
    if isinstance(reg, str):
        try:
            return Reg[reg.upper()]
        except KeyError:
            raise KeyError(f"Invalid register: {reg}") from None
    if not 0 <= reg < REGISTER_COUNT:
        raise KeyError(f"Invalid register: {reg}")
    return int(reg)


def create_initial_state(start_address: int = PC_START) -> MachineState:
    """Create a fresh machine ready to run at ``start_address``.

    Memory and general registers are zeroed and COND holds ZRO, so one
    condition flag is set before the first instruction executes.
    """
    state = MachineState()
    state.pc = start_address
    state.registers[Reg.COND] = int(Flag.ZRO)
    return state
