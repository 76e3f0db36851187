"""TrapDispatcher: the six built-in TRAP service routines.

Each routine is a function ``(state, bus) -> None`` keyed by its 8-bit
trap vector. Routines do character I/O through the bus's terminal and
communicate results through R0 and the condition flags; HALT stops the
machine by setting ``state.halted``.
"""

from enum import IntEnum
from typing import Callable, Dict, Set

from .bits import WORD_MASK
from .errors import UnknownTrapError
from .memory import MemoryBus
from .state import MachineState, Reg


IN_PROMPT = "Enter a character: "
HALT_MESSAGE = "HALT"


class TrapVector(IntEnum):
    GETC = 0x20   # read a character, no echo
    OUT = 0x21    # write a character
    PUTS = 0x22   # write a string, one character per word
    IN = 0x23     # prompt, read and echo a character
    PUTSP = 0x24  # write a string, two characters per word
    HALT = 0x25   # stop the machine


TrapRoutine = Callable[[MachineState, MemoryBus], None]


class TrapDispatcher:
    """Frozen table of trap service routines.

    Attributes:
        _routines: Dictionary mapping trap vectors to routines
        _frozen: Whether the table is locked against modifications
    """

    def __init__(self):
        self._routines: Dict[int, TrapRoutine] = {}
        self._frozen = False
        self.register(TrapVector.GETC, trap_getc)
        self.register(TrapVector.OUT, trap_out)
        self.register(TrapVector.PUTS, trap_puts)
        self.register(TrapVector.IN, trap_in)
        self.register(TrapVector.PUTSP, trap_putsp)
        self.register(TrapVector.HALT, trap_halt)
        self._frozen = True

    def register(self, vector: int, routine: TrapRoutine) -> None:
        """Register a routine for a trap vector.

        Raises:
            RuntimeError: If the table is frozen
            ValueError: If the vector already has a routine
        """
        if self._frozen:
            raise RuntimeError("Cannot register trap routines: table is frozen")
        if vector in self._routines:
            raise ValueError(f"Trap vector already registered: x{vector:02X}")
        self._routines[int(vector)] = routine

    def is_frozen(self) -> bool:
        return self._frozen

    def get_valid_vectors(self) -> Set[int]:
        return set(self._routines)

    def resolve(self, state: MachineState, vector: int, instruction: int) -> TrapRoutine:
        """Look up the routine for ``vector`` without running it.

        Raises:
            UnknownTrapError: If no routine handles ``vector``
        """
        routine = self._routines.get(vector)
        if routine is None:
            raise UnknownTrapError(
                f"Unknown trap vector x{vector:02X}",
                instruction,
                (state.pc - 1) & WORD_MASK,
            )
        return routine

    def dispatch(self, state: MachineState, bus: MemoryBus, vector: int, instruction: int) -> None:
        """Run the routine for ``vector``."""
        self.resolve(state, vector, instruction)(state, bus)


def trap_getc(state: MachineState, bus: MemoryBus) -> None:
    state.set_register(Reg.R0, bus.terminal.read_char())
    state.update_flags(Reg.R0)


def trap_out(state: MachineState, bus: MemoryBus) -> None:
    bus.terminal.write_char(state.get_register(Reg.R0) & 0xFF)


def trap_puts(state: MachineState, bus: MemoryBus) -> None:
    """Write the zero-terminated string at R0, one character per word."""
    address = state.get_register(Reg.R0)
    word = state.memory[address]
    while word:
        bus.terminal.write_char(word & 0xFF)
        address = (address + 1) & WORD_MASK
        word = state.memory[address]


def trap_in(state: MachineState, bus: MemoryBus) -> None:
    terminal = bus.terminal
    terminal.write_text(IN_PROMPT + "\n")
    terminal.flush()
    char = terminal.read_char()
    terminal.write_char(char)
    terminal.flush()
    state.set_register(Reg.R0, char)
    state.update_flags(Reg.R0)


def trap_putsp(state: MachineState, bus: MemoryBus) -> None:
    """Write the zero-terminated string at R0, two characters per word.

    The low byte comes first; a zero high byte ends the word early but
    not the string.
    """
    address = state.get_register(Reg.R0)
    word = state.memory[address]
    while word:
        bus.terminal.write_char(word & 0xFF)
        high = word >> 8
        if high:
            bus.terminal.write_char(high)
        address = (address + 1) & WORD_MASK
        word = state.memory[address]


def trap_halt(state: MachineState, bus: MemoryBus) -> None:
    bus.terminal.write_text(HALT_MESSAGE + "\n")
    bus.terminal.flush()
    state.halted = True
