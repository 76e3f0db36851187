"""MemoryBus: memory access with the keyboard mapped into the address space.

Reads of the keyboard status register (KBSR) poll the terminal; when a key
is waiting, bit 15 of KBSR is set and the character is latched into the
keyboard data register (KBDR). Every other address is plain storage.
"""

import logging

from .bits import WORD_MASK
from .state import MachineState
from .terminal import Terminal


logger = logging.getLogger(__name__)

MR_KBSR = 0xFE00  # keyboard status
MR_KBDR = 0xFE02  # keyboard data

KBSR_READY = 1 << 15


class MemoryBus:
    """Routes loads and stores between the CPU, memory and devices.

    Attributes:
        state: Machine state whose ``memory`` backs the bus
        terminal: Character device behind the keyboard registers
    """

    def __init__(self, state: MachineState, terminal: Terminal):
        self.state = state
        self.terminal = terminal

    def mem_read(self, address: int) -> int:
        """Read one word, servicing the keyboard status register.

        Args:
            address: Address to read (truncated to 16 bits)

        Returns:
            Word stored at ``address`` after any device side effect
        """
        address &= WORD_MASK
        memory = self.state.memory
        if address == MR_KBSR:
            if self.terminal.poll_input():
                memory[MR_KBSR] = KBSR_READY
                memory[MR_KBDR] = self.terminal.read_char() & WORD_MASK
                logger.debug("Keyboard latched x%04X", memory[MR_KBDR])
            else:
                memory[MR_KBSR] = 0
        return memory[address]

    def mem_write(self, address: int, value: int) -> None:
        """Store one word. No address has write side effects yet."""
        self.state.memory[address & WORD_MASK] = value & WORD_MASK
