"""LC3VM: the fetch-decode-execute loop.

This module wires the pipeline together:
    MEMORY -> FETCH -> DECODE -> KEY -> REGISTRY -> EXECUTE -> STATE

Each step reads the word at PC through the memory bus, advances PC,
decodes the word into a handler key and operands, and lets the opcode
registry apply it. The machine runs until TRAP HALT; an instruction the
machine cannot execute raises ``FatalDecodeError`` and stops everything.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

from .bits import WORD_MASK
from .decoder import DecodeResult, InstructionDecoder
from .errors import IllegalOpcodeError
from .loader import place_image, read_image_file
from .memory import MemoryBus
from .registry import OpcodeRegistry, get_registry
from .state import PC_START, MachineState, RegisterRef, create_initial_state
from .terminal import BufferedTerminal, Terminal


logger = logging.getLogger(__name__)


class LC3VM:
    """LC-3 virtual machine.

    Attributes:
        terminal: Character device for the keyboard registers and traps
        decoder: InstructionDecoder for instruction words
        registry: OpcodeRegistry with the instruction handlers
        state: Register file and memory
        bus: MemoryBus over ``state`` and ``terminal``
        max_cycles: Optional instruction limit for ``run`` (None = unbounded)
    """

    def __init__(
        self,
        terminal: Optional[Terminal] = None,
        max_cycles: Optional[int] = None,
        start_address: int = PC_START,
        registry: Optional[OpcodeRegistry] = None,
    ):
        """Initialize the VM with a zeroed machine.

        Args:
            terminal: I/O device; defaults to a BufferedTerminal with no input
            max_cycles: Instruction limit for ``run``
            start_address: Initial PC
            registry: Opcode handlers; defaults to the shared registry
        """
        self.terminal = terminal if terminal is not None else BufferedTerminal()
        self.decoder = InstructionDecoder()
        self.registry = registry if registry is not None else get_registry()
        self.state: MachineState = create_initial_state(start_address)
        self.bus = MemoryBus(self.state, self.terminal)
        self.max_cycles = max_cycles

    # =========================================================================
    # Loading
    # =========================================================================

    def load_image(self, words: Sequence[int], origin: int) -> None:
        """Place program words in memory starting at ``origin``.

        Raises:
            ImageLoadError: If the words would run past xFFFF
        """
        place_image(self.state, origin, words)

    def load_image_file(self, path: Union[str, Path]) -> int:
        """Load an object image file; returns its origin.

        Raises:
            ImageLoadError: If the file is unreadable or malformed
        """
        origin, words = read_image_file(path)
        self.load_image(words, origin)
        return origin

    # =========================================================================
    # Execution
    # =========================================================================

    def step(self) -> DecodeResult:
        """Execute a single instruction.

        Performs: FETCH -> DECODE -> EXECUTE

        Returns:
            DecodeResult of the instruction just executed

        Raises:
            RuntimeError: If the machine is halted
            FatalDecodeError: If the instruction cannot be executed

        Any exception, KeyboardInterrupt included, leaves the registers as
        they were before the fetch.
        """
        state = self.state
        if state.halted:
            raise RuntimeError("VM is halted")

        # Registers roll back if the instruction does not complete. Stores
        # write memory as their last action, so memory needs no copy.
        saved_registers = list(state.registers)
        try:
            # FETCH
            address = state.pc
            instruction = self.bus.mem_read(address)
            state.pc = address + 1

            # DECODE
            result = self.decoder.decode(instruction)
            if not result.valid:
                raise IllegalOpcodeError(result.error, instruction, address)

            # EXECUTE
            self.registry.execute(state, self.bus, result.key, result.params)
        except BaseException:
            state.registers[:] = saved_registers
            raise

        if state.halted:
            logger.info("Machine halted after %d instructions", state.cycle_count)
        return result

    def run(self, max_cycles: Optional[int] = None) -> int:
        """Run until TRAP HALT.

        Args:
            max_cycles: Override the instance instruction limit

        Returns:
            Number of instructions executed by this call

        Raises:
            RuntimeError: If the instruction limit is reached first
            FatalDecodeError: If an instruction cannot be executed
        """
        limit = max_cycles if max_cycles is not None else self.max_cycles
        start = self.state.cycle_count

        while not self.state.halted:
            if limit is not None and self.state.cycle_count - start >= limit:
                raise RuntimeError(f"Max cycles ({limit}) exceeded")
            self.step()

        return self.state.cycle_count - start

    # =========================================================================
    # Inspection
    # =========================================================================

    def get_register(self, reg: RegisterRef) -> int:
        """Get value of a register (R0-R7, PC, COND)."""
        return self.state.get_register(reg)

    def dump_registers(self) -> Dict[str, int]:
        """Get all register values keyed by name."""
        return self.state.dump_registers()

    def get_flags(self) -> Dict[str, bool]:
        """Get condition flags as {"N": ..., "Z": ..., "P": ...}."""
        return self.state.flag_names()

    def get_pc(self) -> int:
        return self.state.pc

    def get_cycle_count(self) -> int:
        return self.state.cycle_count

    def is_halted(self) -> bool:
        return self.state.halted

    def read_memory(self, address: int) -> int:
        """Plain memory read with no device side effects."""
        return self.state.memory[address & WORD_MASK]

    def get_summary(self) -> Dict:
        """Get execution summary.

        Returns:
            Dictionary with execution statistics and final state
        """
        return {
            "cycles": self.get_cycle_count(),
            "halted": self.is_halted(),
            "registers": self.dump_registers(),
            "flags": self.get_flags(),
            "pc": self.get_pc(),
        }
