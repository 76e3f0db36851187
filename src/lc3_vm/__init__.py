"""LC3-VM: a virtual machine for the LC-3 instructional computer.

The LC-3 is a 16-bit machine with eight general-purpose registers, a
program counter, three condition flags and 64K words of memory. This
package runs LC-3 object images: it fetches, decodes and executes
instructions, maps the keyboard into memory at xFE00/xFE02, and provides
the six standard TRAP routines for character I/O.

Architecture:
    MEMORY -> FETCH -> DECODE -> KEY -> REGISTRY -> EXECUTE -> STATE
                |         |        |        |
           [MemoryBus] [Decoder] [OP_*] [Handlers + Traps]

Modules:
    bits: Sign extension and field helpers
    state: MachineState register file and memory
    terminal: Console and buffered character I/O
    memory: MemoryBus with memory-mapped keyboard
    decoder: Instruction word decoder
    registry: Opcode handlers
    traps: TRAP service routines
    loader: Object image loading
    cpu: Main LC3VM orchestrator
"""

__version__ = "0.1.0"

from .errors import (
    LC3Error,
    FatalDecodeError,
    IllegalOpcodeError,
    UnknownTrapError,
    ImageLoadError,
)
from .state import MachineState, Reg, Flag
from .terminal import ConsoleTerminal, BufferedTerminal
from .decoder import InstructionDecoder, DecodeResult, Opcode
from .registry import OpcodeRegistry
from .traps import TrapDispatcher, TrapVector
from .cpu import LC3VM

__all__ = [
    "LC3Error",
    "FatalDecodeError",
    "IllegalOpcodeError",
    "UnknownTrapError",
    "ImageLoadError",
    "MachineState",
    "Reg",
    "Flag",
    "ConsoleTerminal",
    "BufferedTerminal",
    "InstructionDecoder",
    "DecodeResult",
    "Opcode",
    "LC3VM",
    "OpcodeRegistry",
    "TrapDispatcher",
    "TrapVector",
]
