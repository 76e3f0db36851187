"""Exception types raised by the LC-3 virtual machine."""

from typing import Optional


class LC3Error(Exception):
    """Base class for all VM errors."""


class FatalDecodeError(LC3Error, RuntimeError):
    """An instruction the machine cannot execute.

    There is no recovery from this: the program image is corrupt or
    uses an instruction this VM does not implement.

    Attributes:
        instruction: The offending 16-bit instruction word
        address: Address the instruction was fetched from, if known
    """

    def __init__(self, message: str, instruction: int, address: Optional[int] = None):
        if address is not None:
            message = f"{message} at x{address:04X}"
        super().__init__(message)
        self.instruction = instruction
        self.address = address


class IllegalOpcodeError(FatalDecodeError):
    """Opcode is RTI, reserved, or otherwise not executable."""


class UnknownTrapError(FatalDecodeError):
    """TRAP instruction with a vector no routine is registered for."""


class ImageLoadError(LC3Error, ValueError):
    """Program image could not be read or does not fit in memory."""
