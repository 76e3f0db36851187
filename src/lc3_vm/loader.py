"""Program image loading.

An LC-3 object image is a sequence of big-endian 16-bit words. The first
word is the origin: the address the remaining words are placed at.
"""

import logging
import struct
from pathlib import Path
from typing import List, Sequence, Tuple, Union

from .errors import ImageLoadError
from .state import MEMORY_SIZE, MachineState


logger = logging.getLogger(__name__)


def parse_image(data: bytes) -> Tuple[int, List[int]]:
    """Split raw image bytes into origin and program words.

    Args:
        data: Image file contents

    Returns:
        (origin, words)

    Raises:
        ImageLoadError: If the image is empty, has an odd length, or
            would run past the end of memory
    """
    if len(data) < 2:
        raise ImageLoadError("Image has no origin word")
    if len(data) % 2:
        raise ImageLoadError(f"Image length {len(data)} is not a whole number of words")

    origin, *words = struct.unpack(f">{len(data) // 2}H", data)
    check_fits(origin, len(words))
    return origin, words


def check_fits(origin: int, count: int) -> None:
    """Raise ImageLoadError if ``count`` words at ``origin`` overflow memory."""
    if not 0 <= origin < MEMORY_SIZE:
        raise ImageLoadError(f"Origin {origin:#x} is outside memory")
    if origin + count > MEMORY_SIZE:
        raise ImageLoadError(
            f"Image of {count} words at x{origin:04X} overflows the address space"
        )


def place_image(state: MachineState, origin: int, words: Sequence[int]) -> None:
    """Copy ``words`` into memory starting at ``origin``."""
    check_fits(origin, len(words))
    state.memory[origin:origin + len(words)] = [word & 0xFFFF for word in words]
    logger.info("Loaded %d words at x%04X", len(words), origin)


def read_image_file(path: Union[str, Path]) -> Tuple[int, List[int]]:
    """Read and parse an image file.

    Raises:
        ImageLoadError: If the file cannot be read or is malformed
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ImageLoadError(f"Cannot read image {path}: {e}") from e
    return parse_image(data)
