#!/usr/bin/env python3
"""LC3-VM Command Line Interface.

Run LC-3 object images in the terminal.

Usage:
    python main.py programs/2048.obj
    python main.py os.obj program.obj --summary
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from lc3_vm import LC3VM, ConsoleTerminal, FatalDecodeError, ImageLoadError


logger = logging.getLogger("lc3_vm")

EXIT_INTERRUPTED = 254  # exit(-2)
EXIT_ABORT = 134        # abort()


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="lc3",
        description="LC3-VM: run LC-3 object images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run a single image
    python main.py rogue.obj

    # Load several images; later ones overwrite earlier ones
    python main.py lib.obj main.obj

    # Stop after a million instructions and show the final state
    python main.py loop.obj --max-cycles 1000000 --summary
        """
    )

    parser.add_argument(
        "images",
        nargs="*",
        metavar="IMAGE",
        help="Object image files (big-endian words, first word is the origin)"
    )
    parser.add_argument(
        "--max-cycles",
        type=int,
        default=None,
        help="Stop with an error after this many instructions. Default: unlimited"
    )
    parser.add_argument(
        "--summary", "-s",
        action="store_true",
        help="Print final registers and flags to stderr"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Log to stderr (-v info, -vv debug)"
    )

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")

    if not args.images:
        print("lc3 [image-file1]...")
        return 2

    terminal = ConsoleTerminal()
    vm = LC3VM(terminal=terminal, max_cycles=args.max_cycles)

    for image in args.images:
        try:
            vm.load_image_file(image)
        except ImageLoadError as e:
            logger.error("%s", e)
            print(f"failed to load image: {image}")
            return 1

    status = 0
    try:
        with terminal:
            vm.run()
    except KeyboardInterrupt:
        print()
        status = EXIT_INTERRUPTED
    except FatalDecodeError as e:
        logger.error("Fatal: %s: %s", e, vm.decoder.decode(e.instruction))
        status = EXIT_ABORT
    except RuntimeError as e:
        logger.error("Execution error: %s", e)
        status = 1

    if args.summary:
        summary = vm.get_summary()
        print(f"Cycles: {summary['cycles']}", file=sys.stderr)
        print(f"Halted: {summary['halted']}", file=sys.stderr)
        print(f"PC: x{summary['pc']:04X}", file=sys.stderr)
        print(
            "Registers: " + " ".join(f"{k}=x{v:04X}" for k, v in summary["registers"].items()),
            file=sys.stderr,
        )
        print(f"Flags: {summary['flags']}", file=sys.stderr)

    return status


if __name__ == "__main__":
    sys.exit(main())
