"""OpcodeRegistry: the LC-3 instruction handlers.

This module implements the registry pattern for instruction execution:
each decoded instruction names a handler key, and the handler applies
that instruction's effect to the machine state through the memory bus.

Registry Keys:
    OP_BR:   Conditional branch on N/Z/P
    OP_ADD:  Add register or sign-extended imm5
    OP_LD:   Load PC-relative
    OP_ST:   Store PC-relative
    OP_JSR:  Jump to subroutine (PC-relative or register), link in R7
    OP_AND:  Bitwise AND with register or sign-extended imm5
    OP_LDR:  Load base+offset
    OP_STR:  Store base+offset
    OP_NOT:  Bitwise complement
    OP_LDI:  Load indirect
    OP_STI:  Store indirect
    OP_JMP:  Jump to register (RET when BaseR is R7)
    OP_LEA:  Load effective address
    OP_TRAP: System call, link in R7

Each handler has the signature ``(state, bus, params) -> None``. PC in
the handlers is the already-incremented program counter. All of an instruction's
effects are applied inside one handler call, so nothing half-done is
visible between steps.
"""

from typing import Any, Callable, Dict, Optional

from .memory import MemoryBus
from .state import MachineState, Reg
from .traps import TrapDispatcher


Handler = Callable[[MachineState, MemoryBus, Dict[str, Any]], None]


class OpcodeRegistry:
    """Verified registry of instruction handlers.

    The registry is frozen after initialization to ensure
    no runtime modifications can occur.

    Attributes:
        traps: Dispatcher for TRAP service routines
        _handlers: Dictionary mapping operation keys to handler functions
        _frozen: Whether the registry is locked against modifications
    """

    def __init__(self, traps: Optional[TrapDispatcher] = None):
        """Initialize registry with all instruction handlers."""
        self.traps = traps if traps is not None else TrapDispatcher()
        self._handlers: Dict[str, Handler] = {}
        self._frozen = False
        self._register_all_handlers()
        self.freeze()

    def _register_all_handlers(self) -> None:
        """Register every implemented opcode."""
        # Operate
        self.register("OP_ADD", self._op_add)
        self.register("OP_AND", self._op_and)
        self.register("OP_NOT", self._op_not)

        # Data movement
        self.register("OP_LD", self._op_ld)
        self.register("OP_LDI", self._op_ldi)
        self.register("OP_LDR", self._op_ldr)
        self.register("OP_LEA", self._op_lea)
        self.register("OP_ST", self._op_st)
        self.register("OP_STI", self._op_sti)
        self.register("OP_STR", self._op_str)

        # Control flow
        self.register("OP_BR", self._op_br)
        self.register("OP_JMP", self._op_jmp)
        self.register("OP_JSR", self._op_jsr)
        self.register("OP_TRAP", self._op_trap)

    def register(self, key: str, handler: Handler) -> None:
        """Register an instruction handler.

        Args:
            key: Operation key (e.g., "OP_ADD")
            handler: Function that takes (state, bus, params)

        Raises:
            RuntimeError: If registry is frozen
            ValueError: If key already registered
        """
        if self._frozen:
            raise RuntimeError("Cannot register handlers: registry is frozen")
        if key in self._handlers:
            raise ValueError(f"Handler already registered: {key}")
        self._handlers[key] = handler

    def freeze(self) -> None:
        """Freeze the registry to prevent further modifications."""
        self._frozen = True

    def is_frozen(self) -> bool:
        """Check if registry is frozen."""
        return self._frozen

    def get_valid_keys(self) -> set:
        """Get set of all valid operation keys."""
        return set(self._handlers.keys())

    def execute(self, state: MachineState, bus: MemoryBus, key: str, params: Dict[str, Any]) -> None:
        """Execute a registered handler and count the cycle.

        Args:
            state: Machine state to mutate
            bus: Memory bus for loads, stores and devices
            key: Operation key
            params: Operand fields from the decoder

        Raises:
            KeyError: If key not in registry
        """
        if key not in self._handlers:
            raise KeyError(f"Unknown operation key: {key}")

        self._handlers[key](state, bus, params)
        state.cycle_count += 1

    # =========================================================================
    # Operate Handlers
    # =========================================================================

    def _op_add(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """ADD DR, SR1, SR2|imm5 - Two's-complement add, sets flags on DR."""
        state.set_register(params["dr"], state.get_register(params["sr1"]) + self._operand2(state, params))
        state.update_flags(params["dr"])

    def _op_and(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """AND DR, SR1, SR2|imm5 - Bitwise AND, sets flags on DR."""
        state.set_register(params["dr"], state.get_register(params["sr1"]) & self._operand2(state, params))
        state.update_flags(params["dr"])

    def _op_not(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """NOT DR, SR - Bitwise complement, sets flags on DR."""
        state.set_register(params["dr"], ~state.get_register(params["sr"]))
        state.update_flags(params["dr"])

    # =========================================================================
    # Data Movement Handlers
    # =========================================================================

    def _op_ld(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """LD DR, PCoffset9 - DR = mem[PC + offset]."""
        value = bus.mem_read(state.pc + params["offset"])
        state.set_register(params["dr"], value)
        state.update_flags(params["dr"])

    def _op_ldi(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """LDI DR, PCoffset9 - DR = mem[mem[PC + offset]]."""
        pointer = bus.mem_read(state.pc + params["offset"])
        value = bus.mem_read(pointer)
        state.set_register(params["dr"], value)
        state.update_flags(params["dr"])

    def _op_ldr(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """LDR DR, BaseR, offset6 - DR = mem[BaseR + offset]."""
        value = bus.mem_read(state.get_register(params["base"]) + params["offset"])
        state.set_register(params["dr"], value)
        state.update_flags(params["dr"])

    def _op_lea(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """LEA DR, PCoffset9 - DR = PC + offset, no memory access."""
        state.set_register(params["dr"], state.pc + params["offset"])
        state.update_flags(params["dr"])

    def _op_st(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """ST SR, PCoffset9 - mem[PC + offset] = SR."""
        bus.mem_write(state.pc + params["offset"], state.get_register(params["sr"]))

    def _op_sti(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """STI SR, PCoffset9 - mem[mem[PC + offset]] = SR."""
        pointer = bus.mem_read(state.pc + params["offset"])
        bus.mem_write(pointer, state.get_register(params["sr"]))

    def _op_str(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """STR SR, BaseR, offset6 - mem[BaseR + offset] = SR."""
        address = state.get_register(params["base"]) + params["offset"]
        bus.mem_write(address, state.get_register(params["sr"]))

    # =========================================================================
    # Control Flow Handlers
    # =========================================================================

    def _op_br(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """BR[n][z][p] PCoffset9 - Branch if any named flag is set."""
        if params["cond"] & state.get_flags():
            state.pc = state.pc + params["offset"]

    def _op_jmp(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """JMP BaseR - PC = BaseR."""
        state.pc = state.get_register(params["base"])

    def _op_jsr(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """JSR PCoffset11 / JSRR BaseR - R7 = PC, then jump.

        R7 is linked first, so JSRR R7 reads the freshly linked value and
        falls through to the next instruction.
        """
        state.set_register(Reg.R7, state.pc)
        if params["long"]:
            state.pc = state.pc + params["offset"]
        else:
            state.pc = state.get_register(params["base"])

    def _op_trap(self, state: MachineState, bus: MemoryBus, params: Dict[str, Any]) -> None:
        """TRAP trapvect8 - Run the service routine, then R7 = PC.

        R7 is linked only once the routine has returned, so an unknown
        vector or an interrupted read leaves it untouched.
        """
        self.traps.dispatch(state, bus, params["vector"], params["instruction"])
        state.set_register(Reg.R7, state.pc)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _operand2(self, state: MachineState, params: Dict[str, Any]) -> int:
        """Second operand of ADD/AND: sign-extended imm5 or SR2."""
        if params["imm_mode"]:
            return params["imm5"]
        return state.get_register(params["sr2"])


# Singleton registry instance
_registry: Optional[OpcodeRegistry] = None


def get_registry() -> OpcodeRegistry:
    """Get the singleton opcode registry instance.

    Returns:
        The frozen OpcodeRegistry instance
    """
    global _registry
    if _registry is None:
        _registry = OpcodeRegistry()
    return _registry
