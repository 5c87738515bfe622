"""
livevars.ir
===========

In-memory program representation consumed by the liveness engine.

The engine only needs a narrow view of a program: functions made of
ordered basic blocks, blocks made of ordered instructions with queryable
predecessor/successor lists, and instructions exposing an opcode, an
ordered operand list and (optionally) a result.  This module supplies
that view with LLVM-flavoured opcode spellings.

Value identity model
--------------------
Every operand is a :class:`Value`.  Values compare and hash by identity
only and carry no analysis state, so the same object can sit in the
tables of any number of independent solver runs.

    Argument      - a function parameter (tracked)
    Instruction   - an instruction; doubles as its own result (tracked
                    when ``produces_result`` is true)
    Constant      - a literal; never tracked
    BasicBlock    - a block, tracked never; appears as a label operand

Public API
----------
    InstructionKind   - fixed instruction taxonomy
    opcode_kind       - opcode -> InstructionKind
    Value, Argument, Constant, Instruction, BasicBlock, Function

Typical usage::

    fn = Function("f", ["p", "q"])
    p, q = fn.arguments
    entry = fn.add_block("entry")
    x = entry.add("load", p, name="x")
    y = entry.add("add", x, fn.const(1), name="y")
    entry.add("store", y, q)
    entry.add("ret")
"""

from __future__ import annotations

import enum
from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
)


# ===========================================================================
# INSTRUCTION TAXONOMY
# ===========================================================================

class InstructionKind(enum.Enum):
    """Coarse instruction classes driving Gen/Kill classification."""
    TERMINATOR = "terminator"
    BINARY = "binary"           # arithmetic and bitwise logic
    MEMORY = "memory"           # memory access and addressing
    CONVERSION = "conversion"
    COMPARISON = "comparison"
    CALL = "call"
    PHI = "phi"
    OTHER = "other"


_KIND_OPCODES: Dict[InstructionKind, Tuple[str, ...]] = {
    InstructionKind.TERMINATOR: (
        "ret", "br", "switch", "indirectbr", "invoke", "resume",
        "unreachable", "callbr", "catchswitch", "catchret", "cleanupret",
    ),
    InstructionKind.BINARY: (
        "add", "fadd", "sub", "fsub", "mul", "fmul", "udiv", "sdiv", "fdiv",
        "urem", "srem", "frem", "shl", "lshr", "ashr", "and", "or", "xor",
        "fneg",
    ),
    InstructionKind.MEMORY: (
        "alloca", "load", "store", "getelementptr", "fence", "cmpxchg",
        "atomicrmw",
    ),
    InstructionKind.CONVERSION: (
        "trunc", "zext", "sext", "fptrunc", "fpext", "fptoui", "fptosi",
        "uitofp", "sitofp", "ptrtoint", "inttoptr", "bitcast",
        "addrspacecast",
    ),
    InstructionKind.COMPARISON: ("icmp", "fcmp"),
    InstructionKind.CALL: ("call",),
    InstructionKind.PHI: ("phi",),
    InstructionKind.OTHER: (
        "select", "va_arg", "landingpad", "extractelement", "insertelement",
        "shufflevector", "extractvalue", "insertvalue", "freeze",
    ),
}

OPCODE_KINDS: Dict[str, InstructionKind] = {
    opcode: kind
    for kind, opcodes in _KIND_OPCODES.items()
    for opcode in opcodes
}

TERMINATOR_OPCODES: FrozenSet[str] = frozenset(
    _KIND_OPCODES[InstructionKind.TERMINATOR]
)

# Opcodes that never define a value.
VOID_OPCODES: FrozenSet[str] = frozenset({
    "ret", "br", "switch", "indirectbr", "resume", "unreachable",
    "catchret", "cleanupret", "store", "fence",
})


def opcode_kind(opcode: str) -> InstructionKind:
    """Return the taxonomy class of *opcode* (``OTHER`` when unknown)."""
    return OPCODE_KINDS.get(opcode, InstructionKind.OTHER)


def is_known_opcode(opcode: str) -> bool:
    return opcode in OPCODE_KINDS


# ===========================================================================
# VALUES
# ===========================================================================

class Value:
    """An identity-compared operand handle.

    Subclasses only set the two class flags below; equality and hashing
    stay the default object identity.
    """

    __slots__ = ("name",)

    is_constant: bool = False
    is_label: bool = False

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name

    @property
    def is_tracked(self) -> bool:
        """Whether liveness is computed for this value."""
        return not (self.is_constant or self.is_label)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name or hex(id(self))}>"


class Argument(Value):
    """A formal parameter of a :class:`Function`."""

    __slots__ = ("index", "parent")

    def __init__(self, name: Optional[str], index: int, parent: "Function") -> None:
        super().__init__(name)
        self.index = index
        self.parent = parent

    def __repr__(self) -> str:
        return f"<Argument %{self.name or self.index}>"


class Constant(Value):
    """A compile-time constant operand (integers, ``null``, globals, ...)."""

    __slots__ = ("value",)

    is_constant = True

    def __init__(self, value: Any) -> None:
        super().__init__(None)
        self.value = value

    def __repr__(self) -> str:
        return f"<Constant {self.value!r}>"


class Instruction(Value):
    """A single instruction.

    Attributes
    ----------
    opcode : str
        LLVM opcode spelling (``"add"``, ``"load"``, ``"br"``, ...).
    operands : tuple[Value, ...]
        Ordered operands.  For ``store`` the order is ``(value, pointer)``.
    produces_result : bool
        Whether the instruction defines a value (itself).
    parent : BasicBlock or None
        Owning block once appended.
    """

    __slots__ = ("opcode", "operands", "produces_result", "parent")

    def __init__(
        self,
        opcode: str,
        operands: Sequence[Value] = (),
        name: Optional[str] = None,
        produces_result: Optional[bool] = None,
    ) -> None:
        super().__init__(name)
        self.opcode = opcode
        self.operands: Tuple[Value, ...] = tuple(operands)
        if produces_result is None:
            produces_result = opcode not in VOID_OPCODES
        self.produces_result = produces_result
        self.parent: Optional[BasicBlock] = None

    @property
    def kind(self) -> InstructionKind:
        return opcode_kind(self.opcode)

    @property
    def is_terminator(self) -> bool:
        return self.opcode in TERMINATOR_OPCODES

    @property
    def is_tracked(self) -> bool:
        return self.produces_result

    @property
    def pointer_operand(self) -> Optional[Value]:
        """Address operand of ``load``, ``store`` and ``getelementptr``."""
        if self.opcode == "store":
            return self.operands[1] if len(self.operands) > 1 else None
        if self.opcode in ("load", "getelementptr"):
            return self.operands[0] if self.operands else None
        return None

    @property
    def value_operand(self) -> Optional[Value]:
        """Stored value of a ``store``."""
        if self.opcode == "store" and self.operands:
            return self.operands[0]
        return None

    def __repr__(self) -> str:
        if self.produces_result and self.name:
            return f"<Instruction %{self.name} = {self.opcode}>"
        return f"<Instruction {self.opcode}>"


class BasicBlock(Value):
    """A basic block: ordered instructions plus CFG adjacency.

    Blocks appear as ``label`` operands of terminators and are never
    liveness-tracked.
    """

    __slots__ = ("instructions", "predecessors", "successors", "parent")

    is_label = True

    def __init__(self, name: Optional[str] = None, parent: Optional["Function"] = None) -> None:
        super().__init__(name)
        self.instructions: List[Instruction] = []
        self.predecessors: List[BasicBlock] = []
        self.successors: List[BasicBlock] = []
        self.parent = parent

    def append(self, instruction: Instruction) -> Instruction:
        instruction.parent = self
        self.instructions.append(instruction)
        return instruction

    def add(
        self,
        opcode: str,
        *operands: Value,
        name: Optional[str] = None,
        produces_result: Optional[bool] = None,
    ) -> Instruction:
        """Create an instruction and append it to this block."""
        return self.append(Instruction(opcode, operands, name, produces_result))

    @property
    def terminator(self) -> Optional[Instruction]:
        """The final instruction if it transfers control, else ``None``."""
        if self.instructions and self.instructions[-1].is_terminator:
            return self.instructions[-1]
        return None

    @property
    def first(self) -> Optional[Instruction]:
        return self.instructions[0] if self.instructions else None

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    def __len__(self) -> int:
        return len(self.instructions)

    def __repr__(self) -> str:
        return f"<BasicBlock %{self.name}>"


# ===========================================================================
# FUNCTION
# ===========================================================================

class Function:
    """One function: arguments plus ordered blocks.  The first block is
    the entry."""

    def __init__(self, name: str, arguments: Iterable[Optional[str]] = ()) -> None:
        self.name = name
        self.arguments: List[Argument] = [
            Argument(arg, i, self) for i, arg in enumerate(arguments)
        ]
        self.blocks: List[BasicBlock] = []

    # ----- construction ---------------------------------------------------

    def add_argument(self, name: Optional[str] = None) -> Argument:
        arg = Argument(name, len(self.arguments), self)
        self.arguments.append(arg)
        return arg

    def add_block(self, name: Optional[str] = None) -> BasicBlock:
        block = BasicBlock(name, self)
        self.blocks.append(block)
        return block

    @staticmethod
    def const(value: Any) -> Constant:
        return Constant(value)

    def add_edge(self, source: BasicBlock, target: BasicBlock) -> None:
        """Record the CFG edge ``source -> target`` on both endpoints."""
        if target not in source.successors:
            source.successors.append(target)
        if source not in target.predecessors:
            target.predecessors.append(source)

    def infer_edges(self, blocks: Optional[Iterable[BasicBlock]] = None) -> None:
        """Derive CFG edges from the label operands of the terminators of
        *blocks* (every block when ``None``)."""
        for block in self.blocks if blocks is None else blocks:
            term = block.terminator
            if term is None:
                continue
            for op in term.operands:
                if isinstance(op, BasicBlock):
                    self.add_edge(block, op)

    # ----- queries --------------------------------------------------------

    @property
    def entry(self) -> Optional[BasicBlock]:
        return self.blocks[0] if self.blocks else None

    def block(self, name: str) -> BasicBlock:
        for block in self.blocks:
            if block.name == name:
                return block
        raise KeyError(name)

    def instructions(self) -> Iterator[Instruction]:
        for block in self.blocks:
            yield from block.instructions

    def values(self) -> List[Value]:
        """Every tracked value defined in the function, in layout order."""
        result: List[Value] = list(self.arguments)
        result.extend(i for i in self.instructions() if i.produces_result)
        return result

    def __iter__(self) -> Iterator[BasicBlock]:
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)

    def __repr__(self) -> str:
        return f"<Function {self.name}: {len(self.blocks)} blocks>"
