"""
livevars.validate
=================

Structural checks run before a solver starts.

A function is well formed when it has at least one block, every block is
non-empty and ends in exactly one terminator, every CFG edge joins two
blocks of the function and is recorded on both endpoints, every
instruction/argument/label operand belongs to the function, and every
label operand of a terminator is one of its block's successors.  Violations
raise a :class:`~livevars.errors.MalformedFunctionError` subclass.
"""

from __future__ import annotations

from typing import Set

from .errors import (
    DanglingEdgeError,
    EmptyBlockError,
    EmptyFunctionError,
    ForeignOperandError,
    InconsistentEdgeError,
    MisplacedTerminatorError,
    MissingTerminatorError,
)
from .ir import Argument, BasicBlock, Function, Instruction


def validate_function(function: Function) -> None:
    """Raise if *function* violates the CFG contract; return ``None`` otherwise."""
    if not function.blocks:
        raise EmptyFunctionError(function)

    blocks: Set[int] = {id(b) for b in function.blocks}
    defined: Set[int] = {id(a) for a in function.arguments}
    defined.update(id(i) for i in function.instructions())

    for block in function.blocks:
        _check_block(function, block)
        for succ in block.successors:
            if id(succ) not in blocks:
                raise DanglingEdgeError(function, block, succ)
            if not any(p is block for p in succ.predecessors):
                raise InconsistentEdgeError(function, block, succ)
        for pred in block.predecessors:
            if id(pred) not in blocks:
                raise DanglingEdgeError(function, pred, block)
            if not any(s is block for s in pred.successors):
                raise InconsistentEdgeError(function, pred, block)

    for instr in function.instructions():
        for op in instr.operands:
            if isinstance(op, BasicBlock):
                if id(op) not in blocks:
                    raise ForeignOperandError(function, instr, op)
            elif isinstance(op, (Argument, Instruction)):
                if id(op) not in defined:
                    raise ForeignOperandError(function, instr, op)

    # Every label a terminator can transfer to must be a recorded successor.
    for block in function.blocks:
        for op in block.terminator.operands:
            if isinstance(op, BasicBlock) and not any(s is op for s in block.successors):
                raise InconsistentEdgeError(
                    function, block, op,
                    detail="is a branch target missing from the successor list",
                )


def _check_block(function: Function, block: BasicBlock) -> None:
    if not block.instructions:
        raise EmptyBlockError(function, block)
    *body, last = block.instructions
    if not last.is_terminator:
        raise MissingTerminatorError(function, block, last)
    for instr in body:
        if instr.is_terminator:
            raise MisplacedTerminatorError(function, block, instr)
