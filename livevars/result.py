"""
livevars.result
===============

Read-only container for a finished liveness run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Tuple

from .ir import BasicBlock, Function, Instruction, Value
from .valueset import ValueSet


@dataclass(frozen=True)
class LivenessResult:
    """Liveness tables of one function.

    Attributes
    ----------
    function : Function
        The analysed function.
    in_sets : mapping
        Block -> values live on entry to the block.
    exit_sets : mapping
        Block -> values live on exit from the block (the merged input of
        its backward walk).
    out_sets : mapping
        Instruction -> values live immediately before the instruction.
    converged : bool
        ``True`` once a full sweep changed nothing.
    sweeps : int
        Number of sweeps performed, including the final stable one.
    changed_blocks : tuple[int, ...]
        How many blocks each sweep recomputed.
    elapsed_seconds : float
        Wall-clock time spent sweeping.
    """
    function: Function
    in_sets: Mapping[BasicBlock, ValueSet]
    exit_sets: Mapping[BasicBlock, ValueSet]
    out_sets: Mapping[Instruction, ValueSet]
    converged: bool = False
    sweeps: int = 0
    changed_blocks: Tuple[int, ...] = ()
    elapsed_seconds: float = field(default=0.0, compare=False)

    def __post_init__(self) -> None:
        for name in ("in_sets", "exit_sets", "out_sets"):
            table = getattr(self, name)
            if not isinstance(table, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(table)))

    # ----- queries --------------------------------------------------------

    def in_set(self, block: BasicBlock) -> ValueSet:
        return self.in_sets[block]

    def exit_set(self, block: BasicBlock) -> ValueSet:
        return self.exit_sets[block]

    def out_set(self, instruction: Instruction) -> ValueSet:
        return self.out_sets[instruction]

    def is_live_in(self, value: Value, block: BasicBlock) -> bool:
        return value in self.in_sets[block]

    def is_live_before(self, value: Value, instruction: Instruction) -> bool:
        return value in self.out_sets[instruction]

    def items_in(self) -> Iterable[Tuple[BasicBlock, ValueSet]]:
        """Iterate over ``(block, in_set)`` pairs in layout order."""
        return ((b, self.in_sets[b]) for b in self.function.blocks)

    def live_values(self) -> ValueSet:
        """Every value live somewhere in the function."""
        result = ValueSet()
        for live in self.out_sets.values():
            result = result.union(live)
        return result

    def snapshot(self) -> Tuple[Any, ...]:
        """Ordered, comparable copy of all tables in layout order."""
        return tuple(
            (
                self.in_sets[b].as_tuple(),
                self.exit_sets[b].as_tuple(),
                tuple(self.out_sets[i].as_tuple() for i in b.instructions),
            )
            for b in self.function.blocks
        )
