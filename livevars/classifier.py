"""
livevars.classifier
===================

Per-instruction Gen/Kill classification.

``Gen(I)`` is the set of values *I* reads; ``Kill(I)`` is the set of
values *I* defines.  Both are functions of the instruction's opcode and
operands only.  The policy:

* Kill is ``{I}`` when *I* produces a result, otherwise empty.
* Gen is every operand that is neither a constant nor a block label.
* ``store`` generates its address and stored value, and kills nothing.
* ``load`` and ``getelementptr`` generate only their address operand.
* ``fence`` and ``unreachable`` contribute nothing.
* Unknown opcodes are classified as ``OTHER`` and use the default rule,
  which over-approximates liveness rather than dropping the instruction
  from the system.

Rules are looked up per opcode first and per :class:`InstructionKind`
second, so adding an opcode usually means adding it to the taxonomy in
:mod:`livevars.ir` and nothing here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Iterator, Mapping, Tuple

from .ir import Function, Instruction, InstructionKind, Value, is_known_opcode
from .valueset import EMPTY, ValueSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenKill:
    """Gen/Kill contribution of a single instruction."""
    gen: ValueSet
    kill: ValueSet

    def transfer(self, live: ValueSet) -> ValueSet:
        """Backward flow function: ``(live ∪ gen) \\ kill``."""
        return live.union(self.gen).remove_all(self.kill)


Rule = Callable[[Instruction], ValueSet]


# ---------------------------------------------------------------------------
# Gen rules
# ---------------------------------------------------------------------------

def _tracked(operands: Iterable[Value]) -> ValueSet:
    return ValueSet(op for op in operands if op is not None and op.is_tracked)


def gen_operands(instr: Instruction) -> ValueSet:
    return _tracked(instr.operands)


def gen_address(instr: Instruction) -> ValueSet:
    return _tracked((instr.pointer_operand,))


def gen_store(instr: Instruction) -> ValueSet:
    return _tracked((instr.pointer_operand, instr.value_operand))


def gen_nothing(instr: Instruction) -> ValueSet:
    return EMPTY


# ---------------------------------------------------------------------------
# Kill rules
# ---------------------------------------------------------------------------

def kill_result(instr: Instruction) -> ValueSet:
    return ValueSet((instr,)) if instr.produces_result else EMPTY


def kill_nothing(instr: Instruction) -> ValueSet:
    return EMPTY


_DEFAULT_RULES: Tuple[Rule, Rule] = (gen_operands, kill_result)

KIND_RULES: Mapping[InstructionKind, Tuple[Rule, Rule]] = MappingProxyType({
    kind: _DEFAULT_RULES for kind in InstructionKind
})

OPCODE_RULES: Mapping[str, Tuple[Rule, Rule]] = MappingProxyType({
    "store": (gen_store, kill_nothing),
    "load": (gen_address, kill_result),
    "getelementptr": (gen_address, kill_result),
    "fence": (gen_nothing, kill_nothing),
    "unreachable": (gen_nothing, kill_nothing),
})


def rules_for(instr: Instruction) -> Tuple[Rule, Rule]:
    rules = OPCODE_RULES.get(instr.opcode)
    if rules is None:
        rules = KIND_RULES[instr.kind]
    return rules


def classify(instr: Instruction) -> GenKill:
    """Return the :class:`GenKill` of *instr*."""
    gen_rule, kill_rule = rules_for(instr)
    return GenKill(gen=gen_rule(instr), kill=kill_rule(instr))


# ---------------------------------------------------------------------------
# Per-function table
# ---------------------------------------------------------------------------

class GenKillTable(Mapping[Instruction, GenKill]):
    """Immutable Gen/Kill table for every instruction of one function.

    Built in a single pass by :meth:`build`; never mutated afterwards.
    """

    def __init__(self, entries: Dict[Instruction, GenKill], function: Function) -> None:
        self._entries = MappingProxyType(dict(entries))
        self.function = function

    @classmethod
    def build(cls, function: Function) -> "GenKillTable":
        entries: Dict[Instruction, GenKill] = {}
        unknown = set()
        for instr in function.instructions():
            if not is_known_opcode(instr.opcode):
                unknown.add(instr.opcode)
            entries[instr] = classify(instr)
        for opcode in sorted(unknown):
            logger.debug(
                "%s: opcode '%s' not in taxonomy; using conservative rule",
                function.name, opcode,
            )
        return cls(entries, function)

    def gen(self, instr: Instruction) -> ValueSet:
        return self._entries[instr].gen

    def kill(self, instr: Instruction) -> ValueSet:
        return self._entries[instr].kill

    def __getitem__(self, instr: Instruction) -> GenKill:
        return self._entries[instr]

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
