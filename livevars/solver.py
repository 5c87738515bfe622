"""
livevars.solver
===============

Round-robin fixpoint solver for backward liveness.

Equations
---------
For a block ``B`` with CFG successors ``S1 .. Sn``::

    exit(B)  = in(S1) ∪ ... ∪ in(Sn)
    out(I)   = (out(next(I)) ∪ gen(I)) \\ kill(I)   walking B last to first,
               starting from exit(B)
    in(B)    = out(first(B))

``out(I)`` is the set live immediately before ``I``.  A successor that
has not been computed yet contributes the empty set.

State machine
-------------
The solver starts ``UNCONVERGED``.  Each :meth:`LivenessSolver.sweep`
visits every block once; a block whose merged exit set equals the stored
one is skipped, any other block is re-walked and counts as a change.  The
first sweep that changes nothing moves the solver to ``CONVERGED``, after
which :meth:`LivenessSolver.result` hands out frozen tables.

Both the flow function and the merge are monotone over the finite
powerset of the function's values, so the sweep count is bounded and the
result does not depend on :class:`SweepOrder`; only the number of sweeps
does.  Sweeps must run to completion before tables are read.

Usage example
-------------
::

    from livevars import analyze

    result = analyze(fn)
    for block, live in result.items_in():
        print(block.name, [v.name for v in live])
"""

from __future__ import annotations

import enum
import logging
import time
from typing import Dict, List, Optional, Sequence, Union

from .classifier import GenKillTable
from .errors import NotConvergedError
from .ir import BasicBlock, Function, Instruction
from .result import LivenessResult
from .validate import validate_function
from .valueset import EMPTY, ValueSet

logger = logging.getLogger(__name__)


class SolverState(enum.Enum):
    UNCONVERGED = "unconverged"
    CONVERGED = "converged"


class SweepOrder(enum.Enum):
    """Order in which a sweep visits blocks."""
    LAYOUT = "layout"
    REVERSE_LAYOUT = "reverse"
    POSTORDER = "postorder"     # successors first; fastest for backward flow


OrderSpec = Union[SweepOrder, str, Sequence[BasicBlock]]


class LivenessSolver:
    """Liveness fixpoint engine for one function.

    Each instance owns its Gen/Kill table and its In/Exit/Out tables;
    nothing is shared between instances.

    Parameters
    ----------
    function : Function
        The function to analyse.  Its CFG edges must already be present.
    order : SweepOrder, str or sequence of BasicBlock
        Block visiting order.  An explicit sequence must be a permutation
        of ``function.blocks``.
    validate : bool
        Run :func:`~livevars.validate.validate_function` first.
    table : GenKillTable, optional
        Pre-built classification for *function*.
    """

    def __init__(
        self,
        function: Function,
        *,
        order: OrderSpec = SweepOrder.LAYOUT,
        validate: bool = True,
        table: Optional[GenKillTable] = None,
    ) -> None:
        if validate:
            validate_function(function)
        if table is not None and table.function is not function:
            raise ValueError("GenKillTable was built for a different function")
        self.function = function
        self.table = table if table is not None else GenKillTable.build(function)
        self.order: List[BasicBlock] = self._resolve_order(order)
        self.state = SolverState.UNCONVERGED
        self.sweeps = 0
        self.changed_blocks: List[int] = []
        self._elapsed = 0.0
        self._in_sets: Dict[BasicBlock, ValueSet] = {}
        self._exit_sets: Dict[BasicBlock, ValueSet] = {}
        self._out_sets: Dict[Instruction, ValueSet] = {}

    @property
    def converged(self) -> bool:
        return self.state is SolverState.CONVERGED

    # ----- equations ------------------------------------------------------

    def merged_exit(self, block: BasicBlock) -> ValueSet:
        """Union of the entry sets of *block*'s successors."""
        merged = EMPTY
        for succ in block.successors:
            merged = merged.union(self._in_sets.get(succ, EMPTY))
        return merged

    def update_block(self, block: BasicBlock) -> bool:
        """Recompute *block* if its exit set changed; return whether it did."""
        merged = self.merged_exit(block)
        previous = self._exit_sets.get(block)
        if previous is not None and previous.equals(merged):
            return False

        self._exit_sets[block] = merged
        live = merged
        for instr in reversed(block.instructions):
            live = self.table[instr].transfer(live)
            self._out_sets[instr] = live
        self._in_sets[block] = live
        return True

    # ----- driving --------------------------------------------------------

    def sweep(self) -> bool:
        """Run one full sweep; return ``True`` if any block changed."""
        t0 = time.monotonic()
        changed = 0
        for block in self.order:
            if self.update_block(block):
                changed += 1
        self._elapsed += time.monotonic() - t0
        self.sweeps += 1
        self.changed_blocks.append(changed)
        logger.debug(
            "%s: sweep %d recomputed %d of %d blocks",
            self.function.name, self.sweeps, changed, len(self.order),
        )
        if not changed:
            self.state = SolverState.CONVERGED
        return changed > 0

    def solve(self) -> LivenessResult:
        """Sweep until convergence and return the frozen tables."""
        while self.sweep():
            pass
        logger.info(
            "%s: liveness converged after %d sweeps (%.3f ms)",
            self.function.name, self.sweeps, self._elapsed * 1e3,
        )
        return self.result()

    def result(self) -> LivenessResult:
        """Return the converged tables.

        Raises
        ------
        NotConvergedError
            If the last sweep still changed something.
        """
        if not self.converged:
            raise NotConvergedError(
                f"liveness of '{self.function.name}' has not converged "
                f"after {self.sweeps} sweeps",
                hint="call solve() or sweep() until it returns False",
            )
        return self.snapshot()

    def snapshot(self) -> LivenessResult:
        """Copy of the current tables; only meaningful between sweeps."""
        blocks = self.function.blocks
        return LivenessResult(
            function=self.function,
            in_sets={b: self._in_sets.get(b, EMPTY) for b in blocks},
            exit_sets={b: self._exit_sets.get(b, EMPTY) for b in blocks},
            out_sets={
                i: self._out_sets.get(i, EMPTY)
                for i in self.function.instructions()
            },
            converged=self.converged,
            sweeps=self.sweeps,
            changed_blocks=tuple(self.changed_blocks),
            elapsed_seconds=self._elapsed,
        )

    # ----- ordering -------------------------------------------------------

    def _resolve_order(self, order: OrderSpec) -> List[BasicBlock]:
        if isinstance(order, str):
            order = SweepOrder(order)
        if isinstance(order, SweepOrder):
            if order is SweepOrder.LAYOUT:
                return list(self.function.blocks)
            if order is SweepOrder.REVERSE_LAYOUT:
                return list(reversed(self.function.blocks))
            return postorder(self.function)

        blocks = list(order)
        if len(blocks) != len(self.function.blocks) or {
            id(b) for b in blocks
        } != {id(b) for b in self.function.blocks}:
            raise ValueError(
                "explicit sweep order must be a permutation of the "
                "function's blocks"
            )
        return blocks


def postorder(function: Function) -> List[BasicBlock]:
    """DFS post-order over successors, from the entry block first, then
    from any block the entry cannot reach."""
    visited = set()
    order: List[BasicBlock] = []

    for root in function.blocks:
        if id(root) in visited:
            continue
        visited.add(id(root))
        stack = [(root, iter(root.successors))]
        while stack:
            node, succs = stack[-1]
            for succ in succs:
                if id(succ) not in visited:
                    visited.add(id(succ))
                    stack.append((succ, iter(succ.successors)))
                    break
            else:
                stack.pop()
                order.append(node)
    return order


def analyze(function: Function, **kwargs) -> LivenessResult:
    """Build a :class:`LivenessSolver` for *function* and solve it."""
    return LivenessSolver(function, **kwargs).solve()
