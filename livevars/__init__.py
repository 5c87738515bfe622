"""
livevars — Intraprocedural Liveness Analysis
============================================

Computes, for every point of one function's control-flow graph, the set of
values that may still be read later.  The engine is a per-instruction
Gen/Kill classifier plus a round-robin fixpoint solver propagating
liveness backward across the CFG.

Core modules
------------
ir
    Value identity model, instructions, basic blocks and functions.
valueset
    Ordered, duplicate-free value sets and the powerset lattice.
classifier
    Instruction taxonomy and Gen/Kill rules.
validate
    Rejection of malformed functions before a run.
solver
    The fixpoint state machine.
result
    Frozen, read-only result tables.
loader
    JSON program documents → functions.
reporting
    Text, DOT and JSON renderers.

Quick start
-----------
>>> from livevars import Function, analyze
>>> fn = Function("f", ["p", "q"])
>>> p, q = fn.arguments
>>> bb = fn.add_block("entry")
>>> x = bb.add("load", p, name="x")
>>> y = bb.add("add", x, fn.const(1), name="y")
>>> _ = bb.add("store", y, q)
>>> _ = bb.add("ret")
>>> [v.name for v in analyze(fn).in_set(bb)]
['q', 'p']
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import TYPE_CHECKING, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__all__: List[str] = []          # populated below

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Re-export registry: (module_name, names)
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "LivenessError",
        "MalformedFunctionError",
        "LoaderError",
        "NotConvergedError",
        "ErrorCodes",
    ],
    "ir": [
        "Value",
        "Argument",
        "Constant",
        "Instruction",
        "BasicBlock",
        "Function",
        "InstructionKind",
        "opcode_kind",
    ],
    "valueset": [
        "ValueSet",
        "ValueSetLattice",
    ],
    "classifier": [
        "GenKill",
        "GenKillTable",
        "classify",
    ],
    "validate": [
        "validate_function",
    ],
    "result": [
        "LivenessResult",
    ],
    "solver": [
        "LivenessSolver",
        "SolverState",
        "SweepOrder",
        "analyze",
    ],
    "loader": [
        "load_program",
        "load_path",
        "loads",
    ],
    "reporting": [
        "format_text",
        "format_dot",
        "format_json",
        "to_json",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        raise ImportError(
            f"livevars: required submodule '{module_rel_name}' "
            f"failed to import: {exc}"
        ) from exc

    current_module = sys.modules[__name__]
    for name in names:
        obj = getattr(mod, name, None)
        if obj is None:
            raise AttributeError(f"livevars.{module_rel_name} does not export '{name}'")
        setattr(current_module, name, obj)
        __all__.append(name)

    setattr(current_module, module_rel_name, mod)
    if module_rel_name not in __all__:
        __all__.append(module_rel_name)


for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names)

del _mod, _names


def list_submodules() -> List[str]:
    """Return the names of all re-exported submodules."""
    return sorted(_CORE_MODULES)


__all__ += ["list_submodules", "__version__"]

if TYPE_CHECKING:
    from .classifier import GenKill as GenKill, GenKillTable as GenKillTable, classify as classify
    from .errors import (
        ErrorCodes as ErrorCodes,
        LivenessError as LivenessError,
        LoaderError as LoaderError,
        MalformedFunctionError as MalformedFunctionError,
        NotConvergedError as NotConvergedError,
    )
    from .ir import (
        Argument as Argument,
        BasicBlock as BasicBlock,
        Constant as Constant,
        Function as Function,
        Instruction as Instruction,
        InstructionKind as InstructionKind,
        Value as Value,
        opcode_kind as opcode_kind,
    )
    from .loader import load_path as load_path, load_program as load_program, loads as loads
    from .reporting import (
        format_dot as format_dot,
        format_json as format_json,
        format_text as format_text,
        to_json as to_json,
    )
    from .result import LivenessResult as LivenessResult
    from .solver import (
        LivenessSolver as LivenessSolver,
        SolverState as SolverState,
        SweepOrder as SweepOrder,
        analyze as analyze,
    )
    from .validate import validate_function as validate_function
    from .valueset import ValueSet as ValueSet, ValueSetLattice as ValueSetLattice
