"""
livevars.loader
===============

Builds :class:`~livevars.ir.Function` objects from JSON program documents.

Document format
---------------
::

    {
      "functions": [
        {
          "name": "f",
          "arguments": ["p", "q"],
          "blocks": [
            {
              "name": "entry",
              "instructions": [
                {"name": "x", "opcode": "load", "operands": ["%p"]},
                {"name": "y", "opcode": "add", "operands": ["%x", 1]},
                {"opcode": "store", "operands": ["%y", "%q"]},
                {"opcode": "ret"}
              ]
            }
          ]
        }
      ]
    }

Operands
    ``"%name"`` references an argument or a named instruction (forward
    references are fine), ``"label %bb"`` references a block, anything
    else (numbers, ``true``/``false``/``null``, ``"@global"``,
    ``"undef"``) is a constant.

Results
    An instruction with a ``"name"`` produces a result.  ``"void": true``
    or ``"void": false`` overrides that; unnamed instructions without the
    key fall back to the opcode default.

Edges
    A block carrying ``"successors"`` gets exactly those edges.  Edges of
    any other block are inferred from its terminator's label operands.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .errors import (
    FunctionNotFoundError,
    ProgramFormatError,
    UndefinedBlockError,
    UndefinedValueError,
)
from .ir import BasicBlock, Constant, Function, Instruction, Value

logger = logging.getLogger(__name__)

Document = Union[Mapping[str, Any], Sequence[Any]]


def load_program(document: Document) -> List[Function]:
    """Build every function of a decoded program document.

    *document* is either ``{"functions": [...]}``, a list of function
    objects, or a single function object.
    """
    if isinstance(document, Mapping):
        if "functions" in document:
            docs = document["functions"]
        elif "blocks" in document:
            docs = [document]
        else:
            raise ProgramFormatError(
                "program document needs a 'functions' list or a 'blocks' list"
            )
    else:
        docs = document
    if not isinstance(docs, Sequence) or isinstance(docs, (str, bytes)):
        raise ProgramFormatError("'functions' must be a list")
    return [build_function(doc) for doc in docs]


def loads(text: str) -> List[Function]:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProgramFormatError(f"invalid JSON: {exc}") from exc
    return load_program(document)


def load_path(path: Union[str, Path]) -> List[Function]:
    p = Path(path)
    logger.debug("loading program from %s", p)
    return loads(p.read_text(encoding="utf-8"))


def select(functions: Sequence[Function], names: Optional[Sequence[str]]) -> List[Function]:
    """Return the functions called *names* (all of them when ``None``)."""
    if not names:
        return list(functions)
    by_name = {fn.name: fn for fn in functions}
    missing = [n for n in names if n not in by_name]
    if missing:
        raise FunctionNotFoundError(missing[0], available=list(by_name))
    return [by_name[n] for n in names]


# ---------------------------------------------------------------------------
# Function construction
# ---------------------------------------------------------------------------

def build_function(doc: Mapping[str, Any]) -> Function:
    if not isinstance(doc, Mapping):
        raise ProgramFormatError("function entry must be an object")
    name = doc.get("name")
    if not isinstance(name, str) or not name:
        raise ProgramFormatError("function entry needs a non-empty 'name'")
    block_docs = _list(doc, "blocks", name)
    arguments = _list(doc, "arguments", name, default=[])

    fn = Function(name, [a or None for a in arguments])
    values: Dict[str, Value] = {}
    for arg in fn.arguments:
        if arg.name:
            _define(values, arg.name, arg, name)

    blocks: Dict[str, BasicBlock] = {}
    pending = []
    for bdoc in block_docs:
        if not isinstance(bdoc, Mapping):
            raise ProgramFormatError(f"{name}: block entry must be an object")
        bname = bdoc.get("name")
        block = fn.add_block(bname)
        if bname:
            if bname in blocks:
                raise ProgramFormatError(f"{name}: duplicate block '{bname}'")
            blocks[bname] = block
        for idoc in _list(bdoc, "instructions", name):
            instr = _make_instruction(idoc, name)
            block.append(instr)
            if instr.name:
                _define(values, instr.name, instr, name)
            pending.append((instr, idoc.get("operands", [])))

    for instr, operands in pending:
        if not isinstance(operands, list):
            raise ProgramFormatError(f"{name}: 'operands' must be a list")
        instr.operands = tuple(
            _operand(op, values, blocks, name) for op in operands
        )

    inferred = []
    for bdoc, block in zip(block_docs, fn.blocks):
        if "successors" not in bdoc:
            inferred.append(block)
            continue
        for target in _list(bdoc, "successors", name):
            if not isinstance(target, str) or target not in blocks:
                raise UndefinedBlockError(str(target), name)
            fn.add_edge(block, blocks[target])
    fn.infer_edges(inferred)

    logger.debug(
        "loaded %s: %d arguments, %d blocks, %d instructions",
        name, len(fn.arguments), len(fn.blocks), len(pending),
    )
    return fn


def _list(doc: Mapping[str, Any], key: str, fn_name: str, default: Any = None) -> list:
    value = doc.get(key, default)
    if not isinstance(value, list):
        raise ProgramFormatError(f"{fn_name}: '{key}' must be a list")
    return value


def _define(values: Dict[str, Value], name: str, value: Value, fn_name: str) -> None:
    if name in values:
        raise ProgramFormatError(f"{fn_name}: '%{name}' defined twice")
    values[name] = value


def _make_instruction(doc: Any, fn_name: str) -> Instruction:
    if not isinstance(doc, Mapping) or not isinstance(doc.get("opcode"), str):
        raise ProgramFormatError(f"{fn_name}: instruction needs an 'opcode'")
    name = doc.get("name") or None
    if "void" in doc:
        if not isinstance(doc["void"], bool):
            raise ProgramFormatError(f"{fn_name}: 'void' must be true or false")
        produces_result: Optional[bool] = not doc["void"]
    elif name:
        produces_result = True
    else:
        produces_result = None
    return Instruction(doc["opcode"], (), name, produces_result)


def _operand(
    raw: Any,
    values: Dict[str, Value],
    blocks: Dict[str, BasicBlock],
    fn_name: str,
) -> Value:
    if raw is None or isinstance(raw, (bool, int, float)):
        return Constant(raw)
    if not isinstance(raw, str):
        raise ProgramFormatError(f"{fn_name}: unsupported operand {raw!r}")
    if raw.startswith("label "):
        target = raw[len("label "):].strip().lstrip("%")
        if target not in blocks:
            raise UndefinedBlockError(target, fn_name)
        return blocks[target]
    if raw.startswith("%"):
        ref = raw[1:]
        if ref not in values:
            raise UndefinedValueError(ref, fn_name)
        return values[ref]
    return Constant(raw)
