"""
livevars.reporting
==================

Renderers for :class:`~livevars.result.LivenessResult`.

    SlotTracker          - stable names for unnamed values (``%0``, ``%1``...)
    format_operand       - ``%x`` / ``label %bb`` / ``42``
    format_instruction   - ``%x = add %a, 1``
    format_text          - per-block listing: live set, then instruction
    format_dot           - Graphviz DOT digraph of the CFG with live sets
    to_json, format_json - structured output

The text layout lists, for every instruction, the set live immediately
before it, followed by the instruction; the block's entry set closes each
block.  Only converged results are rendered; a mid-run snapshot raises
:class:`~livevars.errors.NotConvergedError`.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

from .errors import NotConvergedError
from .ir import BasicBlock, Constant, Function, Instruction, Value
from .result import LivenessResult


class SlotTracker:
    """Numbers the unnamed values of one function in layout order:
    arguments first, then blocks and instruction results as they appear."""

    def __init__(self, function: Function) -> None:
        self.function = function
        self._slots: Dict[int, int] = {}
        next_slot = 0
        for arg in function.arguments:
            if not arg.name:
                self._slots[id(arg)] = next_slot
                next_slot += 1
        for block in function.blocks:
            if not block.name:
                self._slots[id(block)] = next_slot
                next_slot += 1
            for instr in block.instructions:
                if instr.produces_result and not instr.name:
                    self._slots[id(instr)] = next_slot
                    next_slot += 1

    def name_of(self, value: Value) -> str:
        if value.name:
            return value.name
        slot = self._slots.get(id(value))
        return str(slot) if slot is not None else "?"


def _constant_text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_operand(value: Value, slots: Optional[SlotTracker] = None) -> str:
    if isinstance(value, Constant):
        return _constant_text(value.value)
    name = slots.name_of(value) if slots else (value.name or "?")
    if isinstance(value, BasicBlock):
        return f"label %{name}"
    return f"%{name}"


def format_instruction(instr: Instruction, slots: Optional[SlotTracker] = None) -> str:
    operands = ", ".join(format_operand(op, slots) for op in instr.operands)
    text = f"{instr.opcode} {operands}" if operands else instr.opcode
    if instr.produces_result:
        text = f"{format_operand(instr, slots)} = {text}"
    return text


def format_set(values: Iterable[Value], slots: Optional[SlotTracker] = None) -> str:
    return "{" + ", ".join(format_operand(v, slots) for v in values) + "}"


def _require_converged(result: LivenessResult) -> None:
    if not result.converged:
        raise NotConvergedError(
            f"liveness of '{result.function.name}' is a mid-run snapshot "
            f"(after {result.sweeps} sweeps)",
            hint="render the result of solve()",
        )


def format_text(result: LivenessResult) -> str:
    _require_converged(result)
    slots = SlotTracker(result.function)
    lines: List[str] = []
    for block in result.function.blocks:
        lines.append(f"BB: %{slots.name_of(block)}")
        for instr in block.instructions:
            lines.append(format_set(result.out_set(instr), slots))
            lines.append("  " + format_instruction(instr, slots))
        lines.append(format_set(result.in_set(block), slots))
    return "\n".join(lines) + "\n"


def _dot_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def format_dot(result: LivenessResult, title: Optional[str] = None) -> str:
    """Return a Graphviz DOT digraph with one box per block."""
    _require_converged(result)
    fn = result.function
    slots = SlotTracker(fn)
    lines = [f'digraph "{_dot_escape(fn.name)}" {{']
    if title:
        lines.append(f'  label="{_dot_escape(title)}";')
    lines.append("  node [shape=box, fontname=monospace, fontsize=10];")
    for block in fn.blocks:
        name = slots.name_of(block)
        body = [f"%{name}", "in: " + format_set(result.in_set(block), slots)]
        body.extend(format_instruction(i, slots) for i in block.instructions)
        body.append("exit: " + format_set(result.exit_set(block), slots))
        label = "\\l".join(_dot_escape(line) for line in body) + "\\l"
        color = ""
        if block is fn.entry:
            color = ', style=filled, fillcolor="#ccffcc"'
        elif not block.successors:
            color = ', style=filled, fillcolor="#ffcccc"'
        lines.append(f'  "{_dot_escape(name)}" [label="{label}"{color}];')
    for block in fn.blocks:
        for succ in block.successors:
            lines.append(
                f'  "{_dot_escape(slots.name_of(block))}" -> '
                f'"{_dot_escape(slots.name_of(succ))}";'
            )
    lines.append("}")
    return "\n".join(lines)


def to_json(result: LivenessResult) -> Dict[str, Any]:
    _require_converged(result)
    fn = result.function
    slots = SlotTracker(fn)

    def names(values: Iterable[Value]) -> List[str]:
        return [format_operand(v, slots) for v in values]

    return {
        "function": fn.name,
        "converged": result.converged,
        "sweeps": result.sweeps,
        "blocks": [
            {
                "name": slots.name_of(block),
                "successors": [slots.name_of(s) for s in block.successors],
                "in": names(result.in_set(block)),
                "exit": names(result.exit_set(block)),
                "instructions": [
                    {
                        "text": format_instruction(instr, slots),
                        "live": names(result.out_set(instr)),
                    }
                    for instr in block.instructions
                ],
            }
            for block in fn.blocks
        ],
    }


def format_json(results: Iterable[LivenessResult], indent: int = 2) -> str:
    return json.dumps([to_json(r) for r in results], indent=indent)
