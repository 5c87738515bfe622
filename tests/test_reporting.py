# tests/test_reporting.py
"""
Tests for the text, DOT and JSON renderers.
"""

import json

import pytest

from livevars.errors import NotConvergedError
from livevars.ir import Constant, Function
from livevars.reporting import (
    SlotTracker, format_dot, format_instruction, format_json, format_operand,
    format_set, format_text, to_json,
)
from livevars.solver import LivenessSolver, analyze


STRAIGHT_LINE_TEXT = """\
BB: %entry
{%q, %p}
  %x = load %p
{%q, %x}
  %y = add %x, 1
{%q, %y}
  store %y, %q
{}
  ret
{%q, %p}
"""


class TestOperands:

    def test_constants(self):
        assert format_operand(Constant(None)) == "null"
        assert format_operand(Constant(True)) == "true"
        assert format_operand(Constant(-3)) == "-3"
        assert format_operand(Constant("@g")) == "@g"

    def test_named_values(self, diamond):
        fn, h = diamond
        assert format_operand(h.v) == "%v"
        assert format_operand(h.B) == "label %B"

    def test_instructions(self, straight_line):
        fn, h = straight_line
        assert format_instruction(h.x) == "%x = load %p"
        assert format_instruction(h.y) == "%y = add %x, 1"
        assert format_instruction(h.store) == "store %y, %q"
        assert format_instruction(h.ret) == "ret"

    def test_branch(self, diamond):
        fn, h = diamond
        assert format_instruction(h.entry.terminator) == "br %c, label %A, label %B"


class TestSlotTracker:

    def test_unnamed_values_numbered(self):
        fn = Function("g", [None, "named"])
        anon, named = fn.arguments
        bb = fn.add_block()
        add = bb.add("add", anon, named)
        bb.add("ret", add)
        slots = SlotTracker(fn)
        assert slots.name_of(anon) == "0"
        assert slots.name_of(bb) == "1"
        assert slots.name_of(add) == "2"
        assert format_instruction(add, slots) == "%2 = add %0, %named"

    def test_trackers_are_per_function(self):
        first = Function("a", [None])
        second = Function("b", [None])
        assert SlotTracker(first).name_of(first.arguments[0]) == "0"
        assert SlotTracker(second).name_of(second.arguments[0]) == "0"


class TestText:

    def test_straight_line_listing(self, straight_line):
        fn, _ = straight_line
        assert format_text(analyze(fn)) == STRAIGHT_LINE_TEXT

    def test_every_block_listed(self, diamond):
        fn, _ = diamond
        text = format_text(analyze(fn))
        for name in ("entry", "A", "B", "C"):
            assert f"BB: %{name}" in text

    def test_format_set(self, straight_line):
        fn, h = straight_line
        assert format_set([h.p, h.q]) == "{%p, %q}"
        assert format_set([]) == "{}"


class TestDot:

    def test_structure(self, diamond):
        fn, _ = diamond
        dot = format_dot(analyze(fn), title="liveness")
        assert dot.startswith('digraph "diamond" {')
        assert dot.rstrip().endswith("}")
        assert 'label="liveness";' in dot
        assert '"entry" -> "A";' in dot
        assert '"B" -> "C";' in dot
        assert "in: {%v}" in dot
        assert 'fillcolor="#ccffcc"' in dot


class TestMidRunSnapshot:

    @pytest.mark.parametrize("render", [format_text, format_dot, to_json])
    def test_unconverged_rejected(self, diamond, render):
        fn, _ = diamond
        solver = LivenessSolver(fn)
        solver.sweep()
        with pytest.raises(NotConvergedError):
            render(solver.snapshot())

    def test_converged_snapshot_renders(self, straight_line):
        fn, _ = straight_line
        solver = LivenessSolver(fn)
        solver.solve()
        assert format_text(solver.snapshot()) == STRAIGHT_LINE_TEXT


class TestJson:

    def test_to_json(self, straight_line):
        fn, _ = straight_line
        doc = to_json(analyze(fn))
        assert doc["function"] == "straight"
        assert doc["converged"] is True
        (block,) = doc["blocks"]
        assert block["in"] == ["%q", "%p"]
        assert block["exit"] == []
        assert block["instructions"][0] == {"text": "%x = load %p", "live": ["%q", "%p"]}

    def test_format_json_round_trips(self, diamond):
        fn, _ = diamond
        decoded = json.loads(format_json([analyze(fn)]))
        assert decoded[0]["blocks"][2]["in"] == ["%v"]
        assert decoded[0]["blocks"][0]["successors"] == ["A", "B"]
