# tests/test_validate.py
"""
Tests for malformed-function detection.
"""

import pytest

from livevars.errors import (
    DanglingEdgeError, EmptyBlockError, EmptyFunctionError,
    ForeignOperandError, InconsistentEdgeError, LivenessError,
    MalformedFunctionError, MisplacedTerminatorError, MissingTerminatorError,
)
from livevars.ir import Function
from livevars.solver import LivenessSolver
from livevars.validate import validate_function
from tests.conftest import build_counting_loop, build_diamond


class TestWellFormed:

    @pytest.mark.parametrize("builder", [build_diamond, build_counting_loop])
    def test_accepts(self, builder):
        fn, _ = builder()
        assert validate_function(fn) is None


class TestMalformed:

    def test_no_blocks(self):
        with pytest.raises(EmptyFunctionError) as info:
            validate_function(Function("f"))
        assert info.value.code == "LIVE-1000"

    def test_empty_block(self):
        fn = Function("f")
        fn.add_block("entry")
        with pytest.raises(EmptyBlockError):
            validate_function(fn)

    def test_missing_terminator(self):
        fn = Function("f", ["a"])
        fn.add_block("entry").add("add", fn.arguments[0], fn.const(1), name="x")
        with pytest.raises(MissingTerminatorError) as info:
            validate_function(fn)
        assert "entry" in str(info.value)
        assert "LIVE-1002" in str(info.value)

    def test_terminator_mid_block(self):
        fn = Function("f")
        bb = fn.add_block("entry")
        bb.add("ret")
        bb.add("ret")
        with pytest.raises(MisplacedTerminatorError):
            validate_function(fn)

    def test_dangling_successor(self):
        fn = Function("f")
        other = Function("g")
        bb = fn.add_block("entry")
        bb.add("ret")
        outside = other.add_block("elsewhere")
        outside.add("ret")
        fn.add_edge(bb, outside)
        with pytest.raises(DanglingEdgeError):
            validate_function(fn)

    def test_dangling_predecessor(self):
        fn = Function("f")
        other = Function("g")
        bb = fn.add_block("entry")
        bb.add("ret")
        outside = other.add_block("elsewhere")
        outside.add("ret")
        bb.predecessors.append(outside)
        with pytest.raises(DanglingEdgeError):
            validate_function(fn)

    def test_one_sided_edge(self):
        fn = Function("f")
        a = fn.add_block("a")
        b = fn.add_block("b")
        a.add("br", b)
        b.add("ret")
        a.successors.append(b)
        with pytest.raises(InconsistentEdgeError):
            validate_function(fn)

    def test_branch_target_missing_from_successors(self):
        fn = Function("f", ["p"])
        a = fn.add_block("a")
        b = fn.add_block("b")
        c = fn.add_block("c")
        a.add("br", b)
        b.add("br", c)
        c.add("ret", fn.arguments[0])
        fn.add_edge(a, b)
        with pytest.raises(InconsistentEdgeError) as info:
            validate_function(fn)
        assert info.value.source is b
        assert info.value.target is c
        assert "LIVE-1005" in str(info.value)

    def test_foreign_value_operand(self):
        other = Function("g", ["z"])
        fn = Function("f")
        fn.add_block("entry").add("ret", other.arguments[0])
        with pytest.raises(ForeignOperandError):
            validate_function(fn)

    def test_foreign_label_operand(self):
        other = Function("g")
        target = other.add_block("t")
        fn = Function("f")
        fn.add_block("entry").add("br", target)
        with pytest.raises(ForeignOperandError):
            validate_function(fn)

    def test_hierarchy(self):
        assert issubclass(MissingTerminatorError, MalformedFunctionError)
        assert issubclass(MalformedFunctionError, LivenessError)

    def test_solver_can_skip_validation(self):
        fn = Function("f")
        bb = fn.add_block("entry")
        bb.add("ret")
        bb.add("ret")
        with pytest.raises(MisplacedTerminatorError):
            LivenessSolver(fn)
        assert LivenessSolver(fn, validate=False).solve().converged
