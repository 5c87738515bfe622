"""
livevars.errors
===============

Error taxonomy for the liveness package.

Every error raised by :mod:`livevars` derives from :class:`LivenessError`
and carries a structured :class:`ErrorCode` of the form ``LIVE-NNNN``.

Error codes
-----------
  - 1000-1999: malformed function (rejected before the solver runs)
  - 2000-2999: program loading (JSON documents)
  - 3000-3999: result access (tables read before convergence)
  - 9000-9999: internal errors

Hierarchy
---------
::

    LivenessError
    ├── MalformedFunctionError
    │   ├── EmptyFunctionError
    │   ├── EmptyBlockError
    │   ├── MissingTerminatorError
    │   ├── MisplacedTerminatorError
    │   ├── DanglingEdgeError
    │   ├── InconsistentEdgeError
    │   └── ForeignOperandError
    ├── LoaderError
    │   ├── ProgramFormatError
    │   ├── UndefinedValueError
    │   ├── UndefinedBlockError
    │   └── FunctionNotFoundError
    └── NotConvergedError

Classification gaps (unknown opcodes) are deliberately absent: the
classifier falls back to a conservative rule instead of failing.
"""

from __future__ import annotations

import enum
from typing import Any, Optional


class ErrorPhase(enum.Enum):
    """Phase of the analysis pipeline an error belongs to."""
    VALIDATION = "validation"
    LOADING = "loading"
    RESULT = "result"
    INTERNAL = "internal"


class ErrorCode:
    """Structured error code ``LIVE-NNNN``."""

    __slots__ = ("prefix", "number", "phase", "summary")

    def __init__(
        self,
        number: int,
        phase: ErrorPhase,
        summary: str,
        prefix: str = "LIVE",
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.phase = phase
        self.summary = summary

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.phase.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class ErrorCodes:
    """Predefined error codes."""

    # MALFORMED FUNCTION (1000-1999)
    EMPTY_FUNCTION = ErrorCode(1000, ErrorPhase.VALIDATION, "function has no blocks")
    EMPTY_BLOCK = ErrorCode(1001, ErrorPhase.VALIDATION, "block has no instructions")
    MISSING_TERMINATOR = ErrorCode(
        1002, ErrorPhase.VALIDATION, "block does not end with a terminator"
    )
    MISPLACED_TERMINATOR = ErrorCode(
        1003, ErrorPhase.VALIDATION, "terminator in the middle of a block"
    )
    DANGLING_EDGE = ErrorCode(
        1004, ErrorPhase.VALIDATION, "CFG edge points outside the function"
    )
    INCONSISTENT_EDGE = ErrorCode(
        1005, ErrorPhase.VALIDATION, "predecessor/successor lists disagree"
    )
    FOREIGN_OPERAND = ErrorCode(
        1006, ErrorPhase.VALIDATION, "operand defined outside the function"
    )

    # LOADING (2000-2999)
    PROGRAM_FORMAT = ErrorCode(2000, ErrorPhase.LOADING, "malformed program document")
    UNDEFINED_VALUE = ErrorCode(2001, ErrorPhase.LOADING, "reference to undefined value")
    UNDEFINED_BLOCK = ErrorCode(2002, ErrorPhase.LOADING, "reference to undefined block")
    FUNCTION_NOT_FOUND = ErrorCode(2003, ErrorPhase.LOADING, "no such function")

    # RESULT ACCESS (3000-3999)
    NOT_CONVERGED = ErrorCode(3000, ErrorPhase.RESULT, "analysis has not converged")

    # INTERNAL (9000-9999)
    INTERNAL_ERROR = ErrorCode(9000, ErrorPhase.INTERNAL, "internal error")


class LivenessError(Exception):
    """Base exception for all liveness errors."""

    default_code: ErrorCode = ErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.hint = hint

    def with_hint(self, hint: str) -> "LivenessError":
        """Attach a hint to this error."""
        self.hint = hint
        return self

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message}"
        if self.hint:
            text += f" (hint: {self.hint})"
        return text


# ---------------------------------------------------------------------------
# Malformed input
# ---------------------------------------------------------------------------

class MalformedFunctionError(LivenessError):
    """The function handed to the solver violates the CFG contract.

    These are caller errors in whatever built the function; the solver
    never attempts a partial analysis.
    """

    def __init__(self, message: str, function: Any = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.function = function


class EmptyFunctionError(MalformedFunctionError):
    default_code = ErrorCodes.EMPTY_FUNCTION

    def __init__(self, function: Any) -> None:
        super().__init__(
            f"function '{_name(function)}' has no basic blocks",
            function=function,
        )


class EmptyBlockError(MalformedFunctionError):
    default_code = ErrorCodes.EMPTY_BLOCK

    def __init__(self, function: Any, block: Any) -> None:
        super().__init__(
            f"block '{_name(block)}' in '{_name(function)}' has no instructions",
            function=function,
            hint="every block must end with a terminator",
        )
        self.block = block


class MissingTerminatorError(MalformedFunctionError):
    default_code = ErrorCodes.MISSING_TERMINATOR

    def __init__(self, function: Any, block: Any, last: Any = None) -> None:
        opcode = getattr(last, "opcode", None)
        detail = f" (ends with '{opcode}')" if opcode else ""
        super().__init__(
            f"block '{_name(block)}' in '{_name(function)}' "
            f"lacks a terminator{detail}",
            function=function,
        )
        self.block = block


class MisplacedTerminatorError(MalformedFunctionError):
    default_code = ErrorCodes.MISPLACED_TERMINATOR

    def __init__(self, function: Any, block: Any, instruction: Any) -> None:
        super().__init__(
            f"block '{_name(block)}' in '{_name(function)}' has terminator "
            f"'{getattr(instruction, 'opcode', instruction)}' before its last "
            f"instruction",
            function=function,
        )
        self.block = block
        self.instruction = instruction


class DanglingEdgeError(MalformedFunctionError):
    default_code = ErrorCodes.DANGLING_EDGE

    def __init__(self, function: Any, source: Any, target: Any) -> None:
        super().__init__(
            f"edge '{_name(source)}' -> '{_name(target)}' leaves function "
            f"'{_name(function)}'",
            function=function,
        )
        self.source = source
        self.target = target


class InconsistentEdgeError(MalformedFunctionError):
    default_code = ErrorCodes.INCONSISTENT_EDGE

    def __init__(
        self,
        function: Any,
        source: Any,
        target: Any,
        detail: str = "is recorded on only one side",
    ) -> None:
        super().__init__(
            f"edge '{_name(source)}' -> '{_name(target)}' in "
            f"'{_name(function)}' {detail}",
            function=function,
            hint="add edges with Function.add_edge()",
        )
        self.source = source
        self.target = target


class ForeignOperandError(MalformedFunctionError):
    default_code = ErrorCodes.FOREIGN_OPERAND

    def __init__(self, function: Any, instruction: Any, operand: Any) -> None:
        super().__init__(
            f"instruction '{getattr(instruction, 'opcode', instruction)}' in "
            f"'{_name(function)}' uses '{_name(operand)}', which is not "
            f"defined in that function",
            function=function,
        )
        self.instruction = instruction
        self.operand = operand


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

class LoaderError(LivenessError):
    """A program document could not be turned into functions."""

    default_code = ErrorCodes.PROGRAM_FORMAT


class ProgramFormatError(LoaderError):
    default_code = ErrorCodes.PROGRAM_FORMAT


class UndefinedValueError(LoaderError):
    default_code = ErrorCodes.UNDEFINED_VALUE

    def __init__(self, name: str, function: str) -> None:
        super().__init__(f"'%{name}' is not defined in function '{function}'")
        self.name = name


class UndefinedBlockError(LoaderError):
    default_code = ErrorCodes.UNDEFINED_BLOCK

    def __init__(self, name: str, function: str) -> None:
        super().__init__(f"block '{name}' is not defined in function '{function}'")
        self.name = name


class FunctionNotFoundError(LoaderError):
    default_code = ErrorCodes.FUNCTION_NOT_FOUND

    def __init__(self, name: str, available: Any = ()) -> None:
        names = ", ".join(available) or "<none>"
        super().__init__(
            f"function '{name}' not found", hint=f"available: {names}"
        )
        self.name = name


# ---------------------------------------------------------------------------
# Result access
# ---------------------------------------------------------------------------

class NotConvergedError(LivenessError):
    """Tables were requested while the solver is still sweeping."""

    default_code = ErrorCodes.NOT_CONVERGED


def _name(obj: Any) -> str:
    name = getattr(obj, "name", None)
    return name if name else repr(obj)
