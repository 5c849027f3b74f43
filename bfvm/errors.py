"""
Error codes and exceptions raised by the Brainfuck VM.

Every failure maps to exactly one ErrorCode. The numeric values are the
host-visible status codes returned by run_into(); the exception classes are
what the Python API raises.
"""

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    OUT_OF_BOUNDS = -1
    OUTPUT_OVERFLOW = -3
    UNMATCHED_CLOSE = -4
    UNMATCHED_OPEN = -5
    TAPE_ALLOC_FAILED = -6
    JUMP_TABLE_ALLOC_FAILED = -7
    BRACKET_DEPTH_EXCEEDED = -8
    DEBUG_HALT_REQUESTED = -9
    INVALID_ARGUMENTS = -10


MESSAGES = {
    ErrorCode.OUT_OF_BOUNDS: "Memory Out Of Bounds: Data pointer moved beyond tape limits.",
    ErrorCode.OUTPUT_OVERFLOW: "Output Overflow: Output buffer is full.",
    ErrorCode.UNMATCHED_CLOSE: "Syntax Error: Unmatched closing bracket ']' (detected in pre-scan).",
    ErrorCode.UNMATCHED_OPEN: "Syntax Error: Unmatched opening bracket '[' (detected in pre-scan).",
    ErrorCode.TAPE_ALLOC_FAILED: "Memory Allocation Failed: Could not allocate Brainfuck memory tape.",
    ErrorCode.JUMP_TABLE_ALLOC_FAILED: "Internal Error: Failed to allocate jump table.",
    ErrorCode.BRACKET_DEPTH_EXCEEDED: "Syntax Error: Bracket nesting depth exceeded limit.",
    ErrorCode.DEBUG_HALT_REQUESTED: "Execution Halted by Debugger.",
    ErrorCode.INVALID_ARGUMENTS: "Internal Error: Invalid arguments passed to run.",
}


def describe(code: int) -> str:
    """Return the human readable message for a status code."""
    try:
        return MESSAGES[ErrorCode(code)]
    except ValueError:
        return f"Unknown error code: {code}"


class BrainfuckError(Exception):
    """Base class for every terminal VM status other than success."""

    code: ErrorCode = ErrorCode.INVALID_ARGUMENTS

    def __init__(self, detail: Optional[str] = None, ip: Optional[int] = None, dp: Optional[int] = None):
        self.detail = detail
        self.ip = ip
        self.dp = dp
        message = MESSAGES[self.code]
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


class InvalidArgumentsError(BrainfuckError, ValueError):
    code = ErrorCode.INVALID_ARGUMENTS


# --- Pre-scan (syntax) errors ---

class BrainfuckSyntaxError(BrainfuckError):
    """Raised by the validator before any instruction executes."""

    def __init__(self, position: int, detail: Optional[str] = None):
        self.position = position
        super().__init__(detail or f"(position {position})", ip=position)


class UnmatchedCloseError(BrainfuckSyntaxError):
    code = ErrorCode.UNMATCHED_CLOSE


class UnmatchedOpenError(BrainfuckSyntaxError):
    code = ErrorCode.UNMATCHED_OPEN


class BracketDepthExceededError(BrainfuckSyntaxError):
    code = ErrorCode.BRACKET_DEPTH_EXCEEDED


# --- Runtime errors ---

class ExecutionError(BrainfuckError):
    pass


class OutOfBoundsError(ExecutionError):
    code = ErrorCode.OUT_OF_BOUNDS


class OutputOverflowError(ExecutionError):
    code = ErrorCode.OUTPUT_OVERFLOW


# --- Allocation failures ---

class AllocationError(BrainfuckError, MemoryError):
    pass


class TapeAllocError(AllocationError):
    code = ErrorCode.TAPE_ALLOC_FAILED


class JumpTableAllocError(AllocationError):
    code = ErrorCode.JUMP_TABLE_ALLOC_FAILED


class DebugHaltRequested(BrainfuckError):
    """The debug hook asked the engine to stop. Not a program error."""

    code = ErrorCode.DEBUG_HALT_REQUESTED

    def __init__(self, ip: int, dp: int, steps: int):
        self.steps = steps
        super().__init__(f"(ip={ip}, dp={dp}, after {steps} steps)", ip=ip, dp=dp)
