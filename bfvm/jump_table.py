import logging

import numpy as np

from bfvm.config import DEFAULT_MAX_BRACKET_DEPTH
from bfvm.errors import (
    BracketDepthExceededError,
    JumpTableAllocError,
    UnmatchedCloseError,
    UnmatchedOpenError,
)

logger = logging.getLogger(__name__)

OPEN = ord('[')
CLOSE = ord(']')


class JumpTable:
    """Bidirectional map between matching bracket positions.

    Backed by an index array sized to the program; non-bracket entries are -1.
    """

    def __init__(self, targets: np.ndarray):
        self._targets = targets

    def __getitem__(self, position: int) -> int:
        return int(self._targets[position])

    def __len__(self):
        return len(self._targets)

    def __contains__(self, position: int) -> bool:
        return 0 <= position < len(self._targets) and self._targets[position] >= 0

    def brackets(self):
        """Positions of every bracket in the program, in order."""
        return [int(i) for i in np.flatnonzero(self._targets >= 0)]

    def pairs(self):
        """(open, close) pairs ordered by the open position."""
        return [(k, self[k]) for k in self.brackets() if self[k] > k]


def build_jump_table(program: bytes, max_depth: int = DEFAULT_MAX_BRACKET_DEPTH) -> JumpTable:
    """Build a table mapping bracket positions for efficient jumping.

    Single pass with an explicit stack of pending '[' positions. Raises a
    BrainfuckSyntaxError subclass on the first problem found; no table is
    returned in that case.
    """
    try:
        targets = np.full(len(program), -1, dtype=np.intp)
    except (MemoryError, ValueError, OverflowError) as e:
        raise JumpTableAllocError(f"(program length {len(program)})") from e

    stack = []
    for i, cmd in enumerate(program):
        if cmd == OPEN:
            if len(stack) >= max_depth:
                raise BracketDepthExceededError(i, f"(limit {max_depth}, position {i})")
            stack.append(i)
        elif cmd == CLOSE:
            if not stack:
                raise UnmatchedCloseError(i)
            start = stack.pop()
            targets[start] = i
            targets[i] = start

    if stack:
        raise UnmatchedOpenError(stack[-1])

    logger.debug("Validated %d-byte program", len(program))
    return JumpTable(targets)
