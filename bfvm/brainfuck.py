#!/usr/bin/env python3
"""
Brainfuck Interpreter

Brainfuck is an esoteric programming language with only 8 commands:
    >   Move the pointer to the right
    <   Move the pointer to the left
    +   Increment the memory cell at the pointer
    -   Decrement the memory cell at the pointer
    .   Output the byte in the cell at the pointer
    ,   Read an input byte into the cell at the pointer
    [   Jump past the matching ] if the cell at the pointer is 0
    ]   Jump back to the matching [ if the cell at the pointer is nonzero

All other bytes are treated as comments and ignored.

The tape is bounded: moving off either end is an error, not a wrap.
Runs of identical +, -, > or < are applied in one step, and the clear
loops [-] and [+] are executed as a direct store of 0. Both rewrites
produce exactly the state the plain loop would.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from bfvm.brainfuck_debugger import DebugHook, call_hook
from bfvm.config import EofPolicy, VMConfig
from bfvm.errors import ExecutionError, InvalidArgumentsError, OutOfBoundsError
from bfvm.jump_table import JumpTable, build_jump_table
from bfvm.tape import InputBuffer, OutputBuffer, Tape

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

RIGHT, LEFT, INC, DEC, OUT, IN, OPEN, CLOSE = b'><+-.,[]'
COMMANDS = frozenset(b'><+-.,[]')
FOLDABLE = frozenset(b'><+-')


@dataclass
class ExecutionResult:
    """Outcome of a successful run.

    `steps` counts executed instructions: every instruction of a folded run
    counts, a fused clear loop counts once.
    """
    output: bytes
    data_pointer: int
    steps: int
    tape: Optional[bytes] = None

    @property
    def bytes_written(self) -> int:
        return len(self.output)


def as_bytes(value: Union[bytes, bytearray, memoryview, str], what: str) -> bytes:
    """Accept bytes-like or str (UTF-8 encoded) arguments."""
    if isinstance(value, str):
        return value.encode('utf-8')
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise InvalidArgumentsError(f"({what} must be bytes or str, got {type(value).__name__})")


def fold_runs(program: bytes) -> List[int]:
    """Length of the run of identical foldable commands starting at each position.

    Non-foldable positions hold 0.
    """
    runs = [0] * len(program)
    for i in range(len(program) - 1, -1, -1):
        cmd = program[i]
        if cmd in FOLDABLE:
            if i + 1 < len(program) and program[i + 1] == cmd:
                runs[i] = runs[i + 1] + 1
            else:
                runs[i] = 1
    return runs


class BrainfuckInterpreter:
    """Executes programs against a fresh tape per call.

    An interpreter holds only its configuration. Tape, jump table and I/O
    buffers live for a single call and are released before it returns.
    """

    def __init__(self, config: Optional[VMConfig] = None):
        self.config = config or VMConfig()
        self._running = False

    def run(self, code, input_data=b"", debug_hook: Optional[DebugHook] = None, single_step: bool = False) -> bytes:
        """Execute code with optional input data and return the output bytes."""
        return self.execute(code, input_data, debug_hook, single_step).output

    def execute(self, code, input_data=b"", debug_hook: Optional[DebugHook] = None,
                single_step: bool = False, snapshot_tape: bool = False) -> ExecutionResult:
        """Execute code and return output plus final pointer and step count.

        With snapshot_tape=True a copy of the final tape is included.
        """
        if self._running:
            raise InvalidArgumentsError("(interpreter re-entered while running)")

        program = as_bytes(code, "program")
        data = b"" if input_data is None else as_bytes(input_data, "input")
        if debug_hook is not None and not callable(debug_hook):
            raise InvalidArgumentsError("(debug_hook must be callable)")
        if single_step and debug_hook is None:
            logger.warning("single_step enabled but no debug hook provided; running normally")
        hook = debug_hook if single_step else None

        logger.debug("Running %d-byte program (tape=%d, output_max=%d, stepping=%s)",
                     len(program), self.config.tape_size, self.config.output_max, hook is not None)

        self._running = True
        try:
            jumps = build_jump_table(program, self.config.max_bracket_depth)
            with Tape(self.config.tape_size) as tape:
                output = OutputBuffer(self.config.output_max)
                steps = self._loop(program, jumps, tape, InputBuffer(data), output, hook)
                result = ExecutionResult(
                    output=output.getvalue(),
                    data_pointer=tape.pointer,
                    steps=steps,
                    tape=tape.snapshot() if snapshot_tape else None,
                )
        finally:
            self._running = False

        logger.debug("Finished: %d bytes output in %d steps", result.bytes_written, result.steps)
        return result

    def _loop(self, program: bytes, jumps: JumpTable, tape: Tape, inp: InputBuffer,
              output: OutputBuffer, hook: Optional[DebugHook]) -> int:
        # Stepping needs a hook point at every instruction, so no folding then
        runs = fold_runs(program) if self.config.fold_runs and hook is None else None
        fuse = self.config.fuse_clear_loops
        eof_policy = self.config.eof_policy
        n = len(program)

        ip = 0
        steps = 0
        hooked_at = -1  # position already reported by a fused clear

        try:
            while ip < n:
                cmd = program[ip]
                if cmd not in COMMANDS:
                    ip += 1
                    continue

                if hook is not None:
                    if ip != hooked_at:
                        call_hook(hook, ip, tape.pointer, tape.cell, steps)
                    hooked_at = -1

                if cmd == INC or cmd == DEC:
                    count = runs[ip] if runs else 1
                    tape.add(count if cmd == INC else -count)
                    ip += count
                    steps += count
                    continue

                elif cmd == RIGHT or cmd == LEFT:
                    count = runs[ip] if runs else 1
                    tape.move(count if cmd == RIGHT else -count)
                    ip += count
                    steps += count
                    continue

                elif cmd == OUT:
                    output.write(tape.cell)

                elif cmd == IN:
                    value = inp.read()
                    if value is not None:
                        tape.cell = value
                    elif eof_policy is EofPolicy.ZERO:
                        tape.cell = 0
                    elif eof_policy is EofPolicy.MAX:
                        tape.cell = 0xFF

                elif cmd == OPEN:
                    if tape.cell == 0:
                        ip = jumps[ip]
                    elif fuse and ip + 2 < n and program[ip + 1] in (INC, DEC) and program[ip + 2] == CLOSE:
                        # [-] / [+]: the loop always ends with the cell at 0
                        tape.cell = 0
                        ip += 3
                        # report at the next command, comment bytes are not steps
                        while ip < n and program[ip] not in COMMANDS:
                            ip += 1
                        steps += 1
                        if hook is not None:
                            call_hook(hook, ip, tape.pointer, 0, steps)
                            hooked_at = ip
                        continue

                elif cmd == CLOSE:
                    if tape.cell != 0:
                        ip = jumps[ip]

                ip += 1
                steps += 1

        except ExecutionError as e:
            if isinstance(e, OutOfBoundsError):
                e.ip = ip + e.moved
            elif e.ip is None:
                e.ip = ip
            if e.dp is None:
                e.dp = tape.pointer
            logger.debug("Execution failed at ip=%s: %s", e.ip, e)
            raise

        return steps
