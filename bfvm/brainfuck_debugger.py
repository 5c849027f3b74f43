#!/usr/bin/env python3
"""
Brainfuck Step-by-Step Debugging

A debug hook is any callable taking (ip, dp, cell) and returning a truthy
value to halt or a falsy one (or None) to continue. When single-stepping is
enabled the interpreter calls it before every instruction and waits for the
answer; there is no timeout, so deadlines are implemented here as observers.

Observers in this module:
    StepLimit   halt after a fixed number of steps
    Deadline    halt once a wall-clock deadline passes
    StepTracer  record (and optionally log) every step
    chain       combine several observers into one
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from bfvm.errors import DebugHaltRequested

logger = logging.getLogger(__name__)

DebugHook = Callable[[int, int, int], Optional[bool]]


def call_hook(hook: DebugHook, ip: int, dp: int, cell: int, steps: int) -> None:
    """Run one hook round trip; raise DebugHaltRequested if it asks to stop.

    A hook that raises also halts the run, with its exception chained.
    """
    try:
        should_halt = hook(ip, dp, cell)
    except Exception as e:
        logger.exception("Error in debug hook at ip=%d", ip)
        raise DebugHaltRequested(ip, dp, steps) from e
    if should_halt:
        raise DebugHaltRequested(ip, dp, steps)


class StepLimit:
    """Halt after max_steps instructions (prevents infinite loops)."""

    def __init__(self, max_steps: int):
        self.max_steps = max_steps
        self.calls = 0

    def __call__(self, ip, dp, cell):
        self.calls += 1
        return self.calls > self.max_steps

    @property
    def hit_step_limit(self) -> bool:
        return self.calls > self.max_steps


class Deadline:
    """Halt once `seconds` of wall-clock time have passed since construction."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.deadline = clock() + seconds

    def __call__(self, ip, dp, cell):
        return self._clock() >= self.deadline


@dataclass
class DebugStep:
    """State observed before one instruction."""
    step: int
    ip: int
    dp: int
    cell: int
    command: str


class StepTracer:
    """Records every step; with echo=True each step is also logged."""

    def __init__(self, program: Union[str, bytes] = b"", echo: bool = False, max_steps: Optional[int] = None):
        self.program = program.encode('utf-8') if isinstance(program, str) else bytes(program)
        self.echo = echo
        self.max_steps = max_steps
        self.steps: List[DebugStep] = []

    def __call__(self, ip, dp, cell):
        cmd = chr(self.program[ip]) if ip < len(self.program) else ''
        entry = DebugStep(len(self.steps) + 1, ip, dp, cell, cmd)
        self.steps.append(entry)
        if self.echo:
            logger.info(self.format_step(entry))
        return self.max_steps is not None and len(self.steps) >= self.max_steps

    def format_step(self, entry: DebugStep) -> str:
        cmd = f"'{entry.command}'" if entry.command else "END"
        return f"Step {entry.step:2d}: IP={entry.ip:2d} CMD={cmd} PTR={entry.dp} CELL={entry.cell}"

    def render_program(self, ip: int) -> str:
        """Show program with the instruction pointer marked."""
        text = self.program.decode('latin-1')
        if ip >= len(text):
            return text + "[]"
        return f"{text[:ip]}[{text[ip]}]{text[ip + 1:]}"

    @property
    def instruction_pointers(self) -> List[int]:
        return [s.ip for s in self.steps]


def chain(*hooks: DebugHook) -> DebugHook:
    """Combine observers into the single active hook.

    Observers are asked in order; the first one to ask for a halt stops the run.
    """
    def combined(ip, dp, cell):
        for hook in hooks:
            if hook(ip, dp, cell):
                return True
        return False
    return combined
