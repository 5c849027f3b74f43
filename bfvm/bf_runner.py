import logging
import os
from dataclasses import replace
from typing import Optional

from bfvm.brainfuck import BrainfuckInterpreter
from bfvm.brainfuck_debugger import DebugHook, StepLimit
from bfvm.config import VMConfig
from bfvm.errors import BrainfuckError, InvalidArgumentsError

logger = logging.getLogger(__name__)

DEFAULT_STEP_LIMIT = 5000


def default_step_limit() -> int:
    """BF_STEP_LIMIT from the environment (or a loaded .env), else 5000."""
    try:
        return int(os.environ.get("BF_STEP_LIMIT", DEFAULT_STEP_LIMIT))
    except ValueError as e:
        raise InvalidArgumentsError(f"(bad BF_STEP_LIMIT value: {e})") from e


def _config_for(output_max: Optional[int], tape_size: Optional[int], config: Optional[VMConfig]) -> VMConfig:
    """Explicit sizes win over the config's; None keeps the config's (or the defaults)."""
    for name, value in (("output_max", output_max), ("tape_size", tape_size)):
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise InvalidArgumentsError(f"({name} must be a positive integer, got {value!r})")
    cfg = config or VMConfig()
    overrides = {}
    if output_max is not None:
        overrides["output_max"] = output_max
    if tape_size is not None:
        overrides["tape_size"] = tape_size
    return replace(cfg, **overrides) if overrides else cfg


def run(program, input_data=b"", output_max: Optional[int] = None,
        tape_size: Optional[int] = None, debug_hook: Optional[DebugHook] = None,
        single_step: bool = False, *, config: Optional[VMConfig] = None) -> bytes:
    """Execute program once on a fresh VM and return its output.

    output_max and tape_size default to the config's values (VMConfig
    defaults when no config is given). Raises a BrainfuckError subclass on
    any failure; output produced before the failure is discarded.
    """
    cfg = _config_for(output_max, tape_size, config)
    return BrainfuckInterpreter(cfg).run(program, input_data, debug_hook, single_step)


def run_into(program, input_data, out: bytearray, tape_size: Optional[int] = None,
             debug_hook: Optional[DebugHook] = None, single_step: bool = False,
             *, config: Optional[VMConfig] = None) -> int:
    """Status-code form of run().

    Writes the output into `out` (its length is the output limit) and returns
    the number of bytes written, or a negative ErrorCode value. `out` is left
    untouched on failure.
    """
    try:
        if not isinstance(out, bytearray):
            raise InvalidArgumentsError("(out must be a bytearray)")
        if len(out) == 0:
            raise InvalidArgumentsError("(out must not be empty)")
        result = run(program, input_data, len(out), tape_size, debug_hook, single_step, config=config)
    except BrainfuckError as e:
        logger.debug("run_into failed with %s (%d)", e.code.name, e.code)
        return int(e.code)
    out[:len(result)] = result
    return len(result)


def run_text(code: str, input_text: str = "", **kwargs) -> str:
    """UTF-8 in, UTF-8 out; undecodable output bytes are replaced."""
    return run(code, input_text, **kwargs).decode('utf-8', errors='replace')


def run_once(code, x: int, step_limit: Optional[int] = None) -> Optional[int]:
    """Execute BF code with single byte input, return single byte output.
    Returns None if the program fails, exceeds step_limit or prints nothing.
    step_limit defaults to BF_STEP_LIMIT, read at call time.
    """
    if step_limit is None:
        step_limit = default_step_limit()
    try:
        s = run(code, bytes([x % 256]), debug_hook=StepLimit(step_limit), single_step=True)
    except BrainfuckError:
        return None
    return s[0] if s else None
