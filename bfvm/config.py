import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from dotenv import load_dotenv

from bfvm.errors import InvalidArgumentsError

# Default VM options
DEFAULT_MEMORY_SIZE = 90000
DEFAULT_MAX_OUTPUT_SIZE = 65536
DEFAULT_MAX_BRACKET_DEPTH = 4096


class EofPolicy(str, Enum):
    """What ',' stores in the current cell once input is exhausted."""
    ZERO = "zero"
    UNCHANGED = "unchanged"
    MAX = "max"  # 255, the "-1" convention


@dataclass
class VMConfig:
    """Configuration parameters for one interpreter."""
    tape_size: int = DEFAULT_MEMORY_SIZE
    output_max: int = DEFAULT_MAX_OUTPUT_SIZE
    max_bracket_depth: int = DEFAULT_MAX_BRACKET_DEPTH
    eof_policy: EofPolicy = EofPolicy.ZERO

    # Optimizations; both must be observationally invisible
    fold_runs: bool = True
    fuse_clear_loops: bool = True

    def __post_init__(self):
        for name in ("tape_size", "output_max", "max_bracket_depth"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidArgumentsError(f"({name} must be a positive integer, got {value!r})")
        try:
            self.eof_policy = EofPolicy(self.eof_policy)
        except ValueError:
            raise InvalidArgumentsError(f"(unknown eof_policy {self.eof_policy!r})") from None

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> 'VMConfig':
        """Build a config from BF_* environment variables, loading a .env file first."""
        load_dotenv(dotenv_path)
        try:
            return cls(
                tape_size=int(os.environ.get("BF_TAPE_SIZE", DEFAULT_MEMORY_SIZE)),
                output_max=int(os.environ.get("BF_OUTPUT_MAX", DEFAULT_MAX_OUTPUT_SIZE)),
                max_bracket_depth=int(os.environ.get("BF_MAX_BRACKET_DEPTH", DEFAULT_MAX_BRACKET_DEPTH)),
                eof_policy=os.environ.get("BF_EOF_POLICY", EofPolicy.ZERO.value).lower(),
                fold_runs=_env_flag("BF_FOLD_RUNS", True),
                fuse_clear_loops=_env_flag("BF_FUSE_CLEAR_LOOPS", True),
            )
        except InvalidArgumentsError:
            raise
        except ValueError as e:
            raise InvalidArgumentsError(f"(bad BF_* environment value: {e})") from e


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off", "")
