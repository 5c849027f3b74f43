import pytest

from bfvm.bf_runner import default_step_limit, run, run_into, run_once, run_text
from bfvm.config import (
    DEFAULT_MAX_BRACKET_DEPTH,
    DEFAULT_MAX_OUTPUT_SIZE,
    DEFAULT_MEMORY_SIZE,
    EofPolicy,
    VMConfig,
)
from bfvm.errors import (
    ErrorCode,
    InvalidArgumentsError,
    OutOfBoundsError,
    OutputOverflowError,
    describe,
)

ENV_NAMES = (
    "BF_TAPE_SIZE",
    "BF_OUTPUT_MAX",
    "BF_MAX_BRACKET_DEPTH",
    "BF_EOF_POLICY",
    "BF_FOLD_RUNS",
    "BF_FUSE_CLEAR_LOOPS",
    "BF_STEP_LIMIT",
)


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so monkeypatch removes anything load_dotenv adds
    for name in ENV_NAMES:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


class TestVMConfig:
    def test_defaults(self):
        cfg = VMConfig()
        assert cfg.tape_size == DEFAULT_MEMORY_SIZE == 90000
        assert cfg.output_max == DEFAULT_MAX_OUTPUT_SIZE == 65536
        assert cfg.max_bracket_depth == DEFAULT_MAX_BRACKET_DEPTH == 4096
        assert cfg.eof_policy is EofPolicy.ZERO
        assert cfg.fold_runs and cfg.fuse_clear_loops

    def test_eof_policy_from_string(self):
        assert VMConfig(eof_policy="unchanged").eof_policy is EofPolicy.UNCHANGED

    @pytest.mark.parametrize("kwargs", [
        {"tape_size": 0},
        {"output_max": -1},
        {"max_bracket_depth": 0},
        {"eof_policy": "explode"},
    ])
    def test_rejects_bad_values(self, kwargs):
        with pytest.raises(InvalidArgumentsError):
            VMConfig(**kwargs)

    def test_from_environment(self, clean_env):
        clean_env.setenv("BF_TAPE_SIZE", "12")
        clean_env.setenv("BF_EOF_POLICY", "MAX")
        clean_env.setenv("BF_FOLD_RUNS", "off")
        cfg = VMConfig.from_env()
        assert cfg.tape_size == 12
        assert cfg.eof_policy is EofPolicy.MAX
        assert cfg.fold_runs is False
        assert cfg.fuse_clear_loops is True

    def test_from_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("BF_OUTPUT_MAX=3\nBF_MAX_BRACKET_DEPTH=8\n")
        cfg = VMConfig.from_env(str(env_file))
        assert cfg.output_max == 3
        assert cfg.max_bracket_depth == 8
        assert cfg.tape_size == DEFAULT_MEMORY_SIZE

    def test_bad_environment_value(self, clean_env):
        clean_env.setenv("BF_TAPE_SIZE", "lots")
        with pytest.raises(InvalidArgumentsError):
            VMConfig.from_env()

    def test_run_uses_config_sizes_when_none_given(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("BF_TAPE_SIZE=2\nBF_OUTPUT_MAX=1\n")
        cfg = VMConfig.from_env(str(env_file))
        assert run(">+.", config=cfg) == b"\x01"
        with pytest.raises(OutOfBoundsError):
            run(">>", config=cfg)
        with pytest.raises(OutputOverflowError):
            run("+..", config=cfg)
        out = bytearray(4)
        assert run_into(">>", b"", out, config=cfg) == ErrorCode.OUT_OF_BOUNDS

    def test_explicit_sizes_win_over_config(self):
        cfg = VMConfig(eof_policy=EofPolicy.MAX, tape_size=2, output_max=1)
        assert run(">>,..", output_max=2, tape_size=3, config=cfg) == b"\xff\xff"
        out = bytearray(2)
        assert run_into(">>+..", b"", out, tape_size=3, config=cfg) == 2
        assert out == bytearray(b"\x01\x01")

    def test_explicit_zero_size_is_rejected_even_with_config(self):
        with pytest.raises(InvalidArgumentsError):
            run("+", tape_size=0, config=VMConfig())

    def test_step_limit_from_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("BF_STEP_LIMIT=3\n")
        assert run_once(",+++++.", 1) == 6
        VMConfig.from_env(str(env_file))
        assert default_step_limit() == 3
        assert run_once(",+++++.", 1) is None
        assert run_once(",+.", 1) == 2


class TestStatusCodes:
    def test_success_returns_count(self):
        out = bytearray(8)
        assert run_into("+.+.", b"", out) == 2
        assert out[:2] == b"\x01\x02"

    def test_zero_output_is_success(self):
        assert run_into("+", b"", bytearray(1)) == 0

    @pytest.mark.parametrize("program,out_len,expected", [
        ("]", 4, ErrorCode.UNMATCHED_CLOSE),
        ("[", 4, ErrorCode.UNMATCHED_OPEN),
        ("+..", 1, ErrorCode.OUTPUT_OVERFLOW),
        ("+", 0, ErrorCode.INVALID_ARGUMENTS),
    ])
    def test_failures_return_negative_codes(self, program, out_len, expected):
        out = bytearray(out_len)
        assert run_into(program, b"", out) == expected
        assert out == bytearray(out_len)

    def test_bad_tape_size(self):
        assert run_into("+", b"", bytearray(1), tape_size=0) == ErrorCode.INVALID_ARGUMENTS

    def test_out_must_be_bytearray(self):
        assert run_into("+", b"", b"xx") == ErrorCode.INVALID_ARGUMENTS

    def test_describe(self):
        assert describe(-9) == "Execution Halted by Debugger."
        assert describe(ErrorCode.OUT_OF_BOUNDS).startswith("Memory Out Of Bounds")
        assert describe(-42) == "Unknown error code: -42"

    def test_every_code_is_negative(self):
        assert all(code < 0 for code in ErrorCode)


class TestRunText:
    def test_round_trip_text(self):
        assert run_text(",[.,]", "héllo") == "héllo"

    def test_undecodable_output_is_replaced(self):
        assert run_text("-.") == "\ufffd"
