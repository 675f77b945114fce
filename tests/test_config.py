"""Tests for crate-runner.toml loading."""

import pytest

from crate_runner.config import CONFIG_FILENAME, RunnerConfig, load_config
from crate_runner.errors import ConfigurationError


def _write_config(tmp_path, text):
    (tmp_path / CONFIG_FILENAME).write_text(text)
    return tmp_path


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path):
        config = load_config(tmp_path)
        assert config == RunnerConfig()
        assert config.program == "bazel"
        assert config.locator == "scan"
        assert config.path is None

    def test_full_file(self, tmp_path):
        _write_config(tmp_path, """
[runner]
program = "bazelisk"
locator = "tree-sitter"
skip_dirs = ["vendor", "third_party"]

[[overrides]]
path = "server/benches/*.rs"
flags = ["--compilation_mode=opt"]
test_args = ["--nocapture"]
env = { RUST_LOG = "debug", RUST_BACKTRACE = "full" }

[[overrides]]
path = "corex/**"
run_args = ["--port", "3000"]
""")
        config = load_config(tmp_path)
        assert config.program == "bazelisk"
        assert config.locator == "tree-sitter"
        assert config.skip_dirs == ("vendor", "third_party")
        assert config.path == tmp_path / CONFIG_FILENAME
        assert len(config.overrides) == 2
        bench = config.overrides[0]
        assert bench.flags == ("--compilation_mode=opt",)
        assert dict(bench.env) == {"RUST_LOG": "debug", "RUST_BACKTRACE": "full"}
        assert config.overrides[1].run_args == ("--port", "3000")

    def test_overrides_for(self, tmp_path):
        _write_config(tmp_path, """
[[overrides]]
path = "server/benches/*.rs"
flags = ["-c", "opt"]

[[overrides]]
path = "*.rs"
flags = ["--keep_going"]
""")
        config = load_config(tmp_path)
        matched = config.overrides_for("server/benches/fibonacci_benchmark.rs")
        assert [o.pattern for o in matched] == ["server/benches/*.rs", "*.rs"]
        assert [o.pattern for o in config.overrides_for("corex/README.md")] == []


class TestInvalidConfig:
    @pytest.mark.parametrize("text, message", [
        ('[runner]\nlocator = "regex"\n', "unknown locator"),
        ('[runner]\nprogram = ""\n', "program"),
        ('[runner]\nskip_dirs = "vendor"\n', "skip_dirs"),
        ('[[overrides]]\nflags = ["-c"]\n', "'path' glob"),
        ('[[overrides]]\npath = "*"\nenv = { A = 1 }\n', "env"),
        ('[[overrides]]\npath = "*"\ntest_args = "--nocapture"\n', "test_args"),
        ("[runner\n", "invalid TOML"),
    ])
    def test_rejected(self, tmp_path, text, message):
        _write_config(tmp_path, text)
        with pytest.raises(ConfigurationError, match=message):
            load_config(tmp_path)
