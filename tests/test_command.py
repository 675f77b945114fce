"""Tests for command synthesis and execution."""

import signal
import sys

import pytest

from crate_runner.classify import classify
from crate_runner.command import Invocation, execute, run_subprocess, synthesize
from crate_runner.config import Override
from crate_runner.errors import BuildToolNotFoundError
from crate_runner.locator import SymbolMatch
from crate_runner.resolver import resolve


def _target(workspace, rel):
    return resolve(classify(rel, workspace))


def _python(script, **kwargs):
    return Invocation(program=sys.executable, verb="-c", labels=[script], **kwargs)


def _symbol(path, name=None):
    return SymbolMatch(name=name or path.rsplit("::", 1)[-1], path=path,
                       start_line=1, end_line=5)


class TestVerbs:
    def test_primary_binary_runs(self, workspace):
        inv = synthesize(_target(workspace, "server/src/main.rs"), None)
        assert inv.argv == ["bazel", "run", "//server:server_bin"]

    def test_auxiliary_binary_runs(self, workspace):
        inv = synthesize(_target(workspace, "corex/src/bin/proxy.rs"), None)
        assert inv.argv == ["bazel", "run", "//corex:proxy"]

    def test_example_runs(self, workspace):
        inv = synthesize(_target(workspace, "corex/examples/client.rs"), None)
        assert inv.argv == ["bazel", "run", "//corex:example_client"]

    def test_library_runs_unit_and_doc_tests(self, workspace):
        inv = synthesize(_target(workspace, "corex/src/user.rs"), None)
        assert inv.argv == ["bazel", "test", "//corex:corex_test", "//corex:corex_doc_test"]

    def test_integration_test(self, workspace):
        inv = synthesize(_target(workspace, "corex/tests/integration_test.rs"), None)
        assert inv.argv == ["bazel", "test", "//corex:test_integration_test"]

    def test_benchmark_without_symbol_runs(self, workspace):
        inv = synthesize(_target(workspace, "server/benches/fibonacci_benchmark.rs"), None)
        assert inv.argv == ["bazel", "run", "//server:bench_fibonacci_benchmark"]

    def test_build_script_builds(self, workspace):
        inv = synthesize(_target(workspace, "corex/build.rs"), None)
        assert inv.argv == ["bazel", "build", "//corex:build_script"]


class TestFilters:
    def test_integration_test_exact_filter(self, workspace):
        inv = synthesize(_target(workspace, "corex/tests/integration_test.rs"),
                         _symbol("test_greeting_formats"))
        assert inv.argv == [
            "bazel", "test", "//corex:test_integration_test",
            "--test_arg=--exact", "--test_arg=test_greeting_formats",
        ]

    def test_library_symbol_drops_doc_tests(self, workspace):
        inv = synthesize(_target(workspace, "corex/src/lib.rs"), _symbol("tests::it_works"))
        assert inv.labels == ["//corex:corex_test"]
        assert inv.test_args == ["--exact", "tests::it_works"]

    def test_binary_symbol_switches_to_scoped_tests(self, workspace):
        inv = synthesize(_target(workspace, "corex/src/bin/proxy.rs"),
                         _symbol("tests::forwards_requests"))
        assert inv.argv == [
            "bazel", "test", "//corex:proxy_test",
            "--test_output=streamed",
            "--test_arg=--exact", "--test_arg=tests::forwards_requests",
        ]

    def test_primary_binary_symbol(self, workspace):
        inv = synthesize(_target(workspace, "server/src/main.rs"), _symbol("tests::it_works"))
        assert inv.verb == "test"
        assert inv.label == "//server:server_bin_test"
        assert "--test_output=streamed" in inv.flags

    def test_benchmark_symbol_uses_test_runner(self, workspace):
        inv = synthesize(_target(workspace, "server/benches/fibonacci_benchmark.rs"),
                         _symbol("tests::test_fibonacci_correctness"))
        assert inv.verb == "test"
        assert inv.test_args == ["--exact", "tests::test_fibonacci_correctness"]

    def test_build_script_ignores_symbol(self, workspace):
        inv = synthesize(_target(workspace, "corex/build.rs"), _symbol("t"))
        assert inv.argv == ["bazel", "build", "//corex:build_script"]


class TestOverrides:
    def test_flags_env_and_args(self, workspace):
        override = Override(
            pattern="server/**",
            flags=("--compilation_mode=opt",),
            test_args=("--nocapture",),
            run_args=("--verbose",),
            env=(("RUST_LOG", "debug"),),
        )
        target = _target(workspace, "server/benches/fibonacci_benchmark.rs")

        run = synthesize(target, None, overrides=[override])
        assert run.argv == [
            "bazel", "run", "//server:bench_fibonacci_benchmark",
            "--compilation_mode=opt", "--", "--verbose",
        ]
        assert run.env == {"RUST_LOG": "debug"}

        test = synthesize(target, _symbol("tests::t"), overrides=[override])
        assert test.test_args == ["--exact", "tests::t", "--nocapture"]
        assert test.run_args == []

    def test_program(self, workspace):
        inv = synthesize(_target(workspace, "corex/build.rs"), None, program="bazelisk")
        assert inv.argv[0] == "bazelisk"


class TestRendering:
    def test_command_line_quotes_and_env(self):
        inv = Invocation(program="bazel", verb="run", labels=["//a:b"],
                         run_args=["hello world"], env={"RUST_LOG": "a b"})
        assert inv.command_line == "RUST_LOG='a b' bazel run //a:b -- 'hello world'"
        assert str(inv) == inv.command_line


class TestExecute:
    def test_dry_run_prints_and_skips_delegate(self, capsys):
        calls = []
        inv = Invocation(program="bazel", verb="run", labels=["//a:b"], dry_run=True)
        assert execute(inv, calls.append) == 0
        assert calls == []
        assert capsys.readouterr().out == "bazel run //a:b\n"

    @pytest.mark.parametrize("code", [0, 1, 3, 101])
    def test_exit_code_passthrough(self, code):
        inv = Invocation(program="bazel", verb="test", labels=["//a:b"])
        assert execute(inv, lambda _: code) == code

    def test_exit_code_round_trip(self):
        assert run_subprocess(_python("raise SystemExit(7)")) == 7

    def test_env_and_cwd_reach_the_child(self, tmp_path):
        script = (
            "import os, sys\n"
            "ok = os.environ['RUST_LOG'] == 'debug'\n"
            f"ok = ok and os.path.realpath(os.getcwd()) == os.path.realpath({str(tmp_path)!r})\n"
            "sys.exit(0 if ok else 1)\n"
        )
        assert run_subprocess(_python(script, env={"RUST_LOG": "debug"}, cwd=tmp_path)) == 0

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
    def test_signal_exit_code(self):
        script = "import os, signal\nos.kill(os.getpid(), signal.SIGTERM)\n"
        assert run_subprocess(_python(script)) == 128 + signal.SIGTERM

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
    def test_ctrl_c_relays_child_exit_code(self):
        # The child interrupts us and itself, like Ctrl-C on the process
        # group, then exits 130 from its handler.
        script = (
            "import os, signal, sys, time\n"
            "signal.signal(signal.SIGINT, lambda *_: sys.exit(130))\n"
            "time.sleep(0.2)\n"
            "os.kill(os.getppid(), signal.SIGINT)\n"
            "os.kill(os.getpid(), signal.SIGINT)\n"
            "time.sleep(5)\n"
        )
        assert run_subprocess(_python(script)) == 130

    def test_missing_build_tool(self):
        inv = Invocation(program="definitely-not-a-build-tool-xyz", verb="run",
                         labels=["//a:b"])
        with pytest.raises(BuildToolNotFoundError) as exc:
            run_subprocess(inv)
        assert exc.value.exit_code == 127
