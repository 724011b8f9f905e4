from __future__ import annotations

import io
from pathlib import Path

import pytest

from mlr import cli
from multi_lang_runner import RunnerPolicy, RunnerResult


class _RecordingRunCode:
    def __init__(self, result: RunnerResult) -> None:
        self.result = result
        self.calls: list[tuple[str, str, RunnerPolicy]] = []

    def __call__(self, language: str, code: str, *, policy: RunnerPolicy) -> RunnerResult:
        self.calls.append((language, code, policy))
        return self.result


@pytest.fixture
def fake_run_code(monkeypatch: pytest.MonkeyPatch) -> _RecordingRunCode:
    fake = _RecordingRunCode(RunnerResult(ok=True, text="hi\n", exit_code=0))
    monkeypatch.setattr(cli, "run_code", fake)
    return fake


def test_cli_run_file_prints_output_verbatim(
    tmp_path: Path,
    fake_run_code: _RecordingRunCode,
    capsys: pytest.CaptureFixture[str],
) -> None:
    source = tmp_path / "hello.py"
    source.write_text("print('hi')\n", encoding="utf-8")

    code = cli.main(["run", "python", str(source)])

    assert code == 0
    assert capsys.readouterr().out == "hi\n"
    language, text, policy = fake_run_code.calls[0]
    assert (language, text) == ("python", "print('hi')\n")
    assert policy.timeout_seconds == 15


def test_cli_run_reads_stdin(
    monkeypatch: pytest.MonkeyPatch,
    fake_run_code: _RecordingRunCode,
) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("console.log(1)"))

    assert cli.main(["run", "javascript"]) == 0
    assert fake_run_code.calls[0][:2] == ("javascript", "console.log(1)")


def test_cli_run_applies_timeout_overrides(tmp_path: Path, fake_run_code: _RecordingRunCode) -> None:
    policy_file = tmp_path / "policy.toml"
    policy_file.write_text("[policy]\ntimeout_seconds = 4\ncompile_timeout_seconds = 9\n", encoding="utf-8")
    source = tmp_path / "Main.java"
    source.write_text("class Main {}", encoding="utf-8")

    cli.main(["run", "java", str(source), "--policy-file", str(policy_file), "--timeout-seconds", "2"])

    policy = fake_run_code.calls[0][2]
    assert policy.timeout_seconds == 2
    assert policy.compile_timeout_seconds == 9


def test_cli_run_failure_exits_non_zero(
    tmp_path: Path,
    fake_run_code: _RecordingRunCode,
    capsys: pytest.CaptureFixture[str],
) -> None:
    fake_run_code.result = RunnerResult(ok=False, text="Execution timed out after 15 seconds", timed_out=True)
    source = tmp_path / "loop.py"
    source.write_text("while True: pass", encoding="utf-8")

    assert cli.main(["run", "python", str(source)]) == 1
    assert capsys.readouterr().out == "Execution timed out after 15 seconds"


def test_cli_run_unsupported_language(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = tmp_path / "a.rb"
    source.write_text("puts 1", encoding="utf-8")

    assert cli.main(["run", "ruby", str(source)]) == 1
    output = capsys.readouterr().out
    assert "Unsupported language: ruby." in output


def test_cli_run_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["run", "python", str(tmp_path / "nope.py")]) == 2
    assert "Error:" in capsys.readouterr().out


def test_cli_rejects_invalid_timeout(tmp_path: Path, fake_run_code: _RecordingRunCode) -> None:
    source = tmp_path / "a.py"
    source.write_text("print(1)", encoding="utf-8")

    assert cli.main(["run", "python", str(source), "--timeout-seconds", "0"]) == 2
    assert fake_run_code.calls == []


def test_cli_languages_table(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    from multi_lang_runner.execution import capabilities

    monkeypatch.setattr(capabilities.shutil, "which", lambda name: None if name == "g++" else f"/usr/bin/{name}")

    assert cli.main(["languages"]) == 0
    output = capsys.readouterr().out
    for language in ("python", "javascript", "typescript", "java", "cpp"):
        assert language in output
    assert "missing: g++" in output


def test_cli_top_level_help_examples(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["--help"])
    output = capsys.readouterr().out
    assert exc.value.code == 0
    assert "Quick Examples:" in output
    assert "python -m mlr languages" in output


def test_cli_print_help_writes_to_requested_stream(capsys: pytest.CaptureFixture[str]) -> None:
    parser = cli.build_parser()
    buffer = io.StringIO()
    parser.print_help(file=buffer)
    assert capsys.readouterr().out == ""
    help_text = buffer.getvalue()
    assert "Usage:" in help_text
    assert "multi-lang-runner CLI" in help_text
