from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import Any, Never, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich_argparse import RawTextRichHelpFormatter
from multi_lang_runner import RunnerPolicy, configure_logging, default_registry, run_code
from multi_lang_runner.execution.capabilities import toolchain_status

_CONSOLE = Console(no_color=False)


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="python -m mlr")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {message}", border_style="red"))
        self.print_help()
        raise SystemExit(2)

    def print_help(self, file: Any | None = None) -> None:
        """Render help text to the target stream.

        Example:
            ```python
            parser.print_help()
            ```
        """
        super().print_help(file=file)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for multi-lang-runner.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    languages = ", ".join(default_registry().supported_language_ids())
    parser = _RichArgumentParser(
        prog="python -m mlr",
        description=(
            "multi-lang-runner CLI\n"
            "Compile and run a source file in a throwaway workspace.\n"
            f"Supported languages: {languages}."
        ),
        epilog=(
            "Quick Examples:\n"
            "  python -m mlr run python hello.py\n"
            "  echo \"console.log(1)\" | python -m mlr run javascript\n"
            "  python -m mlr run java Main.java --timeout-seconds 30\n"
            "  python -m mlr languages"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for engine diagnostics on stderr (default: WARNING).",
    )

    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    run_cmd = sub.add_parser(
        "run",
        help="Execute one source file and print its output.",
        description=(
            "Stage the source in a fresh temporary directory, compile it when the\n"
            "language needs it, run it, and print the result verbatim."
        ),
        epilog=(
            "Examples:\n"
            "  python -m mlr run cpp main.cpp\n"
            "  python -m mlr run python - < script.py\n"
            "  python -m mlr run java Main.java --policy-file policy.toml"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    run_cmd.add_argument("language", help=f"One of: {languages}.")
    run_cmd.add_argument(
        "source",
        nargs="?",
        default="-",
        help="Source file to execute; '-' or omitted reads stdin.",
    )
    run_cmd.add_argument(
        "--timeout-seconds",
        type=int,
        help="Wall-clock limit for the run phase (default: 15).",
    )
    run_cmd.add_argument(
        "--compile-timeout-seconds",
        type=int,
        help="Limit for the compile step (default: 30).",
    )
    run_cmd.add_argument(
        "--policy-file",
        help="TOML file with a [policy] table of limits.",
    )

    sub.add_parser(
        "languages",
        help="List supported languages and toolchain availability.",
        description=(
            "Show every supported language, its source extension, whether it\n"
            "compiles first, and whether its programs are on PATH."
        ),
        formatter_class=_HELP_FORMATTER,
    )

    return parser


def _read_source(source: str) -> str:
    """Read program text from a file path or stdin.

    Example:
        ```python
        code = _read_source("hello.py")
        ```
    """
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _build_policy(args: argparse.Namespace) -> RunnerPolicy:
    """Combine a policy file with per-invocation overrides.

    Example:
        ```python
        policy = _build_policy(args)
        ```
    """
    policy = RunnerPolicy.from_file(args.policy_file) if args.policy_file else RunnerPolicy()
    if args.timeout_seconds is None and args.compile_timeout_seconds is None:
        return policy
    return replace(
        policy,
        timeout_seconds=(
            policy.timeout_seconds if args.timeout_seconds is None else args.timeout_seconds
        ),
        compile_timeout_seconds=(
            policy.compile_timeout_seconds
            if args.compile_timeout_seconds is None
            else args.compile_timeout_seconds
        ),
        config_path=None,
    )


def _print_languages() -> None:
    """Render supported languages in a rich table.

    Example:
        ```python
        _print_languages()
        ```
    """
    registry = default_registry()
    statuses = {status.language: status for status in toolchain_status(registry)}
    table = Table(title="Supported Languages")
    table.add_column("Language", style="cyan")
    table.add_column("Extension", style="magenta")
    table.add_column("Compiles")
    table.add_column("Toolchain")
    for strategy in registry.strategies():
        status = statuses[strategy.spec.id]
        toolchain = (
            "[green]ok[/green]"
            if status.available
            else f"[red]missing: {', '.join(status.missing)}[/red]"
        )
        table.add_row(
            strategy.spec.id,
            strategy.file_extension,
            "yes" if strategy.needs_preparation() else "no",
            toolchain,
        )
    _CONSOLE.print(table)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `mlr` CLI command handler.

    Example:
        ```python
        code = main(["run", "python", "hello.py"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.log_level)

    if args.command == "languages":
        _print_languages()
        return 0
    if args.command == "run":
        try:
            code = _read_source(args.source)
            policy = _build_policy(args)
        except (OSError, ValueError) as exc:
            _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {exc}", border_style="red"))
            return 2
        result = run_code(args.language, code, policy=policy)
        if default_registry().resolve(args.language) is None:
            _CONSOLE.print(Panel.fit(result.text, style="bold red"))
            return 1
        sys.stdout.write(result.text)
        sys.stdout.flush()
        return 0 if result.ok else 1

    parser.error("Unhandled command")

