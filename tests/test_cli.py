"""CLI behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from baselinegen import cli
from baselinegen.cli import _build_parser


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "generate"])
    assert args.verbose is True
    assert args.command == "generate"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["generate", "--verbose"])
    assert args.verbose is True


def test_cli_accepts_log_file_on_either_side_of_command() -> None:
    parser = _build_parser()
    assert parser.parse_args(["--log-file", "run.log", "check", "a.js"]).log_file == "run.log"
    assert parser.parse_args(["check", "a.js", "--log-file", "run.log"]).log_file == "run.log"
    assert parser.parse_args(["check", "a.js"]).log_file is None


def test_cli_parses_generate_options() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["generate", "corpus", "--staging", "out", "--workers", "0", "--no-cache"]
    )
    assert args.path == "corpus"
    assert args.staging == "out"
    assert args.workers == 0
    assert args.no_cache is True


def test_cli_rejects_unknown_kind() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["check", "a.js", "--kind", "commonjs"])


def test_generate_command_writes_corpus(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    corpus = tmp_path / "corpus"
    corpus.mkdir()
    (corpus / "a.js").write_text("var a = 1;\n", encoding="utf-8")
    (corpus / "b.ts").write_text("let b: number = 2;\n", encoding="utf-8")
    staging = tmp_path / "staging"

    cli.main(["generate", str(corpus), "--staging", str(staging), "--workers", "0"])

    out = capsys.readouterr().out
    assert "Accepted 2 of 2 files" in out
    assert (staging / "_list.csv").read_text(encoding="utf-8") == (
        "0,a.js,untyped,script\n1,b.ts,typed,script\n"
    )


def test_generate_command_exits_for_missing_corpus(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["generate", str(tmp_path / "missing"), "--workers", "0"])
    assert excinfo.value.code == 1


def test_generate_command_exits_for_bad_config(tmp_path: Path) -> None:
    (tmp_path / ".baselinegen.yml").write_text("- not a mapping\n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["generate", str(tmp_path)])
    assert excinfo.value.code == 1


def test_check_command_reports_kind(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "a.mjs"
    path.write_text("var a = 1;\n", encoding="utf-8")

    cli.main(["check", str(path)])

    assert capsys.readouterr().out.strip() == "untyped module"


def test_check_command_reports_rejection(tmp_path: Path) -> None:
    path = tmp_path / "a.ts"
    path.write_text("a +", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["check", str(path)])
    assert excinfo.value.code == 1


def test_erase_command_prints_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "a.ts"
    path.write_text("let a: string = 1;;;", encoding="utf-8")

    cli.main(["erase", str(path)])
    assert capsys.readouterr().out == "let a = 1;\n"

    cli.main(["erase", str(path), "--typed"])
    assert capsys.readouterr().out == "let a: string = 1;;;"


def test_erase_command_rejects_untyped_file(tmp_path: Path) -> None:
    path = tmp_path / "a.js"
    path.write_text("var a;\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["erase", str(path)])
    assert excinfo.value.code == 1


def test_generate_command_writes_log_file(tmp_path: Path) -> None:
    corpus = tmp_path / "corpus"
    corpus.mkdir()
    (corpus / "a.js").write_text("var a = 1;\n", encoding="utf-8")
    log_file = tmp_path / "logs" / "generate.log"

    cli.main(
        [
            "generate",
            str(corpus),
            "--staging",
            str(tmp_path / "staging"),
            "--workers",
            "0",
            "-v",
            "--log-file",
            str(log_file),
        ]
    )

    content = log_file.read_text(encoding="utf-8")
    assert "baselinegen.walker: Discovered 1 untyped and 0 typed files" in content
