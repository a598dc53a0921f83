"""Tests for the reatheme command line."""

import zipfile

from typer.testing import CliRunner

from reatheme._version import __version__
from reatheme.cli import typer_app
from reatheme.emitter import PackageEmitter

runner = CliRunner()

THEME = {
    "main.txt": '#include "colors.py"\nset tcp.bg #{bg}\n',
    "colors.py": "bg = rgb(11, 22, 33)\n",
}


def test_version():
    result = runner.invoke(typer_app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_build(write, root):
    entry = write(THEME)
    output = root / "MyTheme.ReaperThemeZip"
    result = runner.invoke(typer_app, [str(entry), str(output)])
    assert result.exit_code == 0, result.output
    with zipfile.ZipFile(output) as archive:
        assert archive.read("MyTheme/rtconfig.txt") == b"set tcp.bg 2168331\n"


def test_existing_output_fails_without_overwrite(write, root):
    entry = write(THEME)
    output = root / "MyTheme.ReaperThemeZip"
    output.write_bytes(b"old")

    result = runner.invoke(typer_app, [str(entry), str(output)])
    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "already exists" in result.output

    result = runner.invoke(typer_app, [str(entry), str(output), "--overwrite"])
    assert result.exit_code == 0, result.output


def test_compile_error_exits_1(write, root):
    entry = write({"main.txt": "ok\n#{rgb(300, 0, 0)}\n"})
    output = root / "Broken.ReaperThemeZip"
    result = runner.invoke(typer_app, [str(entry), str(output)])
    assert result.exit_code == 1
    assert "main.txt:2:1" in result.output
    assert not output.exists()


def test_dry_run_prints_documents(write, root):
    entry = write(THEME)
    output = root / "MyTheme.ReaperThemeZip"
    result = runner.invoke(typer_app, [str(entry), str(output), "--dry-run"])
    assert result.exit_code == 0, result.output
    assert "set tcp.bg 2168331" in result.output
    assert not output.exists()


def test_paths_from_config_file(write, root):
    write({**THEME, "reatheme.yaml": "input: main.txt\noutput: out/T.ReaperThemeZip\n"})
    result = runner.invoke(
        typer_app, ["--config", str(root / "reatheme.yaml"), "--name", "Custom"]
    )
    assert result.exit_code == 0, result.output
    with zipfile.ZipFile(root / "out" / "T.ReaperThemeZip") as archive:
        assert "Custom/rtconfig.txt" in archive.namelist()


def test_missing_input():
    result = runner.invoke(typer_app, ["--config", "/nonexistent/reatheme.yaml"])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_unexpected_error_exits_1(write, root, monkeypatch):
    """Failures outside the build error hierarchy still exit cleanly."""

    def emit(self, theme, output, options=None):
        raise OSError("disk full")

    monkeypatch.setattr(PackageEmitter, "emit", emit)
    entry = write(THEME)
    result = runner.invoke(typer_app, [str(entry), str(root / "MyTheme.ReaperThemeZip")])
    assert result.exit_code == 1
    assert "Unexpected error: disk full" in result.output
