"""End-to-end compile tests."""

import zipfile

import pytest

from reatheme.compiler import ThemeCompiler, build_theme, compile_theme
from reatheme.emitter import BuildOptions
from reatheme.errors import ChannelRangeError, ScriptEvaluationError

WORKED_EXAMPLE = {
    "main.txt": """\
        #include "colors.py"
        #include "theme.ReaperTheme"
        #include "layout/tcp.txt"
        set tcp.bg #{bg}
        """,
    "colors.py": """\
        bg = rgb(11, 22, 33)
        accent = rgba(1, 2, 3, 4)
        """,
    "theme.ReaperTheme": """\
        [color theme]
        col_main_bg=#{bg}
        col_main_text=#{accent.to_rgb()}
        col_tr1_bg=#{blend("normal", 0.598)}

        [REAPER]
        ui_img=theme
        """,
    "layout/tcp.txt": """\
        ; track panel
        set tcp.size [300 100]
        """,
}


def test_worked_example(write):
    """Script, key/value file and nested rtconfig, then one color expression."""
    entry = write(WORKED_EXAMPLE)
    theme = compile_theme(entry, "MyTheme")
    assert theme.name == "MyTheme"
    assert theme.rtconfig == (
        "; track panel\n" "set tcp.size [300 100]\n" "set tcp.bg 2168331\n"
    )
    assert theme.reapertheme == (
        "[color theme]\n"
        "col_main_bg=2168331\n"
        "col_main_text=197121\n"
        "col_tr1_bg=170240\n"
        "\n"
        "[REAPER]\n"
        "ui_img=theme\n"
    )


def test_compile_is_deterministic(write):
    entry = write(WORKED_EXAMPLE)
    compiler = ThemeCompiler()
    first = compiler.compile(entry)
    second = compiler.compile(entry)
    assert first.rtconfig == second.rtconfig
    assert first.reapertheme == second.reapertheme


def test_compiles_do_not_share_bindings(write):
    """A second compile starts from a clean namespace."""
    first = write({"first.txt": "#{shared = 1}first\n"})
    second = write({"second.txt": "#{shared}\n"})
    compiler = ThemeCompiler()
    assert compiler.compile(first).rtconfig == "first\n"
    with pytest.raises(ScriptEvaluationError, match="NameError"):
        compiler.compile(second)


def test_build_theme_writes_archive(write, root):
    entry = write(WORKED_EXAMPLE)
    output = build_theme(entry, root / "dist" / "MyTheme.ReaperThemeZip")
    with zipfile.ZipFile(output) as archive:
        assert sorted(archive.namelist()) == [
            "MyTheme.ReaperTheme",
            "MyTheme/rtconfig.txt",
        ]
        assert archive.read("MyTheme/rtconfig.txt").endswith(b"set tcp.bg 2168331\n")


def test_failed_compile_leaves_no_archive(write, root):
    entry = write({"main.txt": "ok\n#{rgb(300, 0, 0)}\n"})
    output = root / "Broken.ReaperThemeZip"
    with pytest.raises(ChannelRangeError):
        build_theme(entry, output, BuildOptions(overwrite=True))
    assert list(root.iterdir()) == [entry]
