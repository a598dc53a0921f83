"""Tests for reatheme.yaml loading."""

import pytest
import yaml

from reatheme.config import CONFIG_FILENAME, BuildConfig, find_config, load_config
from reatheme.errors import ConfigError


def test_load_config_anchors_relative_paths(root):
    path = root / "build" / CONFIG_FILENAME
    path.parent.mkdir()
    path.write_text(
        yaml.safe_dump(
            {
                "input": "theme/main.txt",
                "output": "/abs/MyTheme.ReaperThemeZip",
                "overwrite": True,
                "compression_level": 9,
            }
        )
    )
    config = load_config(path)
    assert config.input == root / "build" / "theme" / "main.txt"
    assert str(config.output) == "/abs/MyTheme.ReaperThemeZip"
    assert config.overwrite is True
    assert config.compression_level == 9


def test_empty_config_uses_defaults(root):
    path = root / CONFIG_FILENAME
    path.write_text("")
    assert load_config(path) == BuildConfig()


@pytest.mark.parametrize(
    "text",
    [
        "compression_level: 12\n",
        "unknown_key: 1\n",
        "- a\n- b\n",
        "input: [unclosed\n",
        "name: '  '\n",
    ],
)
def test_invalid_config(root, text):
    path = root / CONFIG_FILENAME
    path.write_text(text)
    with pytest.raises(ConfigError) as info:
        load_config(path)
    assert info.value.source == path


def test_missing_config(root):
    with pytest.raises(ConfigError, match="not found"):
        load_config(root / CONFIG_FILENAME)


def test_find_config_next_to_input(root, monkeypatch):
    monkeypatch.chdir(root)
    theme = root / "theme"
    theme.mkdir()
    assert find_config(theme / "main.txt") is None

    (root / CONFIG_FILENAME).write_text("")
    assert find_config(theme / "main.txt") == root / CONFIG_FILENAME

    (theme / CONFIG_FILENAME).write_text("")
    assert find_config(theme / "main.txt") == theme / CONFIG_FILENAME
