from __future__ import annotations

import stat

import pytest

from whocast.core import config as core_config
from whocast.errors import ConfigError


def test_load_toml_reports_missing_and_invalid(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        core_config.load_toml(tmp_path / "missing.toml")

    broken = tmp_path / "broken.toml"
    broken.write_text("[section\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="Failed to parse"):
        core_config.load_toml(broken)


def test_merge_defaults_overrides_nested_values():
    base = {"a": {"b": 1, "c": {"d": 2}}, "e": "x"}

    core_config.merge_defaults(base, {"a": {"c": {"d": 5}}, "e": "y"})

    assert base == {"a": {"b": 1, "c": {"d": 5}}, "e": "y"}


def test_merge_defaults_reports_dotted_unknown_key():
    base = {"a": {"c": {"d": 2}}}

    with pytest.raises(ConfigError, match="'a.c.zz'"):
        core_config.merge_defaults(base, {"a": {"c": {"zz": 1}}})


def test_write_toml_template_sets_private_mode(tmp_path):
    path = tmp_path / "deep" / "file.toml"

    core_config.write_toml_template(path, template="x = 1\n")

    assert path.read_text(encoding="utf-8") == "x = 1\n"
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
