from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from whocast.config import (
    config_template,
    default_config,
    default_tree,
    load_config,
    resolve_config_path,
    write_template,
)
from whocast.errors import ConfigError


def _write(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
    return path


def test_defaults_without_config_file(tmp_path):
    env = {"WHOCAST_HOME": str(tmp_path)}

    config = load_config(env=env)

    assert config == default_config(env)
    assert config.neynar.api_key_env == "NEYNAR_API_KEY"
    assert config.directory.target_count == 500
    assert config.quiz.num_questions == 10
    assert config.quiz.min_text_length == 20
    assert config.share.concise_limit == 320
    assert config.logging.level == "INFO"
    assert config.log_dir == tmp_path.resolve() / "logs"


def test_overrides_merge_with_defaults(tmp_path):
    path = _write(
        tmp_path / "custom.toml",
        """
[neynar]
base_url = "https://example.test/"

[quiz]
num_questions = 6

[logging]
level = "debug"
""",
    )

    config = load_config(explicit_path=path, env={})

    assert config.neynar.base_url == "https://example.test"
    assert config.quiz.num_questions == 6
    assert config.quiz.posts_per_friend == 10
    assert config.logging.level == "DEBUG"


def test_default_location_is_used(tmp_path):
    env = {"WHOCAST_HOME": str(tmp_path)}
    _write(tmp_path / "config" / "whocast.toml", "[share]\napp_name = 'Quizzy'\n")

    assert resolve_config_path(env=env) == tmp_path.resolve() / "config" / "whocast.toml"
    assert load_config(env=env).share.app_name == "Quizzy"


def test_config_path_from_environment_must_exist(tmp_path):
    env = {"WHOCAST_CONFIG": str(tmp_path / "missing.toml")}

    with pytest.raises(ConfigError, match="not found"):
        load_config(env=env)


@pytest.mark.parametrize(
    "body, message",
    [
        ("[quiz]\nbogus = 1\n", "Unknown configuration key 'quiz.bogus'"),
        ("[nope]\n", "Unknown configuration key 'nope'"),
        ("quiz = 3\n", "Expected table"),
        ("[quiz]\nnum_questions = 0\n", "quiz.num_questions"),
        ("[quiz]\nnum_questions = true\n", "quiz.num_questions"),
        ("[directory]\npage_size = 101\n", "at most 100"),
        ("[quiz]\nmin_text_length = 50\nmax_text_length = 51\n", "least 2"),
        ("[neynar]\ntimeout_seconds = -1\n", "neynar.timeout_seconds"),
        ("[logging]\nlevel = 'LOUD'\n", "logging.level"),
        ("[logging]\nverbose = 'yes'\n", "logging.verbose"),
        ("[share]\napp_name = ''\n", "share.app_name"),
        ("not toml = = =\n", "Failed to parse"),
    ],
)
def test_invalid_config_is_rejected(tmp_path, body, message):
    path = _write(tmp_path / "bad.toml", body)

    with pytest.raises(ConfigError, match=message):
        load_config(explicit_path=path, env={})


def test_template_matches_defaults():
    assert tomllib.loads(config_template()) == default_tree()


def test_write_template_refuses_to_overwrite(tmp_path):
    path = tmp_path / "nested" / "whocast.toml"

    write_template(path)
    assert path.read_text(encoding="utf-8") == config_template()

    path.write_text("# edited\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="already exists"):
        write_template(path)

    write_template(path, overwrite=True)
    assert path.read_text(encoding="utf-8") == config_template()


def test_default_tree_is_a_copy():
    tree = default_tree()
    tree["quiz"]["num_questions"] = 99

    assert default_tree()["quiz"]["num_questions"] == 10
