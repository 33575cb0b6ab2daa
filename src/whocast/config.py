"""Configuration for whocast.

Settings live in a TOML file grouped by concern. Every key has a default, so a
missing default config file simply yields :func:`default_config`. Unknown keys
and out-of-range values raise :class:`~whocast.errors.ConfigError`.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .core.config import load_toml, merge_defaults, write_toml_template
from .errors import ConfigError

CONFIG_PATH_ENV = "WHOCAST_CONFIG"
DATA_HOME_ENV = "WHOCAST_HOME"
DEFAULT_DATA_HOME = Path.home() / ".whocast"
CONFIG_FILENAME = "whocast.toml"

# Neynar caps page sizes for both the following and feed endpoints.
MAX_PAGE_SIZE = 100

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class NeynarConfig:
    base_url: str
    api_key_env: str
    timeout_seconds: float


@dataclass(frozen=True)
class DirectoryConfig:
    target_count: int
    page_size: int
    max_pages: int


@dataclass(frozen=True)
class QuizConfig:
    num_questions: int
    posts_per_friend: int
    min_text_length: int
    max_text_length: int
    max_workers: int


@dataclass(frozen=True)
class ShareConfig:
    app_name: str
    concise_limit: int
    detailed_limit: int


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class WhoCastConfig:
    neynar: NeynarConfig
    directory: DirectoryConfig
    quiz: QuizConfig
    share: ShareConfig
    logging: LoggingConfig
    data_home: Path

    @property
    def log_dir(self) -> Path:
        return self.data_home / "logs"


def data_home(env: Mapping[str, str] | None = None) -> Path:
    """Return the directory holding the config file and logs."""

    env_map = os.environ if env is None else env
    override = (env_map.get(DATA_HOME_ENV) or "").strip()
    if override:
        return Path(override).expanduser().resolve()
    return DEFAULT_DATA_HOME


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return Path(explicit_path).expanduser().resolve()
    override = (env_map.get(CONFIG_PATH_ENV) or "").strip()
    if override:
        return Path(override).expanduser().resolve()
    return data_home(env_map) / "config" / CONFIG_FILENAME


def load_config(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> WhoCastConfig:
    """Load, merge with defaults and validate the TOML configuration.

    An explicitly requested file (argument or environment) must exist; the
    default location is optional.
    """

    env_map = os.environ if env is None else env
    path = resolve_config_path(explicit_path=explicit_path, env=env_map)
    explicit = explicit_path is not None or bool(
        (env_map.get(CONFIG_PATH_ENV) or "").strip()
    )
    tree = default_tree()
    if explicit or path.exists():
        data = load_toml(path)
        merge_defaults(tree, data)
    return _build_config(tree, home=data_home(env_map))


def default_config(env: Mapping[str, str] | None = None) -> WhoCastConfig:
    return _build_config(default_tree(), home=data_home(env))


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return copy.deepcopy(_DEFAULTS)


def config_template() -> str:
    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    """Write the commented default template to ``path``."""

    return write_toml_template(
        path, template=config_template(), overwrite=overwrite
    )


def _positive_int(value: Any, *, field: str, maximum: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    if maximum is not None and value > maximum:
        raise ConfigError(f"'{field}' must be at most {maximum}.")
    return value


def _positive_number(value: Any, *, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    if value <= 0:
        raise ConfigError(f"'{field}' must be greater than zero.")
    return float(value)


def _string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _build_neynar(section: Mapping[str, Any]) -> NeynarConfig:
    return NeynarConfig(
        base_url=_string(section["base_url"], field="neynar.base_url").rstrip(
            "/"
        ),
        api_key_env=_string(section["api_key_env"], field="neynar.api_key_env"),
        timeout_seconds=_positive_number(
            section["timeout_seconds"], field="neynar.timeout_seconds"
        ),
    )


def _build_directory(section: Mapping[str, Any]) -> DirectoryConfig:
    return DirectoryConfig(
        target_count=_positive_int(
            section["target_count"], field="directory.target_count"
        ),
        page_size=_positive_int(
            section["page_size"],
            field="directory.page_size",
            maximum=MAX_PAGE_SIZE,
        ),
        max_pages=_positive_int(
            section["max_pages"], field="directory.max_pages"
        ),
    )


def _build_quiz(section: Mapping[str, Any]) -> QuizConfig:
    min_length = section["min_text_length"]
    if isinstance(min_length, bool) or not isinstance(min_length, int):
        raise ConfigError("'quiz.min_text_length' must be an integer.")
    if min_length < 0:
        raise ConfigError("'quiz.min_text_length' must not be negative.")
    max_length = _positive_int(
        section["max_text_length"], field="quiz.max_text_length"
    )
    if max_length - min_length < 2:
        raise ConfigError(
            "quiz.max_text_length must exceed quiz.min_text_length by at "
            "least 2 so some cast length is eligible."
        )
    return QuizConfig(
        num_questions=_positive_int(
            section["num_questions"], field="quiz.num_questions"
        ),
        posts_per_friend=_positive_int(
            section["posts_per_friend"],
            field="quiz.posts_per_friend",
            maximum=MAX_PAGE_SIZE,
        ),
        min_text_length=min_length,
        max_text_length=max_length,
        max_workers=_positive_int(
            section["max_workers"], field="quiz.max_workers"
        ),
    )


def _build_share(section: Mapping[str, Any]) -> ShareConfig:
    return ShareConfig(
        app_name=_string(section["app_name"], field="share.app_name"),
        concise_limit=_positive_int(
            section["concise_limit"], field="share.concise_limit"
        ),
        detailed_limit=_positive_int(
            section["detailed_limit"], field="share.detailed_limit"
        ),
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = _string(section["level"], field="logging.level").upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(
            "logging.level must be one of " + ", ".join(_LOG_LEVELS) + "."
        )
    return LoggingConfig(
        level=level,
        verbose=_bool(section["verbose"], field="logging.verbose"),
    )


def _build_config(tree: Mapping[str, Any], *, home: Path) -> WhoCastConfig:
    return WhoCastConfig(
        neynar=_build_neynar(tree["neynar"]),
        directory=_build_directory(tree["directory"]),
        quiz=_build_quiz(tree["quiz"]),
        share=_build_share(tree["share"]),
        logging=_build_logging(tree["logging"]),
        data_home=home,
    )


_DEFAULTS: Dict[str, Any] = {
    "neynar": {
        "base_url": "https://api.neynar.com",
        "api_key_env": "NEYNAR_API_KEY",
        "timeout_seconds": 10,
    },
    "directory": {
        "target_count": 500,
        "page_size": 100,
        "max_pages": 20,
    },
    "quiz": {
        "num_questions": 10,
        "posts_per_friend": 10,
        "min_text_length": 20,
        "max_text_length": 200,
        "max_workers": 5,
    },
    "share": {
        "app_name": "WhoCast",
        "concise_limit": 320,
        "detailed_limit": 1024,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# WhoCast configuration

[neynar]
base_url = "https://api.neynar.com"
# Environment variable (or .env entry) holding the Neynar API key
api_key_env = "NEYNAR_API_KEY"
# Per-request timeout; a timeout counts as a failed fetch
timeout_seconds = 10

[directory]
# Stop paging the following list once this many friends are loaded
target_count = 500
# Friends requested per page (Neynar allows at most 100)
page_size = 100
max_pages = 20

[quiz]
num_questions = 10
# Recent casts fetched per selected friend
posts_per_friend = 10
# Casts must be strictly longer than min and strictly shorter than max
min_text_length = 20
max_text_length = 200
# Parallel cast fetches
max_workers = 5

[share]
app_name = "WhoCast"
# Character caps for the concise and detailed share texts
concise_limit = 320
detailed_limit = 1024

[logging]
level = "INFO"
verbose = false
"""
