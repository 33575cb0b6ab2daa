"""Shared helpers for whocast commands."""

from __future__ import annotations

from .config import load_toml, merge_defaults, write_toml_template
from .logging import JsonLogFormatter, configure_logger

__all__ = [
    "load_toml",
    "merge_defaults",
    "write_toml_template",
    "JsonLogFormatter",
    "configure_logger",
]
