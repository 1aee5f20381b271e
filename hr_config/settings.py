"""
Engine settings (``hr_config.settings``).

Settings come from an optional YAML file, overlaid by environment
variables:

    HRMS_CONFIG                 path of the YAML settings file
    HRMS_DATABASE_URL           database URL (falls back to DATABASE_URL)
    HRMS_LOG_LEVEL              DEBUG / INFO / WARNING / ERROR
    HRMS_WORKFLOW_DEFINITIONS   YAML file of workflow definitions
    HRMS_SQL_ECHO               log SQL statements (1 / true / yes / on)

No database URL means the engine runs on the in-memory repositories.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from hr_config.loader import load_yaml_file
from hr_kernel.exceptions import ConfigurationError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class EngineSettings:
    """Resolved runtime settings."""

    database_url: str | None = None
    log_level: str = "INFO"
    workflow_definitions: Path | None = None
    sql_echo: bool = False

    @property
    def uses_database(self) -> bool:
        return bool(self.database_url)

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def load_settings(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> EngineSettings:
    """
    Resolve settings from ``path`` (or ``HRMS_CONFIG``) and the environment.

    Environment variables win over file values.

    Raises:
        ConfigurationError: unknown log level or a non-mapping YAML file.
        FileNotFoundError: the settings file does not exist.
    """
    environ = os.environ if environ is None else environ
    path = path or environ.get("HRMS_CONFIG")

    data: dict[str, Any] = {}
    source = "environment"
    if path:
        source = str(path)
        data = load_yaml_file(Path(path))
        if not isinstance(data, dict):
            raise ConfigurationError(source, "settings file must be a mapping")

    database_url = (
        environ.get("HRMS_DATABASE_URL")
        or environ.get("DATABASE_URL")
        or data.get("database_url")
    )
    log_level = str(
        environ.get("HRMS_LOG_LEVEL") or data.get("log_level") or "INFO"
    ).upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigurationError(source, f"unknown log level {log_level!r}")

    definitions = (
        environ.get("HRMS_WORKFLOW_DEFINITIONS") or data.get("workflow_definitions")
    )
    echo = environ.get("HRMS_SQL_ECHO")
    if echo is None:
        echo = data.get("sql_echo", False)

    return EngineSettings(
        database_url=database_url or None,
        log_level=log_level,
        workflow_definitions=Path(definitions) if definitions else None,
        sql_echo=_parse_bool(echo),
    )
