"""
Definition Loader (``hr_config.loader``).

Responsibility
--------------
Loads YAML files and parses workflow definitions into the kernel's frozen
``WorkflowDefinition`` objects.  Runtime callers go through
``hr_config.get_active_definitions()``.

Architecture position
---------------------
**Config layer**.  Imports kernel domain types; the kernel never imports
from ``hr_config``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing keys or unknown literals  -> ``ConfigurationError``.
* Inconsistent step sequence  -> ``WorkflowDefinitionError`` (from the
  domain constructor).
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from hr_kernel.domain.workflow import WorkflowDefinition, WorkflowStep
from hr_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (possibly empty if the YAML is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_step(data: dict[str, Any]) -> WorkflowStep:
    """Parse a WorkflowStep from a dict."""
    return WorkflowStep(
        id=data["id"],
        name=data.get("name", data["id"]),
        role=data["role"],
        action=data["action"],
        status=data["status"],
        next_step=data.get("next_step"),
    )


def parse_definition(data: dict[str, Any]) -> WorkflowDefinition:
    """
    Parse a ``WorkflowDefinition`` from a dict.

    Preconditions:
        - ``data`` contains ``workflow_type``, ``completed_status`` and a
          non-empty ``steps`` list.
    Raises:
        KeyError: if required keys are missing.
        ValueError: if a role, action or status literal is unknown.
    """
    return WorkflowDefinition(
        workflow_type=data["workflow_type"],
        description=data.get("description", ""),
        steps=tuple(parse_step(s) for s in data["steps"]),
        completed_status=data["completed_status"],
        role_handoff=tuple((data.get("role_handoff") or {}).items()),
        record_statuses=tuple((data.get("record_statuses") or {}).items()),
    )


def load_definitions(path: Path | str) -> tuple[WorkflowDefinition, ...]:
    """
    Load every workflow definition listed under ``workflows:`` in a file.

    Raises:
        ConfigurationError: missing keys, unknown literals or a request type
            defined twice.
    """
    path = Path(path)
    raw = load_yaml_file(path)
    entries = raw.get("workflows")
    if not entries:
        raise ConfigurationError(str(path), "no 'workflows' entries")

    definitions = []
    for index, entry in enumerate(entries):
        try:
            definitions.append(parse_definition(entry))
        except KeyError as exc:
            raise ConfigurationError(
                str(path), f"workflow #{index} is missing key {exc}"
            ) from exc
        except ValueError as exc:
            raise ConfigurationError(str(path), f"workflow #{index}: {exc}") from exc

    types = [d.workflow_type for d in definitions]
    duplicates = sorted({t.value for t in types if types.count(t) > 1})
    if duplicates:
        raise ConfigurationError(str(path), f"duplicate workflow types {duplicates}")

    return tuple(definitions)


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
