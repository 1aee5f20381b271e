"""
hr_config -- settings and workflow definitions for the HR workflow engine.

Responsibility:
    ``load_settings()`` resolves runtime settings; ``get_active_definitions()``
    is the entrypoint for the workflow definitions the engine runs.

Architecture position:
    Configuration.  Sits above ``hr_kernel`` and below ``hr_services``.  The
    kernel MUST NEVER import from ``hr_config``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path

from hr_config.loader import compute_checksum, load_definitions
from hr_config.settings import EngineSettings, load_settings
from hr_kernel.domain.workflow import WorkflowDefinition

_logger = logging.getLogger("hr_kernel.config")

# Shipped YAML equivalent of the built-in definitions
DEFAULT_DEFINITIONS_FILE = Path(__file__).parent / "definitions" / "workflows.yaml"


def definitions_checksum(definitions: tuple[WorkflowDefinition, ...]) -> str:
    """Fingerprint of a definition set for change detection."""
    return compute_checksum(
        {d.workflow_type.value: asdict(d) for d in definitions}
    )


def get_active_definitions(
    path: Path | str | None = None,
) -> tuple[WorkflowDefinition, ...]:
    """
    Workflow definitions the engine should run.

    Loads ``path`` when given, otherwise returns the built-in
    ``hr_modules`` definitions.  Logs the set's checksum either way.
    """
    if path is not None:
        definitions = load_definitions(path)
        source = str(path)
    else:
        from hr_modules import BUILTIN_DEFINITIONS

        definitions = tuple(BUILTIN_DEFINITIONS)
        source = "hr_modules"

    _logger.info(
        "workflow_definitions_loaded",
        extra={
            "source": source,
            "workflow_types": [d.workflow_type.value for d in definitions],
            "checksum": definitions_checksum(definitions),
        },
    )
    return definitions


__all__ = [
    "DEFAULT_DEFINITIONS_FILE",
    "EngineSettings",
    "compute_checksum",
    "definitions_checksum",
    "get_active_definitions",
    "load_definitions",
    "load_settings",
]
