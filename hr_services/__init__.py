"""
hr_services -- wiring for the HR workflow engine.

Dependency direction:
    hr_services/ -> hr_config/, hr_kernel/  (allowed)
    hr_kernel/   -> hr_services/            (FORBIDDEN)
"""

from hr_services.bootstrap import build_workflow_engine, init_runtime

__all__ = ["build_workflow_engine", "init_runtime"]
