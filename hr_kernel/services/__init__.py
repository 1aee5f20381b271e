"""Kernel services."""

from hr_kernel.services.workflow_engine import WorkflowEngine

__all__ = ["WorkflowEngine"]
