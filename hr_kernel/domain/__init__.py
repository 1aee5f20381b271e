"""
Pure domain layer.

Value objects and the injectable clock, with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O
"""

from hr_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from hr_kernel.domain.workflow import (
    COMPLETED_STEP,
    Decision,
    HistoryAction,
    NotificationEvent,
    NotificationType,
    RefusalReason,
    StepAction,
    StepRole,
    TransitionRefusal,
    WorkflowDefinition,
    WorkflowHistoryEntry,
    WorkflowInstance,
    WorkflowStatus,
    WorkflowStep,
    WorkflowType,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "COMPLETED_STEP",
    "Decision",
    "HistoryAction",
    "NotificationEvent",
    "NotificationType",
    "RefusalReason",
    "StepAction",
    "StepRole",
    "TransitionRefusal",
    "WorkflowDefinition",
    "WorkflowHistoryEntry",
    "WorkflowInstance",
    "WorkflowStatus",
    "WorkflowStep",
    "WorkflowType",
]
