"""Persistence layer for workflow instances and notifications."""

from hr_kernel.persistence.inmemory import (
    InMemoryNotificationRepository,
    InMemoryWorkflowRepository,
)
from hr_kernel.persistence.repository import (
    NotificationRepository,
    WorkflowRepository,
)
from hr_kernel.persistence.sql import (
    SqlNotificationRepository,
    SqlWorkflowRepository,
)

__all__ = [
    "InMemoryNotificationRepository",
    "InMemoryWorkflowRepository",
    "NotificationRepository",
    "SqlNotificationRepository",
    "SqlWorkflowRepository",
    "WorkflowRepository",
]
