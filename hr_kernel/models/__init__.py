"""SQLAlchemy ORM models for the workflow store."""

from hr_kernel.models.notification import NotificationModel
from hr_kernel.models.workflow import WorkflowHistoryModel, WorkflowInstanceModel

__all__ = [
    "NotificationModel",
    "WorkflowHistoryModel",
    "WorkflowInstanceModel",
]
