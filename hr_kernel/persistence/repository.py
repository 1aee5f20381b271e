"""Repository protocols for workflow and notification storage."""

from __future__ import annotations

from typing import Protocol

from hr_kernel.domain.workflow import (
    NotificationEvent,
    StepRole,
    WorkflowInstance,
    WorkflowStatus,
    WorkflowType,
)


class WorkflowRepository(Protocol):
    """Protocol for workflow instance persistence backends."""

    def get(self, workflow_id: str) -> WorkflowInstance | None:
        """Retrieve the instance by id."""

    def exists(self, workflow_id: str) -> bool:
        """True if an instance with this id has been saved."""

    def save(self, instance: WorkflowInstance) -> None:
        """Insert or update the instance, appending any new history lines."""

    def find_by_request(
        self, workflow_type: WorkflowType, request_id: str
    ) -> list[WorkflowInstance]:
        """All instances started for one request, oldest first."""

    def list_workflows(
        self,
        status: WorkflowStatus | None = None,
        branch_id: str | None = None,
    ) -> list[WorkflowInstance]:
        """Return persisted instances, optionally filtered."""


class NotificationRepository(Protocol):
    """Protocol for notification persistence backends."""

    def add(self, notification: NotificationEvent) -> None:
        """Persist a new notification."""

    def get(self, notification_id: str) -> NotificationEvent | None:
        """Retrieve the notification by id."""

    def save(self, notification: NotificationEvent) -> None:
        """Persist a change to ``read``."""

    def list_notifications(
        self, recipient_role: StepRole | None = None
    ) -> list[NotificationEvent]:
        """Notifications in creation order, optionally for one role."""
