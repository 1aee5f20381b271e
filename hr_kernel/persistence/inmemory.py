"""In-memory implementation of the workflow and notification repositories."""

from __future__ import annotations

from hr_kernel.domain.workflow import (
    NotificationEvent,
    StepRole,
    WorkflowInstance,
    WorkflowStatus,
    WorkflowType,
)
from hr_kernel.persistence.repository import (
    NotificationRepository,
    WorkflowRepository,
)


class InMemoryWorkflowRepository(WorkflowRepository):
    """Store workflow instances in local memory.

    Instances are kept by reference: the object returned by ``get`` is the
    one the engine mutates.  Data is not persisted across process restarts.
    """

    def __init__(self) -> None:
        self._workflows: dict[str, WorkflowInstance] = {}

    def get(self, workflow_id: str) -> WorkflowInstance | None:
        return self._workflows.get(workflow_id)

    def exists(self, workflow_id: str) -> bool:
        return workflow_id in self._workflows

    def save(self, instance: WorkflowInstance) -> None:
        self._workflows[instance.id] = instance

    def find_by_request(
        self, workflow_type: WorkflowType, request_id: str
    ) -> list[WorkflowInstance]:
        workflow_type = WorkflowType(workflow_type)
        return [
            wf
            for wf in self._workflows.values()
            if wf.workflow_type == workflow_type and wf.request_id == request_id
        ]

    def list_workflows(
        self,
        status: WorkflowStatus | None = None,
        branch_id: str | None = None,
    ) -> list[WorkflowInstance]:
        workflows = list(self._workflows.values())
        if status is not None:
            workflows = [wf for wf in workflows if wf.status == status]
        if branch_id is not None:
            workflows = [wf for wf in workflows if wf.branch_id == branch_id]
        return workflows


class InMemoryNotificationRepository(NotificationRepository):
    """Append-only list of notifications; only ``read`` is ever changed."""

    def __init__(self) -> None:
        self._notifications: list[NotificationEvent] = []

    def add(self, notification: NotificationEvent) -> None:
        self._notifications.append(notification)

    def get(self, notification_id: str) -> NotificationEvent | None:
        for notification in self._notifications:
            if notification.id == notification_id:
                return notification
        return None

    def save(self, notification: NotificationEvent) -> None:
        # Stored by reference; nothing to write back.
        pass

    def list_notifications(
        self, recipient_role: StepRole | None = None
    ) -> list[NotificationEvent]:
        if recipient_role is None:
            return list(self._notifications)
        return [
            n for n in self._notifications if n.recipient_role == recipient_role
        ]
