"""
Module: hr_kernel.persistence.sql
Responsibility: SQLAlchemy-backed workflow and notification repositories.

Architecture position: Kernel > Persistence.  Imports models/ and domain/.

Invariants enforced:
    - Flush-only: repositories write within the caller's transaction and
      never commit or roll back.  ``session_scope()`` or the test harness
      owns the transaction.
    - History is append-only: ``save`` inserts the lines beyond those
      already stored and refuses an instance whose history shrank.

Loading always returns fresh domain objects (``to_dto``); the engine
mutates them and hands them back to ``save``.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hr_kernel.domain.workflow import (
    NotificationEvent,
    StepRole,
    WorkflowInstance,
    WorkflowStatus,
    WorkflowType,
)
from hr_kernel.exceptions import ImmutabilityViolationError
from hr_kernel.logging_config import get_logger
from hr_kernel.models.notification import NotificationModel
from hr_kernel.models.workflow import WorkflowHistoryModel, WorkflowInstanceModel

logger = get_logger("persistence.sql")


class SqlWorkflowRepository:
    """Workflow instances stored in ``workflow_instances`` / ``workflow_history``."""

    def __init__(self, session: Session):
        self._session = session

    def _load(self, workflow_id: str) -> WorkflowInstanceModel | None:
        return self._session.execute(
            select(WorkflowInstanceModel).where(
                WorkflowInstanceModel.workflow_id == workflow_id
            )
        ).scalar_one_or_none()

    def get(self, workflow_id: str) -> WorkflowInstance | None:
        model = self._load(workflow_id)
        return model.to_dto() if model is not None else None

    def exists(self, workflow_id: str) -> bool:
        return self._load(workflow_id) is not None

    def save(self, instance: WorkflowInstance) -> None:
        model = self._load(instance.id)
        stored = len(model.history) if model is not None else 0
        if len(instance.history) < stored:
            raise ImmutabilityViolationError(
                entity_type="WorkflowHistory",
                entity_id=instance.id,
                reason=(
                    f"instance carries {len(instance.history)} history lines, "
                    f"{stored} already stored"
                ),
            )

        if model is None:
            model = WorkflowInstanceModel.from_dto(instance)
            self._session.add(model)
        else:
            model.apply(instance)

        for position in range(stored, len(instance.history)):
            model.history.append(
                WorkflowHistoryModel.from_dto(
                    instance.id, position, instance.history[position]
                )
            )

        self._session.flush()

        logger.debug(
            "workflow_saved",
            extra={
                "workflow_id": instance.id,
                "status": instance.status.value,
                "history_appended": len(instance.history) - stored,
            },
        )

    def find_by_request(
        self, workflow_type: WorkflowType, request_id: str
    ) -> list[WorkflowInstance]:
        models = self._session.execute(
            select(WorkflowInstanceModel)
            .where(
                WorkflowInstanceModel.workflow_type == WorkflowType(workflow_type).value,
                WorkflowInstanceModel.request_id == request_id,
            )
            .order_by(WorkflowInstanceModel.created_at, WorkflowInstanceModel.workflow_id)
        ).scalars().all()
        return [m.to_dto() for m in models]

    def list_workflows(
        self,
        status: WorkflowStatus | None = None,
        branch_id: str | None = None,
    ) -> list[WorkflowInstance]:
        query = select(WorkflowInstanceModel)
        if status is not None:
            query = query.where(
                WorkflowInstanceModel.status == WorkflowStatus(status).value
            )
        if branch_id is not None:
            query = query.where(WorkflowInstanceModel.branch_id == branch_id)
        query = query.order_by(
            WorkflowInstanceModel.created_at, WorkflowInstanceModel.workflow_id
        )
        return [m.to_dto() for m in self._session.execute(query).scalars().all()]


class SqlNotificationRepository:
    """Notifications stored in ``workflow_notifications``."""

    def __init__(self, session: Session):
        self._session = session

    def _load(self, notification_id: str) -> NotificationModel | None:
        return self._session.execute(
            select(NotificationModel).where(
                NotificationModel.notification_id == notification_id
            )
        ).scalar_one_or_none()

    def add(self, notification: NotificationEvent) -> None:
        last = self._session.execute(
            select(func.max(NotificationModel.sequence))
        ).scalar()
        self._session.add(
            NotificationModel.from_dto(notification, sequence=(last or 0) + 1)
        )
        self._session.flush()

    def get(self, notification_id: str) -> NotificationEvent | None:
        model = self._load(notification_id)
        return model.to_dto() if model is not None else None

    def save(self, notification: NotificationEvent) -> None:
        model = self._load(notification.id)
        if model is None:
            self.add(notification)
            return
        model.read = notification.read
        self._session.flush()

    def list_notifications(
        self, recipient_role: StepRole | None = None
    ) -> list[NotificationEvent]:
        query = select(NotificationModel)
        if recipient_role is not None:
            query = query.where(
                NotificationModel.recipient_role == StepRole(recipient_role).value
            )
        query = query.order_by(NotificationModel.sequence)
        return [m.to_dto() for m in self._session.execute(query).scalars().all()]
