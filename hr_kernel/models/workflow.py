"""
Module: hr_kernel.models.workflow
Responsibility: ORM persistence for workflow instances and their history.

Architecture position: Kernel > Models.  May import from db/base.py and
    exceptions only.

Invariants enforced:
    - Literal values: check constraints pin workflow_type and status to the
      strings the UI consumes.
    - History is append-only: ORM listeners reject UPDATE and DELETE of
      WorkflowHistoryModel rows; UNIQUE(workflow_id, position) keeps the
      chronological order unambiguous.

Failure modes:
    - IntegrityError on a duplicate workflow_id or history position.
    - ImmutabilityViolationError on history UPDATE/DELETE.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_kernel.db.base import Base
from hr_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from hr_kernel.domain.workflow import WorkflowHistoryEntry, WorkflowInstance


_STATUS_VALUES = (
    "'draft', 'pending_ops', 'pending_hr', 'approved', 'rejected', 'disbursed'"
)


class WorkflowInstanceModel(Base):
    """Persistent workflow instance.

    Contract:
        ``status`` and ``current_step`` are updated on every transition;
        ``workflow_type``, ``request_id`` and ``created_at`` never change.
    """

    __tablename__ = "workflow_instances"

    __table_args__ = (
        CheckConstraint(
            "workflow_type IN ('leave', 'salary_advance')",
            name="ck_workflow_instances_type",
        ),
        CheckConstraint(
            f"status IN ({_STATUS_VALUES})",
            name="ck_workflow_instances_status",
        ),
        Index("ix_workflow_instances_request", "workflow_type", "request_id"),
        # Role queues: open instances per step, optionally per branch
        Index("ix_workflow_instances_queue", "status", "current_step", "branch_id"),
    )

    workflow_id: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    workflow_type: Mapped[str] = mapped_column(String(50), nullable=False)
    request_id: Mapped[str] = mapped_column(String(100), nullable=False)
    current_step: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    submitted_by: Mapped[str] = mapped_column(String(200), nullable=False)
    assigned_to: Mapped[str | None] = mapped_column(String(50), nullable=True)
    branch_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)

    history: Mapped[list["WorkflowHistoryModel"]] = relationship(
        "WorkflowHistoryModel",
        back_populates="workflow",
        primaryjoin="WorkflowInstanceModel.workflow_id == WorkflowHistoryModel.workflow_id",
        order_by="WorkflowHistoryModel.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<WorkflowInstance {self.workflow_id} "
            f"step={self.current_step} status={self.status}>"
        )

    def to_dto(self) -> WorkflowInstance:
        """Convert ORM model to a fresh domain instance."""
        from hr_kernel.domain.workflow import (
            StepRole,
            WorkflowInstance,
            WorkflowStatus,
            WorkflowType,
        )

        return WorkflowInstance(
            id=self.workflow_id,
            workflow_type=WorkflowType(self.workflow_type),
            request_id=self.request_id,
            current_step=self.current_step,
            status=WorkflowStatus(self.status),
            submitted_by=self.submitted_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
            assigned_to=StepRole(self.assigned_to) if self.assigned_to else None,
            branch_id=self.branch_id,
            history=[h.to_dto() for h in self.history],
        )

    @classmethod
    def from_dto(cls, dto: WorkflowInstance) -> WorkflowInstanceModel:
        """Create ORM model from a domain instance (history excluded)."""
        model = cls(workflow_id=dto.id, created_at=dto.created_at)
        model.apply(dto)
        return model

    def apply(self, dto: WorkflowInstance) -> None:
        """Copy the mutable fields of ``dto`` onto this row."""
        self.workflow_type = dto.workflow_type.value
        self.request_id = dto.request_id
        self.current_step = dto.current_step
        self.status = dto.status.value
        self.submitted_by = dto.submitted_by
        self.assigned_to = dto.assigned_to.value if dto.assigned_to else None
        self.branch_id = dto.branch_id
        self.updated_at = dto.updated_at


class WorkflowHistoryModel(Base):
    """Persistent history line. Append-only.

    Contract:
        Rows are immutable once created -- no UPDATE, no DELETE.
    """

    __tablename__ = "workflow_history"

    __table_args__ = (
        UniqueConstraint(
            "workflow_id", "position",
            name="uq_workflow_history_position",
        ),
    )

    workflow_id: Mapped[str] = mapped_column(
        String(200),
        ForeignKey("workflow_instances.workflow_id"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(nullable=False)
    step_id: Mapped[str] = mapped_column(String(50), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    performed_by: Mapped[str] = mapped_column(String(200), nullable=False)
    performed_at: Mapped[datetime] = mapped_column(nullable=False)
    previous_status: Mapped[str] = mapped_column(String(50), nullable=False)
    new_status: Mapped[str] = mapped_column(String(50), nullable=False)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    workflow: Mapped["WorkflowInstanceModel"] = relationship(
        "WorkflowInstanceModel",
        back_populates="history",
        foreign_keys=[workflow_id],
        primaryjoin="WorkflowHistoryModel.workflow_id == WorkflowInstanceModel.workflow_id",
    )

    def __repr__(self) -> str:
        return (
            f"<WorkflowHistory {self.workflow_id}#{self.position} "
            f"{self.action} {self.previous_status}->{self.new_status}>"
        )

    def to_dto(self) -> WorkflowHistoryEntry:
        from hr_kernel.domain.workflow import (
            HistoryAction,
            WorkflowHistoryEntry,
            WorkflowStatus,
        )

        return WorkflowHistoryEntry(
            step_id=self.step_id,
            action=HistoryAction(self.action),
            performed_by=self.performed_by,
            performed_at=self.performed_at,
            previous_status=WorkflowStatus(self.previous_status),
            new_status=WorkflowStatus(self.new_status),
            comments=self.comments,
        )

    @classmethod
    def from_dto(
        cls,
        workflow_id: str,
        position: int,
        dto: WorkflowHistoryEntry,
    ) -> WorkflowHistoryModel:
        return cls(
            workflow_id=workflow_id,
            position=position,
            step_id=dto.step_id,
            action=dto.action.value,
            performed_by=dto.performed_by,
            performed_at=dto.performed_at,
            previous_status=dto.previous_status.value,
            new_status=dto.new_status.value,
            comments=dto.comments,
        )


# =============================================================================
# ORM-Level Immutability for History (Append-Only)
# =============================================================================


@event.listens_for(WorkflowHistoryModel, "before_update")
def prevent_history_update(mapper, connection, target):
    """Prevent updates to workflow history rows."""
    raise ImmutabilityViolationError(
        entity_type="WorkflowHistory",
        entity_id=f"{target.workflow_id}#{target.position}",
        reason="Workflow history is append-only -- cannot modify",
    )


@event.listens_for(WorkflowHistoryModel, "before_delete")
def prevent_history_delete(mapper, connection, target):
    """Prevent deletion of workflow history rows."""
    raise ImmutabilityViolationError(
        entity_type="WorkflowHistory",
        entity_id=f"{target.workflow_id}#{target.position}",
        reason="Workflow history is append-only -- cannot delete",
    )
