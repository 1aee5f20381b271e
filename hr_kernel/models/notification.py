"""
Module: hr_kernel.models.notification
Responsibility: ORM persistence for role notifications.

Architecture position: Kernel > Models.  May import from db/base.py only.

Only ``read`` changes after insert; everything else is fixed at creation.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hr_kernel.db.base import Base

if TYPE_CHECKING:
    from hr_kernel.domain.workflow import NotificationEvent


class NotificationModel(Base):
    """Persistent notification for a role (optionally a specific user)."""

    __tablename__ = "workflow_notifications"

    __table_args__ = (
        CheckConstraint(
            "type IN ('assignment', 'approval', 'rejection', 'completion')",
            name="ck_workflow_notifications_type",
        ),
        Index("ix_workflow_notifications_role", "recipient_role", "created_at"),
    )

    notification_id: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True,
    )
    # Insertion order; created_at alone ties under a frozen clock
    sequence: Mapped[int] = mapped_column(nullable=False, unique=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    workflow_id: Mapped[str] = mapped_column(String(200), nullable=False)
    recipient_role: Mapped[str] = mapped_column(String(50), nullable=False)
    recipient_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    read: Mapped[bool] = mapped_column(default=False, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Notification {self.notification_id} "
            f"{self.type} -> {self.recipient_role} read={self.read}>"
        )

    def to_dto(self) -> NotificationEvent:
        from hr_kernel.domain.workflow import (
            NotificationEvent,
            NotificationType,
            StepRole,
        )

        return NotificationEvent(
            id=self.notification_id,
            type=NotificationType(self.type),
            workflow_id=self.workflow_id,
            recipient_role=StepRole(self.recipient_role),
            title=self.title,
            message=self.message,
            created_at=self.created_at,
            read=self.read,
            recipient_id=self.recipient_id,
        )

    @classmethod
    def from_dto(cls, dto: NotificationEvent, sequence: int) -> NotificationModel:
        return cls(
            notification_id=dto.id,
            sequence=sequence,
            type=dto.type.value,
            workflow_id=dto.workflow_id,
            recipient_role=dto.recipient_role.value,
            recipient_id=dto.recipient_id,
            title=dto.title,
            message=dto.message,
            created_at=dto.created_at,
            read=dto.read,
        )
