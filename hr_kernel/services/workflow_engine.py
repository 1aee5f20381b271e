"""
WorkflowEngine -- Approval state machine for leave and salary advance requests.

Responsibility:
    Owns the lifecycle of every workflow instance: creation (which performs
    the submission step), approval, rejection, forwarding from operations,
    and rebuilding instances from a persisted request status.  Every
    successful transition appends exactly one history line and emits
    exactly one notification.

Architecture position:
    Kernel > Services -- imperative shell.  Reads step sequences from
    ``WorkflowDefinition`` objects (``hr_modules`` by default), persists
    through a ``WorkflowRepository`` / ``NotificationRepository`` and takes
    time from an injected ``Clock``.

Invariants enforced:
    - Status derivation: an instance's status is always
      ``definition.status_for_step(current_step)`` after an approval or a
      forward; rejection pins it to ``rejected``.
    - History chain: each new line's ``previous_status`` is the status the
      instance carried before the call.
    - Refusals are no-ops: a refused call returns ``None``, leaves the
      instance untouched and records ``last_refusal``.

Failure modes:
    - UnknownWorkflowTypeError for a request type with no definition.
    - ValueError for a decision other than ``approve`` / ``reject``.
    - UnknownStatusError when a persisted status has no place in the
      request type's workflow.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from hr_kernel.domain.clock import Clock, SystemClock
from hr_kernel.domain.workflow import (
    COMPLETED_STEP,
    Decision,
    HistoryAction,
    NotificationEvent,
    NotificationType,
    RefusalReason,
    StepRole,
    TransitionRefusal,
    WorkflowDefinition,
    WorkflowHistoryEntry,
    WorkflowInstance,
    WorkflowStatus,
    WorkflowStep,
    WorkflowType,
)
from hr_kernel.exceptions import (
    UnknownStatusError,
    UnknownWorkflowTypeError,
    WorkflowNotFoundError,
)
from hr_kernel.logging_config import LogContext, get_logger
from hr_kernel.persistence.inmemory import (
    InMemoryNotificationRepository,
    InMemoryWorkflowRepository,
)
from hr_kernel.persistence.repository import (
    NotificationRepository,
    WorkflowRepository,
)

logger = get_logger("services.workflow_engine")


class WorkflowEngine:
    """
    Runs approval workflows over a set of definitions.

    Contract:
        Construct one engine per unit of work (or per process for the
        in-memory backend).  The engine never commits; with SQL
        repositories the caller owns the transaction.

    Guarantees:
        - ``create_workflow`` always succeeds for a known request type.
        - ``progress_workflow`` / ``forward_workflow`` return the mutated
          instance on success, ``None`` on refusal.
    """

    def __init__(
        self,
        repository: WorkflowRepository | None = None,
        notifications: NotificationRepository | None = None,
        clock: Clock | None = None,
        definitions: Iterable[WorkflowDefinition] | None = None,
    ):
        if definitions is None:
            from hr_modules import BUILTIN_DEFINITIONS

            definitions = BUILTIN_DEFINITIONS

        self._repository = repository or InMemoryWorkflowRepository()
        self._notifications = notifications or InMemoryNotificationRepository()
        self._clock = clock or SystemClock()
        self._definitions: dict[WorkflowType, WorkflowDefinition] = {
            d.workflow_type: d for d in definitions
        }
        self.last_refusal: TransitionRefusal | None = None

    # =========================================================================
    # Definitions
    # =========================================================================

    @property
    def workflow_types(self) -> tuple[WorkflowType, ...]:
        return tuple(self._definitions)

    def get_definition(self, workflow_type: WorkflowType | str) -> WorkflowDefinition:
        """
        Raises:
            UnknownWorkflowTypeError: no definition registered for the type.
        """
        try:
            definition = self._definitions.get(WorkflowType(workflow_type))
        except ValueError:
            definition = None
        if definition is None:
            raise UnknownWorkflowTypeError(_literal(workflow_type))
        return definition

    def get_current_step(self, instance: WorkflowInstance) -> WorkflowStep | None:
        """The step the instance sits at; None once completed."""
        return self.get_definition(instance.workflow_type).get_step(
            instance.current_step
        )

    def get_next_step(
        self, instance: WorkflowInstance, current_step: str
    ) -> str | None:
        return self.get_definition(instance.workflow_type).next_step_id(current_step)

    def get_status_for_step(
        self, workflow_type: WorkflowType | str, step_id: str
    ) -> WorkflowStatus:
        return self.get_definition(workflow_type).status_for_step(step_id)

    def assign_to_next_role(
        self, instance: WorkflowInstance, acting_step: WorkflowStep
    ) -> None:
        """Hand the instance over from the role that just acted."""
        definition = self.get_definition(instance.workflow_type)
        instance.assigned_to = definition.handoff_role(acting_step.role)

    # =========================================================================
    # Creation and lookup
    # =========================================================================

    def create_workflow(
        self,
        workflow_type: WorkflowType | str,
        request_id: str | int,
        submitted_by: str,
        branch_id: str | None = None,
    ) -> WorkflowInstance:
        """
        Start a workflow for a request and perform its submission step.

        Postconditions:
            - One history line ``submit: draft -> initial status``.
            - ``current_step`` is the step that acts next.
        """
        definition = self.get_definition(workflow_type)
        request_id = str(request_id)
        now = self._clock.now()
        submit_step = definition.initial_step
        target = submit_step.next_step or COMPLETED_STEP
        status = definition.status_for_step(target)

        instance = WorkflowInstance(
            id=self._new_workflow_id(definition.workflow_type, request_id),
            workflow_type=definition.workflow_type,
            request_id=request_id,
            current_step=target,
            status=status,
            submitted_by=submitted_by,
            created_at=now,
            updated_at=now,
            branch_id=branch_id,
        )
        instance.history.append(
            WorkflowHistoryEntry(
                step_id=submit_step.id,
                action=HistoryAction.SUBMIT,
                performed_by=submitted_by,
                performed_at=now,
                previous_status=WorkflowStatus.DRAFT,
                new_status=status,
            )
        )
        if submit_step.next_step is not None:
            self.assign_to_next_role(instance, submit_step)

        self._repository.save(instance)

        with LogContext.bind(
            workflow_id=instance.id, request_id=request_id, actor_id=submitted_by,
        ):
            logger.info(
                "workflow_created",
                extra={
                    "workflow_type": instance.workflow_type.value,
                    "current_step": instance.current_step,
                    "status": instance.status.value,
                    "assigned_to": (
                        instance.assigned_to.value if instance.assigned_to else None
                    ),
                    "branch_id": branch_id,
                },
            )

        return instance

    def get_workflow(self, workflow_id: str) -> WorkflowInstance | None:
        return self._repository.get(workflow_id)

    def require_workflow(self, workflow_id: str) -> WorkflowInstance:
        """
        Raises:
            WorkflowNotFoundError: no instance with this id.
        """
        instance = self._repository.get(workflow_id)
        if instance is None:
            raise WorkflowNotFoundError(workflow_id)
        return instance

    def get_workflows_for_request(
        self, workflow_type: WorkflowType | str, request_id: str | int
    ) -> list[WorkflowInstance]:
        definition = self.get_definition(workflow_type)
        return self._repository.find_by_request(
            definition.workflow_type, str(request_id)
        )

    def get_pending_for_role(
        self, role: StepRole | str, branch_id: str | None = None
    ) -> list[WorkflowInstance]:
        """Open instances whose current step is owned by ``role``.

        ``branch_id`` restricts the queue to one branch, the view an
        operations manager gets.
        """
        role = StepRole(role)
        pending = []
        for instance in self._repository.list_workflows(branch_id=branch_id):
            if instance.is_closed:
                continue
            step = self.get_current_step(instance)
            if step is not None and step.role == role:
                pending.append(instance)
        return pending

    # =========================================================================
    # Transitions
    # =========================================================================

    def progress_workflow(
        self,
        workflow_id: str,
        action: Decision | str,
        performed_by: str,
        comments: str | None = None,
    ) -> WorkflowInstance | None:
        """
        Approve or reject the instance's current step.

        Approval moves to the next step (or ``completed``) and derives the
        status from it; rejection sets ``rejected`` and leaves the step where
        it is.  Notifies the role that acted.

        Raises:
            ValueError: ``action`` is not a known decision.
        """
        decision = Decision(action)
        opened = self._open(workflow_id, "progress")
        if opened is None:
            return None
        instance, definition, step = opened

        previous_status = instance.status
        now = self._clock.now()

        if decision == Decision.APPROVE:
            next_step = self.get_next_step(instance, step.id)
            target = next_step or COMPLETED_STEP
            instance.current_step = target
            instance.status = definition.status_for_step(target)
            history_action = HistoryAction.APPROVE
            if next_step is not None:
                self.assign_to_next_role(instance, step)
            notification_type = NotificationType.APPROVAL
            title = "Workflow Approved"
            message = f"Your workflow has been approved by {performed_by}."
        else:
            instance.status = WorkflowStatus.REJECTED
            history_action = HistoryAction.REJECT
            notification_type = NotificationType.REJECTION
            title = "Workflow Rejected"
            message = f"Your workflow has been rejected by {performed_by}."

        instance.updated_at = now
        instance.history.append(
            WorkflowHistoryEntry(
                step_id=step.id,
                action=history_action,
                performed_by=performed_by,
                performed_at=now,
                previous_status=previous_status,
                new_status=instance.status,
                comments=comments,
            )
        )
        self._repository.save(instance)

        with LogContext.bind(workflow_id=instance.id, actor_id=performed_by):
            logger.info(
                "workflow_progressed",
                extra={
                    "decision": decision.value,
                    "step_id": step.id,
                    "previous_status": previous_status.value,
                    "new_status": instance.status.value,
                    "current_step": instance.current_step,
                },
            )
            self._notify(
                instance, history_action, notification_type, step.role, title, message,
            )

        self.last_refusal = None
        return instance

    def forward_workflow(
        self,
        workflow_id: str,
        performed_by: str,
        comments: str | None = None,
    ) -> WorkflowInstance | None:
        """
        Forward the instance from an operations step to the step after it.

        Only steps owned by ``operations`` can be forwarded; anything else is
        refused and the instance is untouched.  Forwarding the last step
        completes the instance, as an approval would.  Notifies the role that
        owns the new current step, or the acting role when there is none.
        """
        opened = self._open(workflow_id, "forward")
        if opened is None:
            return None
        instance, definition, step = opened

        if step.role != StepRole.OPERATIONS:
            return self._refuse(workflow_id, "forward", RefusalReason.NOT_OPERATIONS_STEP)
        next_step = self.get_next_step(instance, step.id)
        target = next_step or COMPLETED_STEP

        previous_status = instance.status
        now = self._clock.now()

        instance.current_step = target
        instance.status = definition.status_for_step(target)
        instance.updated_at = now
        instance.history.append(
            WorkflowHistoryEntry(
                step_id=step.id,
                action=HistoryAction.FORWARD,
                performed_by=performed_by,
                performed_at=now,
                previous_status=previous_status,
                new_status=instance.status,
                comments=comments,
            )
        )
        if next_step is not None:
            self.assign_to_next_role(instance, step)
            recipient = definition.get_step(next_step).role
        else:
            recipient = step.role
        self._repository.save(instance)

        with LogContext.bind(workflow_id=instance.id, actor_id=performed_by):
            logger.info(
                "workflow_forwarded",
                extra={
                    "from_step": step.id,
                    "to_step": target,
                    "previous_status": previous_status.value,
                    "new_status": instance.status.value,
                },
            )
            self._notify(
                instance,
                HistoryAction.FORWARD,
                NotificationType.ASSIGNMENT,
                recipient,
                "Workflow Forwarded",
                f"The workflow has been forwarded to you by {performed_by}.",
            )

        self.last_refusal = None
        return instance

    def restore_workflow(
        self,
        workflow_type: WorkflowType | str,
        request_id: str | int,
        persisted_status: WorkflowStatus | str,
        submitted_by: str,
        branch_id: str | None = None,
    ) -> WorkflowInstance:
        """
        Rebuild an instance from the status stored on the request record.

        The request record is the source of truth; the rebuilt instance is
        positioned at the step that status implies and carries one
        ``restore`` history line.  No notification is emitted.

        Raises:
            UnknownStatusError: the status has no place in this workflow.
        """
        definition = self.get_definition(workflow_type)
        request_id = str(request_id)
        literal = _literal(persisted_status)

        status = definition.resolve_record_status(literal)
        step_id = None
        if status is not None and status != WorkflowStatus.DRAFT:
            step_id = definition.step_for_status(status)
        if step_id is None:
            raise UnknownStatusError(definition.workflow_type.value, literal)

        now = self._clock.now()
        instance = WorkflowInstance(
            id=self._new_workflow_id(definition.workflow_type, request_id),
            workflow_type=definition.workflow_type,
            request_id=request_id,
            current_step=step_id,
            status=status,
            submitted_by=submitted_by,
            created_at=now,
            updated_at=now,
            branch_id=branch_id,
        )
        instance.history.append(
            WorkflowHistoryEntry(
                step_id=definition.initial_step.id,
                action=HistoryAction.RESTORE,
                performed_by=submitted_by,
                performed_at=now,
                previous_status=WorkflowStatus.DRAFT,
                new_status=status,
            )
        )
        current = definition.get_step(step_id)
        if current is not None and not instance.is_closed:
            instance.assigned_to = current.role

        self._repository.save(instance)

        with LogContext.bind(workflow_id=instance.id, request_id=request_id):
            logger.info(
                "workflow_restored",
                extra={
                    "workflow_type": instance.workflow_type.value,
                    "persisted_status": literal,
                    "status": status.value,
                    "current_step": step_id,
                },
            )

        return instance

    # =========================================================================
    # Notifications
    # =========================================================================

    def get_notifications_by_role(
        self, role: StepRole | str
    ) -> list[NotificationEvent]:
        return self._notifications.list_notifications(StepRole(role))

    def get_unread_count(self, role: StepRole | str) -> int:
        return sum(1 for n in self.get_notifications_by_role(role) if not n.read)

    def mark_notification_read(
        self, notification_id: str
    ) -> NotificationEvent | None:
        notification = self._notifications.get(notification_id)
        if notification is None:
            return None
        notification.read = True
        self._notifications.save(notification)
        return notification

    # =========================================================================
    # Internals
    # =========================================================================

    def _new_workflow_id(self, workflow_type: WorkflowType, request_id: str) -> str:
        base = f"{workflow_type.value}_{request_id}_{self._clock.now_millis()}"
        candidate = base
        suffix = 1
        while self._repository.exists(candidate):
            candidate = f"{base}_{suffix}"
            suffix += 1
        return candidate

    def _open(
        self, workflow_id: str, operation: str
    ) -> tuple[WorkflowInstance, WorkflowDefinition, WorkflowStep] | None:
        """Load an instance that can still transition, or record a refusal."""
        instance = self._repository.get(workflow_id)
        if instance is None:
            return self._refuse(workflow_id, operation, RefusalReason.NOT_FOUND)
        if instance.is_rejected:
            return self._refuse(workflow_id, operation, RefusalReason.ALREADY_REJECTED)
        definition = self.get_definition(instance.workflow_type)
        step = definition.get_step(instance.current_step)
        if step is None:
            return self._refuse(workflow_id, operation, RefusalReason.NO_CURRENT_STEP)
        return instance, definition, step

    def _refuse(self, workflow_id: str, operation: str, reason: RefusalReason) -> None:
        self.last_refusal = TransitionRefusal(
            workflow_id=workflow_id, operation=operation, reason=reason,
        )
        logger.warning(
            "workflow_transition_refused",
            extra={
                "workflow_id": workflow_id,
                "operation": operation,
                "reason": reason.value,
            },
        )
        return None

    def _notify(
        self,
        instance: WorkflowInstance,
        action: HistoryAction,
        notification_type: NotificationType,
        recipient_role: StepRole,
        title: str,
        message: str,
    ) -> NotificationEvent:
        notification = NotificationEvent(
            id=f"{instance.id}_{action.value}_{len(instance.history)}",
            type=notification_type,
            workflow_id=instance.id,
            recipient_role=recipient_role,
            title=title,
            message=message,
            created_at=instance.updated_at,
        )
        self._notifications.add(notification)
        logger.info(
            "notification_emitted",
            extra={
                "notification_id": notification.id,
                "notification_type": notification_type.value,
                "recipient_role": recipient_role.value,
            },
        )
        return notification


def _literal(value: object) -> str:
    """The raw string behind an enum member or plain value."""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)
