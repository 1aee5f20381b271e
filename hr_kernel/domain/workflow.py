"""
Approval workflow types (``hr_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for the leave / salary advance approval workflows.
Defines the step sequence of a request type, the status each step
implies, the append-only history line, the runtime instance and the
notification record.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``models/``, ``services/`` or ``persistence/``.

Invariants enforced
-------------------
* Step order: each non-final step's ``next_step`` is the id of the step
  that follows it; the final step has no ``next_step``.  Checked when a
  ``WorkflowDefinition`` is built.
* Status derivation: the status of an instance is read from the step it
  sits at (``WorkflowStep.status``), so the step table and the status
  table cannot drift apart.
* History chain: ``history[i].previous_status == history[i-1].new_status``.

Status literals (``WorkflowStatus`` values) are consumed verbatim by the
UI badge code and must never be renamed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from hr_kernel.exceptions import StepNotFoundError, WorkflowDefinitionError

COMPLETED_STEP = "completed"


# =========================================================================
# Vocabulary
# =========================================================================


class WorkflowType(str, Enum):
    """Request types that run through an approval workflow."""

    LEAVE = "leave"
    SALARY_ADVANCE = "salary_advance"


class StepRole(str, Enum):
    """Actor category authorized to act at a step."""

    EMPLOYEE = "employee"
    OPERATIONS = "operations"
    HR = "hr"
    ADMIN = "admin"


class StepAction(str, Enum):
    """Operation performed at a step."""

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    DISBURSE = "disburse"


class Decision(str, Enum):
    """Decision passed to ``progress_workflow``."""

    APPROVE = "approve"
    REJECT = "reject"


class HistoryAction(str, Enum):
    """Action recorded on a history line."""

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    FORWARD = "forward"
    RESTORE = "restore"


class WorkflowStatus(str, Enum):
    """UI-facing request status."""

    DRAFT = "draft"
    PENDING_OPS = "pending_ops"
    PENDING_HR = "pending_hr"
    APPROVED = "approved"
    REJECTED = "rejected"
    DISBURSED = "disbursed"


class NotificationType(str, Enum):
    """Kind of notification emitted for a transition."""

    ASSIGNMENT = "assignment"
    APPROVAL = "approval"
    REJECTION = "rejection"
    COMPLETION = "completion"


class RefusalReason(str, Enum):
    """Why a transition returned ``None``."""

    NOT_FOUND = "not_found"
    NO_CURRENT_STEP = "no_current_step"
    ALREADY_REJECTED = "already_rejected"
    NOT_OPERATIONS_STEP = "not_operations_step"


# =========================================================================
# Static definitions
# =========================================================================


@dataclass(frozen=True)
class WorkflowStep:
    """One node of a request type's step sequence.

    ``status`` is the status an instance carries while it sits at this
    step.  Plain strings are accepted for the enum fields so definitions
    can be built from YAML.
    """

    id: str
    name: str
    role: StepRole
    action: StepAction
    status: WorkflowStatus
    next_step: str | None = None

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValueError("Workflow step id is required")
        object.__setattr__(self, "role", StepRole(self.role))
        object.__setattr__(self, "action", StepAction(self.action))
        object.__setattr__(self, "status", WorkflowStatus(self.status))

    @property
    def is_terminal(self) -> bool:
        return self.next_step is None


@dataclass(frozen=True)
class WorkflowDefinition:
    """The immutable step sequence for one request type.

    Contract:
        ``steps`` are ordered; ``steps[0]`` is the submission step.
        ``role_handoff`` maps the role that just acted to the role the
        instance is assigned to next.  ``record_statuses`` maps status
        values stored on the underlying request record onto workflow
        statuses, for rebuilding instances from the system of record.

    Raises:
        WorkflowDefinitionError: if the step sequence is malformed.
    """

    workflow_type: WorkflowType
    description: str
    steps: tuple[WorkflowStep, ...]
    completed_status: WorkflowStatus
    role_handoff: tuple[tuple[StepRole, StepRole], ...] = ()
    record_statuses: tuple[tuple[str, WorkflowStatus], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "workflow_type", WorkflowType(self.workflow_type))
        object.__setattr__(
            self, "completed_status", WorkflowStatus(self.completed_status)
        )
        object.__setattr__(self, "steps", tuple(self.steps))
        object.__setattr__(
            self,
            "role_handoff",
            tuple((StepRole(a), StepRole(b)) for a, b in self.role_handoff),
        )
        object.__setattr__(
            self,
            "record_statuses",
            tuple((str(k), WorkflowStatus(v)) for k, v in self.record_statuses),
        )
        self._validate()

    def _validate(self) -> None:
        name = self.workflow_type.value
        if not self.steps:
            raise WorkflowDefinitionError(name, "at least one step is required")

        ids = [step.id for step in self.steps]
        if len(set(ids)) != len(ids):
            raise WorkflowDefinitionError(name, f"duplicate step ids in {ids}")
        if COMPLETED_STEP in ids:
            raise WorkflowDefinitionError(
                name, f"'{COMPLETED_STEP}' is reserved and cannot name a step"
            )

        for index, step in enumerate(self.steps):
            expected = ids[index + 1] if index + 1 < len(ids) else None
            if step.next_step != expected:
                raise WorkflowDefinitionError(
                    name,
                    f"step '{step.id}' points to '{step.next_step}', "
                    f"expected '{expected}'",
                )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def initial_step(self) -> WorkflowStep:
        return self.steps[0]

    @property
    def initial_status(self) -> WorkflowStatus:
        """Status of a freshly submitted request."""
        return self.status_for_step(self.initial_step.next_step or COMPLETED_STEP)

    def get_step(self, step_id: str | None) -> WorkflowStep | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def next_step_id(self, step_id: str) -> str | None:
        """Id of the step following ``step_id``; None if it is the last."""
        for index, step in enumerate(self.steps):
            if step.id == step_id:
                if index + 1 < len(self.steps):
                    return self.steps[index + 1].id
                return None
        return None

    def status_for_step(self, step_id: str) -> WorkflowStatus:
        """Status implied by sitting at ``step_id``.

        Raises:
            StepNotFoundError: ``step_id`` is neither a step nor ``completed``.
        """
        if step_id == COMPLETED_STEP:
            return self.completed_status
        step = self.get_step(step_id)
        if step is None:
            raise StepNotFoundError(self.workflow_type.value, step_id)
        return step.status

    def status_table(self) -> dict[str, WorkflowStatus]:
        """Every reachable step id (plus ``completed``) and its status."""
        table = {step.id: step.status for step in self.steps}
        table[COMPLETED_STEP] = self.completed_status
        return table

    def handoff_role(self, role: StepRole) -> StepRole | None:
        for acting, assigned in self.role_handoff:
            if acting == role:
                return assigned
        return None

    def step_for_status(self, status: WorkflowStatus) -> str | None:
        """Step an instance with ``status`` should sit at.

        Review steps are searched in order, so the first step carrying the
        status wins.  A rejected request stays at the first review step.
        """
        status = WorkflowStatus(status)
        if status == self.completed_status:
            return COMPLETED_STEP
        review_steps = self.steps[1:] or self.steps
        if status == WorkflowStatus.REJECTED:
            return review_steps[0].id
        for step in review_steps:
            if step.status == status:
                return step.id
        return None

    def resolve_record_status(self, value: str) -> WorkflowStatus | None:
        """Map a stored record status (e.g. ``FORWARDEDTOHR``) to a status.

        Workflow status literals (``pending_hr``) are accepted as-is.
        """
        for record_status, status in self.record_statuses:
            if record_status == value.upper():
                return status
        try:
            return WorkflowStatus(value)
        except ValueError:
            return None


# =========================================================================
# Runtime records
# =========================================================================


@dataclass(frozen=True)
class WorkflowHistoryEntry:
    """One immutable audit line."""

    step_id: str
    action: HistoryAction
    performed_by: str
    performed_at: datetime
    previous_status: WorkflowStatus
    new_status: WorkflowStatus
    comments: str | None = None


@dataclass
class WorkflowInstance:
    """The mutable runtime record of one request's journey.

    ``current_step`` holds ``COMPLETED_STEP`` once the last step is done.
    ``history`` is append-only; insertion order is chronological order.
    """

    id: str
    workflow_type: WorkflowType
    request_id: str
    current_step: str
    status: WorkflowStatus
    submitted_by: str
    created_at: datetime
    updated_at: datetime
    assigned_to: StepRole | None = None
    branch_id: str | None = None
    history: list[WorkflowHistoryEntry] = field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        return self.current_step == COMPLETED_STEP

    @property
    def is_rejected(self) -> bool:
        return self.status == WorkflowStatus.REJECTED

    @property
    def is_closed(self) -> bool:
        return self.is_completed or self.is_rejected


@dataclass
class NotificationEvent:
    """An in-session signal for a role; only ``read`` ever changes."""

    id: str
    type: NotificationType
    workflow_id: str
    recipient_role: StepRole
    title: str
    message: str
    created_at: datetime
    read: bool = False
    recipient_id: str | None = None


@dataclass(frozen=True)
class TransitionRefusal:
    """Diagnostic reason behind a transition that returned ``None``."""

    workflow_id: str
    operation: str
    reason: RefusalReason
