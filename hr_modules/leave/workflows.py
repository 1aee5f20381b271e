"""Leave Request Workflow.

Two steps: submission, then the operations review that decides.
"""

from hr_kernel.domain.workflow import (
    StepAction,
    StepRole,
    WorkflowDefinition,
    WorkflowStatus,
    WorkflowStep,
    WorkflowType,
)
from hr_kernel.logging_config import get_logger

logger = get_logger("modules.leave.workflows")


LEAVE_WORKFLOW = WorkflowDefinition(
    workflow_type=WorkflowType.LEAVE,
    description="Leave request approval by the branch operations manager",
    steps=(
        WorkflowStep(
            id="submit",
            name="Submit Request",
            role=StepRole.EMPLOYEE,
            action=StepAction.SUBMIT,
            status=WorkflowStatus.PENDING_OPS,
            next_step="ops_review",
        ),
        WorkflowStep(
            id="ops_review",
            name="Operations Review & Decision",
            role=StepRole.OPERATIONS,
            action=StepAction.APPROVE,
            status=WorkflowStatus.PENDING_OPS,
        ),
    ),
    completed_status=WorkflowStatus.APPROVED,
    # Only the submission hands off; operations' decision closes the request.
    role_handoff=((StepRole.EMPLOYEE, StepRole.OPERATIONS),),
    # LeaveRequest.status values in the HR database
    record_statuses=(
        ("PENDING", WorkflowStatus.PENDING_OPS),
        ("APPROVED", WorkflowStatus.APPROVED),
        ("REJECTED", WorkflowStatus.REJECTED),
    ),
)

logger.info(
    "leave_workflow_registered",
    extra={
        "workflow_type": LEAVE_WORKFLOW.workflow_type.value,
        "step_count": len(LEAVE_WORKFLOW.steps),
        "initial_status": LEAVE_WORKFLOW.initial_status.value,
    },
)
