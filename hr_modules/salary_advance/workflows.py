"""Salary Advance Workflow.

State machine for salary advance requests: operations forwards, HR
decides, HR disburses.
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

logger = get_logger("modules.salary_advance.workflows")


SALARY_ADVANCE_WORKFLOW = WorkflowDefinition(
    workflow_type=WorkflowType.SALARY_ADVANCE,
    description="Salary advance: operations forward, HR decision, disbursement",
    steps=(
        WorkflowStep(
            id="submit",
            name="Submit Request",
            role=StepRole.EMPLOYEE,
            action=StepAction.SUBMIT,
            status=WorkflowStatus.PENDING_OPS,
            next_step="ops_forward",
        ),
        WorkflowStep(
            id="ops_forward",
            name="Operations Forward",
            role=StepRole.OPERATIONS,
            action=StepAction.APPROVE,  # forwards, never decides
            status=WorkflowStatus.PENDING_OPS,
            next_step="hr_review",
        ),
        WorkflowStep(
            id="hr_review",
            name="HR Review & Decision",
            role=StepRole.HR,
            action=StepAction.APPROVE,
            status=WorkflowStatus.PENDING_HR,
            next_step="disburse",
        ),
        WorkflowStep(
            id="disburse",
            name="Disbursement",
            role=StepRole.HR,
            action=StepAction.DISBURSE,
            status=WorkflowStatus.APPROVED,
        ),
    ),
    completed_status=WorkflowStatus.DISBURSED,
    # hr -> admin although ``disburse`` is owned by hr; kept as observed in
    # the HR screens, see DESIGN.md.
    role_handoff=(
        (StepRole.EMPLOYEE, StepRole.OPERATIONS),
        (StepRole.OPERATIONS, StepRole.HR),
        (StepRole.HR, StepRole.ADMIN),
    ),
    # SalaryAdvanceRequest.status values in the HR database
    record_statuses=(
        ("PENDINGOPREVIEW", WorkflowStatus.PENDING_OPS),
        ("FORWARDEDTOHR", WorkflowStatus.PENDING_HR),
        ("PENDINGHRREVIEW", WorkflowStatus.PENDING_HR),
        ("APPROVED", WorkflowStatus.APPROVED),
        ("DISBURSED", WorkflowStatus.DISBURSED),
        ("REPAID", WorkflowStatus.DISBURSED),
        ("REJECTED", WorkflowStatus.REJECTED),
    ),
)

logger.info(
    "salary_advance_workflow_registered",
    extra={
        "workflow_type": SALARY_ADVANCE_WORKFLOW.workflow_type.value,
        "step_count": len(SALARY_ADVANCE_WORKFLOW.steps),
        "initial_status": SALARY_ADVANCE_WORKFLOW.initial_status.value,
    },
)
