"""
Typed Exception Hierarchy for the HR Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from HrKernelError:

    HrKernelError (base)
    |
    +-- WorkflowError
    |   +-- WorkflowNotFoundError
    |   +-- UnknownWorkflowTypeError
    |   +-- StepNotFoundError
    |   +-- UnknownStatusError
    |   +-- WorkflowDefinitionError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Workflow        | WORKFLOW_NOT_FOUND          | Workflow id doesn't exist
                | UNKNOWN_WORKFLOW_TYPE       | No definition for request type
                | STEP_NOT_FOUND              | Step id not in the definition
                | UNKNOWN_STATUS              | Persisted status has no workflow status
                | INVALID_WORKFLOW_DEFINITION | Step sequence is malformed
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Modifying a history row
----------------|-----------------------------|-----------------------------------------
Configuration   | CONFIGURATION_ERROR         | Settings or YAML definitions invalid

===============================================================================
HANDLING PATTERNS
===============================================================================

Refused transitions (unknown workflow id, forward outside an operations
step, acting on a closed workflow) are NOT exceptions.  The engine returns
``None`` and records a ``TransitionRefusal``; callers treat it as a no-op.

    instance = engine.progress_workflow(workflow_id, "approve", actor)
    if instance is None:
        log.warning("refused: %s", engine.last_refusal.reason)

Exceptions are raised for configuration and programming errors:

    try:
        definition = engine.get_definition("expense")
    except UnknownWorkflowTypeError as e:
        api_response(code=e.code, workflow_type=e.workflow_type)
"""


class HrKernelError(Exception):
    """
    Base exception for all HR kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "HR_KERNEL_ERROR"


# Workflow-related exceptions


class WorkflowError(HrKernelError):
    """Base exception for workflow-related errors."""

    code: str = "WORKFLOW_ERROR"


class WorkflowNotFoundError(WorkflowError):
    """Workflow with given ID was not found."""

    code: str = "WORKFLOW_NOT_FOUND"

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow not found: {workflow_id}")


class UnknownWorkflowTypeError(WorkflowError):
    """No workflow definition is registered for the request type."""

    code: str = "UNKNOWN_WORKFLOW_TYPE"

    def __init__(self, workflow_type: str):
        self.workflow_type = workflow_type
        super().__init__(f"Unknown workflow type: {workflow_type}")


class StepNotFoundError(WorkflowError):
    """Step id is not part of the workflow definition."""

    code: str = "STEP_NOT_FOUND"

    def __init__(self, workflow_type: str, step_id: str):
        self.workflow_type = workflow_type
        self.step_id = step_id
        super().__init__(
            f"Step '{step_id}' is not defined for workflow {workflow_type}"
        )


class UnknownStatusError(WorkflowError):
    """A persisted status cannot be mapped onto the workflow."""

    code: str = "UNKNOWN_STATUS"

    def __init__(self, workflow_type: str, status: str):
        self.workflow_type = workflow_type
        self.status = status
        super().__init__(
            f"Status '{status}' has no position in workflow {workflow_type}"
        )


class WorkflowDefinitionError(WorkflowError):
    """A workflow definition's step sequence is malformed."""

    code: str = "INVALID_WORKFLOW_DEFINITION"

    def __init__(self, workflow_type: str, reason: str):
        self.workflow_type = workflow_type
        self.reason = reason
        super().__init__(f"Invalid workflow definition {workflow_type}: {reason}")


# Immutability-related exceptions


class ImmutabilityError(HrKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Workflow history rows are append-only once written.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Configuration exceptions


class ConfigurationError(HrKernelError):
    """Settings or workflow definition files are invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")
