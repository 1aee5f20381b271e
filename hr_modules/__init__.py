"""
HR Modules.

Declarative workflow definitions per request type.  Each module holds the
step sequence the engine walks for that request type:

- Leave: employee submits, the branch operations manager decides
- Salary advance: employee submits, operations forwards, HR decides,
  HR disburses

Processing logic lives in ``hr_kernel.services.workflow_engine``.
"""

from hr_modules.leave.workflows import LEAVE_WORKFLOW
from hr_modules.salary_advance.workflows import SALARY_ADVANCE_WORKFLOW

BUILTIN_DEFINITIONS = (LEAVE_WORKFLOW, SALARY_ADVANCE_WORKFLOW)

__all__ = [
    "BUILTIN_DEFINITIONS",
    "LEAVE_WORKFLOW",
    "SALARY_ADVANCE_WORKFLOW",
]
