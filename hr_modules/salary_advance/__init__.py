"""
Salary Advance Module (``hr_modules.salary_advance``).

Operations only forwards a salary advance; HR makes the decision and then
records the disbursement as a separate, final step.
"""

from hr_modules.salary_advance.workflows import SALARY_ADVANCE_WORKFLOW

__all__ = ["SALARY_ADVANCE_WORKFLOW"]
