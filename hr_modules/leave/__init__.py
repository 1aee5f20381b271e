"""
Leave Module (``hr_modules.leave``).

A leave request needs a single decision: the operations manager of the
employee's branch approves or rejects it directly.
"""

from hr_modules.leave.workflows import LEAVE_WORKFLOW

__all__ = ["LEAVE_WORKFLOW"]
