"""
Domain types and operations for the employee directory.
"""

from .result import Result
from .models import Employee, EmployeeRequest, EmployeeDeleteRequest, WireEnvelope

__all__ = [
    "Result",
    "Employee",
    "EmployeeRequest",
    "EmployeeDeleteRequest",
    "WireEnvelope",
]
