"""
Employee analytics and mutation operations over the snapshot cache.
"""

from typing import Any, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from shared.logging import get_logger
from ..adapters.directory_gateway import DirectoryGateway
from ..caching.snapshot_cache import SnapshotCache
from .models import Employee, EmployeeRequest, describe_validation_error
from .result import Result


NO_EMPLOYEES_FOUND = "No employees found"
EMPLOYEE_NOT_FOUND = "Employee not found"
DEFAULT_TOP_EARNERS = 10


class EmployeeService:
    """Operations exposed to the routing layer.

    Reads go through the snapshot cache; writes go to the gateway and
    invalidate the cache once the upstream confirms them. Every method returns
    a :class:`Result` except ``highest_salary`` and ``top_earner_names``,
    which unwrap to plain values.
    """

    def __init__(self, gateway: DirectoryGateway, cache: SnapshotCache, *, top_earners_limit: int = DEFAULT_TOP_EARNERS):
        self.gateway = gateway
        self.cache = cache
        self.top_earners_limit = top_earners_limit
        self.logger = get_logger("directory.employee_service")

    async def list_all(self) -> Result[Tuple[Employee, ...]]:
        return await self.cache.get_snapshot()

    async def search_by_name(self, query: str) -> Result[Tuple[Employee, ...]]:
        """Employees whose name contains ``query`` (case-sensitive), in snapshot order."""
        snapshot = await self.cache.get_snapshot()
        if snapshot.is_error:
            return snapshot

        matches = tuple(employee for employee in snapshot.data or () if query in employee.name)
        if not matches:
            return Result.error(NO_EMPLOYEES_FOUND)
        return Result.handled(matches)

    async def get_by_id(self, employee_id: str) -> Result[Optional[Employee]]:
        """Fetch one employee straight from the upstream."""
        return await self.gateway.get_one(employee_id)

    async def highest_salary(self) -> int:
        """Maximum salary in the snapshot; 0 means no data."""
        employees = await self._employees()
        return max((employee.salary for employee in employees), default=0)

    async def top_earner_names(self, n: Optional[int] = None) -> List[str]:
        """Names of the ``n`` best paid employees, highest first.

        ``sorted`` is stable, so equal salaries keep their snapshot order.
        """
        limit = self.top_earners_limit if n is None else n
        if limit <= 0:
            return []
        employees = await self._employees()
        ranked = sorted(employees, key=lambda employee: employee.salary, reverse=True)
        return [employee.name for employee in ranked[:limit]]

    async def create_employee(self, request: Any) -> Result[Optional[Employee]]:
        """Validate ``request`` and create it upstream."""
        validated = self.validate_request(request)
        if validated.is_error:
            return validated

        employee_request = validated.data
        result = await self.gateway.create_one(employee_request)
        if result.is_handled:
            self.cache.invalidate()
            self.logger.info(
                "Employee created",
                employee_id=result.data.id if result.data else None,
                name=employee_request.name,
            )
        else:
            self.logger.warning("Employee creation failed", name=employee_request.name, error=result.message)
        return result

    def validate_request(self, request: Any) -> Result[EmployeeRequest]:
        """Check a creation request without contacting the upstream."""
        try:
            employee_request = self._coerce_request(request)
        except ValidationError as exc:
            message = describe_validation_error(exc)
            self.logger.info("Rejected employee creation request", error=message)
            return Result.error(message)
        return Result.handled(employee_request)

    async def delete_by_id(self, employee_id: str) -> Result[Employee]:
        """Delete the snapshot employee with ``employee_id``, keyed upstream by name."""
        snapshot = await self.cache.get_snapshot()
        if snapshot.is_error:
            return snapshot

        employee = next((e for e in snapshot.data or () if e.id == employee_id), None)

        if employee is None:
            self.logger.info("Delete target not found", employee_id=employee_id)
            return Result.error(EMPLOYEE_NOT_FOUND)

        removed = await self.gateway.remove_by_name(employee.name)
        if removed.is_error:
            self.logger.warning("Employee deletion failed", employee_id=employee_id, error=removed.message)
            return removed

        self.cache.invalidate()
        self.logger.info("Employee deleted", employee_id=employee_id, name=employee.name)
        return Result.handled(employee)

    async def _employees(self) -> Tuple[Employee, ...]:
        snapshot = await self.cache.get_snapshot()
        if snapshot.is_error:
            return ()
        return snapshot.data or ()

    @staticmethod
    def _coerce_request(request: Any) -> EmployeeRequest:
        if isinstance(request, EmployeeRequest):
            return request
        if isinstance(request, Mapping):
            return EmployeeRequest.model_validate(dict(request))
        return EmployeeRequest.model_validate(request, from_attributes=True)
