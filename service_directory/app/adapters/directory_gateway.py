"""
Directory gateway: upstream calls translated into Result envelopes.

Every raw response is classified into exactly one of transport failure,
non-success status, parse failure, success with null data, or success with a
value before any operation-specific handling runs. Nothing raised by the
transport or the parsers escapes this module.
"""

import time
from urllib.parse import quote
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Tuple, Union

import httpx
from pydantic import ValidationError

from shared.logging import get_logger
from shared.retry import RetryError
from ..domain.models import Employee, EmployeeDeleteRequest, EmployeeRequest, WireEnvelope, describe_validation_error
from ..domain.result import Result
from .directory_client import DirectoryClient

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


PATH_EMPLOYEE = "/employee"
PATH_EMPLOYEE_ID = "/employee/{id}"

INCOMPATIBLE_DATA = "incompatible data"


class DirectoryGateway:
    """Typed access to the upstream directory's list/get/create/delete calls."""

    def __init__(self, client: DirectoryClient, *, metrics: Optional["MetricsCollector"] = None):
        self.client = client
        self.metrics = metrics
        self.logger = get_logger("directory.gateway")

    async def list_all(self) -> Result[Tuple[Employee, ...]]:
        """Fetch the full employee collection."""
        outcome = await self._exchange("list_all", self.client.fetch, PATH_EMPLOYEE)
        if isinstance(outcome, Result):
            return outcome

        data = outcome.data
        if data is None:
            self._record("list_all", "ok")
            return Result.handled(())
        if not isinstance(data, list):
            return self._incompatible("list_all", data)

        try:
            employees = tuple(Employee.model_validate(item) for item in data)
        except ValidationError as exc:
            return self._parse_failure("list_all", describe_validation_error(exc))

        self._record("list_all", "ok")
        return Result.handled(employees)

    async def get_one(self, employee_id: str) -> Result[Optional[Employee]]:
        """Fetch a single employee by identity."""
        path = PATH_EMPLOYEE_ID.format(id=_path_segment(employee_id))
        outcome = await self._exchange("get_one", self.client.fetch, path)
        if isinstance(outcome, Result):
            return outcome
        return self._single_employee("get_one", outcome)

    async def create_one(self, request: EmployeeRequest) -> Result[Optional[Employee]]:
        """Create an employee upstream and return the stored record."""
        outcome = await self._exchange("create_one", self.client.create, PATH_EMPLOYEE, request.model_dump())
        if isinstance(outcome, Result):
            return outcome
        return self._single_employee("create_one", outcome)

    async def remove_by_name(self, name: str) -> Result[None]:
        """Delete an employee upstream; the remote contract deletes by name."""
        body = EmployeeDeleteRequest(name=name).model_dump()
        outcome = await self._exchange("remove_by_name", self.client.remove, PATH_EMPLOYEE, body, parse=False)
        if isinstance(outcome, Result):
            return outcome
        self._record("remove_by_name", "ok")
        return Result.handled(None)

    async def _exchange(
        self,
        operation: str,
        call: Callable[..., Awaitable[httpx.Response]],
        *args: Any,
        parse: bool = True,
    ) -> Union[Result, WireEnvelope, None]:
        """Run one upstream call; return an error Result or the parsed envelope."""
        start = time.perf_counter()
        try:
            response = await call(*args)
        except RetryError as exc:
            return self._transport_failure(operation, exc.last_exception)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return self._transport_failure(operation, exc)
        finally:
            self._observe(operation, time.perf_counter() - start)

        if not response.is_success:
            message = f"{response.status_code} {response.reason_phrase}"
            self.logger.warning(
                "Upstream returned non-success status",
                operation=operation,
                status_code=response.status_code,
                body=response.text[:500],
            )
            self._record(operation, "upstream_error")
            return Result.error(message)

        if not parse:
            return None

        try:
            return WireEnvelope.model_validate(response.json())
        except ValidationError as exc:
            return self._parse_failure(operation, describe_validation_error(exc))
        except ValueError as exc:
            return self._parse_failure(operation, str(exc))

    def _single_employee(self, operation: str, envelope: WireEnvelope) -> Result[Optional[Employee]]:
        data = envelope.data
        if data is None:
            self._record(operation, "ok")
            return Result.handled(None)
        if isinstance(data, list):
            return self._incompatible(operation, data)
        try:
            employee = Employee.model_validate(data)
        except ValidationError as exc:
            return self._parse_failure(operation, describe_validation_error(exc))
        self._record(operation, "ok")
        return Result.handled(employee)

    def _transport_failure(self, operation: str, exc: BaseException) -> Result:
        message = str(exc) or type(exc).__name__
        self.logger.error("Upstream transport failure", operation=operation, error=message)
        self._record(operation, "transport_error")
        return Result.error(message)

    def _parse_failure(self, operation: str, detail: str) -> Result:
        self.logger.error("Unparseable upstream payload", operation=operation, error=detail)
        self._record(operation, "parse_error")
        return Result.error(f"unable to parse upstream response: {detail}")

    def _incompatible(self, operation: str, data: Any) -> Result:
        self.logger.error(INCOMPATIBLE_DATA, operation=operation, data_type=type(data).__name__)
        self._record(operation, "incompatible")
        return Result.error(INCOMPATIBLE_DATA)

    def _record(self, operation: str, outcome: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("upstream_requests_total", operation=operation, outcome=outcome)

    def _observe(self, operation: str, duration: float) -> None:
        if self.metrics:
            self.metrics.observe_histogram("upstream_request_duration_seconds", duration, operation=operation)


def _path_segment(value: str) -> str:
    """Percent-encode an id as one opaque path segment."""
    segment = quote(value, safe="")
    # Dot segments would otherwise be collapsed during URL normalisation.
    if segment in (".", ".."):
        segment = segment.replace(".", "%2E")
    return segment
