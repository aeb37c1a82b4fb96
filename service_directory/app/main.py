"""
Employee directory service for the Employee Directory Access Layer.
"""

from typing import Any, Dict, Optional

import httpx
from fastapi import Body, Depends, Request, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import ExternalServiceError, NotFoundError, RateLimitError, ServiceError, ValidationError
from .adapters.directory_client import DirectoryClient
from .adapters.directory_gateway import DirectoryGateway
from .caching.snapshot_cache import SnapshotCache
from .domain.employee_service import EMPLOYEE_NOT_FOUND, NO_EMPLOYEES_FOUND, EmployeeService
from .domain.models import Employee
from .domain.result import Result
from .ratelimit.token_bucket import RateLimitMiddleware, TokenBucketRateLimiter


SERVICE_NAME = "directory"
SERVICE_PORT = 8080
UPSTREAM = "employee_directory"
API_PREFIX = "/api/v1/employee"


class DirectoryService(BaseService):
    """Employee directory service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(SERVICE_NAME, SERVICE_PORT, config or get_config(SERVICE_NAME, SERVICE_PORT))
        self.directory_client = DirectoryClient(
            self.config.directory_base_url,
            connect_timeout=self.config.upstream_connect_timeout,
            read_timeout=self.config.upstream_read_timeout,
            write_timeout=self.config.upstream_write_timeout,
            connect_retries=self.config.upstream_connect_retries,
            transport=transport,
        )
        self.gateway = DirectoryGateway(self.directory_client, metrics=self.metrics)
        self.snapshot_cache = SnapshotCache(
            self.gateway.list_all,
            ttl_seconds=self.config.snapshot_ttl_seconds,
            error_ttl_seconds=self.config.error_snapshot_ttl_seconds,
            metrics=self.metrics,
        )
        self.employee_service = EmployeeService(
            self.gateway,
            self.snapshot_cache,
            top_earners_limit=self.config.top_earners_limit,
        )
        self.rate_limiter = TokenBucketRateLimiter(
            self.config.rate_limit_for_period,
            self.config.rate_limit_refresh_seconds,
            self.config.rate_limit_timeout_seconds,
        )
        self.rate_limit_middleware = RateLimitMiddleware(self.rate_limiter)

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.snapshot_cache.close()
            await self.directory_client.aclose()

        self._setup_directory_routes()

    async def _check_dependencies(self) -> Dict[str, str]:
        entry = self.snapshot_cache.peek()
        if entry is None:
            return {"snapshot_cache": "empty"}
        return {"snapshot_cache": "error" if entry.result.is_error else "live"}

    async def _enforce_rate_limit(self, request: Request) -> None:
        decision = await self.rate_limit_middleware.check_request(request)
        if not decision["allowed"]:
            self.metrics.increment_counter("rate_limit_rejections_total", endpoint=request.url.path)
            raise RateLimitError(
                "Too many requests",
                details={"limit": decision["limit"], "retry_after": decision["retry_after"]}
            )

    def _snapshot_failed(self) -> bool:
        entry = self.snapshot_cache.peek()
        return entry is not None and entry.result.is_error

    def _setup_directory_routes(self):
        """Register employee routes; fixed paths precede ``/{id}``."""
        service = self.employee_service
        limited = [Depends(self._enforce_rate_limit)]

        @self.app.get(API_PREFIX, dependencies=limited)
        async def get_all_employees():
            """All employees from the cached snapshot."""
            result = await service.list_all()
            if result.is_error:
                raise ExternalServiceError(UPSTREAM, result.message)
            return _employee_list_response(result)

        @self.app.get(API_PREFIX + "/search/{search_string}", dependencies=limited)
        async def search_employees(search_string: str):
            """Employees whose name contains the search string."""
            result = await service.search_by_name(search_string)
            if result.is_error:
                if result.message == NO_EMPLOYEES_FOUND:
                    return Response(status_code=204)
                raise ExternalServiceError(UPSTREAM, result.message)
            return _employee_list_response(result)

        @self.app.get(API_PREFIX + "/highestSalary", dependencies=limited)
        async def get_highest_salary():
            salary = await service.highest_salary()
            if salary == 0:
                return Response(status_code=204)
            return salary

        @self.app.get(API_PREFIX + "/topTenHighestEarningEmployeeNames", dependencies=limited)
        async def get_top_earner_names():
            names = await service.top_earner_names()
            if not names:
                return Response(status_code=204)
            return names

        @self.app.get(API_PREFIX + "/cache/stats")
        async def get_cache_stats():
            return self.snapshot_cache.stats()

        @self.app.post(API_PREFIX + "/cache/invalidate", dependencies=limited)
        async def invalidate_cache():
            self.snapshot_cache.invalidate()
            return {"invalidated": True}

        @self.app.get(API_PREFIX + "/{employee_id}", dependencies=limited)
        async def get_employee(employee_id: str):
            """One employee, fetched from the upstream."""
            result = await service.get_by_id(employee_id)
            if result.is_error:
                if result.message.startswith("404"):
                    raise NotFoundError(EMPLOYEE_NOT_FOUND, details={"id": employee_id})
                raise ServiceError(result.message, details={"id": employee_id})
            return _employee_response(result)

        @self.app.post(API_PREFIX, dependencies=limited)
        async def create_employee(payload: Dict[str, Any] = Body(...)):
            """Create an employee; the snapshot is refreshed on the next read."""
            validated = service.validate_request(payload)
            if validated.is_error:
                raise ValidationError(validated.message)
            result = await service.create_employee(validated.data)
            if result.is_error:
                raise ServiceError(result.message)
            return _employee_response(result)

        @self.app.delete(API_PREFIX + "/{employee_id}", dependencies=limited)
        async def delete_employee(employee_id: str):
            """Delete an employee and return its name."""
            result = await service.delete_by_id(employee_id)
            if result.is_error:
                if result.message == EMPLOYEE_NOT_FOUND:
                    raise NotFoundError(EMPLOYEE_NOT_FOUND, details={"id": employee_id})
                if self._snapshot_failed():
                    raise ExternalServiceError(UPSTREAM, result.message)
                raise ServiceError(result.message, details={"id": employee_id})
            return result.data.name


def _employee_list_response(result: Result) -> Any:
    employees = result.data or ()
    if not employees:
        return Response(status_code=204)
    return [employee.model_dump() for employee in employees]


def _employee_response(result: Result) -> Any:
    employee: Optional[Employee] = result.data
    if employee is None:
        return Response(status_code=204)
    return employee.model_dump()


def create_app(config: Optional[ServiceConfig] = None, *, transport: Optional[httpx.AsyncBaseTransport] = None):
    """Create FastAPI application."""
    service = DirectoryService(config, transport=transport)
    service.app.state.directory_service = service
    return service.app


if __name__ == "__main__":
    service = DirectoryService()
    service.run()
