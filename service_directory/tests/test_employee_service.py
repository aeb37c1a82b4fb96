"""
Unit tests for employee analytics and mutation operations.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from service_directory.app.caching.snapshot_cache import SnapshotCache
from service_directory.app.domain.employee_service import (
    EMPLOYEE_NOT_FOUND,
    NO_EMPLOYEES_FOUND,
    EmployeeService,
)
from service_directory.app.domain.models import Employee, EmployeeRequest
from service_directory.app.domain.result import Result


ANN = Employee(id="1", name="Ann", salary=90000, age=40, title="Engineer")
BO = Employee(id="2", name="Bo", salary=50000, age=30, title="Designer")


def _employees(*pairs):
    return tuple(Employee(id=str(i), name=name, salary=salary) for i, (name, salary) in enumerate(pairs, 1))


class TestEmployeeService:
    """Test cases for EmployeeService."""

    @pytest.fixture
    def gateway(self):
        """Directory gateway double."""
        gateway = MagicMock()
        gateway.list_all = AsyncMock(return_value=Result.handled((ANN, BO)))
        gateway.get_one = AsyncMock()
        gateway.create_one = AsyncMock()
        gateway.remove_by_name = AsyncMock(return_value=Result.handled(None))
        return gateway

    @pytest.fixture
    def cache(self, gateway):
        """Snapshot cache over the gateway double."""
        return SnapshotCache(gateway.list_all, ttl_seconds=600)

    @pytest.fixture
    def service(self, gateway, cache):
        """Create EmployeeService instance."""
        return EmployeeService(gateway, cache)

    @pytest.mark.asyncio
    async def test_list_all_uses_cache(self, service, gateway):
        """Test listing is served from the snapshot."""
        assert await service.list_all() == Result.handled((ANN, BO))
        assert await service.list_all() == Result.handled((ANN, BO))
        gateway.list_all.assert_called_once()

    @pytest.mark.asyncio
    async def test_round_trip_analytics(self, service):
        """Test the analytics over a two-employee snapshot."""
        assert await service.highest_salary() == 90000
        assert await service.top_earner_names() == ["Ann", "Bo"]
        assert await service.search_by_name("An") == Result.handled((ANN,))

    @pytest.mark.asyncio
    async def test_search_is_case_sensitive_substring(self, service, gateway):
        """Test search matches case-sensitive substrings in snapshot order."""
        gateway.list_all.return_value = Result.handled(_employees(
            ("Anna Smith", 1), ("Joanna", 2), ("anna lower", 3), ("Bob", 4),
        ))

        result = await service.search_by_name("anna")

        assert [e.name for e in result.data] == ["Joanna", "anna lower"]

    @pytest.mark.asyncio
    async def test_search_no_match(self, service):
        """Test a search without matches reports no employees found."""
        assert await service.search_by_name("Zed") == Result.error(NO_EMPLOYEES_FOUND)

    @pytest.mark.asyncio
    async def test_search_empty_snapshot(self, service, gateway):
        """Test searching an empty snapshot reports no employees found."""
        gateway.list_all.return_value = Result.handled(())

        assert await service.search_by_name("") == Result.error(NO_EMPLOYEES_FOUND)

    @pytest.mark.asyncio
    async def test_search_propagates_snapshot_error(self, service, gateway):
        """Test snapshot failures pass through unchanged."""
        gateway.list_all.return_value = Result.error("503 Service Unavailable")

        assert await service.search_by_name("An") == Result.error("503 Service Unavailable")

    @pytest.mark.asyncio
    async def test_highest_salary_empty(self, service, gateway):
        """Test the sentinel 0 on an empty snapshot."""
        gateway.list_all.return_value = Result.handled(())

        assert await service.highest_salary() == 0

    @pytest.mark.asyncio
    async def test_highest_salary_on_error(self, service, gateway):
        """Test a failed snapshot degrades to 0."""
        gateway.list_all.return_value = Result.error("timed out")

        assert await service.highest_salary() == 0

    @pytest.mark.asyncio
    async def test_highest_salary_is_a_member_and_maximal(self, service, gateway):
        """Test the result is one of the salaries and no salary exceeds it."""
        employees = _employees(("A", 3), ("B", 2 ** 63), ("C", 2 ** 31 - 1), ("D", 1))
        gateway.list_all.return_value = Result.handled(employees)

        highest = await service.highest_salary()

        assert highest == 2 ** 63
        assert all(highest >= e.salary for e in employees)

    @pytest.mark.asyncio
    async def test_top_earners_limited_to_ten(self, service, gateway):
        """Test at most ten names, highest salary first."""
        gateway.list_all.return_value = Result.handled(
            _employees(*[(f"E{i}", i * 1000) for i in range(1, 16)])
        )

        names = await service.top_earner_names()

        assert names == [f"E{i}" for i in range(15, 5, -1)]

    @pytest.mark.asyncio
    async def test_top_earners_stable_on_ties(self, service, gateway):
        """Test equal salaries keep snapshot order."""
        gateway.list_all.return_value = Result.handled(_employees(
            ("First", 100), ("Top", 500), ("Second", 100), ("Third", 100),
        ))

        assert await service.top_earner_names() == ["Top", "First", "Second", "Third"]

    @pytest.mark.asyncio
    async def test_top_earners_extreme_salaries(self, service, gateway):
        """Test ordering holds for salaries far apart in magnitude."""
        gateway.list_all.return_value = Result.handled(_employees(
            ("Small", 1), ("Huge", 2 ** 31 - 1), ("Bigger", 2 ** 40),
        ))

        assert await service.top_earner_names() == ["Bigger", "Huge", "Small"]

    @pytest.mark.asyncio
    async def test_top_earners_custom_limit(self, service):
        """Test n overrides the default limit."""
        assert await service.top_earner_names(1) == ["Ann"]
        assert await service.top_earner_names(0) == []

    @pytest.mark.asyncio
    async def test_top_earners_empty_or_error(self, service, gateway):
        """Test no names without data."""
        gateway.list_all.return_value = Result.error("boom")

        assert await service.top_earner_names() == []

    @pytest.mark.asyncio
    async def test_get_by_id_goes_upstream(self, service, gateway):
        """Test lookup by id bypasses the snapshot."""
        gateway.get_one.return_value = Result.handled(ANN)

        assert await service.get_by_id("1") == Result.handled(ANN)
        gateway.get_one.assert_called_once_with("1")
        gateway.list_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_valid_invalidates_cache(self, service, gateway, cache):
        """Test a successful creation invalidates the snapshot."""
        created = Employee(id="3", name="Cy", salary=70000, age=25, title="Analyst")
        gateway.create_one.return_value = Result.handled(created)
        await service.list_all()

        result = await service.create_employee({"name": "Cy", "salary": 70000, "age": 25, "title": "Analyst"})

        assert result == Result.handled(created)
        gateway.create_one.assert_called_once_with(
            EmployeeRequest(name="Cy", salary=70000, age=25, title="Analyst")
        )
        assert cache.peek() is None
        await service.list_all()
        assert gateway.list_all.call_count == 2

    @pytest.mark.asyncio
    async def test_create_invalid_skips_gateway(self, service, gateway):
        """Test validation failures never reach the upstream."""
        result = await service.create_employee({"name": "Cy", "salary": 70000, "age": 15, "title": "Analyst"})

        assert result.is_error
        assert result.message.startswith("age: ")
        gateway.create_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_rejects_missing_body(self, service, gateway):
        """Test a missing request is a validation failure."""
        result = await service.create_employee(None)

        assert result.is_error
        gateway.create_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_failure_keeps_cache(self, service, gateway, cache):
        """Test an upstream failure leaves the snapshot in place."""
        gateway.create_one.return_value = Result.error("500 Internal Server Error")
        await service.list_all()

        result = await service.create_employee(EmployeeRequest(name="Cy", salary=1, age=20, title="T"))

        assert result == Result.error("500 Internal Server Error")
        assert cache.peek() is not None

    @pytest.mark.asyncio
    async def test_delete_absent_id(self, service, gateway):
        """Test deleting an unknown id makes no remote call."""
        assert await service.delete_by_id("404") == Result.error(EMPLOYEE_NOT_FOUND)
        gateway.remove_by_name.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_present_id(self, service, gateway, cache):
        """Test deleting by id removes upstream by name and invalidates."""
        result = await service.delete_by_id("2")

        assert result == Result.handled(BO)
        gateway.remove_by_name.assert_called_once_with("Bo")
        assert cache.peek() is None

    @pytest.mark.asyncio
    async def test_delete_remote_failure(self, service, gateway, cache):
        """Test a failed remote delete returns its error and keeps the cache."""
        gateway.remove_by_name.return_value = Result.error("500 Internal Server Error")

        assert await service.delete_by_id("1") == Result.error("500 Internal Server Error")
        assert cache.peek() is not None

    @pytest.mark.asyncio
    async def test_delete_on_snapshot_error(self, service, gateway):
        """Test a failed snapshot propagates without a remote call."""
        gateway.list_all.return_value = Result.error("timed out")

        assert await service.delete_by_id("1") == Result.error("timed out")
        gateway.remove_by_name.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_reads_share_snapshot(self, service, gateway):
        """Test concurrent analytics trigger a single upstream fetch."""
        results = await asyncio.gather(
            service.highest_salary(),
            service.top_earner_names(),
            service.search_by_name("Bo"),
            service.list_all(),
        )

        assert results[0] == 90000
        assert results[1] == ["Ann", "Bo"]
        assert results[2] == Result.handled((BO,))
        gateway.list_all.assert_called_once()
