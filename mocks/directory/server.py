"""
Mock employee directory server implementing the upstream wire contract.
"""

import uuid
from collections import Counter
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI
from fastapi.responses import JSONResponse

from shared.logging import get_logger


SUCCESS_STATUS = "Successfully processed request."
FAILURE_STATUS = "Failed to process request."


@dataclass
class MockEmployee:
    """Employee as stored by the mock upstream."""
    id: str
    employee_name: str
    employee_salary: int
    employee_age: int
    employee_title: str
    employee_email: str


class MockDirectoryServer:
    """Mock upstream employee directory."""

    def __init__(self, port: int = 8112, seed: Optional[List[Dict[str, Any]]] = None):
        self.port = port
        self.logger = get_logger("mock.directory")
        self.app = FastAPI(title="Mock Employee Directory", version="1.0.0")

        self.employees: Dict[str, MockEmployee] = {}
        self.request_counts: Counter = Counter()
        self._failures: List[int] = []

        for record in seed if seed is not None else _default_seed():
            self.add_employee(**record)

        self._setup_routes()

    def add_employee(self, name: str, salary: int, age: int, title: str,
                     employee_id: Optional[str] = None, email: Optional[str] = None) -> MockEmployee:
        """Insert an employee directly into the store."""
        employee = MockEmployee(
            id=employee_id or str(uuid.uuid4()),
            employee_name=name,
            employee_salary=salary,
            employee_age=age,
            employee_title=title,
            employee_email=email or f"{name.lower().replace(' ', '.')}@company.com",
        )
        self.employees[employee.id] = employee
        return employee

    def fail_next(self, status_code: int, times: int = 1):
        """Make the next ``times`` requests fail with ``status_code``."""
        self._failures.extend([status_code] * times)

    def _injected_failure(self) -> Optional[JSONResponse]:
        if not self._failures:
            return None
        status_code = self._failures.pop(0)
        return _envelope(None, status_code=status_code, error="Injected failure")

    def _setup_routes(self):
        """Set up mock directory routes."""

        @self.app.get("/api/v1/employee")
        async def list_employees():
            self.request_counts["list"] += 1
            failure = self._injected_failure()
            if failure is not None:
                return failure
            return _envelope([asdict(e) for e in self.employees.values()])

        @self.app.get("/api/v1/employee/{employee_id}")
        async def get_employee(employee_id: str):
            self.request_counts["get"] += 1
            failure = self._injected_failure()
            if failure is not None:
                return failure
            employee = self.employees.get(employee_id)
            if employee is None:
                return _envelope(None, status_code=404, error="Employee not found")
            return _envelope(asdict(employee))

        @self.app.post("/api/v1/employee")
        async def create_employee(payload: Dict[str, Any] = Body(...)):
            self.request_counts["create"] += 1
            failure = self._injected_failure()
            if failure is not None:
                return failure
            try:
                employee = self.add_employee(
                    name=payload["name"],
                    salary=int(payload["salary"]),
                    age=int(payload["age"]),
                    title=payload["title"],
                )
            except (KeyError, TypeError, ValueError) as exc:
                return _envelope(None, status_code=400, error=f"Invalid input: {exc}")
            self.logger.info("Mock employee created", employee_id=employee.id)
            return _envelope(asdict(employee))

        @self.app.delete("/api/v1/employee")
        async def delete_employee(payload: Dict[str, Any] = Body(...)):
            self.request_counts["delete"] += 1
            failure = self._injected_failure()
            if failure is not None:
                return failure
            name = payload.get("name")
            match = next((e for e in self.employees.values() if e.employee_name == name), None)
            if match is None:
                return _envelope(False, status_code=404, error="Employee not found")
            del self.employees[match.id]
            self.logger.info("Mock employee deleted", employee_id=match.id)
            return _envelope(True)


def _envelope(data: Any, status_code: int = 200, error: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "data": data,
            "status": SUCCESS_STATUS if status_code < 400 else FAILURE_STATUS,
            "error": error,
        },
    )


def _default_seed() -> List[Dict[str, Any]]:
    return [
        {"name": "Lowell Willms II", "salary": 58633, "age": 68, "title": "Community-Services Manager"},
        {"name": "Terence Considine", "salary": 346280, "age": 62, "title": "IT Liaison"},
        {"name": "Ann Yundt", "salary": 90000, "age": 41, "title": "Product Designer"},
        {"name": "Bo Kessler", "salary": 50000, "age": 29, "title": "Support Engineer"},
    ]


def create_app():
    """Create mock directory application."""
    server = MockDirectoryServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8112)
