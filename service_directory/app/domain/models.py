"""
Employee directory data models.

Field aliases follow the upstream wire naming (``employee_name``,
``employee_salary`` ...); internally and towards API callers the short names
are used.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class Employee(BaseModel):
    """Read-only copy of an employee record owned by the upstream directory."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    name: str = Field(alias="employee_name")
    salary: int = Field(alias="employee_salary")
    age: Optional[int] = Field(default=None, alias="employee_age")
    title: Optional[str] = Field(default=None, alias="employee_title")
    contact: Optional[str] = Field(default=None, alias="employee_email")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class EmployeeRequest(BaseModel):
    """Input for creating an employee; serialized as-is to the upstream."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    salary: int = Field(gt=0)
    age: int = Field(ge=16, le=75)
    title: str

    @field_validator("name", "title")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class EmployeeDeleteRequest(BaseModel):
    """Body of the upstream delete call, keyed by employee name."""

    name: str


class WireEnvelope(BaseModel):
    """Envelope wrapping every upstream payload."""

    model_config = ConfigDict(extra="ignore")

    data: Any = None
    status: Optional[str] = None
    error: Optional[str] = None


def describe_validation_error(exc: ValidationError) -> str:
    """Render the first violated field of a pydantic error as ``field: reason``."""
    errors = exc.errors()
    if not errors:
        return "invalid employee request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "body"
    message = first.get("msg", "invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{location}: {message}"
