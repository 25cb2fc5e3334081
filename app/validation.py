"""
QuizMaster — Input Validator
=============================
validate(payload, schema) -> Validated | ValidationFailure

Validation is all-or-nothing but exhaustive: a failure carries every broken
constraint, never just the first one. Pure, no side effects.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterable, List, TypeVar, Union

from pydantic import TypeAdapter, ValidationError

from app.core.errors import ErrorCode

T = TypeVar("T")

_VALUE_ERROR_PREFIX = "Value error, "


@dataclass(frozen=True)
class Violation:
    """One broken constraint, located by its dotted field path."""
    field: str
    message: str
    type: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message, "type": self.type}


@dataclass(frozen=True)
class Validated(Generic[T]):
    value: T


@dataclass(frozen=True)
class ValidationFailure:
    violations: List[Violation] = field(default_factory=list)
    message: str = "Invalid request data"
    code: ErrorCode = ErrorCode.VALIDATION_ERROR

    @property
    def details(self) -> List[Dict[str, str]]:
        return [v.to_dict() for v in self.violations]


ValidationResult = Union[Validated[T], ValidationFailure]


def _field_path(loc: Iterable[Any]) -> str:
    parts = [str(p) for p in loc]
    # FastAPI prefixes request errors with the request part ("body", "query", ...)
    if parts and parts[0] == "body":
        parts = parts[1:]
    return ".".join(parts) or "body"


def violations_from_errors(errors: Iterable[Dict[str, Any]]) -> List[Violation]:
    """Convert a pydantic/FastAPI error list into Violations, one per broken constraint."""
    violations = []
    for err in errors:
        msg = str(err.get("msg", ""))
        if msg.startswith(_VALUE_ERROR_PREFIX):
            msg = msg[len(_VALUE_ERROR_PREFIX):]
        violations.append(
            Violation(
                field=_field_path(err.get("loc", ())),
                message=msg,
                type=str(err.get("type", "value_error")),
            )
        )
    return violations


def validate(payload: Any, schema: Any) -> ValidationResult:
    """
    Validate `payload` against `schema` (a pydantic model class, or any type
    TypeAdapter accepts, e.g. List[Question]).
    Returns Validated(value) on success, ValidationFailure otherwise.
    """
    adapter = schema if isinstance(schema, TypeAdapter) else TypeAdapter(schema)
    try:
        return Validated(adapter.validate_python(payload))
    except ValidationError as e:
        return ValidationFailure(violations=violations_from_errors(e.errors()))
