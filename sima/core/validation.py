from dataclasses import dataclass, field
from typing import Any, Generic, Type, TypeVar

from pydantic import BaseModel, ValidationError

from sima.core.exceptions import ValidationException

M = TypeVar("M", bound=BaseModel)


@dataclass
class ValidationResult(Generic[M]):
    ok: bool
    value: M | None = None
    errors: list[dict[str, str]] = field(default_factory=list)


def _field_name(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "__root__"


def evaluate(schema: Type[M], data: Any) -> ValidationResult[M]:
    """Run a pydantic schema over raw input without raising."""
    try:
        return ValidationResult(ok=True, value=schema.model_validate(data or {}))
    except ValidationError as exc:
        errors = [
            {"field": _field_name(err["loc"]), "message": err["msg"], "type": err["type"]}
            for err in exc.errors()
        ]
        return ValidationResult(ok=False, errors=errors)


def validate_or_raise(schema: Type[M], data: Any) -> M:
    result = evaluate(schema, data)
    if not result.ok:
        fields = ", ".join(sorted({e["field"] for e in result.errors}))
        raise ValidationException(f"Datos inválidos: {fields}", details=result.errors)
    return result.value
