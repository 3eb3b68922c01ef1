"""Declared job parameters and the checks run against a caller's values.

Validation happens before the trigger engine is invoked; the engine itself
assumes its parameter map is already valid.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum


class ParameterType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    PASSWORD = "password"
    FILE = "file"


@dataclass(frozen=True, slots=True)
class JobParameter:
    name: str
    display_name: str
    description: str | None = None
    required: bool = True
    type: ParameterType = ParameterType.STRING
    default: str | None = None
    choices: tuple[str, ...] = field(default_factory=tuple)

    def to_json(self) -> dict[str, object]:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "description": self.description,
            "isRequired": self.required,
            "type": self.type.value,
            "defaultValue": self.default,
            "possibleValues": list(self.choices) or None,
        }


class ParameterValidationError(ValueError):
    """Raised when a parameter map does not satisfy a job's declared parameters."""

    def __init__(self, errors: Mapping[str, list[str]]) -> None:
        self.errors = {k: list(v) for k, v in errors.items()}
        summary = "; ".join(msg for msgs in self.errors.values() for msg in msgs)
        super().__init__(summary or "Invalid parameters")


def parse_bool(value: str) -> bool | None:
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def _is_number(value: str) -> bool:
    try:
        return Decimal(value.strip()).is_finite()
    except InvalidOperation:
        return False


def _is_date(value: str) -> bool:
    text = value.strip()
    try:
        datetime.fromisoformat(text.replace("Z", "+00:00"))
        return True
    except ValueError:
        pass
    try:
        date.fromisoformat(text)
        return True
    except ValueError:
        return False


def _split_multi(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def validate_parameters(
    parameters: Mapping[str, str], definitions: Sequence[JobParameter]
) -> dict[str, list[str]]:
    """Check ``parameters`` against ``definitions``.

    Returns a map of parameter name to error messages; empty means valid.
    Keys without a definition are passed through untouched.
    """

    errors: dict[str, list[str]] = {}

    def add(name: str, message: str) -> None:
        errors.setdefault(name, []).append(message)

    for param in definitions:
        raw = parameters.get(param.name)
        if raw is None or raw == "":
            if param.required:
                add(param.name, f"Parameter '{param.name}' is required.")
            continue

        if param.type is ParameterType.NUMBER and not _is_number(raw):
            add(param.name, f"Parameter '{param.name}' must be a valid number.")
        elif param.type is ParameterType.BOOLEAN and parse_bool(raw) is None:
            add(param.name, f"Parameter '{param.name}' must be a valid boolean (true/false).")
        elif param.type is ParameterType.DATE and not _is_date(raw):
            add(param.name, f"Parameter '{param.name}' must be a valid date.")
        elif param.type is ParameterType.SELECT and param.choices and raw not in param.choices:
            add(
                param.name,
                f"Parameter '{param.name}' must be one of: {', '.join(param.choices)}.",
            )
        elif param.type is ParameterType.MULTI_SELECT and param.choices:
            unknown = [v for v in _split_multi(raw) if v not in param.choices]
            if unknown:
                add(
                    param.name,
                    f"Parameter '{param.name}' values must be from: {', '.join(param.choices)}.",
                )

    return errors


def apply_defaults(
    parameters: Mapping[str, str], definitions: Sequence[JobParameter]
) -> dict[str, str]:
    """Return a copy of ``parameters`` with declared defaults filled in for missing keys."""

    out = dict(parameters)
    for param in definitions:
        if param.default is not None and not out.get(param.name):
            out[param.name] = param.default
    return out


def check_parameters(
    parameters: Mapping[str, str], definitions: Sequence[JobParameter]
) -> dict[str, str]:
    """Fill defaults, validate, and return the parameter map ready for triggering.

    Raises:
        ParameterValidationError: if any declared parameter is missing or malformed.
    """

    filled = apply_defaults(parameters, definitions)
    errors = validate_parameters(filled, definitions)
    if errors:
        raise ParameterValidationError(errors)
    return filled
