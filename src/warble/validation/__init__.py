"""Schema validation — declarative rules, recursive, field-path errors.

Usage::

    from warble.validation import Rule, validate

    result = validate(ctx.body, {
        "name": Rule(required=True, type="string", max_length=100),
        "email": Rule(required=True, type="email"),
        "tags": Rule(type="array", max_length=10),
    })
    if not result:
        # result.errors == (ValidationError("email", "email must be a valid email"),)
        ...

``validate()`` is pure: it reads the schema and the data, allocates a
fresh error list per call, and is safe to call from any number of
concurrent requests.
"""

import inspect
import re
from collections.abc import Mapping
from typing import Any

from warble.validation.result import ValidationError, ValidationResult
from warble.validation.rules import (
    CustomCheck,
    Rule,
    Schema,
    TypeTag,
    check_type,
    is_array,
    is_number,
    is_object,
    strict_member,
)

__all__ = [
    "CustomCheck",
    "Rule",
    "Schema",
    "TypeTag",
    "ValidationError",
    "ValidationResult",
    "validate",
]

# Sentinel for a key absent from the data (distinct from an explicit None)
_MISSING: Any = object()


def validate(data: Any, schema: Schema) -> ValidationResult:
    """Validate *data* against *schema*.

    Every field in the schema is checked and all errors are collected.
    A ``None`` *data* is treated as an empty record, so required fields
    report "required" rather than failing on the container itself.
    """
    errors: list[ValidationError] = []
    _validate_record(data, schema, "", errors)
    return ValidationResult(errors=tuple(errors))


def _validate_record(
    data: Any,
    schema: Schema,
    prefix: str,
    errors: list[ValidationError],
) -> None:
    record: Mapping[str, Any] = data if isinstance(data, Mapping) else {}
    for name, raw_rule in schema.items():
        value = record.get(name, _MISSING)
        _validate_field(f"{prefix}{name}", value, Rule.coerce(raw_rule), errors)


def _validate_field(
    field: str,
    value: Any,
    rule: Rule,
    errors: list[ValidationError],
) -> None:
    """Apply one rule set to one value, appending to *errors*."""
    if rule.required and (value is _MISSING or value is None or value == ""):
        errors.append(ValidationError(field, f"{field} is required"))
        return

    # Optional and absent: every other rule is vacuously satisfied
    if value is _MISSING or value is None:
        return

    if rule.type is not None:
        type_error = check_type(field, value, rule.type)
        if type_error is not None:
            errors.append(ValidationError(field, type_error))
            return

    if is_number(value):
        if rule.min is not None and value < rule.min:
            errors.append(ValidationError(field, f"{field} must be at least {rule.min}"))
        if rule.max is not None and value > rule.max:
            errors.append(ValidationError(field, f"{field} must be at most {rule.max}"))

    if isinstance(value, str) or is_array(value):
        unit = "characters" if isinstance(value, str) else "items"
        length = len(value)
        if rule.min_length is not None and length < rule.min_length:
            errors.append(
                ValidationError(field, f"{field} must be at least {rule.min_length} {unit}")
            )
        if rule.max_length is not None and length > rule.max_length:
            errors.append(
                ValidationError(field, f"{field} must be at most {rule.max_length} {unit}")
            )

    if rule.pattern is not None and isinstance(value, str):
        if re.fullmatch(rule.pattern, value) is None:
            errors.append(ValidationError(field, f"{field} format is invalid"))

    if rule.enum is not None and not strict_member(value, rule.enum):
        options = ", ".join(str(choice) for choice in rule.enum)
        errors.append(ValidationError(field, f"{field} must be one of: {options}"))

    if rule.custom is not None:
        outcome = rule.custom(value)
        if inspect.isawaitable(outcome):
            if inspect.iscoroutine(outcome):
                outcome.close()
            msg = f"Custom check for {field!r} must be synchronous"
            raise TypeError(msg)
        if outcome is not True:
            message = outcome if isinstance(outcome, str) else f"{field} is invalid"
            errors.append(ValidationError(field, message))

    if rule.schema is None:
        return

    if rule.type == "object" and is_object(value):
        _validate_record(value, rule.schema, f"{field}.", errors)
    elif rule.type == "array" and is_array(value):
        for index, item in enumerate(value):
            element = f"{field}[{index}]"
            if not is_object(item):
                errors.append(ValidationError(element, f"{element} must be an object"))
                continue
            _validate_record(item, rule.schema, f"{element}.", errors)
