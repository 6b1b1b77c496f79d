"""Validation result — immutable container for field errors."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ValidationError:
    """A single failed rule.

    ``field`` is the path of the offending value: dot notation for
    nested objects (``profile.contact.phone``) and ``name[index]`` for
    array elements (``items[0].name``).
    """

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        """Wire shape used in the 422 envelope."""
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of validating a value against a schema.

    ``valid`` is True when there are no errors.
    The result is falsy when invalid, so you can write::

        result = validate(ctx.body, schema)
        if not result:
            return validation_error(result.errors)

    Errors are collected across every field; validation never stops at
    the first failing field.
    """

    errors: tuple[ValidationError, ...] = ()

    @property
    def valid(self) -> bool:
        """True if validation passed with no errors."""
        return not self.errors

    def fields(self) -> list[str]:
        """Field paths that failed, in error order."""
        return [error.field for error in self.errors]

    def to_list(self) -> list[dict[str, str]]:
        """Errors in their wire shape."""
        return [error.to_dict() for error in self.errors]

    def __bool__(self) -> bool:
        """Falsy when invalid, enabling the ``if not result:`` pattern."""
        return self.valid
