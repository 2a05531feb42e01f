"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Malformed ledger input rejected before analysis."""


def invalid_amount(record: str, value: object) -> str:
    """Return message for an amount that is not a finite non-negative decimal."""
    return f"{record}: amount {value!r} must be a finite, non-negative number"


def invalid_date(record: str, value: object) -> str:
    """Return message for an unparsable date."""
    return f"{record}: could not parse date {value!r}"


def invalid_choice(record: str, field_name: str, value: object, choices) -> str:
    """Return message for a value outside a closed set."""
    allowed = ", ".join(choice.value for choice in choices)
    return f"{record}: {field_name} {value!r} is not one of {allowed}"


def missing_field(record: str, field_name: str) -> str:
    """Return message for a required field that is absent."""
    return f"{record}: missing required field '{field_name}'"


def negative_value(field_name: str, value: object) -> str:
    """Return message for a scenario input that must not be negative."""
    return f"{field_name} must not be negative, got {value}"
