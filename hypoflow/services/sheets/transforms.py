"""Per-field normalization of incoming update values."""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Real
from typing import Any, Iterable, Mapping, Protocol

from .models import InvalidUpdateError


class ValueTransform(Protocol):
    field: str

    def apply(self, value: Any) -> Any:
        """Return the value to persist for ``field``."""


@dataclass(frozen=True, slots=True)
class PercentToFraction:
    """Store a 0-100 percent as the 0-1 fraction percent-formatted cells expect.

    Only real numbers are converted. Strings such as ``"80%"`` pass through
    for the remote store to interpret.
    """

    field: str

    def apply(self, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, Real):
            return value
        if not 0 <= value <= 100:
            raise InvalidUpdateError(
                f"{self.field} must be between 0 and 100, got {value}",
                payload={"field": self.field, "value": value},
            )
        return value / 100


def percent_rules(fields: Iterable[str]) -> tuple[PercentToFraction, ...]:
    return tuple(PercentToFraction(name) for name in fields)


def apply_transforms(updates: Mapping[str, Any], rules: Iterable[ValueTransform]) -> dict[str, Any]:
    """Apply rules to the request values they name; other fields are untouched."""

    transformed = dict(updates)
    for rule in rules:
        if rule.field in transformed:
            transformed[rule.field] = rule.apply(transformed[rule.field])
    return transformed


__all__ = ["ValueTransform", "PercentToFraction", "percent_rules", "apply_transforms"]
