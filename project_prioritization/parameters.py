"""Bounded scalar parameters used to configure objectives and solvers."""

import math
from dataclasses import dataclass, field

from project_prioritization.errors import DomainError


@dataclass
class ScalarParameter:
    """A named parameter holding a single bounded value.

    Parameters
    ----------
    id : str
        Identifier for the parameter.
    value : float
        Current value.
    lower_limit : float
        Smallest permitted value.
    upper_limit : float
        Largest permitted value.
    kind : str
        One of ``"numeric"``, ``"integer"`` or ``"binary"``.
    """

    id: str
    value: float
    lower_limit: float = -math.inf
    upper_limit: float = math.inf
    kind: str = "numeric"
    default: float = field(init=False)

    def __post_init__(self) -> None:
        self.set(self.value)
        self.default = self.value

    def __repr__(self) -> str:
        return f"{self.id} ({self.value})"

    def validate(self, x: float) -> bool:
        """Return ``True`` if ``x`` is an acceptable value."""
        if isinstance(x, bool) and self.kind != "binary":
            return False
        try:
            x = float(x)
        except (TypeError, ValueError):
            return False
        if not math.isfinite(x):
            return False
        if self.kind in ("integer", "binary") and not x.is_integer():
            return False
        return self.lower_limit <= x <= self.upper_limit

    def get(self) -> float:
        return self.value

    def set(self, x: float) -> None:
        if not self.validate(x):
            raise DomainError(
                f"{self.id} must be a finite {self.kind} value between "
                f"{self.lower_limit} and {self.upper_limit}, got {x!r}."
            )
        x = float(x)
        self.value = int(x) if self.kind in ("integer", "binary") else x

    def reset(self) -> None:
        self.value = self.default


def numeric_parameter(
    id: str, value: float, lower_limit: float = -math.inf, upper_limit: float = math.inf
) -> ScalarParameter:
    return ScalarParameter(id, value, lower_limit, upper_limit, "numeric")


def integer_parameter(
    id: str, value: int, lower_limit: float = -math.inf, upper_limit: float = math.inf
) -> ScalarParameter:
    return ScalarParameter(id, value, lower_limit, upper_limit, "integer")


def binary_parameter(id: str, value: bool | int) -> ScalarParameter:
    return ScalarParameter(id, int(value), 0, 1, "binary")
