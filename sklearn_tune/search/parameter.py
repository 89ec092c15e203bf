"""SearchParameter: Hyperparameter ranges that can be gridded or designed over."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Tuple, Union

import numpy as np


def log_sweep(low_exponent: float, high_exponent: float, n: int) -> List[float]:
    """
    Values ``10**t`` for ``t`` linearly spaced over [low_exponent, high_exponent].

    Both endpoints are exactly ``10**low_exponent`` and ``10**high_exponent``.

    Args:
        low_exponent: Exponent of the first value.
        high_exponent: Exponent of the last value.
        n: Number of values.

    Returns:
        List of n floats in order.
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    if n == 1:
        return [float(10.0 ** low_exponent)]
    exponents = np.linspace(low_exponent, high_exponent, n)
    values = [float(10.0 ** t) for t in exponents]
    values[0] = float(10.0 ** low_exponent)
    values[-1] = float(10.0 ** high_exponent)
    return values


class SearchParameter(ABC):
    """Base class for search parameters."""

    def __init__(self, name: str) -> None:
        """
        Initialize a search parameter.

        Args:
            name: Parameter name.
        """
        self.name = name

    @abstractmethod
    def grid(self, levels: int) -> List[Any]:
        """Evenly spaced candidate values, endpoints included."""
        pass

    @abstractmethod
    def from_unit(self, u: float) -> Any:
        """Map a point of [0, 1] into the parameter's range."""
        pass

    @abstractmethod
    def contains(self, value: Any) -> bool:
        """Whether a value lies within the declared range."""
        pass

    @abstractmethod
    def __repr__(self) -> str:
        pass


@dataclass
class FloatParameter(SearchParameter):
    """
    Floating point parameter.

    Attributes:
        name: Parameter name.
        low: Lower bound.
        high: Upper bound.
        log: Whether values are spread on a log10 scale.
    """

    name: str
    low: float
    high: float
    log: bool = False

    def __post_init__(self) -> None:
        if self.low >= self.high:
            raise ValueError(f"low ({self.low}) must be less than high ({self.high})")
        if self.log and self.low <= 0:
            raise ValueError(f"log scale requires positive low bound, got {self.low}")

    def grid(self, levels: int) -> List[float]:
        if self.log:
            values = log_sweep(np.log10(self.low), np.log10(self.high), levels)
            values[0] = float(self.low)
            if levels > 1:
                values[-1] = float(self.high)
            return values
        if levels == 1:
            return [float(self.low)]
        values = [float(v) for v in np.linspace(self.low, self.high, levels)]
        values[-1] = float(self.high)
        return values

    def from_unit(self, u: float) -> float:
        u = min(max(float(u), 0.0), 1.0)
        if self.log:
            log_low, log_high = np.log10(self.low), np.log10(self.high)
            value = float(10.0 ** (log_low + u * (log_high - log_low)))
        else:
            value = float(self.low + u * (self.high - self.low))
        return min(max(value, self.low), self.high)

    def contains(self, value: Any) -> bool:
        return self.low <= value <= self.high

    def __repr__(self) -> str:
        log_str = ", log" if self.log else ""
        return f"Float({self.name}: [{self.low}, {self.high}]{log_str})"


@dataclass
class IntParameter(SearchParameter):
    """
    Integer parameter.

    Attributes:
        name: Parameter name.
        low: Lower bound (inclusive).
        high: Upper bound (inclusive).
        log: Whether values are spread on a log10 scale.
    """

    name: str
    low: int
    high: int
    log: bool = False

    def __post_init__(self) -> None:
        if self.low >= self.high:
            raise ValueError(f"low ({self.low}) must be less than high ({self.high})")
        if self.log and self.low <= 0:
            raise ValueError(f"log scale requires positive low bound, got {self.low}")

    def grid(self, levels: int) -> List[int]:
        if self.log:
            raw = log_sweep(np.log10(self.low), np.log10(self.high), levels)
        else:
            raw = np.linspace(self.low, self.high, levels) if levels > 1 else [self.low]
        values: List[int] = []
        for v in raw:
            rounded = int(min(max(round(float(v)), self.low), self.high))
            if rounded not in values:
                values.append(rounded)
        return values

    def from_unit(self, u: float) -> int:
        u = min(max(float(u), 0.0), 1.0)
        if self.log:
            log_low, log_high = np.log10(self.low), np.log10(self.high + 1)
            value = int(np.floor(10.0 ** (log_low + u * (log_high - log_low))))
        else:
            value = int(np.floor(self.low + u * (self.high - self.low + 1)))
        return min(max(value, self.low), self.high)

    def contains(self, value: Any) -> bool:
        return self.low <= value <= self.high

    def __repr__(self) -> str:
        log_str = ", log" if self.log else ""
        return f"Int({self.name}: [{self.low}, {self.high}]{log_str})"


@dataclass
class CategoricalParameter(SearchParameter):
    """
    Categorical parameter.

    Attributes:
        name: Parameter name.
        choices: List of possible values.
    """

    name: str
    choices: List[Any]

    def __post_init__(self) -> None:
        if not self.choices:
            raise ValueError("choices cannot be empty")

    def grid(self, levels: int) -> List[Any]:
        # Every level is used; a categorical cannot be thinned without bias.
        return list(self.choices)

    def from_unit(self, u: float) -> Any:
        u = min(max(float(u), 0.0), 1.0)
        idx = min(int(np.floor(u * len(self.choices))), len(self.choices) - 1)
        return self.choices[idx]

    def contains(self, value: Any) -> bool:
        return value in self.choices

    def __repr__(self) -> str:
        choices_str = ", ".join(str(c) for c in self.choices[:3])
        if len(self.choices) > 3:
            choices_str += ", ..."
        return f"Cat({self.name}: [{choices_str}])"


def parse_shorthand(
    name: str, value: Union[Tuple, List]
) -> SearchParameter:
    """
    Parse shorthand parameter notation.

    Shorthand formats:
    - (low, high): Float or Int range (inferred from types)
    - (low, high, "log"): Float/Int with log scale
    - [a, b, c]: Categorical choices

    Args:
        name: Parameter name.
        value: Shorthand value.

    Returns:
        Appropriate SearchParameter instance.
    """
    if isinstance(value, list):
        return CategoricalParameter(name=name, choices=value)

    if isinstance(value, tuple):
        if len(value) < 2:
            raise ValueError(f"Tuple must have at least 2 elements: {value}")

        low, high = value[0], value[1]
        log = len(value) > 2 and value[2] == "log"

        if isinstance(low, int) and isinstance(high, int):
            return IntParameter(name=name, low=low, high=high, log=log)
        else:
            return FloatParameter(
                name=name, low=float(low), high=float(high), log=log
            )

    raise ValueError(f"Cannot parse shorthand for {name!r}: {value!r}")
