"""Configuration spaces: explicit grids and space-filling designs."""

from __future__ import annotations

import itertools
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.spatial.distance import pdist
from scipy.stats import qmc

from sklearn_tune.search.configuration import Configuration
from sklearn_tune.search.parameter import (
    CategoricalParameter,
    FloatParameter,
    IntParameter,
    SearchParameter,
    parse_shorthand,
)


def _dedupe(configurations: List[Configuration]) -> List[Configuration]:
    """Drop value-duplicates, keeping the first occurrence."""
    seen = set()
    unique = []
    for config in configurations:
        if config not in seen:
            seen.add(config)
            unique.append(config)
    return unique


class ParameterGrid:
    """
    Explicit grid: the Cartesian product of ordered candidate values.

    Names vary slowest-first in the given order, so the last name changes
    fastest. Duplicate combinations are dropped, keeping the first.

    Example:
        grid = ParameterGrid([("penalty", log_sweep(-4, -1, 30)), ("mixture", [1.0])])
        configs = grid.configurations()
    """

    def __init__(
        self,
        candidates: Union[Sequence[Tuple[str, Sequence[Any]]], Dict[str, Sequence[Any]]],
    ) -> None:
        if isinstance(candidates, dict):
            candidates = list(candidates.items())
        self._candidates: List[Tuple[str, List[Any]]] = []
        names = set()
        for name, values in candidates:
            values = list(values)
            if not values:
                raise ValueError(f"Parameter {name!r} has no candidate values")
            if name in names:
                raise ValueError(f"Parameter {name!r} given more than once")
            names.add(name)
            self._candidates.append((name, values))

    @property
    def parameter_names(self) -> List[str]:
        """Parameter names in grid order."""
        return [name for name, _ in self._candidates]

    def configurations(self) -> List[Configuration]:
        """All configurations in enumeration order."""
        if not self._candidates:
            return [Configuration()]
        names = self.parameter_names
        product = itertools.product(*(values for _, values in self._candidates))
        return _dedupe([Configuration(dict(zip(names, combo))) for combo in product])

    def __iter__(self) -> Iterator[Configuration]:
        return iter(self.configurations())

    def __len__(self) -> int:
        return len(self.configurations())

    def __repr__(self) -> str:
        sizes = ", ".join(f"{name}={len(values)}" for name, values in self._candidates)
        return f"ParameterGrid({sizes})"


def space_filling_design(
    parameters: Sequence[SearchParameter],
    size: int,
    seed: int = 42,
    n_candidates: int = 20,
) -> List[Configuration]:
    """
    Latin hypercube design chosen to maximize the minimum pairwise distance.

    ``n_candidates`` seeded Latin hypercubes are drawn in the unit cube; the one
    whose closest pair of points is farthest apart is mapped onto the
    parameter ranges. Integer and categorical parameters can map distinct
    points onto the same values, so the result may hold fewer than ``size``
    configurations.

    Args:
        parameters: Parameters spanning the design.
        size: Requested number of configurations.
        seed: Seed for the design.
        n_candidates: Number of candidate designs to compare.

    Returns:
        Configurations in design order.
    """
    if size < 1:
        raise ValueError(f"size must be >= 1, got {size}")
    if n_candidates < 1:
        raise ValueError(f"n_candidates must be >= 1, got {n_candidates}")
    parameters = list(parameters)
    if not parameters:
        return [Configuration()]

    sampler = qmc.LatinHypercube(d=len(parameters), seed=np.random.default_rng(seed))
    best_points: Optional[np.ndarray] = None
    best_distance = -np.inf
    for _ in range(n_candidates):
        points = sampler.random(n=size)
        distance = float(pdist(points).min()) if size > 1 else 0.0
        if distance > best_distance:
            best_distance = distance
            best_points = points

    configurations = [
        Configuration({p.name: p.from_unit(u) for p, u in zip(parameters, row)})
        for row in best_points
    ]
    return _dedupe(configurations)


class SearchSpace:
    """
    Hyperparameter ranges from which grids and designs are generated.

    Example:
        space = SearchSpace()
        space.add_float("penalty", 1e-4, 1e-1, log=True)
        space.add_int("min_n", 2, 40)
        space.add_categorical("criterion", ["gini", "entropy"])

        regular = space.grid_regular(levels=5)
        design = space.space_filling(size=25, seed=42)
    """

    def __init__(self) -> None:
        """Initialize an empty search space."""
        self._parameters: Dict[str, SearchParameter] = {}

    def add_float(self, name: str, low: float, high: float, log: bool = False) -> SearchSpace:
        """
        Add a floating point parameter.

        Args:
            name: Parameter name.
            low: Lower bound.
            high: Upper bound.
            log: Whether to spread values in log space.

        Returns:
            Self for chaining.
        """
        self._parameters[name] = FloatParameter(name=name, low=low, high=high, log=log)
        return self

    def add_int(self, name: str, low: int, high: int, log: bool = False) -> SearchSpace:
        """
        Add an integer parameter.

        Args:
            name: Parameter name.
            low: Lower bound (inclusive).
            high: Upper bound (inclusive).
            log: Whether to spread values in log space.

        Returns:
            Self for chaining.
        """
        self._parameters[name] = IntParameter(name=name, low=low, high=high, log=log)
        return self

    def add_categorical(self, name: str, choices: List[Any]) -> SearchSpace:
        """
        Add a categorical parameter.

        Args:
            name: Parameter name.
            choices: List of possible values.

        Returns:
            Self for chaining.
        """
        self._parameters[name] = CategoricalParameter(name=name, choices=choices)
        return self

    def add_parameter(self, param: SearchParameter) -> SearchSpace:
        """Add a pre-constructed parameter."""
        self._parameters[param.name] = param
        return self

    def add_from_shorthand(self, **kwargs) -> SearchSpace:
        """
        Add parameters using shorthand notation.

        Shorthand formats:
        - (low, high): Float or Int range (inferred from types)
        - (low, high, "log"): Float/Int with log scale
        - [a, b, c]: Categorical choices

        Returns:
            Self for chaining.
        """
        for name, value in kwargs.items():
            self._parameters[name] = parse_shorthand(name, value)
        return self

    def get_parameter(self, name: str) -> Optional[SearchParameter]:
        """Get a parameter by name."""
        return self._parameters.get(name)

    @property
    def parameter_names(self) -> List[str]:
        """List of all parameter names."""
        return list(self._parameters.keys())

    def grid_regular(self, levels: Union[int, Dict[str, int]] = 3) -> ParameterGrid:
        """
        Regular grid with ``levels`` evenly spaced values per parameter.

        Args:
            levels: Levels for every parameter, or a per-parameter mapping
                (missing names default to 3).
        """
        candidates = []
        for name, param in self._parameters.items():
            n = levels.get(name, 3) if isinstance(levels, dict) else levels
            candidates.append((name, param.grid(n)))
        return ParameterGrid(candidates)

    def space_filling(self, size: int, seed: int = 42, n_candidates: int = 20) -> List[Configuration]:
        """Max-min Latin hypercube design of the requested size."""
        return space_filling_design(
            list(self._parameters.values()), size, seed=seed, n_candidates=n_candidates
        )

    def contains(self, configuration: Configuration) -> bool:
        """Whether every value of a configuration lies within its declared range."""
        for name, value in configuration.items():
            param = self._parameters.get(name)
            if param is None or not param.contains(value):
                return False
        return True

    def __len__(self) -> int:
        """Number of parameters."""
        return len(self._parameters)

    def __contains__(self, name: str) -> bool:
        """Check if parameter exists."""
        return name in self._parameters

    def __iter__(self) -> Iterator[SearchParameter]:
        """Iterate over parameters."""
        return iter(self._parameters.values())

    def __repr__(self) -> str:
        params_str = ", ".join(repr(p) for p in self._parameters.values())
        return f"SearchSpace([{params_str}])"

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> SearchSpace:
        """
        Create a search space from a dictionary.

        Dictionary format:
        {
            "param_name": {
                "type": "float"|"int"|"categorical",
                "low": ...,
                "high": ...,
                "log": ...,
                "choices": [...],
            }
        }

        Shorthand tuples and lists are accepted as values too.
        """
        space = cls()
        for name, definition in config.items():
            if isinstance(definition, (tuple, list)):
                space.add_parameter(parse_shorthand(name, definition))
            elif isinstance(definition, dict):
                param_type = definition.get("type", "float")
                if param_type == "float":
                    space.add_float(name, definition["low"], definition["high"], log=definition.get("log", False))
                elif param_type == "int":
                    space.add_int(name, definition["low"], definition["high"], log=definition.get("log", False))
                elif param_type == "categorical":
                    space.add_categorical(name, definition["choices"])
                else:
                    raise ValueError(f"Unknown parameter type: {param_type}")
            else:
                raise ValueError(f"Cannot parse parameter {name!r}: {definition!r}")
        return space


def as_configurations(space: Any) -> List[Configuration]:
    """
    Normalize any supported configuration space to a list of Configurations.

    Accepts a ParameterGrid, a sequence of Configurations or plain dicts, or
    None (a single empty configuration, meaning "fixed parameters only").
    """
    if space is None:
        return [Configuration()]
    if isinstance(space, ParameterGrid):
        return space.configurations()
    if isinstance(space, SearchSpace):
        raise TypeError(
            "SearchSpace holds ranges; call grid_regular() or space_filling() first"
        )
    configurations = [c if isinstance(c, Configuration) else Configuration(c) for c in space]
    if not configurations:
        raise ValueError("Configuration space is empty")
    return _dedupe(configurations)
