"""Configuration spaces: parameters, grids and space-filling designs."""

from sklearn_tune.search.configuration import Configuration
from sklearn_tune.search.parameter import (
    CategoricalParameter,
    FloatParameter,
    IntParameter,
    SearchParameter,
    log_sweep,
)
from sklearn_tune.search.space import (
    ParameterGrid,
    SearchSpace,
    as_configurations,
    space_filling_design,
)

__all__ = [
    "Configuration",
    "SearchSpace",
    "ParameterGrid",
    "SearchParameter",
    "FloatParameter",
    "IntParameter",
    "CategoricalParameter",
    "log_sweep",
    "space_filling_design",
    "as_configurations",
]
