"""Configuration: Immutable, value-identified hyperparameter assignment."""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

import numpy as np


def _plain(value: Any) -> Any:
    """Convert numpy values to Python equivalents and sequences to tuples."""
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return _plain(value.tolist())
    if isinstance(value, (list, tuple)):
        return tuple(_plain(v) for v in value)
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    return value


def _frozen(value: Any) -> Any:
    """Hashable form of a plain value; mappings become sorted item tuples."""
    if isinstance(value, dict):
        return tuple(sorted((k, _frozen(v)) for k, v in value.items()))
    if isinstance(value, tuple):
        return tuple(_frozen(v) for v in value)
    return value


class Configuration(Mapping):
    """
    Immutable mapping from hyperparameter name to value.

    Two configurations with the same names and values are equal and hash the
    same, regardless of insertion order or object identity. List and array
    values are stored as tuples, so ``[10]`` and ``(10,)`` are the same value.

    Example:
        config = Configuration(penalty=0.01, mixture=1.0)
        config["penalty"]  # 0.01
        config.config_id   # stable short hash, e.g. "3f2a9c1b0d4e"
    """

    __slots__ = ("_params", "_key")

    def __init__(self, params: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> None:
        merged: Dict[str, Any] = dict(params or {})
        merged.update(kwargs)
        items = tuple(sorted((str(k), _plain(v)) for k, v in merged.items()))
        object.__setattr__(self, "_params", dict(items))
        object.__setattr__(self, "_key", tuple((k, _frozen(v)) for k, v in items))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Configuration is immutable")

    def __getitem__(self, name: str) -> Any:
        return self._params[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._params)

    def __len__(self) -> int:
        return len(self._params)

    def __hash__(self) -> int:
        return hash(self._key)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Configuration):
            return self._key == other._key
        if isinstance(other, Mapping):
            return self._key == Configuration(other)._key
        return NotImplemented

    def __reduce__(self):
        return (Configuration, (self._params,))

    @property
    def key(self) -> Tuple[Tuple[str, Any], ...]:
        """Sorted (name, value) tuple that defines identity."""
        return self._key

    @property
    def config_id(self) -> str:
        """Stable short identifier derived from the values."""
        content = json.dumps(self._params, sort_keys=True, default=str)
        return hashlib.md5(content.encode()).hexdigest()[:12]

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary copy of the parameters."""
        return dict(self._params)

    def merged(self, other: Mapping[str, Any]) -> Configuration:
        """New configuration with ``other`` overriding these values."""
        params = dict(self._params)
        params.update(other)
        return Configuration(params)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v!r}" for k, v in self._key)
        return f"Configuration({inner})"
