"""Persistence of metric records."""

from sklearn_tune.persistence.store import RecordStore

__all__ = ["RecordStore"]
