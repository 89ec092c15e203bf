"""RecordStore: Persist metric records for later re-aggregation."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from sklearn_tune.core.tuning.aggregation import MetricRecord
from sklearn_tune.core.tuning.evaluator import EvaluationFailure, EvaluationResult
from sklearn_tune.search.configuration import Configuration

RECORD_COLUMNS = ["config_id", "config_order", "split_id", "metric", "value", "params"]


class RecordStore:
    """
    File-based storage for metric records.

    Each run is stored as ``<name>.records.csv`` with one row per
    (configuration, split, metric) and ``<name>.meta.json`` holding failures
    and run metadata. Loaded records can be passed straight to ``summarize``
    without refitting anything. Per-row predictions are not persisted.
    """

    def __init__(self, base_path: str = ".sklearn_tune_records") -> None:
        """
        Initialize the record store.

        Args:
            base_path: Directory for stored runs.
        """
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _records_path(self, name: str) -> Path:
        return self.base_path / f"{name}.records.csv"

    def _meta_path(self, name: str) -> Path:
        return self.base_path / f"{name}.meta.json"

    def save_records(
        self,
        records: Sequence[MetricRecord],
        name: str,
        failures: Optional[Sequence[EvaluationFailure]] = None,
        tags: Optional[Dict[str, str]] = None,
    ) -> Path:
        """
        Save metric records (and optional failures) under a run name.

        Returns:
            Path of the records file.
        """
        rows = [
            {
                "config_id": r.config_id,
                "config_order": r.config_order,
                "split_id": r.split_id,
                "metric": r.metric,
                "value": r.value,
                "params": json.dumps(r.configuration.to_dict(), sort_keys=True),
            }
            for r in records
        ]
        frame = pd.DataFrame(rows, columns=RECORD_COLUMNS)
        path = self._records_path(name)
        frame.to_csv(path, index=False, float_format="%.17g")

        meta = {
            "name": name,
            "created_at": datetime.now().isoformat(),
            "n_records": len(rows),
            "failures": [
                {
                    "split_id": f.split_id,
                    "config_order": f.config_order,
                    "params": f.configuration.to_dict(),
                    "error_type": f.error_type,
                    "message": f.message,
                    "metric": f.metric,
                    "trace": f.trace,
                }
                for f in (failures or [])
            ],
            "tags": tags or {},
        }
        with open(self._meta_path(name), "w") as f:
            json.dump(meta, f, indent=2, default=str)
        return path

    def save_evaluation(self, result: EvaluationResult, name: str, tags: Optional[Dict[str, str]] = None) -> Path:
        """Save the records and failures of an evaluation run."""
        return self.save_records(result.records, name, failures=result.failures, tags=tags)

    def load_records(self, name: str) -> List[MetricRecord]:
        """Load the metric records of a stored run."""
        path = self._records_path(name)
        if not path.exists():
            raise FileNotFoundError(f"Records not found: {name}")

        frame = pd.read_csv(
            path,
            dtype={"config_id": str, "split_id": str, "metric": str},
            float_precision="round_trip",
        )
        records = []
        for row in frame.itertuples(index=False):
            configuration = Configuration(json.loads(row.params))
            if configuration.config_id != row.config_id:
                raise ValueError(
                    f"Stored config_id {row.config_id} does not match its parameters"
                )
            records.append(
                MetricRecord(
                    configuration=configuration,
                    split_id=row.split_id,
                    metric=row.metric,
                    value=float(row.value),
                    config_order=int(row.config_order),
                )
            )
        return records

    def load_failures(self, name: str) -> List[EvaluationFailure]:
        """Load the failures of a stored run."""
        meta = self.load_metadata(name)
        return [
            EvaluationFailure(
                split_id=f["split_id"],
                configuration=Configuration(f["params"]),
                error_type=f["error_type"],
                message=f["message"],
                config_order=f["config_order"],
                metric=f["metric"],
                trace=f.get("trace"),
            )
            for f in meta["failures"]
        ]

    def load_metadata(self, name: str) -> Dict[str, Any]:
        """Load the metadata of a stored run."""
        path = self._meta_path(name)
        if not path.exists():
            raise FileNotFoundError(f"Metadata not found: {name}")
        with open(path, "r") as f:
            return json.load(f)

    def list_runs(self) -> List[str]:
        """Names of stored runs."""
        suffix = ".records.csv"
        return sorted(p.name[: -len(suffix)] for p in self.base_path.glob(f"*{suffix}"))

    def delete_run(self, name: str) -> bool:
        """
        Delete a stored run.

        Returns:
            True if anything was deleted.
        """
        deleted = False
        for path in (self._records_path(name), self._meta_path(name)):
            if path.exists():
                path.unlink()
                deleted = True
        return deleted

    def __repr__(self) -> str:
        return f"RecordStore(base_path={self.base_path})"
