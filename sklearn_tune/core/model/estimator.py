"""Estimator and Transform contracts, with scikit-learn adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Type

import numpy as np
import pandas as pd
from sklearn.base import clone

from sklearn_tune.core.data.dataset import Dataset
from sklearn_tune.core.model.metrics import FoldPredictions, MetricSet
from sklearn_tune.exceptions import TrainingFailure
from sklearn_tune.search.configuration import Configuration


@dataclass(frozen=True)
class FittedTransform:
    """
    A preprocessing transform fit on a specific set of rows.

    Attributes:
        state: Whatever the transform learned (e.g. a fitted sklearn transformer).
        fit_row_ids: Row labels the transform was fit on.
    """

    state: Any
    fit_row_ids: np.ndarray = field(repr=False, compare=False)


class Transform(ABC):
    """
    Preprocessing step fit on training rows and applied to any subset.

    Fitting returns an explicit FittedTransform value; applying requires it,
    so what was fit on which rows travels with the value.
    """

    @abstractmethod
    def fit(self, train: Dataset) -> FittedTransform:
        """Learn the transform from training rows only."""
        pass

    @abstractmethod
    def apply(self, fitted: FittedTransform, data: Dataset) -> Dataset:
        """Apply a fitted transform to any subset."""
        pass


class SklearnTransform(Transform):
    """
    Adapter for any scikit-learn transformer applied to the predictor columns.

    The transformer is cloned for every fit, so the same SklearnTransform can
    be shared by concurrent fold fits.
    """

    def __init__(self, transformer: Any) -> None:
        self.transformer = transformer

    def fit(self, train: Dataset) -> FittedTransform:
        fitted = clone(self.transformer)
        fitted.fit(train.X, train.y)
        return FittedTransform(state=fitted, fit_row_ids=train.row_ids)

    def apply(self, fitted: FittedTransform, data: Dataset) -> Dataset:
        transformed = fitted.state.transform(data.X)
        if hasattr(transformed, "toarray"):
            transformed = transformed.toarray()
        if isinstance(transformed, pd.DataFrame):
            features = transformed.set_axis(data.frame.index, axis=0)
        else:
            if hasattr(fitted.state, "get_feature_names_out"):
                columns = [str(c) for c in fitted.state.get_feature_names_out()]
            else:
                columns = [f"x{i}" for i in range(transformed.shape[1])]
            features = pd.DataFrame(transformed, index=data.frame.index, columns=columns)
        frame = features.copy()
        frame[data.outcome] = data.y
        return data.with_frame(frame, predictors=list(features.columns))

    def __repr__(self) -> str:
        return f"SklearnTransform({self.transformer!r})"


@dataclass
class FittedModel:
    """
    A model fit on a specific training subset with a specific configuration.

    Attributes:
        model: The fitted model object.
        configuration: Configuration the model was fit with.
        transform: Fitted preprocessing applied before the model, if any.
        n_train: Number of training rows.
        classes: Class labels (classification models only).
    """

    model: Any
    configuration: Configuration
    transform: Optional[FittedTransform] = None
    n_train: int = 0
    classes: Optional[Tuple] = None

    def __repr__(self) -> str:
        return (
            f"FittedModel(model={type(self.model).__name__}, "
            f"config={self.configuration}, n_train={self.n_train})"
        )


class Estimator(ABC):
    """
    Trainable model contract used by the engine.

    Subclasses implement ``fit``, ``predict`` and optionally
    ``predict_proba``. ``fit`` must be a pure function of its inputs and raise
    TrainingFailure when training fails. The engine never looks inside the
    fitted model.
    """

    @abstractmethod
    def fit(self, train: Dataset, configuration: Configuration) -> FittedModel:
        """
        Fit on training rows with a configuration.

        Raises:
            TrainingFailure: When the model cannot be trained.
        """
        pass

    @abstractmethod
    def predict(self, fitted: FittedModel, data: Dataset) -> np.ndarray:
        """Hard predictions for every row of ``data``."""
        pass

    def predict_proba(self, fitted: FittedModel, data: Dataset) -> Optional[np.ndarray]:
        """Class probabilities (rows x classes), or None if not available."""
        return None

    def predict_holdout(
        self, fitted: FittedModel, holdout: Dataset, split_id: str = ""
    ) -> FoldPredictions:
        """Hard predictions and probabilities for held-out rows."""
        return FoldPredictions(
            split_id=split_id,
            row_ids=holdout.row_ids,
            y_true=holdout.y.to_numpy(),
            y_pred=np.asarray(self.predict(fitted, holdout)),
            probabilities=self.predict_proba(fitted, holdout),
            classes=fitted.classes,
        )

    def score(self, fitted: FittedModel, holdout: Dataset, metrics: MetricSet) -> Dict[str, float]:
        """Compute every metric on held-out rows."""
        return MetricSet.coerce(metrics).compute(self.predict_holdout(fitted, holdout))


class SklearnEstimator(Estimator):
    """
    Adapter for any scikit-learn estimator class.

    Configuration values override ``fixed_params``. When a Transform is
    given, it is fit on the training rows only and the resulting
    FittedTransform is applied to every subset the model later scores.

    Example:
        estimator = SklearnEstimator(
            LogisticRegression,
            fixed_params={"solver": "saga", "max_iter": 500},
            transform=SklearnTransform(StandardScaler()),
        )
        fitted = estimator.fit(train, Configuration(C=0.1))
    """

    def __init__(
        self,
        estimator_class: Type,
        fixed_params: Optional[Dict[str, Any]] = None,
        transform: Optional[Transform] = None,
        fit_params: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.estimator_class = estimator_class
        self.fixed_params = dict(fixed_params or {})
        self.transform = transform
        self.fit_params = dict(fit_params or {})

    def create_estimator(self, configuration: Configuration) -> Any:
        """Instantiate the estimator with merged parameters."""
        params = dict(self.fixed_params)
        params.update(configuration)
        return self.estimator_class(**params)

    def fit(self, train: Dataset, configuration: Configuration) -> FittedModel:
        try:
            fitted_transform = self.transform.fit(train) if self.transform else None
            features = (
                self.transform.apply(fitted_transform, train) if self.transform else train
            )
            model = self.create_estimator(configuration)
            model.fit(features.X, features.y, **self.fit_params)
        except Exception as e:
            raise TrainingFailure(configuration, e) from e

        classes = tuple(model.classes_) if hasattr(model, "classes_") else None
        return FittedModel(
            model=model,
            configuration=configuration,
            transform=fitted_transform,
            n_train=train.n_rows,
            classes=classes,
        )

    def _features(self, fitted: FittedModel, data: Dataset) -> pd.DataFrame:
        if fitted.transform is not None:
            data = self.transform.apply(fitted.transform, data)
        return data.X

    def predict(self, fitted: FittedModel, data: Dataset) -> np.ndarray:
        return np.asarray(fitted.model.predict(self._features(fitted, data)))

    def predict_proba(self, fitted: FittedModel, data: Dataset) -> Optional[np.ndarray]:
        if not hasattr(fitted.model, "predict_proba"):
            return None
        return np.asarray(fitted.model.predict_proba(self._features(fitted, data)))

    def __repr__(self) -> str:
        transform_str = f", transform={self.transform!r}" if self.transform else ""
        return f"SklearnEstimator({self.estimator_class.__name__}{transform_str})"
