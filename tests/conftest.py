"""Shared fixtures for sklearn-tune tests."""

import numpy as np
import pandas as pd
import pytest

from sklearn_tune.core.data.dataset import Dataset
from sklearn_tune.core.model.estimator import Estimator, FittedModel
from sklearn_tune.exceptions import TrainingFailure


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: slower end-to-end tests")


class ConstantEstimator(Estimator):
    """
    Predicts ``configuration["value"]`` for every row.

    A value of "boom" makes fit raise TrainingFailure. Probabilities put
    ``configuration["p"]`` (default 0.5) on the last class.
    """

    def fit(self, train, configuration):
        value = configuration.get("value", "a")
        if value == "boom":
            raise TrainingFailure(configuration, ValueError("cannot fit boom"))
        classes = tuple(sorted(train.y.unique()))
        return FittedModel(
            model=value,
            configuration=configuration,
            n_train=train.n_rows,
            classes=classes,
        )

    def predict(self, fitted, data):
        return np.array([fitted.model] * data.n_rows, dtype=object)

    def predict_proba(self, fitted, data):
        if fitted.classes is None or len(fitted.classes) != 2:
            return None
        p = fitted.configuration.get("p", 0.5)
        return np.tile([1.0 - p, p], (data.n_rows, 1))


@pytest.fixture
def constant_estimator():
    """Estimator that predicts a constant label."""
    return ConstantEstimator()


@pytest.fixture
def ten_row_dataset():
    """Ten rows, six of class "a" and four of class "b"."""
    frame = pd.DataFrame(
        {
            "x": np.arange(10, dtype=float),
            "label": ["a", "b", "a", "a", "b", "a", "b", "a", "a", "b"],
        }
    )
    return Dataset(frame=frame, outcome="label")


@pytest.fixture
def nine_row_dataset():
    """Nine rows with a numeric predictor."""
    frame = pd.DataFrame(
        {
            "x": np.arange(9, dtype=float),
            "label": ["a", "b", "c"] * 3,
        }
    )
    return Dataset(frame=frame, outcome="label")


@pytest.fixture
def imbalanced_dataset():
    """120 rows: 30 "yes" and 90 "no", with a categorical and numeric predictors."""
    rng = np.random.default_rng(0)
    n = 120
    labels = np.array(["yes"] * 30 + ["no"] * 90)
    rng.shuffle(labels)
    frame = pd.DataFrame(
        {
            "f0": rng.normal(size=n),
            "f1": rng.normal(size=n),
            "color": rng.choice(["red", "green", "blue"], size=n),
            "children": labels,
        }
    )
    return Dataset(frame=frame, outcome="children", predictors=("f0", "f1"))


@pytest.fixture
def classification_dataset():
    """300-row learnable binary classification problem."""
    from sklearn.datasets import make_classification

    X, y = make_classification(
        n_samples=300,
        n_features=6,
        n_informative=4,
        random_state=42,
    )
    frame = pd.DataFrame(X, columns=[f"f{i}" for i in range(6)])
    frame["target"] = y
    return Dataset(frame=frame, outcome="target")


@pytest.fixture
def regression_dataset():
    """200-row regression problem with a continuous outcome."""
    from sklearn.datasets import make_regression

    X, y = make_regression(n_samples=200, n_features=4, noise=0.1, random_state=0)
    frame = pd.DataFrame(X, columns=[f"f{i}" for i in range(4)])
    frame["y"] = y
    return Dataset(frame=frame, outcome="y")
