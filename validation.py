from __future__ import annotations

from typing import Sequence

import numpy as np


class InvalidInput(ValueError):
    """Raised when arguments to a public boosting operation are malformed."""


def _as_float_array(values, name: str) -> np.ndarray:
    try:
        raw = np.asarray(values)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"{name} must be numeric and rectangular") from e
    if raw.dtype.kind not in "biuf":
        raise InvalidInput(f"{name} must be numeric")
    return raw.astype(np.float64, copy=False)


def check_features(features: np.ndarray | Sequence[Sequence[float]] | None) -> np.ndarray:
    """Return a finite float64 (n, k) matrix, rejecting ragged or empty input."""
    if features is None:
        raise InvalidInput("features must not be None")

    if not isinstance(features, np.ndarray):
        try:
            rows = list(features)
        except TypeError as e:
            raise InvalidInput("features must be a sequence of rows") from e
        if len(rows) == 0:
            raise InvalidInput("features must contain at least one row")
        for row in rows:
            if row is None:
                raise InvalidInput("feature rows must not be None")
            if not hasattr(row, "__len__"):
                raise InvalidInput("feature rows must be sequences")
        k = len(rows[0])
        for row in rows:
            if len(row) != k:
                raise InvalidInput("inconsistent feature dimensions")
        features = rows

    X = _as_float_array(features, "features")
    if X.ndim != 2:
        raise InvalidInput("features must be a 2D array")
    if X.shape[0] == 0:
        raise InvalidInput("features must contain at least one row")
    if X.shape[1] == 0:
        raise InvalidInput("features must have at least one dimension")
    if not np.all(np.isfinite(X)):
        raise InvalidInput("features must be finite")
    return X


def check_num_classes(num_classes: int) -> int:
    if isinstance(num_classes, (bool, np.bool_)) or not isinstance(
        num_classes, (int, np.integer)
    ):
        raise InvalidInput("num_classes must be an integer")
    if num_classes < 1:
        raise InvalidInput("num_classes must be at least 1")
    return int(num_classes)


def check_labels(
    labels: np.ndarray | Sequence[int] | None,
    n_samples: int,
    num_classes: int,
) -> np.ndarray:
    """Return a fresh int64 copy of ``labels`` after range and length checks."""
    if labels is None:
        raise InvalidInput("labels must not be None")

    try:
        raw = np.array(labels, copy=True)
    except (TypeError, ValueError) as e:
        raise InvalidInput("labels must be a flat sequence of integers") from e
    if raw.ndim != 1 or raw.shape[0] != n_samples:
        raise InvalidInput("labels must be a 1D sequence with one entry per sample")
    if raw.dtype.kind not in "iu":
        # Integral floats (e.g. 1.0) are accepted.
        if (
            raw.dtype.kind != "f"
            or not np.all(np.isfinite(raw))
            or np.any(raw != np.round(raw))
        ):
            raise InvalidInput("labels must be integers")

    y = raw.astype(np.int64)
    if np.any(y < 0) or np.any(y >= num_classes):
        raise InvalidInput("labels must lie in [0, num_classes)")
    return y


def check_weights(weights: np.ndarray | Sequence[float] | None, n_samples: int) -> np.ndarray:
    if weights is None:
        raise InvalidInput("weights must not be None")

    w = _as_float_array(weights, "weights")
    if w.ndim != 1 or w.shape[0] != n_samples:
        raise InvalidInput("weights must be a 1D sequence with one entry per sample")
    if not np.all(np.isfinite(w)):
        raise InvalidInput("weights must be finite")
    if np.any(w < 0.0):
        raise InvalidInput("weights must be at least 0")
    return w


def check_sample(sample: np.ndarray | Sequence[float] | None, n_features: int) -> np.ndarray:
    if sample is None:
        raise InvalidInput("sample must not be None")

    x = _as_float_array(sample, "sample")
    if x.ndim != 1 or x.shape[0] != n_features:
        raise InvalidInput(
            f"sample must have {n_features} features, got shape {x.shape}"
        )
    return x


def check_batch(X: np.ndarray | Sequence[Sequence[float]] | None, n_features: int) -> np.ndarray:
    if X is None:
        raise InvalidInput("X must not be None")

    X = _as_float_array(X, "X")
    if X.ndim != 2 or X.shape[1] != n_features:
        raise InvalidInput(
            f"X must be a 2D array with {n_features} columns, got shape {X.shape}"
        )
    return X
