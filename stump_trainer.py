from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Sequence

import numpy as np

from validation import (
    check_batch,
    check_features,
    check_labels,
    check_num_classes,
    check_sample,
    check_weights,
)

logger = logging.getLogger(__name__)

# Error values of exactly 0 or 1 would make the log-odds diverge.
_ERROR_FLOOR = float(np.finfo(np.float64).tiny)
_ERROR_CEIL = float(np.nextafter(1.0, 0.0))


def stump_confidence(total_error: float, num_classes: int, log_base: float = 10.0) -> float:
    """Multiclass (SAMME) amount of say for a stump with the given weighted error.

    ``log_b((1 - e) / e) + log_b(K - 1)`` with ``e`` clamped into the open unit
    interval, so a perfect stump gets a large but finite confidence.
    """
    e = min(max(float(total_error), _ERROR_FLOOR), _ERROR_CEIL)
    with np.errstate(divide="ignore"):
        # num_classes == 1 gives log(0) = -inf; such stumps never misclassify.
        nats = np.log((1.0 - e) / e) + np.log(float(num_classes - 1))
    return float(nats / np.log(log_base))


@dataclass(frozen=True)
class Stump:
    """One-dimension, one-threshold classifier produced by ``StumpTrainer``."""

    dimension: int
    threshold: float
    left_label: int
    right_label: int
    total_error: float
    confidence: float
    n_features: int

    def predict(self, sample: np.ndarray | Sequence[float]) -> int:
        return self._route(check_sample(sample, self.n_features))

    def _route(self, x: np.ndarray) -> int:
        if x[self.dimension] <= self.threshold:
            return self.left_label
        return self.right_label

    def predict_batch(self, X: np.ndarray | Sequence[Sequence[float]]) -> np.ndarray:
        X = check_batch(X, self.n_features)
        go_left = X[:, self.dimension] <= self.threshold
        return np.where(go_left, self.left_label, self.right_label).astype(np.int64)


@dataclass(frozen=True)
class SplitCandidate:
    dimension: int
    threshold: float
    left_label: int
    right_label: int
    left_weight: float
    right_weight: float

    @property
    def score(self) -> float:
        return self.left_weight + self.right_weight


@dataclass
class StumpSearchMetrics:
    n_dimensions: int = 0
    candidates_evaluated: int = 0
    time_spent_sec: float = 0.0


class StumpTrainer:
    """Exact weighted-majority stump search over every observed threshold."""

    def __init__(self, log_base: float = 10.0) -> None:
        if not log_base > 1.0:
            raise ValueError("log_base must be > 1")
        self.log_base = float(log_base)
        self.metrics = StumpSearchMetrics()

    @staticmethod
    def _scan_dimension(
        dimension: int,
        column: np.ndarray,
        weights: np.ndarray,
        labels: np.ndarray,
        num_classes: int,
    ) -> tuple[SplitCandidate, int]:
        order = np.argsort(column, kind="stable")
        values = column[order]

        # Samples sharing a value always land on the same side of the split.
        new_group = np.empty(values.size, dtype=bool)
        new_group[0] = True
        new_group[1:] = values[1:] != values[:-1]
        group_ids = np.cumsum(new_group) - 1
        group_values = values[new_group]
        n_groups = group_values.size

        group_sums = np.zeros((n_groups, num_classes), dtype=np.float64)
        np.add.at(group_sums, (group_ids, labels[order]), weights[order])

        # Row g holds the per-class sums for the split "value <= group_values[g]".
        left_sums = np.cumsum(group_sums, axis=0)
        right_sums = np.zeros_like(left_sums)
        right_sums[:-1] = np.cumsum(group_sums[::-1], axis=0)[::-1][1:]

        rows = np.arange(n_groups)
        left_label = np.argmax(left_sums, axis=1)
        left_weight = left_sums[rows, left_label]

        right_top = np.argmax(right_sums, axis=1)
        if num_classes > 1:
            # A side may not repeat the other side's label; fall back to the runner-up.
            others = right_sums.copy()
            others[rows, left_label] = -np.inf
            runner_up = np.argmax(others, axis=1)
            right_label = np.where(right_top == left_label, runner_up, right_top)
        else:
            right_label = right_top
        right_weight = right_sums[rows, right_label]

        # argmax keeps the first (lowest-valued) boundary among equal scores.
        best = int(np.argmax(left_weight + right_weight))
        candidate = SplitCandidate(
            dimension=dimension,
            threshold=float(group_values[best]),
            left_label=int(left_label[best]),
            right_label=int(right_label[best]),
            left_weight=float(left_weight[best]),
            right_weight=float(right_weight[best]),
        )
        return candidate, n_groups

    def train(
        self,
        features: np.ndarray | Sequence[Sequence[float]],
        weights: np.ndarray | Sequence[float],
        labels: np.ndarray | Sequence[int],
        num_classes: int,
    ) -> Stump:
        start = time.perf_counter()
        X = check_features(features)
        n_samples, n_features = X.shape
        num_classes = check_num_classes(num_classes)
        w = check_weights(weights, n_samples)
        y = check_labels(labels, n_samples, num_classes)

        metrics = StumpSearchMetrics(n_dimensions=n_features)
        best: SplitCandidate | None = None
        for dimension in range(n_features):
            candidate, n_candidates = self._scan_dimension(
                dimension, X[:, dimension], w, y, num_classes
            )
            metrics.candidates_evaluated += n_candidates
            if best is None or candidate.score > best.score:
                best = candidate

        assert best is not None
        # Rounding in the cumulative sums can push the score just past 1.
        total_error = min(max(1.0 - best.score, 0.0), 1.0)
        stump = Stump(
            dimension=best.dimension,
            threshold=best.threshold,
            left_label=best.left_label,
            right_label=best.right_label,
            total_error=total_error,
            confidence=stump_confidence(total_error, num_classes, self.log_base),
            n_features=n_features,
        )

        metrics.time_spent_sec = time.perf_counter() - start
        self.metrics = metrics
        logger.debug(
            "stump search: %d dims, %d candidates, %.4fs",
            metrics.n_dimensions,
            metrics.candidates_evaluated,
            metrics.time_spent_sec,
        )
        return stump
