from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence

import numpy as np

from stump_trainer import Stump, StumpTrainer
from validation import (
    InvalidInput,
    check_batch,
    check_features,
    check_labels,
    check_num_classes,
    check_sample,
)

logger = logging.getLogger(__name__)


@dataclass
class BoostingParams:
    n_rounds: int = 50
    # Confidence is computed in this base while reweighting always uses exp().
    log_base: float = 10.0

    def __post_init__(self) -> None:
        if self.n_rounds < 0:
            raise ValueError("n_rounds must be >= 0")
        if not self.log_base > 1.0:
            raise ValueError("log_base must be > 1")


@dataclass
class RoundRecord:
    round_idx: int
    dimension: int
    threshold: float
    total_error: float
    confidence: float
    n_misclassified: int
    candidates_evaluated: int
    time_spent_sec: float


class BoostingEnsemble:
    """Multiclass AdaBoost over decision stumps.

    Owns the per-sample weight vector and the append-only list of stumps.
    Each ``iterate()`` trains one stump on the current weights, scales the
    weights of the samples it misclassifies by ``exp(confidence)`` and
    renormalizes. The caller decides how many rounds to run.
    """

    def __init__(
        self,
        features: np.ndarray | Sequence[Sequence[float]],
        labels: np.ndarray | Sequence[int],
        num_classes: int,
        params: BoostingParams | None = None,
    ) -> None:
        self.params = params or BoostingParams()
        self._features = check_features(features)
        n_samples = self._features.shape[0]
        self._num_classes = check_num_classes(num_classes)
        self._labels = check_labels(labels, n_samples, self._num_classes)

        self._weights = np.full(n_samples, 1.0 / n_samples, dtype=np.float64)
        self._stumps: list[Stump] = []
        self._trainer = StumpTrainer(log_base=self.params.log_base)
        self.metrics: dict = {
            "stump_search_time_sec": 0.0,
            "candidates_evaluated": 0,
            "rounds": [],
        }

    @property
    def n_samples(self) -> int:
        return int(self._features.shape[0])

    @property
    def n_features(self) -> int:
        return int(self._features.shape[1])

    @property
    def num_classes(self) -> int:
        return self._num_classes

    @property
    def stumps(self) -> tuple[Stump, ...]:
        return tuple(self._stumps)

    @property
    def weights(self) -> np.ndarray:
        return self._weights.copy()

    def weight_of(self, i: int) -> float:
        if isinstance(i, (bool, np.bool_)) or not isinstance(i, (int, np.integer)):
            raise InvalidInput("sample index must be an integer")
        if i < 0 or i >= self.n_samples:
            raise InvalidInput("sample index out of bounds")
        return float(self._weights[i])

    def iterate(self) -> None:
        stump = self._trainer.train(
            self._features, self._weights, self._labels, self._num_classes
        )
        self._stumps.append(stump)

        misclassified = stump.predict_batch(self._features) != self._labels
        updated = np.where(
            misclassified,
            self._weights * np.exp(stump.confidence),
            self._weights,
        )
        # Weights start positive and exp() of a finite value never reaches zero.
        updated /= updated.sum()
        self._weights = updated

        search = self._trainer.metrics
        record = RoundRecord(
            round_idx=len(self._stumps) - 1,
            dimension=stump.dimension,
            threshold=stump.threshold,
            total_error=stump.total_error,
            confidence=stump.confidence,
            n_misclassified=int(np.count_nonzero(misclassified)),
            candidates_evaluated=search.candidates_evaluated,
            time_spent_sec=search.time_spent_sec,
        )
        self.metrics["stump_search_time_sec"] += search.time_spent_sec
        self.metrics["candidates_evaluated"] += search.candidates_evaluated
        self.metrics["rounds"].append(record)

        logger.debug(
            "round %d: dim=%d threshold=%g error=%.6f confidence=%.6f misclassified=%d",
            record.round_idx,
            record.dimension,
            record.threshold,
            record.total_error,
            record.confidence,
            record.n_misclassified,
        )

    def fit(self, n_rounds: int | None = None) -> "BoostingEnsemble":
        rounds = self.params.n_rounds if n_rounds is None else n_rounds
        if rounds < 0:
            raise ValueError("n_rounds must be >= 0")
        for _ in range(rounds):
            self.iterate()
        return self

    def _vote(self, predictions: np.ndarray) -> np.ndarray:
        # predictions: (n_stumps, n_rows) class indices.
        n_rows = predictions.shape[1]
        votes = np.zeros((n_rows, self._num_classes), dtype=np.float64)
        cols = np.arange(n_rows)
        for stump, predicted in zip(self._stumps, predictions):
            votes[cols, predicted] += stump.confidence
        # argmax returns the lowest class index among equal totals.
        return np.argmax(votes, axis=1).astype(np.int64)

    def predict(self, sample: np.ndarray | Sequence[float]) -> int:
        x = check_sample(sample, self.n_features)
        votes = np.zeros(self._num_classes, dtype=np.float64)
        for stump in self._stumps:
            votes[stump._route(x)] += stump.confidence
        return int(np.argmax(votes))

    def predict_batch(self, X: np.ndarray | Sequence[Sequence[float]]) -> np.ndarray:
        X = check_batch(X, self.n_features)
        if not self._stumps:
            return np.zeros(X.shape[0], dtype=np.int64)
        predictions = np.stack([stump.predict_batch(X) for stump in self._stumps])
        return self._vote(predictions)
