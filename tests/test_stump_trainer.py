import math

import numpy as np
import pytest

from stump_trainer import Stump, StumpTrainer, stump_confidence
from validation import InvalidInput


def _brute_force_best_score(X, weights, labels, num_classes):
    """Rescore every observed threshold with the weighted-majority rule."""
    best = -float("inf")
    for d in range(X.shape[1]):
        for v in np.unique(X[:, d]):
            left = X[:, d] <= v
            left_sums = np.bincount(labels[left], weights=weights[left], minlength=num_classes)
            right_sums = np.bincount(labels[~left], weights=weights[~left], minlength=num_classes)

            left_label = int(np.argmax(left_sums))
            right_label = int(np.argmax(right_sums))
            if right_label == left_label and num_classes > 1:
                others = [c for c in range(num_classes) if c != left_label]
                right_label = max(others, key=lambda c: (right_sums[c], -c))
            best = max(best, left_sums[left_label] + right_sums[right_label])
    return best


def _rescore_stump(stump, X, weights, labels, num_classes):
    left = X[:, stump.dimension] <= stump.threshold
    left_sums = np.bincount(labels[left], weights=weights[left], minlength=num_classes)
    right_sums = np.bincount(labels[~left], weights=weights[~left], minlength=num_classes)
    return left_sums[stump.left_label] + right_sums[stump.right_label]


def test_perfect_split_on_four_points():
    X = [[0.0], [1.0], [2.0], [3.0]]
    y = [0, 0, 1, 1]
    stump = StumpTrainer().train(X, [0.25] * 4, y, 2)

    assert stump.dimension == 0
    assert stump.threshold == 1.0
    assert stump.left_label == 0
    assert stump.right_label == 1
    assert stump.total_error == 0.0
    assert math.isfinite(stump.confidence)
    assert stump.confidence > 100.0
    assert [stump.predict(x) for x in X] == y


def test_no_improving_split_keeps_majority_and_reports_minority_mass():
    X = [[0.0], [1.0], [2.0], [3.0]]
    y = [0, 1, 0, 0]
    stump = StumpTrainer().train(X, [0.25] * 4, y, 2)

    # Only the all-left split reaches the majority baseline.
    assert stump.threshold == 3.0
    assert stump.left_label == 0
    assert stump.right_label == 1
    assert stump.total_error == pytest.approx(0.25)


def test_constant_feature_still_yields_a_stump():
    X = [[5.0], [5.0], [5.0], [5.0]]
    y = [0, 0, 0, 1]
    stump = StumpTrainer().train(X, [0.25] * 4, y, 2)

    assert stump.threshold == 5.0
    assert stump.left_label == 0
    assert stump.right_label != stump.left_label
    assert stump.total_error == pytest.approx(0.25)


def test_right_side_falls_back_to_runner_up_and_first_split_wins_ties():
    X = [[0.0], [1.0], [1.0]]
    y = [0, 0, 1]
    w = [0.5, 0.25, 0.25]
    stump = StumpTrainer().train(X, w, y, 2)

    # At threshold 0 the right side is tied between 0 and 1; class 0 is taken
    # by the left side so the right side falls back to 1. Scores 0.75, which
    # equals the later all-left split; the earlier boundary is kept.
    assert stump.threshold == 0.0
    assert stump.left_label == 0
    assert stump.right_label == 1
    assert stump.total_error == pytest.approx(0.25)


def test_total_error_stays_in_unit_interval_for_perfect_splits():
    X = np.arange(10, dtype=np.float64).reshape(-1, 1)
    y = (np.arange(10) >= 5).astype(int)
    trainer = StumpTrainer()
    for seed in range(100):
        w = np.random.default_rng(seed).uniform(size=10)
        w /= w.sum()
        stump = trainer.train(X, w, y, 2)

        assert stump.threshold == 4.0
        assert 0.0 <= stump.total_error <= 1.0
        assert math.isfinite(stump.confidence)


def test_equal_dimensions_keep_first_dimension():
    X = [[0.0, 0.0], [1.0, 1.0]]
    stump = StumpTrainer().train(X, [0.5, 0.5], [0, 1], 2)

    assert stump.dimension == 0


def test_threshold_is_an_observed_value():
    rng = np.random.default_rng(5)
    X = rng.normal(size=(30, 3))
    y = rng.integers(0, 3, size=30)
    w = np.full(30, 1.0 / 30)
    stump = StumpTrainer().train(X, w, y, 3)

    assert stump.threshold in set(X[:, stump.dimension].tolist())
    assert stump.left_label != stump.right_label


def test_reported_error_matches_brute_force_rescoring():
    rng = np.random.default_rng(17)
    n, k, num_classes = 40, 3, 3
    # Rounded values create repeated thresholds.
    X = np.round(rng.normal(size=(n, k)), 1)
    y = rng.integers(0, num_classes, size=n)
    w = rng.uniform(size=n)
    w /= w.sum()

    stump = StumpTrainer().train(X, w, y, num_classes)

    best = _brute_force_best_score(X, w, y, num_classes)
    assert np.isclose(1.0 - best, stump.total_error, atol=1e-12)
    assert np.isclose(
        _rescore_stump(stump, X, w, y, num_classes), 1.0 - stump.total_error, atol=1e-12
    )


def test_rescaling_weights_does_not_change_split():
    rng = np.random.default_rng(23)
    X = rng.normal(size=(50, 4))
    y = rng.integers(0, 4, size=50)
    w = rng.uniform(size=50)
    w /= w.sum()

    trainer = StumpTrainer()
    base = trainer.train(X, w, y, 4)
    scaled = trainer.train(X, 4.0 * w, y, 4)

    assert (base.dimension, base.threshold, base.left_label, base.right_label) == (
        scaled.dimension,
        scaled.threshold,
        scaled.left_label,
        scaled.right_label,
    )


def test_zero_weight_samples_are_ignored():
    X = [[0.0], [1.0], [2.0], [3.0]]
    y = [0, 1, 1, 1]
    # The misplaced label at 1.0 carries no weight.
    w = [0.25, 0.0, 0.375, 0.375]
    stump = StumpTrainer().train(X, w, y, 2)

    assert stump.threshold == 0.0
    assert stump.total_error == 0.0


def test_single_class_stump():
    stump = StumpTrainer().train([[1.0], [2.0]], [0.5, 0.5], [0, 0], 1)

    assert stump.left_label == 0
    assert stump.right_label == 0
    assert stump.total_error == 0.0
    assert stump.confidence == -math.inf


def test_confidence_is_clamped_at_both_ends():
    perfect = stump_confidence(0.0, 2)
    useless = stump_confidence(1.0, 2)

    assert math.isfinite(perfect) and perfect > 0.0
    assert math.isfinite(useless) and useless < 0.0
    assert stump_confidence(0.5, 2) == pytest.approx(0.0)
    assert stump_confidence(0.5, 3) == pytest.approx(math.log10(2.0))


def test_confidence_log_base():
    assert stump_confidence(0.2, 3, log_base=math.e) == pytest.approx(
        math.log(4.0) + math.log(2.0)
    )
    assert stump_confidence(0.2, 3, log_base=math.e) == pytest.approx(
        stump_confidence(0.2, 3) * math.log(10.0)
    )


def test_trainer_rejects_bad_log_base():
    with pytest.raises(ValueError):
        StumpTrainer(log_base=1.0)


def test_predict_batch_matches_predict():
    rng = np.random.default_rng(2)
    X = rng.normal(size=(25, 3))
    y = rng.integers(0, 3, size=25)
    stump = StumpTrainer().train(X, np.full(25, 0.04), y, 3)

    batch = stump.predict_batch(X)
    assert batch.tolist() == [stump.predict(x) for x in X]


def test_stump_is_immutable():
    stump = Stump(
        dimension=0,
        threshold=1.0,
        left_label=0,
        right_label=1,
        total_error=0.1,
        confidence=1.0,
        n_features=1,
    )
    with pytest.raises(AttributeError):
        stump.threshold = 2.0


def test_metrics_record_search_work():
    X = [[0.0, 1.0], [1.0, 1.0], [2.0, 3.0]]
    trainer = StumpTrainer()
    trainer.train(X, [0.2, 0.3, 0.5], [0, 1, 1], 2)

    assert trainer.metrics.n_dimensions == 2
    # Three distinct values on dim 0, two on dim 1.
    assert trainer.metrics.candidates_evaluated == 5
    assert trainer.metrics.time_spent_sec >= 0.0


@pytest.mark.parametrize(
    "features, weights, labels, num_classes",
    [
        (None, [1.0], [0], 2),
        (5, [1.0], [0], 2),
        ([["1.0"], ["2"]], [0.5, 0.5], [0, 1], 2),
        ([[0.0], [1.0]], ["a", "b"], [0, 1], 2),
        ([[0.0, 1.0], [2.0]], [0.5, 0.5], [0, 1], 2),
        ([[0.0], None], [0.5, 0.5], [0, 1], 2),
        ([], [], [], 2),
        ([[0.0], [1.0]], [1.0], [0, 1], 2),
        ([[0.0], [1.0]], [0.5, 0.5], [0], 2),
        ([[0.0], [1.0]], [0.5, -0.5], [0, 1], 2),
        ([[0.0], [1.0]], [0.5, 0.5], [0, 2], 2),
        ([[0.0], [1.0]], [0.5, 0.5], [-1, 1], 2),
        ([[0.0], [1.0]], [0.5, 0.5], [0, 1], 0),
        ([[0.0], [float("nan")]], [0.5, 0.5], [0, 1], 2),
        ([[0.0], [1.0]], None, [0, 1], 2),
        ([[0.0], [1.0]], [0.5, 0.5], None, 2),
        ([[0.0], [1.0]], [0.5, 0.5], [0.5, 1], 2),
    ],
)
def test_train_rejects_invalid_input(features, weights, labels, num_classes):
    with pytest.raises(InvalidInput):
        StumpTrainer().train(features, weights, labels, num_classes)


def test_predict_rejects_bad_samples():
    stump = StumpTrainer().train([[0.0, 1.0], [1.0, 0.0]], [0.5, 0.5], [0, 1], 2)

    with pytest.raises(InvalidInput):
        stump.predict(None)
    with pytest.raises(InvalidInput):
        stump.predict([0.0])
    with pytest.raises(InvalidInput):
        stump.predict([[0.0, 1.0]])
    with pytest.raises(InvalidInput):
        stump.predict_batch([0.0, 1.0])
