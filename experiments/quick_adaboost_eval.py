import argparse
import logging
import math
import sys
import time
from pathlib import Path

import numpy as np

# Allow running as: python experiments/quick_adaboost_eval.py
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from adaboost import BoostingEnsemble, BoostingParams


def _subsample(X, y, max_samples, rng):
    if max_samples is None or X.shape[0] <= max_samples:
        return X, y
    idx = rng.choice(X.shape[0], size=max_samples, replace=False)
    return X[idx], y[idx]


def _train_test_split(X, y, test_size, random_state):
    rng = np.random.default_rng(random_state)
    train_parts = []
    test_parts = []
    for c in np.unique(y):
        idx = np.where(y == c)[0]
        rng.shuffle(idx)
        n_test = max(1, int(round(idx.size * test_size)))
        test_parts.append(idx[:n_test])
        train_parts.append(idx[n_test:])
    train_idx = np.concatenate(train_parts)
    test_idx = np.concatenate(test_parts)
    rng.shuffle(train_idx)
    rng.shuffle(test_idx)
    return X[train_idx], X[test_idx], y[train_idx], y[test_idx]


def _load_sklearn_dataset(name):
    try:
        if name == "iris":
            from sklearn.datasets import load_iris

            ds = load_iris()
        elif name == "wine":
            from sklearn.datasets import load_wine

            ds = load_wine()
        elif name == "digits":
            from sklearn.datasets import load_digits

            ds = load_digits()
        elif name == "breast_cancer":
            from sklearn.datasets import load_breast_cancer

            ds = load_breast_cancer()
        else:
            raise ValueError("Unsupported sklearn dataset")

    except ModuleNotFoundError as e:
        raise ModuleNotFoundError(
            "Dataset requires scikit-learn, which is not installed. "
            "Use synthetic_blobs or install the experiments extra."
        ) from e

    return ds.data.astype(np.float64), ds.target.astype(np.int64)


def load_dataset(name: str, random_state: int, max_samples: int | None):
    rng = np.random.default_rng(random_state)
    key = name.lower()

    if key in {"iris", "wine", "digits", "breast_cancer"}:
        X, y = _load_sklearn_dataset(key)
    elif key == "synthetic_blobs":
        n_per_class = 400
        n_classes = 4
        n_features = 6
        centers = rng.normal(scale=3.0, size=(n_classes, n_features))
        X = np.vstack(
            [c + rng.normal(size=(n_per_class, n_features)) for c in centers]
        )
        y = np.repeat(np.arange(n_classes), n_per_class).astype(np.int64)
    else:
        raise ValueError(
            f"Unknown dataset '{name}'. Choose from: synthetic_blobs, iris, wine, digits, breast_cancer"
        )

    X, y = _subsample(X, y, max_samples=max_samples, rng=rng)
    return X, y


def evaluate_one(X, y, n_rounds, log_base, random_state):
    X_train, X_test, y_train, y_test = _train_test_split(
        X, y, test_size=0.2, random_state=random_state
    )
    num_classes = int(y.max()) + 1

    model = BoostingEnsemble(
        X_train,
        y_train,
        num_classes,
        BoostingParams(n_rounds=n_rounds, log_base=log_base),
    )
    t0 = time.perf_counter()
    model.fit()
    fit_time = time.perf_counter() - t0

    train_acc = float(np.mean(model.predict_batch(X_train) == y_train))
    test_acc = float(np.mean(model.predict_batch(X_test) == y_test))
    return {
        "fit_time_sec": fit_time,
        "train_accuracy": train_acc,
        "test_accuracy": test_acc,
        "stump_search_time_sec": model.metrics["stump_search_time_sec"],
        "candidates_evaluated": model.metrics["candidates_evaluated"],
        "rounds": model.metrics["rounds"],
    }


def summarize_rounds(rounds):
    if not rounds:
        return {"mean_error": float("nan"), "max_confidence": float("nan"), "dims_used": 0}

    return {
        "mean_error": float(np.mean([r.total_error for r in rounds])),
        "max_confidence": float(np.max([r.confidence for r in rounds])),
        "dims_used": len({r.dimension for r in rounds}),
    }


def main():
    parser = argparse.ArgumentParser(description="Quick multiclass AdaBoost checks on small datasets")
    parser.add_argument(
        "--datasets",
        type=str,
        default="synthetic_blobs",
        help="Comma-separated: synthetic_blobs, iris, wine, digits, breast_cancer",
    )
    parser.add_argument("--max-samples", type=int, default=2000)
    parser.add_argument("--n-rounds", type=int, default=50)
    parser.add_argument(
        "--natural-log",
        action="store_true",
        help="Compute stump confidence with natural log instead of log10.",
    )
    parser.add_argument("--random-state", type=int, default=42)
    parser.add_argument("--log-level", type=str, default="WARNING")

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper())

    datasets = [d.strip() for d in args.datasets.split(",") if d.strip()]
    if not datasets:
        raise ValueError("No datasets provided")

    log_base = math.e if args.natural_log else 10.0

    for ds_name in datasets:
        X, y = load_dataset(ds_name, args.random_state, args.max_samples)
        print(f"\nDataset={ds_name} n={X.shape[0]} d={X.shape[1]} classes={int(y.max()) + 1}")

        out = evaluate_one(
            X,
            y,
            n_rounds=args.n_rounds,
            log_base=log_base,
            random_state=args.random_state,
        )
        print(
            "AdaBoost"
            f" time={out['fit_time_sec']:.3f}s"
            f" stump_search_time={out['stump_search_time_sec']:.3f}s"
            f" candidates={out['candidates_evaluated']}"
            f" train_acc={out['train_accuracy']:.4f}"
            f" test_acc={out['test_accuracy']:.4f}"
        )
        diag = summarize_rounds(out["rounds"])
        print(
            "  diagnostics"
            f" mean_error={diag['mean_error']:.4f}"
            f" max_confidence={diag['max_confidence']:.3f}"
            f" dims_used={diag['dims_used']}"
        )


if __name__ == "__main__":
    main()
