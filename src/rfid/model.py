"""
Gaussian density model for RFID anomaly detection.

Each feature is modelled as an independent normal distribution fitted on the
de-duplicated training corpus. A sample's score is the sum of per-feature
log densities; the decision threshold sits a fixed margin below the worst
scoring training sample.

Functions:
- log_gaussian_pdf: elementwise log density of a normal distribution
- sigmoid: numerically stable logistic function
- GaussianDensityModel.fit / score_samples / decision_function / predict
- GaussianDensityModel.from_corpus: normalize, de-duplicate, extract, fit
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np
from sklearn.base import BaseEstimator, OutlierMixin
from sklearn.utils.validation import check_array, check_is_fitted

from .data import prepare_corpus
from .features import FEATURE_NAMES, NUM_FEATURES, build_feature_matrix

MIN_STD = 0.1
THRESHOLD_MARGIN = 1.0

_LOG_SQRT_2PI = 0.5 * math.log(2 * math.pi)


class EmptyTrainingSetError(ValueError):
    """Raised when no usable identifiers remain after normalization."""


@dataclass(frozen=True)
class GaussianParams:
    name: str
    mean: float
    std: float


def log_gaussian_pdf(x, mean, std):
    """log N(x; mean, std), broadcasting over numpy arrays."""
    z = (x - mean) / std
    return -_LOG_SQRT_2PI - np.log(std) - 0.5 * z * z


def sigmoid(x: float) -> float:
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    e = math.exp(x)
    return e / (1.0 + e)


class GaussianDensityModel(OutlierMixin, BaseEstimator):
    """
    Naive (diagonal) Gaussian density estimator over RFID feature vectors.

    Parameters are learned once by ``fit`` and never updated afterwards, so a
    fitted instance can be shared between threads without locking.
    """

    def __init__(self, min_std: float = MIN_STD, threshold_margin: float = THRESHOLD_MARGIN):
        self.min_std = min_std
        self.threshold_margin = threshold_margin

    def fit(self, X: np.ndarray, logger: Optional[logging.Logger] = None) -> "GaussianDensityModel":
        """
        Estimate per-feature mean/std and the log-likelihood threshold.

        Args:
            X: Feature matrix (n_samples x NUM_FEATURES), one row per unique identifier
            logger: Optional logger

        Returns:
            self
        """
        if logger is None:
            logger = logging.getLogger(__name__)

        X = check_array(X, dtype=np.float64, ensure_min_samples=1)
        if X.shape[1] != NUM_FEATURES:
            raise ValueError(f"Expected {NUM_FEATURES} features, got {X.shape[1]}")

        n = X.shape[0]
        # Column-sorted sums make the fit independent of corpus order
        X_sorted = np.sort(X, axis=0)
        mean = X_sorted.sum(axis=0) / n
        mean_sq = np.sort(X * X, axis=0).sum(axis=0) / n
        variance = np.maximum(mean_sq - mean * mean, 0.0)
        std = np.maximum(np.sqrt(variance), self.min_std)

        self.mean_ = mean
        self.std_ = std
        self.n_features_in_ = NUM_FEATURES
        self.n_samples_fit_ = n

        logger.info("[Model Init] Learning Gaussian distribution from training data:")
        for name, m, s in zip(FEATURE_NAMES, mean, std):
            logger.info("  %s: mean=%s, std=%s", name, m, s)

        train_loglik = self.score_samples(X)
        min_loglik = float(np.min(train_loglik))
        self.threshold_ = min_loglik - self.threshold_margin

        logger.info("[Model Init] Min log-likelihood: %s, Threshold: %s", min_loglik, self.threshold_)
        return self

    @classmethod
    def from_corpus(
        cls,
        corpus: Iterable[Optional[str]],
        logger: Optional[logging.Logger] = None,
        **kwargs,
    ) -> Tuple["GaussianDensityModel", np.ndarray]:
        """
        Fit a model from raw identifier strings.

        Returns:
            (fitted_model, training_feature_matrix)
        """
        if logger is None:
            logger = logging.getLogger(__name__)

        unique = prepare_corpus(corpus)
        if not unique:
            raise EmptyTrainingSetError("Training corpus is empty after normalization")

        logger.info("Training on %d unique identifiers", len(unique))
        X = build_feature_matrix(unique)
        return cls(**kwargs).fit(X, logger=logger), X

    @property
    def feature_params(self) -> Tuple[GaussianParams, ...]:
        check_is_fitted(self, ["mean_", "std_"])
        return tuple(
            GaussianParams(name=name, mean=float(m), std=float(s))
            for name, m, s in zip(FEATURE_NAMES, self.mean_, self.std_)
        )

    def score_samples(self, X: np.ndarray) -> np.ndarray:
        """Per-sample log-likelihood (sum of per-feature log densities)."""
        check_is_fitted(self, ["mean_", "std_"])
        X = check_array(X, dtype=np.float64)
        if X.shape[1] != self.n_features_in_:
            raise ValueError(f"Expected {self.n_features_in_} features, got {X.shape[1]}")
        return log_gaussian_pdf(X, self.mean_, self.std_).sum(axis=1)

    def score_one(self, features: np.ndarray) -> float:
        return float(self.score_samples(np.asarray(features).reshape(1, -1))[0])

    def decision_function(self, X: np.ndarray) -> np.ndarray:
        """Log-likelihood minus threshold; negative means anomalous."""
        check_is_fitted(self, "threshold_")
        return self.score_samples(X) - self.threshold_

    def predict(self, X: np.ndarray) -> np.ndarray:
        """+1 for normal samples, -1 for anomalies."""
        return np.where(self.decision_function(X) >= 0, 1, -1)
