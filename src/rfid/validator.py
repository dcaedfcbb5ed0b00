"""
RFID validator: decides whether a tag identifier fits the training distribution.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np

from .features import extract_features, normalize_identifier
from .model import GaussianDensityModel, sigmoid

CONFIDENCE_TEMPERATURE = 5.0
EMPTY_REASON = "Empty or null value"


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    confidence: float
    reason: str


class RfidValidator:
    """
    Gaussian naive-Bayes validator for RFID tag identifiers.

    The model is fitted once in the constructor; ``validate`` is read-only and
    safe to call concurrently.

    Raises:
        EmptyTrainingSetError: if the corpus has no non-blank identifiers
    """

    def __init__(self, training_corpus: Iterable[Optional[str]], logger: Optional[logging.Logger] = None):
        self.model, self.training_features = GaussianDensityModel.from_corpus(training_corpus, logger=logger)

    @property
    def threshold(self) -> float:
        return self.model.threshold_

    @property
    def feature_params(self):
        return self.model.feature_params

    def log_likelihood(self, rfid: Optional[str]) -> Optional[float]:
        """Log-likelihood of the normalized identifier, or None when it is blank."""
        normalized = normalize_identifier(rfid)
        if not normalized:
            return None
        return self.model.score_one(extract_features(normalized))

    def training_log_likelihoods(self) -> np.ndarray:
        return self.model.score_samples(self.training_features)

    def validate(self, rfid: Optional[str]) -> ValidationResult:
        return self.validate_scored(rfid)[0]

    def validate_scored(self, rfid: Optional[str]) -> Tuple[ValidationResult, Optional[float]]:
        """Validate and also return the log-likelihood (None for blank input)."""
        loglik = self.log_likelihood(rfid)
        if loglik is None:
            return ValidationResult(False, 0.0, EMPTY_REASON), None

        threshold = self.model.threshold_
        confidence = sigmoid((loglik - threshold) / CONFIDENCE_TEMPERATURE)
        reason = f"log-likelihood={loglik}"

        if loglik < threshold:
            return ValidationResult(False, confidence, f"{reason} < threshold={threshold}"), loglik
        return ValidationResult(True, confidence, f"{reason} >= threshold={threshold}"), loglik
