"""
Gaussian naive-Bayes anomaly detector for RFID tag identifiers.

Modules:
- features: normalization and 6-feature extraction from a tag string
- model: per-feature Gaussian fit, log-likelihood scoring, threshold
- validator: validate() verdicts with confidence and reason
- data: corpus de-duplication, test-data file loading
- evaluate: test-list runs, metrics, summary, plots
- config: YAML config and logging setup
- run_detector: command-line entry point
"""

from .features import FEATURE_NAMES, NUM_FEATURES, extract_features, normalize_identifier
from .model import EmptyTrainingSetError, GaussianDensityModel, GaussianParams
from .validator import RfidValidator, ValidationResult

__all__ = [
    "FEATURE_NAMES",
    "NUM_FEATURES",
    "extract_features",
    "normalize_identifier",
    "EmptyTrainingSetError",
    "GaussianDensityModel",
    "GaussianParams",
    "RfidValidator",
    "ValidationResult",
]
