"""
Data helpers for the RFID anomaly detector.

Responsibilities:
- Normalize and de-duplicate a raw training corpus
- Load the test-data file (normalRfids / testNormal / testAnomaly lists)
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import yaml

from .features import normalize_identifier

TRAINING_KEY = "normalRfids"
TEST_NORMAL_KEY = "testNormal"
TEST_ANOMALY_KEY = "testAnomaly"


@dataclass(frozen=True)
class TestData:
    training: Tuple[str, ...]
    test_normal: Tuple[str, ...]
    test_anomaly: Tuple[str, ...]

    # Keep pytest from collecting this as a test class
    __test__ = False


def prepare_corpus(corpus: Iterable[Optional[str]]) -> List[str]:
    """
    Normalize identifiers and drop blanks and duplicates.

    The first occurrence of each normalized value fixes its position, so the
    output keeps insertion order.
    """
    seen = set()
    unique: List[str] = []
    for raw in corpus:
        normalized = normalize_identifier(raw)
        if normalized and normalized not in seen:
            seen.add(normalized)
            unique.append(normalized)
    return unique


def _read_string_list(payload: dict, key: str) -> Tuple[str, ...]:
    if key not in payload:
        raise ValueError(f"Missing key in test data file: '{key}'")
    values = payload[key]
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise ValueError(f"Incorrect type for key '{key}': expected a list of strings")
    return tuple(values)


def load_test_data(
    path: str = "test/test_data.json",
    logger: Optional[logging.Logger] = None,
) -> TestData:
    """
    Load training and test identifier lists.

    JSON is the default format; files ending in .yaml/.yml are read with PyYAML.

    Args:
        path: Path to the test data file
        logger: Optional logger

    Returns:
        TestData with the three identifier lists
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    data_path = Path(path)
    if not data_path.exists():
        raise FileNotFoundError(f"Cannot open test data file: {path}")

    with open(data_path, "r", encoding="utf-8") as f:
        try:
            if data_path.suffix.lower() in (".yaml", ".yml"):
                payload = yaml.safe_load(f)
            else:
                payload = json.load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ValueError(f"Failed to parse test data file '{path}': {exc}") from exc

    if not isinstance(payload, dict):
        raise ValueError(f"Test data file '{path}' must contain a mapping at the top level")

    data = TestData(
        training=_read_string_list(payload, TRAINING_KEY),
        test_normal=_read_string_list(payload, TEST_NORMAL_KEY),
        test_anomaly=_read_string_list(payload, TEST_ANOMALY_KEY),
    )

    logger.info(
        "Loaded test data from %s: %d training, %d normal tests, %d anomaly tests",
        path, len(data.training), len(data.test_normal), len(data.test_anomaly),
    )
    return data
