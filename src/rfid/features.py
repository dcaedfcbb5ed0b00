"""
Feature extraction for RFID tag identifiers.

Maps a normalized tag string to a fixed 6-dimensional feature vector:
1. Length
2. Distinct characters
3. Shannon entropy (bits)
4. Numeric value (log1p of hex value, or of the byte sum)
5. Letter ratio
6. Repeat ratio (frequency of the most common character / length)

All case handling is ASCII-only so results do not depend on locale.
"""

import math
import re
from collections import Counter
from typing import Iterable, Optional

import numpy as np

NUM_FEATURES = 6
FEATURE_NAMES = (
    "Length",
    "Distinct Chars",
    "Entropy",
    "Numeric Value",
    "Letter Ratio",
    "Repeat Ratio",
)

# Hex parsing is only attempted up to this many characters
HEX_PARSE_MAX_LENGTH = 15
UINT64_MAX = 2 ** 64 - 1
NUMERIC_SATURATION = math.log1p(float(UINT64_MAX))

_WHITESPACE = " \t\n\r\x0b\x0c"
_ASCII_UPPER = str.maketrans(
    "abcdefghijklmnopqrstuvwxyz",
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ",
)
_HEX_RE = re.compile(r"\+?[0-9A-Fa-f]+")


def normalize_identifier(raw: Optional[str]) -> str:
    """Trim surrounding whitespace and upper-case ASCII letters. None maps to ''."""
    if raw is None:
        return ""
    return raw.strip(_WHITESPACE).translate(_ASCII_UPPER)


def is_ascii_letter(ch: str) -> bool:
    return ("A" <= ch <= "Z") or ("a" <= ch <= "z")


def shannon_entropy(s: str) -> float:
    """Shannon entropy in bits of the character distribution of ``s``."""
    if not s:
        return 0.0

    length = float(len(s))
    entropy = 0.0
    for count in Counter(s).values():
        p = count / length
        entropy -= p * math.log2(p)
    return entropy


def parse_hex(s: str) -> Optional[int]:
    """
    Parse the whole string as an unsigned base-16 integer.

    Returns None when the string is not entirely hex digits (an optional
    leading '+' is allowed) or the value does not fit in 64 bits.
    """
    if _HEX_RE.fullmatch(s) is None:
        return None
    value = int(s, 16)
    if value > UINT64_MAX:
        return None
    return value


def numeric_value(s: str) -> float:
    """
    Summarize the magnitude of ``s`` as a single real.

    Strings longer than HEX_PARSE_MAX_LENGTH saturate. Otherwise the string is
    read as hex when possible, falling back to the sum of its byte values.
    """
    if len(s) > HEX_PARSE_MAX_LENGTH:
        return NUMERIC_SATURATION

    value = parse_hex(s)
    if value is not None:
        return math.log1p(float(value))

    byte_sum = sum(s.encode("utf-8", "surrogatepass"))
    return math.log1p(float(byte_sum))


def extract_features(rfid: str) -> np.ndarray:
    """
    Compute the feature vector of an already-normalized identifier.

    Args:
        rfid: Trimmed, upper-cased tag string

    Returns:
        float64 array of length NUM_FEATURES (all zeros for '')
    """
    if not rfid:
        return np.zeros(NUM_FEATURES, dtype=np.float64)

    length = len(rfid)
    freq = Counter(rfid)
    letter_count = sum(1 for ch in rfid if is_ascii_letter(ch))
    max_repeat = max(freq.values())

    return np.array(
        [
            float(length),
            float(len(freq)),
            shannon_entropy(rfid),
            numeric_value(rfid),
            letter_count / length,
            max_repeat / length,
        ],
        dtype=np.float64,
    )


def build_feature_matrix(rfids: Iterable[str]) -> np.ndarray:
    """Stack feature vectors for many identifiers into an (n, NUM_FEATURES) matrix."""
    rows = [extract_features(r) for r in rfids]
    if not rows:
        return np.empty((0, NUM_FEATURES), dtype=np.float64)
    return np.vstack(rows)
