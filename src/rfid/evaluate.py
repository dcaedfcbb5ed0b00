"""
Evaluation and reporting utilities for the RFID anomaly detector.

Key functions:
- run_normal_tests / run_anomaly_tests: validate test lists, log verdicts
- compute_metrics: detection rate, false-positive rate, precision/recall
- print_summary, format_metrics_table: human-readable reporting
- make_plots: log-likelihood distribution and feature PCA plots
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib import pyplot as plt
from sklearn.decomposition import PCA
from sklearn.metrics import confusion_matrix, f1_score, precision_score, recall_score
from sklearn.preprocessing import StandardScaler

from .features import build_feature_matrix
from .data import prepare_corpus
from .validator import RfidValidator

RESULT_COLUMNS = ["rfid", "expected_anomaly", "is_valid", "confidence", "log_likelihood", "reason"]


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _run_tests(
    validator: RfidValidator,
    rfids: Iterable[str],
    expected_anomaly: bool,
) -> pd.DataFrame:
    rows = []
    for rfid in rfids:
        result, loglik = validator.validate_scored(rfid)
        rows.append({
            "rfid": rfid,
            "expected_anomaly": expected_anomaly,
            "is_valid": result.is_valid,
            "confidence": result.confidence,
            "log_likelihood": np.nan if loglik is None else loglik,
            "reason": result.reason,
        })
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def run_normal_tests(
    validator: RfidValidator,
    rfids: Iterable[str],
    logger: Optional[logging.Logger] = None,
) -> pd.DataFrame:
    """Validate identifiers expected to be normal and log each verdict."""
    if logger is None:
        logger = logging.getLogger(__name__)

    logger.info("=== Testing Normal RFIDs ===")
    df = _run_tests(validator, rfids, expected_anomaly=False)
    for row in df.itertuples(index=False):
        logger.info("RFID: %s -> %s (confidence: %s)", row.rfid, "VALID" if row.is_valid else "INVALID", row.confidence)
    return df


def run_anomaly_tests(
    validator: RfidValidator,
    rfids: Iterable[str],
    logger: Optional[logging.Logger] = None,
) -> pd.DataFrame:
    """Validate identifiers expected to be anomalous and log each verdict with its reason."""
    if logger is None:
        logger = logging.getLogger(__name__)

    logger.info("=== Testing Anomaly RFIDs ===")
    df = _run_tests(validator, rfids, expected_anomaly=True)
    for row in df.itertuples(index=False):
        logger.info("RFID: %s -> %s (%s)", row.rfid, "VALID" if row.is_valid else "INVALID", row.reason)
    return df


def compute_metrics(normal_df: pd.DataFrame, anomaly_df: pd.DataFrame) -> Dict:
    """
    Summarize detector performance over the normal and anomaly test lists.

    The positive class is "anomaly": an identifier flagged invalid counts as a
    detection.

    Returns:
        metrics dict; rates are None when the corresponding list is empty
    """
    n_normal = int(len(normal_df))
    n_anomaly = int(len(anomaly_df))
    detected = int((~anomaly_df["is_valid"].astype(bool)).sum()) if n_anomaly else 0
    false_positives = int((~normal_df["is_valid"].astype(bool)).sum()) if n_normal else 0

    metrics = {
        "n_normal": n_normal,
        "n_anomaly": n_anomaly,
        "detected": detected,
        "false_positives": false_positives,
        "detection_rate": detected / n_anomaly if n_anomaly else None,
        "false_positive_rate": false_positives / n_normal if n_normal else None,
    }

    combined = pd.concat([normal_df, anomaly_df], ignore_index=True)
    if len(combined) > 0:
        y_true = combined["expected_anomaly"].astype(int).to_numpy()
        y_pred = (~combined["is_valid"].astype(bool)).astype(int).to_numpy()
        tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
        metrics.update({
            "true_negatives": int(tn),
            "true_positives": int(tp),
            "false_negatives": int(fn),
            "precision": float(precision_score(y_true, y_pred, zero_division=0)),
            "recall": float(recall_score(y_true, y_pred, zero_division=0)),
            "f1": float(f1_score(y_true, y_pred, zero_division=0)),
        })

    return metrics


def print_summary(metrics: Dict, logger: Optional[logging.Logger] = None) -> None:
    if logger is None:
        logger = logging.getLogger(__name__)

    logger.info("=== Summary ===")
    if metrics["n_anomaly"] > 0:
        logger.info(
            "Anomaly detection rate: %d/%d (%s%%)",
            metrics["detected"], metrics["n_anomaly"], 100.0 * metrics["detection_rate"],
        )
    else:
        logger.info("No anomaly tests were run.")

    if metrics["n_normal"] > 0:
        logger.info(
            "False positives on normal RFIDs: %d/%d",
            metrics["false_positives"], metrics["n_normal"],
        )


def format_metrics_table(metrics: Dict) -> str:
    """
    Format metrics as a markdown table.

    Parameters
    ----------
    metrics : dict
        Metrics dictionary from compute_metrics()

    Returns
    -------
    str
        Markdown-formatted table
    """
    def pct(value):
        return "n/a" if value is None else f"{value:.1%}"

    lines = [
        "| Metric | Value |",
        "|--------|-------|",
        f"| Normal Tests | {metrics['n_normal']:,} |",
        f"| Anomaly Tests | {metrics['n_anomaly']:,} |",
        f"| Detected Anomalies | {metrics['detected']:,} |",
        f"| Detection Rate | {pct(metrics['detection_rate'])} |",
        f"| False Positives | {metrics['false_positives']:,} |",
        f"| False Positive Rate | {pct(metrics['false_positive_rate'])} |",
    ]
    if "precision" in metrics:
        lines += [
            f"| Precision | {metrics['precision']:.3f} |",
            f"| Recall | {metrics['recall']:.3f} |",
            f"| F1 | {metrics['f1']:.3f} |",
        ]
    return "\n".join(lines)


def make_plots(
    validator: RfidValidator,
    normal_df: pd.DataFrame,
    anomaly_df: pd.DataFrame,
    reports_dir: str = "reports/rfid",
    logger: Optional[logging.Logger] = None,
) -> Dict:
    """
    Generate diagnostic plots for the report.

    Args:
        validator: Fitted validator
        normal_df, anomaly_df: Outputs of run_normal_tests / run_anomaly_tests
        reports_dir: Where to write images
        logger: Optional logger

    Returns:
        dict of written figure paths
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    out = Path(reports_dir)
    _ensure_dir(out)
    written = {}

    # 1) Log-likelihood distributions with the decision threshold
    try:
        frames = [pd.DataFrame({"log_likelihood": validator.training_log_likelihoods(), "set": "train"})]
        for name, df in (("normal", normal_df), ("anomaly", anomaly_df)):
            scored = df["log_likelihood"].dropna()
            if len(scored):
                frames.append(pd.DataFrame({"log_likelihood": scored.to_numpy(), "set": name}))
        df_llk = pd.concat(frames, ignore_index=True)

        plt.figure(figsize=(10, 6))
        sns.histplot(data=df_llk, x="log_likelihood", hue="set", element="step", alpha=0.4)
        plt.axvline(validator.threshold, color="#e45756", linestyle="--", label="threshold")
        plt.xlabel("log-likelihood")
        plt.title("RFID log-likelihood by set")
        path = out / "llk_by_set.png"
        plt.tight_layout(); plt.savefig(path, dpi=150); plt.close()
        written["llk_dist"] = str(path)
    except Exception as exc:
        logger.warning("Failed to plot LLK distributions: %s", exc)

    # 2) PCA scatter of feature vectors
    try:
        test_rfids = prepare_corpus(list(normal_df["rfid"]) + list(anomaly_df["rfid"]))
        X_test = build_feature_matrix(test_rfids)
        X_all = np.vstack([validator.training_features, X_test])
        labels = np.array(["train"] * len(validator.training_features) + ["test"] * len(X_test))

        Xs = StandardScaler().fit_transform(X_all)
        Z = PCA(n_components=2, random_state=42).fit_transform(Xs)
        plt.figure(figsize=(10, 6))
        for name, color in (("train", "#4c78a8"), ("test", "#f58518")):
            mask = labels == name
            plt.scatter(Z[mask, 0], Z[mask, 1], s=12, c=color, alpha=0.7, label=name)
        plt.xlabel("PCA 1")
        plt.ylabel("PCA 2")
        plt.title("RFID feature PCA")
        plt.legend()
        path = out / "pca_features.png"
        plt.tight_layout(); plt.savefig(path, dpi=150); plt.close()
        written["pca_features"] = str(path)
    except Exception as exc:
        logger.warning("Failed to plot PCA scatter: %s", exc)

    return written
