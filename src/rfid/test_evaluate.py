"""
Tests for the reporting layer.
"""

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from rfid.evaluate import (
    RESULT_COLUMNS,
    compute_metrics,
    format_metrics_table,
    make_plots,
    print_summary,
    run_anomaly_tests,
    run_normal_tests,
)
from rfid.validator import RfidValidator


@pytest.fixture(scope="module")
def validator():
    return RfidValidator(["AB12CD34", "ab12cd34", "EF56GH78"])


@pytest.fixture
def results(validator):
    normal_df = run_normal_tests(validator, ["AB12CD34", "EF56GH78"])
    anomaly_df = run_anomaly_tests(validator, ["!!!!!!!!", "", "AB12CD34"])
    return normal_df, anomaly_df


def test_result_frames(results):
    normal_df, anomaly_df = results
    assert list(normal_df.columns) == RESULT_COLUMNS
    assert normal_df["is_valid"].tolist() == [True, True]
    assert anomaly_df["is_valid"].tolist() == [False, False, True]
    assert anomaly_df["expected_anomaly"].all()
    assert np.isnan(anomaly_df.loc[1, "log_likelihood"])
    assert anomaly_df.loc[1, "reason"] == "Empty or null value"


def test_compute_metrics(results):
    metrics = compute_metrics(*results)
    assert metrics["n_normal"] == 2
    assert metrics["n_anomaly"] == 3
    assert metrics["detected"] == 2
    assert metrics["detection_rate"] == pytest.approx(2 / 3)
    assert metrics["false_positives"] == 0
    assert metrics["false_positive_rate"] == 0.0
    assert metrics["true_positives"] == 2
    assert metrics["false_negatives"] == 1
    assert metrics["true_negatives"] == 2
    assert metrics["precision"] == 1.0
    assert metrics["recall"] == pytest.approx(2 / 3)


def test_metrics_without_anomaly_tests(validator):
    normal_df = run_normal_tests(validator, ["AB12CD34"])
    anomaly_df = run_anomaly_tests(validator, [])
    metrics = compute_metrics(normal_df, anomaly_df)
    assert metrics["n_anomaly"] == 0
    assert metrics["detection_rate"] is None
    assert "n/a" in format_metrics_table(metrics)


def test_print_summary_logs_detection_rate(results, caplog):
    with caplog.at_level(logging.INFO):
        print_summary(compute_metrics(*results))
    assert "Anomaly detection rate: 2/3" in caplog.text


def test_print_summary_without_anomalies(validator, caplog):
    metrics = compute_metrics(run_normal_tests(validator, []), run_anomaly_tests(validator, []))
    with caplog.at_level(logging.INFO):
        print_summary(metrics)
    assert "No anomaly tests were run." in caplog.text


def test_verdicts_are_logged(validator, caplog):
    with caplog.at_level(logging.INFO):
        run_anomaly_tests(validator, ["!!!!!!!!"])
    assert "RFID: !!!!!!!! -> INVALID" in caplog.text


def test_format_metrics_table(results):
    table = format_metrics_table(compute_metrics(*results))
    assert table.startswith("| Metric | Value |")
    assert "| Detection Rate | 66.7% |" in table
    assert "| Precision | 1.000 |" in table


def test_make_plots(validator, results, tmp_path):
    written = make_plots(validator, *results, reports_dir=str(tmp_path / "plots"))
    assert "llk_dist" in written
    for path in written.values():
        assert Path(path).exists()
