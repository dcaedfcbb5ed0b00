"""
RFID anomaly detector entry point.

Trains the validator on the `normalRfids` list of a test-data file, validates
the `testNormal` and `testAnomaly` lists, and reports the detection rate.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import DEFAULT_CONFIG_PATH, load_config, setup_logging
from .data import load_test_data
from .evaluate import (
    compute_metrics,
    format_metrics_table,
    make_plots,
    print_summary,
    run_anomaly_tests,
    run_normal_tests,
)
from .model import EmptyTrainingSetError
from .validator import RfidValidator


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Gaussian naive-Bayes anomaly detector for RFID tag identifiers")
    ap.add_argument("test_data", nargs="?", default=None, help="Test data JSON/YAML (overrides data.test_data_path)")
    ap.add_argument("--config", type=str, default=DEFAULT_CONFIG_PATH)
    ap.add_argument("--reports_dir", type=str, default=None)
    ap.add_argument("--no_plots", action="store_true", help="Skip writing diagnostic plots")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    logger = setup_logging(config)

    test_data_path = args.test_data or config['data']['test_data_path']
    reports_dir = args.reports_dir or config['reports']['output_dir']

    logger.info("=== RFID Anomaly Detector ===")
    logger.info("Loading test data from: %s", test_data_path)

    try:
        data = load_test_data(test_data_path, logger=logger)
        validator = RfidValidator(data.training, logger=logger)
    except (FileNotFoundError, ValueError) as exc:
        # EmptyTrainingSetError is a ValueError
        kind = "Empty training set" if isinstance(exc, EmptyTrainingSetError) else "Error"
        logger.error("%s: %s", kind, exc)
        return 1

    normal_df = run_normal_tests(validator, data.test_normal, logger=logger)
    anomaly_df = run_anomaly_tests(validator, data.test_anomaly, logger=logger)

    metrics = compute_metrics(normal_df, anomaly_df)
    print_summary(metrics, logger=logger)

    out = Path(reports_dir)
    out.mkdir(parents=True, exist_ok=True)
    results_path = out / "results.csv"
    normal_df.to_csv(results_path, index=False)
    anomaly_df.to_csv(results_path, mode="a", header=False, index=False)
    (out / "metrics.md").write_text(format_metrics_table(metrics) + "\n", encoding="utf-8")
    logger.info("Wrote results to %s", results_path)

    if config['reports'].get('make_plots', True) and not args.no_plots:
        written = make_plots(validator, normal_df, anomaly_df, reports_dir=str(out), logger=logger)
        for name, path in written.items():
            logger.info("Saved %s plot to %s", name, path)

    return 0


if __name__ == "__main__":
    sys.exit(main())
