"""
Runner for the psp_router package.

Generates the test dataset and the no-retry vs. smart-retry performance
report, writes both as JSON, and prints a summary.

Usage:
    python run_router.py --count 210 --strategy approval_optimized --output-dir output
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from psp_router import RoutingEngine, RoutingStrategy, config
from psp_router.dataset import generate_test_data
from psp_router.exceptions import InvalidStrategy
from psp_router.report import PerformanceReport, generate_report


def pretty_print_report(report: PerformanceReport) -> None:
    """Print a human-friendly summary of the performance report."""
    print("\n" + "=" * 60)
    print("PERFORMANCE REPORT SUMMARY")
    print("=" * 60)
    print(f"Total transactions: {report.total_transactions} (strategy={report.strategy})")

    for label, scenario in (("No Retry (baseline)", report.no_retry), ("Smart Retry", report.smart_retry)):
        print(f"\n--- {label} ---")
        print(f"  Approved:           {scenario.approved}")
        print(f"  Declined:           {scenario.declined}")
        print(f"  Authorization rate: {scenario.authorization_rate:.1f}%")
        print(f"  Avg attempts:       {scenario.avg_attempts:.2f}")
        print(f"  Avg latency:        {scenario.avg_latency_ms:.1f}ms")

    imp = report.improvement
    print("\n--- Improvement ---")
    print(f"  Rate lift:          {imp.rate_lift_percentage:+.1f} percentage points")
    print(f"  Extra approvals:    {imp.additional_approvals}")
    for currency, amount in imp.revenue_recovered.items():
        print(f"  Revenue recovered:  {amount:,.2f} {currency}")

    print("\n--- By Country ---")
    for country, m in report.by_country.items():
        print(f"  {country}: {m.no_retry_rate:.1f}% -> {m.smart_retry_rate:.1f}% "
              f"({m.improvement:+.1f}pp, {m.total_transactions} txns)")

    print("\n--- By Provider ---")
    for provider_id, m in report.by_provider.items():
        print(f"  {provider_id} ({m.provider_name}): {m.total_attempts} attempts, "
              f"{m.approvals} approved, {m.approval_rate:.1f}% rate, {m.avg_latency_ms:.1f}ms avg latency")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Generate routing test data and a performance report")
    parser.add_argument("--count", type=int, default=config.REPORT_SIZE,
                        help=f"Number of transactions (default: {config.REPORT_SIZE})")
    parser.add_argument("--strategy", type=str, default=config.DEFAULT_STRATEGY,
                        help="approval_optimized | cost_optimized | balanced")
    parser.add_argument("--seed", type=int, default=config.DATA_SEED,
                        help="Dataset seed")
    parser.add_argument("--output-dir", type=str, default=config.OUTPUT_DIR,
                        help="Where the JSON files are written")
    args = parser.parse_args(argv)

    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    logger = logging.getLogger("run_router")

    try:
        strategy = RoutingStrategy.parse(args.strategy)
    except InvalidStrategy as e:
        logger.error("%s", e)
        return 2
    if args.count <= 0:
        logger.error("--count must be positive, got %d", args.count)
        return 2

    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    transactions = generate_test_data(args.count, seed=args.seed)
    tx_path = out_dir / "test_transactions.json"
    tx_path.write_text(json.dumps([tx.to_dict() for tx in transactions], indent=2))
    logger.info("Wrote %s (%d transactions)", tx_path, len(transactions))

    report = generate_report(transactions, RoutingEngine(), strategy)
    report_path = out_dir / "performance_report.json"
    report_path.write_text(json.dumps(report.to_dict(), indent=2))
    logger.info("Wrote %s", report_path)

    pretty_print_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
