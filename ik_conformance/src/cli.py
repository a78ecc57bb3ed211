#!/usr/bin/env python3
"""
Command-line entry point: run the conformance harness against a solver plugin.

Usage:
    ik-conformance --config harness.yaml [--plugin pkg.module:Solver] [--output report.json]
"""

import argparse
import logging
import sys

from .config import HarnessConfig, DEFAULT_CONFIG_PATH
from .harness import ConformanceHarness, HarnessFixture
from .plugin_loader import SolverLoader
from .reporting import LoggingReportSink, JsonReportSink
from .round_trip_validator import ALL_SCENARIOS
from .solver_interface import HarnessSetupError

logger = logging.getLogger(__name__)

EXIT_PASSED = 0
EXIT_FAILED = 1
EXIT_SETUP_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Conformance tests for kinematics solver plugins")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH,
                        help="Path to harness configuration file")
    parser.add_argument("--plugin", help="Solver plugin name (overrides ik_plugin_name)")
    parser.add_argument("--trials", type=int, help="Trials per IK scenario")
    parser.add_argument("--fk-trials", type=int, help="Trials for the forward kinematics scenario")
    parser.add_argument("--timeout", type=float, help="IK search timeout in seconds")
    parser.add_argument("--seed", type=int, help="Random seed for configuration sampling")
    parser.add_argument("--scenario", action="append", choices=[s.value for s in ALL_SCENARIOS],
                        help="Scenario to run (repeatable, default: all configured)")
    parser.add_argument("--output", help="Output file for the JSON report")
    parser.add_argument("--list-plugins", action="store_true",
                        help="List registered solver plugins and exit")
    parser.add_argument("--log-level", default="INFO",
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help="Logging level")
    return parser


def main(argv=None) -> int:
    """Main conformance function for command-line use."""
    args = build_parser().parse_args(argv)

    # Set up logging
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s - %(levelname)s - %(message)s')

    loader = SolverLoader()
    if args.list_plugins:
        for name in loader.available():
            print(name)
        return EXIT_PASSED

    try:
        config = HarnessConfig.from_yaml(args.config).with_overrides(
            ik_plugin_name=args.plugin,
            num_ik_tests=args.trials,
            num_fk_tests=args.fk_trials,
            timeout=args.timeout,
            random_seed=args.seed,
            scenarios=args.scenario,
            report_path=args.output,
        )

        sinks = [LoggingReportSink()]
        if config.report_path:
            sinks.append(JsonReportSink(config.report_path))

        fixture = HarnessFixture.create(config, loader=loader)
        report = ConformanceHarness(fixture, sinks=sinks).run()
    except HarnessSetupError as e:
        logger.error(f"Setup failed: {e}")
        return EXIT_SETUP_ERROR

    # Print summary
    print(f"\n{'='*60}")
    print("KINEMATICS SOLVER CONFORMANCE REPORT")
    print(f"{'='*60}")
    print(f"Solver: {report.solver_name}")
    print(f"Chain metadata: {'OK' if report.metadata and report.metadata.conforms else 'MISMATCH'}")
    for scenario_report in report.scenarios:
        stats = scenario_report.statistics
        print(f"  {scenario_report.scenario.value:<26} "
              f"{stats.succeeded:>4}/{stats.attempted:<4} "
              f"{stats.success_rate*100:6.1f}%  {stats.elapsed:8.3f} s  "
              f"{'PASS' if scenario_report.accepted else 'FAIL'}")
    print(f"Overall: {'PASSED' if report.passed else 'FAILED'}")

    return EXIT_PASSED if report.passed else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
