#!/usr/bin/env python3
"""
Conformance Harness Demonstration

Runs the harness programmatically against the gantry-wrist demo solver:
- Fixture creation from the default configuration
- Chain metadata check
- One batch per scenario, plus a batch on hand-picked configurations
"""

import sys
import os
import logging
import numpy as np

# Add repository root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from ik_conformance.src.config import HarnessConfig, DEFAULT_CONFIG_PATH
from ik_conformance.src.harness import ConformanceHarness, HarnessFixture
from ik_conformance.src.plugin_loader import SolverLoader
from ik_conformance.src.reporting import LoggingReportSink
from ik_conformance.src.round_trip_validator import Scenario
from ik_conformance.examples.gantry_wrist_solver import GantryWristSolver

# Setup logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('conformance_demo')


def main():
    config = HarnessConfig.from_yaml(DEFAULT_CONFIG_PATH).with_overrides(
        ik_plugin_name="gantry_wrist", num_ik_tests=20, num_fk_tests=20, random_seed=7)

    loader = SolverLoader()
    loader.register("gantry_wrist", GantryWristSolver)

    fixture = HarnessFixture.create(config, loader=loader)
    harness = ConformanceHarness(fixture, sinks=[LoggingReportSink()])

    logger.info("=== Full conformance run ===")
    report = harness.run()
    print(f"Overall: {'PASSED' if report.passed else 'FAILED'}")

    logger.info("=== Hand-picked configurations ===")
    configurations = [
        np.zeros(6),
        np.array([0.1, -0.2, 0.5, np.pi / 2, 0.3, -np.pi / 4]),
        np.array([-0.4, 0.4, 0.9, -3.0, -1.2, 5.0]),
    ]
    scenario_report = harness.runner().run_configurations(Scenario.GET_IK_MULTIPLE, configurations)
    stats = scenario_report.statistics
    print(f"get_ik_multiple: {stats.succeeded}/{stats.attempted} round trips")

    return 0 if report.passed and scenario_report.accepted else 1


if __name__ == "__main__":
    sys.exit(main())
