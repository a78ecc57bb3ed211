#!/usr/bin/env python3
"""
Reporting sinks for conformance runs.

Sinks receive the metadata report, each scenario report as soon as its batch
finishes, and the final harness report.

Author: Robot Control Team
"""

import json
import logging
import os
from abc import ABC
from enum import Enum

import numpy as np

logger = logging.getLogger(__name__)


class ReportSink(ABC):
    """Receives conformance results. All hooks are optional."""

    def metadata_checked(self, report):
        pass

    def scenario_completed(self, report):
        pass

    def run_completed(self, report):
        pass


class LoggingReportSink(ReportSink):
    """Writes human-readable summaries to the log."""

    def __init__(self, log: logging.Logger = None):
        self.log = log or logger

    def metadata_checked(self, report):
        if report.conforms:
            self.log.info("Chain metadata: OK")
        else:
            self.log.error(f"Chain metadata: {len(report.mismatches)} mismatches")

    def scenario_completed(self, report):
        stats = report.statistics
        status = "✅ ACCEPTED" if report.accepted else "❌ REJECTED"
        self.log.info(f"[{report.scenario.value}] {status}: {stats.succeeded}/{stats.attempted} "
                      f"succeeded ({stats.success_rate:.1%}), elapsed {stats.elapsed:.3f} s")
        for inconsistency in report.inconsistencies:
            self.log.error(inconsistency.describe())

    def run_completed(self, report):
        if report.passed:
            self.log.info("Conformance run PASSED")
        else:
            self.log.error("Conformance run FAILED")


def convert_for_json(obj):
    """Convert enums, numpy values and nested containers to JSON types."""
    if isinstance(obj, dict):
        return {str(k): convert_for_json(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_for_json(item) for item in obj]
    elif isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, np.generic):
        return obj.item()
    else:
        return obj


class JsonReportSink(ReportSink):
    """Writes the final harness report to a JSON file."""

    def __init__(self, filepath: str):
        self.filepath = filepath

    def run_completed(self, report):
        directory = os.path.dirname(os.path.abspath(self.filepath))
        os.makedirs(directory, exist_ok=True)
        with open(self.filepath, 'w') as f:
            json.dump(convert_for_json(report.to_dict()), f, indent=2, default=str)
        logger.info(f"Conformance report saved to {self.filepath}")
