#!/usr/bin/env python3
"""
Acceptance / Reporting Aggregator

Runs a batch of round-trip trials for one scenario and applies the
statistical acceptance policy: the batch passes only if

    succeeded / attempted > min_success_rate   (default 0.99)

and no trial produced a validator inconsistency. Input-generation failures
and skipped targets are tallied separately and stay out of both numerator
and denominator. Elapsed wall time is recorded for reporting only.

Author: Robot Control Team
"""

import numpy as np
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .round_trip_validator import (
    RoundTripValidator, Scenario, TrialOutcome, TrialErrorKind, Inconsistency
)

logger = logging.getLogger(__name__)

DEFAULT_NUM_TRIALS = 100
DEFAULT_MIN_SUCCESS_RATE = 0.99


class AcceptanceError(AssertionError):
    """Batch success rate did not exceed the acceptance threshold."""
    pass


class ValidatorInconsistencyError(AssertionError):
    """The solver reported success for results that do not hold."""

    def __init__(self, message: str, inconsistencies: List[Inconsistency]):
        super().__init__(message)
        self.inconsistencies = inconsistencies


@dataclass
class TrialStatistics:
    """Counters accumulated over one scenario batch."""
    attempted: int = 0
    succeeded: int = 0
    input_generation_failures: int = 0
    skipped: int = 0
    elapsed: float = 0.0
    failure_kinds: Dict[str, int] = field(default_factory=dict)

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    @property
    def success_rate(self) -> float:
        return self.succeeded / self.attempted if self.attempted > 0 else 0.0

    def record(self, outcome: TrialOutcome):
        """Fold one trial outcome into the counters."""
        if outcome.error_kind == TrialErrorKind.INPUT_GENERATION_FAILED:
            self.input_generation_failures += 1
            return
        if outcome.error_kind == TrialErrorKind.SKIPPED:
            self.skipped += 1
            return

        self.attempted += 1
        if outcome.succeeded:
            self.succeeded += 1
        else:
            kind = outcome.error_kind.value
            self.failure_kinds[kind] = self.failure_kinds.get(kind, 0) + 1

    def reset(self):
        self.attempted = 0
        self.succeeded = 0
        self.input_generation_failures = 0
        self.skipped = 0
        self.elapsed = 0.0
        self.failure_kinds = {}

    def to_dict(self) -> Dict[str, object]:
        return {
            'attempted': self.attempted,
            'succeeded': self.succeeded,
            'failed': self.failed,
            'success_rate': self.success_rate,
            'input_generation_failures': self.input_generation_failures,
            'skipped': self.skipped,
            'elapsed': self.elapsed,
            'failure_kinds': dict(self.failure_kinds),
        }


@dataclass
class ScenarioReport:
    """Outcome of one scenario batch."""
    scenario: Scenario
    statistics: TrialStatistics
    min_success_rate: float = DEFAULT_MIN_SUCCESS_RATE
    strict: bool = False
    requested_trials: int = 0
    inconsistencies: List[Inconsistency] = field(default_factory=list)
    failures: List[TrialOutcome] = field(default_factory=list)

    @property
    def meets_success_rate(self) -> bool:
        stats = self.statistics
        if stats.attempted == 0:
            return False
        if self.strict:
            return stats.succeeded == stats.attempted
        return stats.success_rate > self.min_success_rate

    @property
    def accepted(self) -> bool:
        return self.meets_success_rate and not self.inconsistencies

    def raise_for_status(self):
        """
        Raise if the batch is not accepted.

        Raises:
            ValidatorInconsistencyError: Any inconsistency was recorded
            AcceptanceError: Success rate at or below the threshold
        """
        if self.inconsistencies:
            details = "; ".join(i.describe() for i in self.inconsistencies[:5])
            raise ValidatorInconsistencyError(
                f"{self.scenario.value}: {len(self.inconsistencies)} inconsistencies ({details})",
                list(self.inconsistencies)
            )
        if not self.meets_success_rate:
            stats = self.statistics
            required = "all trials" if self.strict else f"> {self.min_success_rate:.1%}"
            raise AcceptanceError(
                f"{self.scenario.value}: success rate {stats.success_rate:.1%} "
                f"({stats.succeeded}/{stats.attempted}), required {required}"
            )

    def to_dict(self) -> Dict[str, object]:
        return {
            'scenario': self.scenario.value,
            'accepted': self.accepted,
            'strict': self.strict,
            'min_success_rate': self.min_success_rate,
            'requested_trials': self.requested_trials,
            'statistics': self.statistics.to_dict(),
            'inconsistencies': [_inconsistency_to_dict(i) for i in self.inconsistencies],
            'failures': [
                {'trial': f.trial_index + 1, 'kind': f.error_kind.value, 'message': f.message}
                for f in self.failures
            ],
        }


def _inconsistency_to_dict(inconsistency: Inconsistency) -> Dict[str, object]:
    return {
        'trial': inconsistency.trial_index + 1,
        'kind': inconsistency.kind.value,
        'message': inconsistency.message,
        'solution_index': inconsistency.solution_index,
        'expected_pose': inconsistency.expected_pose.to_dict() if inconsistency.expected_pose else None,
        'actual_pose': inconsistency.actual_pose.to_dict() if inconsistency.actual_pose else None,
        'configuration': (inconsistency.configuration.tolist()
                          if inconsistency.configuration is not None else None),
    }


class TrialBatchRunner:
    """Runs sequential trial batches and applies the acceptance policy."""

    def __init__(self, validator: RoundTripValidator, sampler=None,
                 num_trials: int = DEFAULT_NUM_TRIALS,
                 min_success_rate: float = DEFAULT_MIN_SUCCESS_RATE,
                 sinks: Optional[list] = None):
        """
        Initialize the batch runner.

        Args:
            validator: RoundTripValidator bound to the solver under test
            sampler: RandomConfigurationSampler (needed for run())
            num_trials: Trials per scenario
            min_success_rate: Exclusive lower bound on the success rate
            sinks: ReportSink instances notified after each batch
        """
        self.validator = validator
        self.sampler = sampler
        self.num_trials = num_trials
        self.min_success_rate = min_success_rate
        self.sinks = list(sinks or [])

    def run(self, scenario: Scenario, num_trials: Optional[int] = None) -> ScenarioReport:
        """Run a batch on freshly sampled configurations."""
        if self.sampler is None:
            raise ValueError("A sampler is required to run sampled batches")
        n = self.num_trials if num_trials is None else num_trials
        configurations = (self.sampler.sample() for _ in range(n))
        return self._run_batch(scenario, configurations, n)

    def run_configurations(self, scenario: Scenario,
                           configurations: Iterable[np.ndarray]) -> ScenarioReport:
        """Run a batch on caller-supplied configurations."""
        configurations = list(configurations)
        return self._run_batch(scenario, iter(configurations), len(configurations))

    def _run_batch(self, scenario: Scenario, configurations, requested: int) -> ScenarioReport:
        statistics = TrialStatistics()
        report = ScenarioReport(
            scenario=scenario,
            statistics=statistics,
            min_success_rate=self.min_success_rate,
            strict=(scenario == Scenario.FORWARD_KINEMATICS),
            requested_trials=requested,
        )

        logger.info(f"Running scenario '{scenario.value}' with {requested} trials")
        start_time = time.time()
        for index, q in enumerate(configurations):
            outcome = self.validator.run_trial(scenario, q, index)
            statistics.record(outcome)
            report.inconsistencies.extend(outcome.inconsistencies)
            if outcome.counted and not outcome.succeeded:
                report.failures.append(outcome)
        statistics.elapsed = time.time() - start_time

        logger.info(f"Success Rate: {statistics.success_rate} "
                    f"({statistics.succeeded}/{statistics.attempted})")
        logger.info(f"Elapsed time: {statistics.elapsed:.4f}")
        if statistics.input_generation_failures:
            logger.warning(f"{statistics.input_generation_failures} trials failed during input generation")
        if statistics.skipped:
            logger.info(f"{statistics.skipped} trials skipped by the solution callback")

        for sink in self.sinks:
            sink.scenario_completed(report)
        return report
