#!/usr/bin/env python3
"""
Conformance Harness

Orchestrates a full conformance run against one solver instance:

1. HarnessFixture: load the robot model, instantiate and initialize the
   solver (built once per run and passed explicitly, never a global)
2. Metadata conformance check (fatal for the remaining scenarios on mismatch)
3. For each configured scenario: sample -> round-trip validate -> aggregate

Trials run strictly sequentially; the solver is not assumed reentrant.

Author: Robot Control Team
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .acceptance import TrialBatchRunner, ScenarioReport
from .config import HarnessConfig
from .metadata_checker import MetadataConformanceChecker, MetadataReport
from .plugin_loader import SolverLoader
from .robot_model import RobotModel, RobotModelError
from .round_trip_validator import RoundTripValidator, Scenario, TipHeightPredicate
from .sampler import RandomConfigurationSampler
from .solver_interface import ConfigurationError, KinematicsQueryOptions

logger = logging.getLogger(__name__)


class HarnessFixture:
    """Solver, robot model and configuration shared by every scenario of a run."""

    def __init__(self, config: HarnessConfig, solver, robot_model):
        self.config = config
        self.solver = solver
        self.robot_model = robot_model

    @classmethod
    def create(cls, config: HarnessConfig, loader: Optional[SolverLoader] = None,
               robot_model=None) -> 'HarnessFixture':
        """
        Build the fixture from configuration.

        Args:
            config: Harness configuration
            loader: Solver factory (a default SolverLoader if None)
            robot_model: Robot model provider (loaded from
                         config.robot_description if None)

        Raises:
            ConfigurationError: Robot description cannot be loaded
            PluginLoadError, SolverInitializationError: Solver unusable
        """
        if robot_model is None:
            try:
                robot_model = RobotModel.from_yaml(config.robot_description,
                                                   random_seed=config.random_seed)
            except RobotModelError as e:
                raise ConfigurationError(str(e)) from e

        loader = loader or SolverLoader()
        solver = loader.load_solver(config.ik_plugin_name, config.solver_params())
        return cls(config, solver, robot_model)


@dataclass
class HarnessReport:
    """Everything a conformance run produced."""
    solver_name: str
    metadata: Optional[MetadataReport] = None
    scenarios: List[ScenarioReport] = field(default_factory=list)
    aborted: bool = False
    abort_reason: Optional[str] = None

    @property
    def passed(self) -> bool:
        return (not self.aborted and self.metadata is not None and self.metadata.conforms
                and all(report.accepted for report in self.scenarios))

    def scenario(self, scenario: Scenario) -> Optional[ScenarioReport]:
        for report in self.scenarios:
            if report.scenario == scenario:
                return report
        return None

    def to_dict(self) -> Dict[str, object]:
        return {
            'solver': self.solver_name,
            'passed': self.passed,
            'aborted': self.aborted,
            'abort_reason': self.abort_reason,
            'metadata': self.metadata.to_dict() if self.metadata else None,
            'scenarios': [report.to_dict() for report in self.scenarios],
        }


class ConformanceHarness:
    """Runs metadata checks and trial batches for a fixture."""

    def __init__(self, fixture: HarnessFixture, sinks: Optional[list] = None,
                 solution_callback=None, query_options: Optional[KinematicsQueryOptions] = None):
        """
        Initialize the harness.

        Args:
            fixture: HarnessFixture built once for the run
            sinks: ReportSink instances
            solution_callback: Filter for the callback scenario (defaults to
                               TipHeightPredicate at config.reference_height)
            query_options: Options for the multi-solution scenario
        """
        self.fixture = fixture
        self.config = fixture.config
        self.solver = fixture.solver
        self.sinks = list(sinks or [])
        self.solution_callback = solution_callback or TipHeightPredicate(
            self.solver, self.config.reference_height)
        self.query_options = query_options

        self._runner: Optional[TrialBatchRunner] = None

    def check_metadata(self) -> MetadataReport:
        checker = MetadataConformanceChecker(self.config.expected_chain())
        report = checker.check(self.solver)
        for sink in self.sinks:
            sink.metadata_checked(report)
        return report

    def runner(self) -> TrialBatchRunner:
        """
        Batch runner bound to the fixture (created on first use).

        Raises:
            ConfigurationMismatchError: Robot model group and solver joints differ
        """
        if self._runner is None:
            sampler = RandomConfigurationSampler(self.fixture.robot_model, self.solver)
            validator = RoundTripValidator(
                self.solver,
                timeout=self.config.timeout,
                position_tolerance=self.config.position_tolerance,
                orientation_tolerance=self.config.orientation_tolerance,
                solution_callback=self.solution_callback,
                query_options=self.query_options,
            )
            self._runner = TrialBatchRunner(
                validator, sampler,
                num_trials=self.config.num_ik_tests,
                min_success_rate=self.config.min_success_rate,
                sinks=self.sinks,
            )
        return self._runner

    def run_scenario(self, scenario: Scenario) -> ScenarioReport:
        num_trials = (self.config.num_fk_tests if scenario == Scenario.FORWARD_KINEMATICS
                      else self.config.num_ik_tests)
        return self.runner().run(scenario, num_trials)

    def run(self, scenarios: Optional[List[Scenario]] = None) -> HarnessReport:
        """
        Run the metadata check and then every scenario.

        A metadata mismatch aborts the run before any trial batch.
        """
        scenarios = scenarios if scenarios is not None else self.config.scenario_list()
        report = HarnessReport(solver_name=self.config.ik_plugin_name)

        report.metadata = self.check_metadata()
        if not report.metadata.conforms:
            report.aborted = True
            report.abort_reason = "chain metadata mismatch"
            logger.error("Chain metadata mismatch, skipping all scenarios")
        else:
            for scenario in scenarios:
                report.scenarios.append(self.run_scenario(scenario))

        for sink in self.sinks:
            sink.run_completed(report)
        return report
