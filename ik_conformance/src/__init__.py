#!/usr/bin/env python3
"""
Kinematics Solver Conformance - Source Module

Round-trip conformance testing for pluggable IK/FK solvers.

This package provides:
- Pose / joint configuration value types with a closeness predicate
- The solver capability interface every plugin implements
- Random configuration sampling within joint limits
- FK -> IK -> FK round-trip validation for every IK variant
- Batch aggregation with a minimum success-rate acceptance policy
- Chain metadata conformance checking

Author: Robot Control Team
Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "Robot Control Team"

# Value types and solver contract
from .pose_model import Pose, as_configuration, zero_configuration, poses_close
from .solver_interface import (
    KinematicsSolver, KinematicErrorCode, KinematicError, KinematicsQueryOptions,
    KinematicsResult, SolverInitParams, DiscretizationMethod,
    KinematicsSolverError, ComputationFailedError, SolverTimeoutError, InvalidInputError,
    HarnessSetupError, PluginLoadError, SolverInitializationError, MetadataMismatchError,
    ConfigurationMismatchError, ConfigurationError
)

# Collaborators
from .robot_model import RobotModel, JointGroup, RobotModelError
from .sampler import RandomConfigurationSampler
from .plugin_loader import SolverLoader

# Validation core
from .round_trip_validator import (
    RoundTripValidator, Scenario, TrialOutcome, TrialErrorKind, Inconsistency, TipHeightPredicate
)
from .acceptance import (
    TrialBatchRunner, TrialStatistics, ScenarioReport, AcceptanceError, ValidatorInconsistencyError
)
from .metadata_checker import MetadataConformanceChecker, ExpectedChain, MetadataReport

# Orchestration
from .config import HarnessConfig
from .reporting import ReportSink, LoggingReportSink, JsonReportSink
from .harness import HarnessFixture, ConformanceHarness, HarnessReport

__all__ = [
    'Pose', 'as_configuration', 'zero_configuration', 'poses_close',
    'KinematicsSolver', 'KinematicErrorCode', 'KinematicError', 'KinematicsQueryOptions',
    'KinematicsResult', 'SolverInitParams', 'DiscretizationMethod',
    'KinematicsSolverError', 'ComputationFailedError', 'SolverTimeoutError', 'InvalidInputError',
    'HarnessSetupError', 'PluginLoadError', 'SolverInitializationError', 'MetadataMismatchError',
    'ConfigurationMismatchError', 'ConfigurationError',
    'RobotModel', 'JointGroup', 'RobotModelError',
    'RandomConfigurationSampler',
    'SolverLoader',
    'RoundTripValidator', 'Scenario', 'TrialOutcome', 'TrialErrorKind', 'Inconsistency',
    'TipHeightPredicate',
    'TrialBatchRunner', 'TrialStatistics', 'ScenarioReport', 'AcceptanceError',
    'ValidatorInconsistencyError',
    'MetadataConformanceChecker', 'ExpectedChain', 'MetadataReport',
    'HarnessConfig',
    'ReportSink', 'LoggingReportSink', 'JsonReportSink',
    'HarnessFixture', 'ConformanceHarness', 'HarnessReport',
]

# Package metadata
__title__ = "ik_conformance"
__description__ = "Round-trip conformance harness for kinematics solver plugins"
__license__ = "MIT"
