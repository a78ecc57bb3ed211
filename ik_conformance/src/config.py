#!/usr/bin/env python3
"""
Harness Configuration

Loads the harness configuration (expected chain, solver plugin, batch sizes,
tolerances) from a YAML file.

Example:

    ik_plugin_name: my_package.solver:MySolver
    group: manipulator
    root_link: base_link
    tip_link: tool0
    joint_names: [j1, j2, j3, j4, j5, j6]
    robot_description: robot.yaml
    num_ik_tests: 100
    timeout: 5.0

Author: Robot Control Team
"""

import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional
import yaml

from .metadata_checker import ExpectedChain
from .round_trip_validator import Scenario, ALL_SCENARIOS
from .solver_interface import (
    SolverInitParams, ConfigurationError, DEFAULT_SEARCH_DISCRETIZATION, DEFAULT_IK_TIMEOUT
)
from .pose_model import POSITION_TOLERANCE, ORIENTATION_TOLERANCE

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ('ik_plugin_name', 'group', 'tip_link', 'root_link', 'joint_names',
                 'robot_description')

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), '..', 'config', 'harness.yaml')


@dataclass
class HarnessConfig:
    """Conformance harness settings."""
    ik_plugin_name: str
    group: str
    tip_link: str
    root_link: str
    joint_names: List[str]
    robot_description: str
    search_discretization: float = DEFAULT_SEARCH_DISCRETIZATION
    num_fk_tests: int = 100
    num_ik_tests: int = 100
    timeout: float = DEFAULT_IK_TIMEOUT
    position_tolerance: float = POSITION_TOLERANCE
    orientation_tolerance: float = ORIENTATION_TOLERANCE
    min_success_rate: float = 0.99
    reference_height: float = 0.0
    random_seed: Optional[int] = None
    scenarios: List[str] = field(default_factory=lambda: [s.value for s in ALL_SCENARIOS])
    report_path: Optional[str] = None

    def __post_init__(self):
        self.validate()

    @classmethod
    def from_yaml(cls, path: str) -> 'HarnessConfig':
        """
        Load configuration from a YAML file.

        Relative robot_description / report_path entries are resolved against
        the directory of the file.

        Raises:
            ConfigurationError: File missing, unparsable or incomplete
        """
        if not os.path.exists(path):
            raise ConfigurationError(f"Configuration file not found: {path}")
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse configuration {path}: {e}") from e
        logger.info(f"Harness configuration loaded from: {path}")
        return cls.from_dict(data or {}, base_dir=os.path.dirname(os.path.abspath(path)))

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[str] = None) -> 'HarnessConfig':
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a mapping")

        missing = [key for key in REQUIRED_KEYS if data.get(key) in (None, '', [])]
        if missing:
            raise ConfigurationError(f"Kinematics solver parameters failed to load: missing {', '.join(missing)}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")

        values = {k: v for k, v in data.items() if k in known}
        if base_dir:
            for key in ('robot_description', 'report_path'):
                path = values.get(key)
                if path and not os.path.isabs(path):
                    values[key] = os.path.normpath(os.path.join(base_dir, path))
        return cls(**values)

    def validate(self):
        """Check value types and ranges."""
        if not isinstance(self.joint_names, (list, tuple)) or not all(isinstance(n, str) for n in self.joint_names):
            raise ConfigurationError("joint_names must be a list of strings")
        self.joint_names = list(self.joint_names)
        for key in ('num_fk_tests', 'num_ik_tests'):
            value = getattr(self, key)
            if not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{key} must be a positive integer, got {value!r}")
        for key in ('timeout', 'position_tolerance', 'orientation_tolerance', 'search_discretization'):
            value = getattr(self, key)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(f"{key} must be a positive number, got {value!r}")
        if not isinstance(self.min_success_rate, (int, float)) or not 0.0 <= self.min_success_rate <= 1.0:
            raise ConfigurationError(f"min_success_rate must be within [0, 1], got {self.min_success_rate}")
        self.scenario_list()

    def scenario_list(self) -> List[Scenario]:
        """Configured scenarios as enums, in order."""
        try:
            return [Scenario(name) for name in self.scenarios]
        except ValueError as e:
            valid = ', '.join(s.value for s in ALL_SCENARIOS)
            raise ConfigurationError(f"Unknown scenario in {self.scenarios} (valid: {valid})") from e

    def with_overrides(self, **overrides) -> 'HarnessConfig':
        """Copy with every non-None override applied (used for CLI flags)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def expected_chain(self) -> ExpectedChain:
        return ExpectedChain.create(self.group, self.root_link, self.tip_link,
                                    self.joint_names, self.ik_plugin_name)

    def solver_params(self) -> SolverInitParams:
        return SolverInitParams(
            robot_description=self.robot_description,
            group_name=self.group,
            base_frame=self.root_link,
            tip_frame=self.tip_link,
            search_discretization=self.search_discretization,
        )
