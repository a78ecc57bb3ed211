#!/usr/bin/env python3
"""
Random configuration sampler: thin adapter over the robot model provider
that checks the model group against the solver's own joint ordering.
"""

import numpy as np
import logging
from typing import List

from .pose_model import as_configuration
from .robot_model import RobotModelError
from .solver_interface import ConfigurationMismatchError

logger = logging.getLogger(__name__)


class RandomConfigurationSampler:
    """Produces valid random joint configurations for the solver's group."""

    def __init__(self, robot_model, solver):
        """
        Args:
            robot_model: Provider exposing sample_random_configuration(group)
                         and copy_configuration(group, out)
            solver: KinematicsSolver whose joint names define the ordering

        Raises:
            ConfigurationMismatchError: If the model's group does not match the
                solver's joint names (count and order)
        """
        self.robot_model = robot_model
        self.group_name = solver.get_group_name()
        self.joint_names: List[str] = list(solver.get_joint_names())
        self.n_joints = len(self.joint_names)

        try:
            model_names = list(robot_model.get_joint_names(self.group_name))
        except RobotModelError as e:
            raise ConfigurationMismatchError(str(e)) from e
        if model_names != self.joint_names:
            raise ConfigurationMismatchError(
                f"Robot model group '{self.group_name}' joints {model_names} do not match "
                f"solver joints {self.joint_names}"
            )
        logger.debug(f"Sampler ready for group '{self.group_name}' ({self.n_joints} joints)")

    def sample(self) -> np.ndarray:
        """Sample one configuration (read-only array)."""
        self.robot_model.sample_random_configuration(self.group_name)
        values = np.zeros(self.n_joints)
        self.robot_model.copy_configuration(self.group_name, values)
        return as_configuration(values)
