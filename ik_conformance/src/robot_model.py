#!/usr/bin/env python3
"""
Robot Model Provider

Loads a robot description (named joint groups with joint limits) from YAML
and provides random configuration sampling within those limits.

Description format:

    name: my_robot
    groups:
      manipulator:
        joints:
          - {name: j1, type: revolute, min: -180, max: 180}   # degrees
          - {name: j2, type: prismatic, min: 0.0, max: 0.5}    # meters

Author: Robot Control Team
"""

import numpy as np
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import yaml

logger = logging.getLogger(__name__)


class RobotModelError(Exception):
    """Raised when a robot description cannot be loaded or queried."""
    pass


@dataclass(frozen=True, eq=False)
class JointGroup:
    """Named, ordered set of joints with their limits (radians / meters)."""
    name: str
    joint_names: tuple
    lower_limits: np.ndarray
    upper_limits: np.ndarray

    @property
    def n_joints(self) -> int:
        return len(self.joint_names)

    def within_limits(self, q: np.ndarray, margin: float = 1e-9) -> bool:
        q = np.asarray(q, dtype=float)
        return bool(np.all(q >= self.lower_limits - margin) and np.all(q <= self.upper_limits + margin))


class RobotModel:
    """Kinematic chain description with a current joint state per group."""

    def __init__(self, name: str, groups: Dict[str, JointGroup],
                 random_seed: Optional[int] = None, source: Optional[str] = None):
        """
        Initialize the robot model.

        Args:
            name: Robot name
            groups: Joint groups by name
            random_seed: Seed for the sampling generator (optional)
            source: Where the description came from (for logging)
        """
        if not groups:
            raise RobotModelError(f"Robot description '{name}' defines no joint groups")
        self.name = name
        self.groups = groups
        self.source = source
        self._rng = np.random.default_rng(random_seed)
        self._state = {g.name: np.zeros(g.n_joints) for g in groups.values()}

        logger.info(f"Robot model '{name}' loaded with groups: {', '.join(sorted(groups))}")

    @classmethod
    def from_yaml(cls, path: str, random_seed: Optional[int] = None) -> 'RobotModel':
        """Load a robot description file."""
        if not os.path.exists(path):
            raise RobotModelError(f"Robot description not found: {path}")
        try:
            with open(path, 'r') as f:
                description = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise RobotModelError(f"Failed to parse robot description {path}: {e}") from e
        logger.debug(f"Robot description loaded from: {path}")
        return cls.from_description(description, random_seed=random_seed, source=path)

    @classmethod
    def from_description(cls, description: Dict[str, Any], random_seed: Optional[int] = None,
                         source: Optional[str] = None) -> 'RobotModel':
        """Build a model from an already-parsed description mapping."""
        if not isinstance(description, dict):
            raise RobotModelError("Robot description must be a mapping")
        name = description.get('name', 'robot')
        groups = {}
        for group_name, group_config in (description.get('groups') or {}).items():
            groups[group_name] = cls._parse_group(group_name, group_config or {})
        return cls(name, groups, random_seed=random_seed, source=source)

    @staticmethod
    def _parse_group(group_name: str, group_config: Dict[str, Any]) -> JointGroup:
        joints = group_config.get('joints') or []
        if not joints:
            raise RobotModelError(f"Joint group '{group_name}' has no joints")

        names = []
        lower_limits = []
        upper_limits = []
        for joint in joints:
            if 'name' not in joint:
                raise RobotModelError(f"Joint without a name in group '{group_name}'")
            joint_type = joint.get('type', 'revolute')
            if joint_type == 'revolute':
                # Revolute limits are given in degrees
                lower = np.deg2rad(joint.get('min', -180.0))
                upper = np.deg2rad(joint.get('max', 180.0))
            elif joint_type == 'prismatic':
                if 'min' not in joint or 'max' not in joint:
                    raise RobotModelError(f"Prismatic joint {joint['name']} needs min and max")
                lower = float(joint['min'])
                upper = float(joint['max'])
            else:
                raise RobotModelError(f"Unsupported joint type '{joint_type}' for {joint['name']}")
            if lower > upper:
                raise RobotModelError(f"Joint {joint['name']} has min > max")
            names.append(str(joint['name']))
            lower_limits.append(lower)
            upper_limits.append(upper)

        return JointGroup(group_name, tuple(names), np.array(lower_limits), np.array(upper_limits))

    def get_joint_group(self, group_name: str) -> JointGroup:
        if group_name not in self.groups:
            raise RobotModelError(f"Unknown joint group '{group_name}' in robot '{self.name}'")
        return self.groups[group_name]

    def get_joint_names(self, group_name: str) -> List[str]:
        return list(self.get_joint_group(group_name).joint_names)

    def seed(self, random_seed: Optional[int]):
        """Reset the sampling generator."""
        self._rng = np.random.default_rng(random_seed)

    def sample_random_configuration(self, group_name: str) -> np.ndarray:
        """
        Set the group to a configuration sampled uniformly within joint limits.

        Returns:
            Copy of the sampled configuration
        """
        group = self.get_joint_group(group_name)
        q = self._rng.uniform(group.lower_limits, group.upper_limits)
        self._state[group_name] = q
        return q.copy()

    def set_configuration(self, group_name: str, values: np.ndarray):
        group = self.get_joint_group(group_name)
        values = np.asarray(values, dtype=float)
        if values.shape != (group.n_joints,):
            raise RobotModelError(
                f"Group '{group_name}' expects {group.n_joints} values, got {values.shape}"
            )
        self._state[group_name] = values.copy()

    def copy_configuration(self, group_name: str, out: np.ndarray):
        """Copy the current group configuration into a caller-owned buffer."""
        group = self.get_joint_group(group_name)
        if out.shape != (group.n_joints,):
            raise RobotModelError(
                f"Output buffer for group '{group_name}' must have shape ({group.n_joints},)"
            )
        out[:] = self._state[group_name]
