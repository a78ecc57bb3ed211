#!/usr/bin/env python3
"""
Gantry-Wrist Kinematics Solver

Analytical solver plugin for a 3-axis cartesian gantry carrying a
yaw-pitch-roll wrist (6 joints). Used as the reference plugin in the
default harness configuration and in the end-to-end tests.

Kinematics:
- Joints 0-2 (prismatic): tool position x, y, z in the base frame
- Joints 3-5 (revolute): intrinsic ZYX euler angles of the tool

IK enumerates both euler branches and every 2*pi shift of the yaw and roll
joints that stays within joint limits.

Author: Robot Control Team
"""

import itertools
import logging
import time
import numpy as np
from typing import List, Optional, Sequence, Tuple
from scipy.spatial.transform import Rotation as R

from ik_conformance.src.pose_model import Pose, as_configuration, PoseModelError
from ik_conformance.src.robot_model import RobotModel, RobotModelError
from ik_conformance.src.solver_interface import (
    KinematicsSolver, KinematicErrorCode, KinematicError, KinematicsQueryOptions,
    KinematicsResult, SolverInitParams, DiscretizationMethod, SolutionCallback,
    ComputationFailedError, InvalidInputError
)

logger = logging.getLogger(__name__)

N_JOINTS = 6
EULER_SEQUENCE = 'ZYX'


class GantryWristSolver(KinematicsSolver):
    """Closed-form IK/FK for the gantry-wrist chain."""

    def __init__(self):
        self.init_params: Optional[SolverInitParams] = None
        self.group = None
        self.base_frame = ""
        self.tip_frame = ""

    def initialize(self, params: SolverInitParams) -> bool:
        super().initialize(params)
        try:
            model = RobotModel.from_yaml(params.robot_description)
            self.group = model.get_joint_group(params.group_name)
        except RobotModelError as e:
            logger.error(f"GantryWristSolver initialization failed: {e}")
            return False

        if self.group.n_joints != N_JOINTS:
            logger.error(f"Group '{params.group_name}' has {self.group.n_joints} joints, "
                         f"GantryWristSolver requires {N_JOINTS}")
            return False

        self.base_frame = params.base_frame
        self.tip_frame = params.tip_frame
        logger.info(f"GantryWristSolver initialized: {self.base_frame} -> {self.tip_frame}")
        return True

    def get_base_frame(self) -> str:
        return self.base_frame

    def get_tip_frame(self) -> str:
        return self.tip_frame

    def get_joint_names(self) -> List[str]:
        return list(self.group.joint_names) if self.group else []

    def get_group_name(self) -> str:
        return self.init_params.group_name if self.init_params else ""

    # ------------------------------------------------------------------
    # Forward kinematics
    # ------------------------------------------------------------------

    def forward(self, q: np.ndarray) -> Pose:
        """Tool pose for a joint configuration."""
        return Pose.from_position_euler(q[:3], q[3:], EULER_SEQUENCE)

    def get_position_fk(self, link_names: Sequence[str], configuration: np.ndarray) -> List[Pose]:
        try:
            q = as_configuration(configuration, N_JOINTS)
        except PoseModelError as e:
            raise InvalidInputError(str(e)) from e

        poses = []
        for link in link_names:
            if link == self.tip_frame:
                poses.append(self.forward(q))
            elif link == self.base_frame:
                poses.append(Pose(np.zeros(3), np.array([0.0, 0.0, 0.0, 1.0])))
            else:
                raise ComputationFailedError(f"Unknown link '{link}'")
        return poses

    # ------------------------------------------------------------------
    # Inverse kinematics
    # ------------------------------------------------------------------

    def candidates(self, target_pose: Pose) -> List[np.ndarray]:
        """
        All joint configurations within limits that reach the target.

        Args:
            target_pose: Desired tool pose

        Returns:
            List of configurations (empty if unreachable)
        """
        position = np.asarray(target_pose.position, dtype=float)
        lower, upper = self.group.lower_limits, self.group.upper_limits
        if np.any(position < lower[:3] - 1e-9) or np.any(position > upper[:3] + 1e-9):
            return []

        yaw, pitch, roll = R.from_quat(target_pose.orientation).as_euler(EULER_SEQUENCE)
        branches = [(yaw, pitch, roll), (yaw + np.pi, np.pi - pitch, roll + np.pi)]

        solutions = []
        for branch in branches:
            options = []
            for joint, angle in zip(range(3, N_JOINTS), branch):
                shifted = [angle + 2.0 * np.pi * k for k in range(-2, 3)]
                options.append([a for a in shifted
                                if lower[joint] - 1e-9 <= a <= upper[joint] + 1e-9])
            for angles in itertools.product(*options):
                solutions.append(np.concatenate([position, angles]))
        return solutions

    def get_position_ik(self, target_pose: Pose,
                        seed: np.ndarray) -> Tuple[Optional[np.ndarray], KinematicErrorCode]:
        try:
            seed = as_configuration(seed, N_JOINTS)
        except PoseModelError:
            return None, KinematicErrorCode.INVALID_INPUT

        solutions = self.candidates(target_pose)
        if not solutions:
            return None, KinematicErrorCode.NO_IK_SOLUTION
        best = min(solutions, key=lambda q: np.linalg.norm(q - seed))
        return as_configuration(best), KinematicErrorCode.SUCCESS

    def search_position_ik(self, target_pose: Pose, seed: np.ndarray, timeout: float,
                           solution_callback: Optional[SolutionCallback] = None
                           ) -> Tuple[Optional[np.ndarray], KinematicErrorCode]:
        start_time = time.time()
        try:
            seed = as_configuration(seed, N_JOINTS)
        except PoseModelError:
            return None, KinematicErrorCode.INVALID_INPUT

        solutions = sorted(self.candidates(target_pose), key=lambda q: np.linalg.norm(q - seed))
        if not solutions:
            return None, KinematicErrorCode.NO_IK_SOLUTION

        for q in solutions:
            if time.time() - start_time > timeout:
                return None, KinematicErrorCode.TIMED_OUT
            q = as_configuration(q)
            if solution_callback is None:
                return q, KinematicErrorCode.SUCCESS
            if solution_callback(target_pose, q) == KinematicErrorCode.SUCCESS:
                return q, KinematicErrorCode.SUCCESS

        logger.debug("No IK candidate accepted by the solution callback")
        return None, KinematicErrorCode.NO_IK_SOLUTION

    def get_position_ik_multiple(self, target_poses: Sequence[Pose],
                                 options: Optional[KinematicsQueryOptions] = None
                                 ) -> Tuple[List[np.ndarray], KinematicsResult]:
        options = options or KinematicsQueryOptions()
        if not target_poses:
            return [], KinematicsResult(KinematicError.EMPTY_TIP_POSES)
        if len(target_poses) > 1:
            return [], KinematicsResult(KinematicError.MULTIPLE_TIPS_NOT_SUPPORTED)
        if options.discretization_method != DiscretizationMethod.NO_DISCRETIZATION:
            # Closed-form chain, nothing to discretize
            return [], KinematicsResult(KinematicError.UNSUPPORTED_DISCRETIZATION_REQUESTED)

        solutions = [as_configuration(q) for q in self.candidates(target_poses[0])]
        if not solutions:
            return [], KinematicsResult(KinematicError.NO_SOLUTION)
        return solutions, KinematicsResult(KinematicError.OK, solution_percentage=1.0)
