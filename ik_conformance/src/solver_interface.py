#!/usr/bin/env python3
"""
Kinematics Solver Capability Interface

This module defines the contract every pluggable IK/FK solver must satisfy
to be driven by the conformance harness:
- Chain metadata accessors (base frame, tip frame, joint names, group name)
- Forward kinematics for a list of links
- Single-solution IK (plain, seeded search with timeout, callback-filtered search)
- Multi-solution IK with query options and a structured result

It also holds the status enums and the exception taxonomy shared by the
harness.

Author: Robot Control Team
"""

import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from .pose_model import Pose, zero_configuration

DEFAULT_SEARCH_DISCRETIZATION = 0.01
DEFAULT_IK_TIMEOUT = 5.0


class KinematicErrorCode(Enum):
    """Status returned by a single IK call or by a solution callback."""
    SUCCESS = "success"
    FAILURE = "failure"
    PLANNING_FAILED = "planning_failed"
    TIMED_OUT = "timed_out"
    NO_IK_SOLUTION = "no_ik_solution"
    INVALID_INPUT = "invalid_input"


class KinematicError(Enum):
    """Aggregate result code of a multi-solution IK query."""
    OK = "ok"
    UNSUPPORTED_DISCRETIZATION_REQUESTED = "unsupported_discretization_requested"
    DISCRETIZATION_NOT_INITIALIZED = "discretization_not_initialized"
    MULTIPLE_TIPS_NOT_SUPPORTED = "multiple_tips_not_supported"
    EMPTY_TIP_POSES = "empty_tip_poses"
    IK_SEED_OUTSIDE_LIMITS = "ik_seed_outside_limits"
    SOLVER_ERROR = "solver_error"
    NO_SOLUTION = "no_solution"


class DiscretizationMethod(Enum):
    """How redundant joints are sampled during a multi-solution query."""
    NO_DISCRETIZATION = "no_discretization"
    ALL_DISCRETIZED = "all_discretized"
    SOME_DISCRETIZED = "some_discretized"
    ALL_RANDOM_SAMPLED = "all_random_sampled"
    SOME_RANDOM_SAMPLED = "some_random_sampled"


@dataclass
class KinematicsQueryOptions:
    """Options for multi-solution IK queries."""
    lock_redundant_joints: bool = False
    return_approximate_solution: bool = False
    discretization_method: DiscretizationMethod = DiscretizationMethod.NO_DISCRETIZATION


@dataclass
class KinematicsResult:
    """Result of a multi-solution IK query."""
    kinematic_error: KinematicError
    solution_percentage: float = 0.0

    @property
    def ok(self) -> bool:
        return self.kinematic_error == KinematicError.OK


@dataclass(frozen=True)
class SolverInitParams:
    """Parameters handed to a solver's initialize() by the plugin provider."""
    robot_description: str
    group_name: str
    base_frame: str
    tip_frame: str
    search_discretization: float = DEFAULT_SEARCH_DISCRETIZATION


# Signature of an IK solution callback: (target pose, candidate) -> status
SolutionCallback = Callable[[Pose, np.ndarray], KinematicErrorCode]


class KinematicsSolverError(Exception):
    """Base class for errors raised by a solver under test."""
    pass


class ComputationFailedError(KinematicsSolverError):
    """Solver-internal computation failure."""
    pass


class SolverTimeoutError(KinematicsSolverError):
    """Search exceeded its allotted duration."""
    pass


class InvalidInputError(KinematicsSolverError):
    """Malformed pose or configuration (e.g. wrong length)."""
    pass


class HarnessSetupError(Exception):
    """Fatal configuration/setup error: the run cannot continue."""
    pass


class PluginLoadError(HarnessSetupError):
    """The solver plugin could not be found or instantiated."""
    pass


class SolverInitializationError(HarnessSetupError):
    """The solver plugin refused to initialize."""
    pass


class MetadataMismatchError(HarnessSetupError):
    """Solver-reported chain metadata differs from the expected chain."""
    pass


class ConfigurationMismatchError(HarnessSetupError):
    """Robot model and solver disagree on the joint group."""
    pass


class ConfigurationError(HarnessSetupError):
    """Harness configuration is missing or malformed."""
    pass


class KinematicsSolver(ABC):
    """
    Abstract base class for kinematics solver plugins.

    Concrete solvers implement the metadata accessors, forward kinematics and
    the single-solution IK calls. The multi-solution query has a default
    implementation that returns at most one solution.
    """

    def initialize(self, params: SolverInitParams) -> bool:
        """
        Initialize the solver for a chain.

        Args:
            params: Robot description, group and frame names, discretization

        Returns:
            True if the solver is ready for queries
        """
        self.init_params = params
        return True

    @abstractmethod
    def get_base_frame(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def get_tip_frame(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def get_joint_names(self) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def get_group_name(self) -> str:
        raise NotImplementedError

    def get_search_discretization(self) -> float:
        params = getattr(self, 'init_params', None)
        return params.search_discretization if params else DEFAULT_SEARCH_DISCRETIZATION

    @abstractmethod
    def get_position_fk(self, link_names: Sequence[str],
                        configuration: np.ndarray) -> List[Pose]:
        """
        Compute forward kinematics.

        Args:
            link_names: Links to compute poses for
            configuration: Joint positions, ordered as get_joint_names()

        Returns:
            Exactly one pose per requested link, in the same order

        Raises:
            ComputationFailedError, InvalidInputError
        """
        raise NotImplementedError

    @abstractmethod
    def get_position_ik(self, target_pose: Pose,
                        seed: np.ndarray) -> Tuple[Optional[np.ndarray], KinematicErrorCode]:
        """
        Compute a single IK solution near the seed, without searching.

        Returns:
            (configuration, status); configuration is meaningless unless
            status is SUCCESS
        """
        raise NotImplementedError

    @abstractmethod
    def search_position_ik(self, target_pose: Pose, seed: np.ndarray, timeout: float,
                           solution_callback: Optional[SolutionCallback] = None
                           ) -> Tuple[Optional[np.ndarray], KinematicErrorCode]:
        """
        Search for an IK solution within a timeout.

        If solution_callback is given, every candidate is passed through it and
        only a candidate for which it returns SUCCESS may be accepted. If no
        candidate is accepted before the timeout the status is a failure code.

        Args:
            target_pose: Desired tip pose
            seed: Initial joint configuration guiding the search
            timeout: Search budget in seconds
            solution_callback: Optional candidate filter

        Returns:
            (configuration, status)
        """
        raise NotImplementedError

    def get_position_ik_multiple(self, target_poses: Sequence[Pose],
                                 options: Optional[KinematicsQueryOptions] = None
                                 ) -> Tuple[List[np.ndarray], KinematicsResult]:
        """
        Compute every IK solution for the target tip poses.

        The default implementation supports a single tip and returns the one
        solution found by get_position_ik from a zero seed.
        """
        options = options or KinematicsQueryOptions()
        if not target_poses:
            return [], KinematicsResult(KinematicError.EMPTY_TIP_POSES)
        if len(target_poses) > 1:
            return [], KinematicsResult(KinematicError.MULTIPLE_TIPS_NOT_SUPPORTED)
        if options.discretization_method != DiscretizationMethod.NO_DISCRETIZATION:
            return [], KinematicsResult(KinematicError.UNSUPPORTED_DISCRETIZATION_REQUESTED)

        seed = zero_configuration(len(self.get_joint_names()))
        solution, status = self.get_position_ik(target_poses[0], seed)
        if status != KinematicErrorCode.SUCCESS or solution is None:
            return [], KinematicsResult(KinematicError.NO_SOLUTION)
        return [solution], KinematicsResult(KinematicError.OK, solution_percentage=1.0)
