#!/usr/bin/env python3
"""
Round-Trip Validator

Executes one conformance trial against a kinematics solver:

1. Take a joint configuration q (sampled or supplied)
2. pose = FK(tip, q)                      -> input-generation failure if FK fails
3. Run the IK variant under test on pose  -> trial failure if IK fails / times out
4. pose' = FK(tip, IK result)             -> inconsistency if pose' != pose

A trial is a true success only if every returned solution reproduces the
target pose within tolerance on all seven pose components. An IK call that
reports success but does not round-trip is recorded as an inconsistency:
it means the solver's success signal cannot be trusted, which is a
different defect from a plain failed search.

Scenarios:
- forward_kinematics:      FK availability only
- search_ik:               search from the zero seed with timeout, then refine
- search_ik_with_callback: search seeded with q, candidates filtered by a callback
- get_ik:                  single IK seeded with q
- get_ik_multiple:         every solution of a multi-solution query must round-trip

Author: Robot Control Team
"""

import numpy as np
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .pose_model import (
    Pose, as_configuration, zero_configuration, poses_close, mismatched_components,
    pose_differences, PoseModelError, POSITION_TOLERANCE, ORIENTATION_TOLERANCE
)
from .solver_interface import (
    KinematicErrorCode, KinematicsQueryOptions, KinematicsSolverError,
    SolverTimeoutError, InvalidInputError, SolutionCallback, DEFAULT_IK_TIMEOUT
)

logger = logging.getLogger(__name__)


class Scenario(Enum):
    """Conformance scenarios run against a solver."""
    FORWARD_KINEMATICS = "forward_kinematics"
    SEARCH_IK = "search_ik"
    SEARCH_IK_WITH_CALLBACK = "search_ik_with_callback"
    GET_IK = "get_ik"
    GET_IK_MULTIPLE = "get_ik_multiple"


ALL_SCENARIOS = tuple(Scenario)


class TrialErrorKind(Enum):
    """Why a trial did not succeed."""
    NONE = "none"
    INPUT_GENERATION_FAILED = "input_generation_failed"
    SKIPPED = "skipped"
    FK_FAILED = "fk_failed"
    IK_FAILED = "ik_failed"
    IK_TIMED_OUT = "ik_timed_out"
    INVALID_INPUT = "invalid_input"
    # Inconsistencies: the solver claimed success but the claim does not hold
    ROUND_TRIP_MISMATCH = "round_trip_mismatch"
    INVALID_SOLUTION = "invalid_solution"
    EMPTY_SOLUTION_SET = "empty_solution_set"
    CALLBACK_PREDICATE_VIOLATED = "callback_predicate_violated"
    POSE_COUNT_MISMATCH = "pose_count_mismatch"


# Outcomes that are not counted in the success-rate denominator
UNCOUNTED_KINDS = (TrialErrorKind.INPUT_GENERATION_FAILED, TrialErrorKind.SKIPPED)

_STATUS_TO_KIND = {
    KinematicErrorCode.TIMED_OUT: TrialErrorKind.IK_TIMED_OUT,
    KinematicErrorCode.INVALID_INPUT: TrialErrorKind.INVALID_INPUT,
}


@dataclass(frozen=True, eq=False)
class Inconsistency:
    """A solver claim that the round-trip check disproved."""
    scenario: Scenario
    trial_index: int
    kind: TrialErrorKind
    message: str
    expected_pose: Optional[Pose] = None
    actual_pose: Optional[Pose] = None
    configuration: Optional[np.ndarray] = None
    solution_index: Optional[int] = None

    def describe(self) -> str:
        text = f"[{self.scenario.value}] test {self.trial_index + 1}: {self.kind.value}: {self.message}"
        if self.expected_pose is not None and self.actual_pose is not None:
            text += f" (expected {self.expected_pose}, actual {self.actual_pose})"
        return text


@dataclass(frozen=True, eq=False)
class TrialOutcome:
    """Result of one trial, consumed by the batch aggregator."""
    scenario: Scenario
    trial_index: int
    succeeded: bool
    error_kind: TrialErrorKind = TrialErrorKind.NONE
    configuration: Optional[np.ndarray] = None
    target_pose: Optional[Pose] = None
    recovered_pose: Optional[Pose] = None
    solutions: Tuple[np.ndarray, ...] = ()
    inconsistencies: Tuple[Inconsistency, ...] = ()
    message: str = ""

    @property
    def counted(self) -> bool:
        """Whether the trial belongs in the success-rate denominator."""
        return self.error_kind not in UNCOUNTED_KINDS


class _PoseCountMismatch(Exception):
    def __init__(self, count: int):
        super().__init__(f"FK returned {count} poses for 1 requested link")
        self.count = count


class TipHeightPredicate:
    """
    Solution callback rejecting candidates whose tip is on or below a plane.

    The candidate's tip position is recomputed with the solver's own FK; any
    FK failure rejects the candidate. Holds no state between calls.
    """

    def __init__(self, solver, reference_height: float = 0.0):
        self.solver = solver
        self.tip_frame = solver.get_tip_frame()
        self.reference_height = reference_height

    def __call__(self, ik_pose: Pose, joint_state: np.ndarray) -> KinematicErrorCode:
        try:
            poses = self.solver.get_position_fk([self.tip_frame], joint_state)
        except KinematicsSolverError:
            return KinematicErrorCode.PLANNING_FAILED
        if len(poses) != 1:
            return KinematicErrorCode.PLANNING_FAILED
        if poses[0].position[2] > self.reference_height:
            return KinematicErrorCode.SUCCESS
        return KinematicErrorCode.PLANNING_FAILED


class RoundTripValidator:
    """FK -> IK -> FK consistency check for every IK variant of a solver."""

    def __init__(self, solver, timeout: float = DEFAULT_IK_TIMEOUT,
                 position_tolerance: float = POSITION_TOLERANCE,
                 orientation_tolerance: float = ORIENTATION_TOLERANCE,
                 solution_callback: Optional[SolutionCallback] = None,
                 query_options: Optional[KinematicsQueryOptions] = None):
        """
        Initialize the validator.

        Args:
            solver: KinematicsSolver under test
            timeout: Timeout passed to every search_position_ik call (seconds)
            position_tolerance: Per-axis position tolerance
            orientation_tolerance: Per-component quaternion tolerance
            solution_callback: Candidate filter for the callback scenario
                               (defaults to TipHeightPredicate at z = 0)
            query_options: Options for the multi-solution scenario
        """
        self.solver = solver
        self.tip_frame = solver.get_tip_frame()
        self.n_joints = len(solver.get_joint_names())
        self.timeout = timeout
        self.position_tolerance = position_tolerance
        self.orientation_tolerance = orientation_tolerance
        self.solution_callback = solution_callback or TipHeightPredicate(solver)
        self.query_options = query_options or KinematicsQueryOptions()

        self._runners: Dict[Scenario, Callable[[np.ndarray, int], TrialOutcome]] = {
            Scenario.FORWARD_KINEMATICS: self._run_forward_kinematics,
            Scenario.SEARCH_IK: self._run_search_ik,
            Scenario.SEARCH_IK_WITH_CALLBACK: self._run_search_ik_with_callback,
            Scenario.GET_IK: self._run_get_ik,
            Scenario.GET_IK_MULTIPLE: self._run_get_ik_multiple,
        }

    def run_trial(self, scenario: Scenario, configuration: np.ndarray,
                  trial_index: int = 0) -> TrialOutcome:
        """
        Run one trial of a scenario for a joint configuration.

        Args:
            scenario: Scenario to run
            configuration: Source configuration q (never modified)
            trial_index: Zero-based index used for reporting

        Returns:
            TrialOutcome for the aggregator
        """
        q = as_configuration(configuration, self.n_joints)
        return self._runners[scenario](q, trial_index)

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------

    def _run_forward_kinematics(self, q: np.ndarray, index: int) -> TrialOutcome:
        scenario = Scenario.FORWARD_KINEMATICS
        try:
            pose = self._forward(q)
        except _PoseCountMismatch as e:
            inconsistency = Inconsistency(scenario, index, TrialErrorKind.POSE_COUNT_MISMATCH,
                                          str(e), configuration=q)
            logger.error(inconsistency.describe())
            return TrialOutcome(scenario, index, False, TrialErrorKind.POSE_COUNT_MISMATCH,
                                configuration=q, inconsistencies=(inconsistency,), message=str(e))
        except KinematicsSolverError as e:
            logger.error(f"get_position_fk failed on test {index + 1}: {e}")
            return TrialOutcome(scenario, index, False, TrialErrorKind.FK_FAILED,
                                configuration=q, message=str(e))
        return TrialOutcome(scenario, index, True, configuration=q, target_pose=pose)

    def _run_search_ik(self, q: np.ndarray, index: int) -> TrialOutcome:
        scenario = Scenario.SEARCH_IK
        target, failed = self._generate_target(scenario, q, index)
        if failed is not None:
            return failed

        seed = zero_configuration(self.n_joints)
        solution, status, message = self._call_ik(
            lambda: self.solver.search_position_ik(target, seed, self.timeout))
        if status == KinematicErrorCode.SUCCESS:
            try:
                solution = as_configuration(solution, self.n_joints)
            except (PoseModelError, TypeError, ValueError) as e:
                inconsistency = self._invalid_solution(scenario, index, target, e)
                return TrialOutcome(scenario, index, False, TrialErrorKind.INVALID_SOLUTION,
                                    configuration=q, target_pose=target,
                                    inconsistencies=(inconsistency,), message=inconsistency.message)
            # Refine from the search result, as a caller would before execution
            solution, status, message = self._call_ik(
                lambda: self.solver.get_position_ik(target, solution))

        if status != KinematicErrorCode.SUCCESS:
            return self._ik_failure(scenario, index, q, target, status, message,
                                    "search_position_ik")
        return self._single_solution_outcome(scenario, index, q, target, solution)

    def _run_search_ik_with_callback(self, q: np.ndarray, index: int) -> TrialOutcome:
        scenario = Scenario.SEARCH_IK_WITH_CALLBACK
        target, failed = self._generate_target(scenario, q, index)
        if failed is not None:
            return failed

        # Targets whose own source configuration fails the filter are skipped
        if self.solution_callback(target, q) != KinematicErrorCode.SUCCESS:
            logger.debug(f"Test {index + 1} skipped: source configuration rejected by callback")
            return TrialOutcome(scenario, index, False, TrialErrorKind.SKIPPED,
                                configuration=q, target_pose=target,
                                message="target rejected by solution callback")

        solution, status, message = self._call_ik(
            lambda: self.solver.search_position_ik(target, q, self.timeout,
                                                   self.solution_callback))
        if status != KinematicErrorCode.SUCCESS:
            return self._ik_failure(scenario, index, q, target, status, message,
                                    "search_position_ik with callback")

        outcome = self._single_solution_outcome(scenario, index, q, target, solution)
        if not outcome.solutions:
            return outcome

        if self.solution_callback(target, outcome.solutions[0]) != KinematicErrorCode.SUCCESS:
            inconsistency = Inconsistency(
                scenario, index, TrialErrorKind.CALLBACK_PREDICATE_VIOLATED,
                "accepted solution is rejected by the solution callback",
                expected_pose=target, actual_pose=outcome.recovered_pose,
                configuration=outcome.solutions[0])
            logger.error(inconsistency.describe())
            return TrialOutcome(scenario, index, False, TrialErrorKind.CALLBACK_PREDICATE_VIOLATED,
                                configuration=q, target_pose=target,
                                recovered_pose=outcome.recovered_pose,
                                solutions=outcome.solutions,
                                inconsistencies=outcome.inconsistencies + (inconsistency,),
                                message=inconsistency.message)
        return outcome

    def _run_get_ik(self, q: np.ndarray, index: int) -> TrialOutcome:
        scenario = Scenario.GET_IK
        target, failed = self._generate_target(scenario, q, index)
        if failed is not None:
            return failed

        solution, status, message = self._call_ik(
            lambda: self.solver.get_position_ik(target, q))
        if status != KinematicErrorCode.SUCCESS:
            return self._ik_failure(scenario, index, q, target, status, message, "get_position_ik")
        return self._single_solution_outcome(scenario, index, q, target, solution)

    def _run_get_ik_multiple(self, q: np.ndarray, index: int) -> TrialOutcome:
        scenario = Scenario.GET_IK_MULTIPLE
        target, failed = self._generate_target(scenario, q, index)
        if failed is not None:
            return failed

        try:
            solutions, result = self.solver.get_position_ik_multiple([target], self.query_options)
        except SolverTimeoutError as e:
            return self._ik_failure(scenario, index, q, target, KinematicErrorCode.TIMED_OUT,
                                    str(e), "get_position_ik (multiple)")
        except InvalidInputError as e:
            return self._ik_failure(scenario, index, q, target, KinematicErrorCode.INVALID_INPUT,
                                    str(e), "get_position_ik (multiple)")
        except KinematicsSolverError as e:
            return self._ik_failure(scenario, index, q, target, KinematicErrorCode.FAILURE,
                                    str(e), "get_position_ik (multiple)")

        if not result.ok:
            return self._ik_failure(scenario, index, q, target, KinematicErrorCode.NO_IK_SOLUTION,
                                    f"kinematic error {result.kinematic_error.value}",
                                    "get_position_ik (multiple)")

        solutions = list(solutions or [])
        if not solutions:
            inconsistency = Inconsistency(scenario, index, TrialErrorKind.EMPTY_SOLUTION_SET,
                                          "result is OK but no solutions were returned",
                                          expected_pose=target, configuration=q)
            logger.error(inconsistency.describe())
            return TrialOutcome(scenario, index, False, TrialErrorKind.EMPTY_SOLUTION_SET,
                                configuration=q, target_pose=target,
                                inconsistencies=(inconsistency,), message=inconsistency.message)

        checked = []
        inconsistencies: List[Inconsistency] = []
        recovered = None
        for solution_index, solution in enumerate(solutions):
            solution, pose, problems = self._check_solution(scenario, index, target, solution,
                                                            solution_index)
            checked.append(solution)
            inconsistencies.extend(problems)
            if recovered is None and pose is not None:
                recovered = pose

        if inconsistencies:
            return TrialOutcome(scenario, index, False, inconsistencies[0].kind,
                                configuration=q, target_pose=target, recovered_pose=recovered,
                                solutions=tuple(checked), inconsistencies=tuple(inconsistencies),
                                message=f"{len(inconsistencies)} of {len(solutions)} solutions inconsistent")
        return TrialOutcome(scenario, index, True, configuration=q, target_pose=target,
                            recovered_pose=recovered, solutions=tuple(checked))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _forward(self, configuration: np.ndarray) -> Pose:
        """FK of the tip link; exactly one pose is required."""
        poses = self.solver.get_position_fk([self.tip_frame], configuration)
        if poses is None or len(poses) != 1:
            raise _PoseCountMismatch(0 if poses is None else len(poses))
        return poses[0]

    def _generate_target(self, scenario: Scenario, q: np.ndarray,
                         index: int) -> Tuple[Optional[Pose], Optional[TrialOutcome]]:
        """Step 2: compute the target pose; failures are not IK failures."""
        try:
            target = self._forward(q)
        except _PoseCountMismatch as e:
            inconsistency = Inconsistency(scenario, index, TrialErrorKind.POSE_COUNT_MISMATCH,
                                          str(e), configuration=q)
            logger.error(inconsistency.describe())
            return None, TrialOutcome(scenario, index, False, TrialErrorKind.INPUT_GENERATION_FAILED,
                                      configuration=q, inconsistencies=(inconsistency,),
                                      message=str(e))
        except KinematicsSolverError as e:
            logger.warning(f"Input generation failed on test {index + 1}: {e}")
            return None, TrialOutcome(scenario, index, False, TrialErrorKind.INPUT_GENERATION_FAILED,
                                      configuration=q, message=str(e))

        logger.debug(f"Pose: {target.position[0]:f} {target.position[1]:f} {target.position[2]:f}")
        logger.debug(f"Orient: {target.orientation[0]:f} {target.orientation[1]:f} "
                     f"{target.orientation[2]:f} {target.orientation[3]:f}")
        return target, None

    @staticmethod
    def _call_ik(call) -> Tuple[Optional[np.ndarray], KinematicErrorCode, str]:
        """Run an IK call, folding solver exceptions into status codes."""
        try:
            result = call()
        except SolverTimeoutError as e:
            return None, KinematicErrorCode.TIMED_OUT, str(e)
        except InvalidInputError as e:
            return None, KinematicErrorCode.INVALID_INPUT, str(e)
        except KinematicsSolverError as e:
            return None, KinematicErrorCode.FAILURE, str(e)

        try:
            solution, status = result
        except (TypeError, ValueError):
            return None, KinematicErrorCode.FAILURE, f"malformed IK result {result!r}"
        if not isinstance(status, KinematicErrorCode):
            return None, KinematicErrorCode.FAILURE, f"unrecognized IK status {status!r}"
        return solution, status, status.value

    def _ik_failure(self, scenario: Scenario, index: int, q: np.ndarray, target: Pose,
                    status: KinematicErrorCode, message: str, call_name: str) -> TrialOutcome:
        logger.error(f"{call_name} failed on test {index + 1} ({message})")
        kind = _STATUS_TO_KIND.get(status, TrialErrorKind.IK_FAILED)
        return TrialOutcome(scenario, index, False, kind, configuration=q,
                            target_pose=target, message=message)

    @staticmethod
    def _invalid_solution(scenario: Scenario, index: int, target: Pose, error: Exception,
                          solution_index: Optional[int] = None) -> Inconsistency:
        """A success claim whose configuration cannot even be read."""
        inconsistency = Inconsistency(scenario, index, TrialErrorKind.INVALID_SOLUTION,
                                      f"reported solution is not a valid configuration: {error}",
                                      expected_pose=target, solution_index=solution_index)
        logger.error(inconsistency.describe())
        return inconsistency

    def _check_solution(self, scenario: Scenario, index: int, target: Pose, solution,
                        solution_index: Optional[int] = None
                        ) -> Tuple[Optional[np.ndarray], Optional[Pose], List[Inconsistency]]:
        """Step 4: FK of a reported solution must reproduce the target."""
        try:
            solution = as_configuration(solution, self.n_joints)
        except (PoseModelError, TypeError, ValueError) as e:
            return None, None, [self._invalid_solution(scenario, index, target, e, solution_index)]

        try:
            recovered = self._forward(solution)
        except (KinematicsSolverError, _PoseCountMismatch) as e:
            inconsistency = Inconsistency(scenario, index, TrialErrorKind.ROUND_TRIP_MISMATCH,
                                          f"FK failed on reported solution: {e}",
                                          expected_pose=target, configuration=solution,
                                          solution_index=solution_index)
            logger.error(inconsistency.describe())
            return solution, None, [inconsistency]

        if not poses_close(target, recovered, self.position_tolerance, self.orientation_tolerance):
            components = mismatched_components(target, recovered, self.position_tolerance,
                                               self.orientation_tolerance)
            max_error = float(np.max(pose_differences(target, recovered)))
            inconsistency = Inconsistency(
                scenario, index, TrialErrorKind.ROUND_TRIP_MISMATCH,
                f"FK of IK solution differs on {', '.join(components)} (max error {max_error:.3e})",
                expected_pose=target, actual_pose=recovered, configuration=solution,
                solution_index=solution_index)
            logger.error(inconsistency.describe())
            return solution, recovered, [inconsistency]

        return solution, recovered, []

    def _single_solution_outcome(self, scenario: Scenario, index: int, q: np.ndarray,
                                 target: Pose, solution) -> TrialOutcome:
        checked, recovered, problems = self._check_solution(scenario, index, target, solution)
        solutions = (checked,) if checked is not None else ()
        if problems:
            return TrialOutcome(scenario, index, False, problems[0].kind, configuration=q,
                                target_pose=target, recovered_pose=recovered,
                                solutions=solutions, inconsistencies=tuple(problems),
                                message=problems[0].message)
        return TrialOutcome(scenario, index, True, configuration=q, target_pose=target,
                            recovered_pose=recovered, solutions=solutions)
