#!/usr/bin/env python3
"""
Unit Tests for the Round-Trip Validator

Comprehensive test suite covering:
- FK -> IK -> FK round trips for every scenario
- Failure classification (IK failure, timeout, invalid input)
- Inconsistency detection (mismatched solutions, empty solution sets,
  callback violations, wrong pose counts)
- Input-generation failures and callback-skipped targets

Author: Robot Control Team
"""

import sys
import os
import unittest
import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from ik_conformance.src.pose_model import Pose, PoseModelError
from ik_conformance.src.robot_model import RobotModel
from ik_conformance.src.round_trip_validator import (
    RoundTripValidator, Scenario, TrialErrorKind, TipHeightPredicate, ALL_SCENARIOS
)
from ik_conformance.src.sampler import RandomConfigurationSampler
from ik_conformance.src.solver_interface import KinematicErrorCode
from ik_conformance.tests.fake_solvers import (
    ROBOT_DESCRIPTION, make_solver, FailingSolver, InconsistentSolver, EmptyMultiSolver,
    CallbackIgnoringSolver, RaisingSolver, FkFailingSolver, TwoPoseSolver,
    EmptySearchSolver, BareStatusSolver
)

IK_SCENARIOS = [s for s in ALL_SCENARIOS if s != Scenario.FORWARD_KINEMATICS]


def yaw_non_negative(ik_pose, joint_state):
    """Callback accepting only candidates with a non-negative wrist yaw."""
    if joint_state[3] >= 0.0:
        return KinematicErrorCode.SUCCESS
    return KinematicErrorCode.PLANNING_FAILED


class TestRoundTrip(unittest.TestCase):
    """Round trips against a correct solver."""

    def setUp(self):
        self.solver = make_solver()
        self.validator = RoundTripValidator(self.solver, timeout=5.0)
        model = RobotModel.from_yaml(ROBOT_DESCRIPTION, random_seed=11)
        self.sampler = RandomConfigurationSampler(model, self.solver)

    def test_zero_configuration(self):
        q0 = np.zeros(6)
        fk = self.validator.run_trial(Scenario.FORWARD_KINEMATICS, q0)
        self.assertTrue(fk.succeeded)
        np.testing.assert_allclose(fk.target_pose.position, [0.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(fk.target_pose.orientation, [0.0, 0.0, 0.0, 1.0], atol=1e-12)

        outcome = self.validator.run_trial(Scenario.GET_IK, q0)
        self.assertTrue(outcome.succeeded)
        self.assertEqual(outcome.error_kind, TrialErrorKind.NONE)
        np.testing.assert_allclose(outcome.recovered_pose.as_vector(),
                                   outcome.target_pose.as_vector(), atol=1e-4)

    def test_zero_configuration_seeded_search(self):
        q0 = np.zeros(6)
        p0 = [0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 1.0]
        # The default tip-height filter would skip q0 (tip on z = 0)
        validator = RoundTripValidator(self.solver, timeout=5.0,
                                       solution_callback=lambda pose, q: KinematicErrorCode.SUCCESS)

        for scenario in (Scenario.SEARCH_IK, Scenario.SEARCH_IK_WITH_CALLBACK):
            outcome = validator.run_trial(scenario, q0)
            self.assertTrue(outcome.succeeded, scenario.value)
            np.testing.assert_allclose(outcome.target_pose.as_vector(), p0, atol=1e-12)
            np.testing.assert_allclose(outcome.recovered_pose.as_vector(), p0, atol=1e-4)

    def test_all_scenarios_on_sampled_configurations(self):
        for index in range(10):
            q = self.sampler.sample()
            for scenario in ALL_SCENARIOS:
                outcome = self.validator.run_trial(scenario, q, index)
                self.assertTrue(outcome.succeeded, f"{scenario.value} failed: {outcome.message}")
                self.assertEqual(outcome.inconsistencies, ())

    def test_multiple_solutions_all_checked(self):
        q = np.array([0.1, 0.2, 0.5, 0.4, 0.1, -0.3])
        outcome = self.validator.run_trial(Scenario.GET_IK_MULTIPLE, q)
        self.assertTrue(outcome.succeeded)
        # yaw and roll each have two in-limit representations
        self.assertEqual(len(outcome.solutions), 4)

    def test_source_configuration_not_modified(self):
        q = np.array([0.1, 0.2, 0.5, 0.4, 0.1, -0.3])
        original = q.copy()
        for scenario in ALL_SCENARIOS:
            self.validator.run_trial(scenario, q)
        np.testing.assert_array_equal(q, original)

    def test_wrong_configuration_length(self):
        with self.assertRaises(PoseModelError):
            self.validator.run_trial(Scenario.GET_IK, np.zeros(5))

    def test_callback_scenario_with_custom_filter(self):
        validator = RoundTripValidator(self.solver, solution_callback=yaw_non_negative)
        q = np.array([0.0, 0.0, 0.5, 0.5, 0.2, 0.1])
        outcome = validator.run_trial(Scenario.SEARCH_IK_WITH_CALLBACK, q)
        self.assertTrue(outcome.succeeded)
        self.assertGreaterEqual(outcome.solutions[0][3], 0.0)

    def test_callback_rejected_target_is_skipped(self):
        validator = RoundTripValidator(self.solver, solution_callback=yaw_non_negative)
        q = np.array([0.0, 0.0, 0.5, -0.5, 0.2, 0.1])
        outcome = validator.run_trial(Scenario.SEARCH_IK_WITH_CALLBACK, q)
        self.assertFalse(outcome.succeeded)
        self.assertEqual(outcome.error_kind, TrialErrorKind.SKIPPED)
        self.assertFalse(outcome.counted)


class TestTipHeightPredicate(unittest.TestCase):
    """Test cases for the default solution callback."""

    def setUp(self):
        self.solver = make_solver()
        self.pose = Pose([0.0, 0.0, 0.5], [0.0, 0.0, 0.0, 1.0])

    def test_above_reference(self):
        predicate = TipHeightPredicate(self.solver)
        q = np.array([0.0, 0.0, 0.5, 0.0, 0.0, 0.0])
        self.assertEqual(predicate(self.pose, q), KinematicErrorCode.SUCCESS)

    def test_on_reference_plane_rejected(self):
        predicate = TipHeightPredicate(self.solver)
        q = np.zeros(6)
        self.assertEqual(predicate(self.pose, q), KinematicErrorCode.PLANNING_FAILED)

    def test_custom_reference_height(self):
        predicate = TipHeightPredicate(self.solver, reference_height=0.6)
        q = np.array([0.0, 0.0, 0.5, 0.0, 0.0, 0.0])
        self.assertEqual(predicate(self.pose, q), KinematicErrorCode.PLANNING_FAILED)

    def test_fk_failure_rejects(self):
        predicate = TipHeightPredicate(self.solver)
        self.assertEqual(predicate(self.pose, np.zeros(4)), KinematicErrorCode.PLANNING_FAILED)

    def test_zero_configuration_skipped_in_callback_scenario(self):
        # q0 puts the tip on z = 0, which the default filter rejects
        validator = RoundTripValidator(self.solver)
        outcome = validator.run_trial(Scenario.SEARCH_IK_WITH_CALLBACK, np.zeros(6))
        self.assertEqual(outcome.error_kind, TrialErrorKind.SKIPPED)


class TestFailureClassification(unittest.TestCase):
    """IK failures are trial failures, not inconsistencies."""

    def setUp(self):
        self.q = np.array([0.1, -0.1, 0.4, 0.3, 0.2, 0.1])

    def test_failing_solver(self):
        validator = RoundTripValidator(make_solver(FailingSolver))
        expected = {
            Scenario.SEARCH_IK: TrialErrorKind.IK_TIMED_OUT,
            Scenario.SEARCH_IK_WITH_CALLBACK: TrialErrorKind.IK_TIMED_OUT,
            Scenario.GET_IK: TrialErrorKind.IK_FAILED,
            Scenario.GET_IK_MULTIPLE: TrialErrorKind.IK_FAILED,
        }
        for scenario, kind in expected.items():
            outcome = validator.run_trial(scenario, self.q)
            self.assertFalse(outcome.succeeded)
            self.assertTrue(outcome.counted)
            self.assertEqual(outcome.error_kind, kind, scenario.value)
            self.assertEqual(outcome.inconsistencies, ())

        # FK itself still works
        self.assertTrue(validator.run_trial(Scenario.FORWARD_KINEMATICS, self.q).succeeded)

    def test_raising_solver(self):
        validator = RoundTripValidator(make_solver(RaisingSolver))
        self.assertEqual(validator.run_trial(Scenario.SEARCH_IK, self.q).error_kind,
                         TrialErrorKind.IK_TIMED_OUT)
        self.assertEqual(validator.run_trial(Scenario.GET_IK, self.q).error_kind,
                         TrialErrorKind.INVALID_INPUT)
        self.assertEqual(validator.run_trial(Scenario.GET_IK_MULTIPLE, self.q).error_kind,
                         TrialErrorKind.IK_FAILED)

    def test_fk_failure(self):
        validator = RoundTripValidator(make_solver(FkFailingSolver))
        outcome = validator.run_trial(Scenario.FORWARD_KINEMATICS, self.q)
        self.assertEqual(outcome.error_kind, TrialErrorKind.FK_FAILED)
        self.assertTrue(outcome.counted)

        for scenario in IK_SCENARIOS:
            outcome = validator.run_trial(scenario, self.q)
            self.assertEqual(outcome.error_kind, TrialErrorKind.INPUT_GENERATION_FAILED)
            self.assertFalse(outcome.counted)


class TestInconsistencies(unittest.TestCase):
    """Solver success claims that do not hold up."""

    def setUp(self):
        self.q = np.array([0.1, -0.1, 0.4, 0.3, 0.2, 0.1])

    def test_mismatched_solution(self):
        validator = RoundTripValidator(make_solver(InconsistentSolver))
        for scenario in (Scenario.SEARCH_IK, Scenario.SEARCH_IK_WITH_CALLBACK, Scenario.GET_IK):
            outcome = validator.run_trial(scenario, self.q, trial_index=3)
            self.assertFalse(outcome.succeeded)
            self.assertEqual(outcome.error_kind, TrialErrorKind.ROUND_TRIP_MISMATCH)
            self.assertEqual(len(outcome.inconsistencies), 1)

            inconsistency = outcome.inconsistencies[0]
            self.assertEqual(inconsistency.trial_index, 3)
            self.assertIn('x', inconsistency.message)
            self.assertIsNotNone(inconsistency.actual_pose)
            self.assertIn('test 4', inconsistency.describe())

    def test_one_bad_solution_in_multiple(self):
        validator = RoundTripValidator(make_solver(InconsistentSolver))
        outcome = validator.run_trial(Scenario.GET_IK_MULTIPLE, self.q)
        self.assertFalse(outcome.succeeded)
        self.assertEqual(len(outcome.solutions), 2)
        self.assertEqual(len(outcome.inconsistencies), 1)
        self.assertEqual(outcome.inconsistencies[0].solution_index, 1)

    def test_empty_solution_set(self):
        validator = RoundTripValidator(make_solver(EmptyMultiSolver))
        outcome = validator.run_trial(Scenario.GET_IK_MULTIPLE, self.q)
        self.assertFalse(outcome.succeeded)
        self.assertEqual(outcome.error_kind, TrialErrorKind.EMPTY_SOLUTION_SET)
        self.assertEqual(len(outcome.inconsistencies), 1)

    def test_callback_violation(self):
        validator = RoundTripValidator(make_solver(CallbackIgnoringSolver),
                                       solution_callback=yaw_non_negative)
        q = np.array([0.0, 0.0, 0.5, 0.5, 0.2, 0.1])
        outcome = validator.run_trial(Scenario.SEARCH_IK_WITH_CALLBACK, q)
        self.assertFalse(outcome.succeeded)
        self.assertEqual(outcome.error_kind, TrialErrorKind.CALLBACK_PREDICATE_VIOLATED)
        self.assertLess(outcome.solutions[0][3], 0.0)
        kinds = [i.kind for i in outcome.inconsistencies]
        self.assertIn(TrialErrorKind.CALLBACK_PREDICATE_VIOLATED, kinds)

    def test_pose_count_mismatch(self):
        validator = RoundTripValidator(make_solver(TwoPoseSolver))
        outcome = validator.run_trial(Scenario.GET_IK, self.q)
        self.assertEqual(outcome.error_kind, TrialErrorKind.INPUT_GENERATION_FAILED)
        self.assertEqual(outcome.inconsistencies[0].kind, TrialErrorKind.POSE_COUNT_MISMATCH)

        outcome = validator.run_trial(Scenario.FORWARD_KINEMATICS, self.q)
        self.assertEqual(outcome.error_kind, TrialErrorKind.POSE_COUNT_MISMATCH)

    def test_pose_count_mismatch_logged_in_forward_kinematics(self):
        validator = RoundTripValidator(make_solver(TwoPoseSolver))
        with self.assertLogs('ik_conformance.src.round_trip_validator', level='ERROR') as logs:
            validator.run_trial(Scenario.FORWARD_KINEMATICS, self.q)
        self.assertIn('pose_count_mismatch', logs.output[0])

    def test_search_success_without_solution(self):
        validator = RoundTripValidator(make_solver(EmptySearchSolver))
        outcome = validator.run_trial(Scenario.SEARCH_IK, self.q)
        self.assertFalse(outcome.succeeded)
        self.assertTrue(outcome.counted)
        self.assertEqual(outcome.error_kind, TrialErrorKind.INVALID_SOLUTION)
        self.assertEqual(len(outcome.inconsistencies), 1)
        self.assertEqual(outcome.inconsistencies[0].kind, TrialErrorKind.INVALID_SOLUTION)

    def test_unrecognized_status_is_failure(self):
        validator = RoundTripValidator(make_solver(BareStatusSolver))
        for scenario in (Scenario.GET_IK, Scenario.SEARCH_IK, Scenario.SEARCH_IK_WITH_CALLBACK):
            outcome = validator.run_trial(scenario, self.q)
            self.assertFalse(outcome.succeeded)
            self.assertEqual(outcome.error_kind, TrialErrorKind.IK_FAILED, scenario.value)
            self.assertIn('unrecognized IK status', outcome.message)


if __name__ == '__main__':
    unittest.main(verbosity=2)
