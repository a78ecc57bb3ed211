#!/usr/bin/env python3
"""
Unit Tests for the Pose and Joint Configuration Model

Covers:
- Read-only joint configurations
- Pose construction from matrices, euler angles and vectors
- Quaternion canonicalization
- Component-wise closeness predicate

Author: Robot Control Team
"""

import sys
import os
import unittest
import dataclasses
import numpy as np
from scipy.spatial.transform import Rotation as R

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from ik_conformance.src.pose_model import (
    Pose, PoseModelError, as_configuration, zero_configuration,
    poses_close, mismatched_components, pose_differences
)


class TestJointConfiguration(unittest.TestCase):
    """Test cases for joint configuration helpers."""

    def test_configuration_is_read_only_copy(self):
        values = np.array([0.1, 0.2, 0.3])
        q = as_configuration(values)
        values[0] = 5.0
        self.assertAlmostEqual(q[0], 0.1)
        with self.assertRaises(ValueError):
            q[0] = 1.0

    def test_configuration_length_checked(self):
        with self.assertRaises(PoseModelError):
            as_configuration([0.0, 0.0], n_joints=6)

    def test_configuration_must_be_1d(self):
        with self.assertRaises(PoseModelError):
            as_configuration(np.zeros((2, 3)))

    def test_zero_configuration(self):
        q = zero_configuration(6)
        self.assertEqual(q.shape, (6,))
        self.assertTrue(np.all(q == 0.0))
        self.assertFalse(q.flags.writeable)


class TestPose(unittest.TestCase):
    """Test cases for the Pose value type."""

    def test_identity_from_matrix(self):
        pose = Pose.from_matrix(np.eye(4))
        np.testing.assert_allclose(pose.position, [0.0, 0.0, 0.0])
        np.testing.assert_allclose(pose.orientation, [0.0, 0.0, 0.0, 1.0])

    def test_matrix_round_trip(self):
        T = np.eye(4)
        T[:3, :3] = R.from_euler('xyz', [0.3, -0.2, 1.1]).as_matrix()
        T[:3, 3] = [0.4, -0.1, 0.7]
        pose = Pose.from_matrix(T)
        np.testing.assert_allclose(pose.to_matrix(), T, atol=1e-12)

    def test_quaternion_canonicalized(self):
        # Yaw of 2*pi yields w = -1 before canonicalization
        pose = Pose.from_position_euler([0.0, 0.0, 0.0], [2 * np.pi, 0.0, 0.0])
        self.assertGreaterEqual(pose.orientation[3], 0.0)
        np.testing.assert_allclose(pose.orientation, [0.0, 0.0, 0.0, 1.0], atol=1e-12)

    def test_from_vector(self):
        pose = Pose.from_vector([1, 2, 3, 0, 0, 0, 1])
        np.testing.assert_allclose(pose.as_vector(), [1, 2, 3, 0, 0, 0, 1])
        with self.assertRaises(PoseModelError):
            Pose.from_vector([1, 2, 3])

    def test_invalid_shapes(self):
        with self.assertRaises(PoseModelError):
            Pose([0.0, 0.0], [0.0, 0.0, 0.0, 1.0])
        with self.assertRaises(PoseModelError):
            Pose([0.0, 0.0, 0.0], [0.0, 0.0, 1.0])

    def test_pose_is_immutable(self):
        pose = Pose([0.0, 0.0, 0.0], [0.0, 0.0, 0.0, 1.0])
        with self.assertRaises(dataclasses.FrozenInstanceError):
            pose.position = np.ones(3)
        with self.assertRaises(ValueError):
            pose.position[0] = 1.0

    def test_equality_and_dict(self):
        a = Pose([0.1, 0.2, 0.3], [0.0, 0.0, 0.0, 1.0])
        b = Pose([0.1, 0.2, 0.3], [0.0, 0.0, 0.0, 1.0])
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))
        self.assertEqual(a.to_dict()['z'], 0.3)
        self.assertEqual(a.to_dict()['qw'], 1.0)


class TestPoseCloseness(unittest.TestCase):
    """Test cases for the round-trip comparison predicate."""

    def setUp(self):
        self.pose = Pose([0.1, 0.2, 0.3], [0.0, 0.0, 0.0, 1.0])

    def test_identical_poses_close(self):
        self.assertTrue(poses_close(self.pose, self.pose))

    def test_position_within_tolerance(self):
        other = Pose([0.1 + 5e-5, 0.2, 0.3], [0.0, 0.0, 0.0, 1.0])
        self.assertTrue(poses_close(self.pose, other))

    def test_position_outside_tolerance(self):
        other = Pose([0.1, 0.2, 0.3 + 2e-4], [0.0, 0.0, 0.0, 1.0])
        self.assertFalse(poses_close(self.pose, other))
        self.assertEqual(mismatched_components(self.pose, other), ('z',))

    def test_orientation_outside_tolerance(self):
        other = Pose([0.1, 0.2, 0.3], [0.0, 0.0, 2e-4, 1.0])
        self.assertFalse(poses_close(self.pose, other))
        self.assertEqual(mismatched_components(self.pose, other), ('qz',))

    def test_custom_tolerance(self):
        other = Pose([0.1 + 1e-3, 0.2, 0.3], [0.0, 0.0, 0.0, 1.0])
        self.assertFalse(poses_close(self.pose, other))
        self.assertTrue(poses_close(self.pose, other, position_tolerance=1e-2))

    def test_no_sign_folding(self):
        # Same rotation, opposite quaternion sign: compared component-wise
        other = Pose([0.1, 0.2, 0.3], [0.0, 0.0, 0.0, -1.0])
        self.assertFalse(poses_close(self.pose, other))

    def test_differences(self):
        other = Pose([0.2, 0.2, 0.3], [0.0, 0.0, 0.0, 1.0])
        diff = pose_differences(self.pose, other)
        self.assertEqual(diff.shape, (7,))
        self.assertAlmostEqual(diff[0], 0.1)


if __name__ == '__main__':
    unittest.main(verbosity=2)
