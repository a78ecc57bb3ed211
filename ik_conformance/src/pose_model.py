#!/usr/bin/env python3
"""
Pose and Joint Configuration Model

Value types shared by every part of the conformance harness:
- JointConfiguration: read-only numpy vector of joint positions
- Pose: position (x, y, z) + unit quaternion orientation (x, y, z, w)
- Component-wise closeness predicate used by the round-trip check

Author: Robot Control Team
"""

import numpy as np
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple
from scipy.spatial.transform import Rotation as R

# Default round-trip tolerances (per component)
POSITION_TOLERANCE = 1e-4
ORIENTATION_TOLERANCE = 1e-4

POSE_COMPONENTS = ('x', 'y', 'z', 'qx', 'qy', 'qz', 'qw')


class PoseModelError(ValueError):
    """Raised when a pose or configuration cannot be constructed."""
    pass


def as_configuration(values: Iterable[float], n_joints: Optional[int] = None) -> np.ndarray:
    """
    Build a read-only joint configuration from any sequence of numbers.

    A fresh copy is always made so callers can never mutate a configuration
    held by someone else.

    Args:
        values: Joint positions
        n_joints: Expected length (optional)

    Returns:
        1D float64 array with the write flag cleared

    Raises:
        PoseModelError: If values are not 1D or the length is wrong
    """
    q = np.array(values, dtype=float, copy=True)
    if q.ndim != 1:
        raise PoseModelError(f"Joint configuration must be 1D, got shape {q.shape}")
    if n_joints is not None and q.shape[0] != n_joints:
        raise PoseModelError(
            f"Joint configuration must have {n_joints} values, got {q.shape[0]}"
        )
    q.setflags(write=False)
    return q


def zero_configuration(n_joints: int) -> np.ndarray:
    """Read-only all-zero configuration (the default IK seed)."""
    return as_configuration(np.zeros(n_joints))


def _canonical_quaternion(quat: np.ndarray) -> np.ndarray:
    """Normalize and flip the sign so that w >= 0."""
    quat = np.asarray(quat, dtype=float)
    n = np.linalg.norm(quat)
    if n < 1e-12:
        raise PoseModelError("Quaternion has zero norm")
    quat = quat / n
    if quat[3] < 0.0:
        quat = -quat
    return quat


@dataclass(frozen=True)
class Pose:
    """Rigid transform: position (x, y, z) and orientation quaternion (x, y, z, w)."""
    position: np.ndarray
    orientation: np.ndarray

    def __post_init__(self):
        position = np.array(self.position, dtype=float, copy=True).reshape(-1)
        orientation = np.array(self.orientation, dtype=float, copy=True).reshape(-1)
        if position.shape != (3,):
            raise PoseModelError(f"Pose position must have 3 components, got {position.shape}")
        if orientation.shape != (4,):
            raise PoseModelError(f"Pose orientation must have 4 components, got {orientation.shape}")
        position.setflags(write=False)
        orientation.setflags(write=False)
        object.__setattr__(self, 'position', position)
        object.__setattr__(self, 'orientation', orientation)

    @classmethod
    def from_matrix(cls, T: np.ndarray) -> 'Pose':
        """
        Create a pose from a 4x4 homogeneous transform.

        The quaternion is canonicalized (w >= 0) so equal rotations always
        produce equal components.
        """
        T = np.asarray(T, dtype=float)
        if T.shape != (4, 4):
            raise PoseModelError(f"Transform must be 4x4, got {T.shape}")
        quat = R.from_matrix(T[:3, :3]).as_quat()
        return cls(T[:3, 3], _canonical_quaternion(quat))

    @classmethod
    def from_position_euler(cls, position: Sequence[float], angles: Sequence[float],
                            sequence: str = 'ZYX') -> 'Pose':
        """Create a pose from a position and intrinsic euler angles (radians)."""
        quat = R.from_euler(sequence, angles).as_quat()
        return cls(position, _canonical_quaternion(quat))

    @classmethod
    def from_vector(cls, values: Sequence[float]) -> 'Pose':
        """Create a pose from [x, y, z, qx, qy, qz, qw]."""
        values = np.asarray(values, dtype=float).reshape(-1)
        if values.shape != (7,):
            raise PoseModelError(f"Pose vector must have 7 components, got {values.shape}")
        return cls(values[:3], values[3:])

    def to_matrix(self) -> np.ndarray:
        """4x4 homogeneous transform of this pose."""
        T = np.eye(4)
        T[:3, :3] = R.from_quat(self.orientation).as_matrix()
        T[:3, 3] = self.position
        return T

    def as_vector(self) -> np.ndarray:
        """All seven components [x, y, z, qx, qy, qz, qw]."""
        return np.concatenate([self.position, self.orientation])

    def to_dict(self) -> dict:
        return {name: float(value) for name, value in zip(POSE_COMPONENTS, self.as_vector())}

    def __eq__(self, other):
        if not isinstance(other, Pose):
            return NotImplemented
        return (np.array_equal(self.position, other.position) and
                np.array_equal(self.orientation, other.orientation))

    def __hash__(self):
        return hash(tuple(self.as_vector()))

    def __repr__(self):
        p = self.position
        o = self.orientation
        return (f"Pose(position=[{p[0]:.6f}, {p[1]:.6f}, {p[2]:.6f}], "
                f"orientation=[{o[0]:.6f}, {o[1]:.6f}, {o[2]:.6f}, {o[3]:.6f}])")


def pose_differences(expected: Pose, actual: Pose) -> np.ndarray:
    """Absolute difference of every pose component, in POSE_COMPONENTS order."""
    return np.abs(expected.as_vector() - actual.as_vector())


def poses_close(expected: Pose, actual: Pose,
                position_tolerance: float = POSITION_TOLERANCE,
                orientation_tolerance: float = ORIENTATION_TOLERANCE) -> bool:
    """
    Check that two poses match on every component.

    Position: |expected - actual| <= position_tolerance on each axis.
    Orientation: |expected - actual| <= orientation_tolerance on each
    quaternion component (no sign folding).
    """
    diff = pose_differences(expected, actual)
    return bool(np.all(diff[:3] <= position_tolerance) and
                np.all(diff[3:] <= orientation_tolerance))


def mismatched_components(expected: Pose, actual: Pose,
                          position_tolerance: float = POSITION_TOLERANCE,
                          orientation_tolerance: float = ORIENTATION_TOLERANCE) -> Tuple[str, ...]:
    """Names of the components that exceed their tolerance."""
    diff = pose_differences(expected, actual)
    limits = [position_tolerance] * 3 + [orientation_tolerance] * 4
    return tuple(name for name, d, limit in zip(POSE_COMPONENTS, diff, limits) if d > limit)
