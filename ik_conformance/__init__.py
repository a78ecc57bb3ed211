"""
Kinematics Solver Conformance Package
=====================================

Validates pluggable inverse/forward kinematics solvers for articulated arms:
chain metadata, FK availability, and FK -> IK -> FK round trips for the
plain, seeded search, callback-filtered and multi-solution IK variants.

Package Structure:
- src/: Core harness modules
- config/: Default harness configuration and a demo robot description
- examples/: Demonstration solver plugin
- tests/: Unit and end-to-end tests

Author: Robot Control Team
"""

__version__ = "1.0.0"
__author__ = "Robot Control Team"

from .src import (
    ConformanceHarness,
    HarnessFixture,
    HarnessConfig,
    KinematicsSolver,
    Pose,
    Scenario,
)

__all__ = [
    'ConformanceHarness',
    'HarnessFixture',
    'HarnessConfig',
    'KinematicsSolver',
    'Pose',
    'Scenario',
]
