#!/usr/bin/env python3
"""
Unit Tests for Harness Configuration Loading

Author: Robot Control Team
"""

import sys
import os
import unittest
import tempfile
import shutil
import yaml

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from ik_conformance.src.config import HarnessConfig
from ik_conformance.src.round_trip_validator import Scenario, ALL_SCENARIOS
from ik_conformance.src.solver_interface import ConfigurationError
from ik_conformance.tests.fake_solvers import HARNESS_CONFIG, ROBOT_DESCRIPTION, JOINT_NAMES


def _minimal(**overrides):
    data = {
        'ik_plugin_name': 'gantry_wrist',
        'group': 'manipulator',
        'root_link': 'base_link',
        'tip_link': 'tool0',
        'joint_names': list(JOINT_NAMES),
        'robot_description': ROBOT_DESCRIPTION,
    }
    data.update(overrides)
    return data


class TestHarnessConfig(unittest.TestCase):
    """Test cases for HarnessConfig."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _write(self, data, name='harness.yaml'):
        path = os.path.join(self.temp_dir, name)
        with open(path, 'w') as f:
            yaml.safe_dump(data, f)
        return path

    def test_default_configuration(self):
        config = HarnessConfig.from_yaml(HARNESS_CONFIG)
        self.assertEqual(config.group, 'manipulator')
        self.assertEqual(config.joint_names, JOINT_NAMES)
        self.assertEqual(config.num_ik_tests, 100)
        self.assertEqual(config.timeout, 5.0)
        self.assertEqual(config.min_success_rate, 0.99)
        self.assertEqual(config.scenario_list(), list(ALL_SCENARIOS))
        self.assertTrue(os.path.isabs(config.robot_description))
        self.assertTrue(os.path.exists(config.robot_description))

    def test_defaults_applied(self):
        config = HarnessConfig.from_dict(_minimal())
        self.assertEqual(config.num_fk_tests, 100)
        self.assertEqual(config.search_discretization, 0.01)
        self.assertEqual(config.position_tolerance, 1e-4)
        self.assertIsNone(config.report_path)

    def test_relative_paths_resolved(self):
        path = self._write(_minimal(robot_description='robot.yaml', report_path='out/report.json'))
        config = HarnessConfig.from_yaml(path)
        self.assertEqual(config.robot_description, os.path.join(self.temp_dir, 'robot.yaml'))
        self.assertEqual(config.report_path, os.path.join(self.temp_dir, 'out', 'report.json'))

    def test_missing_required_keys(self):
        data = _minimal()
        del data['tip_link']
        data['joint_names'] = []
        with self.assertRaises(ConfigurationError) as ctx:
            HarnessConfig.from_dict(data)
        self.assertIn('tip_link', str(ctx.exception))
        self.assertIn('joint_names', str(ctx.exception))

    def test_invalid_values(self):
        invalid = [
            {'num_ik_tests': 0},
            {'num_fk_tests': 'many'},
            {'timeout': -1.0},
            {'position_tolerance': 0},
            {'min_success_rate': 1.5},
            {'min_success_rate': 'high'},
            {'scenarios': ['get_ik', 'teleport']},
            {'joint_names': 'gantry_x'},
        ]
        for overrides in invalid:
            with self.assertRaises(ConfigurationError, msg=str(overrides)):
                HarnessConfig.from_dict(_minimal(**overrides))

    def test_unknown_keys_warned(self):
        with self.assertLogs('ik_conformance.src.config', level='WARNING') as logs:
            HarnessConfig.from_dict(_minimal(planner='rrt'))
        self.assertIn('planner', logs.output[0])

    def test_missing_file(self):
        with self.assertRaises(ConfigurationError):
            HarnessConfig.from_yaml(os.path.join(self.temp_dir, 'missing.yaml'))

    def test_not_a_mapping(self):
        path = os.path.join(self.temp_dir, 'list.yaml')
        with open(path, 'w') as f:
            f.write("- a\n- b\n")
        with self.assertRaises(ConfigurationError):
            HarnessConfig.from_yaml(path)

    def test_with_overrides(self):
        config = HarnessConfig.from_dict(_minimal())
        updated = config.with_overrides(num_ik_tests=10, timeout=None, scenarios=['get_ik'])
        self.assertEqual(updated.num_ik_tests, 10)
        self.assertEqual(updated.timeout, config.timeout)
        self.assertEqual(updated.scenario_list(), [Scenario.GET_IK])
        self.assertEqual(config.num_ik_tests, 100)

        with self.assertRaises(ConfigurationError):
            config.with_overrides(num_ik_tests=-3)

    def test_expected_chain_and_solver_params(self):
        config = HarnessConfig.from_dict(_minimal())
        chain = config.expected_chain()
        self.assertEqual(chain.root_link, 'base_link')
        self.assertEqual(chain.joint_names, tuple(JOINT_NAMES))
        self.assertEqual(chain.plugin_name, 'gantry_wrist')

        params = config.solver_params()
        self.assertEqual(params.group_name, 'manipulator')
        self.assertEqual(params.tip_frame, 'tool0')
        self.assertEqual(params.search_discretization, 0.01)


if __name__ == '__main__':
    unittest.main(verbosity=2)
