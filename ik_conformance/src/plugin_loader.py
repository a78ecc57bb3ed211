#!/usr/bin/env python3
"""
Solver plugin loader.

A solver name resolves, in order, to:
1. a factory registered with SolverLoader.register()
2. an installed entry point in the 'ik_conformance.solvers' group
3. an import path of the form 'package.module:ClassName'

The harness never discovers solvers itself; it only consumes the instance
this factory produces.
"""

import importlib
import logging
from importlib.metadata import entry_points
from typing import Callable, Dict, List

from .solver_interface import (
    KinematicsSolver, SolverInitParams, PluginLoadError, SolverInitializationError
)

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "ik_conformance.solvers"

REQUIRED_METHODS = (
    'initialize', 'get_base_frame', 'get_tip_frame', 'get_joint_names', 'get_group_name',
    'get_position_fk', 'get_position_ik', 'search_position_ik', 'get_position_ik_multiple',
)


class SolverLoader:
    """Factory for kinematics solver instances."""

    def __init__(self):
        self._factories: Dict[str, Callable[[], KinematicsSolver]] = {}

    def register(self, name: str, factory: Callable[[], KinematicsSolver]):
        """Register a zero-argument factory (usually a class) under a name."""
        self._factories[name] = factory

    def available(self) -> List[str]:
        """Names resolvable without an import path."""
        names = set(self._factories)
        names.update(ep.name for ep in entry_points(group=ENTRY_POINT_GROUP))
        return sorted(names)

    def create_instance(self, name: str) -> KinematicsSolver:
        """
        Instantiate a solver by name.

        Raises:
            PluginLoadError: If the name cannot be resolved or instantiated
        """
        logger.info(f"Loading {name}")
        factory = self._resolve(name)
        try:
            solver = factory()
        except Exception as e:
            raise PluginLoadError(f"Plugin failed to load: {name}: {e}") from e

        missing = [m for m in REQUIRED_METHODS if not callable(getattr(solver, m, None))]
        if missing:
            raise PluginLoadError(
                f"Plugin {name} does not provide the solver interface (missing: {', '.join(missing)})"
            )
        return solver

    def load_solver(self, name: str, params: SolverInitParams) -> KinematicsSolver:
        """
        Instantiate and initialize a solver.

        Raises:
            PluginLoadError: Solver cannot be instantiated
            SolverInitializationError: initialize() returned False or raised
        """
        solver = self.create_instance(name)
        try:
            initialized = solver.initialize(params)
        except Exception as e:
            raise SolverInitializationError(f"Kinematics solver failed to initialize: {e}") from e
        if not initialized:
            raise SolverInitializationError(
                f"Kinematics solver {name} failed to initialize for group '{params.group_name}'"
            )
        logger.info("Kinematics solver plugin initialized")
        return solver

    def _resolve(self, name: str) -> Callable[[], KinematicsSolver]:
        if name in self._factories:
            return self._factories[name]

        for ep in entry_points(group=ENTRY_POINT_GROUP):
            if ep.name == name:
                try:
                    return ep.load()
                except Exception as e:
                    raise PluginLoadError(f"Plugin failed to load: {name}: {e}") from e

        if ':' in name:
            module_name, _, attr = name.partition(':')
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                raise PluginLoadError(f"Plugin failed to load: {name}: {e}") from e
            factory = getattr(module, attr, None)
            if factory is None:
                raise PluginLoadError(f"Plugin failed to load: {module_name} has no attribute {attr}")
            return factory

        raise PluginLoadError(f"The plugin {name} was not found")
