"""Demonstration solver plugins."""

from .gantry_wrist_solver import GantryWristSolver

__all__ = ['GantryWristSolver']
