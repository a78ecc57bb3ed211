#!/usr/bin/env python3
"""
Metadata Conformance Checker

One-shot check, run before any trial batch, that the solver reports the
chain it was configured for: base frame, tip frame, group name and the
exact ordered joint-name list. Any mismatch is fatal for the remaining
scenarios of that solver instance.

Author: Robot Control Team
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .solver_interface import MetadataMismatchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpectedChain:
    """Externally configured chain the solver must report."""
    group_name: str
    root_link: str
    tip_link: str
    joint_names: tuple
    plugin_name: Optional[str] = None

    @classmethod
    def create(cls, group_name: str, root_link: str, tip_link: str,
               joint_names: Sequence[str], plugin_name: Optional[str] = None) -> 'ExpectedChain':
        return cls(group_name, root_link, tip_link, tuple(joint_names), plugin_name)


@dataclass
class MetadataReport:
    """Result of a metadata conformance check."""
    expected: ExpectedChain
    reported: Dict[str, object] = field(default_factory=dict)
    mismatches: List[str] = field(default_factory=list)

    @property
    def conforms(self) -> bool:
        return not self.mismatches

    def raise_for_status(self):
        if self.mismatches:
            raise MetadataMismatchError("; ".join(self.mismatches))

    def to_dict(self) -> Dict[str, object]:
        return {
            'conforms': self.conforms,
            'expected': {
                'group_name': self.expected.group_name,
                'root_link': self.expected.root_link,
                'tip_link': self.expected.tip_link,
                'joint_names': list(self.expected.joint_names),
                'plugin_name': self.expected.plugin_name,
            },
            'reported': dict(self.reported),
            'mismatches': list(self.mismatches),
        }


class MetadataConformanceChecker:
    """Compares solver-reported chain metadata against an ExpectedChain."""

    def __init__(self, expected: ExpectedChain):
        self.expected = expected

    def check(self, solver) -> MetadataReport:
        """
        Compare solver metadata with the expected chain.

        Accessors are queried twice; values that change between calls are
        reported as mismatches too.

        Args:
            solver: KinematicsSolver under test

        Returns:
            MetadataReport listing every mismatch (empty if conformant)
        """
        expected = self.expected
        report = MetadataReport(expected=expected)

        base_frame = self._stable(solver.get_base_frame, 'base frame', report)
        tip_frame = self._stable(solver.get_tip_frame, 'tip frame', report)
        group_name = self._stable(solver.get_group_name, 'group name', report)
        joint_names = list(self._stable(solver.get_joint_names, 'joint names', report))

        report.reported = {
            'base_frame': base_frame,
            'tip_frame': tip_frame,
            'group_name': group_name,
            'joint_names': joint_names,
        }

        if base_frame != expected.root_link:
            report.mismatches.append(
                f"Base frame '{base_frame}' differs from expected root link '{expected.root_link}'")
        if tip_frame != expected.tip_link:
            report.mismatches.append(
                f"Tip frame '{tip_frame}' differs from expected tip link '{expected.tip_link}'")
        if group_name != expected.group_name:
            report.mismatches.append(
                f"Group name '{group_name}' differs from expected group '{expected.group_name}'")

        if len(joint_names) != len(expected.joint_names):
            report.mismatches.append(
                f"Solver reports {len(joint_names)} joints, expected {len(expected.joint_names)}")
        for i, (actual, wanted) in enumerate(zip(joint_names, expected.joint_names)):
            if actual != wanted:
                report.mismatches.append(
                    f"Joint names differ at index {i}: '{actual}' != '{wanted}'")
                break

        if report.conforms:
            logger.info("✅ Solver chain metadata matches configuration")
        else:
            for mismatch in report.mismatches:
                logger.error(mismatch)
        return report

    def verify(self, solver) -> MetadataReport:
        """Check and raise MetadataMismatchError on any mismatch."""
        report = self.check(solver)
        report.raise_for_status()
        return report

    @staticmethod
    def _stable(accessor, label: str, report: MetadataReport):
        first = accessor()
        second = accessor()
        if isinstance(first, (list, tuple)):
            first, second = list(first), list(second)
        if first != second:
            report.mismatches.append(f"Solver {label} is not stable across calls: {first!r} != {second!r}")
        return first
