#!/usr/bin/env python3
"""
Setup script for Kinematics Solver Conformance Package
"""

from setuptools import setup, find_packages

setup(
    name="ik_conformance",
    version="1.0.0",
    description="Round-trip conformance harness for pluggable IK/FK solvers",
    author="Thorn",
    packages=find_packages(include=["ik_conformance", "ik_conformance.*"]),
    package_data={
        "ik_conformance": ["config/*.yaml"],
    },
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.19.0",
        "scipy>=1.5.0",
        "PyYAML>=5.4",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ik-conformance=ik_conformance.src.cli:main",
        ],
        "ik_conformance.solvers": [
            "gantry_wrist=ik_conformance.examples.gantry_wrist_solver:GantryWristSolver",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
