# stiffsolve - Partitioned linear static solver on keyed linear algebra
"""
STIFFSOLVE: Static Linear Finite Element Solver
===============================================

This package provides:
- Keyed linear algebra (vectors/matrices addressed by DOF identifiers)
- Partitioned solve of K·U = F for unknown displacements and reactions
- Two interchangeable numeric kernels: matrix inversion and SVD
- Mechanism (rigid body motion) detection before solving

ARCHITECTURE:
-------------
    kernel/         Keyed vectors/matrices, assembly, SVD, solve strategies
    model.py        Nodes, bars, constraints, loads
    elements.py     Keyed bar stiffness and axial force recovery
    assembly.py     Global stiffness builder and K11/K12/K21/K22 blocks
    solver.py       LinearSolver (partitioned solve)
    results.py      Displacements and reactions by node / DOF
    config.py       Tolerances and defaults
"""

from .config import CONFIG, SolverConfig
from .kernel import (
    DegreeOfFreedom,
    InvalidModelError,
    KeyedMatrix,
    KeyedSvd,
    KeyedVector,
    KeyMismatchError,
    MechanismError,
    ModelType,
    NodalDegreeOfFreedom,
    SingularVectorsNotComputedError,
    SolveStrategy,
    StiffnessMatrix,
)
from .model import FiniteElementModel, Node3D, Truss3D
from .results import FiniteElementResults, NodalValues
from .solver import LinearSolver, solve_model

__version__ = "0.1.0"

__all__ = [
    'CONFIG', 'SolverConfig',
    'DegreeOfFreedom', 'ModelType', 'NodalDegreeOfFreedom',
    'KeyedVector', 'KeyedMatrix', 'StiffnessMatrix', 'KeyedSvd',
    'KeyMismatchError', 'InvalidModelError', 'MechanismError', 'SingularVectorsNotComputedError',
    'SolveStrategy', 'FiniteElementModel', 'Node3D', 'Truss3D',
    'FiniteElementResults', 'NodalValues', 'LinearSolver', 'solve_model',
]
