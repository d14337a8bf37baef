# stiffsolve/kernel - Keyed linear algebra and the numeric solve kernel
"""
KERNEL: KEYED LINEAR ALGEBRA
============================

Everything here works on vectors and matrices addressed by keys instead of
integer offsets. The kernel knows nothing about nodes, elements or loads
beyond the DOF identifier type:

- KeyedVector / KeyedMatrix: dense storage with key-checked algebra
- StiffnessMatrix, assemble_global_K: scatter-add by DOF key
- KeyedSvd: singular value decomposition with pseudo-inverse solve
- solve_linear, SolveStrategy: pluggable K·x = F kernel
- MechanismError: raised for singular (rigid body) stiffness blocks
"""

from .dof import DegreeOfFreedom, DOFManager, ModelType, NodalDegreeOfFreedom
from .vector import KeyedVector, KeyMismatchError
from .matrix import KeyedMatrix
from .stiffness import StiffnessMatrix, assemble_global_K
from .svd import KeyedSvd, SingularVectorsNotComputedError
from .solve import InvalidModelError, MechanismError, SolveStrategy, solve_linear

__all__ = [
    'DegreeOfFreedom', 'DOFManager', 'ModelType', 'NodalDegreeOfFreedom',
    'KeyedVector', 'KeyMismatchError', 'KeyedMatrix',
    'StiffnessMatrix', 'assemble_global_K',
    'KeyedSvd', 'SingularVectorsNotComputedError',
    'InvalidModelError', 'MechanismError', 'SolveStrategy', 'solve_linear',
]
