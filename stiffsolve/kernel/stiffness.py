# stiffsolve/kernel/stiffness.py
"""
ASSEMBLY: Keyed Global Stiffness Matrix
=======================================

PURPOSE:
--------
A StiffnessMatrix is a KeyedMatrix whose rows and columns are DOF
identifiers. Assembly is the usual scatter-add, but by KEY instead of by
integer offset:

    K = zeros(all model DOFs × all model DOFs)
    for each element stiffness ke (keyed by the element's DOFs):
        for each (row_key, col_key) in ke:
            K[row_key, col_key] += ke[row_key, col_key]

Shared DOFs (a node where several bars meet) simply accumulate.

Assembly does not care what the element is. It only needs each element's
stiffness matrix keyed by the DOFs it touches.
"""

from typing import Hashable, Iterable, List

import numpy as np

from .matrix import KeyedMatrix


class StiffnessMatrix(KeyedMatrix):
    """
    Keyed matrix relating nodal displacements to nodal forces.

    Physically symmetric, but symmetry is not enforced; use is_symmetric()
    to check an assembled matrix. Sub-blocks cut out with sub_matrix() are
    StiffnessMatrix instances too.
    """
    pass


def assemble_global_K(
    keys: Iterable[Hashable],
    contributions: List[KeyedMatrix],
) -> StiffnessMatrix:
    """
    Assemble the global stiffness matrix from keyed element contributions.

    Parameters:
    -----------
    keys : Iterable[Hashable]
        Every DOF of the model, in model order. These become both the row
        and the column keys of the result.
    contributions : List[KeyedMatrix]
        One keyed stiffness matrix per element. Every key it uses must be
        one of `keys`.

    Returns:
    --------
    StiffnessMatrix
        Global stiffness matrix keyed (keys × keys).

    Raises:
    -------
    KeyError
        If an element refers to a DOF the model does not have.
    """
    K = StiffnessMatrix(tuple(keys))
    data = np.zeros(K.shape, dtype=float)

    for ke in contributions:
        rows = [K.row_index_of(k) for k in ke.row_keys]
        columns = [K.column_index_of(k) for k in ke.column_keys]
        data[np.ix_(rows, columns)] += ke.to_array()

    return StiffnessMatrix(K.row_keys, K.column_keys, data)
