# stiffsolve/kernel/dof.py
"""
DOF MANAGER: Keyed Degree of Freedom Identifiers
================================================

PURPOSE:
--------
Every vector and matrix in the solver is addressed by DOF identifiers
instead of bare integer offsets:

    NodalDegreeOfFreedom(node=2, dof=DegreeOfFreedom.Z)   # "N2.Z"

This means a sub-block of the stiffness matrix can be cut out, multiplied
and added without anyone keeping track of which row index belongs to which
node. The keys travel with the numbers.

The DOFs a node carries depend on the kind of model:

    Truss 1D:  X
    Truss 2D:  X, Y
    Truss 3D:  X, Y, Z

USAGE:
------
    dof = DOFManager(ModelType.TRUSS_3D)
    dof.node_dofs(2)              # [N2.X, N2.Y, N2.Z]
    dof.element_dof_map([0, 1])   # [N0.X, N0.Y, N0.Z, N1.X, N1.Y, N1.Z]
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import List, Tuple


class DegreeOfFreedom(IntEnum):
    """Direction of a nodal degree of freedom (translations, then rotations)."""
    X = 0
    Y = 1
    Z = 2
    XX = 3
    YY = 4
    ZZ = 5


TRANSLATIONS = (DegreeOfFreedom.X, DegreeOfFreedom.Y, DegreeOfFreedom.Z)


class ModelType(Enum):
    """Kind of model, which fixes the DOFs carried by every node."""
    TRUSS_1D = "truss_1d"
    TRUSS_2D = "truss_2d"
    TRUSS_3D = "truss_3d"


MODEL_DOFS = {
    ModelType.TRUSS_1D: (DegreeOfFreedom.X,),
    ModelType.TRUSS_2D: (DegreeOfFreedom.X, DegreeOfFreedom.Y),
    ModelType.TRUSS_3D: TRANSLATIONS,
}


@dataclass(frozen=True, order=True)
class NodalDegreeOfFreedom:
    """
    Identifies one scalar component of motion (or force) at a node.

    Immutable and hashable so it can be used as a vector/matrix key.
    Ordering (node, then direction) is only used for display.
    """
    node: int
    dof: DegreeOfFreedom

    def __str__(self) -> str:
        return f"N{self.node}.{self.dof.name}"


@dataclass(frozen=True)
class DOFManager:
    """
    Maps nodes of a model to their keyed degrees of freedom.

    Attributes:
    -----------
    model_type : ModelType
        Decides which directions every node carries.

    Examples:
    ---------
    >>> dof = DOFManager(ModelType.TRUSS_2D)
    >>> dof.dof_per_node
    2
    >>> [str(k) for k in dof.node_dofs(3)]
    ['N3.X', 'N3.Y']
    """
    model_type: ModelType

    @property
    def dofs(self) -> Tuple[DegreeOfFreedom, ...]:
        return MODEL_DOFS[self.model_type]

    @property
    def dof_per_node(self) -> int:
        return len(self.dofs)

    def supports(self, dof: DegreeOfFreedom) -> bool:
        return dof in self.dofs

    def key(self, node_id: int, dof: DegreeOfFreedom) -> NodalDegreeOfFreedom:
        """
        Build the key for one DOF of one node.

        Raises:
        -------
        ValueError
            If the model type does not carry this direction.
        """
        if not self.supports(dof):
            raise ValueError(
                f"{self.model_type.value} models do not carry DOF {DegreeOfFreedom(dof).name}"
            )
        return NodalDegreeOfFreedom(node_id, DegreeOfFreedom(dof))

    def node_dofs(self, node_id: int) -> List[NodalDegreeOfFreedom]:
        """All keys of a single node, in the model type's direction order."""
        return [NodalDegreeOfFreedom(node_id, dof) for dof in self.dofs]

    def element_dof_map(self, node_ids: List[int]) -> List[NodalDegreeOfFreedom]:
        """
        Keys for an element connecting several nodes, node by node.

        These are the row/column keys of the element's stiffness matrix,
        so assembly can scatter-add by key.
        """
        result = []
        for node_id in node_ids:
            result.extend(self.node_dofs(node_id))
        return result
