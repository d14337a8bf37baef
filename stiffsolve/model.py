# stiffsolve/model.py
"""
MODEL DEFINITIONS: Nodes, Bars, Constraints and Loads
=====================================================

PURPOSE:
--------
The model is what the solver consumes. It owns:
- Node3D: points in space
- Truss3D: axial bars between nodes
- constraints: DOFs with a known (prescribed, usually zero) displacement
- forces: externally applied nodal loads

and it answers the questions the partitioned solve asks:

    unknown_displacement_dofs()   free DOFs      (force known)
    known_displacement_dofs()     constrained    (force unknown = reaction)
    known_force_vector()          Fk, keyed by the free DOFs
    known_displacement_vector()   Uk, keyed by the constrained DOFs
    combined_forces_for(keys)     applied loads at any DOF set

Every DOF is exactly one of free / constrained. Both lists are in model
order (node insertion order, then the model type's direction order) and
the stiffness blocks use the same order, so block products line up.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Union

from .kernel.dof import TRANSLATIONS, DegreeOfFreedom, DOFManager, ModelType, NodalDegreeOfFreedom
from .kernel.vector import KeyedVector


@dataclass(frozen=True)
class Node3D:
    """
    A node (joint) in 3D space.

    Parameters:
    -----------
    id : int
        Unique identifier, used in every DOF key of this node
    x, y, z : float
        Coordinates in the global system
    """
    id: int
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class Truss3D:
    """
    Axial-only bar connecting two nodes.

    Parameters:
    -----------
    id : int
        Element identifier
    ni, nj : int
        Start and end node IDs
    E : float
        Young's modulus
    A : float
        Cross-sectional area (axial stiffness EA/L)
    """
    id: int
    ni: int
    nj: int
    E: float
    A: float


NodeRef = Union[Node3D, int]


def _node_id(node: NodeRef) -> int:
    return node.id if isinstance(node, Node3D) else int(node)


class FiniteElementModel:
    """
    Nodes, elements, boundary conditions and loads of one structure.

    Examples:
    ---------
    >>> model = FiniteElementModel(ModelType.TRUSS_1D)
    >>> n0 = model.add_node(0.0)
    >>> n1 = model.add_node(1.0)
    >>> model.constrain_node(n0)
    >>> bar = model.add_truss(n0, n1, E=210e9, A=1e-4)
    >>> model.apply_force(n1, fx=1000.0)
    """

    def __init__(self, model_type: ModelType = ModelType.TRUSS_3D):
        self.model_type = model_type
        self.dof_manager = DOFManager(model_type)
        self.nodes: Dict[int, Node3D] = {}
        self.elements: List[Truss3D] = []
        self._prescribed: Dict[NodalDegreeOfFreedom, float] = {}
        self._forces: Dict[NodalDegreeOfFreedom, float] = {}

    # ------------------------------------------------------------------
    # Building the model
    # ------------------------------------------------------------------

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def element_count(self) -> int:
        return len(self.elements)

    def add_node(self, x: float, y: float = 0.0, z: float = 0.0) -> Node3D:
        """Create a node with the next free id."""
        node_id = max(self.nodes) + 1 if self.nodes else 0
        node = Node3D(node_id, float(x), float(y), float(z))
        self.nodes[node_id] = node
        return node

    def node(self, node: NodeRef) -> Node3D:
        node_id = _node_id(node)
        if node_id not in self.nodes:
            raise KeyError(f"Node {node_id} is not part of this model")
        return self.nodes[node_id]

    def add_truss(self, ni: NodeRef, nj: NodeRef, E: float, A: float) -> Truss3D:
        start = self.node(ni)
        end = self.node(nj)
        if start.id == end.id:
            raise ValueError(f"A bar needs two different nodes, got node {start.id} twice")
        if E <= 0.0 or A <= 0.0:
            raise ValueError(f"E and A must be positive, got E={E}, A={A}")
        element = Truss3D(len(self.elements), start.id, end.id, float(E), float(A))
        self.elements.append(element)
        return element

    def constrain_node(self, node: NodeRef, *dofs: DegreeOfFreedom) -> None:
        """
        Fix DOFs of a node at zero displacement (all of the node's DOFs if none given).

        Either every requested DOF is constrained or, on ValueError, none is.
        """
        node_id = self.node(node).id
        keys = [self.dof_manager.key(node_id, dof) for dof in dofs or self.dof_manager.dofs]
        for key in keys:
            self._prescribed[key] = 0.0

    def settle_node(self, node: NodeRef, dof: DegreeOfFreedom, displacement: float) -> None:
        """Constrain a DOF at a known, non-zero displacement (support settlement)."""
        key = self.dof_manager.key(self.node(node).id, dof)
        self._prescribed[key] = float(displacement)

    def apply_force(self, node: NodeRef, fx: float = 0.0, fy: float = 0.0, fz: float = 0.0) -> None:
        """
        Add a nodal force. Repeated calls accumulate.

        Forces on constrained DOFs are allowed; they do not change the
        displacements but are added to the reported reaction. A component
        along a direction the model does not carry raises ValueError and
        nothing is stored.
        """
        node_id = self.node(node).id
        components = [
            (self.dof_manager.key(node_id, dof), float(value))
            for dof, value in zip(TRANSLATIONS, (fx, fy, fz))
            if value != 0.0
        ]
        for key, value in components:
            self._forces[key] = self._forces.get(key, 0.0) + value

    # ------------------------------------------------------------------
    # DOF classification
    # ------------------------------------------------------------------

    def all_dofs(self) -> List[NodalDegreeOfFreedom]:
        result = []
        for node_id in self.nodes:
            result.extend(self.dof_manager.node_dofs(node_id))
        return result

    def is_constrained(self, key: NodalDegreeOfFreedom) -> bool:
        return key in self._prescribed

    def known_displacement_dofs(self) -> List[NodalDegreeOfFreedom]:
        """Constrained DOFs: displacement known, reaction unknown."""
        return [key for key in self.all_dofs() if key in self._prescribed]

    def unknown_displacement_dofs(self) -> List[NodalDegreeOfFreedom]:
        """Free DOFs: applied force known, displacement unknown."""
        return [key for key in self.all_dofs() if key not in self._prescribed]

    def known_force_vector(self) -> KeyedVector:
        """Fk: applied forces at the free DOFs (zero where nothing is applied)."""
        keys = self.unknown_displacement_dofs()
        return KeyedVector(keys, [self._forces.get(key, 0.0) for key in keys])

    def known_displacement_vector(self) -> KeyedVector:
        """Uk: prescribed displacements at the constrained DOFs."""
        keys = self.known_displacement_dofs()
        return KeyedVector(keys, [self._prescribed[key] for key in keys])

    def prescribed_displacements(self) -> Dict[NodalDegreeOfFreedom, float]:
        return dict(self._prescribed)

    def combined_forces_for(self, keys: Iterable[NodalDegreeOfFreedom]) -> KeyedVector:
        """Sum of externally applied forces at each of the given DOFs."""
        keys = list(keys)
        return KeyedVector(keys, [self._forces.get(key, 0.0) for key in keys])
