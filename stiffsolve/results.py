# stiffsolve/results.py
"""Solved displacements and reactions, queried by node or by DOF."""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import numpy as np

from .kernel.dof import DegreeOfFreedom, ModelType, NodalDegreeOfFreedom
from .kernel.vector import KeyedVector


@dataclass(frozen=True)
class NodalValues:
    """Displacement or reaction components at one node (zero where not applicable)."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    xx: float = 0.0
    yy: float = 0.0
    zz: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z, self.xx, self.yy, self.zz])


class FiniteElementResults:
    """
    Write-once container of displacements and reactions.

    Displacements cover exactly the DOFs that were unknown before the solve;
    reactions cover exactly the constrained DOFs. Adding the same DOF twice
    raises ValueError.

    Prescribed displacements (supports, settlements) can be supplied so that
    get_displacement() reports the full movement of a node.
    """

    def __init__(
        self,
        model_type: ModelType,
        prescribed_displacements: Optional[Mapping[NodalDegreeOfFreedom, float]] = None,
    ):
        self.model_type = model_type
        self._displacements: Dict[NodalDegreeOfFreedom, float] = {}
        self._reactions: Dict[NodalDegreeOfFreedom, float] = {}
        self._prescribed = dict(prescribed_displacements or {})

    # ------------------------------------------------------------------
    # Filling
    # ------------------------------------------------------------------

    @staticmethod
    def _add(store: Dict[NodalDegreeOfFreedom, float], key: NodalDegreeOfFreedom, value: float, what: str) -> None:
        if key in store:
            raise ValueError(f"A {what} for {key} has already been added")
        store[key] = float(value)

    def add_displacement(self, key: NodalDegreeOfFreedom, value: float) -> None:
        self._add(self._displacements, key, value, "displacement")

    def add_reaction(self, key: NodalDegreeOfFreedom, value: float) -> None:
        self._add(self._reactions, key, value, "reaction")

    def add_multiple_displacements(self, displacements: KeyedVector) -> None:
        if displacements is None:
            raise ValueError("displacements must not be None")
        for key, value in displacements.items():
            self.add_displacement(key, value)

    def add_multiple_reactions(self, reactions: KeyedVector) -> None:
        if reactions is None:
            raise ValueError("reactions must not be None")
        for key, value in reactions.items():
            self.add_reaction(key, value)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def displacements(self) -> Optional[KeyedVector]:
        """Solved displacements keyed by DOF (None before anything was added)."""
        return KeyedVector.from_mapping(self._displacements) if self._displacements else None

    @property
    def reactions(self) -> Optional[KeyedVector]:
        """Reactions keyed by DOF (None before anything was added)."""
        return KeyedVector.from_mapping(self._reactions) if self._reactions else None

    def displacement(self, key: NodalDegreeOfFreedom) -> float:
        if key in self._displacements:
            return self._displacements[key]
        if key in self._prescribed:
            return self._prescribed[key]
        raise KeyError(f"No displacement for {key}")

    def reaction(self, key: NodalDegreeOfFreedom) -> float:
        if key not in self._reactions:
            raise KeyError(f"No reaction for {key}")
        return self._reactions[key]

    @staticmethod
    def _nodal(node_id: int, *stores: Mapping[NodalDegreeOfFreedom, float]) -> NodalValues:
        components = {}
        for dof in DegreeOfFreedom:
            key = NodalDegreeOfFreedom(node_id, dof)
            for store in stores:
                if key in store:
                    components[dof.name.lower()] = store[key]
                    break
        return NodalValues(**components)

    def get_displacement(self, node) -> NodalValues:
        """Displacement of a node (solved or prescribed components)."""
        return self._nodal(_node_id(node), self._displacements, self._prescribed)

    def get_reaction(self, node) -> NodalValues:
        """Reaction at a node (zero along unconstrained directions)."""
        return self._nodal(_node_id(node), self._reactions)

    def total_reaction(self, dof: DegreeOfFreedom) -> float:
        """Sum of all reactions along one direction."""
        return float(sum(value for key, value in self._reactions.items() if key.dof == dof))


def _node_id(node) -> int:
    return node if isinstance(node, int) else node.id
