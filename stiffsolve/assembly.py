# stiffsolve/assembly.py
"""
Global stiffness assembly and partitioning for a FiniteElementModel.

The four blocks of the partitioned system

    [ Fk ]   [ K11  K12 ] [ Uu ]
    [ Fu ] = [ K21  K22 ] [ Uk ]

are cut out of the assembled global matrix by key, using the model's own
ordering of free (unknown-displacement) and constrained (known-displacement)
DOFs, so they line up with model.known_force_vector() and
model.known_displacement_vector().
"""

import logging

from .elements import truss3d_stiffness_matrix
from .kernel.stiffness import StiffnessMatrix, assemble_global_K
from .model import FiniteElementModel

logger = logging.getLogger(__name__)


class GlobalStiffnessMatrixBuilder:
    """
    Builds the global stiffness matrix of a model and its partitioned blocks.

    The global matrix is assembled from the current model state on every
    call, so a builder never hands out stale stiffness after the model
    changes.
    """

    def __init__(self, model: FiniteElementModel):
        if model is None:
            raise ValueError("model must not be None")
        self.model = model

    def build_global_stiffness_matrix(self) -> StiffnessMatrix:
        contributions = [truss3d_stiffness_matrix(self.model, element) for element in self.model.elements]
        K = assemble_global_K(self.model.all_dofs(), contributions)
        logger.debug("Assembled %dx%d global stiffness from %d elements", K.row_count, K.column_count, len(contributions))
        return K

    def build_known_forces_unknown_displacement_stiffness_matrix(self) -> StiffnessMatrix:
        """K11: rows and columns = unknown-displacement DOFs."""
        unknown = self.model.unknown_displacement_dofs()
        return self.build_global_stiffness_matrix().sub_matrix(unknown, unknown)

    def build_known_forces_known_displacement_stiffness_matrix(self) -> StiffnessMatrix:
        """K12: rows = unknown-displacement DOFs, columns = known-displacement DOFs."""
        return self.build_global_stiffness_matrix().sub_matrix(
            self.model.unknown_displacement_dofs(), self.model.known_displacement_dofs()
        )

    def build_unknown_forces_unknown_displacement_stiffness_matrix(self) -> StiffnessMatrix:
        """K21: rows = known-displacement DOFs, columns = unknown-displacement DOFs."""
        return self.build_global_stiffness_matrix().sub_matrix(
            self.model.known_displacement_dofs(), self.model.unknown_displacement_dofs()
        )

    def build_unknown_forces_known_displacement_stiffness_matrix(self) -> StiffnessMatrix:
        """K22: rows and columns = known-displacement DOFs."""
        known = self.model.known_displacement_dofs()
        return self.build_global_stiffness_matrix().sub_matrix(known, known)
