# stiffsolve/solver.py
"""
LINEAR SOLVER: Partitioned Static Solve of a Model
==================================================

Splitting K·U = F by which DOFs have known force (free) and which have
known displacement (constrained):

    [ Fk ]   [ K11  K12 ] [ Uu ]
    [ Fu ] = [ K21  K22 ] [ Uk ]

gives the two equations the solver works through:

    Uu = K11⁻¹ · (Fk - K12·Uk)        unknown displacements
    Fu = K21·Uu + K22·Uk              unknown reactions

The settlement term is subtracted: moving the first block row
Fk = K11·Uu + K12·Uk over gives K11·Uu = Fk - K12·Uk. Writing it as
Fk + K12·Uk only agrees when every prescribed displacement is zero.

Loads placed directly on supports never reach Fk (their DOFs are not
free), so they are added to Fu afterwards to report the total force at
the support.

A singular K11 means the structure can move without deforming (missing
supports, a mechanism). That is detected before solving and reported as
MechanismError with the offending matrix in the message.

USAGE:
------
    solver = LinearSolver(model)                          # matrix inversion
    solver = LinearSolver(model, SolveStrategy.SVD)       # pseudo-inverse
    results = solver.solve()
    results.get_displacement(node).z
"""

import logging
from typing import Optional, Union

from .assembly import GlobalStiffnessMatrixBuilder
from .config import CONFIG, SolverConfig
from .kernel.solve import InvalidModelError, MechanismError, SolveStrategy, check_not_mechanism, solve_linear
from .kernel.stiffness import StiffnessMatrix
from .kernel.vector import KeyedVector
from .model import FiniteElementModel
from .results import FiniteElementResults

logger = logging.getLogger(__name__)


class LinearSolver:
    """
    Static, linear, implicit solve of a finite element model.

    Parameters:
    -----------
    model : FiniteElementModel
        The model to solve. Not modified.
    strategy : SolveStrategy or str, optional
        Kernel for K11·Uu = F. Defaults to config.default_strategy.
    matrix_builder : GlobalStiffnessMatrixBuilder, optional
        Source of the stiffness blocks. Defaults to one built on `model`.
    config : SolverConfig
        Tolerances and model size limits.
    """

    def __init__(
        self,
        model: FiniteElementModel,
        strategy: Optional[Union[SolveStrategy, str]] = None,
        matrix_builder: Optional[GlobalStiffnessMatrixBuilder] = None,
        config: SolverConfig = CONFIG,
    ):
        if model is None:
            raise ValueError("model must not be None")
        self.model = model
        self.config = config
        self.strategy = SolveStrategy(strategy if strategy is not None else config.default_strategy)
        self.matrix_builder = matrix_builder if matrix_builder is not None else GlobalStiffnessMatrixBuilder(model)

    def solve(self) -> FiniteElementResults:
        """
        Solve the model.

        Returns:
            Results holding every unknown displacement and every reaction

        Raises:
            InvalidModelError: Too few nodes/elements, or nothing left to solve
            MechanismError: The model can move as a rigid body
        """
        self.validate_model()

        displacements = self.calculate_unknown_displacements()
        reactions = self.calculate_unknown_reactions(displacements)
        reactions = self.combine_external_forces_on_reaction_nodes_with_reactions(reactions)

        results = self.create_results(displacements, reactions)
        logger.info(
            "Solved %s model (%s): %d displacements, %d reactions",
            self.model.model_type.value, self.strategy.value, len(displacements), len(reactions),
        )
        return results

    def solve_linear(self, stiffness: StiffnessMatrix, forces: KeyedVector) -> KeyedVector:
        """Solve stiffness·x = forces with this solver's strategy."""
        return solve_linear(stiffness, forces, self.strategy, self.config.svd_tolerance)

    def validate_model(self) -> None:
        if self.model.node_count < self.config.min_nodes:
            raise InvalidModelError(
                f"The model has less than {self.config.min_nodes} nodes and so cannot be solved"
            )
        if self.model.element_count < self.config.min_elements:
            raise InvalidModelError("The model has no elements and so cannot be solved")
        if not self.model.unknown_displacement_dofs():
            raise InvalidModelError("Every DOF of the model is constrained; there is nothing to solve")
        if not self.model.known_displacement_dofs():
            raise MechanismError(
                "We are unable to solve this model as it has no constraints and can move as a rigid body"
            )

    def calculate_unknown_displacements(self) -> KeyedVector:
        """Uu = K11⁻¹ · (Fk - K12·Uk)"""
        K11 = self.matrix_builder.build_known_forces_unknown_displacement_stiffness_matrix()
        check_not_mechanism(K11, self.config.singularity_tolerance)

        Fk = self.model.known_force_vector()
        K12 = self.matrix_builder.build_known_forces_known_displacement_stiffness_matrix()
        Uk = self.model.known_displacement_vector()

        # loads equivalent to the prescribed support displacements
        effective_forces = Fk.subtract(K12.multiply(Uk))
        return self.solve_linear(K11, effective_forces)

    def calculate_unknown_reactions(self, unknown_displacements: KeyedVector) -> KeyedVector:
        """Fu = K21·Uu + K22·Uk"""
        if unknown_displacements is None:
            raise ValueError("unknown_displacements must not be None")

        K21 = self.matrix_builder.build_unknown_forces_unknown_displacement_stiffness_matrix()
        K22 = self.matrix_builder.build_unknown_forces_known_displacement_stiffness_matrix()
        Uk = self.model.known_displacement_vector()

        return K21.multiply(unknown_displacements).add(K22.multiply(Uk))

    def combine_external_forces_on_reaction_nodes_with_reactions(self, reactions: KeyedVector) -> KeyedVector:
        """Add loads applied directly on supports to the computed reactions."""
        external = self.model.combined_forces_for(reactions.keys)
        return reactions.add(external)

    def create_results(self, displacements: KeyedVector, reactions: KeyedVector) -> FiniteElementResults:
        if displacements is None:
            raise ValueError("displacements must not be None")
        if reactions is None:
            raise ValueError("reactions must not be None")

        results = FiniteElementResults(self.model.model_type, self.model.prescribed_displacements())
        results.add_multiple_displacements(displacements)
        results.add_multiple_reactions(reactions)
        return results


def solve_model(
    model: FiniteElementModel,
    strategy: Optional[Union[SolveStrategy, str]] = None,
    config: SolverConfig = CONFIG,
) -> FiniteElementResults:
    """Convenience wrapper: LinearSolver(model, strategy, config=config).solve()."""
    return LinearSolver(model, strategy, config=config).solve()
