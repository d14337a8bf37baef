import numpy as np
import pytest

from stiffsolve import (
    DegreeOfFreedom,
    FiniteElementModel,
    FiniteElementResults,
    KeyedVector,
    ModelType,
    NodalDegreeOfFreedom,
)

X, Y, Z = DegreeOfFreedom.X, DegreeOfFreedom.Y, DegreeOfFreedom.Z


def key(node_id, dof):
    return NodalDegreeOfFreedom(node_id, dof)


class TestFiniteElementResults:

    def test_empty(self):
        results = FiniteElementResults(ModelType.TRUSS_3D)
        assert results.displacements is None
        assert results.reactions is None

    def test_write_once(self):
        results = FiniteElementResults(ModelType.TRUSS_3D)
        results.add_displacement(key(0, X), 1.0)
        with pytest.raises(ValueError, match="already"):
            results.add_displacement(key(0, X), 2.0)

        results.add_reaction(key(1, Z), 5.0)
        with pytest.raises(ValueError, match="already"):
            results.add_multiple_reactions(KeyedVector([key(1, Z)], [6.0]))

    def test_add_multiple_rejects_none(self):
        results = FiniteElementResults(ModelType.TRUSS_3D)
        with pytest.raises(ValueError):
            results.add_multiple_displacements(None)
        with pytest.raises(ValueError):
            results.add_multiple_reactions(None)

    def test_vectors_keep_insertion_order(self):
        results = FiniteElementResults(ModelType.TRUSS_3D)
        results.add_multiple_displacements(KeyedVector([key(2, Y), key(0, X)], [0.5, -0.5]))
        assert results.displacements.keys == (key(2, Y), key(0, X))
        assert np.array_equal(results.displacements.to_array(), [0.5, -0.5])

    def test_nodal_displacement_combines_solved_and_prescribed(self):
        results = FiniteElementResults(ModelType.TRUSS_3D, {key(0, Y): -0.01, key(0, Z): 0.0})
        results.add_displacement(key(0, X), 0.2)

        u = results.get_displacement(0)
        assert (u.x, u.y, u.z) == (0.2, -0.01, 0.0)
        assert results.displacement(key(0, Y)) == -0.01

    def test_missing_values(self):
        results = FiniteElementResults(ModelType.TRUSS_3D)
        with pytest.raises(KeyError):
            results.displacement(key(0, X))
        with pytest.raises(KeyError):
            results.reaction(key(0, X))
        # unconstrained directions report zero reaction
        assert np.array_equal(results.get_reaction(0).as_array(), np.zeros(6))

    def test_total_reaction(self):
        results = FiniteElementResults(ModelType.TRUSS_3D)
        results.add_multiple_reactions(KeyedVector([key(0, Z), key(1, Z), key(1, X)], [300.0, 700.0, 5.0]))
        assert results.total_reaction(Z) == 1000.0
        assert results.total_reaction(Y) == 0.0


class TestModel:

    def test_node_ids_start_at_zero(self):
        model = FiniteElementModel()
        assert model.add_node(0.0).id == 0
        assert model.add_node(1.0).id == 1

    def test_every_dof_is_free_or_constrained(self):
        model = FiniteElementModel(ModelType.TRUSS_2D)
        for x in (0.0, 1.0, 2.0):
            model.add_node(x)
        model.constrain_node(0)
        model.constrain_node(2, Y)

        known = model.known_displacement_dofs()
        unknown = model.unknown_displacement_dofs()
        assert known == [key(0, X), key(0, Y), key(2, Y)]
        assert unknown == [key(1, X), key(1, Y), key(2, X)]
        assert sorted(known + unknown) == sorted(model.all_dofs())

    def test_forces_accumulate(self):
        model = FiniteElementModel()
        node = model.add_node(0.0)
        model.add_node(1.0)
        model.apply_force(node, fz=-10.0)
        model.apply_force(node, fx=1.0, fz=-5.0)

        forces = model.known_force_vector()
        assert forces.value_of(key(0, Z)) == -15.0
        assert forces.value_of(key(0, X)) == 1.0
        assert forces.value_of(key(1, Y)) == 0.0

    def test_settlement_in_known_displacements(self):
        model = FiniteElementModel(ModelType.TRUSS_1D)
        model.add_node(0.0)
        model.add_node(1.0)
        model.constrain_node(0)
        model.settle_node(1, X, 0.02)

        Uk = model.known_displacement_vector()
        assert Uk.keys == (key(0, X), key(1, X))
        assert np.array_equal(Uk.to_array(), [0.0, 0.02])

    def test_force_along_missing_direction(self):
        model = FiniteElementModel(ModelType.TRUSS_1D)
        node = model.add_node(0.0)
        with pytest.raises(ValueError):
            model.apply_force(node, fy=1.0)

    def test_rejected_force_leaves_model_unchanged(self):
        """The X component is valid, but Y is not; neither is stored."""
        model = FiniteElementModel(ModelType.TRUSS_1D)
        node = model.add_node(0.0)
        with pytest.raises(ValueError):
            model.apply_force(node, fx=5.0, fy=1.0)

        assert model.combined_forces_for([key(0, X)]).value_of(key(0, X)) == 0.0
        assert np.array_equal(model.known_force_vector().to_array(), [0.0])

    def test_rejected_constraint_leaves_model_unchanged(self):
        model = FiniteElementModel(ModelType.TRUSS_1D)
        node = model.add_node(0.0)
        with pytest.raises(ValueError):
            model.constrain_node(node, X, Y)

        assert model.known_displacement_dofs() == []
        assert model.unknown_displacement_dofs() == [key(0, X)]

    @pytest.mark.parametrize("E, A", [(0.0, 1.0), (1.0, -1.0)])
    def test_bar_needs_positive_properties(self, E, A):
        model = FiniteElementModel()
        model.add_node(0.0)
        model.add_node(1.0)
        with pytest.raises(ValueError, match="positive"):
            model.add_truss(0, 1, E, A)

    def test_bar_needs_two_nodes(self):
        model = FiniteElementModel()
        node = model.add_node(0.0)
        with pytest.raises(ValueError):
            model.add_truss(node, node, 1.0, 1.0)

    def test_unknown_node(self):
        with pytest.raises(KeyError):
            FiniteElementModel().node(7)
