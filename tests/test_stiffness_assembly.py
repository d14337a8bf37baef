"""
Keyed assembly and the K11 / K12 / K21 / K22 partition.

The 1D chain N0 -- N1 -- N2 of unit bars (EA/L = 1) with N0 fixed has

        K = [  1  -1   0 ]      K11 = [ 2 -1 ]   K12 = [ -1 ]
            [ -1   2  -1 ]            [-1  1 ]         [  0 ]
            [  0  -1   1 ]
                                K21 = [ -1  0 ]  K22 = [ 1 ]
"""

import numpy as np
import pytest

from stiffsolve import (
    DegreeOfFreedom,
    FiniteElementModel,
    KeyedMatrix,
    ModelType,
    NodalDegreeOfFreedom,
    StiffnessMatrix,
)
from stiffsolve.assembly import GlobalStiffnessMatrixBuilder
from stiffsolve.elements import bar_geometry, bar_global_stiffness, truss3d_stiffness_matrix
from stiffsolve.kernel.dof import DOFManager
from stiffsolve.kernel.stiffness import assemble_global_K

X, Y, Z = DegreeOfFreedom.X, DegreeOfFreedom.Y, DegreeOfFreedom.Z


def key(node_id, dof=X):
    return NodalDegreeOfFreedom(node_id, dof)


@pytest.fixture
def chain_builder():
    model = FiniteElementModel(ModelType.TRUSS_1D)
    nodes = [model.add_node(float(i)) for i in range(3)]
    model.add_truss(nodes[0], nodes[1], E=1.0, A=1.0)
    model.add_truss(nodes[1], nodes[2], E=1.0, A=1.0)
    model.constrain_node(nodes[0])
    return GlobalStiffnessMatrixBuilder(model)


class TestAssembleGlobalK:

    def test_shared_dofs_accumulate(self):
        k = [[1.0, -1.0], [-1.0, 1.0]]
        contributions = [
            KeyedMatrix(["u0", "u1"], data=k),
            KeyedMatrix(["u1", "u2"], data=k),
        ]
        K = assemble_global_K(["u0", "u1", "u2"], contributions)

        assert isinstance(K, StiffnessMatrix)
        assert K.row_keys == K.column_keys == ("u0", "u1", "u2")
        assert np.array_equal(K.to_array(), [[1, -1, 0], [-1, 2, -1], [0, -1, 1]])

    def test_contribution_order_does_not_matter(self):
        """Element keys are placed by key, not by position."""
        contributions = [KeyedMatrix(["u2", "u0"], data=[[5.0, 1.0], [1.0, 3.0]])]
        K = assemble_global_K(["u0", "u1", "u2"], contributions)
        assert K.value_of("u2", "u2") == 5.0
        assert K.value_of("u0", "u0") == 3.0
        assert K.value_of("u0", "u2") == 1.0

    def test_unknown_dof(self):
        with pytest.raises(KeyError):
            assemble_global_K(["u0"], [KeyedMatrix(["u0", "u9"])])


class TestPartition:

    def test_global_matrix(self, chain_builder):
        K = chain_builder.build_global_stiffness_matrix()
        assert K.row_keys == (key(0), key(1), key(2))
        assert np.allclose(K.to_array(), [[1, -1, 0], [-1, 2, -1], [0, -1, 1]])
        assert K.is_symmetric()

    def test_k11(self, chain_builder):
        K11 = chain_builder.build_known_forces_unknown_displacement_stiffness_matrix()
        assert K11.row_keys == K11.column_keys == (key(1), key(2))
        assert np.allclose(K11.to_array(), [[2, -1], [-1, 1]])

    def test_k12(self, chain_builder):
        K12 = chain_builder.build_known_forces_known_displacement_stiffness_matrix()
        assert K12.row_keys == (key(1), key(2))
        assert K12.column_keys == (key(0),)
        assert np.allclose(K12.to_array(), [[-1], [0]])

    def test_k21(self, chain_builder):
        K21 = chain_builder.build_unknown_forces_unknown_displacement_stiffness_matrix()
        assert K21.row_keys == (key(0),)
        assert K21.column_keys == (key(1), key(2))
        assert np.allclose(K21.to_array(), [[-1, 0]])

    def test_k22(self, chain_builder):
        K22 = chain_builder.build_unknown_forces_known_displacement_stiffness_matrix()
        assert K22.row_keys == K22.column_keys == (key(0),)
        assert np.allclose(K22.to_array(), [[1]])

    def test_blocks_line_up_with_model_vectors(self, chain_builder):
        """Block products with Fk / Uk must not raise KeyMismatchError."""
        model = chain_builder.model
        K11 = chain_builder.build_known_forces_unknown_displacement_stiffness_matrix()
        K12 = chain_builder.build_known_forces_known_displacement_stiffness_matrix()

        assert K11.row_keys == model.known_force_vector().keys
        assert K12.multiply(model.known_displacement_vector()).keys == K11.row_keys

    def test_builder_needs_model(self):
        with pytest.raises(ValueError):
            GlobalStiffnessMatrixBuilder(None)


class TestTrussElement:

    def test_geometry(self):
        model = FiniteElementModel()
        model.add_node(0.0, 0.0, 0.0)
        model.add_node(3.0, 4.0, 0.0)
        bar = model.add_truss(0, 1, E=1.0, A=1.0)

        L, l, m, n = bar_geometry(model.nodes, bar)
        assert np.isclose(L, 5.0)
        assert np.allclose([l, m, n], [0.6, 0.8, 0.0])

    def test_zero_length_bar(self):
        model = FiniteElementModel()
        model.add_node(1.0, 1.0, 1.0)
        model.add_node(1.0, 1.0, 1.0)
        bar = model.add_truss(0, 1, E=1.0, A=1.0)
        with pytest.raises(ValueError, match="zero length"):
            bar_global_stiffness(model.nodes, bar)

    def test_keyed_3d_stiffness_is_symmetric(self):
        model = FiniteElementModel()
        model.add_node(0.0, 0.0, 0.0)
        model.add_node(1.0, 2.0, 2.0)
        bar = model.add_truss(0, 1, E=3.0, A=1.0)

        ke = truss3d_stiffness_matrix(model, bar)
        assert ke.row_keys == (key(0, X), key(0, Y), key(0, Z), key(1, X), key(1, Y), key(1, Z))
        assert ke.is_symmetric()
        # EA/L = 1, direction (1/3, 2/3, 2/3)
        assert np.isclose(ke.value_of(key(0, Y), key(1, Z)), -4.0 / 9.0)

    def test_2d_model_drops_z(self):
        model = FiniteElementModel(ModelType.TRUSS_2D)
        model.add_node(0.0, 0.0)
        model.add_node(1.0, 1.0)
        bar = model.add_truss(0, 1, E=1.0, A=1.0)

        ke = truss3d_stiffness_matrix(model, bar)
        assert ke.row_keys == (key(0, X), key(0, Y), key(1, X), key(1, Y))

    def test_sloping_bar_in_1d_model(self):
        model = FiniteElementModel(ModelType.TRUSS_1D)
        model.add_node(0.0, 0.0)
        model.add_node(1.0, 1.0)
        bar = model.add_truss(0, 1, E=1.0, A=1.0)
        with pytest.raises(ValueError, match="not aligned"):
            truss3d_stiffness_matrix(model, bar)


class TestDOFManager:

    @pytest.mark.parametrize("model_type, expected", [
        (ModelType.TRUSS_1D, ["N3.X"]),
        (ModelType.TRUSS_2D, ["N3.X", "N3.Y"]),
        (ModelType.TRUSS_3D, ["N3.X", "N3.Y", "N3.Z"]),
    ])
    def test_node_dofs(self, model_type, expected):
        assert [str(k) for k in DOFManager(model_type).node_dofs(3)] == expected
        assert DOFManager(model_type).dof_per_node == len(expected)

    def test_unsupported_direction(self):
        with pytest.raises(ValueError, match="do not carry"):
            DOFManager(ModelType.TRUSS_2D).key(0, Z)

    def test_element_dof_map(self):
        keys = DOFManager(ModelType.TRUSS_2D).element_dof_map([2, 5])
        assert keys == [key(2, X), key(2, Y), key(5, X), key(5, Y)]
