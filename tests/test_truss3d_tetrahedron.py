"""
TETRAHEDRON TEST: Validation of 3D Truss Analysis
=================================================

A regular tetrahedron with:
- 4 nodes (3 at base, 1 at apex)
- 6 bars (connecting all nodes)
- Pinned base (all 3 base nodes fully constrained)
- Vertical load at apex

Expected behavior:
1. EQUILIBRIUM: ΣReactions = -ΣApplied loads
2. SYMMETRY: Each base node carries a third of the vertical load
3. FORCES: All legs carry the same compression, base edges carry nothing
4. MECHANISM: With only two supports the tetrahedron can rotate about
   the line through them, which must be detected before solving
"""

import numpy as np
import pytest

from stiffsolve import (
    DegreeOfFreedom,
    FiniteElementModel,
    LinearSolver,
    MechanismError,
    ModelType,
    SolveStrategy,
)
from stiffsolve.elements import truss3d_axial_force


def make_regular_tetrahedron(base_radius: float = 1.0, height: float = 1.0, supports=(0, 1, 2)):
    """
    Create a regular tetrahedron with base in xy-plane and apex above center.

    Layout:
        - Node 0, 1, 2: Base triangle at z=0, equally spaced on a circle
        - Node 3: Apex at (0, 0, height)
        - 6 bars: 3 base edges + 3 legs to apex

    Returns:
    --------
    model : FiniteElementModel
    base_edges, legs : list of Truss3D
    """
    model = FiniteElementModel(ModelType.TRUSS_3D)

    angles = [0, 2*np.pi/3, 4*np.pi/3]
    for angle in angles:
        model.add_node(base_radius * np.cos(angle), base_radius * np.sin(angle), 0.0)
    apex = model.add_node(0.0, 0.0, height)

    # Material properties (steel)
    E = 210e9  # Pa
    A = 0.001  # m² (10 cm²)

    base_edges = [model.add_truss(i, (i + 1) % 3, E, A) for i in range(3)]
    legs = [model.add_truss(i, apex, E, A) for i in range(3)]

    for node_id in supports:
        model.constrain_node(node_id)

    return model, base_edges, legs


P = -10000.0  # N (downward)


@pytest.fixture
def loaded_tetrahedron():
    model, base_edges, legs = make_regular_tetrahedron()
    model.apply_force(3, fz=P)
    results = LinearSolver(model).solve()
    return model, base_edges, legs, results


class TestTetrahedronEquilibrium:
    """Test that reactions balance applied loads."""

    def test_vertical_load_equilibrium(self, loaded_tetrahedron):
        """Vertical reactions sum to the applied load, horizontal ones to zero."""
        _, _, _, results = loaded_tetrahedron

        Rz_total = results.total_reaction(DegreeOfFreedom.Z)
        assert np.isclose(Rz_total, -P, rtol=1e-10), \
            f"Vertical equilibrium failed: ΣRz={Rz_total:.2f} N, applied={P:.2f} N"

        assert np.isclose(results.total_reaction(DegreeOfFreedom.X), 0.0, atol=1e-6)
        assert np.isclose(results.total_reaction(DegreeOfFreedom.Y), 0.0, atol=1e-6)


class TestTetrahedronSymmetry:
    """Symmetric structure, symmetric load: symmetric response."""

    def test_equal_vertical_reactions(self, loaded_tetrahedron):
        _, _, _, results = loaded_tetrahedron
        for node_id in (0, 1, 2):
            assert np.isclose(results.get_reaction(node_id).z, -P / 3, rtol=1e-9)

    def test_apex_moves_straight_down(self, loaded_tetrahedron):
        _, _, _, results = loaded_tetrahedron
        apex = results.get_displacement(3)
        assert apex.z < 0
        assert np.isclose(apex.x, 0.0, atol=1e-12)
        assert np.isclose(apex.y, 0.0, atol=1e-12)

    def test_base_nodes_do_not_move(self, loaded_tetrahedron):
        _, _, _, results = loaded_tetrahedron
        for node_id in (0, 1, 2):
            assert np.allclose(results.get_displacement(node_id).as_array(), 0.0)


class TestTetrahedronBarForces:

    def test_legs_in_equal_compression(self, loaded_tetrahedron):
        """
        Each leg is at 45° (radius 1, height 1), so its vertical component
        N/√2 carries a third of the load: N = -|P|·√2/3.
        """
        model, _, legs, results = loaded_tetrahedron
        expected = P * np.sqrt(2.0) / 3

        forces = [truss3d_axial_force(model, leg, results) for leg in legs]
        for N in forces:
            assert np.isclose(N, expected, rtol=1e-6), f"Leg force {N:.2f} N, expected {expected:.2f} N"

    def test_base_edges_unloaded(self, loaded_tetrahedron):
        """Both ends of every base edge are pinned, so the edges never stretch."""
        model, base_edges, _, results = loaded_tetrahedron
        for edge in base_edges:
            assert truss3d_axial_force(model, edge, results) == pytest.approx(0.0, abs=1e-9)


class TestTetrahedronStrategies:

    def test_svd_matches_inversion(self, loaded_tetrahedron):
        model, _, _, by_inversion = loaded_tetrahedron
        by_svd = LinearSolver(model, SolveStrategy.SVD).solve()

        assert np.allclose(by_svd.displacements.to_array(), by_inversion.displacements.to_array(), rtol=1e-9)
        assert np.allclose(by_svd.reactions.to_array(), by_inversion.reactions.to_array(), rtol=1e-9, atol=1e-6)


class TestTetrahedronMechanism:

    def test_two_supports_is_mechanism(self):
        """
        With only nodes 0 and 1 pinned the whole tetrahedron can rotate
        about the axis through them without any bar changing length.
        """
        model, _, _ = make_regular_tetrahedron(supports=(0, 1))
        model.apply_force(3, fz=P)

        with pytest.raises(MechanismError, match="rigid body"):
            LinearSolver(model).solve()
