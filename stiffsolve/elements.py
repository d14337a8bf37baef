# stiffsolve/elements.py
"""
TRUSS ELEMENT: Keyed Stiffness Matrix from Direction Cosines
============================================================

The one element the model knows about: an axial bar. Its 6×6 stiffness in
global coordinates is

    ke = (EA/L) × [  B  -B ]        B = [ l²  lm  ln ]
                  [ -B   B ]            [ lm  m²  mn ]
                                        [ ln  mn  n² ]

with (l, m, n) the direction cosines of the bar. The matrix is returned
keyed by the element's DOFs, restricted to the directions the model
carries (X only for a 1D truss, X and Y for a 2D truss).
"""

from typing import Dict, Tuple

import numpy as np

from .kernel.dof import TRANSLATIONS
from .kernel.stiffness import StiffnessMatrix
from .model import FiniteElementModel, Node3D, Truss3D
from .results import FiniteElementResults

# Direction cosines along axes the model does not carry must vanish
OUT_OF_PLANE_TOLERANCE = 1e-9


def _coordinates(node: Node3D) -> np.ndarray:
    return np.array([node.x, node.y, node.z], dtype=float)


def bar_geometry(nodes: Dict[int, Node3D], element: Truss3D) -> Tuple[float, float, float, float]:
    """
    Length and direction cosines (L, l, m, n) of a bar, measured from ni to nj.

    Raises:
    -------
    ValueError
        If both end nodes sit at the same point.
    """
    axis = _coordinates(nodes[element.nj]) - _coordinates(nodes[element.ni])
    L = float(np.linalg.norm(axis))
    if L <= 0.0:
        start = nodes[element.ni]
        raise ValueError(
            f"Element {element.id} has zero length: nodes {element.ni} and {element.nj} "
            f"both at ({start.x}, {start.y}, {start.z})"
        )

    l, m, n = (axis / L).tolist()
    return L, l, m, n


def bar_global_stiffness(nodes: Dict[int, Node3D], element: Truss3D) -> np.ndarray:
    """
    6×6 global stiffness matrix of a bar.

    Rows/columns: translations X, Y, Z of ni, then of nj.
    """
    L, l, m, n = bar_geometry(nodes, element)
    B = np.outer((l, m, n), (l, m, n))
    return (element.E * element.A / L) * np.block([[B, -B], [-B, B]])


def truss3d_stiffness_matrix(model: FiniteElementModel, element: Truss3D) -> StiffnessMatrix:
    """
    Keyed stiffness matrix of a bar, restricted to the model's directions.

    Raises:
    -------
    ValueError
        If the bar has a component along a direction the model does not
        carry (e.g. a sloping bar in a 1D model).
    """
    L, l, m, n = bar_geometry(model.nodes, element)
    dof_manager = model.dof_manager
    for dof, cosine in zip(TRANSLATIONS, (l, m, n)):
        if not dof_manager.supports(dof) and abs(cosine) > OUT_OF_PLANE_TOLERANCE:
            raise ValueError(
                f"Element {element.id} is not aligned with a {model.model_type.value} model "
                f"(direction cosine {cosine:.3g} along {dof.name})"
            )

    ke = bar_global_stiffness(model.nodes, element)
    keys = dof_manager.element_dof_map([element.ni, element.nj])
    # rows of the 6×6 matrix: end (0 = ni, 1 = nj), then translation
    keep = [3 * end + int(dof) for end in (0, 1) for dof in dof_manager.dofs]
    return StiffnessMatrix(keys, keys, ke[np.ix_(keep, keep)])


def truss3d_axial_force(model: FiniteElementModel, element: Truss3D, results: FiniteElementResults) -> float:
    """
    Axial force in a bar from solved displacements.

    Sign convention: positive = tension, negative = compression.
    """
    L, l, m, n = bar_geometry(model.nodes, element)
    ui = results.get_displacement(element.ni)
    uj = results.get_displacement(element.nj)

    # elongation = relative displacement projected on the bar axis
    delta_L = l * (uj.x - ui.x) + m * (uj.y - ui.y) + n * (uj.z - ui.z)
    return (element.E * element.A / L) * delta_L
