"""Tests for the tufted Laplacian and lumped mass matrix."""

import numpy as np
import pytest

from tuftedcover.core.TriSoupMesh import TriSoupMesh
from tuftedcover.geometry_processing.TuftedLaplacian import buildTuftedLaplacian


def test_right_triangle_matches_cotan_laplacian(rightTriangle):
    L, M = buildTuftedLaplacian(rightTriangle)

    assert L.format == M.format == 'csc'
    assert L.shape == M.shape == (3, 3)
    dense = L.toarray()
    # Half the cotangent of the opposite angle: 45 degrees opposite the legs,
    # 90 degrees opposite the hypotenuse
    assert dense[0, 1] == pytest.approx(-0.5)
    assert dense[0, 2] == pytest.approx(-0.5)
    assert dense[1, 2] == pytest.approx(0.0, abs=1e-12)
    np.testing.assert_allclose(np.diag(M.toarray()), [1/6, 1/6, 1/6])


@pytest.mark.parametrize('meshName', ['rightTriangle', 'bowtie', 'fin', 'thinDiamond', 'tetrahedron', 'bumpyGrid'])
def test_laplacian_is_symmetric_with_zero_row_sums(request, meshName):
    mesh = request.getfixturevalue(meshName)

    L, M = buildTuftedLaplacian(mesh, mollifyFactor=1e-6)

    dense = L.toarray()
    np.testing.assert_allclose(dense, dense.T, atol=1e-12)
    np.testing.assert_allclose(dense.sum(axis=1), 0.0, atol=1e-10)
    # Positive semi-definite
    assert np.linalg.eigvalsh(dense).min() > -1e-10
    assert np.all(M.diagonal() > 0)


@pytest.mark.parametrize('meshName', ['rightTriangle', 'bowtie', 'thinDiamond', 'bumpyGrid'])
def test_total_mass_is_surface_area(request, meshName):
    mesh = request.getfixturevalue(meshName)
    corners = mesh.verts[np.array(mesh.tris)]
    area = 0.5 * np.linalg.norm(np.cross(corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0]), axis=1).sum()

    _, M = buildTuftedLaplacian(mesh)

    assert M.sum() == pytest.approx(area, rel=1e-9)


def test_delaunay_flips_remove_negative_weights(thinDiamond):
    L, _ = buildTuftedLaplacian(thinDiamond)

    # Off-diagonal entries of an intrinsic Delaunay cotan Laplacian are never positive
    offDiagonal = L.toarray() - np.diag(L.diagonal())
    assert offDiagonal.max() <= 1e-12
    # The long edge was flipped away, connecting the two obtuse vertices instead
    assert L[0, 1] == pytest.approx(0.0, abs=1e-12)
    assert L[2, 3] < 0


def test_mollification_changes_degenerate_mesh():
    mesh = TriSoupMesh([[0, 0, 0], [1, 0, 0], [2, 0, 0]], [[0, 1, 2]])

    L, M = buildTuftedLaplacian(mesh, mollifyFactor=1e-3)

    assert np.all(np.isfinite(L.toarray()))
    assert M.sum() > 0
