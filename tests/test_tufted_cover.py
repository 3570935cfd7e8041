"""Tests for tufted cover construction and intrinsic mollification."""

import numpy as np
import pytest

from tuftedcover.core.TriSoupMesh import TriSoupMesh
from tuftedcover.geometry_processing.TuftedCover import buildIntrinsicTuftedCover, faceEdgeArray, mollifyIntrinsic


def faceMargins(faceEdges, edgeLengths):
    faceLengths = edgeLengths[faceEdges]
    return faceLengths.sum(axis=1)[:, np.newaxis] - 2.0 * faceLengths


def test_mollify_with_zero_factor_is_identity(bumpyGrid):
    _, lengths = bumpyGrid.edgeLengths()

    mollified = mollifyIntrinsic(bumpyGrid, lengths, 0.0)

    assert mollified is not lengths
    assert np.array_equal(mollified, lengths)


def test_mollify_repairs_degenerate_triangle():
    mesh = TriSoupMesh([[0, 0, 0], [1, 0, 0], [2, 0, 0]], [[0, 1, 2]])
    _, lengths = mesh.edgeLengths()
    factor = 1e-3

    mollified = mollifyIntrinsic(mesh, lengths, factor)

    eps = factor * lengths.mean()
    assert faceMargins(faceEdgeArray(mesh), mollified).min() >= eps - 1e-12
    # A uniform shift of every edge
    np.testing.assert_allclose(mollified - lengths, eps)


def test_mollify_leaves_good_triangles_alone(rightTriangle):
    _, lengths = rightTriangle.edgeLengths()

    np.testing.assert_array_equal(mollifyIntrinsic(rightTriangle, lengths, 1e-6), lengths)


def test_cover_of_single_triangle(rightTriangle):
    mesh, lengths = buildIntrinsicTuftedCover(rightTriangle)

    mesh.checkMeshReferences()
    assert (mesh.nVerts(), mesh.nEdges(), mesh.nFaces()) == (3, 3, 2)
    assert mesh.faceVerts(0) == (0, 1, 2)
    assert mesh.faceVerts(1) == (0, 2, 1)
    # Every boundary edge glues the front of the triangle to its back
    for e in range(mesh.nEdges()):
        assert sorted(mesh.edgeFaces(e)) == [0, 1]
    np.testing.assert_allclose(sorted(lengths), [1.0, 1.0, np.sqrt(2.0)])


def test_cover_carries_given_lengths(bumpyGrid):
    edgeDict, lengths = bumpyGrid.edgeLengths()
    scaled = 2.0 * lengths

    mesh, coverLengths = buildIntrinsicTuftedCover(bumpyGrid, scaled)

    for e in range(mesh.nEdges()):
        (vA, vB) = mesh.edgeVerts(e)
        assert coverLengths[e] == scaled[edgeDict[(min(vA, vB), max(vA, vB))]]


def test_cover_of_open_grid_is_a_sphere_after_separation(bumpyGrid):
    mesh, _ = buildIntrinsicTuftedCover(bumpyGrid)

    mesh.checkMeshReferences()
    assert mesh.nFaces() == 2 * bumpyGrid.nFaces()

    # Interior vertices see a front fan and a back fan
    interior = [5, 6, 9, 10]
    assert [v for v in range(mesh.nVerts()) if not mesh.isManifoldVertex(v)] == interior

    mesh.separateNonmanifoldVertices()
    assert mesh.nVerts() == bumpyGrid.nVerts() + len(interior)
    assert mesh.eulerCharacteristic() == 2


def test_cover_of_nonmanifold_fin(fin):
    mesh, _ = buildIntrinsicTuftedCover(fin, positions=fin.verts)

    mesh.checkMeshReferences()
    assert mesh.nFaces() == 6
    # 3 gluings along the shared edge plus one for each of the 6 boundary edges
    assert mesh.nEdges() == 9
    assert sum(1 for e in range(mesh.nEdges()) if set(mesh.edgeVerts(e)) == {0, 1}) == 3
    assert all(mesh.isManifoldVertex(v) for v in range(mesh.nVerts()))
    assert mesh.eulerCharacteristic() == 2


def test_vanes_are_glued_in_angular_order():
    # Four vanes around the z axis, listed out of angular order
    verts = [[0, 0, 0], [0, 0, 1], [1, 0, 0], [-1, 0, 0], [0, 1, 0], [0, -1, 0]]
    mesh = TriSoupMesh(verts, [[0, 1, 2], [0, 1, 3], [0, 1, 4], [0, 1, 5]])

    cover, _ = buildIntrinsicTuftedCover(mesh, positions=mesh.verts)

    gluedPairs = set()
    for e in range(cover.nEdges()):
        if set(cover.edgeVerts(e)) == {0, 1}:
            (fA, fB) = cover.edgeFaces(e)
            gluedPairs.add(tuple(sorted((fA % 4, fB % 4))))

    # Neighbors around the axis are glued, opposite vanes never are
    assert gluedPairs == {(0, 2), (1, 2), (1, 3), (0, 3)}


def test_bowtie_separation_end_to_end(bowtie):
    mesh, _ = buildIntrinsicTuftedCover(bowtie, positions=bowtie.verts)
    nVertsBefore = mesh.nVerts()
    nFacesBefore = mesh.nFaces()

    origVert = mesh.separateNonmanifoldVertices()
    positions = bowtie.verts[origVert]
    manifold = mesh.toManifoldMesh()

    # The bowtie vertex lies in two fans and ends up as two vertices
    assert manifold.nVerts() == nVertsBefore + 1
    assert np.sum(origVert == 0) == 2
    assert manifold.nFaces() == nFacesBefore == 4
    for v in range(manifold.nVerts()):
        np.testing.assert_array_equal(positions[v], bowtie.verts[origVert[v]])


def test_cover_requires_triangles():
    mesh = TriSoupMesh([[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]], [[0, 1, 2, 3]])

    with pytest.raises(ValueError):
        buildIntrinsicTuftedCover(mesh)
