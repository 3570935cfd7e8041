"""Tests for the bubbled rendering surface."""

import numpy as np
import pytest

from tuftedcover.core.SurfacePoint import SurfacePoint
from tuftedcover.geometry_processing.BubbleOffset import (BubbleOffset, bubbleProfile, subdivideRounded,
                                                          subdivisionTemplate)
from tuftedcover.geometry_processing.TuftedCover import buildIntrinsicTuftedCover


@pytest.fixture
def coverAndPositions(rightTriangle):
    mesh, _ = buildIntrinsicTuftedCover(rightTriangle)
    return mesh, rightTriangle.verts


def test_bubble_profile_vanishes_on_the_boundary():
    assert bubbleProfile([1.0, 0.0, 0.0]) == 0.0
    assert bubbleProfile([0.5, 0.5, 0.0]) == 0.0
    assert bubbleProfile([1/3, 1/3, 1/3]) == pytest.approx(1.0)
    np.testing.assert_allclose(bubbleProfile([[1/3, 1/3, 1/3], [0.0, 0.2, 0.8]]), [1.0, 0.0])


def test_front_and_back_copies_bulge_apart(coverAndPositions):
    mesh, positions = coverAndPositions
    bubble = BubbleOffset(mesh, positions, relativeScale=0.2)
    center = [1/3, 1/3, 1/3]

    front = bubble.queryFaceCoords(0, center)
    back = bubble.queryFaceCoords(1, center)

    np.testing.assert_allclose(front[:2], back[:2])
    assert front[2] > 0
    assert back[2] == pytest.approx(-front[2])
    faceScale = np.mean([1.0, 1.0, np.sqrt(2.0)])
    assert front[2] == pytest.approx(0.2 * faceScale)


def test_zero_scale_gives_zero_offset(coverAndPositions):
    mesh, positions = coverAndPositions
    bubble = BubbleOffset(mesh, positions, relativeScale=0.0)

    p = SurfacePoint.inFaceCoords(1, [0.2, 0.3, 0.5])

    np.testing.assert_array_equal(bubble.queryPoint(p), p.position(mesh, positions))


def test_edges_and_vertices_are_not_offset(coverAndPositions):
    mesh, positions = coverAndPositions
    bubble = BubbleOffset(mesh, positions, relativeScale=0.4)

    edgePoint = SurfacePoint.onEdge(1, 0.25)
    np.testing.assert_allclose(bubble.queryPoint(edgePoint), edgePoint.position(mesh, positions))
    np.testing.assert_array_equal(bubble.queryPoint(SurfacePoint.onVertex(2)), positions[2])
    # The same edge point seen from inside a face
    inFace = edgePoint.inFace(mesh, 0)
    np.testing.assert_allclose(bubble.queryPoint(inFace), edgePoint.position(mesh, positions), atol=1e-15)


def test_subdivision_template_counts():
    for level in range(4):
        faceCoords, tris = subdivisionTemplate(level)
        n = 2 ** level
        assert len(tris) == 4 ** level
        assert len(faceCoords) == (n + 1) * (n + 2) // 2
        np.testing.assert_allclose(faceCoords.sum(axis=1), 1.0)


def test_subdivision_template_keeps_orientation():
    faceCoords, tris = subdivisionTemplate(2)
    # Map barycentric coordinates on to the plane, corners at (0,0), (1,0), (0,1)
    planar = faceCoords[:, 1:]
    for (a, b, c) in tris:
        u = planar[b] - planar[a]
        v = planar[c] - planar[a]
        assert u[0] * v[1] - u[1] * v[0] > 0


def test_subdivide_rounded_builds_a_soup(coverAndPositions):
    mesh, positions = coverAndPositions

    vertexCoordinates, polygons = subdivideRounded(mesh, positions, 2, 0.0)

    assert vertexCoordinates.shape == (2 * 15, 3)
    assert polygons.shape == (2 * 16, 3)
    assert polygons.max() == len(vertexCoordinates) - 1
    np.testing.assert_array_equal(vertexCoordinates[:, 2], 0.0)


def test_subdivide_rounded_uses_bubble_scale(coverAndPositions):
    mesh, positions = coverAndPositions
    bubble = BubbleOffset(mesh, positions)
    center = [1/3, 1/3, 1/3]

    vertexCoordinates, _ = subdivideRounded(mesh, positions, 2, 0.3, bubble)

    # The caller's offset keeps its own scale
    assert bubble.relativeScale == 0.2
    assert vertexCoordinates[:, 2].max() > 0
    assert vertexCoordinates[:, 2].min() < 0
    np.testing.assert_allclose(bubble.queryFaceCoords(0, center, 0.3), bubble.queryFaceCoords(0, center) * [1, 1, 1.5])
