# The tufted Laplacian: a cotan Laplacian and lumped mass matrix for an arbitrary
# (non-manifold, boundary, degenerate) triangle mesh, computed on the intrinsic
# Delaunay triangulation of its tufted cover. The cover is a double cover, so both
# matrices are halved to agree with the input surface.

import logging

import numpy as np
from scipy.sparse import csc_matrix, diags

from .IntrinsicTriangulation import IntrinsicTriangulation
from .TuftedCover import buildIntrinsicTuftedCover, mollifyIntrinsic

logger = logging.getLogger(__name__)


def cotanLaplacian(intrinsicTri):
    """
    The positive semi-definite weak cotan Laplacian of an intrinsic triangulation,
    L_ij = -(cot a + cot b)/2 off the diagonal, with rows summing to zero.
    """
    mesh = intrinsicTri.mesh
    nV = mesh.nVerts()

    rows, cols, vals = [], [], []
    for e in range(mesh.nEdges()):
        w = intrinsicTri.edgeCotanWeight(e)
        (vA, vB) = mesh.edgeVerts(e)
        rows.extend((vA, vB, vA, vB))
        cols.extend((vB, vA, vA, vB))
        vals.extend((-w, -w, w, w))

    return csc_matrix((vals, (rows, cols)), shape=(nV, nV))


def vertexLumpedMassMatrix(intrinsicTri):
    """Diagonal mass matrix giving each vertex a third of the area of its faces"""
    mesh = intrinsicTri.mesh
    masses = np.zeros(mesh.nVerts())
    for f in range(mesh.nFaces()):
        area = intrinsicTri.faceArea(f)
        for v in mesh.faceVerts(f):
            masses[v] += area / 3.0
    return csc_matrix(diags(masses))


def buildTuftedLaplacian(soupMesh, positions=None, mollifyFactor=0.0):
    """
    Build the tufted Laplacian L and lumped mass matrix M of a triangulated
    TriSoupMesh, both as scipy csc matrices indexed by the soup's vertices.

    mollifyFactor is the intrinsic mollification to apply, relative to the mean edge
    length; positions defaults to soupMesh.verts.
    """
    positions = soupMesh.verts if positions is None else np.asarray(positions, dtype=float)

    edgeDict, _ = soupMesh.edgeLengths()
    edgeLengths = np.empty(len(edgeDict))
    for ((i, j), e) in edgeDict.items():
        edgeLengths[e] = np.linalg.norm(positions[j] - positions[i])

    edgeLengths = mollifyIntrinsic(soupMesh, edgeLengths, mollifyFactor)

    coverMesh, coverEdgeLengths = buildIntrinsicTuftedCover(soupMesh, edgeLengths, positions)

    intrinsicTri = IntrinsicTriangulation(coverMesh, coverEdgeLengths)
    intrinsicTri.flipToDelaunay()

    L = 0.5 * cotanLaplacian(intrinsicTri)
    M = 0.5 * vertexLumpedMassMatrix(intrinsicTri)

    logger.debug("tufted Laplacian has %d nonzeros over %d vertices", L.nnz, L.shape[0])
    return csc_matrix(L), csc_matrix(M)
