# Construction of the tufted double cover of an arbitrary triangle soup.
#
# Every triangle of the input is replaced by two copies, a 'front' with the input
# winding and a 'back' with the reverse winding. Around each input edge, the
# incident triangles are ordered by angle, and each wedge of space between two
# consecutive triangles glues together the two triangle sides which face in to that
# wedge. A boundary edge (one triangle) glues the front of its triangle to the back,
# an ordinary manifold edge pairs the fronts and the backs, and a non-manifold edge
# with k triangles gets k gluings. The result is closed, every edge has exactly two
# sides, and intrinsically each sheet carries the same edge lengths as the input.

import logging
from math import atan2

import numpy as np

from ..core.HalfEdgeMesh import HalfEdgeMesh
from ..core.Utilities import normalize, regAngle

logger = logging.getLogger(__name__)


def faceEdgeArray(mesh, edgeDict=None):
    """
    (nFaces, 3) array giving the three edges of each face. Works on a HalfEdgeMesh, or
    on a triangulated TriSoupMesh with the edge numbering of TriSoupMesh.edgeLengths().
    """
    if isinstance(mesh, HalfEdgeMesh):
        h0 = mesh.fHalfEdge
        h1 = mesh.heNext[h0]
        h2 = mesh.heNext[h1]
        return np.stack((mesh.heEdge[h0], mesh.heEdge[h1], mesh.heEdge[h2]), axis=1)

    if edgeDict is None:
        edgeDict, _ = mesh.edgeLengths()
    faceEdges = [[edgeDict[tuple(sorted((face[i], face[(i+1)%3])))] for i in range(3)] for face in mesh.tris]
    return np.array(faceEdges, dtype=np.int64).reshape(-1, 3)


def mollifyIntrinsic(mesh, edgeLengths, relativeFactor):
    """
    Returns a copy of edgeLengths with the smallest uniform amount added to every
    edge such that every triangle satisfies the triangle inequality with a margin
    of relativeFactor * (mean edge length). With relativeFactor <= 0 the lengths
    are returned unchanged.
    """
    edgeLengths = np.array(edgeLengths, dtype=float)
    if not relativeFactor > 0:
        return edgeLengths

    faceEdges = faceEdgeArray(mesh)
    if len(faceEdges) == 0:
        return edgeLengths

    mollifyEps = relativeFactor * edgeLengths.mean()

    # margin[f,k] = (sum of the two other sides) - (side k)
    faceLengths = edgeLengths[faceEdges]
    margins = faceLengths.sum(axis=1)[:,np.newaxis] - 2.0 * faceLengths
    mollifyDelta = max(0.0, mollifyEps - margins.min())

    logger.debug("mollifying with eps=%g, adding delta=%g to every edge", mollifyEps, mollifyDelta)
    edgeLengths += mollifyDelta
    return edgeLengths


def _angleAroundEdge(axis, refDir, vec):
    vecPerp = vec - np.dot(vec, axis) * axis
    return regAngle(atan2(np.dot(np.cross(axis, refDir), vecPerp), np.dot(refDir, vecPerp)))


def _orderFacesAroundEdge(positions, a, b, faceOpposite):
    """
    Sort the (face, oppositeVertex) pairs incident on edge (a,b) by their angle
    around the axis a->b. Without positions the input order is kept.
    """
    if positions is None or len(faceOpposite) < 3:
        return faceOpposite

    axis = normalize(positions[b] - positions[a])
    refDir = None
    for (f, u) in faceOpposite:
        w = positions[u] - positions[a]
        wPerp = w - np.dot(w, axis) * axis
        if np.linalg.norm(wPerp) > 0:
            refDir = normalize(wPerp)
            break
    if refDir is None:
        return faceOpposite

    angles = [_angleAroundEdge(axis, refDir, positions[u] - positions[a]) for (f, u) in faceOpposite]
    order = sorted(range(len(faceOpposite)), key=lambda i: (angles[i], faceOpposite[i][0]))
    return [faceOpposite[i] for i in order]


def buildIntrinsicTuftedCover(soupMesh, edgeLengths=None, positions=None):
    """
    Build the tufted cover of a triangulated TriSoupMesh.

    edgeLengths, if given, are indexed like TriSoupMesh.edgeLengths() (otherwise the
    extrinsic lengths are used). positions, if given, are used only to order the
    triangles around non-manifold edges.

    Returns (coverMesh, coverEdgeLengths). coverMesh is a closed HalfEdgeMesh on the
    same vertex set as the soup, with 2 * nFaces faces; face f is the front copy of
    input face f and face nFaces + f is its back copy.
    """
    print('Constructing tufted cover...')

    if not soupMesh.isTriangular():
        raise ValueError('ERROR: the tufted cover can only be built on a triangle mesh, triangulate() first')

    edgeDict, extrinsicLengths = soupMesh.edgeLengths()
    if edgeLengths is None:
        edgeLengths = extrinsicLengths
    edgeLengths = np.asarray(edgeLengths, dtype=float)
    if len(edgeLengths) != len(extrinsicLengths):
        raise ValueError('ERROR: got ' + str(len(edgeLengths)) + ' edge lengths for a mesh with ' +
                         str(len(extrinsicLengths)) + ' edges')

    nFaces = soupMesh.nFaces()
    tris = np.array(soupMesh.tris, dtype=np.int64).reshape(-1, 3)
    coverTris = np.vstack((tris, tris[:, [0, 2, 1]]))

    # Collect the triangles around each edge. For each we record the halfedge which
    # runs with the edge (min -> max vertex) and the one that runs against it; one is
    # in the front copy and one in the back copy.
    edgeFaces = dict()
    for (f, face) in enumerate(tris):
        for i in range(3):
            ind1 = int(face[i])
            ind2 = int(face[(i+1)%3])
            frontHE = 3*f + i
            backHE = 3*(nFaces + f) + (2 - i)

            edgeKey = (min(ind1, ind2), max(ind1, ind2))
            if ind1 == edgeKey[0]:
                withHE, againstHE = frontHE, backHE
            else:
                withHE, againstHE = backHE, frontHE

            opposite = int(face[(i+2)%3])
            edgeFaces.setdefault(edgeKey, []).append((f, opposite, withHE, againstHE))

    twins = -np.ones(6 * nFaces, dtype=np.int64)
    heSoupEdge = -np.ones(6 * nFaces, dtype=np.int64)
    nBoundary = 0
    nNonmanifold = 0
    for (edgeKey, incident) in edgeFaces.items():

        if len(incident) == 1:
            nBoundary += 1
        elif len(incident) > 2:
            nNonmanifold += 1

        heByFace = {(f, u): (withHE, againstHE) for (f, u, withHE, againstHE) in incident}
        ordered = _orderFacesAroundEdge(positions, edgeKey[0], edgeKey[1],
                                        [(f, u) for (f, u, withHE, againstHE) in incident])

        # Glue the side of each triangle facing forward around the edge to the side
        # of the next triangle facing backward
        for k in range(len(ordered)):
            withHE = heByFace[ordered[k]][0]
            againstHE = heByFace[ordered[(k+1)%len(ordered)]][1]
            twins[withHE] = againstHE
            twins[againstHE] = withHE

        soupEdge = edgeDict[edgeKey]
        for (f, u, withHE, againstHE) in incident:
            heSoupEdge[withHE] = soupEdge
            heSoupEdge[againstHE] = soupEdge

    print('  Input has ' + str(nBoundary) + ' boundary edges and ' + str(nNonmanifold) + ' non-manifold edges')

    coverMesh = HalfEdgeMesh.fromTriangles(soupMesh.nVerts(), coverTris, twins)
    coverEdgeLengths = edgeLengths[heSoupEdge[coverMesh.eHalfEdge]]

    logger.debug("tufted cover has %d verts, %d edges, %d faces",
                 coverMesh.nVerts(), coverMesh.nEdges(), coverMesh.nFaces())
    return coverMesh, coverEdgeLengths
