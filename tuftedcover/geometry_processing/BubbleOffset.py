# A cosmetic 'bubbled' embedding of a closed mesh, used to draw the tufted cover.
#
# Every face is inflated along its own normal by a bump which vanishes on the face's
# edges, so the offset surface stays continuous while the front and back copies of a
# face (whose normals point in opposite directions) puff apart in to a pillow. None of
# this touches intrinsic geometry; it only decides where points are drawn.

import numpy as np

from ..core.SurfacePoint import SurfacePoint


def bubbleProfile(faceCoords):
    """
    Height of the bubble (in [0,1]) at barycentric coordinates faceCoords, which may
    be a single length-3 array or an (n,3) array. Zero on the edges of the face and
    one at its barycenter.
    """
    faceCoords = np.clip(np.asarray(faceCoords, dtype=float), 0.0, None)
    return np.cbrt(27.0 * np.prod(faceCoords, axis=-1))


class BubbleOffset(object):

    def __init__(self, mesh, positions, relativeScale=0.2):

        self.mesh = mesh
        self.positions = np.asarray(positions, dtype=float)
        self.relativeScale = relativeScale

        # Per-face data for the offset field: corner positions, unit normal, and the
        # local length scale (mean edge length of the face)
        self.faceVerts = mesh.faceVertexArray()
        cornerPos = self.positions[self.faceVerts]
        rawNormals = np.cross(cornerPos[:,1] - cornerPos[:,0], cornerPos[:,2] - cornerPos[:,0])
        normLengths = np.linalg.norm(rawNormals, axis=1)
        self.faceNormals = np.zeros_like(rawNormals)
        nonzero = normLengths > 0
        self.faceNormals[nonzero] = rawNormals[nonzero] / normLengths[nonzero][:,np.newaxis]

        sideLengths = np.linalg.norm(cornerPos - np.roll(cornerPos, 1, axis=1), axis=2)
        self.faceScales = sideLengths.mean(axis=1)


    def queryFaceCoords(self, f, faceCoords, relativeScale=None):
        """
        Offset positions for one or many barycentric points in face f. relativeScale
        overrides the scale stored on this object for the one query.
        """
        if relativeScale is None:
            relativeScale = self.relativeScale
        faceCoords = np.asarray(faceCoords, dtype=float)
        base = faceCoords.dot(self.positions[self.faceVerts[f]])
        height = relativeScale * self.faceScales[f] * bubbleProfile(faceCoords)
        return base + np.multiply.outer(height, self.faceNormals[f])

    def queryPoint(self, p):
        """The position of SurfacePoint p on the bubbled surface"""
        # The bubble is flat along edges and at vertices
        if p.type != SurfacePoint.FACE:
            return p.position(self.mesh, self.positions)
        return self.queryFaceCoords(p.face, p.faceCoords)


def subdivisionTemplate(subdivLevel):
    """
    Barycentric coordinates and triangles for a regular subdivision of a single
    triangle in to 4^subdivLevel triangles, oriented like the original.
    """
    n = 2 ** max(int(subdivLevel), 0)

    index = dict()
    faceCoords = []
    for i in range(n + 1):
        for j in range(n + 1 - i):
            index[(i, j)] = len(faceCoords)
            faceCoords.append((i / n, j / n, (n - i - j) / n))

    tris = []
    for i in range(n):
        for j in range(n - i):
            tris.append((index[(i, j)], index[(i+1, j)], index[(i, j+1)]))
            if j < n - i - 1:
                tris.append((index[(i+1, j)], index[(i+1, j+1)], index[(i, j+1)]))

    return np.array(faceCoords), np.array(tris, dtype=np.int64)


def subdivideRounded(mesh, positions, subdivLevel, bubbleScale, bubbleOffset=None):
    """
    Build the bubbled rendering surface: every face of the mesh is subdivided
    subdivLevel times and each new vertex is placed on the bubble offset surface.

    Returns (vertexCoordinates, polygons) for a triangle soup; faces do not share
    vertices.
    """
    if bubbleOffset is None:
        bubbleOffset = BubbleOffset(mesh, positions)

    faceCoords, templateTris = subdivisionTemplate(subdivLevel)
    nPerFace = len(faceCoords)

    vertexCoordinates = np.empty((mesh.nFaces() * nPerFace, 3))
    for f in range(mesh.nFaces()):
        vertexCoordinates[f*nPerFace:(f+1)*nPerFace] = bubbleOffset.queryFaceCoords(f, faceCoords, bubbleScale)

    offsets = nPerFace * np.arange(mesh.nFaces())
    polygons = (templateTris[np.newaxis,:,:] + offsets[:,np.newaxis,np.newaxis]).reshape(-1, 3)

    return vertexCoordinates, polygons
