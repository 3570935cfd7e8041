# Intrinsic triangulations: a triangulation of a mesh's vertex set whose geometry
# is given purely by edge lengths, and which can be modified by edge flips without
# ever moving a vertex.
#
# IntrinsicTriangulation knows only connectivity and lengths, which is all that is
# needed to flip to an intrinsic Delaunay triangulation and to build a Laplacian.
#
# SignpostIntrinsicTriangulation additionally stores, for every halfedge, the
# direction it leaves its tail vertex in, measured as an angle against a fixed
# reference direction in the tangent space of that vertex ('signposts'). The input
# mesh carries signposts in the same frame, which is what lets any intrinsic edge
# be traced out as a path across the input triangles.

import logging
from collections import deque
from math import cos, pi, sin

import numpy as np

from ..core.HalfEdgeMesh import ManifoldHalfEdgeMesh, MeshError, NonManifoldMeshError
from ..core.SurfacePoint import SurfacePoint
from ..core.Utilities import (barycentric2D, clamp, cross2D, layoutTriangleVertex, regAngle,
                              triangleAngle, triangleArea)

logger = logging.getLogger(__name__)


class TriangulationError(MeshError):
    pass


def cornerAngle(mesh, edgeLengths, h):
    """The interior angle of the face of h, at the tail vertex of h"""
    hPrev = mesh.prev(h)
    return triangleAngle(edgeLengths[mesh.heEdge[h]], edgeLengths[mesh.heEdge[hPrev]],
                         edgeLengths[mesh.heEdge[mesh.heNext[h]]])


def vertexAngleSums(mesh, edgeLengths):
    """The total angle around each vertex (the cone angle), summed over its fan"""
    angleSums = np.zeros(mesh.nVerts())
    for h in range(mesh.nHalfEdges()):
        angleSums[mesh.heVertex[h]] += cornerAngle(mesh, edgeLengths, h)
    return angleSums


def halfedgeDirections(mesh, edgeLengths, angleSums):
    """
    Signpost angle of every halfedge. At each vertex the halfedge vHalfEdge[v] is the
    reference direction (angle 0), and the others are found by accumulating corner
    angles counter-clockwise. Angles are rescaled by 2pi / (cone angle), so they
    always lie in [0, 2pi).
    """
    directions = np.zeros(mesh.nHalfEdges())
    for v in range(mesh.nVerts()):
        scale = 2*pi / angleSums[v] if angleSums[v] > 0 else 0.0
        angSum = 0.0
        for h in mesh.adjHalfEdges(v):
            directions[h] = regAngle(angSum * scale)
            angSum += cornerAngle(mesh, edgeLengths, h)
    return directions


class IntrinsicTriangulation(object):

    # Tolerance on the sum of opposite angles when testing the Delaunay condition
    DELAUNAY_EPS = 1e-9

    def __init__(self, mesh, edgeLengths):

        if len(edgeLengths) != mesh.nEdges():
            raise TriangulationError('ERROR: got ' + str(len(edgeLengths)) + ' edge lengths for a mesh with ' +
                                     str(mesh.nEdges()) + ' edges')
        if np.any(~np.isfinite(edgeLengths)) or np.any(np.asarray(edgeLengths) < 0):
            raise TriangulationError('ERROR: intrinsic edge lengths must be non-negative and finite')

        # The triangulation operates on its own copy of the connectivity, the mesh
        # passed in is left untouched
        self.inputMesh = mesh
        self.mesh = mesh.copy()
        self.intrinsicEdgeLengths = np.array(edgeLengths, dtype=float)
        self.edgeIsOriginal = np.ones(mesh.nEdges(), dtype=bool)

        nBad = self.countTriangleInequalityViolations()
        if nBad > 0:
            logger.warning("%d intrinsic triangles violate the triangle inequality; consider mollifying", nBad)


    ### Geometric quantities, all computed from the current intrinsic edge lengths

    def halfedgeLength(self, h):
        return self.intrinsicEdgeLengths[self.mesh.heEdge[h]]

    def cornerAngle(self, h):
        return cornerAngle(self.mesh, self.intrinsicEdgeLengths, h)

    def oppositeAngle(self, h):
        """The angle across the face from halfedge h"""
        return self.cornerAngle(self.mesh.prev(h))

    def faceArea(self, f):
        return triangleArea(*[self.intrinsicEdgeLengths[e] for e in self.mesh.faceEdges(f)])

    def halfedgeCotanWeight(self, h):
        """Cotangent of the angle opposite h (zero for a degenerate face)"""
        lOpp = self.halfedgeLength(h)
        lA = self.halfedgeLength(self.mesh.heNext[h])
        lB = self.halfedgeLength(self.mesh.prev(h))
        area = triangleArea(lOpp, lA, lB)
        if area <= 0.0:
            return 0.0
        return (lA*lA + lB*lB - lOpp*lOpp) / (4.0 * area)

    def edgeCotanWeight(self, e):
        h = self.mesh.eHalfEdge[e]
        return 0.5 * (self.halfedgeCotanWeight(h) + self.halfedgeCotanWeight(self.mesh.heTwin[h]))

    def countTriangleInequalityViolations(self):
        count = 0
        for f in range(self.mesh.nFaces()):
            l = sorted(self.intrinsicEdgeLengths[e] for e in self.mesh.faceEdges(f))
            if l[0] + l[1] <= l[2]:
                count += 1
        return count


    ### Delaunay refinement

    def isDelaunay(self, e):
        """The local Delaunay condition: the two angles opposite e sum to at most pi"""
        h = self.mesh.eHalfEdge[e]
        return self.oppositeAngle(h) + self.oppositeAngle(self.mesh.heTwin[h]) <= pi + self.DELAUNAY_EPS

    def countNonDelaunayEdges(self):
        return sum(1 for e in range(self.mesh.nEdges()) if not self.isDelaunay(e))

    def flipEdgeIfPossible(self, e):
        """
        Flip edge e if its two faces lay out as a convex quadrilateral, updating the
        intrinsic length of the new edge. Returns True if the edge was flipped.
        """
        mesh = self.mesh
        ha = int(mesh.eHalfEdge[e])
        hb = int(mesh.heTwin[ha])
        if mesh.heFace[ha] == mesh.heFace[hb]:
            return False

        ha1 = int(mesh.heNext[ha])
        ha2 = int(mesh.heNext[ha1])
        hb1 = int(mesh.heNext[hb])
        hb2 = int(mesh.heNext[hb1])

        # The quad must be strictly convex at both ends of the old edge
        if self.cornerAngle(ha) + self.cornerAngle(hb1) >= pi:
            return False
        if self.cornerAngle(hb) + self.cornerAngle(ha1) >= pi:
            return False

        # Lay out the quad in the plane to measure the new diagonal
        lAB = self.intrinsicEdgeLengths[e]
        pA = np.array([0.0, 0.0])
        pB = np.array([lAB, 0.0])
        pC = layoutTriangleVertex(pA, pB, self.halfedgeLength(ha1), self.halfedgeLength(ha2))
        pD = layoutTriangleVertex(pB, pA, self.halfedgeLength(hb1), self.halfedgeLength(hb2))
        newLength = np.linalg.norm(pC - pD)
        if not newLength > 0:
            return False

        if not mesh.flipEdge(e):
            return False

        self.intrinsicEdgeLengths[e] = newLength
        self.edgeIsOriginal[e] = False
        self.edgeFlipped(e)
        return True

    def edgeFlipped(self, e):
        # Subclasses update any additional data stored on the flipped edge here
        pass

    def flipToDelaunay(self):
        """
        Flip edges until every edge satisfies the local Delaunay condition (or cannot
        be flipped). Returns the number of flips performed; calling this again on the
        result performs none.
        """
        nEdges = self.mesh.nEdges()
        queue = deque(range(nEdges))
        inQueue = np.ones(nEdges, dtype=bool)

        nFlips = 0
        while queue:
            e = queue.popleft()
            inQueue[e] = False

            if self.isDelaunay(e):
                continue
            if not self.flipEdgeIfPossible(e):
                continue
            nFlips += 1

            # The four edges of the new quad may no longer be Delaunay
            h = self.mesh.eHalfEdge[e]
            for hNeigh in (self.mesh.heNext[h], self.mesh.prev(h),
                           self.mesh.heNext[self.mesh.heTwin[h]], self.mesh.prev(self.mesh.heTwin[h])):
                eNeigh = self.mesh.heEdge[hNeigh]
                if not inQueue[eNeigh]:
                    queue.append(eNeigh)
                    inQueue[eNeigh] = True

        nRemaining = self.countNonDelaunayEdges()
        print('  Flipped ' + str(nFlips) + ' edges to Delaunay (' + str(nRemaining) + ' unflippable non-Delaunay edges remain)')
        return nFlips


class SignpostIntrinsicTriangulation(IntrinsicTriangulation):

    def __init__(self, mesh, edgeLengths):

        if not isinstance(mesh, ManifoldHalfEdgeMesh):
            raise NonManifoldMeshError('ERROR: signpost triangulations require a manifold mesh, see HalfEdgeMesh.toManifoldMesh()')

        super(SignpostIntrinsicTriangulation, self).__init__(mesh, edgeLengths)

        # Geometry of the input triangulation, which never changes
        self.inputEdgeLengths = self.intrinsicEdgeLengths.copy()
        self.vertexAngleSums = vertexAngleSums(self.inputMesh, self.inputEdgeLengths)
        self.inputHalfedgeDirections = halfedgeDirections(self.inputMesh, self.inputEdgeLengths, self.vertexAngleSums)

        # Initially the intrinsic triangulation is the input triangulation
        self.intrinsicHalfedgeDirections = self.inputHalfedgeDirections.copy()


    def edgeFlipped(self, e):
        h = self.mesh.eHalfEdge[e]
        self.updateAngleFromCWNeighbor(h)
        self.updateAngleFromCWNeighbor(self.mesh.heTwin[h])

    def updateAngleFromCWNeighbor(self, h):
        hCW = self.mesh.prevOutgoing(h)
        v = self.mesh.heVertex[h]
        if self.vertexAngleSums[v] <= 0:
            raise TriangulationError('ERROR: vertex ' + str(v) + ' has no angle around it')
        scale = 2*pi / self.vertexAngleSums[v]
        self.intrinsicHalfedgeDirections[h] = regAngle(self.intrinsicHalfedgeDirections[hCW] + scale * self.cornerAngle(hCW))


    ### Tracing

    def _inputWedge(self, v, direction):
        """
        The outgoing input halfedge at v which starts the wedge containing the given
        signpost direction, and the (unscaled) angle of the direction within the wedge.
        """
        wedgeHE = None
        for h in self.inputMesh.adjHalfEdges(v):
            if self.inputHalfedgeDirections[h] <= direction + 1e-12:
                wedgeHE = h
            else:
                break
        if wedgeHE is None:
            raise TriangulationError('ERROR: could not find the input wedge for a direction at vertex ' + str(v))

        offset = (direction - self.inputHalfedgeDirections[wedgeHE]) * self.vertexAngleSums[v] / (2*pi)
        maxOffset = cornerAngle(self.inputMesh, self.inputEdgeLengths, wedgeHE)
        return wedgeHE, clamp(offset, 0.0, maxOffset)

    def _layoutFace(self, h, pTail, pTip):
        """
        Positions of the corners of the input face of h, given where the tail and tip of
        h sit in the plane. Returns ((h, next, prev), (pTail, pTip, pOther)).
        """
        mesh = self.inputMesh
        hNext = int(mesh.heNext[h])
        hPrev = int(mesh.heNext[hNext])
        pOther = layoutTriangleVertex(pTail, pTip, self.inputEdgeLengths[mesh.heEdge[hNext]],
                                      self.inputEdgeLengths[mesh.heEdge[hPrev]])
        return (int(h), hNext, hPrev), (np.asarray(pTail, dtype=float), np.asarray(pTip, dtype=float), pOther)

    def _facePoint(self, corners, localCoords):
        """A FACE SurfacePoint from barycentric coordinates ordered like 'corners'"""
        mesh = self.inputMesh
        f = int(mesh.heFace[corners[0]])
        faceCoords = np.zeros(3)
        for (i, h) in enumerate(mesh.faceHalfEdges(f)):
            faceCoords[i] = localCoords[corners.index(h)]
        return SurfacePoint.inFaceCoords(f, faceCoords)

    def traceHalfedge(self, h):
        """
        Trace intrinsic halfedge h out across the input triangles. Returns a list of
        SurfacePoints on the input mesh: the tail vertex, every crossing of an input
        edge, and finally the tip vertex expressed in the input face the trace ended in.

        The trace runs for the current value of intrinsicEdgeLengths[edge(h)].
        """
        v = int(self.mesh.heVertex[h])
        endVert = int(self.mesh.tipVertex(h))
        direction = self.intrinsicHalfedgeDirections[h]
        length = self.intrinsicEdgeLengths[self.mesh.heEdge[h]]

        return self.traceFromVertex(v, direction, length, endVert)

    def traceFromVertex(self, v, direction, length, endVert=None):
        """
        Walk a straight line (geodesic) in the input triangulation, leaving vertex v in
        the given signpost direction for the given distance.
        """
        mesh = self.inputMesh
        points = [SurfacePoint.onVertex(v)]

        # Lay out the first face with v at the origin and the wedge halfedge along +x
        wedgeHE, theta = self._inputWedge(v, direction)
        corners, cornerPos = self._layoutFace(wedgeHE, (0.0, 0.0), (self.inputEdgeLengths[mesh.heEdge[wedgeHE]], 0.0))
        rayDir = np.array([cos(theta), sin(theta)])
        pos = np.array([0.0, 0.0])
        remaining = length
        endTol = 1e-12 * length

        # From the start vertex the only way out is through the opposite side
        candidates = [1]

        maxSteps = 4 * mesh.nFaces() + 16
        for iStep in range(maxSteps):

            # Find where the ray leaves this face
            best = None
            for i in candidates:
                p0 = cornerPos[i]
                p1 = cornerPos[(i+1)%3]
                edgeVec = p1 - p0
                denom = cross2D(rayDir, edgeVec)
                if denom == 0.0:
                    continue
                tRay = cross2D(p0 - pos, edgeVec) / denom
                sEdge = cross2D(p0 - pos, rayDir) / denom
                # Prefer exits that land on the side itself, then the nearest
                miss = max(0.0, -sEdge, sEdge - 1.0)
                key = (miss > 1e-9, miss, tRay)
                if best is None or key < best[0]:
                    best = (key, i, tRay, sEdge)

            if best is None or remaining <= best[2] + endTol:
                # The path ends inside this face (or exactly on its boundary)
                endPos = pos + remaining * rayDir
                points.append(self._endPoint(corners, cornerPos, endPos, endVert))
                return points

            (key, iExit, tRay, sEdge) = best
            sEdge = clamp(sEdge, 0.0, 1.0)
            hExit = corners[iExit]
            p0 = cornerPos[iExit]
            p1 = cornerPos[(iExit+1)%3]

            e = int(mesh.heEdge[hExit])
            tEdge = sEdge if hExit == mesh.eHalfEdge[e] else 1.0 - sEdge
            points.append(SurfacePoint.onEdge(e, tEdge))

            remaining -= max(tRay, 0.0)
            pos = p0 + sEdge * (p1 - p0)

            # Cross in to the neighboring face; its halfedge along the shared side runs
            # the other way
            hTwin = int(mesh.heTwin[hExit])
            corners, cornerPos = self._layoutFace(hTwin, p1, p0)
            candidates = [1, 2]

        raise TriangulationError('ERROR: tracing from vertex ' + str(v) + ' did not terminate after ' +
                                 str(maxSteps) + ' faces')

    def _endPoint(self, corners, cornerPos, endPos, endVert):
        """
        The final point of a trace. If the face the trace ended in has endVert as a
        corner, snap exactly on to that corner.
        """
        mesh = self.inputMesh
        if endVert is not None:
            matches = [i for i in range(3) if mesh.heVertex[corners[i]] == endVert]
            if matches:
                iCorner = min(matches, key=lambda i: np.linalg.norm(cornerPos[i] - endPos))
                localCoords = np.zeros(3)
                localCoords[iCorner] = 1.0
                return self._facePoint(corners, localCoords)
            logger.debug("trace towards vertex %d ended in face %d, which does not contain it",
                         endVert, mesh.heFace[corners[0]])
        return self._facePoint(corners, barycentric2D(endPos, *cornerPos))
